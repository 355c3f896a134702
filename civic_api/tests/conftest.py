# -*- coding: utf-8 -*-
# SPDX-License-Identifier: Apache-2.0

"""
Pytest configuration and fixtures.

Lifecycle and endpoint tests run against ``InMemoryStore``, which mirrors
the MongoDBService methods the services call, and ``RecordingGateway``,
which captures notifications synchronously.
"""

import copy
import os
import random
import pytest
from datetime import datetime, timedelta
from typing import Any, Dict, List, Optional
from bson import ObjectId

# Set test environment
os.environ['ENVIRONMENT'] = 'test'
os.environ['OTEL_ENABLED'] = 'false'
os.environ['MONGODB_DATABASE'] = 'civic_issues_test'

from civic_api.middleware.error_handler import DuplicateKeyException, ServiceUnavailableException
from civic_api.services.credentials import PasswordHasher
from civic_api.services.issues import IssueService
from civic_api.services.analytics import AnalyticsService

UNIQUE_KEYS = {"issues": "trackingId", "staff": "email"}


class InMemoryStore:
    """Dict-backed stand-in for MongoDBService."""

    def __init__(self):
        self.collections: Dict[str, List[Dict[str, Any]]] = {}
        self.unavailable = False
        self.update_calls = 0

    def _check(self):
        if self.unavailable:
            raise ServiceUnavailableException("Issue store is unavailable")

    def _docs(self, collection: str) -> List[Dict[str, Any]]:
        return self.collections.setdefault(collection, [])

    @staticmethod
    def _matches(document: Dict[str, Any], filters: Optional[Dict[str, Any]]) -> bool:
        for key, expected in (filters or {}).items():
            actual = document.get(key)
            if isinstance(expected, dict) and "$ne" in expected:
                if actual == expected["$ne"]:
                    return False
            elif expected is None:
                if actual is not None:
                    return False
            elif actual != expected:
                return False
        return True

    @staticmethod
    def _public(document: Optional[Dict[str, Any]]) -> Optional[Dict[str, Any]]:
        if document is None:
            return None
        result = copy.deepcopy(document)
        result["id"] = str(result.pop("_id"))
        return result

    def insert_raw(self, collection: str, document: Dict[str, Any]) -> str:
        """Store a document as-is, bypassing unique checks (legacy data)."""
        document = copy.deepcopy(document)
        document.setdefault("_id", ObjectId())
        self._docs(collection).append(document)
        return str(document["_id"])

    def create(self, collection: str, document: Dict[str, Any]) -> str:
        self._check()
        unique_key = UNIQUE_KEYS.get(collection)
        if unique_key and any(
            existing.get(unique_key) == document.get(unique_key) for existing in self._docs(collection)
        ):
            raise DuplicateKeyException(f"Document with this {unique_key} already exists", key=unique_key)

        now = datetime.utcnow()
        document.setdefault("createdAt", now)
        document.setdefault("updatedAt", now)
        document.setdefault("_id", ObjectId())
        self._docs(collection).append(copy.deepcopy(document))
        return str(document["_id"])

    def find_one(self, collection: str, filters: Dict[str, Any]) -> Optional[Dict[str, Any]]:
        self._check()
        for document in self._docs(collection):
            if self._matches(document, filters):
                return self._public(document)
        return None

    def find_by_id(self, collection: str, doc_id: str) -> Optional[Dict[str, Any]]:
        if not ObjectId.is_valid(doc_id):
            return None
        return self.find_one(collection, {"_id": ObjectId(doc_id)})

    def find_many(self, collection: str, filters: Dict[str, Any] = None, sort_by: str = None,
                  sort_order: int = -1) -> List[Dict[str, Any]]:
        self._check()
        documents = [doc for doc in self._docs(collection) if self._matches(doc, filters)]
        if sort_by:
            documents.sort(key=lambda doc: doc.get(sort_by), reverse=sort_order == -1)
        return [self._public(doc) for doc in documents]

    def _apply(self, document: Dict[str, Any], updates: Dict[str, Any], unset: Optional[List[str]]):
        document.update(copy.deepcopy(updates))
        document.setdefault("updatedAt", datetime.utcnow())
        for field in unset or []:
            document.pop(field, None)

    def update_one(self, collection: str, filters: Dict[str, Any], updates: Dict[str, Any],
                   unset: List[str] = None) -> Optional[Dict[str, Any]]:
        self._check()
        self.update_calls += 1
        for document in self._docs(collection):
            if self._matches(document, filters):
                self._apply(document, updates, unset)
                return self._public(document)
        return None

    def update_many(self, collection: str, filters: Dict[str, Any], updates: Dict[str, Any] = None,
                    unset: List[str] = None) -> int:
        self._check()
        modified = 0
        for document in self._docs(collection):
            if self._matches(document, filters):
                self._apply(document, updates or {}, unset)
                modified += 1
        return modified

    def delete_one(self, collection: str, doc_id: str) -> bool:
        self._check()
        documents = self._docs(collection)
        for index, document in enumerate(documents):
            if str(document["_id"]) == doc_id:
                del documents[index]
                return True
        return False

    def aggregate_counts(self, collection: str, field: str) -> Dict[str, int]:
        self._check()
        counts: Dict[str, int] = {}
        for document in self._docs(collection):
            value = document.get(field)
            if value is not None:
                counts[value] = counts.get(value, 0) + 1
        return counts

    def health_check(self) -> Dict[str, Any]:
        if self.unavailable:
            return {"status": "unhealthy", "error": "unavailable", "database": "memory"}
        return {"status": "healthy", "ping": True, "version": "memory", "database": "memory"}


class RecordingGateway:
    """Notification gateway that records messages instead of sending them."""

    backend = "recording"

    def __init__(self, fail: bool = False):
        self.sent: List[Dict[str, Any]] = []
        self.fail = fail

    def send(self, contact: str, message: str, **context) -> None:
        if self.fail:
            raise RuntimeError("gateway offline")
        self.sent.append({"contact": contact, "message": message, **context})

    def flush(self, timeout: float = 5.0) -> bool:
        return True

    def close(self, timeout: float = 5.0) -> None:
        pass

    def health_check(self) -> Dict[str, Any]:
        return {"status": "healthy", "backend": self.backend, "queue_depth": 0}


class FakeClock:
    """Manually advanced clock returning naive UTC datetimes."""

    def __init__(self, start: datetime = datetime(2024, 5, 1, 9, 0, 0)):
        self.now = start

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs) -> datetime:
        self.now = self.now + timedelta(**kwargs)
        return self.now


class SequenceRandom:
    """Random source whose ``randint`` replays a fixed sequence."""

    def __init__(self, values: List[int]):
        self.values = list(values)

    def randint(self, a: int, b: int) -> int:
        return self.values.pop(0)


@pytest.fixture
def store():
    """Empty in-memory store."""
    return InMemoryStore()


@pytest.fixture
def gateway():
    """Notification gateway that records sent messages."""
    return RecordingGateway()


@pytest.fixture
def clock():
    """Controllable clock starting at 2024-05-01 09:00 UTC."""
    return FakeClock()


@pytest.fixture
def issue_service(store, gateway, clock):
    """Issue service with ordering enforced and a seeded random source."""
    return IssueService(store, gateway, clock=clock, rng=random.Random(1234))


@pytest.fixture
def legacy_issue_service(store, gateway, clock):
    """Issue service with the status ordering check switched off."""
    return IssueService(
        store, gateway, clock=clock, rng=random.Random(99), enforce_status_order=False
    )


@pytest.fixture
def analytics_service(store):
    return AnalyticsService(store)


@pytest.fixture
def fast_hasher():
    """bcrypt hasher with the minimum work factor to keep tests quick."""
    return PasswordHasher(rounds=4)


@pytest.fixture
def sample_report():
    """Valid citizen report payload."""
    return {
        "category": "Pothole",
        "latitude": 19.0760,
        "longitude": 72.8777,
        "landmark": "Near the bus depot",
        "description": "Deep pothole in the left lane",
        "contact": "+15550001111"
    }


@pytest.fixture
def staff_member(issue_service, fast_hasher):
    """A provisioned Public Works staff member."""
    return issue_service.provision_staff(
        name="Ana Silva",
        email="Ana.Silva@City.gov",
        password="correct horse battery",
        department="Public Works",
        hasher=fast_hasher
    )


@pytest.fixture
def app(store, gateway):
    """Flask application wired to the in-memory store and recording gateway."""
    from civic_api.app import create_app

    application = create_app(
        config_overrides={
            "TESTING": True,
            "BASE_URL": "http://testserver",
            "CORS_ALLOWED_ORIGINS": ["http://portal.test"],
            "OTEL_ENABLED": False
        },
        mongodb_service=store,
        notification_gateway=gateway
    )
    return application


@pytest.fixture
def client(app):
    """Flask test client."""
    return app.test_client()
