# -*- coding: utf-8 -*-
# SPDX-License-Identifier: Apache-2.0

"""
Unit tests for MongoDB service layer with a mocked driver.
"""

import pytest
from unittest.mock import Mock, MagicMock, patch
from bson import ObjectId
from pymongo import GEOSPHERE, ReturnDocument
from pymongo.errors import DuplicateKeyError, ServerSelectionTimeoutError, AutoReconnect

from civic_api.middleware.error_handler import DuplicateKeyException, ServiceUnavailableException
from civic_api.services.mongodb import MongoDBService


class TestMongoDBService:
    """Test MongoDB service functionality."""

    @pytest.fixture
    def collection(self):
        return MagicMock()

    @pytest.fixture
    def mongodb_service(self, collection):
        """MongoDB service whose collections are all the same mock."""
        service = MongoDBService("mongodb://mongo.test:27017", "civic_issues_test")
        with patch.object(MongoDBService, "get_collection", return_value=collection):
            yield service

    def test_create_sets_timestamps_and_id(self, mongodb_service, collection):
        collection.insert_one.side_effect = lambda doc: Mock(inserted_id=doc["_id"])
        document = {"trackingId": "123456"}

        doc_id = mongodb_service.create("issues", document)

        assert ObjectId.is_valid(doc_id)
        inserted = collection.insert_one.call_args[0][0]
        assert "createdAt" in inserted
        assert inserted["createdAt"] == inserted["updatedAt"]

    def test_create_translates_duplicate_key(self, mongodb_service, collection):
        collection.insert_one.side_effect = DuplicateKeyError(
            "E11000 duplicate key", code=11000, details={"keyPattern": {"trackingId": 1}}
        )

        with pytest.raises(DuplicateKeyException) as exc_info:
            mongodb_service.create("issues", {"trackingId": "123456"})

        assert exc_info.value.key == "trackingId"

    def test_create_translates_store_failure(self, mongodb_service, collection):
        collection.insert_one.side_effect = AutoReconnect("connection reset")

        with pytest.raises(ServiceUnavailableException):
            mongodb_service.create("issues", {"trackingId": "123456"})

    def test_find_one_exposes_string_id(self, mongodb_service, collection):
        oid = ObjectId()
        collection.find_one.return_value = {"_id": oid, "trackingId": "123456"}

        document = mongodb_service.find_one("issues", {"trackingId": "123456"})

        assert document == {"id": str(oid), "trackingId": "123456"}

    def test_find_by_invalid_id_finds_nothing(self, mongodb_service, collection):
        assert mongodb_service.find_by_id("staff", "not-an-id") is None
        collection.find_one.assert_not_called()

    def test_find_many_sorts(self, mongodb_service, collection):
        cursor = MagicMock()
        cursor.sort.return_value = [{"_id": ObjectId(), "name": "Ana"}]
        collection.find.return_value = cursor

        documents = mongodb_service.find_many("staff", sort_by="name", sort_order=1)

        collection.find.assert_called_once_with({})
        cursor.sort.assert_called_once_with("name", 1)
        assert documents[0]["name"] == "Ana"
        assert "_id" not in documents[0]

    def test_update_one_is_atomic(self, mongodb_service, collection):
        oid = ObjectId()
        collection.find_one_and_update.return_value = {"_id": oid, "status": "Resolved"}

        document = mongodb_service.update_one(
            "issues", {"trackingId": "123456"}, {"status": "Resolved"}, unset=["assignedStaffId"]
        )

        filters, operation = collection.find_one_and_update.call_args[0]
        assert filters == {"trackingId": "123456"}
        assert operation["$set"]["status"] == "Resolved"
        assert "updatedAt" in operation["$set"]
        assert operation["$unset"] == {"assignedStaffId": ""}
        assert collection.find_one_and_update.call_args[1]["return_document"] == ReturnDocument.AFTER
        assert document["id"] == str(oid)

    def test_update_one_without_match(self, mongodb_service, collection):
        collection.find_one_and_update.return_value = None

        assert mongodb_service.update_one("issues", {"trackingId": "000000"}, {"status": "Resolved"}) is None

    def test_update_many_returns_modified_count(self, mongodb_service, collection):
        collection.update_many.return_value = Mock(modified_count=3)

        count = mongodb_service.update_many("issues", {"assignedStaffId": "abc"}, unset=["assignedStaffId"])

        assert count == 3

    def test_delete_one(self, mongodb_service, collection):
        collection.delete_one.return_value = Mock(deleted_count=1)

        assert mongodb_service.delete_one("staff", str(ObjectId())) is True
        assert mongodb_service.delete_one("staff", "bad-id") is False

    def test_aggregate_counts_skips_missing_values(self, mongodb_service, collection):
        collection.aggregate.return_value = iter([
            {"_id": "Pothole", "count": 4},
            {"_id": None, "count": 1},
            {"_id": "Other", "count": 2}
        ])

        counts = mongodb_service.aggregate_counts("issues", "category")

        assert counts == {"Pothole": 4, "Other": 2}
        pipeline = collection.aggregate.call_args[0][0]
        assert pipeline == [{"$group": {"_id": "$category", "count": {"$sum": 1}}}]

    def test_aggregate_failure_is_unavailable(self, mongodb_service, collection):
        collection.aggregate.side_effect = AutoReconnect("primary stepped down")

        with pytest.raises(ServiceUnavailableException):
            mongodb_service.aggregate_counts("issues", "status")

    def test_create_indexes(self, mongodb_service, collection):
        mongodb_service.create_indexes()

        calls = collection.create_index.call_args_list
        assert (("trackingId",), {"unique": True}) in [(c.args, c.kwargs) for c in calls]
        assert (("email",), {"unique": True}) in [(c.args, c.kwargs) for c in calls]
        assert any(c.args[0] == [("location", GEOSPHERE)] for c in calls)


class TestMongoDBConnection:
    """Test client creation and health reporting."""

    @patch('civic_api.services.mongodb.MongoClient')
    def test_connection_failure_is_unavailable(self, mock_client):
        mock_client.return_value.admin.command.side_effect = ServerSelectionTimeoutError("no servers")
        service = MongoDBService("mongodb://mongo.test:27017", "civic_issues_test")

        with pytest.raises(ServiceUnavailableException):
            service.client

    @patch('civic_api.services.mongodb.MongoClient')
    def test_health_check_healthy(self, mock_client):
        mock_client.return_value.admin.command.return_value = {"ok": 1}
        mock_client.return_value.server_info.return_value = {"version": "7.0.5"}
        service = MongoDBService("mongodb://mongo.test:27017", "civic_issues_test")

        health = service.health_check()

        assert health["status"] == "healthy"
        assert health["ping"] is True
        assert health["version"] == "7.0.5"
        assert health["database"] == "civic_issues_test"

    @patch('civic_api.services.mongodb.MongoClient')
    def test_health_check_unhealthy(self, mock_client):
        mock_client.return_value.admin.command.side_effect = ServerSelectionTimeoutError("no servers")
        service = MongoDBService("mongodb://mongo.test:27017", "civic_issues_test")

        health = service.health_check()

        assert health["status"] == "unhealthy"
        assert "error" in health
