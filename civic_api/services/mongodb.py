# -*- coding: utf-8 -*-
# SPDX-License-Identifier: Apache-2.0

"""
MongoDB service layer with connection pooling and store-error translation.
"""

import os
import logging
from datetime import datetime
from typing import List, Dict, Optional, Any
from pymongo import MongoClient, ASCENDING, DESCENDING, GEOSPHERE, ReturnDocument
from pymongo.collection import Collection
from pymongo.database import Database
from pymongo.errors import (
    ConnectionFailure,
    ServerSelectionTimeoutError,
    DuplicateKeyError,
    PyMongoError
)
from bson import ObjectId
from bson.errors import InvalidId
from opentelemetry import trace

from ..middleware.error_handler import DuplicateKeyException, ServiceUnavailableException

logger = logging.getLogger(__name__)
tracer = trace.get_tracer(__name__)

ISSUES_COLLECTION = "issues"
STAFF_COLLECTION = "staff"


class MongoDBService:
    """MongoDB service for issue and staff documents."""

    def __init__(self, connection_string: str = None, database_name: str = None):
        """Initialize MongoDB service with connection pooling."""
        self.connection_string = connection_string or os.getenv(
            'MONGODB_URI',
            'mongodb://localhost:27017/civic_issues_dev'
        )
        self.database_name = database_name or os.getenv('MONGODB_DATABASE', 'civic_issues_dev')
        self._client: Optional[MongoClient] = None
        self._database: Optional[Database] = None

        # Connection pool settings
        self.max_pool_size = int(os.getenv('MONGODB_MAX_POOL_SIZE', '10'))
        self.min_pool_size = int(os.getenv('MONGODB_MIN_POOL_SIZE', '1'))
        self.max_idle_time_ms = int(os.getenv('MONGODB_MAX_IDLE_TIME_MS', '30000'))
        self.server_selection_timeout_ms = int(os.getenv('MONGODB_SERVER_SELECTION_TIMEOUT_MS', '5000'))

        logger.info(f"MongoDB service initialized for database: {self.database_name}")

    @property
    def client(self) -> MongoClient:
        """Get MongoDB client with connection pooling."""
        if self._client is None:
            try:
                client = MongoClient(
                    self.connection_string,
                    maxPoolSize=self.max_pool_size,
                    minPoolSize=self.min_pool_size,
                    maxIdleTimeMS=self.max_idle_time_ms,
                    serverSelectionTimeoutMS=self.server_selection_timeout_ms,
                    retryWrites=True,
                    retryReads=True
                )
                # Test connection
                client.admin.command('ping')
                self._client = client
                logger.info("MongoDB connection established successfully")
            except (ConnectionFailure, ServerSelectionTimeoutError) as e:
                logger.error(f"Failed to connect to MongoDB: {e}")
                raise ServiceUnavailableException("Issue store is unavailable") from e

        return self._client

    @property
    def database(self) -> Database:
        """Get MongoDB database."""
        if self._database is None:
            self._database = self.client[self.database_name]
        return self._database

    def get_collection(self, collection_name: str) -> Collection:
        """Get MongoDB collection."""
        return self.database[collection_name]

    def close_connection(self) -> None:
        """Close MongoDB connection."""
        if self._client:
            self._client.close()
            self._client = None
            self._database = None
            logger.info("MongoDB connection closed")

    def health_check(self) -> Dict[str, Any]:
        """Check MongoDB connection health."""
        try:
            result = self.client.admin.command('ping')
            server_info = self.client.server_info()

            return {
                'status': 'healthy',
                'ping': result.get('ok') == 1,
                'version': server_info.get('version'),
                'database': self.database_name,
                'connection_pool_size': self.max_pool_size
            }
        except (ServiceUnavailableException, PyMongoError) as e:
            logger.error(f"MongoDB health check failed: {e}")
            return {
                'status': 'unhealthy',
                'error': str(e),
                'database': self.database_name
            }

    def _validate_object_id(self, doc_id: str) -> ObjectId:
        """Validate and convert string ID to ObjectId."""
        try:
            return ObjectId(doc_id)
        except (InvalidId, TypeError):
            raise ValueError(f"Invalid ObjectId format: {doc_id}")

    def _unavailable(self, operation: str, collection: str, error: Exception) -> ServiceUnavailableException:
        """Log a store failure and wrap it for the caller."""
        logger.error(
            f"MongoDB {operation} failed in {collection}: {error}",
            extra={"extra_fields": {"operation": operation, "collection": collection}}
        )
        return ServiceUnavailableException(f"Issue store is unavailable ({operation} on {collection})")

    @staticmethod
    def _public(document: Optional[Dict]) -> Optional[Dict]:
        """Expose ``_id`` as a string ``id``."""
        if document and "_id" in document:
            document["id"] = str(document.pop("_id"))
        return document

    # CRUD Operations

    def create(self, collection: str, document: Dict) -> str:
        """
        Insert a document and return its ID.

        Raises:
            DuplicateKeyException: A unique index rejected the document; ``key``
                names the violated field
            ServiceUnavailableException: The store could not be reached
        """
        with tracer.start_as_current_span("mongodb.create") as span:
            span.set_attribute("db.collection", collection)

            now = datetime.utcnow()
            document.setdefault("createdAt", now)
            document.setdefault("updatedAt", now)
            if "_id" not in document:
                document["_id"] = ObjectId()

            try:
                result = self.get_collection(collection).insert_one(document)
            except DuplicateKeyError as e:
                key_pattern = (e.details or {}).get("keyPattern") or {}
                key = next(iter(key_pattern), None)
                logger.warning(
                    f"Duplicate key error in {collection}",
                    extra={"extra_fields": {"collection": collection, "key": key}}
                )
                raise DuplicateKeyException(f"Document with this {key or 'identifier'} already exists", key=key)
            except PyMongoError as e:
                raise self._unavailable("create", collection, e) from e

            logger.info(f"Created document in {collection}: {result.inserted_id}")
            return str(result.inserted_id)

    def find_one(self, collection: str, filters: Dict) -> Optional[Dict]:
        """Find a single document matching the filters."""
        try:
            document = self.get_collection(collection).find_one(filters)
        except PyMongoError as e:
            raise self._unavailable("find_one", collection, e) from e
        return self._public(document)

    def find_by_id(self, collection: str, doc_id: str) -> Optional[Dict]:
        """Find a document by its ID; malformed IDs find nothing."""
        try:
            object_id = self._validate_object_id(doc_id)
        except ValueError as e:
            logger.debug(f"Invalid document ID {doc_id}: {e}")
            return None
        return self.find_one(collection, {"_id": object_id})

    def find_many(self, collection: str, filters: Dict = None, sort_by: str = None,
                  sort_order: int = DESCENDING) -> List[Dict]:
        """Find documents matching the filters, optionally sorted."""
        with tracer.start_as_current_span("mongodb.find_many") as span:
            span.set_attribute("db.collection", collection)
            try:
                cursor = self.get_collection(collection).find(filters or {})
                if sort_by:
                    cursor = cursor.sort(sort_by, sort_order)
                documents = [self._public(doc) for doc in cursor]
            except PyMongoError as e:
                raise self._unavailable("find_many", collection, e) from e

            span.set_attribute("db.result_count", len(documents))
            logger.debug(f"Found {len(documents)} documents in {collection}")
            return documents

    def update_one(self, collection: str, filters: Dict, updates: Dict,
                   unset: List[str] = None) -> Optional[Dict]:
        """
        Atomically update one document.

        Returns:
            The updated document, or None when nothing matched the filters
        """
        operation: Dict[str, Any] = {"$set": dict(updates)}
        operation["$set"].setdefault("updatedAt", datetime.utcnow())
        if unset:
            operation["$unset"] = {field: "" for field in unset}

        try:
            document = self.get_collection(collection).find_one_and_update(
                filters, operation, return_document=ReturnDocument.AFTER
            )
        except PyMongoError as e:
            raise self._unavailable("update_one", collection, e) from e

        if document is None:
            logger.debug(f"No document matched update in {collection}")
        return self._public(document)

    def update_many(self, collection: str, filters: Dict, updates: Dict = None,
                    unset: List[str] = None) -> int:
        """Update every matching document and return the modified count."""
        operation: Dict[str, Any] = {"$set": dict(updates or {})}
        operation["$set"].setdefault("updatedAt", datetime.utcnow())
        if unset:
            operation["$unset"] = {field: "" for field in unset}

        try:
            result = self.get_collection(collection).update_many(filters, operation)
        except PyMongoError as e:
            raise self._unavailable("update_many", collection, e) from e

        logger.info(f"Updated {result.modified_count} documents in {collection}")
        return result.modified_count

    def delete_one(self, collection: str, doc_id: str) -> bool:
        """Delete a document by ID."""
        try:
            object_id = self._validate_object_id(doc_id)
        except ValueError as e:
            logger.debug(f"Invalid document ID {doc_id}: {e}")
            return False

        try:
            result = self.get_collection(collection).delete_one({"_id": object_id})
        except PyMongoError as e:
            raise self._unavailable("delete_one", collection, e) from e

        if result.deleted_count > 0:
            logger.warning(f"Deleted document {doc_id} in {collection}")
            return True
        logger.warning(f"No document deleted for {doc_id} in {collection}")
        return False

    def aggregate_counts(self, collection: str, field: str) -> Dict[str, int]:
        """Count documents per value of ``field`` with a $group stage."""
        pipeline = [{"$group": {"_id": f"${field}", "count": {"$sum": 1}}}]
        try:
            results = list(self.get_collection(collection).aggregate(pipeline))
        except PyMongoError as e:
            raise self._unavailable("aggregate", collection, e) from e

        logger.debug(f"Aggregation on {collection}.{field} returned {len(results)} groups")
        return {row["_id"]: row["count"] for row in results if row.get("_id") is not None}

    # Index Management

    def create_indexes(self) -> None:
        """Create unique, geo and query indexes for both collections."""
        try:
            logger.info("Creating MongoDB indexes...")

            issues = self.get_collection(ISSUES_COLLECTION)
            issues.create_index("trackingId", unique=True)
            issues.create_index([("location", GEOSPHERE)])
            issues.create_index([("status", ASCENDING), ("createdAt", DESCENDING)])
            issues.create_index("assignedStaffId")

            staff = self.get_collection(STAFF_COLLECTION)
            staff.create_index("email", unique=True)
            staff.create_index("department")

            logger.info("MongoDB indexes created successfully")

        except PyMongoError as e:
            logger.error(f"Failed to create MongoDB indexes: {e}")
            raise


# Singleton instance for application use
_mongodb_service: Optional[MongoDBService] = None


def get_mongodb_service() -> MongoDBService:
    """Get singleton MongoDB service instance."""
    global _mongodb_service
    if _mongodb_service is None:
        _mongodb_service = MongoDBService()
    return _mongodb_service


def close_mongodb_connection() -> None:
    """Close MongoDB connection (for cleanup)."""
    global _mongodb_service
    if _mongodb_service:
        _mongodb_service.close_connection()
        _mongodb_service = None
