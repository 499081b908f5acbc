"""
MongoDB Database - Infrastructure Layer

This module provides the MongoDB client used by the repositories. Reads go
straight to the collections; writes are expressed as ``WriteOperation``
records and applied in bulk by ``apply_writes``.
"""

from dataclasses import dataclass, field
from enum import Enum
from itertools import groupby
from typing import Any, Dict, List, Optional, Sequence

import pymongo.errors
from pymongo import DeleteMany, DeleteOne, InsertOne, MongoClient, ReplaceOne
from pymongo.client_session import ClientSession
from pymongo.database import Database

from fleetsync.shared import get_logger

logger = get_logger(__name__)

DEVICES = "devices"
LORAWAN_DEVICES = "lorawan_devices"
EDGE_DEVICES = "edge_devices"
DEVICE_TAG_VALUES = "device_tag_values"
DEVICE_MODELS = "device_models"
EDGE_DEVICE_MODELS = "edge_device_models"
DEVICE_MODEL_COMMANDS = "device_model_commands"
LAYERS = "layers"
PLANNINGS = "plannings"
SCHEDULES = "schedules"

# Collections keyed by a unique "id" field.
ID_COLLECTIONS = (
    DEVICES,
    LORAWAN_DEVICES,
    EDGE_DEVICES,
    DEVICE_TAG_VALUES,
    DEVICE_MODELS,
    EDGE_DEVICE_MODELS,
    DEVICE_MODEL_COMMANDS,
    LAYERS,
    PLANNINGS,
    SCHEDULES,
)


class WriteKind(str, Enum):
    INSERT = "insert"
    REPLACE = "replace"
    DELETE = "delete"
    DELETE_MANY = "delete_many"


@dataclass(slots=True)
class WriteOperation:
    """A write registered by a repository, applied on commit."""

    collection: str
    kind: WriteKind
    query: Dict[str, Any] = field(default_factory=dict)
    document: Optional[Dict[str, Any]] = None

    def to_request(self) -> Any:
        if self.kind is WriteKind.INSERT:
            return InsertOne(self.document)
        if self.kind is WriteKind.REPLACE:
            return ReplaceOne(self.query, self.document)
        if self.kind is WriteKind.DELETE:
            return DeleteOne(self.query)
        return DeleteMany(self.query)


class MongoDatabase:
    """MongoDB database client."""

    def __init__(self, mongo_uri: str, db_name: str):
        """
        Initialize the MongoDB database client.

        Args:
            mongo_uri: MongoDB connection URI
            db_name: Name of the database to use
        """
        self.client: MongoClient = MongoClient(mongo_uri)
        self.db: Database = self.client[db_name]

    async def find_one(
        self, collection_name: str, query: Dict[str, Any]
    ) -> Optional[Dict[str, Any]]:
        return self.db[collection_name].find_one(query, {"_id": 0})

    async def find_many(
        self,
        collection_name: str,
        query: Dict[str, Any],
        sort_by: Optional[str] = None,
        sort_direction: int = 1,
        limit: int = 0,
    ) -> List[Dict[str, Any]]:
        """
        Find documents in a collection.

        Args:
            collection_name: Name of the collection
            query: Query to match documents
            sort_by: Field to sort by
            sort_direction: 1 for ascending, -1 for descending
            limit: Maximum number of documents, 0 for no limit

        Returns:
            List of documents, without the Mongo ``_id``
        """
        cursor = self.db[collection_name].find(query, {"_id": 0})
        if sort_by:
            cursor = cursor.sort(sort_by, sort_direction)
        if limit:
            cursor = cursor.limit(limit)
        return list(cursor)

    async def apply_writes(
        self, writes: Sequence[WriteOperation], use_transaction: bool = False
    ) -> None:
        """
        Apply buffered writes in registration order.

        Consecutive writes on the same collection are sent as one ordered
        ``bulk_write``. With ``use_transaction`` every batch runs in a single
        transaction, which requires a replica set.

        Raises:
            pymongo.errors.PyMongoError: If a batch fails
        """
        if not writes:
            return
        if not use_transaction:
            self._bulk_write(writes, session=None)
            return
        with self.client.start_session() as session:
            session.with_transaction(lambda s: self._bulk_write(writes, session=s))

    def _bulk_write(
        self, writes: Sequence[WriteOperation], session: Optional[ClientSession]
    ) -> None:
        for collection_name, batch in groupby(writes, key=lambda w: w.collection):
            requests = [write.to_request() for write in batch]
            result = self.db[collection_name].bulk_write(
                requests, ordered=True, session=session
            )
            logger.debug(
                "mongo.bulk_write",
                collection=collection_name,
                inserted=result.inserted_count,
                modified=result.modified_count,
                deleted=result.deleted_count,
            )

    def close(self) -> None:
        """Close the database connection."""
        self.client.close()

    async def create_indexes(self) -> None:
        """Create the indexes used by the repositories."""
        try:
            for collection_name in ID_COLLECTIONS:
                self.db[collection_name].create_index(
                    "id", name="id_idx", unique=True
                )
            self.db[DEVICE_TAG_VALUES].create_index(
                "device_id", name="device_id_idx"
            )
            self.db[SCHEDULES].create_index("planning_id", name="planning_id_idx")
            for collection_name in (DEVICES, LORAWAN_DEVICES, EDGE_DEVICES):
                self.db[collection_name].create_index(
                    "layer_id", name="layer_id_idx"
                )
        except pymongo.errors.OperationFailure as e:
            logger.warning("mongo.indexes.failed", error=str(e))
