"""
Database package - Infrastructure Layer

MongoDB client, collection names and buffered write operations.
"""

from fleetsync.infrastructure.database.mongo_database import (
    MongoDatabase,
    WriteKind,
    WriteOperation,
)

__all__ = ["MongoDatabase", "WriteKind", "WriteOperation"]
