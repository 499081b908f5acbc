from __future__ import annotations

from types import SimpleNamespace
from typing import Any, Dict, List

import pytest
from pymongo import DeleteMany, DeleteOne, InsertOne, ReplaceOne

from fleetsync.infrastructure.database.mongo_database import (
    DEVICE_TAG_VALUES,
    DEVICES,
    ID_COLLECTIONS,
    MongoDatabase,
    WriteKind,
    WriteOperation,
)


class _StubCursor:
    def __init__(self, documents: List[Dict[str, Any]]):
        self.documents = documents
        self.sorted_by = None
        self.limited_to = None

    def sort(self, key: str, direction: int) -> "_StubCursor":
        self.sorted_by = (key, direction)
        self.documents = sorted(
            self.documents, key=lambda d: d[key], reverse=direction < 0
        )
        return self

    def limit(self, amount: int) -> "_StubCursor":
        self.limited_to = amount
        self.documents = self.documents[:amount]
        return self

    def __iter__(self):
        return iter(self.documents)


class _StubCollection:
    def __init__(self) -> None:
        self.documents: List[Dict[str, Any]] = []
        self.bulk_calls: List[tuple] = []
        self.indexes: List[tuple] = []

    def find_one(self, query, projection):
        return next((d for d in self.documents if d.get("id") == query["id"]), None)

    def find(self, query, projection):
        return _StubCursor(list(self.documents))

    def bulk_write(self, requests, ordered, session):
        self.bulk_calls.append((requests, ordered, session))
        return SimpleNamespace(inserted_count=0, modified_count=0, deleted_count=0)

    def create_index(self, keys, name=None, **kwargs):
        self.indexes.append((keys, name, kwargs))


class _StubSession:
    def __init__(self) -> None:
        self.transactions = 0

    def __enter__(self) -> "_StubSession":
        return self

    def __exit__(self, *exc) -> None:
        return None

    def with_transaction(self, callback):
        self.transactions += 1
        return callback(self)


class _StubDatabase:
    name = "fleetsync"

    def __init__(self) -> None:
        self.collections: Dict[str, _StubCollection] = {}

    def __getitem__(self, name: str) -> _StubCollection:
        return self.collections.setdefault(name, _StubCollection())


class _StubMongoClient:
    def __init__(self, uri: str) -> None:
        self.uri = uri
        self.database = _StubDatabase()
        self.session = _StubSession()
        self.closed = False

    def __getitem__(self, name: str) -> _StubDatabase:
        return self.database

    def start_session(self) -> _StubSession:
        return self.session

    def close(self) -> None:
        self.closed = True


@pytest.fixture(autouse=True)
def patch_mongo_client(monkeypatch) -> None:
    monkeypatch.setattr(
        "fleetsync.infrastructure.database.mongo_database.MongoClient",
        _StubMongoClient,
    )


@pytest.fixture()
def database() -> MongoDatabase:
    return MongoDatabase("mongodb://localhost:27017", "fleetsync")


def test_write_operations_map_to_bulk_requests() -> None:
    assert isinstance(
        WriteOperation(DEVICES, WriteKind.INSERT, document={"id": "a"}).to_request(),
        InsertOne,
    )
    assert isinstance(
        WriteOperation(
            DEVICES, WriteKind.REPLACE, {"id": "a"}, {"id": "a"}
        ).to_request(),
        ReplaceOne,
    )
    assert isinstance(
        WriteOperation(DEVICES, WriteKind.DELETE, {"id": "a"}).to_request(), DeleteOne
    )
    assert isinstance(
        WriteOperation(
            DEVICE_TAG_VALUES, WriteKind.DELETE_MANY, {"device_id": "a"}
        ).to_request(),
        DeleteMany,
    )


@pytest.mark.asyncio
async def test_apply_writes_batches_consecutive_collections(database) -> None:
    writes = [
        WriteOperation(DEVICE_TAG_VALUES, WriteKind.DELETE_MANY, {"device_id": "a"}),
        WriteOperation(DEVICE_TAG_VALUES, WriteKind.INSERT, document={"id": "t"}),
        WriteOperation(DEVICES, WriteKind.REPLACE, {"id": "a"}, {"id": "a"}),
        WriteOperation(DEVICE_TAG_VALUES, WriteKind.INSERT, document={"id": "u"}),
    ]

    await database.apply_writes(writes)

    tag_calls = database.db[DEVICE_TAG_VALUES].bulk_calls
    device_calls = database.db[DEVICES].bulk_calls
    assert [len(requests) for requests, _, _ in tag_calls] == [2, 1]
    assert len(device_calls) == 1
    assert all(ordered for _, ordered, _ in tag_calls + device_calls)
    assert database.client.session.transactions == 0


@pytest.mark.asyncio
async def test_apply_writes_in_transaction(database) -> None:
    await database.apply_writes(
        [WriteOperation(DEVICES, WriteKind.DELETE, {"id": "a"})],
        use_transaction=True,
    )

    [(_, _, session)] = database.db[DEVICES].bulk_calls
    assert session is database.client.session
    assert database.client.session.transactions == 1


@pytest.mark.asyncio
async def test_apply_writes_without_writes_is_a_noop(database) -> None:
    await database.apply_writes([])

    assert database.db.collections == {}


@pytest.mark.asyncio
async def test_find_many_sorts_and_limits(database) -> None:
    database.db[DEVICES].documents = [
        {"id": "b", "name": "b"},
        {"id": "a", "name": "a"},
    ]

    result = await database.find_many(DEVICES, {}, sort_by="name", limit=1)

    assert result == [{"id": "a", "name": "a"}]


@pytest.mark.asyncio
async def test_create_indexes_covers_id_collections(database) -> None:
    await database.create_indexes()

    for collection_name in ID_COLLECTIONS:
        assert ("id", "id_idx", {"unique": True}) in database.db[
            collection_name
        ].indexes
    assert database.db[DEVICE_TAG_VALUES].indexes[-1][0] == "device_id"


def test_close_closes_client(database) -> None:
    database.close()

    assert database.client.closed is True
