from __future__ import annotations

import sys
from contextlib import asynccontextmanager
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, AsyncIterator, Dict, List, Optional, Sequence

import httpx
import pytest
from pymongo.errors import PyMongoError

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from fleetsync.domain.entities.twin import CONNECTED, Twin, TwinPage  # noqa: E402
from fleetsync.infrastructure.database.mongo_database import (  # noqa: E402
    WriteKind,
    WriteOperation,
)


def _matches(document: Dict[str, Any], query: Dict[str, Any]) -> bool:
    return all(document.get(key) == value for key, value in query.items())


class StubResponse:
    def __init__(
        self,
        status_code: int = 200,
        json_data: Any = None,
        headers: Optional[Dict[str, str]] = None,
    ):
        self.status_code = status_code
        self._json = json_data
        self.headers = headers or {}
        self.text = "error" if status_code >= 400 else ""

    def json(self) -> Any:
        return self._json

    def raise_for_status(self) -> None:
        if self.status_code >= 400:
            request = httpx.Request("POST", "https://stub")
            response = httpx.Response(self.status_code, request=request, text="error")
            raise httpx.HTTPStatusError("error", request=request, response=response)


class StubAsyncClient:
    """Replays queued responses and records every POST."""

    def __init__(self, responses: List[Any]):
        self._responses = list(responses)
        self.requests: List[Dict[str, Any]] = []

    async def __aenter__(self) -> "StubAsyncClient":
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        return None

    async def post(self, url: str, headers: dict, json: dict):
        self.requests.append({"url": url, "headers": headers, "json": json})
        response = self._responses.pop(0)
        if isinstance(response, Exception):
            raise response
        return response

    async def get(self, url: str):
        self.requests.append({"url": url})
        return self._responses.pop(0)


class FakeMongoDatabase:
    """In-memory stand-in for ``MongoDatabase``."""

    def __init__(self) -> None:
        self.collections: Dict[str, List[Dict[str, Any]]] = {}
        self.applied: List[List[WriteOperation]] = []
        self.fail_reads = False
        self.fail_writes = False
        # Writes before the first one on this collection are kept, as a
        # failed bulk_write outside a transaction would leave them.
        self.fail_writes_on: Optional[str] = None
        self.transactions: List[bool] = []
        self.closed = False
        self.indexes_created = False

    def seed(self, collection_name: str, *documents: Dict[str, Any]) -> None:
        self.collections.setdefault(collection_name, []).extend(
            dict(document) for document in documents
        )

    def documents(self, collection_name: str) -> List[Dict[str, Any]]:
        return self.collections.get(collection_name, [])

    async def find_one(
        self, collection_name: str, query: Dict[str, Any]
    ) -> Optional[Dict[str, Any]]:
        if self.fail_reads:
            raise PyMongoError("read failed")
        for document in self.documents(collection_name):
            if _matches(document, query):
                return dict(document)
        return None

    async def find_many(
        self,
        collection_name: str,
        query: Dict[str, Any],
        sort_by: Optional[str] = None,
        sort_direction: int = 1,
        limit: int = 0,
    ) -> List[Dict[str, Any]]:
        if self.fail_reads:
            raise PyMongoError("read failed")
        results = [
            dict(document)
            for document in self.documents(collection_name)
            if _matches(document, query)
        ]
        if sort_by:
            results.sort(key=lambda d: d.get(sort_by), reverse=sort_direction < 0)
        if limit:
            results = results[:limit]
        return results

    async def apply_writes(
        self, writes: Sequence[WriteOperation], use_transaction: bool = False
    ) -> None:
        if self.fail_writes:
            raise PyMongoError("write failed")
        self.applied.append(list(writes))
        self.transactions.append(use_transaction)
        for write in writes:
            if write.collection == self.fail_writes_on:
                raise PyMongoError(f"bulk write on {write.collection} failed")
            documents = self.collections.setdefault(write.collection, [])
            if write.kind is WriteKind.INSERT:
                documents.append(dict(write.document))
            elif write.kind is WriteKind.REPLACE:
                for index, document in enumerate(documents):
                    if _matches(document, write.query):
                        documents[index] = dict(write.document)
                        break
            elif write.kind is WriteKind.DELETE:
                for index, document in enumerate(documents):
                    if _matches(document, write.query):
                        del documents[index]
                        break
            else:
                documents[:] = [d for d in documents if not _matches(d, write.query)]

    async def create_indexes(self) -> None:
        self.indexes_created = True

    def close(self) -> None:
        self.closed = True


class FakeTwinRegistryGateway:
    """Serves preset pages; ``None`` is the token of the first page."""

    def __init__(
        self,
        pages: Optional[List[TwinPage]] = None,
        modules: Optional[Dict[tuple, Twin]] = None,
        failing_devices: Sequence[str] = (),
    ) -> None:
        self.pages = pages or []
        self.modules = modules or {}
        self.failing_devices = set(failing_devices)
        self.requested_tokens: List[Optional[str]] = []
        self.excluded_types: List[Optional[str]] = []

    def _page(self, token: Optional[str]) -> TwinPage:
        self.requested_tokens.append(token)
        index = 0 if token is None else int(token)
        return self.pages[index]

    async def get_devices_page(
        self, continuation_token=None, exclude_device_type=None, page_size=100
    ) -> TwinPage:
        self.excluded_types.append(exclude_device_type)
        return self._page(continuation_token)

    async def get_edge_devices_page(
        self, continuation_token=None, page_size=100
    ) -> TwinPage:
        return self._page(continuation_token)

    async def get_device_twin_with_module(self, device_id: str) -> Optional[Twin]:
        if device_id in self.failing_devices:
            raise RuntimeError(f"module twin of {device_id} unavailable")
        return self.modules.get((device_id, "$edgeAgent"))

    async def get_device_twin_with_edge_hub_module(
        self, device_id: str
    ) -> Optional[Twin]:
        return self.modules.get((device_id, "$edgeHub"))


class FakeCommandGateway:
    def __init__(self, failing_devices: Sequence[str] = ()) -> None:
        self.calls: List[tuple] = []
        self.failing_devices = set(failing_devices)

    async def execute_command(self, device_id: str, command_id: str) -> None:
        if device_id in self.failing_devices:
            raise RuntimeError(f"command to {device_id} failed")
        self.calls.append((device_id, command_id))


class FakeJobLock:
    def __init__(self, available: bool = True) -> None:
        self.available = available
        self.held: List[str] = []

    @asynccontextmanager
    async def hold(self, job_name: str) -> AsyncIterator[bool]:
        self.held.append(job_name)
        yield self.available


def make_twin(
    device_id: str,
    version: int = 1,
    model_id: Optional[str] = "m1",
    **kwargs: Any,
) -> Twin:
    tags = dict(kwargs.pop("tags", {}))
    if model_id is not None:
        tags.setdefault("modelId", model_id)
    kwargs.setdefault("status", "enabled")
    kwargs.setdefault("connection_state", CONNECTED)
    return Twin(device_id=device_id, version=version, tags=tags, **kwargs)


def single_page(*twins: Twin) -> List[TwinPage]:
    return [TwinPage(items=list(twins), total_items=len(twins), next_page=None)]


@pytest.fixture()
def fake_mongo_database() -> FakeMongoDatabase:
    return FakeMongoDatabase()


@pytest.fixture()
def job_lock() -> FakeJobLock:
    return FakeJobLock()


@pytest.fixture()
def dummy_now() -> datetime:
    return datetime(2024, 1, 1, tzinfo=timezone.utc)
