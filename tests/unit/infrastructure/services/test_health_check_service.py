from __future__ import annotations

from types import SimpleNamespace
from typing import cast

import pytest

from fleetsync.domain.entities.health import ServiceStatus
from fleetsync.infrastructure.database.mongo_database import MongoDatabase
from fleetsync.infrastructure.gateways.iot_hub_gateway import IoTHubGateway
from fleetsync.infrastructure.services.health_check_service import HealthCheckService
from tests.conftest import StubAsyncClient, StubResponse


class _StubMongoDatabase:
    def __init__(self, fail: bool = False) -> None:
        def command(name: str) -> None:
            if fail:
                raise ConnectionError("mongo unreachable")

        self.client = SimpleNamespace(admin=SimpleNamespace(command=command))
        self.db = SimpleNamespace(name="fleetsync")


class _StubIoTHubGateway:
    hostname = "hub.azure-devices.net"

    async def ping(self) -> int:
        return 4


def _service(**overrides) -> HealthCheckService:
    values = dict(
        mongo_database=cast(MongoDatabase, _StubMongoDatabase()),
        broker_url="",
        redis_url="",
        iot_hub_gateway=cast(IoTHubGateway, _StubIoTHubGateway()),
        lorawan_management_url="https://lora.example.net",
    )
    values.update(overrides)
    return HealthCheckService(**values)


def _by_name(health) -> dict:
    return {dependency.name: dependency for dependency in health.dependencies}


@pytest.mark.asyncio
async def test_unconfigured_dependencies_are_unknown(monkeypatch) -> None:
    monkeypatch.setattr(
        "httpx.AsyncClient", lambda timeout: StubAsyncClient([StubResponse(200)])
    )

    health = await _service().evaluate()

    statuses = _by_name(health)
    assert statuses["mongo"].status is ServiceStatus.UP
    assert statuses["mongo"].details == {"database": "fleetsync"}
    assert statuses["iot_hub"].details["devices"] == 4
    assert statuses["lorawan"].status is ServiceStatus.UP
    assert statuses["rabbitmq"].status is ServiceStatus.UNKNOWN
    assert statuses["redis"].status is ServiceStatus.UNKNOWN
    assert health.status is ServiceStatus.UNKNOWN


@pytest.mark.asyncio
async def test_failed_dependency_check_marks_system_down(monkeypatch) -> None:
    monkeypatch.setattr(
        "httpx.AsyncClient", lambda timeout: StubAsyncClient([StubResponse(200)])
    )

    health = await _service(
        mongo_database=cast(MongoDatabase, _StubMongoDatabase(fail=True))
    ).evaluate()

    assert _by_name(health)["mongo"].status is ServiceStatus.DOWN
    assert "mongo unreachable" in _by_name(health)["mongo"].message
    assert health.status is ServiceStatus.DOWN


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "status_code, expected",
    [
        (401, ServiceStatus.UP),
        (404, ServiceStatus.DEGRADED),
        (503, ServiceStatus.DOWN),
    ],
)
async def test_lorawan_status_mapping(monkeypatch, status_code, expected) -> None:
    monkeypatch.setattr(
        "httpx.AsyncClient",
        lambda timeout: StubAsyncClient([StubResponse(status_code)]),
    )

    health = await _service().evaluate()

    assert _by_name(health)["lorawan"].status is expected


@pytest.mark.asyncio
async def test_redis_check_closes_client(monkeypatch) -> None:
    closed = []

    class _Redis:
        async def ping(self) -> bool:
            return True

        async def aclose(self) -> None:
            closed.append(True)

    monkeypatch.setattr(
        "fleetsync.infrastructure.services.health_check_service.aioredis.from_url",
        lambda url, **kwargs: _Redis(),
    )
    monkeypatch.setattr(
        "httpx.AsyncClient", lambda timeout: StubAsyncClient([StubResponse(200)])
    )

    health = await _service(redis_url="redis://redis:6379/0").evaluate()

    assert _by_name(health)["redis"].status is ServiceStatus.UP
    assert closed == [True]
