"""Infrastructure implementation for system health checks."""

from __future__ import annotations

import asyncio
from time import perf_counter
from typing import Any, Awaitable, Callable, Dict, Optional

import httpx
import pika
import redis.asyncio as aioredis

from fleetsync.domain.entities.health import (
    DependencyStatus,
    ServiceStatus,
    SystemHealth,
)
from fleetsync.domain.ports.health_check import IHealthCheckService
from fleetsync.infrastructure.database.mongo_database import MongoDatabase
from fleetsync.infrastructure.gateways.iot_hub_gateway import IoTHubGateway

Probe = Callable[[], Awaitable[Optional[Dict[str, Any]]]]


class HealthCheckService(IHealthCheckService):
    """Collect health information for external dependencies."""

    def __init__(
        self,
        mongo_database: Optional[MongoDatabase],
        broker_url: str,
        redis_url: str,
        iot_hub_gateway: Optional[IoTHubGateway],
        lorawan_management_url: str,
        *,
        http_timeout: float = 5.0,
        socket_timeout: float = 5.0,
    ) -> None:
        self._mongo_database = mongo_database
        self._broker_url = broker_url
        self._redis_url = redis_url
        self._iot_hub_gateway = iot_hub_gateway
        self._lorawan_management_url = lorawan_management_url
        self._http_timeout = http_timeout
        self._socket_timeout = socket_timeout

    async def evaluate(self) -> SystemHealth:
        """Run checks concurrently and aggregate system health."""
        probes: Dict[str, Optional[Probe]] = {
            "mongo": self._ping_mongo if self._mongo_database else None,
            "rabbitmq": self._ping_rabbitmq if self._broker_url else None,
            "redis": self._ping_redis if self._redis_url else None,
            "iot_hub": self._ping_iot_hub if self._iot_hub_gateway else None,
            "lorawan": self._ping_lorawan if self._lorawan_management_url else None,
        }
        statuses = await asyncio.gather(
            *(self._check(name, probe) for name, probe in probes.items())
        )
        return SystemHealth.from_dependencies(statuses)

    async def _check(self, name: str, probe: Optional[Probe]) -> DependencyStatus:
        if probe is None:
            return DependencyStatus(
                name=name,
                status=ServiceStatus.UNKNOWN,
                message=f"{name} is not configured.",
            )
        start = perf_counter()
        try:
            details = await probe() or {}
        except Exception as exc:
            return DependencyStatus(
                name=name,
                status=ServiceStatus.DOWN,
                message=f"{name} check failed: {exc}",
                latency_ms=(perf_counter() - start) * 1000,
            )
        status = details.pop("status", ServiceStatus.UP)
        return DependencyStatus(
            name=name,
            status=status,
            message=f"{name} check successful"
            if status == ServiceStatus.UP
            else f"{name} answered with degraded status",
            latency_ms=(perf_counter() - start) * 1000,
            details=details,
        )

    async def _ping_mongo(self) -> Dict[str, Any]:
        await asyncio.to_thread(self._mongo_database.client.admin.command, "ping")
        return {"database": self._mongo_database.db.name}

    async def _ping_rabbitmq(self) -> None:
        def _ping() -> None:
            connection = pika.BlockingConnection(pika.URLParameters(self._broker_url))
            connection.close()

        await asyncio.to_thread(_ping)

    async def _ping_redis(self) -> None:
        client = aioredis.from_url(
            self._redis_url,
            socket_connect_timeout=self._socket_timeout,
            socket_timeout=self._socket_timeout,
        )
        try:
            await client.ping()
        finally:
            await client.aclose()

    async def _ping_iot_hub(self) -> Dict[str, Any]:
        devices = await asyncio.wait_for(
            self._iot_hub_gateway.ping(), timeout=self._http_timeout
        )
        return {"hostname": self._iot_hub_gateway.hostname, "devices": devices}

    async def _ping_lorawan(self) -> Dict[str, Any]:
        async with httpx.AsyncClient(timeout=self._http_timeout) as client:
            response = await client.get(self._lorawan_management_url)
        if response.status_code >= 500:
            raise RuntimeError(f"HTTP {response.status_code}")
        status = (
            ServiceStatus.DEGRADED
            if response.status_code >= 400 and response.status_code != 401
            else ServiceStatus.UP
        )
        return {"status": status, "status_code": response.status_code}
