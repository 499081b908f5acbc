"""Domain service abstraction for health checks."""

from __future__ import annotations

from typing import Protocol

from fleetsync.domain.entities.health import SystemHealth


class IHealthCheckService(Protocol):
    """Interface for retrieving system health information."""

    async def evaluate(self) -> SystemHealth:
        """Check the store, broker, lock backend and cloud endpoints."""
        ...
