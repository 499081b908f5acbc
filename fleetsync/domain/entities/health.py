"""
Health domain entities.

Value objects describing the availability of the service and of the
registry, store and broker it depends on.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, Iterable, List, Optional


class ServiceStatus(str, Enum):
    """High-level availability for a dependency or the system."""

    UP = "up"
    DEGRADED = "degraded"
    DOWN = "down"
    UNKNOWN = "unknown"


@dataclass(slots=True)
class DependencyStatus:
    """Health status for a single external dependency."""

    name: str
    status: ServiceStatus
    message: Optional[str] = None
    checked_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    latency_ms: Optional[float] = None
    details: Dict[str, Any] = field(default_factory=dict)


@dataclass(slots=True)
class SystemHealth:
    """Aggregated health for the application."""

    status: ServiceStatus
    dependencies: List[DependencyStatus] = field(default_factory=list)

    @classmethod
    def from_dependencies(cls, statuses: Iterable[DependencyStatus]) -> SystemHealth:
        """Any DOWN wins, then DEGRADED, then UNKNOWN."""
        dependencies = list(statuses)
        found = {dependency.status for dependency in dependencies}
        for candidate in (
            ServiceStatus.DOWN,
            ServiceStatus.DEGRADED,
            ServiceStatus.UNKNOWN,
        ):
            if candidate in found:
                return cls(status=candidate, dependencies=dependencies)
        return cls(status=ServiceStatus.UP, dependencies=dependencies)


@dataclass(slots=True)
class ApplicationInfo:
    """Operational metadata surfaced by the /info endpoint."""

    name: str
    description: str
    version: str
    environment: str
    git_commit: str
    build_time: str
    started_at: datetime
    uptime_seconds: float
    status: ServiceStatus
    dependencies: List[DependencyStatus] = field(default_factory=list)
    endpoints: Dict[str, str] = field(default_factory=dict)
    planning_timezone: str = "UTC"
    job_intervals_minutes: Dict[str, int] = field(default_factory=dict)
