"""Lightweight settings structures consumed by the application layer."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict


@dataclass(frozen=True)
class SystemInfo:
    """Subset of configuration required by system-related use cases."""

    title: str
    description: str
    version: str
    environment: str
    git_commit: str
    build_time: str
    celery_broker_url: str
    celery_result_backend_url: str
    iot_hub_hostname: str
    lorawan_management_url: str
    planning_timezone: str
    job_intervals_minutes: Dict[str, int] = field(default_factory=dict)
