"""Response models of the /health and /info endpoints."""

from __future__ import annotations

from datetime import datetime
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field

from fleetsync.domain.entities.health import (
    ApplicationInfo,
    DependencyStatus,
    ServiceStatus,
    SystemHealth,
)

_IOT_HUB_CHECK = {
    "name": "iot_hub",
    "status": "up",
    "message": "IoT Hub registry reachable",
    "checked_at": "2025-03-03T08:00:00Z",
    "latency_ms": 85.3,
    "details": {"hostname": "fleet.azure-devices.net", "devices": 1240},
}


class DependencyStatusDTO(BaseModel):
    """One probed dependency: MongoDB, the broker, Redis, IoT Hub or LoRaWAN."""

    model_config = ConfigDict(
        from_attributes=True, json_schema_extra={"example": _IOT_HUB_CHECK}
    )

    name: str
    status: ServiceStatus
    message: Optional[str] = None
    checked_at: datetime
    latency_ms: Optional[float] = Field(default=None, description="Probe duration")
    details: Dict[str, Any] = Field(default_factory=dict)

    @classmethod
    def from_domain(cls, status: DependencyStatus) -> "DependencyStatusDTO":
        return cls.model_validate(status)


class SystemHealthDTO(BaseModel):
    model_config = ConfigDict(
        from_attributes=True,
        json_schema_extra={
            "example": {"status": "up", "dependencies": [_IOT_HUB_CHECK]}
        },
    )

    status: ServiceStatus = Field(description="Worst status among the dependencies")
    dependencies: List[DependencyStatusDTO] = Field(default_factory=list)

    @classmethod
    def from_domain(cls, health: SystemHealth) -> "SystemHealthDTO":
        return cls.model_validate(health)


class EndpointsDTO(BaseModel):
    """External endpoints the workers talk to, credentials removed."""

    broker: str = ""
    result_backend: str = ""
    iot_hub_hostname: str = ""
    lorawan_management_url: str = ""


class JobScheduleDTO(BaseModel):
    planning_timezone: str = Field(
        description="IANA timezone in which planning windows are evaluated"
    )
    intervals_minutes: Dict[str, int] = Field(
        default_factory=dict, description="Beat interval of each periodic job"
    )


class ApplicationInfoDTO(BaseModel):
    """Build metadata, uptime, dependency health and job scheduling."""

    name: str
    description: str
    version: str
    environment: str
    git_commit: str
    build_time: str
    started_at: datetime
    uptime_seconds: float
    status: ServiceStatus
    dependencies: List[DependencyStatusDTO] = Field(default_factory=list)
    endpoints: EndpointsDTO = Field(default_factory=EndpointsDTO)
    jobs: JobScheduleDTO

    @classmethod
    def from_domain(cls, info: ApplicationInfo) -> "ApplicationInfoDTO":
        return cls(
            name=info.name,
            description=info.description,
            version=info.version,
            environment=info.environment,
            git_commit=info.git_commit,
            build_time=info.build_time,
            started_at=info.started_at,
            uptime_seconds=info.uptime_seconds,
            status=info.status,
            dependencies=[
                DependencyStatusDTO.from_domain(dep) for dep in info.dependencies
            ],
            endpoints=EndpointsDTO(**info.endpoints),
            jobs=JobScheduleDTO(
                planning_timezone=info.planning_timezone,
                intervals_minutes=info.job_intervals_minutes,
            ),
        )
