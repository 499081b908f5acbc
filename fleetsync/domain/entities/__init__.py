"""
Domain Entities Package

Devices, twins, plannings and job outcomes.
"""

from .device import (
    ClassType,
    DeduplicationMode,
    Device,
    DeviceListItem,
    DeviceModel,
    DeviceModelCommand,
    DeviceTagValue,
    EdgeDevice,
    EdgeDeviceModel,
    EdgeModule,
    LorawanDevice,
)
from .errors import (
    CommandExecutionError,
    DeviceModelCommandNotFoundError,
    DomainError,
    RepositoryOperationError,
    TwinRegistryError,
)
from .health import ApplicationInfo, DependencyStatus, ServiceStatus, SystemHealth
from .job import JobRunResult, JobStatus, SyncReport
from .planning import (
    DaysOfWeek,
    Layer,
    PayloadCommand,
    Planning,
    PlanningCommand,
    Schedule,
)
from .twin import Twin, TwinEnumeration, TwinPage

__all__ = [
    "ApplicationInfo",
    "ClassType",
    "CommandExecutionError",
    "DaysOfWeek",
    "DeduplicationMode",
    "DependencyStatus",
    "Device",
    "DeviceListItem",
    "DeviceModel",
    "DeviceModelCommand",
    "DeviceModelCommandNotFoundError",
    "DeviceTagValue",
    "DomainError",
    "EdgeDevice",
    "EdgeDeviceModel",
    "EdgeModule",
    "JobRunResult",
    "JobStatus",
    "Layer",
    "LorawanDevice",
    "PayloadCommand",
    "Planning",
    "PlanningCommand",
    "RepositoryOperationError",
    "Schedule",
    "ServiceStatus",
    "SyncReport",
    "SystemHealth",
    "Twin",
    "TwinEnumeration",
    "TwinPage",
    "TwinRegistryError",
]
