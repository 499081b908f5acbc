"""
Domain Repository Interfaces

Persistence contracts used by the reconciliation and dispatch jobs.
"""

from .device_model_repository import (
    IDeviceModelCommandRepository,
    IDeviceModelRepository,
    IEdgeDeviceModelRepository,
)
from .device_repository import (
    IBaseDeviceRepository,
    IDeviceRepository,
    IDeviceTagValueRepository,
    IEdgeDeviceRepository,
    ILorawanDeviceRepository,
)
from .planning_repository import (
    ILayerRepository,
    IPlanningRepository,
    IScheduleRepository,
)
from .unit_of_work import IUnitOfWork

__all__ = [
    "IBaseDeviceRepository",
    "IDeviceModelCommandRepository",
    "IDeviceModelRepository",
    "IDeviceRepository",
    "IDeviceTagValueRepository",
    "IEdgeDeviceModelRepository",
    "IEdgeDeviceRepository",
    "ILayerRepository",
    "ILorawanDeviceRepository",
    "IPlanningRepository",
    "IScheduleRepository",
    "IUnitOfWork",
]
