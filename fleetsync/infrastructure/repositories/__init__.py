"""
Repositories Package - Infrastructure Layer

MongoDB implementations of the domain repository interfaces.
"""

from .device_model_repository import (
    DeviceModelCommandRepository,
    DeviceModelRepository,
    EdgeDeviceModelRepository,
)
from .device_repository import (
    DeviceRepository,
    DeviceTagValueRepository,
    EdgeDeviceRepository,
    LorawanDeviceRepository,
)
from .mongo_unit_of_work import MongoUnitOfWork
from .planning_repository import LayerRepository, PlanningRepository, ScheduleRepository

__all__ = [
    "DeviceModelCommandRepository",
    "DeviceModelRepository",
    "DeviceRepository",
    "DeviceTagValueRepository",
    "EdgeDeviceModelRepository",
    "EdgeDeviceRepository",
    "LayerRepository",
    "LorawanDeviceRepository",
    "MongoUnitOfWork",
    "PlanningRepository",
    "ScheduleRepository",
]
