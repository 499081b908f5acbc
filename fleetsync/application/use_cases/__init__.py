from .health_use_cases import GetApplicationInfoUseCase, GetHealthStatusUseCase
from .scheduled_job import ScheduledJob
from .send_planning_commands_use_case import SendPlanningCommandsJob
from .sync_devices_use_case import SyncDevicesJob
from .sync_edge_devices_use_case import SyncEdgeDevicesJob

__all__ = [
    "GetApplicationInfoUseCase",
    "GetHealthStatusUseCase",
    "ScheduledJob",
    "SendPlanningCommandsJob",
    "SyncDevicesJob",
    "SyncEdgeDevicesJob",
]
