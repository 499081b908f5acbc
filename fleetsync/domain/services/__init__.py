from .command_dispatcher import CommandDispatcher
from .schedule_resolver import is_planning_active, parse_time_of_day, resolve_schedules
from .twin_mapper import LorawanPropertyPatch, TwinMapper

__all__ = [
    "CommandDispatcher",
    "LorawanPropertyPatch",
    "TwinMapper",
    "is_planning_active",
    "parse_time_of_day",
    "resolve_schedules",
]
