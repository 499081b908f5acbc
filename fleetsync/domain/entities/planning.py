"""Layers, plannings and schedules, plus the per-run dispatch plan built from them."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, timedelta
from enum import IntFlag
from typing import Dict, List, Optional, Union

# Layer.planning_id value meaning "no planning assigned".
NO_PLANNING = "None"

FULL_DAY_START = timedelta(0)
FULL_DAY_END = timedelta(hours=24)


class DaysOfWeek(IntFlag):
    """Day-off bitmask, one flag per weekday starting on Monday."""

    MONDAY = 1
    TUESDAY = 2
    WEDNESDAY = 4
    THURSDAY = 8
    FRIDAY = 16
    SATURDAY = 32
    SUNDAY = 64

    @classmethod
    def from_weekday(cls, weekday: int) -> "DaysOfWeek":
        """Map ``date.weekday()`` (Monday is 0) to its flag."""
        return cls(1 << weekday)


WEEK_DAYS = (
    DaysOfWeek.MONDAY,
    DaysOfWeek.TUESDAY,
    DaysOfWeek.WEDNESDAY,
    DaysOfWeek.THURSDAY,
    DaysOfWeek.FRIDAY,
    DaysOfWeek.SATURDAY,
    DaysOfWeek.SUNDAY,
)


@dataclass(slots=True)
class Layer:
    id: str
    name: str = ""
    planning_id: Optional[str] = None
    father: Optional[str] = None


@dataclass(slots=True)
class Planning:
    """
    Activity window, day-off mask and off-day command.

    The bounds are ``YYYY-MM-DD`` strings or the dates stored by MongoDB.
    """

    id: str
    name: str = ""
    start: Union[str, date, None] = None
    end: Union[str, date, None] = None
    day_off: DaysOfWeek = DaysOfWeek(0)
    command_id: Optional[str] = None


@dataclass(slots=True)
class Schedule:
    """Time window (``H:MM`` bounds) during which a command applies."""

    id: str
    planning_id: str
    start: Optional[str] = None
    end: Optional[str] = None
    command_id: Optional[str] = None


@dataclass(frozen=True, slots=True)
class PayloadCommand:
    command_id: Optional[str]
    start: timedelta
    end: timedelta

    @property
    def is_full_day(self) -> bool:
        return self.start == FULL_DAY_START and self.end == FULL_DAY_END


@dataclass(slots=True)
class PlanningCommand:
    """Devices attached to a planning and the commands to run on each weekday."""

    planning_id: str
    device_ids: List[str] = field(default_factory=list)
    commands: Dict[DaysOfWeek, List[PayloadCommand]] = field(
        default_factory=lambda: {day: [] for day in WEEK_DAYS}
    )
