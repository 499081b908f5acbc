"""Resolution of layer plannings into per-weekday command windows."""

from __future__ import annotations

from datetime import date, datetime, timedelta
from typing import Dict, Iterable, List, Optional, Union

from fleetsync.domain.entities.device import DeviceListItem
from fleetsync.domain.entities.planning import (
    FULL_DAY_END,
    FULL_DAY_START,
    NO_PLANNING,
    WEEK_DAYS,
    Layer,
    PayloadCommand,
    Planning,
    PlanningCommand,
    Schedule,
)

DATE_FORMAT = "%Y-%m-%d"


def parse_time_of_day(value: Optional[str]) -> timedelta:
    """
    Parse ``H:MM`` or ``HH:MM`` into an offset from midnight.

    ``24:00`` is accepted as the end of the day. Missing or malformed values
    resolve to midnight.
    """
    if not value:
        return FULL_DAY_START
    hours, separator, minutes = value.strip().partition(":")
    if not separator or not hours.isdigit() or not minutes.isdigit():
        return FULL_DAY_START
    offset = timedelta(hours=int(hours), minutes=int(minutes))
    if int(minutes) >= 60 or offset > FULL_DAY_END:
        return FULL_DAY_START
    return offset


def _parse_date(value: Union[str, date, None]) -> Optional[date]:
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if not value or not isinstance(value, str):
        return None
    try:
        return date.fromisoformat(value.strip()[:10])
    except ValueError:
        return None


def is_planning_active(planning: Planning, reference_date: date) -> bool:
    """Whether ``reference_date`` lies within the planning bounds, both inclusive."""
    start = _parse_date(planning.start)
    end = _parse_date(planning.end)
    if start is None or end is None:
        return False
    return start <= reference_date <= end


def _populate(
    planning_command: PlanningCommand,
    planning: Planning,
    schedules: Iterable[Schedule],
) -> None:
    for day in WEEK_DAYS:
        if planning.day_off & day:
            planning_command.commands[day].append(
                PayloadCommand(
                    command_id=planning.command_id,
                    start=FULL_DAY_START,
                    end=FULL_DAY_END,
                )
            )

    for schedule in schedules:
        payload = PayloadCommand(
            command_id=schedule.command_id,
            start=parse_time_of_day(schedule.start),
            end=parse_time_of_day(schedule.end),
        )
        for day in WEEK_DAYS:
            day_commands = planning_command.commands[day]
            if day_commands and day_commands[0].is_full_day:
                continue
            day_commands.append(payload)


def resolve_schedules(
    layers: Iterable[Layer],
    plannings: Iterable[Planning],
    schedules: Iterable[Schedule],
    devices: Iterable[DeviceListItem],
    reference_date: date,
) -> Dict[str, PlanningCommand]:
    """
    Group devices by planning and build the weekly commands of each planning.

    A planning is built once, when its first device is met. Inactive or
    unknown plannings keep empty weekday lists. Days flagged in the day-off
    mask hold only the full-day off command.

    Args:
        layers: All layers
        plannings: All plannings
        schedules: All schedules
        devices: Device roster with layer ids
        reference_date: Date used to decide whether a planning is active

    Returns:
        Planning commands keyed by planning id, in first-encounter order
    """
    layers_by_id = {layer.id: layer for layer in layers}
    plannings_by_id = {planning.id: planning for planning in plannings}
    schedules_by_planning: Dict[str, List[Schedule]] = {}
    for schedule in schedules:
        schedules_by_planning.setdefault(schedule.planning_id, []).append(schedule)

    planning_commands: Dict[str, PlanningCommand] = {}
    for device in devices:
        if not device.layer_id or not device.layer_id.strip():
            continue
        layer = layers_by_id.get(device.layer_id)
        if layer is None or not layer.planning_id or layer.planning_id == NO_PLANNING:
            continue

        existing = planning_commands.get(layer.planning_id)
        if existing is not None:
            existing.device_ids.append(device.device_id)
            continue

        planning_command = PlanningCommand(
            planning_id=layer.planning_id, device_ids=[device.device_id]
        )
        planning_commands[layer.planning_id] = planning_command

        planning = plannings_by_id.get(layer.planning_id)
        if planning is None or not is_planning_active(planning, reference_date):
            continue
        _populate(
            planning_command,
            planning,
            schedules_by_planning.get(planning.id, []),
        )

    return planning_commands
