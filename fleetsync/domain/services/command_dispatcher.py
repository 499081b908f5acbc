"""Dispatch of planning commands whose window contains the current time."""

from __future__ import annotations

from datetime import datetime, timedelta, tzinfo
from typing import Mapping

from fleetsync.domain.entities.planning import DaysOfWeek, PlanningCommand
from fleetsync.domain.gateways.command_gateway import ICommandGateway
from fleetsync.shared import get_logger

logger = get_logger(__name__)


def time_of_day(moment: datetime) -> timedelta:
    return timedelta(
        hours=moment.hour,
        minutes=moment.minute,
        seconds=moment.second,
        microseconds=moment.microsecond,
    )


class CommandDispatcher:
    """Sends the commands active now to every device of their planning."""

    def __init__(self, command_gateway: ICommandGateway, reference_timezone: tzinfo):
        self._command_gateway = command_gateway
        self._timezone = reference_timezone

    async def send_commands(
        self, planning_commands: Mapping[str, PlanningCommand], now: datetime
    ) -> int:
        """
        Execute every command whose window strictly contains ``now``.

        ``now`` must be timezone aware; weekday and time of day are taken in
        the reference timezone. Gateway errors are not caught, so a failing
        device stops the dispatch of the remaining ones.

        Returns:
            Number of commands sent
        """
        local_now = now.astimezone(self._timezone)
        day = DaysOfWeek.from_weekday(local_now.weekday())
        current = time_of_day(local_now)

        sent = 0
        for planning_id, planning_command in planning_commands.items():
            for payload in planning_command.commands.get(day, []):
                if not payload.start < current < payload.end:
                    continue
                if not payload.command_id:
                    logger.warning(
                        "planning_commands.payload.missing_command",
                        planning_id=planning_id,
                        day=day.name,
                    )
                    continue
                for device_id in planning_command.device_ids:
                    await self._command_gateway.execute_command(
                        device_id, payload.command_id
                    )
                    sent += 1
                logger.info(
                    "planning_commands.payload.dispatched",
                    planning_id=planning_id,
                    command_id=payload.command_id,
                    devices=len(planning_command.device_ids),
                )
        return sent
