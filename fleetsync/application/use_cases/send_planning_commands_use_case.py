"""Resolution and dispatch of the commands planned for the current time."""

from __future__ import annotations

from datetime import datetime, timezone, tzinfo
from typing import Any, Awaitable, Callable, Dict, List, TypeVar

from fleetsync.domain.gateways.command_gateway import ICommandGateway
from fleetsync.domain.ports.job_lock import IJobLock
from fleetsync.domain.repositories import (
    IDeviceRepository,
    ILayerRepository,
    IPlanningRepository,
    IScheduleRepository,
)
from fleetsync.domain.services.command_dispatcher import CommandDispatcher
from fleetsync.domain.services.schedule_resolver import resolve_schedules
from fleetsync.shared import get_logger

from .scheduled_job import ScheduledJob

logger = get_logger(__name__)

T = TypeVar("T")

Clock = Callable[[], datetime]


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


class SendPlanningCommandsJob(ScheduledJob):
    """Sends the commands of the layer plannings active at this moment."""

    name = "send_planning_commands"

    def __init__(
        self,
        device_repository: IDeviceRepository,
        layer_repository: ILayerRepository,
        planning_repository: IPlanningRepository,
        schedule_repository: IScheduleRepository,
        command_gateway: ICommandGateway,
        job_lock: IJobLock,
        reference_timezone: tzinfo,
        roster_page_size: int = 10000,
        clock: Clock = utc_now,
    ):
        super().__init__(job_lock)
        self._device_repository = device_repository
        self._layer_repository = layer_repository
        self._planning_repository = planning_repository
        self._schedule_repository = schedule_repository
        self._dispatcher = CommandDispatcher(command_gateway, reference_timezone)
        self._timezone = reference_timezone
        self._roster_page_size = roster_page_size
        self._clock = clock

    async def run(self) -> Dict[str, Any]:
        return {"commands_sent": await self.send_planning_commands()}

    async def send_planning_commands(self) -> int:
        """
        Rebuild the planning commands from fresh data and dispatch them.

        Returns:
            Number of commands sent
        """
        now = self._clock()
        devices = await self._load(
            "devices",
            lambda: self._device_repository.list_roster(self._roster_page_size),
        )
        layers = await self._load("layers", self._layer_repository.get_all)
        plannings = await self._load("plannings", self._planning_repository.get_all)
        schedules = await self._load("schedules", self._schedule_repository.get_all)

        planning_commands = resolve_schedules(
            layers,
            plannings,
            schedules,
            devices,
            reference_date=now.astimezone(self._timezone).date(),
        )
        logger.info(
            f"{self.name}.resolved",
            plannings=len(planning_commands),
            devices=sum(len(p.device_ids) for p in planning_commands.values()),
        )
        return await self._dispatcher.send_commands(planning_commands, now)

    async def _load(
        self, source: str, fetch: Callable[[], Awaitable[List[T]]]
    ) -> List[T]:
        """Fetch one data source; a failure leaves it empty for this run."""
        try:
            return await fetch()
        except Exception as exc:
            logger.error(
                f"{self.name}.load_failed",
                source=source,
                error=str(exc),
                exc_info=exc,
            )
            return []
