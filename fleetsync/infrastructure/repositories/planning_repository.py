"""MongoDB repositories for layers, plannings and schedules."""

from __future__ import annotations

from typing import Any, Dict, List

from fleetsync.domain.entities.planning import DaysOfWeek, Layer, Planning, Schedule
from fleetsync.domain.repositories.planning_repository import (
    ILayerRepository,
    IPlanningRepository,
    IScheduleRepository,
)
from fleetsync.infrastructure.database.mongo_database import (
    LAYERS,
    PLANNINGS,
    SCHEDULES,
)
from fleetsync.infrastructure.repositories.device_model_repository import (
    MongoReadRepository,
)


def _day_off(value: Any) -> DaysOfWeek:
    try:
        return DaysOfWeek(int(value or 0) & 0x7F)
    except (TypeError, ValueError):
        return DaysOfWeek(0)


class LayerRepository(MongoReadRepository, ILayerRepository):
    COLLECTION_NAME = LAYERS

    async def get_all(self) -> List[Layer]:
        return [
            Layer(
                id=document["id"],
                name=document.get("name", ""),
                planning_id=document.get("planning"),
                father=document.get("father"),
            )
            for document in await self._find_all()
        ]


class PlanningRepository(MongoReadRepository, IPlanningRepository):
    COLLECTION_NAME = PLANNINGS

    @staticmethod
    def _to_entity(document: Dict[str, Any]) -> Planning:
        return Planning(
            id=document["id"],
            name=document.get("name", ""),
            start=document.get("start"),
            end=document.get("end"),
            day_off=_day_off(document.get("day_off")),
            command_id=document.get("command_id"),
        )

    async def get_all(self) -> List[Planning]:
        return [self._to_entity(document) for document in await self._find_all()]


class ScheduleRepository(MongoReadRepository, IScheduleRepository):
    COLLECTION_NAME = SCHEDULES

    async def get_all(self) -> List[Schedule]:
        return [
            Schedule(
                id=document["id"],
                planning_id=document.get("planning_id", ""),
                start=document.get("start"),
                end=document.get("end"),
                command_id=document.get("command_id"),
            )
            for document in await self._find_all()
        ]
