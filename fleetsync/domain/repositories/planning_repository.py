"""Domain Repository Interfaces - Scheduling data (read only)."""

from abc import ABC, abstractmethod
from typing import List

from fleetsync.domain.entities.planning import Layer, Planning, Schedule


class ILayerRepository(ABC):
    @abstractmethod
    async def get_all(self) -> List[Layer]:
        pass


class IPlanningRepository(ABC):
    @abstractmethod
    async def get_all(self) -> List[Planning]:
        pass


class IScheduleRepository(ABC):
    @abstractmethod
    async def get_all(self) -> List[Schedule]:
        pass
