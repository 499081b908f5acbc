"""Domain Repository Interfaces - Device models and their commands."""

from abc import ABC, abstractmethod
from typing import List, Optional

from fleetsync.domain.entities.device import (
    DeviceModel,
    DeviceModelCommand,
    EdgeDeviceModel,
)


class IDeviceModelRepository(ABC):
    @abstractmethod
    async def get_by_id(self, model_id: str) -> Optional[DeviceModel]:
        pass

    @abstractmethod
    async def get_all(self) -> List[DeviceModel]:
        pass


class IEdgeDeviceModelRepository(ABC):
    @abstractmethod
    async def get_by_id(self, model_id: str) -> Optional[EdgeDeviceModel]:
        pass

    @abstractmethod
    async def get_all(self) -> List[EdgeDeviceModel]:
        pass


class IDeviceModelCommandRepository(ABC):
    @abstractmethod
    async def get_by_id(self, command_id: str) -> Optional[DeviceModelCommand]:
        pass
