"""
Domain Repository Interfaces - Devices

Repositories for the local device mirror. Writes are buffered by the unit
of work of the run and only reach the store on commit.
"""

from abc import ABC, abstractmethod
from typing import Generic, List, Optional, TypeVar

from fleetsync.domain.entities.device import (
    Device,
    DeviceBase,
    DeviceListItem,
    DeviceTagValue,
    EdgeDevice,
    LorawanDevice,
)

TDevice = TypeVar("TDevice", bound=DeviceBase)


class IBaseDeviceRepository(ABC, Generic[TDevice]):
    """Operations shared by every device repository."""

    @abstractmethod
    async def get_all(self) -> List[TDevice]:
        """Get all devices, without their tags."""
        pass

    @abstractmethod
    async def get_by_id(
        self, device_id: str, include_tags: bool = False
    ) -> Optional[TDevice]:
        """Get a device by id, optionally eager-loading its tag rows."""
        pass

    @abstractmethod
    async def insert(self, device: TDevice) -> None:
        """Register the insertion of a new device."""
        pass

    @abstractmethod
    async def update(self, device: TDevice) -> None:
        """Register the replacement of a stored device."""
        pass

    @abstractmethod
    async def delete(self, device_id: str) -> None:
        """Register the deletion of a device and of its tag rows."""
        pass


class IDeviceRepository(IBaseDeviceRepository[Device]):
    """Plain devices."""

    @abstractmethod
    async def list_roster(self, page_size: int) -> List[DeviceListItem]:
        """List plain and LoRaWAN devices with their layer, up to ``page_size``."""
        pass


class ILorawanDeviceRepository(IBaseDeviceRepository[LorawanDevice]):
    """Devices whose model supports LoRaWAN features."""


class IEdgeDeviceRepository(IBaseDeviceRepository[EdgeDevice]):
    """Edge devices."""


class IDeviceTagValueRepository(ABC):
    """Tag rows owned by devices."""

    @abstractmethod
    async def get_for_device(self, device_id: str) -> List[DeviceTagValue]:
        pass

    @abstractmethod
    async def replace_for_device(
        self, device_id: str, tags: List[DeviceTagValue]
    ) -> None:
        """
        Replace every tag row of a device with ``tags``.

        The previous rows are all removed and the new set fully inserted in
        the same commit.
        """
        pass
