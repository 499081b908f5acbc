"""
Twin Registry Gateway Interface - Domain Layer

This module defines the interface for enumerating device twins from the
authoritative cloud registry.
"""

from abc import ABC, abstractmethod
from typing import Optional

from fleetsync.domain.entities.twin import Twin, TwinPage


class ITwinRegistryGateway(ABC):
    """Interface for the device twin registry."""

    @abstractmethod
    async def get_devices_page(
        self,
        continuation_token: Optional[str] = None,
        exclude_device_type: Optional[str] = None,
        page_size: int = 100,
    ) -> TwinPage:
        """
        Fetch one page of non-edge device twins.

        Args:
            continuation_token: Token returned by the previous page, None for the first
            exclude_device_type: Value of the ``deviceType`` tag to leave out
            page_size: Maximum number of twins in the page

        Returns:
            TwinPage: Twins of the page, registry total and next token

        Raises:
            TwinRegistryError: If the registry cannot be queried
        """
        pass

    @abstractmethod
    async def get_edge_devices_page(
        self,
        continuation_token: Optional[str] = None,
        page_size: int = 100,
    ) -> TwinPage:
        """Fetch one page of edge device twins."""
        pass

    @abstractmethod
    async def get_device_twin_with_module(self, device_id: str) -> Optional[Twin]:
        """
        Fetch the edge agent module twin of an edge device.

        Returns:
            The ``$edgeAgent`` module twin, or None when the device has none
        """
        pass

    @abstractmethod
    async def get_device_twin_with_edge_hub_module(
        self, device_id: str
    ) -> Optional[Twin]:
        """Fetch the ``$edgeHub`` module twin of an edge device."""
        pass
