"""Command Gateway Interface - Domain Layer."""

from abc import ABC, abstractmethod


class ICommandGateway(ABC):
    """Sends a device model command to a single device."""

    @abstractmethod
    async def execute_command(self, device_id: str, command_id: str) -> None:
        """
        Execute a command on a device.

        Args:
            device_id: Target device identifier
            command_id: Identifier of the device model command

        Raises:
            DeviceModelCommandNotFoundError: If the command does not exist
            CommandExecutionError: If the command could not be delivered
        """
        pass
