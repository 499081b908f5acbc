"""LoRaWAN cloud-to-device command gateway - Infrastructure layer."""

from __future__ import annotations

import base64
from typing import Any, Dict

import httpx

from fleetsync.domain.entities.device import DeviceModelCommand
from fleetsync.domain.entities.errors import (
    CommandExecutionError,
    DeviceModelCommandNotFoundError,
)
from fleetsync.domain.gateways.command_gateway import ICommandGateway
from fleetsync.domain.repositories.device_model_repository import (
    IDeviceModelCommandRepository,
)
from fleetsync.shared import get_logger

logger = get_logger(__name__)


def frame_to_raw_payload(frame: str) -> str:
    """
    Encode a hexadecimal frame as the base64 raw payload of a downlink.

    A trailing odd nibble is ignored.

    Raises:
        ValueError: If the frame is not hexadecimal
    """
    frame = frame.strip()
    data = bytes.fromhex(frame[: len(frame) // 2 * 2])
    return base64.b64encode(data).decode("ascii")


class LoRaWanCommandGateway(ICommandGateway):
    """Sends device model commands through the LoRaWAN management function."""

    def __init__(
        self,
        management_url: str,
        function_key: str,
        command_repository: IDeviceModelCommandRepository,
        timeout: float = 30.0,
    ):
        self.management_url = management_url.rstrip("/")
        self.function_key = function_key
        self.command_repository = command_repository
        self.timeout = timeout

    def build_message(self, command: DeviceModelCommand) -> Dict[str, Any]:
        return {
            "rawPayload": frame_to_raw_payload(command.frame),
            "fport": command.port,
            "confirmed": command.confirmed,
        }

    async def execute_command(self, device_id: str, command_id: str) -> None:
        command = await self.command_repository.get_by_id(command_id)
        if command is None:
            raise DeviceModelCommandNotFoundError(command_id)

        try:
            message = self.build_message(command)
        except ValueError as e:
            raise CommandExecutionError(
                device_id, command_id, f"invalid frame {command.frame!r}"
            ) from e

        url = f"{self.management_url}/api/cloudtodevicemessage/{device_id}"
        headers = {"x-functions-key": self.function_key}

        logger.info(
            "lorawan.command.request",
            device_id=device_id,
            command_id=command_id,
            command_name=command.name,
            fport=command.port,
        )

        try:
            async with httpx.AsyncClient(timeout=self.timeout) as client:
                response = await client.post(url, headers=headers, json=message)
                response.raise_for_status()
        except httpx.HTTPStatusError as e:
            logger.error(
                "lorawan.command.http_error",
                device_id=device_id,
                command_id=command_id,
                status_code=e.response.status_code,
                response_text=e.response.text,
                exc_info=e,
            )
            raise CommandExecutionError(
                device_id,
                command_id,
                f"HTTP {e.response.status_code}: {e.response.text}",
            ) from e
        except httpx.RequestError as e:
            logger.error(
                "lorawan.command.request_error",
                device_id=device_id,
                command_id=command_id,
                error=str(e),
                exc_info=e,
            )
            raise CommandExecutionError(device_id, command_id, str(e)) from e

        logger.info(
            "lorawan.command.sent",
            device_id=device_id,
            command_id=command_id,
            status_code=response.status_code,
        )
