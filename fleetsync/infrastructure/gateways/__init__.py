"""
Gateways Package - Infrastructure Layer

HTTP implementations of the twin registry and command gateways.
"""

from .iot_hub_gateway import IoTHubGateway
from .lorawan_command_gateway import LoRaWanCommandGateway

__all__ = ["IoTHubGateway", "LoRaWanCommandGateway"]
