from .command_gateway import ICommandGateway
from .twin_registry_gateway import ITwinRegistryGateway

__all__ = ["ICommandGateway", "ITwinRegistryGateway"]
