"""
Shared module - Cross-cutting concerns / Shared Layer

Constants, enums and logging helpers used by every other layer.
It must not depend on Infrastructure or Frameworks.
"""

from .consts import EnumEnvironment, EnumLockBackend, EnumLogLevel
from .logging import configure_logging, get_logger, update_logging_from_settings

__all__ = [
    "EnumEnvironment",
    "EnumLockBackend",
    "EnumLogLevel",
    "configure_logging",
    "get_logger",
    "update_logging_from_settings",
]
