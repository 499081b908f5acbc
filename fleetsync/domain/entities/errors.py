"""
Domain Errors

This module defines custom error classes for domain-specific exceptions.
"""

from typing import Any, Dict, Optional


class DomainError(Exception):
    """Base class for domain errors."""

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        self.message = message
        self.details = details or {}
        super().__init__(message)


class TwinRegistryError(DomainError):
    """Raised when the device twin registry cannot be queried."""


class CommandExecutionError(DomainError):
    """Raised when a command could not be delivered to a device."""

    def __init__(
        self,
        device_id: str,
        command_id: str,
        reason: str,
        details: Optional[Dict[str, Any]] = None,
    ):
        self.device_id = device_id
        self.command_id = command_id
        message = f"Command {command_id} failed for device {device_id}: {reason}"
        super().__init__(message, details)


class DeviceModelCommandNotFoundError(DomainError):
    """Raised when a planning references an unknown device model command."""

    def __init__(self, command_id: str, details: Optional[Dict[str, Any]] = None):
        message = f"Device model command with ID {command_id} not found"
        super().__init__(message, details)


class RepositoryOperationError(DomainError):
    """Raised when a read or a buffered write against the store fails."""
