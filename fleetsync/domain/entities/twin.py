"""Device twin snapshots as returned by the twin registry."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, List, Optional

CONNECTED = "Connected"
DISCONNECTED = "Disconnected"
ENABLED = "enabled"


@dataclass(slots=True)
class Twin:
    """Read-only snapshot of a device (or module) twin."""

    device_id: str
    version: int = 0
    status: str = "disabled"
    connection_state: str = DISCONNECTED
    module_id: Optional[str] = None
    device_scope: Optional[str] = None
    status_updated_time: Optional[datetime] = None
    last_activity_time: Optional[datetime] = None
    tags: Dict[str, Any] = field(default_factory=dict)
    desired: Dict[str, Any] = field(default_factory=dict)
    reported: Dict[str, Any] = field(default_factory=dict)

    @property
    def is_enabled(self) -> bool:
        return self.status == ENABLED

    @property
    def is_connected(self) -> bool:
        return self.connection_state == CONNECTED

    def tag(self, name: str) -> Optional[str]:
        value = self.tags.get(name)
        return None if value is None else str(value)


@dataclass(slots=True)
class TwinPage:
    """One page of a registry enumeration."""

    items: List[Twin] = field(default_factory=list)
    total_items: int = 0
    next_page: Optional[str] = None


@dataclass(slots=True)
class TwinEnumeration:
    """All twins gathered by a run, and whether the registry total was reached."""

    twins: List[Twin] = field(default_factory=list)
    complete: bool = True

    @property
    def device_ids(self) -> set[str]:
        return {twin.device_id for twin in self.twins}
