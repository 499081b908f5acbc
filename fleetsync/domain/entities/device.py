"""Local mirror of the devices known to the twin registry."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import List, Optional, Set, Tuple
from uuid import uuid4


class ClassType(str, Enum):
    """LoRaWAN device class."""

    A = "A"
    B = "B"
    C = "C"


class DeduplicationMode(str, Enum):
    """How the network server handles duplicated uplinks."""

    NONE = "None"
    DROP = "Drop"
    MARK = "Mark"


@dataclass(slots=True)
class DeviceTagValue:
    """A single tag row owned by a device."""

    name: str
    value: str
    id: str = field(default_factory=lambda: str(uuid4()), compare=False)


@dataclass(slots=True)
class DeviceBase:
    """Fields shared by every kind of device."""

    id: str
    name: str = ""
    device_model_id: str = ""
    version: int = 0
    is_enabled: bool = False
    layer_id: Optional[str] = None
    tags: List[DeviceTagValue] = field(default_factory=list)

    def tag_set(self) -> Set[Tuple[str, str]]:
        return {(tag.name, tag.value) for tag in self.tags}


# Fields refreshed from the twin on every accepted update.
DEVICE_TWIN_FIELDS = (
    "name",
    "device_model_id",
    "version",
    "is_connected",
    "is_enabled",
    "status_updated_time",
    "last_activity_time",
    "layer_id",
)


@dataclass(slots=True)
class Device(DeviceBase):
    """A plain (non-edge) device."""

    is_connected: bool = False
    status_updated_time: Optional[datetime] = None
    last_activity_time: Optional[datetime] = None

    def copy_twin_fields(self, source: Device) -> None:
        """Copy identity, connectivity, activity, layer and tags from ``source``."""
        for name in DEVICE_TWIN_FIELDS:
            setattr(self, name, getattr(source, name))
        self.tags = list(source.tags)


@dataclass(slots=True)
class LorawanDevice(Device):
    """A device whose model supports the LoRaWAN feature set."""

    use_otaa: bool = False
    app_eui: Optional[str] = None
    app_key: Optional[str] = None
    app_s_key: Optional[str] = None
    nwk_s_key: Optional[str] = None
    dev_addr: Optional[str] = None
    sensor_decoder: Optional[str] = None
    class_type: ClassType = ClassType.A
    preferred_window: int = 0
    deduplication: DeduplicationMode = DeduplicationMode.NONE
    rx1_dr_offset: Optional[int] = None
    rx2_data_rate: Optional[int] = None
    rx_delay: Optional[int] = None
    abp_relax_mode: Optional[bool] = None
    fcnt_up_start: Optional[int] = None
    fcnt_down_start: Optional[int] = None
    fcnt_reset_counter: Optional[int] = None
    supports_32bit_fcnt: Optional[bool] = None
    keep_alive_timeout: Optional[int] = None
    downlink: Optional[bool] = None
    already_logged_in_once: bool = False
    gateway_id: Optional[str] = None
    data_rate: Optional[str] = None
    tx_power: Optional[str] = None
    nb_rep: Optional[str] = None
    reported_rx2_data_rate: Optional[str] = None
    reported_rx1_dr_offset: Optional[str] = None
    reported_rx_delay: Optional[str] = None


@dataclass(slots=True)
class EdgeModule:
    """A module deployed on an edge device, as reported by its agent."""

    name: str
    status: Optional[str] = None
    version: Optional[str] = None


@dataclass(slots=True)
class EdgeDevice(DeviceBase):
    """An edge (gateway) device running an edge agent and hub."""

    connection_state: str = "Disconnected"
    scope: Optional[str] = None
    nb_devices: int = 0
    nb_modules: int = 0
    runtime_response: Optional[str] = None
    modules: List[EdgeModule] = field(default_factory=list)

    def copy_from(self, source: EdgeDevice) -> None:
        """Replace every mapped field with the values of ``source``."""
        for name in self.__dataclass_fields__:
            if name != "id":
                setattr(self, name, getattr(source, name))
        self.tags = list(source.tags)
        self.modules = list(source.modules)


@dataclass(slots=True)
class DeviceModel:
    """Model a plain or LoRaWAN device declares through its ``modelId`` tag."""

    id: str
    name: str
    support_lora_features: bool = False


@dataclass(slots=True)
class EdgeDeviceModel:
    """Model an edge device declares through its ``modelId`` tag."""

    id: str
    name: str


@dataclass(slots=True)
class DeviceModelCommand:
    """LoRaWAN downlink command defined on a device model."""

    id: str
    name: str
    frame: str
    port: int = 1
    confirmed: bool = False
    device_model_id: Optional[str] = None


@dataclass(slots=True)
class DeviceListItem:
    """Roster entry used when resolving plannings."""

    device_id: str
    device_name: str = ""
    layer_id: Optional[str] = None
