"""Mapping of registry twins onto local device entities."""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Callable, Dict, List, Optional, Tuple, Type, TypeVar

from fleetsync.domain.entities.device import (
    ClassType,
    DeduplicationMode,
    Device,
    DeviceTagValue,
    EdgeDevice,
    EdgeModule,
    LorawanDevice,
)
from fleetsync.domain.entities.twin import CONNECTED, DISCONNECTED, Twin

MODEL_ID_TAG = "modelId"
DEVICE_NAME_TAG = "deviceName"
LAYER_ID_TAG = "layerId"
RESERVED_TAGS = frozenset({MODEL_ID_TAG, DEVICE_NAME_TAG, LAYER_ID_TAG})

TEnum = TypeVar("TEnum", bound=Enum)


def parse_int(value: Any) -> Optional[int]:
    if value is None or isinstance(value, bool):
        return None
    try:
        return int(str(value).strip())
    except ValueError:
        return None


def parse_bool(value: Any) -> Optional[bool]:
    if isinstance(value, bool):
        return value
    if isinstance(value, str) and value.strip().lower() in ("true", "false"):
        return value.strip().lower() == "true"
    return None


def parse_enum(enum_type: Type[TEnum], value: Any, default: TEnum) -> TEnum:
    """Resolve an enum by name, value or ordinal, falling back to ``default``."""
    if value is None:
        return default
    text = str(value).strip()
    for member in enum_type:
        if text in (member.name, member.value):
            return member
    index = parse_int(text)
    members = list(enum_type)
    if index is not None and 0 <= index < len(members):
        return members[index]
    return default


def as_text(value: Any) -> Optional[str]:
    if value is None:
        return None
    if isinstance(value, str):
        return value
    return json.dumps(value)


def _preferred_window(value: Any) -> int:
    parsed = parse_int(value)
    return 0 if parsed is None else parsed


# (entity attribute, desired property key, converter)
LORAWAN_DESIRED_PROPERTIES: Tuple[Tuple[str, str, Callable[[Any], Any]], ...] = (
    ("app_eui", "AppEUI", as_text),
    ("app_key", "AppKey", as_text),
    ("app_s_key", "AppSKey", as_text),
    ("nwk_s_key", "NwkSKey", as_text),
    ("dev_addr", "DevAddr", as_text),
    ("sensor_decoder", "SensorDecoder", as_text),
    ("class_type", "ClassType", lambda v: parse_enum(ClassType, v, ClassType.A)),
    ("preferred_window", "PreferredWindow", _preferred_window),
    (
        "deduplication",
        "Deduplication",
        lambda v: parse_enum(DeduplicationMode, v, DeduplicationMode.NONE),
    ),
    ("rx1_dr_offset", "RX1DROffset", parse_int),
    ("rx2_data_rate", "RX2DataRate", parse_int),
    ("rx_delay", "RXDelay", parse_int),
    ("abp_relax_mode", "ABPRelaxMode", parse_bool),
    ("fcnt_up_start", "FCntUpStart", parse_int),
    ("fcnt_down_start", "FCntDownStart", parse_int),
    ("fcnt_reset_counter", "FCntResetCounter", parse_int),
    ("supports_32bit_fcnt", "Supports32BitFCnt", parse_bool),
    ("keep_alive_timeout", "KeepAliveTimeout", parse_int),
    ("downlink", "Downlink", parse_bool),
)

# (entity attribute, reported property key)
LORAWAN_REPORTED_PROPERTIES: Tuple[Tuple[str, str], ...] = (
    ("gateway_id", "GatewayID"),
    ("data_rate", "DataRate"),
    ("tx_power", "TxPower"),
    ("nb_rep", "NbRep"),
    ("reported_rx2_data_rate", "ReportedRX2DataRate"),
    ("reported_rx1_dr_offset", "ReportedRX1DROffset"),
    ("reported_rx_delay", "ReportedRXDelay"),
)


@dataclass(frozen=True, slots=True)
class LorawanPropertyPatch:
    """
    LoRaWAN fields carried by a twin, keyed by entity attribute.

    Only properties whose key is present in the twin appear here, so applying
    the patch never clears a value the twin did not mention.
    """

    values: Dict[str, Any] = field(default_factory=dict)

    def apply_to(self, device: LorawanDevice) -> None:
        for attribute, value in self.values.items():
            setattr(device, attribute, value)


class TwinMapper:
    """Builds device entities from registry twins."""

    def tags_of(self, twin: Twin) -> List[DeviceTagValue]:
        return [
            DeviceTagValue(name=name, value=as_text(value) or "")
            for name, value in twin.tags.items()
            if name not in RESERVED_TAGS
        ]

    def to_device(self, twin: Twin) -> Device:
        return Device(
            id=twin.device_id,
            name=twin.tag(DEVICE_NAME_TAG) or twin.device_id,
            device_model_id=twin.tag(MODEL_ID_TAG) or "",
            version=twin.version,
            is_enabled=twin.is_enabled,
            is_connected=twin.is_connected,
            status_updated_time=twin.status_updated_time,
            last_activity_time=twin.last_activity_time,
            layer_id=twin.tag(LAYER_ID_TAG),
            tags=self.tags_of(twin),
        )

    def lorawan_patch(self, twin: Twin) -> LorawanPropertyPatch:
        values: Dict[str, Any] = {}
        for attribute, key, convert in LORAWAN_DESIRED_PROPERTIES:
            if key in twin.desired:
                values[attribute] = convert(twin.desired[key])
        if "AppEUI" in twin.desired:
            values["use_otaa"] = bool(as_text(twin.desired["AppEUI"]))
        for attribute, key in LORAWAN_REPORTED_PROPERTIES:
            if key in twin.reported:
                values[attribute] = as_text(twin.reported[key])
        if "DevAddr" in twin.reported:
            values["already_logged_in_once"] = twin.reported["DevAddr"] is not None
        return LorawanPropertyPatch(values=values)

    def to_lorawan_device(
        self, twin: Twin
    ) -> Tuple[LorawanDevice, LorawanPropertyPatch]:
        """Return the full entity for an insert and the patch for an update."""
        base = self.to_device(twin)
        device = LorawanDevice(
            id=base.id,
            name=base.name,
            device_model_id=base.device_model_id,
            version=base.version,
            is_enabled=base.is_enabled,
            is_connected=base.is_connected,
            status_updated_time=base.status_updated_time,
            last_activity_time=base.last_activity_time,
            layer_id=base.layer_id,
            tags=base.tags,
        )
        patch = self.lorawan_patch(twin)
        patch.apply_to(device)
        return device, patch

    def to_edge_device(
        self,
        twin: Twin,
        agent_twin: Optional[Twin] = None,
        hub_twin: Optional[Twin] = None,
    ) -> EdgeDevice:
        """
        Map an edge twin enriched with its ``$edgeAgent`` and ``$edgeHub`` twins.

        The agent twin provides the module count, the module list and the
        runtime status; the hub twin provides the connected client count.
        """
        modules: List[EdgeModule] = []
        nb_modules = 0
        runtime_response = None
        if agent_twin is not None and agent_twin.device_id == twin.device_id:
            nb_modules = len(agent_twin.desired.get("modules") or {})
            modules = self._edge_modules(agent_twin)
            runtime_response = (
                (agent_twin.reported.get("systemModules") or {})
                .get("edgeAgent", {})
                .get("runtimeStatus")
            )

        nb_devices = 0
        if hub_twin is not None:
            nb_devices = len(hub_twin.reported.get("clients") or {})

        return EdgeDevice(
            id=twin.device_id,
            name=twin.tag(DEVICE_NAME_TAG) or twin.device_id,
            device_model_id=twin.tag(MODEL_ID_TAG) or "",
            version=twin.version,
            is_enabled=twin.is_enabled,
            layer_id=twin.tag(LAYER_ID_TAG),
            tags=self.tags_of(twin),
            connection_state=CONNECTED if twin.is_connected else DISCONNECTED,
            scope=twin.device_scope,
            nb_devices=nb_devices,
            nb_modules=nb_modules,
            runtime_response=runtime_response,
            modules=modules,
        )

    @staticmethod
    def _edge_modules(agent_twin: Twin) -> List[EdgeModule]:
        reported = agent_twin.reported.get("modules") or {}
        return [
            EdgeModule(
                name=name,
                status=module.get("runtimeStatus", module.get("status")),
                version=module.get("version"),
            )
            for name, module in reported.items()
            if isinstance(module, dict)
        ]
