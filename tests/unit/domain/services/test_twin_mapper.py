from __future__ import annotations

from fleetsync.domain.entities.device import ClassType, DeduplicationMode, LorawanDevice
from fleetsync.domain.entities.twin import Twin
from fleetsync.domain.services.twin_mapper import (
    TwinMapper,
    parse_bool,
    parse_enum,
    parse_int,
)


def _twin(**kwargs) -> Twin:
    kwargs.setdefault("tags", {"modelId": "m1", "deviceName": "Pump 1"})
    return Twin(device_id="dev-1", version=3, status="enabled", **kwargs)


def test_to_device_maps_identity_and_excludes_reserved_tags() -> None:
    twin = _twin(
        tags={
            "modelId": "m1",
            "deviceName": "Pump 1",
            "layerId": "layer-9",
            "site": "north",
            "floor": 2,
        },
        connection_state="Connected",
    )

    device = TwinMapper().to_device(twin)

    assert device.id == "dev-1"
    assert device.name == "Pump 1"
    assert device.device_model_id == "m1"
    assert device.version == 3
    assert device.is_enabled is True
    assert device.is_connected is True
    assert device.layer_id == "layer-9"
    assert device.tag_set() == {("site", "north"), ("floor", "2")}


def test_to_device_falls_back_to_device_id_for_name() -> None:
    device = TwinMapper().to_device(_twin(tags={"modelId": "m1"}))

    assert device.name == "dev-1"
    assert device.layer_id is None


def test_lorawan_patch_only_contains_present_keys() -> None:
    twin = _twin(desired={"AppEUI": "0011", "ClassType": "C"}, reported={})

    patch = TwinMapper().lorawan_patch(twin)

    assert "app_eui" in patch.values
    assert "class_type" in patch.values
    assert "use_otaa" in patch.values
    assert "app_key" not in patch.values
    assert "dev_addr" not in patch.values
    assert len(patch.values) == 3


def test_lorawan_patch_application_preserves_absent_fields() -> None:
    device = LorawanDevice(id="dev-1", app_key="KEEP", rx_delay=5)
    twin = _twin(desired={"AppEUI": "0011"})

    TwinMapper().lorawan_patch(twin).apply_to(device)

    assert device.app_eui == "0011"
    assert device.use_otaa is True
    assert device.app_key == "KEEP"
    assert device.rx_delay == 5


def test_to_lorawan_device_converts_property_types() -> None:
    twin = _twin(
        desired={
            "ClassType": "B",
            "Deduplication": "Drop",
            "RXDelay": "2",
            "ABPRelaxMode": "true",
            "Downlink": False,
            "PreferredWindow": 2,
        },
        reported={"DevAddr": "26011B2C", "DataRate": 5, "GatewayID": "gw-1"},
    )

    device, patch = TwinMapper().to_lorawan_device(twin)

    assert device.class_type is ClassType.B
    assert device.deduplication is DeduplicationMode.DROP
    assert device.rx_delay == 2
    assert device.abp_relax_mode is True
    assert device.downlink is False
    assert device.preferred_window == 2
    assert device.already_logged_in_once is True
    assert device.data_rate == "5"
    assert device.gateway_id == "gw-1"
    assert device.use_otaa is False
    assert "use_otaa" not in patch.values


def test_parsers_fall_back_on_bad_values() -> None:
    assert parse_int("abc") is None
    assert parse_int(True) is None
    assert parse_int(" 7 ") == 7
    assert parse_bool("yes") is None
    assert parse_bool("False") is False
    assert parse_enum(ClassType, "Z", ClassType.A) is ClassType.A
    assert parse_enum(ClassType, 2, ClassType.A) is ClassType.C
    assert parse_enum(DeduplicationMode, "MARK", DeduplicationMode.NONE) is (
        DeduplicationMode.MARK
    )


def test_to_edge_device_uses_module_twins() -> None:
    twin = _twin(connection_state="Connected", device_scope="scope-1")
    agent = Twin(
        device_id="dev-1",
        module_id="$edgeAgent",
        desired={"modules": {"sensor": {}, "filter": {}}},
        reported={
            "systemModules": {"edgeAgent": {"runtimeStatus": "running"}},
            "modules": {
                "sensor": {"runtimeStatus": "running", "version": "1.0"},
                "filter": {"runtimeStatus": "stopped"},
            },
        },
    )
    hub = Twin(
        device_id="dev-1",
        module_id="$edgeHub",
        reported={"clients": {"dev-1/sensor": {}, "leaf-1": {}, "leaf-2": {}}},
    )

    device = TwinMapper().to_edge_device(twin, agent, hub)

    assert device.connection_state == "Connected"
    assert device.scope == "scope-1"
    assert device.nb_modules == 2
    assert device.nb_devices == 3
    assert device.runtime_response == "running"
    assert {m.name for m in device.modules} == {"sensor", "filter"}


def test_to_edge_device_without_module_twins() -> None:
    device = TwinMapper().to_edge_device(_twin())

    assert device.nb_modules == 0
    assert device.nb_devices == 0
    assert device.runtime_response is None
    assert device.modules == []
    assert device.connection_state == "Disconnected"
