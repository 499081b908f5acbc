from __future__ import annotations

from datetime import datetime, timezone

import pytest

from fleetsync.domain.entities.device import (
    ClassType,
    DeduplicationMode,
    Device,
    DeviceTagValue,
    EdgeDevice,
    EdgeModule,
    LorawanDevice,
)
from fleetsync.domain.entities.errors import RepositoryOperationError
from fleetsync.infrastructure.database.mongo_database import (
    DEVICE_TAG_VALUES,
    DEVICES,
    LORAWAN_DEVICES,
)
from fleetsync.infrastructure.repositories import (
    DeviceRepository,
    DeviceTagValueRepository,
    EdgeDeviceRepository,
    LorawanDeviceRepository,
    MongoUnitOfWork,
)


@pytest.fixture()
def unit_of_work(fake_mongo_database) -> MongoUnitOfWork:
    return MongoUnitOfWork(fake_mongo_database)


@pytest.fixture()
def tags(fake_mongo_database, unit_of_work) -> DeviceTagValueRepository:
    return DeviceTagValueRepository(fake_mongo_database, unit_of_work)


@pytest.mark.asyncio
async def test_device_round_trip_with_tags(fake_mongo_database, unit_of_work, tags):
    repository = DeviceRepository(fake_mongo_database, unit_of_work, tags)
    device = Device(
        id="dev-1",
        name="Pump",
        version=2,
        is_connected=True,
        last_activity_time=datetime(2024, 1, 1, tzinfo=timezone.utc),
        tags=[DeviceTagValue(name="site", value="north")],
    )

    await repository.insert(device)
    await tags.replace_for_device(device.id, device.tags)
    await unit_of_work.commit()
    loaded = await repository.get_by_id("dev-1", include_tags=True)

    assert loaded == device
    assert "tags" not in fake_mongo_database.documents(DEVICES)[0]


@pytest.mark.asyncio
async def test_get_by_id_without_tags(fake_mongo_database, unit_of_work, tags):
    fake_mongo_database.seed(DEVICES, {"id": "dev-1", "version": 1})
    fake_mongo_database.seed(
        DEVICE_TAG_VALUES, {"id": "t", "device_id": "dev-1", "name": "a", "value": "b"}
    )
    repository = DeviceRepository(fake_mongo_database, unit_of_work, tags)

    loaded = await repository.get_by_id("dev-1")

    assert loaded.tags == []
    assert await repository.get_by_id("missing") is None


@pytest.mark.asyncio
async def test_replace_for_device_swaps_the_whole_tag_set(
    fake_mongo_database, unit_of_work, tags
):
    fake_mongo_database.seed(
        DEVICE_TAG_VALUES,
        {"id": "t1", "device_id": "dev-1", "name": "a", "value": "1"},
        {"id": "t2", "device_id": "dev-2", "name": "a", "value": "1"},
    )

    await tags.replace_for_device("dev-1", [DeviceTagValue(name="b", value="2")])
    await unit_of_work.commit()

    assert {(t.name, t.value) for t in await tags.get_for_device("dev-1")} == {
        ("b", "2")
    }
    assert len(await tags.get_for_device("dev-2")) == 1


@pytest.mark.asyncio
async def test_lorawan_enums_are_stored_as_values(
    fake_mongo_database, unit_of_work, tags
):
    repository = LorawanDeviceRepository(fake_mongo_database, unit_of_work, tags)
    device = LorawanDevice(
        id="lora-1",
        class_type=ClassType.C,
        deduplication=DeduplicationMode.MARK,
        app_eui="0011",
    )

    await repository.insert(device)
    await unit_of_work.commit()

    [stored] = fake_mongo_database.documents(LORAWAN_DEVICES)
    assert stored["class_type"] == "C"
    assert stored["deduplication"] == "Mark"
    assert await repository.get_by_id("lora-1") == device


@pytest.mark.asyncio
async def test_edge_device_modules_round_trip(fake_mongo_database, unit_of_work, tags):
    repository = EdgeDeviceRepository(fake_mongo_database, unit_of_work, tags)
    device = EdgeDevice(
        id="edge-1",
        nb_modules=1,
        modules=[EdgeModule(name="sensor", status="running", version="1.0")],
    )

    await repository.insert(device)
    await unit_of_work.commit()

    assert await repository.get_by_id("edge-1") == device


@pytest.mark.asyncio
async def test_delete_removes_device_and_tags(fake_mongo_database, unit_of_work, tags):
    fake_mongo_database.seed(DEVICES, {"id": "dev-1"}, {"id": "dev-2"})
    fake_mongo_database.seed(
        DEVICE_TAG_VALUES, {"id": "t", "device_id": "dev-1", "name": "a", "value": "b"}
    )
    repository = DeviceRepository(fake_mongo_database, unit_of_work, tags)

    await repository.delete("dev-1")
    await unit_of_work.commit()

    assert [d.id for d in await repository.get_all()] == ["dev-2"]
    assert fake_mongo_database.documents(DEVICE_TAG_VALUES) == []


@pytest.mark.asyncio
async def test_list_roster_reads_plain_then_lorawan_devices(
    fake_mongo_database, unit_of_work, tags
):
    fake_mongo_database.seed(
        DEVICES,
        {"id": "d2", "name": "beta", "layer_id": "L1"},
        {"id": "d1", "name": "alpha"},
    )
    fake_mongo_database.seed(LORAWAN_DEVICES, {"id": "l1", "name": "aaa"})
    repository = DeviceRepository(fake_mongo_database, unit_of_work, tags)

    roster = await repository.list_roster(page_size=10)
    capped = await repository.list_roster(page_size=1)

    assert [item.device_id for item in roster] == ["d1", "d2", "l1"]
    assert roster[1].layer_id == "L1"
    assert [item.device_id for item in capped] == ["d1"]


@pytest.mark.asyncio
async def test_read_failures_become_repository_errors(
    fake_mongo_database, unit_of_work, tags
):
    fake_mongo_database.fail_reads = True
    repository = DeviceRepository(fake_mongo_database, unit_of_work, tags)

    with pytest.raises(RepositoryOperationError):
        await repository.get_all()
    with pytest.raises(RepositoryOperationError):
        await tags.get_for_device("dev-1")
