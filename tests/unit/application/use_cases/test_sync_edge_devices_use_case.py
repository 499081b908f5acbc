from __future__ import annotations

import pytest

from fleetsync.application.use_cases.sync_edge_devices_use_case import (
    SyncEdgeDevicesJob,
)
from fleetsync.domain.entities.errors import RepositoryOperationError
from fleetsync.domain.entities.twin import Twin
from fleetsync.infrastructure.database.mongo_database import (
    DEVICE_TAG_VALUES,
    EDGE_DEVICE_MODELS,
    EDGE_DEVICES,
)
from fleetsync.infrastructure.repositories import (
    DeviceTagValueRepository,
    EdgeDeviceModelRepository,
    EdgeDeviceRepository,
    MongoUnitOfWork,
)
from tests.conftest import (
    FakeJobLock,
    FakeMongoDatabase,
    FakeTwinRegistryGateway,
    make_twin,
    single_page,
)


def _build_job(database: FakeMongoDatabase, gateway: FakeTwinRegistryGateway):
    unit_of_work = MongoUnitOfWork(database)
    tags = DeviceTagValueRepository(database, unit_of_work)
    return SyncEdgeDevicesJob(
        twin_registry_gateway=gateway,
        edge_device_repository=EdgeDeviceRepository(database, unit_of_work, tags),
        device_tag_value_repository=tags,
        edge_device_model_repository=EdgeDeviceModelRepository(database),
        unit_of_work=unit_of_work,
        job_lock=FakeJobLock(),
    )


@pytest.fixture()
def database(fake_mongo_database: FakeMongoDatabase) -> FakeMongoDatabase:
    fake_mongo_database.seed(EDGE_DEVICE_MODELS, {"id": "m1", "name": "Gateway"})
    return fake_mongo_database


def _agent(device_id: str) -> Twin:
    return Twin(
        device_id=device_id,
        module_id="$edgeAgent",
        desired={"modules": {"sensor": {}}},
        reported={
            "systemModules": {"edgeAgent": {"runtimeStatus": "running"}},
            "modules": {"sensor": {"runtimeStatus": "running", "version": "1.2"}},
        },
    )


@pytest.mark.asyncio
async def test_edge_twin_is_inserted_with_module_data(database) -> None:
    gateway = FakeTwinRegistryGateway(
        single_page(make_twin("edge-1", version=3, tags={"site": "north"})),
        modules={
            ("edge-1", "$edgeAgent"): _agent("edge-1"),
            ("edge-1", "$edgeHub"): Twin(
                device_id="edge-1", reported={"clients": {"a": {}, "b": {}}}
            ),
        },
    )

    report = await _build_job(database, gateway).sync_edge_devices()

    [stored] = database.documents(EDGE_DEVICES)
    assert stored["version"] == 3
    assert stored["nb_modules"] == 1
    assert stored["nb_devices"] == 2
    assert stored["runtime_response"] == "running"
    assert stored["modules"] == [
        {"name": "sensor", "status": "running", "version": "1.2"}
    ]
    assert [row["name"] for row in database.documents(DEVICE_TAG_VALUES)] == ["site"]
    assert report.inserted == 1


@pytest.mark.asyncio
async def test_enrichment_failure_skips_only_that_device(database) -> None:
    gateway = FakeTwinRegistryGateway(
        single_page(make_twin("edge-1"), make_twin("edge-2")),
        failing_devices=["edge-1"],
    )

    report = await _build_job(database, gateway).sync_edge_devices()

    assert [d["id"] for d in database.documents(EDGE_DEVICES)] == ["edge-2"]
    assert report.skipped == 1
    assert report.inserted == 1


@pytest.mark.asyncio
async def test_newer_edge_twin_replaces_stored_fields(database) -> None:
    database.seed(
        EDGE_DEVICES,
        {"id": "edge-1", "name": "old", "version": 1, "nb_modules": 5, "modules": []},
    )
    gateway = FakeTwinRegistryGateway(
        single_page(make_twin("edge-1", version=2, tags={"deviceName": "new"})),
    )

    report = await _build_job(database, gateway).sync_edge_devices()

    [stored] = database.documents(EDGE_DEVICES)
    assert stored["name"] == "new"
    assert stored["version"] == 2
    assert stored["nb_modules"] == 0
    assert report.updated == 1


@pytest.mark.asyncio
async def test_stale_edge_twin_is_ignored(database) -> None:
    database.seed(EDGE_DEVICES, {"id": "edge-1", "name": "kept", "version": 5})
    gateway = FakeTwinRegistryGateway(
        single_page(make_twin("edge-1", version=4, tags={"deviceName": "new"})),
    )

    report = await _build_job(database, gateway).sync_edge_devices()

    assert database.documents(EDGE_DEVICES)[0]["name"] == "kept"
    assert database.applied == []
    assert report.unchanged == 1


@pytest.mark.asyncio
async def test_missing_edge_devices_are_deleted(database) -> None:
    database.seed(EDGE_DEVICES, {"id": "gone", "version": 1})
    gateway = FakeTwinRegistryGateway(single_page(make_twin("edge-1")))

    report = await _build_job(database, gateway).sync_edge_devices()

    assert [d["id"] for d in database.documents(EDGE_DEVICES)] == ["edge-1"]
    assert report.deleted == 1


@pytest.mark.asyncio
async def test_unknown_edge_model_is_skipped(database) -> None:
    gateway = FakeTwinRegistryGateway(single_page(make_twin("edge-1", model_id="x")))

    report = await _build_job(database, gateway).sync_edge_devices()

    assert database.documents(EDGE_DEVICES) == []
    assert report.skipped == 1


@pytest.mark.asyncio
async def test_failed_tag_write_leaves_new_edge_device_for_next_run(database) -> None:
    twin = make_twin("edge-1", version=2, tags={"site": "north"})
    gateway = FakeTwinRegistryGateway(
        single_page(twin), modules={("edge-1", "$edgeAgent"): _agent("edge-1")}
    )
    database.fail_writes_on = DEVICE_TAG_VALUES

    with pytest.raises(RepositoryOperationError):
        await _build_job(database, gateway).sync_edge_devices()

    assert database.documents(EDGE_DEVICES) == []

    database.fail_writes_on = None
    report = await _build_job(database, gateway).sync_edge_devices()

    assert report.inserted == 1
    assert database.documents(EDGE_DEVICES)[0]["version"] == 2
    assert len(database.documents(DEVICE_TAG_VALUES)) == 1
