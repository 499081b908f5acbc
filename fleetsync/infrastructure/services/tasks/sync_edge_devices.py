"""Celery task running the edge device synchronization."""

import asyncio
from typing import Any, Dict

from fleetsync.infrastructure.services.celery_config import (
    SYNC_EDGE_DEVICES_TASK,
    celery_app,
)
from fleetsync.infrastructure.services.tasks.base import (
    CallbackTask,
    build_database,
    build_iot_hub_gateway,
    build_job_lock,
)


@celery_app.task(bind=True, base=CallbackTask, name=SYNC_EDGE_DEVICES_TASK)
def sync_edge_devices(self) -> Dict[str, Any]:
    from fleetsync.application.use_cases.sync_edge_devices_use_case import (
        SyncEdgeDevicesJob,
    )
    from fleetsync.infrastructure.repositories import (
        DeviceTagValueRepository,
        EdgeDeviceModelRepository,
        EdgeDeviceRepository,
        MongoUnitOfWork,
    )
    from fleetsync.infrastructure.settings import get_settings

    settings = get_settings()
    database = build_database(settings)
    try:
        unit_of_work = MongoUnitOfWork(
            database, use_transactions=settings.database.use_transactions
        )
        tag_repository = DeviceTagValueRepository(database, unit_of_work)
        job = SyncEdgeDevicesJob(
            twin_registry_gateway=build_iot_hub_gateway(settings),
            edge_device_repository=EdgeDeviceRepository(
                database, unit_of_work, tag_repository
            ),
            device_tag_value_repository=tag_repository,
            edge_device_model_repository=EdgeDeviceModelRepository(database),
            unit_of_work=unit_of_work,
            job_lock=build_job_lock(settings),
            page_size=settings.iot_hub.page_size,
        )
        result = asyncio.run(job.execute(is_cancelled=self.is_revoked))
    finally:
        database.close()
    return result.to_dict()
