"""Shared Celery infrastructure components."""

from __future__ import annotations

from zoneinfo import ZoneInfo

from celery import Task
from celery.worker import state as worker_state

from fleetsync.domain.ports.job_lock import IJobLock
from fleetsync.infrastructure.database.mongo_database import MongoDatabase
from fleetsync.infrastructure.gateways.iot_hub_gateway import IoTHubGateway
from fleetsync.infrastructure.gateways.lorawan_command_gateway import (
    LoRaWanCommandGateway,
)
from fleetsync.infrastructure.repositories import DeviceModelCommandRepository
from fleetsync.infrastructure.services.job_lock import InProcessJobLock, RedisJobLock
from fleetsync.infrastructure.settings import InfrastructureSettings
from fleetsync.shared import EnumLockBackend, get_logger

logger = get_logger(__name__)

# One per worker process; only meaningful with a single worker.
_in_process_lock = InProcessJobLock()


class CallbackTask(Task):
    """Base task class that centralizes logging behaviour."""

    def is_revoked(self) -> bool:
        task_id = self.request.id
        return task_id is not None and task_id in worker_state.revoked

    def on_success(self, retval, task_id, args, kwargs):
        logger.info("task.succeeded", task=self.name, task_id=task_id, result=retval)

    def on_failure(self, exc, task_id, args, kwargs, einfo):
        logger.error(
            "task.failed",
            task=self.name,
            task_id=task_id,
            error=str(exc),
            traceback=einfo.traceback,
            exc_info=exc,
        )


def build_database(settings: InfrastructureSettings) -> MongoDatabase:
    return MongoDatabase(
        mongo_uri=settings.database.mongo_uri,
        db_name=settings.database.database_name,
    )


def build_job_lock(settings: InfrastructureSettings) -> IJobLock:
    if settings.jobs.lock_backend == EnumLockBackend.LOCAL:
        return _in_process_lock
    return RedisJobLock(
        redis_url=settings.jobs.lock_redis_url,
        ttl_seconds=settings.jobs.lock_ttl_seconds,
    )


def build_iot_hub_gateway(settings: InfrastructureSettings) -> IoTHubGateway:
    return IoTHubGateway(
        hostname=settings.iot_hub.hostname,
        shared_access_key_name=settings.iot_hub.shared_access_key_name,
        shared_access_key=settings.iot_hub.shared_access_key,
        api_version=settings.iot_hub.api_version,
        timeout=settings.iot_hub.timeout_seconds,
        token_ttl_seconds=settings.iot_hub.token_ttl_seconds,
    )


def build_command_gateway(
    settings: InfrastructureSettings, database: MongoDatabase
) -> LoRaWanCommandGateway:
    return LoRaWanCommandGateway(
        management_url=settings.lorawan.management_url,
        function_key=settings.lorawan.function_key,
        command_repository=DeviceModelCommandRepository(database),
        timeout=settings.lorawan.timeout_seconds,
    )


def planning_timezone(settings: InfrastructureSettings) -> ZoneInfo:
    return ZoneInfo(settings.jobs.planning_timezone)
