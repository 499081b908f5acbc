"""
Dependency container injection module - Main Layer

This module implements the dependency injection container
used by the HTTP entry point.
"""

from contextlib import asynccontextmanager

from dependency_injector import containers, providers

from fleetsync.application.models import SystemInfo
from fleetsync.application.use_cases.health_use_cases import (
    GetApplicationInfoUseCase,
    GetHealthStatusUseCase,
)
from fleetsync.infrastructure.database import MongoDatabase
from fleetsync.infrastructure.gateways.iot_hub_gateway import IoTHubGateway
from fleetsync.infrastructure.services.health_check_service import HealthCheckService
from fleetsync.shared import get_logger

from .config import AppSettings

logger = get_logger(__name__)


def _enum_value(value):
    return value.value if hasattr(value, "value") else str(value)


class AppContainer(containers.DeclarativeContainer):
    """Composition Root using dependency-injector."""

    wiring_config = containers.WiringConfiguration(
        packages=["..presentation", "..application"]
    )

    config = providers.Configuration()

    # Infrastructure
    mongo_database = providers.Singleton(
        MongoDatabase,
        mongo_uri=config.database.mongo_uri,
        db_name=config.database.database_name,
    )

    iot_hub_gateway = providers.Singleton(
        IoTHubGateway,
        hostname=config.iot_hub.hostname,
        shared_access_key_name=config.iot_hub.shared_access_key_name,
        shared_access_key=config.iot_hub.shared_access_key,
        api_version=config.iot_hub.api_version,
        timeout=config.iot_hub.timeout_seconds,
        token_ttl_seconds=config.iot_hub.token_ttl_seconds,
    )

    health_check_service = providers.Singleton(
        HealthCheckService,
        mongo_database=mongo_database,
        broker_url=config.celery.broker_url,
        redis_url=config.celery.result_backend_url,
        iot_hub_gateway=iot_hub_gateway,
        lorawan_management_url=config.lorawan.management_url,
    )

    system_info = providers.Singleton(
        SystemInfo,
        title=config.app.title,
        description=config.app.description,
        version=config.app.version,
        environment=providers.Callable(_enum_value, config.environment),
        git_commit=config.app.git_commit,
        build_time=config.app.build_time,
        celery_broker_url=config.celery.broker_url,
        celery_result_backend_url=config.celery.result_backend_url,
        iot_hub_hostname=config.iot_hub.hostname,
        lorawan_management_url=config.lorawan.management_url,
        planning_timezone=config.jobs.planning_timezone,
        job_intervals_minutes=providers.Dict(
            sync_devices=config.jobs.sync_devices_interval_minutes,
            sync_edge_devices=config.jobs.sync_edge_devices_interval_minutes,
            send_planning_commands=config.jobs.send_commands_interval_minutes,
        ),
    )

    # Application (use cases)
    get_health_status_use_case = providers.Factory(
        GetHealthStatusUseCase,
        health_check_service=health_check_service,
    )

    get_application_info_use_case = providers.Factory(
        GetApplicationInfoUseCase,
        health_check_service=health_check_service,
        system_info=system_info,
    )


# -------------------------
# Global Container Instance
# -------------------------
_app_container: AppContainer | None = None


def init_container(settings: AppSettings) -> AppContainer:
    """Initialize global container with application settings."""

    global _app_container

    container = AppContainer()
    container.config.from_pydantic(settings)
    _app_container = container
    return container


def get_container() -> AppContainer:
    """Get the initialized global container."""

    if _app_container is None:
        raise RuntimeError("Container has not been initialized yet")

    return _app_container


@asynccontextmanager
async def app_lifespan():
    """
    Lifecycle of the external resources held by the container.

    Creates the MongoDB indexes on startup and closes the client on shutdown.
    """
    container = get_container()
    mongo_database = container.mongo_database()

    try:
        logger.info("container.mongo.ensure_connection")
        await mongo_database.create_indexes()
        logger.info("container.resources.initialized")
        yield container
    finally:
        logger.info("container.mongo.close")
        mongo_database.close()
        logger.info("container.resources.shutdown")
