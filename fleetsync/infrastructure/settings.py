"""Infrastructure configuration for the store, the cloud endpoints and the jobs."""

from __future__ import annotations

from pydantic import AliasChoices, Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from fleetsync.shared.consts import EnumLockBackend
from fleetsync.shared.env import load_secret_file_variables  # noqa: F401


class DatabaseSettings(BaseSettings):
    """MongoDB configuration."""

    mongo_uri: str = Field(
        default="mongodb://localhost:27017/fleetsync",
        validation_alias=AliasChoices("DB_MONGO_URI", "MONGO_URI"),
        description="MongoDB connection URI",
    )
    database_name: str = Field(
        default="fleetsync",
        validation_alias=AliasChoices("DB_DATABASE_NAME", "DATABASE_NAME"),
        description="MongoDB database name",
    )
    use_transactions: bool = Field(
        default=True,
        validation_alias=AliasChoices("DB_USE_TRANSACTIONS"),
        description=(
            "Apply each job commit in one transaction (replica set required). "
            "Disable only for a standalone server."
        ),
    )

    model_config = SettingsConfigDict(case_sensitive=False, extra="ignore")


class IoTHubSettings(BaseSettings):
    """Azure IoT Hub registry access."""

    hostname: str = Field(
        default="localhost", description="IoT Hub host, e.g. my-hub.azure-devices.net"
    )
    shared_access_key_name: str = Field(
        default="registryRead", description="Shared access policy name"
    )
    shared_access_key: str = Field(
        default="", description="Base64 key of the shared access policy"
    )
    api_version: str = Field(default="2021-04-12", description="REST API version")
    page_size: int = Field(default=100, ge=1, description="Twins per registry page")
    excluded_device_type: str = Field(
        default="LoRa Concentrator",
        description="deviceType tag left out of the device synchronization",
    )
    timeout_seconds: float = Field(default=30.0, description="HTTP timeout")
    token_ttl_seconds: int = Field(
        default=3600, description="Lifetime of generated SAS tokens"
    )

    model_config = SettingsConfigDict(
        env_prefix="IOTHUB_", case_sensitive=False, extra="ignore"
    )


class LoRaWanSettings(BaseSettings):
    """LoRaWAN network server management function."""

    management_url: str = Field(
        default="http://localhost:7071", description="Management function base URL"
    )
    function_key: str = Field(default="", description="x-functions-key header value")
    timeout_seconds: float = Field(default=30.0, description="HTTP timeout")

    model_config = SettingsConfigDict(
        env_prefix="LORAWAN_", case_sensitive=False, extra="ignore"
    )


class JobSettings(BaseSettings):
    """Periodic job triggers and self-exclusion."""

    sync_devices_interval_minutes: int = Field(default=5, ge=1)
    sync_edge_devices_interval_minutes: int = Field(default=5, ge=1)
    send_commands_interval_minutes: int = Field(default=10, ge=1)
    planning_timezone: str = Field(
        default="Europe/Paris",
        description="IANA timezone in which planning windows are evaluated",
    )
    roster_page_size: int = Field(
        default=10000, ge=1, description="Devices considered when resolving plannings"
    )
    lock_backend: EnumLockBackend = Field(default=EnumLockBackend.REDIS)
    lock_redis_url: str = Field(default="redis://redis:6379/1")
    lock_ttl_seconds: int = Field(
        default=3600,
        ge=1,
        description=(
            "Expiry of a job lock left by a dead worker; a live run renews it "
            "every third of this period"
        ),
    )

    model_config = SettingsConfigDict(
        env_prefix="JOBS_", case_sensitive=False, extra="ignore"
    )


class InfrastructureSettings(BaseSettings):
    database: DatabaseSettings = Field(default_factory=DatabaseSettings)
    iot_hub: IoTHubSettings = Field(default_factory=IoTHubSettings)
    lorawan: LoRaWanSettings = Field(default_factory=LoRaWanSettings)
    jobs: JobSettings = Field(default_factory=JobSettings)

    model_config = SettingsConfigDict(
        env_file=".env",
        env_nested_delimiter="__",
        case_sensitive=False,
        extra="ignore",
    )


_settings: InfrastructureSettings | None = None


def get_settings() -> InfrastructureSettings:
    """Lazy-load infrastructure settings for Celery workers."""
    global _settings
    if _settings is None:
        _settings = InfrastructureSettings()
    return _settings
