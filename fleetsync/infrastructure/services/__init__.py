"""Infrastructure services: health checks, job locks and the Celery worker."""

from .health_check_service import HealthCheckService
from .job_lock import InProcessJobLock, RedisJobLock

__all__ = ["HealthCheckService", "InProcessJobLock", "RedisJobLock"]
