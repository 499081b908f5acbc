from .health_check import IHealthCheckService
from .job_lock import IJobLock

__all__ = ["IHealthCheckService", "IJobLock"]
