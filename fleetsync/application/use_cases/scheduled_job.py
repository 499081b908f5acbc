"""Common entry point of the periodic jobs."""

from __future__ import annotations

from abc import ABC, abstractmethod
from datetime import datetime, timezone
from typing import Any, Callable, Dict, Optional

from fleetsync.domain.entities.job import JobRunResult, JobStatus
from fleetsync.domain.ports.job_lock import IJobLock
from fleetsync.shared import get_logger

logger = get_logger(__name__)


class ScheduledJob(ABC):
    """
    Base class of the jobs triggered by the scheduler.

    ``execute`` never raises. An overlapping trigger is skipped and any
    error escaping ``run`` is reported as a failed result; the next trigger
    is the retry. Cancellation is only looked at before the run starts.
    """

    name: str = "scheduled_job"

    def __init__(self, job_lock: IJobLock):
        self._job_lock = job_lock

    @abstractmethod
    async def run(self) -> Optional[Dict[str, Any]]:
        """Do the work of one run and return details for the result."""
        pass

    async def execute(
        self, is_cancelled: Optional[Callable[[], bool]] = None
    ) -> JobRunResult:
        result = JobRunResult(job_name=self.name, status=JobStatus.COMPLETED)
        if is_cancelled is not None and is_cancelled():
            logger.info(f"{self.name}.cancelled")
            result.status = JobStatus.CANCELLED
            result.finished_at = datetime.now(timezone.utc)
            return result
        try:
            async with self._job_lock.hold(self.name) as acquired:
                if not acquired:
                    logger.warning(f"{self.name}.skipped_already_running")
                    result.status = JobStatus.SKIPPED
                else:
                    logger.info(f"{self.name}.started")
                    result.details = await self.run() or {}
                    logger.info(f"{self.name}.completed", **result.details)
        except Exception as exc:
            logger.error(f"{self.name}.failed", error=str(exc), exc_info=exc)
            result.status = JobStatus.FAILED
            result.error = str(exc)
        result.finished_at = datetime.now(timezone.utc)
        return result
