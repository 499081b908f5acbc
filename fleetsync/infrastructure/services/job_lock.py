"""Job self-exclusion locks."""

from __future__ import annotations

import asyncio
import threading
from contextlib import asynccontextmanager, suppress
from typing import AsyncIterator, Dict, Optional

import redis.asyncio as aioredis
from redis.exceptions import LockError

from fleetsync.shared import get_logger

logger = get_logger(__name__)


class RedisJobLock:
    """
    Lock shared by every worker process connected to the same Redis.

    The key expires after ``ttl_seconds`` so that a crashed worker cannot
    block a job forever. While the lock is held its TTL is reset every
    ``renew_interval`` seconds, a third of the TTL by default.
    """

    def __init__(
        self,
        redis_url: str,
        ttl_seconds: int = 3600,
        key_prefix: str = "fleetsync:job-lock:",
        renew_interval: Optional[float] = None,
    ):
        self._redis_url = redis_url
        self._ttl_seconds = ttl_seconds
        self._key_prefix = key_prefix
        self._renew_interval = renew_interval or ttl_seconds / 3

    async def _keep_alive(self, lock, job_name: str) -> None:
        while True:
            await asyncio.sleep(self._renew_interval)
            try:
                await lock.reacquire()
            except LockError as exc:
                logger.warning("job_lock.renew_failed", job=job_name, error=str(exc))
                return

    @asynccontextmanager
    async def hold(self, job_name: str) -> AsyncIterator[bool]:
        client = aioredis.from_url(self._redis_url)
        lock = client.lock(f"{self._key_prefix}{job_name}", timeout=self._ttl_seconds)
        acquired = False
        renewer: Optional[asyncio.Task] = None
        try:
            acquired = bool(await lock.acquire(blocking=False))
            if acquired:
                renewer = asyncio.create_task(self._keep_alive(lock, job_name))
            yield acquired
        finally:
            if renewer is not None:
                renewer.cancel()
                with suppress(asyncio.CancelledError):
                    await renewer
            if acquired:
                try:
                    await lock.release()
                except LockError as exc:
                    logger.warning(
                        "job_lock.release_failed", job=job_name, error=str(exc)
                    )
            await client.aclose()


class InProcessJobLock:
    """Lock shared by the runs of a single process."""

    def __init__(self) -> None:
        self._locks: Dict[str, threading.Lock] = {}
        self._registry_lock = threading.Lock()

    def _lock_for(self, job_name: str) -> threading.Lock:
        with self._registry_lock:
            return self._locks.setdefault(job_name, threading.Lock())

    @asynccontextmanager
    async def hold(self, job_name: str) -> AsyncIterator[bool]:
        lock = self._lock_for(job_name)
        acquired = lock.acquire(blocking=False)
        try:
            yield acquired
        finally:
            if acquired:
                lock.release()
