"""Port guarding a job against overlapping runs of itself."""

from __future__ import annotations

from typing import AsyncContextManager, Protocol


class IJobLock(Protocol):
    """Named, non-blocking mutual exclusion between runs of the same job."""

    def hold(self, job_name: str) -> AsyncContextManager[bool]:
        """
        Try to take the lock of ``job_name`` for the duration of the block.

        The context yields False, without waiting, when another run already
        holds it. The lock is released on exit only if it was acquired.
        """
        ...
