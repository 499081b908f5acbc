"""Unit of work buffering the writes of a job run until commit."""

from __future__ import annotations

from typing import List

from pymongo.errors import PyMongoError

from fleetsync.domain.entities.errors import RepositoryOperationError
from fleetsync.domain.repositories.unit_of_work import IUnitOfWork
from fleetsync.infrastructure.database import MongoDatabase, WriteOperation
from fleetsync.shared import get_logger

logger = get_logger(__name__)


class MongoUnitOfWork(IUnitOfWork):
    """
    Collects the writes of the repositories sharing it.

    Nothing reaches MongoDB before ``commit``; writes still pending when the
    run fails are dropped by ``rollback``. Without a transaction a failed
    commit can be partially applied, so callers register child rows before
    the row carrying the version they are gated on.
    """

    def __init__(self, database: MongoDatabase, use_transactions: bool = True):
        self._database = database
        self._use_transactions = use_transactions
        self._pending: List[WriteOperation] = []

    @property
    def pending_count(self) -> int:
        return len(self._pending)

    def register(self, write: WriteOperation) -> None:
        self._pending.append(write)

    async def commit(self) -> None:
        if not self._pending:
            logger.debug("unit_of_work.commit.empty")
            return
        writes, self._pending = self._pending, []
        try:
            await self._database.apply_writes(
                writes, use_transaction=self._use_transactions
            )
        except PyMongoError as exc:
            logger.error(
                "unit_of_work.commit.failed",
                writes=len(writes),
                error=str(exc),
                exc_info=exc,
            )
            raise RepositoryOperationError(
                f"Failed to commit {len(writes)} writes: {exc}"
            ) from exc
        logger.info("unit_of_work.committed", writes=len(writes))

    def rollback(self) -> None:
        if self._pending:
            logger.warning("unit_of_work.rolled_back", writes=len(self._pending))
        self._pending = []
