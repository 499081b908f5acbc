"""Unit of work shared by the repositories of a single job run."""

from abc import ABC, abstractmethod


class IUnitOfWork(ABC):
    @abstractmethod
    async def commit(self) -> None:
        """Persist every write registered since the last commit."""
        pass

    @abstractmethod
    def rollback(self) -> None:
        """Discard every write registered since the last commit."""
        pass

    @property
    @abstractmethod
    def pending_count(self) -> int:
        """Number of buffered writes."""
        pass
