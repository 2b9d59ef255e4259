"""Base interface for job stores."""

from abc import ABC, abstractmethod
from datetime import datetime
from typing import Any, AsyncContextManager, List

from tablecron.models import Job, JobField


class BaseJobTransaction(ABC):
    """Handle for operations inside one atomic store transaction."""

    @abstractmethod
    async def find_one_due(self, now: datetime) -> Any | None:
        """Find one job whose sleep_until is set and not after ``now``.

        Args:
            now: Current time

        Returns:
            Job record, or None if no job is due
        """
        pass

    @abstractmethod
    async def update(self, job_id: Any, values: dict[JobField, Any]) -> bool:
        """Update fields of a job within the transaction.

        Returns:
            True if a row was updated
        """
        pass

    @abstractmethod
    async def delete(self, job_id: Any) -> bool:
        """Delete a job within the transaction.

        Returns:
            True if a row was deleted
        """
        pass


class BaseJobStore(ABC):
    """Abstract base class for job stores.

    A store persists job rows and provides the atomic read-then-write
    transaction the lock protocol relies on. Two transactions opened
    concurrently (from this or another process) must never both find the
    same due row.
    """

    @abstractmethod
    def transaction(self) -> AsyncContextManager[BaseJobTransaction]:
        """Open an atomic transaction.

        Committed when the block exits normally, rolled back when it raises.

        Example:
            async with store.transaction() as tx:
                job = await tx.find_one_due(now)
        """
        pass

    @abstractmethod
    async def update(self, job_id: Any, values: dict[JobField, Any]) -> bool:
        """Update fields of a job outside any transaction.

        Args:
            job_id: ID of the job
            values: New values keyed by field

        Returns:
            True if updated, False if not found
        """
        pass

    @abstractmethod
    async def delete(self, job_id: Any) -> bool:
        """Delete a job outside any transaction.

        Args:
            job_id: ID of the job

        Returns:
            True if deleted, False if not found
        """
        pass

    @abstractmethod
    async def create(self, job: Job) -> None:
        """Insert a new job.

        Args:
            job: Job to store

        Raises:
            StoreError: If a job with the same ID already exists
        """
        pass

    @abstractmethod
    async def get(self, job_id: Any) -> Any | None:
        """Get a job by ID.

        Returns:
            Job if found, None otherwise
        """
        pass

    @abstractmethod
    async def list_all(self) -> List[Any]:
        """List all jobs."""
        pass

    @abstractmethod
    async def clear(self) -> int:
        """Delete all jobs.

        Returns:
            Number of jobs deleted
        """
        pass

    async def close(self) -> None:
        """Close connections and cleanup resources."""
        pass
