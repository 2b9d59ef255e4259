"""Exclusive claiming of due jobs."""

import logging
from datetime import datetime, timedelta
from typing import Any, Callable

from tablecron.accessor import JobAccessor
from tablecron.models import JobField
from tablecron.stores.base import BaseJobStore

logger = logging.getLogger("tablecron.lock")


class LockAcquirer:
    """Find one due job and lock it inside a single store transaction.

    Locking moves the job's due time ``lock_duration`` seconds into the
    future. Concurrent schedulers issuing the same transaction never see
    the row as due until that lock expires, so the store's transaction
    isolation is the only mutual exclusion between instances.

    Args:
        store: Job store
        accessor: Field accessor for job records
        lock_duration: Seconds a claimed job stays locked
        clock: Callable returning the current time
    """

    def __init__(
        self,
        store: BaseJobStore,
        accessor: JobAccessor,
        lock_duration: float = 600.0,
        clock: Callable[[], datetime] = datetime.now,
    ):
        self.store = store
        self.accessor = accessor
        self.lock_duration = lock_duration
        self.clock = clock

    async def claim(self) -> Any | None:
        """Claim the next due job.

        Returns:
            Pre-lock snapshot of the claimed job, or None if nothing is due
        """
        now = self.clock()
        locked_until = now + timedelta(seconds=self.lock_duration)

        async with self.store.transaction() as tx:
            job = await tx.find_one_due(now)
            if job is None:
                return None

            job_id = self.accessor.get_id(job)
            await tx.update(job_id, {JobField.SLEEP_UNTIL: locked_until})

        logger.info(f"Claimed job {job_id}, locked until {locked_until.isoformat()}")
        return job
