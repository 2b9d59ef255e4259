"""Post-processing disposition of claimed jobs."""

import logging
from enum import Enum
from typing import Any

from tablecron.accessor import JobAccessor
from tablecron.interval import IntervalCalculator
from tablecron.models import JobField
from tablecron.stores.base import BaseJobStore

logger = logging.getLogger("tablecron.rescheduler")


class Disposition(Enum):
    """What happened to a job after processing."""
    RESCHEDULED = "rescheduled"
    EXPIRED = "expired"
    REMOVED = "removed"


class Rescheduler:
    """Re-arm, expire or delete a processed job.

    Runs after the claim transaction has committed, so every outcome is a
    direct update or delete by id.
    """

    def __init__(
        self,
        store: BaseJobStore,
        accessor: JobAccessor,
        calculator: IntervalCalculator,
    ):
        self.store = store
        self.accessor = accessor
        self.calculator = calculator

    async def reschedule(self, job: Any) -> Disposition:
        """Finalize a processed job.

        Args:
            job: Pre-lock snapshot of the processed job

        Returns:
            The applied disposition
        """
        job_id = self.accessor.get_id(job)
        next_start = self.calculator.next_start(job)

        if next_start is None and self.accessor.get_auto_remove(job):
            await self.store.delete(job_id)
            logger.debug(f"Job {job_id} removed")
            return Disposition.REMOVED

        if next_start is None:
            await self.store.update(job_id, {JobField.SLEEP_UNTIL: None})
            logger.debug(f"Job {job_id} expired")
            return Disposition.EXPIRED

        await self.store.update(job_id, {JobField.SLEEP_UNTIL: next_start})
        logger.debug(f"Job {job_id} rescheduled for {next_start.isoformat()}")
        return Disposition.RESCHEDULED
