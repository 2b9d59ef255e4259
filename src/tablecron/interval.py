"""Next due time calculation for recurring jobs."""

import logging
from datetime import datetime, timedelta
from typing import Any, Callable

from tablecron.accessor import JobAccessor
from tablecron.cron import CronExpression

logger = logging.getLogger("tablecron.interval")


class IntervalCalculator:
    """Compute when a processed job becomes due again.

    Args:
        accessor: Field accessor for job records
        reprocess_delay: Seconds added to the previous due time before
            looking for the next occurrence
        clock: Callable returning the current time
    """

    def __init__(
        self,
        accessor: JobAccessor,
        reprocess_delay: float = 0.0,
        clock: Callable[[], datetime] = datetime.now,
    ):
        self.accessor = accessor
        self.reprocess_delay = reprocess_delay
        self.clock = clock

    def next_start(self, job: Any) -> datetime | None:
        """Return the next due time of ``job``, or None if it has expired.

        ``job`` must be the pre-lock snapshot: its due time is the real
        previous occurrence, not the lock value. An occurrence already in
        the past is clamped to now so an overdue recurring job runs once
        instead of replaying every missed occurrence.

        Args:
            job: Job record as returned by the lock acquirer

        Returns:
            Next due datetime, or None for one-shot and exhausted jobs
        """
        interval = self.accessor.get_interval(job)
        if not interval:
            return None

        now = self.clock()
        available = self.accessor.get_sleep_until(job) or now
        after = available + timedelta(seconds=self.reprocess_delay)

        try:
            next_run = CronExpression(interval).next_run(
                after, end=self.accessor.get_repeat_until(job)
            )
        except ValueError as e:
            logger.debug(f"Job {self.accessor.get_id(job)} expired: {e}")
            return None

        return now if next_run < now else next_run
