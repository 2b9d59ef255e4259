"""Scheduler service turning a job table into a distributed job queue."""

import asyncio
import logging
import uuid
from datetime import datetime
from typing import Any, Callable, List

from tablecron.accessor import JobAccessor
from tablecron.config import Config, SchedulerConfig
from tablecron.cron import CronExpression
from tablecron.exceptions import JobNotFoundError, TablecronError
from tablecron.hooks import SchedulerHooks, call_hook
from tablecron.interval import IntervalCalculator
from tablecron.lock import LockAcquirer
from tablecron.models import Job, JobField
from tablecron.rescheduler import Rescheduler
from tablecron.state import Phase, SchedulerState
from tablecron.stores import BaseJobStore, get_job_store

logger = logging.getLogger("tablecron.scheduler")


class Scheduler:
    """Scheduler service polling a job store.

    Features:
        - One-shot delayed jobs and recurring cron jobs
        - Several schedulers may share one store; a job is claimed by
          exactly one of them through a locking transaction
        - Sync or async lifecycle hooks
        - Graceful stop that waits for the job in progress

    Each tick claims at most one due job, awaits ``on_new_job`` for it and
    then re-arms, expires or deletes it. Errors from any of these steps are
    handed to ``on_error`` and never stop the loop.

    Args:
        store: Job store, store URL, or None for an in-memory store
        config: Tick loop timing
        hooks: Lifecycle callbacks
        accessor: Field accessor for the store's records
        clock: Callable returning the current time

    Example:
        async def send_reminder(job):
            await notify(job.payload["user"])

        scheduler = Scheduler(
            store="sqlite:///jobs.db",
            hooks=SchedulerHooks(on_new_job=send_reminder),
        )
        await scheduler.schedule_cron("0 9 * * MON-FRI", payload={"user": 42})
        await scheduler.start()
    """

    def __init__(
        self,
        store: BaseJobStore | str | None = None,
        config: SchedulerConfig | None = None,
        hooks: SchedulerHooks | None = None,
        accessor: JobAccessor | None = None,
        clock: Callable[[], datetime] = datetime.now,
    ):
        self.store = get_job_store(store)
        self.config = config or SchedulerConfig()
        self.hooks = hooks or SchedulerHooks()
        self.accessor = accessor or getattr(self.store, "accessor", None) or JobAccessor()
        self.clock = clock

        self.calculator = IntervalCalculator(
            self.accessor, reprocess_delay=self.config.reprocess_delay, clock=clock
        )
        self.lock = LockAcquirer(
            self.store, self.accessor, lock_duration=self.config.lock_duration, clock=clock
        )
        self.rescheduler = Rescheduler(self.store, self.accessor, self.calculator)

        self._state = SchedulerState()
        self._loop_task: asyncio.Task | None = None
        self._stop_event = asyncio.Event()
        self._drained = asyncio.Event()

    @classmethod
    def from_config(
        cls,
        config: Config,
        hooks: SchedulerHooks | None = None,
        accessor: JobAccessor | None = None,
    ) -> "Scheduler":
        """Create a scheduler from an aggregated :class:`Config`."""
        return cls(
            store=config.create_store(),
            config=config.scheduler,
            hooks=hooks,
            accessor=accessor,
        )

    @property
    def is_running(self) -> bool:
        """Check if scheduler is running."""
        return self._state.running

    @property
    def is_processing(self) -> bool:
        """Check if a claim or job is in progress."""
        return self._state.processing

    @property
    def is_idle(self) -> bool:
        """Check if the last claim attempt found no due job."""
        return self._state.idle

    @property
    def state(self) -> Phase:
        return self._state.phase

    async def start(self) -> None:
        """Start the scheduler service.

        Raises:
            TablecronError: If called from inside a hook while a stop of the
                same scheduler is still draining
        """
        if self._state.running:
            return

        previous = self._loop_task
        if previous is not None and not self._drained.is_set():
            if asyncio.current_task() is previous:
                raise TablecronError(
                    "Cannot restart the scheduler from inside its own tick before it has drained"
                )
            await asyncio.shield(previous)

        if not self._state.start():
            return

        self._stop_event = asyncio.Event()
        self._drained = asyncio.Event()

        try:
            await call_hook(self.hooks.on_start)
        except Exception:
            self._state.request_stop()
            raise

        logger.info("Scheduler started")
        # First tick runs once the caller yields to the event loop
        self._loop_task = asyncio.create_task(self._run())

    async def stop(self) -> None:
        """Stop the scheduler service.

        Every caller waits until the job in progress has finished and
        ``on_stop`` has run; ``on_new_job`` is never cancelled, so a callback
        that hangs blocks this call. Called from inside a hook, it only
        requests the stop and the loop calls ``on_stop`` once drained.
        """
        task = self._loop_task
        if task is None:
            return

        if self._state.request_stop():
            logger.info("Waiting for the job in progress before stopping")
        self._stop_event.set()

        if asyncio.current_task() is not task:
            await asyncio.shield(task)

    async def _run(self) -> None:
        try:
            try:
                while self._state.running:
                    await self._tick()
            finally:
                self._drained.set()

            logger.info("Scheduler stopped")
            try:
                await call_hook(self.hooks.on_stop)
            except Exception:
                logger.exception("on_stop hook raised")
        finally:
            if self._loop_task is asyncio.current_task():
                self._loop_task = None

    async def _tick(self) -> None:
        """Claim and process at most one due job."""
        await self._sleep(self.config.next_delay)
        if not self._state.running:
            return

        self._state.begin_claim()
        job = None

        try:
            job = await self.lock.claim()

            if job is None:
                if self._state.found_nothing():
                    logger.debug("No due jobs, scheduler is idle")
                    await call_hook(self.hooks.on_idle)
            else:
                self._state.found_job()
                await call_hook(self.hooks.on_new_job, job)
                await self.rescheduler.reschedule(job)
        except Exception as e:
            await self._report(e)
        finally:
            self._state.finish_tick()

        # Back off after an empty or failed claim
        if job is None:
            await self._sleep(self.config.idle_delay)

    async def _sleep(self, delay: float) -> None:
        """Sleep for ``delay`` seconds, waking early when stop() is called."""
        if delay <= 0:
            await asyncio.sleep(0)
            return

        try:
            await asyncio.wait_for(self._stop_event.wait(), timeout=delay)
        except asyncio.TimeoutError:
            pass

    async def _report(self, err: Exception) -> None:
        try:
            await call_hook(self.hooks.on_error, err)
        except Exception:
            logger.exception("on_error hook raised")

    async def schedule_once(
        self,
        run_at: datetime,
        name: str | None = None,
        payload: dict | None = None,
        auto_remove: bool = False,
        job_id: str | None = None,
    ) -> str:
        """Insert a job that runs once at a specific time.

        Args:
            run_at: When to run the job
            name: Optional job label
            payload: Data handed to ``on_new_job`` with the job
            auto_remove: Delete the row after it ran
            job_id: Optional custom job ID (generated if not provided)

        Returns:
            Job ID
        """
        job = Job(
            id=job_id or str(uuid.uuid4()),
            sleep_until=run_at,
            name=name,
            payload=payload or {},
            auto_remove=auto_remove,
        )

        await self.store.create(job)
        return job.id

    async def schedule_cron(
        self,
        cron: str,
        start_at: datetime | None = None,
        repeat_until: datetime | None = None,
        name: str | None = None,
        payload: dict | None = None,
        auto_remove: bool = False,
        job_id: str | None = None,
    ) -> str:
        """Insert a recurring job.

        Args:
            cron: Cron expression (e.g., "0 9 * * *" for daily at 9 AM)
            start_at: First due time (defaults to the next occurrence)
            repeat_until: No occurrence at or after this time
            name: Optional job label
            payload: Data handed to ``on_new_job`` with the job
            auto_remove: Delete the row once the recurrence is exhausted
            job_id: Optional custom job ID (generated if not provided)

        Returns:
            Job ID

        Raises:
            ValueError: If the cron expression is invalid or has no
                occurrence before ``repeat_until``
        """
        cron_expr = CronExpression(cron)
        first_run = start_at or cron_expr.next_run(self.clock(), end=repeat_until)

        job = Job(
            id=job_id or str(uuid.uuid4()),
            sleep_until=first_run,
            interval=cron,
            repeat_until=repeat_until,
            name=name,
            payload=payload or {},
            auto_remove=auto_remove,
        )

        await self.store.create(job)
        return job.id

    async def unschedule(self, job_id: str) -> bool:
        """Remove a job.

        Args:
            job_id: ID of job to remove

        Returns:
            True if deleted, False if not found
        """
        return await self.store.delete(job_id)

    async def set_next_run(self, job_id: str, run_at: datetime | None) -> None:
        """Move a job's due time, or park it with ``run_at=None``.

        Raises:
            JobNotFoundError: If no job has this ID
        """
        if not await self.store.update(job_id, {JobField.SLEEP_UNTIL: run_at}):
            raise JobNotFoundError(job_id)

    async def get_job(self, job_id: str) -> Any | None:
        """Get a job by ID."""
        return await self.store.get(job_id)

    async def list_jobs(self) -> List[Any]:
        """List all jobs."""
        return await self.store.list_all()

    async def close(self) -> None:
        """Stop the scheduler and close the store."""
        await self.stop()
        await self.store.close()

    async def __aenter__(self) -> "Scheduler":
        await self.start()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.stop()
