"""Tablecron - Distributed job queue on top of a database table.

Rows of a job table carry a due time (``sleep_until``) and, for recurring
jobs, a cron expression. Any number of schedulers poll the same table;
each due row is claimed by exactly one of them.

Basic usage:
    from datetime import datetime, timedelta
    from tablecron import Scheduler, SchedulerHooks

    async def handle(job):
        print(f"Running {job.name} with {job.payload}")

    async def main():
        scheduler = Scheduler(
            store="sqlite:///jobs.db",
            hooks=SchedulerHooks(on_new_job=handle),
        )

        await scheduler.schedule_once(datetime.now() + timedelta(minutes=5), name="welcome")
        await scheduler.schedule_cron("*/15 * * * *", name="sync")

        async with scheduler:
            await asyncio.sleep(3600)

Configuration from the environment:
    from tablecron import Config, Scheduler

    scheduler = Scheduler.from_config(Config.from_env())
"""

__version__ = "0.1.0"

from tablecron.accessor import JobAccessor, MappingJobAccessor
from tablecron.config import Config, SchedulerConfig, StoreConfig
from tablecron.cron import CronExpression
from tablecron.hooks import SchedulerHooks
from tablecron.interval import IntervalCalculator
from tablecron.lock import LockAcquirer
from tablecron.models import Job, JobField, TableSchema
from tablecron.rescheduler import Disposition, Rescheduler
from tablecron.scheduler import Scheduler
from tablecron.state import Phase, SchedulerState
from tablecron.stores import (
    BaseJobStore,
    InMemoryJobStore,
    SQLiteJobStore,
    get_job_store,
)
from tablecron.exceptions import (
    TablecronError,
    StoreError,
    JobNotFoundError,
    ConfigurationError,
)

__all__ = [
    # Scheduler
    "Scheduler",
    "SchedulerHooks",
    "SchedulerState",
    "Phase",
    # Components
    "LockAcquirer",
    "IntervalCalculator",
    "Rescheduler",
    "Disposition",
    "CronExpression",
    # Configuration
    "Config",
    "SchedulerConfig",
    "StoreConfig",
    # Models
    "Job",
    "JobField",
    "TableSchema",
    "JobAccessor",
    "MappingJobAccessor",
    # Stores
    "BaseJobStore",
    "InMemoryJobStore",
    "SQLiteJobStore",
    "get_job_store",
    # Exceptions
    "TablecronError",
    "StoreError",
    "JobNotFoundError",
    "ConfigurationError",
]
