"""Typed access to the scheduling fields of a job record."""

from datetime import datetime
from typing import Any

from tablecron.models import Job, JobField


class JobAccessor:
    """Read and write the semantic fields of a job record.

    The scheduler never looks fields up by name. Stores that return
    records other than :class:`Job` (an ORM entity, a mapping) are paired
    with a subclass overriding the getters and setters.

    Example:
        class OrderAccessor(JobAccessor):
            def get_sleep_until(self, job):
                return job.run_at

            def set_sleep_until(self, job, value):
                job.run_at = value
    """

    def get_id(self, job: Job) -> Any:
        return job.id

    def get_sleep_until(self, job: Job) -> datetime | None:
        return job.sleep_until

    def set_sleep_until(self, job: Job, value: datetime | None) -> None:
        job.sleep_until = value

    def get_interval(self, job: Job) -> str | None:
        return job.interval

    def set_interval(self, job: Job, value: str | None) -> None:
        job.interval = value

    def get_repeat_until(self, job: Job) -> datetime | None:
        return job.repeat_until

    def set_repeat_until(self, job: Job, value: datetime | None) -> None:
        job.repeat_until = value

    def get_auto_remove(self, job: Job) -> bool:
        return bool(job.auto_remove)

    def set_auto_remove(self, job: Job, value: bool) -> None:
        job.auto_remove = value

    def get(self, job: Any, job_field: JobField) -> Any:
        """Read a field selected by :class:`JobField`."""
        getters = {
            JobField.SLEEP_UNTIL: self.get_sleep_until,
            JobField.INTERVAL: self.get_interval,
            JobField.REPEAT_UNTIL: self.get_repeat_until,
            JobField.AUTO_REMOVE: self.get_auto_remove,
        }
        return getters[job_field](job)

    def set(self, job: Any, job_field: JobField, value: Any) -> None:
        """Write a field selected by :class:`JobField`."""
        setters = {
            JobField.SLEEP_UNTIL: self.set_sleep_until,
            JobField.INTERVAL: self.set_interval,
            JobField.REPEAT_UNTIL: self.set_repeat_until,
            JobField.AUTO_REMOVE: self.set_auto_remove,
        }
        setters[job_field](job, value)

    def is_due(self, job: Any, now: datetime) -> bool:
        """Due means sleep_until is set and not after ``now``."""
        sleep_until = self.get_sleep_until(job)
        return sleep_until is not None and sleep_until <= now


class MappingJobAccessor(JobAccessor):
    """Accessor for dict records.

    Args:
        id_key: Key holding the record identifier
        sleep_until_key: Key holding the due timestamp
        interval_key: Key holding the cron expression
        repeat_until_key: Key holding the recurrence bound
        auto_remove_key: Key holding the auto-remove flag
    """

    def __init__(
        self,
        id_key: str = "id",
        sleep_until_key: str = "sleep_until",
        interval_key: str = "interval",
        repeat_until_key: str = "repeat_until",
        auto_remove_key: str = "auto_remove",
    ):
        self.id_key = id_key
        self.sleep_until_key = sleep_until_key
        self.interval_key = interval_key
        self.repeat_until_key = repeat_until_key
        self.auto_remove_key = auto_remove_key

    def get_id(self, job: dict) -> Any:
        return job[self.id_key]

    def get_sleep_until(self, job: dict) -> datetime | None:
        return job.get(self.sleep_until_key)

    def set_sleep_until(self, job: dict, value: datetime | None) -> None:
        job[self.sleep_until_key] = value

    def get_interval(self, job: dict) -> str | None:
        return job.get(self.interval_key)

    def set_interval(self, job: dict, value: str | None) -> None:
        job[self.interval_key] = value

    def get_repeat_until(self, job: dict) -> datetime | None:
        return job.get(self.repeat_until_key)

    def set_repeat_until(self, job: dict, value: datetime | None) -> None:
        job[self.repeat_until_key] = value

    def get_auto_remove(self, job: dict) -> bool:
        return bool(job.get(self.auto_remove_key, False))

    def set_auto_remove(self, job: dict, value: bool) -> None:
        job[self.auto_remove_key] = value
