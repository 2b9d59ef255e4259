"""In-memory job store for single-process use."""

import asyncio
import copy
from contextlib import asynccontextmanager
from datetime import datetime
from typing import Any, AsyncIterator, List

from tablecron.accessor import JobAccessor
from tablecron.exceptions import StoreError
from tablecron.models import JobField
from tablecron.stores.base import BaseJobStore, BaseJobTransaction


class InMemoryTransaction(BaseJobTransaction):
    """Transaction over an :class:`InMemoryJobStore`.

    Changes are staged and only applied to the store on commit.
    """

    def __init__(self, store: "InMemoryJobStore"):
        self._store = store
        self._changed: dict[Any, Any] = {}
        self._deleted: set = set()

    def _view(self) -> dict[Any, Any]:
        view = {
            job_id: job
            for job_id, job in self._store._jobs.items()
            if job_id not in self._deleted
        }
        view.update(self._changed)
        return view

    async def find_one_due(self, now: datetime) -> Any | None:
        accessor = self._store.accessor
        due = [job for job in self._view().values() if accessor.is_due(job, now)]
        if not due:
            return None

        job = min(due, key=accessor.get_sleep_until)
        return copy.deepcopy(job)

    async def update(self, job_id: Any, values: dict[JobField, Any]) -> bool:
        job = self._view().get(job_id)
        if job is None:
            return False

        job = copy.deepcopy(job)
        for job_field, value in values.items():
            self._store.accessor.set(job, job_field, value)
        self._changed[job_id] = job
        return True

    async def delete(self, job_id: Any) -> bool:
        if job_id not in self._view():
            return False

        self._changed.pop(job_id, None)
        self._deleted.add(job_id)
        return True

    def commit(self) -> None:
        for job_id in self._deleted:
            self._store._jobs.pop(job_id, None)
        self._store._jobs.update(self._changed)


class InMemoryJobStore(BaseJobStore):
    """In-memory job storage.

    Best for:
    - Development and testing
    - Single-process applications
    - Records that are plain dicts or custom objects (pass an accessor)

    Limitations:
    - Jobs lost on restart
    - Not shared across processes

    Args:
        accessor: Field accessor for the stored records (defaults to
            :class:`JobAccessor` for :class:`Job` models)
    """

    def __init__(self, accessor: JobAccessor | None = None):
        self.accessor = accessor or JobAccessor()
        self._jobs: dict[Any, Any] = {}
        self._lock = asyncio.Lock()

    @asynccontextmanager
    async def transaction(self) -> AsyncIterator[InMemoryTransaction]:
        async with self._lock:
            tx = InMemoryTransaction(self)
            yield tx
            tx.commit()

    async def update(self, job_id: Any, values: dict[JobField, Any]) -> bool:
        async with self.transaction() as tx:
            return await tx.update(job_id, values)

    async def delete(self, job_id: Any) -> bool:
        async with self.transaction() as tx:
            return await tx.delete(job_id)

    async def create(self, job: Any) -> None:
        job_id = self.accessor.get_id(job)
        async with self._lock:
            if job_id in self._jobs:
                raise StoreError(f"Job with ID '{job_id}' already exists")
            self._jobs[job_id] = copy.deepcopy(job)

    async def get(self, job_id: Any) -> Any | None:
        job = self._jobs.get(job_id)
        return copy.deepcopy(job) if job is not None else None

    async def list_all(self) -> List[Any]:
        return [copy.deepcopy(job) for job in self._jobs.values()]

    async def clear(self) -> int:
        async with self._lock:
            count = len(self._jobs)
            self._jobs.clear()
            return count

    def __len__(self) -> int:
        return len(self._jobs)
