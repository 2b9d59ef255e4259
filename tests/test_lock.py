"""Tests for exclusive claiming of due jobs."""

import asyncio
import pytest
from datetime import datetime, timedelta
from tablecron.accessor import JobAccessor
from tablecron.lock import LockAcquirer
from tablecron.models import Job
from tablecron.stores.memory import InMemoryJobStore
from tablecron.stores.sqlite import SQLiteJobStore


class TestLockAcquirer:
    """Tests for LockAcquirer.claim()."""

    @pytest.mark.asyncio
    async def test_claim_nothing_due(self, memory_store, clock):
        """Test an empty store yields no job."""
        lock = LockAcquirer(memory_store, JobAccessor(), clock=clock)

        assert await lock.claim() is None

    @pytest.mark.asyncio
    async def test_future_job_not_claimed(self, memory_store, clock):
        """Test jobs due later are left alone."""
        await memory_store.create(Job(id="later", sleep_until=clock.now + timedelta(seconds=100)))
        lock = LockAcquirer(memory_store, JobAccessor(), clock=clock)

        assert await lock.claim() is None

    @pytest.mark.asyncio
    async def test_inert_job_not_claimed(self, memory_store, clock):
        """Test jobs without a due time are never claimed."""
        await memory_store.create(Job(id="inert"))
        lock = LockAcquirer(memory_store, JobAccessor(), clock=clock)

        assert await lock.claim() is None

    @pytest.mark.asyncio
    async def test_claim_returns_pre_lock_snapshot(self, memory_store, clock):
        """Test the claimed job keeps its original due time while the row is locked."""
        due = clock.now - timedelta(seconds=10)
        await memory_store.create(Job(id="job-1", sleep_until=due))
        lock = LockAcquirer(memory_store, JobAccessor(), lock_duration=60, clock=clock)

        job = await lock.claim()

        assert job.id == "job-1"
        assert job.sleep_until == due

        stored = await memory_store.get("job-1")
        assert stored.sleep_until == clock.now + timedelta(seconds=60)

    @pytest.mark.asyncio
    async def test_claim_exactly_due(self, memory_store, clock):
        """Test a job due exactly now is claimed."""
        await memory_store.create(Job(id="job-1", sleep_until=clock.now))
        lock = LockAcquirer(memory_store, JobAccessor(), clock=clock)

        assert (await lock.claim()).id == "job-1"

    @pytest.mark.asyncio
    async def test_claims_earliest_first(self, memory_store, clock):
        """Test the most overdue job is claimed first."""
        await memory_store.create(Job(id="recent", sleep_until=clock.now - timedelta(seconds=1)))
        await memory_store.create(Job(id="oldest", sleep_until=clock.now - timedelta(hours=1)))
        lock = LockAcquirer(memory_store, JobAccessor(), clock=clock)

        assert (await lock.claim()).id == "oldest"
        assert (await lock.claim()).id == "recent"
        assert await lock.claim() is None

    @pytest.mark.asyncio
    async def test_lock_expires(self, memory_store, clock):
        """Test a locked job is claimable again once the lock elapses."""
        await memory_store.create(Job(id="job-1", sleep_until=clock.now))
        lock = LockAcquirer(memory_store, JobAccessor(), lock_duration=60, clock=clock)

        assert await lock.claim() is not None
        assert await lock.claim() is None

        clock.now += timedelta(seconds=60)
        assert (await lock.claim()).id == "job-1"

    @pytest.mark.asyncio
    async def test_concurrent_claims_memory(self, clock):
        """Test concurrent claims on one due row return it once."""
        store = InMemoryJobStore()
        await store.create(Job(id="job-1", sleep_until=clock.now))
        locks = [LockAcquirer(store, JobAccessor(), clock=clock) for _ in range(5)]

        results = await asyncio.gather(*(lock.claim() for lock in locks))

        claimed = [job for job in results if job is not None]
        assert len(claimed) == 1

    @pytest.mark.asyncio
    async def test_concurrent_claims_sqlite(self, tmp_path):
        """Test two stores sharing a database file never claim the same row."""
        path = str(tmp_path / "jobs.db")
        first = SQLiteJobStore(database_path=path)
        second = SQLiteJobStore(database_path=path)
        now = datetime.now()

        try:
            await first.create(Job(id="job-1", sleep_until=now - timedelta(seconds=10)))

            results = await asyncio.gather(
                LockAcquirer(first, JobAccessor()).claim(),
                LockAcquirer(second, JobAccessor()).claim(),
            )

            claimed = [job for job in results if job is not None]
            assert len(claimed) == 1
            assert claimed[0].id == "job-1"
        finally:
            await first.close()
            await second.close()

    @pytest.mark.asyncio
    async def test_sqlite_claim_locks_row(self, sqlite_store, clock):
        """Test the lock is persisted in SQLite."""
        await sqlite_store.create(Job(id="job-1", sleep_until=clock.now))
        lock = LockAcquirer(sqlite_store, JobAccessor(), lock_duration=30, clock=clock)

        job = await lock.claim()

        assert job.sleep_until == clock.now
        assert (await sqlite_store.get("job-1")).sleep_until == clock.now + timedelta(seconds=30)
        assert await lock.claim() is None
