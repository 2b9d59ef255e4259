"""Tests for the SQLite job store."""

import pytest
import pytest_asyncio
import aiosqlite
from datetime import datetime, timedelta
from tablecron.exceptions import StoreError
from tablecron.models import Job, JobField, TableSchema
from tablecron.stores.sqlite import SQLiteJobStore


NOW = datetime(2024, 6, 15, 12, 0)


@pytest.fixture
def sample_job():
    """Create a sample recurring job."""
    return Job(
        id="job-1",
        sleep_until=NOW,
        interval="0 9 * * *",
        repeat_until=NOW + timedelta(days=30),
        auto_remove=True,
        name="daily",
        payload={"foo": "bar"},
        created_at=datetime(2024, 6, 1, 8, 30),
    )


class TestSQLiteJobStore:
    """Test SQLite job store."""

    @pytest.mark.asyncio
    async def test_create_and_get(self, sqlite_store, sample_job):
        """Test every field survives storage."""
        await sqlite_store.create(sample_job)

        retrieved = await sqlite_store.get("job-1")
        assert retrieved == sample_job

    @pytest.mark.asyncio
    async def test_create_duplicate_fails(self, sqlite_store, sample_job):
        """Test that creating a duplicate job fails."""
        await sqlite_store.create(sample_job)

        with pytest.raises(StoreError, match="already exists"):
            await sqlite_store.create(sample_job)

    @pytest.mark.asyncio
    async def test_get_missing(self, sqlite_store):
        """Test getting a nonexistent job."""
        assert await sqlite_store.get("missing") is None

    @pytest.mark.asyncio
    async def test_update_fields(self, sqlite_store, sample_job):
        """Test direct updates of several fields."""
        await sqlite_store.create(sample_job)

        updated = await sqlite_store.update(
            "job-1",
            {JobField.SLEEP_UNTIL: None, JobField.AUTO_REMOVE: False, JobField.INTERVAL: None},
        )

        assert updated is True
        retrieved = await sqlite_store.get("job-1")
        assert retrieved.sleep_until is None
        assert retrieved.auto_remove is False
        assert retrieved.interval is None

    @pytest.mark.asyncio
    async def test_update_missing(self, sqlite_store):
        """Test updating a nonexistent job."""
        assert await sqlite_store.update("missing", {JobField.SLEEP_UNTIL: NOW}) is False

    @pytest.mark.asyncio
    async def test_update_nothing(self, sqlite_store, sample_job):
        """Test an empty update is a no-op."""
        await sqlite_store.create(sample_job)

        assert await sqlite_store.update("job-1", {}) is False

    @pytest.mark.asyncio
    async def test_delete(self, sqlite_store, sample_job):
        """Test deleting a job."""
        await sqlite_store.create(sample_job)

        assert await sqlite_store.delete("job-1") is True
        assert await sqlite_store.delete("job-1") is False
        assert await sqlite_store.get("job-1") is None

    @pytest.mark.asyncio
    async def test_list_all_and_clear(self, sqlite_store):
        """Test listing and clearing jobs."""
        await sqlite_store.create(Job(id="b", sleep_until=NOW))
        await sqlite_store.create(Job(id="a", sleep_until=NOW - timedelta(hours=1)))

        assert [job.id for job in await sqlite_store.list_all()] == ["a", "b"]
        assert await sqlite_store.clear() == 2
        assert await sqlite_store.list_all() == []


class TestSQLiteTransaction:
    """Test transaction semantics of the SQLite store."""

    @pytest.mark.asyncio
    async def test_find_one_due(self, sqlite_store):
        """Test due filtering and ordering."""
        await sqlite_store.create(Job(id="late", sleep_until=NOW - timedelta(seconds=1)))
        await sqlite_store.create(Job(id="early", sleep_until=NOW - timedelta(hours=1)))
        await sqlite_store.create(Job(id="future", sleep_until=NOW + timedelta(seconds=1)))
        await sqlite_store.create(Job(id="inert"))

        async with sqlite_store.transaction() as tx:
            assert (await tx.find_one_due(NOW)).id == "early"

    @pytest.mark.asyncio
    async def test_sub_second_ordering(self, sqlite_store):
        """Test microsecond timestamps compare correctly as text."""
        await sqlite_store.create(Job(id="job-1", sleep_until=NOW + timedelta(microseconds=500)))

        async with sqlite_store.transaction() as tx:
            assert await tx.find_one_due(NOW) is None
            assert (await tx.find_one_due(NOW + timedelta(seconds=1))).id == "job-1"

    @pytest.mark.asyncio
    async def test_commit(self, sqlite_store, sample_job):
        """Test changes are committed when the block exits."""
        await sqlite_store.create(sample_job)
        locked = NOW + timedelta(minutes=10)

        async with sqlite_store.transaction() as tx:
            job = await tx.find_one_due(NOW)
            assert await tx.update(job.id, {JobField.SLEEP_UNTIL: locked}) is True

        assert (await sqlite_store.get("job-1")).sleep_until == locked

    @pytest.mark.asyncio
    async def test_rollback_on_error(self, sqlite_store, sample_job):
        """Test changes are rolled back when the block raises."""
        await sqlite_store.create(sample_job)

        with pytest.raises(RuntimeError):
            async with sqlite_store.transaction() as tx:
                assert await tx.delete("job-1") is True
                raise RuntimeError("boom")

        assert await sqlite_store.get("job-1") is not None


class TestSQLiteSchema:
    """Test custom table layouts."""

    @pytest_asyncio.fixture
    async def existing_table(self, tmp_path):
        """Create a table with its own naming, as an application would."""
        path = str(tmp_path / "app.db")
        async with aiosqlite.connect(path) as db:
            await db.execute(
                """
                CREATE TABLE reminders (
                    pk TEXT PRIMARY KEY,
                    run_at TEXT,
                    cron TEXT,
                    until TEXT,
                    oneshot INTEGER NOT NULL DEFAULT 0,
                    body TEXT
                )
                """
            )
            await db.execute(
                "INSERT INTO reminders (pk, run_at, body) VALUES (?, ?, ?)",
                ("r1", (NOW - timedelta(minutes=1)).isoformat(timespec="microseconds"), "hello"),
            )
            await db.commit()
        return path

    @pytest.mark.asyncio
    async def test_existing_table(self, existing_table):
        """Test claiming from a table with custom column names."""
        schema = TableSchema(
            table="reminders",
            id_column="pk",
            sleep_until_column="run_at",
            interval_column="cron",
            repeat_until_column="until",
            auto_remove_column="oneshot",
        )
        store = SQLiteJobStore(database_path=existing_table, schema=schema, create_schema=False)

        try:
            async with store.transaction() as tx:
                job = await tx.find_one_due(NOW)
                assert job.id == "r1"
                assert job.payload == {}
                await tx.update(job.id, {JobField.SLEEP_UNTIL: None})

            assert (await store.get("r1")).sleep_until is None
        finally:
            await store.close()

    @pytest.mark.asyncio
    async def test_missing_table(self, tmp_path):
        """Test driver errors are wrapped in StoreError."""
        store = SQLiteJobStore(database_path=str(tmp_path / "empty.db"), create_schema=False)

        try:
            with pytest.raises(StoreError, match="Failed to query due jobs"):
                async with store.transaction() as tx:
                    await tx.find_one_due(NOW)
        finally:
            await store.close()
