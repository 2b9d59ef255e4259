"""SQLite job store."""

import asyncio
import aiosqlite
import json
from contextlib import asynccontextmanager
from datetime import datetime
from typing import Any, AsyncIterator, List

from tablecron.exceptions import StoreError
from tablecron.models import Job, JobField, TableSchema
from tablecron.stores.base import BaseJobStore, BaseJobTransaction


def _encode_datetime(value: datetime | None) -> str | None:
    # Fixed precision keeps ISO strings comparable as text
    return value.isoformat(timespec="microseconds") if value is not None else None


def _decode_datetime(value: str | None) -> datetime | None:
    return datetime.fromisoformat(value) if value else None


class SQLiteTransaction(BaseJobTransaction):
    """Operations inside a ``BEGIN IMMEDIATE`` transaction."""

    def __init__(self, store: "SQLiteJobStore", db: aiosqlite.Connection):
        self._store = store
        self._db = db

    async def find_one_due(self, now: datetime) -> Job | None:
        return await self._store._find_one_due(self._db, now)

    async def update(self, job_id: Any, values: dict[JobField, Any]) -> bool:
        return await self._store._update(self._db, job_id, values)

    async def delete(self, job_id: Any) -> bool:
        return await self._store._delete(self._db, job_id)


class SQLiteJobStore(BaseJobStore):
    """SQLite-based job store for local persistent storage.

    Features:
        - Local file-based storage
        - Automatic schema creation (optional, for existing tables)
        - ``BEGIN IMMEDIATE`` write lock for claims, so several processes
          can share one database file
        - Good for single-host deployments

    Args:
        database_path: Path to SQLite database file (defaults to ".tablecron.db")
        schema: Table and column names
        create_schema: Create the table if it does not exist
        timeout: Seconds to wait for another connection's write lock
    """

    def __init__(
        self,
        database_path: str = ".tablecron.db",
        schema: TableSchema | None = None,
        create_schema: bool = True,
        timeout: float = 5.0,
    ):
        self.database_path = database_path
        self.schema = schema or TableSchema()
        self.create_schema = create_schema
        self.timeout = timeout
        self._db: aiosqlite.Connection | None = None
        # One connection is shared by all coroutines of this store
        self._lock = asyncio.Lock()

    @staticmethod
    def _quote(identifier: str) -> str:
        return f'"{identifier}"'

    async def _ensure_connected(self) -> aiosqlite.Connection:
        """Ensure database connection and schema exist."""
        if self._db is None:
            try:
                self._db = await aiosqlite.connect(
                    self.database_path, timeout=self.timeout, isolation_level=None
                )
                self._db.row_factory = aiosqlite.Row
                if self.create_schema:
                    await self._create_schema()
            except aiosqlite.Error as e:
                raise StoreError(f"Cannot open SQLite database '{self.database_path}': {e}") from e

        return self._db

    async def _create_schema(self) -> None:
        """Create database schema if it doesn't exist."""
        s = self.schema
        q = self._quote

        await self._db.execute(
            f"""
            CREATE TABLE IF NOT EXISTS {q(s.table)} (
                {q(s.id_column)} TEXT PRIMARY KEY,
                {q(s.sleep_until_column)} TEXT,
                {q(s.interval_column)} TEXT,
                {q(s.repeat_until_column)} TEXT,
                {q(s.auto_remove_column)} INTEGER NOT NULL DEFAULT 0,
                "name" TEXT,
                "payload" TEXT NOT NULL DEFAULT '{{}}',
                "created_at" TEXT
            )
            """
        )

        await self._db.execute(
            f"""
            CREATE INDEX IF NOT EXISTS {q("idx_" + s.table + "_sleep_until")}
            ON {q(s.table)}({q(s.sleep_until_column)})
            """
        )

    def _encode(self, job_field: JobField, value: Any) -> Any:
        if job_field in (JobField.SLEEP_UNTIL, JobField.REPEAT_UNTIL):
            return _encode_datetime(value)
        if job_field == JobField.AUTO_REMOVE:
            return 1 if value else 0
        return value

    def _row_to_job(self, row: aiosqlite.Row) -> Job:
        """Convert database row to Job."""
        s = self.schema
        keys = row.keys()

        return Job(
            id=row[s.id_column],
            sleep_until=_decode_datetime(row[s.sleep_until_column]),
            interval=row[s.interval_column],
            repeat_until=_decode_datetime(row[s.repeat_until_column]),
            auto_remove=bool(row[s.auto_remove_column]),
            name=row["name"] if "name" in keys else None,
            payload=json.loads(row["payload"]) if "payload" in keys and row["payload"] else {},
            created_at=(
                _decode_datetime(row["created_at"]) if "created_at" in keys and row["created_at"]
                else datetime.now()
            ),
        )

    async def _find_one_due(self, db: aiosqlite.Connection, now: datetime) -> Job | None:
        s = self.schema
        q = self._quote
        due = q(s.sleep_until_column)

        try:
            async with db.execute(
                f"""
                SELECT * FROM {q(s.table)}
                WHERE {due} IS NOT NULL AND {due} <= ?
                ORDER BY {due}
                LIMIT 1
                """,
                (_encode_datetime(now),),
            ) as cursor:
                row = await cursor.fetchone()
        except aiosqlite.Error as e:
            raise StoreError(f"Failed to query due jobs: {e}") from e

        return self._row_to_job(row) if row is not None else None

    async def _update(self, db: aiosqlite.Connection, job_id: Any, values: dict[JobField, Any]) -> bool:
        if not values:
            return False

        s = self.schema
        q = self._quote
        assignments = ", ".join(f"{q(s.column(f))} = ?" for f in values)
        params = [self._encode(f, v) for f, v in values.items()]

        try:
            result = await db.execute(
                f"UPDATE {q(s.table)} SET {assignments} WHERE {q(s.id_column)} = ?",
                (*params, job_id),
            )
        except aiosqlite.Error as e:
            raise StoreError(f"Failed to update job '{job_id}': {e}") from e

        return result.rowcount > 0

    async def _delete(self, db: aiosqlite.Connection, job_id: Any) -> bool:
        s = self.schema
        q = self._quote

        try:
            result = await db.execute(
                f"DELETE FROM {q(s.table)} WHERE {q(s.id_column)} = ?", (job_id,)
            )
        except aiosqlite.Error as e:
            raise StoreError(f"Failed to delete job '{job_id}': {e}") from e

        return result.rowcount > 0

    @asynccontextmanager
    async def transaction(self) -> AsyncIterator[SQLiteTransaction]:
        async with self._lock:
            db = await self._ensure_connected()
            try:
                await db.execute("BEGIN IMMEDIATE")
            except aiosqlite.Error as e:
                raise StoreError(f"Failed to begin transaction: {e}") from e

            try:
                yield SQLiteTransaction(self, db)
            except BaseException:
                await db.execute("ROLLBACK")
                raise

            try:
                await db.execute("COMMIT")
            except aiosqlite.Error as e:
                raise StoreError(f"Failed to commit transaction: {e}") from e

    async def update(self, job_id: Any, values: dict[JobField, Any]) -> bool:
        async with self._lock:
            db = await self._ensure_connected()
            return await self._update(db, job_id, values)

    async def delete(self, job_id: Any) -> bool:
        async with self._lock:
            db = await self._ensure_connected()
            return await self._delete(db, job_id)

    async def create(self, job: Job) -> None:
        """Create a new job."""
        s = self.schema
        q = self._quote

        async with self._lock:
            db = await self._ensure_connected()
            try:
                await db.execute(
                    f"""
                    INSERT INTO {q(s.table)} (
                        {q(s.id_column)}, {q(s.sleep_until_column)}, {q(s.interval_column)},
                        {q(s.repeat_until_column)}, {q(s.auto_remove_column)},
                        "name", "payload", "created_at"
                    ) VALUES (?, ?, ?, ?, ?, ?, ?, ?)
                    """,
                    (
                        job.id,
                        _encode_datetime(job.sleep_until),
                        job.interval,
                        _encode_datetime(job.repeat_until),
                        1 if job.auto_remove else 0,
                        job.name,
                        json.dumps(job.payload),
                        _encode_datetime(job.created_at),
                    ),
                )
            except aiosqlite.IntegrityError as e:
                raise StoreError(f"Job with ID '{job.id}' already exists") from e
            except aiosqlite.Error as e:
                raise StoreError(f"Failed to create job '{job.id}': {e}") from e

    async def get(self, job_id: Any) -> Job | None:
        """Get a job by ID."""
        s = self.schema
        q = self._quote

        async with self._lock:
            db = await self._ensure_connected()
            async with db.execute(
                f"SELECT * FROM {q(s.table)} WHERE {q(s.id_column)} = ?", (job_id,)
            ) as cursor:
                row = await cursor.fetchone()

        return self._row_to_job(row) if row is not None else None

    async def list_all(self) -> List[Job]:
        """List all jobs."""
        s = self.schema
        q = self._quote

        async with self._lock:
            db = await self._ensure_connected()
            async with db.execute(
                f"SELECT * FROM {q(s.table)} ORDER BY {q(s.sleep_until_column)}"
            ) as cursor:
                rows = await cursor.fetchall()

        return [self._row_to_job(row) for row in rows]

    async def clear(self) -> int:
        """Delete all jobs."""
        async with self._lock:
            db = await self._ensure_connected()
            result = await db.execute(f"DELETE FROM {self._quote(self.schema.table)}")

        return result.rowcount

    async def close(self) -> None:
        """Close database connection."""
        if self._db is not None:
            await self._db.close()
            self._db = None
