"""Pytest configuration and fixtures for tablecron tests."""

import pytest
import pytest_asyncio
from datetime import datetime

from tablecron.stores.memory import InMemoryJobStore
from tablecron.stores.sqlite import SQLiteJobStore


class FrozenClock:
    """Manually advanced clock for deterministic timing tests."""

    def __init__(self, now: datetime):
        self.now = now

    def __call__(self) -> datetime:
        return self.now


@pytest.fixture
def clock():
    """Clock frozen at a known Saturday noon."""
    return FrozenClock(datetime(2024, 6, 15, 12, 0, 0))


@pytest.fixture
def memory_store():
    """Create an in-memory job store for testing."""
    return InMemoryJobStore()


@pytest_asyncio.fixture
async def sqlite_store():
    """Create in-memory SQLite store."""
    store = SQLiteJobStore(database_path=":memory:")
    yield store
    await store.close()


# Configure pytest-asyncio
pytest_plugins = ('pytest_asyncio',)
