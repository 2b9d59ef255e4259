import os
from dataclasses import dataclass, field
from typing import Any

from tablecron.exceptions import ConfigurationError
from tablecron.models import TableSchema


@dataclass
class SchedulerConfig:
    """Timing of the tick loop, all values in seconds.

    Args:
        next_delay: Wait before each claim attempt
        idle_delay: Wait after a claim attempt found no due job
        lock_duration: How long a claimed job stays locked. Must exceed the
            worst-case duration of ``on_new_job`` or another scheduler may
            claim the job again while it is still being processed.
        reprocess_delay: Minimum gap between two occurrences of a
            recurring job
    """
    next_delay: float = 0.0
    idle_delay: float = 10.0
    lock_duration: float = 600.0
    reprocess_delay: float = 0.0

    def __post_init__(self):
        """Validate scheduler configuration."""
        if self.next_delay < 0:
            raise ConfigurationError("next_delay must be non-negative")

        if self.idle_delay < 0:
            raise ConfigurationError("idle_delay must be non-negative")

        if self.lock_duration < 0:
            raise ConfigurationError("lock_duration must be non-negative")

        if self.reprocess_delay < 0:
            raise ConfigurationError("reprocess_delay must be non-negative")


@dataclass
class StoreConfig:
    url: str
    schema: TableSchema = field(default_factory=TableSchema)

    def __post_init__(self):
        """Validate store configuration."""
        if not self.url:
            raise ConfigurationError("Store URL is required")

    def create_store(self) -> "BaseJobStore":
        """Create store instance from this configuration.

        Returns:
            Job store instance

        Raises:
            StoreError: If URL scheme is unsupported
        """
        from tablecron.stores import get_job_store

        return get_job_store(self.url, schema=self.schema)


@dataclass
class Config:
    """Main tablecron configuration aggregating component configs.

    Args:
        scheduler: Tick loop timing (optional, defaults to SchedulerConfig())
        store: Job store configuration (optional, in-memory store if None)
    """
    scheduler: SchedulerConfig = field(default_factory=SchedulerConfig)
    store: StoreConfig | None = None

    def __post_init__(self):
        """Ensure scheduler config exists."""
        if self.scheduler is None:
            self.scheduler = SchedulerConfig()

    def create_store(self) -> "BaseJobStore":
        """Create store instance from configuration.

        Returns:
            Configured store, or an in-memory store if none is configured
        """
        from tablecron.stores import get_job_store

        if self.store is not None:
            return self.store.create_store()
        else:
            return get_job_store(None)

    @classmethod
    def from_env(cls, prefix: str = "TABLECRON_") -> "Config":
        """Load configuration from environment variables using mappings."""

        def get_env(key: str, default: Any = None, type_cast: type = str) -> Any:
            value = os.getenv(f"{prefix}{key.upper()}")

            if value is None:
                return default
            try:
                return type_cast(value)
            except ValueError as e:
                raise ConfigurationError(f"Invalid value for {prefix}{key.upper()}: '{value}'") from e

        scheduler_map = {
            "next_delay": ("next_delay", float, 0.0),
            "idle_delay": ("idle_delay", float, 10.0),
            "lock_duration": ("lock_duration", float, 600.0),
            "reprocess_delay": ("reprocess_delay", float, 0.0),
        }

        scheduler_kwargs = {
            name: get_env(env_name, default=default, type_cast=type_cast)
            for name, (env_name, type_cast, default) in scheduler_map.items()
        }
        scheduler = SchedulerConfig(**scheduler_kwargs)

        url = get_env("store_url")
        table = get_env("table")
        store = None
        if url:
            schema = TableSchema(table=table) if table else TableSchema()
            store = StoreConfig(url=url, schema=schema)

        return cls(scheduler=scheduler, store=store)
