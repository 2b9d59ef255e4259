"""Job models for table-backed scheduling."""

import re
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any

from tablecron.exceptions import ConfigurationError

_IDENTIFIER = re.compile(r"^[A-Za-z_][A-Za-z0-9_]*$")


class JobField(Enum):
    """Semantic job fields the scheduler reads and writes."""
    SLEEP_UNTIL = "sleep_until"
    INTERVAL = "interval"
    REPEAT_UNTIL = "repeat_until"
    AUTO_REMOVE = "auto_remove"


@dataclass
class Job:
    """A row of the job table.

    Attributes:
        id: Unique identifier of the row
        sleep_until: When the job becomes due (None = inert)
        interval: Cron expression for recurring jobs (None = one-shot)
        repeat_until: Recurrence never produces occurrences at or after this
        auto_remove: Delete the row instead of nulling sleep_until on expiry
        name: Optional label for the job
        payload: JSON-serialisable data handed to the callback
        created_at: When the row was inserted
    """

    id: str
    sleep_until: datetime | None = None
    interval: str | None = None
    repeat_until: datetime | None = None
    auto_remove: bool = False
    name: str | None = None
    payload: dict = field(default_factory=dict)
    created_at: datetime = field(default_factory=datetime.now)

    @property
    def is_recurring(self) -> bool:
        return self.interval is not None

    def is_due(self, now: datetime) -> bool:
        """Check if the job is eligible for claim at ``now``."""
        return self.sleep_until is not None and self.sleep_until <= now

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for storage."""
        return {
            "id": self.id,
            "sleep_until": self.sleep_until.isoformat() if self.sleep_until else None,
            "interval": self.interval,
            "repeat_until": self.repeat_until.isoformat() if self.repeat_until else None,
            "auto_remove": self.auto_remove,
            "name": self.name,
            "payload": self.payload,
            "created_at": self.created_at.isoformat(),
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Job":
        """Create from dictionary."""
        return cls(
            id=data["id"],
            sleep_until=datetime.fromisoformat(data["sleep_until"]) if data.get("sleep_until") else None,
            interval=data.get("interval"),
            repeat_until=datetime.fromisoformat(data["repeat_until"]) if data.get("repeat_until") else None,
            auto_remove=bool(data.get("auto_remove", False)),
            name=data.get("name"),
            payload=data.get("payload") or {},
            created_at=datetime.fromisoformat(data["created_at"]) if data.get("created_at") else datetime.now(),
        )


@dataclass(frozen=True)
class TableSchema:
    """Table and column names used by the SQL job stores.

    Lets an existing table with its own naming be used as a job queue.
    Every name must be a plain SQL identifier.
    """

    table: str = "cronjobs"
    id_column: str = "id"
    sleep_until_column: str = "sleep_until"
    interval_column: str = "interval"
    repeat_until_column: str = "repeat_until"
    auto_remove_column: str = "auto_remove"

    def __post_init__(self):
        """Validate identifiers."""
        for name in (
            self.table,
            self.id_column,
            self.sleep_until_column,
            self.interval_column,
            self.repeat_until_column,
            self.auto_remove_column,
        ):
            if not _IDENTIFIER.match(name):
                raise ConfigurationError(f"Invalid SQL identifier: '{name}'")

    def column(self, job_field: JobField) -> str:
        """Column name for a semantic field."""
        return {
            JobField.SLEEP_UNTIL: self.sleep_until_column,
            JobField.INTERVAL: self.interval_column,
            JobField.REPEAT_UNTIL: self.repeat_until_column,
            JobField.AUTO_REMOVE: self.auto_remove_column,
        }[job_field]
