"""Tests for job models."""

import pytest
from datetime import datetime
from tablecron.exceptions import ConfigurationError
from tablecron.models import Job, JobField, TableSchema


class TestJob:
    """Tests for the Job dataclass."""

    def test_defaults(self):
        """Test a bare job is inert and one-shot."""
        job = Job(id="job-1")

        assert job.sleep_until is None
        assert job.interval is None
        assert job.repeat_until is None
        assert job.auto_remove is False
        assert job.payload == {}
        assert job.is_recurring is False

    def test_is_recurring(self):
        """Test jobs with a cron expression are recurring."""
        assert Job(id="job-1", interval="* * * * *").is_recurring is True

    def test_is_due(self):
        """Test due means set and not after now."""
        now = datetime(2024, 6, 15, 12, 0)

        assert Job(id="a", sleep_until=now).is_due(now) is True
        assert Job(id="b", sleep_until=datetime(2024, 6, 15, 11, 0)).is_due(now) is True
        assert Job(id="c", sleep_until=datetime(2024, 6, 15, 13, 0)).is_due(now) is False
        assert Job(id="d").is_due(now) is False

    def test_dict_conversion(self):
        """Test to_dict/from_dict preserve every field."""
        job = Job(
            id="job-1",
            sleep_until=datetime(2024, 6, 15, 12, 0),
            interval="0 * * * *",
            repeat_until=datetime(2024, 7, 1),
            auto_remove=True,
            name="hourly",
            payload={"user": 42},
            created_at=datetime(2024, 6, 1),
        )

        data = job.to_dict()
        assert data["sleep_until"] == "2024-06-15T12:00:00"
        assert Job.from_dict(data) == job

    def test_from_dict_nulls(self):
        """Test missing optional fields map to defaults."""
        job = Job.from_dict({"id": "job-1", "sleep_until": None})

        assert job.sleep_until is None
        assert job.repeat_until is None
        assert job.payload == {}


class TestTableSchema:
    """Tests for table and column name overrides."""

    def test_defaults(self):
        """Test default table layout."""
        schema = TableSchema()

        assert schema.table == "cronjobs"
        assert schema.column(JobField.SLEEP_UNTIL) == "sleep_until"
        assert schema.column(JobField.INTERVAL) == "interval"
        assert schema.column(JobField.REPEAT_UNTIL) == "repeat_until"
        assert schema.column(JobField.AUTO_REMOVE) == "auto_remove"

    def test_custom_columns(self):
        """Test column overrides are used for field mapping."""
        schema = TableSchema(table="orders", sleep_until_column="run_at")

        assert schema.table == "orders"
        assert schema.column(JobField.SLEEP_UNTIL) == "run_at"

    @pytest.mark.parametrize("name", ["", "1table", "jobs; DROP TABLE x", "my-table", 'a"b'])
    def test_invalid_identifier(self, name):
        """Test unsafe identifiers are rejected."""
        with pytest.raises(ConfigurationError, match="Invalid SQL identifier"):
            TableSchema(table=name)

    def test_invalid_column(self):
        """Test column names are validated too."""
        with pytest.raises(ConfigurationError):
            TableSchema(interval_column="interval value")
