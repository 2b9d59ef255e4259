"""Custom exceptions for tablecron."""

class TablecronError(Exception):
    pass


class StoreError(TablecronError):
    """Raised when a job store operation fails."""
    pass


class JobNotFoundError(TablecronError):
    """Raised when a job is not found in the store."""

    def __init__(self, job_id: str):
        self.job_id = job_id
        super().__init__(f"Job '{job_id}' not found")


class ConfigurationError(TablecronError, ValueError):
    """Raised when a configuration value or schema identifier is invalid."""
    pass
