"""
Exception hierarchy for replica synchronization.

ReadError is fatal to a sync run. AccessError and NotFoundError are
per-operation failures that get aggregated into the report. ParseError marks
a record whose timestamp cannot be trusted.
"""


class SyncError(Exception):
    """Base class for all synchronization errors"""


class ReadError(SyncError):
    """Listing a replica failed; the run aborts before any write."""

    def __init__(self, replica: str, message: str):
        self.replica = replica
        super().__init__(f"Failed to list replica '{replica}': {message}")


class AccessError(SyncError):
    """
    A single accessor call failed.

    Args:
        message: Human-readable error description
        retryable: Whether retrying the same call could succeed
    """

    def __init__(self, message: str, retryable: bool = True):
        super().__init__(message)
        self.retryable = retryable


class NotFoundError(AccessError):
    """Update targeted a record that does not exist upstream."""

    def __init__(self, record_id: str, replica: str | None = None):
        self.record_id = record_id
        where = f" in replica '{replica}'" if replica else ""
        super().__init__(f"Record '{record_id}' not found{where}", retryable=False)


class ParseError(SyncError):
    """A record carries a malformed timestamp."""

    def __init__(self, value, field: str = "updatedAt"):
        self.value = value
        self.field = field
        super().__init__(f"Malformed {field} timestamp: {value!r}")


class ConfigurationError(SyncError):
    """Replica configuration is missing or unreadable."""
