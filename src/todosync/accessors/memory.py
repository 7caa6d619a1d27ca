"""
In-memory replica, used as a test double.
"""

from __future__ import annotations

from todosync.accessors.base import ReplicaAccessor
from todosync.errors import AccessError, NotFoundError
from todosync.models import Record


class InMemoryAccessor(ReplicaAccessor):
    """
    Dict-backed replica that behaves like a faithful upstream.

    Records are stored as given (timestamps included), listed in insertion
    order, and every call is counted in ``calls`` for assertions.
    """

    def __init__(self, name: str = "memory", records: list[Record] | None = None):
        super().__init__(name)
        self.records: dict[str, Record] = {}
        self.calls: list[tuple[str, str | None]] = []
        for record in records or []:
            self.records[record.id] = record

    async def list(self) -> list[Record]:
        self.calls.append(("list", None))
        return list(self.records.values())

    async def create(self, record: Record) -> Record:
        self.calls.append(("create", record.id))
        if record.id in self.records:
            raise AccessError(
                f"Record '{record.id}' already exists in replica '{self.name}'",
                retryable=False,
            )
        self.records[record.id] = record
        return record

    async def update(self, record: Record) -> Record:
        self.calls.append(("update", record.id))
        if record.id not in self.records:
            raise NotFoundError(record.id, self.name)
        self.records[record.id] = record
        return record

    @property
    def writes(self) -> list[tuple[str, str | None]]:
        """Calls other than list, in order."""
        return [call for call in self.calls if call[0] != "list"]
