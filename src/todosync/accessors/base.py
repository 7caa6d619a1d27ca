"""
Replica accessor interface.

An accessor is the only way the reconciler reads or writes a replica.
Every method is a coroutine; implementations raise AccessError (or
NotFoundError for updates of unknown ids) and nothing else for upstream
failures.
"""

from abc import ABC, abstractmethod

from todosync.models import Record


class ReplicaAccessor(ABC):
    """Narrow read/write capability over one replica of the Todo collection."""

    def __init__(self, name: str):
        self.name = name

    @abstractmethod
    async def list(self) -> list[Record]:
        """Return every record currently in the replica."""

    @abstractmethod
    async def create(self, record: Record) -> Record:
        """Create a record, keeping its pre-assigned id and timestamps."""

    @abstractmethod
    async def update(self, record: Record) -> Record:
        """Overwrite an existing record; NotFoundError if the id is unknown."""

    async def close(self) -> None:
        """Release any held resources."""

    async def __aenter__(self) -> "ReplicaAccessor":
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.close()

    def __repr__(self) -> str:
        return f"{type(self).__name__}(name={self.name!r})"
