"""
Data model for Todo replica synchronization.

Records travel on the wire with camelCase keys (as the GraphQL API returns
them) and live in Python as snake_case dataclasses.
"""

from dataclasses import dataclass, field
from datetime import UTC, datetime, timedelta
from enum import Enum
from typing import Any

from todosync.errors import ParseError

_EPOCH = datetime(1970, 1, 1, tzinfo=UTC)
_ONE_MS = timedelta(milliseconds=1)


def parse_timestamp(value: Any) -> int:
    """
    Parse an ISO-8601 timestamp into milliseconds since the Unix epoch

    Accepts a trailing ``Z`` or a numeric UTC offset. Naive timestamps are
    treated as UTC. Sub-millisecond precision is truncated.

    Args:
        value: Timestamp string

    Returns:
        Milliseconds since 1970-01-01T00:00:00Z

    Raises:
        ParseError: If the value is not a parsable ISO-8601 string
    """
    if not isinstance(value, str) or not value.strip():
        raise ParseError(value)

    try:
        parsed = datetime.fromisoformat(value.strip())
    except ValueError as e:
        raise ParseError(value) from e

    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=UTC)

    return (parsed - _EPOCH) // _ONE_MS


def utc_now_iso() -> str:
    """Current UTC time in the millisecond ISO form the GraphQL API emits."""
    return datetime.now(UTC).isoformat(timespec="milliseconds").replace("+00:00", "Z")


@dataclass(frozen=True)
class Record:
    """A single Todo item, the unit of synchronization."""

    id: str
    content: str
    completed: bool = False
    created_at: str | None = None
    updated_at: str | None = None

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Record":
        """
        Build a record from its wire form

        Args:
            data: Dictionary with ``id``, ``content``, ``completed``,
                ``createdAt`` and ``updatedAt`` keys

        Returns:
            Record instance (unknown keys are ignored)
        """
        if "id" not in data or data["id"] in (None, ""):
            raise ValueError(f"Record is missing an id: {data!r}")

        return cls(
            id=str(data["id"]),
            content=data.get("content") or "",
            completed=bool(data.get("completed") or False),
            created_at=data.get("createdAt"),
            updated_at=data.get("updatedAt"),
        )

    def to_dict(self) -> dict[str, Any]:
        """Convert to the camelCase wire form."""
        return {
            "id": self.id,
            "content": self.content,
            "completed": self.completed,
            "createdAt": self.created_at,
            "updatedAt": self.updated_at,
        }

    def updated_at_ms(self) -> int:
        """Parsed ``updatedAt`` in epoch milliseconds (raises ParseError)."""
        return parse_timestamp(self.updated_at)


class Side(str, Enum):
    """Label of a replica within one reconciler."""

    A = "A"
    B = "B"

    @property
    def other(self) -> "Side":
        return Side.B if self is Side.A else Side.A


class OperationKind(str, Enum):
    CREATE = "create"
    UPDATE = "update"


@dataclass(frozen=True)
class Operation:
    """One write to perform against one replica."""

    target: Side
    kind: OperationKind
    record: Record

    def to_dict(self) -> dict[str, Any]:
        return {
            "target": self.target.value,
            "kind": self.kind.value,
            "record": self.record.to_dict(),
        }


@dataclass(frozen=True)
class InvalidRecord:
    """A record excluded from diffing because its timestamp is malformed."""

    side: Side
    record_id: str
    reason: str


@dataclass
class Plan:
    """
    The ordered list of writes computed by ``diff``, not yet executed.

    Attributes:
        operations: Writes to perform, in execution order
        unchanged: Ids present on both sides with equal ``updatedAt``
        invalid: Records excluded because of a malformed timestamp
        duplicates: (side, id) pairs listed more than once by a replica
    """

    operations: list[Operation] = field(default_factory=list)
    unchanged: list[str] = field(default_factory=list)
    invalid: list[InvalidRecord] = field(default_factory=list)
    duplicates: list[tuple[Side, str]] = field(default_factory=list)

    def __len__(self) -> int:
        return len(self.operations)

    def is_empty(self) -> bool:
        return not self.operations

    def targeting(self, side: Side) -> list[Operation]:
        """Operations that write to the given side."""
        return [op for op in self.operations if op.target is side]

    def count(self, target: Side, kind: OperationKind) -> int:
        return sum(1 for op in self.operations if op.target is target and op.kind is kind)
