"""
Report generation for sync runs.

A SyncReport accumulates the outcome of every executed operation and
derives the per-category counts shown to the user.
"""

from dataclasses import dataclass, field
from datetime import UTC, datetime
from typing import Any

from todosync.models import Operation, OperationKind, Plan, Side


class ReportStatus:
    """Constants for overall report status."""

    SUCCESS = "SUCCESS"
    PARTIAL = "PARTIAL"
    CANCELLED = "CANCELLED"


class OutcomeType:
    """Constants for per-operation outcomes."""

    APPLIED = "APPLIED"
    FAILED = "FAILED"


@dataclass
class OperationResult:
    """Outcome of one executed operation."""

    record_id: str
    target: Side
    kind: OperationKind
    outcome: str
    attempts: int = 1
    error: str | None = None

    @classmethod
    def applied(cls, operation: Operation, attempts: int) -> "OperationResult":
        return cls(
            record_id=operation.record.id,
            target=operation.target,
            kind=operation.kind,
            outcome=OutcomeType.APPLIED,
            attempts=attempts,
        )

    @classmethod
    def failed(cls, operation: Operation, error: str, attempts: int) -> "OperationResult":
        return cls(
            record_id=operation.record.id,
            target=operation.target,
            kind=operation.kind,
            outcome=OutcomeType.FAILED,
            attempts=attempts,
            error=error,
        )

    @property
    def ok(self) -> bool:
        return self.outcome == OutcomeType.APPLIED

    def to_dict(self) -> dict[str, Any]:
        return {
            "record_id": self.record_id,
            "target": self.target.value,
            "kind": self.kind.value,
            "outcome": self.outcome,
            "attempts": self.attempts,
            "error": self.error,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "OperationResult":
        return cls(
            record_id=data["record_id"],
            target=Side(data["target"]),
            kind=OperationKind(data["kind"]),
            outcome=data["outcome"],
            attempts=data.get("attempts", 1),
            error=data.get("error"),
        )


@dataclass
class SyncReport:
    """
    Outcome summary of a sync run

    Counts are derived from ``results`` so they can never drift from the
    per-operation record. ``skipped`` counts ids already in sync;
    ``skipped_invalid`` counts records excluded for malformed timestamps.
    """

    mode: str
    side_a: str = "A"
    side_b: str = "B"
    results: list[OperationResult] = field(default_factory=list)
    skipped: int = 0
    skipped_invalid: int = 0
    invalid_records: list[dict[str, str]] = field(default_factory=list)
    cancelled: bool = False
    started_at: str = field(default_factory=lambda: datetime.now(UTC).isoformat())
    finished_at: str | None = None

    @classmethod
    def for_plan(cls, plan: Plan, mode: str, side_a: str = "A", side_b: str = "B") -> "SyncReport":
        """Start a report seeded with the plan's no-op and invalid counts."""
        return cls(
            mode=mode,
            side_a=side_a,
            side_b=side_b,
            skipped=len(plan.unchanged),
            skipped_invalid=len(plan.invalid),
            invalid_records=[
                {"side": item.side.value, "record_id": item.record_id, "reason": item.reason}
                for item in plan.invalid
            ],
        )

    def record(self, result: OperationResult) -> None:
        self.results.append(result)

    def finish(self) -> "SyncReport":
        self.finished_at = datetime.now(UTC).isoformat()
        return self

    def _count(self, target: Side, kind: OperationKind) -> int:
        return sum(
            1 for r in self.results
            if r.ok and r.target is target and r.kind is kind
        )

    @property
    def created_on_a(self) -> int:
        return self._count(Side.A, OperationKind.CREATE)

    @property
    def created_on_b(self) -> int:
        return self._count(Side.B, OperationKind.CREATE)

    @property
    def updated_on_a(self) -> int:
        return self._count(Side.A, OperationKind.UPDATE)

    @property
    def updated_on_b(self) -> int:
        return self._count(Side.B, OperationKind.UPDATE)

    @property
    def failures(self) -> list[OperationResult]:
        return [r for r in self.results if not r.ok]

    @property
    def failed(self) -> int:
        return len(self.failures)

    @property
    def succeeded_ids(self) -> list[str]:
        return [r.record_id for r in self.results if r.ok]

    @property
    def status(self) -> str:
        if self.cancelled:
            return ReportStatus.CANCELLED
        if self.failed:
            return ReportStatus.PARTIAL
        return ReportStatus.SUCCESS

    def counts(self) -> dict[str, int]:
        """Per-category counts."""
        return {
            "created_on_a": self.created_on_a,
            "created_on_b": self.created_on_b,
            "updated_on_a": self.updated_on_a,
            "updated_on_b": self.updated_on_b,
            "skipped": self.skipped,
            "skipped_invalid": self.skipped_invalid,
            "failed": self.failed,
        }

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return {
            "status": self.status,
            "mode": self.mode,
            "side_a": self.side_a,
            "side_b": self.side_b,
            "counts": self.counts(),
            "failures": [r.to_dict() for r in self.failures],
            "results": [r.to_dict() for r in self.results],
            "invalid_records": list(self.invalid_records),
            "cancelled": self.cancelled,
            "summary": generate_summary(self),
            "started_at": self.started_at,
            "finished_at": self.finished_at,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "SyncReport":
        """
        Rebuild a report from its JSON form

        Args:
            data: Dictionary produced by ``to_dict``

        Returns:
            SyncReport with results restored; counts are re-derived
        """
        counts = data.get("counts", {})
        return cls(
            mode=data["mode"],
            side_a=data.get("side_a", "A"),
            side_b=data.get("side_b", "B"),
            results=[OperationResult.from_dict(r) for r in data.get("results", [])],
            skipped=counts.get("skipped", 0),
            skipped_invalid=counts.get("skipped_invalid", 0),
            invalid_records=data.get("invalid_records", []),
            cancelled=data.get("cancelled", False),
            started_at=data.get("started_at", ""),
            finished_at=data.get("finished_at"),
        )


def generate_summary(report: SyncReport) -> str:
    """
    Generate a one-line human-readable summary

    Args:
        report: Sync report

    Returns:
        Summary string
    """
    written = (
        report.created_on_a + report.created_on_b
        + report.updated_on_a + report.updated_on_b
    )

    if report.cancelled:
        return f"Sync cancelled after {written} write(s); {report.failed} failed."

    if written == 0 and report.failed == 0:
        return f"Replicas already in sync ({report.skipped} record(s) unchanged)."

    if report.failed == 0:
        return f"Sync complete: {written} write(s) applied, {report.skipped} unchanged."

    return (
        f"Sync finished with failures: {written} write(s) applied, "
        f"{report.failed} failed, {report.skipped} unchanged."
    )
