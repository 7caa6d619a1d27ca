"""
Two-replica last-writer-wins reconciler.

Lists both replicas, diffs them, keeps the operations the sync mode allows,
and applies them one at a time in plan order. Per-record write failures are
collected into the report; only a failed listing aborts a run.
"""

import logging
import time
from enum import Enum
from typing import Protocol

from opentelemetry import trace

from todosync.accessors.base import ReplicaAccessor
from todosync.diff import diff
from todosync.errors import AccessError, ReadError
from todosync.models import Operation, OperationKind, Plan, Record, Side
from todosync.report import OperationResult, SyncReport
from todosync.utils.logging import ContextLogger
from todosync.utils.metrics import SyncMetrics
from todosync.utils.retry import RetryExhausted, RetryPolicy, call_with_retry
from todosync.utils.tracing import add_span_attributes, trace_operation


class SyncMode(str, Enum):
    """Which direction(s) a run is allowed to write."""

    A_TO_B = "A-to-B"
    B_TO_A = "B-to-A"
    TWO_WAY = "two-way"

    @classmethod
    def parse(cls, value: "SyncMode | str") -> "SyncMode":
        """
        Resolve a mode from its canonical value or a command-line alias

        Args:
            value: SyncMode, "A-to-B", "local-to-deployed", "push", ...

        Raises:
            ValueError: If the value names no known mode
        """
        if isinstance(value, cls):
            return value

        key = str(value).strip()
        for mode in cls:
            if key.lower() == mode.value.lower():
                return mode

        if key.lower() in MODE_ALIASES:
            return MODE_ALIASES[key.lower()]

        valid = ", ".join([m.value for m in cls] + sorted(MODE_ALIASES))
        raise ValueError(f"Unknown sync mode '{value}'. Valid modes: {valid}")

    def allows(self, target: Side) -> bool:
        if self is SyncMode.A_TO_B:
            return target is Side.B
        if self is SyncMode.B_TO_A:
            return target is Side.A
        return True


# Replica A is the local sandbox, replica B the deployed environment
MODE_ALIASES = {
    "local-to-deployed": SyncMode.A_TO_B,
    "deployed-to-local": SyncMode.B_TO_A,
    "push": SyncMode.A_TO_B,
    "pull": SyncMode.B_TO_A,
    "merge": SyncMode.TWO_WAY,
}


class CancelSignal(Protocol):
    """Anything with ``is_set()``: asyncio.Event or threading.Event."""

    def is_set(self) -> bool: ...


def filter_plan(plan: Plan, mode: SyncMode) -> Plan:
    """
    Keep only the operations a sync mode allows

    Args:
        plan: Plan produced by diff
        mode: Sync mode

    Returns:
        New plan; no-op, invalid and duplicate bookkeeping is carried over
    """
    return Plan(
        operations=[op for op in plan.operations if mode.allows(op.target)],
        unchanged=list(plan.unchanged),
        invalid=list(plan.invalid),
        duplicates=list(plan.duplicates),
    )


class Reconciler:
    """
    Converges two replicas of the Todo collection.

    Args:
        side_a: Accessor for replica A (the local side in CLI terms)
        side_b: Accessor for replica B (the deployed side in CLI terms)
        retry_policy: Attempts, backoff and timeout for every accessor call
        logger: Logger or ContextLogger to report progress through
        metrics: Optional SyncMetrics to record runs and writes into
    """

    def __init__(
        self,
        side_a: ReplicaAccessor,
        side_b: ReplicaAccessor,
        retry_policy: RetryPolicy | None = None,
        logger: ContextLogger | logging.Logger | None = None,
        metrics: SyncMetrics | None = None,
    ):
        self.accessors = {Side.A: side_a, Side.B: side_b}
        self.retry_policy = retry_policy or RetryPolicy()
        self.metrics = metrics

        if isinstance(logger, ContextLogger):
            self.logger = logger
        else:
            self.logger = ContextLogger(
                logger or logging.getLogger(__name__),
                side_a=side_a.name,
                side_b=side_b.name,
            )

    def name_of(self, side: Side) -> str:
        return self.accessors[side].name

    def diff(self, records_a: list[Record], records_b: list[Record]) -> Plan:
        """Pure LWW diff of two snapshots (see todosync.diff.diff)."""
        plan = diff(records_a, records_b)

        for item in plan.invalid:
            self.logger.warning(
                f"Skipping record {item.record_id} from {self.name_of(item.side)}: {item.reason}"
            )

        return plan

    def _on_retry(self, operation: str, counter: list[int] | None = None):
        def callback(attempt: int, error: Exception, delay: float) -> None:
            if counter is not None:
                counter[0] += 1
            if self.metrics:
                self.metrics.record_retry(operation)
        return callback

    async def _list(self, side: Side) -> list[Record]:
        accessor = self.accessors[side]

        with trace_operation("list_replica", kind=trace.SpanKind.CLIENT, replica=accessor.name):
            try:
                records, _ = await call_with_retry(
                    accessor.list,
                    policy=self.retry_policy,
                    on_retry=self._on_retry("list"),
                )
            except RetryExhausted as e:
                raise ReadError(accessor.name, str(e.last_error)) from e.last_error
            except Exception as e:
                raise ReadError(accessor.name, f"{type(e).__name__}: {e}") from e

        self.logger.info(f"Found {len(records)} records in {accessor.name}")
        if self.metrics:
            self.metrics.record_replica_size(accessor.name, len(records))
        return records

    async def _execute(self, operation: Operation) -> OperationResult:
        accessor = self.accessors[operation.target]
        call = accessor.create if operation.kind is OperationKind.CREATE else accessor.update
        retries = [0]

        verb = "Creating" if operation.kind is OperationKind.CREATE else "Updating"
        self.logger.info(f"{verb} record in {accessor.name}: {operation.record.id}")

        with trace_operation(
            "apply_operation",
            kind=trace.SpanKind.CLIENT,
            replica=accessor.name,
            operation=operation.kind.value,
            record_id=operation.record.id,
        ) as span:
            try:
                _, attempts = await call_with_retry(
                    call,
                    operation.record,
                    policy=self.retry_policy,
                    on_retry=self._on_retry(operation.kind.value, retries),
                )
                result = OperationResult.applied(operation, attempts)
            except RetryExhausted as e:
                result = OperationResult.failed(
                    operation, f"{type(e.last_error).__name__}: {e.last_error}", e.attempts
                )
            except AccessError as e:
                result = OperationResult.failed(
                    operation, f"{type(e).__name__}: {e}", retries[0] + 1
                )
            except Exception as e:
                self.logger.error(
                    f"Unexpected error writing {operation.record.id}", exc_info=True
                )
                result = OperationResult.failed(
                    operation, f"{type(e).__name__}: {e}", retries[0] + 1
                )

            span.set_attribute("sync.outcome", result.outcome)

        if not result.ok:
            self.logger.error(
                f"Failed to {operation.kind.value} record {operation.record.id} "
                f"in {accessor.name}: {result.error}"
            )
        if self.metrics:
            self.metrics.record_operation(
                operation.target.value, operation.kind.value, result.outcome
            )
        return result

    async def apply(
        self,
        plan: Plan,
        mode: SyncMode | str = SyncMode.TWO_WAY,
        cancel_event: CancelSignal | None = None,
    ) -> SyncReport:
        """
        Execute a plan against the replicas

        Operations run strictly sequentially in plan order. Each write is
        retried per the retry policy; a write that still fails is recorded
        in the report and the loop moves on. When ``cancel_event`` is set,
        no further writes are started and the partial report is returned.

        Args:
            plan: Plan to execute
            mode: Mode label stored in the report
            cancel_event: Optional cancellation signal checked between writes

        Returns:
            SyncReport describing every executed operation
        """
        mode = SyncMode.parse(mode)
        report = SyncReport.for_plan(
            plan, mode.value, side_a=self.name_of(Side.A), side_b=self.name_of(Side.B)
        )

        for operation in plan.operations:
            if cancel_event is not None and cancel_event.is_set():
                report.cancelled = True
                self.logger.warning(
                    f"Sync cancelled with {len(plan.operations) - len(report.results)} "
                    f"operation(s) not started"
                )
                break

            report.record(await self._execute(operation))

        return report.finish()

    async def run(
        self,
        mode: SyncMode | str = SyncMode.TWO_WAY,
        cancel_event: CancelSignal | None = None,
    ) -> SyncReport:
        """
        List both replicas, diff, filter by mode, and apply

        Args:
            mode: A-to-B, B-to-A or two-way (CLI aliases accepted)
            cancel_event: Optional cancellation signal checked between writes

        Returns:
            SyncReport of the run

        Raises:
            ReadError: If either replica cannot be listed; nothing is written
        """
        mode = SyncMode.parse(mode)
        started = time.monotonic()

        self.logger.info(
            f"Starting {mode.value} sync between {self.name_of(Side.A)} (A) "
            f"and {self.name_of(Side.B)} (B)"
        )

        with trace_operation("sync_run", mode=mode.value):
            try:
                records_a = await self._list(Side.A)
                records_b = await self._list(Side.B)
            except ReadError as e:
                self.logger.error(f"Sync aborted before any write: {e}")
                self._record_run(mode, "ABORTED", started)
                raise

            plan = filter_plan(self.diff(records_a, records_b), mode)
            self.logger.info(
                f"Planned {len(plan)} operation(s), {len(plan.unchanged)} record(s) already in sync"
            )

            report = await self.apply(plan, mode=mode, cancel_event=cancel_event)
            add_span_attributes(
                status=report.status,
                failed=report.failed,
                operations=len(report.results),
            )

        self._record_run(mode, report.status, started)
        self.logger.info(f"{mode.value} sync finished: {report.status}")
        return report

    def _record_run(self, mode: SyncMode, status: str, started: float) -> None:
        if self.metrics:
            self.metrics.record_run(mode.value, status, time.monotonic() - started)

