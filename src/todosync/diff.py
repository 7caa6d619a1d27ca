"""
Last-writer-wins diff between two replica snapshots.

Classifies every id seen on either side and emits the writes needed to make
both sides agree. Pure function of its inputs: no I/O, no clock reads.
"""

import logging
from collections.abc import Iterable

from todosync.errors import ParseError
from todosync.models import InvalidRecord, Operation, OperationKind, Plan, Record, Side

logger = logging.getLogger(__name__)


def index_records(
    records: Iterable[Record],
    side: Side,
    plan: Plan,
) -> dict[str, tuple[Record, int | None]]:
    """
    Build an id -> (record, updated_at_ms) mapping for one side.

    A record whose ``updatedAt`` does not parse is kept with a ``None``
    timestamp. When an id is listed twice the copy with the greatest
    timestamp wins (a parsable copy beats an unparsable one) and the id is
    noted in ``plan.duplicates``. Only ids whose kept copy is unparsable
    are noted in ``plan.invalid``.
    """
    indexed: dict[str, tuple[Record, int | None]] = {}
    parse_errors: dict[str, str] = {}

    for record in records:
        reason = None
        try:
            stamp = record.updated_at_ms()
        except ParseError as e:
            stamp = None
            reason = str(e)

        if record.id in indexed:
            plan.duplicates.append((side, record.id))
            logger.warning(f"Replica {side.value} lists id {record.id} more than once")
            _, kept_stamp = indexed[record.id]
            if kept_stamp is not None and (stamp is None or stamp <= kept_stamp):
                continue

        indexed[record.id] = (record, stamp)
        if reason is not None:
            parse_errors[record.id] = reason

    for record_id, (_, stamp) in indexed.items():
        if stamp is None:
            plan.invalid.append(
                InvalidRecord(side=side, record_id=record_id, reason=parse_errors[record_id])
            )

    return indexed


def diff(side_a: Iterable[Record], side_b: Iterable[Record]) -> Plan:
    """
    Compute the plan that converges two replicas under last-writer-wins

    Every id lands in exactly one class:
    - A-only: create on B from A's record
    - B-only: create on A from B's record
    - common, A newer: update B with A's record
    - common, B newer: update A with B's record
    - common, equal ``updatedAt``: no action (field differences are ignored)

    Ids whose record carries a malformed timestamp on either side are left
    out of the plan entirely.

    Args:
        side_a: Records listed from replica A (order irrelevant)
        side_b: Records listed from replica B (order irrelevant)

    Returns:
        Plan with updates for common ids first (in A's order), then
        creates on B, then creates on A
    """
    plan = Plan()
    index_a = index_records(side_a, Side.A, plan)
    index_b = index_records(side_b, Side.B, plan)
    invalid_ids = {item.record_id for item in plan.invalid}

    creates_on_b: list[Operation] = []
    for record_id, (record_a, stamp_a) in index_a.items():
        if record_id in invalid_ids:
            continue

        if record_id not in index_b:
            creates_on_b.append(Operation(Side.B, OperationKind.CREATE, record_a))
            continue

        record_b, stamp_b = index_b[record_id]
        if stamp_a > stamp_b:
            plan.operations.append(Operation(Side.B, OperationKind.UPDATE, record_a))
        elif stamp_b > stamp_a:
            plan.operations.append(Operation(Side.A, OperationKind.UPDATE, record_b))
        else:
            plan.unchanged.append(record_id)

    plan.operations.extend(creates_on_b)

    for record_id, (record_b, _) in index_b.items():
        if record_id in invalid_ids or record_id in index_a:
            continue
        plan.operations.append(Operation(Side.A, OperationKind.CREATE, record_b))

    logger.debug(
        f"Diff complete: {len(index_a)} ids on A, {len(index_b)} ids on B, "
        f"{len(plan.operations)} operations, {len(plan.unchanged)} unchanged, "
        f"{len(plan.invalid)} invalid"
    )

    return plan
