"""
Property-based tests for last-writer-wins reconciliation using Hypothesis.

Invariants that should hold for any pair of replicas:
- Two-way sync converges both replicas to the newest version of every id
- A second run right after a successful one plans nothing
- Diffing is symmetric in the two sides
- Every id is either written or left unchanged, exactly once
- One-way modes never write to the source replica
"""

import asyncio
from datetime import UTC, datetime, timedelta

from hypothesis import given, settings
from hypothesis import strategies as st

from todosync.accessors import InMemoryAccessor
from todosync.diff import diff
from todosync.models import OperationKind, Record, Side
from todosync.reconciler import Reconciler, SyncMode
from todosync.utils.retry import RetryPolicy

EPOCH = datetime(1970, 1, 1, tzinfo=UTC)

record_ids = st.sampled_from([f"todo-{i}" for i in range(12)])
timestamps_ms = st.integers(min_value=0, max_value=4_102_444_800_000)  # up to 2100

# id -> updatedAt (epoch ms) for one replica
replica_states = st.dictionaries(record_ids, timestamps_ms, max_size=12)


def _iso(ms: int) -> str:
    moment = EPOCH + timedelta(milliseconds=ms)
    return moment.isoformat(timespec="milliseconds").replace("+00:00", "Z")


def _records(state: dict[str, int]) -> list[Record]:
    # Content is derived from the timestamp so equal timestamps mean equal records
    return [
        Record(
            id=record_id,
            content=f"version {ms}",
            completed=ms % 2 == 0,
            created_at=_iso(0),
            updated_at=_iso(ms),
        )
        for record_id, ms in state.items()
    ]


def _run(state_a, state_b, mode=SyncMode.TWO_WAY):
    replica_a = InMemoryAccessor("A", _records(state_a))
    replica_b = InMemoryAccessor("B", _records(state_b))
    reconciler = Reconciler(replica_a, replica_b, retry_policy=RetryPolicy(base_delay=0))
    report = asyncio.run(reconciler.run(mode))
    return replica_a, replica_b, report


@settings(max_examples=75, deadline=None)
@given(state_a=replica_states, state_b=replica_states)
def test_two_way_sync_converges_to_newest(state_a, state_b):
    """Both replicas end up holding the newest version of every id."""
    replica_a, replica_b, report = _run(state_a, state_b)

    assert report.failed == 0
    assert replica_a.records == replica_b.records

    for record_id in set(state_a) | set(state_b):
        newest = max(state_a.get(record_id, -1), state_b.get(record_id, -1))
        assert replica_a.records[record_id].updated_at == _iso(newest)


@settings(max_examples=50, deadline=None)
@given(state_a=replica_states, state_b=replica_states)
def test_second_run_is_noop(state_a, state_b):
    """Re-running after a successful two-way sync writes nothing."""
    replica_a, replica_b, _ = _run(state_a, state_b)

    plan = diff(list(replica_a.records.values()), list(replica_b.records.values()))

    assert plan.is_empty()
    assert sorted(plan.unchanged) == sorted(replica_a.records)


@given(state_a=replica_states, state_b=replica_states)
def test_diff_is_symmetric(state_a, state_b):
    """Swapping the replicas swaps the targets and nothing else."""
    forward = diff(_records(state_a), _records(state_b))
    backward = diff(_records(state_b), _records(state_a))

    def keyed(plan, swap):
        return {
            (op.target.other if swap else op.target, op.kind, op.record.id, op.record.updated_at)
            for op in plan.operations
        }

    assert keyed(forward, swap=False) == keyed(backward, swap=True)
    assert sorted(forward.unchanged) == sorted(backward.unchanged)


@given(state_a=replica_states, state_b=replica_states)
def test_every_id_classified_once(state_a, state_b):
    """Each id lands in exactly one of: written, or already in sync."""
    plan = diff(_records(state_a), _records(state_b))

    written = [op.record.id for op in plan.operations]
    assert len(written) == len(set(written))
    assert set(written).isdisjoint(plan.unchanged)
    assert set(written) | set(plan.unchanged) == set(state_a) | set(state_b)

    for op in plan.operations:
        record_id = op.record.id
        if op.kind is OperationKind.CREATE:
            source = state_a if op.target is Side.B else state_b
            assert record_id in source
            assert record_id not in (state_b if op.target is Side.B else state_a)
        else:
            assert record_id in state_a and record_id in state_b
            assert state_a[record_id] != state_b[record_id]


@given(state=replica_states)
def test_identical_replicas_plan_nothing(state):
    plan = diff(_records(state), _records(state))

    assert plan.is_empty()
    assert len(plan.unchanged) == len(state)


@settings(max_examples=50, deadline=None)
@given(
    state_a=replica_states,
    state_b=replica_states,
    mode=st.sampled_from([SyncMode.A_TO_B, SyncMode.B_TO_A]),
)
def test_one_way_modes_leave_source_untouched(state_a, state_b, mode):
    replica_a, replica_b, report = _run(state_a, state_b, mode)

    source = replica_a if mode is SyncMode.A_TO_B else replica_b
    assert source.writes == []
    assert all(mode.allows(result.target) for result in report.results)
