"""
Replica snapshots and smoke-test records.

``export_replica`` dumps a replica into a timestamped JSON file under
``data-export/`` and ``import_snapshot`` loads such a file back into a
replica. ``create_test_record`` builds the record that
``todosync create-test`` writes to both replicas.
"""

import json
import logging
import time
from pathlib import Path

from todosync.accessors.base import ReplicaAccessor
from todosync.accessors.memory import InMemoryAccessor
from todosync.models import Record, utc_now_iso
from todosync.reconciler import Reconciler, SyncMode
from todosync.report import SyncReport
from todosync.utils.retry import RetryPolicy

logger = logging.getLogger(__name__)

DEFAULT_EXPORT_DIR = "data-export"


def export_filename(source: str, timestamp: str) -> str:
    """File name for a snapshot; ``:`` and ``.`` in the timestamp become ``-``."""
    safe = timestamp.replace(":", "-").replace(".", "-")
    return f"{source}-export-{safe}.json"


async def export_replica(
    accessor: ReplicaAccessor,
    output_dir: str | Path = DEFAULT_EXPORT_DIR,
    source: str | None = None,
) -> Path:
    """
    Write a JSON snapshot of a replica

    The file holds ``{"timestamp", "source", "data"}`` where ``data`` is the
    replica's records in wire form.

    Args:
        accessor: Replica to snapshot
        output_dir: Directory for the snapshot (created if missing)
        source: Label used in the file name (default: accessor name)

    Returns:
        Path of the written file

    Raises:
        AccessError: If the replica cannot be listed
    """
    source = source or accessor.name
    records = await accessor.list()
    timestamp = utc_now_iso()

    output_path = Path(output_dir)
    output_path.mkdir(parents=True, exist_ok=True)
    path = output_path / export_filename(source, timestamp)

    with open(path, "w", encoding="utf-8") as f:
        json.dump(
            {
                "timestamp": timestamp,
                "source": source,
                "data": [record.to_dict() for record in records],
            },
            f,
            indent=2,
        )

    logger.info(f"Exported {len(records)} records from {source} to {path}")
    return path


def create_test_record(now_ms: int | None = None) -> Record:
    """
    Build a record for checking that both replicas accept writes

    Args:
        now_ms: Epoch milliseconds used for the id (default: current time)
    """
    now_ms = now_ms if now_ms is not None else int(time.time() * 1000)
    now = utc_now_iso()
    return Record(
        id=f"test-todo-{now_ms}",
        content=f"Test Todo created at {now}",
        completed=False,
        created_at=now,
        updated_at=now,
    )


def load_snapshot(path: str | Path) -> tuple[str, list[Record]]:
    """
    Read a file written by export_replica

    Entries without an id are skipped with a warning.

    Returns:
        Tuple of (source label, records)

    Raises:
        OSError: If the file cannot be read
        ValueError: If it is not JSON or has no ``data`` list
    """
    with open(path, encoding="utf-8") as f:
        snapshot = json.load(f)

    if not isinstance(snapshot, dict) or not isinstance(snapshot.get("data"), list):
        raise ValueError(f"{path} is not a replica export (no 'data' list)")

    records = []
    for item in snapshot["data"]:
        try:
            records.append(Record.from_dict(item))
        except (TypeError, ValueError) as e:
            logger.warning(f"Skipping unreadable entry in {path}: {e}")

    return snapshot.get("source") or Path(path).stem, records


async def import_snapshot(
    accessor: ReplicaAccessor,
    path: str | Path,
    retry_policy: RetryPolicy | None = None,
) -> SyncReport:
    """
    Load an export file into a replica under last-writer-wins

    The snapshot is treated as replica A and the target as replica B of a
    one-way A-to-B run: ids missing from the target are created, ids the
    snapshot holds a newer version of are updated, everything else is left
    alone.

    Args:
        accessor: Replica to write into
        path: File written by export_replica
        retry_policy: Retry policy for the target's calls

    Returns:
        SyncReport of the writes made to the target

    Raises:
        OSError, ValueError: If the snapshot cannot be loaded
        ReadError: If the target cannot be listed
    """
    source, records = load_snapshot(path)
    logger.info(f"Importing {len(records)} records from {source} export into {accessor.name}")

    snapshot = InMemoryAccessor(f"{source}-export", records)
    reconciler = Reconciler(snapshot, accessor, retry_policy=retry_policy)
    return await reconciler.run(SyncMode.A_TO_B)
