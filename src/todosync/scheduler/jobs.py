"""
Job functions for scheduled syncs.

Each call runs one sync in a fresh event loop and saves the report next to
the previous ones as ``sync_<YYYYmmdd_HHMMSS>.json``.
"""

import asyncio
import logging
from datetime import UTC, datetime
from pathlib import Path
from typing import Any

from todosync.errors import ConfigurationError, ReadError
from todosync.utils.metrics import SyncMetrics
from todosync.utils.retry import RetryPolicy

logger = logging.getLogger(__name__)


def sync_job_wrapper(
    local_config: dict[str, Any],
    deployed_config: dict[str, Any],
    mode: str = "two-way",
    output_dir: str = "./sync_reports",
    retry_policy: RetryPolicy | None = None,
    metrics: SyncMetrics | None = None,
) -> dict[str, Any] | None:
    """
    Run one scheduled sync and save its report

    A replica that cannot be listed only skips this run; the scheduler keeps
    going and tries again at the next trigger.

    Args:
        local_config: Local replica configuration (side A)
        deployed_config: Deployed replica configuration (side B)
        mode: Sync mode or CLI alias
        output_dir: Directory to save sync reports
        retry_policy: Retry settings for accessor calls
        metrics: Optional SyncMetrics shared across runs

    Returns:
        The saved report dictionary, or None if the run was skipped
    """
    from todosync.report import export_report_json
    from todosync.runner import run_sync

    timestamp = datetime.now(UTC).strftime("%Y%m%d_%H%M%S")
    output_path = Path(output_dir) / f"sync_{timestamp}.json"
    Path(output_dir).mkdir(parents=True, exist_ok=True)

    logger.info(f"Starting scheduled {mode} sync at {timestamp}")

    try:
        report = asyncio.run(
            run_sync(
                local_config,
                deployed_config,
                mode=mode,
                retry_policy=retry_policy,
                metrics=metrics,
            )
        )
    except (ReadError, ConfigurationError) as e:
        logger.error(f"Scheduled sync skipped: {e}")
        return None

    report_dict = report.to_dict()
    export_report_json(report_dict, str(output_path))

    logger.info(f"Sync complete. Report saved to {output_path}")
    logger.info(f"Status: {report_dict['status']}")
    if report.failed:
        logger.warning(
            f"{report.failed} record(s) failed to sync: "
            f"{[f.record_id for f in report.failures]}"
        )

    return report_dict
