"""
CLI command implementations.

- run: One sync between the local and deployed replicas
- export: JSON snapshots of one or both replicas
- import: Loading of an export file into one replica
- create-test: One test record written to both replicas
- schedule: Periodic scheduled syncs
- report: Rendering of a saved sync report
"""

import argparse
import asyncio
import logging
import signal
import sys
from pathlib import Path
from typing import Callable

from todosync.errors import AccessError, ReadError
from todosync.export import create_test_record, export_replica, import_snapshot
from todosync.report import (
    SyncReport,
    export_report_csv,
    export_report_json,
    format_report_console,
    load_report_json,
)
from todosync.runner import build_accessor, run_sync
from todosync.scheduler import SyncScheduler, sync_job_wrapper

from .settings import get_replica_configs, get_retry_policy, setup_observability

logger = logging.getLogger(__name__)

PROMPT_CHOICES = {
    "1": "local-to-deployed",
    "2": "deployed-to-local",
    "3": "two-way",
}


def prompt_for_mode(input_func: Callable[[str], str] = input) -> str | None:
    """
    Ask for the sync direction interactively

    Returns:
        The chosen mode, or None for an invalid choice
    """
    print("Select synchronization direction:")
    print("1. Local to deployed (push)")
    print("2. Deployed to local (pull)")
    print("3. Two-way sync (merge)")

    try:
        choice = input_func("Enter your choice (1, 2, or 3): ").strip()
    except EOFError:
        return None
    return PROMPT_CHOICES.get(choice)


async def _run_until_interrupted(local_config, deployed_config, mode, retry_policy, metrics):
    """Run one sync; Ctrl+C stops before the next write instead of mid-write."""
    cancel_event = asyncio.Event()
    loop = asyncio.get_running_loop()
    handler_installed = True

    try:
        loop.add_signal_handler(signal.SIGINT, cancel_event.set)
    except (NotImplementedError, RuntimeError):
        # Event loops without signal support (Windows) keep the default handler
        handler_installed = False

    try:
        return await run_sync(
            local_config,
            deployed_config,
            mode=mode,
            retry_policy=retry_policy,
            metrics=metrics,
            cancel_event=cancel_event,
        )
    finally:
        if handler_installed:
            loop.remove_signal_handler(signal.SIGINT)


def _write_report(report: SyncReport, output: str | None, output_format: str) -> None:
    report_dict = report.to_dict()

    if output and output_format in ("json", "csv"):
        output_path = Path(output)
        output_path.parent.mkdir(parents=True, exist_ok=True)
        if output_format == "json":
            export_report_json(report_dict, str(output_path))
        else:
            export_report_csv(report_dict, str(output_path))
        logger.info(f"Report saved to {output_path}")
        return

    print(format_report_console(report_dict))


def cmd_run(args: argparse.Namespace) -> None:
    """
    Run one sync

    Exits 1 when a replica cannot be listed or the prompt answer is
    invalid. Per-record failures are reported but do not change the exit
    code.

    Args:
        args: Parsed command-line arguments
    """
    mode = args.mode or prompt_for_mode()
    if mode is None:
        logger.error("Invalid choice. Please enter 1, 2, or 3.")
        sys.exit(1)

    local_config, deployed_config = get_replica_configs(args)
    retry_policy = get_retry_policy(args)
    metrics = setup_observability(args)

    logger.info(f"Starting {mode} sync")

    try:
        report = asyncio.run(
            _run_until_interrupted(local_config, deployed_config, mode, retry_policy, metrics)
        )
    except ReadError as e:
        logger.error(f"Sync failed: {e}")
        sys.exit(1)

    _write_report(report, args.output, args.format)

    if report.cancelled:
        logger.warning("Sync cancelled before all operations were applied")
    elif report.failed:
        logger.warning(f"{report.failed} record(s) could not be synced")
    else:
        logger.info("Data synchronization completed successfully")


async def _export_sides(configs: list[dict], output_dir: str) -> list[str]:
    failed = []
    for config in configs:
        try:
            async with build_accessor(config) as accessor:
                path = await export_replica(accessor, output_dir, source=config["name"])
            print(f"Exported {config['name']} replica to {path}")
        except AccessError as e:
            logger.error(f"Failed to export {config['name']} replica: {e}")
            failed.append(config["name"])
    return failed


def cmd_export(args: argparse.Namespace) -> None:
    """
    Export one or both replicas to timestamped JSON files

    Args:
        args: Parsed command-line arguments
    """
    local_config, deployed_config = get_replica_configs(args)
    configs = {
        "local": [local_config],
        "deployed": [deployed_config],
        "both": [local_config, deployed_config],
    }[args.side]

    failed = asyncio.run(_export_sides(configs, args.output_dir))
    if failed:
        sys.exit(1)


async def _import_into(config: dict, input_path: str, retry_policy) -> SyncReport:
    async with build_accessor(config, retry_policy.timeout or 30.0) as accessor:
        return await import_snapshot(accessor, input_path, retry_policy=retry_policy)


def cmd_import(args: argparse.Namespace) -> None:
    """
    Load an export file into one replica

    Records missing from the replica are created and older ones updated;
    newer records already in the replica are kept. Exits 1 when the file
    cannot be loaded or the replica cannot be listed.

    Args:
        args: Parsed command-line arguments
    """
    local_config, deployed_config = get_replica_configs(args)
    config = local_config if args.side == "local" else deployed_config
    retry_policy = get_retry_policy(args)

    try:
        report = asyncio.run(_import_into(config, args.input, retry_policy))
    except (OSError, ValueError) as e:
        logger.error(f"Failed to load export file: {e}")
        sys.exit(1)
    except ReadError as e:
        logger.error(f"Import failed: {e}")
        sys.exit(1)

    print(format_report_console(report.to_dict()))
    if report.failed:
        logger.warning(f"{report.failed} record(s) could not be imported")


async def _create_on_all(configs: list[dict]) -> dict[str, str | None]:
    record = create_test_record()
    logger.info(f"Creating test record {record.id}")

    outcomes: dict[str, str | None] = {}
    for config in configs:
        try:
            async with build_accessor(config) as accessor:
                await accessor.create(record)
            outcomes[config["name"]] = None
            print(f"Created {record.id} in {config['name']} replica")
        except AccessError as e:
            outcomes[config["name"]] = str(e)
            logger.error(f"Failed to create test record in {config['name']} replica: {e}")
    return outcomes


def cmd_create_test(args: argparse.Namespace) -> None:
    """
    Create one test record on both replicas

    Args:
        args: Parsed command-line arguments
    """
    local_config, deployed_config = get_replica_configs(args)
    outcomes = asyncio.run(_create_on_all([local_config, deployed_config]))

    if any(error is not None for error in outcomes.values()):
        sys.exit(1)


def cmd_schedule(args: argparse.Namespace) -> None:
    """
    Schedule periodic syncs

    Args:
        args: Parsed command-line arguments
    """
    logger.info("Setting up sync scheduler")

    local_config, deployed_config = get_replica_configs(args)
    retry_policy = get_retry_policy(args)
    metrics = setup_observability(args)

    output_dir = args.output_dir
    Path(output_dir).mkdir(parents=True, exist_ok=True)

    scheduler = SyncScheduler()
    job_kwargs = dict(
        local_config=local_config,
        deployed_config=deployed_config,
        mode=args.mode,
        output_dir=output_dir,
        retry_policy=retry_policy,
        metrics=metrics,
    )

    try:
        if args.cron:
            scheduler.add_cron_job(sync_job_wrapper, args.cron, "sync_job", **job_kwargs)
            logger.info(f"Scheduled {args.mode} sync with cron: {args.cron}")
        else:
            scheduler.add_interval_job(sync_job_wrapper, args.interval, "sync_job", **job_kwargs)
            logger.info(f"Scheduled {args.mode} sync every {args.interval} seconds")
    except ValueError as e:
        logger.error(f"Invalid schedule: {e}")
        sys.exit(1)

    for job in scheduler.list_jobs():
        logger.info(f"Job {job['id']}: {job['trigger']}")

    logger.info("Starting scheduler (press Ctrl+C to stop)")
    scheduler.start()


def cmd_report(args: argparse.Namespace) -> None:
    """
    Render a report saved by a previous run

    Args:
        args: Parsed command-line arguments
    """
    logger.info(f"Loading sync report from {args.input}")

    try:
        report = load_report_json(args.input)
    except (OSError, ValueError) as e:
        logger.error(f"Failed to load report: {e}")
        sys.exit(1)

    if args.format == "console":
        print(format_report_console(report))
        return

    if not args.output:
        logger.error(f"Output file required for {args.format.upper()} format")
        sys.exit(1)

    if args.format == "csv":
        export_report_csv(report, args.output)
    else:
        export_report_json(report, args.output)
    logger.info(f"Report exported to {args.output}")

