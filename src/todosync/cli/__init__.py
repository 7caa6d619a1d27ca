"""
Command-line interface for todosync.

Available commands:
- run: Sync the local and deployed replicas once
- export: Snapshot replicas to JSON files
- import: Load an export file into a replica
- create-test: Create a test record on both replicas
- schedule: Set up periodic sync jobs
- report: Render a report from a previous run
"""

import logging
import sys

from todosync.errors import ConfigurationError
from todosync.utils.logging import configure_from_env
from todosync.utils.tracing import shutdown_tracing

from .commands import (
    cmd_create_test,
    cmd_export,
    cmd_import,
    cmd_report,
    cmd_run,
    cmd_schedule,
)
from .parser import create_parser
from .settings import get_replica_configs, get_retry_policy

logger = logging.getLogger(__name__)

COMMANDS = {
    'run': cmd_run,
    'export': cmd_export,
    'import': cmd_import,
    'create-test': cmd_create_test,
    'schedule': cmd_schedule,
    'report': cmd_report,
}


def main(argv: list[str] | None = None) -> None:
    """Main entry point for the todosync CLI"""
    parser = create_parser()
    args = parser.parse_args(argv)

    configure_from_env(
        level=args.log_level,
        log_file=args.log_file,
        json_format=args.log_json,
    )

    command = COMMANDS.get(args.command)
    if command is None:
        parser.print_help()
        sys.exit(1)

    try:
        command(args)
    except ConfigurationError as e:
        logger.error(f"Configuration error: {e}")
        sys.exit(1)
    finally:
        shutdown_tracing()


__all__ = [
    'main',
    'create_parser',
    'get_replica_configs',
    'get_retry_policy',
    'cmd_run',
    'cmd_export',
    'cmd_import',
    'cmd_create_test',
    'cmd_schedule',
    'cmd_report',
]


if __name__ == '__main__':
    main()
