"""
Command-line argument parser configuration.

Defines the todosync commands and the replica, retry and observability
options they share.
"""

import argparse

MODE_CHOICES = ["local-to-deployed", "deployed-to-local", "two-way"]


def _replica_options() -> argparse.ArgumentParser:
    """Options shared by every command that talks to the replicas."""
    common = argparse.ArgumentParser(add_help=False)

    local = common.add_argument_group("local replica")
    local.add_argument('--local-url', help='Local sandbox GraphQL URL')
    local.add_argument('--local-api-key', help='Local sandbox API key')
    local.add_argument(
        '--local-file',
        help='Use a local-storage.json snapshot file as the local replica'
    )

    deployed = common.add_argument_group("deployed replica")
    deployed.add_argument('--deployed-url', help='Deployed GraphQL URL')
    deployed.add_argument('--deployed-api-key', help='Deployed API key')
    deployed.add_argument('--auth-token', help='Authorization token for the deployed API')
    deployed.add_argument(
        '--amplify-outputs',
        help='Path to amplify_outputs.json (default: ./amplify_outputs.json)'
    )

    retry = common.add_argument_group("retries")
    retry.add_argument(
        '--max-attempts',
        type=int,
        help='Attempts per replica call, including the first (default: 3)'
    )
    retry.add_argument(
        '--retry-delay',
        type=float,
        help='Base delay in seconds between attempts (default: 1.0)'
    )
    retry.add_argument(
        '--timeout',
        type=float,
        help='Timeout in seconds for each replica call (default: 30)'
    )

    observability = common.add_argument_group("observability")
    observability.add_argument(
        '--metrics-port',
        type=int,
        help='Expose Prometheus metrics on this port'
    )
    observability.add_argument('--otlp-endpoint', help='OTLP collector for trace export')

    return common


def create_parser() -> argparse.ArgumentParser:
    """
    Create and configure the argument parser for the CLI.

    Returns:
        Configured ArgumentParser instance
    """
    parser = argparse.ArgumentParser(
        prog='todosync',
        description="Last-writer-wins sync between local and deployed Todo replicas",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Push local changes to the deployed environment
  todosync run local-to-deployed

  # Choose the direction interactively
  todosync run

  # Two-way sync against a localStorage snapshot, saving a JSON report
  todosync run two-way --local-file local-storage.json --format json --output sync.json

  # Snapshot both replicas into data-export/
  todosync export --side both

  # Load a deployed snapshot into the local replica (newer records win)
  todosync import --side local --input data-export/deployed-export-2024-01-01T00-00-00-000Z.json

  # Two-way sync every 15 minutes
  todosync schedule two-way --cron "*/15 * * * *" --output-dir ./sync_reports

  # Render a saved report
  todosync report --input sync.json --format console
        """
    )

    parser.add_argument(
        '--log-level',
        choices=['DEBUG', 'INFO', 'WARNING', 'ERROR'],
        help='Logging level (default: LOG_LEVEL or INFO)'
    )
    parser.add_argument('--log-file', help='Also write logs to this file (rotated)')
    parser.add_argument(
        '--log-json',
        action='store_true',
        default=None,
        help='Emit logs as JSON'
    )

    common = _replica_options()
    subparsers = parser.add_subparsers(dest='command', help='Available commands')

    # ========== Run command ==========
    run_parser = subparsers.add_parser('run', parents=[common], help='Run one sync')
    run_parser.add_argument(
        'mode',
        nargs='?',
        choices=MODE_CHOICES,
        help='Sync direction; prompts when omitted'
    )
    run_parser.add_argument(
        '--output',
        help='Output file path for report'
    )
    run_parser.add_argument(
        '--format',
        choices=['console', 'json', 'csv'],
        default='console',
        help='Output format (default: console)'
    )

    # ========== Export command ==========
    export_parser = subparsers.add_parser(
        'export', parents=[common], help='Snapshot replicas to JSON files'
    )
    export_parser.add_argument(
        '--side',
        choices=['local', 'deployed', 'both'],
        default='both',
        help='Replica(s) to export (default: both)'
    )
    export_parser.add_argument(
        '--output-dir',
        default='data-export',
        help='Directory for export files (default: data-export)'
    )

    # ========== Import command ==========
    import_parser = subparsers.add_parser(
        'import', parents=[common], help='Load an export file into a replica'
    )
    import_parser.add_argument(
        '--side',
        choices=['local', 'deployed'],
        required=True,
        help='Replica to import into'
    )
    import_parser.add_argument(
        '--input',
        required=True,
        help='Export file written by the export command'
    )

    # ========== Create-test command ==========
    subparsers.add_parser(
        'create-test', parents=[common], help='Create a test record on both replicas'
    )

    # ========== Schedule command ==========
    schedule_parser = subparsers.add_parser(
        'schedule', parents=[common], help='Schedule periodic syncs'
    )
    schedule_parser.add_argument(
        'mode',
        nargs='?',
        choices=MODE_CHOICES,
        default='two-way',
        help='Sync direction (default: two-way)'
    )
    schedule_parser.add_argument(
        '--cron',
        help='Cron expression (e.g., "*/15 * * * *" for every 15 minutes)'
    )
    schedule_parser.add_argument(
        '--interval',
        type=int,
        default=3600,
        help='Interval in seconds (default: 3600 = 1 hour)'
    )
    schedule_parser.add_argument(
        '--output-dir',
        default='./sync_reports',
        help='Directory to save sync reports (default: ./sync_reports)'
    )

    # ========== Report command ==========
    report_parser = subparsers.add_parser('report', help='Render a saved sync report')
    report_parser.add_argument(
        '--input',
        required=True,
        help='Input JSON report file'
    )
    report_parser.add_argument(
        '--format',
        choices=['console', 'json', 'csv'],
        default='console',
        help='Output format (default: console)'
    )
    report_parser.add_argument(
        '--output',
        help='Output file path (required for json and csv formats)'
    )

    return parser
