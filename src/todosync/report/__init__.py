"""
Sync report generation and formatting.

This submodule provides the SyncReport outcome summary produced by a sync
run, with support for multiple output formats.
"""

from .formatters import (
    export_report_csv,
    export_report_json,
    format_report_console,
    load_report_json,
)
from .generator import (
    OperationResult,
    OutcomeType,
    ReportStatus,
    SyncReport,
    generate_summary,
)

__all__ = [
    'SyncReport',
    'OperationResult',
    'OutcomeType',
    'ReportStatus',
    'generate_summary',
    'export_report_json',
    'export_report_csv',
    'load_report_json',
    'format_report_console',
]
