"""
Sync scheduler module

Periodic replica syncs on an interval or cron schedule using APScheduler.
"""

from .jobs import sync_job_wrapper
from .scheduler import SyncScheduler

__all__ = [
    'SyncScheduler',
    'sync_job_wrapper',
]
