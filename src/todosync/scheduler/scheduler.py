"""
Foreground scheduler for recurring syncs.

Wraps APScheduler's BlockingScheduler; ``todosync schedule`` adds one sync
job to it and blocks until Ctrl+C.
"""

import logging
from typing import Any, Callable

from apscheduler.schedulers.blocking import BlockingScheduler
from apscheduler.triggers.cron import CronTrigger
from apscheduler.triggers.interval import IntervalTrigger

logger = logging.getLogger(__name__)

CRON_FIELDS = ("minute", "hour", "day", "month", "day_of_week")


class SyncScheduler:
    """
    Recurring sync jobs on interval or cron triggers

    A job never runs twice at once: if a sync is still in progress when the
    next fire time arrives, that fire time is dropped (``max_instances=1``,
    ``coalesce=True``). Re-adding a job id replaces the existing job.
    """

    def __init__(self):
        self.scheduler = BlockingScheduler()
        self.jobs = []

    def _add(self, job_func: Callable, trigger, job_id: str, kwargs: dict[str, Any]):
        job = self.scheduler.add_job(
            job_func,
            trigger=trigger,
            id=job_id,
            kwargs=kwargs,
            replace_existing=True,
            max_instances=1,
            coalesce=True,
        )
        self.jobs = [existing for existing in self.jobs if existing.id != job_id] + [job]
        return job

    def add_interval_job(
        self,
        job_func: Callable,
        interval_seconds: int,
        job_id: str,
        **kwargs
    ) -> None:
        """
        Schedule ``job_func(**kwargs)`` every ``interval_seconds``

        Raises:
            ValueError: If the interval is not positive
        """
        if interval_seconds <= 0:
            raise ValueError("Interval must be a positive number of seconds")

        self._add(job_func, IntervalTrigger(seconds=interval_seconds), job_id, kwargs)
        logger.info(f"Job '{job_id}' scheduled every {interval_seconds}s")

    def add_cron_job(
        self,
        job_func: Callable,
        cron_expression: str,
        job_id: str,
        **kwargs
    ) -> None:
        """
        Schedule ``job_func(**kwargs)`` on a crontab expression

        Args:
            job_func: Callable to run
            cron_expression: Standard 5-field crontab line, e.g. "*/15 * * * *"
            job_id: Job identifier
            **kwargs: Keyword arguments for job_func

        Raises:
            ValueError: If the expression does not have exactly 5 fields
        """
        fields = cron_expression.split()
        if len(fields) != len(CRON_FIELDS):
            raise ValueError(
                f"Cron expression must have 5 parts ({' '.join(CRON_FIELDS)}), "
                f"got '{cron_expression}'"
            )

        self._add(job_func, CronTrigger.from_crontab(" ".join(fields)), job_id, kwargs)
        logger.info(f"Job '{job_id}' scheduled on cron '{cron_expression}'")

    def remove_job(self, job_id: str) -> None:
        self.scheduler.remove_job(job_id)
        self.jobs = [job for job in self.jobs if job.id != job_id]
        logger.info(f"Job '{job_id}' removed")

    def start(self) -> None:
        """Run jobs in the foreground; returns after Ctrl+C."""
        logger.info(f"Sync scheduler running {len(self.jobs)} job(s)")

        try:
            self.scheduler.start()
        except (KeyboardInterrupt, SystemExit):
            logger.info("Interrupted, shutting the scheduler down")
            self.stop()

    def stop(self) -> None:
        if self.scheduler.running:
            self.scheduler.shutdown(wait=False)
        logger.info("Sync scheduler stopped")

    def list_jobs(self) -> list[dict[str, Any]]:
        """Id, name, next fire time (ISO) and trigger of every job."""
        jobs = []
        for job in self.scheduler.get_jobs():
            # Jobs added before start() have no next_run_time yet
            next_run = getattr(job, "next_run_time", None)
            jobs.append({
                "id": job.id,
                "name": job.name,
                "next_run_time": next_run.isoformat() if next_run else None,
                "trigger": str(job.trigger),
            })
        return jobs
