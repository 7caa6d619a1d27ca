"""
Unit tests for the sync scheduler module

Tests verify:
- SyncScheduler initialization
- Interval and cron job scheduling
- Job management (list, remove)
- Scheduler lifecycle (start, stop)
- sync_job_wrapper report saving and read-failure handling

APScheduler is mocked so nothing is actually scheduled.
"""

import json
from datetime import datetime
from unittest.mock import Mock, patch

import pytest
from apscheduler.triggers.cron import CronTrigger
from apscheduler.triggers.interval import IntervalTrigger
from conftest import make_record

from todosync.scheduler import SyncScheduler, sync_job_wrapper


@pytest.fixture
def mock_blocking():
    with patch('todosync.scheduler.scheduler.BlockingScheduler') as mock_scheduler_class:
        mock_scheduler = Mock()
        mock_scheduler.add_job.side_effect = lambda *args, **kwargs: Mock(id=kwargs["id"])
        mock_scheduler_class.return_value = mock_scheduler
        yield mock_scheduler


# ============================================================================
# Test SyncScheduler
# ============================================================================

class TestSchedulerInit:
    """Test scheduler initialization"""

    def test_scheduler_starts_with_no_jobs(self):
        scheduler = SyncScheduler()

        assert scheduler.scheduler is not None
        assert scheduler.jobs == []


class TestIntervalJobs:
    """Test interval-based job scheduling"""

    def test_add_interval_job(self, mock_blocking):
        scheduler = SyncScheduler()
        job_func = Mock()

        scheduler.add_interval_job(job_func, 300, "sync_job", mode="two-way")

        call_kwargs = mock_blocking.add_job.call_args.kwargs
        assert mock_blocking.add_job.call_args.args == (job_func,)
        assert isinstance(call_kwargs["trigger"], IntervalTrigger)
        assert call_kwargs["id"] == "sync_job"
        assert call_kwargs["kwargs"] == {"mode": "two-way"}
        assert call_kwargs["replace_existing"] is True
        assert call_kwargs["max_instances"] == 1
        assert len(scheduler.jobs) == 1

    @pytest.mark.parametrize("interval", [0, -5])
    def test_non_positive_interval_rejected(self, mock_blocking, interval):
        scheduler = SyncScheduler()

        with pytest.raises(ValueError, match="positive"):
            scheduler.add_interval_job(Mock(), interval, "sync_job")

        mock_blocking.add_job.assert_not_called()

    def test_re_adding_same_id_replaces_job(self, mock_blocking):
        scheduler = SyncScheduler()

        scheduler.add_interval_job(Mock(), 60, "sync_job")
        scheduler.add_interval_job(Mock(), 120, "sync_job")

        assert [job.id for job in scheduler.jobs] == ["sync_job"]

    @patch('todosync.scheduler.scheduler.logger')
    def test_add_interval_job_logs_addition(self, mock_logger, mock_blocking):
        SyncScheduler().add_interval_job(Mock(), 900, "logged_job")

        log_message = mock_logger.info.call_args[0][0]
        assert "logged_job" in log_message
        assert "900" in log_message


class TestCronJobs:
    """Test cron-based job scheduling"""

    @pytest.mark.parametrize("expression", ["*/15 * * * *", "0 */6 * * *", "0 0 * * 0"])
    def test_valid_expressions(self, mock_blocking, expression):
        scheduler = SyncScheduler()

        scheduler.add_cron_job(Mock(), expression, "cron_job", mode="A-to-B")

        call_kwargs = mock_blocking.add_job.call_args.kwargs
        assert isinstance(call_kwargs["trigger"], CronTrigger)
        assert call_kwargs["kwargs"] == {"mode": "A-to-B"}

    @pytest.mark.parametrize("expression", ["0 0 * *", "0 0 * * * *", ""])
    def test_wrong_part_count_rejected(self, mock_blocking, expression):
        with pytest.raises(ValueError, match="must have 5 parts"):
            SyncScheduler().add_cron_job(Mock(), expression, "bad_job")


class TestJobManagement:
    """Test job management operations"""

    def test_remove_job(self, mock_blocking):
        scheduler = SyncScheduler()
        scheduler.add_interval_job(Mock(), 300, "removable_job")

        scheduler.remove_job("removable_job")

        mock_blocking.remove_job.assert_called_once_with("removable_job")
        assert scheduler.jobs == []

    def test_list_jobs(self, mock_blocking):
        job = Mock(id="sync_job", next_run_time=datetime(2024, 1, 1, 12, 0), trigger="interval[0:05:00]")
        job.name = "sync_job_wrapper"
        idle = Mock(id="idle_job", next_run_time=None, trigger="cron")
        idle.name = "idle"
        mock_blocking.get_jobs.return_value = [job, idle]

        jobs = SyncScheduler().list_jobs()

        assert jobs[0] == {
            "id": "sync_job",
            "name": "sync_job_wrapper",
            "next_run_time": "2024-01-01T12:00:00",
            "trigger": "interval[0:05:00]",
        }
        assert jobs[1]["next_run_time"] is None

    def test_list_jobs_before_start(self):
        scheduler = SyncScheduler()
        scheduler.add_interval_job(lambda: None, 300, "sync_job")

        jobs = scheduler.list_jobs()

        assert [job["id"] for job in jobs] == ["sync_job"]
        assert jobs[0]["next_run_time"] is None
        assert jobs[0]["trigger"] == "interval[0:05:00]"


class TestSchedulerLifecycle:
    """Test scheduler start and stop"""

    def test_start_runs_scheduler(self, mock_blocking):
        SyncScheduler().start()

        mock_blocking.start.assert_called_once()

    @pytest.mark.parametrize("interrupt", [KeyboardInterrupt, SystemExit])
    def test_interrupt_stops_scheduler(self, mock_blocking, interrupt):
        mock_blocking.start.side_effect = interrupt
        mock_blocking.running = True

        SyncScheduler().start()

        mock_blocking.shutdown.assert_called_once_with(wait=False)

    def test_stop_when_not_running(self, mock_blocking):
        mock_blocking.running = False

        SyncScheduler().stop()

        mock_blocking.shutdown.assert_not_called()


# ============================================================================
# Test sync_job_wrapper
# ============================================================================

class TestSyncJobWrapper:
    """Test the scheduled job function"""

    def _file_configs(self, tmp_path):
        local_path = tmp_path / "local-storage.json"
        local_path.write_text(json.dumps({"localTodos": [make_record("1").to_dict()]}))
        local = {"name": "local", "type": "file", "path": str(local_path)}
        deployed = {"name": "deployed", "type": "file", "path": str(tmp_path / "deployed.json")}
        return local, deployed

    def test_saves_timestamped_report(self, tmp_path, fast_policy):
        local, deployed = self._file_configs(tmp_path)
        output_dir = tmp_path / "reports"

        report = sync_job_wrapper(
            local, deployed, mode="two-way", output_dir=str(output_dir), retry_policy=fast_policy
        )

        saved = list(output_dir.glob("sync_*.json"))
        assert len(saved) == 1
        assert len(saved[0].stem) == len("sync_YYYYmmdd_HHMMSS")
        assert json.loads(saved[0].read_text()) == report
        assert report["counts"]["created_on_b"] == 1
        assert json.loads((tmp_path / "deployed.json").read_text())["localTodos"][0]["id"] == "1"

    def test_read_error_skips_run_without_raising(self, tmp_path, fast_policy):
        local, deployed = self._file_configs(tmp_path)
        (tmp_path / "deployed.json").write_text("{broken")
        output_dir = tmp_path / "reports"

        result = sync_job_wrapper(
            local, deployed, output_dir=str(output_dir), retry_policy=fast_policy
        )

        assert result is None
        assert list(output_dir.glob("sync_*.json")) == []

    def test_configuration_error_skips_run(self, tmp_path):
        result = sync_job_wrapper(
            {"name": "local", "type": "file"},
            {"name": "deployed", "type": "graphql"},
            output_dir=str(tmp_path),
        )

        assert result is None
