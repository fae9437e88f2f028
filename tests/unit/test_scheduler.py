"""Tests for the optional in-process scheduler."""

from unittest.mock import AsyncMock

import pytest

from src.core import scheduler as scheduler_module
from src.core.config import settings
from src.core.db_client import DatabaseError
from src.models.service_models import SweepResult


@pytest.mark.unit
class TestStartScheduler:
    """Tests for start_scheduler and stop_scheduler."""

    def test_disabled_by_default(self, monkeypatch):
        """Test that nothing is scheduled unless enabled."""
        monkeypatch.setattr(settings, "enable_scheduler", False)

        scheduler_module.start_scheduler()

        assert scheduler_module.scheduler.running is False
        assert scheduler_module.scheduler.get_job(scheduler_module.SWEEP_JOB_ID) is None

    async def test_enabled_registers_cron_job(self, monkeypatch):
        """Test that the sweep job is registered with the configured crontab."""
        monkeypatch.setattr(settings, "enable_scheduler", True)
        monkeypatch.setattr(settings, "overdue_sweep_cron", "30 8 * * *")

        scheduler_module.start_scheduler()
        try:
            job = scheduler_module.scheduler.get_job(scheduler_module.SWEEP_JOB_ID)
            assert job is not None
            assert str(job.trigger.timezone) == settings.app_timezone
            fields = {field.name: str(field) for field in job.trigger.fields}
            assert fields["hour"] == "8"
            assert fields["minute"] == "30"
        finally:
            scheduler_module.scheduler.remove_all_jobs()
            scheduler_module.stop_scheduler()


@pytest.mark.unit
class TestRunScheduledSweep:
    """Tests for run_scheduled_sweep."""

    async def test_runs_sweep(self, monkeypatch):
        """Test that the job calls the sweep."""
        sweep = AsyncMock(return_value=SweepResult(message="ok", sentCount=0))
        monkeypatch.setattr(scheduler_module, "run_overdue_sweep", sweep)

        await scheduler_module.run_scheduled_sweep()

        sweep.assert_awaited_once()

    async def test_query_failure_is_logged_not_raised(self, monkeypatch, caplog):
        """Test that a failed query does not propagate into the scheduler."""
        monkeypatch.setattr(scheduler_module, "run_overdue_sweep", AsyncMock(side_effect=DatabaseError("down")))

        await scheduler_module.run_scheduled_sweep()

        assert "scheduled_sweep_query_failed" in caplog.text
