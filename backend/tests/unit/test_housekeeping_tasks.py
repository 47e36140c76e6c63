"""Unit tests for the scheduled housekeeping task."""

import pytest
from datetime import datetime, timedelta, timezone
from unittest.mock import patch

from sqlalchemy import select

import database
from conftest import TestingSessionLocal
from config import Settings
from fixtures.polls import seed_house_keeping_scenario
from housekeeping.exceptions import HousekeepingConfigError, SweepPassError
from housekeeping.service import HousekeepingService
from housekeeping.tasks import housekeeping_sweep_task
from models.poll import Poll
from workers.celery_app import celery_app


@pytest.fixture
def task_sessions(db_session, monkeypatch):
    """Point the task's session factory at the test database."""
    monkeypatch.setattr(database, "SessionLocal", TestingSessionLocal)
    return db_session


class TestHousekeepingSweepTask:
    """Test housekeeping_sweep_task."""

    def test_runs_sweep_and_returns_statistics(self, task_sessions):
        seed_house_keeping_scenario(
            task_sessions,
            datetime.now(timezone.utc) - timedelta(seconds=1),
        )

        result = housekeeping_sweep_task()

        assert result["status"] == "completed"
        assert result["softDeleted"] == 1
        assert result["deleted"] == 2
        assert result["demo_polls_deleted"] == 1
        assert result["polls_hard_deleted"] == 1
        assert result["is_anomaly"] is False

        task_sessions.expire_all()
        remaining = set(task_sessions.execute(select(Poll.id)).scalars())
        assert "demo-poll-old" not in remaining
        assert "deleted-poll-7d" not in remaining

    def test_idempotent(self, task_sessions):
        seed_house_keeping_scenario(
            task_sessions,
            datetime.now(timezone.utc) - timedelta(seconds=1),
        )

        housekeeping_sweep_task()
        result = housekeeping_sweep_task()

        assert result["softDeleted"] == 0
        assert result["deleted"] == 0

    def test_failed_pass_marks_task_failed(self, task_sessions):
        with patch.object(
            HousekeepingService,
            "run_sweep",
            side_effect=SweepPassError("soft_delete"),
        ):
            with pytest.raises(SweepPassError):
                housekeeping_sweep_task()

    def test_invalid_configuration_raises(self, task_sessions):
        with patch(
            "housekeeping.schemas.get_settings",
            return_value=Settings(HOUSEKEEPING_BATCH_SIZE=0),
        ):
            with pytest.raises(HousekeepingConfigError):
                housekeeping_sweep_task()


class TestBeatSchedule:
    """Test the Celery beat configuration."""

    def test_daily_sweep_scheduled(self):
        entry = celery_app.conf.beat_schedule["housekeeping-sweep-daily"]

        assert entry["task"] == "housekeeping.sweep"
        assert entry["schedule"].hour == {2}
        assert entry["schedule"].minute == {0}

    def test_task_registered_under_schedule_name(self):
        assert housekeeping_sweep_task.name == "housekeeping.sweep"
