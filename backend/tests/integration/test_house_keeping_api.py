"""Integration tests for the housekeeping HTTP trigger

Tests cover:
- Bearer secret enforcement on every housekeeping endpoint
- Sweep response body {softDeleted, deleted}
- Repeated triggers
- Dry-run report endpoint
- Error responses for misconfiguration and failing passes
- Health and metrics endpoints
"""

import pytest
from datetime import datetime, timedelta, timezone
from unittest import mock

from fastapi.testclient import TestClient
from sqlalchemy import select
from sqlalchemy.exc import OperationalError
from sqlalchemy.orm import Session

from conftest import TEST_API_SECRET
from config import Settings, get_settings
from fixtures.polls import make_poll, make_poll_with_votes, seed_house_keeping_scenario
from housekeeping.service import HousekeepingService
from models.poll import Poll


pytestmark = pytest.mark.integration


@pytest.fixture
def seeded_at() -> datetime:
    """The endpoint sweeps at the wall clock, so seed just before it."""
    return datetime.now(timezone.utc) - timedelta(seconds=1)


def override_settings(**overrides):
    from main import app

    settings = Settings(**overrides)
    app.dependency_overrides[get_settings] = lambda: settings
    return settings


class TestHouseKeepingAuth:
    """Test bearer secret enforcement"""

    def test_missing_token_rejected(self, client: TestClient, db_session: Session, seeded_at):
        """Test a call without Authorization header is refused before any pass runs"""
        seed_house_keeping_scenario(db_session, seeded_at)

        response = client.post("/api/house-keeping")

        assert response.status_code == 401
        assert response.headers["WWW-Authenticate"] == "Bearer"

        db_session.expire_all()
        assert db_session.get(Poll, "demo-poll-old") is not None

    def test_wrong_token_rejected(self, client: TestClient):
        response = client.post(
            "/api/house-keeping",
            headers={"Authorization": "Bearer not-the-secret"},
        )

        assert response.status_code == 401

    def test_wrong_scheme_rejected(self, client: TestClient):
        response = client.post(
            "/api/house-keeping",
            headers={"Authorization": f"Basic {TEST_API_SECRET}"},
        )

        assert response.status_code == 401

    def test_report_requires_token(self, client: TestClient):
        assert client.get("/api/house-keeping/report").status_code == 401

    def test_unconfigured_secret_returns_503(self, client: TestClient):
        """Test the trigger stays closed when the server has no API_SECRET"""
        override_settings(API_SECRET=None)

        response = client.post(
            "/api/house-keeping",
            headers={"Authorization": "Bearer anything"},
        )

        assert response.status_code == 503


class TestRunHouseKeeping:
    """Test POST /api/house-keeping"""

    def test_sweep_returns_counts(self, authenticated_client: TestClient, db_session: Session, seeded_at):
        seed_house_keeping_scenario(db_session, seeded_at)

        response = authenticated_client.post("/api/house-keeping")

        assert response.status_code == 200
        assert response.json() == {"softDeleted": 1, "deleted": 2}

    def test_second_call_finds_nothing(self, authenticated_client: TestClient, db_session: Session, seeded_at):
        seed_house_keeping_scenario(db_session, seeded_at)

        authenticated_client.post("/api/house-keeping")
        response = authenticated_client.post("/api/house-keeping")

        assert response.status_code == 200
        assert response.json() == {"softDeleted": 0, "deleted": 0}

    def test_empty_store(self, authenticated_client: TestClient):
        response = authenticated_client.post("/api/house-keeping")

        assert response.status_code == 200
        assert response.json() == {"softDeleted": 0, "deleted": 0}

    def test_request_id_echoed(self, authenticated_client: TestClient):
        response = authenticated_client.post(
            "/api/house-keeping",
            headers={"X-Request-ID": "scheduler-run-42"},
        )

        assert response.headers["X-Request-ID"] == "scheduler-run-42"

    def test_configured_thresholds_applied(self, authenticated_client: TestClient, db_session: Session, seeded_at):
        """Test thresholds come from application settings"""
        override_settings(API_SECRET=TEST_API_SECRET, HOUSEKEEPING_INACTIVITY_DAYS=60)
        make_poll(
            db_session,
            "quiet-45d",
            created_at=seeded_at - timedelta(days=90),
            touched_at=seeded_at - timedelta(days=45),
        )

        response = authenticated_client.post("/api/house-keeping")

        assert response.json() == {"softDeleted": 0, "deleted": 0}

    def test_invalid_thresholds_return_500(self, authenticated_client: TestClient, db_session: Session, seeded_at):
        """Test misconfiguration is reported before anything is modified"""
        override_settings(API_SECRET=TEST_API_SECRET, HOUSEKEEPING_INACTIVITY_DAYS=0)
        make_poll(db_session, "old-demo", created_at=seeded_at - timedelta(days=3), demo=True)

        response = authenticated_client.post("/api/house-keeping")

        assert response.status_code == 500
        assert response.json()["error"] == "housekeeping_misconfigured"

        db_session.expire_all()
        assert db_session.get(Poll, "old-demo") is not None

    def test_failing_pass_returns_500(self, authenticated_client: TestClient, db_session: Session, seeded_at):
        make_poll_with_votes(
            db_session,
            "expired",
            created_at=seeded_at - timedelta(days=90),
            deleted_at=seeded_at - timedelta(days=10),
        )

        with mock.patch.object(
            HousekeepingService,
            "_cascade_delete",
            side_effect=OperationalError("DELETE FROM votes", {}, Exception("disk I/O error")),
        ):
            response = authenticated_client.post("/api/house-keeping")

        assert response.status_code == 500
        data = response.json()
        assert data["error"] == "housekeeping_failed"
        assert data["sweep_pass"] == "hard_delete"

        db_session.expire_all()
        assert db_session.execute(select(Poll).where(Poll.id == "expired")).scalar_one_or_none() is not None


class TestHouseKeepingReport:
    """Test GET /api/house-keeping/report"""

    def test_report_counts(self, authenticated_client: TestClient, db_session: Session, seeded_at):
        seed_house_keeping_scenario(db_session, seeded_at)

        response = authenticated_client.get("/api/house-keeping/report")

        assert response.status_code == 200
        data = response.json()
        assert data["demo_polls_expired"] == 1
        assert data["polls_eligible_for_soft_delete"] == 1
        assert data["polls_eligible_for_hard_delete"] == 1
        assert data["tombstones_in_grace_period"] == 1
        assert data["settings"]["inactivity_threshold_days"] == 30

    def test_report_leaves_store_untouched(self, authenticated_client: TestClient, db_session: Session, seeded_at):
        seed_house_keeping_scenario(db_session, seeded_at)

        authenticated_client.get("/api/house-keeping/report")
        response = authenticated_client.post("/api/house-keeping")

        assert response.json() == {"softDeleted": 1, "deleted": 2}


class TestObservabilityEndpoints:
    """Test /health and /metrics"""

    def test_health(self, client: TestClient):
        response = client.get("/health")

        assert response.status_code == 200
        data = response.json()
        assert data["status"] == "healthy"
        assert data["components"]["database"]["status"] == "healthy"

    def test_metrics_exposes_housekeeping_counters(self, authenticated_client: TestClient):
        authenticated_client.post("/api/house-keeping")

        response = authenticated_client.get("/metrics")

        assert response.status_code == 200
        assert "pollkeeper_sweep_duration_seconds" in response.text
        assert "pollkeeper_polls_soft_deleted_total" in response.text
