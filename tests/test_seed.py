"""
Database Initialization Tests

Tests for startup database handling: connection retries, schema creation
and the sweep of reports that expired while the service was down.

Test Classes:
- TestWaitForDatabase: Database connection retry logic
- TestSweepExpiredReports: TTL sweep on startup
- TestInitializeDatabase: Complete initialization workflow

Author: RainSafe Project
License: AGPL-3.0
"""

from datetime import timedelta
from unittest.mock import MagicMock, patch

import pytest
from sqlalchemy import create_engine, inspect, update
from sqlalchemy.exc import OperationalError
from sqlalchemy.pool import StaticPool

from app.db.seed import initialize_database, sweep_expired_reports, wait_for_database
from app.models.hazard import HazardCategory, HazardReport, HazardStatus


class TestWaitForDatabase:
    """Test database connection retry logic."""

    def test_wait_for_database_success(self):
        """Test successful database connection."""
        engine = MagicMock()
        engine.connect.return_value.__enter__.return_value = MagicMock()
        assert wait_for_database(engine, max_retries=1) is True

    def test_wait_for_database_timeout(self):
        """Test database connection timeout."""
        engine = MagicMock()
        engine.connect.side_effect = OperationalError("Connection refused", {}, Exception("refused"))
        assert wait_for_database(engine, max_retries=1, retry_delay=0) is False

    def test_wait_for_database_retries(self):
        """Test recovery on a later attempt."""
        engine = MagicMock()
        engine.connect.side_effect = [
            OperationalError("Connection refused", {}, Exception("refused")),
            MagicMock(),
        ]
        with patch("app.db.seed.time.sleep") as sleep:
            assert wait_for_database(engine, max_retries=3, retry_delay=2) is True
        sleep.assert_called_once_with(2)
        assert engine.connect.call_count == 2


@pytest.mark.database
class TestSweepExpiredReports:
    """Test TTL sweep on startup."""

    def test_sweep_marks_stale_reports(self, test_engine, hazard_store):
        report = hazard_store.create(19.0, 72.8, HazardCategory.ACCIDENT, 0.6)
        past = hazard_store.get(report.id).expires_at - timedelta(hours=25)

        with test_engine.begin() as conn:
            conn.execute(
                update(HazardReport).where(HazardReport.id == report.id).values(expires_at=past)
            )

        assert sweep_expired_reports(test_engine) == 1
        assert hazard_store.get(report.id).status is HazardStatus.EXPIRED


@pytest.mark.database
class TestInitializeDatabase:
    """Test complete initialization workflow."""

    def test_creates_schema(self):
        engine = create_engine(
            "sqlite://", connect_args={"check_same_thread": False}, poolclass=StaticPool
        )
        assert initialize_database(engine) is True
        assert "hazard_reports" in inspect(engine).get_table_names()

    def test_idempotent(self):
        engine = create_engine(
            "sqlite://", connect_args={"check_same_thread": False}, poolclass=StaticPool
        )
        assert initialize_database(engine) is True
        assert initialize_database(engine) is True

    def test_unreachable_database(self):
        engine = MagicMock()
        engine.connect.side_effect = OperationalError("Connection refused", {}, Exception("refused"))
        assert initialize_database(engine) is False
