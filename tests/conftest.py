"""
Pytest Configuration and Fixtures for EcoTrack Tests
=====================================================

Purpose
-------
Centralized test fixtures and configuration for the EcoTrack test suite.
Provides reusable fixtures for the database, services, domain records and
mocks.

Responsibilities
----------------
- Point static configuration at test values before `ecotrack` is imported
- In-memory SQLite database lifecycle for integration tests
- Service construction over the real ConfigManager
- Factories for activity records and score rows
- Mocks for unit tests

Architecture Notes
------------------
- Unit tests use mocks and pure functions (fast, isolated)
- Integration tests use aiosqlite in memory; every test gets a fresh schema
- `Config` loads on import, so environment variables are set at module top
"""

from __future__ import annotations

import os
import tempfile
from datetime import datetime, timedelta, timezone
from pathlib import Path
from typing import AsyncGenerator, Callable, Generator, Optional

# Must run before any ecotrack import
os.environ["ENVIRONMENT"] = "testing"
os.environ["LOG_LEVEL"] = "DEBUG"
os.environ["LOGS_DIR"] = tempfile.mkdtemp(prefix="ecotrack-test-logs-")
os.environ["DATABASE_URL"] = "sqlite+aiosqlite:///:memory:"
os.environ["CONFIG_DIR"] = str(Path(__file__).resolve().parents[1] / "config")

import pytest  # noqa: E402
import pytest_asyncio  # noqa: E402

from ecotrack.core.config.manager import ConfigManager  # noqa: E402
from ecotrack.core.database.service import DatabaseService  # noqa: E402
from ecotrack.core.logging.logger import clear_log_context, get_logger  # noqa: E402
from ecotrack.domain.models.carbon import ActivityRecord, ScoreRow  # noqa: E402
from ecotrack.modules.activity.service import ActivityService  # noqa: E402
from ecotrack.modules.leaderboard.service import LeaderboardService  # noqa: E402
from ecotrack.modules.stats.service import StatsService  # noqa: E402

logger = get_logger(__name__)

TEST_DATABASE_URL = "sqlite+aiosqlite:///:memory:"
CONFIG_DIR = Path(__file__).resolve().parents[1] / "config"

# Fixed reference instant so period windows are deterministic
REFERENCE_NOW = datetime(2024, 6, 15, 12, 0, tzinfo=timezone.utc)


# ============================================================================
# CONFIGURATION FIXTURES
# ============================================================================


@pytest.fixture
def config_manager() -> Generator[type[ConfigManager], None, None]:
    """
    ConfigManager loaded from the repository's config/ directory.

    Scope: function (overrides never leak between tests)
    """
    ConfigManager.reset()
    ConfigManager.initialize(CONFIG_DIR)

    yield ConfigManager

    ConfigManager.reset()


@pytest.fixture(autouse=True)
def _clean_log_context() -> Generator[None, None, None]:
    yield
    clear_log_context()


# ============================================================================
# DATABASE FIXTURES (Integration Tests)
# ============================================================================


@pytest_asyncio.fixture
async def initialized_db() -> AsyncGenerator[type[DatabaseService], None]:
    """
    Initialize DatabaseService on a fresh in-memory SQLite database.

    Scope: function (new database per test, clean slate)
    Uses: Integration tests that go through the services
    """
    await DatabaseService.initialize(TEST_DATABASE_URL)
    await DatabaseService.create_schema()

    yield DatabaseService

    # Disposing the StaticPool engine discards the in-memory database
    await DatabaseService.shutdown()


# ============================================================================
# SERVICE FIXTURES (Integration Tests)
# ============================================================================


@pytest.fixture
def stats_service(config_manager) -> StatsService:
    return StatsService(config_manager, get_logger("tests.StatsService"))


@pytest.fixture
def activity_service(config_manager, stats_service) -> ActivityService:
    return ActivityService(
        config_manager,
        get_logger("tests.ActivityService"),
        stats_service=stats_service,
    )


@pytest.fixture
def leaderboard_service(config_manager) -> LeaderboardService:
    return LeaderboardService(config_manager, get_logger("tests.LeaderboardService"))


# ============================================================================
# DOMAIN FACTORIES
# ============================================================================


@pytest.fixture
def make_record() -> Callable[..., ActivityRecord]:
    """
    Factory for ActivityRecord values.

    Usage:
        record = make_record(-3.0, category="transportation", days_ago=2)
    """

    def _make(
        carbon_amount: float,
        category: str = "food",
        activity_type: str = "beef",
        days_ago: float = 0,
        now: Optional[datetime] = None,
    ) -> ActivityRecord:
        reference = now or REFERENCE_NOW
        return ActivityRecord(
            category=category,
            type=activity_type,
            quantity=1.0,
            unit="kg",
            carbon_amount=carbon_amount,
            timestamp=reference - timedelta(days=days_ago),
            user_id="u-test",
        )

    return _make


@pytest.fixture
def make_score() -> Callable[..., ScoreRow]:
    """Factory for ScoreRow values."""

    def _make(user_id: str, points: int, total_saved: Optional[float] = None) -> ScoreRow:
        return ScoreRow(
            user_id=user_id,
            points=points,
            total_saved=total_saved if total_saved is not None else points / 10,
        )

    return _make


# ============================================================================
# MOCK FIXTURES (Unit Tests)
# ============================================================================


@pytest.fixture
def mock_logger(mocker):
    """
    Mock logger for unit tests.

    Scope: function
    Uses: Service unit tests that assert on logging
    """
    return mocker.MagicMock()


@pytest.fixture
def mock_config_manager(mocker):
    """
    Mock ConfigManager returning each caller's default.

    Scope: function
    Uses: Unit tests that need to mock configuration
    """
    mock_config = mocker.MagicMock()
    mock_config.get = mocker.MagicMock(side_effect=lambda key, default=None: default)
    return mock_config
