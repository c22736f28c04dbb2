"""
Integration tests for the EcoTrack services.

Runs ActivityService, StatsService and LeaderboardService end to end through
DatabaseService on a fresh in-memory SQLite database per test.
"""

import asyncio
from datetime import datetime, timedelta, timezone

import pytest
import pytest_asyncio

from ecotrack.core.database.service import DatabaseService
from ecotrack.core.logging.logger import get_logger
from ecotrack.domain.models.carbon import TimeWindow
from ecotrack.modules.activity.service import ActivityService
from ecotrack.modules.emissions.calculator import EmissionCalculator
from ecotrack.modules.emissions.factors import DEFAULT_EMISSION_FACTORS
from ecotrack.modules.shared.exceptions import NotFoundError, ValidationError

pytestmark = pytest.mark.integration


def _comparable(stats):
    return {key: value for key, value in stats.items() if key != "last_updated"}


# ============================================================================
# DATABASE SERVICE
# ============================================================================


class TestDatabaseService:
    """Test lifecycle against SQLite."""

    async def test_health_check(self, initialized_db):
        assert await initialized_db.health_check() is True

    async def test_transaction_rolls_back_on_error(self, initialized_db, activity_service):
        # Arrange
        from ecotrack.database.models.carbon_activity import CarbonActivity

        # Act
        with pytest.raises(RuntimeError):
            async with DatabaseService.get_transaction() as session:
                session.add(
                    CarbonActivity(
                        user_id="u-1",
                        category="food",
                        type="beef",
                        quantity=1.0,
                        unit="kg",
                        carbon_amount=13.3,
                    )
                )
                await session.flush()
                raise RuntimeError("abort")

        # Assert
        listing = await activity_service.list_activities("u-1")
        assert listing["pagination"]["total_items"] == 0


# ============================================================================
# ACTIVITY LOGGING
# ============================================================================


class TestLogActivity:
    """Test logging activities and the stats refresh that follows."""

    async def test_bike_trip_is_a_saving(self, initialized_db, activity_service):
        # Arrange & Act
        result = await activity_service.log_activity(
            "u-1", "transportation", "bike", 10, "km", notes="commute", tags=["work"]
        )

        # Assert
        activity = result["activity"]
        assert activity["carbon_amount"] == pytest.approx(-2.0)
        assert activity["id"] is not None
        assert activity["tags"] == ["work"]

        stats = result["stats"]
        assert stats["total_saved"] == pytest.approx(2.0)
        assert stats["total_emitted"] == 0
        assert stats["points"] == 20
        assert (stats["rank"], stats["tier"]) == (6, "Bronze")
        assert stats["rank_title"] == "Newcomer"
        assert [item["name"] for item in stats["achievements"]] == ["First Steps"]

    async def test_totals_accumulate_across_activities(self, initialized_db, activity_service):
        # Arrange
        await activity_service.log_activity("u-1", "food", "beef", 1, "kg")

        # Act
        result = await activity_service.log_activity(
            "u-1", "transportation", "walk", 60, "km"
        )

        # Assert
        stats = result["stats"]
        assert stats["total_emitted"] == pytest.approx(13.3)
        assert stats["total_saved"] == pytest.approx(12.0)
        assert stats["net_footprint"] == pytest.approx(1.3)
        assert (stats["points"], stats["rank"], stats["tier"]) == (120, 4, "Silver")
        assert [item["name"] for item in stats["achievements"]] == [
            "First Steps",
            "Green Beginner",
            "Eco Warrior",
        ]
        assert all("earned_at" in item for item in stats["achievements"])

    async def test_stored_amount_survives_factor_change(
        self, initialized_db, activity_service, stats_service, config_manager
    ):
        # Arrange
        await activity_service.log_activity("u-1", "food", "beef", 1, "kg")
        repriced = ActivityService(
            config_manager,
            get_logger("tests.ActivityService"),
            stats_service=stats_service,
            calculator=EmissionCalculator(
                DEFAULT_EMISSION_FACTORS.with_overrides({"food": {"beef": 100.0}})
            ),
        )

        # Act
        await repriced.log_activity("u-1", "food", "beef", 1, "kg")
        stats = await stats_service.recompute_user_stats("u-1")

        # Assert
        listing = await activity_service.list_activities("u-1", newest_first=False)
        amounts = [item["carbon_amount"] for item in listing["activities"]]
        assert amounts == [pytest.approx(13.3), pytest.approx(100.0)]
        assert stats["total_emitted"] == pytest.approx(113.3)

    async def test_display_name_is_stored_and_kept(
        self, initialized_db, activity_service, leaderboard_service
    ):
        # Arrange
        await activity_service.log_activity(
            "u-1", "transportation", "bike", 10, "km", display_name="  Ada  "
        )

        # Act
        result = await activity_service.log_activity("u-1", "food", "chicken", 1, "kg")

        # Assert
        assert result["stats"]["display_name"] == "Ada"
        board = await leaderboard_service.get_leaderboard()
        assert board["leaderboard"][0]["display_name"] == "Ada"

    async def test_blank_display_name_rejected(self, initialized_db, activity_service):
        with pytest.raises(ValidationError) as exc_info:
            await activity_service.log_activity(
                "u-1", "food", "beef", 1, "kg", display_name="   "
            )

        assert exc_info.value.field == "display_name"
        listing = await activity_service.list_activities("u-1")
        assert listing["pagination"]["total_items"] == 0

    async def test_unknown_type_records_zero(self, initialized_db, activity_service):
        result = await activity_service.log_activity("u-1", "food", "tofu", 3, "kg")

        assert result["activity"]["carbon_amount"] == 0
        assert result["stats"]["points"] == 0

    async def test_invalid_input_stores_nothing(self, initialized_db, activity_service):
        # Act
        with pytest.raises(ValidationError):
            await activity_service.log_activity("u-1", "garden", "tree", 1, "unit")

        # Assert
        listing = await activity_service.list_activities("u-1")
        assert listing["activities"] == []


# ============================================================================
# DELETION
# ============================================================================


class TestDeleteActivity:
    """Test deleting activities."""

    async def test_delete_reverts_stats(self, initialized_db, activity_service):
        # Arrange
        await activity_service.log_activity("u-1", "transportation", "bike", 10, "km")
        logged = await activity_service.log_activity("u-1", "waste", "recyclable", 10, "kg")

        # Act
        result = await activity_service.delete_activity("u-1", logged["activity"]["id"])

        # Assert
        assert result["stats"]["total_saved"] == pytest.approx(2.0)
        assert result["stats"]["points"] == 20

    async def test_cannot_delete_another_users_activity(
        self, initialized_db, activity_service
    ):
        # Arrange
        logged = await activity_service.log_activity("owner", "food", "beef", 1, "kg")

        # Act & Assert
        with pytest.raises(NotFoundError):
            await activity_service.delete_activity("intruder", logged["activity"]["id"])

        listing = await activity_service.list_activities("owner")
        assert listing["pagination"]["total_items"] == 1

    async def test_delete_missing_activity(self, initialized_db, activity_service):
        with pytest.raises(NotFoundError):
            await activity_service.delete_activity("u-1", 12345)

    async def test_achievements_are_kept_after_delete(
        self, initialized_db, activity_service
    ):
        logged = await activity_service.log_activity("u-1", "transportation", "bike", 50, "km")

        result = await activity_service.delete_activity("u-1", logged["activity"]["id"])

        assert result["stats"]["points"] == 0
        assert "Eco Warrior" in [item["name"] for item in result["stats"]["achievements"]]


# ============================================================================
# LISTING
# ============================================================================


class TestListActivities:
    """Test filtering, ordering and paging."""

    async def test_newest_first_with_paging(self, initialized_db, activity_service):
        # Arrange
        base = datetime(2024, 5, 1, tzinfo=timezone.utc)
        for day in range(5):
            await activity_service.log_activity(
                "u-1", "food", "vegetables", day + 1, "kg",
                occurred_at=base + timedelta(days=day),
            )

        # Act
        first = await activity_service.list_activities("u-1", page=1, limit=2)
        last = await activity_service.list_activities("u-1", page=3, limit=2)

        # Assert
        assert [a["quantity"] for a in first["activities"]] == [5.0, 4.0]
        assert [a["quantity"] for a in last["activities"]] == [1.0]
        assert first["pagination"]["total_pages"] == 3
        assert first["pagination"]["total_items"] == 5

    async def test_category_and_window_filters(self, initialized_db, activity_service):
        # Arrange
        now = datetime.now(timezone.utc)
        await activity_service.log_activity("u-1", "food", "beef", 1, "kg", occurred_at=now)
        await activity_service.log_activity(
            "u-1", "food", "fish", 1, "kg", occurred_at=now - timedelta(days=30)
        )
        await activity_service.log_activity("u-1", "energy", "electricity", 5, "kWh")

        # Act
        food = await activity_service.list_activities("u-1", category="food")
        recent_food = await activity_service.list_activities(
            "u-1", category="food", window=TimeWindow.for_period("week")
        )

        # Assert
        assert food["pagination"]["total_items"] == 2
        assert [a["type"] for a in recent_food["activities"]] == ["beef"]

    async def test_other_users_are_not_listed(self, initialized_db, activity_service):
        await activity_service.log_activity("u-1", "food", "beef", 1, "kg")

        listing = await activity_service.list_activities("u-2")

        assert listing["activities"] == []
        assert listing["pagination"]["total_pages"] == 0


# ============================================================================
# STATS
# ============================================================================


class TestStatsService:
    """Test the stats cache and stats views."""

    async def test_recompute_is_idempotent(self, initialized_db, activity_service, stats_service):
        # Arrange
        await activity_service.log_activity("u-1", "transportation", "bike", 30, "km")
        await activity_service.log_activity("u-1", "shopping", "books", 2, "item")

        # Act
        first = await stats_service.recompute_user_stats("u-1")
        second = await stats_service.recompute_user_stats("u-1")

        # Assert
        assert _comparable(first) == _comparable(second)

    async def test_concurrent_recomputes_agree(
        self, initialized_db, activity_service, stats_service
    ):
        # Arrange
        await activity_service.log_activity("u-1", "transportation", "walk", 25, "km")

        # Act
        results = await asyncio.gather(
            *(stats_service.recompute_user_stats("u-1") for _ in range(5))
        )

        # Assert
        assert {result["points"] for result in results} == {50}
        assert len(results[-1]["achievements"]) == 2

    async def test_user_without_activity_gets_empty_stats(self, initialized_db, stats_service):
        stats = await stats_service.get_user_stats("newcomer")

        assert stats["total_emitted"] == 0
        assert stats["total_saved"] == 0
        assert (stats["points"], stats["rank"], stats["tier"]) == (0, 6, "Bronze")

    async def test_get_stats_breakdowns_honour_period(
        self, initialized_db, activity_service, stats_service
    ):
        # Arrange
        now = datetime.now(timezone.utc)
        await activity_service.log_activity("u-1", "food", "beef", 1, "kg", occurred_at=now)
        await activity_service.log_activity(
            "u-1", "energy", "heating", 10, "unit", occurred_at=now - timedelta(days=60)
        )
        await activity_service.log_activity(
            "u-1", "transportation", "bike", 10, "km", occurred_at=now - timedelta(days=2)
        )

        # Act
        week = await stats_service.get_stats("u-1", period="week")
        everything = await stats_service.get_stats("u-1")

        # Assert
        assert week["period"] == "week"
        assert [row["category"] for row in week["emissions_breakdown"]] == ["food"]
        assert [row["category"] for row in everything["emissions_breakdown"]] == [
            "energy",
            "food",
        ]
        assert week["savings_breakdown"][0]["total"] == pytest.approx(2.0)
        assert week["stats"]["total_emitted"] == pytest.approx(38.3)
        assert len(week["recent_activities"]) == 3
        assert week["recent_activities"][0]["type"] == "beef"

    async def test_get_stats_rejects_unknown_period(self, initialized_db, stats_service):
        with pytest.raises(ValidationError):
            await stats_service.get_stats("u-1", period="decade")

    async def test_recent_activity_count_from_config(
        self, initialized_db, activity_service, stats_service, config_manager
    ):
        # Arrange
        config_manager.set_override("stats.recent_activity_count", 2)
        for quantity in (1, 2, 3):
            await activity_service.log_activity("u-1", "food", "grains", quantity, "kg")

        # Act
        view = await stats_service.get_stats("u-1")

        # Assert
        assert len(view["recent_activities"]) == 2

    async def test_get_achievements(self, initialized_db, activity_service, stats_service):
        # Arrange
        await activity_service.log_activity("u-1", "transportation", "bike", 30, "km")

        # Act
        result = await stats_service.get_achievements("u-1")

        # Assert
        assert [item["name"] for item in result["earned"]] == ["First Steps", "Green Beginner"]
        assert result["available_to_earn"] == []
        assert result["stats"]["points"] == 60


# ============================================================================
# LEADERBOARD
# ============================================================================


@pytest_asyncio.fixture
async def community(initialized_db, activity_service):
    """A, B on 100 points, C on 50, D active only in food."""
    await activity_service.log_activity("A", "transportation", "bike", 50, "km")
    await activity_service.log_activity("B", "transportation", "walk", 50, "km")
    await activity_service.log_activity("C", "transportation", "bike", 25, "km")
    await activity_service.log_activity("D", "food", "chicken", 1, "kg")
    return initialized_db


class TestLeaderboardService:
    """Test leaderboard, ranking and community queries."""

    async def test_overall_leaderboard(self, community, leaderboard_service):
        # Act
        board = await leaderboard_service.get_leaderboard()

        # Assert
        assert board["category"] == "overall"
        assert [(e["user_id"], e["position"], e["points"]) for e in board["leaderboard"]] == [
            ("A", 1, 100),
            ("B", 2, 100),
            ("C", 3, 50),
            ("D", 4, 0),
        ]
        assert board["leaderboard"][0]["tier"] == "Silver"

    async def test_paging(self, community, leaderboard_service):
        board = await leaderboard_service.get_leaderboard(page=2, limit=3)

        assert [e["user_id"] for e in board["leaderboard"]] == ["D"]
        assert board["pagination"] == {
            "current_page": 2,
            "total_pages": 2,
            "total_items": 4,
            "items_per_page": 3,
        }

    async def test_category_leaderboard_excludes_inactive_users(
        self, community, leaderboard_service
    ):
        # Act
        transport = await leaderboard_service.get_leaderboard(category="transportation")
        food = await leaderboard_service.get_leaderboard(category="food")

        # Assert
        assert [e["user_id"] for e in transport["leaderboard"]] == ["A", "B", "C"]
        assert [(e["user_id"], e["position"]) for e in food["leaderboard"]] == [("D", 1)]
        assert food["category"] == "food"

    async def test_user_ranking(self, community, leaderboard_service):
        # Act
        ranking = await leaderboard_service.get_user_ranking("B", neighbours=1)

        # Assert
        assert ranking["position"] == 2
        assert ranking["total_users"] == 4
        assert [e["user_id"] for e in ranking["nearby_users"]] == ["A", "B", "C"]

    async def test_unranked_user_raises_not_found(self, community, leaderboard_service):
        with pytest.raises(NotFoundError):
            await leaderboard_service.get_user_ranking("ghost")

    async def test_user_missing_from_category_board(self, community, leaderboard_service):
        with pytest.raises(NotFoundError):
            await leaderboard_service.get_user_ranking("D", category="transportation")

    async def test_community_stats(self, community, leaderboard_service):
        # Act
        summary = await leaderboard_service.get_community_stats()

        # Assert
        assert summary["total_users"] == 4
        assert summary["total_points"] == 250
        assert summary["total_carbon_saved"] == pytest.approx(25.0)
        assert summary["total_carbon_emitted"] == pytest.approx(2.9)
        assert {row["tier"]: row["count"] for row in summary["tier_distribution"]} == {
            "Silver": 2,
            "Bronze": 2,
        }
        # A and B hold three achievements each, C two, D one
        assert len(summary["recent_achievements"]) == 9

    async def test_empty_community(self, initialized_db, leaderboard_service):
        summary = await leaderboard_service.get_community_stats()
        board = await leaderboard_service.get_leaderboard()

        assert summary["total_users"] == 0
        assert summary["recent_achievements"] == []
        assert board["leaderboard"] == []
