"""
Unit Tests for Carbon Accounting Domain Models
==============================================

Purpose
-------
Test the invariants of the immutable value objects in
`ecotrack.domain.models.carbon` without any database.

Test Coverage
-------------
- TimeWindow bounds, containment and period construction
- ActivityRecord validation and serialization
- UserTotals and UserScore invariants
- Leaderboard value objects

Testing Strategy
----------------
- Unit tests (fast, no database)
- AAA pattern (Arrange, Act, Assert)
- Test one behavior per test
"""

from datetime import datetime, timedelta, timezone

import pytest

from ecotrack.domain.models import (
    ActivityRecord,
    CommunitySummary,
    DomainValidationError,
    LeaderboardEntry,
    PositionLookup,
    TimeWindow,
    UserScore,
    UserTotals,
)
from ecotrack.domain.models.carbon import ensure_utc

NOW = datetime(2024, 3, 31, 9, 30, tzinfo=timezone.utc)


# ============================================================================
# TIME WINDOW TESTS
# ============================================================================


@pytest.mark.unit
@pytest.mark.domain
class TestTimeWindow:
    """Test TimeWindow value object."""

    def test_week_covers_last_seven_days(self):
        # Arrange & Act
        window = TimeWindow.for_period("week", now=NOW)

        # Assert
        assert window.start == NOW - timedelta(days=7)
        assert window.end is None

    def test_month_clamps_day(self):
        """Mar 31 minus one month is Feb 29 in a leap year."""
        window = TimeWindow.for_period("month", now=NOW)

        assert window.start == datetime(2024, 2, 29, 9, 30, tzinfo=timezone.utc)

    def test_year_goes_back_twelve_months(self):
        window = TimeWindow.for_period("year", now=NOW)

        assert window.start == datetime(2023, 3, 31, 9, 30, tzinfo=timezone.utc)

    def test_month_across_year_boundary(self):
        window = TimeWindow.for_period(
            "month", now=datetime(2024, 1, 10, tzinfo=timezone.utc)
        )

        assert window.start == datetime(2023, 12, 10, tzinfo=timezone.utc)

    def test_all_is_unbounded(self):
        window = TimeWindow.for_period("all", now=NOW)

        assert window.is_unbounded
        assert window.contains(datetime(1970, 1, 1, tzinfo=timezone.utc))

    def test_unknown_period_raises(self):
        with pytest.raises(DomainValidationError) as exc_info:
            TimeWindow.for_period("decade", now=NOW)

        assert exc_info.value.field == "period"

    def test_contains_is_half_open(self):
        # Arrange
        window = TimeWindow(start=NOW - timedelta(days=1), end=NOW)

        # Act & Assert
        assert window.contains(NOW - timedelta(days=1))
        assert window.contains(NOW - timedelta(seconds=1))
        assert not window.contains(NOW)

    def test_naive_datetimes_are_treated_as_utc(self):
        window = TimeWindow(start=datetime(2024, 1, 1))

        assert window.start.tzinfo == timezone.utc
        assert window.contains(datetime(2024, 1, 2))

    def test_end_before_start_rejected(self):
        with pytest.raises(DomainValidationError):
            TimeWindow(start=NOW, end=NOW - timedelta(days=1))

    def test_ensure_utc_converts_offsets(self):
        plus_two = timezone(timedelta(hours=2))

        assert ensure_utc(datetime(2024, 1, 1, 12, tzinfo=plus_two)) == datetime(
            2024, 1, 1, 10, tzinfo=timezone.utc
        )


# ============================================================================
# ACTIVITY RECORD TESTS
# ============================================================================


@pytest.mark.unit
@pytest.mark.domain
class TestActivityRecord:
    """Test ActivityRecord value object."""

    def _record(self, **overrides):
        values = dict(
            category="transportation",
            type="bike",
            quantity=10.0,
            unit="km",
            carbon_amount=-2.0,
            timestamp=NOW,
        )
        values.update(overrides)
        return ActivityRecord(**values)

    def test_saving_and_emission_flags(self):
        assert self._record().is_saving
        assert self._record(carbon_amount=3.0).is_emission
        zero = self._record(carbon_amount=0.0)
        assert not zero.is_saving and not zero.is_emission

    def test_negative_quantity_rejected(self):
        with pytest.raises(DomainValidationError) as exc_info:
            self._record(quantity=-1.0)

        assert exc_info.value.field == "quantity"

    def test_non_finite_amount_rejected(self):
        with pytest.raises(DomainValidationError):
            self._record(carbon_amount=float("nan"))

    def test_empty_type_rejected(self):
        with pytest.raises(DomainValidationError):
            self._record(type="  ")

    def test_record_is_immutable(self):
        record = self._record()

        with pytest.raises(Exception):  # FrozenInstanceError
            record.carbon_amount = 0.0  # type: ignore[misc]

    def test_to_dict(self):
        # Arrange
        record = self._record(activity_id=7, user_id="u-1", tags=["commute"])

        # Act
        data = record.to_dict()

        # Assert
        assert data["id"] == 7
        assert data["carbon_amount"] == -2.0
        assert data["timestamp"] == NOW.isoformat()
        assert data["tags"] == ["commute"]


# ============================================================================
# TOTALS & SCORE TESTS
# ============================================================================


@pytest.mark.unit
@pytest.mark.domain
class TestTotalsAndScore:
    """Test UserTotals and UserScore invariants."""

    def test_net_footprint(self):
        totals = UserTotals(total_emitted=12.5, total_saved=20.0)

        assert totals.net_footprint == pytest.approx(-7.5)
        assert totals.to_dict()["net_footprint"] == pytest.approx(-7.5)

    def test_negative_totals_rejected(self):
        with pytest.raises(DomainValidationError):
            UserTotals(total_emitted=-1.0)

    @pytest.mark.parametrize("rank", [0, 7])
    def test_rank_outside_ladder_rejected(self, rank):
        with pytest.raises(DomainValidationError):
            UserScore(points=0, rank=rank, tier="Bronze")

    def test_unknown_tier_rejected(self):
        with pytest.raises(DomainValidationError) as exc_info:
            UserScore(points=0, rank=6, tier="Obsidian")

        assert exc_info.value.field == "tier"

    def test_negative_points_rejected(self):
        with pytest.raises(DomainValidationError):
            UserScore(points=-5, rank=6, tier="Bronze")


# ============================================================================
# LEADERBOARD VALUE OBJECTS
# ============================================================================


@pytest.mark.unit
@pytest.mark.domain
class TestLeaderboardValues:
    """Test leaderboard value objects."""

    def test_position_lookup_window(self):
        # Arrange
        entries = [
            LeaderboardEntry(position=i, user_id=f"u{i}", points=10, total_saved=1.0, tier="Bronze")
            for i in range(1, 4)
        ]

        # Act
        lookup = PositionLookup(entry=entries[1], above=(entries[0],), below=(entries[2],))

        # Assert
        assert lookup.position == 2
        assert [entry.user_id for entry in lookup.window] == ["u1", "u2", "u3"]

    def test_community_summary_to_dict(self):
        summary = CommunitySummary(
            total_users=2,
            total_saved=15.0,
            total_emitted=4.0,
            total_points=150,
            tier_distribution=(("Silver", 1), ("Bronze", 1)),
        )

        assert summary.to_dict() == {
            "total_users": 2,
            "total_carbon_saved": 15.0,
            "total_carbon_emitted": 4.0,
            "total_points": 150,
            "tier_distribution": [
                {"tier": "Silver", "count": 1},
                {"tier": "Bronze", "count": 1},
            ],
        }
