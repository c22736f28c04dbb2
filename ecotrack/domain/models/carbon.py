"""
Carbon accounting domain models for EcoTrack.

Purpose
-------
Immutable value objects flowing through the accounting pipeline:

    ActivityRecord --aggregate--> UserTotals --derive--> UserScore
    ScoreRow[] --rank--> LeaderboardEntry[]

Responsibilities
----------------
- Hold the frozen snapshot of a logged activity, including the carbon
  amount computed when it was logged
- Enforce the numeric invariants of totals and scores
- Describe half-open time windows used by period views

Non-Responsibilities
--------------------
- Persistence (handled by `ecotrack.database.models`)
- Computing carbon amounts, totals or scores (handled by `ecotrack.modules`)

Usage Example
-------------
>>> record = ActivityRecord.from_db(carbon_activity_row)
>>> window = TimeWindow.for_period("week")
>>> window.contains(record.timestamp)
True
"""

from __future__ import annotations

import calendar
from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from typing import TYPE_CHECKING, Any, Dict, Optional, Tuple

from ecotrack.domain.models.base import (
    DomainValidationError,
    validate_finite,
    validate_non_negative,
    validate_not_empty,
    validate_range,
)
from ecotrack.modules.shared.constants import (
    DEFAULT_RANK,
    PERIOD_ALL,
    PERIOD_MONTH,
    PERIOD_WEEK,
    PERIOD_YEAR,
    TIERS,
)

if TYPE_CHECKING:
    from ecotrack.database.models.carbon_activity import CarbonActivity as CarbonActivityDB
    from ecotrack.database.models.user_stats import UserStats as UserStatsDB


def ensure_utc(value: datetime) -> datetime:
    """Return `value` as an aware UTC datetime; naive values are taken as UTC."""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def _shift_months(value: datetime, months: int) -> datetime:
    month_index = value.month - 1 + months
    year = value.year + month_index // 12
    month = month_index % 12 + 1
    day = min(value.day, calendar.monthrange(year, month)[1])
    return value.replace(year=year, month=month, day=day)


# ============================================================================
# TIME WINDOW
# ============================================================================


@dataclass(frozen=True)
class TimeWindow:
    """
    Half-open time interval ``[start, end)``; either bound may be open.

    Attributes
    ----------
    start : Optional[datetime]
        Inclusive lower bound, or None for unbounded
    end : Optional[datetime]
        Exclusive upper bound, or None for unbounded
    """

    start: Optional[datetime] = None
    end: Optional[datetime] = None

    def __post_init__(self) -> None:
        if self.start is not None:
            object.__setattr__(self, "start", ensure_utc(self.start))
        if self.end is not None:
            object.__setattr__(self, "end", ensure_utc(self.end))
        if self.start is not None and self.end is not None and self.end < self.start:
            raise DomainValidationError("window end precedes start", field="end")

    @property
    def is_unbounded(self) -> bool:
        return self.start is None and self.end is None

    def contains(self, timestamp: datetime) -> bool:
        ts = ensure_utc(timestamp)
        if self.start is not None and ts < self.start:
            return False
        if self.end is not None and ts >= self.end:
            return False
        return True

    @classmethod
    def unbounded(cls) -> TimeWindow:
        return cls()

    @classmethod
    def for_period(cls, period: str, now: Optional[datetime] = None) -> TimeWindow:
        """
        Build the window for a named period view ending now.

        ``week`` covers the last 7 days, ``month`` and ``year`` go back one
        calendar month/year (clamping the day, so Mar 31 -> Feb 28/29), and
        ``all`` is unbounded.

        Raises
        ------
        DomainValidationError
            If `period` is not one of week/month/year/all
        """
        reference = ensure_utc(now or datetime.now(timezone.utc))

        if period == PERIOD_ALL:
            return cls()
        if period == PERIOD_WEEK:
            return cls(start=reference - timedelta(days=7))
        if period == PERIOD_MONTH:
            return cls(start=_shift_months(reference, -1))
        if period == PERIOD_YEAR:
            return cls(start=_shift_months(reference, -12))

        raise DomainValidationError(f"unknown period: {period}", field="period")


# ============================================================================
# ACTIVITY RECORD
# ============================================================================


@dataclass(frozen=True)
class ActivityRecord:
    """
    Frozen snapshot of one logged activity.

    `carbon_amount` is computed once when the activity is logged and never
    recomputed; a later change to the emission factors leaves it untouched.

    Attributes
    ----------
    category : str
        Activity category (transportation, food, energy, shopping, waste)
    type : str
        Category-specific activity type (e.g. "bike", "beef")
    quantity : float
        Non-negative amount in `unit`
    unit : str
        Unit label supplied by the caller (e.g. "km", "kg", "kWh")
    carbon_amount : float
        Signed kg CO2e; positive = emitted, negative = saved
    timestamp : datetime
        When the activity happened (UTC)
    """

    category: str
    type: str
    quantity: float
    unit: str
    carbon_amount: float
    timestamp: datetime
    user_id: Optional[str] = None
    activity_id: Optional[int] = None
    notes: Optional[str] = None
    tags: Tuple[str, ...] = ()

    def __post_init__(self) -> None:
        validate_not_empty(self.category, "category")
        validate_not_empty(self.type, "type")
        validate_non_negative(self.quantity, "quantity")
        validate_finite(self.carbon_amount, "carbon_amount")
        object.__setattr__(self, "timestamp", ensure_utc(self.timestamp))
        object.__setattr__(self, "tags", tuple(self.tags))

    @property
    def is_emission(self) -> bool:
        return self.carbon_amount > 0

    @property
    def is_saving(self) -> bool:
        return self.carbon_amount < 0

    @classmethod
    def from_db(cls, row: CarbonActivityDB) -> ActivityRecord:
        return cls(
            category=row.category,
            type=row.type,
            quantity=row.quantity,
            unit=row.unit,
            carbon_amount=row.carbon_amount,
            timestamp=row.occurred_at,
            user_id=row.user_id,
            activity_id=row.id,
            notes=row.notes,
            tags=tuple(row.tags or ()),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.activity_id,
            "user_id": self.user_id,
            "category": self.category,
            "type": self.type,
            "quantity": self.quantity,
            "unit": self.unit,
            "carbon_amount": self.carbon_amount,
            "timestamp": self.timestamp.isoformat(),
            "notes": self.notes,
            "tags": list(self.tags),
        }


# ============================================================================
# TOTALS & BREAKDOWNS
# ============================================================================


@dataclass(frozen=True)
class UserTotals:
    """
    Aggregated totals over a user's activity records.

    `net_footprint` is always `total_emitted - total_saved` and may be
    negative (a net-negative footprint).
    """

    total_emitted: float = 0.0
    total_saved: float = 0.0

    def __post_init__(self) -> None:
        validate_non_negative(self.total_emitted, "total_emitted")
        validate_non_negative(self.total_saved, "total_saved")

    @property
    def net_footprint(self) -> float:
        return self.total_emitted - self.total_saved

    def to_dict(self) -> Dict[str, float]:
        return {
            "total_emitted": self.total_emitted,
            "total_saved": self.total_saved,
            "net_footprint": self.net_footprint,
        }


@dataclass(frozen=True)
class CategoryTotal:
    """One row of a category breakdown."""

    category: str
    total: float
    count: int

    def to_dict(self) -> Dict[str, Any]:
        return {"category": self.category, "total": self.total, "count": self.count}


# ============================================================================
# SCORE
# ============================================================================


@dataclass(frozen=True)
class UserScore:
    """
    Gamification state derived from `total_saved`.

    `rank` is the 1-6 reward band (1 = best) and is unrelated to a user's
    leaderboard position.
    """

    points: int
    rank: int
    tier: str

    def __post_init__(self) -> None:
        validate_non_negative(self.points, "points")
        validate_range(self.rank, 1, DEFAULT_RANK, "rank")
        if self.tier not in TIERS:
            raise DomainValidationError(f"unknown tier: {self.tier}", field="tier")

    def to_dict(self) -> Dict[str, Any]:
        return {"points": self.points, "rank": self.rank, "tier": self.tier}


# ============================================================================
# LEADERBOARD
# ============================================================================


@dataclass(frozen=True)
class ScoreRow:
    """
    One user's score as fed into the leaderboard.

    `tier` may be omitted; the ranker then derives it from `points`.
    """

    user_id: str
    points: int
    total_saved: float
    tier: Optional[str] = None
    display_name: Optional[str] = None
    total_emitted: float = 0.0

    def __post_init__(self) -> None:
        validate_non_negative(self.points, "points")
        validate_non_negative(self.total_saved, "total_saved")

    @classmethod
    def from_db(cls, row: UserStatsDB) -> ScoreRow:
        return cls(
            user_id=row.user_id,
            points=row.points,
            total_saved=row.total_saved,
            tier=row.tier,
            display_name=row.display_name,
            total_emitted=row.total_emitted,
        )


@dataclass(frozen=True)
class LeaderboardEntry:
    """A ranked leaderboard row with its dense 1-based position."""

    position: int
    user_id: str
    points: int
    total_saved: float
    tier: str
    display_name: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "position": self.position,
            "user_id": self.user_id,
            "display_name": self.display_name,
            "points": self.points,
            "total_saved": self.total_saved,
            "tier": self.tier,
        }


@dataclass(frozen=True)
class PositionLookup:
    """A user's leaderboard entry with the neighbouring entries around it."""

    entry: LeaderboardEntry
    above: Tuple[LeaderboardEntry, ...] = ()
    below: Tuple[LeaderboardEntry, ...] = ()

    @property
    def position(self) -> int:
        return self.entry.position

    @property
    def window(self) -> Tuple[LeaderboardEntry, ...]:
        return self.above + (self.entry,) + self.below


@dataclass(frozen=True)
class LeaderboardPage:
    """One page of a leaderboard plus paging metadata."""

    entries: Tuple[LeaderboardEntry, ...]
    current_page: int
    total_pages: int
    total_items: int
    items_per_page: int

    def to_dict(self) -> Dict[str, Any]:
        return {
            "leaderboard": [entry.to_dict() for entry in self.entries],
            "pagination": {
                "current_page": self.current_page,
                "total_pages": self.total_pages,
                "total_items": self.total_items,
                "items_per_page": self.items_per_page,
            },
        }


@dataclass(frozen=True)
class CommunitySummary:
    """Population-wide totals and tier distribution."""

    total_users: int
    total_saved: float
    total_emitted: float
    total_points: int
    tier_distribution: Tuple[Tuple[str, int], ...] = field(default_factory=tuple)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "total_users": self.total_users,
            "total_carbon_saved": self.total_saved,
            "total_carbon_emitted": self.total_emitted,
            "total_points": self.total_points,
            "tier_distribution": [
                {"tier": tier, "count": count} for tier, count in self.tier_distribution
            ],
        }
