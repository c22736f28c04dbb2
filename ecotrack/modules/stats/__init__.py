"""
Stats Module
============

Domain: Totals, breakdowns and the reward score derived from them

Pure functions:
- aggregator: aggregate_totals, emissions/savings/category breakdowns
- scoring: derive_score, rank_title, available_achievements

Services:
- StatsService: Per-user stats cache and stats views
"""

from .aggregator import (
    aggregate_totals,
    category_breakdown,
    emissions_breakdown,
    recent_activities,
    savings_breakdown,
)
from .scoring import (
    ALL_ACHIEVEMENTS,
    Achievement,
    available_achievements,
    derive_score,
    points_for,
    rank_for_points,
    rank_title,
    tier_for_points,
)
from .service import StatsService

__all__ = [
    "StatsService",
    "aggregate_totals",
    "emissions_breakdown",
    "savings_breakdown",
    "category_breakdown",
    "recent_activities",
    "Achievement",
    "ALL_ACHIEVEMENTS",
    "derive_score",
    "points_for",
    "rank_for_points",
    "tier_for_points",
    "rank_title",
    "available_achievements",
]
