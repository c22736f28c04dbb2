"""
Score derivation: total saved -> points, rank, tier.

Purpose
-------
Pure functions implementing the reward ladder. Only `total_saved` feeds the
score; emissions never cost points.

    points = floor(total_saved * 10)

    points >= 1000 -> rank 1, Diamond
    points >=  500 -> rank 2, Platinum
    points >=  250 -> rank 3, Gold
    points >=  100 -> rank 4, Silver
    points >=   50 -> rank 5, Bronze
    otherwise      -> rank 6, Bronze

Rank is the reward band and is unrelated to leaderboard position.

Usage
-----
    from ecotrack.modules.stats.scoring import derive_score

    derive_score(UserTotals(total_saved=10))  # UserScore(points=100, rank=4, tier='Silver')
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Collection, List, Tuple

from ecotrack.domain.models.carbon import UserScore, UserTotals
from ecotrack.modules.shared.constants import (
    ACHIEVEMENTS,
    DEFAULT_RANK,
    DEFAULT_RANK_TITLE,
    DEFAULT_TIER,
    POINTS_PER_KG_SAVED,
    RANK_TITLES,
    SCORE_LADDER,
)


@dataclass(frozen=True)
class Achievement:
    name: str
    description: str
    icon: str
    min_points: int

    def to_dict(self) -> dict:
        return {
            "name": self.name,
            "description": self.description,
            "icon": self.icon,
            "min_points": self.min_points,
        }


ALL_ACHIEVEMENTS: Tuple[Achievement, ...] = tuple(
    Achievement(name, description, icon, min_points)
    for name, description, icon, min_points in ACHIEVEMENTS
)


def points_for(total_saved: float) -> int:
    """
    Points earned for `total_saved` kg CO2e.

    Example:
        >>> points_for(10)
        100
        >>> points_for(4.99)
        49
    """
    return math.floor(total_saved * POINTS_PER_KG_SAVED)


def _ladder_step(points: int) -> Tuple[int, str]:
    for min_points, rank, tier in SCORE_LADDER:
        if points >= min_points:
            return rank, tier
    return DEFAULT_RANK, DEFAULT_TIER


def rank_for_points(points: int) -> int:
    return _ladder_step(points)[0]


def tier_for_points(points: int) -> str:
    return _ladder_step(points)[1]


def derive_score(totals: UserTotals) -> UserScore:
    """
    Derive points, rank and tier from aggregated totals.

    Total for every non-negative `total_saved`.

    Example:
        >>> derive_score(UserTotals(total_saved=100))
        UserScore(points=1000, rank=1, tier='Diamond')
        >>> derive_score(UserTotals())
        UserScore(points=0, rank=6, tier='Bronze')
    """
    points = points_for(totals.total_saved)
    rank, tier = _ladder_step(points)
    return UserScore(points=points, rank=rank, tier=tier)


def rank_title(rank: int) -> str:
    """Display title for a reward rank; unknown ranks read as a newcomer."""
    return RANK_TITLES.get(rank, DEFAULT_RANK_TITLE)


def available_achievements(
    points: int, earned_names: Collection[str] = ()
) -> List[Achievement]:
    """
    Achievements unlocked at `points` that the user has not earned yet.

    "First Steps" is unlocked at zero points, so a new user always has at
    least one achievement available.
    """
    return [
        achievement
        for achievement in ALL_ACHIEVEMENTS
        if points >= achievement.min_points and achievement.name not in earned_names
    ]


__all__ = [
    "Achievement",
    "ALL_ACHIEVEMENTS",
    "points_for",
    "rank_for_points",
    "tier_for_points",
    "derive_score",
    "rank_title",
    "available_achievements",
]
