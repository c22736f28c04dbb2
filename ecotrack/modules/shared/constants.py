"""
EcoTrack Domain Constants

Purpose
-------
Provide domain-level constants for carbon accounting and scoring: the
recognised activity categories and types, the score ladder shared by rank
and tier, rank titles, and achievements.

IMPORTANT:
This module contains DOMAIN constants only. The emission factor values are
configuration (see `ecotrack.modules.emissions.factors` and
`config/emission_factors.yaml`), not constants.

Design Notes
------------
- Values are annotated with typing.Final to signal immutability
- Rank and tier share one ladder, so they cannot drift apart
"""

from __future__ import annotations

from typing import Dict, Final, FrozenSet, Mapping, Tuple

# ============================================================================
# ACTIVITY CATEGORIES & TYPES
# ============================================================================

TRANSPORTATION: Final[str] = "transportation"
FOOD: Final[str] = "food"
ENERGY: Final[str] = "energy"
SHOPPING: Final[str] = "shopping"
WASTE: Final[str] = "waste"

CATEGORIES: Final[Tuple[str, ...]] = (TRANSPORTATION, FOOD, ENERGY, SHOPPING, WASTE)

ACTIVITY_TYPES: Final[Mapping[str, FrozenSet[str]]] = {
    TRANSPORTATION: frozenset({"car", "bus", "train", "plane", "bike", "walk"}),
    FOOD: frozenset({"beef", "chicken", "fish", "vegetables", "fruits", "dairy", "grains"}),
    ENERGY: frozenset({"electricity", "naturalGas", "heating"}),
    SHOPPING: frozenset({"clothing", "electronics", "furniture", "books"}),
    WASTE: frozenset({"general", "recyclable", "compost"}),
}

# Transportation modes measured as an avoided car trip
ZERO_EMISSION_MODES: Final[FrozenSet[str]] = frozenset({"bike", "walk"})
PUBLIC_TRANSIT_MODES: Final[FrozenSet[str]] = frozenset({"bus", "train"})

# Waste streams measured against the general-waste baseline
DIVERTED_WASTE_TYPES: Final[FrozenSet[str]] = frozenset({"recyclable", "compost"})

# Fallbacks when the factor table omits the baseline entry
DEFAULT_CAR_FACTOR: Final[float] = 0.2
DEFAULT_GENERAL_WASTE_FACTOR: Final[float] = 0.5

MAX_NOTES_LENGTH: Final[int] = 500
MAX_DISPLAY_NAME_LENGTH: Final[int] = 100

# ============================================================================
# SCORING
# ============================================================================

POINTS_PER_KG_SAVED: Final[int] = 10

# (minimum points, rank, tier), checked high-to-low; first match wins
SCORE_LADDER: Final[Tuple[Tuple[int, int, str], ...]] = (
    (1000, 1, "Diamond"),
    (500, 2, "Platinum"),
    (250, 3, "Gold"),
    (100, 4, "Silver"),
    (50, 5, "Bronze"),
)
DEFAULT_RANK: Final[int] = 6
DEFAULT_TIER: Final[str] = "Bronze"

TIERS: Final[Tuple[str, ...]] = ("Bronze", "Silver", "Gold", "Platinum", "Diamond")

RANK_TITLES: Final[Dict[int, str]] = {
    1: "Eco Master",
    2: "Green Champion",
    3: "Sustainability Expert",
    4: "Eco Warrior",
    5: "Green Beginner",
    6: "Newcomer",
}
DEFAULT_RANK_TITLE: Final[str] = "Newcomer"

# (name, description, icon, minimum points)
ACHIEVEMENTS: Final[Tuple[Tuple[str, str, str, int], ...]] = (
    ("First Steps", "Started your eco journey", "🌱", 0),
    ("Green Beginner", "Earned 50+ points", "⭐", 50),
    ("Eco Warrior", "Earned 100+ points", "🛡️", 100),
    ("Sustainability Expert", "Earned 250+ points", "🎓", 250),
    ("Green Champion", "Earned 500+ points", "🏆", 500),
    ("Eco Master", "Earned 1000+ points", "👑", 1000),
)

# ============================================================================
# PERIODS
# ============================================================================

PERIOD_WEEK: Final[str] = "week"
PERIOD_MONTH: Final[str] = "month"
PERIOD_YEAR: Final[str] = "year"
PERIOD_ALL: Final[str] = "all"

PERIODS: Final[Tuple[str, ...]] = (PERIOD_WEEK, PERIOD_MONTH, PERIOD_YEAR, PERIOD_ALL)

RECENT_ACTIVITY_COUNT: Final[int] = 5
