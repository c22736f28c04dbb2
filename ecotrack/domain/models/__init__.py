"""
Domain Models
=============

Immutable value objects used by the accounting pipeline. They carry no
persistence concerns; services build them from ORM rows with `from_db`.
"""

from .base import DomainValidationError
from .carbon import (
    ActivityRecord,
    CategoryTotal,
    CommunitySummary,
    LeaderboardEntry,
    LeaderboardPage,
    PositionLookup,
    ScoreRow,
    TimeWindow,
    UserScore,
    UserTotals,
    ensure_utc,
)

__all__ = [
    "DomainValidationError",
    "ActivityRecord",
    "CategoryTotal",
    "CommunitySummary",
    "LeaderboardEntry",
    "LeaderboardPage",
    "PositionLookup",
    "ScoreRow",
    "TimeWindow",
    "UserScore",
    "UserTotals",
    "ensure_utc",
]
