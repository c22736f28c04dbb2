"""
Database Models Package
========================

SQLAlchemy ORM models for EcoTrack.

- carbon_activity: the append-only activity log with stored carbon amounts
- user_stats: the per-user derived stats cache
- enums: the reward tier enumeration

Models are schema-only; all accounting lives in `ecotrack.modules`.
"""

from ecotrack.core.database.base import Base

from .carbon_activity import CarbonActivity
from .enums import Tier
from .user_stats import UserStats

__all__ = [
    "Base",
    "CarbonActivity",
    "UserStats",
    "Tier",
]
