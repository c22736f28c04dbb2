"""
UserStats: cached totals and score per user.
Schema only; rebuilt from the activity log on every recompute.
"""

from __future__ import annotations

from datetime import datetime
from typing import Any, Dict, List, Optional

from sqlalchemy import JSON, DateTime, Float, Integer, String
from sqlalchemy.orm import Mapped, mapped_column

from ecotrack.core.database.base import Base, IdMixin, utc_now
from ecotrack.modules.shared.constants import MAX_DISPLAY_NAME_LENGTH
from .enums import Tier


class UserStats(Base, IdMixin):
    """
    Derived stats cache for one user.

    Totals and score are a function of the user's CarbonActivity rows and
    are never incremented in place. `achievements` only grows.
    """

    __tablename__ = "user_stats"

    user_id: Mapped[str] = mapped_column(
        String(64), nullable=False, unique=True, index=True
    )
    display_name: Mapped[Optional[str]] = mapped_column(
        String(MAX_DISPLAY_NAME_LENGTH), nullable=True
    )

    total_emitted: Mapped[float] = mapped_column(Float, nullable=False, default=0.0)
    total_saved: Mapped[float] = mapped_column(Float, nullable=False, default=0.0)
    net_footprint: Mapped[float] = mapped_column(Float, nullable=False, default=0.0)

    points: Mapped[int] = mapped_column(Integer, nullable=False, default=0, index=True)
    rank: Mapped[int] = mapped_column(Integer, nullable=False, default=6)
    tier: Mapped[str] = mapped_column(
        String(16), nullable=False, default=Tier.BRONZE.value
    )

    # [{"name", "description", "icon", "earned_at"}], oldest first
    achievements: Mapped[List[Dict[str, Any]]] = mapped_column(
        JSON, nullable=False, default=list
    )

    last_updated: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=utc_now,
    )
