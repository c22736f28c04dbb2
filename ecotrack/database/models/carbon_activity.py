"""
CarbonActivity: one logged user activity and its carbon amount.
Schema only.
"""

from __future__ import annotations

from datetime import datetime
from typing import List, Optional

from sqlalchemy import JSON, DateTime, Float, Index, String
from sqlalchemy.orm import Mapped, mapped_column

from ecotrack.core.database.base import Base, IdMixin, TimestampMixin, utc_now
from ecotrack.modules.shared.constants import MAX_NOTES_LENGTH


class CarbonActivity(Base, IdMixin, TimestampMixin):
    """
    A user's activity with the carbon amount computed when it was logged.

    `carbon_amount` is written once at creation and never recomputed.
    """

    __tablename__ = "carbon_activities"
    __table_args__ = (
        Index("ix_carbon_activities_user_time", "user_id", "occurred_at"),
        Index("ix_carbon_activities_user_category", "user_id", "category"),
    )

    user_id: Mapped[str] = mapped_column(String(64), nullable=False, index=True)

    category: Mapped[str] = mapped_column(String(32), nullable=False)
    type: Mapped[str] = mapped_column(String(64), nullable=False)
    quantity: Mapped[float] = mapped_column(Float, nullable=False)
    unit: Mapped[str] = mapped_column(String(32), nullable=False)

    # kg CO2e; positive = emitted, negative = saved
    carbon_amount: Mapped[float] = mapped_column(Float, nullable=False)

    notes: Mapped[Optional[str]] = mapped_column(String(MAX_NOTES_LENGTH), nullable=True)
    tags: Mapped[List[str]] = mapped_column(JSON, nullable=False, default=list)

    occurred_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=utc_now,
    )
