"""
Stats Service
=============

Purpose
-------
Maintains the per-user stats cache and serves the stats views.

Domain
------
- Recompute a user's totals and score from the full activity log
- Award newly unlocked achievements
- Serve period-filtered emissions/savings/category breakdowns
- Serve earned and available achievements

Consistency
-----------
The cache is always rebuilt from every record the user has, never
incremented. Recomputes for one user are serialised twice: an in-process
`asyncio.Lock` per user and `SELECT ... FOR UPDATE` on the cached row for
other processes. The row is locked (or inserted, which also locks it)
before the activity log is read, so a recompute always sees every record
committed by the recompute ordered before it.

A user's first recompute has no row to lock. When two processes race to
insert it, the loser gets an IntegrityError once the winner commits; it
rolls back and retries, this time waiting on the winner's row.
"""

from __future__ import annotations

import asyncio
import weakref
from datetime import datetime, timezone
from typing import TYPE_CHECKING, Any, Dict, List, Optional

from sqlalchemy.exc import IntegrityError

from ecotrack.core.database.service import DatabaseService
from ecotrack.core.logging.logger import get_logger
from ecotrack.database.models.carbon_activity import CarbonActivity
from ecotrack.database.models.user_stats import UserStats
from ecotrack.domain.models.carbon import ActivityRecord, TimeWindow
from ecotrack.modules.activity.repository import CarbonActivityRepository
from ecotrack.modules.shared.base_service import BaseService
from ecotrack.modules.shared.constants import PERIOD_ALL, RECENT_ACTIVITY_COUNT
from ecotrack.modules.shared.validators import (
    validate_display_name,
    validate_period,
    validate_user_id,
)

from .aggregator import (
    aggregate_totals,
    category_breakdown,
    emissions_breakdown,
    recent_activities,
    savings_breakdown,
)
from .repository import UserStatsRepository
from .scoring import available_achievements, derive_score, rank_title

if TYPE_CHECKING:
    from logging import Logger

    from sqlalchemy.ext.asyncio import AsyncSession

    from ecotrack.core.config.manager import ConfigManager


class StatsService(BaseService):
    """
    Service for the derived stats cache and stats views.

    Public Methods
    --------------
    - recompute_user_stats() -> Rebuild one user's cached totals and score
    - get_user_stats() -> Cached totals and score (created on demand)
    - get_stats() -> Stats view with period breakdowns and recent activity
    - get_achievements() -> Earned and available achievements
    """

    def __init__(
        self,
        config_manager: type[ConfigManager],
        logger: Logger,
    ) -> None:
        super().__init__(config_manager, logger)

        self._activity_repo = CarbonActivityRepository(
            model_class=CarbonActivity,
            logger=get_logger(f"{__name__}.CarbonActivityRepository"),
        )
        self._stats_repo = UserStatsRepository(
            model_class=UserStats,
            logger=get_logger(f"{__name__}.UserStatsRepository"),
        )
        # Entries vanish once no recompute holds or awaits the lock
        self._user_locks: "weakref.WeakValueDictionary[str, asyncio.Lock]" = (
            weakref.WeakValueDictionary()
        )

    def _lock_for(self, user_id: str) -> asyncio.Lock:
        lock = self._user_locks.get(user_id)
        if lock is None:
            lock = asyncio.Lock()
            self._user_locks[user_id] = lock
        return lock

    # ========================================================================
    # PUBLIC API - Write Operations
    # ========================================================================

    async def recompute_user_stats(
        self, user_id: str, display_name: Optional[str] = None
    ) -> Dict[str, Any]:
        """
        Rebuild a user's cached totals, score and achievements.

        This is a **write operation** using get_transaction().

        Args:
            user_id: Owner of the activity log
            display_name: Leaderboard name to store; the current one is
                kept when omitted

        Returns:
            The refreshed stats row as a dict (see `stats_to_dict`)

        Raises:
            ValidationError: If user_id or display_name is rejected
        """
        user_id = validate_user_id(user_id)
        display_name = validate_display_name(display_name)

        async with self._lock_for(user_id):
            try:
                return await self._recompute(user_id, display_name)
            except IntegrityError:
                self.log.warning(
                    "Stats row for user created concurrently; retrying recompute",
                    extra={"user_id": user_id},
                )
                return await self._recompute(user_id, display_name)

    async def _recompute(self, user_id: str, display_name: Optional[str]) -> Dict[str, Any]:
        async with DatabaseService.get_transaction() as session:
            stats = await self._stats_repo.find_by_user(session, user_id, for_update=True)
            if stats is None:
                # The flushed insert holds the row lock until commit
                stats = await self._stats_repo.create(session, user_id=user_id)

            rows = await self._activity_repo.find_by_user(session, user_id)
            records = [ActivityRecord.from_db(row) for row in rows]

            totals = aggregate_totals(records)
            score = derive_score(totals)
            now = datetime.now(timezone.utc)

            stats.total_emitted = totals.total_emitted
            stats.total_saved = totals.total_saved
            stats.net_footprint = totals.net_footprint
            stats.points = score.points
            stats.rank = score.rank
            stats.tier = score.tier
            stats.last_updated = now
            if display_name is not None:
                stats.display_name = display_name

            earned = list(stats.achievements or [])
            newly_earned = available_achievements(
                score.points, {item["name"] for item in earned}
            )
            if newly_earned:
                # Reassign so the JSON column is flagged dirty
                stats.achievements = earned + [
                    {**achievement.to_dict(), "earned_at": now.isoformat()}
                    for achievement in newly_earned
                ]

            self.log.info(
                "User stats recomputed",
                extra={
                    "user_id": user_id,
                    "record_count": len(records),
                    "total_emitted": totals.total_emitted,
                    "total_saved": totals.total_saved,
                    "points": score.points,
                    "rank": score.rank,
                    "tier": score.tier,
                    "new_achievements": [a.name for a in newly_earned],
                },
            )

            return self.stats_to_dict(stats)

    # ========================================================================
    # PUBLIC API - Read Operations
    # ========================================================================

    async def get_user_stats(self, user_id: str) -> Dict[str, Any]:
        """
        Cached stats for a user; a missing row is built from the log first.
        """
        user_id = validate_user_id(user_id)

        async with DatabaseService.get_session() as session:
            stats = await self._stats_repo.find_by_user(session, user_id)
            if stats is not None:
                return self.stats_to_dict(stats)

        return await self.recompute_user_stats(user_id)

    async def get_stats(self, user_id: str, period: str = PERIOD_ALL) -> Dict[str, Any]:
        """
        Stats view for one user.

        Totals and score come from the cache and always cover the whole log;
        the breakdowns honour `period`. Recent activities are the newest
        entries regardless of period.

        Args:
            user_id: Owner of the activity log
            period: "week", "month", "year" or "all"

        Raises:
            ValidationError: If period is not recognised
        """
        user_id = validate_user_id(user_id)
        period = validate_period(period)
        window = TimeWindow.for_period(period)

        self.log_operation("get_stats", user_id=user_id, period=period)

        stats = await self.get_user_stats(user_id)
        recent_count = int(
            self.get_config("stats.recent_activity_count", RECENT_ACTIVITY_COUNT)
        )

        async with DatabaseService.get_session() as session:
            records = await self._load_records(session, user_id)

        return {
            "stats": stats,
            "period": period,
            "emissions_breakdown": [
                row.to_dict() for row in emissions_breakdown(records, window)
            ],
            "savings_breakdown": [
                row.to_dict() for row in savings_breakdown(records, window)
            ],
            "category_breakdown": [
                row.to_dict() for row in category_breakdown(records, window)
            ],
            "recent_activities": [
                record.to_dict() for record in recent_activities(records, recent_count)
            ],
        }

    async def get_achievements(self, user_id: str) -> Dict[str, Any]:
        """
        Earned achievements plus those unlocked but not yet recorded.

        Returns:
            Dict containing:
                - stats: cached stats row
                - earned: achievements recorded on the user, oldest first
                - available_to_earn: achievements whose point condition
                  holds but that are not recorded yet
        """
        stats = await self.get_user_stats(user_id)
        earned: List[Dict[str, Any]] = stats["achievements"]

        available = available_achievements(
            stats["points"], {item["name"] for item in earned}
        )

        return {
            "stats": stats,
            "earned": earned,
            "available_to_earn": [achievement.to_dict() for achievement in available],
        }

    # ========================================================================
    # HELPERS
    # ========================================================================

    async def _load_records(
        self,
        session: AsyncSession,
        user_id: str,
        window: Optional[TimeWindow] = None,
    ) -> List[ActivityRecord]:
        rows = await self._activity_repo.find_by_user(session, user_id, window=window)
        return [ActivityRecord.from_db(row) for row in rows]

    @staticmethod
    def stats_to_dict(stats: UserStats) -> Dict[str, Any]:
        return {
            "user_id": stats.user_id,
            "display_name": stats.display_name,
            "total_emitted": stats.total_emitted,
            "total_saved": stats.total_saved,
            "net_footprint": stats.net_footprint,
            "points": stats.points,
            "rank": stats.rank,
            "rank_title": rank_title(stats.rank),
            "tier": stats.tier,
            "achievements": list(stats.achievements or []),
            "last_updated": stats.last_updated,
        }
