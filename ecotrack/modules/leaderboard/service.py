"""
Leaderboard Service
===================

Purpose
-------
Serves leaderboard views over the per-user stats cache.

Domain
------
- Overall and category-scoped leaderboards with paging
- A user's position with the neighbouring entries
- Community-wide totals, tier distribution and recent achievements

Every read ranks a fresh snapshot of the stats cache; nothing is stored and
no locks are taken.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Dict, List, Optional, Tuple

from ecotrack.core.config.config import Config
from ecotrack.core.database.service import DatabaseService
from ecotrack.core.logging.logger import get_logger
from ecotrack.database.models.carbon_activity import CarbonActivity
from ecotrack.database.models.user_stats import UserStats
from ecotrack.domain.models.carbon import LeaderboardEntry, ScoreRow
from ecotrack.modules.activity.repository import CarbonActivityRepository
from ecotrack.modules.shared.base_service import BaseService
from ecotrack.modules.shared.validators import (
    validate_category,
    validate_pagination,
    validate_user_id,
)
from ecotrack.modules.stats.repository import UserStatsRepository

from .ranker import build_leaderboard, community_summary, find_position, paginate

if TYPE_CHECKING:
    from logging import Logger

    from ecotrack.core.config.manager import ConfigManager

OVERALL = "overall"


class LeaderboardService(BaseService):
    """
    Service for leaderboard and community queries.

    Public Methods
    --------------
    - get_leaderboard() -> One page of the overall or a category leaderboard
    - get_user_ranking() -> A user's position and neighbours
    - get_community_stats() -> Population totals and tier distribution
    """

    def __init__(
        self,
        config_manager: type[ConfigManager],
        logger: Logger,
    ) -> None:
        super().__init__(config_manager, logger)

        self._stats_repo = UserStatsRepository(
            model_class=UserStats,
            logger=get_logger(f"{__name__}.UserStatsRepository"),
        )
        self._activity_repo = CarbonActivityRepository(
            model_class=CarbonActivity,
            logger=get_logger(f"{__name__}.CarbonActivityRepository"),
        )

    # ========================================================================
    # PUBLIC API - Read Operations
    # ========================================================================

    async def get_leaderboard(
        self,
        category: Optional[str] = None,
        page: int = 1,
        limit: Optional[int] = None,
    ) -> Dict[str, Any]:
        """
        Get one page of a leaderboard.

        This is a **read-only** operation using get_session().

        Args:
            category: None or "overall" for everyone; otherwise only users
                with at least one activity in the category
            page: 1-based page number
            limit: Page size; LEADERBOARD_DEFAULT_LIMIT when omitted

        Returns:
            Dict containing:
                - category: "overall" or the requested category
                - leaderboard: entries on the page, each with position,
                  user_id, display_name, points, total_saved, tier
                - pagination: current_page, total_pages, total_items,
                  items_per_page

        Raises:
            ValidationError: If category or paging arguments are invalid

        Example:
            >>> board = await service.get_leaderboard("transportation", limit=10)
            >>> for entry in board["leaderboard"]:
            ...     print(f"{entry['position']}. {entry['user_id']}: {entry['points']}")
        """
        category_filter = self._normalise_category(category)
        page, limit = validate_pagination(
            page,
            limit if limit is not None else Config.LEADERBOARD_DEFAULT_LIMIT,
            Config.LEADERBOARD_MAX_LIMIT,
        )

        self.log_operation(
            "get_leaderboard",
            category=category_filter or OVERALL,
            page=page,
            limit=limit,
        )

        entries = await self._ranked_snapshot(category_filter)
        board_page = paginate(entries, page, limit)

        return {"category": category_filter or OVERALL, **board_page.to_dict()}

    async def get_user_ranking(
        self,
        user_id: str,
        neighbours: Optional[int] = None,
        category: Optional[str] = None,
    ) -> Dict[str, Any]:
        """
        Get a user's leaderboard position with nearby entries.

        This is a **read-only** operation using get_session().

        Args:
            user_id: User to locate
            neighbours: Entries to include on each side;
                LEADERBOARD_NEIGHBOURS when omitted
            category: Optional category leaderboard to search

        Returns:
            Dict containing:
                - entry: the user's own entry
                - position: the user's 1-based position
                - total_users: number of ranked users
                - above / below: neighbouring entries
                - nearby_users: above + entry + below, in order

        Raises:
            NotFoundError: If the user has no leaderboard entry
        """
        user_id = validate_user_id(user_id)
        category_filter = self._normalise_category(category)
        span = Config.LEADERBOARD_NEIGHBOURS if neighbours is None else neighbours
        self.validate_range(span, "neighbours", 0, Config.LEADERBOARD_MAX_LIMIT)

        self.log_operation(
            "get_user_ranking",
            user_id=user_id,
            category=category_filter or OVERALL,
            neighbours=span,
        )

        entries = await self._ranked_snapshot(category_filter)
        lookup = find_position(entries, user_id, span)

        return {
            "entry": lookup.entry.to_dict(),
            "position": lookup.position,
            "total_users": len(entries),
            "above": [entry.to_dict() for entry in lookup.above],
            "below": [entry.to_dict() for entry in lookup.below],
            "nearby_users": [entry.to_dict() for entry in lookup.window],
        }

    async def get_community_stats(self) -> Dict[str, Any]:
        """
        Population totals, tier distribution and the latest achievements.

        This is a **read-only** operation using get_session().
        """
        self.log_operation("get_community_stats")

        async with DatabaseService.get_session() as session:
            rows = await self._stats_repo.find_all(session)

        summary = community_summary(ScoreRow.from_db(row) for row in rows)

        return {
            **summary.to_dict(),
            "recent_achievements": self._recent_achievements(
                rows, int(self.get_config("leaderboard.recent_achievement_count", 10))
            ),
        }

    # ========================================================================
    # HELPERS
    # ========================================================================

    @staticmethod
    def _normalise_category(category: Optional[str]) -> Optional[str]:
        if category is None or category == OVERALL:
            return None
        return validate_category(category)

    async def _ranked_snapshot(
        self, category_filter: Optional[str]
    ) -> List[LeaderboardEntry]:
        async with DatabaseService.get_session() as session:
            rows = await self._stats_repo.find_all(session)
            active = (
                await self._activity_repo.active_categories(session)
                if category_filter is not None
                else None
            )

        return build_leaderboard(
            (ScoreRow.from_db(row) for row in rows),
            category_filter=category_filter,
            active_categories=active,
        )

    @staticmethod
    def _recent_achievements(
        rows: List[UserStats], count: int
    ) -> List[Dict[str, Any]]:
        earned: List[Tuple[str, str, Dict[str, Any]]] = [
            (item.get("earned_at", ""), row.user_id, item)
            for row in rows
            for item in (row.achievements or [])
        ]
        earned.sort(key=lambda triple: triple[0], reverse=True)

        return [
            {"user_id": user_id, "achievement": item}
            for _, user_id, item in earned[:count]
        ]
