"""
UserStats repository.

Data access for the per-user stats cache.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, List, Optional

from ecotrack.database.models.user_stats import UserStats
from ecotrack.modules.shared.base_repository import BaseRepository

if TYPE_CHECKING:
    from sqlalchemy.ext.asyncio import AsyncSession


class UserStatsRepository(BaseRepository[UserStats]):
    """Repository for UserStats model."""

    async def find_by_user(
        self, session: AsyncSession, user_id: str, for_update: bool = False
    ) -> Optional[UserStats]:
        return await self.find_one_where(
            session, UserStats.user_id == user_id, for_update=for_update
        )

    async def find_all(self, session: AsyncSession) -> List[UserStats]:
        """Every cached row, ordered by user id for a deterministic input order."""
        return await self.find_many_where(session, order_by=(UserStats.user_id,))
