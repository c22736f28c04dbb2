"""
CarbonActivity repository.

Data access for the activity log. Queries only; transactions are owned by
the calling service.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Dict, List, Optional, Set

from sqlalchemy import select

from ecotrack.database.models.carbon_activity import CarbonActivity
from ecotrack.modules.shared.base_repository import BaseRepository

if TYPE_CHECKING:
    from sqlalchemy import ColumnElement
    from sqlalchemy.ext.asyncio import AsyncSession

    from ecotrack.domain.models.carbon import TimeWindow


class CarbonActivityRepository(BaseRepository[CarbonActivity]):
    """Repository for CarbonActivity model."""

    @staticmethod
    def _conditions(
        user_id: str,
        category: Optional[str] = None,
        window: Optional[TimeWindow] = None,
    ) -> List[ColumnElement[bool]]:
        conditions: List[ColumnElement[bool]] = [CarbonActivity.user_id == user_id]
        if category is not None:
            conditions.append(CarbonActivity.category == category)
        if window is not None and window.start is not None:
            conditions.append(CarbonActivity.occurred_at >= window.start)
        if window is not None and window.end is not None:
            conditions.append(CarbonActivity.occurred_at < window.end)
        return conditions

    async def find_by_user(
        self,
        session: AsyncSession,
        user_id: str,
        category: Optional[str] = None,
        window: Optional[TimeWindow] = None,
        newest_first: bool = True,
        limit: Optional[int] = None,
        offset: Optional[int] = None,
    ) -> List[CarbonActivity]:
        order = (
            (CarbonActivity.occurred_at.desc(), CarbonActivity.id.desc())
            if newest_first
            else (CarbonActivity.occurred_at.asc(), CarbonActivity.id.asc())
        )
        return await self.find_many_where(
            session,
            *self._conditions(user_id, category, window),
            order_by=order,
            limit=limit,
            offset=offset,
        )

    async def count_by_user(
        self,
        session: AsyncSession,
        user_id: str,
        category: Optional[str] = None,
        window: Optional[TimeWindow] = None,
    ) -> int:
        return await self.count_where(session, *self._conditions(user_id, category, window))

    async def find_owned(
        self, session: AsyncSession, user_id: str, activity_id: int
    ) -> Optional[CarbonActivity]:
        return await self.find_one_where(
            session,
            CarbonActivity.id == activity_id,
            CarbonActivity.user_id == user_id,
            for_update=True,
        )

    async def active_categories(self, session: AsyncSession) -> Dict[str, Set[str]]:
        """Map each user to the set of categories they have activities in."""
        stmt = select(CarbonActivity.user_id, CarbonActivity.category).distinct()
        result = await session.execute(stmt)

        categories: Dict[str, Set[str]] = {}
        for user_id, category in result.all():
            categories.setdefault(user_id, set()).add(category)

        self.log.debug(
            "Repository.active_categories: CarbonActivity",
            extra={"model": "CarbonActivity", "user_count": len(categories)},
        )
        return categories
