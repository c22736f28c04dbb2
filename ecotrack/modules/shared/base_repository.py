"""
Generic async repository over one ORM model.

Subclasses add the named queries a service needs (activities by user and
window, the stats row for a user) on top of these building blocks. The
session is always passed in; committing is the caller's business.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Generic, List, Optional, Sequence, Type, TypeVar

from sqlalchemy import Select, func, select

if TYPE_CHECKING:
    from logging import Logger

    from sqlalchemy import ColumnElement
    from sqlalchemy.ext.asyncio import AsyncSession

ModelT = TypeVar("ModelT")


class BaseRepository(Generic[ModelT]):
    def __init__(self, model_class: Type[ModelT], logger: Logger) -> None:
        self.model_class = model_class
        self.log = logger

    @property
    def model_name(self) -> str:
        return self.model_class.__name__

    def _select(self, conditions: Sequence[ColumnElement[bool]], for_update: bool) -> Select:
        stmt = select(self.model_class).where(*conditions)
        # FOR UPDATE is dropped by SQLite and honoured by PostgreSQL
        return stmt.with_for_update() if for_update else stmt

    async def find_one_where(
        self,
        session: AsyncSession,
        *conditions: ColumnElement[bool],
        for_update: bool = False,
    ) -> Optional[ModelT]:
        result = await session.execute(self._select(conditions, for_update))
        return result.scalar_one_or_none()

    async def find_many_where(
        self,
        session: AsyncSession,
        *conditions: ColumnElement[bool],
        order_by: Optional[Sequence[Any]] = None,
        for_update: bool = False,
        limit: Optional[int] = None,
        offset: Optional[int] = None,
    ) -> List[ModelT]:
        """
        All rows matching `conditions`, optionally ordered and paged.

        `offset` of 0 or None skips nothing; `limit` of None returns every row.
        """
        stmt = self._select(conditions, for_update)
        if order_by:
            stmt = stmt.order_by(*order_by)
        if limit is not None:
            stmt = stmt.limit(limit)
        if offset:
            stmt = stmt.offset(offset)

        rows = list((await session.execute(stmt)).scalars())
        self.log.debug(
            f"{self.model_name} query returned {len(rows)} rows",
            extra={"model": self.model_name, "limit": limit, "offset": offset},
        )
        return rows

    async def count_where(self, session: AsyncSession, *conditions: ColumnElement[bool]) -> int:
        stmt = select(func.count()).select_from(self.model_class).where(*conditions)
        return (await session.execute(stmt)).scalar_one()

    async def create(self, session: AsyncSession, **values: Any) -> ModelT:
        """Insert a row and flush so the generated id is available."""
        instance = self.model_class(**values)
        session.add(instance)
        await session.flush()
        self.log.debug(f"{self.model_name} created", extra={"model": self.model_name})
        return instance

    async def delete(self, session: AsyncSession, instance: ModelT) -> None:
        await session.delete(instance)
        self.log.debug(f"{self.model_name} deleted", extra={"model": self.model_name})
