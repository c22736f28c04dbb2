"""
Activity Service
================

Purpose
-------
Owns the activity log: validates and records new activities with their
carbon amount, deletes activities, and lists them with filtering and paging.

Domain
------
- Validate activity input before anything is computed
- Compute the carbon amount exactly once, at creation
- Persist and delete activities
- Trigger a full stats recompute after every create and delete

The carbon amount stored on a record is never recomputed; changing the
emission factors only affects activities logged afterwards.
"""

from __future__ import annotations

import math
from datetime import datetime, timezone
from typing import TYPE_CHECKING, Any, Dict, Iterable, Optional

from ecotrack.core.database.service import DatabaseService
from ecotrack.core.logging.logger import LogContext, get_logger
from ecotrack.database.models.carbon_activity import CarbonActivity
from ecotrack.domain.models.carbon import ActivityRecord, TimeWindow, ensure_utc
from ecotrack.modules.emissions.calculator import EmissionCalculator
from ecotrack.modules.emissions.factors import load_emission_factors
from ecotrack.modules.shared.base_service import BaseService
from ecotrack.modules.shared.exceptions import NotFoundError
from ecotrack.modules.shared.validators import (
    validate_activity_input,
    validate_category,
    validate_display_name,
    validate_pagination,
    validate_tags,
    validate_user_id,
)

from .repository import CarbonActivityRepository

if TYPE_CHECKING:
    from logging import Logger

    from ecotrack.core.config.manager import ConfigManager
    from ecotrack.modules.stats.service import StatsService


class ActivityService(BaseService):
    """
    Service for logging, deleting and listing carbon activities.

    Public Methods
    --------------
    - log_activity() -> Validate, compute, persist, recompute stats
    - delete_activity() -> Remove an owned activity, recompute stats
    - list_activities() -> Filtered, paged activity listing
    """

    def __init__(
        self,
        config_manager: type[ConfigManager],
        logger: Logger,
        stats_service: StatsService,
        calculator: Optional[EmissionCalculator] = None,
    ) -> None:
        """
        Args:
            config_manager: Application configuration manager
            logger: Structured logger instance
            stats_service: Recomputes the stats cache after each change
            calculator: Emission calculator; built from the configured
                factor table when omitted
        """
        super().__init__(config_manager, logger)

        self._stats = stats_service
        self._calculator = calculator or EmissionCalculator(
            load_emission_factors(config_manager)
        )
        self._activity_repo = CarbonActivityRepository(
            model_class=CarbonActivity,
            logger=get_logger(f"{__name__}.CarbonActivityRepository"),
        )

    # ========================================================================
    # PUBLIC API - Write Operations
    # ========================================================================

    async def log_activity(
        self,
        user_id: str,
        category: str,
        activity_type: str,
        quantity: float,
        unit: str,
        notes: Optional[str] = None,
        tags: Optional[Iterable[str]] = None,
        occurred_at: Optional[datetime] = None,
        display_name: Optional[str] = None,
    ) -> Dict[str, Any]:
        """
        Record a new activity and refresh the user's stats.

        This is a **write operation** using get_transaction().

        Args:
            user_id: Owner of the activity
            category: One of transportation, food, energy, shopping, waste
            activity_type: Category-specific type; unknown types compute to 0
            quantity: Non-negative amount in `unit`
            unit: Unit label (e.g. "km", "kg", "kWh")
            notes: Optional free text, at most 500 characters
            tags: Optional labels
            occurred_at: When the activity happened; defaults to now
            display_name: Leaderboard name to store on the user's stats;
                the stored name is kept when omitted

        Returns:
            Dict containing:
                - activity: the stored record
                - stats: the user's refreshed stats

        Raises:
            ValidationError: If any input is rejected

        Example:
            >>> result = await service.log_activity(
            ...     "u-1", "transportation", "bike", 12, "km"
            ... )
            >>> result["activity"]["carbon_amount"]
            -2.4
        """
        user_id = validate_user_id(user_id)
        validated_quantity = validate_activity_input(
            category, activity_type, quantity, unit, notes
        )
        tag_list = list(validate_tags(tags))
        display_name = validate_display_name(display_name)
        timestamp = ensure_utc(occurred_at) if occurred_at else datetime.now(timezone.utc)

        carbon_amount = self._calculator.compute(category, activity_type, validated_quantity)

        async with LogContext(user_id=user_id, category=category, operation="log_activity"):
            if not self._calculator.is_known(category, activity_type):
                self.log.warning(
                    f"Unknown activity type '{activity_type}' in {category}; "
                    f"recording zero carbon amount",
                    extra={"activity_type": activity_type},
                )

            async with DatabaseService.get_transaction() as session:
                activity = await self._activity_repo.create(
                    session,
                    user_id=user_id,
                    category=category,
                    type=activity_type,
                    quantity=validated_quantity,
                    unit=unit,
                    carbon_amount=carbon_amount,
                    notes=notes,
                    tags=tag_list,
                    occurred_at=timestamp,
                )
                record = ActivityRecord.from_db(activity)

            self.log.info(
                f"Activity logged: {category}/{activity_type}",
                extra={
                    "activity_id": record.activity_id,
                    "activity_type": activity_type,
                    "quantity": validated_quantity,
                    "unit": unit,
                    "carbon_amount": carbon_amount,
                },
            )

            stats = await self._stats.recompute_user_stats(
                user_id, display_name=display_name
            )

        return {"activity": record.to_dict(), "stats": stats}

    async def delete_activity(self, user_id: str, activity_id: int) -> Dict[str, Any]:
        """
        Delete one of the user's activities and refresh their stats.

        This is a **write operation** using get_transaction().

        Raises:
            NotFoundError: If the activity does not exist or belongs to
                another user
        """
        user_id = validate_user_id(user_id)
        self.validate_positive_int(activity_id, "activity_id")

        async with LogContext(user_id=user_id, operation="delete_activity"):
            async with DatabaseService.get_transaction() as session:
                activity = await self._activity_repo.find_owned(
                    session, user_id, activity_id
                )
                if activity is None:
                    raise NotFoundError("CarbonActivity", activity_id)

                record = ActivityRecord.from_db(activity)
                await self._activity_repo.delete(session, activity)

            self.log.info(
                "Activity deleted",
                extra={
                    "activity_id": activity_id,
                    "carbon_amount": record.carbon_amount,
                },
            )

            stats = await self._stats.recompute_user_stats(user_id)

        return {"activity": record.to_dict(), "stats": stats}

    # ========================================================================
    # PUBLIC API - Read Operations
    # ========================================================================

    async def list_activities(
        self,
        user_id: str,
        category: Optional[str] = None,
        window: Optional[TimeWindow] = None,
        page: int = 1,
        limit: Optional[int] = None,
        newest_first: bool = True,
    ) -> Dict[str, Any]:
        """
        List a user's activities, newest first by default.

        This is a **read-only** operation using get_session().

        Args:
            user_id: Owner of the activities
            category: Optional category filter
            window: Optional time window filter
            page: 1-based page number
            limit: Page size; `activity.default_limit` when omitted
            newest_first: Sort order by occurrence time

        Returns:
            Dict containing:
                - activities: records on the requested page
                - pagination: current_page, total_pages, total_items,
                  items_per_page

        Raises:
            ValidationError: If category or paging arguments are invalid
        """
        user_id = validate_user_id(user_id)
        if category is not None:
            validate_category(category)
        if limit is None:
            limit = int(self.get_config("activity.default_limit", 10))
        page, limit = validate_pagination(
            page, limit, int(self.get_config("activity.max_limit", 100))
        )

        self.log_operation(
            "list_activities",
            user_id=user_id,
            category=category,
            page=page,
            limit=limit,
        )

        async with DatabaseService.get_session() as session:
            total = await self._activity_repo.count_by_user(
                session, user_id, category, window
            )
            rows = await self._activity_repo.find_by_user(
                session,
                user_id,
                category=category,
                window=window,
                newest_first=newest_first,
                limit=limit,
                offset=(page - 1) * limit,
            )
            records = [ActivityRecord.from_db(row) for row in rows]

        return {
            "activities": [record.to_dict() for record in records],
            "pagination": {
                "current_page": page,
                "total_pages": math.ceil(total / limit),
                "total_items": total,
                "items_per_page": limit,
            },
        }
