"""
EcoTrack Shared Module

Purpose
-------
Provides domain-level foundations for the accounting modules:
- Domain exceptions and error handling
- Base service and repository patterns
- Category, scoring and period constants
- Input validation utilities

Architecture
------------
- BaseService: Foundation for service classes (logging, config)
- BaseRepository: Type-safe database access patterns
- Domain exceptions: Lookup failures and rejected input
- Validators: Input validation with structured error raising
- Constants: Categories, score ladder, rank titles, achievements

Usage
-----
    from ecotrack.modules.shared import (
        BaseService,
        BaseRepository,
        NotFoundError,
        validate_activity_input,
    )
"""

from __future__ import annotations

# Base patterns
from .base_repository import BaseRepository
from .base_service import BaseService

# Domain exceptions
from .exceptions import (
    EcoTrackDomainException,
    ErrorSeverity,
    NotFoundError,
    ValidationError,
    get_error_severity,
    is_transient_error,
    should_alert,
)

# Domain constants
from .constants import (
    ACHIEVEMENTS,
    ACTIVITY_TYPES,
    CATEGORIES,
    DEFAULT_RANK,
    DEFAULT_TIER,
    MAX_DISPLAY_NAME_LENGTH,
    MAX_NOTES_LENGTH,
    PERIODS,
    POINTS_PER_KG_SAVED,
    RANK_TITLES,
    SCORE_LADDER,
    TIERS,
)

# Validators
from .validators import (
    validate_activity_input,
    validate_category,
    validate_display_name,
    validate_notes,
    validate_pagination,
    validate_period,
    validate_quantity,
    validate_tags,
    validate_user_id,
)

__all__ = [
    # Base patterns
    "BaseService",
    "BaseRepository",
    # Exceptions
    "EcoTrackDomainException",
    "ErrorSeverity",
    "NotFoundError",
    "ValidationError",
    "is_transient_error",
    "get_error_severity",
    "should_alert",
    # Constants
    "ACHIEVEMENTS",
    "ACTIVITY_TYPES",
    "CATEGORIES",
    "DEFAULT_RANK",
    "DEFAULT_TIER",
    "MAX_DISPLAY_NAME_LENGTH",
    "MAX_NOTES_LENGTH",
    "PERIODS",
    "POINTS_PER_KG_SAVED",
    "RANK_TITLES",
    "SCORE_LADDER",
    "TIERS",
    # Validators
    "validate_activity_input",
    "validate_category",
    "validate_display_name",
    "validate_notes",
    "validate_pagination",
    "validate_period",
    "validate_quantity",
    "validate_tags",
    "validate_user_id",
]
