"""
EcoTrack Domain Validators

Purpose
-------
Validation of caller input before it reaches the accounting pipeline. These
validators raise `ValidationError` when input is rejected; the pure
accounting functions never validate.

Design Notes
------------
Validators:
- Accept data to validate as parameters
- Raise `ValidationError` on failure (raise-on-error pattern)
- Return the normalised value where normalisation applies
- Do not touch the database

Usage
-----
    from ecotrack.modules.shared.validators import validate_activity_input

    validate_activity_input("transportation", "bike", 12.5, "km")
    # OK

    validate_activity_input("transportation", "bike", -1, "km")
    # Raises: ValidationError
"""

from __future__ import annotations

import math
from typing import Any, Iterable, Optional, Tuple

from .constants import CATEGORIES, MAX_DISPLAY_NAME_LENGTH, MAX_NOTES_LENGTH, PERIODS
from .exceptions import ValidationError


def validate_user_id(user_id: Any) -> str:
    """
    Validate and normalise a user identifier.

    Raises:
        ValidationError: If the id is missing or blank
    """
    if user_id is None or not str(user_id).strip():
        raise ValidationError("user_id", "User id is required")
    return str(user_id).strip()


def validate_category(category: Any) -> str:
    """
    Raises:
        ValidationError: If category is not one of the recognised categories
    """
    if category not in CATEGORIES:
        raise ValidationError(
            "category",
            f"Category must be one of {', '.join(CATEGORIES)}, got {category!r}",
        )
    return category


def validate_quantity(quantity: Any) -> float:
    """
    Validate an activity quantity.

    Raises:
        ValidationError: If quantity is missing, non-numeric, non-finite or negative
    """
    if quantity is None:
        raise ValidationError("quantity", "Quantity is required")
    if isinstance(quantity, bool) or not isinstance(quantity, (int, float)):
        raise ValidationError("quantity", f"Quantity must be a number, got {quantity!r}")
    if not math.isfinite(quantity):
        raise ValidationError("quantity", f"Quantity must be finite, got {quantity}")
    if quantity < 0:
        raise ValidationError("quantity", f"Quantity cannot be negative, got {quantity}")
    return float(quantity)


def validate_notes(notes: Optional[str]) -> Optional[str]:
    """
    Raises:
        ValidationError: If notes exceed the maximum length
    """
    if notes is None:
        return None
    if len(notes) > MAX_NOTES_LENGTH:
        raise ValidationError(
            "notes", f"Notes cannot exceed {MAX_NOTES_LENGTH} characters"
        )
    return notes


def validate_tags(tags: Optional[Iterable[Any]]) -> Tuple[str, ...]:
    """Normalise tags to a tuple of stripped, non-empty strings."""
    if tags is None:
        return ()
    if isinstance(tags, str):
        raise ValidationError("tags", "Tags must be a list of strings")
    return tuple(str(tag).strip() for tag in tags if str(tag).strip())


def validate_display_name(display_name: Any) -> Optional[str]:
    """
    Normalise a leaderboard display name; None means "leave unchanged".

    Raises:
        ValidationError: If the name is blank or too long
    """
    if display_name is None:
        return None
    name = str(display_name).strip()
    if not name:
        raise ValidationError("display_name", "Display name cannot be blank")
    if len(name) > MAX_DISPLAY_NAME_LENGTH:
        raise ValidationError(
            "display_name",
            f"Display name cannot exceed {MAX_DISPLAY_NAME_LENGTH} characters",
        )
    return name


def validate_activity_input(
    category: Any,
    activity_type: Any,
    quantity: Any,
    unit: Any,
    notes: Optional[str] = None,
) -> float:
    """
    Validate a new activity before its carbon amount is computed.

    Unknown types within a known category are accepted; they compute to a
    carbon amount of 0.

    Returns:
        The quantity as a float

    Raises:
        ValidationError: On unknown category, blank type or unit, a missing
            or negative quantity, or over-long notes
    """
    validate_category(category)

    if not activity_type or not str(activity_type).strip():
        raise ValidationError("type", "Activity type is required")

    if not unit or not str(unit).strip():
        raise ValidationError("unit", "Unit is required")

    validated_quantity = validate_quantity(quantity)
    validate_notes(notes)
    return validated_quantity


def validate_period(period: Any) -> str:
    """
    Raises:
        ValidationError: If period is not week/month/year/all
    """
    if period not in PERIODS:
        raise ValidationError(
            "period", f"Period must be one of {', '.join(PERIODS)}, got {period!r}"
        )
    return period


def validate_pagination(page: Any, limit: Any, max_limit: int) -> Tuple[int, int]:
    """
    Validate 1-based page and page size.

    Raises:
        ValidationError: If page < 1 or limit is outside 1..max_limit
    """
    if isinstance(page, bool) or not isinstance(page, int) or page < 1:
        raise ValidationError("page", f"Page must be a positive integer, got {page!r}")
    if isinstance(limit, bool) or not isinstance(limit, int) or limit < 1:
        raise ValidationError("limit", f"Limit must be a positive integer, got {limit!r}")
    if limit > max_limit:
        raise ValidationError("limit", f"Limit cannot exceed {max_limit}")
    return page, limit
