"""
Base domain model helpers for EcoTrack.

Purpose
-------
Provide the validation framework shared by the immutable value objects in
`ecotrack.domain.models`. Domain models are separate from the SQLAlchemy
models under `ecotrack.database.models`; services convert between them.

Usage Example
-------------
>>> @dataclass(frozen=True)
... class Totals:
...     total_saved: float
...
...     def __post_init__(self) -> None:
...         validate_non_negative(self.total_saved, "total_saved")
"""

from __future__ import annotations

import math
from typing import Optional, Union

Number = Union[int, float]


class DomainValidationError(Exception):
    """
    Exception raised when domain model validation fails.

    This is the base exception for all invariant violations in domain
    models. It signals a programming error in the caller, not bad user
    input (user input is rejected earlier with `ValidationError`).
    """

    def __init__(self, message: str, field: Optional[str] = None):
        super().__init__(message)
        self.field = field


def validate_finite(value: Number, field_name: str) -> None:
    """
    Validate that a value is a finite real number.

    Raises
    ------
    DomainValidationError
        If value is NaN or infinite
    """
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise DomainValidationError(
            f"{field_name} must be a number, got {type(value).__name__}",
            field=field_name,
        )
    if not math.isfinite(value):
        raise DomainValidationError(
            f"{field_name} must be finite, got {value}",
            field=field_name,
        )


def validate_non_negative(value: Number, field_name: str) -> None:
    """
    Validate that a value is a finite, non-negative number.

    Raises
    ------
    DomainValidationError
        If value is negative
    """
    validate_finite(value, field_name)
    if value < 0:
        raise DomainValidationError(
            f"{field_name} must be non-negative, got {value}",
            field=field_name,
        )


def validate_range(value: int, min_val: int, max_val: int, field_name: str) -> None:
    """
    Validate that a value is within an inclusive range.

    Raises
    ------
    DomainValidationError
        If value is outside the range
    """
    if not (min_val <= value <= max_val):
        raise DomainValidationError(
            f"{field_name} must be between {min_val} and {max_val}, got {value}",
            field=field_name,
        )


def validate_not_empty(value: str, field_name: str) -> None:
    """
    Validate that a string is not empty.

    Raises
    ------
    DomainValidationError
        If value is empty or whitespace-only
    """
    if not value or not value.strip():
        raise DomainValidationError(
            f"{field_name} cannot be empty",
            field=field_name,
        )
