"""
Emission calculator.

Purpose
-------
Convert one activity (category, type, quantity) into a signed carbon amount
in kg CO2e: positive means emitted, negative means saved.

Rules
-----
- Default: ``factor * quantity``, with unknown categories and types
  contributing a factor of 0.
- Transportation is measured against a car trip of the same distance:
    - bike / walk save the whole car trip: ``-(car * quantity)``
    - bus / train yield ``car * quantity - factor * quantity``; the result is
      positive for every shipped factor and is stored as-is
    - car / plane use the default rule
- Waste recyclable / compost save the difference to general waste:
  ``-((general - factor) * quantity)``.
- The car and general-waste baselines fall back to 0.2 and 0.5 when the
  table does not define them.

All functions are pure. Quantity is not validated here; callers reject
negative input before calling.

Usage
-----
    from ecotrack.modules.emissions import compute_carbon_amount

    compute_carbon_amount("transportation", "bike", 10)   # -2.0
    compute_carbon_amount("food", "beef", 1.5)            # 19.95
"""

from __future__ import annotations

from typing import Optional

from ecotrack.modules.emissions.factors import (
    DEFAULT_EMISSION_FACTORS,
    EmissionFactorTable,
)
from ecotrack.modules.shared.constants import (
    DEFAULT_CAR_FACTOR,
    DEFAULT_GENERAL_WASTE_FACTOR,
    DIVERTED_WASTE_TYPES,
    PUBLIC_TRANSIT_MODES,
    TRANSPORTATION,
    WASTE,
    ZERO_EMISSION_MODES,
)


def compute_carbon_amount(
    category: str,
    activity_type: str,
    quantity: float,
    factors: Optional[EmissionFactorTable] = None,
) -> float:
    """
    Compute the signed carbon amount for one activity.

    Args:
        category: Activity category (e.g. "transportation")
        activity_type: Category-specific type (e.g. "bike")
        quantity: Amount in the activity's unit
        factors: Factor table; the built-in defaults when omitted

    Returns:
        kg CO2e; negative for savings, 0 for unknown category/type

    Example:
        >>> compute_carbon_amount("transportation", "walk", 5)
        -1.0
        >>> compute_carbon_amount("waste", "recyclable", 10)
        -4.0
        >>> compute_carbon_amount("garden", "tree", 3)
        0.0
    """
    table = factors if factors is not None else DEFAULT_EMISSION_FACTORS
    factor = table.factor(category, activity_type)

    if category == TRANSPORTATION:
        car_factor = table.factor(TRANSPORTATION, "car", DEFAULT_CAR_FACTOR)

        if activity_type in ZERO_EMISSION_MODES:
            return -(car_factor * quantity)

        if activity_type in PUBLIC_TRANSIT_MODES:
            return car_factor * quantity - factor * quantity

    if category == WASTE and activity_type in DIVERTED_WASTE_TYPES:
        general_factor = table.factor(WASTE, "general", DEFAULT_GENERAL_WASTE_FACTOR)
        return -((general_factor - factor) * quantity)

    return factor * quantity


class EmissionCalculator:
    """
    Calculator bound to one factor table.

    Services hold an instance so the table is loaded once from
    configuration and then passed explicitly to every computation.
    """

    def __init__(self, factors: Optional[EmissionFactorTable] = None) -> None:
        self.factors = factors if factors is not None else DEFAULT_EMISSION_FACTORS

    def compute(self, category: str, activity_type: str, quantity: float) -> float:
        return compute_carbon_amount(category, activity_type, quantity, self.factors)

    def is_known(self, category: str, activity_type: str) -> bool:
        return self.factors.has_factor(category, activity_type)


__all__ = ["compute_carbon_amount", "EmissionCalculator"]
