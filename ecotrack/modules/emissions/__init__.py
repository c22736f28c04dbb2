"""
Emissions module: activity -> signed carbon amount.

Usage
-----
    from ecotrack.modules.emissions import EmissionCalculator, load_emission_factors

    calculator = EmissionCalculator(load_emission_factors())
    calculator.compute("transportation", "bike", 12)
"""

from __future__ import annotations

from .calculator import EmissionCalculator, compute_carbon_amount
from .factors import (
    DEFAULT_EMISSION_FACTORS,
    EMISSION_FACTORS_KEY,
    EmissionFactorTable,
    load_emission_factors,
)

__all__ = [
    "EmissionCalculator",
    "compute_carbon_amount",
    "EmissionFactorTable",
    "DEFAULT_EMISSION_FACTORS",
    "EMISSION_FACTORS_KEY",
    "load_emission_factors",
]
