"""
Emission factor table.

Purpose
-------
Hold the kg-CO2e-per-unit factors used to convert an activity into a carbon
amount. The table is an explicit value handed to the calculator at call
time; nothing reads factors from module state.

Design Notes
------------
- `EmissionFactorTable` is a read-only two-level mapping
  (category -> type -> factor) with an explicit get-or-default lookup.
- `DEFAULT_EMISSION_FACTORS` carries the built-in values.
- `load_emission_factors()` overlays the `emission_factors` section of the
  YAML configuration onto the defaults, so a deployment may override a
  single factor without restating the whole table.

Usage
-----
    from ecotrack.modules.emissions.factors import load_emission_factors

    factors = load_emission_factors()
    factors.factor("food", "beef")   # 13.3
    factors.factor("food", "tofu")   # 0.0
"""

from __future__ import annotations

import math
from types import MappingProxyType
from typing import TYPE_CHECKING, Any, Dict, Iterator, Mapping, Optional, Type

from ecotrack.core.config.errors import ConfigValidationError
from ecotrack.core.logging.logger import get_logger

if TYPE_CHECKING:
    from ecotrack.core.config.manager import ConfigManager

logger = get_logger(__name__)

EMISSION_FACTORS_KEY = "emission_factors"


class EmissionFactorTable(Mapping[str, Mapping[str, float]]):
    """
    Read-only category -> type -> factor mapping.

    Raises
    ------
    ConfigValidationError
        If a category is not a mapping or a factor is not a finite,
        non-negative number
    """

    def __init__(self, factors: Mapping[str, Mapping[str, Any]]) -> None:
        table: Dict[str, Mapping[str, float]] = {}

        for category, types in factors.items():
            if not isinstance(types, Mapping):
                raise ConfigValidationError(
                    f"Emission factors for '{category}' must be a mapping, "
                    f"got {type(types).__name__}"
                )
            table[str(category)] = MappingProxyType(
                {
                    str(activity_type): self._coerce_factor(category, activity_type, value)
                    for activity_type, value in types.items()
                }
            )

        self._table: Mapping[str, Mapping[str, float]] = MappingProxyType(table)

    @staticmethod
    def _coerce_factor(category: Any, activity_type: Any, value: Any) -> float:
        if isinstance(value, bool) or not isinstance(value, (int, float)):
            raise ConfigValidationError(
                f"Emission factor {category}.{activity_type} must be a number, "
                f"got {value!r}"
            )
        if not math.isfinite(value) or value < 0:
            raise ConfigValidationError(
                f"Emission factor {category}.{activity_type} must be finite "
                f"and non-negative, got {value!r}"
            )
        return float(value)

    def __getitem__(self, category: str) -> Mapping[str, float]:
        return self._table[category]

    def __iter__(self) -> Iterator[str]:
        return iter(self._table)

    def __len__(self) -> int:
        return len(self._table)

    def __repr__(self) -> str:
        return f"EmissionFactorTable({self.to_dict()!r})"

    def factor(
        self, category: str, activity_type: str, default: float = 0.0
    ) -> float:
        """Factor for `category`/`activity_type`, or `default` when either is unknown."""
        return self._table.get(category, {}).get(activity_type, default)

    def has_factor(self, category: str, activity_type: str) -> bool:
        return activity_type in self._table.get(category, {})

    def with_overrides(
        self, overrides: Mapping[str, Mapping[str, Any]]
    ) -> EmissionFactorTable:
        """Return a new table with `overrides` merged per category."""
        merged: Dict[str, Dict[str, Any]] = self.to_dict()

        for category, types in overrides.items():
            if not isinstance(types, Mapping):
                raise ConfigValidationError(
                    f"Emission factors for '{category}' must be a mapping, "
                    f"got {type(types).__name__}"
                )
            merged.setdefault(str(category), {}).update(types)

        return EmissionFactorTable(merged)

    def to_dict(self) -> Dict[str, Dict[str, float]]:
        return {category: dict(types) for category, types in self._table.items()}


DEFAULT_EMISSION_FACTORS = EmissionFactorTable(
    {
        "transportation": {
            "car": 0.2,
            "bus": 0.05,
            "train": 0.04,
            "plane": 0.25,
            "bike": 0.0,
            "walk": 0.0,
        },
        "food": {
            "beef": 13.3,
            "chicken": 2.9,
            "fish": 3.0,
            "vegetables": 0.2,
            "fruits": 0.3,
            "dairy": 1.4,
            "grains": 0.5,
        },
        "energy": {
            "electricity": 0.5,
            "naturalGas": 2.0,
            "heating": 2.5,
        },
        "shopping": {
            "clothing": 23.0,
            "electronics": 400.0,
            "furniture": 100.0,
            "books": 2.5,
        },
        "waste": {
            "general": 0.5,
            "recyclable": 0.1,
            "compost": 0.05,
        },
    }
)


def load_emission_factors(
    config_manager: Optional[Type[ConfigManager]] = None,
) -> EmissionFactorTable:
    """
    Build the active factor table from configuration.

    Falls back to `DEFAULT_EMISSION_FACTORS` when the configuration has no
    `emission_factors` section.

    Raises
    ------
    ConfigValidationError
        If the section is present but malformed
    """
    if config_manager is None:
        from ecotrack.core.config.manager import ConfigManager as config_manager

    raw = config_manager.get(EMISSION_FACTORS_KEY)

    if raw is None:
        logger.debug("No emission factor configuration; using built-in defaults")
        return DEFAULT_EMISSION_FACTORS

    if not isinstance(raw, Mapping):
        raise ConfigValidationError(
            f"'{EMISSION_FACTORS_KEY}' must be a mapping, got {type(raw).__name__}"
        )

    table = DEFAULT_EMISSION_FACTORS.with_overrides(raw)
    logger.info(
        "Emission factors loaded",
        extra={
            "categories": sorted(table.keys()),
            "factor_count": sum(len(types) for types in table.values()),
        },
    )
    return table


__all__ = [
    "EmissionFactorTable",
    "DEFAULT_EMISSION_FACTORS",
    "EMISSION_FACTORS_KEY",
    "load_emission_factors",
]
