"""
Database Model Enums
====================

Enumeration for the tier column of the EcoTrack schema. The column stores
the plain string value.
"""

from __future__ import annotations

import enum


class Tier(str, enum.Enum):
    """
    Reward tiers, lowest to highest.

    Derived from points; never set directly.
    """

    BRONZE = "Bronze"
    SILVER = "Silver"
    GOLD = "Gold"
    PLATINUM = "Platinum"
    DIAMOND = "Diamond"
