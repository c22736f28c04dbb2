"""
Activity Module
===============

Domain: The carbon activity log

Services:
- ActivityService: Log, delete and list activities
"""

from .repository import CarbonActivityRepository
from .service import ActivityService

__all__ = [
    "ActivityService",
    "CarbonActivityRepository",
]
