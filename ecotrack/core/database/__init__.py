"""
Database subsystem for EcoTrack.

Provides the async SQLAlchemy engine, session management and health check,
plus the ORM base classes and mixins for model definitions.
"""

from ecotrack.core.database.base import Base, IdMixin, TimestampMixin, utc_now
from ecotrack.core.database.service import (
    DatabaseInitializationError,
    DatabaseNotInitializedError,
    DatabaseService,
)

__all__ = [
    # ORM Base & Mixins
    "Base",
    "IdMixin",
    "TimestampMixin",
    "utc_now",
    # Main service
    "DatabaseService",
    # Exceptions
    "DatabaseInitializationError",
    "DatabaseNotInitializedError",
]
