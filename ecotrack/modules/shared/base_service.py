"""
Common base for the activity, stats and leaderboard services.

Holds the injected ConfigManager and logger, and the argument checks that
must run before any session is opened. Transactions belong to
DatabaseService and arithmetic to the pure modules; neither lives here.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Optional, Type

from ecotrack.core.config.errors import ConfigValidationError

from .exceptions import ValidationError

if TYPE_CHECKING:
    from logging import Logger

    from ecotrack.core.config.manager import ConfigManager


class BaseService:
    def __init__(self, config_manager: Type[ConfigManager], logger: Logger) -> None:
        self._config = config_manager
        self.log = logger

    def get_config(self, key: str, default: Optional[Any] = None, required: bool = False) -> Any:
        """
        Read a tunable from ConfigManager.

        Raises:
            ConfigValidationError: `required` is set and the key has no value
        """
        value = self._config.get(key, default)
        if value is None and required:
            raise ConfigValidationError(f"Missing required setting '{key}'")
        return value

    def log_operation(self, operation: str, **context: Any) -> None:
        self.log.info(f"{operation} requested", extra={"operation": operation, **context})

    def validate_positive_int(self, value: int, name: str) -> None:
        # bool is an int subclass; True is not an id
        if isinstance(value, bool) or not isinstance(value, int) or value < 1:
            raise ValidationError(name, f"must be a positive integer, got {value!r}")

    def validate_range(self, value: int, name: str, min_val: int, max_val: int) -> None:
        if value < min_val or value > max_val:
            raise ValidationError(name, f"must be between {min_val} and {max_val}, got {value}")
