"""
Configuration management subsystem for EcoTrack.

- **config.py**: Static configuration from environment variables
- **manager.py**: Dot-notation access to YAML defaults (emission factors,
  leaderboard tunables)
- **errors.py**: Domain-specific exception hierarchy

Usage
-----
```python
from ecotrack.core.config import Config, ConfigManager

db_url = Config.DATABASE_URL

ConfigManager.initialize()
car_factor = ConfigManager.get("emission_factors.transportation.car", 0.2)
```
"""

from ecotrack.core.config.config import Config, Environment
from ecotrack.core.config.errors import (
    ConfigError,
    ConfigInitializationError,
    ConfigValidationError,
)
from ecotrack.core.config.manager import ConfigManager

__all__ = [
    "Config",
    "Environment",
    "ConfigManager",
    "ConfigError",
    "ConfigInitializationError",
    "ConfigValidationError",
]
