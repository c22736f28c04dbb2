"""
Configuration errors.

ConfigError
    ConfigValidationError      a YAML section or value has the wrong shape
    ConfigInitializationError  the YAML directory could not be loaded
"""


class ConfigError(Exception):
    """Base for every configuration failure."""


class ConfigValidationError(ConfigError):
    """
    A tunable failed validation: a section that is not a mapping, a value
    that is not numeric, or a negative emission factor.
    """


class ConfigInitializationError(ConfigError):
    """ConfigManager could not start; the application cannot continue."""


__all__ = [
    "ConfigError",
    "ConfigValidationError",
    "ConfigInitializationError",
]
