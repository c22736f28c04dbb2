"""
ConfigManager: YAML-backed, dot-notation configuration access for EcoTrack.

Purpose
-------
- Provide hierarchical, dot-notation access to tunable values such as the
  emission factor table and leaderboard settings.
- Back configuration with YAML files from the configured `config/` directory.
- Allow in-process overrides (used by tests and admin tooling) without
  touching the YAML defaults.

Key Design Decisions
--------------------
- YAML is the single source for **defaults**; overrides live in memory only.
- All YAML files under the config directory are deep-merged, so a deployment
  can ship a partial file that only overrides selected factors.
- Reads never raise: a missing key returns the caller's default.
"""

from __future__ import annotations

import copy
from pathlib import Path
from typing import Any, Dict, List, MutableMapping, Optional

import yaml

from ecotrack.core.config.config import Config
from ecotrack.core.config.errors import ConfigInitializationError
from ecotrack.core.logging.logger import get_logger

logger = get_logger(__name__)


class ConfigManager:
    """
    Dot-notation configuration access over YAML defaults and in-memory overrides.

    Usage
    -----
    >>> ConfigManager.initialize()
    >>> ConfigManager.get("leaderboard.neighbours", 5)
    5
    >>> ConfigManager.get("emission_factors.transportation.car")
    0.2
    """

    _defaults: Dict[str, Any] = {}
    _overrides: Dict[str, Any] = {}
    _cache: Dict[str, Any] = {}
    _initialized: bool = False
    _config_dir: Optional[Path] = None

    # =========================================================================
    # YAML LOADING & DEFAULTS
    # =========================================================================

    @staticmethod
    def _deep_merge_dict(
        target: MutableMapping[str, Any],
        source: MutableMapping[str, Any],
    ) -> None:
        """Recursively merge `source` into `target` (in-place)."""
        for key, value in source.items():
            if isinstance(value, dict) and isinstance(target.get(key), dict):
                ConfigManager._deep_merge_dict(target[key], value)
            else:
                target[key] = copy.deepcopy(value)

    @classmethod
    def _load_yaml_configs(cls, config_dir: Path) -> int:
        """
        Load every YAML file under `config_dir` into `_defaults`.

        Files are merged in sorted path order so the result is deterministic.
        Returns the number of files merged.
        """
        if not config_dir.exists():
            logger.warning(
                "Config directory not found; using built-in defaults only",
                extra={"config_dir": str(config_dir)},
            )
            return 0

        yaml_files = sorted(
            list(config_dir.rglob("*.yaml")) + list(config_dir.rglob("*.yml"))
        )
        loaded_count = 0

        for yaml_file in yaml_files:
            relative = str(yaml_file.relative_to(config_dir))
            try:
                with yaml_file.open("r", encoding="utf-8") as handle:
                    data = yaml.safe_load(handle)
            except (OSError, yaml.YAMLError) as exc:
                logger.warning(
                    "Failed to load YAML config",
                    extra={
                        "file": relative,
                        "error": str(exc),
                        "error_type": type(exc).__name__,
                    },
                )
                continue

            if isinstance(data, dict):
                cls._deep_merge_dict(cls._defaults, data)
                loaded_count += 1
                logger.debug("Loaded YAML config", extra={"file": relative})
            elif data is not None:
                logger.warning(
                    "Ignoring non-dict YAML root object",
                    extra={"file": relative, "root_type": type(data).__name__},
                )

        return loaded_count

    @classmethod
    def _rebuild_cache(cls) -> None:
        cache: Dict[str, Any] = copy.deepcopy(cls._defaults)
        cls._deep_merge_dict(cache, copy.deepcopy(cls._overrides))
        cls._cache = cache

    # =========================================================================
    # LIFECYCLE
    # =========================================================================

    @classmethod
    def initialize(cls, config_dir: Optional[Path] = None) -> None:
        """
        Load YAML defaults. Idempotent unless a different directory is given.

        Raises
        ------
        ConfigInitializationError
            If `config_dir` is given explicitly and is not a directory.
        """
        target = Path(config_dir) if config_dir is not None else Path(Config.CONFIG_DIR)

        if cls._initialized and cls._config_dir == target:
            return

        if config_dir is not None and not target.is_dir():
            raise ConfigInitializationError(f"Config directory does not exist: {target}")

        cls._defaults = {}
        loaded = cls._load_yaml_configs(target)
        cls._config_dir = target
        cls._rebuild_cache()
        cls._initialized = True

        logger.info(
            "ConfigManager initialized",
            extra={
                "config_dir": str(target),
                "yaml_file_count": loaded,
                "top_level_keys": sorted(cls._cache.keys()),
            },
        )

    @classmethod
    def reset(cls) -> None:
        """Drop all loaded defaults and overrides."""
        cls._defaults = {}
        cls._overrides = {}
        cls._cache = {}
        cls._initialized = False
        cls._config_dir = None

    # =========================================================================
    # READS
    # =========================================================================

    @classmethod
    def get(cls, key: str, default: Any = None) -> Any:
        """
        Retrieve a configuration value by dot-notation path.

        Examples
        --------
        >>> ConfigManager.get("emission_factors.waste.general", 0.5)
        0.5
        """
        if not cls._initialized:
            cls.initialize()

        value: Any = cls._cache
        for part in key.split("."):
            if not isinstance(value, dict) or part not in value:
                return default
            value = value[part]

        return copy.deepcopy(value) if value is not None else default

    @classmethod
    def get_all_keys(cls) -> List[str]:
        if not cls._initialized:
            cls.initialize()
        return list(cls._cache.keys())

    # =========================================================================
    # OVERRIDES
    # =========================================================================

    @classmethod
    def set_override(cls, key: str, value: Any) -> None:
        """
        Override a configuration value in memory.

        Example
        -------
        >>> ConfigManager.set_override("emission_factors.transportation.car", 0.3)
        """
        if not cls._initialized:
            cls.initialize()

        parts = key.split(".")
        node: Dict[str, Any] = cls._overrides
        for part in parts[:-1]:
            child = node.get(part)
            if not isinstance(child, dict):
                child = {}
                node[part] = child
            node = child
        node[parts[-1]] = value

        cls._rebuild_cache()
        logger.info("Configuration override applied", extra={"config_key": key})

    @classmethod
    def clear_overrides(cls) -> None:
        cls._overrides = {}
        cls._rebuild_cache()


__all__ = ["ConfigManager"]
