"""
ConfigManager: dot-notation access to YAML game tunables.

Purpose
-------
- Provide hierarchical, dot-notation access to tunable game values
  (intervals, growth factors, starting state).
- Back configuration with YAML defaults from the `config/` directory.
- Allow in-process overrides for tests and experiments.

Responsibilities
----------------
- Load and deep-merge every YAML file under the config directory.
- Serve reads from an in-memory cache with fallback to defaults.
- Track simple read metrics (hits, misses, fallbacks).

Non-Responsibilities
--------------------
- Environment-derived static settings (see `Config`).
- Interpreting values; `EconomySettings` turns them into typed tunables.
"""

from __future__ import annotations

import copy
from dataclasses import asdict, dataclass
from pathlib import Path
from typing import Any, Dict, MutableMapping, Optional

import yaml

from clicker.core.logging.logger import get_logger

logger = get_logger(__name__)


@dataclass
class ConfigReadMetrics:
    gets: int = 0
    cache_hits: int = 0
    cache_misses: int = 0
    fallback_to_defaults: int = 0
    files_loaded: int = 0


class ConfigManager:
    """
    Class-level configuration cache.

    Examples
    --------
    >>> ConfigManager.initialize()
    >>> ConfigManager.get("scheduler.regen_interval_seconds", 0.3)
    0.3
    """

    _defaults: Dict[str, Any] = {}
    _cache: Dict[str, Any] = {}
    _initialized: bool = False
    _config_dir: Optional[Path] = None
    _metrics: ConfigReadMetrics = ConfigReadMetrics()

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
                ConfigManager._deep_merge_dict(target[key], value)  # type: ignore[index]
            else:
                target[key] = copy.deepcopy(value)

    @classmethod
    def _load_yaml_configs(cls, config_dir: Path) -> None:
        if not config_dir.exists():
            logger.warning(
                "Config directory not found; using built-in defaults only",
                extra={"config_dir": str(config_dir)},
            )
            return

        yaml_files = sorted(config_dir.rglob("*.yaml")) + sorted(config_dir.rglob("*.yml"))
        if not yaml_files:
            logger.info(
                "No YAML config files discovered; using built-in defaults only",
                extra={"config_dir": str(config_dir)},
            )
            return

        for yaml_file in yaml_files:
            try:
                with yaml_file.open("r", encoding="utf-8") as handle:
                    data = yaml.safe_load(handle)
            except (OSError, yaml.YAMLError) as exc:
                logger.warning(
                    "Failed to load YAML config",
                    extra={
                        "file": str(yaml_file.relative_to(config_dir)),
                        "error": str(exc),
                        "error_type": type(exc).__name__,
                    },
                )
                continue

            if isinstance(data, dict):
                cls._deep_merge_dict(cls._defaults, data)
                cls._metrics.files_loaded += 1
                logger.debug(
                    "Loaded YAML config",
                    extra={"file": str(yaml_file.relative_to(config_dir))},
                )
            elif data is not None:
                logger.warning(
                    "Ignoring non-dict YAML root object",
                    extra={
                        "file": str(yaml_file.relative_to(config_dir)),
                        "root_type": type(data).__name__,
                    },
                )

    # =========================================================================
    # LIFECYCLE
    # =========================================================================

    @classmethod
    def initialize(cls, config_dir: Optional[Path] = None) -> None:
        """Load YAML defaults (idempotent unless `reset()` is called)."""
        if cls._initialized:
            return

        if config_dir is None:
            from clicker.core.config.config import Config

            config_dir = Config.CONFIG_DIR

        cls._config_dir = Path(config_dir)
        cls._defaults = {}
        cls._load_yaml_configs(cls._config_dir)
        cls._cache = copy.deepcopy(cls._defaults)
        cls._initialized = True

        logger.info(
            "ConfigManager initialized",
            extra={
                "config_dir": str(cls._config_dir),
                "files_loaded": cls._metrics.files_loaded,
                "top_level_keys": sorted(cls._cache.keys()),
            },
        )

    @classmethod
    def reset(cls) -> None:
        cls._defaults = {}
        cls._cache = {}
        cls._initialized = False
        cls._config_dir = None
        cls._metrics = ConfigReadMetrics()

    # =========================================================================
    # READS & OVERRIDES
    # =========================================================================

    @staticmethod
    def _resolve(tree: Dict[str, Any], key: str) -> Any:
        value: Any = tree
        for part in key.split("."):
            if not isinstance(value, dict) or part not in value:
                return None
            value = value[part]
        return value

    @classmethod
    def get(cls, key: str, default: Any = None) -> Any:
        """
        Retrieve a configuration value by dot-notation path.

        Falls back to the YAML defaults, then to `default`. Accessing before
        `initialize()` bootstraps from the config directory.
        """
        if not cls._initialized:
            logger.warning(
                "ConfigManager accessed before explicit initialization; "
                "loading defaults now"
            )
            cls.initialize()

        cls._metrics.gets += 1

        value = cls._resolve(cls._cache, key)
        if value is not None:
            cls._metrics.cache_hits += 1
            return value

        cls._metrics.cache_misses += 1
        fallback = cls._resolve(cls._defaults, key)
        if fallback is not None:
            cls._metrics.fallback_to_defaults += 1
            return fallback
        return default

    @classmethod
    def override(cls, key: str, value: Any) -> None:
        """Set a value in the live cache only; defaults are untouched."""
        if not cls._initialized:
            cls.initialize()

        parts = key.split(".")
        node = cls._cache
        for part in parts[:-1]:
            child = node.get(part)
            if not isinstance(child, dict):
                child = {}
                node[part] = child
            node = child
        node[parts[-1]] = value

        logger.info("Configuration override applied", extra={"config_key": key})

    @classmethod
    def get_metrics(cls) -> Dict[str, Any]:
        return asdict(cls._metrics)
