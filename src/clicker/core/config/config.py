"""
Process-level settings for the clicker, read from the environment.

Purpose
-------
Everything that is fixed for the lifetime of the process and may differ
between deployments: where the save lives, which catalog to fetch, how to
log, the Discord token. Game balance lives in YAML (`ConfigManager`).

Environment Variables
---------------------
- ENVIRONMENT: development | testing | staging | production
- LOG_LEVEL / LOG_JSON / LOG_COLORS / LOGS_DIR: logging output
- DATA_DIR / CONFIG_DIR: save files, catalog file, YAML tunables
- SAVE_BACKEND: memory | file | redis | database (default: file)
- SAVE_SLOT / SAVE_FILE_PATH: slot name and file location
- REDIS_URL / REDIS_SOCKET_TIMEOUT, DATABASE_URL / DATABASE_ECHO
- BADGE_CATALOG_URL / BADGE_CATALOG_PATH / CATALOG_TIMEOUT_SECONDS
- DISCORD_TOKEN / COMMAND_PREFIX: only needed when running the bot

Bad values never abort the load; they are logged and the default is kept.
"""

import logging
import os
from enum import Enum
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv

load_dotenv()

# Structured logging depends on Config, so this module logs through the
# plain root logger.
_log = logging.getLogger(__name__)

SAVE_BACKENDS = ("memory", "file", "redis", "database")
LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")

_TRUE = {"true", "yes", "1", "on"}
_FALSE = {"false", "no", "0", "off"}


class Environment(Enum):
    DEVELOPMENT = "development"
    TESTING = "testing"
    STAGING = "staging"
    PRODUCTION = "production"

    @classmethod
    def from_string(cls, value: str) -> "Environment":
        """Unknown names map to DEVELOPMENT."""
        try:
            return cls(value.strip().lower())
        except ValueError:
            _log.warning("Unknown ENVIRONMENT %r, using development", value)
            return cls.DEVELOPMENT


def _parse_bool(raw: str) -> Optional[bool]:
    normalized = raw.strip().lower()
    if normalized in _TRUE:
        return True
    if normalized in _FALSE:
        return False
    return None


class Config:
    """
    Class-level settings; call `Config.load()` (or `validate()`) to re-read
    the environment.

    >>> Config.load()
    >>> Config.SAVE_BACKEND
    'file'
    """

    ENVIRONMENT: Environment = Environment.DEVELOPMENT
    LOG_LEVEL: str = "INFO"
    LOG_JSON: Optional[bool] = None
    LOG_COLORS: bool = True

    PROJECT_ROOT = Path(__file__).resolve().parents[4]
    LOGS_DIR = PROJECT_ROOT / "logs"
    DATA_DIR = PROJECT_ROOT / "data"
    CONFIG_DIR = PROJECT_ROOT / "config"

    DISCORD_TOKEN: str = ""
    COMMAND_PREFIX: str = "!"

    SAVE_BACKEND: str = "file"
    SAVE_SLOT: str = "brainrotGame"
    SAVE_FILE_PATH: Path = DATA_DIR / "brainrotGame.json"

    REDIS_URL: str = "redis://localhost:6379/0"
    REDIS_SOCKET_TIMEOUT: int = 5

    DATABASE_URL: str = f"sqlite+aiosqlite:///{DATA_DIR / 'clicker.db'}"
    DATABASE_ECHO: bool = False

    BADGE_CATALOG_URL: str = ""
    BADGE_CATALOG_PATH: Path = DATA_DIR / "badges.json"
    CATALOG_TIMEOUT_SECONDS: int = 10

    # ------------------------------------------------------------------ #
    # Parsing helpers
    # ------------------------------------------------------------------ #

    @staticmethod
    def _safe_str(key: str, default: str) -> str:
        return os.getenv(key, default)

    @staticmethod
    def _safe_int(key: str, default: int, min_val: int, max_val: int) -> int:
        """Integer within ``[min_val, max_val]``, else ``default``."""
        raw = os.getenv(key)
        if raw is None:
            return default
        try:
            value = int(raw)
        except ValueError:
            _log.warning("%s=%r is not an integer, using %s", key, raw, default)
            return default
        if not min_val <= value <= max_val:
            _log.warning("%s=%s outside [%s, %s], using %s", key, value, min_val, max_val, default)
            return default
        return value

    @staticmethod
    def _safe_bool(key: str, default: Optional[bool]) -> Optional[bool]:
        raw = os.getenv(key)
        if raw is None:
            return default
        value = _parse_bool(raw)
        if value is None:
            _log.warning("%s=%r is not a boolean, using %s", key, raw, default)
            return default
        return value

    @staticmethod
    def _safe_choice(key: str, default: str, choices: tuple) -> str:
        value = os.getenv(key, default).strip().lower()
        if value not in choices:
            _log.warning("%s=%r must be one of %s, using %s", key, value, choices, default)
            return default
        return value

    # ------------------------------------------------------------------ #
    # Loading
    # ------------------------------------------------------------------ #

    @classmethod
    def load(cls) -> None:
        """Re-read every setting from the environment."""
        cls.ENVIRONMENT = Environment.from_string(cls._safe_str("ENVIRONMENT", "development"))

        level = cls._safe_str("LOG_LEVEL", "INFO").upper()
        if level not in LOG_LEVELS:
            _log.warning("Invalid LOG_LEVEL %r, using INFO", level)
            level = "INFO"
        cls.LOG_LEVEL = level
        cls.LOG_JSON = cls._safe_bool("LOG_JSON", None)
        cls.LOG_COLORS = bool(cls._safe_bool("LOG_COLORS", True))

        root = cls.PROJECT_ROOT
        cls.LOGS_DIR = Path(cls._safe_str("LOGS_DIR", str(root / "logs")))
        cls.DATA_DIR = Path(cls._safe_str("DATA_DIR", str(root / "data")))
        cls.CONFIG_DIR = Path(cls._safe_str("CONFIG_DIR", str(root / "config")))

        cls.DISCORD_TOKEN = cls._safe_str("DISCORD_TOKEN", "")
        cls.COMMAND_PREFIX = cls._safe_str("COMMAND_PREFIX", "!")

        cls.SAVE_BACKEND = cls._safe_choice("SAVE_BACKEND", "file", SAVE_BACKENDS)
        cls.SAVE_SLOT = cls._safe_str("SAVE_SLOT", "brainrotGame")
        cls.SAVE_FILE_PATH = Path(
            cls._safe_str("SAVE_FILE_PATH", str(cls.DATA_DIR / f"{cls.SAVE_SLOT}.json"))
        )
        cls.REDIS_URL = cls._safe_str("REDIS_URL", "redis://localhost:6379/0")
        cls.REDIS_SOCKET_TIMEOUT = cls._safe_int("REDIS_SOCKET_TIMEOUT", 5, 1, 60)
        cls.DATABASE_URL = cls._safe_str(
            "DATABASE_URL", f"sqlite+aiosqlite:///{cls.DATA_DIR / 'clicker.db'}"
        )
        cls.DATABASE_ECHO = bool(cls._safe_bool("DATABASE_ECHO", False))

        cls.BADGE_CATALOG_URL = cls._safe_str("BADGE_CATALOG_URL", "")
        cls.BADGE_CATALOG_PATH = Path(
            cls._safe_str("BADGE_CATALOG_PATH", str(cls.DATA_DIR / "badges.json"))
        )
        cls.CATALOG_TIMEOUT_SECONDS = cls._safe_int("CATALOG_TIMEOUT_SECONDS", 10, 1, 120)

    @classmethod
    def validate(cls, require_discord: bool = False) -> None:
        """
        Load, create the data and log directories, and check required values.

        Raises
        ------
        ValueError
            If ``require_discord`` is set and no DISCORD_TOKEN is configured.
        """
        cls.load()
        cls.LOGS_DIR.mkdir(parents=True, exist_ok=True)
        cls.DATA_DIR.mkdir(parents=True, exist_ok=True)

        if require_discord and not cls.DISCORD_TOKEN:
            raise ValueError("DISCORD_TOKEN environment variable is required")

        _log.info(
            "Configuration loaded: environment=%s backend=%s catalog=%s",
            cls.ENVIRONMENT.value,
            cls.SAVE_BACKEND,
            "http" if cls.BADGE_CATALOG_URL else "file",
        )
