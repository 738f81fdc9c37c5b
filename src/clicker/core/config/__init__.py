"""
Configuration subsystem.

- **config.py**: static configuration from environment variables (.env support)
- **manager.py**: YAML-backed game tunables with dot-notation access

`ConfigManager` is imported from `clicker.core.config.manager` directly; the
logging subsystem depends on `Config`, and the manager depends on logging.
"""

from clicker.core.config.config import Config, Environment

__all__ = [
    "Config",
    "Environment",
]
