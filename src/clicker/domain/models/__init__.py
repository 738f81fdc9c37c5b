"""
Domain models package.

Design Notes
------------
- `GameState` is the single aggregate root; every mutation goes through it.
- `Badge` is an immutable value type supplied by the catalog.
- Value objects (`Battery`, `GameSnapshot`) are frozen dataclasses.
"""

from .badge import (
    DEFAULT_BADGE,
    DEFAULT_BADGE_ID,
    RARITY_MULTIPLIERS,
    Badge,
    Rarity,
    parse_rarity,
    rarity_multiplier,
)
from .base import (
    AggregateRoot,
    DomainEvent,
    DomainValidationError,
    Entity,
    validate_non_negative,
    validate_not_empty,
    validate_positive,
)
from .game_state import (
    DEFAULT_UPGRADE_COSTS,
    MAX_CURRENCY,
    Battery,
    GameSnapshot,
    GameState,
    Theme,
    UpgradeTrack,
)

__all__ = [
    "AggregateRoot",
    "DomainEvent",
    "DomainValidationError",
    "Entity",
    "validate_non_negative",
    "validate_not_empty",
    "validate_positive",
    "Badge",
    "Rarity",
    "RARITY_MULTIPLIERS",
    "DEFAULT_BADGE",
    "DEFAULT_BADGE_ID",
    "parse_rarity",
    "rarity_multiplier",
    "Battery",
    "GameSnapshot",
    "GameState",
    "Theme",
    "UpgradeTrack",
    "MAX_CURRENCY",
    "DEFAULT_UPGRADE_COSTS",
]
