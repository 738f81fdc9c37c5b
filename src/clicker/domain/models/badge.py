"""
Badge domain model.

Badges are cosmetic collectibles supplied by an external catalog. Each one
carries a rarity tier whose integer multiplier scales click income. Badges
are immutable once loaded; ownership lives on the game aggregate, not here.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, Mapping

from clicker.domain.models.base import (
    DomainValidationError,
    validate_non_negative,
    validate_not_empty,
)


class Rarity(str, Enum):
    """Rarity tiers in ascending order of income multiplier."""

    COMMON = "common"
    UNCOMMON = "uncommon"
    RARE = "rare"
    EPIC = "epic"
    LEGENDARY = "legendary"
    SECRET = "secret"
    GOD_TIER = "god-tier"
    ADMIN = "admin"

    @property
    def multiplier(self) -> int:
        return RARITY_MULTIPLIERS[self]


RARITY_MULTIPLIERS: Dict[Rarity, int] = {
    Rarity.COMMON: 1,
    Rarity.UNCOMMON: 2,
    Rarity.RARE: 3,
    Rarity.EPIC: 4,
    Rarity.LEGENDARY: 5,
    Rarity.SECRET: 7,
    Rarity.GOD_TIER: 10,
    Rarity.ADMIN: 15,
}

# Catalog files spell some tiers differently.
_RARITY_ALIASES: Dict[str, Rarity] = {
    "god brainrot": Rarity.GOD_TIER,
    "god_tier": Rarity.GOD_TIER,
    "godtier": Rarity.GOD_TIER,
}

UNKNOWN_RARITY_MULTIPLIER = 1


def parse_rarity(raw: Any) -> Rarity | str:
    """
    Normalize a catalog rarity label.

    Known labels (and aliases) become a `Rarity`; anything else is kept as the
    raw string so the badge still loads and earns the unknown-rarity
    multiplier.

    >>> parse_rarity("God Brainrot")
    <Rarity.GOD_TIER: 'god-tier'>
    >>> parse_rarity("mythic")
    'mythic'
    """
    if isinstance(raw, Rarity):
        return raw
    label = str(raw).strip().lower()
    if label in _RARITY_ALIASES:
        return _RARITY_ALIASES[label]
    try:
        return Rarity(label)
    except ValueError:
        return label


def rarity_multiplier(rarity: Rarity | str | None) -> int:
    """Income multiplier for a rarity label; unknown labels earn 1."""
    if rarity is None:
        return UNKNOWN_RARITY_MULTIPLIER
    parsed = parse_rarity(rarity)
    if isinstance(parsed, Rarity):
        return parsed.multiplier
    return UNKNOWN_RARITY_MULTIPLIER


@dataclass(frozen=True)
class Badge:
    """
    Immutable catalog entry.

    Attributes
    ----------
    id : str
        Stable badge identifier used by saves.
    name : str
        Display name.
    image_ref : str
        Opaque image reference (path or URL).
    cost : int
        Purchase price; 0 means the badge is free.
    description : str
        Flavor text.
    rarity : Rarity | str
        Rarity tier; unrecognized labels are preserved as strings.
    """

    id: str
    name: str
    image_ref: str = ""
    cost: int = 0
    description: str = ""
    rarity: Rarity | str = Rarity.COMMON

    def __post_init__(self) -> None:
        validate_not_empty(self.id, "id")
        validate_non_negative(self.cost, "cost")

    @property
    def is_free(self) -> bool:
        return self.cost == 0

    @property
    def multiplier(self) -> int:
        return rarity_multiplier(self.rarity)

    @property
    def rarity_label(self) -> str:
        return self.rarity.value if isinstance(self.rarity, Rarity) else str(self.rarity)

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "Badge":
        """
        Build a badge from a catalog entry.

        Accepts ``imageRef``, ``image_ref`` or ``emoji`` for the image
        reference. Missing name falls back to the id.

        Raises
        ------
        DomainValidationError
            If the entry is not a mapping, has no id, or has a bad cost.
        """
        if not isinstance(data, Mapping):
            raise DomainValidationError("badge entry must be an object")

        badge_id = data.get("id")
        if not isinstance(badge_id, str):
            raise DomainValidationError("badge id must be a string", field="id")

        cost = data.get("cost", 0)
        if isinstance(cost, float) and cost.is_integer():
            cost = int(cost)

        image_ref = data.get("imageRef", data.get("image_ref", data.get("emoji", "")))

        return cls(
            id=badge_id,
            name=str(data.get("name") or badge_id),
            image_ref=str(image_ref or ""),
            cost=cost,
            description=str(data.get("description") or ""),
            rarity=parse_rarity(data.get("rarity", Rarity.COMMON.value)),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "imageRef": self.image_ref,
            "cost": self.cost,
            "description": self.description,
            "rarity": self.rarity_label,
        }


DEFAULT_BADGE_ID = "tripi"

DEFAULT_BADGE = Badge(
    id=DEFAULT_BADGE_ID,
    name="Tripi Tropi",
    image_ref="/brainrot/Tripi_Tropi_Original.webp",
    cost=0,
    description="Default badge",
    rarity=Rarity.COMMON,
)
