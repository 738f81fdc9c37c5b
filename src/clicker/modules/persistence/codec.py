"""
Save-blob codec.

A save is one JSON object holding the complete game state and nothing
else (the badge catalog is supplied fresh every session). Field names match
the browser save format so existing saves load unchanged:

| Key            | Field                     |
|----------------|---------------------------|
| totalCoins     | currency                  |
| totalBattery   | battery.current           |
| levelOfBattery | battery.capacity          |
| levelOfClicks  | click_level               |
| levelOfCharge  | charge_level              |
| costForClick   | upgrade cost, click       |
| costForBattery | upgrade cost, battery     |
| costForCharge  | upgrade cost, charge      |
| darkMode       | theme (true means dark)   |
| selectedBadge  | selected badge id         |
| ownedBadges    | owned badge ids (list)    |

Loading is all-or-nothing: `load_state` returns the default state for a
missing blob, unparsable JSON, any absent or mistyped field, or a value that
breaks a game invariant. Fields are never repaired individually.
"""

from __future__ import annotations

import json
from typing import Any, Callable, Dict, Optional

from clicker.core.logging.logger import get_logger
from clicker.domain.models.badge import DEFAULT_BADGE_ID
from clicker.domain.models.base import DomainValidationError
from clicker.domain.models.game_state import GameSnapshot, GameState, Theme
from clicker.modules.shared.exceptions import CorruptSaveError

logger = get_logger(__name__)

SAVE_KEYS = (
    "totalCoins",
    "totalBattery",
    "levelOfClicks",
    "levelOfBattery",
    "levelOfCharge",
    "costForClick",
    "costForBattery",
    "costForCharge",
    "darkMode",
    "selectedBadge",
    "ownedBadges",
)

_INT_KEYS = SAVE_KEYS[:8]


def snapshot_to_dict(snapshot: GameSnapshot) -> Dict[str, Any]:
    return {
        "totalCoins": snapshot.currency,
        "totalBattery": snapshot.battery_current,
        "levelOfClicks": snapshot.click_level,
        "levelOfBattery": snapshot.battery_capacity,
        "levelOfCharge": snapshot.charge_level,
        "costForClick": snapshot.click_cost,
        "costForBattery": snapshot.battery_cost,
        "costForCharge": snapshot.charge_cost,
        "darkMode": snapshot.theme is Theme.DARK,
        "selectedBadge": snapshot.selected_badge_id,
        "ownedBadges": sorted(snapshot.owned_badges),
    }


def encode_snapshot(snapshot: GameSnapshot) -> str:
    return json.dumps(snapshot_to_dict(snapshot), separators=(",", ":"))


def encode_state(state: GameState) -> str:
    return encode_snapshot(state.to_snapshot())


def _require_int(data: Dict[str, Any], key: str) -> int:
    value = data[key]
    # bool is an int subclass; a save with true/false here is corrupt
    if isinstance(value, bool) or not isinstance(value, int):
        raise CorruptSaveError(f"{key} must be an integer", field=key)
    return value


def snapshot_from_dict(data: Any) -> GameSnapshot:
    """
    Raises
    ------
    CorruptSaveError
        If the object is missing a key or a value has the wrong type.
    """
    if not isinstance(data, dict):
        raise CorruptSaveError("save root must be an object")

    missing = [key for key in SAVE_KEYS if key not in data]
    if missing:
        raise CorruptSaveError(f"missing fields: {', '.join(missing)}", field=missing[0])

    ints = {key: _require_int(data, key) for key in _INT_KEYS}

    dark_mode = data["darkMode"]
    if not isinstance(dark_mode, bool):
        raise CorruptSaveError("darkMode must be a boolean", field="darkMode")

    selected = data["selectedBadge"]
    if not isinstance(selected, str):
        raise CorruptSaveError("selectedBadge must be a string", field="selectedBadge")

    owned = data["ownedBadges"]
    if not isinstance(owned, list) or not all(isinstance(b, str) for b in owned):
        raise CorruptSaveError("ownedBadges must be a list of strings", field="ownedBadges")

    return GameSnapshot(
        currency=ints["totalCoins"],
        battery_current=ints["totalBattery"],
        battery_capacity=ints["levelOfBattery"],
        click_level=ints["levelOfClicks"],
        charge_level=ints["levelOfCharge"],
        click_cost=ints["costForClick"],
        battery_cost=ints["costForBattery"],
        charge_cost=ints["costForCharge"],
        theme=Theme.DARK if dark_mode else Theme.LIGHT,
        selected_badge_id=selected,
        owned_badges=frozenset(owned),
    )


def decode_state(blob: Optional[str | bytes], default_badge_id: str = DEFAULT_BADGE_ID) -> GameState:
    """
    Strict decode.

    Raises
    ------
    CorruptSaveError
        For a missing, unparsable, incomplete or invariant-breaking blob.
    """
    if blob is None or (isinstance(blob, (str, bytes)) and not blob.strip()):
        raise CorruptSaveError("no saved data")

    try:
        data = json.loads(blob)
    except (TypeError, ValueError, RecursionError) as exc:
        raise CorruptSaveError(f"unparsable JSON: {exc}") from exc

    snapshot = snapshot_from_dict(data)
    try:
        return GameState.from_snapshot(snapshot, default_badge_id=default_badge_id)
    except DomainValidationError as exc:
        raise CorruptSaveError(str(exc), field=exc.field) from exc


def load_state(
    blob: Optional[str | bytes],
    default_factory: Optional[Callable[[], GameState]] = None,
    default_badge_id: str = DEFAULT_BADGE_ID,
) -> GameState:
    """
    Lenient decode: any problem yields a fresh default state.

    Never raises for bad data.
    """
    factory = default_factory or (lambda: GameState.default(default_badge_id))
    if blob is None:
        logger.info("No saved game found; starting fresh")
        return factory()

    try:
        return decode_state(blob, default_badge_id=default_badge_id)
    except CorruptSaveError as exc:
        logger.warning(
            "Saved game unusable; starting fresh",
            extra={"reason": exc.reason, "field": exc.field},
        )
        return factory()
