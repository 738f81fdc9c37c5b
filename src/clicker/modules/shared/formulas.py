"""
Clicker Game Formulas

Purpose
-------
Pure calculation functions for the economy: upgrade cost growth, battery
drain per click, click income and bonus rewards.

Design Notes
------------
All formulas:
- Accept parameters explicitly (no config access)
- Return integers; money and battery are whole units
- Are deterministic and free of side effects

Growth factors are applied with exact rational arithmetic. A float product
such as ``100 * 1.1`` is ``110.00000000000001``, and a ceiling over it would
overcharge by one unit.

Usage
-----
    from clicker.modules.shared.formulas import calculate_next_cost

    next_cost = calculate_next_cost(100, 1.10)  # 110
"""

from __future__ import annotations

import math
from fractions import Fraction
from typing import List, Union

Number = Union[int, float, str, Fraction]


def _as_fraction(value: Number) -> Fraction:
    # repr() yields the shortest decimal, so 1.1 becomes exactly 11/10.
    if isinstance(value, Fraction):
        return value
    if isinstance(value, float):
        return Fraction(repr(value))
    return Fraction(value)


def calculate_next_cost(cost: int, growth_factor: Number) -> int:
    """
    Price of the next purchase on an upgrade track.

    ``ceil(cost * growth_factor)``, never lower than `cost`.

    Example:
        >>> calculate_next_cost(100, 1.10)
        110
        >>> calculate_next_cost(110, 1.10)
        121
        >>> calculate_next_cost(200, 1.20)
        240
        >>> calculate_next_cost(1, 1.10)
        2
    """
    grown = math.ceil(cost * _as_fraction(growth_factor))
    return max(cost, grown)


def project_costs(cost: int, growth_factor: Number, purchases: int) -> List[int]:
    """
    Cost sequence for the next `purchases` purchases, starting with `cost`.

    Example:
        >>> project_costs(100, 1.10, 4)
        [100, 110, 121, 134]
    """
    costs: List[int] = []
    for _ in range(purchases):
        costs.append(cost)
        cost = calculate_next_cost(cost, growth_factor)
    return costs


def battery_cost_for_click(click_level: int) -> int:
    """
    Battery drained by one full click.

    Example:
        >>> battery_cost_for_click(1)
        1
        >>> battery_cost_for_click(10)
        5
    """
    return max(1, click_level // 2)


def calculate_click_income(units: int, multiplier: int) -> int:
    """
    Currency earned for `units` of click power at a rarity multiplier.

    Example:
        >>> calculate_click_income(10, 3)
        30
    """
    return units * multiplier


def calculate_bonus_reward(click_level: int, bonus_multiplier: int) -> int:
    """
    Example:
        >>> calculate_bonus_reward(4, 10)
        40
    """
    return click_level * bonus_multiplier
