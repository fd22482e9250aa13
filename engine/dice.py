"""Dice rolling for callers who want the calculator to roll for them.

The rules never call this module: they only ever see rolled values.
"""

import random
from itertools import groupby

from pydantic import BaseModel

from config import DAMAGE_DIE


class DiceResult(BaseModel):
    """Result of rolling a pool of dice."""
    dice: list[int]                 # Die sizes, in pool order
    rolls: list[int]                # One value per die
    notation: str


def notation(dice: list[int]) -> str:
    """Describe a pool of die sizes, e.g. [4, 10, 10] -> '1d4+2d10'.

    Args:
        dice: Die sizes in pool order.

    Returns:
        Dice notation, or '-' for an empty pool.
    """
    if not dice:
        return "-"
    parts = [f"{len(list(group))}d{size}" for size, group in groupby(dice)]
    return "+".join(parts)


def roll_dice(dice: list[int], rng: random.Random | None = None) -> DiceResult:
    """Roll each die in a pool once.

    Args:
        dice: Die sizes, e.g. [8, 8] for 2d8.
        rng: Optional Random instance for seeded/testing rolls.

    Returns:
        DiceResult with one roll per die.
    """
    rng = rng or random.Random()
    for size in dice:
        if size < 1:
            raise ValueError(f"Invalid die size: d{size}")
    return DiceResult(
        dice=list(dice),
        rolls=[rng.randint(1, size) for size in dice],
        notation=notation(dice),
    )


def roll_damage(count: int, rng: random.Random | None = None) -> DiceResult:
    """Roll count d20 damage dice."""
    return roll_dice([DAMAGE_DIE] * count, rng=rng)
