"""Dice rolling and zorome probability helpers."""

import random
from collections.abc import Sequence

DIE_FACES = 6


def roll_dice(rng: random.Random | None = None) -> int:
    """Roll one six-sided die.

    Args:
        rng: Random source to draw from (defaults to the module-level one)

    Returns:
        An integer from 1 to 6 inclusive
    """
    source = rng or random
    return source.randint(1, DIE_FACES)


def roll_multiple_dice(count: int, rng: random.Random | None = None) -> list[int]:
    """Roll `count` independent dice, in order.

    Raises:
        ValueError: If count is negative
    """
    if count < 0:
        raise ValueError(f"count must not be negative, got {count}")
    return [roll_dice(rng) for _ in range(count)]


def is_zorome(values: Sequence[int]) -> bool:
    """Check whether every die shows the same face. Empty is never a zorome."""
    if not values:
        return False
    first = values[0]
    return all(v == first for v in values)


def calculate_zorome_probability(dice_count: int) -> float:
    """Probability that `dice_count` rolled dice all match.

    The first die fixes the face and each further die matches it with
    probability 1/6, so the result is 6 ** -(dice_count - 1).
    """
    if dice_count <= 0:
        return 0.0
    return 1 / DIE_FACES ** (dice_count - 1)


def expected_attempts(dice_count: int) -> float:
    """Mean number of rolls needed to hit a zorome (infinite when impossible)."""
    probability = calculate_zorome_probability(dice_count)
    if probability == 0:
        return float("inf")
    return 1 / probability


def format_probability(probability: float) -> str:
    """Render a probability as a percentage.

    Small probabilities get four decimals so they never show as 0.00%.
    """
    if probability >= 0.01:
        return f"{probability * 100:.2f}%"
    return f"{probability * 100:.4f}%"


def format_probability_as_fraction(dice_count: int) -> str:
    """Render the zorome probability as "1/N"."""
    if dice_count <= 0:
        return "0"
    return f"1/{DIE_FACES ** (dice_count - 1)}"
