"""Points calculator - balance tiers and volume doubling tiers.

Pure functions shared by the record store, the preview endpoint and the
dashboard. Tier thresholds are strict upper bounds: a balance exactly at a
threshold scores the higher tier.
"""

import math
from decimal import Decimal

# (exclusive upper bound, points) for each balance tier below the top tier
BALANCE_TIERS: tuple[tuple[Decimal, int], ...] = (
    (Decimal("100"), 0),
    (Decimal("1000"), 1),
    (Decimal("10000"), 2),
    (Decimal("100000"), 3),
)
MAX_BALANCE_POINTS = 4

# Balance and volume options offered by the dashboard editor
BALANCE_PRESETS: tuple[int, ...] = (100, 1000, 10000, 100000)
VOLUME_PRESET_START = 1024
VOLUME_PRESET_LIMIT = 2_097_152


def _to_decimal(value) -> Decimal:
    if isinstance(value, Decimal):
        return value
    return Decimal(str(value))


def balance_points(balance) -> int:
    """Points for a balance: <100 → 0, <1k → 1, <10k → 2, <100k → 3, else 4.

    Non-finite input scores 0.
    """
    value = _to_decimal(balance)
    if not value.is_finite():
        return 0
    for upper_bound, points in BALANCE_TIERS:
        if value < upper_bound:
            return points
    return MAX_BALANCE_POINTS


def volume_points(volume) -> int:
    """Count the doublings 2, 4, 8, ... that are <= ``volume``.

    Iterative doubling keeps power-of-two boundaries exact:
    ``volume_points(1023) == 9`` and ``volume_points(1024) == 10``. Non-finite
    input scores 0.
    """
    value = _to_decimal(volume)
    if not value.is_finite() or value < 2:
        return 0

    points = 0
    base = Decimal("2")
    while value >= base:
        points += 1
        base *= 2
    return points


def total_points(
    balance_pts: int,
    volume_pts: int,
    bonus_points=Decimal("0"),
    deducted_points=Decimal("0"),
) -> Decimal:
    """``balance + volume + bonus - deducted``. Profit never contributes."""
    return (
        Decimal(balance_pts)
        + Decimal(volume_pts)
        + _to_decimal(bonus_points or 0)
        - _to_decimal(deducted_points or 0)
    )


def multiplied_volume_points(volume_pts: int, multiplier) -> int:
    """Apply a promotional volume multiplier, rounding down."""
    return math.floor(Decimal(volume_pts) * _to_decimal(multiplier))


def preview_points(start_balance, end_balance, volume, multiplier=1) -> dict:
    """Quick calculator: score a day from its start/end balance and volume.

    Balance points come from the average of start and end balance. The
    volume multiplier only applies when it is greater than one.
    """
    average = (_to_decimal(start_balance) + _to_decimal(end_balance)) / 2
    bal_pts = balance_points(average)
    vol_pts = volume_points(volume)
    mult = _to_decimal(multiplier)
    boosted = multiplied_volume_points(vol_pts, mult)
    effective_volume_pts = boosted if mult > 1 else vol_pts
    return {
        "average_balance": average,
        "balance_points": bal_pts,
        "volume_points": vol_pts,
        "multiplied_volume_points": boosted,
        "total_points": bal_pts + effective_volume_pts,
    }


def volume_presets() -> list[int]:
    """Doubling volume options from 1024 up to and including ~2M."""
    presets = []
    value = VOLUME_PRESET_START
    while value < VOLUME_PRESET_LIMIT:
        presets.append(value)
        value *= 2
    presets.append(VOLUME_PRESET_LIMIT)
    return presets
