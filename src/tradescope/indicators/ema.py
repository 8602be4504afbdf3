"""Exponential Moving Average over Decimal series.

The EMA is seeded with the simple average of the first ``period`` values;
earlier positions have no value. Intermediate results are quantized to
12 decimal places to keep Decimal representations bounded.

CRITICAL: All computations use Decimal. Never use float.
"""

from decimal import Decimal

#: Precision limit for EMA intermediate results (12 decimal places).
_EMA_QUANTIZE = Decimal("0.000000000001")


def compute_ema(values: list[Decimal], period: int) -> list[Decimal | None]:
    """Compute an SMA-seeded EMA.

    Formula after the seed:
        multiplier = 2 / (period + 1)
        EMA_t = (value_t - EMA_{t-1}) * multiplier + EMA_{t-1}

    Args:
        values: Ordered values (oldest first).
        period: EMA period.

    Returns:
        Same length as ``values``. Positions before ``period - 1`` are None;
        every position is None when fewer than ``period`` values exist.
    """
    if period <= 0 or len(values) < period:
        return [None] * len(values)

    multiplier = Decimal("2") / (Decimal(period) + Decimal("1"))
    ema: list[Decimal | None] = [None] * (period - 1)

    seed = (sum(values[:period], Decimal("0")) / Decimal(period)).quantize(_EMA_QUANTIZE)
    ema.append(seed)

    previous = seed
    for value in values[period:]:
        previous = ((value - previous) * multiplier + previous).quantize(_EMA_QUANTIZE)
        ema.append(previous)

    return ema


def latest_ema(values: list[Decimal], period: int) -> Decimal | None:
    """Most recent EMA value, or None when there is not enough data."""
    if not values:
        return None
    return compute_ema(values, period)[-1]
