"""Swing range, Fibonacci retracement and psychological round-number levels.

CRITICAL: All computations use Decimal. Never use float.
"""

from decimal import ROUND_CEILING, Decimal

from tradescope.levels.models import FibLevel
from tradescope.models import Candle

#: Retracement ratios with their display labels, ascending.
FIB_RATIOS: tuple[tuple[Decimal, str], ...] = (
    (Decimal("0"), "0% (Swing Low)"),
    (Decimal("0.236"), "23.6%"),
    (Decimal("0.382"), "38.2%"),
    (Decimal("0.5"), "50%"),
    (Decimal("0.618"), "61.8% (Golden)"),
    (Decimal("0.786"), "78.6%"),
    (Decimal("1"), "100% (Swing High)"),
)

#: (minimum price, rounding step) checked top-down; first match wins.
_PSYCHOLOGICAL_STEPS: tuple[tuple[Decimal, Decimal], ...] = (
    (Decimal("10000"), Decimal("5000")),
    (Decimal("1000"), Decimal("500")),
    (Decimal("100"), Decimal("50")),
    (Decimal("10"), Decimal("5")),
)
_SMALLEST_STEP = Decimal("0.5")


def find_swings(candles: list[Candle]) -> tuple[Decimal, Decimal]:
    """Return (swing_high, swing_low) over the whole window, or zeros if empty."""
    if not candles:
        return Decimal("0"), Decimal("0")
    return max(c.high for c in candles), min(c.low for c in candles)


def calculate_fibonacci(swing_high: Decimal, swing_low: Decimal) -> list[FibLevel]:
    """Retracement prices ``swing_low + (swing_high - swing_low) * ratio``.

    Prices increase with the ratio whenever swing_high > swing_low.
    """
    price_range = swing_high - swing_low
    return [
        FibLevel(ratio=ratio, price=swing_low + price_range * ratio, label=label)
        for ratio, label in FIB_RATIOS
    ]


def psychological_step(price: Decimal) -> Decimal:
    """Rounding step for round-number levels, chosen by price magnitude."""
    for floor_price, step in _PSYCHOLOGICAL_STEPS:
        if price >= floor_price:
            return step
    return _SMALLEST_STEP


def find_psychological_levels(
    current_price: Decimal, price_range: Decimal = Decimal("0.2")
) -> list[Decimal]:
    """All positive multiples of the step within +-``price_range`` of price.

    Example: 87000 with the default 20% range gives steps of 5000 from
    70000 through 100000.
    """
    step = psychological_step(current_price)
    lower = current_price * (1 - price_range)
    upper = current_price * (1 + price_range)

    levels: list[Decimal] = []
    level = (lower / step).to_integral_value(rounding=ROUND_CEILING) * step
    while level <= upper:
        if level > 0:
            levels.append(level)
        level += step
    return levels
