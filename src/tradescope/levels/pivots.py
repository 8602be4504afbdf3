"""Pivot-based support/resistance detection as pure functions.

A pivot high is a bar whose high is strictly above the high of every bar
within ``lookback`` bars on both sides; pivot lows mirror this on lows.
Pivot prices are folded into clusters by relative distance and the
clusters become levels on either side of the current price.
"""

from decimal import Decimal

from tradescope.levels.models import Level, LevelKind, LevelSource
from tradescope.models import Candle


def find_pivots(
    candles: list[Candle], lookback: int = 5
) -> tuple[list[Decimal], list[Decimal]]:
    """Scan for strict local extremes.

    Args:
        candles: Ordered candle window (oldest first).
        lookback: Bars required on each side of a pivot.

    Returns:
        (pivot_highs, pivot_lows) in scan order. Both empty when the window
        is shorter than ``2 * lookback + 1``.
    """
    highs: list[Decimal] = []
    lows: list[Decimal] = []

    for i in range(lookback, len(candles) - lookback):
        high = candles[i].high
        low = candles[i].low
        is_high = True
        is_low = True
        for j in range(1, lookback + 1):
            if candles[i - j].high >= high or candles[i + j].high >= high:
                is_high = False
            if candles[i - j].low <= low or candles[i + j].low <= low:
                is_low = False
            if not is_high and not is_low:
                break
        if is_high:
            highs.append(high)
        if is_low:
            lows.append(low)

    return highs, lows


def _within(price: Decimal, reference: Decimal, tolerance: Decimal) -> bool:
    """Relative distance check against a cluster's representative price."""
    if reference == 0:
        return price == reference
    return abs(price - reference) / reference <= tolerance


def cluster_prices(
    prices: list[Decimal], tolerance: Decimal
) -> list[tuple[Decimal, int]]:
    """Greedy single-pass clustering of pivot prices.

    Each price joins the first existing cluster whose representative (its
    first member) is within ``tolerance`` relative distance, otherwise it
    starts a new cluster. The result depends on input order.

    Returns:
        (representative_price, member_count) pairs in creation order.
    """
    clusters: list[list] = []
    for price in prices:
        for cluster in clusters:
            if _within(price, cluster[0], tolerance):
                cluster[1] += 1
                break
        else:
            clusters.append([price, 1])
    return [(rep, count) for rep, count in clusters]


def find_support_resistance(
    candles: list[Candle],
    current_price: Decimal,
    lookback: int = 5,
    tolerance: Decimal = Decimal("0.005"),
    max_levels: int = 5,
    max_strength: int = 5,
) -> tuple[list[Level], list[Level]]:
    """Detect support and resistance levels around ``current_price``.

    Resistances keep clusters strictly above price, nearest first;
    supports keep clusters strictly below price, nearest first. At most
    ``max_levels`` of each are returned.

    Returns:
        (supports, resistances). Both empty for windows shorter than
        ``2 * lookback + 1`` bars.
    """
    if len(candles) < lookback * 2 + 1:
        return [], []

    pivot_highs, pivot_lows = find_pivots(candles, lookback)

    resistances = [
        Level(
            price=price,
            kind=LevelKind.RESISTANCE,
            strength=min(count, max_strength),
            source=LevelSource.PIVOT,
        )
        for price, count in cluster_prices(pivot_highs, tolerance)
        if price > current_price
    ]
    supports = [
        Level(
            price=price,
            kind=LevelKind.SUPPORT,
            strength=min(count, max_strength),
            source=LevelSource.PIVOT,
        )
        for price, count in cluster_prices(pivot_lows, tolerance)
        if price < current_price
    ]

    resistances.sort(key=lambda lvl: lvl.price)
    supports.sort(key=lambda lvl: lvl.price, reverse=True)

    return supports[:max_levels], resistances[:max_levels]
