"""Per-timeframe level detection entry points.

Combines pivot support/resistance, Fibonacci retracements and
psychological levels into one TechnicalLevels value. Never raises on
empty or short candle windows.
"""

from collections.abc import Mapping
from decimal import Decimal

from tradescope.config import LevelSettings
from tradescope.levels.fibonacci import (
    calculate_fibonacci,
    find_psychological_levels,
    find_swings,
)
from tradescope.levels.models import TechnicalLevels
from tradescope.levels.pivots import find_support_resistance
from tradescope.models import Candle

_QUANTIZE_2DP = Decimal("0.01")


def detect_levels(
    candles: list[Candle],
    current_price: Decimal,
    timeframe: str = "1h",
    pivot_lookback: int = 5,
    cluster_tolerance: Decimal = Decimal("0.005"),
    max_levels: int = 5,
    max_strength: int = 5,
    psychological_range: Decimal = Decimal("0.2"),
) -> TechnicalLevels:
    """Detect every level kind for one candle window.

    Windows shorter than ``2 * pivot_lookback + 1`` still get Fibonacci
    and psychological levels but no supports/resistances. An empty window
    yields an all-empty result with zero swings.
    """
    if not candles:
        return TechnicalLevels(timeframe=timeframe, current_price=current_price)

    swing_high, swing_low = find_swings(candles)
    supports, resistances = find_support_resistance(
        candles,
        current_price,
        lookback=pivot_lookback,
        tolerance=cluster_tolerance,
        max_levels=max_levels,
        max_strength=max_strength,
    )

    return TechnicalLevels(
        timeframe=timeframe,
        current_price=current_price,
        supports=tuple(supports),
        resistances=tuple(resistances),
        fibonacci=tuple(calculate_fibonacci(swing_high, swing_low)),
        psychological=tuple(find_psychological_levels(current_price, psychological_range)),
        key_support=supports[0].price if supports else None,
        key_resistance=resistances[0].price if resistances else None,
        swing_high=swing_high,
        swing_low=swing_low,
    )


def analyze_timeframe_levels(
    candles: list[Candle],
    timeframe: str,
    settings: LevelSettings | None = None,
    current_price: Decimal | None = None,
) -> TechnicalLevels:
    """Detect levels using the timeframe's configured lookback and tolerance.

    Without an explicit current_price the last close is used.
    """
    settings = settings or LevelSettings()
    if current_price is None:
        current_price = candles[-1].close if candles else Decimal("0")
    return detect_levels(
        candles,
        current_price,
        timeframe=timeframe,
        pivot_lookback=settings.lookback_for(timeframe),
        cluster_tolerance=settings.tolerance_for(timeframe),
        max_levels=settings.max_levels,
        max_strength=settings.max_strength,
        psychological_range=settings.psychological_range,
    )


def analyze_all_timeframe_levels(
    candles_by_timeframe: Mapping[str, list[Candle]],
    settings: LevelSettings | None = None,
) -> dict[str, TechnicalLevels]:
    """Run ``analyze_timeframe_levels`` for every supplied timeframe."""
    settings = settings or LevelSettings()
    return {
        timeframe: analyze_timeframe_levels(candles, timeframe, settings)
        for timeframe, candles in candles_by_timeframe.items()
    }


def distance_to_level(current_price: Decimal, level_price: Decimal) -> Decimal:
    """Signed percent distance from price to a level, 2 decimal places.

    Positive means the level is above price. Zero price gives zero.
    """
    if current_price == 0:
        return Decimal("0.00")
    distance = (level_price - current_price) / current_price * 100
    return distance.quantize(_QUANTIZE_2DP)
