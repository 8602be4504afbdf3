"""Shared data models for tradescope.

CRITICAL: All prices, volumes and scores use Decimal. Never use float.
"""

from dataclasses import dataclass
from decimal import ROUND_FLOOR, Decimal
from enum import Enum

#: Timeframes from lowest to highest. Index order defines "higher timeframe".
TIMEFRAME_HIERARCHY: tuple[str, ...] = ("1m", "3m", "5m", "15m", "1h", "4h", "1d")

#: Timeframes that carry support/resistance levels and confluence zones.
LEVEL_TIMEFRAMES: tuple[str, ...] = ("5m", "15m", "1h", "4h", "1d")


class Trend(str, Enum):
    """Short-term trend classification from the EMA-9/EMA-21 stack."""

    UP = "up"
    DOWN = "down"
    SIDEWAYS = "sideways"


class SetupType(str, Enum):
    """Direction of a trade setup."""

    LONG = "long"
    SHORT = "short"
    WAIT = "wait"


class Confidence(str, Enum):
    """Confidence bucket shared by setups and sentiment signals."""

    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"


class TradingStyle(str, Enum):
    """Holding style implied by a timeframe."""

    SCALPING = "scalping"
    INTRADAY = "intraday"
    SWING = "swing"
    POSITION = "position"


class Sentiment(str, Enum):
    """Market sentiment direction."""

    BULLISH = "bullish"
    BEARISH = "bearish"
    NEUTRAL = "neutral"


@dataclass(frozen=True)
class Candle:
    """A single OHLCV bar.

    Assumed well-formed (high >= max(open, close), low <= min(open, close),
    open_time strictly increasing within a series); not validated here.
    """

    open_time: int  # Unix milliseconds
    open: Decimal
    high: Decimal
    low: Decimal
    close: Decimal
    volume: Decimal


def round_half_up(value: Decimal) -> Decimal:
    """Round to an integer, halves toward +infinity (2.5 -> 3, -2.5 -> -2)."""
    return (value + Decimal("0.5")).to_integral_value(rounding=ROUND_FLOOR)
