"""Trend and momentum classification from closing prices.

Trend compares the close against the EMA-9/EMA-21 stack; momentum is an
RSI reading rescaled from 0..100 to -100..100.

CRITICAL: All computations use Decimal. Never use float.
"""

from decimal import Decimal

from tradescope.indicators.ema import latest_ema
from tradescope.models import Candle, Trend, round_half_up

_FAST_PERIOD = 9
_SLOW_PERIOD = 21
_MIN_TREND_CANDLES = 20
_MOMENTUM_PERIOD = 14


def classify_trend(candles: list[Candle]) -> Trend:
    """Classify the trend from the EMA-9/EMA-21 stack.

    Returns SIDEWAYS with fewer than 20 candles, when either EMA is not
    yet defined, or when the close is not stacked with both EMAs.
    """
    if len(candles) < _MIN_TREND_CANDLES:
        return Trend.SIDEWAYS

    closes = [c.close for c in candles]
    fast = latest_ema(closes, _FAST_PERIOD)
    slow = latest_ema(closes, _SLOW_PERIOD)
    if fast is None or slow is None:
        return Trend.SIDEWAYS

    price = closes[-1]
    if price > fast > slow:
        return Trend.UP
    if price < fast < slow:
        return Trend.DOWN
    return Trend.SIDEWAYS


def compute_momentum(candles: list[Candle]) -> Decimal:
    """RSI-based momentum in [-100, 100].

    Averages gains and losses of the last 14 close-to-close changes.
    Fewer than 14 candles gives 0; no losses gives 100.
    """
    if len(candles) < _MOMENTUM_PERIOD:
        return Decimal("0")

    closes = [c.close for c in candles]
    changes = [closes[i] - closes[i - 1] for i in range(1, len(closes))]
    recent = changes[-_MOMENTUM_PERIOD:]

    period = Decimal(_MOMENTUM_PERIOD)
    avg_gain = sum((c for c in recent if c > 0), Decimal("0")) / period
    avg_loss = sum((-c for c in recent if c < 0), Decimal("0")) / period

    if avg_loss == 0:
        return Decimal("100")

    rs = avg_gain / avg_loss
    rsi = Decimal("100") - Decimal("100") / (1 + rs)
    return round_half_up((rsi - 50) * 2)
