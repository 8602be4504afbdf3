"""Per-timeframe indicator state consumed by setup generation and scoring."""

from dataclasses import dataclass
from decimal import Decimal

from tradescope.indicators.ema import latest_ema
from tradescope.indicators.trend import classify_trend, compute_momentum
from tradescope.models import Candle, Trend

_QUANTIZE_2DP = Decimal("0.01")


@dataclass(frozen=True)
class TimeframeState:
    """Trend, momentum, volume and EMA readings for one timeframe.

    Produced by ``analyze_timeframe`` or supplied directly by a caller that
    has its own indicator source.
    """

    timeframe: str
    trend: Trend = Trend.SIDEWAYS
    momentum: Decimal = Decimal("0")  # -100..100
    avg_volume: Decimal = Decimal("0")
    candle_count: int = 0
    change_pct: Decimal = Decimal("0")
    high: Decimal = Decimal("0")
    low: Decimal = Decimal("0")
    ema50: Decimal | None = None
    ema200: Decimal | None = None

    def to_dict(self) -> dict:
        """Serialize to JSON-safe dict with Decimal values as strings."""
        return {
            "timeframe": self.timeframe,
            "trend": self.trend.value,
            "momentum": str(self.momentum),
            "avg_volume": str(self.avg_volume),
            "candle_count": self.candle_count,
            "change_pct": str(self.change_pct),
            "high": str(self.high),
            "low": str(self.low),
            "ema50": None if self.ema50 is None else str(self.ema50),
            "ema200": None if self.ema200 is None else str(self.ema200),
        }


def analyze_timeframe(candles: list[Candle], timeframe: str) -> TimeframeState:
    """Derive the indicator state for one candle window.

    An empty window gives a sideways state with zero momentum and volume.
    """
    if not candles:
        return TimeframeState(timeframe=timeframe)

    closes = [c.close for c in candles]
    first_close = closes[0]
    change_pct = Decimal("0")
    if first_close != 0:
        change_pct = ((closes[-1] - first_close) / first_close * 100).quantize(_QUANTIZE_2DP)

    return TimeframeState(
        timeframe=timeframe,
        trend=classify_trend(candles),
        momentum=compute_momentum(candles),
        avg_volume=sum((c.volume for c in candles), Decimal("0")) / Decimal(len(candles)),
        candle_count=len(candles),
        change_pct=change_pct,
        high=max(c.high for c in candles),
        low=min(c.low for c in candles),
        ema50=latest_ema(closes, 50),
        ema200=latest_ema(closes, 200),
    )
