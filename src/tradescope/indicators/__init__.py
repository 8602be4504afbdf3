"""Indicator state per timeframe: EMA stack trend, RSI momentum, volume."""

from tradescope.indicators.analysis import TimeframeState, analyze_timeframe
from tradescope.indicators.ema import compute_ema, latest_ema
from tradescope.indicators.trend import classify_trend, compute_momentum

__all__ = [
    "TimeframeState",
    "analyze_timeframe",
    "classify_trend",
    "compute_ema",
    "compute_momentum",
    "latest_ema",
]
