"""Shared test fixtures for tradescope."""

from decimal import Decimal

import pytest

from tradescope.config import AppSettings
from tradescope.models import Candle


def _candle(index: int, high: int, low: int, close: int | None = None) -> Candle:
    high_d, low_d = Decimal(high), Decimal(low)
    close_d = (high_d + low_d) / 2 if close is None else Decimal(close)
    return Candle(
        open_time=1_700_000_000_000 + index * 3_600_000,
        open=close_d,
        high=high_d,
        low=low_d,
        close=close_d,
        volume=Decimal("100"),
    )


@pytest.fixture
def app_settings() -> AppSettings:
    """Return AppSettings with defaults and DEBUG logging."""
    return AppSettings(log_level="DEBUG")


@pytest.fixture
def zigzag_candles() -> list[Candle]:
    """Seven candles with pivot highs 110/120 and pivot lows 90/80 at lookback 1."""
    rows = [(101, 99), (110, 100), (103, 90), (105, 95), (120, 97), (104, 80), (106, 85)]
    return [_candle(i, high, low) for i, (high, low) in enumerate(rows)]


@pytest.fixture
def v_bottom_candles() -> list[Candle]:
    """Twelve candles with a single pivot low at 48000 at lookback 5."""
    lows = [49000, 48900, 48800, 48700, 48600, 48000, 48600, 48700, 48800, 48900, 49000, 49100]
    return [_candle(i, low + 300, low, close=low + 100) for i, low in enumerate(lows)]
