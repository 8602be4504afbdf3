"""Tests for per-timeframe level detection entry points."""

from decimal import Decimal

from tradescope.config import LevelSettings
from tradescope.levels.detector import (
    analyze_all_timeframe_levels,
    analyze_timeframe_levels,
    detect_levels,
    distance_to_level,
)
from tradescope.models import Candle


def _make_candle(index: int, high: int, low: int) -> Candle:
    mid = (Decimal(high) + Decimal(low)) / 2
    return Candle(
        open_time=index,
        open=mid,
        high=Decimal(high),
        low=Decimal(low),
        close=mid,
        volume=Decimal("10"),
    )


class TestDetectLevels:
    """Tests for the combined level detection."""

    def test_empty_window(self) -> None:
        """No candles: empty collections, null key levels, zero swings."""
        levels = detect_levels([], Decimal("50000"), timeframe="4h")
        assert levels.timeframe == "4h"
        assert levels.supports == ()
        assert levels.resistances == ()
        assert levels.fibonacci == ()
        assert levels.psychological == ()
        assert levels.key_support is None
        assert levels.key_resistance is None
        assert levels.swing_high == Decimal("0")
        assert levels.swing_low == Decimal("0")

    def test_short_window_keeps_fibonacci(self) -> None:
        """Below 2 * lookback + 1 bars only pivot levels are missing."""
        candles = [_make_candle(i, 100 + i, 90 + i) for i in range(10)]
        levels = detect_levels(candles, Decimal("100"), pivot_lookback=5)
        assert levels.supports == ()
        assert levels.resistances == ()
        assert levels.key_support is None
        assert levels.key_resistance is None
        assert len(levels.fibonacci) == 7
        assert levels.swing_high == Decimal("109")
        assert levels.swing_low == Decimal("90")
        assert levels.psychological

    def test_key_levels_are_nearest(self, zigzag_candles) -> None:
        levels = detect_levels(zigzag_candles, Decimal("100"), pivot_lookback=1)
        assert levels.key_support == Decimal("90")
        assert levels.key_resistance == Decimal("110")
        assert levels.fibonacci[0].price == Decimal("80")
        assert levels.fibonacci[-1].price == Decimal("120")

    def test_to_dict_renders_strings(self, zigzag_candles) -> None:
        data = detect_levels(zigzag_candles, Decimal("100"), pivot_lookback=1).to_dict()
        assert data["key_support"] == "90"
        assert data["resistances"][0] == {
            "price": "110",
            "kind": "resistance",
            "strength": 1,
            "source": "pivot",
        }


class TestAnalyzeTimeframeLevels:
    def test_uses_last_close(self, v_bottom_candles) -> None:
        levels = analyze_timeframe_levels(v_bottom_candles, "1h")
        assert levels.current_price == Decimal("49200")
        assert levels.key_support == Decimal("48000")
        assert levels.key_resistance is None

    def test_explicit_price(self, v_bottom_candles) -> None:
        levels = analyze_timeframe_levels(v_bottom_candles, "1h", current_price=Decimal("47000"))
        assert levels.current_price == Decimal("47000")
        assert levels.key_support is None

    def test_timeframe_lookback_applies(self, v_bottom_candles) -> None:
        """1d uses lookback 3, which finds nothing extra in a V shape."""
        levels = analyze_timeframe_levels(v_bottom_candles, "1d")
        assert [lvl.price for lvl in levels.supports] == [Decimal("48000")]

    def test_empty_candles(self) -> None:
        levels = analyze_timeframe_levels([], "5m")
        assert levels.current_price == Decimal("0")
        assert levels.key_support is None

    def test_all_timeframes(self, v_bottom_candles, zigzag_candles) -> None:
        result = analyze_all_timeframe_levels({"1h": v_bottom_candles, "5m": zigzag_candles})
        assert list(result) == ["1h", "5m"]
        assert result["1h"].key_support == Decimal("48000")
        # 5m lookback is 12: seven candles are too few for pivots
        assert result["5m"].supports == ()


class TestLevelSettingsLookup:
    def test_known_timeframes(self) -> None:
        settings = LevelSettings()
        assert settings.lookback_for("5m") == 12
        assert settings.lookback_for("1d") == 3
        assert settings.tolerance_for("15m") == Decimal("0.003")

    def test_minute_timeframes_fall_back_to_1h(self) -> None:
        settings = LevelSettings()
        assert settings.lookback_for("1m") == 5
        assert settings.tolerance_for("3m") == Decimal("0.005")


class TestDistanceToLevel:
    def test_above(self) -> None:
        assert distance_to_level(Decimal("100"), Decimal("105")) == Decimal("5.00")

    def test_below(self) -> None:
        assert distance_to_level(Decimal("200"), Decimal("150")) == Decimal("-25.00")

    def test_rounds_to_two_places(self) -> None:
        assert distance_to_level(Decimal("3"), Decimal("4")) == Decimal("33.33")

    def test_zero_price(self) -> None:
        assert distance_to_level(Decimal("0"), Decimal("10")) == Decimal("0.00")
