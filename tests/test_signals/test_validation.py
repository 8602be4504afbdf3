"""Tests for indicator-based setup validation.

Tests verify:
- RSI/StochRSI vetoes and confidence downgrades
- Higher-timeframe confluence bias and its veto
- Funding, MACD, EMA, volume and stop-loss rules
- Adjusted score clamping and confidence stepping
"""

from decimal import Decimal

import pytest

from tradescope.models import Confidence, Sentiment, SetupType, TradingStyle
from tradescope.signals.models import TradeSetup
from tradescope.signals.validation import (
    ConfluenceBias,
    EmaReading,
    IndicatorValues,
    MacdReading,
    adjust_confidence,
    check_confluence,
    confluence_malus,
    funding_rate_malus,
    rsi_malus,
    validate_ema,
    validate_macd,
    validate_rsi,
    validate_signal,
    validate_stop_loss,
    validate_volume,
)

LONG, SHORT, WAIT = SetupType.LONG, SetupType.SHORT, SetupType.WAIT


def _make_setup(kind: SetupType = LONG, timeframe: str = "1h") -> TradeSetup:
    """Create a test setup at 50000 with a 2000 stop distance."""
    stop = Decimal("48000") if kind == LONG else Decimal("52000")
    return TradeSetup(
        kind=kind,
        entry=Decimal("50000"),
        stop_loss=stop,
        take_profit=(Decimal("52000"),),
        risk_reward=Decimal("1"),
        confidence=Confidence.HIGH,
        reasoning="test",
        timeframe=timeframe,
        trading_style=TradingStyle.SWING,
    )


def _rsi(value: str, **kwargs) -> IndicatorValues:
    return IndicatorValues(rsi=Decimal(value), **kwargs)


class TestValidateRsi:
    """Tests for RSI and StochRSI rules."""

    def test_long_vetoed_at_extreme_overbought(self) -> None:
        result = validate_rsi(LONG, _rsi("80"))
        assert result.validated_kind == WAIT
        assert not result.is_valid
        assert result.reasons[0].startswith("VETO")

    def test_long_warned_when_overbought(self) -> None:
        result = validate_rsi(LONG, _rsi("72"))
        assert result.validated_kind == LONG
        assert result.confidence_adjustment == -1

    def test_short_vetoed_at_extreme_oversold(self) -> None:
        assert validate_rsi(SHORT, _rsi("20")).validated_kind == WAIT

    def test_short_warned_when_oversold(self) -> None:
        assert validate_rsi(SHORT, _rsi("28")).confidence_adjustment == -1

    def test_stoch_extreme_downgrades_twice(self) -> None:
        result = validate_rsi(LONG, _rsi("50", stoch_rsi_k=Decimal("90"), stoch_rsi_d=Decimal("88")))
        assert result.validated_kind == LONG
        assert result.confidence_adjustment == -2

    def test_neutral_rsi_passes(self) -> None:
        result = validate_rsi(LONG, _rsi("55"))
        assert result.is_valid
        assert result.reasons == []
        assert result.malus.rsi_extreme == 0

    @pytest.mark.parametrize(
        ("kind", "rsi", "malus"),
        [
            (LONG, "86", -30),
            (LONG, "80", -20),
            (LONG, "76", -15),
            (LONG, "70", -10),
            (LONG, "69", 0),
            (SHORT, "14", -30),
            (SHORT, "20", -20),
            (SHORT, "24", -15),
            (SHORT, "30", -10),
            (SHORT, "31", 0),
        ],
    )
    def test_rsi_malus_bands(self, kind: SetupType, rsi: str, malus: int) -> None:
        assert rsi_malus(kind, _rsi(rsi)) == malus

    def test_stoch_adds_to_malus(self) -> None:
        assert rsi_malus(LONG, _rsi("72", stoch_rsi_k=Decimal("95"))) == -20


class TestConfluence:
    """Tests for the 1h/4h/1d bias."""

    def test_two_of_three_long(self) -> None:
        setups = {"1h": _make_setup(LONG, "1h"), "4h": _make_setup(LONG, "4h"), "1d": _make_setup(SHORT, "1d")}
        bias = check_confluence(setups)
        assert bias.bias == Sentiment.BULLISH
        assert bias.strength == 2
        assert bias.aligned_timeframes == ("1h", "4h")
        assert bias.conflicting_timeframes == ("1d",)

    def test_lower_timeframes_ignored(self) -> None:
        setups = {"5m": _make_setup(SHORT, "5m"), "15m": _make_setup(SHORT, "15m"), "1h": _make_setup(SHORT, "1h")}
        assert check_confluence(setups).bias == Sentiment.NEUTRAL

    def test_mixed_is_neutral(self) -> None:
        setups = {"1h": _make_setup(LONG, "1h"), "4h": _make_setup(SHORT, "4h"), "1d": None}
        bias = check_confluence(setups)
        assert bias.bias == Sentiment.NEUTRAL
        assert bias.strength == 0

    @pytest.mark.parametrize(("strength", "malus"), [(3, 0), (2, -5), (1, -15), (0, -20)])
    def test_malus(self, strength: int, malus: int) -> None:
        assert confluence_malus(ConfluenceBias(Sentiment.BULLISH, strength)) == malus


class TestIndividualRules:
    """Tests for funding, MACD, EMA, volume and stop-loss rules."""

    @pytest.mark.parametrize(
        ("kind", "rate", "malus"),
        [
            (LONG, "0.0006", -15),
            (LONG, "0.0004", -10),
            (LONG, "0.0002", -5),
            (LONG, "0.0001", 0),
            (LONG, "-0.001", 0),
            (SHORT, "-0.0006", -15),
            (SHORT, "-0.0004", -10),
            (SHORT, "-0.0002", -5),
            (SHORT, "0.001", 0),
            (WAIT, "0.01", 0),
        ],
    )
    def test_funding(self, kind: SetupType, rate: str, malus: int) -> None:
        assert funding_rate_malus(kind, Decimal(rate)) == malus

    def test_macd_bearish_trend_vetoes_long(self) -> None:
        macd = MacdReading(histogram=Decimal("-5"), trend=Sentiment.BEARISH)
        is_valid, malus, reason = validate_macd(LONG, macd)
        assert not is_valid
        assert malus == -20
        assert reason.startswith("VETO")

    def test_macd_opposing_crossover_warns(self) -> None:
        macd = MacdReading(histogram=Decimal("-1"), crossover=Sentiment.BULLISH)
        assert validate_macd(SHORT, macd)[:2] == (True, -15)

    def test_macd_confirming_crossover_bonus(self) -> None:
        macd = MacdReading(histogram=Decimal("3"), crossover=Sentiment.BULLISH, trend=Sentiment.BULLISH)
        assert validate_macd(LONG, macd) == (True, 5, None)

    def test_macd_missing(self) -> None:
        assert validate_macd(LONG, None) == (True, 0, None)

    @pytest.mark.parametrize(
        ("kind", "above", "golden", "malus"),
        [
            (LONG, True, True, 10),
            (LONG, False, True, -10),
            (LONG, True, False, -15),
            (SHORT, False, False, 10),
            (SHORT, True, False, -10),
            (SHORT, False, True, -15),
        ],
    )
    def test_ema(self, kind: SetupType, above: bool, golden: bool, malus: int) -> None:
        assert validate_ema(kind, EmaReading(price_above_ema50=above, golden_cross=golden))[0] == malus

    @pytest.mark.parametrize(
        ("ratio", "malus"), [("2", 10), ("1.5", 10), ("1", 0), ("0.8", 0), ("0.6", -10), ("0.3", -20)]
    )
    def test_volume(self, ratio: str, malus: int) -> None:
        assert validate_volume(LONG, Decimal(ratio))[0] == malus

    def test_volume_ignored_for_wait(self) -> None:
        assert validate_volume(WAIT, Decimal("0.1")) == (0, None)

    @pytest.mark.parametrize(
        ("atr", "malus"),
        [("5000", -20), ("2500", -10), ("1600", 0), ("1000", 5), ("400", -5)],
    )
    def test_stop_loss_atr_multiple(self, atr: str, malus: int) -> None:
        """Stop distance is 2000; the ATR sets the multiple."""
        result = validate_stop_loss(LONG, Decimal("50000"), Decimal("48000"), Decimal(atr))
        assert result[0] == malus

    def test_stop_loss_without_atr(self) -> None:
        assert validate_stop_loss(LONG, Decimal("50000"), Decimal("48000"), None) == (0, None)


class TestValidateSignal:
    """Tests for the full rule pipeline."""

    def test_clean_long_with_bonuses(self) -> None:
        """Volume 2x (+10) and a 2x ATR stop (+5) lift 48 to 63."""
        indicators = _rsi("50", volume_ratio=Decimal("2"), atr=Decimal("1000"))
        result = validate_signal(_make_setup(), indicators, score=Decimal("48"))
        assert result.is_valid
        assert result.malus.total == 15
        assert result.adjusted_score == Decimal("63")

    def test_adjusted_score_clamped_high(self) -> None:
        indicators = _rsi("50", volume_ratio=Decimal("2"), atr=Decimal("1000"))
        result = validate_signal(_make_setup(), indicators, score=Decimal("95"))
        assert result.adjusted_score == Decimal("100")

    def test_adjusted_score_clamped_low(self) -> None:
        indicators = _rsi("72", volume_ratio=Decimal("0.3"))
        result = validate_signal(_make_setup(), indicators, score=Decimal("10"))
        assert result.validated_kind == LONG
        assert result.malus.total == -30
        assert result.adjusted_score == Decimal("0")

    def test_no_score_no_adjusted_score(self) -> None:
        assert validate_signal(_make_setup(), _rsi("50")).adjusted_score is None

    def test_against_higher_timeframe_bias_vetoed(self) -> None:
        setup = _make_setup(LONG, "15m")
        all_setups = {
            "15m": setup,
            "1h": _make_setup(LONG, "1h"),
            "4h": _make_setup(SHORT, "4h"),
            "1d": _make_setup(SHORT, "1d"),
        }
        result = validate_signal(setup, _rsi("50"), all_setups=all_setups)
        assert result.validated_kind == WAIT
        assert result.confluence.bias == Sentiment.BEARISH
        assert result.malus.confluence_lack == -5
        assert any("confluence" in reason for reason in result.reasons)

    def test_veto_skips_later_rules(self) -> None:
        indicators = _rsi("85", volume_ratio=Decimal("0.3"), atr=Decimal("5000"))
        result = validate_signal(_make_setup(), indicators)
        assert result.validated_kind == WAIT
        assert result.malus.volume_confirm == 0
        assert result.malus.sl_quality == 0
        assert result.malus.rsi_extreme == -30

    def test_macd_veto(self) -> None:
        macd = MacdReading(histogram=Decimal("-2"), trend=Sentiment.BEARISH)
        result = validate_signal(_make_setup(), _rsi("50", macd=macd))
        assert result.validated_kind == WAIT
        assert result.malus.macd_conflict == -20

    def test_funding_warning(self) -> None:
        result = validate_signal(_make_setup(), _rsi("50"), funding_rate=Decimal("0.0006"))
        assert result.malus.funding_rate_bias == -15
        assert any("funding" in reason for reason in result.reasons)

    def test_to_dict(self) -> None:
        data = validate_signal(_make_setup(), _rsi("80"), score=Decimal("50")).to_dict()
        assert data["is_valid"] is False
        assert data["validated_kind"] == "wait"
        assert data["malus"]["total"] == -20
        assert data["adjusted_score"] == "30"


class TestAdjustConfidence:
    @pytest.mark.parametrize(
        ("confidence", "adjustment", "expected"),
        [
            (Confidence.HIGH, 0, Confidence.HIGH),
            (Confidence.HIGH, -1, Confidence.MEDIUM),
            (Confidence.HIGH, -2, Confidence.LOW),
            (Confidence.MEDIUM, -2, Confidence.LOW),
            (Confidence.LOW, -1, Confidence.LOW),
        ],
    )
    def test_steps_down(self, confidence: Confidence, adjustment: int, expected: Confidence) -> None:
        assert adjust_confidence(confidence, adjustment) == expected
