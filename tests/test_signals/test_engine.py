"""Tests for the AnalysisEngine cycle.

Tests verify:
- Flat data gives WAIT, a zero score and the sentinel rank
- The EMA-confirmed long scenario end to end, with the stop on a detected support
- Sentiment fusion, weight resolution and the runtime overlay
- Cross-timeframe hedge advice and optional validation
- Missing data degrades to None setups instead of raising
"""

import json
from decimal import Decimal

from tradescope.config import RuntimeConfig
from tradescope.indicators.analysis import TimeframeState
from tradescope.models import SetupType, Trend
from tradescope.signals.engine import AnalysisEngine, AnalysisSnapshot
from tradescope.signals.models import (
    UNRANKED,
    AnalysisWeights,
    HedgeType,
    SentimentInput,
    Verdict,
)
from tradescope.signals.validation import IndicatorValues


def _make_state(
    timeframe: str,
    trend: Trend,
    momentum: str,
    candle_count: int = 100,
) -> TimeframeState:
    return TimeframeState(
        timeframe=timeframe,
        trend=trend,
        momentum=Decimal(momentum),
        avg_volume=Decimal("100"),
        candle_count=candle_count,
    )


def _long_snapshot(v_bottom_candles, **kwargs) -> AnalysisSnapshot:
    """1h uptrend at 50000 with support 48000 and EMA50 49000 > EMA200 47000."""
    return AnalysisSnapshot(
        symbol="BTCUSDT",
        current_price=Decimal("50000"),
        candles={"1h": v_bottom_candles},
        states={"1h": _make_state("1h", Trend.UP, "40")},
        emas={"1h": (Decimal("49000"), Decimal("47000"))},
        **kwargs,
    )


class TestScenarios:
    """End-to-end cycles over small snapshots."""

    def test_flat_timeframe(self, app_settings) -> None:
        snapshot = AnalysisSnapshot(
            symbol="BTCUSDT",
            current_price=Decimal("50000"),
            states={"1h": _make_state("1h", Trend.SIDEWAYS, "5", candle_count=50)},
        )
        result = AnalysisEngine(app_settings).run(snapshot)

        assert result.setups["1h"].kind == SetupType.WAIT
        score = result.scores["1h"]
        assert score.total == Decimal("0")
        assert score.verdict == Verdict.LEAVE_IT
        assert score.rank == UNRANKED
        assert result.best_timeframe is None
        assert result.hedge.kind == HedgeType.NO_HEDGE
        assert result.hedge.net_exposure == 0
        assert result.conflict.has_conflict is False

    def test_ema_confirmed_long(self, app_settings, v_bottom_candles) -> None:
        result = AnalysisEngine(app_settings).run(_long_snapshot(v_bottom_candles))

        assert result.levels["1h"].key_support == Decimal("48000")
        setup = result.setups["1h"]
        assert setup.kind == SetupType.LONG
        assert setup.confidence.value == "high"
        assert setup.stop_loss == Decimal("48000")
        assert setup.take_profit == (Decimal("52000"), Decimal("53236"), Decimal("55236"))
        assert setup.risk_reward == Decimal("1")

        score = result.scores["1h"]
        assert score.technical_raw == Decimal("48")
        assert score.total == Decimal("48")
        assert score.rank == 1
        assert result.best_timeframe == "1h"
        assert result.hedge.kind == HedgeType.NO_HEDGE
        assert result.hedge.net_exposure == 100

    def test_extreme_fear_sentiment(self, app_settings) -> None:
        snapshot = AnalysisSnapshot(
            symbol="BTCUSDT",
            sentiment=SentimentInput(fear_greed_value=Decimal("15")),
        )
        result = AnalysisEngine(app_settings).run(snapshot)
        assert result.sentiment.fear_greed.score == Decimal("30")
        assert result.sentiment.score == Decimal("12")
        assert result.sentiment.direction.value == "neutral"
        assert result.scores == {}

    def test_higher_timeframe_conflict_hedged(self, app_settings) -> None:
        """15m long scores 56, 4h short scores 51: gap 5 gives a 60/40 split."""
        snapshot = AnalysisSnapshot(
            symbol="BTCUSDT",
            current_price=Decimal("50000"),
            states={
                "4h": _make_state("4h", Trend.DOWN, "-60"),
                "15m": _make_state("15m", Trend.UP, "100"),
            },
            emas={
                "15m": (Decimal("49000"), Decimal("47000")),
                "4h": (Decimal("51000"), Decimal("52000")),
            },
        )
        result = AnalysisEngine(app_settings).run(snapshot)

        assert result.scores["15m"].total == Decimal("56")
        assert result.scores["4h"].total == Decimal("51")
        hedge = result.hedge
        assert hedge.kind == HedgeType.PARTIAL_HEDGE
        assert hedge.main_position.timeframe == "15m"
        assert hedge.main_position.allocation == 60
        assert hedge.hedge_position.timeframe == "4h"
        assert hedge.hedge_position.allocation == 40
        assert hedge.hedge_position.trigger_price == Decimal("50000")
        assert hedge.net_exposure == 20


class TestWeights:
    """Tests for weight resolution order."""

    def test_runtime_overlay_wins(self, app_settings, v_bottom_candles) -> None:
        snapshot = _long_snapshot(
            v_bottom_candles, sentiment=SentimentInput(fear_greed_value=Decimal("15"))
        )
        default = AnalysisEngine(app_settings).run(snapshot)
        technical_only = AnalysisEngine(
            app_settings, RuntimeConfig(technical_weight=100, sentiment_weight=0)
        ).run(snapshot)

        assert default.scores["1h"].total == Decimal("51")
        assert technical_only.scores["1h"].total == Decimal("48")
        assert technical_only.weights == AnalysisWeights(technical=100, sentiment=0)

    def test_snapshot_weights_over_settings(self, app_settings) -> None:
        engine = AnalysisEngine(app_settings)
        assert engine.resolve_weights() == AnalysisWeights(70, 30)
        assert engine.resolve_weights(AnalysisWeights(50, 50)) == AnalysisWeights(50, 50)

    def test_partial_overlay(self, app_settings) -> None:
        engine = AnalysisEngine(app_settings, RuntimeConfig(technical_weight=60))
        assert engine.resolve_weights() == AnalysisWeights(60, 30)


class TestDegradation:
    def test_no_price_no_setup(self, app_settings) -> None:
        snapshot = AnalysisSnapshot(
            symbol="ETHUSDT", states={"4h": _make_state("4h", Trend.UP, "60")}
        )
        result = AnalysisEngine(app_settings).run(snapshot)
        assert result.setups["4h"] is None
        assert result.scores["4h"].rank == UNRANKED

    def test_timeframes_in_hierarchy_order(self, app_settings, v_bottom_candles) -> None:
        snapshot = AnalysisSnapshot(
            symbol="BTCUSDT", candles={"1d": v_bottom_candles, "5m": v_bottom_candles}
        )
        result = AnalysisEngine(app_settings).run(snapshot)
        assert list(result.setups) == ["5m", "1d"]

    def test_candles_only(self, app_settings, v_bottom_candles) -> None:
        """Too few candles for a trend: every timeframe waits."""
        snapshot = AnalysisSnapshot(symbol="BTCUSDT", candles={"1h": v_bottom_candles})
        result = AnalysisEngine(app_settings).run(snapshot)
        assert result.states["1h"].candle_count == 12
        assert result.setups["1h"].kind == SetupType.WAIT


class TestValidation:
    def test_overbought_long_vetoed(self, app_settings, v_bottom_candles) -> None:
        """RSI 85 (-30) plus no 1h/4h/1d agreement (-20) takes 48 below zero."""
        snapshot = _long_snapshot(
            v_bottom_candles, indicators={"1h": IndicatorValues(rsi=Decimal("85"))}
        )
        result = AnalysisEngine(app_settings).run(snapshot)
        validation = result.validations["1h"]
        assert validation.validated_kind == SetupType.WAIT
        assert validation.malus.rsi_extreme == -30
        assert validation.malus.confluence_lack == -20
        assert validation.adjusted_score == Decimal("0")

    def test_full_higher_timeframe_agreement_has_no_confluence_malus(
        self, app_settings, v_bottom_candles
    ) -> None:
        snapshot = _long_snapshot(
            v_bottom_candles, indicators={"1h": IndicatorValues(rsi=Decimal("85"))}
        )
        snapshot.states["4h"] = _make_state("4h", Trend.UP, "40")
        snapshot.states["1d"] = _make_state("1d", Trend.UP, "40")
        result = AnalysisEngine(app_settings).run(snapshot)

        validation = result.validations["1h"]
        assert validation.confluence.strength == 3
        assert validation.malus.confluence_lack == 0
        assert validation.adjusted_score == result.scores["1h"].total - 30

    def test_wait_setups_not_validated(self, app_settings) -> None:
        snapshot = AnalysisSnapshot(
            symbol="BTCUSDT",
            current_price=Decimal("100"),
            states={"1h": _make_state("1h", Trend.SIDEWAYS, "0")},
            indicators={"1h": IndicatorValues(rsi=Decimal("50"))},
        )
        assert AnalysisEngine(app_settings).run(snapshot).validations == {}


class TestResultSerialization:
    def test_to_dict_is_json_safe(self, app_settings, v_bottom_candles) -> None:
        snapshot = _long_snapshot(
            v_bottom_candles,
            sentiment=SentimentInput(fear_greed_value=Decimal("15")),
            indicators={"1h": IndicatorValues(rsi=Decimal("55"))},
        )
        data = AnalysisEngine(app_settings).run(snapshot).to_dict()
        encoded = json.loads(json.dumps(data))

        assert encoded["symbol"] == "BTCUSDT"
        assert encoded["best_timeframe"] == "1h"
        assert encoded["timeframes"]["1h"]["setup"]["kind"] == "long"
        assert encoded["timeframes"]["1h"]["score"]["rank"] == 1
        assert encoded["timeframes"]["1h"]["validation"]["is_valid"] is True
        assert encoded["hedge"]["kind"] == "no_hedge"

    def test_cycles_are_independent(self, app_settings, v_bottom_candles) -> None:
        engine = AnalysisEngine(app_settings)
        first = engine.run(_long_snapshot(v_bottom_candles)).to_dict()
        second = engine.run(_long_snapshot(v_bottom_candles)).to_dict()
        assert first.pop("cycle_id") != second.pop("cycle_id")
        assert first == second
