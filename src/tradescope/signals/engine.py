"""Analysis engine running one full multi-timeframe cycle (levels to hedge).

The AnalysisEngine is the top-level coordinator that:
1. Detects levels per timeframe and cross-timeframe confluence zones
2. Derives (or takes) each timeframe's indicator state
3. Generates a trade setup per timeframe
4. Fuses sentiment and scores every setup, then ranks them
5. Derives the hedge recommendation and the sentiment conflict flag
6. Optionally validates setups against indicator readings
7. Logs the cycle summary at INFO level

Graceful degradation: timeframes without data get a None setup and the
unranked zero score; missing sentiment scores as neutral.

The engine holds no state between cycles. Each run recomputes everything
from the snapshot.
"""

from dataclasses import dataclass, field, replace
from decimal import Decimal

from tradescope.config import AppSettings, RuntimeConfig
from tradescope.indicators.analysis import TimeframeState, analyze_timeframe
from tradescope.levels.confluence import find_confluence_zones
from tradescope.levels.detector import analyze_timeframe_levels
from tradescope.levels.models import ConfluenceZone, TechnicalLevels
from tradescope.logging import bind_cycle, get_logger
from tradescope.models import LEVEL_TIMEFRAMES, TIMEFRAME_HIERARCHY, Candle
from tradescope.signals.hedge import calculate_hedge_recommendation
from tradescope.signals.models import (
    AnalysisWeights,
    HedgeRecommendation,
    SentimentConflict,
    SentimentInput,
    SentimentSignal,
    TradeScore,
    TradeSetup,
)
from tradescope.signals.scoring import assign_ranks, calculate_trade_score
from tradescope.signals.sentiment import detect_sentiment_conflict, fuse_sentiment
from tradescope.signals.setup import generate_trade_setup
from tradescope.signals.validation import IndicatorValues, ValidationResult, validate_signal

logger = get_logger(__name__)


@dataclass
class AnalysisSnapshot:
    """Everything one analysis cycle needs, already parsed.

    states overrides the indicator state derived from candles, emas
    overrides only the EMA-50/EMA-200 readings, and indicators enables
    signal validation for the timeframes it names.
    """

    symbol: str
    candles: dict[str, list[Candle]] = field(default_factory=dict)
    current_price: Decimal | None = None
    sentiment: SentimentInput | None = None
    weights: AnalysisWeights | None = None
    states: dict[str, TimeframeState] = field(default_factory=dict)
    emas: dict[str, tuple[Decimal | None, Decimal | None]] = field(default_factory=dict)
    indicators: dict[str, IndicatorValues] = field(default_factory=dict)

    @property
    def timeframes(self) -> list[str]:
        """Timeframes with candles or a supplied state, in discovery order."""
        seen = list(self.candles)
        seen.extend(tf for tf in self.states if tf not in self.candles)
        return seen


@dataclass
class AnalysisResult:
    """Everything one cycle produced, keyed by timeframe where per-timeframe."""

    symbol: str
    cycle_id: str
    weights: AnalysisWeights
    levels: dict[str, TechnicalLevels] = field(default_factory=dict)
    confluence_zones: list[ConfluenceZone] = field(default_factory=list)
    states: dict[str, TimeframeState] = field(default_factory=dict)
    setups: dict[str, TradeSetup | None] = field(default_factory=dict)
    scores: dict[str, TradeScore] = field(default_factory=dict)
    sentiment: SentimentSignal = field(default_factory=SentimentSignal)
    conflict: SentimentConflict | None = None
    hedge: HedgeRecommendation | None = None
    validations: dict[str, ValidationResult] = field(default_factory=dict)

    @property
    def best_timeframe(self) -> str | None:
        """Timeframe ranked 1, or None when nothing scored."""
        for timeframe, score in self.scores.items():
            if score.rank == 1:
                return timeframe
        return None

    def to_dict(self) -> dict:
        """Serialize to JSON-safe dict with Decimal values as strings."""
        return {
            "symbol": self.symbol,
            "cycle_id": self.cycle_id,
            "weights": self.weights.to_dict(),
            "best_timeframe": self.best_timeframe,
            "timeframes": {
                tf: {
                    "state": self.states[tf].to_dict() if tf in self.states else None,
                    "levels": self.levels[tf].to_dict() if tf in self.levels else None,
                    "setup": self.setups[tf].to_dict() if self.setups.get(tf) else None,
                    "score": self.scores[tf].to_dict() if tf in self.scores else None,
                    "validation": (
                        self.validations[tf].to_dict() if tf in self.validations else None
                    ),
                }
                for tf in self.setups
            },
            "confluence_zones": [zone.to_dict() for zone in self.confluence_zones],
            "sentiment": self.sentiment.to_dict(),
            "conflict": self.conflict.to_dict() if self.conflict else None,
            "hedge": self.hedge.to_dict() if self.hedge else None,
        }


def _ordered(timeframes: list[str]) -> list[str]:
    """Known timeframes in hierarchy order, unknown ones after in input order."""
    known = [tf for tf in TIMEFRAME_HIERARCHY if tf in timeframes]
    return known + [tf for tf in timeframes if tf not in TIMEFRAME_HIERARCHY]


class AnalysisEngine:
    """Runs the level/setup/score/hedge pipeline over a snapshot.

    Args:
        settings: Application settings for every stage.
        runtime_config: Mutable overlay; non-None weights override both the
            snapshot's weights and the scoring settings. None = no overlay.
    """

    def __init__(
        self,
        settings: AppSettings | None = None,
        runtime_config: RuntimeConfig | None = None,
    ) -> None:
        self._settings = settings or AppSettings()
        self._runtime_config = runtime_config

    def resolve_weights(self, snapshot_weights: AnalysisWeights | None = None) -> AnalysisWeights:
        """Pick the cycle's weights: runtime overlay, then snapshot, then settings."""
        scoring = self._settings.scoring
        base = snapshot_weights or AnalysisWeights(
            technical=scoring.technical_weight, sentiment=scoring.sentiment_weight
        )
        rc = self._runtime_config
        if rc is None:
            return base
        return AnalysisWeights(
            technical=rc.technical_weight if rc.technical_weight is not None else base.technical,
            sentiment=rc.sentiment_weight if rc.sentiment_weight is not None else base.sentiment,
        )

    def _state_for(self, snapshot: AnalysisSnapshot, timeframe: str) -> TimeframeState:
        state = snapshot.states.get(timeframe)
        if state is None:
            state = analyze_timeframe(snapshot.candles.get(timeframe, []), timeframe)
        if timeframe in snapshot.emas:
            ema50, ema200 = snapshot.emas[timeframe]
            state = replace(state, ema50=ema50, ema200=ema200)
        return state

    @staticmethod
    def _price_for(snapshot: AnalysisSnapshot, timeframe: str) -> Decimal:
        if snapshot.current_price is not None:
            return snapshot.current_price
        candles = snapshot.candles.get(timeframe)
        return candles[-1].close if candles else Decimal("0")

    def run(self, snapshot: AnalysisSnapshot) -> AnalysisResult:
        """Execute one analysis cycle.

        Args:
            snapshot: Parsed inputs for the cycle.

        Returns:
            AnalysisResult with per-timeframe setups and scores, confluence
            zones, sentiment, conflict flag, hedge advice and validations.
        """
        cycle_id = bind_cycle(snapshot.symbol)
        settings = self._settings
        weights = self.resolve_weights(snapshot.weights)
        timeframes = _ordered(snapshot.timeframes)

        # --- Levels (per timeframe, independent) ---
        levels: dict[str, TechnicalLevels] = {}
        for timeframe in timeframes:
            candles = snapshot.candles.get(timeframe, [])
            levels[timeframe] = analyze_timeframe_levels(
                candles,
                timeframe,
                settings.levels,
                current_price=self._price_for(snapshot, timeframe) if candles else None,
            )

        zones = find_confluence_zones(
            {tf: levels[tf] for tf in timeframes if tf in LEVEL_TIMEFRAMES},
            tolerance=settings.confluence.tolerance,
            min_timeframes=settings.confluence.min_timeframes,
        )

        # --- Setups (per timeframe, independent) ---
        states: dict[str, TimeframeState] = {}
        setups: dict[str, TradeSetup | None] = {}
        for timeframe in timeframes:
            state = self._state_for(snapshot, timeframe)
            states[timeframe] = state
            tf_levels = levels[timeframe]
            setups[timeframe] = generate_trade_setup(
                timeframe=timeframe,
                trend=state.trend,
                momentum=state.momentum,
                candle_count=state.candle_count,
                current_price=self._price_for(snapshot, timeframe),
                key_support=tf_levels.key_support,
                key_resistance=tf_levels.key_resistance,
                ema50=state.ema50,
                ema200=state.ema200,
            )

        # --- Sentiment and scoring (needs every setup) ---
        sentiment = fuse_sentiment(snapshot.sentiment, settings.sentiment)
        raw_scores = {
            timeframe: calculate_trade_score(
                setups[timeframe],
                states.get(timeframe),
                levels.get(timeframe),
                setups,
                snapshot.sentiment,
                weights,
                settings.scoring,
            )
            for timeframe in timeframes
        }
        scores = assign_ranks(raw_scores)

        hedge = calculate_hedge_recommendation(setups, scores, settings.hedge)

        result = AnalysisResult(
            symbol=snapshot.symbol,
            cycle_id=cycle_id,
            weights=weights,
            levels=levels,
            confluence_zones=zones,
            states=states,
            setups=setups,
            scores=scores,
            sentiment=sentiment,
            hedge=hedge,
        )
        best_tf = result.best_timeframe
        result.conflict = detect_sentiment_conflict(
            setups.get(best_tf) if best_tf else None, sentiment
        )

        # --- Optional validation ---
        funding_rate = snapshot.sentiment.funding_rate if snapshot.sentiment else None
        for timeframe, indicators in snapshot.indicators.items():
            setup = setups.get(timeframe)
            if setup is None or not setup.is_active:
                continue
            result.validations[timeframe] = validate_signal(
                setup,
                indicators,
                all_setups=setups,
                funding_rate=funding_rate,
                score=scores[timeframe].total,
            )

        for timeframe in timeframes:
            setup = setups[timeframe]
            score = scores[timeframe]
            logger.debug(
                "timeframe_score",
                timeframe=timeframe,
                kind=setup.kind.value if setup else None,
                total=str(score.total),
                verdict=score.verdict.value,
                rank=score.rank,
            )

        best_score = scores[best_tf].total if best_tf else Decimal("0")
        logger.info(
            "analysis_cycle",
            timeframes=len(timeframes),
            best_timeframe=best_tf,
            best_score=str(best_score),
            sentiment=sentiment.direction.value,
            sentiment_conflict=result.conflict.has_conflict,
            hedge=hedge.kind.value,
            net_exposure=hedge.net_exposure,
            confluence_zones=len(zones),
            weights=f"{weights.technical}/{weights.sentiment}",
        )

        return result
