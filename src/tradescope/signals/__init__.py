"""Trade setups, sentiment fusion, scoring, hedge advice and validation."""

from tradescope.signals.engine import AnalysisEngine, AnalysisResult, AnalysisSnapshot
from tradescope.signals.hedge import calculate_hedge_recommendation
from tradescope.signals.models import (
    MARKET,
    UNRANKED,
    WEIGHT_PRESETS,
    AnalysisWeights,
    HedgeRecommendation,
    HedgeType,
    PositionLeg,
    ScoreComponents,
    SentimentConflict,
    SentimentInput,
    SentimentSignal,
    SourceSignal,
    TradeScore,
    TradeSetup,
    Verdict,
)
from tradescope.signals.scoring import assign_ranks, calculate_trade_score, classify_verdict
from tradescope.signals.sentiment import (
    detect_sentiment_conflict,
    fuse_sentiment,
    score_fear_greed,
    score_funding,
    score_social,
)
from tradescope.signals.setup import generate_trade_setup, is_ema_confirmed, trading_style_for
from tradescope.signals.validation import (
    IndicatorValues,
    ValidationResult,
    adjust_confidence,
    validate_signal,
)

__all__ = [
    "MARKET",
    "UNRANKED",
    "WEIGHT_PRESETS",
    "AnalysisEngine",
    "AnalysisResult",
    "AnalysisSnapshot",
    "AnalysisWeights",
    "HedgeRecommendation",
    "HedgeType",
    "IndicatorValues",
    "PositionLeg",
    "ScoreComponents",
    "SentimentConflict",
    "SentimentInput",
    "SentimentSignal",
    "SourceSignal",
    "TradeScore",
    "TradeSetup",
    "ValidationResult",
    "Verdict",
    "adjust_confidence",
    "assign_ranks",
    "calculate_hedge_recommendation",
    "calculate_trade_score",
    "classify_verdict",
    "detect_sentiment_conflict",
    "fuse_sentiment",
    "generate_trade_setup",
    "is_ema_confirmed",
    "score_fear_greed",
    "score_funding",
    "score_social",
    "trading_style_for",
    "validate_signal",
]
