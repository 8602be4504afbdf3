"""Trade scoring: technical and sentiment sub-scores, weighting, ranking.

Each active setup gets six technical sub-scores (raw max 97) and four
direction-aware sentiment sub-scores (raw max 100). The raw totals are
blended by the user's technical/sentiment split:

    total = round(technical_raw * technical% / 100 + sentiment_raw * sentiment% / 100)

Setups that cannot be scored (None, WAIT, no indicator state) get the
zero score with the unranked sentinel.

CRITICAL: All computations use Decimal. Never use float for signal scores.
"""

from collections.abc import Mapping
from dataclasses import replace
from decimal import Decimal

from tradescope.config import ScoringSettings
from tradescope.indicators.analysis import TimeframeState
from tradescope.levels.models import TechnicalLevels
from tradescope.models import Confidence, Sentiment, SetupType, round_half_up
from tradescope.signals.models import (
    UNRANKED,
    AnalysisWeights,
    ScoreComponents,
    SentimentInput,
    TradeScore,
    TradeSetup,
    Verdict,
)

#: Neutral sentiment sub-score used when no sentiment input exists.
_NEUTRAL_SUBSCORE = Decimal("12")

_TREND_ALIGNMENT: dict[Confidence, Decimal] = {
    Confidence.HIGH: Decimal("25"),
    Confidence.MEDIUM: Decimal("15"),
    Confidence.LOW: Decimal("5"),
}

_LEVEL_PROXIMITY = Decimal("0.01")  # entry within 1% of a key level


def classify_verdict(total: Decimal, settings: ScoringSettings | None = None) -> Verdict:
    """TAKE IT at >= 70, RISKY at >= 45, otherwise LEAVE IT."""
    settings = settings or ScoringSettings()
    if total >= settings.take_it_threshold:
        return Verdict.TAKE_IT
    if total >= settings.risky_threshold:
        return Verdict.RISKY
    return Verdict.LEAVE_IT


# ---------------------------------------------------------------------------
# Technical sub-scores
# ---------------------------------------------------------------------------


def _risk_reward_quality(risk_reward: Decimal) -> Decimal:
    if risk_reward >= 3:
        return Decimal("20")
    if risk_reward >= 2:
        return Decimal("15")
    if risk_reward >= Decimal("1.5"):
        return Decimal("10")
    return Decimal("5")


def _confluence_bonus(setup: TradeSetup, all_setups: Mapping[str, TradeSetup | None]) -> Decimal:
    """5 points per other timeframe with the same direction, max 15."""
    same_direction = sum(
        1
        for other in all_setups.values()
        if other is not None and other.kind == setup.kind and other.timeframe != setup.timeframe
    )
    return min(Decimal("15"), Decimal(5 * same_direction))


def _near(entry: Decimal, level: Decimal | None) -> bool:
    return level is not None and entry != 0 and abs(entry - level) / entry < _LEVEL_PROXIMITY


def _level_proximity(setup: TradeSetup, levels: TechnicalLevels | None) -> Decimal:
    """10 when the entry sits on the level matching the direction, 6 when near
    the other level, 3 otherwise."""
    if levels is None or not isinstance(setup.entry, Decimal):
        return Decimal("3")

    near_support = _near(setup.entry, levels.key_support)
    near_resistance = _near(setup.entry, levels.key_resistance)
    if (setup.kind == SetupType.LONG and near_support) or (
        setup.kind == SetupType.SHORT and near_resistance
    ):
        return Decimal("10")
    if near_support or near_resistance:
        return Decimal("6")
    return Decimal("3")


# ---------------------------------------------------------------------------
# Sentiment sub-scores (mirrored for longs and shorts)
# ---------------------------------------------------------------------------


def _fear_greed_alignment(kind: SetupType, value: Decimal) -> Decimal:
    """Buy the fear for longs, sell the greed for shorts."""
    if kind == SetupType.LONG:
        bands = ((25, 25), (40, 20), (60, 15), (75, 10))
        for upper, points in bands:
            if value <= upper:
                return Decimal(points)
        return Decimal("5")

    bands = ((75, 25), (60, 20), (40, 15), (25, 10))
    for lower, points in bands:
        if value >= lower:
            return Decimal(points)
    return Decimal("5")


def _social_alignment(kind: SetupType, sentiment: Sentiment, score: Decimal) -> Decimal:
    aligned = (sentiment == Sentiment.BULLISH and kind == SetupType.LONG) or (
        sentiment == Sentiment.BEARISH and kind == SetupType.SHORT
    )
    if aligned:
        return min(Decimal("25"), Decimal("15") + abs(score) / 10)
    if sentiment == Sentiment.NEUTRAL:
        return Decimal("12")
    return Decimal("8")


def _funding_bias(kind: SetupType, funding_rate: Decimal | None) -> Decimal:
    """Negative funding favours longs, positive favours shorts."""
    if funding_rate is None:
        return _NEUTRAL_SUBSCORE

    fr = funding_rate
    if kind == SetupType.LONG:
        if fr < Decimal("-0.01"):
            return Decimal("25")
        if fr < 0:
            return Decimal("20")
        if fr < Decimal("0.01"):
            return Decimal("15")
        if fr < Decimal("0.03"):
            return Decimal("10")
        return Decimal("5")

    if fr > Decimal("0.03"):
        return Decimal("25")
    if fr > Decimal("0.01"):
        return Decimal("20")
    if fr > 0:
        return Decimal("15")
    if fr > Decimal("-0.01"):
        return Decimal("10")
    return Decimal("5")


def _market_momentum(social_score: Decimal) -> Decimal:
    strength = abs(social_score)
    if strength >= 50:
        return Decimal("25")
    if strength >= 30:
        return Decimal("20")
    if strength >= 15:
        return Decimal("15")
    return Decimal("10")


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------


def calculate_trade_score(
    setup: TradeSetup | None,
    state: TimeframeState | None,
    levels: TechnicalLevels | None,
    all_setups: Mapping[str, TradeSetup | None],
    sentiment: SentimentInput | None,
    weights: AnalysisWeights,
    settings: ScoringSettings | None = None,
) -> TradeScore:
    """Score one timeframe's setup.

    Args:
        setup: The timeframe's setup, or None.
        state: The timeframe's indicator state, or None.
        levels: The timeframe's detected levels, or None.
        all_setups: Every timeframe's setup, for the confluence bonus.
        sentiment: Raw sentiment inputs; None scores each sentiment
            sub-score at the neutral 12.
        weights: Technical/sentiment split in percent.
        settings: Verdict thresholds.

    Returns:
        TradeScore with rank left at the sentinel; see ``assign_ranks``.
    """
    if setup is None or setup.kind == SetupType.WAIT or state is None:
        return TradeScore(weights=weights)

    technical = {
        "trend_alignment": _TREND_ALIGNMENT[setup.confidence],
        "momentum_strength": min(Decimal("20"), abs(state.momentum) / 5),
        "risk_reward_quality": _risk_reward_quality(setup.risk_reward),
        "confluence_bonus": _confluence_bonus(setup, all_setups),
        "volume_confirmation": Decimal("7") if state.avg_volume > 0 else Decimal("5"),
        "level_proximity": _level_proximity(setup, levels),
    }

    if sentiment is None:
        sentiment_parts = {
            "fear_greed_alignment": _NEUTRAL_SUBSCORE,
            "social_sentiment": _NEUTRAL_SUBSCORE,
            "funding_rate_bias": _NEUTRAL_SUBSCORE,
            "market_momentum": _NEUTRAL_SUBSCORE,
        }
    else:
        sentiment_parts = {
            "fear_greed_alignment": _fear_greed_alignment(setup.kind, sentiment.fear_greed_value),
            "social_sentiment": _social_alignment(
                setup.kind, sentiment.social_sentiment, sentiment.social_score
            ),
            "funding_rate_bias": _funding_bias(setup.kind, sentiment.funding_rate),
            "market_momentum": _market_momentum(sentiment.social_score),
        }

    components = ScoreComponents(**technical, **sentiment_parts)
    technical_raw = components.technical_raw
    sentiment_raw = components.sentiment_raw

    total = round_half_up(
        technical_raw * weights.technical / 100 + sentiment_raw * weights.sentiment / 100
    )

    return TradeScore(
        total=total,
        verdict=classify_verdict(total, settings),
        technical_raw=technical_raw,
        sentiment_raw=sentiment_raw,
        components=components,
        weights=weights,
        rank=UNRANKED,
    )


def assign_ranks(scores: Mapping[str, TradeScore]) -> dict[str, TradeScore]:
    """Rank scored timeframes 1..n by total, highest first.

    Timeframes with a zero (or lower) total keep the sentinel rank and are
    left out of the ordering. Ties keep the mapping's iteration order.
    """
    ranked = sorted(
        (tf for tf, score in scores.items() if score.total > 0),
        key=lambda tf: scores[tf].total,
        reverse=True,
    )
    positions = {tf: index + 1 for index, tf in enumerate(ranked)}
    return {
        tf: replace(score, rank=positions.get(tf, UNRANKED))
        for tf, score in scores.items()
    }
