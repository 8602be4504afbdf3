"""Sentiment fusion of Fear & Greed, social sentiment and funding rate.

Each source produces a sub-score in [-100, 100] and a direction; the
sub-scores are combined with fixed weights into one signal.

Fear & Greed is read contrarian at the extremes and trend-following in
between:

    value <= 25      ->  +30, bullish   (extreme fear: buy)
    25 < value < 45  ->  -50 .. 0, bearish
    45 <= value <= 55 ->  0, neutral
    55 < value <= 75 ->  0 .. +50, bullish
    value > 75       ->  -30, bearish   (extreme greed: sell)

CRITICAL: All computations use Decimal. Never use float.
"""

from decimal import Decimal

from tradescope.config import SentimentSettings
from tradescope.models import Confidence, Sentiment, SetupType, round_half_up
from tradescope.signals.models import (
    SentimentConflict,
    SentimentInput,
    SentimentSignal,
    SourceSignal,
    TradeSetup,
)

_FUNDING_EXTREME = Decimal("0.01")


def score_fear_greed(value: Decimal) -> SourceSignal:
    """Map the Fear & Greed index (0-100) to a sub-score and direction."""
    if value <= 25:
        return SourceSignal(score=Decimal("30"), direction=Sentiment.BULLISH)
    if value < 45:
        return SourceSignal(
            score=Decimal("-50") + (value - 25) * Decimal("2.5"),
            direction=Sentiment.BEARISH,
        )
    if value <= 55:
        return SourceSignal(score=Decimal("0"), direction=Sentiment.NEUTRAL)
    if value <= 75:
        return SourceSignal(
            score=(value - 55) * Decimal("2.5"),
            direction=Sentiment.BULLISH,
        )
    return SourceSignal(score=Decimal("-30"), direction=Sentiment.BEARISH)


def score_social(sentiment: Sentiment, score: Decimal) -> SourceSignal:
    """Social sentiment passes through unchanged."""
    return SourceSignal(score=score, direction=sentiment)


def score_funding(funding_rate: Decimal | None) -> SourceSignal:
    """Negative funding (shorts pay) is bullish, positive is bearish.

    A rate of exactly zero, or no rate, is neutral.
    """
    if funding_rate is None:
        return SourceSignal(score=Decimal("0"), direction=Sentiment.NEUTRAL)
    if funding_rate < -_FUNDING_EXTREME:
        return SourceSignal(score=Decimal("50"), direction=Sentiment.BULLISH)
    if funding_rate < 0:
        return SourceSignal(score=Decimal("25"), direction=Sentiment.BULLISH)
    if funding_rate > _FUNDING_EXTREME:
        return SourceSignal(score=Decimal("-50"), direction=Sentiment.BEARISH)
    if funding_rate > 0:
        return SourceSignal(score=Decimal("-25"), direction=Sentiment.BEARISH)
    return SourceSignal(score=Decimal("0"), direction=Sentiment.NEUTRAL)


def _agreement_confidence(directions: list[Sentiment]) -> Confidence:
    """HIGH when all three sources point the same way, MEDIUM for two."""
    agreeing = max(
        directions.count(Sentiment.BULLISH),
        directions.count(Sentiment.BEARISH),
    )
    if agreeing >= 3:
        return Confidence.HIGH
    if agreeing == 2:
        return Confidence.MEDIUM
    return Confidence.LOW


def fuse_sentiment(
    sentiment: SentimentInput | None,
    settings: SentimentSettings | None = None,
) -> SentimentSignal:
    """Combine the three sentiment sources into one signal.

    combined = 0.4 * fear_greed + 0.4 * social + 0.2 * funding (default
    weights). Direction uses the unrounded combined score against +-20; the
    reported score is rounded to an integer. A missing input yields the
    all-neutral signal.
    """
    if sentiment is None:
        return SentimentSignal()

    settings = settings or SentimentSettings()

    fear_greed = score_fear_greed(sentiment.fear_greed_value)
    social = score_social(sentiment.social_sentiment, sentiment.social_score)
    funding = score_funding(sentiment.funding_rate)

    combined = (
        settings.weight_fear_greed * fear_greed.score
        + settings.weight_social * social.score
        + settings.weight_funding * funding.score
    )

    if combined > settings.direction_threshold:
        direction = Sentiment.BULLISH
    elif combined < -settings.direction_threshold:
        direction = Sentiment.BEARISH
    else:
        direction = Sentiment.NEUTRAL

    return SentimentSignal(
        direction=direction,
        score=round_half_up(combined),
        confidence=_agreement_confidence(
            [fear_greed.direction, social.direction, funding.direction]
        ),
        fear_greed=fear_greed,
        social=social,
        funding=funding,
    )


def detect_sentiment_conflict(
    setup: TradeSetup | None,
    signal: SentimentSignal,
) -> SentimentConflict:
    """Flag a long setup under bearish sentiment or a short under bullish.

    Technical direction takes precedence; the flag only warns.
    """
    technical = setup.kind if setup is not None else SetupType.WAIT

    has_conflict = (
        technical == SetupType.LONG and signal.direction == Sentiment.BEARISH
    ) or (technical == SetupType.SHORT and signal.direction == Sentiment.BULLISH)

    if has_conflict:
        message = (
            f"Technical setup is {technical.value.upper()} but sentiment is "
            f"{signal.direction.value} (score {signal.score})"
        )
    elif technical == SetupType.WAIT:
        message = "No active technical setup"
    else:
        message = f"Sentiment ({signal.direction.value}) does not contradict the {technical.value} setup"

    return SentimentConflict(
        has_conflict=has_conflict,
        technical_direction=technical,
        sentiment_direction=signal.direction,
        message=message,
    )
