"""Trade signal data models: setups, sentiment, scores and hedge advice.

CRITICAL: All price and score values use Decimal. Never use float for signal computations.
"""

from dataclasses import dataclass, field, fields
from decimal import Decimal
from enum import Enum
from typing import Literal

from tradescope.models import Confidence, Sentiment, SetupType, TradingStyle

#: Entry marker for setups that enter at whatever the market price is.
MARKET = "market"


class Verdict(str, Enum):
    """Trade verdict derived from the weighted total."""

    TAKE_IT = "TAKE IT"
    RISKY = "RISKY"
    LEAVE_IT = "LEAVE IT"


class HedgeType(str, Enum):
    """Hedge recommendation kind. FULL_HEDGE is reserved; never emitted today."""

    NO_HEDGE = "no_hedge"
    PARTIAL_HEDGE = "partial_hedge"
    FULL_HEDGE = "full_hedge"


@dataclass(frozen=True)
class TradeSetup:
    """Directional setup for one timeframe.

    take_profit holds up to three targets ordered nearest first.
    confluence_with_ema is True when the EMA-50/EMA-200 stack confirms the
    direction.
    """

    kind: SetupType
    entry: Decimal | Literal["market"]
    stop_loss: Decimal
    take_profit: tuple[Decimal, ...]
    risk_reward: Decimal
    confidence: Confidence
    reasoning: str
    timeframe: str
    trading_style: TradingStyle
    confluence_with_ema: bool = False

    @property
    def is_active(self) -> bool:
        """True for long/short setups."""
        return self.kind != SetupType.WAIT

    def to_dict(self) -> dict:
        """Serialize to JSON-safe dict with Decimal values as strings."""
        return {
            "kind": self.kind.value,
            "entry": str(self.entry),
            "stop_loss": str(self.stop_loss),
            "take_profit": [str(tp) for tp in self.take_profit],
            "risk_reward": str(self.risk_reward),
            "confidence": self.confidence.value,
            "reasoning": self.reasoning,
            "timeframe": self.timeframe,
            "trading_style": self.trading_style.value,
            "confluence_with_ema": self.confluence_with_ema,
        }


@dataclass(frozen=True)
class SentimentInput:
    """Raw external sentiment readings for one cycle.

    funding_rate is a fraction (0.0001 = 0.01%), None when unavailable.
    """

    fear_greed_value: Decimal = Decimal("50")
    fear_greed_label: str = "Neutral"
    social_sentiment: Sentiment = Sentiment.NEUTRAL
    social_score: Decimal = Decimal("0")  # -100..100
    funding_rate: Decimal | None = None


@dataclass(frozen=True)
class SourceSignal:
    """One sentiment source's sub-score and direction."""

    score: Decimal
    direction: Sentiment

    def to_dict(self) -> dict:
        return {"score": str(self.score), "direction": self.direction.value}


_NEUTRAL_SOURCE = SourceSignal(score=Decimal("0"), direction=Sentiment.NEUTRAL)


@dataclass(frozen=True)
class SentimentSignal:
    """Fused sentiment direction with per-source breakdown.

    score is the rounded weighted combination in [-100, 100].
    """

    direction: Sentiment = Sentiment.NEUTRAL
    score: Decimal = Decimal("0")
    confidence: Confidence = Confidence.LOW
    fear_greed: SourceSignal = _NEUTRAL_SOURCE
    social: SourceSignal = _NEUTRAL_SOURCE
    funding: SourceSignal = _NEUTRAL_SOURCE

    def to_dict(self) -> dict:
        """Serialize to JSON-safe dict with Decimal values as strings."""
        return {
            "direction": self.direction.value,
            "score": str(self.score),
            "confidence": self.confidence.value,
            "per_source": {
                "fear_greed": self.fear_greed.to_dict(),
                "social": self.social.to_dict(),
                "funding": self.funding.to_dict(),
            },
        }


@dataclass(frozen=True)
class SentimentConflict:
    """Disagreement flag between the technical setup and sentiment."""

    has_conflict: bool
    technical_direction: SetupType
    sentiment_direction: Sentiment
    message: str

    def to_dict(self) -> dict:
        return {
            "has_conflict": self.has_conflict,
            "technical_direction": self.technical_direction.value,
            "sentiment_direction": self.sentiment_direction.value,
            "message": self.message,
        }


@dataclass(frozen=True)
class AnalysisWeights:
    """Technical/sentiment split in percent. Expected to sum to 100."""

    technical: int = 70
    sentiment: int = 30

    def to_dict(self) -> dict:
        return {"technical": self.technical, "sentiment": self.sentiment}


#: Weight presets offered to users.
WEIGHT_PRESETS: dict[str, AnalysisWeights] = {
    "technical_only": AnalysisWeights(technical=100, sentiment=0),
    "technical_focus": AnalysisWeights(technical=70, sentiment=30),
    "balanced": AnalysisWeights(technical=50, sentiment=50),
    "sentiment_only": AnalysisWeights(technical=0, sentiment=100),
}


@dataclass(frozen=True)
class ScoreComponents:
    """The ten raw sub-scores behind a TradeScore.

    Technical: trend_alignment (0-25), momentum_strength (0-20),
    risk_reward_quality (0-20), confluence_bonus (0-15),
    volume_confirmation (0-10), level_proximity (0-10).
    Sentiment: fear_greed_alignment, social_sentiment, funding_rate_bias,
    market_momentum (0-25 each).
    """

    trend_alignment: Decimal = Decimal("0")
    momentum_strength: Decimal = Decimal("0")
    risk_reward_quality: Decimal = Decimal("0")
    confluence_bonus: Decimal = Decimal("0")
    volume_confirmation: Decimal = Decimal("0")
    level_proximity: Decimal = Decimal("0")
    fear_greed_alignment: Decimal = Decimal("0")
    social_sentiment: Decimal = Decimal("0")
    funding_rate_bias: Decimal = Decimal("0")
    market_momentum: Decimal = Decimal("0")

    @property
    def technical_raw(self) -> Decimal:
        return (
            self.trend_alignment
            + self.momentum_strength
            + self.risk_reward_quality
            + self.confluence_bonus
            + self.volume_confirmation
            + self.level_proximity
        )

    @property
    def sentiment_raw(self) -> Decimal:
        return (
            self.fear_greed_alignment
            + self.social_sentiment
            + self.funding_rate_bias
            + self.market_momentum
        )

    def to_dict(self) -> dict:
        return {f.name: str(getattr(self, f.name)) for f in fields(self)}


#: Rank given to timeframes without a scoreable setup; sorts last.
UNRANKED = 99


@dataclass(frozen=True)
class TradeScore:
    """Weighted score, verdict and rank for one timeframe's setup."""

    total: Decimal = Decimal("0")
    verdict: Verdict = Verdict.LEAVE_IT
    technical_raw: Decimal = Decimal("0")
    sentiment_raw: Decimal = Decimal("0")
    components: ScoreComponents = field(default_factory=ScoreComponents)
    weights: AnalysisWeights = field(default_factory=AnalysisWeights)
    rank: int = UNRANKED

    def to_dict(self) -> dict:
        """Serialize to JSON-safe dict with Decimal values as strings."""
        return {
            "total": str(self.total),
            "verdict": self.verdict.value,
            "technical_raw": str(self.technical_raw),
            "sentiment_raw": str(self.sentiment_raw),
            "components": self.components.to_dict(),
            "weights": self.weights.to_dict(),
            "rank": self.rank,
        }


@dataclass(frozen=True)
class PositionLeg:
    """One side of a hedge plan. allocation is percent of the position."""

    timeframe: str
    direction: SetupType
    allocation: int
    trigger_price: Decimal | None = None

    def to_dict(self) -> dict:
        data = {
            "timeframe": self.timeframe,
            "direction": self.direction.value,
            "allocation": self.allocation,
        }
        if self.trigger_price is not None:
            data["trigger_price"] = str(self.trigger_price)
        return data


@dataclass(frozen=True)
class HedgeRecommendation:
    """Main/hedge split derived from cross-timeframe direction conflicts.

    net_exposure is signed percent: positive long, negative short.
    """

    kind: HedgeType
    reason: str
    net_exposure: int = 0
    main_position: PositionLeg | None = None
    hedge_position: PositionLeg | None = None

    def to_dict(self) -> dict:
        """Serialize to JSON-safe dict."""
        return {
            "kind": self.kind.value,
            "reason": self.reason,
            "net_exposure": self.net_exposure,
            "main_position": self.main_position.to_dict() if self.main_position else None,
            "hedge_position": self.hedge_position.to_dict() if self.hedge_position else None,
        }
