"""Rule-based validation of trade setups against indicator readings.

Runs after setup generation to veto or penalise risky setups, e.g. a long
into an RSI of 80+. Each rule contributes a malus (negative) or bonus
(positive) to the setup's score; veto rules turn the setup into WAIT.

Rules:
- RSI/StochRSI extremes: veto longs at RSI >= 80, shorts at RSI <= 20.
- Higher-timeframe confluence: trading against a 2-of-3 bias across
  1h/4h/1d is vetoed.
- Funding rate: crowded side gets a malus.
- MACD: trend against the setup vetoes; opposing crossover penalises.
- EMA stack: golden/death cross alignment.
- Volume: ratio to average volume.
- Stop loss: distance in ATR multiples.
"""

from collections.abc import Mapping
from dataclasses import dataclass, field
from decimal import Decimal

from tradescope.models import Confidence, Sentiment, SetupType
from tradescope.signals.models import TradeSetup

_HIGHER_TIMEFRAMES: tuple[str, ...] = ("1h", "4h", "1d")

_RSI_EXTREME_OVERBOUGHT = Decimal("80")
_RSI_OVERBOUGHT = Decimal("70")
_RSI_OVERSOLD = Decimal("30")
_RSI_EXTREME_OVERSOLD = Decimal("20")
_STOCH_EXTREME_HIGH = Decimal("85")
_STOCH_EXTREME_LOW = Decimal("15")


@dataclass(frozen=True)
class MacdReading:
    histogram: Decimal
    crossover: Sentiment = Sentiment.NEUTRAL  # NEUTRAL = no crossover
    trend: Sentiment = Sentiment.NEUTRAL


@dataclass(frozen=True)
class EmaReading:
    price_above_ema50: bool
    golden_cross: bool  # EMA50 > EMA200


@dataclass(frozen=True)
class IndicatorValues:
    """Indicator readings for one timeframe. Optional readings skip their rule."""

    rsi: Decimal
    stoch_rsi_k: Decimal | None = None
    stoch_rsi_d: Decimal | None = None
    macd: MacdReading | None = None
    ema: EmaReading | None = None
    volume_ratio: Decimal | None = None  # current / average volume
    atr: Decimal | None = None


@dataclass
class MalusBreakdown:
    """Per-rule score adjustments. total is their sum."""

    rsi_extreme: int = 0
    confluence_lack: int = 0
    funding_rate_bias: int = 0
    macd_conflict: int = 0
    ema_position: int = 0
    volume_confirm: int = 0
    sl_quality: int = 0

    @property
    def total(self) -> int:
        return (
            self.rsi_extreme
            + self.confluence_lack
            + self.funding_rate_bias
            + self.macd_conflict
            + self.ema_position
            + self.volume_confirm
            + self.sl_quality
        )

    def to_dict(self) -> dict:
        return {
            "rsi_extreme": self.rsi_extreme,
            "confluence_lack": self.confluence_lack,
            "funding_rate_bias": self.funding_rate_bias,
            "macd_conflict": self.macd_conflict,
            "ema_position": self.ema_position,
            "volume_confirm": self.volume_confirm,
            "sl_quality": self.sl_quality,
            "total": self.total,
        }


@dataclass(frozen=True)
class ConfluenceBias:
    """Directional bias across the higher timeframes."""

    bias: Sentiment  # NEUTRAL = mixed
    strength: int  # number of aligned timeframes, 0 when mixed
    aligned_timeframes: tuple[str, ...] = ()
    conflicting_timeframes: tuple[str, ...] = ()


@dataclass
class ValidationResult:
    """Outcome of running every rule over one setup."""

    original_kind: SetupType
    validated_kind: SetupType
    confidence_adjustment: int = 0  # 0, -1 or -2
    reasons: list[str] = field(default_factory=list)
    malus: MalusBreakdown = field(default_factory=MalusBreakdown)
    confluence: ConfluenceBias | None = None
    adjusted_score: Decimal | None = None

    @property
    def is_valid(self) -> bool:
        return self.validated_kind == self.original_kind

    def to_dict(self) -> dict:
        """Serialize to JSON-safe dict."""
        return {
            "is_valid": self.is_valid,
            "original_kind": self.original_kind.value,
            "validated_kind": self.validated_kind.value,
            "confidence_adjustment": self.confidence_adjustment,
            "reasons": list(self.reasons),
            "malus": self.malus.to_dict(),
            "confluence_bias": self.confluence.bias.value if self.confluence else None,
            "adjusted_score": None if self.adjusted_score is None else str(self.adjusted_score),
        }


# ---------------------------------------------------------------------------
# RSI
# ---------------------------------------------------------------------------


def rsi_malus(kind: SetupType, indicators: IndicatorValues) -> int:
    """Graduated RSI penalty, plus -10 for StochRSI K beyond 90/10."""
    rsi = indicators.rsi
    malus = 0
    if kind == SetupType.LONG:
        for threshold, points in ((85, -30), (80, -20), (75, -15), (70, -10)):
            if rsi >= threshold:
                malus = points
                break
        if indicators.stoch_rsi_k is not None and indicators.stoch_rsi_k >= 90:
            malus -= 10
    elif kind == SetupType.SHORT:
        for threshold, points in ((15, -30), (20, -20), (25, -15), (30, -10)):
            if rsi <= threshold:
                malus = points
                break
        if indicators.stoch_rsi_k is not None and indicators.stoch_rsi_k <= 10:
            malus -= 10
    return malus


def validate_rsi(kind: SetupType, indicators: IndicatorValues) -> ValidationResult:
    """Veto or downgrade setups into RSI/StochRSI extremes."""
    result = ValidationResult(original_kind=kind, validated_kind=kind)
    rsi = indicators.rsi
    k, d = indicators.stoch_rsi_k, indicators.stoch_rsi_d

    if kind == SetupType.LONG:
        if rsi >= _RSI_EXTREME_OVERBOUGHT:
            result.validated_kind = SetupType.WAIT
            result.reasons.append(f"VETO: Long blocked - RSI extreme overbought ({rsi:.1f})")
        elif rsi >= _RSI_OVERBOUGHT:
            result.confidence_adjustment = -1
            result.reasons.append(f"WARN: Long confidence reduced - RSI overbought ({rsi:.1f})")
        if (
            k is not None
            and d is not None
            and k >= _STOCH_EXTREME_HIGH
            and d >= _STOCH_EXTREME_HIGH
            and result.validated_kind != SetupType.WAIT
        ):
            result.confidence_adjustment = -2
            result.reasons.append(f"WARN: StochRSI extreme high (K: {k:.1f}, D: {d:.1f})")

    elif kind == SetupType.SHORT:
        if rsi <= _RSI_EXTREME_OVERSOLD:
            result.validated_kind = SetupType.WAIT
            result.reasons.append(f"VETO: Short blocked - RSI extreme oversold ({rsi:.1f})")
        elif rsi <= _RSI_OVERSOLD:
            result.confidence_adjustment = -1
            result.reasons.append(f"WARN: Short confidence reduced - RSI oversold ({rsi:.1f})")
        if (
            k is not None
            and d is not None
            and k <= _STOCH_EXTREME_LOW
            and d <= _STOCH_EXTREME_LOW
            and result.validated_kind != SetupType.WAIT
        ):
            result.confidence_adjustment = -2
            result.reasons.append(f"WARN: StochRSI extreme low (K: {k:.1f}, D: {d:.1f})")

    result.malus.rsi_extreme = rsi_malus(kind, indicators)
    return result


# ---------------------------------------------------------------------------
# Higher-timeframe confluence
# ---------------------------------------------------------------------------


def check_confluence(setups: Mapping[str, TradeSetup | None]) -> ConfluenceBias:
    """Bias is set when at least two of 1h/4h/1d agree on a direction."""
    present = [(tf, setups[tf].kind) for tf in _HIGHER_TIMEFRAMES if setups.get(tf) is not None]
    longs = tuple(tf for tf, kind in present if kind == SetupType.LONG)
    shorts = tuple(tf for tf, kind in present if kind == SetupType.SHORT)
    waits = tuple(tf for tf, kind in present if kind == SetupType.WAIT)

    if len(longs) >= 2:
        return ConfluenceBias(Sentiment.BULLISH, len(longs), longs, shorts)
    if len(shorts) >= 2:
        return ConfluenceBias(Sentiment.BEARISH, len(shorts), shorts, longs)
    return ConfluenceBias(Sentiment.NEUTRAL, 0, waits, longs + shorts)


def confluence_malus(confluence: ConfluenceBias) -> int:
    if confluence.strength >= 3:
        return 0
    if confluence.strength == 2:
        return -5
    if confluence.strength == 1:
        return -15
    return -20


# ---------------------------------------------------------------------------
# Funding, MACD, EMA, volume, stop loss
# ---------------------------------------------------------------------------


def funding_rate_malus(kind: SetupType, funding_rate: Decimal) -> int:
    """Penalise joining the crowded side (funding expressed in percent)."""
    percent = funding_rate * 100
    if kind == SetupType.LONG:
        for threshold, points in ((Decimal("0.05"), -15), (Decimal("0.03"), -10), (Decimal("0.01"), -5)):
            if percent > threshold:
                return points
    elif kind == SetupType.SHORT:
        for threshold, points in ((Decimal("-0.05"), -15), (Decimal("-0.03"), -10), (Decimal("-0.01"), -5)):
            if percent < threshold:
                return points
    return 0


def validate_macd(kind: SetupType, macd: MacdReading | None) -> tuple[bool, int, str | None]:
    """Return (is_valid, malus, reason)."""
    if macd is None:
        return True, 0, None

    if kind == SetupType.LONG:
        if macd.trend == Sentiment.BEARISH and macd.histogram < 0:
            return False, -20, f"VETO: Long blocked - MACD bearish (histogram: {macd.histogram:.2f})"
        if macd.crossover == Sentiment.BEARISH:
            return True, -15, "WARN: MACD bearish crossover detected"
        if macd.crossover == Sentiment.BULLISH and macd.histogram > 0:
            return True, 5, None

    if kind == SetupType.SHORT:
        if macd.trend == Sentiment.BULLISH and macd.histogram > 0:
            return False, -20, f"VETO: Short blocked - MACD bullish (histogram: {macd.histogram:.2f})"
        if macd.crossover == Sentiment.BULLISH:
            return True, -15, "WARN: MACD bullish crossover detected"
        if macd.crossover == Sentiment.BEARISH and macd.histogram < 0:
            return True, 5, None

    return True, 0, None


def validate_ema(kind: SetupType, ema: EmaReading | None) -> tuple[int, str | None]:
    """Return (malus, reason) for the price/EMA50/EMA200 arrangement."""
    if ema is None:
        return 0, None

    if kind == SetupType.LONG:
        if ema.price_above_ema50 and ema.golden_cross:
            return 10, None
        if not ema.price_above_ema50:
            return -10, "WARN: Price below EMA50"
        return -15, "WARN: Death Cross active - Long risky"

    if kind == SetupType.SHORT:
        if not ema.price_above_ema50 and not ema.golden_cross:
            return 10, None
        if ema.price_above_ema50:
            return -10, "WARN: Price above EMA50"
        return -15, "WARN: Golden Cross active - Short risky"

    return 0, None


def validate_volume(kind: SetupType, volume_ratio: Decimal | None) -> tuple[int, str | None]:
    """Return (malus, reason) for the current-to-average volume ratio."""
    if volume_ratio is None or kind == SetupType.WAIT:
        return 0, None
    if volume_ratio >= Decimal("1.5"):
        return 10, None
    if volume_ratio >= Decimal("0.8"):
        return 0, None
    percent = volume_ratio * 100
    if volume_ratio >= Decimal("0.5"):
        return -10, f"WARN: Low volume ({percent:.0f}% of avg)"
    return -20, f"WARN: Very low volume ({percent:.0f}% of avg) - signal unreliable"


def validate_stop_loss(
    kind: SetupType,
    entry: Decimal,
    stop_loss: Decimal,
    atr: Decimal | None,
) -> tuple[int, str | None]:
    """Return (malus, reason) for the stop distance in ATR multiples."""
    if atr is None or atr <= 0 or kind == SetupType.WAIT:
        return 0, None

    multiple = abs(entry - stop_loss) / atr
    if multiple < Decimal("0.5"):
        return -20, f"WARN: SL too tight ({multiple:.1f}x ATR) - high risk of stop hunt"
    if multiple < 1:
        return -10, f"WARN: SL below 1x ATR ({multiple:.1f}x)"
    if Decimal("1.5") <= multiple <= 3:
        return 5, None
    if multiple > 4:
        return -5, f"INFO: SL quite wide ({multiple:.1f}x ATR)"
    return 0, None


# ---------------------------------------------------------------------------
# Full pipeline
# ---------------------------------------------------------------------------


def validate_signal(
    setup: TradeSetup,
    indicators: IndicatorValues,
    all_setups: Mapping[str, TradeSetup | None] | None = None,
    funding_rate: Decimal | None = None,
    score: Decimal | None = None,
) -> ValidationResult:
    """Run every rule over a setup, in order, short-circuiting after a veto.

    Args:
        setup: The setup to validate.
        indicators: Indicator readings for the setup's timeframe.
        all_setups: Every timeframe's setup; enables the confluence gate.
        funding_rate: Current funding rate fraction; enables the funding rule.
        score: The setup's score total; when given, adjusted_score is the
            score plus the total malus, clamped to [0, 100].
    """
    result = validate_rsi(setup.kind, indicators)

    if all_setups is not None:
        confluence = check_confluence(all_setups)
        result.confluence = confluence
        result.malus.confluence_lack = confluence_malus(confluence)
        against_bias = (
            result.validated_kind == SetupType.LONG and confluence.bias == Sentiment.BEARISH
        ) or (result.validated_kind == SetupType.SHORT and confluence.bias == Sentiment.BULLISH)
        if against_bias:
            result.validated_kind = SetupType.WAIT
            result.reasons.append(
                f"VETO: Signal conflicts with {confluence.bias.value} higher TF confluence"
            )

    if funding_rate is not None:
        result.malus.funding_rate_bias = funding_rate_malus(result.validated_kind, funding_rate)
        if result.malus.funding_rate_bias < -10:
            result.reasons.append(f"WARN: High funding rate risk ({funding_rate * 100:.4f}%)")

    if result.validated_kind != SetupType.WAIT:
        is_valid, malus, reason = validate_macd(result.validated_kind, indicators.macd)
        result.malus.macd_conflict = malus
        if not is_valid:
            result.validated_kind = SetupType.WAIT
        if reason:
            result.reasons.append(reason)

    if result.validated_kind != SetupType.WAIT:
        malus, reason = validate_ema(result.validated_kind, indicators.ema)
        result.malus.ema_position = malus
        if reason:
            result.reasons.append(reason)

    if result.validated_kind != SetupType.WAIT:
        malus, reason = validate_volume(result.validated_kind, indicators.volume_ratio)
        result.malus.volume_confirm = malus
        if reason:
            result.reasons.append(reason)

    if result.validated_kind != SetupType.WAIT and isinstance(setup.entry, Decimal):
        malus, reason = validate_stop_loss(
            result.validated_kind, setup.entry, setup.stop_loss, indicators.atr
        )
        result.malus.sl_quality = malus
        if reason:
            result.reasons.append(reason)

    if score is not None:
        result.adjusted_score = max(Decimal("0"), min(Decimal("100"), score + result.malus.total))

    return result


def adjust_confidence(confidence: Confidence, adjustment: int) -> Confidence:
    """Step confidence down by ``-adjustment`` levels, bottoming at LOW."""
    order = [Confidence.HIGH, Confidence.MEDIUM, Confidence.LOW]
    index = min(len(order) - 1, order.index(confidence) - adjustment)
    return order[index]
