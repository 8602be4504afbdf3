"""Rule-based trade setup generation for a single timeframe.

Classifies trend + momentum into long/short/wait, confirms with the
EMA-50/EMA-200 stack, and sizes targets as Fibonacci extensions of the
risk (1.0x, 1.618x, 2.618x the entry-to-stop distance).

CRITICAL: All computations use Decimal. Never use float.
"""

from decimal import Decimal

from tradescope.models import Confidence, SetupType, TradingStyle, Trend
from tradescope.signals.models import MARKET, TradeSetup

#: Holding style per timeframe.
TRADING_STYLES: dict[str, TradingStyle] = {
    "1m": TradingStyle.SCALPING,
    "3m": TradingStyle.SCALPING,
    "5m": TradingStyle.SCALPING,
    "15m": TradingStyle.INTRADAY,
    "1h": TradingStyle.SWING,
    "4h": TradingStyle.SWING,
    "1d": TradingStyle.POSITION,
}

#: Target multiples of risk: 1:1, golden ratio, 2.618 extension.
EXTENSION_MULTIPLES: tuple[Decimal, ...] = (Decimal("1.0"), Decimal("1.618"), Decimal("2.618"))

_MIN_MOMENTUM = Decimal("20")
_STRONG_MOMENTUM = Decimal("50")
_DEFAULT_LONG_STOP = Decimal("0.97")
_DEFAULT_SHORT_STOP = Decimal("1.03")
_WAIT_STOP = Decimal("0.98")
_WAIT_TARGET = Decimal("1.02")

NO_TREND_REASON = "No clear trend - waiting recommended"
MIXED_SIGNALS_REASON = "Mixed signals"


def trading_style_for(timeframe: str) -> TradingStyle:
    """Holding style for a timeframe; unknown labels are treated as swing."""
    return TRADING_STYLES.get(timeframe, TradingStyle.SWING)


def _wait_setup(price: Decimal, timeframe: str, reasoning: str) -> TradeSetup:
    return TradeSetup(
        kind=SetupType.WAIT,
        entry=MARKET,
        stop_loss=price * _WAIT_STOP,
        take_profit=(price * _WAIT_TARGET,),
        risk_reward=Decimal("1"),
        confidence=Confidence.LOW,
        reasoning=reasoning,
        timeframe=timeframe,
        trading_style=trading_style_for(timeframe),
        confluence_with_ema=False,
    )


def is_ema_confirmed(
    kind: SetupType,
    price: Decimal,
    ema50: Decimal | None,
    ema200: Decimal | None,
) -> bool:
    """Price > EMA50 > EMA200 for longs, price < EMA50 < EMA200 for shorts."""
    if ema50 is None or ema200 is None:
        return False
    if kind == SetupType.LONG:
        return price > ema50 > ema200
    if kind == SetupType.SHORT:
        return price < ema50 < ema200
    return False


def generate_trade_setup(
    timeframe: str,
    trend: Trend,
    momentum: Decimal,
    candle_count: int,
    current_price: Decimal,
    key_support: Decimal | None = None,
    key_resistance: Decimal | None = None,
    ema50: Decimal | None = None,
    ema200: Decimal | None = None,
) -> TradeSetup | None:
    """Turn one timeframe's indicator state into a trade setup.

    Args:
        timeframe: Timeframe label (e.g. "1h").
        trend: EMA-stack trend classification.
        momentum: Momentum in [-100, 100].
        candle_count: Candles behind the state; zero means no data.
        current_price: Entry price for directional setups.
        key_support: Nearest support, used as the long stop.
        key_resistance: Nearest resistance, used as the short stop.
        ema50: Current EMA-50, or None.
        ema200: Current EMA-200, or None.

    Returns:
        None when there is no data (no candles or non-positive price), which
        callers must keep distinct from a WAIT setup.
    """
    if candle_count <= 0 or current_price <= 0:
        return None

    price = current_price

    if trend == Trend.SIDEWAYS or abs(momentum) < _MIN_MOMENTUM:
        return _wait_setup(price, timeframe, NO_TREND_REASON)

    if trend == Trend.UP and momentum > _MIN_MOMENTUM:
        kind = SetupType.LONG
    elif trend == Trend.DOWN and momentum < -_MIN_MOMENTUM:
        kind = SetupType.SHORT
    else:
        return _wait_setup(price, timeframe, MIXED_SIGNALS_REASON)

    ema_confirmed = is_ema_confirmed(kind, price, ema50, ema200)
    if ema_confirmed:
        confidence = Confidence.HIGH
    elif abs(momentum) > _STRONG_MOMENTUM:
        confidence = Confidence.MEDIUM
    else:
        confidence = Confidence.LOW

    if kind == SetupType.LONG:
        stop_loss = key_support if key_support is not None else price * _DEFAULT_LONG_STOP
        risk = price - stop_loss
        targets = tuple(price + risk * m for m in EXTENSION_MULTIPLES)
        reward = targets[0] - price
        trend_text = "Uptrend"
    else:
        stop_loss = key_resistance if key_resistance is not None else price * _DEFAULT_SHORT_STOP
        risk = stop_loss - price
        targets = tuple(price - risk * m for m in EXTENSION_MULTIPLES)
        reward = price - targets[0]
        trend_text = "Downtrend"

    risk_reward = reward / risk if risk > 0 else Decimal("1")
    ema_text = "EMA confirmed" if ema_confirmed else "without EMA confirmation"

    return TradeSetup(
        kind=kind,
        entry=price,
        stop_loss=stop_loss,
        take_profit=targets,
        risk_reward=risk_reward,
        confidence=confidence,
        reasoning=f"{trend_text} (momentum {momentum}), {ema_text}",
        timeframe=timeframe,
        trading_style=trading_style_for(timeframe),
        confluence_with_ema=ema_confirmed,
    )
