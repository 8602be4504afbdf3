"""JSON loader for analysis snapshots.

A snapshot file looks like::

    {
      "symbol": "BTCUSDT",
      "current_price": "50000",
      "candles": {"1h": [[open_time, open, high, low, close, volume], ...]},
      "sentiment": {"fear_greed_value": 15, "social_sentiment": "bullish",
                    "social_score": 40, "funding_rate": "-0.0002"},
      "weights": {"technical": 70, "sentiment": 30},
      "states": {"1h": {"trend": "up", "momentum": 40, "avg_volume": "100"}},
      "emas": {"1h": {"ema50": "49000", "ema200": "47000"}},
      "indicators": {"1h": {"rsi": 55, "volume_ratio": "1.2", "atr": "800"}}
    }

Candles may also be objects with the Candle field names. Numbers are read
through ``str`` so floats in the file keep their printed value.
"""

import json
from collections.abc import Mapping
from decimal import Decimal, InvalidOperation
from pathlib import Path
from typing import Any

from tradescope.exceptions import SnapshotError
from tradescope.indicators.analysis import TimeframeState
from tradescope.logging import get_logger
from tradescope.models import Candle, Sentiment, Trend
from tradescope.signals.engine import AnalysisSnapshot
from tradescope.signals.models import AnalysisWeights, SentimentInput
from tradescope.signals.validation import EmaReading, IndicatorValues, MacdReading

logger = get_logger(__name__)

_CANDLE_FIELDS = ("open_time", "open", "high", "low", "close", "volume")


def _decimal(value: Any, name: str) -> Decimal:
    if isinstance(value, bool):
        raise SnapshotError(f"{name}: expected a number, got {value!r}")
    try:
        number = Decimal(str(value))
    except (InvalidOperation, ValueError) as e:
        raise SnapshotError(f"{name}: expected a number, got {value!r}") from e
    if not number.is_finite():
        raise SnapshotError(f"{name}: expected a finite number, got {value!r}")
    return number


def _int(value: Any, name: str) -> int:
    if isinstance(value, bool):
        raise SnapshotError(f"{name}: expected an integer, got {value!r}")
    try:
        return int(value)
    except (TypeError, ValueError) as e:
        raise SnapshotError(f"{name}: expected an integer, got {value!r}") from e


def _optional_decimal(value: Any, name: str) -> Decimal | None:
    return None if value is None else _decimal(value, name)


def _enum(enum_cls, value: Any, name: str):
    try:
        return enum_cls(value)
    except ValueError as e:
        choices = ", ".join(member.value for member in enum_cls)
        raise SnapshotError(f"{name}: {value!r} is not one of {choices}") from e


def _mapping(value: Any, name: str) -> Mapping:
    if not isinstance(value, Mapping):
        raise SnapshotError(f"{name}: expected an object")
    return value


def parse_candle(raw: Any, name: str) -> Candle:
    """Parse one candle from a 6-element array or an object."""
    if isinstance(raw, Mapping):
        missing = [f for f in _CANDLE_FIELDS if f not in raw]
        if missing:
            raise SnapshotError(f"{name}: missing {', '.join(missing)}")
        values = [raw[f] for f in _CANDLE_FIELDS]
    elif isinstance(raw, (list, tuple)) and len(raw) >= 6:
        values = list(raw[:6])
    else:
        raise SnapshotError(f"{name}: expected [open_time, open, high, low, close, volume]")

    try:
        open_time = int(values[0])
    except (TypeError, ValueError) as e:
        raise SnapshotError(f"{name}: bad open_time {values[0]!r}") from e

    return Candle(
        open_time=open_time,
        open=_decimal(values[1], f"{name}.open"),
        high=_decimal(values[2], f"{name}.high"),
        low=_decimal(values[3], f"{name}.low"),
        close=_decimal(values[4], f"{name}.close"),
        volume=_decimal(values[5], f"{name}.volume"),
    )


def _parse_sentiment(raw: Mapping) -> SentimentInput:
    return SentimentInput(
        fear_greed_value=_decimal(raw.get("fear_greed_value", 50), "sentiment.fear_greed_value"),
        fear_greed_label=str(raw.get("fear_greed_label", "Neutral")),
        social_sentiment=_enum(
            Sentiment, raw.get("social_sentiment", "neutral"), "sentiment.social_sentiment"
        ),
        social_score=_decimal(raw.get("social_score", 0), "sentiment.social_score"),
        funding_rate=_optional_decimal(raw.get("funding_rate"), "sentiment.funding_rate"),
    )


def _parse_state(timeframe: str, raw: Mapping, candle_count: int) -> TimeframeState:
    name = f"states.{timeframe}"
    return TimeframeState(
        timeframe=timeframe,
        trend=_enum(Trend, raw.get("trend", "sideways"), f"{name}.trend"),
        momentum=_decimal(raw.get("momentum", 0), f"{name}.momentum"),
        avg_volume=_decimal(raw.get("avg_volume", 0), f"{name}.avg_volume"),
        candle_count=_int(raw.get("candle_count", candle_count), f"{name}.candle_count"),
        change_pct=_decimal(raw.get("change_pct", 0), f"{name}.change_pct"),
        high=_decimal(raw.get("high", 0), f"{name}.high"),
        low=_decimal(raw.get("low", 0), f"{name}.low"),
        ema50=_optional_decimal(raw.get("ema50"), f"{name}.ema50"),
        ema200=_optional_decimal(raw.get("ema200"), f"{name}.ema200"),
    )


def _parse_indicators(timeframe: str, raw: Mapping) -> IndicatorValues:
    name = f"indicators.{timeframe}"
    if "rsi" not in raw:
        raise SnapshotError(f"{name}: rsi is required")

    macd = None
    if raw.get("macd") is not None:
        macd_raw = _mapping(raw["macd"], f"{name}.macd")
        macd = MacdReading(
            histogram=_decimal(macd_raw.get("histogram", 0), f"{name}.macd.histogram"),
            crossover=_enum(Sentiment, macd_raw.get("crossover", "neutral"), f"{name}.macd.crossover"),
            trend=_enum(Sentiment, macd_raw.get("trend", "neutral"), f"{name}.macd.trend"),
        )

    ema = None
    if raw.get("ema") is not None:
        ema_raw = _mapping(raw["ema"], f"{name}.ema")
        ema = EmaReading(
            price_above_ema50=bool(ema_raw.get("price_above_ema50", False)),
            golden_cross=bool(ema_raw.get("golden_cross", False)),
        )

    return IndicatorValues(
        rsi=_decimal(raw["rsi"], f"{name}.rsi"),
        stoch_rsi_k=_optional_decimal(raw.get("stoch_rsi_k"), f"{name}.stoch_rsi_k"),
        stoch_rsi_d=_optional_decimal(raw.get("stoch_rsi_d"), f"{name}.stoch_rsi_d"),
        macd=macd,
        ema=ema,
        volume_ratio=_optional_decimal(raw.get("volume_ratio"), f"{name}.volume_ratio"),
        atr=_optional_decimal(raw.get("atr"), f"{name}.atr"),
    )


def parse_snapshot(data: Any) -> AnalysisSnapshot:
    """Build an AnalysisSnapshot from decoded JSON.

    Raises:
        SnapshotError: When a required key is missing or a value has the
            wrong type.
    """
    data = _mapping(data, "snapshot")
    symbol = data.get("symbol")
    if not isinstance(symbol, str) or not symbol:
        raise SnapshotError("symbol: required string")

    candles: dict[str, list[Candle]] = {}
    for timeframe, rows in _mapping(data.get("candles", {}), "candles").items():
        if not isinstance(rows, list):
            raise SnapshotError(f"candles.{timeframe}: expected a list")
        candles[timeframe] = [
            parse_candle(row, f"candles.{timeframe}[{i}]") for i, row in enumerate(rows)
        ]

    sentiment = None
    if data.get("sentiment") is not None:
        sentiment = _parse_sentiment(_mapping(data["sentiment"], "sentiment"))

    weights = None
    if data.get("weights") is not None:
        raw_weights = _mapping(data["weights"], "weights")
        try:
            weights = AnalysisWeights(
                technical=int(raw_weights.get("technical", 70)),
                sentiment=int(raw_weights.get("sentiment", 30)),
            )
        except (TypeError, ValueError) as e:
            raise SnapshotError(f"weights: {e}") from e

    states = {
        timeframe: _parse_state(
            timeframe, _mapping(raw, f"states.{timeframe}"), len(candles.get(timeframe, []))
        )
        for timeframe, raw in _mapping(data.get("states", {}), "states").items()
    }

    emas = {}
    for timeframe, raw in _mapping(data.get("emas", {}), "emas").items():
        raw = _mapping(raw, f"emas.{timeframe}")
        emas[timeframe] = (
            _optional_decimal(raw.get("ema50"), f"emas.{timeframe}.ema50"),
            _optional_decimal(raw.get("ema200"), f"emas.{timeframe}.ema200"),
        )

    indicators = {
        timeframe: _parse_indicators(timeframe, _mapping(raw, f"indicators.{timeframe}"))
        for timeframe, raw in _mapping(data.get("indicators", {}), "indicators").items()
    }

    return AnalysisSnapshot(
        symbol=symbol,
        candles=candles,
        current_price=_optional_decimal(data.get("current_price"), "current_price"),
        sentiment=sentiment,
        weights=weights,
        states=states,
        emas=emas,
        indicators=indicators,
    )


def load_snapshot(path: str | Path) -> AnalysisSnapshot:
    """Read and parse a JSON snapshot file.

    Raises:
        SnapshotError: When the file cannot be read, is not valid JSON, or
            does not describe a snapshot.
    """
    path = Path(path)
    try:
        data = json.loads(path.read_text(encoding="utf-8"))
    except OSError as e:
        raise SnapshotError(f"cannot read {path}: {e}") from e
    except json.JSONDecodeError as e:
        raise SnapshotError(f"{path} is not valid JSON: {e}") from e

    snapshot = parse_snapshot(data)
    logger.debug(
        "snapshot_loaded",
        path=str(path),
        symbol=snapshot.symbol,
        timeframes=snapshot.timeframes,
    )
    return snapshot
