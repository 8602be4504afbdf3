"""Technical level data models.

CRITICAL: All prices use Decimal. Never use float for level prices.
"""

from dataclasses import dataclass, field
from decimal import Decimal
from enum import Enum


class LevelKind(str, Enum):
    """Which side of price a level sits on."""

    SUPPORT = "support"
    RESISTANCE = "resistance"


class LevelSource(str, Enum):
    """How a level was derived."""

    PIVOT = "pivot"
    CLUSTER = "cluster"
    FIBONACCI = "fibonacci"
    PSYCHOLOGICAL = "psychological"


@dataclass(frozen=True)
class Level:
    """A support or resistance price with its touch count.

    strength is the number of pivots folded into the level, capped at 5.
    """

    price: Decimal
    kind: LevelKind
    strength: int
    source: LevelSource = LevelSource.PIVOT

    def to_dict(self) -> dict:
        return {
            "price": str(self.price),
            "kind": self.kind.value,
            "strength": self.strength,
            "source": self.source.value,
        }


@dataclass(frozen=True)
class FibLevel:
    """A Fibonacci retracement of the swing range."""

    ratio: Decimal
    price: Decimal
    label: str

    def to_dict(self) -> dict:
        return {"ratio": str(self.ratio), "price": str(self.price), "label": self.label}


@dataclass(frozen=True)
class TechnicalLevels:
    """All levels detected for one timeframe's candle window.

    supports are ordered nearest-below first, resistances nearest-above
    first. key_support/key_resistance are the nearest of each, or None.
    """

    timeframe: str
    current_price: Decimal
    supports: tuple[Level, ...] = ()
    resistances: tuple[Level, ...] = ()
    fibonacci: tuple[FibLevel, ...] = ()
    psychological: tuple[Decimal, ...] = ()
    key_support: Decimal | None = None
    key_resistance: Decimal | None = None
    swing_high: Decimal = Decimal("0")
    swing_low: Decimal = Decimal("0")

    def to_dict(self) -> dict:
        """Serialize to JSON-safe dict with Decimal values as strings."""
        return {
            "timeframe": self.timeframe,
            "current_price": str(self.current_price),
            "supports": [lvl.to_dict() for lvl in self.supports],
            "resistances": [lvl.to_dict() for lvl in self.resistances],
            "fibonacci": [fib.to_dict() for fib in self.fibonacci],
            "psychological": [str(p) for p in self.psychological],
            "key_support": _opt_str(self.key_support),
            "key_resistance": _opt_str(self.key_resistance),
            "swing_high": str(self.swing_high),
            "swing_low": str(self.swing_low),
        }


@dataclass
class ConfluenceZone:
    """A price where levels from at least two timeframes agree.

    timeframes holds distinct labels in discovery order; the order carries
    no meaning.
    """

    price: Decimal
    kind: LevelKind
    timeframes: list[str] = field(default_factory=list)

    def to_dict(self) -> dict:
        return {
            "price": str(self.price),
            "kind": self.kind.value,
            "timeframes": list(self.timeframes),
        }


def _opt_str(value: Decimal | None) -> str | None:
    return None if value is None else str(value)
