"""Cross-timeframe confluence zone detection.

Applies the same greedy clustering used within one timeframe across all
timeframes: every support/resistance price joins the first zone of the
same kind within tolerance. Zones backed by fewer than two distinct
timeframes are discarded.
"""

from collections.abc import Mapping
from decimal import Decimal

from tradescope.levels.models import ConfluenceZone, LevelKind, TechnicalLevels


def find_confluence_zones(
    levels_by_timeframe: Mapping[str, TechnicalLevels],
    tolerance: Decimal = Decimal("0.01"),
    min_timeframes: int = 2,
) -> list[ConfluenceZone]:
    """Group levels that several timeframes agree on.

    Args:
        levels_by_timeframe: Timeframe label to detected levels. Iteration
            order of the mapping is the discovery order.
        tolerance: Max relative distance to a zone's first price.
        min_timeframes: Distinct timeframes required to keep a zone.

    Returns:
        Zones sorted by timeframe count descending; ties keep discovery
        order. Empty when no timeframes agree.
    """
    candidates: list[tuple[Decimal, str, LevelKind]] = []
    for timeframe, levels in levels_by_timeframe.items():
        for level in levels.supports:
            candidates.append((level.price, timeframe, LevelKind.SUPPORT))
        for level in levels.resistances:
            candidates.append((level.price, timeframe, LevelKind.RESISTANCE))

    zones: list[ConfluenceZone] = []
    for price, timeframe, kind in candidates:
        zone = next(
            (
                z
                for z in zones
                if z.kind == kind and z.price > 0 and abs(z.price - price) / z.price <= tolerance
            ),
            None,
        )
        if zone is None:
            zones.append(ConfluenceZone(price=price, kind=kind, timeframes=[timeframe]))
        elif timeframe not in zone.timeframes:
            zone.timeframes.append(timeframe)

    confluent = [z for z in zones if len(z.timeframes) >= min_timeframes]
    confluent.sort(key=lambda z: len(z.timeframes), reverse=True)
    return confluent
