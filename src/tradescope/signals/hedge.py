"""Hedge advice from cross-timeframe direction conflicts.

The best-scoring active setup is the main position. A higher timeframe
pointing the other way with at least a RISKY score is a conflict and
turns part of the position into a hedge:

    score gap > 25   ->  80% main / 20% hedge, net exposure +-60
    score gap <= 25  ->  60% main / 40% hedge, net exposure +-20
"""

from collections.abc import Mapping
from decimal import Decimal

from tradescope.config import HedgeSettings
from tradescope.models import TIMEFRAME_HIERARCHY, SetupType
from tradescope.signals.models import (
    HedgeRecommendation,
    HedgeType,
    PositionLeg,
    TradeScore,
    TradeSetup,
)


def _hierarchy_index(timeframe: str) -> int:
    try:
        return TIMEFRAME_HIERARCHY.index(timeframe)
    except ValueError:
        return -1


def _signed(direction: SetupType, exposure: int) -> int:
    return exposure if direction == SetupType.LONG else -exposure


def calculate_hedge_recommendation(
    setups: Mapping[str, TradeSetup | None],
    scores: Mapping[str, TradeScore],
    settings: HedgeSettings | None = None,
) -> HedgeRecommendation:
    """Derive the main/hedge split for one cycle.

    Args:
        setups: Timeframe label to setup (None when no data).
        scores: Timeframe label to score.
        settings: Conflict threshold and score-gap cut-off.

    Returns:
        NO_HEDGE when nothing is active or all higher timeframes agree,
        otherwise a PARTIAL_HEDGE against the nearest conflicting higher
        timeframe.
    """
    settings = settings or HedgeSettings()

    active: list[tuple[str, TradeSetup, TradeScore]] = []
    for timeframe, score in scores.items():
        setup = setups.get(timeframe)
        if setup is not None and setup.kind != SetupType.WAIT and score.total > 0:
            active.append((timeframe, setup, score))

    if not active:
        return HedgeRecommendation(
            kind=HedgeType.NO_HEDGE,
            reason="No active trade setups",
            net_exposure=0,
        )

    active.sort(key=lambda item: item[2].total, reverse=True)
    best_tf, best_setup, best_score = active[0]
    best_index = _hierarchy_index(best_tf)

    conflicts = [
        item
        for item in active
        if _hierarchy_index(item[0]) > best_index
        and item[1].kind != best_setup.kind
        and item[2].total >= settings.conflict_min_score
    ]

    if not conflicts:
        return HedgeRecommendation(
            kind=HedgeType.NO_HEDGE,
            reason="All timeframes aligned - no hedge needed",
            net_exposure=_signed(best_setup.kind, 100),
            main_position=PositionLeg(
                timeframe=best_tf, direction=best_setup.kind, allocation=100
            ),
        )

    conflicts.sort(key=lambda item: _hierarchy_index(item[0]))
    conflict_tf, conflict_setup, conflict_score = conflicts[0]
    score_diff = best_score.total - conflict_score.total

    if score_diff > settings.strong_score_diff:
        main_allocation, hedge_allocation, exposure = 80, 20, 60
        reason = (
            f"{conflict_tf.upper()} shows {conflict_setup.kind.value} - small hedge recommended"
        )
    else:
        main_allocation, hedge_allocation, exposure = 60, 40, 20
        reason = (
            f"Strong conflict: {best_tf.upper()} {best_setup.kind.value} vs "
            f"{conflict_tf.upper()} {conflict_setup.kind.value}"
        )

    trigger_price = conflict_setup.entry if isinstance(conflict_setup.entry, Decimal) else None

    return HedgeRecommendation(
        kind=HedgeType.PARTIAL_HEDGE,
        reason=reason,
        net_exposure=_signed(best_setup.kind, exposure),
        main_position=PositionLeg(
            timeframe=best_tf, direction=best_setup.kind, allocation=main_allocation
        ),
        hedge_position=PositionLeg(
            timeframe=conflict_tf,
            direction=conflict_setup.kind,
            allocation=hedge_allocation,
            trigger_price=trigger_price,
        ),
    )
