"""Technical level detection.

Pivot support/resistance, Fibonacci retracements and psychological
levels per timeframe, plus cross-timeframe confluence zones.
"""

from tradescope.levels.confluence import find_confluence_zones
from tradescope.levels.detector import (
    analyze_all_timeframe_levels,
    analyze_timeframe_levels,
    detect_levels,
    distance_to_level,
)
from tradescope.levels.fibonacci import (
    calculate_fibonacci,
    find_psychological_levels,
    find_swings,
)
from tradescope.levels.models import (
    ConfluenceZone,
    FibLevel,
    Level,
    LevelKind,
    LevelSource,
    TechnicalLevels,
)
from tradescope.levels.pivots import cluster_prices, find_pivots, find_support_resistance

__all__ = [
    "ConfluenceZone",
    "FibLevel",
    "Level",
    "LevelKind",
    "LevelSource",
    "TechnicalLevels",
    "analyze_all_timeframe_levels",
    "analyze_timeframe_levels",
    "calculate_fibonacci",
    "cluster_prices",
    "detect_levels",
    "distance_to_level",
    "find_confluence_zones",
    "find_pivots",
    "find_psychological_levels",
    "find_support_resistance",
    "find_swings",
]
