"""Configuration system using pydantic-settings with environment variable loading."""

from dataclasses import dataclass
from decimal import Decimal

from pydantic_settings import BaseSettings, SettingsConfigDict


class LevelSettings(BaseSettings):
    """Support/resistance detection parameters per timeframe.

    Timeframes missing from the maps (1m, 3m) use the 1h entry.
    """

    model_config = SettingsConfigDict(env_prefix="LEVELS_")

    pivot_lookback: dict[str, int] = {
        "5m": 12,
        "15m": 8,
        "1h": 5,
        "4h": 5,
        "1d": 3,
    }
    cluster_tolerance: dict[str, Decimal] = {
        "5m": Decimal("0.002"),
        "15m": Decimal("0.003"),
        "1h": Decimal("0.005"),
        "4h": Decimal("0.005"),
        "1d": Decimal("0.01"),
    }
    fallback_timeframe: str = "1h"
    max_levels: int = 5  # per side
    max_strength: int = 5
    psychological_range: Decimal = Decimal("0.2")  # +-20% around price

    def lookback_for(self, timeframe: str) -> int:
        """Pivot lookback (bars per side) for a timeframe."""
        return self.pivot_lookback.get(
            timeframe, self.pivot_lookback[self.fallback_timeframe]
        )

    def tolerance_for(self, timeframe: str) -> Decimal:
        """Relative cluster tolerance for a timeframe."""
        return self.cluster_tolerance.get(
            timeframe, self.cluster_tolerance[self.fallback_timeframe]
        )


class ConfluenceSettings(BaseSettings):
    """Cross-timeframe confluence zone parameters."""

    model_config = SettingsConfigDict(env_prefix="CONFLUENCE_")

    tolerance: Decimal = Decimal("0.01")  # 1% relative distance
    min_timeframes: int = 2


class SentimentSettings(BaseSettings):
    """Sentiment fusion weights and direction threshold.

    Sub-score weights must sum to 1.0 for the combined score to stay in
    [-100, 100].
    """

    model_config = SettingsConfigDict(env_prefix="SENTIMENT_")

    weight_fear_greed: Decimal = Decimal("0.4")
    weight_social: Decimal = Decimal("0.4")
    weight_funding: Decimal = Decimal("0.2")
    direction_threshold: Decimal = Decimal("20")


class ScoringSettings(BaseSettings):
    """Trade score weighting and verdict thresholds.

    technical_weight + sentiment_weight is expected to be 100. A different
    sum is not rejected; it simply moves totals outside [0, 100].
    """

    model_config = SettingsConfigDict(env_prefix="SCORING_")

    technical_weight: int = 70
    sentiment_weight: int = 30
    take_it_threshold: int = 70
    risky_threshold: int = 45


class HedgeSettings(BaseSettings):
    """Cross-timeframe hedge sizing parameters."""

    model_config = SettingsConfigDict(env_prefix="HEDGE_")

    conflict_min_score: int = 45  # higher-TF setup must be at least RISKY
    strong_score_diff: int = 25  # above this, use the small 80/20 hedge


@dataclass
class RuntimeConfig:
    """Mutable runtime overlay. Non-None fields override BaseSettings values.

    Lets a caller change the technical/sentiment split between cycles
    without rebuilding settings. Read at the start of each cycle.
    """

    technical_weight: int | None = None
    sentiment_weight: int | None = None


class AppSettings(BaseSettings):
    """Root application settings, composing all sub-settings."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        env_nested_delimiter="__",
    )

    log_level: str = "INFO"
    levels: LevelSettings = LevelSettings()
    confluence: ConfluenceSettings = ConfluenceSettings()
    sentiment: SentimentSettings = SentimentSettings()
    scoring: ScoringSettings = ScoringSettings()
    hedge: HedgeSettings = HedgeSettings()
