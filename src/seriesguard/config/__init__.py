"""Configuration for seriesguard."""

from seriesguard.config.series import (
    DEFAULT_LOOKBACK,
    DEFAULT_MIN_AGE,
    DEFAULT_STEP,
    SeriesCheckConfig,
)
from seriesguard.config.settings import Settings, get_settings

__all__ = [
    "Settings",
    "get_settings",
    "SeriesCheckConfig",
    "DEFAULT_LOOKBACK",
    "DEFAULT_STEP",
    "DEFAULT_MIN_AGE",
]
