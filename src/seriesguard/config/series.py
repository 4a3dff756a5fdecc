"""
Tunables for the series presence check.

Defaults match what the check uses when nothing is configured: a week of
history sampled every five minutes, and a two hour grace period before a
disappeared metric is reported.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import timedelta

from seriesguard.config.settings import Settings, get_settings
from seriesguard.core.durations import parse_duration
from seriesguard.core.errors import ConfigurationError, InvalidDurationError

DEFAULT_LOOKBACK = timedelta(days=7)
DEFAULT_STEP = timedelta(minutes=5)
DEFAULT_MIN_AGE = timedelta(hours=2)


@dataclass(frozen=True)
class SeriesCheckConfig:
    """Time window settings for the series check."""

    lookback: timedelta = DEFAULT_LOOKBACK
    step: timedelta = DEFAULT_STEP
    min_age: timedelta = DEFAULT_MIN_AGE

    def __post_init__(self) -> None:
        if self.step <= timedelta(0):
            raise ConfigurationError("step must be positive", {"step": str(self.step)})
        if self.lookback < self.step:
            raise ConfigurationError(
                "lookback must not be shorter than step",
                {"lookback": str(self.lookback), "step": str(self.step)},
            )

    @classmethod
    def from_settings(cls, settings: Settings | None = None) -> "SeriesCheckConfig":
        """Build config from application settings.

        Raises:
            ConfigurationError: if any duration setting is malformed
        """
        settings = settings or get_settings()
        values = {}
        for field_name, raw in (
            ("lookback", settings.series_lookback),
            ("step", settings.series_step),
            ("min_age", settings.series_min_age),
        ):
            try:
                values[field_name] = parse_duration(raw)
            except InvalidDurationError as e:
                raise ConfigurationError(
                    f"Invalid series_{field_name} setting: {e.message}",
                    {"value": raw},
                ) from e
        return cls(**values)
