"""Core modules for seriesguard - centralized definitions and utilities."""

from seriesguard.core.durations import humanize_duration, parse_duration, since_desc
from seriesguard.core.errors import (
    ConfigurationError,
    InvalidDurationError,
    ProviderError,
    SeriesGuardError,
    ValidationError,
    format_error_message,
)

__all__ = [
    # Errors
    "SeriesGuardError",
    "ConfigurationError",
    "ProviderError",
    "ValidationError",
    "InvalidDurationError",
    "format_error_message",
    # Durations
    "parse_duration",
    "humanize_duration",
    "since_desc",
]
