"""
Unified error types for seriesguard.

Errors raised by collaborators (query backends, directive parsing,
configuration) share a single base class so callers can catch them in
one place. The series check never lets these escape: every error is
converted into a finding scoped to the selector being evaluated.
"""

from __future__ import annotations

from typing import Any


class SeriesGuardError(Exception):
    """Base exception for seriesguard errors."""

    def __init__(self, message: str, details: dict[str, Any] | None = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}


class ConfigurationError(SeriesGuardError):
    """Raised for configuration-related errors."""


class ProviderError(SeriesGuardError):
    """Raised when an external provider/service fails."""


class ValidationError(SeriesGuardError):
    """Raised for validation failures."""


class InvalidDurationError(ValidationError, ValueError):
    """Raised when a duration string cannot be parsed."""


def format_error_message(error: SeriesGuardError) -> str:
    """Format an error message for display to users."""
    msg = error.message
    if error.details:
        detail_str = ", ".join(f"{k}={v}" for k, v in error.details.items())
        msg = f"{msg} ({detail_str})"
    return msg
