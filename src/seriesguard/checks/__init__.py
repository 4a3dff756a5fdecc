"""Rule checks."""

from seriesguard.checks.base import (
    Problem,
    Severity,
    prom_text,
    text_and_severity_from_error,
)
from seriesguard.checks.directives import SeriesDirectives
from seriesguard.checks.series import ALERT_METRICS, SERIES_CHECK_NAME, SeriesCheck

__all__ = [
    "Problem",
    "Severity",
    "prom_text",
    "text_and_severity_from_error",
    "SeriesDirectives",
    "SeriesCheck",
    "SERIES_CHECK_NAME",
    "ALERT_METRICS",
]
