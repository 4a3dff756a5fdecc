"""
Findings reported by checks and the shared error classification.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum

from seriesguard.backend import QueryError, QueryTooExpensiveError, QueryUnavailableError


class Severity(Enum):
    """Finding severity levels."""

    INFORMATION = "information"
    WARNING = "warning"
    BUG = "bug"


@dataclass(frozen=True)
class Problem:
    """A single issue found in a rule."""

    fragment: str  # offending part of the expression
    lines: tuple[int, int]
    reporter: str
    text: str
    severity: Severity


def prom_text(name: str, uri: str) -> str:
    """Describe which Prometheus server produced a result."""
    return f'prometheus "{name}" at {uri}'


def text_and_severity_from_error(
    err: Exception,
    reporter: str,
    prom_name: str,
    severity: Severity,
) -> tuple[str, Severity]:
    """
    Turn a query failure into a finding message and severity.

    Args:
        err: Error raised by the query backend
        reporter: Name of the check that ran the query
        prom_name: Name of the queried backend
        severity: Severity to use for ordinary query failures

    Returns:
        Tuple of (message, severity)
    """
    prom_desc = f'prometheus "{prom_name}"'
    if isinstance(err, QueryError) and err.uri:
        prom_desc = prom_text(prom_name, err.uri)

    if isinstance(err, QueryTooExpensiveError):
        return (
            f'couldn\'t run "{reporter}" checks on {prom_desc} because some queries are '
            f"too expensive: `{err}`",
            Severity.WARNING,
        )
    if isinstance(err, QueryUnavailableError):
        return (
            f'couldn\'t run "{reporter}" checks due to {prom_desc} connection error: `{err}`',
            severity if err.required else Severity.WARNING,
        )
    return f"{prom_desc} failed with: `{err}`", severity
