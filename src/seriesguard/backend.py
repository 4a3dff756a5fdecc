"""
Query backend interface consumed by checks.

Checks never talk HTTP themselves, they call a ``QueryBackend``. The
Prometheus implementation lives in ``seriesguard.providers.prometheus``,
tests use an in-memory fake.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from datetime import datetime, timedelta

from seriesguard.core.errors import ProviderError


class QueryError(ProviderError):
    """Raised when a query backend fails to answer a query.

    ``uri`` is the server that produced the error, if known. ``required``
    tells whether the backend is marked as required, which makes
    connection problems as severe as any other failure.
    """

    def __init__(
        self,
        message: str,
        *,
        uri: str = "",
        required: bool = False,
        details: dict | None = None,
    ):
        super().__init__(message, details)
        self.uri = uri
        self.required = required

    def __str__(self) -> str:
        return self.message


class QueryUnavailableError(QueryError):
    """Raised when no server could be reached."""


class QueryTooExpensiveError(QueryError):
    """Raised when the server refused a query for exceeding its limits."""


@dataclass(frozen=True)
class InstantSeries:
    """One series from an instant query."""

    labels: dict[str, str]
    value: float


@dataclass
class InstantQueryResult:
    """Result of an instant query and the server that answered it."""

    uri: str
    series: list[InstantSeries] = field(default_factory=list)


@dataclass(frozen=True)
class Sample:
    """A single (timestamp, value) point of a range query."""

    timestamp: datetime
    value: float


@dataclass
class RangeSeries:
    """One series from a range query, samples ordered by timestamp."""

    labels: dict[str, str]
    samples: list[Sample] = field(default_factory=list)


@dataclass
class RangeQueryResult:
    """Result of a range query over [start, end].

    Timestamps should be timezone-aware, naive ones are read as UTC.
    """

    uri: str
    start: datetime
    end: datetime
    series: list[RangeSeries] = field(default_factory=list)


class QueryBackend(ABC):
    """Abstract metrics query backend."""

    name: str = "prometheus"

    @abstractmethod
    def query(self, expr: str) -> InstantQueryResult:
        """Run an instant query evaluated at the current time.

        Raises:
            QueryError: on any backend failure
        """

    @abstractmethod
    def range_query(self, expr: str, lookback: timedelta, step: timedelta) -> RangeQueryResult:
        """Run a range query covering the last ``lookback`` at ``step`` resolution.

        Raises:
            QueryError: on any backend failure
        """
