"""
Prometheus query backend.

Implements the ``QueryBackend`` interface on top of the Prometheus HTTP
API. A ``FailoverGroup`` wraps one or more servers holding the same data
and moves on to the next server only when the current one can't be
reached.
"""

from __future__ import annotations

from datetime import datetime, timedelta, timezone
from typing import Any, Callable

import httpx
import structlog
from tenacity import (
    retry,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)

from seriesguard.backend import (
    InstantQueryResult,
    InstantSeries,
    QueryBackend,
    QueryError,
    QueryTooExpensiveError,
    QueryUnavailableError,
    RangeQueryResult,
    RangeSeries,
    Sample,
)
from seriesguard.config.settings import Settings, get_settings

logger = structlog.get_logger()

DEFAULT_USER_AGENT = "seriesguard/0.1.0"

_TOO_EXPENSIVE_HINTS = (
    "query processing would load too many samples",
    "exceeded maximum resolution",
    "the query hit the max number of series limit",
    "limit exceeded",
)


class RetryableHTTPError(Exception):
    """HTTP errors that should be retried."""


def is_retryable_status(status_code: int) -> bool:
    """Determine if HTTP status code is retryable."""
    return status_code in (408, 429, 500, 502, 503, 504)


def _utc(ts: Any) -> datetime:
    return datetime.fromtimestamp(float(ts), tz=timezone.utc)


class PrometheusServer:
    """A single Prometheus-compatible HTTP endpoint."""

    def __init__(
        self,
        uri: str,
        *,
        timeout: float = 120.0,
        headers: dict[str, str] | None = None,
        user_agent: str = DEFAULT_USER_AGENT,
        clock: Callable[[], datetime] | None = None,
    ) -> None:
        self.uri = uri.rstrip("/")
        self._timeout = timeout
        self._headers = dict(headers or {})
        self._headers.setdefault("User-Agent", user_agent)
        self._clock = clock or (lambda: datetime.now(timezone.utc))

    def query(self, expr: str) -> InstantQueryResult:
        """Execute an instant query evaluated now."""
        data = self._request("/api/v1/query", {"query": expr})
        series = []
        for item in data.get("result", []):
            value = item.get("value") or [0, "0"]
            series.append(InstantSeries(labels=item.get("metric", {}), value=float(value[1])))
        return InstantQueryResult(uri=self.uri, series=series)

    def range_query(self, expr: str, lookback: timedelta, step: timedelta) -> RangeQueryResult:
        """Execute a range query over the last ``lookback``."""
        end = self._clock()
        start = end - lookback
        data = self._request(
            "/api/v1/query_range",
            {
                "query": expr,
                "start": start.timestamp(),
                "end": end.timestamp(),
                "step": step.total_seconds(),
            },
        )
        series = []
        for item in data.get("result", []):
            samples = [Sample(timestamp=_utc(ts), value=float(v)) for ts, v in item.get("values", [])]
            series.append(RangeSeries(labels=item.get("metric", {}), samples=samples))
        return RangeQueryResult(uri=self.uri, start=start, end=end, series=series)

    def _request(self, path: str, params: dict[str, Any]) -> dict[str, Any]:
        """Execute request and return the ``data`` section of the response."""
        try:
            response = self._send(path, params)
        except RetryableHTTPError as exc:
            raise QueryUnavailableError(str(exc), uri=self.uri) from exc
        except (httpx.TimeoutException, httpx.NetworkError) as exc:
            logger.warning("prometheus_network_error", uri=self.uri, path=path, error=str(exc))
            raise QueryUnavailableError(f"connection error: {exc}", uri=self.uri) from exc

        try:
            payload = response.json()
        except ValueError as exc:
            raise QueryError(
                f"bad response (HTTP {response.status_code}): {exc}", uri=self.uri
            ) from exc

        if payload.get("status") != "success":
            error_type = payload.get("errorType", "")
            error = payload.get("error", "unknown error")
            message = f"{error_type}: {error}" if error_type else error
            if error_type == "execution" and any(h in error for h in _TOO_EXPENSIVE_HINTS):
                raise QueryTooExpensiveError(message, uri=self.uri)
            if error_type == "unavailable":
                raise QueryUnavailableError(message, uri=self.uri)
            raise QueryError(message, uri=self.uri, details={"status": response.status_code})

        return payload.get("data") or {}

    @retry(
        retry=retry_if_exception_type(RetryableHTTPError),
        stop=stop_after_attempt(3),
        wait=wait_exponential(multiplier=0.5, min=0.5, max=5),
        reraise=True,
    )
    def _send(self, path: str, params: dict[str, Any]) -> httpx.Response:
        url = f"{self.uri}{path}"
        with httpx.Client(timeout=self._timeout, headers=self._headers) as client:
            response = client.post(url, data=params)

        if is_retryable_status(response.status_code):
            logger.warning("prometheus_retryable_error", status=response.status_code, url=url)
            raise RetryableHTTPError(f"HTTP {response.status_code}: {response.text}")
        return response


class FailoverGroup(QueryBackend):
    """A named group of servers tried in order until one responds."""

    def __init__(self, name: str, servers: list[PrometheusServer], *, required: bool = False) -> None:
        self.name = name
        self.servers = servers
        self.required = required

    @classmethod
    def from_settings(cls, settings: Settings | None = None) -> "FailoverGroup":
        """Build a failover group from application settings."""
        settings = settings or get_settings()
        servers = [
            PrometheusServer(
                uri,
                timeout=settings.prometheus_timeout,
                headers=settings.prometheus_headers,
            )
            for uri in settings.prometheus_urls
        ]
        return cls(settings.prometheus_name, servers, required=settings.prometheus_required)

    def uris(self) -> list[str]:
        return [s.uri for s in self.servers]

    def query(self, expr: str) -> InstantQueryResult:
        return self._failover(lambda server: server.query(expr), expr)

    def range_query(self, expr: str, lookback: timedelta, step: timedelta) -> RangeQueryResult:
        return self._failover(lambda server: server.range_query(expr, lookback, step), expr)

    def _failover(self, call: Callable[[PrometheusServer], Any], expr: str) -> Any:
        last_error: QueryError = QueryUnavailableError("no servers configured", required=self.required)
        for server in self.servers:
            try:
                return call(server)
            except QueryUnavailableError as exc:
                logger.debug("prometheus_failover", name=self.name, uri=server.uri, query=expr, error=str(exc))
                exc.required = self.required
                last_error = exc
            except QueryError as exc:
                exc.required = self.required
                raise
        raise last_error
