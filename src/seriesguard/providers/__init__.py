"""Query backend providers."""

from seriesguard.providers.prometheus import (
    DEFAULT_USER_AGENT,
    FailoverGroup,
    PrometheusServer,
)

__all__ = ["DEFAULT_USER_AGENT", "FailoverGroup", "PrometheusServer"]
