"""Tests for error types and logging setup."""

from __future__ import annotations

import logging

import structlog
from seriesguard.backend import QueryError, QueryUnavailableError
from seriesguard.config.settings import get_settings
from seriesguard.core import ConfigurationError, ProviderError, SeriesGuardError, format_error_message
from seriesguard.logging import bind_context, configure_logging


class TestErrors:
    """Tests for the error hierarchy."""

    def test_format_with_details(self):
        error = ConfigurationError("Invalid series_step setting", {"value": "often"})
        assert format_error_message(error) == "Invalid series_step setting (value=often)"

    def test_format_without_details(self):
        assert format_error_message(SeriesGuardError("boom")) == "boom"

    def test_query_errors_are_provider_errors(self):
        error = QueryUnavailableError("connection refused", uri="http://prom:9090")
        assert isinstance(error, QueryError)
        assert isinstance(error, ProviderError)
        assert error.required is False
        assert str(error) == "connection refused"


class TestLogging:
    """Tests for structlog configuration."""

    def test_configure_logging(self):
        try:
            configure_logging(logging.DEBUG, json=False)
            logger = bind_context(check="promql/series")
            logger.debug("checking_selector", selector="up")
        finally:
            structlog.reset_defaults()

    def test_configure_logging_from_settings(self, monkeypatch):
        monkeypatch.setenv("SERIESGUARD_LOG_LEVEL", "debug")
        monkeypatch.setenv("SERIESGUARD_LOG_JSON", "false")
        get_settings.cache_clear()
        try:
            configure_logging()
            renderer = structlog.get_config()["processors"][-1]
            assert isinstance(renderer, structlog.dev.ConsoleRenderer)
        finally:
            get_settings.cache_clear()
            structlog.reset_defaults()

    def test_explicit_arguments_override_settings(self, monkeypatch):
        monkeypatch.setenv("SERIESGUARD_LOG_JSON", "false")
        get_settings.cache_clear()
        try:
            configure_logging(logging.INFO, json=True)
            renderer = structlog.get_config()["processors"][-1]
            assert isinstance(renderer, structlog.processors.JSONRenderer)
        finally:
            get_settings.cache_clear()
            structlog.reset_defaults()
