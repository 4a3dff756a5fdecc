import logging
from typing import Any

import structlog

from seriesguard.config.settings import get_settings


def configure_logging(level: int | str | None = None, *, json: bool | None = None) -> None:
    """Configure structlog/standard logging bridge.

    ``level`` and ``json`` default to the ``log_level`` and ``log_json``
    settings.
    """

    settings = get_settings()
    if level is None:
        level = settings.log_level.upper()
    if json is None:
        json = settings.log_json

    timestamper = structlog.processors.TimeStamper(fmt="iso", utc=True)
    renderer: Any = structlog.processors.JSONRenderer() if json else structlog.dev.ConsoleRenderer()

    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.stdlib.filter_by_level,
            structlog.processors.add_log_level,
            timestamper,
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            renderer,
        ],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )

    logging.basicConfig(level=level, format="%(message)s")


def bind_context(**kwargs: Any) -> structlog.stdlib.BoundLogger:
    """Bind contextual fields for downstream logs."""

    logger = structlog.get_logger()
    return logger.bind(**kwargs)
