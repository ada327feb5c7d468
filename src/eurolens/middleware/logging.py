"""Structured logging configuration with structlog."""

import logging

import structlog

from eurolens.config import Settings

# Third-party loggers that log every upstream request at INFO
_NOISY_LOGGERS = ("httpx", "httpcore", "openai")


def _service_context(settings: Settings) -> structlog.types.Processor:
    def add_service(_logger: object, _method: str, event_dict: dict) -> dict:
        event_dict.setdefault("service", "eurolens-api")
        event_dict.setdefault("env", settings.environment)
        return event_dict

    return add_service


def setup_logging(settings: Settings) -> None:
    """Configure structlog for JSON (deployed) or console (local) output.

    Every event carries the service name and environment so EuroLens lines can
    be told apart in a shared log sink.
    """
    renderer: structlog.types.Processor
    if settings.log_format == "json":
        renderer = structlog.processors.JSONRenderer()
    else:
        renderer = structlog.dev.ConsoleRenderer()

    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.stdlib.add_log_level,
            structlog.stdlib.add_logger_name,
            _service_context(settings),
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            structlog.processors.UnicodeDecoder(),
            renderer,
        ],
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )

    level = getattr(logging, settings.log_level.upper(), logging.INFO)
    logging.basicConfig(level=level)
    for name in _NOISY_LOGGERS:
        logging.getLogger(name).setLevel(max(level, logging.WARNING))
