"""Logging and observability configuration using Pydantic Logfire.

All modules use Python's standard logging library (logging.getLogger(__name__));
Logfire captures and enriches these records once configured.

Standard usage:
    import logging
    logger = logging.getLogger(__name__)
    logger.info("execution_generated", extra={"care_task_id": "abc"})

Service operations are wrapped in spans:
    with span("execution_generator.generate_next_execution"):
        ...
"""

import logging

import logfire
from fastapi import FastAPI

from src.core.config import Settings


def configure_logfire(settings: Settings) -> None:
    """Configure Pydantic Logfire; records are only shipped when a token is present."""
    logfire.configure(
        token=settings.logfire_token,
        service_name="careloop",
        service_version="0.1.0",
        environment=settings.environment,
        send_to_logfire="if-token-present",
    )
    logging.basicConfig(
        level=logging.DEBUG if settings.is_development else logging.INFO,
        handlers=[logfire.LogfireLoggingHandler()],
    )

    logger = logging.getLogger(__name__)
    logger.info("Logfire configured successfully")


def instrument_fastapi(app: FastAPI) -> None:
    """Add Logfire instrumentation to FastAPI application."""
    logfire.instrument_fastapi(app)
    logger = logging.getLogger(__name__)
    logger.info("FastAPI instrumentation configured")


def span(name: str) -> logfire.LogfireSpan:
    """Create a custom span for service layer functions.

    Usage:
        with span("coverage.cover_executions"):
            # Your service logic here
            pass
    """
    return logfire.span(name)


def log_with_context(
    logger: logging.Logger,
    level: str,
    message: str,
    **context: object,
) -> None:
    """Log a message with structured context fields.

    Args:
        logger: Logger instance to use
        level: Log level ("debug", "info", "warning", "error", "critical")
        message: Log message
        **context: Additional context fields (care_task_id, execution_id, user_id, etc.)
    """
    log_method = getattr(logger, level.lower())
    log_method(message, extra=context)
