"""Logging and observability configuration using Pydantic Logfire.

This module provides standardized logging utilities and configuration.
All modules should use Python's standard logging library (logging.getLogger(__name__)),
and Logfire will automatically capture and enrich these logs.

Standard usage:
    import logging
    logger = logging.getLogger(__name__)
    logger.info("Message", extra={"key": "value"})

Structured logging utilities:
    log_with_context(logger, "info", "Message", goal_id="123", today="2024-01-01")
"""

import logging

import logfire

from habitflow.core.config import settings


def configure_logfire() -> None:
    """Configure Pydantic Logfire with token from environment.

    Logs are only shipped when a token is present; without one Logfire still
    provides spans locally.
    """
    logfire.configure(
        token=settings.logfire_token,
        service_name="habitflow",
        service_version="0.1.0",
        environment=settings.environment,
        send_to_logfire="if-token-present",
    )

    logger = logging.getLogger(__name__)
    logger.info("Logfire configured successfully")


def span(name: str) -> logfire.LogfireSpan:
    """Create a custom span for service layer functions.

    Usage:
        with span("toggle_service.recompute_after_task_toggle"):
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
        **context: Additional context fields (goal_id, task_id, today, etc.)

    Usage:
        log_with_context(logger, "info", "Streak broken", goal_id="123", day="2024-01-02")
    """
    log_method = getattr(logger, level.lower())
    log_method(message, extra=context)


def log_with_goal_context(
    logger: logging.Logger,
    level: str,
    message: str,
    goal_id: str | None = None,
    **extra: object,
) -> None:
    """Log a message with goal context.

    Args:
        logger: Logger instance to use
        level: Log level ("debug", "info", "warning", "error", "critical")
        message: Log message
        goal_id: Goal ID to include in context
        **extra: Additional context fields

    Usage:
        log_with_goal_context(logger, "info", "Day credited", goal_id="123", current=4)
    """
    context = {"goal_id": goal_id, **extra} if goal_id else extra
    log_with_context(logger, level, message, **context)
