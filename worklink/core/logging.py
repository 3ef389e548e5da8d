"""Logging and observability configuration using Pydantic Logfire.

All modules should use Python's standard logging library (logging.getLogger(__name__)),
and Logfire will capture and enrich these logs once configured.

Standard usage:
    import logging
    logger = logging.getLogger(__name__)
    logger.info("Message", extra={"key": "value"})

Structured logging utilities:
    log_task_event(logger, "Task assigned", task_id="t1", actor_id="p1", worker_id="w1")
"""

import logging

import logfire

from worklink import __version__
from worklink.core.config import settings


def configure_logfire() -> None:
    """Configure Pydantic Logfire with token from environment.

    Standard logging records are forwarded to Logfire through its logging handler.
    """
    logfire.configure(
        token=settings.logfire_token,
        service_name="worklink",
        service_version=__version__,
        environment=settings.environment,
        send_to_logfire="if-token-present",
    )
    logging.basicConfig(handlers=[logfire.LogfireLoggingHandler()], level=logging.INFO)

    logger = logging.getLogger(__name__)
    logger.info("Logfire configured successfully")


def instrument_pydantic_ai() -> None:
    """Enable tracing of the task extraction agent runs."""
    logfire.instrument_pydantic_ai()
    logger = logging.getLogger(__name__)
    logger.info("Pydantic AI instrumentation configured")


def span(name: str, **attributes: object) -> logfire.LogfireSpan:
    """Create a custom span for service layer functions.

    Usage:
        with span("task_service.apply_to_task", task_id=task_id):
            ...
    """
    return logfire.span(name, **attributes)


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
        **context: Additional context fields (task_id, worker_id, operation_type, etc.)
    """
    log_method = getattr(logger, level.lower())
    log_method(message, extra=context)


def log_task_event(
    logger: logging.Logger,
    message: str,
    *,
    task_id: str,
    actor_id: str | None = None,
    level: str = "info",
    **extra: object,
) -> None:
    """Log a lifecycle event on a task, tagged with the acting user when known.

    Usage:
        log_task_event(logger, "Applied to task", task_id="t1", actor_id="w1")
    """
    context = {"task_id": task_id, **extra}
    if actor_id:
        context["actor_id"] = actor_id
    log_with_context(logger, level, message, **context)
