"""
Structlog setup shared by the gateway service and its tests.

Log lines go to stdout, rendered for the console in development and as JSON
in production. Per-call context (correlation ID, operation, backend host) is
carried in contextvars so concurrent calls never mix their fields.
"""

from __future__ import annotations

import logging
import os
import sys
from typing import Any

import structlog
from structlog.contextvars import bind_contextvars, clear_contextvars, merge_contextvars
from structlog.typing import Processor


def add_service_context(
    logger: Any, method_name: str, event_dict: dict[str, Any]
) -> dict[str, Any]:
    """Stamp every event with service.name and deployment.environment from the env."""
    event_dict["service.name"] = os.getenv("SERVICE_NAME", "unknown")
    event_dict["deployment.environment"] = os.getenv("ENVIRONMENT", "development")
    return event_dict


def configure_service_logging(
    service_name: str,
    environment: str | None = None,
    log_level: str = "INFO",
) -> None:
    """
    Configure structlog for a gateway service.

    Args:
        service_name: Name of the service (e.g., "document-gateway-service")
        environment: Environment name (defaults to ENVIRONMENT env var)
        log_level: Logging level (defaults to "INFO")

    Environment Variables:
        LOG_FORMAT: "json" forces JSON output, "console" forces the console renderer;
            unset picks JSON in production only
    """
    if environment is None:
        environment = os.getenv("ENVIRONMENT", "development")

    os.environ.setdefault("SERVICE_NAME", service_name)
    os.environ.setdefault("ENVIRONMENT", environment)

    log_format = os.getenv("LOG_FORMAT", "").lower()
    use_json = log_format == "json" or (not log_format and environment == "production")

    shared_processors: list[Processor] = [
        merge_contextvars,
        add_service_context,
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.add_log_level,
        structlog.processors.CallsiteParameterAdder(
            parameters=[
                structlog.processors.CallsiteParameter.FILENAME,
                structlog.processors.CallsiteParameter.FUNC_NAME,
                structlog.processors.CallsiteParameter.LINENO,
            ],
        ),
    ]

    if use_json:
        # JSON output for log aggregation (containers, production)
        processors: list[Processor] = [
            *shared_processors,
            structlog.processors.format_exc_info,
            structlog.processors.JSONRenderer(),
        ]
    else:
        # Human-readable console output (local development, tests)
        processors = [
            *shared_processors,
            structlog.dev.set_exc_info,
            structlog.dev.ConsoleRenderer(colors=True),
        ]

    logging.basicConfig(
        format="%(message)s",
        handlers=[logging.StreamHandler(sys.stdout)],
        level=getattr(logging, log_level.upper()),
        force=True,
    )

    structlog.configure(
        processors=processors,
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )


def create_service_logger(name: str | None = None) -> Any:
    """Structlog logger for one gateway component, tagged with logger_name."""
    logger = structlog.get_logger()
    return logger.bind(logger_name=name) if name else logger


def bind_call_context(correlation_id: str, **call_context: Any) -> None:
    """
    Bind the context of one inbound call to every log line emitted while it runs.

    Contextvars are task-local, so concurrent calls never see each other's context.

    Args:
        correlation_id: Correlation ID of the inbound call
        **call_context: Additional fields (operation, backend host, ...)
    """
    clear_contextvars()
    bind_contextvars(correlation_id=correlation_id, **call_context)


def clear_call_context() -> None:
    """Drop any call context bound by bind_call_context."""
    clear_contextvars()


def redact_secret(value: str | None, visible: int = 4) -> str:
    """Render a secret (session token, password) safely for log output."""
    if not value:
        return "<empty>"
    if len(value) <= visible:
        return "*" * len(value)
    return f"{value[:visible]}...({len(value)} chars)"
