"""Factory for ErrorDetail instances with automatic context capture."""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Any
from uuid import UUID, uuid4

from services.libs.gateway_service_libs.error_handling.error_models import ErrorCode, ErrorDetail


def create_error_detail_with_context(
    error_code: ErrorCode,
    message: str,
    service: str,
    operation: str,
    correlation_id: UUID | None = None,
    details: dict[str, Any] | None = None,
) -> ErrorDetail:
    """
    Create an ErrorDetail, generating a correlation ID when the caller has none.

    Args:
        error_code: Error classification
        message: Human-readable summary
        service: Service raising the error
        operation: Operation that failed
        correlation_id: Correlation ID of the inbound call
        details: Additional structured context

    Returns:
        A frozen ErrorDetail
    """
    return ErrorDetail(
        error_code=error_code,
        message=message,
        correlation_id=correlation_id or uuid4(),
        timestamp=datetime.now(timezone.utc),
        service=service,
        operation=operation,
        details=details or {},
    )
