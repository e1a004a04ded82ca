"""
Factory functions that build an ErrorDetail and raise the matching GatewayError.

Call sites stay one statement long and always record service, operation and
correlation ID the same way.
"""

from __future__ import annotations

from typing import Any, NoReturn
from uuid import UUID

from services.libs.gateway_service_libs.error_handling.error_detail_factory import (
    create_error_detail_with_context,
)
from services.libs.gateway_service_libs.error_handling.error_models import ErrorCode
from services.libs.gateway_service_libs.error_handling.gateway_error import ERROR_CLASSES


def _raise(
    error_code: ErrorCode,
    service: str,
    operation: str,
    message: str,
    correlation_id: UUID | None,
    diagnostic: str | None,
    details: dict[str, Any],
) -> NoReturn:
    error_detail = create_error_detail_with_context(
        error_code=error_code,
        message=message,
        service=service,
        operation=operation,
        correlation_id=correlation_id,
        details=details,
    )
    raise ERROR_CLASSES[error_code](error_detail, diagnostic)


def raise_unknown_operation(
    service: str,
    operation: str,
    operation_id: str,
    correlation_id: UUID | None = None,
) -> NoReturn:
    message = f"Unknown operation ID: {operation_id}"
    _raise(
        ErrorCode.UNKNOWN_OPERATION,
        service,
        operation,
        message,
        correlation_id,
        message,
        {"operation_id": operation_id},
    )


def raise_invalid_request(
    service: str,
    operation: str,
    message: str,
    correlation_id: UUID | None = None,
    **additional_context: Any,
) -> NoReturn:
    _raise(
        ErrorCode.INVALID_REQUEST,
        service,
        operation,
        message,
        correlation_id,
        message,
        additional_context,
    )


def raise_authentication_error(
    service: str,
    operation: str,
    message: str,
    correlation_id: UUID | None = None,
    diagnostic: str | None = None,
    **additional_context: Any,
) -> NoReturn:
    _raise(
        ErrorCode.AUTHENTICATION_ERROR,
        service,
        operation,
        message,
        correlation_id,
        diagnostic,
        additional_context,
    )


def raise_unrecognized_host(
    service: str,
    operation: str,
    host: str,
    correlation_id: UUID | None = None,
) -> NoReturn:
    message = f"No credentials configured for backend host: {host}"
    _raise(
        ErrorCode.UNRECOGNIZED_HOST,
        service,
        operation,
        message,
        correlation_id,
        message,
        {"host": host},
    )


def raise_backend_logical_failure(
    service: str,
    operation: str,
    body: str,
    correlation_id: UUID | None = None,
    response_status: str | None = None,
    **additional_context: Any,
) -> NoReturn:
    _raise(
        ErrorCode.BACKEND_LOGICAL_FAILURE,
        service,
        operation,
        f"Backend reported responseStatus={response_status or '<missing>'}",
        correlation_id,
        body,
        {"response_status": response_status, **additional_context},
    )


def raise_transport_failure(
    service: str,
    operation: str,
    diagnostic: str,
    correlation_id: UUID | None = None,
    status_code: int | None = None,
    **additional_context: Any,
) -> NoReturn:
    if status_code is None:
        message = "Backend call failed before a response was received"
    else:
        message = f"Backend call returned HTTP {status_code}"
    _raise(
        ErrorCode.TRANSPORT_FAILURE,
        service,
        operation,
        message,
        correlation_id,
        diagnostic,
        {"status_code": status_code, **additional_context},
    )


def raise_call_cancelled(
    service: str,
    operation: str,
    correlation_id: UUID | None = None,
) -> NoReturn:
    message = "Request cancelled before the backend call completed"
    _raise(
        ErrorCode.CANCELLED,
        service,
        operation,
        message,
        correlation_id,
        message,
        {},
    )
