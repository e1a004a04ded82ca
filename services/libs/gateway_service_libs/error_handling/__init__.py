"""Error handling utilities for gateway services."""

from services.libs.gateway_service_libs.error_handling.error_models import ErrorCode, ErrorDetail
from services.libs.gateway_service_libs.error_handling.factories import (
    raise_authentication_error,
    raise_backend_logical_failure,
    raise_call_cancelled,
    raise_invalid_request,
    raise_transport_failure,
    raise_unknown_operation,
    raise_unrecognized_host,
)
from services.libs.gateway_service_libs.error_handling.gateway_error import (
    AuthFailure,
    BackendLogicalFailure,
    CallCancelled,
    GatewayError,
    InvalidRequest,
    TransportFailure,
    UnknownOperation,
    UnrecognizedHost,
)

__all__ = [
    "AuthFailure",
    "BackendLogicalFailure",
    "CallCancelled",
    "ErrorCode",
    "ErrorDetail",
    "GatewayError",
    "InvalidRequest",
    "TransportFailure",
    "UnknownOperation",
    "UnrecognizedHost",
    "raise_authentication_error",
    "raise_backend_logical_failure",
    "raise_call_cancelled",
    "raise_invalid_request",
    "raise_transport_failure",
    "raise_unknown_operation",
    "raise_unrecognized_host",
]
