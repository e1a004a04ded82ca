"""
Exception hierarchy for the document gateway.

Every failure a gateway call can produce is a GatewayError carrying an
ErrorDetail plus the raw diagnostic text (backend body or exception text).
All of them surface to the caller as a 400 plain-text response.
"""

from __future__ import annotations

from typing import ClassVar

from services.libs.gateway_service_libs.error_handling.error_models import ErrorCode, ErrorDetail

GENERIC_BACKEND_MESSAGE = "ERROR: Backend request failed. Check the logs for details."


class GatewayError(Exception):
    """Base exception for all gateway failures."""

    failure_kind: ClassVar[str] = "error"
    status_code: ClassVar[int] = 400

    def __init__(self, error_detail: ErrorDetail, diagnostic: str | None = None) -> None:
        super().__init__(error_detail.message)
        self.error_detail = error_detail
        self.diagnostic = diagnostic if diagnostic is not None else error_detail.message

    @property
    def correlation_id(self) -> str:
        return str(self.error_detail.correlation_id)

    @property
    def error_code(self) -> str:
        return self.error_detail.error_code.value

    @property
    def service(self) -> str:
        return self.error_detail.service

    @property
    def operation(self) -> str:
        return self.error_detail.operation

    def caller_body(self, expose_diagnostics: bool = True) -> str:
        """Text returned to the caller for this failure."""
        if expose_diagnostics:
            return self.diagnostic
        return GENERIC_BACKEND_MESSAGE

    def __str__(self) -> str:
        return f"[{self.error_code}] {self.error_detail.message}"

    def __repr__(self) -> str:
        return (
            f"{type(self).__name__}(error_code={self.error_code!r}, "
            f"operation={self.operation!r}, correlation_id={self.correlation_id!r})"
        )


class UnknownOperation(GatewayError):
    """Operation identifier outside the recognized set."""

    failure_kind = "unknown_operation"

    def caller_body(self, expose_diagnostics: bool = True) -> str:
        # Names only what the caller sent, never backend text.
        return self.diagnostic


class InvalidRequest(GatewayError):
    """Inbound request cannot be turned into a backend request."""

    failure_kind = "invalid_request"

    def caller_body(self, expose_diagnostics: bool = True) -> str:
        return self.diagnostic


class AuthFailure(GatewayError):
    """Login against the backend failed: rejection, transport error, bad credentials."""

    failure_kind = "auth_failure"
    summary = "ERROR: Failed to get sessionId."

    def caller_body(self, expose_diagnostics: bool = True) -> str:
        if expose_diagnostics:
            return f"{self.summary}\n{self.diagnostic}"
        return f"{self.summary} Check the logs for details."


class UnrecognizedHost(AuthFailure):
    """No credential is configured for the target backend host."""

    failure_kind = "unrecognized_host"


class BackendLogicalFailure(GatewayError):
    """HTTP success (or well-formed error envelope) whose responseStatus is not SUCCESS/WARNING."""

    failure_kind = "backend_logical_failure"


class TransportFailure(GatewayError):
    """Non-2xx status or network exception on a backend call."""

    failure_kind = "transport_failure"


class CallCancelled(GatewayError):
    """The inbound call was cancelled while backend calls were in flight."""

    failure_kind = "cancelled"

    def caller_body(self, expose_diagnostics: bool = True) -> str:
        return self.diagnostic


ERROR_CLASSES: dict[ErrorCode, type[GatewayError]] = {
    ErrorCode.UNKNOWN_OPERATION: UnknownOperation,
    ErrorCode.INVALID_REQUEST: InvalidRequest,
    ErrorCode.AUTHENTICATION_ERROR: AuthFailure,
    ErrorCode.UNRECOGNIZED_HOST: UnrecognizedHost,
    ErrorCode.BACKEND_LOGICAL_FAILURE: BackendLogicalFailure,
    ErrorCode.TRANSPORT_FAILURE: TransportFailure,
    ErrorCode.CANCELLED: CallCancelled,
}
