"""
Session Authenticator: exchanges credentials for a backend session token.

One login per inbound call, never retried and never cached. Every failure
(transport error, non-2xx, unparseable body, non SUCCESS/WARNING status) is
raised as AuthFailure carrying the raw diagnostic text.
"""

from __future__ import annotations

from uuid import UUID

import httpx

from services.document_gateway_service.core.models import (
    BackendCredentials,
    BackendEnvelope,
    SessionToken,
)
from services.document_gateway_service.core.policy import GatewayPolicy
from services.document_gateway_service.core.status import is_success_status
from services.document_gateway_service.protocols import HttpClientProtocol, MetricsProtocol
from services.libs.gateway_service_libs.error_handling import raise_authentication_error
from services.libs.gateway_service_libs.logging_utils import (
    create_service_logger,
    redact_secret,
)

logger = create_service_logger("document_gateway.session_authenticator")

SERVICE_NAME = "document_gateway_service"
OPERATION = "authenticate"


class SessionAuthenticator:
    """Performs the login exchange against the backend auth endpoint."""

    def __init__(
        self,
        http_client: HttpClientProtocol,
        policy: GatewayPolicy,
        metrics: MetricsProtocol,
    ) -> None:
        self._http_client = http_client
        self._policy = policy
        self._metrics = metrics

    def build_auth_request(self, host: str, credentials: BackendCredentials) -> httpx.Request:
        return httpx.Request(
            "POST",
            self._policy.auth_url(host),
            headers={"Accept": "application/json"},
            data={
                "username": credentials.username,
                "password": credentials.password.get_secret_value(),
            },
        )

    async def authenticate(
        self,
        host: str,
        credentials: BackendCredentials,
        correlation_id: UUID | None = None,
    ) -> SessionToken:
        """
        Obtain a session token for host.

        Args:
            host: Backend host (authority) to log in against
            credentials: Username and password for the login form
            correlation_id: Correlation ID of the inbound call

        Returns:
            The session ID (empty string when the backend omits it)

        Raises:
            AuthFailure: On any transport or logical login failure
        """
        logger.info(f"Getting sessionId from host '{host}'")
        request = self.build_auth_request(host, credentials)

        try:
            response = await self._http_client.send(request)
        except httpx.HTTPError as e:
            self._metrics.backend_calls_total.labels(step="auth", status_code="error").inc()
            diagnostic = f"{type(e).__name__}: {e}"
            logger.error(f"Login transport error for host '{host}': {diagnostic}")
            raise_authentication_error(
                service=SERVICE_NAME,
                operation=OPERATION,
                message=f"Login request to {host} failed",
                correlation_id=correlation_id,
                diagnostic=diagnostic,
                host=host,
            )

        self._metrics.backend_calls_total.labels(
            step="auth", status_code=str(response.status_code)
        ).inc()
        body = response.text

        if not response.is_success:
            logger.error(
                f"Login returned HTTP {response.status_code} for host '{host}'",
                diagnostic=body,
            )
            raise_authentication_error(
                service=SERVICE_NAME,
                operation=OPERATION,
                message=f"Login request to {host} returned HTTP {response.status_code}",
                correlation_id=correlation_id,
                diagnostic=body or f"HTTP {response.status_code}",
                host=host,
                status_code=response.status_code,
            )

        try:
            envelope = BackendEnvelope.parse(body)
        except ValueError as e:
            logger.error(f"Login response from '{host}' is not a JSON envelope: {e}")
            raise_authentication_error(
                service=SERVICE_NAME,
                operation=OPERATION,
                message=f"Login response from {host} could not be parsed",
                correlation_id=correlation_id,
                diagnostic=body,
                host=host,
            )

        logger.info(f"GetSessionId responseStatus: {envelope.response_status}")
        # Login success is always read from responseStatus, whatever the page check policy.
        if not is_success_status(envelope.response_status):
            logger.error(f"Login rejected by host '{host}'", diagnostic=body)
            raise_authentication_error(
                service=SERVICE_NAME,
                operation=OPERATION,
                message=f"Login rejected by {host}",
                correlation_id=correlation_id,
                diagnostic=body,
                host=host,
                response_status=envelope.response_status,
            )

        token = SessionToken(envelope.session_id or "")
        logger.info(f"Got sessionId: {redact_secret(token)}")
        return token
