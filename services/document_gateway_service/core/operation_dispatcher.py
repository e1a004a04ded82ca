"""
Operation Dispatcher: one inbound call in, one GatewayResponse out.

Classifies the call by operation identifier, resolves credentials, logs in,
prepares the backend request and hands it to the fetcher. Every gateway
failure is converted into the uniform 400 plain-text response here, so
callers of dispatch() only ever see a GatewayResponse or a cancellation.
"""

from __future__ import annotations

import time
from uuid import UUID, uuid4

from services.document_gateway_service.core.models import (
    CREDENTIAL_HEADERS,
    BackendRequest,
    GatewayResponse,
    SessionToken,
)
from services.document_gateway_service.core.operations import OperationDefinition, resolve_operation
from services.document_gateway_service.core.paginated_fetcher import PaginatedFetcher
from services.document_gateway_service.core.policy import GatewayPolicy
from services.document_gateway_service.core.session_authenticator import SessionAuthenticator
from services.document_gateway_service.protocols import (
    CredentialProviderProtocol,
    MetricsProtocol,
)
from services.libs.gateway_service_libs.error_handling import GatewayError, raise_unknown_operation
from services.libs.gateway_service_libs.error_handling.fastapi import FAILURE_HEADER
from services.libs.gateway_service_libs.logging_utils import create_service_logger

logger = create_service_logger("document_gateway.operation_dispatcher")

SERVICE_NAME = "document_gateway_service"


class OperationDispatcher:
    """Routes a classified call through authentication and the matching handler."""

    def __init__(
        self,
        authenticator: SessionAuthenticator,
        fetcher: PaginatedFetcher,
        credential_provider: CredentialProviderProtocol,
        policy: GatewayPolicy,
        metrics: MetricsProtocol,
    ) -> None:
        self._authenticator = authenticator
        self._fetcher = fetcher
        self._credential_provider = credential_provider
        self._policy = policy
        self._metrics = metrics

    async def dispatch(
        self,
        operation_id: str,
        request: BackendRequest,
        correlation_id: UUID | None = None,
    ) -> GatewayResponse:
        """
        Execute one gateway call.

        Args:
            operation_id: Declared operation name of the inbound call
            request: Backend request built from the inbound call, owned by this call
            correlation_id: Correlation ID of the inbound call

        Returns:
            200 merged JSON, the relayed download, or a 400 plain-text failure
        """
        correlation_id = correlation_id or uuid4()
        start = time.monotonic()
        logger.info(
            f"Action started: {operation_id}",
            operation=operation_id,
            host=request.host,
            method=request.method,
        )

        outcome = "success"
        operation = resolve_operation(operation_id)
        try:
            if operation is None:
                raise_unknown_operation(
                    service=SERVICE_NAME,
                    operation="dispatch",
                    operation_id=operation_id,
                    correlation_id=correlation_id,
                )
            response = await self._execute(operation, request, correlation_id)
        except GatewayError as error:
            outcome = error.failure_kind
            response = self._failure_response(error)

        duration = time.monotonic() - start
        metric_operation = operation.name if operation is not None else "unknown"
        self._metrics.operations_total.labels(operation=metric_operation, outcome=outcome).inc()
        self._metrics.operation_duration_seconds.labels(operation=metric_operation).observe(
            duration
        )
        logger.info(
            f"Action finished: {operation_id}",
            operation=operation_id,
            host=request.host,
            status_code=response.status_code,
            outcome=outcome,
            duration_ms=round(duration * 1000, 2),
        )
        return response

    async def _execute(
        self, operation: OperationDefinition, request: BackendRequest, correlation_id: UUID
    ) -> GatewayResponse:
        try:
            credentials = (
                await self._credential_provider.resolve(request, correlation_id)
                if operation.requires_auth
                else None
            )
        finally:
            request.strip_headers(*CREDENTIAL_HEADERS)

        token = SessionToken("")
        if credentials is not None:
            token = await self._authenticator.authenticate(
                request.authority, credentials, correlation_id
            )

        self._fetcher.prepare(request, token, operation, correlation_id)
        if not operation.paginated:
            return await self._fetcher.download(request, token, operation, correlation_id)

        merged = await self._fetcher.fetch(request, token, operation, correlation_id)
        return GatewayResponse.json(merged.to_document())

    def _failure_response(self, error: GatewayError) -> GatewayResponse:
        logger.error(
            f"{error.operation} failed: {error}",
            failure_kind=error.failure_kind,
            diagnostic=error.diagnostic,
        )
        return GatewayResponse.text(
            error.caller_body(self._policy.expose_backend_diagnostics),
            status_code=error.status_code,
            headers={FAILURE_HEADER: error.failure_kind},
        )
