"""
Protocols for Document Gateway Service.

Defines the interfaces used for dependency injection. The core components
depend on these protocols, not on concrete implementations.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Protocol
from uuid import UUID

import httpx
from prometheus_client import Counter, Histogram

if TYPE_CHECKING:
    from services.document_gateway_service.core.models import (
        BackendCredentials,
        BackendRequest,
    )


class HttpClientProtocol(Protocol):
    """Protocol for the outbound HTTP client."""

    async def send(self, request: httpx.Request) -> httpx.Response:
        """Send a prepared request and return the fully read response.

        Cancelling the awaiting task aborts the in-flight call.
        """
        ...


class MetricsProtocol(Protocol):
    """Protocol for metrics collection matching GatewayMetrics exactly."""

    @property
    def operations_total(self) -> Counter:
        """Gateway operations by outcome."""
        ...

    @property
    def operation_duration_seconds(self) -> Histogram:
        """Gateway operation duration histogram."""
        ...

    @property
    def backend_calls_total(self) -> Counter:
        """Backend calls by step and status code."""
        ...

    @property
    def pages_fetched(self) -> Histogram:
        """Pages fetched per paginated operation."""
        ...


class SecretProviderProtocol(Protocol):
    """Protocol for looking up static backend credentials by host."""

    async def get_credentials(self, host: str) -> BackendCredentials | None:
        """Return the credentials for host, or None when the host is unknown."""
        ...


class CredentialProviderProtocol(Protocol):
    """Protocol for resolving login credentials for one inbound call."""

    async def resolve(
        self, request: BackendRequest, correlation_id: UUID | None = None
    ) -> BackendCredentials:
        """Resolve credentials for the request's backend host.

        Raises:
            AuthFailure: credentials are missing
            UnrecognizedHost: no credentials exist for the target host
        """
        ...
