"""
Shared fixtures for Document Gateway Service tests.

Core components are built directly on a real httpx.AsyncClient so respx can
intercept the backend; every test gets its own Prometheus registry.
"""

from __future__ import annotations

from collections.abc import AsyncIterator

import httpx
import pytest
from prometheus_client import CollectorRegistry

from services.document_gateway_service.app.metrics import GatewayMetrics
from services.document_gateway_service.core.models import BackendRequest
from services.document_gateway_service.core.operation_dispatcher import OperationDispatcher
from services.document_gateway_service.core.paginated_fetcher import PaginatedFetcher
from services.document_gateway_service.core.policy import GatewayPolicy
from services.document_gateway_service.core.session_authenticator import SessionAuthenticator
from services.document_gateway_service.implementations.credential_providers import (
    HeaderCredentialProvider,
)
from services.document_gateway_service.implementations.http_client import (
    DocumentGatewayHttpClient,
)
from services.document_gateway_service.tests.backend_fixtures import BASE_URL


@pytest.fixture
def registry() -> CollectorRegistry:
    return CollectorRegistry()


@pytest.fixture
def metrics(registry: CollectorRegistry) -> GatewayMetrics:
    return GatewayMetrics(registry=registry)


@pytest.fixture
def policy() -> GatewayPolicy:
    return GatewayPolicy()


@pytest.fixture
async def http_client() -> AsyncIterator[DocumentGatewayHttpClient]:
    async with httpx.AsyncClient() as client:
        yield DocumentGatewayHttpClient(client)


@pytest.fixture
def authenticator(
    http_client: DocumentGatewayHttpClient, policy: GatewayPolicy, metrics: GatewayMetrics
) -> SessionAuthenticator:
    return SessionAuthenticator(http_client, policy, metrics)


@pytest.fixture
def fetcher(
    http_client: DocumentGatewayHttpClient, policy: GatewayPolicy, metrics: GatewayMetrics
) -> PaginatedFetcher:
    return PaginatedFetcher(http_client, policy, metrics)


@pytest.fixture
def dispatcher(
    authenticator: SessionAuthenticator,
    fetcher: PaginatedFetcher,
    policy: GatewayPolicy,
    metrics: GatewayMetrics,
) -> OperationDispatcher:
    return OperationDispatcher(
        authenticator, fetcher, HeaderCredentialProvider(), policy, metrics
    )


@pytest.fixture
def credential_headers() -> dict[str, str]:
    return {"un": "jdoe@example.com", "pw": "s3cret!"}


@pytest.fixture
def make_request(credential_headers: dict[str, str]):
    """Factory for inbound backend requests carrying the credential headers."""

    def _make(
        path: str,
        method: str = "GET",
        body: bytes | None = None,
        headers: dict[str, str] | None = None,
        with_credentials: bool = True,
    ) -> BackendRequest:
        all_headers = dict(credential_headers) if with_credentials else {}
        all_headers.update(headers or {})
        return BackendRequest.create(
            method=method, url=f"{BASE_URL}{path}", headers=all_headers, body=body
        )

    return _make
