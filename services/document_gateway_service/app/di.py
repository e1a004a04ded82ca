"""Dependency Injection providers for Document Gateway Service.

APP-scoped providers hold the settings, the httpx connection pool and the
stateless core components; REQUEST-scoped providers expose per-call context.
"""

from __future__ import annotations

from collections.abc import AsyncIterator
from uuid import UUID, uuid4

import httpx
from dishka import Provider, Scope, from_context, provide
from fastapi import Request
from prometheus_client import REGISTRY, CollectorRegistry

from services.document_gateway_service.app.metrics import GatewayMetrics
from services.document_gateway_service.config import Settings, settings
from services.document_gateway_service.core.operation_dispatcher import OperationDispatcher
from services.document_gateway_service.core.paginated_fetcher import PaginatedFetcher
from services.document_gateway_service.core.policy import CredentialSource, GatewayPolicy
from services.document_gateway_service.core.session_authenticator import SessionAuthenticator
from services.document_gateway_service.implementations.credential_providers import (
    HeaderCredentialProvider,
    HostTableCredentialProvider,
    MappingSecretProvider,
)
from services.document_gateway_service.implementations.http_client import (
    DocumentGatewayHttpClient,
)
from services.document_gateway_service.protocols import (
    CredentialProviderProtocol,
    HttpClientProtocol,
    MetricsProtocol,
    SecretProviderProtocol,
)


class DocumentGatewayProvider(Provider):
    scope = Scope.APP

    @provide
    def get_config(self) -> Settings:
        return settings

    @provide
    def get_policy(self, config: Settings) -> GatewayPolicy:
        return config.policy()

    @provide(scope=Scope.APP)
    async def get_http_client(self, config: Settings) -> AsyncIterator[HttpClientProtocol]:
        async with httpx.AsyncClient(
            timeout=httpx.Timeout(
                config.HTTP_CLIENT_TIMEOUT_SECONDS,
                connect=config.HTTP_CLIENT_CONNECT_TIMEOUT_SECONDS,
            )
        ) as httpx_client:
            yield DocumentGatewayHttpClient(httpx_client)

    @provide
    def get_secret_provider(self, config: Settings) -> SecretProviderProtocol:
        return MappingSecretProvider(config.BACKEND_CREDENTIALS)

    @provide
    def get_credential_provider(
        self, policy: GatewayPolicy, secret_provider: SecretProviderProtocol
    ) -> CredentialProviderProtocol:
        if policy.credential_source == CredentialSource.HOST_TABLE:
            return HostTableCredentialProvider(secret_provider)
        return HeaderCredentialProvider()

    @provide
    def get_authenticator(
        self, http_client: HttpClientProtocol, policy: GatewayPolicy, metrics: MetricsProtocol
    ) -> SessionAuthenticator:
        return SessionAuthenticator(http_client, policy, metrics)

    @provide
    def get_fetcher(
        self, http_client: HttpClientProtocol, policy: GatewayPolicy, metrics: MetricsProtocol
    ) -> PaginatedFetcher:
        return PaginatedFetcher(http_client, policy, metrics)

    @provide
    def get_dispatcher(
        self,
        authenticator: SessionAuthenticator,
        fetcher: PaginatedFetcher,
        credential_provider: CredentialProviderProtocol,
        policy: GatewayPolicy,
        metrics: MetricsProtocol,
    ) -> OperationDispatcher:
        return OperationDispatcher(authenticator, fetcher, credential_provider, policy, metrics)

    @provide(scope=Scope.APP)
    def provide_metrics(self, registry: CollectorRegistry) -> MetricsProtocol:
        return GatewayMetrics(registry)

    @provide(scope=Scope.APP)
    def provide_registry(self) -> CollectorRegistry:
        return REGISTRY


class RequestContextProvider(Provider):
    """Request-scoped provider for correlation context."""

    request = from_context(provides=Request, scope=Scope.REQUEST)

    @provide(scope=Scope.REQUEST)
    def provide_correlation_id(self, request: Request) -> UUID:
        """Provide correlation ID from request state (set by CorrelationIDMiddleware)."""
        return getattr(request.state, "correlation_id", uuid4())
