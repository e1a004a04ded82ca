"""Credential resolution for the backend login exchange.

Two sources are supported: the ``un``/``pw`` headers of the inbound request,
or a table of static credentials keyed by backend host and looked up through
a secret provider.
"""

from __future__ import annotations

from collections.abc import Mapping
from uuid import UUID

from services.document_gateway_service.core.models import (
    PASSWORD_HEADER,
    USERNAME_HEADER,
    BackendCredentials,
    BackendRequest,
)
from services.document_gateway_service.protocols import (
    CredentialProviderProtocol,
    SecretProviderProtocol,
)
from services.libs.gateway_service_libs.error_handling import (
    raise_authentication_error,
    raise_unrecognized_host,
)
from services.libs.gateway_service_libs.logging_utils import create_service_logger

logger = create_service_logger("document_gateway.credential_providers")

SERVICE_NAME = "document_gateway_service"


class HeaderCredentialProvider(CredentialProviderProtocol):
    """Reads the credential pair from the inbound request headers."""

    async def resolve(
        self, request: BackendRequest, correlation_id: UUID | None = None
    ) -> BackendCredentials:
        username = request.headers.get(USERNAME_HEADER)
        password = request.headers.get(PASSWORD_HEADER)

        missing = [
            name
            for name, value in ((USERNAME_HEADER, username), (PASSWORD_HEADER, password))
            if value is None
        ]
        if missing:
            message = f"Missing credential header(s): {', '.join(missing)}"
            logger.warning(message, host=request.host)
            raise_authentication_error(
                service=SERVICE_NAME,
                operation="resolve_credentials",
                message=message,
                correlation_id=correlation_id,
                diagnostic=message,
                reason="missing_credential_headers",
            )

        return BackendCredentials(username=username, password=password)


class MappingSecretProvider(SecretProviderProtocol):
    """Secret provider over an in-memory host -> credentials mapping."""

    def __init__(self, credentials: Mapping[str, BackendCredentials]) -> None:
        self._credentials = {host.lower(): creds for host, creds in credentials.items()}

    async def get_credentials(self, host: str) -> BackendCredentials | None:
        return self._credentials.get(host.lower())


class HostTableCredentialProvider(CredentialProviderProtocol):
    """Selects static credentials by the request's target host."""

    def __init__(self, secret_provider: SecretProviderProtocol) -> None:
        self._secret_provider = secret_provider

    async def resolve(
        self, request: BackendRequest, correlation_id: UUID | None = None
    ) -> BackendCredentials:
        credentials = await self._secret_provider.get_credentials(request.host)
        if credentials is None:
            logger.warning(f"No credentials configured for host '{request.host}'")
            raise_unrecognized_host(
                service=SERVICE_NAME,
                operation="resolve_credentials",
                host=request.host,
                correlation_id=correlation_id,
            )
        return credentials
