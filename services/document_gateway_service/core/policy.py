"""Policy switches shared by the authenticator, fetcher and dispatcher."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum


class CredentialSource(str, Enum):
    """Where login credentials for the backend come from."""

    HEADERS = "headers"
    HOST_TABLE = "host_table"


class Non2xxClassification(str, Enum):
    """Classification of a non-2xx backend response that carries an envelope body."""

    TRANSPORT = "transport"
    LOGICAL = "logical"


@dataclass(frozen=True)
class GatewayPolicy:
    credential_source: CredentialSource = CredentialSource.HEADERS
    version_injection: bool = True
    status_check_strict: bool = True
    non_2xx_classification: Non2xxClassification = Non2xxClassification.TRANSPORT
    expose_backend_diagnostics: bool = True
    api_version: str = "v24.1"
    backend_scheme: str = "https"

    def backend_url(self, host: str, path: str) -> str:
        """Absolute backend URL for a host-relative path."""
        return f"{self.backend_scheme}://{host}{path}"

    def auth_url(self, host: str) -> str:
        return self.backend_url(host, f"/api/{self.api_version}/auth")
