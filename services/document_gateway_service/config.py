"""
Configuration for Document Gateway Service.

Uses Pydantic settings for environment-based configuration. The gateway
policy switches (credential source, version injection, status checking,
non-2xx classification) live here and are frozen into a GatewayPolicy
for the core.
"""

from __future__ import annotations

from enum import Enum

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from services.document_gateway_service.core.models import BackendCredentials
from services.document_gateway_service.core.policy import (
    CredentialSource,
    GatewayPolicy,
    Non2xxClassification,
)


class Environment(str, Enum):
    """Defines application environments."""

    DEVELOPMENT = "development"
    STAGING = "staging"
    PRODUCTION = "production"
    TESTING = "testing"


class Settings(BaseSettings):
    """Configuration settings for Document Gateway Service."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_prefix="DOCUMENT_GATEWAY_",
        case_sensitive=False,
        extra="ignore",  # Allow extra environment variables to be ignored
    )

    # Service identity
    SERVICE_NAME: str = "document-gateway-service"

    ENVIRONMENT: Environment = Field(
        default=Environment.DEVELOPMENT,
        validation_alias="ENVIRONMENT",  # Read from global ENVIRONMENT var
        description="Runtime environment for the service",
    )

    # HTTP server configuration
    HTTP_HOST: str = Field(default="0.0.0.0", description="HTTP server host")
    HTTP_PORT: int = Field(default=4010, description="HTTP server port")

    # Logging configuration
    LOG_LEVEL: str = Field(default="INFO", description="Logging level")

    # HTTP Client Timeouts (the core defines none of its own)
    HTTP_CLIENT_TIMEOUT_SECONDS: float = 60.0
    HTTP_CLIENT_CONNECT_TIMEOUT_SECONDS: float = 10.0

    # Backend addressing
    BACKEND_SCHEME: str = Field(default="https", description="Scheme used for backend URLs")
    API_VERSION: str = Field(default="v24.1", description="Backend API version segment")

    # Gateway policy
    CREDENTIAL_SOURCE: CredentialSource = Field(
        default=CredentialSource.HEADERS,
        description="Read credentials from the un/pw request headers or from the host table",
    )
    VERSION_INJECTION: bool = Field(
        default=True, description="Insert API_VERSION after /api/ in forwarded paths"
    )
    STATUS_CHECK_STRICT: bool = Field(
        default=True,
        description=(
            "Inspect operation page responseStatus for SUCCESS/WARNING (true) or only look "
            "for a FAILURE status marker in the raw body (false); login is always strict"
        ),
    )
    NON_2XX_CLASSIFICATION: Non2xxClassification = Field(
        default=Non2xxClassification.TRANSPORT,
        description=(
            "How a non-2xx backend response carrying a well-formed envelope is classified"
        ),
    )
    EXPOSE_BACKEND_DIAGNOSTICS: bool = Field(
        default=True,
        description="Return raw backend diagnostics to the caller in failure bodies",
    )

    # Host table credentials, e.g. '{"vault.example.com": {"username": "u", "password": "p"}}'
    BACKEND_CREDENTIALS: dict[str, BackendCredentials] = Field(
        default_factory=dict,
        description="Static credentials keyed by backend host (host_table source only)",
    )

    def is_development(self) -> bool:
        return self.ENVIRONMENT == Environment.DEVELOPMENT

    def is_production(self) -> bool:
        return self.ENVIRONMENT == Environment.PRODUCTION

    def policy(self) -> GatewayPolicy:
        """Freeze the policy switches for the core components."""
        return GatewayPolicy(
            credential_source=self.CREDENTIAL_SOURCE,
            version_injection=self.VERSION_INJECTION,
            status_check_strict=self.STATUS_CHECK_STRICT,
            non_2xx_classification=self.NON_2XX_CLASSIFICATION,
            expose_backend_diagnostics=self.EXPOSE_BACKEND_DIAGNOSTICS,
            api_version=self.API_VERSION,
            backend_scheme=self.BACKEND_SCHEME,
        )


# Global settings instance
settings = Settings()
