from __future__ import annotations

from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from fastapi import FastAPI

from services.document_gateway_service.app.startup_setup import (
    create_di_container,
    setup_dependency_injection,
)
from services.document_gateway_service.config import settings
from services.libs.gateway_service_libs.error_handling.fastapi import (
    register_error_handlers as register_fastapi_error_handlers,
)
from services.libs.gateway_service_libs.logging_utils import (
    configure_service_logging,
    create_service_logger,
)

from ..routers import operation_routes
from ..routers.health_routes import router as health_router
from .middleware import CorrelationIDMiddleware

logger = create_service_logger("document_gateway_service")


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    logger.info(
        "Document Gateway Service started",
        credential_source=settings.CREDENTIAL_SOURCE.value,
        api_version=settings.API_VERSION,
    )
    yield
    await app.state.di_container.close()
    logger.info("Document Gateway Service shutdown completed")


def create_app() -> FastAPI:
    configure_service_logging(
        settings.SERVICE_NAME,
        environment=settings.ENVIRONMENT.value,
        log_level=settings.LOG_LEVEL,
    )

    app = FastAPI(
        title=settings.SERVICE_NAME,
        version="1.0.0",
        description=(
            "Document Gateway - session authentication and transparent pagination "
            "in front of the document-management REST API"
        ),
        docs_url="/docs" if settings.is_development() else None,
        redoc_url=None,
        openapi_url="/openapi.json" if settings.is_development() else None,
        lifespan=lifespan,
    )

    # Register error handlers
    register_fastapi_error_handlers(app, expose_diagnostics=settings.EXPOSE_BACKEND_DIAGNOSTICS)

    # Add Correlation ID Middleware (must be early in chain)
    app.add_middleware(CorrelationIDMiddleware)

    # Include routers
    app.include_router(health_router, tags=["Health"])
    app.include_router(operation_routes.router, prefix="/v1", tags=["Operations"])

    # Setup Dishka DI
    container = create_di_container()
    setup_dependency_injection(app, container)

    # Store container reference for cleanup
    app.state.di_container = container

    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "services.document_gateway_service.app.main:app",
        host=settings.HTTP_HOST,
        port=settings.HTTP_PORT,
        reload=settings.is_development(),
        log_level=settings.LOG_LEVEL.lower(),
    )
