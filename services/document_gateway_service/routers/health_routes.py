"""Health and metrics routes for Document Gateway Service."""

from __future__ import annotations

from dishka import FromDishka
from dishka.integrations.fastapi import inject
from fastapi import APIRouter
from fastapi.responses import PlainTextResponse
from prometheus_client import CONTENT_TYPE_LATEST, CollectorRegistry, generate_latest

from services.document_gateway_service.config import Settings
from services.libs.gateway_service_libs.logging_utils import create_service_logger

router = APIRouter(tags=["Health"])
logger = create_service_logger("document_gateway_service.routers.health")


@router.get("/healthz")
@inject
async def health_check(config: FromDishka[Settings]) -> dict[str, str | dict]:
    """Health check endpoint.

    The backend is addressed per call, so its availability is only known on request.
    """
    logger.info("Health check requested")
    return {
        "service": "document_gateway_service",
        "status": "healthy",
        "message": "Document Gateway Service is healthy",
        "version": "1.0.0",
        "checks": {"service_responsive": True},
        "policy": {
            "credential_source": config.CREDENTIAL_SOURCE.value,
            "api_version": config.API_VERSION,
        },
        "environment": config.ENVIRONMENT.value,
    }


@router.get("/metrics", response_class=PlainTextResponse)
@inject
async def metrics(registry: FromDishka[CollectorRegistry]) -> PlainTextResponse:
    """Prometheus metrics endpoint."""
    try:
        metrics_data = generate_latest(registry)
        return PlainTextResponse(content=metrics_data, media_type=CONTENT_TYPE_LATEST)
    except Exception as e:
        logger.error(f"Error generating metrics: {e}", exc_info=True)
        return PlainTextResponse(content="Error generating metrics", status_code=500)
