"""Middleware for Document Gateway Service."""

from __future__ import annotations

from uuid import UUID, uuid4

from fastapi import Request
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.responses import Response

from services.libs.gateway_service_libs.logging_utils import (
    bind_call_context,
    clear_call_context,
    create_service_logger,
)

logger = create_service_logger("document_gateway.middleware")


class CorrelationIDMiddleware(BaseHTTPMiddleware):
    """Middleware to ensure every request has a correlation ID as UUID."""

    async def dispatch(self, request: Request, call_next: RequestResponseEndpoint) -> Response:
        """Extract or generate correlation ID, store it and bind it to the log context."""
        x_correlation_id = request.headers.get("X-Correlation-ID")
        if x_correlation_id:
            try:
                correlation_id = UUID(x_correlation_id)
            except ValueError:
                logger.warning(
                    f"Invalid correlation ID format: {x_correlation_id}, generating new one"
                )
                correlation_id = uuid4()
        else:
            correlation_id = uuid4()

        request.state.correlation_id = correlation_id
        bind_call_context(str(correlation_id), path=request.url.path)
        try:
            response = await call_next(request)
        finally:
            clear_call_context()

        response.headers["X-Correlation-ID"] = str(correlation_id)
        return response
