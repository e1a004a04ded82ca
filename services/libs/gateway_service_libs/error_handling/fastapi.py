"""FastAPI integration: convert escaping exceptions into the gateway's failure responses."""

from __future__ import annotations

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse, PlainTextResponse

from services.libs.gateway_service_libs.error_handling.gateway_error import GatewayError
from services.libs.gateway_service_libs.logging_utils import create_service_logger

logger = create_service_logger("gateway_service_libs.error_handling.fastapi")

FAILURE_HEADER = "X-Gateway-Failure"


def register_error_handlers(app: FastAPI, *, expose_diagnostics: bool = True) -> None:
    """Register GatewayError and catch-all handlers on the application."""

    @app.exception_handler(GatewayError)
    async def handle_gateway_error(request: Request, exc: GatewayError) -> PlainTextResponse:
        logger.error(
            f"Gateway error on {request.method} {request.url.path}: {exc}",
            error_code=exc.error_code,
            correlation_id=exc.correlation_id,
            diagnostic=exc.diagnostic,
        )
        return PlainTextResponse(
            content=exc.caller_body(expose_diagnostics),
            status_code=exc.status_code,
            headers={
                FAILURE_HEADER: exc.failure_kind,
                "X-Correlation-ID": exc.correlation_id,
            },
        )

    @app.exception_handler(Exception)
    async def handle_unexpected_error(request: Request, exc: Exception) -> JSONResponse:
        logger.error(
            f"Unhandled error on {request.method} {request.url.path}: {exc}", exc_info=True
        )
        return JSONResponse(
            status_code=500,
            content={"error_type": type(exc).__name__, "message": "Internal server error"},
        )
