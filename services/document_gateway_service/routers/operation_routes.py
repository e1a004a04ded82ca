"""
Operation routes for Document Gateway Service.

One route accepts every gateway call:
``/v1/operations/{operation_id}/{backend_host}/{path}``. The inbound request
is converted into a BackendRequest, dispatched, and the GatewayResponse is
returned as-is. A caller that disconnects cancels the in-flight call.
"""

from __future__ import annotations

import asyncio
import contextlib
from collections.abc import Awaitable
from typing import TypeVar
from uuid import UUID

from dishka.integrations.fastapi import FromDishka, inject
from fastapi import APIRouter, Request
from starlette.responses import Response

from services.document_gateway_service.core.models import HOP_BY_HOP_HEADERS, BackendRequest
from services.document_gateway_service.core.operation_dispatcher import OperationDispatcher
from services.document_gateway_service.core.policy import GatewayPolicy
from services.libs.gateway_service_libs.error_handling import raise_call_cancelled
from services.libs.gateway_service_libs.logging_utils import create_service_logger

router = APIRouter()
logger = create_service_logger("document_gateway.operation_routes")

OPERATIONS_SEGMENT = "/operations/"
DISCONNECT_POLL_SECONDS = 0.5

# Inbound headers that describe the hop to the gateway, not the backend call.
INBOUND_ONLY_HEADERS = HOP_BY_HOP_HEADERS | {"x-correlation-id"}

T = TypeVar("T")


def backend_path(request: Request, path: str) -> str:
    """Backend path exactly as the caller encoded it, falling back to the decoded path."""
    raw_path = request.scope.get("raw_path")
    if raw_path:
        raw = raw_path.decode("latin-1").split("?", 1)[0]
        _, found, remainder = raw.partition(OPERATIONS_SEGMENT)
        parts = remainder.split("/", 2)
        if found and len(parts) == 3:
            return "/" + parts[2]
    return "/" + path


async def build_backend_request(
    request: Request, backend_host: str, path: str, policy: GatewayPolicy
) -> BackendRequest:
    url = policy.backend_url(backend_host, backend_path(request, path))
    if request.url.query:
        url = f"{url}?{request.url.query}"

    headers = [
        (name, value)
        for name, value in request.headers.items()
        if name.lower() not in INBOUND_ONLY_HEADERS
    ]
    return BackendRequest.create(
        method=request.method,
        url=url,
        headers=headers,
        body=await request.body(),
    )


async def run_until_disconnected(
    request: Request, call: Awaitable[T], correlation_id: UUID, operation: str
) -> T:
    """Await call, cancelling it when the caller goes away."""
    task = asyncio.ensure_future(call)
    try:
        while True:
            done, _ = await asyncio.wait({task}, timeout=DISCONNECT_POLL_SECONDS)
            if task in done:
                return task.result()
            if await request.is_disconnected():
                logger.warning(f"Caller disconnected, cancelling {operation}")
                task.cancel()
                with contextlib.suppress(asyncio.CancelledError):
                    await task
                raise_call_cancelled(
                    service="document_gateway_service",
                    operation=operation,
                    correlation_id=correlation_id,
                )
    finally:
        if not task.done():
            task.cancel()


@router.api_route(
    "/operations/{operation_id}/{backend_host}/{path:path}",
    methods=["GET", "POST", "PUT", "PATCH", "DELETE"],
    summary="Execute a gateway operation",
    description=(
        "Authenticates against the backend host, forwards the request and, for list "
        "operations, merges every result page into one response."
    ),
)
@inject
async def execute_operation(
    operation_id: str,
    backend_host: str,
    path: str,
    request: Request,
    dispatcher: FromDishka[OperationDispatcher],
    policy: FromDishka[GatewayPolicy],
    correlation_id: FromDishka[UUID],
) -> Response:
    backend_request = await build_backend_request(request, backend_host, path, policy)
    result = await run_until_disconnected(
        request,
        dispatcher.dispatch(operation_id, backend_request, correlation_id),
        correlation_id,
        operation_id,
    )
    return Response(
        content=result.body,
        status_code=result.status_code,
        headers=result.headers,
        media_type=result.media_type,
    )
