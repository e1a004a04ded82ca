"""
Paginated Fetcher: executes a prepared backend request and follows next_page.

Pages are fetched strictly one after another because each cursor is only
known once the previous page is parsed. The first failing page aborts the
whole fetch; records gathered so far are dropped with it.
"""

from __future__ import annotations

import json
from urllib.parse import urlencode
from uuid import UUID

import httpx

from services.document_gateway_service.core.models import (
    SESSION_ID_HEADER,
    BackendEnvelope,
    BackendRequest,
    GatewayResponse,
    MergedResult,
    SessionToken,
    relayable_headers,
)
from services.document_gateway_service.core.operations import OperationDefinition
from services.document_gateway_service.core.path_normalizer import normalize_path
from services.document_gateway_service.core.policy import GatewayPolicy, Non2xxClassification
from services.document_gateway_service.core.status import page_succeeded
from services.document_gateway_service.protocols import HttpClientProtocol, MetricsProtocol
from services.libs.gateway_service_libs.error_handling import (
    raise_backend_logical_failure,
    raise_invalid_request,
    raise_transport_failure,
)
from services.libs.gateway_service_libs.logging_utils import create_service_logger

logger = create_service_logger("document_gateway.paginated_fetcher")

SERVICE_NAME = "document_gateway_service"


class PaginatedFetcher:
    """Sends prepared requests, checks every page and merges paged data."""

    def __init__(
        self,
        http_client: HttpClientProtocol,
        policy: GatewayPolicy,
        metrics: MetricsProtocol,
    ) -> None:
        self._http_client = http_client
        self._policy = policy
        self._metrics = metrics

    def prepare(
        self,
        request: BackendRequest,
        token: SessionToken,
        operation: OperationDefinition,
        correlation_id: UUID | None = None,
    ) -> BackendRequest:
        """Attach the session, normalize the path and rewrite the query body in place."""
        request.headers["Authorization"] = token

        api_version = (
            self._policy.api_version
            if self._policy.version_injection and operation.carries_api_version
            else None
        )
        raw_path = request.url.raw_path.decode("ascii").partition("?")[0]
        request.url = request.url.copy_with(path=normalize_path(raw_path, api_version))

        if operation.rewrites_query_body:
            query = self._extract_query(request.body, operation, correlation_id)
            request.body = urlencode({"q": query}).encode("ascii")
            request.headers["Content-Type"] = "application/x-www-form-urlencoded"

        logger.info(f"Prepared {request.method} {request.url} for {operation.name}")
        return request

    def _extract_query(
        self, body: bytes | None, operation: OperationDefinition, correlation_id: UUID | None
    ) -> str:
        if not body or not body.strip():
            return ""
        try:
            content = json.loads(body)
        except ValueError as e:
            raise_invalid_request(
                service=SERVICE_NAME,
                operation=operation.name,
                message=f"Request body is not valid JSON: {e}",
                correlation_id=correlation_id,
            )
        if not isinstance(content, dict):
            return ""
        query = content.get("q")
        if query is None:
            return ""
        return query if isinstance(query, str) else json.dumps(query)

    async def fetch(
        self,
        request: BackendRequest,
        token: SessionToken,
        operation: OperationDefinition,
        correlation_id: UUID | None = None,
    ) -> MergedResult:
        """
        Execute request and follow every next_page cursor.

        Args:
            request: Prepared backend request (see prepare)
            token: Session token for the Authorization header of follow-ups
            operation: Operation being executed, for logs and metrics
            correlation_id: Correlation ID of the inbound call

        Returns:
            The last fetched envelope carrying the records of every page

        Raises:
            TransportFailure: Network error or non-2xx on any page
            BackendLogicalFailure: Any page not reporting SUCCESS/WARNING, or a
                next_page cursor that is malformed or was already followed
        """
        envelope = await self._fetch_page(request, operation, "initial", correlation_id)
        records = envelope.records
        pages = 1

        seen_cursors: set[str] = set()
        next_page = envelope.next_page
        while next_page:
            logger.info(f"next: {next_page}")
            if next_page in seen_cursors:
                logger.error(f"{operation.name} returned next_page '{next_page}' twice")
                raise_backend_logical_failure(
                    service=SERVICE_NAME,
                    operation=operation.name,
                    body=json.dumps(envelope.document),
                    correlation_id=correlation_id,
                    response_status=envelope.response_status,
                    reason="repeated_next_page",
                    next_page=next_page,
                )
            seen_cursors.add(next_page)
            page_request = self._continuation_request(
                request, token, next_page, envelope, operation, correlation_id
            )
            envelope = await self._fetch_page(page_request, operation, "next_page", correlation_id)
            records.extend(envelope.records)
            pages += 1
            next_page = envelope.next_page

        self._metrics.pages_fetched.labels(operation=operation.name).observe(pages)
        logger.info(
            f"{operation.name} merged {len(records)} records from {pages} page(s)",
            host=request.host,
        )
        return MergedResult(envelope=envelope, records=records, host=request.host, pages=pages)

    async def download(
        self,
        request: BackendRequest,
        token: SessionToken,
        operation: OperationDefinition,
        correlation_id: UUID | None = None,
    ) -> GatewayResponse:
        """
        Relay a binary download unchanged, echoing the session token back.

        The body is never interpreted as JSON; any non-2xx status is a
        TransportFailure carrying the raw body.
        """
        response = await self._send(request, operation, "download", correlation_id)
        if not response.is_success:
            body = response.text
            logger.error(
                f"{operation.name} returned HTTP {response.status_code}", diagnostic=body
            )
            raise_transport_failure(
                service=SERVICE_NAME,
                operation=operation.name,
                diagnostic=body or f"HTTP {response.status_code}",
                correlation_id=correlation_id,
                status_code=response.status_code,
            )

        logger.info(
            f"Download Item Content response type: {response.headers.get('responseType')}"
        )
        headers = relayable_headers(response.headers)
        headers[SESSION_ID_HEADER] = token
        return GatewayResponse(
            status_code=response.status_code,
            body=response.content,
            headers=headers,
        )

    def _continuation_request(
        self,
        request: BackendRequest,
        token: SessionToken,
        next_page: str,
        envelope: BackendEnvelope,
        operation: OperationDefinition,
        correlation_id: UUID | None,
    ) -> BackendRequest:
        """Follow-up request: same host, same method, only the session header."""
        try:
            cursor = httpx.URL(next_page)
            path = next_page
            if cursor.is_absolute_url:
                # Never send the session token to a host other than the original one.
                path = cursor.raw_path.decode("ascii")
            return BackendRequest.create(
                method=request.method,
                url=self._policy.backend_url(request.authority, path),
                headers={"Authorization": token},
            )
        except httpx.InvalidURL as e:
            logger.error(f"{operation.name} returned an unusable next_page '{next_page}': {e}")
            raise_backend_logical_failure(
                service=SERVICE_NAME,
                operation=operation.name,
                body=json.dumps(envelope.document),
                correlation_id=correlation_id,
                response_status=envelope.response_status,
                reason="invalid_next_page",
                next_page=next_page,
            )

    async def _send(
        self,
        request: BackendRequest,
        operation: OperationDefinition,
        step: str,
        correlation_id: UUID | None,
    ) -> httpx.Response:
        try:
            response = await self._http_client.send(request.to_httpx())
        except httpx.HTTPError as e:
            self._metrics.backend_calls_total.labels(step=step, status_code="error").inc()
            diagnostic = f"{type(e).__name__}: {e}"
            logger.error(f"{operation.name} {step} request failed: {diagnostic}")
            raise_transport_failure(
                service=SERVICE_NAME,
                operation=operation.name,
                diagnostic=diagnostic,
                correlation_id=correlation_id,
                url=str(request.url),
            )
        self._metrics.backend_calls_total.labels(
            step=step, status_code=str(response.status_code)
        ).inc()
        return response

    async def _fetch_page(
        self,
        request: BackendRequest,
        operation: OperationDefinition,
        step: str,
        correlation_id: UUID | None,
    ) -> BackendEnvelope:
        response = await self._send(request, operation, step, correlation_id)
        body = response.text

        if not response.is_success:
            self._raise_for_status(response, body, operation, correlation_id)

        try:
            envelope = BackendEnvelope.parse(body)
        except ValueError as e:
            logger.error(f"{operation.name} {step} response is not a JSON envelope: {e}")
            raise_backend_logical_failure(
                service=SERVICE_NAME,
                operation=operation.name,
                body=body,
                correlation_id=correlation_id,
                reason="unparseable_envelope",
            )

        logger.info(f"{operation.name} {step} responseStatus: {envelope.response_status}")
        if not page_succeeded(envelope, body, strict=self._policy.status_check_strict):
            logger.error(f"{operation.name} {step} reported failure", diagnostic=body)
            raise_backend_logical_failure(
                service=SERVICE_NAME,
                operation=operation.name,
                body=body,
                correlation_id=correlation_id,
                response_status=envelope.response_status,
            )
        return envelope

    def _raise_for_status(
        self,
        response: httpx.Response,
        body: str,
        operation: OperationDefinition,
        correlation_id: UUID | None,
    ) -> None:
        logger.error(
            f"{operation.name} returned HTTP {response.status_code}", diagnostic=body
        )
        if self._policy.non_2xx_classification == Non2xxClassification.LOGICAL:
            try:
                envelope = BackendEnvelope.parse(body)
            except ValueError:
                envelope = None
            if envelope is not None and envelope.response_status is not None:
                raise_backend_logical_failure(
                    service=SERVICE_NAME,
                    operation=operation.name,
                    body=body,
                    correlation_id=correlation_id,
                    response_status=envelope.response_status,
                    status_code=response.status_code,
                )
        raise_transport_failure(
            service=SERVICE_NAME,
            operation=operation.name,
            diagnostic=body or f"HTTP {response.status_code}",
            correlation_id=correlation_id,
            status_code=response.status_code,
        )
