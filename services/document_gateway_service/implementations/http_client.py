"""HTTP client implementation for Document Gateway service.

This module provides an HTTP client implementation that conforms to the
gateway's HttpClientProtocol while using httpx for the actual HTTP operations.
"""

from __future__ import annotations

import httpx

from services.document_gateway_service.protocols import HttpClientProtocol


class DocumentGatewayHttpClient(HttpClientProtocol):
    """HTTP client implementation for the document gateway.

    Returns raw httpx.Response objects with the body already read, so
    callers never hold a connection open between backend calls.
    """

    def __init__(self, client: httpx.AsyncClient) -> None:
        """Initialize the HTTP client.

        Args:
            client: The underlying httpx AsyncClient to use
        """
        self._client = client

    async def send(self, request: httpx.Request) -> httpx.Response:
        """Send a prepared request.

        Args:
            request: Fully built httpx Request

        Returns:
            Raw httpx Response object with its content loaded

        Raises:
            httpx.HTTPError: On connection, timeout or protocol errors
        """
        return await self._client.send(request)
