"""
Tests for request preparation, pagination and download relaying.

Each test registers only the backend routes it expects to be called; respx
fails the test on any unmocked request.
"""

from __future__ import annotations

import json
from urllib.parse import parse_qs

import httpx
import pytest
from prometheus_client import CollectorRegistry
from respx import MockRouter

from services.document_gateway_service.core.models import HOST_ANNOTATION_FIELD, SessionToken
from services.document_gateway_service.core.operations import OPERATIONS, OperationId
from services.document_gateway_service.core.paginated_fetcher import PaginatedFetcher
from services.document_gateway_service.core.policy import GatewayPolicy, Non2xxClassification
from services.document_gateway_service.tests.backend_fixtures import (
    BASE_URL,
    HOST,
    page_response,
)
from services.libs.gateway_service_libs.error_handling import (
    BackendLogicalFailure,
    InvalidRequest,
    TransportFailure,
)

TOKEN = SessionToken("session-abc")
QUERY = OPERATIONS[OperationId.QUERY]
LIST_ITEMS = OPERATIONS[OperationId.LIST_ITEMS_AT_PATH]
DOWNLOAD = OPERATIONS[OperationId.DOWNLOAD_ITEM_CONTENT]

LIST_URL = f"{BASE_URL}/api/v24.1/services/file_staging/items/docs"
QUERY_URL = f"{BASE_URL}/api/v24.1/query"


class TestPrepare:
    async def test_attaches_token_and_normalizes_path(
        self, fetcher: PaginatedFetcher, make_request
    ):
        request = make_request("/api//objects/documents%3A123")

        fetcher.prepare(request, TOKEN, LIST_ITEMS)

        assert request.headers["Authorization"] == TOKEN
        assert request.url.path == "/api/v24.1/objects/documents:123"

    async def test_query_string_survives_normalization(
        self, fetcher: PaginatedFetcher, make_request
    ):
        request = make_request("/api/services/file_staging/items?limit=5&recursive=true")

        fetcher.prepare(request, TOKEN, LIST_ITEMS)

        assert request.url.path == "/api/v24.1/services/file_staging/items"
        assert request.url.params["limit"] == "5"
        assert request.url.params["recursive"] == "true"

    async def test_version_injection_off_keeps_path_unversioned(
        self, http_client, metrics, make_request
    ):
        fetcher = PaginatedFetcher(http_client, GatewayPolicy(version_injection=False), metrics)
        request = make_request("/api//objects/documents%3A123")

        fetcher.prepare(request, TOKEN, LIST_ITEMS)

        assert request.url.path == "/api/objects/documents:123"

    async def test_query_body_is_reencoded_as_form(self, fetcher: PaginatedFetcher, make_request):
        request = make_request(
            "/api/query",
            method="POST",
            body=json.dumps({"q": "SELECT id FROM documents", "limit": 10}).encode(),
            headers={"Content-Type": "application/json"},
        )

        fetcher.prepare(request, TOKEN, QUERY)

        assert request.headers["Content-Type"] == "application/x-www-form-urlencoded"
        assert parse_qs(request.body.decode(), keep_blank_values=True) == {
            "q": ["SELECT id FROM documents"]
        }

    @pytest.mark.parametrize("body", [None, b"", b"   ", b"[1, 2]", b'{"other": 1}'])
    async def test_query_without_q_sends_empty_query(
        self, fetcher: PaginatedFetcher, make_request, body: bytes | None
    ):
        request = make_request("/api/query", method="POST", body=body)

        fetcher.prepare(request, TOKEN, QUERY)

        assert request.body == b"q="

    async def test_query_with_invalid_json_is_rejected(
        self, fetcher: PaginatedFetcher, make_request
    ):
        request = make_request("/api/query", method="POST", body=b"q=SELECT id")

        with pytest.raises(InvalidRequest):
            fetcher.prepare(request, TOKEN, QUERY)

    async def test_list_body_is_left_untouched(self, fetcher: PaginatedFetcher, make_request):
        request = make_request("/api/services/file_staging/items", method="POST", body=b"{}")

        fetcher.prepare(request, TOKEN, LIST_ITEMS)

        assert request.body == b"{}"


class TestFetch:
    async def test_single_page_is_returned_annotated(
        self, fetcher: PaginatedFetcher, make_request, respx_mock: MockRouter
    ):
        respx_mock.get(LIST_URL).mock(
            return_value=page_response([{"id": 1}, {"id": 2}], responseMessage="ok")
        )
        request = fetcher.prepare(
            make_request("/api/services/file_staging/items/docs"), TOKEN, LIST_ITEMS
        )

        merged = await fetcher.fetch(request, TOKEN, LIST_ITEMS)
        document = merged.to_document()

        assert document["data"] == [{"id": 1}, {"id": 2}]
        assert document["responseMessage"] == "ok"
        assert document[HOST_ANNOTATION_FIELD] == HOST
        assert merged.pages == 1

    async def test_three_pages_merge_in_order(
        self,
        fetcher: PaginatedFetcher,
        make_request,
        respx_mock: MockRouter,
        registry: CollectorRegistry,
    ):
        respx_mock.post(QUERY_URL).mock(
            return_value=page_response(
                [{"id": 1}, {"id": 2}], next_page="/api/v24.1/query/0a?pagesize=2&pageoffset=2"
            )
        )
        second = respx_mock.post(f"{BASE_URL}/api/v24.1/query/0a", params={"pageoffset": "2"})
        second.mock(
            return_value=page_response(
                [{"id": 3}, {"id": 4}], next_page="/api/v24.1/query/0a?pagesize=2&pageoffset=4"
            )
        )
        third = respx_mock.post(f"{BASE_URL}/api/v24.1/query/0a", params={"pageoffset": "4"})
        third.mock(
            return_value=page_response([{"id": 5}], status="WARNING", responseMessage="last")
        )
        request = fetcher.prepare(
            make_request("/api/query", method="POST", body=b'{"q": "SELECT id FROM documents"}'),
            TOKEN,
            QUERY,
        )

        merged = await fetcher.fetch(request, TOKEN, QUERY)
        document = merged.to_document()

        assert document["data"] == [{"id": i} for i in range(1, 6)]
        # Envelope fields come from the last page.
        assert document["responseStatus"] == "WARNING"
        assert document["responseMessage"] == "last"
        assert merged.pages == 3
        for route in (second, third):
            follow_up = route.calls.last.request
            assert follow_up.method == "POST"
            assert follow_up.headers["Authorization"] == TOKEN
            assert follow_up.content == b""
            assert "un" not in follow_up.headers
        assert (
            registry.get_sample_value(
                "document_gateway_pages_fetched_sum", {"operation": "Query"}
            )
            == 3.0
        )

    async def test_duplicate_records_are_kept(
        self, fetcher: PaginatedFetcher, make_request, respx_mock: MockRouter
    ):
        respx_mock.get(LIST_URL).mock(
            return_value=page_response([{"id": 1}], next_page="/api/v24.1/next/1")
        )
        respx_mock.get(f"{BASE_URL}/api/v24.1/next/1").mock(
            return_value=page_response([{"id": 1}])
        )
        request = fetcher.prepare(
            make_request("/api/services/file_staging/items/docs"), TOKEN, LIST_ITEMS
        )

        merged = await fetcher.fetch(request, TOKEN, LIST_ITEMS)

        assert merged.records == [{"id": 1}, {"id": 1}]

    async def test_empty_cursor_stops_pagination(
        self, fetcher: PaginatedFetcher, make_request, respx_mock: MockRouter
    ):
        route = respx_mock.get(LIST_URL).mock(return_value=page_response([{"id": 1}], next_page=""))
        request = fetcher.prepare(
            make_request("/api/services/file_staging/items/docs"), TOKEN, LIST_ITEMS
        )

        merged = await fetcher.fetch(request, TOKEN, LIST_ITEMS)

        assert merged.records == [{"id": 1}]
        assert route.call_count == 1

    async def test_absolute_cursor_stays_on_original_host(
        self, fetcher: PaginatedFetcher, make_request, respx_mock: MockRouter
    ):
        respx_mock.get(LIST_URL).mock(
            return_value=page_response(
                [{"id": 1}], next_page="https://elsewhere.example.org/api/v24.1/next/2?o=1"
            )
        )
        follow_up = respx_mock.get(f"{BASE_URL}/api/v24.1/next/2", params={"o": "1"}).mock(
            return_value=page_response([{"id": 2}])
        )
        request = fetcher.prepare(
            make_request("/api/services/file_staging/items/docs"), TOKEN, LIST_ITEMS
        )

        merged = await fetcher.fetch(request, TOKEN, LIST_ITEMS)

        assert merged.records == [{"id": 1}, {"id": 2}]
        assert follow_up.called

    async def test_malformed_cursor_is_logical_failure(
        self, fetcher: PaginatedFetcher, make_request, respx_mock: MockRouter
    ):
        route = respx_mock.get(LIST_URL).mock(
            return_value=page_response(
                [{"id": 1}], next_page="https://other.example.com:notaport/next"
            )
        )
        request = fetcher.prepare(
            make_request("/api/services/file_staging/items/docs"), TOKEN, LIST_ITEMS
        )

        with pytest.raises(BackendLogicalFailure) as exc_info:
            await fetcher.fetch(request, TOKEN, LIST_ITEMS)

        assert exc_info.value.error_detail.details["reason"] == "invalid_next_page"
        assert "notaport" in exc_info.value.diagnostic
        assert route.call_count == 1

    async def test_repeated_cursor_stops_pagination(
        self, fetcher: PaginatedFetcher, make_request, respx_mock: MockRouter
    ):
        respx_mock.get(LIST_URL).mock(
            return_value=page_response([{"id": 1}], next_page="/api/v24.1/next/2")
        )
        loop = respx_mock.get(f"{BASE_URL}/api/v24.1/next/2").mock(
            return_value=page_response([{"id": 2}], next_page="/api/v24.1/next/2")
        )
        request = fetcher.prepare(
            make_request("/api/services/file_staging/items/docs"), TOKEN, LIST_ITEMS
        )

        with pytest.raises(BackendLogicalFailure) as exc_info:
            await fetcher.fetch(request, TOKEN, LIST_ITEMS)

        assert exc_info.value.error_detail.details["reason"] == "repeated_next_page"
        assert loop.call_count == 1

    async def test_failing_second_page_discards_partial_results(
        self, fetcher: PaginatedFetcher, make_request, respx_mock: MockRouter
    ):
        respx_mock.get(LIST_URL).mock(
            return_value=page_response([{"id": 1}], next_page="/api/v24.1/next/2")
        )
        failure = {"responseStatus": "FAILURE", "errors": [{"type": "INVALID_SESSION_ID"}]}
        respx_mock.get(f"{BASE_URL}/api/v24.1/next/2").mock(
            return_value=httpx.Response(200, json=failure)
        )
        request = fetcher.prepare(
            make_request("/api/services/file_staging/items/docs"), TOKEN, LIST_ITEMS
        )

        with pytest.raises(BackendLogicalFailure) as exc_info:
            await fetcher.fetch(request, TOKEN, LIST_ITEMS)

        assert json.loads(exc_info.value.diagnostic) == failure

    async def test_unparseable_page_is_logical_failure_with_body(
        self, fetcher: PaginatedFetcher, make_request, respx_mock: MockRouter
    ):
        respx_mock.get(LIST_URL).mock(return_value=httpx.Response(200, text="<html>oops</html>"))
        request = fetcher.prepare(
            make_request("/api/services/file_staging/items/docs"), TOKEN, LIST_ITEMS
        )

        with pytest.raises(BackendLogicalFailure) as exc_info:
            await fetcher.fetch(request, TOKEN, LIST_ITEMS)

        assert exc_info.value.diagnostic == "<html>oops</html>"

    async def test_non_2xx_is_transport_failure_by_default(
        self, fetcher: PaginatedFetcher, make_request, respx_mock: MockRouter
    ):
        body = {"responseStatus": "FAILURE", "errors": [{"type": "INSUFFICIENT_ACCESS"}]}
        respx_mock.get(LIST_URL).mock(return_value=httpx.Response(403, json=body))
        request = fetcher.prepare(
            make_request("/api/services/file_staging/items/docs"), TOKEN, LIST_ITEMS
        )

        with pytest.raises(TransportFailure) as exc_info:
            await fetcher.fetch(request, TOKEN, LIST_ITEMS)

        assert json.loads(exc_info.value.diagnostic) == body

    async def test_non_2xx_envelope_is_logical_failure_when_configured(
        self, http_client, metrics, make_request, respx_mock: MockRouter
    ):
        fetcher = PaginatedFetcher(
            http_client,
            GatewayPolicy(non_2xx_classification=Non2xxClassification.LOGICAL),
            metrics,
        )
        respx_mock.get(LIST_URL).mock(
            return_value=httpx.Response(404, json={"responseStatus": "FAILURE"})
        )
        request = fetcher.prepare(
            make_request("/api/services/file_staging/items/docs"), TOKEN, LIST_ITEMS
        )

        with pytest.raises(BackendLogicalFailure):
            await fetcher.fetch(request, TOKEN, LIST_ITEMS)

    async def test_non_2xx_plain_text_stays_transport_failure_when_logical(
        self, http_client, metrics, make_request, respx_mock: MockRouter
    ):
        fetcher = PaginatedFetcher(
            http_client,
            GatewayPolicy(non_2xx_classification=Non2xxClassification.LOGICAL),
            metrics,
        )
        respx_mock.get(LIST_URL).mock(return_value=httpx.Response(502, text="Bad Gateway"))
        request = fetcher.prepare(
            make_request("/api/services/file_staging/items/docs"), TOKEN, LIST_ITEMS
        )

        with pytest.raises(TransportFailure) as exc_info:
            await fetcher.fetch(request, TOKEN, LIST_ITEMS)

        assert exc_info.value.diagnostic == "Bad Gateway"

    async def test_network_error_is_transport_failure(
        self, fetcher: PaginatedFetcher, make_request, respx_mock: MockRouter
    ):
        respx_mock.get(LIST_URL).mock(side_effect=httpx.ReadTimeout("timed out"))
        request = fetcher.prepare(
            make_request("/api/services/file_staging/items/docs"), TOKEN, LIST_ITEMS
        )

        with pytest.raises(TransportFailure) as exc_info:
            await fetcher.fetch(request, TOKEN, LIST_ITEMS)

        assert exc_info.value.diagnostic == "ReadTimeout: timed out"

    async def test_lenient_mode_accepts_page_without_status(
        self, http_client, metrics, make_request, respx_mock: MockRouter
    ):
        fetcher = PaginatedFetcher(http_client, GatewayPolicy(status_check_strict=False), metrics)
        respx_mock.get(LIST_URL).mock(return_value=page_response([{"id": 1}], status=None))
        request = fetcher.prepare(
            make_request("/api/services/file_staging/items/docs"), TOKEN, LIST_ITEMS
        )

        merged = await fetcher.fetch(request, TOKEN, LIST_ITEMS)

        assert merged.records == [{"id": 1}]

    async def test_strict_mode_rejects_page_without_status(
        self, fetcher: PaginatedFetcher, make_request, respx_mock: MockRouter
    ):
        respx_mock.get(LIST_URL).mock(return_value=page_response([{"id": 1}], status=None))
        request = fetcher.prepare(
            make_request("/api/services/file_staging/items/docs"), TOKEN, LIST_ITEMS
        )

        with pytest.raises(BackendLogicalFailure):
            await fetcher.fetch(request, TOKEN, LIST_ITEMS)


class TestDownload:
    DOWNLOAD_URL = f"{BASE_URL}/api/v24.1/objects/documents/42/file"

    async def test_relays_raw_content_and_echoes_session(
        self, fetcher: PaginatedFetcher, make_request, respx_mock: MockRouter
    ):
        content = b"%PDF-1.7 binary \x00\xff"
        route = respx_mock.get(self.DOWNLOAD_URL).mock(
            return_value=httpx.Response(
                200,
                content=content,
                headers={"Content-Type": "application/pdf", "responseType": "application/pdf"},
            )
        )
        request = fetcher.prepare(
            make_request("/api/objects/documents/42/file"), TOKEN, DOWNLOAD
        )

        response = await fetcher.download(request, TOKEN, DOWNLOAD)

        assert response.status_code == 200
        assert response.body == content
        headers = {name.lower(): value for name, value in response.headers.items()}
        assert headers["responsetype"] == "application/pdf"
        assert headers["content-type"] == "application/pdf"
        assert headers["sessionid"] == TOKEN
        assert route.call_count == 1

    async def test_json_looking_content_is_not_interpreted(
        self, fetcher: PaginatedFetcher, make_request, respx_mock: MockRouter
    ):
        body = json.dumps({"responseStatus": "FAILURE"}).encode()
        respx_mock.get(self.DOWNLOAD_URL).mock(return_value=httpx.Response(200, content=body))
        request = fetcher.prepare(
            make_request("/api/objects/documents/42/file"), TOKEN, DOWNLOAD
        )

        response = await fetcher.download(request, TOKEN, DOWNLOAD)

        assert response.status_code == 200
        assert response.body == body

    async def test_non_2xx_is_transport_failure(
        self, fetcher: PaginatedFetcher, make_request, respx_mock: MockRouter
    ):
        respx_mock.get(self.DOWNLOAD_URL).mock(return_value=httpx.Response(404, text="not found"))
        request = fetcher.prepare(
            make_request("/api/objects/documents/42/file"), TOKEN, DOWNLOAD
        )

        with pytest.raises(TransportFailure) as exc_info:
            await fetcher.download(request, TOKEN, DOWNLOAD)

        assert exc_info.value.diagnostic == "not found"
