"""
Data model for one gateway call.

BackendRequest is owned by exactly one call and mutated in place while it is
prepared. BackendEnvelope is the typed view of a backend JSON page; it keeps
the raw document so fields the gateway does not know survive the merge.
"""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from typing import Any, NewType

import httpx
from pydantic import BaseModel, ConfigDict, Field, PrivateAttr, SecretStr

SessionToken = NewType("SessionToken", str)

USERNAME_HEADER = "un"
PASSWORD_HEADER = "pw"
CREDENTIAL_HEADERS = (USERNAME_HEADER, PASSWORD_HEADER)

SESSION_ID_HEADER = "sessionId"
RESPONSE_TYPE_HEADER = "responseType"
HOST_ANNOTATION_FIELD = "request-host-domain"

# Headers that describe one hop or one encoding of the body, never relayed as-is.
HOP_BY_HOP_HEADERS = frozenset(
    {
        "connection",
        "keep-alive",
        "proxy-authenticate",
        "proxy-authorization",
        "te",
        "trailer",
        "transfer-encoding",
        "upgrade",
        "content-length",
        "content-encoding",
        "host",
    }
)


class BackendCredentials(BaseModel):
    """Credential pair used for the login exchange."""

    username: str
    password: SecretStr


@dataclass
class BackendRequest:
    """The request the gateway will forward to the backend."""

    method: str
    url: httpx.URL
    headers: httpx.Headers = field(default_factory=httpx.Headers)
    body: bytes | None = None

    @classmethod
    def create(
        cls,
        method: str,
        url: str | httpx.URL,
        headers: dict[str, str] | list[tuple[str, str]] | httpx.Headers | None = None,
        body: bytes | None = None,
    ) -> BackendRequest:
        return cls(
            method=method.upper(),
            url=httpx.URL(url),
            headers=httpx.Headers(headers or {}),
            body=body or None,
        )

    @property
    def host(self) -> str:
        """Backend host without port, as used for diagnostics and annotation."""
        return self.url.host

    @property
    def authority(self) -> str:
        """Host plus explicit port, used to address follow-up requests."""
        return self.url.netloc.decode("ascii")

    def strip_headers(self, *names: str) -> None:
        for name in names:
            self.headers.pop(name, None)

    def to_httpx(self) -> httpx.Request:
        return httpx.Request(
            self.method,
            self.url,
            headers=self.headers,
            content=self.body,
        )


class ResponseDetails(BaseModel):
    model_config = ConfigDict(extra="allow")

    next_page: str | None = None


class BackendEnvelope(BaseModel):
    """Typed view of a backend JSON envelope."""

    model_config = ConfigDict(extra="allow", populate_by_name=True)

    response_status: str | None = Field(default=None, alias="responseStatus")
    session_id: str | None = Field(default=None, alias="sessionId")
    data: list[Any] | None = None
    response_details: ResponseDetails | None = Field(default=None, alias="responseDetails")

    _document: dict[str, Any] = PrivateAttr(default_factory=dict)

    @classmethod
    def parse(cls, body: bytes | str) -> BackendEnvelope:
        """Parse a raw body; raises ValueError when it is not a JSON object envelope."""
        document = json.loads(body)
        if not isinstance(document, dict):
            raise ValueError("Backend response is not a JSON object")
        envelope = cls.model_validate(document)
        envelope._document = document
        return envelope

    @property
    def next_page(self) -> str:
        """Continuation cursor, empty when this is the last page."""
        if self.response_details is None:
            return ""
        return self.response_details.next_page or ""

    @property
    def records(self) -> list[Any]:
        return list(self.data or [])

    @property
    def document(self) -> dict[str, Any]:
        """Shallow copy of the raw document this envelope was parsed from."""
        return dict(self._document)


@dataclass
class MergedResult:
    """Accumulated records of every page, carried on the last fetched envelope."""

    envelope: BackendEnvelope
    records: list[Any]
    host: str
    pages: int = 1

    def to_document(self) -> dict[str, Any]:
        document = self.envelope.document
        document["data"] = list(self.records)
        document[HOST_ANNOTATION_FIELD] = self.host
        return document


@dataclass
class GatewayResponse:
    """Transport-neutral result of one gateway call."""

    status_code: int
    body: bytes = b""
    headers: dict[str, str] = field(default_factory=dict)
    media_type: str | None = None

    @classmethod
    def json(cls, document: dict[str, Any], status_code: int = 200) -> GatewayResponse:
        return cls(
            status_code=status_code,
            body=json.dumps(document).encode("utf-8"),
            media_type="application/json",
        )

    @classmethod
    def text(
        cls, content: str, status_code: int = 400, headers: dict[str, str] | None = None
    ) -> GatewayResponse:
        return cls(
            status_code=status_code,
            body=content.encode("utf-8"),
            headers=headers or {},
            media_type="text/plain",
        )


def relayable_headers(headers: httpx.Headers) -> dict[str, str]:
    """Backend response headers that can be passed through to the caller."""
    return {
        name: value for name, value in headers.items() if name.lower() not in HOP_BY_HOP_HEADERS
    }
