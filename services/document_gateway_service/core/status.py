"""Normalisation of the backend's success signalling into one boolean."""

from __future__ import annotations

import re

from services.document_gateway_service.core.models import BackendEnvelope

SUCCESS_STATUSES = frozenset({"SUCCESS", "WARNING"})

_FAILURE_MARKER = re.compile(r'"responseStatus"\s*:\s*"FAILURE"')


def is_success_status(response_status: str | None) -> bool:
    return response_status in SUCCESS_STATUSES


def body_signals_failure(body: str) -> bool:
    return _FAILURE_MARKER.search(body) is not None


def page_succeeded(envelope: BackendEnvelope, raw_body: str, *, strict: bool) -> bool:
    """
    Decide whether a parsed backend page is a logical success.

    Strict mode requires responseStatus SUCCESS or WARNING; anything else,
    including a missing field, fails. Lenient mode only rejects bodies that
    carry an explicit FAILURE status marker.
    """
    if strict:
        return is_success_status(envelope.response_status)
    return not body_signals_failure(raw_body)
