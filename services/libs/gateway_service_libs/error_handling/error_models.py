"""
Error codes and the canonical error data model for gateway services.
"""

from __future__ import annotations

from datetime import datetime
from enum import Enum
from typing import Any
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field


class ErrorCode(str, Enum):
    UNKNOWN_OPERATION = "UNKNOWN_OPERATION"
    INVALID_REQUEST = "INVALID_REQUEST"
    AUTHENTICATION_ERROR = "AUTHENTICATION_ERROR"
    UNRECOGNIZED_HOST = "UNRECOGNIZED_HOST"
    BACKEND_LOGICAL_FAILURE = "BACKEND_LOGICAL_FAILURE"
    TRANSPORT_FAILURE = "TRANSPORT_FAILURE"
    CANCELLED = "CANCELLED"


class ErrorDetail(BaseModel):
    """
    The canonical, PURE data model for an error raised inside the gateway.
    This model contains only data fields and no behavior.
    """

    error_code: ErrorCode
    message: str
    correlation_id: UUID
    timestamp: datetime
    service: str
    operation: str
    details: dict[str, Any] = Field(default_factory=dict)

    model_config = ConfigDict(frozen=True)
