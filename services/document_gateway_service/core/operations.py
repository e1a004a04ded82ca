"""The closed set of operations the gateway knows how to perform."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum


class OperationId(str, Enum):
    QUERY = "Query"
    LIST_ITEMS_AT_PATH = "ListItemsAtPath"
    DOWNLOAD_ITEM_CONTENT = "DownloadItemContent"


@dataclass(frozen=True)
class OperationDefinition:
    """How one operation is prepared and executed."""

    operation_id: OperationId
    requires_auth: bool = True
    carries_api_version: bool = True
    paginated: bool = True
    rewrites_query_body: bool = False

    @property
    def name(self) -> str:
        return self.operation_id.value


OPERATIONS: dict[OperationId, OperationDefinition] = {
    OperationId.QUERY: OperationDefinition(
        operation_id=OperationId.QUERY,
        rewrites_query_body=True,
    ),
    OperationId.LIST_ITEMS_AT_PATH: OperationDefinition(
        operation_id=OperationId.LIST_ITEMS_AT_PATH,
    ),
    OperationId.DOWNLOAD_ITEM_CONTENT: OperationDefinition(
        operation_id=OperationId.DOWNLOAD_ITEM_CONTENT,
        paginated=False,
    ),
}

# Identifiers published by earlier connector definitions.
OPERATION_ALIASES: dict[str, OperationId] = {
    "VqlQuery": OperationId.QUERY,
}


def resolve_operation(operation_id: str) -> OperationDefinition | None:
    """Look up an operation by identifier; None when it is not recognized."""
    if operation_id in OPERATION_ALIASES:
        return OPERATIONS[OPERATION_ALIASES[operation_id]]
    try:
        return OPERATIONS[OperationId(operation_id)]
    except ValueError:
        return None
