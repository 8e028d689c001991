"""Grouping of operations into generated client classes."""

from __future__ import annotations

from typing import Dict, List, Tuple

from ..document.schema import Document, HTTPMethod, Operation

DEFAULT_CLIENT = "default"


def client_name(operation: Operation) -> str:
    """Name of the client an operation is generated into.

    An operation with exactly one tag belongs to that tag's client. Otherwise
    the part of the operation id before the first underscore is used, so
    ``Apps_GetApps`` lands in ``Apps``.
    """
    if len(operation.tags) == 1:
        return operation.tags[0]

    if operation.operation_id and "_" in operation.operation_id:
        prefix = operation.operation_id.split("_", 1)[0]
        if prefix:
            return prefix

    return DEFAULT_CLIENT


def group_by_client(
    document: Document,
) -> Dict[str, List[Tuple[str, HTTPMethod, Operation]]]:
    """Group the document's operations by client name."""
    groups: Dict[str, List[Tuple[str, HTTPMethod, Operation]]] = {}
    for path, method, operation in document.operations():
        groups.setdefault(client_name(operation), []).append((path, method, operation))
    return groups
