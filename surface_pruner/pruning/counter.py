"""Identity-keyed reference counts for schema nodes."""

from __future__ import annotations

from typing import Dict, Tuple

from ..document.schema import Schema
from ..exceptions import ConsistencyError


class ReferenceCounter:
    """Counts live references per schema node.

    Keys are node identities, not values: two structurally equal anonymous
    schemas are counted separately. The counter never removes anything from
    a document; deciding what to delete is up to the caller.
    """

    def __init__(self) -> None:
        # id(node) -> (node, count). Holding the node keeps its id stable.
        self._counts: Dict[int, Tuple[Schema, int]] = {}

    def increment(self, node: Schema) -> int:
        """Add one reference to ``node`` and return the new count."""
        count = self.count(node) + 1
        self._counts[id(node)] = (node, count)
        return count

    def decrement(self, node: Schema) -> int:
        """Drop one reference from ``node`` and return the new count.

        Raises:
            ConsistencyError: If ``node`` holds no references, leaving the
                count unchanged
        """
        count = self.count(node)
        if count <= 0:
            raise ConsistencyError(
                "Reference count underflow: node released more often than it was registered"
            )
        self._counts[id(node)] = (node, count - 1)
        return count - 1

    def count(self, node: Schema) -> int:
        entry = self._counts.get(id(node))
        return entry[1] if entry is not None else 0

    def snapshot(self) -> Dict[int, int]:
        """Copy of the current counts keyed by node identity."""
        return {key: count for key, (_, count) in self._counts.items()}

    def __len__(self) -> int:
        return len(self._counts)

    def __contains__(self, node: object) -> bool:
        return id(node) in self._counts
