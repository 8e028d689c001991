"""Cycle-safe traversal of the schema graph.

A walk starts at one root schema and visits every node reachable from it
through item types, referenced definitions, composition branches, property
schemas, ``not`` schemas and discriminator mappings. Each distinct node (by identity) is visited at most once
per walk, so self-referential definitions terminate and a node reached along
several routes inside one walk is only counted once.
"""

from __future__ import annotations

import logging
from typing import Callable, Iterator, List, Optional, Set

from ..document.schema import Operation, Schema

logger = logging.getLogger(__name__)

Resolver = Callable[[str], Schema]
Visitor = Callable[[Schema], object]


def iter_schema(root: Optional[Schema], resolve: Resolver) -> Iterator[Schema]:
    """Yield ``root`` and every schema reachable from it, pre-order.

    Args:
        root: Schema to start from; ``None`` yields nothing
        resolve: Maps a definition name to its schema. Raises
            MalformedGraphError for unknown names

    Yields:
        Each reachable node exactly once
    """
    if root is None:
        return

    visited: Set[int] = set()
    stack: List[Schema] = [root]

    while stack:
        node = stack.pop()
        if id(node) in visited:
            continue
        visited.add(id(node))

        yield node

        successors = node.children()
        if node.ref is not None:
            # Referenced definition follows the item type, before compositions.
            position = 1 if node.items is not None else 0
            successors.insert(position, resolve(node.ref))

        # Reversed so the first successor is visited first.
        for successor in reversed(successors):
            if id(successor) not in visited:
                stack.append(successor)


def walk_schema(root: Optional[Schema], visitor: Visitor, resolve: Resolver) -> int:
    """Call ``visitor`` on every node reachable from ``root``.

    Returns:
        Number of nodes visited
    """
    visited = 0
    for node in iter_schema(root, resolve):
        visitor(node)
        visited += 1
    return visited


def walk_operation(operation: Operation, visitor: Visitor, resolve: Resolver) -> int:
    """Walk every parameter schema and every response schema of an operation.

    Each root gets its own walk, so a definition reachable from two
    parameters of the same operation is visited twice.

    Returns:
        Total number of visits across all walks
    """
    visited = 0
    for root in operation.schemas():
        visited += walk_schema(root, visitor, resolve)
    logger.debug(
        "Walked operation %s",
        operation.operation_id or "<anonymous>",
        extra={"count": visited},
    )
    return visited
