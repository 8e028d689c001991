"""Reachability and reference-counting engine for pruning an API surface."""

from .clients import client_name, group_by_client
from .components import drop_dangling_components, iter_refs
from .counter import ReferenceCounter
from .pruner import (
    PruneReport,
    StrippedParameter,
    SurfacePruner,
    count_references,
    path_parameter_predicate,
    path_prefix_predicate,
    prune,
    register_document,
    release_document,
)
from .walker import iter_schema, walk_operation, walk_schema

__all__ = [
    "ReferenceCounter",
    "PruneReport",
    "StrippedParameter",
    "SurfacePruner",
    "client_name",
    "count_references",
    "drop_dangling_components",
    "group_by_client",
    "iter_schema",
    "iter_refs",
    "path_parameter_predicate",
    "path_prefix_predicate",
    "prune",
    "register_document",
    "release_document",
    "walk_operation",
    "walk_schema",
]
