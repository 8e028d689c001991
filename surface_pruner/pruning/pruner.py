"""Surface pruning by reference counting.

Pruning runs in five steps over one Document:

1. Baseline: every parameter and response schema of every operation is
   walked once, incrementing the count of each node it reaches.
2. Parameter stripping: parameters matching the path-scoped predicate are
   removed from their operations and their schemas are released again.
3. Exclusion: paths matching the exclusion predicate are removed and every
   schema their operations held is released.
4. Collection: after each release walk, every named definition whose count
   is zero or below is deleted from the definitions table.
5. Components: reusable parameters, responses and request bodies that
   still name a deleted definition are dropped from the output.

A release walk reaches the same transitive set as the matching baseline
walk, so definitions only reachable through a deleted one are released in
the same walk rather than by a cascade.
"""

from __future__ import annotations

import logging
import time
from typing import Callable, Dict, Iterable, List, Optional

from pydantic import BaseModel, Field

from ..config import Settings
from ..document.schema import (
    Document,
    HTTPMethod,
    Operation,
    Parameter,
    ParameterLocation,
    Schema,
)
from ..exceptions import ConsistencyError
from .components import drop_dangling_components
from .counter import ReferenceCounter
from .walker import walk_operation, walk_schema

logger = logging.getLogger(__name__)

PathPredicate = Callable[[str], bool]
ParameterPredicate = Callable[[Parameter], bool]


# ============================================================================
# Report Models
# ============================================================================


class StrippedParameter(BaseModel):
    """A parameter removed from a surviving operation."""

    path: str
    method: HTTPMethod
    name: str
    location: ParameterLocation


class PruneReport(BaseModel):
    """What a prune pass removed from the document."""

    removed_paths: List[str] = Field(default_factory=list)
    stripped_parameters: List[StrippedParameter] = Field(default_factory=list)
    removed_definitions: List[str] = Field(default_factory=list)
    removed_components: List[str] = Field(default_factory=list)
    surviving_operations: int = Field(default=0)

    def get_summary_text(self) -> str:
        """Human readable summary for the CLI."""
        parts = [
            f"Removed paths: {len(self.removed_paths)}",
            f"Stripped parameters: {len(self.stripped_parameters)}",
            f"Removed definitions: {len(self.removed_definitions)}",
            f"Removed components: {len(self.removed_components)}",
            f"Surviving operations: {self.surviving_operations}",
        ]
        if self.removed_definitions:
            parts.append(f"Definitions: {', '.join(self.removed_definitions)}")
        return "\n".join(parts)


# ============================================================================
# Predicates
# ============================================================================


def path_prefix_predicate(
    prefixes: Iterable[str], case_sensitive: bool = False
) -> PathPredicate:
    """Build a predicate matching paths that start with any of ``prefixes``."""
    if case_sensitive:
        candidates = tuple(prefixes)
    else:
        candidates = tuple(prefix.lower() for prefix in prefixes)

    def should_exclude(path: str) -> bool:
        value = path if case_sensitive else path.lower()
        return bool(candidates) and value.startswith(candidates)

    return should_exclude


def path_parameter_predicate(names: Iterable[str]) -> ParameterPredicate:
    """Build a predicate matching path parameters with one of ``names``."""
    wanted = frozenset(names)

    def is_path_scoped(parameter: Parameter) -> bool:
        return parameter.location == ParameterLocation.PATH and parameter.name in wanted

    return is_path_scoped


# ============================================================================
# Baseline Helpers
# ============================================================================


def register_document(document: Document, counter: ReferenceCounter) -> int:
    """Increment counts for everything reachable from every operation.

    Returns:
        Number of node visits
    """
    visits = 0
    for _, _, operation in document.operations():
        visits += walk_operation(operation, counter.increment, document.resolve)
    return visits


def release_document(document: Document, counter: ReferenceCounter) -> int:
    """Decrement counts for everything reachable from every operation.

    Mirrors :func:`register_document` without deleting anything.
    """
    visits = 0
    for _, _, operation in document.operations():
        visits += walk_operation(operation, counter.decrement, document.resolve)
    return visits


def count_references(document: Document) -> Dict[str, int]:
    """Baseline reference count of every named definition."""
    counter = ReferenceCounter()
    register_document(document, counter)
    return {
        name: counter.count(definition)
        for name, definition in document.definitions.items()
    }


# ============================================================================
# Pruner
# ============================================================================


class SurfacePruner:
    """Removes excluded paths and path-scoped parameters from a Document,
    then deletes every definition no surviving operation can reach.
    """

    def __init__(
        self,
        should_exclude: PathPredicate,
        is_path_scoped_parameter: ParameterPredicate,
    ):
        self.should_exclude = should_exclude
        self.is_path_scoped_parameter = is_path_scoped_parameter

    @classmethod
    def from_settings(cls, settings: Settings) -> "SurfacePruner":
        """Create a pruner using the configured prefixes and parameter names."""
        return cls(
            should_exclude=path_prefix_predicate(
                settings.exclude_prefixes, case_sensitive=settings.case_sensitive_paths
            ),
            is_path_scoped_parameter=path_parameter_predicate(settings.path_parameters),
        )

    def prune(self, document: Document) -> PruneReport:
        """Prune ``document`` in place.

        Exceptions raised by either predicate propagate unchanged; the
        document may then be partially pruned and should be discarded.

        Args:
            document: Document to mutate

        Returns:
            PruneReport describing what was removed

        Raises:
            MalformedGraphError: If a reference names an unknown definition
            ConsistencyError: If a release walk underflows a count
        """
        start = time.time()
        counter = ReferenceCounter()
        report = PruneReport()

        visits = register_document(document, counter)
        logger.debug("Baseline pass complete", extra={"count": visits})

        self._strip_parameters(document, counter, report)
        self._exclude_paths(document, counter, report)

        # Drop definitions that no operation reached in the first place.
        self._collect(document, counter, report)
        self._drop_components(document, report)

        report.surviving_operations = sum(1 for _ in document.operations())

        logger.info(
            "Pruned document '%s'",
            document.title,
            extra={
                "removed_paths": len(report.removed_paths),
                "stripped_parameters": len(report.stripped_parameters),
                "removed_definitions": len(report.removed_definitions),
                "removed_components": len(report.removed_components),
                "duration_ms": (time.time() - start) * 1000,
            },
        )
        return report

    def _strip_parameters(
        self, document: Document, counter: ReferenceCounter, report: PruneReport
    ) -> None:
        for path, method, operation in list(document.operations()):
            kept: List[Parameter] = []
            stripped: List[Parameter] = []
            for parameter in operation.parameters:
                if self.is_path_scoped_parameter(parameter):
                    stripped.append(parameter)
                else:
                    kept.append(parameter)

            if not stripped:
                continue

            operation.parameters[:] = kept

            for parameter in stripped:
                report.stripped_parameters.append(
                    StrippedParameter(
                        path=path,
                        method=method,
                        name=parameter.name,
                        location=parameter.location,
                    )
                )
                logger.debug(
                    "Stripped parameter %s from %s %s",
                    parameter.name,
                    method.value,
                    path,
                    extra={"path": path, "method": method.value, "parameter": parameter.name},
                )
                self._release(document, counter, report, parameter.schema, path)

    def _exclude_paths(
        self, document: Document, counter: ReferenceCounter, report: PruneReport
    ) -> None:
        for path in list(document.paths):
            if not self.should_exclude(path):
                continue

            item = document.paths.pop(path)
            report.removed_paths.append(path)
            logger.info("Removed path %s", path, extra={"path": path})

            for operation in item.operations.values():
                self._release_operation(document, counter, report, operation, path)

    def _release_operation(
        self,
        document: Document,
        counter: ReferenceCounter,
        report: PruneReport,
        operation: Operation,
        path: str,
    ) -> None:
        for root in operation.schemas():
            self._release(document, counter, report, root, path)

    def _release(
        self,
        document: Document,
        counter: ReferenceCounter,
        report: PruneReport,
        root: Optional[Schema],
        path: str,
    ) -> None:
        if root is None:
            return

        def release(node: Schema) -> None:
            try:
                counter.decrement(node)
            except ConsistencyError as e:
                e.context.path = path
                e.context.definition = document.definition_name(node)
                raise

        walk_schema(root, release, document.resolve)
        self._collect(document, counter, report)

    def _collect(
        self, document: Document, counter: ReferenceCounter, report: PruneReport
    ) -> None:
        for name, definition in list(document.definitions.items()):
            if counter.count(definition) > 0:
                continue
            del document.definitions[name]
            report.removed_definitions.append(name)
            logger.info("Removed definition %s", name, extra={"definition": name})

    def _drop_components(self, document: Document, report: PruneReport) -> None:
        for name in drop_dangling_components(document):
            report.removed_components.append(name)
            logger.info("Removed component %s", name, extra={"component": name})


def prune(
    document: Document,
    should_exclude: PathPredicate,
    is_path_scoped_parameter: ParameterPredicate,
) -> PruneReport:
    """Prune ``document`` in place with the given predicates."""
    return SurfacePruner(should_exclude, is_path_scoped_parameter).prune(document)
