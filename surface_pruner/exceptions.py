"""Custom exception hierarchy for surface_pruner.

This module provides a structured exception hierarchy that:
1. Separates malformed input graphs from internal bookkeeping faults
2. Provides consistent error messages and codes
3. Includes context for debugging and logging

Errors raised by caller-supplied predicates are never wrapped here; they
propagate to the caller unchanged.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, Optional


class ErrorCode(str, Enum):
    """Standard error codes for categorizing errors."""

    # General errors
    INTERNAL_ERROR = "INTERNAL_ERROR"
    CONFIGURATION_ERROR = "CONFIGURATION_ERROR"

    # Document errors
    DOCUMENT_LOAD_ERROR = "DOCUMENT_LOAD_ERROR"
    MALFORMED_GRAPH = "MALFORMED_GRAPH"

    # Pruning errors
    CONSISTENCY_ERROR = "CONSISTENCY_ERROR"


# CLI exit code mapping
ERROR_CODE_TO_EXIT_STATUS: Dict[ErrorCode, int] = {
    ErrorCode.INTERNAL_ERROR: 1,
    ErrorCode.CONFIGURATION_ERROR: 2,
    ErrorCode.DOCUMENT_LOAD_ERROR: 3,
    ErrorCode.MALFORMED_GRAPH: 4,
    ErrorCode.CONSISTENCY_ERROR: 5,
}


@dataclass
class ErrorContext:
    """Additional context for debugging errors."""

    timestamp: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    path: Optional[str] = None
    method: Optional[str] = None
    definition: Optional[str] = None
    additional: Dict[str, Any] = field(default_factory=dict)


class SurfacePrunerError(Exception):
    """
    Base exception for all surface_pruner errors.

    All custom exceptions should inherit from this class to ensure
    consistent error handling and reporting.
    """

    def __init__(
        self,
        message: str,
        code: ErrorCode = ErrorCode.INTERNAL_ERROR,
        context: Optional[ErrorContext] = None,
        cause: Optional[Exception] = None,
    ):
        super().__init__(message)
        self.message = message
        self.code = code
        self.context = context or ErrorContext()
        self.cause = cause

    @property
    def exit_status(self) -> int:
        """Get the process exit status for this error."""
        return ERROR_CODE_TO_EXIT_STATUS.get(self.code, 1)

    def to_dict(self) -> Dict[str, Any]:
        """Convert error to dictionary for structured output."""
        result = {
            "error": {
                "code": self.code.value,
                "message": self.message,
                "timestamp": self.context.timestamp.isoformat(),
            }
        }

        if self.context.path:
            result["error"]["path"] = self.context.path
        if self.context.method:
            result["error"]["method"] = self.context.method
        if self.context.definition:
            result["error"]["definition"] = self.context.definition
        if self.context.additional:
            result["error"]["details"] = dict(self.context.additional)

        return result

    def __str__(self) -> str:
        return f"[{self.code.value}] {self.message}"


class ConfigurationError(SurfacePrunerError):
    """Settings hold a value the pruner cannot use."""

    def __init__(self, message: str, setting: Optional[str] = None, **kwargs):
        context = kwargs.pop("context", None) or ErrorContext()
        if setting:
            context.additional["setting"] = setting
        super().__init__(
            message, code=ErrorCode.CONFIGURATION_ERROR, context=context, **kwargs
        )


class DocumentLoadError(SurfacePrunerError):
    """The API description could not be read or is not a supported format."""

    def __init__(self, message: str, source: Optional[str] = None, **kwargs):
        context = kwargs.pop("context", None) or ErrorContext()
        if source:
            context.additional["source"] = source
        super().__init__(
            message, code=ErrorCode.DOCUMENT_LOAD_ERROR, context=context, **kwargs
        )


class MalformedGraphError(SurfacePrunerError):
    """A schema reference names a definition absent from the definitions table."""

    def __init__(self, definition: str, **kwargs):
        context = kwargs.pop("context", None) or ErrorContext()
        context.definition = definition
        super().__init__(
            f"Reference to unknown definition '{definition}'",
            code=ErrorCode.MALFORMED_GRAPH,
            context=context,
            **kwargs,
        )


class ConsistencyError(SurfacePrunerError):
    """A reference count would drop below zero.

    Raised when a decrement walk reaches a node that no earlier increment
    walk registered, which means the pruning bookkeeping is out of step with
    the document.
    """

    def __init__(self, message: str, definition: Optional[str] = None, **kwargs):
        context = kwargs.pop("context", None) or ErrorContext()
        if definition:
            context.definition = definition
        super().__init__(
            message, code=ErrorCode.CONSISTENCY_ERROR, context=context, **kwargs
        )
