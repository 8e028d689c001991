"""API Document Model.

This module provides the in-memory representation of an API description
(paths, operations and the definitions table) together with the loader that
builds it from OpenAPI text and the serializer that writes it back.
"""

from .schema import (
    Document,
    DocumentFormat,
    HTTPMethod,
    Operation,
    Parameter,
    ParameterLocation,
    PathItem,
    Response,
    Schema,
)
from .loader import DocumentLoader, load_document, load_document_file
from .serializer import DocumentSerializer, dump_document, render_document

__all__ = [
    "Document",
    "DocumentFormat",
    "HTTPMethod",
    "Operation",
    "Parameter",
    "ParameterLocation",
    "PathItem",
    "Response",
    "Schema",
    "DocumentLoader",
    "load_document",
    "load_document_file",
    "DocumentSerializer",
    "dump_document",
    "render_document",
]
