"""Pydantic models for the in-memory API description.

A Document owns its paths and its definitions table. Schemas refer to named
definitions by name (``Schema.ref``), never by copy, so the relation graph
can be cyclic while the object tree itself stays a tree. Model instances are
compared by value in pydantic, so anything that needs node identity (the
walker, the reference counter) keys on ``id()`` instead.
"""

from __future__ import annotations

from enum import Enum
from typing import Any, Dict, Iterator, List, Optional, Tuple

from pydantic import BaseModel, Field

from ..exceptions import MalformedGraphError


class HTTPMethod(str, Enum):
    """HTTP methods for API operations."""

    GET = "GET"
    POST = "POST"
    PUT = "PUT"
    PATCH = "PATCH"
    DELETE = "DELETE"
    HEAD = "HEAD"
    OPTIONS = "OPTIONS"


class ParameterLocation(str, Enum):
    """Location of API parameters."""

    PATH = "path"
    QUERY = "query"
    HEADER = "header"
    COOKIE = "cookie"
    BODY = "body"
    FORM_DATA = "formData"


class DocumentFormat(str, Enum):
    """Supported API description dialects."""

    OPENAPI_3 = "openapi_3"
    OPENAPI_2 = "openapi_2"  # Swagger


# ============================================================================
# Schema Graph
# ============================================================================


class Schema(BaseModel):
    """A node in the type-definition graph.

    A node may combine several kinds at once (an object with properties that
    is also an ``allOf`` branch holder, for instance); the walker follows all
    of its outgoing edges.
    """

    ref: Optional[str] = Field(
        default=None, description="Name of the referenced entry in the definitions table"
    )
    items: Optional[Schema] = Field(default=None, description="Element type of an array")
    one_of: List[Schema] = Field(default_factory=list, description="oneOf branches")
    all_of: List[Schema] = Field(default_factory=list, description="allOf branches")
    any_of: List[Schema] = Field(default_factory=list, description="anyOf branches")
    properties: Dict[str, Schema] = Field(
        default_factory=dict, description="Named property schemas"
    )
    additional_properties: Optional[Schema] = Field(
        default=None, description="Value type of a map-like object"
    )
    not_schema: Optional[Schema] = Field(default=None, description="Negated schema (``not``)")
    tuple_items: List[Schema] = Field(
        default_factory=list, description="Positional item types when ``items`` is a list"
    )
    discriminator_mapping: Dict[str, Schema] = Field(
        default_factory=dict,
        description="Discriminator values mapped to reference nodes of their subtypes",
    )
    keywords: Dict[str, Any] = Field(
        default_factory=dict,
        description="Every other JSON-schema keyword, kept verbatim (type, format, enum, ...)",
    )

    @property
    def is_reference(self) -> bool:
        return self.ref is not None

    def children(self) -> List[Schema]:
        """Inline child schemas, in a stable order. Does not follow ``ref``."""
        nodes: List[Schema] = []
        if self.items is not None:
            nodes.append(self.items)
        nodes.extend(self.one_of)
        nodes.extend(self.all_of)
        nodes.extend(self.any_of)
        nodes.extend(self.properties.values())
        if self.additional_properties is not None:
            nodes.append(self.additional_properties)
        if self.not_schema is not None:
            nodes.append(self.not_schema)
        nodes.extend(self.tuple_items)
        nodes.extend(self.discriminator_mapping.values())
        return nodes


# ============================================================================
# Surface Models
# ============================================================================


class Parameter(BaseModel):
    """Represents a single operation parameter."""

    name: str = Field(..., description="Parameter name")
    location: ParameterLocation = Field(..., description="Where the parameter is sent")
    required: bool = Field(default=False, description="Whether the parameter is required")
    description: Optional[str] = Field(default=None, description="Parameter description")
    content_type: Optional[str] = Field(
        default=None, description="Media type of a request body or content-typed parameter"
    )
    schema_: Optional[Schema] = Field(
        default=None, alias="schema", description="Parameter type"
    )
    extensions: Dict[str, Any] = Field(
        default_factory=dict, description="Other parameter fields, kept verbatim"
    )

    model_config = {"populate_by_name": True}

    @property
    def schema(self) -> Optional[Schema]:
        return self.schema_


class Response(BaseModel):
    """Represents an operation response."""

    description: Optional[str] = Field(default=None, description="Response description")
    content_type: Optional[str] = Field(default=None, description="Response content type")
    schema_: Optional[Schema] = Field(
        default=None, alias="schema", description="Response body type"
    )
    headers: Dict[str, Parameter] = Field(
        default_factory=dict, description="Response headers, as header-located parameters"
    )
    extensions: Dict[str, Any] = Field(
        default_factory=dict, description="Other response fields (links, ...)"
    )

    model_config = {"populate_by_name": True}

    @property
    def schema(self) -> Optional[Schema]:
        return self.schema_


class Operation(BaseModel):
    """A single HTTP verb on a path."""

    operation_id: Optional[str] = Field(default=None, description="Unique operation identifier")
    summary: Optional[str] = Field(default=None, description="Short summary")
    description: Optional[str] = Field(default=None, description="Detailed description")
    tags: List[str] = Field(default_factory=list, description="Categorization tags")
    parameters: List[Parameter] = Field(default_factory=list, description="Input parameters")
    responses: Dict[str, Response] = Field(
        default_factory=dict, description="Responses keyed by status code"
    )
    deprecated: bool = Field(default=False)
    extensions: Dict[str, Any] = Field(
        default_factory=dict, description="Other operation fields (security, x-*, ...)"
    )

    def schemas(self) -> Iterator[Optional[Schema]]:
        """Yield every parameter schema, then every response schema.

        Response header schemas follow the body schema of their response.
        """
        for parameter in self.parameters:
            yield parameter.schema
        for response in self.responses.values():
            yield response.schema
            for header in response.headers.values():
                yield header.schema


class PathItem(BaseModel):
    """Operations available on one path."""

    operations: Dict[HTTPMethod, Operation] = Field(default_factory=dict)
    extensions: Dict[str, Any] = Field(
        default_factory=dict, description="Other path item fields (summary, servers, ...)"
    )


class Document(BaseModel):
    """The whole API description: paths, operations and the definitions table."""

    title: str = Field(default="Untitled API")
    version: Optional[str] = Field(default=None)
    description: Optional[str] = Field(default=None)
    source_format: DocumentFormat = Field(default=DocumentFormat.OPENAPI_3)
    paths: Dict[str, PathItem] = Field(default_factory=dict)
    definitions: Dict[str, Schema] = Field(default_factory=dict)
    extensions: Dict[str, Any] = Field(
        default_factory=dict,
        description="Top-level fields not modelled here (servers, tags, security, ...)",
    )

    def operations(self) -> Iterator[Tuple[str, HTTPMethod, Operation]]:
        """Yield ``(path, method, operation)`` for every operation."""
        for path, item in self.paths.items():
            for method, operation in item.operations.items():
                yield path, method, operation

    def resolve(self, name: str) -> Schema:
        """Look up a named definition.

        Raises:
            MalformedGraphError: If no definition has that name
        """
        try:
            return self.definitions[name]
        except KeyError:
            raise MalformedGraphError(name) from None

    def definition_name(self, schema: Schema) -> Optional[str]:
        """Return the name under which ``schema`` itself is registered, if any."""
        for name, definition in self.definitions.items():
            if definition is schema:
                return name
        return None


Schema.model_rebuild()
