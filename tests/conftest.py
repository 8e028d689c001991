"""Shared fixtures for surface_pruner tests."""

import copy
import json
import logging

import pytest

from surface_pruner.document.schema import (
    Document,
    HTTPMethod,
    Operation,
    Parameter,
    ParameterLocation,
    PathItem,
    Response,
    Schema,
)


def ref(name: str) -> Schema:
    """Inline reference node to a named definition."""
    return Schema(ref=name)


def get_operation(response_schema=None, parameters=None, operation_id=None) -> Operation:
    """Operation with a single 200 response."""
    return Operation(
        operation_id=operation_id,
        parameters=parameters or [],
        responses={"200": Response(description="OK", schema=response_schema)},
    )


SAMPLE_OPENAPI_3 = {
    "openapi": "3.0.1",
    "info": {"title": "Squidex API", "version": "1.0.0"},
    "servers": [{"url": "https://cloud.squidex.io"}],
    "paths": {
        "/api/apps/{app}/schemas": {
            "parameters": [
                {"name": "app", "in": "path", "required": True, "schema": {"type": "string"}}
            ],
            "get": {
                "operationId": "Schemas_GetSchemas",
                "tags": ["Schemas"],
                "responses": {
                    "200": {
                        "description": "Schemas returned.",
                        "content": {
                            "application/json": {
                                "schema": {"$ref": "#/components/schemas/SchemasDto"}
                            }
                        },
                    }
                },
            },
        },
        "/api/apps/{app}/schemas/{name}": {
            "put": {
                "operationId": "Schemas_PutSchema",
                "tags": ["Schemas"],
                "parameters": [
                    {"name": "app", "in": "path", "required": True, "schema": {"type": "string"}},
                    {"name": "name", "in": "path", "required": True, "schema": {"type": "string"}},
                ],
                "requestBody": {
                    "required": True,
                    "content": {
                        "application/json": {
                            "schema": {"$ref": "#/components/schemas/UpdateSchemaDto"}
                        }
                    },
                },
                "responses": {
                    "200": {
                        "description": "Schema updated.",
                        "content": {
                            "application/json": {
                                "schema": {"$ref": "#/components/schemas/SchemaDto"}
                            }
                        },
                    }
                },
            }
        },
        "/api/content/{app}/{schema}": {
            "get": {
                "operationId": "Contents_GetContents",
                "tags": ["Contents"],
                "parameters": [
                    {"name": "app", "in": "path", "required": True, "schema": {"type": "string"}},
                    {"name": "schema", "in": "path", "required": True, "schema": {"type": "string"}},
                ],
                "responses": {
                    "200": {
                        "description": "Contents returned.",
                        "content": {
                            "application/json": {
                                "schema": {"$ref": "#/components/schemas/ContentsDto"}
                            }
                        },
                    }
                },
            }
        },
        "/api/ping": {
            "get": {
                "operationId": "Ping_GetPing",
                "responses": {
                    "204": {"description": "Service ping successful."},
                    "default": {
                        "description": "Operation failed.",
                        "content": {
                            "application/json": {
                                "schema": {"$ref": "#/components/schemas/ErrorDto"}
                            }
                        },
                    },
                },
            }
        },
    },
    "components": {
        "securitySchemes": {"squidex-oauth-auth": {"type": "oauth2"}},
        "schemas": {
            "SchemasDto": {
                "type": "object",
                "properties": {
                    "items": {
                        "type": "array",
                        "items": {"$ref": "#/components/schemas/SchemaDto"},
                    }
                },
            },
            "SchemaDto": {
                "type": "object",
                "properties": {
                    "name": {"type": "string"},
                    "fields": {
                        "type": "array",
                        "items": {"$ref": "#/components/schemas/FieldDto"},
                    },
                    "parent": {"$ref": "#/components/schemas/SchemaDto"},
                },
            },
            "FieldDto": {
                "type": "object",
                "properties": {
                    "name": {"type": "string"},
                    "properties": {
                        "oneOf": [
                            {"$ref": "#/components/schemas/StringFieldPropertiesDto"},
                            {"$ref": "#/components/schemas/NumberFieldPropertiesDto"},
                        ]
                    },
                },
            },
            "StringFieldPropertiesDto": {
                "allOf": [
                    {"$ref": "#/components/schemas/FieldPropertiesDto"},
                    {"type": "object", "properties": {"maxLength": {"type": "integer"}}},
                ]
            },
            "NumberFieldPropertiesDto": {
                "allOf": [
                    {"$ref": "#/components/schemas/FieldPropertiesDto"},
                    {"type": "object", "properties": {"maxValue": {"type": "number"}}},
                ]
            },
            "FieldPropertiesDto": {
                "type": "object",
                "properties": {"label": {"type": "string", "nullable": True}},
            },
            "UpdateSchemaDto": {
                "type": "object",
                "properties": {"label": {"type": "string"}},
            },
            "ContentsDto": {
                "type": "object",
                "properties": {
                    "total": {"type": "integer", "format": "int64"},
                    "items": {
                        "type": "array",
                        "items": {"$ref": "#/components/schemas/ContentDto"},
                    },
                },
            },
            "ContentDto": {
                "type": "object",
                "properties": {
                    "data": {
                        "type": "object",
                        "additionalProperties": {
                            "$ref": "#/components/schemas/ContentFieldData"
                        },
                    },
                    "schema": {"$ref": "#/components/schemas/SchemaDto"},
                },
            },
            "ContentFieldData": {"type": "object"},
            "ErrorDto": {
                "type": "object",
                "properties": {"message": {"type": "string"}},
            },
            "LegacyDto": {"type": "object"},
        },
    },
}


@pytest.fixture(autouse=True)
def restore_logging():
    """Undo root logger changes made by setup_logging."""
    root = logging.getLogger()
    handlers, level = list(root.handlers), root.level
    yield
    root.handlers[:] = handlers
    root.setLevel(level)


@pytest.fixture
def sample_openapi_3_spec():
    """Sample OpenAPI 3 description as a mapping."""
    return copy.deepcopy(SAMPLE_OPENAPI_3)


@pytest.fixture
def sample_spec_file(tmp_path, sample_openapi_3_spec):
    """Sample OpenAPI 3 description written to a JSON file."""
    spec_file = tmp_path / "swagger.json"
    spec_file.write_text(json.dumps(sample_openapi_3_spec), encoding="utf-8")
    return spec_file


@pytest.fixture
def user_document():
    """``GET /users`` and ``GET /profile`` both return ``User``; ``User.address`` is an ``Address``."""
    return Document(
        title="Users",
        definitions={
            "User": Schema(
                keywords={"type": "object"},
                properties={"name": Schema(keywords={"type": "string"}), "address": ref("Address")},
            ),
            "Address": Schema(
                keywords={"type": "object"},
                properties={"street": Schema(keywords={"type": "string"})},
            ),
        },
        paths={
            "/users": PathItem(operations={HTTPMethod.GET: get_operation(ref("User"))}),
            "/profile": PathItem(operations={HTTPMethod.GET: get_operation(ref("User"))}),
        },
    )


@pytest.fixture
def app_parameter():
    return Parameter(
        name="app",
        location=ParameterLocation.PATH,
        required=True,
        schema=Schema(keywords={"type": "string"}),
    )
