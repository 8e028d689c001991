"""Turn a Document back into an OpenAPI mapping in its source dialect."""

from __future__ import annotations

import json
from typing import Any, Dict, List, Optional

import yaml

from .loader import BODY_NAME_KEY, PREFERRED_CONTENT_TYPE, SCHEMA_REF_PREFIXES, escape_pointer
from .schema import Document, DocumentFormat, Operation, Parameter, ParameterLocation, Response, Schema


def dump_schema(schema: Schema, ref_prefix: str) -> Dict[str, Any]:
    data: Dict[str, Any] = {}
    if schema.ref is not None:
        data["$ref"] = ref_prefix + escape_pointer(schema.ref)
    data.update(schema.keywords)
    if schema.items is not None:
        data["items"] = dump_schema(schema.items, ref_prefix)
    if schema.one_of:
        data["oneOf"] = [dump_schema(branch, ref_prefix) for branch in schema.one_of]
    if schema.all_of:
        data["allOf"] = [dump_schema(branch, ref_prefix) for branch in schema.all_of]
    if schema.any_of:
        data["anyOf"] = [dump_schema(branch, ref_prefix) for branch in schema.any_of]
    if schema.properties:
        data["properties"] = {
            name: dump_schema(prop, ref_prefix) for name, prop in schema.properties.items()
        }
    if schema.additional_properties is not None:
        data["additionalProperties"] = dump_schema(schema.additional_properties, ref_prefix)
    if schema.not_schema is not None:
        data["not"] = dump_schema(schema.not_schema, ref_prefix)
    if schema.tuple_items:
        data["items"] = [dump_schema(item, ref_prefix) for item in schema.tuple_items]
    if schema.discriminator_mapping:
        discriminator = dict(data.get("discriminator") or {})
        discriminator["mapping"] = {
            tag: ref_prefix + escape_pointer(node.ref)
            for tag, node in schema.discriminator_mapping.items()
        }
        data["discriminator"] = discriminator
    return data


class DocumentSerializer:
    """Writes a Document as an OpenAPI 2.x or 3.x mapping."""

    def __init__(self, document: Document):
        self.document = document
        self.ref_prefix = SCHEMA_REF_PREFIXES[document.source_format]

    def dump(self) -> Dict[str, Any]:
        document = self.document
        data: Dict[str, Any] = {}
        data.update(document.extensions)

        info = dict(data.get("info") or {})
        info["title"] = document.title
        if document.version is not None:
            info["version"] = document.version
        if document.description is not None:
            info["description"] = document.description
        data["info"] = info

        data["paths"] = self._dump_paths()

        definitions = {
            name: dump_schema(schema, self.ref_prefix)
            for name, schema in document.definitions.items()
        }
        if document.source_format == DocumentFormat.OPENAPI_3:
            components = dict(data.get("components") or {})
            components["schemas"] = definitions
            data["components"] = components
        else:
            data["definitions"] = definitions

        return data

    def _dump_paths(self) -> Dict[str, Any]:
        paths: Dict[str, Any] = {}
        for path, item in self.document.paths.items():
            entry: Dict[str, Any] = dict(item.extensions)
            for method, operation in item.operations.items():
                entry[method.value.lower()] = self._dump_operation(operation)
            paths[path] = entry
        return paths

    def _dump_operation(self, operation: Operation) -> Dict[str, Any]:
        data: Dict[str, Any] = {}
        if operation.operation_id:
            data["operationId"] = operation.operation_id
        if operation.summary:
            data["summary"] = operation.summary
        if operation.description:
            data["description"] = operation.description
        if operation.tags:
            data["tags"] = list(operation.tags)
        if operation.deprecated:
            data["deprecated"] = True
        data.update(operation.extensions)

        parameters: List[Dict[str, Any]] = []
        for parameter in operation.parameters:
            if (
                self.document.source_format == DocumentFormat.OPENAPI_3
                and parameter.location == ParameterLocation.BODY
            ):
                data["requestBody"] = self._dump_request_body(parameter)
            else:
                parameters.append(self._dump_parameter(parameter))
        if parameters:
            data["parameters"] = parameters

        data["responses"] = {
            status_code: self._dump_response(response)
            for status_code, response in operation.responses.items()
        }
        return data

    def _dump_parameter(self, parameter: Parameter) -> Dict[str, Any]:
        data: Dict[str, Any] = {"name": parameter.name, "in": parameter.location.value}
        data.update(self._dump_parameter_fields(parameter))
        return data

    def _dump_parameter_fields(self, parameter: Parameter) -> Dict[str, Any]:
        """Fields shared by parameters and response headers."""
        data: Dict[str, Any] = {}
        if parameter.required:
            data["required"] = True
        if parameter.description:
            data["description"] = parameter.description

        schema = self._schema_or_none(parameter.schema)
        if schema is not None:
            inline_type = (
                self.document.source_format == DocumentFormat.OPENAPI_2
                and parameter.location != ParameterLocation.BODY
            )
            if inline_type:
                data.update(schema)
            elif parameter.content_type:
                data["content"] = {parameter.content_type: {"schema": schema}}
            else:
                data["schema"] = schema

        data.update(parameter.extensions)
        return data

    def _dump_request_body(self, parameter: Parameter) -> Dict[str, Any]:
        data: Dict[str, Any] = {}
        if parameter.description:
            data["description"] = parameter.description
        if parameter.required:
            data["required"] = True
        if parameter.name != "body":
            data[BODY_NAME_KEY] = parameter.name

        media: Dict[str, Any] = {}
        schema = self._schema_or_none(parameter.schema)
        if schema is not None:
            media["schema"] = schema
        data["content"] = {parameter.content_type or PREFERRED_CONTENT_TYPE: media}
        data.update(parameter.extensions)
        return data

    def _dump_response(self, response: Response) -> Dict[str, Any]:
        data: Dict[str, Any] = {"description": response.description or ""}
        schema = self._schema_or_none(response.schema)
        if self.document.source_format == DocumentFormat.OPENAPI_3:
            if schema is not None or response.content_type:
                media = {"schema": schema} if schema is not None else {}
                data["content"] = {response.content_type or PREFERRED_CONTENT_TYPE: media}
        elif schema is not None:
            data["schema"] = schema
        if response.headers:
            data["headers"] = {
                name: self._dump_parameter_fields(header)
                for name, header in response.headers.items()
            }
        data.update(response.extensions)
        return data

    def _schema_or_none(self, schema: Optional[Schema]) -> Optional[Dict[str, Any]]:
        if schema is None:
            return None
        return dump_schema(schema, self.ref_prefix)


def dump_document(document: Document) -> Dict[str, Any]:
    """Serialize a Document into an OpenAPI mapping."""
    return DocumentSerializer(document).dump()


def render_document(document: Document, output_format: str = "json") -> str:
    """Render a Document as JSON or YAML text."""
    data = dump_document(document)
    if output_format == "yaml":
        return yaml.safe_dump(data, sort_keys=False, allow_unicode=True)
    return json.dumps(data, indent=2, ensure_ascii=False)
