"""OpenAPI document loader.

Reads OpenAPI 3.x and OpenAPI 2.x (Swagger) descriptions, JSON or YAML, into
the in-memory Document model. Schema references into the definitions table
stay references (``Schema.ref``); parameter, response and request body
references are resolved inline since only schemas take part in pruning.
"""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple, Union

import yaml

from ..exceptions import DocumentLoadError
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

logger = logging.getLogger(__name__)

SCHEMA_REF_PREFIXES = {
    DocumentFormat.OPENAPI_3: "#/components/schemas/",
    DocumentFormat.OPENAPI_2: "#/definitions/",
}

HTTP_METHODS = ["get", "post", "put", "patch", "delete", "head", "options"]

# Keywords of a Swagger 2 non-body parameter that describe its type.
PARAMETER_TYPE_KEYS = {
    "type",
    "format",
    "items",
    "collectionFormat",
    "default",
    "maximum",
    "exclusiveMaximum",
    "minimum",
    "exclusiveMinimum",
    "maxLength",
    "minLength",
    "pattern",
    "maxItems",
    "minItems",
    "uniqueItems",
    "enum",
    "multipleOf",
}

PARAMETER_FIELDS = {"name", "in", "required", "description", "schema"}

PREFERRED_CONTENT_TYPE = "application/json"

# Request body name used by code generators for the body argument.
BODY_NAME_KEY = "x-codegen-request-body-name"

REQUEST_BODY_FIELDS = {"description", "required", "content"}


def unescape_pointer(token: str) -> str:
    """Decode a JSON pointer token."""
    return token.replace("~1", "/").replace("~0", "~")


def escape_pointer(token: str) -> str:
    """Encode a definition name as a JSON pointer token."""
    return token.replace("~", "~0").replace("/", "~1")


class DocumentLoader:
    """Loader for OpenAPI 2.x and 3.x descriptions."""

    def __init__(self):
        self._format_parsers = {
            DocumentFormat.OPENAPI_3: self._parse_openapi_3,
            DocumentFormat.OPENAPI_2: self._parse_openapi_2,
        }

    def detect_format(self, spec: Dict[str, Any]) -> DocumentFormat:
        """Detect the dialect of a decoded description.

        Raises:
            DocumentLoadError: If the mapping is neither OpenAPI 3 nor Swagger 2
        """
        if "openapi" in spec and str(spec["openapi"]).startswith("3"):
            return DocumentFormat.OPENAPI_3
        if "swagger" in spec and str(spec["swagger"]).startswith("2"):
            return DocumentFormat.OPENAPI_2
        raise DocumentLoadError(
            "Unsupported document: expected an 'openapi: 3.x' or 'swagger: 2.x' field"
        )

    def decode(self, content: str, source: Optional[str] = None) -> Dict[str, Any]:
        """Decode JSON or YAML text into a mapping."""
        try:
            if content.strip().startswith("{"):
                data = json.loads(content)
            else:
                data = yaml.safe_load(content)
        except (json.JSONDecodeError, yaml.YAMLError) as e:
            raise DocumentLoadError(
                f"Could not decode document: {e}", source=source, cause=e
            ) from e

        if not isinstance(data, dict):
            raise DocumentLoadError("Document root must be a mapping", source=source)
        return data

    def parse(
        self,
        spec: Union[str, Dict[str, Any]],
        format_hint: Optional[DocumentFormat] = None,
        source: Optional[str] = None,
    ) -> Document:
        """Parse a description into a Document.

        Args:
            spec: Raw JSON/YAML text or an already decoded mapping
            format_hint: Optional dialect (auto-detected if not provided)
            source: Where the content came from, for error messages

        Returns:
            Document with paths, operations and definitions

        Raises:
            DocumentLoadError: If the content cannot be decoded or is unsupported
        """
        if isinstance(spec, str):
            spec = self.decode(spec, source=source)

        doc_format = format_hint or self.detect_format(spec)
        return self._format_parsers[doc_format](spec)

    # =========================================================================
    # OpenAPI 3.x
    # =========================================================================

    def _parse_openapi_3(self, spec: Dict[str, Any]) -> Document:
        """Parse OpenAPI 3.x specification."""
        ref_prefix = SCHEMA_REF_PREFIXES[DocumentFormat.OPENAPI_3]
        components = dict(spec.get("components") or {})
        raw_definitions = components.pop("schemas", None) or {}

        extensions = {k: v for k, v in spec.items() if k not in ("paths", "components")}
        if components:
            extensions["components"] = components

        return self._build_document(
            spec,
            DocumentFormat.OPENAPI_3,
            self._parse_definitions(raw_definitions, ref_prefix),
            self._parse_paths(spec, ref_prefix, self._parse_openapi_3_operation),
            extensions,
        )

    def _parse_openapi_3_operation(
        self,
        operation: Dict[str, Any],
        common_params: List[Dict[str, Any]],
        spec: Dict[str, Any],
        ref_prefix: str,
    ) -> Operation:
        parameters = [
            self._parse_openapi_3_parameter(param, ref_prefix)
            for param in self._merge_parameters(common_params, operation.get("parameters", []), spec)
        ]

        request_body = self._parse_openapi_3_request_body(
            operation.get("requestBody"), spec, ref_prefix
        )
        if request_body is not None:
            parameters.append(request_body)

        responses = {}
        for status_code, response in (operation.get("responses") or {}).items():
            if "$ref" in response:
                resolved = self._resolve_ref(response["$ref"], spec)
                if resolved is None:
                    logger.warning("Skipping unresolvable response %s", response["$ref"])
                    continue
                response = resolved

            content_type, media = self._pick_content(response.get("content"))
            responses[str(status_code)] = Response(
                description=response.get("description"),
                content_type=content_type,
                schema=self._parse_schema(media.get("schema"), ref_prefix),
                headers=self._parse_headers(
                    response.get("headers"), spec, ref_prefix, inline_type=False
                ),
                extensions={
                    k: v
                    for k, v in response.items()
                    if k not in ("description", "content", "headers")
                },
            )

        return self._build_operation(
            operation, parameters, responses, skip={"parameters", "requestBody", "responses"}
        )

    def _parse_openapi_3_parameter(self, param: Dict[str, Any], ref_prefix: str) -> Parameter:
        content_type = None
        raw_schema = param.get("schema")
        extra_keys = PARAMETER_FIELDS
        if raw_schema is None and param.get("content"):
            content_type, media = self._pick_content(param["content"])
            raw_schema = media.get("schema")
            extra_keys = PARAMETER_FIELDS | {"content"}

        return Parameter(
            name=param.get("name", "unknown"),
            location=self._parse_location(param.get("in")),
            required=param.get("required", False),
            description=param.get("description"),
            content_type=content_type,
            schema=self._parse_schema(raw_schema, ref_prefix),
            extensions={k: v for k, v in param.items() if k not in extra_keys},
        )

    def _parse_openapi_3_request_body(
        self, request_body: Optional[Dict[str, Any]], spec: Dict[str, Any], ref_prefix: str
    ) -> Optional[Parameter]:
        """Represent an OpenAPI 3.x request body as a body parameter."""
        if not request_body:
            return None

        extensions = {k: v for k, v in request_body.items() if k.startswith("x-")}
        if "$ref" in request_body:
            resolved = self._resolve_ref(request_body["$ref"], spec)
            if resolved is None:
                logger.warning("Skipping unresolvable request body %s", request_body["$ref"])
                return None
            # Fields next to the $ref win over the referenced body.
            extensions = {
                **{k: v for k, v in resolved.items() if k not in REQUEST_BODY_FIELDS},
                **extensions,
            }
            request_body = resolved
        else:
            extensions = {k: v for k, v in request_body.items() if k not in REQUEST_BODY_FIELDS}

        name = extensions.pop(BODY_NAME_KEY, None) or "body"
        content_type, media = self._pick_content(request_body.get("content"))
        return Parameter(
            name=name,
            location=ParameterLocation.BODY,
            required=request_body.get("required", False),
            description=request_body.get("description"),
            content_type=content_type,
            schema=self._parse_schema(media.get("schema"), ref_prefix),
            extensions=extensions,
        )

    def _pick_content(
        self, content: Optional[Dict[str, Any]]
    ) -> Tuple[Optional[str], Dict[str, Any]]:
        if not content:
            return None, {}
        if PREFERRED_CONTENT_TYPE in content:
            return PREFERRED_CONTENT_TYPE, content[PREFERRED_CONTENT_TYPE] or {}
        content_type = next(iter(content))
        return content_type, content[content_type] or {}

    # =========================================================================
    # OpenAPI 2.x
    # =========================================================================

    def _parse_openapi_2(self, spec: Dict[str, Any]) -> Document:
        """Parse OpenAPI 2.x (Swagger) specification."""
        ref_prefix = SCHEMA_REF_PREFIXES[DocumentFormat.OPENAPI_2]
        extensions = {k: v for k, v in spec.items() if k not in ("paths", "definitions")}

        return self._build_document(
            spec,
            DocumentFormat.OPENAPI_2,
            self._parse_definitions(spec.get("definitions") or {}, ref_prefix),
            self._parse_paths(spec, ref_prefix, self._parse_openapi_2_operation),
            extensions,
        )

    def _parse_openapi_2_operation(
        self,
        operation: Dict[str, Any],
        common_params: List[Dict[str, Any]],
        spec: Dict[str, Any],
        ref_prefix: str,
    ) -> Operation:
        parameters = []
        for param in self._merge_parameters(common_params, operation.get("parameters", []), spec):
            if param.get("in") == "body":
                schema = self._parse_schema(param.get("schema"), ref_prefix)
                extra_keys = PARAMETER_FIELDS
            else:
                # Non-body parameters carry their type inline.
                type_fields = {k: v for k, v in param.items() if k in PARAMETER_TYPE_KEYS}
                schema = self._parse_schema(type_fields, ref_prefix) if type_fields else None
                extra_keys = PARAMETER_FIELDS | PARAMETER_TYPE_KEYS

            parameters.append(
                Parameter(
                    name=param.get("name", "unknown"),
                    location=self._parse_location(param.get("in")),
                    required=param.get("required", False),
                    description=param.get("description"),
                    schema=schema,
                    extensions={k: v for k, v in param.items() if k not in extra_keys},
                )
            )

        responses = {}
        for status_code, response in (operation.get("responses") or {}).items():
            if "$ref" in response:
                resolved = self._resolve_ref(response["$ref"], spec)
                if resolved is None:
                    logger.warning("Skipping unresolvable response %s", response["$ref"])
                    continue
                response = resolved

            responses[str(status_code)] = Response(
                description=response.get("description"),
                schema=self._parse_schema(response.get("schema"), ref_prefix),
                headers=self._parse_headers(
                    response.get("headers"), spec, ref_prefix, inline_type=True
                ),
                extensions={
                    k: v
                    for k, v in response.items()
                    if k not in ("description", "schema", "headers")
                },
            )

        return self._build_operation(
            operation, parameters, responses, skip={"parameters", "responses"}
        )

    # =========================================================================
    # Shared
    # =========================================================================

    def _build_document(
        self,
        spec: Dict[str, Any],
        doc_format: DocumentFormat,
        definitions: Dict[str, Schema],
        paths: Dict[str, PathItem],
        extensions: Dict[str, Any],
    ) -> Document:
        info = spec.get("info") or {}
        document = Document(
            title=info.get("title", "Untitled API"),
            version=str(info["version"]) if info.get("version") is not None else None,
            description=info.get("description"),
            source_format=doc_format,
            paths=paths,
            definitions=definitions,
            extensions=extensions,
        )
        logger.debug(
            "Loaded %s document '%s' with %d paths and %d definitions",
            doc_format.value,
            document.title,
            len(document.paths),
            len(document.definitions),
        )
        return document

    def _parse_definitions(self, raw: Dict[str, Any], ref_prefix: str) -> Dict[str, Schema]:
        definitions = {}
        for name, schema in raw.items():
            parsed = self._parse_schema(schema, ref_prefix)
            if parsed is not None:
                definitions[name] = parsed
        return definitions

    def _parse_paths(self, spec: Dict[str, Any], ref_prefix: str, parse_operation) -> Dict[str, PathItem]:
        paths = {}
        for path, path_item in (spec.get("paths") or {}).items():
            if not isinstance(path_item, dict):
                continue

            # Common parameters for all methods in this path
            common_params = path_item.get("parameters", [])

            operations = {}
            for method in HTTP_METHODS:
                operation = path_item.get(method)
                if not isinstance(operation, dict):
                    continue
                operations[HTTPMethod(method.upper())] = parse_operation(
                    operation, common_params, spec, ref_prefix
                )

            paths[path] = PathItem(
                operations=operations,
                extensions={
                    k: v
                    for k, v in path_item.items()
                    if k not in HTTP_METHODS and k != "parameters"
                },
            )
        return paths

    def _build_operation(
        self,
        operation: Dict[str, Any],
        parameters: List[Parameter],
        responses: Dict[str, Response],
        skip: set,
    ) -> Operation:
        modelled = {"operationId", "summary", "description", "tags", "deprecated"} | skip
        return Operation(
            operation_id=operation.get("operationId"),
            summary=operation.get("summary"),
            description=operation.get("description"),
            tags=operation.get("tags", []),
            parameters=parameters,
            responses=responses,
            deprecated=operation.get("deprecated", False),
            extensions={k: v for k, v in operation.items() if k not in modelled},
        )

    def _merge_parameters(
        self,
        common_params: List[Dict[str, Any]],
        params: List[Dict[str, Any]],
        spec: Dict[str, Any],
    ) -> List[Dict[str, Any]]:
        """Resolve parameter refs; operation parameters override path ones."""
        merged: Dict[Tuple[str, str], Dict[str, Any]] = {}
        for param in list(common_params) + list(params):
            if "$ref" in param:
                resolved = self._resolve_ref(param["$ref"], spec)
                if resolved is None:
                    logger.warning("Skipping unresolvable parameter %s", param["$ref"])
                    continue
                param = resolved
            merged[(param.get("name", "unknown"), param.get("in", "query"))] = param
        return list(merged.values())

    def _parse_location(self, value: Optional[str]) -> ParameterLocation:
        try:
            return ParameterLocation(value or "query")
        except ValueError:
            raise DocumentLoadError(f"Unknown parameter location '{value}'") from None

    def _parse_schema(self, raw: Any, ref_prefix: str) -> Optional[Schema]:
        """Convert a JSON-schema mapping into a Schema node tree."""
        if raw is None:
            return None
        if not isinstance(raw, dict):
            raise DocumentLoadError(f"Schema must be a mapping, got {type(raw).__name__}")

        schema = Schema()
        for key, value in raw.items():
            if key == "$ref":
                if not isinstance(value, str) or not value.startswith(ref_prefix):
                    raise DocumentLoadError(f"Unsupported schema reference '{value}'")
                schema.ref = unescape_pointer(value[len(ref_prefix):])
            elif key == "items" and isinstance(value, dict):
                schema.items = self._parse_schema(value, ref_prefix)
            elif key == "items" and isinstance(value, list):
                schema.tuple_items = [self._parse_schema(item, ref_prefix) for item in value]
            elif key == "not" and isinstance(value, dict):
                schema.not_schema = self._parse_schema(value, ref_prefix)
            elif key == "discriminator" and isinstance(value, dict) and isinstance(
                value.get("mapping"), dict
            ):
                schema.keywords[key] = {k: v for k, v in value.items() if k != "mapping"}
                schema.discriminator_mapping = {
                    tag: Schema(ref=self._mapping_target(target, ref_prefix))
                    for tag, target in value["mapping"].items()
                }
            elif key == "oneOf":
                schema.one_of = [self._parse_schema(branch, ref_prefix) for branch in value]
            elif key == "allOf":
                schema.all_of = [self._parse_schema(branch, ref_prefix) for branch in value]
            elif key == "anyOf":
                schema.any_of = [self._parse_schema(branch, ref_prefix) for branch in value]
            elif key == "properties" and isinstance(value, dict):
                schema.properties = {
                    name: self._parse_schema(prop, ref_prefix) for name, prop in value.items()
                }
            elif key == "additionalProperties" and isinstance(value, dict):
                schema.additional_properties = self._parse_schema(value, ref_prefix)
            else:
                schema.keywords[key] = value
        return schema

    def _mapping_target(self, target: Any, ref_prefix: str) -> str:
        """Definition name of a discriminator mapping value (pointer or bare name)."""
        if isinstance(target, str):
            if target.startswith(ref_prefix):
                return unescape_pointer(target[len(ref_prefix):])
            if target and "/" not in target and not target.startswith("#"):
                return target
        raise DocumentLoadError(f"Unsupported discriminator mapping '{target}'")

    def _parse_headers(
        self,
        headers: Optional[Dict[str, Any]],
        spec: Dict[str, Any],
        ref_prefix: str,
        inline_type: bool,
    ) -> Dict[str, Parameter]:
        """Parse response headers into header-located parameters.

        Swagger 2 headers carry their type inline, OpenAPI 3 headers under
        ``schema``.
        """
        parsed = {}
        for name, header in (headers or {}).items():
            if "$ref" in header:
                resolved = self._resolve_ref(header["$ref"], spec)
                if resolved is None:
                    logger.warning("Skipping unresolvable header %s", header["$ref"])
                    continue
                header = resolved

            if inline_type:
                type_fields = {k: v for k, v in header.items() if k in PARAMETER_TYPE_KEYS}
                schema = self._parse_schema(type_fields, ref_prefix) if type_fields else None
                extra_keys = PARAMETER_FIELDS | PARAMETER_TYPE_KEYS
            else:
                schema = self._parse_schema(header.get("schema"), ref_prefix)
                extra_keys = PARAMETER_FIELDS

            parsed[name] = Parameter(
                name=name,
                location=ParameterLocation.HEADER,
                required=header.get("required", False),
                description=header.get("description"),
                schema=schema,
                extensions={k: v for k, v in header.items() if k not in extra_keys},
            )
        return parsed

    def _resolve_ref(self, ref: str, spec: Dict[str, Any]) -> Optional[Dict[str, Any]]:
        """Resolve a local $ref pointer in the raw spec."""
        if not ref.startswith("#/"):
            return None

        parts = ref[2:].split("/")
        current = spec

        for part in parts:
            part = unescape_pointer(part)
            if isinstance(current, dict) and part in current:
                current = current[part]
            else:
                return None

        return current if isinstance(current, dict) else None


def load_document(
    content: Union[str, Dict[str, Any]],
    format_hint: Optional[DocumentFormat] = None,
) -> Document:
    """Parse JSON/YAML text (or a decoded mapping) into a Document."""
    return DocumentLoader().parse(content, format_hint=format_hint)


def load_document_file(path: Union[str, Path]) -> Document:
    """Read and parse a description from a local file.

    Raises:
        DocumentLoadError: If the file cannot be read or parsed
    """
    spec_file = Path(path)
    try:
        content = spec_file.read_text(encoding="utf-8")
    except OSError as e:
        raise DocumentLoadError(
            f"Could not read {spec_file}: {e}", source=str(spec_file), cause=e
        ) from e
    return DocumentLoader().parse(content, source=str(spec_file))
