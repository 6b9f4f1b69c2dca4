"""Walk the OpenAPI path tree into a flat list of operations.

One Operation per (route, method) that carries an operationId. Route-level
parameters come first, operation-level parameters override them by name.
Request bodies are either flattened into BodyProperty records (plain
objects, allOf of objects) or, for allOf-with-union discriminated shapes,
carried whole as ``request_body_schema``.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any

from .loader import SpecLoadError, get_paths, resolve_ref

logger = logging.getLogger(__name__)

HTTP_METHODS = ("get", "put", "post", "delete", "options", "head", "patch", "trace")

PARAMETER_LOCATIONS = ("path", "query", "header")

JSON_CONTENT_TYPE = "application/json"

# Response content types returned to the caller as raw bytes
BINARY_CONTENT_TYPES = (
    "application/zip",
    "application/gzip",
    "application/octet-stream",
    "application/x-tar",
)

# Request field that switches an operation to a byte-stream response
STREAM_MODE_FIELD = "responseMode"
STREAM_MODE_VALUE = "experimental_stream"


@dataclass(frozen=True)
class Parameter:
    name: str
    location: str
    required: bool
    schema: dict[str, Any]
    description: str = ""


@dataclass(frozen=True)
class BodyProperty:
    name: str
    required: bool
    schema: dict[str, Any]
    deprecated: bool = False


@dataclass(frozen=True)
class Operation:
    operation_id: str
    method: str
    route: str
    parameters: tuple[Parameter, ...] = ()
    body_properties: tuple[BodyProperty, ...] = ()
    request_body_schema: dict[str, Any] | None = None
    response_schema: dict[str, Any] | None = None
    response_binary: bool = False
    summary: str = ""
    description: str = ""
    deprecated: bool = False

    def params_in(self, location: str) -> list[Parameter]:
        return [p for p in self.parameters if p.location == location]

    @property
    def has_body(self) -> bool:
        return bool(self.body_properties) or self.request_body_schema is not None

    @property
    def supports_streaming(self) -> bool:
        """Whether the body exposes a response mode with the streaming value."""
        for prop in self.body_properties:
            if prop.name != STREAM_MODE_FIELD:
                continue
            values = prop.schema.get("enum") if isinstance(prop.schema, dict) else None
            if isinstance(values, list) and STREAM_MODE_VALUE in values:
                return True
        return False


def extract_operations(spec: dict[str, Any]) -> list[Operation]:
    """Collect every operation of the document, in document order."""
    operations: list[Operation] = []
    seen_ids: set[str] = set()

    for route, path_item in get_paths(spec).items():
        if not isinstance(path_item, dict):
            continue
        route_params = path_item.get("parameters") or []

        for method, operation in path_item.items():
            if method not in HTTP_METHODS or not isinstance(operation, dict):
                continue
            operation_id = operation.get("operationId")
            if not operation_id:
                logger.debug("Skipping %s %s: no operationId", method.upper(), route)
                continue
            if operation_id in seen_ids:
                logger.warning("Duplicate operationId %r at %s %s", operation_id, method.upper(), route)
            seen_ids.add(operation_id)

            body_schema = _request_body_schema(spec, operation.get("requestBody"))
            response_schema, response_binary = _response_schema(spec, operation.get("responses"))

            operations.append(Operation(
                operation_id=operation_id,
                method=method.upper(),
                route=route,
                parameters=_merge_parameters(spec, route_params, operation.get("parameters") or []),
                body_properties=extract_body_properties(body_schema),
                request_body_schema=body_schema,
                response_schema=response_schema,
                response_binary=response_binary,
                summary=(operation.get("summary") or "").strip(),
                description=(operation.get("description") or "").strip(),
                deprecated=operation.get("deprecated") is True,
            ))

    logger.debug("Extracted %d operations", len(operations))
    return operations


def _merge_parameters(
    spec: dict[str, Any],
    route_params: list[Any],
    operation_params: list[Any],
) -> tuple[Parameter, ...]:
    merged: dict[str, Parameter] = {}
    for raw in [*route_params, *operation_params]:
        param = _parse_parameter(spec, raw)
        if param is not None:
            merged[param.name] = param
    return tuple(merged.values())


def _parse_parameter(spec: dict[str, Any], raw: Any) -> Parameter | None:
    if isinstance(raw, dict) and "$ref" in raw:
        try:
            raw = resolve_ref(spec, raw["$ref"])
        except SpecLoadError as exc:
            logger.warning("Skipping parameter: %s", exc)
            return None
    if not isinstance(raw, dict) or "name" not in raw:
        return None

    location = raw.get("in", "query")
    if location not in PARAMETER_LOCATIONS:
        logger.debug("Skipping %s parameter %r", location, raw["name"])
        return None

    return Parameter(
        name=raw["name"],
        location=location,
        required=location == "path" or raw.get("required") is True,
        schema=raw.get("schema") or {},
        description=(raw.get("description") or "").strip(),
    )


def _request_body_schema(spec: dict[str, Any], request_body: Any) -> dict[str, Any] | None:
    if isinstance(request_body, dict) and "$ref" in request_body:
        try:
            request_body = resolve_ref(spec, request_body["$ref"])
        except SpecLoadError as exc:
            logger.warning("Ignoring request body: %s", exc)
            return None
    if not isinstance(request_body, dict):
        return None
    content = request_body.get("content") or {}
    schema = (content.get(JSON_CONTENT_TYPE) or {}).get("schema")
    return schema if isinstance(schema, dict) and schema else None


def extract_body_properties(schema: dict[str, Any] | None) -> tuple[BodyProperty, ...]:
    """Flatten a request body schema into one BodyProperty per field.

    An allOf that contains an anyOf or oneOf is a discriminated request
    shape and yields nothing; the caller types it from the whole schema
    instead.
    References are not followed.
    """
    if not schema:
        return ()

    if isinstance(schema.get("allOf"), list):
        siblings = [s for s in schema["allOf"] if isinstance(s, dict)]
        if any(_is_union(s) for s in siblings):
            return ()
        props: list[BodyProperty] = []
        for sibling in siblings:
            props.extend(_properties_of(sibling))
        return tuple(props)

    return tuple(_properties_of(schema))


def _properties_of(schema: dict[str, Any]) -> list[BodyProperty]:
    properties = schema.get("properties")
    if not isinstance(properties, dict):
        return []
    required = set(schema.get("required") or [])
    return [
        BodyProperty(
            name=name,
            required=name in required,
            schema=prop if isinstance(prop, dict) else {},
            deprecated=isinstance(prop, dict) and prop.get("deprecated") is True,
        )
        for name, prop in properties.items()
    ]


def _response_schema(spec: dict[str, Any], responses: Any) -> tuple[dict[str, Any] | None, bool]:
    """Return (JSON schema, is_binary) for the 200 response."""
    if not isinstance(responses, dict):
        return None, False
    # YAML documents may key status codes as integers
    success = responses.get("200", responses.get(200))
    if isinstance(success, dict) and "$ref" in success:
        try:
            success = resolve_ref(spec, success["$ref"])
        except SpecLoadError as exc:
            logger.warning("Ignoring 200 response: %s", exc)
            return None, False
    if not isinstance(success, dict):
        return None, False

    content = success.get("content") or {}
    if any(ct in content for ct in BINARY_CONTENT_TYPES):
        return None, True

    schema = (content.get(JSON_CONTENT_TYPE) or {}).get("schema")
    return (schema if isinstance(schema, dict) and schema else None), False


def _is_union(schema: dict[str, Any]) -> bool:
    return isinstance(schema.get("anyOf"), list) or isinstance(schema.get("oneOf"), list)
