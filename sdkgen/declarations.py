"""Emit named type declarations for components, requests and responses.

Object shapes become ``class Name(TypedDict)``; everything else becomes a
PEP 695 ``type Name = ...`` alias. Every name is declared once: the first
declaration registered under a name wins, later ones are skipped.
"""

from __future__ import annotations

import json
import logging
import textwrap
from collections.abc import Iterator
from dataclasses import dataclass
from typing import Any

from .naming import is_field_name, to_pascal_case, type_name
from .operations import Operation
from .schema_parser import ANY, Field, ObjectShape, object_shape, resolve_schema_type

logger = logging.getLogger(__name__)

COMPONENT = "component"
REQUEST = "request"
RESPONSE = "response"
STREAM = "stream"

REQUEST_SUFFIX = "Request"
RESPONSE_SUFFIX = "Response"
STREAM_SUFFIX = "StreamResponse"

# Runtime type of a streaming response
STREAM_HANDLE_TYPE = "ByteStream"
BINARY_RESPONSE_TYPE = "bytes"


@dataclass(frozen=True)
class Declaration:
    name: str
    kind: str
    source: str


class TypeRegistry:
    """Ordered set of declarations keyed by name; first writer wins."""

    def __init__(self) -> None:
        self._declarations: dict[str, Declaration] = {}

    def register(self, declaration: Declaration) -> bool:
        if declaration.name in self._declarations:
            logger.debug("Type %s already declared, skipping %s", declaration.name, declaration.kind)
            return False
        self._declarations[declaration.name] = declaration
        return True

    def __contains__(self, name: object) -> bool:
        return name in self._declarations

    def __iter__(self) -> Iterator[Declaration]:
        return iter(self._declarations.values())

    def __len__(self) -> int:
        return len(self._declarations)


def request_type_name(operation: Operation) -> str:
    return to_pascal_case(operation.operation_id) + REQUEST_SUFFIX


def response_type_name(operation: Operation) -> str:
    return to_pascal_case(operation.operation_id) + RESPONSE_SUFFIX


def stream_type_name(operation: Operation) -> str:
    return to_pascal_case(operation.operation_id) + STREAM_SUFFIX


def streams(operation: Operation, streaming: bool) -> bool:
    """Whether ``operation`` gets a streaming variant under the capability flag.

    Only an operation with a JSON response has one, as an alternative
    to that response.
    """
    return streaming and operation.response_schema is not None and operation.supports_streaming


def return_type(operation: Operation, streaming: bool = True) -> str:
    """The Python return annotation of the operation's client method."""
    if operation.response_binary:
        return BINARY_RESPONSE_TYPE
    if operation.response_schema is None:
        return ANY
    result = response_type_name(operation)
    if streams(operation, streaming):
        result = f"{result} | {stream_type_name(operation)}"
    return result


def render_class(name: str, shape: ObjectShape, doc: str = "") -> str:
    """Render a TypedDict class, or an inline alias when a key is not an identifier."""
    if not all(is_field_name(f.name) for f in shape.fields):
        return render_alias(name, shape.inline())

    if shape.extra is None:
        header = f"class {name}(TypedDict):"
    elif shape.extra == ANY:
        header = f"class {name}(TypedDict, extra_items=Any):"
    else:
        # Evaluated at class creation, so names declared later stay quoted
        header = f"class {name}(TypedDict, extra_items={json.dumps(shape.extra)}):"
    lines = [header]
    if doc.strip():
        lines.append(render_docstring(doc))
        lines.append("")
    lines.extend(f"    {f.name}: {f.annotation()}" for f in shape.fields)
    return "\n".join(lines)


def render_alias(name: str, expression: str) -> str:
    return f"type {name} = {expression}"


def render_schema(name: str, schema: dict[str, Any] | None, components: dict[str, Any]) -> str:
    """Declare ``name`` as the type of ``schema``."""
    shape = object_shape(schema, components)
    if shape is not None:
        doc = schema.get("description", "") if isinstance(schema, dict) else ""
        return render_class(name, shape, doc)
    return render_alias(name, resolve_schema_type(schema, components))


def emit_declarations(
    operations: list[Operation],
    components: dict[str, Any],
    streaming: bool = True,
) -> TypeRegistry:
    """Declare every component schema, then each operation's request/response types."""
    registry = TypeRegistry()

    for raw_name, schema in components.items():
        name = type_name(raw_name)
        if name in registry:
            continue
        registry.register(Declaration(name, COMPONENT, render_schema(name, schema, components)))

    for operation in operations:
        if operation.has_body:
            name = request_type_name(operation)
            if name not in registry:
                registry.register(Declaration(name, REQUEST, _render_request(name, operation, components)))

        if operation.response_schema is not None and not operation.response_binary:
            name = response_type_name(operation)
            if name not in registry:
                registry.register(
                    Declaration(name, RESPONSE, render_schema(name, operation.response_schema, components))
                )

        if streams(operation, streaming):
            name = stream_type_name(operation)
            if name not in registry:
                registry.register(Declaration(name, STREAM, render_alias(name, STREAM_HANDLE_TYPE)))

    return registry


def _render_request(name: str, operation: Operation, components: dict[str, Any]) -> str:
    if operation.body_properties:
        shape = ObjectShape(tuple(
            Field(p.name, resolve_schema_type(p.schema, components), p.required, p.deprecated)
            for p in operation.body_properties
        ))
        return render_class(name, shape)
    return render_schema(name, operation.request_body_schema, components)


def render_docstring(text: str, indent: str = "    ") -> str:
    """Render ``text`` as an escaped, wrapped docstring at ``indent``."""
    text = " ".join(text.split()).replace("\\", "\\\\").replace('"', '\\"')
    wrapped = textwrap.wrap(text, width=79 - len(indent), break_long_words=False, break_on_hyphens=False)
    if len(wrapped) == 1:
        return f'{indent}"""{wrapped[0]}"""'
    body = "\n".join(f"{indent}{line}" for line in wrapped)
    return f'{indent}"""\n{body}\n{indent}"""'
