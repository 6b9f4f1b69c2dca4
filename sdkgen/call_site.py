"""Emit the body of each generated client method.

A method takes one ``params`` mapping, splits it into the records the
transport understands (path_params, query, headers, body) and dispatches:

    async def get_by_id(self, params: TypedDict[{"id": str}]) -> ItemsGetByIdResponse:
        path_params = {"id": params["id"]}
        return await self._client.fetch(f"/items/{path_params['id']}", "GET", path_params=path_params)

Query and header values go over the wire as strings, so booleans and
numbers are passed through ``query_value``.
"""

from __future__ import annotations

import json
import re
from dataclasses import dataclass
from typing import Any

from .declarations import render_docstring, request_type_name, return_type, streams
from .operations import STREAM_MODE_FIELD, STREAM_MODE_VALUE, Operation, Parameter
from .schema_parser import Field, ObjectShape, is_boolean_enum, resolve_schema_type, with_fields

_ROUTE_TOKEN = re.compile(r"\{([^{}]+)\}")

_NUMERIC_TYPES = ("number", "integer")


@dataclass(frozen=True)
class CallSite:
    name: str
    params: str
    return_type: str
    body: tuple[str, ...]
    doc: str = ""


def params_optional(operation: Operation) -> bool:
    """Whether the whole parameter bag may be omitted.

    True exactly when there is no required path parameter, no body of any
    kind and no required query parameter.
    """
    return (
        not any(p.required for p in operation.params_in("path"))
        and not operation.has_body
        and not any(p.required for p in operation.params_in("query"))
    )


def parameter_type(param: Parameter, components: dict[str, Any] | None = None) -> str:
    """Type of one path/query/header entry of the parameter bag."""
    if param.location == "path":
        return "str"
    if is_boolean_enum(param.schema):
        return "bool"
    return resolve_schema_type(param.schema, components)


def params_type(operation: Operation, components: dict[str, Any] | None = None) -> str | None:
    """Annotation of the ``params`` argument, or None when there is nothing to pass."""
    fields = [
        Field(p.name, parameter_type(p, components), p.required)
        for p in operation.parameters
    ]
    if not operation.has_body:
        return ObjectShape(tuple(fields)).inline() if fields else None
    if not fields:
        return request_type_name(operation)
    if operation.body_properties:
        names = {f.name for f in fields}
        fields.extend(
            Field(b.name, resolve_schema_type(b.schema, components), b.required, b.deprecated)
            for b in operation.body_properties
            if b.name not in names
        )
        return ObjectShape(tuple(fields)).inline()
    # The whole bag is the body, so the parameter keys join every body shape
    folded = with_fields(operation.request_body_schema, tuple(fields), components)
    return folded or request_type_name(operation)


def emit_call_site(
    operation: Operation,
    name: str,
    components: dict[str, Any] | None = None,
    streaming: bool = True,
) -> CallSite:
    """Build the signature and body of the client method called ``name``."""
    optional = params_optional(operation)
    path = operation.params_in("path")
    query = operation.params_in("query")
    headers = operation.params_in("header")
    lines: list[str] = []
    dispatch: list[str] = []

    if path:
        entries = ", ".join(f"{_literal(p.name)}: params[{_literal(p.name)}]" for p in path)
        lines.append(f"path_params = {{{entries}}}")
        dispatch.append("path_params=path_params")

    if query:
        lines.extend(_record("query", query, optional))
        dispatch.append("query=query" if any(p.required for p in query) else "query=query or None")

    if headers:
        lines.extend(_record("headers", headers, optional))
        dispatch.append("headers=headers" if any(p.required for p in headers) else "headers=headers or None")

    if operation.body_properties:
        keys = _tuple_literal([b.name for b in operation.body_properties])
        lines.append(f"body = {{key: params[key] for key in {keys} if key in params}}")
        dispatch.append("body=body")
    elif operation.request_body_schema is not None:
        lines.append("body = params")
        dispatch.append("body=body")

    args = ", ".join([_url(operation.route, {p.name for p in path}), _literal(operation.method), *dispatch])

    if streams(operation, streaming):
        lines.append(f"if params.get({_literal(STREAM_MODE_FIELD)}) == {_literal(STREAM_MODE_VALUE)}:")
        lines.append(f"    return await self._client.fetch_stream({args})")
    lines.append(f"return await self._client.fetch({args})")

    annotation = params_type(operation, components)
    if annotation is None:
        signature = ""
    elif optional:
        signature = f"params: {annotation} | None = None"
    else:
        signature = f"params: {annotation}"

    return CallSite(
        name=name,
        params=signature,
        return_type=return_type(operation, streaming),
        body=tuple(lines),
        doc=_method_doc(operation),
    )


def _record(variable: str, params: list[Parameter], optional: bool) -> list[str]:
    """Build a string-valued record, dropping entries the caller left out."""
    lines = [f"{variable} = compact({{"]
    for param in params:
        key = _literal(param.name)
        value = f"params[{key}]" if param.required else f"params.get({key})"
        if variable == "headers" or _coerced(param):
            value = f"query_value({value})"
        lines.append(f"    {key}: {value},")
    lines.append("}) if params is not None else {}" if optional else "})")
    return lines


def _coerced(param: Parameter) -> bool:
    return is_boolean_enum(param.schema) or param.schema.get("type") in _NUMERIC_TYPES


def _url(route: str, path_names: set[str]) -> str:
    """The route as a Python literal, with declared path tokens substituted."""
    if not path_names:
        return _literal(route)

    parts: list[str] = []
    position = 0
    for match in _ROUTE_TOKEN.finditer(route):
        parts.append(_fstring_text(route[position:match.start()]))
        token = match.group(1)
        if token in path_names:
            parts.append("{path_params[" + repr(token) + "]}")
        else:
            parts.append(_fstring_text(match.group(0)))
        position = match.end()
    parts.append(_fstring_text(route[position:]))
    return 'f"' + "".join(parts) + '"'


def _fstring_text(text: str) -> str:
    escaped = json.dumps(text)[1:-1]
    return escaped.replace("{", "{{").replace("}", "}}")


def _literal(value: str) -> str:
    return json.dumps(value)


def _tuple_literal(values: list[str]) -> str:
    if len(values) == 1:
        return f"({_literal(values[0])},)"
    return "(" + ", ".join(_literal(v) for v in values) + ")"


def _method_doc(operation: Operation) -> str:
    text = operation.summary or operation.description.split("\n\n")[0]
    if operation.deprecated:
        text = f"{text} (deprecated)" if text else "Deprecated."
    return render_docstring(text, indent="        ") if text else ""
