"""Resolve OpenAPI schema nodes to Python type expressions.

Handles:
- $ref (bare class name, never expanded)
- const / enum literals
- allOf property merging, and allOf carrying an anyOf discriminant
- anyOf / oneOf unions, with mutually exclusive variants for closed objects
- type arrays (["string", "null"])
- tuples, lists, inline and open objects
- OpenAPI 3.0 nullable

Inline object shapes are written as inline TypedDicts
(``TypedDict[{"id": str, "name": NotRequired[str]}]``); the emitted module
never evaluates them at import time. Anything that cannot be modeled
resolves to ``Any``: one odd vendor extension must not stop generation.
"""

from __future__ import annotations

import json
from dataclasses import dataclass
from typing import Any

from .loader import ref_name
from .naming import type_name

ANY = "Any"
NEVER = "Never"

_COMPONENT_PREFIX = "#/components/schemas/"

_PRIMITIVES: dict[str, str] = {
    "string": "str",
    "integer": "int",
    "number": "float",
    "boolean": "bool",
    "null": "None",
}

# Members of a heterogeneous "type": [...] list
_TYPE_ARRAY_MEMBERS: dict[str, str] = {
    **_PRIMITIVES,
    "object": "dict[str, Any]",
    "array": "list[Any]",
}


@dataclass(frozen=True)
class Field:
    """One key of an object shape."""

    name: str
    type: str
    required: bool = True
    deprecated: bool = False

    def annotation(self) -> str:
        annotation = self.type
        if self.deprecated:
            annotation = f'Annotated[{annotation}, "deprecated"]'
        if not self.required:
            annotation = f"NotRequired[{annotation}]"
        return annotation


@dataclass(frozen=True)
class ObjectShape:
    """The fields of an object schema, plus the type of undeclared keys.

    ``extra`` is None for objects that do not permit additional properties.
    """

    fields: tuple[Field, ...]
    extra: str | None = None

    def inline(self) -> str:
        entries = ", ".join(f"{json.dumps(f.name)}: {f.annotation()}" for f in self.fields)
        return f"TypedDict[{{{entries}}}]"


def resolve_schema_type(
    schema: dict[str, Any] | None,
    components: dict[str, Any] | None = None,
) -> str:
    """Resolve an OpenAPI schema to a Python type expression."""
    return _resolve(schema, components or {}, frozenset())


def object_shape(
    schema: dict[str, Any] | None,
    components: dict[str, Any] | None = None,
) -> ObjectShape | None:
    """Return the field set of a schema that declares as a TypedDict class.

    That is a plain object with properties, or an allOf whose siblings only
    merge properties. Unions, references and everything else return None.
    """
    if not isinstance(schema, dict) or "$ref" in schema:
        return None
    components = components or {}
    if "allOf" in schema:
        members = [m for m in schema["allOf"] if isinstance(m, dict)]
        if len(members) < 2 or any(_is_union(m) for m in members):
            return None
        return _merge_all_of(members, components, frozenset())
    if _is_union(schema) or "const" in schema or "enum" in schema:
        return None
    if schema.get("type", "object") != "object":
        return None
    return _object_shape(schema, components, frozenset())


def with_fields(
    schema: dict[str, Any] | None,
    fields: tuple[Field, ...],
    components: dict[str, Any] | None = None,
) -> str | None:
    """Resolve ``schema`` with ``fields`` added to each of its object shapes.

    There is no intersection type, so the extra keys are folded into the
    object itself, or into every variant of a union the same way an allOf
    base is. A reference is followed one level into the component table.
    Keys the schema declares itself keep the schema's type.

    Returns None when the schema has no object shape to extend.
    """
    if not isinstance(schema, dict):
        return None
    components = components or {}
    seen: frozenset[str] = frozenset()

    ref = schema.get("$ref")
    if isinstance(ref, str):
        if not ref.startswith(_COMPONENT_PREFIX):
            return None
        name = ref[len(_COMPONENT_PREFIX):]
        target = components.get(name)
        if not isinstance(target, dict):
            return None
        schema, seen = target, frozenset({name})

    if isinstance(schema.get("allOf"), list):
        members = [m for m in schema["allOf"] if isinstance(m, dict)]
        base = _merge_all_of(members, components, seen)
        merged = _merge_fields(fields, base.fields) if base else fields
        union = next((m for m in members if _is_union(m)), None)
        if union is not None:
            return _resolve_union(union.get("anyOf", union.get("oneOf")), components, seen, merged)
        return ObjectShape(merged).inline() if base else None

    if _is_union(schema):
        return _resolve_union(schema.get("anyOf", schema.get("oneOf")), components, seen, fields)

    if schema.get("type", "object") != "object":
        return None
    shape = _object_shape(schema, components, seen)
    return ObjectShape(_merge_fields(fields, shape.fields)).inline() if shape else None


def is_boolean_enum(schema: dict[str, Any] | None) -> bool:
    """Whether a schema is the string enum ["true", "false"] (any order)."""
    if not isinstance(schema, dict):
        return False
    values = schema.get("enum")
    return isinstance(values, list) and len(values) == 2 and set(values) == {"true", "false"}


def _resolve(schema: Any, components: dict[str, Any], seen: frozenset[str]) -> str:
    if not isinstance(schema, dict) or not schema:
        return ANY

    resolved = _resolve_node(schema, components, seen)
    if schema.get("nullable") is True and resolved != ANY and not _allows_none(resolved):
        resolved = f"{resolved} | None"
    return resolved


def _resolve_node(schema: dict[str, Any], components: dict[str, Any], seen: frozenset[str]) -> str:
    ref = schema.get("$ref")
    if isinstance(ref, str):
        return type_name(ref_name(ref))

    if "const" in schema:
        return _literal_type([schema["const"]])

    if isinstance(schema.get("allOf"), list):
        resolved = _resolve_all_of(schema["allOf"], components, seen)
        if resolved is not None:
            return resolved

    for key in ("anyOf", "oneOf"):
        if isinstance(schema.get(key), list):
            return _resolve_union(schema[key], components, seen)

    schema_type = schema.get("type")
    if isinstance(schema_type, list):
        return _join_union([_TYPE_ARRAY_MEMBERS.get(t, ANY) for t in schema_type])

    if schema_type == "array":
        items = schema.get("items")
        if isinstance(items, list):
            members = ", ".join(_resolve(item, components, seen) for item in items)
            return f"tuple[{members or '()'}]"
        return f"list[{_resolve(items, components, seen)}]"

    if schema_type == "object" or (schema_type is None and "properties" in schema):
        shape = _object_shape(schema, components, seen)
        return shape.inline() if shape else "dict[str, Any]"

    if isinstance(schema.get("enum"), list):
        return _literal_type(schema["enum"])

    return _PRIMITIVES.get(schema_type, ANY)


def _resolve_all_of(members: list[Any], components: dict[str, Any], seen: frozenset[str]) -> str | None:
    """Resolve allOf; None means no rule applied and resolution continues."""
    members = [m for m in members if isinstance(m, dict)]
    union = next((m for m in members if _is_union(m)), None)

    if union is None:
        if len(members) == 1:
            return _resolve(members[0], components, seen)
        shape = _merge_all_of(members, components, seen)
        return shape.inline() if shape else None

    base = _merge_all_of(members, components, seen)
    union_members = union.get("anyOf", union.get("oneOf"))
    return _resolve_union(union_members, components, seen, base.fields if base else ())


def _merge_all_of(members: list[dict[str, Any]], components: dict[str, Any], seen: frozenset[str]) -> ObjectShape | None:
    """Merge sibling properties; a field is required if any sibling requires it."""
    properties: dict[str, tuple[Any, frozenset[str]]] = {}
    required: set[str] = set()
    extra: str | None = None
    for member in members:
        source, member_seen = _object_source(member, components, seen)
        if source is None:
            continue
        for name, prop in source["properties"].items():
            properties[name] = (prop, member_seen)
        required.update(source.get("required") or [])
        extra = extra or _extra_items(source, components, member_seen)
    if not properties:
        return None
    fields = tuple(
        _field(name, prop, name in required, components, prop_seen)
        for name, (prop, prop_seen) in properties.items()
    )
    return ObjectShape(fields, extra)


def _resolve_union(
    members: Any,
    components: dict[str, Any],
    seen: frozenset[str],
    base: tuple[Field, ...] = (),
) -> str:
    if not isinstance(members, list):
        return ANY
    members = [m for m in members if isinstance(m, dict)]
    if not members:
        return ANY

    if all(_is_closed_object(m) for m in members):
        shapes = [_object_shape(m, components, seen) for m in members]
        all_keys: list[str] = []
        for shape in shapes:
            for f in shape.fields:
                if f.name not in all_keys:
                    all_keys.append(f.name)
        base_keys = {f.name for f in base}
        variants = []
        for shape in shapes:
            own = {f.name for f in shape.fields}
            unsettable = tuple(
                Field(key, NEVER, required=False)
                for key in all_keys
                if key not in own and key not in base_keys
            )
            variants.append(ObjectShape(_merge_fields(base, shape.fields) + unsettable).inline())
        return _join_union(variants)

    if not base:
        return _join_union([_resolve(m, components, seen) for m in members])

    # No intersection operator: fold the shared base into every variant
    # whose fields are known.
    variants = []
    for member in members:
        source, member_seen = _object_source(member, components, seen)
        if source is None:
            variants.append(_resolve(member, components, seen))
            continue
        shape = _object_shape(source, components, member_seen)
        variants.append(ObjectShape(_merge_fields(base, shape.fields), shape.extra).inline())
    return _join_union(variants)


def _object_shape(schema: dict[str, Any], components: dict[str, Any], seen: frozenset[str]) -> ObjectShape | None:
    properties = schema.get("properties")
    if not isinstance(properties, dict) or not properties:
        return None
    required = set(schema.get("required") or [])
    fields = tuple(_field(name, prop, name in required, components, seen) for name, prop in properties.items())
    return ObjectShape(fields, _extra_items(schema, components, seen))


def _object_source(
    member: dict[str, Any],
    components: dict[str, Any],
    seen: frozenset[str],
) -> tuple[dict[str, Any] | None, frozenset[str]]:
    """Return the object schema holding a sibling's properties.

    References are followed one level into the component table, and never
    into a component that is already being expanded.
    """
    ref = member.get("$ref")
    if isinstance(ref, str):
        if not ref.startswith(_COMPONENT_PREFIX):
            return None, seen
        name = ref[len(_COMPONENT_PREFIX):]
        target = components.get(name)
        if name in seen or not isinstance(target, dict):
            return None, seen
        member, seen = target, seen | {name}
    if isinstance(member.get("properties"), dict) and member["properties"]:
        return member, seen
    return None, seen


def _field(name: str, prop: Any, required: bool, components: dict[str, Any], seen: frozenset[str]) -> Field:
    deprecated = isinstance(prop, dict) and prop.get("deprecated") is True
    return Field(name, _resolve(prop, components, seen), required, deprecated)


def _extra_items(schema: dict[str, Any], components: dict[str, Any], seen: frozenset[str]) -> str | None:
    additional = schema.get("additionalProperties")
    if additional is True:
        return ANY
    if isinstance(additional, dict):
        return _resolve(additional, components, seen)
    return None


def _merge_fields(base: tuple[Field, ...], own: tuple[Field, ...]) -> tuple[Field, ...]:
    merged = {f.name: f for f in base}
    merged.update((f.name, f) for f in own)
    return tuple(merged.values())


def _is_union(schema: dict[str, Any]) -> bool:
    return isinstance(schema.get("anyOf"), list) or isinstance(schema.get("oneOf"), list)


def _is_closed_object(schema: dict[str, Any]) -> bool:
    return (
        schema.get("type") == "object"
        and schema.get("additionalProperties") is False
        and isinstance(schema.get("properties"), dict)
        and bool(schema["properties"])
    )


def _literal_value(value: Any) -> str | None:
    if isinstance(value, bool):
        return "True" if value else "False"
    if isinstance(value, str):
        return json.dumps(value)
    if isinstance(value, int):
        return str(value)
    return None


def _literal_type(values: list[Any]) -> str:
    literals: list[str] = []
    nullable = False
    for value in values:
        if value is None:
            nullable = True
            continue
        literal = _literal_value(value)
        if literal is None:
            return ANY
        if literal not in literals:
            literals.append(literal)

    parts = [f"Literal[{', '.join(literals)}]"] if literals else []
    if nullable:
        parts.append("None")
    return _join_union(parts) if parts else ANY


def _allows_none(expression: str) -> bool:
    return expression == "None" or expression.endswith(" | None")


def _join_union(parts: list[str]) -> str:
    """Join member types with |, dropping duplicates; Any absorbs the union."""
    unique: list[str] = []
    for part in parts:
        if part == ANY:
            return ANY
        if part not in unique:
            unique.append(part)
    return " | ".join(unique) if unique else ANY
