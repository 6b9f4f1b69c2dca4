"""Build the Jinja2 template context from a parsed OpenAPI document.

Extracts operations, declares their types, lays the namespace tree out as
classes and assembles the export listing for the generated package.
"""

from __future__ import annotations

import logging
from typing import Any

from .call_site import CallSite, emit_call_site
from .declarations import REQUEST_SUFFIX, RESPONSE_SUFFIX, emit_declarations
from .loader import get_base_url, get_schemas
from .namespace import NamespaceNode, build_namespace
from .naming import python_identifier, to_pascal_case
from .operations import extract_operations

logger = logging.getLogger(__name__)

# Attributes of the runtime BaseClient a root namespace must not shadow
_CLIENT_RESERVED = frozenset({
    "aclose",
    "api_key_env",
    "config",
    "default_base_url",
    "fetch",
    "fetch_stream",
    "session_token",
    "user_agent",
})

# Substrings that mark a schema as a core entity in the export listing
_ENTITY_MARKERS = ("Detail", "Summary", "List")

EXPORT_CATEGORIES = (
    ("core", "Core entity types"),
    ("request", "Request types"),
    ("response", "Response types"),
    ("other", "Other types"),
)


def categorize_exports(names: list[str]) -> dict[str, list[str]]:
    """Group type names into export categories, sorted within each."""
    groups: dict[str, list[str]] = {key: [] for key, _ in EXPORT_CATEGORIES}
    for name in sorted(set(names)):
        if name.endswith(REQUEST_SUFFIX):
            groups["request"].append(name)
        elif name.endswith(RESPONSE_SUFFIX):
            groups["response"].append(name)
        elif any(marker in name for marker in _ENTITY_MARKERS):
            groups["core"].append(name)
        else:
            groups["other"].append(name)
    return groups


def _docstring_safe(text: Any) -> str:
    """Collapse a value onto one line that can sit inside a generated docstring."""
    return " ".join(str(text).split()).replace("\\", "\\\\").replace('"', "'")


def _deduplicate(names: list[str]) -> list[str]:
    """Ensure all names are unique by appending a numeric suffix if needed."""
    seen: dict[str, int] = {}
    result = []
    for name in names:
        if name in seen:
            seen[name] += 1
            name = f"{name}_{seen[name]}"
        else:
            seen[name] = 1
        result.append(name)
    return result


class _ClassLayout:
    """Collects one generated class per namespace node, children first."""

    def __init__(self, components: dict[str, Any], streaming: bool) -> None:
        self.components = components
        self.streaming = streaming
        self.classes: list[dict[str, Any]] = []
        self._class_names: set[str] = set()

    def members(self, node: NamespaceNode, path: tuple[str, ...], reserved: frozenset[str]) -> dict[str, Any]:
        keys = list(node)
        idents = _deduplicate([python_identifier(key, reserved) for key in keys])
        attributes: list[dict[str, str]] = []
        methods: list[CallSite] = []

        if node.operation is not None:
            methods.append(emit_call_site(node.operation, "__call__", self.components, self.streaming))

        for key, ident in zip(keys, idents):
            value = node[key]
            if isinstance(value, NamespaceNode):
                attributes.append({"name": ident, "class_name": self.add(value, path + (key,))})
            else:
                methods.append(emit_call_site(value, ident, self.components, self.streaming))

        return {"attributes": attributes, "methods": methods}

    def add(self, node: NamespaceNode, path: tuple[str, ...]) -> str:
        class_name = f"_{to_pascal_case('.'.join(path))}Namespace"
        while class_name in self._class_names:
            class_name += "_"
        self._class_names.add(class_name)

        members = self.members(node, path, frozenset())
        self.classes.append({"class_name": class_name, "path": _docstring_safe(".".join(path)), **members})
        return class_name


def build_context(
    spec: dict[str, Any],
    base_url: str | None = None,
    api_key_env: str = "API_KEY",
    streaming: bool = True,
) -> dict[str, Any]:
    """Build the full template context from the OpenAPI spec."""
    components = get_schemas(spec)
    operations = extract_operations(spec)
    registry = emit_declarations(operations, components, streaming)
    tree = build_namespace(operations)

    layout = _ClassLayout(components, streaming)
    root = layout.members(tree, (), _CLIENT_RESERVED)

    info = spec.get("info") or {}
    type_names = [declaration.name for declaration in registry]
    logger.info(
        "Built context: %d operations, %d types, %d namespaces",
        len(operations), len(type_names), len(layout.classes),
    )

    return {
        "title": _docstring_safe(info.get("title") or "API"),
        "api_version": _docstring_safe(info.get("version") or "unknown"),
        "base_url": base_url or get_base_url(spec) or "",
        "api_key_env": api_key_env,
        "declarations": [declaration.source for declaration in registry],
        "namespaces": layout.classes,
        "root": root,
        "exports": categorize_exports(type_names),
        "export_categories": EXPORT_CATEGORIES,
        "operation_count": len(operations),
        "type_count": len(type_names),
    }
