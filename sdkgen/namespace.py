"""Group operations into a nested namespace tree.

Each operationId segment is one level of nesting:

  chats.find           -> chats -> find
  chats.init.create    -> chats -> init -> create
  chats.{chatId}.get   -> chats -> chatId -> get

Operations that share a prefix share the same intermediate node.
"""

from __future__ import annotations

from collections.abc import Iterator, Mapping
from types import MappingProxyType
from typing import Union

from .naming import fold_segment
from .operations import Operation


class NamespaceNode(Mapping[str, "NamespaceEntry"]):
    """Read-only mapping of segment name to child node or operation.

    ``operation`` is set when an operationId ends exactly where another
    operationId keeps nesting (``chats.init`` next to ``chats.init.create``);
    the rendered namespace is then callable as well.
    """

    __slots__ = ("_children", "operation")

    def __init__(
        self,
        children: Mapping[str, NamespaceEntry] | None = None,
        operation: Operation | None = None,
    ) -> None:
        self._children = MappingProxyType(dict(children or {}))
        self.operation = operation

    def __getitem__(self, key: str) -> NamespaceEntry:
        return self._children[key]

    def __iter__(self) -> Iterator[str]:
        return iter(self._children)

    def __len__(self) -> int:
        return len(self._children)

    def __repr__(self) -> str:
        return f"NamespaceNode({dict(self._children)!r}, operation={self.operation!r})"


NamespaceEntry = Union[NamespaceNode, Operation]


class _Builder:
    __slots__ = ("children", "operation")

    def __init__(self, operation: Operation | None = None) -> None:
        self.children: dict[str, _Builder | Operation] = {}
        self.operation = operation

    def child(self, segment: str) -> _Builder:
        existing = self.children.get(segment)
        if isinstance(existing, _Builder):
            return existing
        node = _Builder(existing)
        self.children[segment] = node
        return node

    def add(self, segment: str, operation: Operation) -> None:
        existing = self.children.get(segment)
        if isinstance(existing, _Builder):
            existing.operation = operation
        else:
            self.children[segment] = operation

    def freeze(self) -> NamespaceNode:
        children = {
            key: value.freeze() if isinstance(value, _Builder) else value
            for key, value in self.children.items()
        }
        return NamespaceNode(children, self.operation)


def build_namespace(operations: list[Operation]) -> NamespaceNode:
    """Build the namespace tree for ``operations``."""
    root = _Builder()
    for operation in operations:
        *parents, leaf = operation.operation_id.split(".")
        node = root
        for segment in parents:
            node = node.child(fold_segment(segment))
        node.add(leaf, operation)
    return root.freeze()
