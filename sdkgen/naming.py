"""Convert operationIds and schema names to Python identifiers.

operationIds encode client nesting with dots, and may embed path-parameter
tokens in braces:

  chats.init.create          -> ChatsInitCreate (type prefix)
  chats.{chatId}.messages    -> segment "chatId" (namespace key)
  projects.getByChatId       -> attribute get_by_chat_id

Examples:
  to_pascal_case("chats.find")            -> "ChatsFind"
  to_pascal_case("rate-limits.find")      -> "RateLimitsFind"
  fold_segment("{ChatId}")                -> "chatId"
  python_identifier("getById")            -> "get_by_id"
  python_identifier("import")             -> "import_"
  type_name("Chat.Detail")                -> "Chat_Detail"
"""

from __future__ import annotations

import keyword
import re

_BRACES = re.compile(r"[{}]")
_WORD_SPLIT = re.compile(r"[^0-9A-Za-z]+")


def _camel_to_snake(name: str) -> str:
    """Convert camelCase or PascalCase to snake_case."""
    s1 = re.sub(r"([A-Z]+)([A-Z][a-z])", r"\1_\2", name)
    return re.sub(r"([a-z\d])([A-Z])", r"\1_\2", s1).lower()


def _guard_leading_digit(name: str) -> str:
    if name and name[0].isdigit():
        return "_" + name
    return name


def to_pascal_case(operation_id: str) -> str:
    """Fold a dot-separated operationId into a PascalCase type prefix.

    Braces are dropped, each dot segment is split on any run of
    non-alphanumeric characters, and every word gets an upper-cased first
    letter. The rest of each word keeps its casing, so ``getById`` stays
    ``GetById``.
    """
    words: list[str] = []
    for segment in operation_id.split("."):
        segment = _BRACES.sub("", segment)
        words.extend(w for w in _WORD_SPLIT.split(segment) if w)
    return _guard_leading_digit("".join(w[0].upper() + w[1:] for w in words))


def fold_segment(segment: str) -> str:
    """Turn a ``{pathParam}`` namespace segment into a camelCase key.

    Segments without a complete brace pair are returned unchanged.
    """
    if "{" in segment and "}" in segment:
        segment = _BRACES.sub("", segment)
        return segment[:1].lower() + segment[1:]
    return segment


def python_identifier(name: str, reserved: frozenset[str] = frozenset()) -> str:
    """Convert a namespace key or method name to a snake_case identifier.

    Keywords and names in ``reserved`` get a trailing underscore.
    """
    ident = _camel_to_snake(name)
    ident = re.sub(r"[^a-z0-9_]", "_", ident)
    ident = re.sub(r"_+", "_", ident).strip("_")
    ident = _guard_leading_digit(ident) or "_"
    if keyword.iskeyword(ident) or ident in reserved:
        ident += "_"
    return ident


def type_name(name: str) -> str:
    """Sanitize a component schema name for use as a Python class name."""
    ident = re.sub(r"[^0-9A-Za-z_]", "_", name)
    ident = _guard_leading_digit(ident) or "_"
    if keyword.iskeyword(ident):
        ident += "_"
    return ident


def is_field_name(name: str) -> bool:
    """Whether ``name`` can be written as a TypedDict class attribute."""
    return name.isidentifier() and not keyword.iskeyword(name)
