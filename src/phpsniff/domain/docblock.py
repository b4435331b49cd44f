"""Docblock lookup and conversion of docblock types into native type declarations."""

import re
from enum import Enum, auto
from typing import Optional

from phpsniff.domain.token_store import TokenStore
from phpsniff.domain.tokens import TokenKind as K

TYPE_ALIASES = {
    "integer": "int",
    "boolean": "bool",
    "double": "float",
    "callback": "callable",
}

BUILTIN_TYPES = frozenset({
    "string", "int", "float", "bool",
    "array", "callable", "iterable", "object",
    "void", "mixed", "never", "null",
    "self", "parent", "static", "false", "true",
})

_CLASS_NAME = re.compile(r"^[a-zA-Z_\\][a-zA-Z0-9_\\]*$")
_ARRAY_NOTATION = re.compile(r"\[\]$|^array\s*<")

# Tokens allowed between a function's docblock and its keyword.
_DOCBLOCK_GAP = frozenset({
    K.WHITESPACE,
    K.PUBLIC,
    K.PROTECTED,
    K.PRIVATE,
    K.STATIC,
    K.ABSTRACT,
    K.FINAL,
})


class DocblockScan(Enum):
    SCANNING = auto()
    FOUND = auto()
    FOREIGN = auto()


def resolve_simple_type(type_name: str) -> Optional[str]:
    """Map one docblock type name to a native type, or None when it is not one."""
    type_name = type_name.strip()
    lower = type_name.lower()
    if lower in TYPE_ALIASES:
        return TYPE_ALIASES[lower]
    if lower in BUILTIN_TYPES:
        return lower
    if _CLASS_NAME.match(type_name):
        return type_name
    return None


def normalize_docblock_type(docblock_type: Optional[str]) -> Optional[str]:
    """Convert a docblock type to a native declaration when that is unambiguous.

    `int[]` and `array<...>` become `array`, `?T` and two-member unions with
    `null` become `?T`. Anything else with a `|` returns None.
    """
    if not docblock_type:
        return None
    type_name = docblock_type.strip()
    if _ARRAY_NOTATION.search(type_name):
        return "array"
    if type_name.startswith("?"):
        inner = resolve_simple_type(type_name[1:])
        return None if inner is None else "?" + inner
    if "|" in type_name:
        parts = [part.strip() for part in type_name.split("|")]
        if len(parts) != 2:
            return None
        if parts[0].lower() == "null":
            other = parts[1]
        elif parts[1].lower() == "null":
            other = parts[0]
        else:
            return None
        resolved = resolve_simple_type(other)
        return None if resolved is None else "?" + resolved
    return resolve_simple_type(type_name)


def function_docblock(store: TokenStore, function_ptr: int) -> Optional[int]:
    """Opener of the docblock attached to a function, or None.

    Only whitespace and visibility/static/abstract/final keywords may sit
    between the docblock and the function keyword.
    """
    state = DocblockScan.SCANNING
    position = function_ptr - 1
    while state is DocblockScan.SCANNING:
        token = store.get(position)
        if token is None:
            state = DocblockScan.FOREIGN
        elif token.kind == K.DOC_COMMENT_CLOSE_TAG:
            state = DocblockScan.FOUND
        elif token.kind in _DOCBLOCK_GAP:
            position -= 1
        else:
            state = DocblockScan.FOREIGN
    if state is DocblockScan.FOREIGN:
        return None
    return store[position].matching_opener


def tag_strings(store: TokenStore, opener: int, tag: str) -> list[str]:
    """Text following each occurrence of tag (e.g. "@param") in a docblock."""
    closer = store[opener].matching_closer
    if closer is None:
        return []
    values: list[str] = []
    for position in range(opener, closer):
        token = store[position]
        if token.kind != K.DOC_COMMENT_TAG or token.text != tag:
            continue
        for following in range(position + 1, closer):
            if store[following].kind == K.DOC_COMMENT_STRING:
                values.append(store[following].text.strip())
                break
    return values


def param_type(store: TokenStore, function_ptr: int, param_name: str) -> Optional[str]:
    """Docblock type declared for param_name ("$name"), or None."""
    opener = function_docblock(store, function_ptr)
    if opener is None:
        return None
    for text in tag_strings(store, opener, "@param"):
        parts = re.split(r"\s+", text, maxsplit=2)
        if len(parts) >= 2 and parts[1] == param_name:
            return parts[0]
    return None


def return_type(store: TokenStore, function_ptr: int) -> Optional[str]:
    opener = function_docblock(store, function_ptr)
    if opener is None:
        return None
    for text in tag_strings(store, opener, "@return"):
        first = re.split(r"\s+", text, maxsplit=1)[0]
        if first:
            return first
    return None
