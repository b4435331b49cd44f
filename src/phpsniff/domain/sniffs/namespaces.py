"""Namespace sniffs: every file declares one, and global classes are referenced explicitly."""

import re
from dataclasses import dataclass
from typing import TYPE_CHECKING, Optional

from phpsniff.domain.errors import ConfigurationError
from phpsniff.domain.php_builtins import CORE_CLASSES
from phpsniff.domain.sniffs import Sniff
from phpsniff.domain.tokens import TokenKind as K

if TYPE_CHECKING:
    from phpsniff.domain.context import FileIdentity, SniffContext

_NAME_PARTS = frozenset({K.STRING, K.NS_SEPARATOR})

# A STRING after one of these names a declaration or a member, not a class.
_NOT_A_CLASS_REFERENCE = frozenset({
    K.FUNCTION,
    K.CLASS,
    K.INTERFACE,
    K.TRAIT,
    K.ENUM,
    K.CONST,
    K.NAMESPACE,
    K.OBJECT_OPERATOR,
    K.NULLSAFE_OBJECT_OPERATOR,
    K.DOUBLE_COLON,
    K.GOTO,
    K.NS_SEPARATOR,
})

_RETURN_TYPE_END = frozenset({K.OPEN_CURLY_BRACKET, K.SEMICOLON, K.FN_ARROW})


class NamespaceSniff(Sniff):
    code = "Namespaces.Namespace"
    description = "Require a namespace declaration in every PHP file."

    def register(self) -> frozenset[K]:
        return frozenset({K.OPEN_TAG})

    def process(self, ctx: "SniffContext", ptr: int) -> Optional[int]:
        if ctx.query.find_next(K.NAMESPACE, 0) is None:
            ctx.add_error("PHP file must have a namespace declaration.", ptr, "MissingNamespace")
        # Only the first open tag matters.
        return len(ctx.store)


@dataclass(frozen=True)
class GlobalNamespaceOptions:
    known_global_classes: tuple[str, ...] = ()
    # Regular expressions, either bare or PHP-style delimited ("/^WP_/").
    class_patterns: tuple[str, ...] = ()
    auto_detect_php_classes: bool = True


def compile_class_pattern(pattern: str) -> re.Pattern:
    """Compile a bare or /delimited/flags pattern."""
    text = pattern.strip()
    flags = 0
    if len(text) >= 2 and text[0] == "/" and "/" in text[1:]:
        body, _, modifiers = text[1:].rpartition("/")
        if all(modifier in "imsx" for modifier in modifiers):
            text = body
            for modifier in modifiers:
                flags |= getattr(re, modifier.upper())
    try:
        return re.compile(text, flags)
    except re.error as exc:
        raise ConfigurationError(f"Invalid class pattern {pattern!r}: {exc}") from exc


class GlobalNamespaceSniff(Sniff):
    """Global classes used inside a namespace need a leading backslash or a `use` import.

    Only files that declare a namespace are checked. A class counts as
    global when it is listed in known_global_classes, matches one of
    class_patterns, or (with auto_detect_php_classes) ships with PHP.
    Parameter and return types are reported under their own codes; every
    other bare reference is reported as GlobalNamespace. The fix prepends
    the backslash.
    """

    code = "Namespaces.GlobalNamespace"
    description = "Require global classes to be fully qualified or imported inside namespaced files."
    options_type = GlobalNamespaceOptions

    def __init__(self, options: Optional[GlobalNamespaceOptions] = None) -> None:
        super().__init__(options)
        self._patterns = [compile_class_pattern(p) for p in self.options.class_patterns]
        self._use_statements: list[str] = []
        self._type_positions: set[int] = set()
        self._namespaced: Optional[bool] = None

    def register(self) -> frozenset[K]:
        return frozenset({K.NAMESPACE, K.USE, K.FUNCTION, K.STRING})

    def reset(self, identity: "FileIdentity") -> None:
        self._use_statements = []
        self._type_positions = set()
        self._namespaced = None

    def process(self, ctx: "SniffContext", ptr: int) -> Optional[int]:
        if self._namespaced is None:
            self._namespaced = ctx.query.find_next(K.NAMESPACE, 0) is not None
        if not self._namespaced:
            return len(ctx.store)

        kind = ctx.store[ptr].kind
        if kind == K.USE:
            self._remember_use(ctx, ptr)
        elif kind == K.FUNCTION:
            self._check_signature(ctx, ptr)
        elif kind == K.STRING:
            self._check_reference(ctx, ptr)
        return None

    def is_global_class(self, name: str) -> bool:
        if name in self.options.known_global_classes:
            return True
        if any(pattern.search(name) for pattern in self._patterns):
            return True
        return self.options.auto_detect_php_classes and name in CORE_CLASSES

    def is_imported(self, name: str) -> bool:
        word = re.compile(r"\b" + re.escape(name) + r"\b")
        return any(word.search(statement) for statement in self._use_statements)

    def _remember_use(self, ctx: "SniffContext", ptr: int) -> None:
        end = ctx.query.find_next(K.SEMICOLON, ptr)
        stop = len(ctx.store) if end is None else end
        self._use_statements.append(ctx.query.tokens_as_string(ptr, stop - ptr).strip())

    def _check_signature(self, ctx: "SniffContext", ptr: int) -> None:
        token = ctx.store[ptr]
        if token.parenthesis_closer is None:
            return
        for parameter in ctx.query.method_parameters(ptr):
            if parameter.type_hint_token is None or parameter.type_hint_end_token is None:
                continue
            for first, name in self._names_in(ctx, parameter.type_hint_token,
                                              parameter.type_hint_end_token + 1):
                self._flag(
                    ctx, first, name, "GlobalNamespaceTypeHint",
                    "Global class '%s' used as type hint should be referenced with a "
                    "leading backslash or imported with a 'use' statement.",
                )

        colon = ctx.query.next_significant(token.parenthesis_closer)
        if colon is None or ctx.store[colon].kind != K.COLON:
            return
        end = ctx.query.find_next(_RETURN_TYPE_END, colon + 1)
        if end is None:
            return
        for first, name in self._names_in(ctx, colon + 1, end):
            self._flag(
                ctx, first, name, "GlobalNamespaceReturnType",
                "Global class '%s' used as return type should be referenced with a "
                "leading backslash or imported with a 'use' statement.",
            )

    def _names_in(self, ctx: "SniffContext", start: int, end: int) -> list[tuple[int, str]]:
        """(first token, full name) of every class name in a type declaration span."""
        names: list[tuple[int, str]] = []
        position = start
        while position < end:
            if ctx.store[position].kind not in _NAME_PARTS:
                position += 1
                continue
            first = position
            parts = []
            while position < end and ctx.store[position].kind in _NAME_PARTS:
                parts.append(ctx.store[position].text)
                position += 1
            names.append((first, "".join(parts)))
        return names

    def _check_reference(self, ctx: "SniffContext", ptr: int) -> None:
        if ptr in self._type_positions:
            return
        name = ctx.store[ptr].text
        if not self.is_global_class(name) or self.is_imported(name):
            return
        previous = ctx.query.previous_significant(ptr)
        if previous is not None and ctx.store[previous].kind in _NOT_A_CLASS_REFERENCE:
            return
        following = ctx.store.get(ptr + 1)
        if following is not None and following.kind == K.NS_SEPARATOR:
            return
        self._fix(ctx, ptr, ctx.add_fixable_error(
            "Global class '%s' should be referenced with a leading backslash or "
            "imported with a 'use' statement.",
            ptr,
            "GlobalNamespace",
            (name,),
        ))

    def _flag(self, ctx: "SniffContext", first: int, name: str, code: str, message: str) -> None:
        self._type_positions.add(first)
        if ctx.store[first].kind == K.NS_SEPARATOR:
            return
        if not self.is_global_class(name) or self.is_imported(name):
            return
        self._fix(ctx, first, ctx.add_fixable_error(message, first, code, (name,)))

    @staticmethod
    def _fix(ctx: "SniffContext", ptr: int, fix: bool) -> None:
        if fix and ctx.fixer is not None:
            ctx.fixer.add_content_before(ptr, "\\")
