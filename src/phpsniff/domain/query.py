"""Token Query Engine: total, read-only lookups over a TokenStore.

Every lookup returns None for "not found" or "cannot determine" and never
raises for an out-of-range position.
"""

from collections.abc import Iterable
from dataclasses import dataclass
from enum import Enum, auto
from typing import Optional, Union

from phpsniff.domain.token_store import TokenStore
from phpsniff.domain.tokens import (
    EMPTY_TOKENS,
    MODIFIER_TOKENS,
    TYPE_TOKENS,
    VISIBILITY_TOKENS,
)
from phpsniff.domain.tokens import TokenKind as K

KindSpec = Union[K, Iterable[K]]

_NAMED_DECLARATIONS = frozenset({K.FUNCTION, K.CLASS, K.INTERFACE, K.TRAIT, K.ENUM})
_PROPERTY_SCOPES = frozenset({K.CLASS, K.ANON_CLASS, K.TRAIT})
_STATEMENT_BOUNDARIES = frozenset({
    K.SEMICOLON,
    K.OPEN_CURLY_BRACKET,
    K.CLOSE_CURLY_BRACKET,
    K.ATTRIBUTE_END,
    K.OPEN_TAG,
})
_NESTING_OPENERS = frozenset({
    K.OPEN_PARENTHESIS,
    K.OPEN_SQUARE_BRACKET,
    K.OPEN_SHORT_ARRAY,
    K.OPEN_CURLY_BRACKET,
    K.ATTRIBUTE,
})
_JUMPABLE_CLOSERS = frozenset({
    K.CLOSE_PARENTHESIS,
    K.CLOSE_SQUARE_BRACKET,
    K.CLOSE_SHORT_ARRAY,
})


class Direction(Enum):
    FORWARD = 1
    BACKWARD = -1


class ScanState(Enum):
    """States of the backward brace walk used for orphan-block detection."""

    SCANNING = auto()
    ORPHAN_FOUND = auto()
    SCOPE_REACHED = auto()


@dataclass(frozen=True)
class Parameter:
    """One parameter of a function, closure or arrow function signature."""

    name: str
    variable: int
    type_hint: str
    type_hint_token: Optional[int]
    type_hint_end_token: Optional[int]
    reference_token: Optional[int]
    variadic_token: Optional[int]
    default: Optional[str]
    start: int
    end: int

    @property
    def nullable(self) -> bool:
        return self.type_hint.startswith("?")


@dataclass(frozen=True)
class MemberProperty:
    """A class-level property declaration as seen from one of its variables."""

    scope: int
    type_hint: str
    type_hint_token: Optional[int]
    visibility: Optional[str]
    is_static: bool
    is_readonly: bool


@dataclass(frozen=True)
class Argument:
    """One depth-0 argument of a call. `value` skips a named-argument label."""

    start: int
    end: int
    value: int
    name: Optional[str] = None


def _as_kinds(kinds: KindSpec) -> frozenset:
    if isinstance(kinds, K):
        return frozenset({kinds})
    return frozenset(kinds)


class TokenQuery:
    """Stateless lookups over one TokenStore."""

    def __init__(self, store: TokenStore) -> None:
        self.store = store

    def find_next(
        self,
        kinds: KindSpec,
        start: int,
        end: Optional[int] = None,
        exclude: bool = False,
        value: Optional[str] = None,
        local: bool = False,
    ) -> Optional[int]:
        """Smallest index in [start, end) whose kind is in kinds (not in kinds with exclude).

        value additionally requires exact token text; local stops at the end of
        the current statement.
        """
        wanted = _as_kinds(kinds)
        limit = len(self.store) if end is None else min(end, len(self.store))
        for index in range(max(start, 0), limit):
            token = self.store[index]
            if (token.kind in wanted) != exclude and (value is None or token.text == value):
                return index
            if local and token.kind == K.SEMICOLON:
                break
        return None

    def find_previous(
        self,
        kinds: KindSpec,
        start: int,
        end: Optional[int] = None,
        exclude: bool = False,
        value: Optional[str] = None,
        local: bool = False,
    ) -> Optional[int]:
        """Largest index in (end, start] whose kind is in kinds (not in kinds with exclude)."""
        wanted = _as_kinds(kinds)
        stop = -1 if end is None else max(end, -1)
        for index in range(min(start, len(self.store) - 1), stop, -1):
            token = self.store[index]
            if (token.kind in wanted) != exclude and (value is None or token.text == value):
                return index
            if local and (
                token.kind in (K.SEMICOLON, K.OPEN_TAG)
                or token.scope_opener == index
                or token.scope_closer == index
            ):
                break
        return None

    def skip_insignificant(
        self,
        start: int,
        direction: Direction = Direction.FORWARD,
        end: Optional[int] = None,
    ) -> Optional[int]:
        """First position from start (inclusive) that is not whitespace or a comment."""
        if direction is Direction.FORWARD:
            return self.find_next(EMPTY_TOKENS, start, end, exclude=True)
        return self.find_previous(EMPTY_TOKENS, start, end, exclude=True)

    def next_significant(self, index: int, end: Optional[int] = None) -> Optional[int]:
        return self.skip_insignificant(index + 1, Direction.FORWARD, end)

    def previous_significant(self, index: int, end: Optional[int] = None) -> Optional[int]:
        return self.skip_insignificant(index - 1, Direction.BACKWARD, end)

    def tokens_as_string(self, start: int, length: int) -> str:
        start = max(start, 0)
        stop = min(start + max(length, 0), len(self.store))
        return "".join(self.store[i].text for i in range(start, stop))

    def significant_text(self, start: int, end: int) -> str:
        """Text of the non-empty tokens in [start, end), concatenated."""
        stop = min(end, len(self.store))
        return "".join(
            self.store[i].text
            for i in range(max(start, 0), stop)
            if self.store[i].kind not in EMPTY_TOKENS
        )

    def declaration_name(self, index: int) -> Optional[str]:
        """Name of a named function, class, interface, trait or enum; None for closures."""
        token = self.store.get(index)
        if token is None or token.kind not in _NAMED_DECLARATIONS:
            return None
        name = self.next_significant(index)
        if name is not None and self.store[name].kind == K.BITWISE_AND:
            name = self.next_significant(name)
        if name is None or self.store[name].kind != K.STRING:
            return None
        return self.store[name].text

    def has_condition(self, index: int, kinds: KindSpec) -> bool:
        return self.enclosing_scope(index, kinds) is not None

    def enclosing_scope(self, index: int, kinds: KindSpec) -> Optional[int]:
        """Innermost enclosing scope owner whose kind is in kinds."""
        token = self.store.get(index)
        if token is None:
            return None
        wanted = _as_kinds(kinds)
        for owner in reversed(token.conditions):
            if self.store[owner].kind in wanted:
                return owner
        return None

    def is_inside_orphan_block(self, index: int) -> bool:
        """True when index sits inside braces that no scope keyword owns.

        Walks backward to the innermost recognised scope opener. Recognised
        blocks are skipped whole, orphan closers raise the depth, and an
        orphan opener met at depth zero encloses the token.
        """
        token = self.store.get(index)
        if token is None:
            return False
        stop = -1
        if token.conditions:
            opener = self.store[token.conditions[-1]].scope_opener
            if opener is not None:
                stop = opener

        state = ScanState.SCANNING
        depth = 0
        position = index - 1
        while state is ScanState.SCANNING and position > stop:
            current = self.store[position]
            if current.kind == K.CLOSE_CURLY_BRACKET:
                if current.scope_condition is not None and current.scope_opener is not None:
                    position = current.scope_opener
                else:
                    depth += 1
            elif current.kind == K.OPEN_CURLY_BRACKET:
                if current.scope_condition is not None:
                    state = ScanState.SCOPE_REACHED
                elif depth == 0:
                    state = ScanState.ORPHAN_FOUND
                else:
                    depth -= 1
            position -= 1
        return state is ScanState.ORPHAN_FOUND

    def is_top_level_of_scope(self, index: int, scope: int) -> bool:
        """True when index is directly inside scope's braces, not within a nested block."""
        token = self.store.get(index)
        if token is None or not token.conditions or token.conditions[-1] != scope:
            return False
        return not self.is_inside_orphan_block(index)

    def method_parameters(self, index: int) -> list[Parameter]:
        """Parameters of the function-like token at index; empty when undeterminable."""
        token = self.store.get(index)
        if token is None or token.parenthesis_opener is None or token.parenthesis_closer is None:
            return []
        opener, closer = token.parenthesis_opener, token.parenthesis_closer
        segments = self._split_depth_zero(opener, closer)
        if segments is None:
            return []
        parameters: list[Parameter] = []
        for seg_start, seg_end in segments:
            parameter = self._parse_parameter(seg_start, seg_end)
            if parameter is not None:
                parameters.append(parameter)
        return parameters

    def call_arguments(self, opener: int) -> list[Argument]:
        """Depth-0 arguments between a parenthesis or short-array opener and its closer."""
        token = self.store.get(opener)
        if token is None or token.matching_closer is None:
            return []
        segments = self._split_depth_zero(opener, token.matching_closer)
        if segments is None:
            return []
        arguments: list[Argument] = []
        for seg_start, seg_end in segments:
            first = self.skip_insignificant(seg_start, Direction.FORWARD, seg_end)
            if first is None:
                continue
            last = self.skip_insignificant(seg_end - 1, Direction.BACKWARD, seg_start - 1)
            name = None
            value = first
            if self.store[first].kind == K.PARAM_NAME:
                colon = self.next_significant(first, seg_end)
                if colon is not None and self.store[colon].kind == K.COLON:
                    after = self.next_significant(colon, seg_end)
                    if after is None:
                        continue
                    name = self.store[first].text
                    value = after
            arguments.append(Argument(start=first, end=last if last is not None else first,
                                      value=value, name=name))
        return arguments

    def _split_depth_zero(self, opener: int, closer: int) -> Optional[list[tuple[int, int]]]:
        """Comma-separated [start, end) spans at depth zero inside opener..closer.

        Returns None when a nested opener has no closer, since the spans
        cannot be trusted.
        """
        segments: list[tuple[int, int]] = []
        segment_start = opener + 1
        position = opener + 1
        while position < closer:
            current = self.store[position]
            if current.kind in _NESTING_OPENERS:
                if current.matching_closer is None or current.matching_closer > closer:
                    return None
                position = current.matching_closer + 1
                continue
            if current.kind == K.COMMA:
                segments.append((segment_start, position))
                segment_start = position + 1
            position += 1
        segments.append((segment_start, closer))
        return segments

    def _parse_parameter(self, start: int, end: int) -> Optional[Parameter]:
        variable = None
        position = start
        while position < end:
            current = self.store[position]
            if current.kind in _NESTING_OPENERS and current.matching_closer is not None:
                position = current.matching_closer + 1
                continue
            if current.kind == K.VARIABLE:
                variable = position
                break
            position += 1
        if variable is None:
            return None

        reference = None
        variadic = None
        type_start = None
        type_end = None
        type_parts: list[str] = []
        position = start
        while position < variable:
            current = self.store[position]
            if current.kind in EMPTY_TOKENS:
                position += 1
                continue
            if current.kind == K.ATTRIBUTE and current.matching_closer is not None:
                position = current.matching_closer + 1
                continue
            following = self.next_significant(position, variable + 1)
            if current.kind == K.ELLIPSIS:
                variadic = position
            elif current.kind == K.BITWISE_AND and following is not None and (
                    self.store[following].kind in (K.VARIABLE, K.ELLIPSIS)):
                reference = position
            elif current.kind in TYPE_TOKENS or current.kind == K.OPEN_PARENTHESIS or (
                    current.kind == K.CLOSE_PARENTHESIS):
                if type_start is None:
                    type_start = position
                type_end = position
                type_parts.append(current.text)
            position += 1

        default = None
        equal = self.find_next(K.EQUAL, variable + 1, end)
        if equal is not None:
            default = self.significant_text(equal + 1, end).strip() or None

        last = self.skip_insignificant(end - 1, Direction.BACKWARD, start - 1)
        return Parameter(
            name=self.store[variable].text,
            variable=variable,
            type_hint="".join(type_parts),
            type_hint_token=type_start,
            type_hint_end_token=type_end,
            reference_token=reference,
            variadic_token=variadic,
            default=default,
            start=self.skip_insignificant(start, Direction.FORWARD, end) or variable,
            end=last if last is not None else variable,
        )

    def statement_start(self, index: int) -> Optional[int]:
        """First significant token of the statement containing index, or None out of range.

        Bracketed spans are jumped over so a boundary inside an array literal
        or a closure body is never taken for the statement's own boundary.
        """
        if self.store.get(index) is None:
            return None
        position = index - 1
        while position >= 0:
            current = self.store[position]
            if current.kind in _JUMPABLE_CLOSERS and current.matching_opener is not None:
                position = current.matching_opener - 1
                continue
            if current.kind in _STATEMENT_BOUNDARIES:
                break
            position -= 1
        first = self.skip_insignificant(position + 1, Direction.FORWARD, index + 1)
        return index if first is None else first

    def member_property(self, index: int) -> Optional[MemberProperty]:
        """Describe the class property declared by the variable at index, or None.

        Method parameters, locals, promoted constructor parameters and
        anything inside a property-hook body are not member properties.
        """
        token = self.store.get(index)
        if token is None or token.kind != K.VARIABLE or not token.conditions:
            return None
        scope = token.conditions[-1]
        if self.store[scope].kind not in _PROPERTY_SCOPES:
            return None
        if token.nested_parenthesis or not self.is_top_level_of_scope(index, scope):
            return None

        start = self.statement_start(index)
        visibility = None
        is_static = False
        is_readonly = False
        saw_modifier = False
        type_parts: list[str] = []
        type_token = None
        position = start
        while position is not None and position < index:
            current = self.store[position]
            if current.kind in MODIFIER_TOKENS:
                saw_modifier = True
                if current.kind in VISIBILITY_TOKENS:
                    visibility = current.text.lower()
                elif current.kind == K.STATIC:
                    is_static = True
                elif current.kind == K.READONLY:
                    is_readonly = True
            elif current.kind in TYPE_TOKENS:
                if type_token is None:
                    type_token = position
                type_parts.append(current.text)
            elif current.kind == K.VARIABLE:
                # A later declarator of "public $a = 1, $b;".
                break
            else:
                return None
            position = self.next_significant(position, index)

        if not saw_modifier:
            return None
        return MemberProperty(
            scope=scope,
            type_hint="".join(type_parts),
            type_hint_token=type_token,
            visibility=visibility,
            is_static=is_static,
            is_readonly=is_readonly,
        )
