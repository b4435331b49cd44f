"""Token Store: the indexed token sequence and its structural links.

A store is built once per analysis pass and never mutated. Fixes produce new
source text which is tokenized into an entirely new store.
"""

from collections.abc import Iterator, Sequence
from dataclasses import dataclass, field
from typing import Optional

from phpsniff.domain.tokens import (
    CONTROL_STRUCTURE_TOKENS,
    EMPTY_TOKENS,
    OPENER_TO_CLOSER,
    PARENTHESIS_OWNERS,
    SCOPE_OWNERS,
    RawToken,
    Token,
)
from phpsniff.domain.tokens import TokenKind as K

_SQUARE_OPENERS = frozenset({K.OPEN_SQUARE_BRACKET, K.OPEN_SHORT_ARRAY, K.ATTRIBUTE})
_SQUARE_CLOSERS = frozenset({K.CLOSE_SQUARE_BRACKET, K.CLOSE_SHORT_ARRAY, K.ATTRIBUTE_END})
_CALLABLE_OWNERS = frozenset({K.FUNCTION, K.CLOSURE, K.FN})


@dataclass
class _Links:
    """Mutable scratch record for one token while the store is being linked."""

    matching_opener: Optional[int] = None
    matching_closer: Optional[int] = None
    scope_condition: Optional[int] = None
    scope_opener: Optional[int] = None
    scope_closer: Optional[int] = None
    parenthesis_owner: Optional[int] = None
    parenthesis_opener: Optional[int] = None
    parenthesis_closer: Optional[int] = None
    conditions: tuple[int, ...] = ()
    nested_parenthesis: tuple[int, ...] = ()


@dataclass
class _PendingOwner:
    """A scope keyword still waiting for its opening brace."""

    index: int
    depth: int


@dataclass
class _Linker:
    """One linear pass computing every structural annotation."""

    raw: Sequence[RawToken]
    links: list[_Links] = field(default_factory=list)
    parenthesis_stack: list[int] = field(default_factory=list)
    square_stack: list[int] = field(default_factory=list)
    curly_stack: list[int] = field(default_factory=list)
    doc_opener: Optional[int] = None
    pending: list[_PendingOwner] = field(default_factory=list)
    condition_stack: list[int] = field(default_factory=list)

    def run(self) -> list[_Links]:
        self.links = [_Links() for _ in self.raw]
        for index, token in enumerate(self.raw):
            self._visit(index, token.kind)
        return self.links

    def _visit(self, index: int, kind: K) -> None:
        link = self.links[index]
        link.conditions = tuple(self.condition_stack)
        link.nested_parenthesis = tuple(self.parenthesis_stack)

        if kind in SCOPE_OWNERS:
            depth = len(self.parenthesis_stack)
            while self.pending and self.pending[-1].depth >= depth:
                self.pending.pop()
            self.pending.append(_PendingOwner(index, depth))
        elif kind == K.OPEN_PARENTHESIS:
            self._open_parenthesis(index)
        elif kind == K.CLOSE_PARENTHESIS:
            self._close_parenthesis(index)
        elif kind in _SQUARE_OPENERS:
            self.square_stack.append(index)
        elif kind in _SQUARE_CLOSERS:
            self._close_pair(index, kind, self.square_stack)
        elif kind == K.OPEN_CURLY_BRACKET:
            self._open_curly(index)
        elif kind == K.CLOSE_CURLY_BRACKET:
            self._close_curly(index)
        elif kind == K.DOC_COMMENT_OPEN_TAG:
            self.doc_opener = index
        elif kind == K.DOC_COMMENT_CLOSE_TAG:
            if self.doc_opener is not None:
                self._pair(self.doc_opener, index)
                self.doc_opener = None
        elif kind == K.SEMICOLON:
            depth = self._drop_stale_pending()
            if self.pending and self.pending[-1].depth == depth:
                self.pending.pop()
        elif kind == K.COLON:
            self._maybe_alternative_syntax(index)

    def _pair(self, opener: int, closer: int) -> None:
        self.links[opener].matching_closer = closer
        self.links[closer].matching_opener = opener

    def _close_pair(self, index: int, kind: K, stack: list[int]) -> bool:
        if not stack or OPENER_TO_CLOSER.get(self.raw[stack[-1]].kind) != kind:
            return False
        self._pair(stack.pop(), index)
        return True

    def _previous_significant(self, index: int) -> Optional[int]:
        for i in range(index - 1, -1, -1):
            if self.raw[i].kind not in EMPTY_TOKENS:
                return i
        return None

    def _find_parenthesis_owner(self, index: int) -> Optional[int]:
        previous = self._previous_significant(index)
        if previous is None:
            return None
        kind = self.raw[previous].kind
        if kind in PARENTHESIS_OWNERS:
            return previous
        if kind in (K.STRING, K.BITWISE_AND):
            before = self._previous_significant(previous)
            if before is None:
                return None
            if self.raw[before].kind in _CALLABLE_OWNERS:
                return before
            if self.raw[before].kind == K.BITWISE_AND:
                # function &name(
                owner = self._previous_significant(before)
                if owner is not None and self.raw[owner].kind == K.FUNCTION:
                    return owner
        return None

    def _open_parenthesis(self, index: int) -> None:
        owner = self._find_parenthesis_owner(index)
        if owner is not None and self.links[owner].parenthesis_opener is None:
            self.links[index].parenthesis_owner = owner
            self.links[owner].parenthesis_opener = index
        self.parenthesis_stack.append(index)

    def _close_parenthesis(self, index: int) -> None:
        if not self.parenthesis_stack:
            return
        opener = self.parenthesis_stack.pop()
        self._pair(opener, index)
        self.links[index].nested_parenthesis = tuple(self.parenthesis_stack)
        owner = self.links[opener].parenthesis_owner
        if owner is not None:
            self.links[index].parenthesis_owner = owner
            self.links[owner].parenthesis_closer = index
            self.links[opener].parenthesis_closer = index
            self.links[index].parenthesis_opener = opener

    def _drop_stale_pending(self) -> int:
        depth = len(self.parenthesis_stack)
        while self.pending and self.pending[-1].depth > depth:
            self.pending.pop()
        return depth

    def _open_curly(self, index: int) -> None:
        self.curly_stack.append(index)
        depth = self._drop_stale_pending()
        if not self.pending or self.pending[-1].depth != depth:
            return
        owner = self.pending.pop().index
        for target in (owner, index):
            self.links[target].scope_condition = owner
            self.links[target].scope_opener = index
        self.condition_stack.append(owner)

    def _close_curly(self, index: int) -> None:
        if not self.curly_stack:
            return
        opener = self.curly_stack.pop()
        self._pair(opener, index)
        owner = self.links[opener].scope_condition
        if owner is None:
            return
        if self.condition_stack and self.condition_stack[-1] == owner:
            self.condition_stack.pop()
        self.links[index].conditions = tuple(self.condition_stack)
        for target in (owner, opener, index):
            self.links[target].scope_condition = owner
            self.links[target].scope_opener = opener
            self.links[target].scope_closer = index

    def _maybe_alternative_syntax(self, index: int) -> None:
        """Drop a control structure's pending scope when it uses the colon syntax."""
        depth = self._drop_stale_pending()
        if not self.pending or self.pending[-1].depth != depth:
            return
        owner = self.pending[-1].index
        if self.raw[owner].kind not in CONTROL_STRUCTURE_TOKENS:
            return
        previous = self._previous_significant(index)
        expected = self.links[owner].parenthesis_closer
        if expected is None:
            expected = owner
        if previous == expected:
            self.pending.pop()


class TokenStore:
    """Immutable, indexed token sequence with pre-linked structure."""

    def __init__(self, tokens: Sequence[Token]) -> None:
        self._tokens: tuple[Token, ...] = tuple(tokens)
        self._source: Optional[str] = None

    @classmethod
    def build(cls, raw_tokens: Sequence[RawToken]) -> "TokenStore":
        """Link raw tokenizer output into a store in a single pass."""
        links = _Linker(raw_tokens).run()
        tokens = [
            Token(
                index=index,
                kind=raw.kind,
                text=raw.text,
                line=raw.line,
                column=raw.column,
                matching_opener=link.matching_opener,
                matching_closer=link.matching_closer,
                scope_condition=link.scope_condition,
                scope_opener=link.scope_opener,
                scope_closer=link.scope_closer,
                parenthesis_owner=link.parenthesis_owner,
                parenthesis_opener=link.parenthesis_opener,
                parenthesis_closer=link.parenthesis_closer,
                conditions=link.conditions,
                nested_parenthesis=link.nested_parenthesis,
            )
            for index, (raw, link) in enumerate(zip(raw_tokens, links))
        ]
        return cls(tokens)

    def __len__(self) -> int:
        return len(self._tokens)

    def __getitem__(self, index: int) -> Token:
        if index < 0:
            raise IndexError(index)
        return self._tokens[index]

    def __iter__(self) -> Iterator[Token]:
        return iter(self._tokens)

    def get(self, index: Optional[int]) -> Optional[Token]:
        """Return the token at index, or None when index is None or out of range."""
        if index is None or index < 0 or index >= len(self._tokens):
            return None
        return self._tokens[index]

    def kind(self, index: Optional[int]) -> Optional[K]:
        token = self.get(index)
        return None if token is None else token.kind

    @property
    def source(self) -> str:
        """The source text the store was tokenized from."""
        if self._source is None:
            self._source = "".join(token.text for token in self._tokens)
        return self._source

    @property
    def eol(self) -> str:
        """Line ending used by the file, defaulting to a newline."""
        source = self.source
        position = source.find("\n")
        if position > 0 and source[position - 1] == "\r":
            return "\r\n"
        return "\n"
