"""Fixer: stages token-keyed edits for one pass and materializes them in one sweep."""

import logging
from collections.abc import Iterable
from dataclasses import dataclass
from enum import Enum
from typing import Optional

from phpsniff.domain.token_store import TokenStore

logger = logging.getLogger(__name__)


class EditOperation(str, Enum):
    INSERT_BEFORE = "insert-before"
    INSERT_AFTER = "insert-after"
    REPLACE = "replace"


@dataclass(frozen=True)
class FixEdit:
    """One proposed change, addressed by the original token index of this pass."""

    position: int
    operation: EditOperation
    content: str
    source: str = ""


def materialize(store: TokenStore, edits: Iterable[FixEdit]) -> str:
    """Apply edits against the original token positions in a single rewrite.

    Inserts accumulate in proposal order; a token has at most one replacement.
    """
    before: dict[int, list[str]] = {}
    after: dict[int, list[str]] = {}
    replacements: dict[int, str] = {}
    for edit in edits:
        if edit.operation is EditOperation.INSERT_BEFORE:
            before.setdefault(edit.position, []).append(edit.content)
        elif edit.operation is EditOperation.INSERT_AFTER:
            after.setdefault(edit.position, []).append(edit.content)
        else:
            replacements.setdefault(edit.position, edit.content)

    parts: list[str] = []
    for token in store:
        index = token.index
        parts.extend(before.get(index, ()))
        parts.append(replacements.get(index, token.text))
        parts.extend(after.get(index, ()))
    return "".join(parts)


class Fixer:
    """Pending edits for one pass over one file.

    Sniffs only append. Two sniffs replacing the same token in one pass is a
    conflict: the first replacement stands and the later edit (or the whole
    changeset containing it) is dropped, to be proposed again next pass.
    """

    def __init__(self, store: TokenStore) -> None:
        self._store = store
        self._edits: list[FixEdit] = []
        self._replaced: dict[int, str] = {}
        self._changeset: Optional[list[FixEdit]] = None
        self._changeset_failed = False
        self.conflict_count = 0
        self.current_source = ""

    @property
    def edits(self) -> tuple[FixEdit, ...]:
        return tuple(self._edits)

    @property
    def edit_count(self) -> int:
        return len(self._edits)

    @property
    def in_changeset(self) -> bool:
        return self._changeset is not None

    def propose(self, position: int, operation: EditOperation, content: str) -> bool:
        """Stage one edit. Returns False when it was rejected."""
        if self._store.get(position) is None:
            logger.warning("%s proposed an edit at out-of-range position %s",
                           self.current_source or "A sniff", position)
            return False
        edit = FixEdit(position, operation, content, self.current_source)
        if operation is EditOperation.REPLACE and not self._can_replace(position, content):
            self.conflict_count += 1
            logger.debug("Rejected conflicting replacement of token %s by %s", position, edit.source)
            if self._changeset is not None:
                self._changeset_failed = True
            return False
        if self._changeset is not None:
            if operation is EditOperation.REPLACE:
                # Within one changeset the latest replacement of a token wins.
                self._changeset = [
                    e for e in self._changeset
                    if not (e.position == position and e.operation is EditOperation.REPLACE)
                ]
            self._changeset.append(edit)
            return True
        self._commit([edit])
        return True

    def add_content_before(self, position: int, content: str) -> bool:
        return self.propose(position, EditOperation.INSERT_BEFORE, content)

    def add_content(self, position: int, content: str) -> bool:
        return self.propose(position, EditOperation.INSERT_AFTER, content)

    def replace_token(self, position: int, content: str) -> bool:
        return self.propose(position, EditOperation.REPLACE, content)

    def add_newline(self, position: int) -> bool:
        return self.add_content(position, self._store.eol)

    def begin_changeset(self) -> None:
        """Group the following edits so they are applied all together or not at all."""
        if self._changeset is not None:
            logger.debug("Nested changeset from %s folded into the open one", self.current_source)
            return
        self._changeset = []
        self._changeset_failed = False

    def end_changeset(self) -> bool:
        """Commit the open changeset. Returns False when a conflict discarded it."""
        pending, failed = self._changeset, self._changeset_failed
        self._changeset = None
        self._changeset_failed = False
        if pending is None:
            return False
        if failed:
            return False
        self._commit(pending)
        return True

    def rollback_changeset(self) -> None:
        self._changeset = None
        self._changeset_failed = False

    def materialize(self) -> str:
        return materialize(self._store, self._edits)

    def _can_replace(self, position: int, content: str) -> bool:
        existing = self._replaced.get(position)
        return existing is None or existing == content

    def _commit(self, edits: list[FixEdit]) -> None:
        for edit in edits:
            if edit.operation is EditOperation.REPLACE:
                if edit.position in self._replaced:
                    continue
                self._replaced[edit.position] = edit.content
            self._edits.append(edit)
