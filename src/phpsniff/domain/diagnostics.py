"""Diagnostic Sink: collects, deduplicates and suppresses reported findings."""

import logging
import re
from collections.abc import Sequence
from dataclasses import dataclass, field
from enum import Enum
from typing import Hashable, Optional

from phpsniff.domain.token_store import TokenStore
from phpsniff.domain.tokens import EMPTY_TOKENS
from phpsniff.domain.tokens import TokenKind as K

logger = logging.getLogger(__name__)

_DIRECTIVE = re.compile(r"phpcs:(ignore-file|ignore|disable|enable|set)\b(.*)", re.IGNORECASE | re.DOTALL)


class Severity(str, Enum):
    ERROR = "error"
    WARNING = "warning"


@dataclass(frozen=True)
class Diagnostic:
    """One reported finding. `source` is the qualified Category.Sniff.Code name."""

    position: int
    line: int
    column: int
    source: str
    code: str
    severity: Severity
    message: str
    fixable: bool = False

    def to_dict(self) -> dict[str, object]:
        return {
            "line": self.line,
            "column": self.column,
            "severity": self.severity.value,
            "source": self.source,
            "message": self.message,
            "fixable": self.fixable,
        }


def _directive_codes(text: str) -> Optional[tuple[str, ...]]:
    """Sniff codes listed by a directive comment; None when it names none (applies to all)."""
    body = text.strip()
    if body.startswith("/*"):
        body = body[2:]
    if body.endswith("*/"):
        body = body[:-2]
    match = _DIRECTIVE.search(body)
    if match is None:
        return None
    listed = match.group(2).split("--", 1)[0]
    codes = tuple(code.strip() for code in listed.split(",") if code.strip())
    return codes or None


def _matches(source: str, codes: Optional[tuple[str, ...]]) -> bool:
    if codes is None:
        return True
    return any(source == code or source.startswith(code + ".") for code in codes)


@dataclass
class SuppressionMap:
    """Lines and regions silenced by phpcs:ignore / phpcs:disable / phpcs:enable comments.

    A region is ``(start, end, codes, exempt)``. ``codes`` of None silences every
    source; ``exempt`` lists codes re-enabled by a scoped ``phpcs:enable`` inside
    such a bare region.
    """

    ignore_file: bool = False
    line_ignores: dict[int, list[Optional[tuple[str, ...]]]] = field(default_factory=dict)
    regions: list[tuple[int, float, Optional[tuple[str, ...]], tuple[str, ...]]] = field(default_factory=list)

    @classmethod
    def from_store(cls, store: TokenStore) -> "SuppressionMap":
        suppressions = cls()
        open_regions: dict[Optional[str], int] = {}
        exempt: tuple[str, ...] = ()

        def restart_bare(line: int, new_exempt: tuple[str, ...]) -> None:
            nonlocal exempt
            suppressions.regions.append((open_regions[None], line, None, exempt))
            open_regions[None] = line + 1
            exempt = new_exempt

        for token in store:
            if token.kind == K.PHPCS_IGNORE_FILE:
                suppressions.ignore_file = True
            elif token.kind == K.PHPCS_IGNORE:
                line = token.line + 1 if _is_standalone(store, token.index) else token.line
                suppressions.line_ignores.setdefault(line, []).append(_directive_codes(token.text))
            elif token.kind == K.PHPCS_DISABLE:
                codes = _directive_codes(token.text)
                for code in codes or (None,):
                    open_regions.setdefault(code, token.line)
                if None in open_regions:
                    remaining = () if codes is None else tuple(c for c in exempt if c not in codes)
                    if remaining != exempt:
                        restart_bare(token.line, remaining)
            elif token.kind == K.PHPCS_ENABLE:
                codes = _directive_codes(token.text)
                closing = list(open_regions) if codes is None else [c for c in codes if c in open_regions]
                for code in closing:
                    start = open_regions.pop(code)
                    suppressions.regions.append((start, token.line, None if code is None else (code,), exempt))
                if codes is None:
                    exempt = ()
                elif None in open_regions:
                    added = tuple(c for c in codes if c not in exempt)
                    if added:
                        restart_bare(token.line, exempt + added)
        for code, start in open_regions.items():
            suppressions.regions.append((start, float("inf"), None if code is None else (code,), exempt))
        return suppressions

    def is_suppressed(self, line: int, source: str) -> bool:
        if self.ignore_file:
            return True
        for codes in self.line_ignores.get(line, ()):
            if _matches(source, codes):
                return True
        return any(
            start <= line <= end and _matches(source, codes) and not (exempt and _matches(source, exempt))
            for start, end, codes, exempt in self.regions
        )


def _is_standalone(store: TokenStore, index: int) -> bool:
    """True when nothing but whitespace precedes the comment on its line."""
    line = store[index].line
    for position in range(index - 1, -1, -1):
        token = store[position]
        if token.line != line and "\n" in token.text:
            return True
        if token.kind not in EMPTY_TOKENS:
            return token.line != line
    return True


class DiagnosticSink:
    """Collects diagnostics for one file pass.

    At most one diagnostic is kept per (line, source). Callers that check
    several items on one line pass a dedup_key to widen that key.
    """

    def __init__(self, store: TokenStore, suppressions: Optional[SuppressionMap] = None) -> None:
        self._store = store
        self._suppressions = suppressions if suppressions is not None else SuppressionMap.from_store(store)
        self._seen: set[tuple[int, str, Hashable]] = set()
        self._diagnostics: list[Diagnostic] = []

    def report(
        self,
        position: int,
        code: str,
        severity: Severity,
        message: str,
        args: Sequence[object] = (),
        fixable: bool = False,
        *,
        source: Optional[str] = None,
        dedup_key: Hashable = None,
        suppressible: bool = True,
    ) -> bool:
        """Record a diagnostic. Returns False when it was a duplicate, suppressed or unplaceable.

        Unsuppressible diagnostics ignore phpcs:ignore, phpcs:disable and phpcs:ignore-file.
        """
        token = self._store.get(position)
        if token is None:
            logger.warning("Dropped diagnostic %s at out-of-range position %s", code, position)
            return False
        qualified = source or code
        key = (token.line, qualified, dedup_key)
        if key in self._seen:
            return False
        if suppressible and self._suppressions.is_suppressed(token.line, qualified):
            return False
        self._seen.add(key)
        text = message % tuple(args) if args else message
        self._diagnostics.append(Diagnostic(
            position=position,
            line=token.line,
            column=token.column,
            source=qualified,
            code=code,
            severity=severity,
            message=text,
            fixable=fixable,
        ))
        return True

    @property
    def diagnostics(self) -> list[Diagnostic]:
        """Diagnostics in (line, column, report order) order."""
        ordered = sorted(enumerate(self._diagnostics), key=lambda item: (item[1].line, item[1].column, item[0]))
        return [diagnostic for _, diagnostic in ordered]

    @property
    def error_count(self) -> int:
        return sum(1 for d in self._diagnostics if d.severity is Severity.ERROR)

    @property
    def warning_count(self) -> int:
        return sum(1 for d in self._diagnostics if d.severity is Severity.WARNING)

    @property
    def fixable_count(self) -> int:
        return sum(1 for d in self._diagnostics if d.fixable)

    def __len__(self) -> int:
        return len(self._diagnostics)
