"""Per-pass view of one file handed to every sniff."""

from collections.abc import Sequence
from dataclasses import dataclass
from typing import Hashable, Optional

from phpsniff.domain.diagnostics import DiagnosticSink, Severity
from phpsniff.domain.fixer import Fixer
from phpsniff.domain.query import TokenQuery
from phpsniff.domain.token_store import TokenStore


@dataclass(frozen=True)
class FileIdentity:
    """A file plus the revision of its text; every re-tokenization bumps the revision."""

    path: str
    revision: int = 0

    def next_revision(self) -> "FileIdentity":
        return FileIdentity(self.path, self.revision + 1)


class SniffContext:
    """The store, query engine, sink and (in fix mode) fixer for one file pass."""

    def __init__(
        self,
        identity: FileIdentity,
        store: TokenStore,
        sink: Optional[DiagnosticSink] = None,
        fixer: Optional[Fixer] = None,
    ) -> None:
        self.identity = identity
        self.store = store
        self.query = TokenQuery(store)
        self.sink = sink if sink is not None else DiagnosticSink(store)
        self.fixer = fixer
        self.current_sniff = ""

    @property
    def path(self) -> str:
        return self.identity.path

    def report(
        self,
        position: int,
        code: str,
        severity: Severity,
        message: str,
        args: Sequence[object] = (),
        fixable: bool = False,
        dedup_key: Hashable = None,
        suppressible: bool = True,
    ) -> bool:
        source = f"{self.current_sniff}.{code}" if self.current_sniff else code
        return self.sink.report(
            position, code, severity, message, args, fixable,
            source=source, dedup_key=dedup_key, suppressible=suppressible,
        )

    def add_error(self, message: str, position: int, code: str,
                  args: Sequence[object] = (), dedup_key: Hashable = None) -> bool:
        return self.report(position, code, Severity.ERROR, message, args, False, dedup_key)

    def add_warning(self, message: str, position: int, code: str,
                    args: Sequence[object] = (), dedup_key: Hashable = None) -> bool:
        return self.report(position, code, Severity.WARNING, message, args, False, dedup_key)

    def add_fixable_error(self, message: str, position: int, code: str,
                          args: Sequence[object] = (), dedup_key: Hashable = None) -> bool:
        """Report a fixable error. True means the caller should now propose its fix."""
        recorded = self.report(position, code, Severity.ERROR, message, args, True, dedup_key)
        return recorded and self.fixer is not None

    def add_fixable_warning(self, message: str, position: int, code: str,
                            args: Sequence[object] = (), dedup_key: Hashable = None) -> bool:
        recorded = self.report(position, code, Severity.WARNING, message, args, True, dedup_key)
        return recorded and self.fixer is not None
