"""One tokenize-and-dispatch pass over one file, plus the file fan-out shared by check and fix."""

import concurrent.futures
import logging
from collections.abc import Callable, Iterable
from dataclasses import dataclass
from pathlib import Path
from typing import Optional, TypeVar

from phpsniff.domain.context import FileIdentity, SniffContext
from phpsniff.domain.diagnostics import Diagnostic, DiagnosticSink
from phpsniff.domain.dispatcher import SniffRegistry
from phpsniff.domain.fixer import Fixer
from phpsniff.domain.protocols import FileSystemProtocol, TokenizerProtocol
from phpsniff.domain.token_store import TokenStore

logger = logging.getLogger(__name__)

T = TypeVar("T")
R = TypeVar("R")


@dataclass
class PassResult:
    """Everything one pass produced; `fixer` is None for a check pass."""

    identity: FileIdentity
    store: TokenStore
    sink: DiagnosticSink
    fixer: Optional[Fixer] = None

    @property
    def diagnostics(self) -> list[Diagnostic]:
        return self.sink.diagnostics


class SniffPass:
    """Tokenize source, build its store and run a registry over it."""

    def __init__(self, tokenizer: TokenizerProtocol) -> None:
        self.tokenizer = tokenizer

    def run(
        self,
        identity: FileIdentity,
        source: str,
        registry: SniffRegistry,
        fixing: bool = False,
    ) -> PassResult:
        store = TokenStore.build(self.tokenizer.tokenize(source))
        sink = DiagnosticSink(store)
        fixer = Fixer(store) if fixing else None
        registry.dispatch(SniffContext(identity, store, sink, fixer))
        if fixer is not None and fixer.conflict_count:
            logger.debug(
                "%s revision %s: %d conflicting edit(s) deferred to the next pass",
                identity.path, identity.revision, fixer.conflict_count,
            )
        return PassResult(identity, store, sink, fixer)


class FileBatch:
    """Collects target files and maps a per-file task over them, in input order."""

    def __init__(self, filesystem: FileSystemProtocol) -> None:
        self.filesystem = filesystem

    def collect(self, target: str, extensions: tuple[str, ...]) -> list[str]:
        return self.filesystem.glob_source_files(target, extensions)

    @staticmethod
    def map_in_order(task: Callable[[T], R], items: Iterable[T], jobs: int = 1) -> list[R]:
        """Run task over items; with jobs > 1 on a thread pool. Results keep input order."""
        items = list(items)
        max_workers = max(1, int(jobs))
        if max_workers == 1 or len(items) < 2:
            return [task(item) for item in items]
        with concurrent.futures.ThreadPoolExecutor(max_workers=max_workers) as executor:
            return list(executor.map(task, items))

    @staticmethod
    def rel_path(file_path_str: str) -> str:
        """Return path relative to cwd for logging; fallback to absolute."""
        try:
            return str(Path(file_path_str).relative_to(Path.cwd()))
        except ValueError:
            return file_path_str
