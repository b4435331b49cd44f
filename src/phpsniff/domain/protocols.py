from typing import TYPE_CHECKING, Protocol

if TYPE_CHECKING:
    from phpsniff.domain.entities import FileReport, FixSummary
    from phpsniff.domain.tokens import RawToken


class TokenizerProtocol(Protocol):
    """Black-box tokenizer: source text to raw tokens with positions."""

    def tokenize(self, source: str) -> list["RawToken"]: ...


class TelemetryPort(Protocol):
    """Protocol for telemetry/UI updates."""

    def step(self, message: str) -> None: ...
    def error(self, message: str) -> None: ...
    def warning(self, message: str) -> None: ...
    def handshake(self) -> None: ...


class FileSystemProtocol(Protocol):
    """Protocol for filesystem operations - abstracts Path usage."""

    def exists(self, path: str) -> bool:
        """Return True if path exists (file or directory)."""
        ...

    def glob_source_files(self, path: str, extensions: tuple[str, ...]) -> list[str]:
        """Files under path (recursive if directory) with one of the extensions, sorted."""
        ...

    def read_text(self, path: str, encoding: str = "utf-8") -> str:
        """Read text content from a file."""
        ...

    def write_text(self, path: str, content: str, encoding: str = "utf-8") -> None:
        """Write text content to a file."""
        ...


class ReporterProtocol(Protocol):
    """Renders check and fix results."""

    def report_check(self, reports: list["FileReport"]) -> None: ...
    def report_fix(self, summary: "FixSummary") -> None: ...
    def report_sniffs(self, sniffs: list[dict[str, object]]) -> None: ...
