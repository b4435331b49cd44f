"""Use Case: Check PHP files and collect their diagnostics."""

from collections.abc import Iterable
from typing import TYPE_CHECKING, Optional

from phpsniff.domain.context import FileIdentity
from phpsniff.domain.entities import FileReport
from phpsniff.domain.protocols import FileSystemProtocol, TelemetryPort, TokenizerProtocol
from phpsniff.use_cases.sniff_pass import FileBatch, SniffPass

if TYPE_CHECKING:
    from phpsniff.domain.config import ConfigurationLoader
    from phpsniff.domain.dispatcher import SniffFactory, SniffRegistry


class CheckFilesUseCase:
    """Run the enabled sniffs over every file under a target, without fixing."""

    def __init__(
        self,
        filesystem: FileSystemProtocol,
        tokenizer: TokenizerProtocol,
        telemetry: TelemetryPort,
        config_loader: "ConfigurationLoader",
    ) -> None:
        self.filesystem = filesystem
        self.telemetry = telemetry
        self.config_loader = config_loader
        self._pass = SniffPass(tokenizer)
        self._batch = FileBatch(filesystem)

    def execute(
        self,
        target_path: str,
        only: Optional[Iterable[str]] = None,
        jobs: Optional[int] = None,
    ) -> list[FileReport]:
        """Check all files in target path. Reports come back in file order."""
        factory = self.config_loader.build_factory(only)
        files = self._batch.collect(target_path, self.config_loader.extensions)
        workers = jobs if jobs is not None else self.config_loader.jobs
        self.telemetry.step(
            f"Checking {len(files)} file(s) with {len(factory.codes)} sniff(s), jobs={workers}"
        )
        return self._batch.map_in_order(
            lambda path: self._check_one_file(path, factory), files, workers
        )

    def _check_one_file(self, file_path_str: str, factory: "SniffFactory") -> FileReport:
        _rel = self._batch.rel_path(file_path_str)
        try:
            source = self.filesystem.read_text(file_path_str)
        except (OSError, UnicodeDecodeError) as exc:
            self.telemetry.warning(f"file={_rel} status=skipped reason=unreadable ({exc})")
            return FileReport(file_path_str, error=f"Could not read file: {exc}")
        report = self.check_source(file_path_str, source, factory.build_registry())
        self.telemetry.step(
            f"file={_rel} errors={report.error_count} warnings={report.warning_count}"
        )
        return report

    def check_source(self, path: str, source: str, registry: "SniffRegistry") -> FileReport:
        """Check in-memory source as if it were the file at path."""
        result = self._pass.run(FileIdentity(path), source, registry)
        return FileReport(path, tuple(result.diagnostics))
