"""Use Case: Apply Fixes to PHP Source Code."""

import logging
from collections.abc import Iterable
from typing import TYPE_CHECKING, Optional, cast

from phpsniff.domain.context import FileIdentity
from phpsniff.domain.entities import ConvergenceStatus, FixOutcome, FixSummary
from phpsniff.domain.fixer import Fixer
from phpsniff.domain.protocols import FileSystemProtocol, TelemetryPort, TokenizerProtocol
from phpsniff.use_cases.sniff_pass import FileBatch, SniffPass

if TYPE_CHECKING:
    from phpsniff.domain.config import ConfigurationLoader
    from phpsniff.domain.dispatcher import SniffFactory, SniffRegistry

logger = logging.getLogger(__name__)


class ApplyFixesUseCase:
    """Drive each file to a fixed point: tokenize, run sniffs, materialize, repeat.

    A file converges when a pass proposes no edit (or its edits leave the
    text unchanged). A file that still changes after max_iterations passes
    is reported as CAP_REACHED rather than silently truncated. Files are
    read once before the loop and written once after it.
    """

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
        max_iterations: Optional[int] = None,
        jobs: Optional[int] = None,
        dry_run: bool = False,
        only: Optional[Iterable[str]] = None,
    ) -> FixSummary:
        """Apply fixes to all files in target path."""
        factory = self.config_loader.build_factory(only)
        cap = max_iterations if max_iterations is not None else self.config_loader.max_iterations
        if cap < 1:
            raise ValueError("max_iterations must be at least 1")
        workers = jobs if jobs is not None else self.config_loader.jobs
        files = self._batch.collect(target_path, self.config_loader.extensions)
        self.telemetry.step(f"Starting fix loop on {target_path}: {len(files)} file(s), cap={cap}")

        outcomes = self._batch.map_in_order(
            lambda path: self._execute_one_file(path, factory, cap, dry_run), files, workers
        )
        summary = FixSummary(outcomes, dry_run=dry_run)
        self.telemetry.step(
            f"Fix loop complete. Files changed: {summary.files_changed}, "
            f"remaining: {summary.remaining_count}"
        )
        return summary

    def _execute_one_file(
        self, file_path_str: str, factory: "SniffFactory", cap: int, dry_run: bool
    ) -> FixOutcome:
        """Process one file in execute(). Writes it back only when the text changed."""
        _rel = self._batch.rel_path(file_path_str)
        try:
            source = self.filesystem.read_text(file_path_str)
        except (OSError, UnicodeDecodeError) as exc:
            self.telemetry.warning(f"file={_rel} status=skipped reason=unreadable ({exc})")
            return FixOutcome(file_path_str, ConvergenceStatus.SKIPPED, 0, 0, False,
                              error=f"Could not read file: {exc}")

        outcome, fixed = self.fix_source(file_path_str, source, factory.build_registry(), cap)
        if outcome.status is ConvergenceStatus.CAP_REACHED:
            self.telemetry.warning(
                f"file={_rel} status={outcome.status.value} passes={outcome.iterations} "
                f"reason=still_changing"
            )
        else:
            self.telemetry.step(
                f"file={_rel} status={outcome.status.value} passes={outcome.iterations} "
                f"edits={outcome.edits_applied} remaining={outcome.remaining_count}"
            )

        if outcome.changed and not dry_run:
            try:
                self.filesystem.write_text(file_path_str, fixed)
            except OSError as exc:
                self.telemetry.error(f"file={_rel} status=failed reason=unwritable ({exc})")
                return FixOutcome(
                    file_path_str, outcome.status, outcome.iterations, outcome.edits_applied,
                    False, outcome.remaining, error=f"Could not write file: {exc}",
                )
        return outcome

    def fix_source(
        self, path: str, source: str, registry: "SniffRegistry", max_iterations: int
    ) -> tuple[FixOutcome, str]:
        """Run the fix loop on in-memory source. Returns (outcome, fixed text)."""
        identity = FileIdentity(path)
        text = source
        edits_applied = 0
        for iteration in range(1, max_iterations + 1):
            result = self._pass.run(identity, text, registry, fixing=True)
            identity = identity.next_revision()
            fixer = cast(Fixer, result.fixer)
            new_text = fixer.materialize() if fixer.edit_count else text
            if new_text == text:
                outcome = FixOutcome(
                    path, ConvergenceStatus.CONVERGED, iteration, edits_applied,
                    text != source, tuple(result.diagnostics),
                )
                return outcome, text
            edits_applied += fixer.edit_count
            text = new_text

        # One more pass, not applied, tells "fixed on the last pass" from "still changing".
        final = self._pass.run(identity, text, registry, fixing=True)
        fixer = cast(Fixer, final.fixer)
        still_changing = bool(fixer.edit_count) and fixer.materialize() != text
        if still_changing:
            logger.warning("%s did not converge after %d passes", path, max_iterations)
        status = ConvergenceStatus.CAP_REACHED if still_changing else ConvergenceStatus.CONVERGED
        outcome = FixOutcome(
            path, status, max_iterations, edits_applied, text != source, tuple(final.diagnostics),
        )
        return outcome, text
