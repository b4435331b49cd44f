"""CLI entry points for phpsniff - Thin Controller using Typer."""

import logging
import sys
from dataclasses import dataclass
from pathlib import Path
from typing import List, Optional

import typer

from phpsniff.domain.config import ConfigurationLoader
from phpsniff.domain.errors import ConfigurationError
from phpsniff.domain.protocols import (
    FileSystemProtocol,
    ReporterProtocol,
    TelemetryPort,
    TokenizerProtocol,
)
from phpsniff.use_cases.apply_fixes import ApplyFixesUseCase
from phpsniff.use_cases.check_files import CheckFilesUseCase

EXIT_CLEAN = 0
EXIT_VIOLATIONS = 1
EXIT_CAP_REACHED = 2
EXIT_USAGE = 2

# B008: avoid function call in default; use module-level singletons for Typer options
_PATH_ARGUMENT = typer.Argument(None, help="File or directory to process (default: current directory)")
_SNIFF_OPTION = typer.Option(
    None, "--sniff", "-s", help="Run only this sniff code (repeatable), e.g. PHP.StrictTypes")
_FORMAT_OPTION = typer.Option("text", "--format", "-f", help="Report format: text or json")
_JOBS_OPTION = typer.Option(None, "--jobs", "-j", min=1, help="Files processed in parallel (default: config, else 1)")


@dataclass(frozen=True)
class CLIDependencies:
    """Explicit dependencies for the CLI. All dependencies injected at composition root."""

    config_loader: ConfigurationLoader
    telemetry: TelemetryPort
    filesystem: FileSystemProtocol
    tokenizer: TokenizerProtocol
    reporters: dict[str, ReporterProtocol]


class CLIAppFactory:
    """Creates the Typer app. No top-level functions."""

    @staticmethod
    def resolve_target_path(path: Optional[Path]) -> str:
        """Resolve target path: explicit path, else '.' (public API)."""
        if path and str(path) != ".":
            return str(path)
        return "."

    @staticmethod
    def create_app(deps: CLIDependencies) -> typer.Typer:
        """Create the Typer app with explicitly injected dependencies. No Service Locator."""
        app = typer.Typer(
            name="phpsniff",
            help="phpsniff: token-stream coding-standard sniffs and fixers for PHP",
            add_completion=False,
        )

        def pick_reporter(output_format: str) -> ReporterProtocol:
            reporter = deps.reporters.get(output_format)
            if reporter is None:
                deps.telemetry.error(
                    f"Unknown format '{output_format}'; choose one of: {', '.join(sorted(deps.reporters))}"
                )
                sys.exit(EXIT_USAGE)
            return reporter

        def require_target(path: Optional[Path]) -> str:
            target_path = CLIAppFactory.resolve_target_path(path)
            if not deps.filesystem.exists(target_path):
                deps.telemetry.error(f"Path not found: {target_path}")
                sys.exit(EXIT_USAGE)
            return target_path

        @app.callback()
        def main(
            verbose: bool = typer.Option(False, "--verbose", "-v", help="Log engine internals to stderr"),
        ) -> None:
            """phpsniff: token-stream coding-standard sniffs and fixers for PHP."""
            logging.getLogger("phpsniff").setLevel(logging.DEBUG if verbose else logging.WARNING)

        @app.command()
        def check(
            path: Optional[Path] = _PATH_ARGUMENT,
            sniff: Optional[List[str]] = _SNIFF_OPTION,
            output_format: str = _FORMAT_OPTION,
            jobs: Optional[int] = _JOBS_OPTION,
        ) -> None:
            """Report coding-standard violations. Exit 1 when any error is found."""
            reporter = pick_reporter(output_format)
            if output_format == "text":
                deps.telemetry.handshake()
            target_path = require_target(path)
            use_case = CheckFilesUseCase(
                filesystem=deps.filesystem,
                tokenizer=deps.tokenizer,
                telemetry=deps.telemetry,
                config_loader=deps.config_loader,
            )
            try:
                reports = use_case.execute(target_path, only=sniff, jobs=jobs)
            except ConfigurationError as exc:
                deps.telemetry.error(str(exc))
                sys.exit(EXIT_USAGE)
            reporter.report_check(reports)
            if any(report.error_count for report in reports):
                sys.exit(EXIT_VIOLATIONS)
            sys.exit(EXIT_CLEAN)

        @app.command()
        def fix(
            path: Optional[Path] = _PATH_ARGUMENT,
            sniff: Optional[List[str]] = _SNIFF_OPTION,
            output_format: str = _FORMAT_OPTION,
            jobs: Optional[int] = _JOBS_OPTION,
            max_iterations: Optional[int] = typer.Option(
                None, "--max-iterations", min=1, help="Fix passes per file before giving up (default: config, else 50)"),
            dry_run: bool = typer.Option(
                False, "--dry-run", help="Run the fix loop but do not write files"),
        ) -> None:
            """Apply fixes until each file converges. Exit 0 clean, 1 issues remain, 2 pass cap hit."""
            reporter = pick_reporter(output_format)
            if output_format == "text":
                deps.telemetry.handshake()
            target_path = require_target(path)
            use_case = ApplyFixesUseCase(
                filesystem=deps.filesystem,
                tokenizer=deps.tokenizer,
                telemetry=deps.telemetry,
                config_loader=deps.config_loader,
            )
            try:
                summary = use_case.execute(
                    target_path,
                    max_iterations=max_iterations,
                    jobs=jobs,
                    dry_run=dry_run,
                    only=sniff,
                )
            except ConfigurationError as exc:
                deps.telemetry.error(str(exc))
                sys.exit(EXIT_USAGE)
            reporter.report_fix(summary)
            if summary.cap_reached:
                sys.exit(EXIT_CAP_REACHED)
            if summary.remaining_count:
                sys.exit(EXIT_VIOLATIONS)
            sys.exit(EXIT_CLEAN)

        @app.command()
        def sniffs(
            output_format: str = _FORMAT_OPTION,
        ) -> None:
            """List the shipped sniffs, whether each is enabled, and its effective options."""
            reporter = pick_reporter(output_format)
            reporter.report_sniffs(deps.config_loader.describe_sniffs())

        return app


def create_app(deps: CLIDependencies) -> typer.Typer:
    """Public entry: create app with injected deps. Used by __main__ composition root."""
    return CLIAppFactory.create_app(deps)
