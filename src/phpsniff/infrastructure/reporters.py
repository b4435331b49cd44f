"""Check and fix reporters: rich tables for the terminal, JSON for machines."""

import json
from typing import TYPE_CHECKING, Optional, TextIO, cast

from rich.console import Console
from rich.markup import escape
from rich.table import Table

from phpsniff.domain.diagnostics import Severity
from phpsniff.domain.entities import ConvergenceStatus
from phpsniff.domain.protocols import ReporterProtocol

if TYPE_CHECKING:
    from phpsniff.domain.entities import FileReport, FixSummary

_SEVERITY_STYLES = {
    Severity.ERROR: "bold red",
    Severity.WARNING: "yellow",
}

_STATUS_STYLES = {
    ConvergenceStatus.CONVERGED: "green",
    ConvergenceStatus.CAP_REACHED: "bold red",
    ConvergenceStatus.SKIPPED: "dim",
}


class TerminalReporter(ReporterProtocol):
    """One table per file with findings, then a totals line."""

    def __init__(self, console: Optional[Console] = None) -> None:
        self.console = console or Console(highlight=False)

    def report_check(self, reports: list["FileReport"]) -> None:
        errors = warnings = fixable = 0
        for report in reports:
            errors += report.error_count
            warnings += report.warning_count
            fixable += report.fixable_count
            if report.error is not None:
                self.console.print(f"[bold red]{escape(report.path)}[/]: {escape(report.error)}")
                continue
            if not report.diagnostics:
                continue
            table = Table(title=escape(report.path), title_justify="left", pad_edge=False)
            table.add_column("Line", justify="right")
            table.add_column("Col", justify="right")
            table.add_column("Type")
            table.add_column("Message")
            table.add_column("Source", style="dim")
            for diagnostic in report.diagnostics:
                style = _SEVERITY_STYLES[diagnostic.severity]
                marker = escape(" [x]") if diagnostic.fixable else ""
                table.add_row(
                    str(diagnostic.line),
                    str(diagnostic.column),
                    f"[{style}]{diagnostic.severity.value.upper()}[/]",
                    escape(diagnostic.message) + marker,
                    diagnostic.source,
                )
            self.console.print(table)

        self.console.print(
            f"Checked {len(reports)} file(s): "
            f"[bold red]{errors}[/] error(s), [yellow]{warnings}[/] warning(s)"
            + (f", {fixable} fixable with 'phpsniff fix'" if fixable else "")
        )

    def report_fix(self, summary: "FixSummary") -> None:
        table = Table(title="Fix results" + (" (dry run)" if summary.dry_run else ""),
                      title_justify="left", pad_edge=False)
        table.add_column("File")
        table.add_column("Status")
        table.add_column("Passes", justify="right")
        table.add_column("Edits", justify="right")
        table.add_column("Remaining", justify="right")
        for outcome in summary.outcomes:
            style = _STATUS_STYLES[outcome.status]
            table.add_row(
                escape(outcome.path),
                f"[{style}]{outcome.status.value}[/]",
                str(outcome.iterations),
                str(outcome.edits_applied),
                str(outcome.remaining_count),
            )
        self.console.print(table)

        for outcome in summary.outcomes:
            for diagnostic in outcome.remaining:
                self.console.print(
                    f"{escape(outcome.path)}:{diagnostic.line}:{diagnostic.column} "
                    f"[{_SEVERITY_STYLES[diagnostic.severity]}]{diagnostic.severity.value}[/] "
                    f"{escape(diagnostic.message)} [dim]({diagnostic.source})[/]"
                )
        verb = "would change" if summary.dry_run else "changed"
        self.console.print(
            f"{summary.files_changed} file(s) {verb}, {summary.remaining_count} diagnostic(s) remaining"
        )

    def report_sniffs(self, sniffs: list[dict[str, object]]) -> None:
        table = Table(title="Sniffs", title_justify="left", pad_edge=False)
        table.add_column("Code", style="bold")
        table.add_column("Enabled")
        table.add_column("Description")
        table.add_column("Options")
        for sniff in sniffs:
            options = cast(dict, sniff["options"])
            table.add_row(
                str(sniff["code"]),
                "yes" if sniff["enabled"] else "[dim]no[/]",
                escape(str(sniff["description"])),
                escape("\n".join(f"{name} = {value!r}" for name, value in options.items())),
            )
        self.console.print(table)


class JsonReporter(ReporterProtocol):
    """Machine-readable output: one JSON document per command."""

    def __init__(self, stream: Optional[TextIO] = None) -> None:
        self._stream = stream

    def _emit(self, payload: dict[str, object]) -> None:
        text = json.dumps(payload, indent=2)
        if self._stream is None:
            print(text)
        else:
            self._stream.write(text + "\n")

    def report_check(self, reports: list["FileReport"]) -> None:
        self._emit({
            "totals": {
                "files": len(reports),
                "errors": sum(r.error_count for r in reports),
                "warnings": sum(r.warning_count for r in reports),
                "fixable": sum(r.fixable_count for r in reports),
            },
            "files": [r.to_dict() for r in reports],
        })

    def report_fix(self, summary: "FixSummary") -> None:
        self._emit({
            "dry_run": summary.dry_run,
            "cap_reached": summary.cap_reached,
            "files_changed": summary.files_changed,
            "remaining": summary.remaining_count,
            "files": [o.to_dict() for o in summary.outcomes],
        })

    def report_sniffs(self, sniffs: list[dict[str, object]]) -> None:
        self._emit({"sniffs": sniffs})
