from dataclasses import dataclass, field
from enum import Enum
from typing import Optional

from phpsniff.domain.diagnostics import Diagnostic, Severity


class ConvergenceStatus(Enum):
    """How a fix run for one file ended."""
    CONVERGED = "converged"
    CAP_REACHED = "cap_reached"
    SKIPPED = "skipped"


@dataclass(frozen=True)
class FileReport:
    """Diagnostics for one file, or the reason it could not be checked."""
    path: str
    diagnostics: tuple[Diagnostic, ...] = ()
    error: Optional[str] = None

    @property
    def error_count(self) -> int:
        return sum(1 for d in self.diagnostics if d.severity is Severity.ERROR)

    @property
    def warning_count(self) -> int:
        return sum(1 for d in self.diagnostics if d.severity is Severity.WARNING)

    @property
    def fixable_count(self) -> int:
        return sum(1 for d in self.diagnostics if d.fixable)

    def to_dict(self) -> dict[str, object]:
        return {
            "path": self.path,
            "errors": self.error_count,
            "warnings": self.warning_count,
            "error": self.error,
            "messages": [d.to_dict() for d in self.diagnostics],
        }


@dataclass(frozen=True)
class FixOutcome:
    """Result of the fix loop for one file.

    `remaining` holds the diagnostics of a final check pass over the fixed
    text; `iterations` counts the fix passes that ran.
    """
    path: str
    status: ConvergenceStatus
    iterations: int
    edits_applied: int
    changed: bool
    remaining: tuple[Diagnostic, ...] = ()
    error: Optional[str] = None

    @property
    def remaining_count(self) -> int:
        return len(self.remaining)

    def to_dict(self) -> dict[str, object]:
        return {
            "path": self.path,
            "status": self.status.value,
            "iterations": self.iterations,
            "edits_applied": self.edits_applied,
            "changed": self.changed,
            "error": self.error,
            "remaining": [d.to_dict() for d in self.remaining],
        }


@dataclass(frozen=True)
class FixSummary:
    """Fix results across all files, in input order."""
    outcomes: list[FixOutcome] = field(default_factory=list)
    dry_run: bool = False

    @property
    def cap_reached(self) -> bool:
        return any(o.status is ConvergenceStatus.CAP_REACHED for o in self.outcomes)

    @property
    def remaining_count(self) -> int:
        return sum(o.remaining_count for o in self.outcomes)

    @property
    def files_changed(self) -> int:
        return sum(1 for o in self.outcomes if o.changed)
