"""Terminal telemetry: progress, warnings and errors on stderr via rich, mirrored to logging."""

import logging
from typing import Optional

from rich.console import Console
from rich.markup import escape

from phpsniff.domain.protocols import TelemetryPort


class ProjectTelemetry(TelemetryPort):
    """TelemetryPort that prints styled lines to a rich Console and logs them."""

    def __init__(
        self,
        project_name: str,
        color: str = "cyan",
        welcome_msg: str = "",
        console: Optional[Console] = None,
    ) -> None:
        self.project_name = project_name
        self.color = color
        self.welcome_msg = welcome_msg
        self.console = console or Console(stderr=True, highlight=False)
        self.logger = logging.getLogger(f"phpsniff.telemetry.{project_name.lower()}")

    def handshake(self) -> None:
        """Print the one-line banner at the start of a command."""
        self.console.print(
            f"[bold {self.color}]{escape(self.project_name)}[/] {escape(self.welcome_msg)}"
        )
        self.logger.info("%s %s", self.project_name, self.welcome_msg)

    def step(self, message: str) -> None:
        self.console.print(f"[{self.color}]>[/] [dim]{escape(message)}[/]")
        self.logger.info(message)

    def warning(self, message: str) -> None:
        self.console.print(f"[yellow]WARNING[/] {escape(message)}")
        self.logger.warning(message)

    def error(self, message: str) -> None:
        self.console.print(f"[bold red]ERROR[/] {escape(message)}")
        self.logger.error(message)

    def debug(self, message: str) -> None:
        """Log-only detail; nothing is printed."""
        self.logger.debug(message)
