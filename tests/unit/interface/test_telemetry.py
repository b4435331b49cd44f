"""Unit tests for ProjectTelemetry."""
from unittest.mock import MagicMock

from rich.console import Console

from phpsniff.interface.telemetry import ProjectTelemetry


def test_handshake_prints_banner():
    tel = ProjectTelemetry("Test", "blue", "Hello")
    tel.console = MagicMock()
    tel.logger = MagicMock()
    tel.handshake()
    tel.console.print.assert_called_once()
    tel.logger.info.assert_called_once_with("%s %s", "Test", "Hello")


def test_step_prints_and_logs():
    tel = ProjectTelemetry("Test", "blue", "Hello")
    tel.console = MagicMock()
    tel.logger = MagicMock()
    tel.step("file=a.php status=converged")
    tel.console.print.assert_called_once()
    tel.logger.info.assert_called_once_with("file=a.php status=converged")


def test_error_prints_and_logs():
    tel = ProjectTelemetry("Test", "blue", "Hello")
    tel.console = MagicMock()
    tel.logger = MagicMock()
    tel.error("Failed")
    tel.logger.error.assert_called_once_with("Failed")


def test_warning_prints_and_logs():
    tel = ProjectTelemetry("Test", "blue", "Hello")
    tel.console = MagicMock()
    tel.logger = MagicMock()
    tel.warning("Careful")
    tel.logger.warning.assert_called_once_with("Careful")


def test_debug_logs_without_printing():
    tel = ProjectTelemetry("Test", "blue", "Hello")
    tel.console = MagicMock()
    tel.logger = MagicMock()
    tel.debug("Detail")
    tel.logger.debug.assert_called_once_with("Detail")
    tel.console.print.assert_not_called()


def test_markup_in_messages_is_escaped():
    console = Console(record=True, width=200)
    tel = ProjectTelemetry("Test", "blue", "Hello", console=console)
    tel.warning("file=[bold]x.php status=skipped")
    assert "[bold]x.php" in console.export_text()
