from typing import TYPE_CHECKING, Any, Optional, cast

from phpsniff.domain.config import ConfigurationLoader
from phpsniff.infrastructure.config_file_loader import ConfigFileLoader
from phpsniff.infrastructure.gateways.filesystem_gateway import FileSystemGateway
from phpsniff.infrastructure.gateways.php_tokenizer import PhpTokenizer
from phpsniff.infrastructure.reporters import JsonReporter, TerminalReporter
from phpsniff.interface.telemetry import ProjectTelemetry

if TYPE_CHECKING:
    from phpsniff.domain.protocols import (
        FileSystemProtocol,
        ReporterProtocol,
        TelemetryPort,
        TokenizerProtocol,
    )


class PhpSniffContainer:
    """Dependency Injection Container for phpsniff."""

    _instance: Optional["PhpSniffContainer"] = None

    def __init__(self) -> None:
        self._singletons: dict[str, Any] = {}
        self._register_defaults()

    def _register_defaults(self) -> None:
        """Register default implementations for protocols."""
        config_dict = ConfigFileLoader.load_config_from_fs()
        self.register_singleton("ConfigurationLoader", ConfigurationLoader(config_dict))
        self.register_singleton(
            "TelemetryPort", ProjectTelemetry("PHPSNIFF", "cyan", "token-stream sniffs for PHP")
        )
        self.register_singleton("FileSystemGateway", FileSystemGateway())
        self.register_singleton("PhpTokenizer", PhpTokenizer())
        self.register_singleton("TerminalReporter", TerminalReporter())
        self.register_singleton("JsonReporter", JsonReporter())

    # JUSTIFICATION: DI Container must handle any type of service
    def register_singleton(self, key: str, instance: Any) -> None:
        """Register a singleton instance."""
        self._singletons[key] = instance

    # JUSTIFICATION: DI Container must return any type of service
    def get(self, key: str) -> Any:
        """Retrieve a dependency by key. Prefer explicit get_* methods for type safety."""
        if key in self._singletons:
            return self._singletons[key]
        raise ValueError(f"Dependency '{key}' not registered.")

    def get_telemetry_port(self) -> "TelemetryPort":
        """Return the telemetry/UI port."""
        return cast("TelemetryPort", self.get("TelemetryPort"))

    def get_filesystem_gateway(self) -> "FileSystemProtocol":
        """Return the filesystem gateway."""
        return cast("FileSystemProtocol", self.get("FileSystemGateway"))

    def get_tokenizer(self) -> "TokenizerProtocol":
        """Return the PHP tokenizer."""
        return cast("TokenizerProtocol", self.get("PhpTokenizer"))

    def get_config_loader(self) -> ConfigurationLoader:
        """Return the configuration loader (created at composition root)."""
        return cast(ConfigurationLoader, self.get("ConfigurationLoader"))

    def get_reporters(self) -> dict[str, "ReporterProtocol"]:
        """Return the reporters by --format name."""
        return {
            "text": cast("ReporterProtocol", self.get("TerminalReporter")),
            "json": cast("ReporterProtocol", self.get("JsonReporter")),
        }

    @classmethod
    def get_instance(cls) -> "PhpSniffContainer":
        """Get or create global container instance."""
        if cls._instance is None:
            cls._instance = PhpSniffContainer()
        return cls._instance

    @classmethod
    def reset(cls) -> None:
        """Reset the singleton instance (primarily for testing)."""
        cls._instance = None
