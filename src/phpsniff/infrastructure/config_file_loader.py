"""Load [tool.phpsniff] from pyproject.toml. Infrastructure I/O only."""

import logging
import sys
from pathlib import Path
from typing import Optional

if sys.version_info >= (3, 11):
    import tomllib as toml_lib
else:
    import tomli as toml_lib

from phpsniff.domain.errors import ConfigurationError

logger = logging.getLogger(__name__)


class ConfigFileLoader:
    """
    Loads config from the nearest pyproject.toml. No top-level functions.
    """

    @staticmethod
    def find_config_file(start: Optional[Path] = None) -> Optional[Path]:
        """Walk up from start (default: cwd) to the first pyproject.toml."""
        current_path = (start or Path.cwd()).resolve()
        while True:
            config_file = current_path / "pyproject.toml"
            if config_file.is_file():
                return config_file
            if current_path.parent == current_path:
                return None
            current_path = current_path.parent

    @staticmethod
    def load_config_from_fs(start: Optional[Path] = None) -> dict[str, object]:
        """Load the [tool.phpsniff] table from the nearest pyproject.toml; empty when absent."""
        config_file = ConfigFileLoader.find_config_file(start)
        if config_file is None:
            return {}
        try:
            with config_file.open("rb") as f:
                data = toml_lib.load(f)
        except OSError as exc:
            logger.warning("Could not read %s: %s", config_file, exc)
            return {}
        except toml_lib.TOMLDecodeError as exc:
            raise ConfigurationError(f"Invalid TOML in {config_file}: {exc}") from exc
        config_dict = (data.get("tool", {}) or {}).get("phpsniff", {}) or {}
        if not isinstance(config_dict, dict):
            raise ConfigurationError(f"[tool.phpsniff] in {config_file} must be a table")
        logger.debug("Loaded [tool.phpsniff] from %s", config_file)
        return config_dict
