"""Pytest configuration.

Run pytest from this project's root. pythonpath in pyproject.toml puts src/
and the project root on sys.path so tests import phpsniff and tests.* helpers.
"""

from unittest.mock import MagicMock


def use_case_required_deps(**overrides: object) -> dict[str, object]:
    """Return required dependency mocks for CheckFilesUseCase / ApplyFixesUseCase. Pass overrides to customize."""
    base = {
        "filesystem": MagicMock(),
        "tokenizer": MagicMock(),
        "telemetry": MagicMock(),
        "config_loader": MagicMock(),
    }
    base.update(overrides)
    return base
