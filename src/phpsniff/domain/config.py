"""Linter settings from the [tool.phpsniff] table and sniff option coercion."""

import dataclasses
import logging
from collections.abc import Iterable, Mapping
from typing import Optional

from phpsniff.domain.dispatcher import SniffFactory, SniffSpec
from phpsniff.domain.errors import ConfigurationError
from phpsniff.domain.sniffs import Sniff
from phpsniff.domain.sniffs.catalog import ALL_SNIFFS, SNIFFS_BY_CODE

logger = logging.getLogger(__name__)

DEFAULT_EXTENSIONS = ("php", "inc")
DEFAULT_MAX_ITERATIONS = 50

_KNOWN_KEYS = frozenset({"sniffs", "exclude", "extensions", "max_iterations", "jobs", "options"})
_TRUE_STRINGS = frozenset({"1", "true", "yes", "on"})
_FALSE_STRINGS = frozenset({"0", "false", "no", "off"})


def _as_tuple(value: object, where: str) -> tuple[str, ...]:
    """A list option, given as a TOML array or a comma-separated string."""
    if isinstance(value, str):
        return tuple(item.strip() for item in value.split(",") if item.strip())
    if isinstance(value, (list, tuple, set, frozenset)):
        return tuple(str(item).strip() for item in value)
    raise ConfigurationError(f"{where} must be a list or a comma-separated string")


def coerce_option(default: object, value: object, where: str) -> object:
    """Convert a raw config value to the type of the option's default."""
    if isinstance(default, bool):
        if isinstance(value, bool):
            return value
        if isinstance(value, str) and value.strip().lower() in _TRUE_STRINGS | _FALSE_STRINGS:
            return value.strip().lower() in _TRUE_STRINGS
        raise ConfigurationError(f"{where} must be a boolean")
    if isinstance(default, int):
        if isinstance(value, bool):
            raise ConfigurationError(f"{where} must be an integer")
        try:
            return int(value)  # type: ignore[call-overload]
        except (TypeError, ValueError) as exc:
            raise ConfigurationError(f"{where} must be an integer") from exc
    if isinstance(default, tuple):
        return _as_tuple(value, where)
    if isinstance(default, str):
        if not isinstance(value, str):
            raise ConfigurationError(f"{where} must be a string")
        return value
    return value


def build_options(sniff_type: type[Sniff], raw: Mapping[str, object]) -> object:
    """Frozen options instance for sniff_type with raw overriding the defaults."""
    defaults = sniff_type.options_type()
    known = {field.name: field for field in dataclasses.fields(defaults)}
    overrides: dict[str, object] = {}
    for name, value in raw.items():
        if name not in known:
            raise ConfigurationError(
                f"Unknown option '{name}' for sniff {sniff_type.code}"
                + (f"; known options: {', '.join(sorted(known))}" if known else "")
            )
        overrides[name] = coerce_option(
            getattr(defaults, name), value, f"{sniff_type.code}.{name}"
        )
    return dataclasses.replace(defaults, **overrides)


class ConfigurationLoader:
    """Typed view over the [tool.phpsniff] table.

    Example:
        [tool.phpsniff]
        exclude = ["Namespaces.Namespace"]
        max_iterations = 20

        [tool.phpsniff.options."Functions.TypeDeclaration"]
        validate_types = true
        known_classes = "WP_Post,WP_Query"
    """

    def __init__(self, config: Optional[Mapping[str, object]] = None) -> None:
        self._config: Mapping[str, object] = config or {}
        unknown = set(self._config) - _KNOWN_KEYS
        if unknown:
            logger.warning("Ignoring unknown [tool.phpsniff] keys: %s", ", ".join(sorted(unknown)))
        # Fail fast on bad codes and options.
        self._check_codes(self._get_codes("sniffs"), "sniffs")
        self._check_codes(self._get_codes("exclude"), "exclude")
        self._check_codes(self._raw_options(), "options")
        for code, raw in self._raw_options().items():
            build_options(SNIFFS_BY_CODE[code], raw)

    @property
    def config(self) -> Mapping[str, object]:
        return self._config

    @property
    def extensions(self) -> tuple[str, ...]:
        value = self._config.get("extensions")
        if value is None:
            return DEFAULT_EXTENSIONS
        return tuple(ext.lstrip(".") for ext in _as_tuple(value, "extensions"))

    @property
    def max_iterations(self) -> int:
        value = coerce_option(
            DEFAULT_MAX_ITERATIONS, self._config.get("max_iterations", DEFAULT_MAX_ITERATIONS),
            "max_iterations",
        )
        if value < 1:  # type: ignore[operator]
            raise ConfigurationError("max_iterations must be at least 1")
        return value  # type: ignore[return-value]

    @property
    def jobs(self) -> int:
        value = coerce_option(1, self._config.get("jobs", 1), "jobs")
        return max(1, value)  # type: ignore[call-overload]

    @property
    def enabled_codes(self) -> list[str]:
        """Codes to run, in catalog order."""
        selected = self._get_codes("sniffs")
        excluded = set(self._get_codes("exclude"))
        return [
            sniff.code
            for sniff in ALL_SNIFFS
            if (not selected or sniff.code in selected) and sniff.code not in excluded
        ]

    def options_for(self, code: str) -> object:
        sniff_type = SNIFFS_BY_CODE[code]
        return build_options(sniff_type, self._raw_options().get(code, {}))

    def describe_sniffs(self) -> list[dict[str, object]]:
        """Every shipped sniff with its effective options, for listing."""
        enabled = set(self.enabled_codes)
        return [
            {
                "code": sniff.code,
                "description": sniff.description,
                "enabled": sniff.code in enabled,
                "options": dataclasses.asdict(self.options_for(sniff.code)),  # type: ignore[call-overload]
            }
            for sniff in ALL_SNIFFS
        ]

    def build_factory(self, only: Optional[Iterable[str]] = None) -> SniffFactory:
        """Factory for the enabled sniffs, or exactly the sniffs in `only` when given.

        Sniff constructors compile their patterns, so a throwaway registry is
        built here to raise ConfigurationError before any file is read.
        """
        codes = self.enabled_codes
        if only:
            wanted = list(only)
            self._check_codes(wanted, "--sniff")
            codes = [sniff.code for sniff in ALL_SNIFFS if sniff.code in wanted]
        factory = SniffFactory([SniffSpec(SNIFFS_BY_CODE[code], self.options_for(code)) for code in codes])
        factory.build_registry()
        return factory

    def _get_codes(self, key: str) -> tuple[str, ...]:
        value = self._config.get(key)
        if value is None:
            return ()
        return _as_tuple(value, key)

    def _raw_options(self) -> dict[str, Mapping[str, object]]:
        raw = self._config.get("options", {})
        if not isinstance(raw, Mapping):
            raise ConfigurationError("options must be a table of sniff codes")
        result: dict[str, Mapping[str, object]] = {}
        for code, values in raw.items():
            if not isinstance(values, Mapping):
                raise ConfigurationError(f"options.{code} must be a table")
            result[str(code)] = values
        return result

    @staticmethod
    def _check_codes(codes: Iterable[str], where: str) -> None:
        unknown = [code for code in codes if code not in SNIFFS_BY_CODE]
        if unknown:
            raise ConfigurationError(
                f"Unknown sniff code(s) in {where}: {', '.join(unknown)}"
            )
