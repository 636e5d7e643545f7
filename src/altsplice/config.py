"""Configuration management for AltSplice.

Configuration comes from default values, an optional YAML or TOML file and
command-line overrides, in increasing order of precedence.

A configuration file holds either top-level keys or an ``altsplice``
section:

    altsplice:
      relaxed: true
      datasource: Ensembl
      limit: 100

Files ending in ``.yaml`` or ``.yml`` are read as YAML, any other file as
TOML (with an ``[altsplice]`` table).

Example:
    >>> from altsplice.config import Config
    >>> config = Config.load("altsplice.yaml")
    >>> config.relaxed
    True
"""

from __future__ import annotations

import tomllib
from pathlib import Path
from typing import Any

import attrs
import yaml

from altsplice.core.exceptions import ConfigurationError

# =============================================================================
# Default Configuration Values
# =============================================================================

DEFAULT_DATASOURCE = "Ensembl"
DEFAULT_LIMIT = 0  # no limit on the number of genes read
CONFIG_TABLE = "altsplice"
YAML_SUFFIXES = (".yaml", ".yml")


# =============================================================================
# Validators
# =============================================================================


def _non_negative(instance: Any, attribute: attrs.Attribute, value: int) -> None:
    if value < 0:
        raise ConfigurationError(f"{attribute.name} must be >= 0, got {value}")


def _non_empty(instance: Any, attribute: attrs.Attribute, value: str) -> None:
    if not value:
        raise ConfigurationError(f"{attribute.name} must not be empty")


# =============================================================================
# Configuration Classes
# =============================================================================


@attrs.define
class Config:
    """Run configuration.

    Attributes:
        relaxed: Accept overlapping flanking exons in place of identical
            splice sites for A3SS, A5SS, CE and MXE detection.
        constitutives_only: Only report constitutive exons.
        datasource: Source column value of the report.
        limit: Maximum number of genes to read, 0 for all.
        statistics: Report run statistics.
    """

    relaxed: bool = False
    constitutives_only: bool = False
    datasource: str = attrs.field(default=DEFAULT_DATASOURCE, validator=_non_empty)
    limit: int = attrs.field(default=DEFAULT_LIMIT, validator=_non_negative)
    statistics: bool = False

    @classmethod
    def load(cls, path: Path | str | None = None) -> Config:
        """Load configuration from file.

        Args:
            path: Path to configuration file (YAML or TOML).
                  If None, returns default configuration.

        Returns:
            Loaded configuration object.

        Raises:
            FileNotFoundError: If the configuration file doesn't exist.
            ConfigurationError: If the file cannot be parsed, is not a
                mapping, or holds unknown keys.
        """
        if path is None:
            return cls()

        path = Path(path)
        if not path.exists():
            raise FileNotFoundError(f"Configuration file not found: {path}")

        if path.suffix.lower() in YAML_SUFFIXES:
            try:
                with open(path) as f:
                    data = yaml.safe_load(f)
            except yaml.YAMLError as e:
                raise ConfigurationError(f"Invalid configuration file {path}: {e}") from e
        else:
            try:
                with open(path, "rb") as f:
                    data = tomllib.load(f)
            except tomllib.TOMLDecodeError as e:
                raise ConfigurationError(f"Invalid configuration file {path}: {e}") from e

        # An empty YAML document loads as None
        if data is None:
            data = {}
        if not isinstance(data, dict):
            raise ConfigurationError(f"Configuration file {path} must hold a mapping")

        if isinstance(data.get(CONFIG_TABLE), dict):
            data = data[CONFIG_TABLE]

        return cls.from_dict(data)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Config:
        """Build a configuration from a mapping of field values.

        Raises:
            ConfigurationError: On unknown keys.
        """
        known = {a.name for a in attrs.fields(cls)}
        unknown = sorted(set(data) - known)
        if unknown:
            raise ConfigurationError(f"Unknown configuration keys: {', '.join(unknown)}")
        return cls(**data)

    def update(self, **overrides: Any) -> Config:
        """Return a copy with the non-None overrides applied."""
        changes = {key: value for key, value in overrides.items() if value is not None}
        return attrs.evolve(self, **changes)

    def to_dict(self) -> dict[str, Any]:
        """Convert configuration to dictionary.

        Returns:
            Dictionary representation of configuration.
        """
        return attrs.asdict(self)
