"""YAML configuration loader for mailforge.

Configuration is read from a single YAML file and deep-merged over the
built-in defaults. The result is exposed as a :class:`box.Box` so values
can be reached with attribute access (``config.mail.smtp.host``).

Lookup order when no explicit path is given:

1. ``./mailforge.conf.yml`` (current working directory)
2. ``~/.config/mailforge.conf.yml``

When neither exists the defaults alone are used. Nothing is read from the
environment.
"""

from __future__ import annotations

import copy
import logging
from pathlib import Path
from typing import TYPE_CHECKING, Any

import yaml
from box import Box

from mailforge.config.exceptions import (
    ConfigFileNotFoundError,
    ConfigFormatError,
    ConfigNotLoadedError,
)

if TYPE_CHECKING:
    from collections.abc import Mapping

log = logging.getLogger(__name__)

CONFIG_FILENAME = "mailforge.conf.yml"

DEFAULT_CONFIG: dict[str, Any] = {
    "mail": {
        "smtp": {
            "host": None,
            "port": 25,
            "ssl_port": 465,
            "connection_timeout": 60000,
            "timeout": 60000,
            "ssl_on_connect": False,
            "start_tls": False,
            "start_tls_required": False,
            "username": None,
            "password": None,
            "bounce_address": None,
        },
    },
    "logging": {
        "console": {"level": "INFO"},
        "file": {"enabled": False},
    },
}

_config: Box | None = None


def _deep_merge(base: dict[str, Any], override: Mapping[str, Any]) -> dict[str, Any]:
    """Merge *override* into *base* recursively and return *base*.

    Nested mappings are merged key by key; any other value replaces the
    base value outright.
    """
    for key, value in override.items():
        current = base.get(key)
        if isinstance(current, dict) and isinstance(value, dict):
            _deep_merge(current, value)
        else:
            base[key] = copy.deepcopy(value)
    return base


def _candidate_paths() -> list[Path]:
    return [
        Path.cwd() / CONFIG_FILENAME,
        Path.home() / ".config" / CONFIG_FILENAME,
    ]


def _load_yaml_file(path: Path, encoding: str = "utf-8") -> dict[str, Any]:
    """Parse a YAML file into a dict.

    Args:
        path: File to read.
        encoding: Text encoding of the file.

    Returns:
        The parsed mapping (empty for an empty file).

    Raises:
        ConfigFileNotFoundError: If *path* does not exist.
        ConfigFormatError: If the file is not valid YAML or its top level
            is not a mapping.
    """
    if not path.is_file():
        raise ConfigFileNotFoundError(f"Configuration file not found: {path}")

    try:
        with path.open(encoding=encoding) as handle:
            data = yaml.safe_load(handle)
    except yaml.YAMLError as e:
        raise ConfigFormatError(f"Invalid YAML in {path}: {e}") from e

    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ConfigFormatError(f"Top level of {path} must be a mapping, got {type(data).__name__}")
    return data


def load_config(path: str | Path | None = None, *, encoding: str = "utf-8") -> Box:
    """Load the configuration and make it the active one.

    Args:
        path: Explicit file to load. When omitted the standard locations
            are searched and a missing file is not an error.
        encoding: Text encoding of the file.

    Returns:
        The merged configuration as a :class:`box.Box`.

    Raises:
        ConfigFileNotFoundError: If an explicit *path* does not exist.
        ConfigFormatError: If the file cannot be parsed.

    Examples:
        >>> config = load_config("mailforge.conf.yml")  # doctest: +SKIP
        >>> config.mail.smtp.port  # doctest: +SKIP
        587
    """
    global _config  # pylint: disable=global-statement

    merged = copy.deepcopy(DEFAULT_CONFIG)

    if path is not None:
        source: Path | None = Path(path)
    else:
        source = next((candidate for candidate in _candidate_paths() if candidate.is_file()), None)

    if source is not None:
        _deep_merge(merged, _load_yaml_file(source, encoding=encoding))
        log.debug("Loaded configuration from %s", source)
    else:
        log.debug("No %s found, using defaults", CONFIG_FILENAME)

    _config = Box(merged)
    return _config


def load_from_mapping(data: Mapping[str, Any]) -> Box:
    """Load configuration from an in-memory mapping merged over the defaults."""
    global _config  # pylint: disable=global-statement

    _config = Box(_deep_merge(copy.deepcopy(DEFAULT_CONFIG), data))
    return _config


def get_config() -> Box:
    """Return the active configuration.

    Raises:
        ConfigNotLoadedError: If no configuration has been loaded yet.
    """
    if _config is None:
        raise ConfigNotLoadedError("Configuration not loaded, call load_config() first")
    return _config


def clear_config() -> None:
    """Forget the active configuration."""
    global _config  # pylint: disable=global-statement

    _config = None


__all__ = [
    "CONFIG_FILENAME",
    "DEFAULT_CONFIG",
    "clear_config",
    "get_config",
    "load_config",
    "load_from_mapping",
]
