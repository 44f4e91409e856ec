"""Exceptions for the mailforge configuration module.

Exception hierarchy::

    MailforgeError (root of every mailforge exception)
        ConfigError
            ConfigFileNotFoundError
            ConfigFormatError
            ConfigNotLoadedError
"""

from __future__ import annotations


class MailforgeError(Exception):
    """Root exception for all mailforge errors."""


class ConfigError(MailforgeError):
    """Base exception for configuration errors."""


class ConfigFileNotFoundError(ConfigError, FileNotFoundError):
    """An explicitly requested configuration file does not exist."""


class ConfigFormatError(ConfigError, ValueError):
    """A configuration file could not be parsed or has the wrong shape."""


class ConfigNotLoadedError(ConfigError):
    """The configuration was accessed before ``load_config()`` ran."""


__all__ = [
    "ConfigError",
    "ConfigFileNotFoundError",
    "ConfigFormatError",
    "ConfigNotLoadedError",
    "MailforgeError",
]
