"""Configuration loading for mailforge.

Examples:
    >>> from mailforge.config import load_config, get_config
    >>> load_config()  # doctest: +SKIP
    >>> get_config().mail.smtp.port  # doctest: +SKIP
    25
"""

from mailforge.config.exceptions import (
    ConfigError,
    ConfigFileNotFoundError,
    ConfigFormatError,
    ConfigNotLoadedError,
    MailforgeError,
)
from mailforge.config.loader import (
    CONFIG_FILENAME,
    DEFAULT_CONFIG,
    clear_config,
    get_config,
    load_config,
    load_from_mapping,
)

__all__ = [
    "CONFIG_FILENAME",
    "DEFAULT_CONFIG",
    "ConfigError",
    "ConfigFileNotFoundError",
    "ConfigFormatError",
    "ConfigNotLoadedError",
    "MailforgeError",
    "clear_config",
    "get_config",
    "load_config",
    "load_from_mapping",
]
