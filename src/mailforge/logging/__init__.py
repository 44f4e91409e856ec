"""Logging setup for mailforge.

Library modules log through ``logging.getLogger(__name__)`` and stay silent
until the application calls :func:`init_logging`, which wires a
:class:`LogManager`'s handlers onto the ``mailforge`` logger tree.

Examples:
    >>> from mailforge.logging import init_logging, get_logger
    >>> init_logging(preset="dev")  # doctest: +SKIP
    >>> get_logger("mail.builder").trace("building")  # doctest: +SKIP
"""

from __future__ import annotations

import logging
from typing import Any

from mailforge.logging.manager import (
    FALLBACK_PRESETS,
    LOGGING_LEVEL,
    SUCCESS_LEVEL,
    TRACE_LEVEL,
    LogManager,
)

_ROOT_NAME = "mailforge"
_root_logger: LogManager | None = None


def _logger_trace(self: logging.Logger, msg: object, *args: Any, **kwargs: Any) -> None:
    if self.isEnabledFor(TRACE_LEVEL):
        self._log(TRACE_LEVEL, msg, args, **kwargs)  # pylint: disable=protected-access


def _logger_success(self: logging.Logger, msg: object, *args: Any, **kwargs: Any) -> None:
    if self.isEnabledFor(SUCCESS_LEVEL):
        self._log(SUCCESS_LEVEL, msg, args, **kwargs)  # pylint: disable=protected-access


def _patch_logger_class() -> None:
    """Give every ``logging.Logger`` ``.trace()`` and ``.success()`` methods."""
    if "trace" not in logging.Logger.__dict__:
        logging.Logger.trace = _logger_trace  # type: ignore[attr-defined]
    if "success" not in logging.Logger.__dict__:
        logging.Logger.success = _logger_success  # type: ignore[attr-defined]


def init_logging(
    *,
    preset: str | None = None,
    config: dict[str, Any] | None = None,
) -> LogManager:
    """Configure the ``mailforge`` logger tree and return the root manager.

    Args:
        preset: Name of a preset from :data:`FALLBACK_PRESETS`.
        config: Logging configuration merged over the preset.

    Returns:
        The :class:`LogManager` whose handlers now serve ``mailforge.*``.
    """
    global _root_logger  # pylint: disable=global-statement

    manager = LogManager(_ROOT_NAME, config=config, preset=preset)

    std_logger = logging.getLogger(_ROOT_NAME)
    for handler in std_logger.handlers[:]:
        std_logger.removeHandler(handler)
    for handler in manager.handlers:
        std_logger.addHandler(handler)
    std_logger.setLevel(manager.level)
    std_logger.propagate = False

    _patch_logger_class()
    _root_logger = manager
    return manager


def get_logger(name: str | None = None) -> logging.Logger:
    """Return a logger in the ``mailforge`` namespace.

    ``get_logger(None)`` returns the initialized root :class:`LogManager`
    when there is one, otherwise the plain ``mailforge`` logger.
    """
    if name is None:
        if _root_logger is not None:
            return _root_logger
        return logging.getLogger(_ROOT_NAME)
    if name == _ROOT_NAME or name.startswith(f"{_ROOT_NAME}."):
        return logging.getLogger(name)
    return logging.getLogger(f"{_ROOT_NAME}.{name}")


__all__ = [
    "FALLBACK_PRESETS",
    "LOGGING_LEVEL",
    "SUCCESS_LEVEL",
    "TRACE_LEVEL",
    "LogManager",
    "get_logger",
    "init_logging",
]
