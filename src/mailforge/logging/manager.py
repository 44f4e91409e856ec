"""Logger with Rich console output and custom TRACE/SUCCESS levels.

``TRACE`` sits below ``DEBUG`` and carries protocol-level chatter (the SMTP
dialogue, TLS details). ``SUCCESS`` sits between ``INFO`` and ``WARNING``
and marks completed deliveries.
"""

from __future__ import annotations

import copy
import logging
from pathlib import Path
from types import SimpleNamespace
from typing import Any

from rich.console import Console
from rich.logging import RichHandler

TRACE_LEVEL = 5
SUCCESS_LEVEL = 25

logging.addLevelName(TRACE_LEVEL, "TRACE")
logging.addLevelName(SUCCESS_LEVEL, "SUCCESS")

LOGGING_LEVEL = SimpleNamespace(
    TRACE=TRACE_LEVEL,
    DEBUG=logging.DEBUG,
    INFO=logging.INFO,
    SUCCESS=SUCCESS_LEVEL,
    WARNING=logging.WARNING,
    ERROR=logging.ERROR,
    CRITICAL=logging.CRITICAL,
)

_ALLOWED_LOG_SUFFIXES = frozenset({".log", ".txt", ".json", ""})

FALLBACK_PRESETS: dict[str, dict[str, Any]] = {
    "dev": {
        "output": "console",
        "console": {"level": "TRACE", "show_path": True},
        "file": {"enabled": False},
    },
    "prod": {
        "output": "both",
        "console": {"level": "WARNING", "show_path": False, "tracebacks_show_locals": False},
        "file": {"enabled": True, "level": "INFO", "path": "logs/mailforge.log"},
    },
    "debug": {
        "output": "console",
        "console": {"level": "TRACE", "show_path": True, "tracebacks_show_locals": True},
        "file": {"enabled": False},
    },
}

DEFAULT_CONFIG: dict[str, Any] = {
    "output": "console",
    "console": {"level": "INFO", "show_path": False},
    "file": {"enabled": False, "level": "DEBUG", "path": "logs/mailforge.log"},
}


def _resolve_level(value: str | int) -> int:
    """Turn a level name or number into a numeric level."""
    if isinstance(value, int):
        return value
    level = getattr(LOGGING_LEVEL, value.upper(), None)
    if level is None:
        raise ValueError(f"Unknown log level: {value!r}")
    return int(level)


def _validate_log_path(raw: str | Path) -> Path:
    """Return the resolved log file path or raise ``ValueError``.

    Rejects ``..`` segments, ``~`` and suffixes that are not log-like.
    """
    path = Path(raw)
    if ".." in path.parts:
        raise ValueError(f"Log path must not contain '..': {raw}")
    if "~" in str(raw):
        raise ValueError(f"Log path must not contain '~': {raw}")
    if path.suffix.lower() not in _ALLOWED_LOG_SUFFIXES:
        raise ValueError(f"Log file extension not allowed: {path.suffix}")
    return path.resolve()


def _merge(base: dict[str, Any], override: dict[str, Any]) -> dict[str, Any]:
    for key, value in override.items():
        if isinstance(base.get(key), dict) and isinstance(value, dict):
            _merge(base[key], value)
        else:
            base[key] = value
    return base


def _format_context(msg: object, context: dict[str, Any]) -> object:
    if not context:
        return msg
    pairs = " ".join(f"{key}={value}" for key, value in context.items())
    return f"{msg} | {pairs}"


class LogManager(logging.Logger):
    """Logger preconfigured with Rich console and optional file output.

    Args:
        name: Logger name.
        config: Logging configuration merged over the preset and defaults.
            Keys: ``output`` (``console``, ``file`` or ``both``),
            ``console.level``, ``console.show_path``,
            ``console.tracebacks_show_locals``, ``file.enabled``,
            ``file.level``, ``file.path``.
        preset: One of :data:`FALLBACK_PRESETS` (``dev``, ``prod``, ``debug``).

    Examples:
        >>> logger = LogManager(config={"console": {"level": "TRACE"}})
        >>> logger.trace("EHLO sent", host="smtp.example.com")  # doctest: +SKIP
    """

    def __init__(
        self,
        name: str = "mailforge",
        *,
        config: dict[str, Any] | None = None,
        preset: str | None = None,
    ) -> None:
        super().__init__(name)
        settings = copy.deepcopy(DEFAULT_CONFIG)
        if preset is not None:
            if preset not in FALLBACK_PRESETS:
                raise ValueError(f"Unknown logging preset: {preset!r}")
            _merge(settings, copy.deepcopy(FALLBACK_PRESETS[preset]))
        if config:
            _merge(settings, copy.deepcopy(config))
        self.settings = settings
        self._configure_handlers()

    def _configure_handlers(self) -> None:
        output = self.settings.get("output", "console")
        console_cfg = self.settings.get("console", {})
        file_cfg = self.settings.get("file", {})
        levels: list[int] = []

        if output in ("console", "both"):
            handler = RichHandler(
                console=Console(stderr=True),
                show_path=bool(console_cfg.get("show_path", False)),
                rich_tracebacks=True,
                tracebacks_show_locals=bool(console_cfg.get("tracebacks_show_locals", False)),
            )
            level = _resolve_level(console_cfg.get("level", "INFO"))
            handler.setLevel(level)
            self.addHandler(handler)
            levels.append(level)

        if output in ("file", "both") or file_cfg.get("enabled"):
            path = _validate_log_path(file_cfg.get("path", "logs/mailforge.log"))
            path.parent.mkdir(parents=True, exist_ok=True)
            file_handler = logging.FileHandler(path, encoding="utf-8")
            file_handler.setFormatter(logging.Formatter("%(asctime)s %(levelname)-8s %(name)s: %(message)s"))
            level = _resolve_level(file_cfg.get("level", "DEBUG"))
            file_handler.setLevel(level)
            self.addHandler(file_handler)
            levels.append(level)

        self.setLevel(min(levels) if levels else logging.WARNING)

    def trace(self, msg: object, *args: Any, **context: Any) -> None:
        """Log at TRACE level with optional ``key=value`` context."""
        if self.isEnabledFor(TRACE_LEVEL):
            self._log(TRACE_LEVEL, _format_context(msg, context), args)

    def success(self, msg: object, *args: Any, **context: Any) -> None:
        """Log at SUCCESS level with optional ``key=value`` context."""
        if self.isEnabledFor(SUCCESS_LEVEL):
            self._log(SUCCESS_LEVEL, _format_context(msg, context), args)


__all__ = [
    "FALLBACK_PRESETS",
    "LOGGING_LEVEL",
    "SUCCESS_LEVEL",
    "TRACE_LEVEL",
    "LogManager",
]
