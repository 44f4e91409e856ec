"""Tests for the Rich-backed LogManager."""

from __future__ import annotations

import logging
from pathlib import Path

import pytest
from rich.logging import RichHandler

from mailforge.logging import FALLBACK_PRESETS, LOGGING_LEVEL, SUCCESS_LEVEL, TRACE_LEVEL, LogManager
from mailforge.logging.manager import _format_context, _resolve_level, _validate_log_path


class TestLevels:
    """Custom level registration and resolution."""

    def test_level_names_registered(self) -> None:
        """TRACE and SUCCESS are known to the logging module."""
        assert logging.getLevelName(TRACE_LEVEL) == "TRACE"
        assert logging.getLevelName(SUCCESS_LEVEL) == "SUCCESS"

    def test_level_ordering(self) -> None:
        """TRACE sits below DEBUG and SUCCESS between INFO and WARNING."""
        assert TRACE_LEVEL < logging.DEBUG
        assert logging.INFO < SUCCESS_LEVEL < logging.WARNING
        assert LOGGING_LEVEL.TRACE == TRACE_LEVEL

    @pytest.mark.parametrize(("value", "expected"), [("trace", 5), ("INFO", 20), ("success", 25), (30, 30)])
    def test_resolve_level(self, value: str | int, expected: int) -> None:
        """Names are case-insensitive, numbers pass through."""
        assert _resolve_level(value) == expected

    def test_resolve_unknown_level(self) -> None:
        """Unknown names are rejected."""
        with pytest.raises(ValueError, match="Unknown log level"):
            _resolve_level("LOUD")


class TestLogManager:
    """Handler configuration."""

    def test_default_console_handler(self) -> None:
        """The default configuration logs INFO to a Rich console."""
        logger = LogManager()
        assert len(logger.handlers) == 1
        assert isinstance(logger.handlers[0], RichHandler)
        assert logger.level == logging.INFO

    def test_preset_dev_enables_trace(self) -> None:
        """The dev preset lowers the level to TRACE."""
        logger = LogManager(preset="dev")
        assert logger.level == TRACE_LEVEL

    def test_unknown_preset(self) -> None:
        """Unknown presets fail loudly."""
        with pytest.raises(ValueError, match="Unknown logging preset"):
            LogManager(preset="nope")

    def test_presets_are_not_mutated(self) -> None:
        """Config overrides never leak into the preset table."""
        LogManager(preset="dev", config={"console": {"level": "ERROR"}})
        assert FALLBACK_PRESETS["dev"]["console"]["level"] == "TRACE"

    def test_file_output(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        """File output creates the log directory and a FileHandler."""
        monkeypatch.chdir(tmp_path)
        logger = LogManager(config={"output": "file", "file": {"path": "logs/app.log", "level": "DEBUG"}})
        try:
            assert any(isinstance(h, logging.FileHandler) for h in logger.handlers)
            assert (tmp_path / "logs").is_dir()
            assert logger.level == logging.DEBUG
        finally:
            for handler in logger.handlers:
                handler.close()

    def test_trace_with_context(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        """Keyword context is appended as key=value pairs."""
        monkeypatch.chdir(tmp_path)
        logger = LogManager(config={"output": "file", "file": {"path": "trace.log", "level": "TRACE"}})
        logger.trace("EHLO sent", host="smtp.example.com")
        logger.success("Delivered")
        for handler in logger.handlers:
            handler.close()

        content = (tmp_path / "trace.log").read_text(encoding="utf-8")
        assert "TRACE" in content
        assert "EHLO sent | host=smtp.example.com" in content
        assert "SUCCESS" in content


class TestHelpers:
    """Module-level helpers."""

    @pytest.mark.parametrize("path", ["../escape.log", "~/mail.log", "logs/mail.exe"])
    def test_rejected_log_paths(self, path: str) -> None:
        """Traversal, home expansion and odd suffixes are refused."""
        with pytest.raises(ValueError):
            _validate_log_path(path)

    def test_format_context_without_context(self) -> None:
        """Messages without context are unchanged."""
        assert _format_context("hello", {}) == "hello"
