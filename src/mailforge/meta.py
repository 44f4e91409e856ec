"""Package metadata for mailforge."""

from __future__ import annotations

__app_name__ = "mailforge"
__version__ = "0.3.0"
__author__ = "mailforge contributors"
__description__ = "Email construction helper with a one-shot build guarantee"

__all__ = ["__app_name__", "__author__", "__description__", "__version__"]
