"""mailforge: build validated email messages once and deliver them over SMTP."""

from mailforge.meta import __app_name__, __version__

__all__ = ["__app_name__", "__version__"]
