"""CleanSwift business data layer backed by Google Sheets."""

from .version import __version__

__all__ = ["__version__"]
