"""Version information for CleanSwift."""

__version__ = "1.4.0"
