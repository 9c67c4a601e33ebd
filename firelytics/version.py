"""Version information for firelytics."""

__version__ = "0.3.1"
