"""firelytics - Google Analytics (Measurement Protocol v2) client for Python."""

from firelytics.telemetry import (
    AnalyticsError,
    ClientConfig,
    ClientOptions,
    ConfigError,
    FirebaseAnalytics,
    ValidationError,
)
from firelytics.version import __version__

__all__ = [
    "AnalyticsError",
    "ClientConfig",
    "ClientOptions",
    "ConfigError",
    "FirebaseAnalytics",
    "ValidationError",
    "__version__",
]
