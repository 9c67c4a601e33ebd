"""Exceptions raised by the analytics client.

Kept in their own module so the encoder, schema and client can share them
without circular imports.
"""


class AnalyticsError(Exception):
    """Base class for all analytics client errors."""


class ConfigError(AnalyticsError):
    """Invalid or missing client configuration (raised at construction)."""


class ValidationError(AnalyticsError):
    """Invalid event name, parameter, user property or screen name.

    Raised synchronously by the offending call, before any state changes.
    """
