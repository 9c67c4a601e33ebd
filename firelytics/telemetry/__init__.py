"""Telemetry module for firelytics.

Provides the Google Analytics Measurement Protocol v2 client, its wire encoder
and the HTTP transport to the collector.
"""

from firelytics.telemetry.client import FirebaseAnalytics
from firelytics.telemetry.encoder import (
    encode_query_args,
    is_valid_name,
    parse_event,
    parse_user_property,
)
from firelytics.telemetry.errors import AnalyticsError, ConfigError, ValidationError
from firelytics.telemetry.schema import ClientConfig, ClientOptions, Event
from firelytics.telemetry.transport import COLLECTOR_URL, CollectorTransport

__all__ = [
    "FirebaseAnalytics",
    "ClientConfig",
    "ClientOptions",
    "Event",
    "CollectorTransport",
    "COLLECTOR_URL",
    "AnalyticsError",
    "ConfigError",
    "ValidationError",
    "encode_query_args",
    "is_valid_name",
    "parse_event",
    "parse_user_property",
]
