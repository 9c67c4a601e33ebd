"""Measurement Protocol v2 encoding and validation.

Pure functions that validate event names, parameters and user properties,
and serialize protocol fields into the collector's query-string format.
The protocol is key-order sensitive, so every function here preserves the
insertion order of the mappings it is given.
"""

import re
import time
from collections.abc import Mapping
from typing import Any
from urllib.parse import quote

from firelytics.telemetry.errors import ValidationError
from firelytics.telemetry.schema import ClientOptions, Event

NAME_PATTERN = re.compile(r"^[A-Za-z][A-Za-z_0-9]*$")
RESERVED_PREFIXES = ("firebase_", "google_", "ga_")

MAX_EVENT_NAME_LENGTH = 40
MAX_USER_PROPERTY_NAME_LENGTH = 24
MAX_USER_PROPERTY_VALUE_LENGTH = 36

# Parameters with a dedicated short protocol key
SHORT_EVENT_PARAMS = {
    "currency": "cu",
}

# Characters left unescaped by JavaScript's encodeURIComponent
_URI_COMPONENT_SAFE = "-_.!~*'()"


def now_ms() -> int:
    """Current wall-clock time in milliseconds."""
    return int(time.time() * 1000)


def is_number(value: Any) -> bool:
    """Check whether a value counts as numeric on the wire (bool does not)."""
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def is_valid_name(name: Any, max_length: int) -> bool:
    """Check an event, parameter or user-property name.

    Args:
        name: Name to check
        max_length: Maximum allowed length

    Returns:
        True if the name is 1..max_length alphanumeric characters or
        underscores, starts with a letter and has no reserved prefix
    """
    return bool(
        isinstance(name, str)
        and name
        and len(name) <= max_length
        and NAME_PATTERN.match(name)
        and not name.startswith(RESERVED_PREFIXES)
    )


def parse_event(
    options: ClientOptions,
    event_name: str,
    event_params: Mapping[str, Any] | None = None,
) -> Event:
    """Validate an event and encode it into protocol fields.

    Args:
        options: Client options (provides the origin tag)
        event_name: Event name
        event_params: Optional event parameters

    Returns:
        Encoded event, ready to be sent to the collector

    Raises:
        ValidationError: If the event name is invalid
    """
    if not is_valid_name(event_name, MAX_EVENT_NAME_LENGTH):
        raise ValidationError(
            f"Invalid event-name ({event_name}) specified. Should contain 1 to 40 "
            "alphanumeric characters or underscores. The name must start with an "
            "alphabetic character."
        )

    event: Event = {
        "en": event_name,
        "_et": now_ms(),
        "ep.origin": options.origin,
    }

    for key, value in (event_params or {}).items():
        param_key = SHORT_EVENT_PARAMS.get(key) or (
            f"epn.{key}" if is_number(value) else f"ep.{key}"
        )
        event[param_key] = value

    return event


def parse_user_property(options: ClientOptions, name: str, value: Any) -> str:
    """Validate a user property and return its protocol key.

    Raises:
        ValidationError: If the name or the value is invalid
    """
    if not is_valid_name(name, MAX_USER_PROPERTY_NAME_LENGTH) or name == "user_id":
        raise ValidationError(
            f"Invalid user-property name ({name}) specified. Should contain 1 to 24 "
            "alphanumeric characters or underscores. The name must start with an "
            "alphabetic character."
        )
    if value is not None and (
        not isinstance(value, str) or len(value) > MAX_USER_PROPERTY_VALUE_LENGTH
    ):
        raise ValidationError(
            "Invalid user-property value specified. "
            "Value should be a string of up to 36 characters long."
        )
    return f"upn.{name}" if is_number(value) else f"up.{name}"


def format_value(value: Any) -> str:
    """Render a field value the way the collector expects it.

    Lists and tuples are joined with commas, as JS renders arrays.
    """
    if isinstance(value, (list, tuple)):
        return ",".join("" if item is None else format_value(item) for item in value)
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value)


def encode_query_args(fields: Mapping[str, Any], last_time: int) -> str:
    """Serialize protocol fields into a query string.

    The ``_et`` field holds an absolute timestamp and is sent as the delta to
    ``last_time`` (clamped at 0). A negative ``last_time`` means no event was
    sent before, in which case ``_et`` is left out. Fields set to None are
    skipped.

    Args:
        fields: Protocol fields, in wire order
        last_time: Absolute timestamp (ms) of the previously sent event, or -1

    Returns:
        "&"-joined, percent-encoded key=value pairs
    """
    parts = []
    for key, value in fields.items():
        if key == "_et":
            if last_time < 0:
                continue
            value = max(value - last_time, 0)
        if value is None:
            continue
        parts.append(f"{key}={quote(format_value(value), safe=_URI_COMPONENT_SAFE)}")
    return "&".join(parts)
