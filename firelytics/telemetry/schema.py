"""Configuration schema for the analytics client.

Defines the measurement configuration and the per-client options, including
the documented defaults. Both models accept snake_case field names as well as
the camelCase keys used by the Firebase JS SDK (``clientId``, ``maxCacheTime``).
"""

from typing import Any

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

# An encoded event: protocol key -> value, in insertion order
Event = dict[str, Any]


class ClientConfig(BaseModel):
    """Measurement configuration. Immutable after construction."""

    model_config = ConfigDict(frozen=True, alias_generator=to_camel, populate_by_name=True)

    measurement_id: str | None = Field(
        None, description="Google Analytics measurement ID (G-XXXXXXXXXX)"
    )


class ClientOptions(BaseModel):
    """Client options merged over the documented defaults.

    Unknown keys are kept so callers can carry their own settings along.
    """

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="allow")

    client_id: str | None = Field(None, description="Client identifier (UUID v4)")
    session_id: str | None = Field(None, description="Session identifier")
    session_number: Any = Field(None, description="Session count for this client")
    user_language: str | None = Field(None, description="User language (e.g., en-us)")
    app_name: str | None = Field(None, description="Application name")
    app_version: str | None = Field(None, description="Application version")
    doc_title: str | None = Field(None, description="Document title")
    doc_location: str | None = Field(None, description="Document location (URL)")
    screen_res: str | None = Field(None, description="Screen resolution (e.g., 1920x1080)")
    custom_args: dict[str, Any] = Field(
        default_factory=dict, description="Extra query arguments sent with every request"
    )
    max_cache_time: int = Field(
        default=5000, ge=0, description="Debounce delay before flushing events (ms)"
    )
    origin: str = Field(default="firebase", description="Value of the ep.origin event key")
    debug: bool = Field(default=False, description="Enable debug mode")
    headers: dict[str, str] | None = Field(None, description="Extra HTTP request headers")
