"""Application-facing analytics API.

Wraps a FirebaseAnalytics client behind a small event/screen/user API:
attributes are namespaced (``attr_*``), user identity and properties are
repeated on every event (``usrprop_*``), and repeated screen views of the
same screen are sent only once.

Calls made before a successful ``initialize`` are ignored.
"""

import logging
from collections.abc import Mapping
from typing import Any

import httpx

from firelytics.telemetry.client import FirebaseAnalytics
from firelytics.telemetry.encoder import format_value

logger = logging.getLogger(__name__)

SCREEN_VIEW_EVENT = "screen_view"


def format_attributes(attributes: Mapping[str, Any] | None) -> dict[str, Any]:
    """Prefix attribute names with ``attr_`` and flatten lists and booleans.

    Lists become "[a;b;c]" and booleans "true"/"false".
    """
    result: dict[str, Any] = {}
    for key, value in (attributes or {}).items():
        if isinstance(value, (list, tuple)):
            value = f"[{';'.join(format_value(item) for item in value)}]"
        elif isinstance(value, bool):
            value = format_value(value)
        result[f"attr_{key}"] = value
    return result


class Analytics:
    """Facade over a single FirebaseAnalytics client."""

    def __init__(self):
        self._client: FirebaseAnalytics | None = None
        self.current_screen: str | None = None
        self.user_id: str | None = None
        self.user_properties: dict[str, Any] | None = None

    @property
    def client(self) -> FirebaseAnalytics | None:
        """The underlying client, or None when not initialized."""
        return self._client

    async def initialize(
        self,
        settings: Mapping[str, Any] | None,
        http_client: httpx.AsyncClient | None = None,
    ) -> None:
        """Create the analytics client, closing the previous one.

        Args:
            settings: Mapping with "config" and "options" entries, passed on to
                FirebaseAnalytics. None leaves the facade uninitialized.
            http_client: Optional HTTP client for the collector requests

        Raises:
            ConfigError: If the client could not be created
        """
        previous, self._client = self._client, None
        if previous is not None:
            await previous.aclose()

        if not settings:
            logger.debug("No analytics settings given, analytics stays disabled")
            return

        self._client = FirebaseAnalytics(
            settings.get("config"),
            settings.get("options"),
            http_client=http_client,
        )

    def _event_params(self, attributes: Mapping[str, Any] | None) -> dict[str, Any]:
        params: dict[str, Any] = {}
        if self.current_screen:
            params["screen_name"] = self.current_screen
        params.update(format_attributes(attributes))
        if self.user_id:
            params["usrprop_user_id"] = self.user_id
        for key, value in (self.user_properties or {}).items():
            params[f"usrprop_{key}"] = value
        return params

    async def send_event(self, name: str, attributes: Mapping[str, Any] | None = None) -> None:
        """Log an event with the current screen, attributes and user properties."""
        if self._client is None:
            return
        await self._client.log_event(name, self._event_params(attributes))

    async def send_screen_event(
        self,
        screen_name: str | None,
        attributes: Mapping[str, Any] | None = None,
    ) -> None:
        """Switch to a new screen and log a screen_view event.

        Nothing happens when the screen did not change. Passing None (or an
        empty name) clears the current screen without logging an event.
        """
        if self._client is None:
            return
        if screen_name == self.current_screen:
            return

        self.current_screen = screen_name
        await self._client.set_current_screen(screen_name)
        if screen_name:
            await self.send_event(SCREEN_VIEW_EVENT, attributes)

    async def set_user_id(self, user_id: str | None) -> None:
        if self._client is None:
            return
        self.user_id = user_id
        await self._client.set_user_id(user_id)

    async def set_user_properties(self, properties: Mapping[str, Any] | None) -> None:
        if self._client is None:
            return
        self.user_properties = dict(properties) if properties is not None else None
        await self._client.set_user_properties(properties or {})

    async def log_event(self, name: str, params: Mapping[str, Any] | None = None) -> None:
        """Log an event on the client as-is, without facade decoration."""
        if self._client is None:
            return
        await self._client.log_event(name, params)

    async def set_current_screen(self, screen_name: str | None) -> None:
        if self._client is None:
            return
        await self._client.set_current_screen(screen_name)

    async def set_analytics_collection_enabled(self, is_enabled: bool) -> None:
        if self._client is None:
            return
        await self._client.set_analytics_collection_enabled(is_enabled)

    async def set_debug_mode_enabled(self, is_enabled: bool) -> None:
        if self._client is None:
            return
        await self._client.set_debug_mode_enabled(is_enabled)

    async def reset_analytics_data(self) -> None:
        """Clear queued events and all user state, in the facade and the client."""
        self.current_screen = None
        self.user_id = None
        self.user_properties = None
        if self._client is None:
            return
        await self._client.reset_analytics_data()

    async def aclose(self) -> None:
        """Flush queued events and close the client."""
        if self._client is None:
            return
        await self._client.aclose()


# Default instance used by the module-level functions
_analytics = Analytics()


def get_analytics() -> Analytics:
    """Get the default analytics facade."""
    return _analytics


async def initialize(
    settings: Mapping[str, Any] | None,
    http_client: httpx.AsyncClient | None = None,
) -> None:
    await _analytics.initialize(settings, http_client=http_client)


async def send_event(name: str, attributes: Mapping[str, Any] | None = None) -> None:
    await _analytics.send_event(name, attributes)


async def send_screen_event(
    screen_name: str | None,
    attributes: Mapping[str, Any] | None = None,
) -> None:
    await _analytics.send_screen_event(screen_name, attributes)


async def set_user_id(user_id: str | None) -> None:
    await _analytics.set_user_id(user_id)


async def set_user_properties(properties: Mapping[str, Any] | None) -> None:
    await _analytics.set_user_properties(properties)
