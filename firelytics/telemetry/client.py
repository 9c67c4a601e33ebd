"""Google Analytics client using the Measurement Protocol v2.

A pure Python alternative to the Firebase Analytics JS SDK. Events are
validated and encoded as they are logged, queued, and sent in batches to the
collector after a short debounce delay.

The client is built for a single asyncio event loop. Flushes are chained so
that at most one send is in flight at a time; this keeps the sequence number
and the event-time deltas consistent without any locking.
"""

import asyncio
import itertools
import json
import logging
from collections.abc import Mapping
from typing import Any, TypeVar

import httpx
import pydantic

from firelytics.telemetry.encoder import encode_query_args, parse_event, parse_user_property
from firelytics.telemetry.errors import ConfigError, ValidationError
from firelytics.telemetry.schema import ClientConfig, ClientOptions, Event
from firelytics.telemetry.transport import COLLECTOR_URL, CollectorTransport

logger = logging.getLogger(__name__)

# Flush delay used in debug mode (ms)
DEBUG_FLUSH_DELAY_MS = 10

MAX_SCREEN_NAME_LENGTH = 100

# Optional options sent with every request: (option field, protocol key)
OPTION_QUERY_ARGS = (
    ("session_number", "sct"),
    ("user_language", "ul"),
    ("app_name", "an"),
    ("app_version", "av"),
    ("doc_title", "dt"),
    ("doc_location", "dl"),
    ("screen_res", "sr"),
)

ModelT = TypeVar("ModelT", ClientConfig, ClientOptions)


def _coerce(model: type[ModelT], value: ModelT | Mapping[str, Any] | None) -> ModelT:
    """Build a config model from a mapping, keeping model instances as-is."""
    if isinstance(value, model):
        return value
    try:
        return model.model_validate(dict(value or {}))
    except pydantic.ValidationError as e:
        raise ConfigError(f"Invalid {model.__name__}: {e}") from e


class FirebaseAnalytics:
    """Analytics client with an API that follows the Firebase Analytics JS SDK.

    Usage:
        analytics = FirebaseAnalytics(
            {"measurementId": "G-XXXXXXXXXX"},
            {"clientId": str(uuid.uuid4())},
        )
        await analytics.log_event("purchase", {"amount": 10})
        ...
        await analytics.aclose()
    """

    def __init__(
        self,
        config: ClientConfig | Mapping[str, Any],
        options: ClientOptions | Mapping[str, Any],
        http_client: httpx.AsyncClient | None = None,
    ):
        """Initialize the client.

        Args:
            config: Measurement configuration (requires measurement_id)
            options: Client options (requires client_id)
            http_client: Optional HTTP client used for sending requests

        Raises:
            ConfigError: If measurement_id or client_id is missing or invalid
        """
        self.config = _coerce(ClientConfig, config)
        if not self.config.measurement_id:
            raise ConfigError(
                "No valid measurementId. Make sure to provide a valid measurementId "
                "with a G-XXXXXXXXXX format."
            )

        self.options = _coerce(ClientOptions, options)
        if not self.options.client_id:
            raise ConfigError(
                "No valid clientId. Make sure to provide a valid clientId with a UUID (v4) format."
            )

        self.url = COLLECTOR_URL
        self.enabled = True
        self.screen_name: str | None = None
        self.user_id: str | None = None
        self.user_properties: dict[str, Any] | None = None
        self.last_time = -1
        self.sequence_nr = 1

        self._event_queue: dict[int, Event] = {}
        self._event_keys = itertools.count()
        self._flush_timer: asyncio.TimerHandle | None = None
        self._flush_task: asyncio.Task | None = None
        self._transport = CollectorTransport(http_client)

    async def __aenter__(self) -> "FirebaseAnalytics":
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.aclose()

    @property
    def pending_events(self) -> tuple[Event, ...]:
        """Events queued but not yet sent, in order."""
        return tuple(self._event_queue.values())

    @property
    def flush_timer_armed(self) -> bool:
        """Whether a flush is scheduled."""
        return self._flush_timer is not None

    async def send(self, events: list[Event]) -> None:
        """Send one or more encoded events to the collector.

        A single event is sent inside the query URL. Multiple events are sent
        in the body of the POST request, one event per line.
        """
        config, options = self.config, self.options
        self.sequence_nr += 1

        query_args: dict[str, Any] = {
            **options.custom_args,
            "v": 2,
            "tid": config.measurement_id,
            "cid": options.client_id,
            "sid": options.session_id,
            "_s": self.sequence_nr,
            "seg": 1,
        }
        for field, key in OPTION_QUERY_ARGS:
            value = getattr(options, field)
            if value:
                query_args[key] = value
        if options.debug:
            query_args["_dbg"] = 1
        # First payload of this client marks the start of the session
        if self.sequence_nr == 2:
            query_args["_ss"] = 1

        body = None
        last_time = self.last_time
        if len(events) > 1:
            lines = []
            for event in events:
                lines.append(f"{encode_query_args(event, self.last_time)}\n")
                self.last_time = event["_et"]
            body = "".join(lines)
        elif len(events) == 1:
            event = events[0]
            self.last_time = event["_et"]
            query_args = {**event, **query_args}

        url = f"{self.url}?{encode_query_args(query_args, last_time)}"
        if options.debug:
            logger.info(f"Sending {len(events)} analytics event(s): {url}")
        else:
            logger.debug(f"Sending {len(events)} analytics event(s), _s={self.sequence_nr}")

        await self._transport.post(url, body, options.headers)

    def _add_event(self, event: Event) -> None:
        """Decorate an event with the current user state, queue it and arm the timer."""
        if self.user_id:
            event["uid"] = self.user_id
        if self.screen_name:
            event["ep.screen_name"] = self.screen_name

        # User properties are sent along with the next event only
        if self.user_properties is not None:
            event.update(self.user_properties)
            self.user_properties = None

        self._event_queue[next(self._event_keys)] = event

        if self._flush_timer is None:
            delay_ms = DEBUG_FLUSH_DELAY_MS if self.options.debug else self.options.max_cache_time
            loop = asyncio.get_running_loop()
            self._flush_timer = loop.call_later(delay_ms / 1000, self._on_flush_timer)

    def _on_flush_timer(self) -> None:
        self._flush_timer = None
        self._schedule_flush()

    def _schedule_flush(self) -> asyncio.Task:
        """Start a flush that runs after the currently tracked one."""
        previous = self._flush_task
        task = asyncio.get_running_loop().create_task(self._flush_after(previous))
        task.add_done_callback(self._on_flush_done)
        self._flush_task = task
        return task

    async def _flush_after(self, previous: asyncio.Task | None) -> None:
        if previous is not None:
            try:
                await previous
            except Exception:
                logger.debug("Previous flush failed, continuing with the next one")
        await self._send_queued()

    @staticmethod
    def _on_flush_done(task: asyncio.Task) -> None:
        if task.cancelled():
            return
        error = task.exception()
        if error is not None:
            logger.warning(f"Failed to send analytics events: {error}")

    def _cancel_flush_timer(self) -> None:
        if self._flush_timer is not None:
            self._flush_timer.cancel()
            self._flush_timer = None

    async def flush_events(self) -> None:
        """Send all queued events now and remove them from the queue.

        Cancels the armed flush timer and runs after any flush in flight.
        Events queued while the request is in flight stay queued. When the
        send fails, nothing is removed and the error is raised.
        """
        self._cancel_flush_timer()
        await self._schedule_flush()

    async def _send_queued(self) -> None:
        if not self._event_queue:
            return
        snapshot = dict(self._event_queue)
        await self.send(list(snapshot.values()))
        for key in snapshot:
            self._event_queue.pop(key, None)

    def clear_events(self) -> None:
        """Clear any queued events and cancel the flush timer."""
        self._event_queue.clear()
        self._cancel_flush_timer()

    async def flush_pending(self) -> None:
        """Wait for the flush in flight (if any) to finish. Never raises its error."""
        if self._flush_task is not None:
            await asyncio.wait({self._flush_task})

    async def aclose(self) -> None:
        """Send queued events right away, wait for them and release the HTTP client."""
        self._cancel_flush_timer()
        if self._event_queue:
            self._schedule_flush()
        await self.flush_pending()
        await self._transport.aclose()

    async def log_event(self, event_name: str, event_params: Mapping[str, Any] | None = None) -> None:
        """Log an event.

        The event is validated even when analytics collection is disabled.

        Raises:
            ValidationError: If the event name is invalid
        """
        event = parse_event(self.options, event_name, event_params)
        if not self.enabled:
            return
        if self.options.debug:
            logger.info(
                f'FirebaseAnalytics event: "{event_name}", params: '
                f"{json.dumps(event_params, indent=2, default=str)}"
            )
        self._add_event(event)

    async def set_analytics_collection_enabled(self, is_enabled: bool) -> None:
        """Enable or disable analytics collection. Queued events are kept."""
        self.enabled = is_enabled

    async def set_current_screen(self, screen_name: str | None) -> None:
        """Set the screen name sent along with subsequent events.

        Raises:
            ValidationError: If the screen name is not a string or is longer
                than 100 characters
        """
        if screen_name and (
            not isinstance(screen_name, str) or len(screen_name) > MAX_SCREEN_NAME_LENGTH
        ):
            raise ValidationError(
                "Invalid screen-name specified. Should contain 1 to 100 characters. "
                "Set to None to clear the current screen name."
            )
        if not self.enabled:
            return
        self.screen_name = screen_name or None

    async def set_user_id(self, user_id: str | None) -> None:
        """Set the user ID sent along with subsequent events."""
        if not self.enabled:
            return
        self.user_id = user_id or None

    async def set_user_properties(self, user_properties: Mapping[str, Any]) -> None:
        """Set user properties, sent along with the next logged event.

        A None value removes a property that has not been sent yet.

        Raises:
            ValidationError: On the first invalid property; properties before
                it in the mapping stay set
        """
        if not self.enabled:
            return
        for name, value in user_properties.items():
            key = parse_user_property(self.options, name, value)
            if value is None:
                if self.user_properties is not None:
                    self.user_properties.pop(key, None)
            else:
                if self.user_properties is None:
                    self.user_properties = {}
                self.user_properties[key] = value

    async def reset_analytics_data(self) -> None:
        """Clear all analytics data for this instance."""
        self.clear_events()
        self.screen_name = None
        self.user_id = None
        self.user_properties = None

    async def set_debug_mode_enabled(self, is_enabled: bool) -> None:
        """Enable or disable debug mode."""
        self.options.debug = is_enabled
