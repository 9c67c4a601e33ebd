"""HTTP transport to the Google Analytics collector.

Requests are fire-and-forget: the response body is never read and the status
code is not inspected. Only network-level failures surface, as
``httpx.HTTPError``.
"""

import logging

import httpx

from firelytics.version import __version__

logger = logging.getLogger(__name__)

COLLECTOR_URL = "https://www.google-analytics.com/g/collect"
USER_AGENT = f"firelytics/{__version__}"

DEFAULT_TIMEOUT = httpx.Timeout(
    connect=10.0,
    read=10.0,
    write=10.0,
    pool=10.0,
)


class CollectorTransport:
    """Posts encoded payloads to the collector endpoint."""

    def __init__(
        self,
        http_client: httpx.AsyncClient | None = None,
        timeout: httpx.Timeout = DEFAULT_TIMEOUT,
    ):
        """Initialize the transport.

        Args:
            http_client: Client to send requests with. When omitted, the
                transport creates (and owns) its own client.
            timeout: Timeout for a client created by the transport
        """
        self._owns_client = http_client is None
        self._client = http_client or httpx.AsyncClient(timeout=timeout)

    @staticmethod
    def get_headers(extra: dict[str, str] | None = None) -> dict[str, str]:
        """Get request headers, with caller-supplied headers applied last."""
        headers = {
            "Content-Type": "text/plain;charset=UTF-8",
            "User-Agent": USER_AGENT,
        }
        if extra:
            headers.update(extra)
        return headers

    async def post(
        self,
        url: str,
        body: str | None = None,
        headers: dict[str, str] | None = None,
    ) -> None:
        """Send one request to the collector.

        Args:
            url: Full collector URL including the encoded query string
            body: Newline-joined multi-event payload, or None
            headers: Extra request headers

        Raises:
            httpx.HTTPError: If the request could not be delivered
        """
        async with self._client.stream(
            "POST",
            url,
            content=body.encode("utf-8") if body is not None else None,
            headers=self.get_headers(headers),
        ) as response:
            logger.debug(f"Collector responded with status {response.status_code}")

    async def aclose(self) -> None:
        """Close the underlying HTTP client if the transport created it."""
        if self._owns_client:
            await self._client.aclose()
