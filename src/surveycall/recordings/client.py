"""
Streaming client for the telephony platform's recording API.
"""

from collections.abc import AsyncIterator
from dataclasses import dataclass
from typing import Protocol

import httpx

from surveycall.shared.exceptions import UpstreamError
from surveycall.shared.logging import get_logger

logger = get_logger(__name__)

DEFAULT_CONTENT_TYPE = "audio/wav"


@dataclass(frozen=True)
class RecordingLocator:
    """Path segments identifying one recording."""

    call_id: str
    leg_id: str
    recording_id: str

    def path(self) -> str:
        return (
            f"/calls/{self.call_id}/legs/{self.leg_id}"
            f"/recordings/{self.recording_id}.wav"
        )


class RecordingStream:
    """An open upstream response whose body has not been read yet.

    The upstream connection is released when iteration finishes, fails,
    or aclose() is called.
    """

    def __init__(self, locator: RecordingLocator, response: httpx.Response) -> None:
        self.locator = locator
        self._response = response

    @property
    def content_type(self) -> str:
        return self._response.headers.get("content-type", DEFAULT_CONTENT_TYPE)

    @property
    def content_length(self) -> str | None:
        return self._response.headers.get("content-length")

    @property
    def content_encoding(self) -> str | None:
        """Encoding of the raw bytes, relayed together with them."""
        return self._response.headers.get("content-encoding")

    async def chunks(self) -> AsyncIterator[bytes]:
        try:
            async for chunk in self._response.aiter_raw():
                yield chunk
        except httpx.HTTPError as exc:
            logger.error(
                "Recording stream interrupted",
                extra={"call_id": self.locator.call_id, "error": str(exc)},
            )
            raise UpstreamError(f"Recording stream interrupted: {exc}") from exc
        finally:
            await self._response.aclose()

    async def aclose(self) -> None:
        await self._response.aclose()


class RecordingSource(Protocol):
    """Protocol for anything that can open a recording stream."""

    async def open(self, locator: RecordingLocator) -> RecordingStream:
        ...


class RecordingClient:
    """MessageBird Voice recording client.

    Uses a single httpx.AsyncClient for the process lifetime.
    """

    def __init__(
        self,
        api_key: str,
        base_url: str = "https://voice.messagebird.com",
        timeout: float = 30.0,
        http_client: httpx.AsyncClient | None = None,
    ) -> None:
        """Initialize recording client.

        Args:
            api_key: MessageBird access key.
            base_url: Voice API base URL.
            timeout: HTTP request timeout in seconds.
            http_client: Optional preconfigured client (tests).
        """
        self._api_key = api_key
        self._base_url = base_url.rstrip("/")
        self._timeout = timeout
        self._client = http_client

    def _get_client(self) -> httpx.AsyncClient:
        """Get or create HTTP client."""
        if self._client is None or self._client.is_closed:
            self._client = httpx.AsyncClient(timeout=self._timeout)
        return self._client

    async def close(self) -> None:
        """Close HTTP client."""
        if self._client is not None and not self._client.is_closed:
            await self._client.aclose()
            self._client = None

    async def open(self, locator: RecordingLocator) -> RecordingStream:
        """Start fetching a recording.

        The status is checked before any byte is relayed, so a failed fetch
        never turns into a partial success.

        Raises:
            UpstreamError: On transport failure or a non-2xx upstream status.
        """
        client = self._get_client()
        request = client.build_request(
            "GET",
            f"{self._base_url}{locator.path()}",
            headers={
                "Authorization": f"AccessKey {self._api_key}",
                "Accept-Encoding": "identity",
            },
        )

        try:
            response = await client.send(request, stream=True)
        except httpx.HTTPError as exc:
            logger.error(
                "Recording fetch failed",
                extra={"call_id": locator.call_id, "error": str(exc)},
            )
            raise UpstreamError(f"Recording fetch failed: {exc}") from exc

        if not response.is_success:
            await response.aclose()
            logger.warning(
                "Recording API returned error status",
                extra={
                    "call_id": locator.call_id,
                    "leg_id": locator.leg_id,
                    "recording_id": locator.recording_id,
                    "status_code": response.status_code,
                },
            )
            raise UpstreamError(
                "Recording API returned an error",
                status_code=response.status_code,
            )

        return RecordingStream(locator, response)
