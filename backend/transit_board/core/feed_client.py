"""Async client for GTFS-Realtime feed endpoints."""

import logging

import httpx

from transit_board.core.errors import (
    EmptyFeedError,
    FeedHTTPError,
    FeedNetworkError,
    FeedTimeoutError,
)

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT_SECONDS = 8.0


class FeedClient:
    """Fetches raw protobuf bodies. One attempt per call, no retries."""

    def __init__(
        self,
        timeout: float = DEFAULT_TIMEOUT_SECONDS,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._client = httpx.AsyncClient(
            timeout=timeout,
            headers={"Accept": "application/x-protobuf"},
            transport=transport,
        )

    async def close(self) -> None:
        await self._client.aclose()

    async def fetch(self, url: str, headers: dict[str, str] | None = None) -> bytes:
        """GET ``url`` and return the body.

        Raises FeedTimeoutError, FeedNetworkError, FeedHTTPError or
        EmptyFeedError; the caller's next poll is the retry.
        """
        try:
            resp = await self._client.get(url, headers=headers)
        except httpx.TimeoutException as e:
            logger.error("Feed %s timed out: %s", url, type(e).__name__)
            raise FeedTimeoutError(f"Timed out fetching {url}") from e
        except httpx.HTTPError as e:
            logger.error("Feed %s request failed: %s", url, e)
            raise FeedNetworkError(f"Request to {url} failed: {e}") from e

        if not resp.is_success:
            logger.error("Feed %s returned HTTP %d", url, resp.status_code)
            raise FeedHTTPError(resp.status_code, url)

        body = resp.content
        if not body:
            logger.error("Feed %s returned an empty body", url)
            raise EmptyFeedError(f"Empty body from {url}")

        logger.debug("Fetched %d bytes from %s", len(body), url)
        return body
