"""Async client that fetches a city dataset body from disk or over HTTP."""

from __future__ import annotations

import asyncio
import logging
from pathlib import Path

import httpx

from impact_sim.sources import DatasetSource

logger = logging.getLogger(__name__)


class DatasetClient:
    """Fetch the raw text of one dataset source.

    Local paths are read in a worker thread; http(s) URLs go through
    httpx with exponential backoff retry.
    """

    def __init__(self, source: DatasetSource, transport: httpx.AsyncBaseTransport | None = None):
        self.source = source
        self._transport = transport
        self._client: httpx.AsyncClient | None = None

    async def _get_client(self) -> httpx.AsyncClient:
        if self._client is None or self._client.is_closed:
            self._client = httpx.AsyncClient(
                timeout=self.source.timeout_seconds,
                transport=self._transport,
                follow_redirects=True,
            )
        return self._client

    async def close(self) -> None:
        if self._client and not self._client.is_closed:
            await self._client.aclose()

    async def __aenter__(self) -> DatasetClient:
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.close()

    async def fetch_text(self) -> str:
        """Return the dataset body.

        Raises:
            FileNotFoundError / OSError: for unreadable local files.
            RuntimeError: when every HTTP attempt failed.
        """
        if not self.source.is_remote:
            path = Path(self.source.location)
            return await asyncio.to_thread(path.read_text, encoding="utf-8")
        return await self._request_with_retry()

    async def _request_with_retry(self) -> str:
        """Make HTTP request with exponential backoff retry."""
        client = await self._get_client()
        last_exc: Exception | None = None

        for attempt in range(self.source.max_retries + 1):
            try:
                resp = await client.get(self.source.location)
                resp.raise_for_status()
                return resp.text
            except (httpx.HTTPStatusError, httpx.RequestError) as exc:
                last_exc = exc
                if attempt < self.source.max_retries:
                    backoff = self.source.retry_backoff_base ** attempt
                    logger.warning(
                        "%s: attempt %d/%d failed (%s), retrying in %.1fs",
                        self.source.name, attempt + 1, self.source.max_retries + 1,
                        exc, backoff,
                    )
                    await asyncio.sleep(backoff)

        raise RuntimeError(
            f"{self.source.name}: all {self.source.max_retries + 1} attempts failed"
        ) from last_exc
