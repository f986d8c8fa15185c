"""Plain HTML fetcher for pages that need no scraping backend."""

import asyncio
from collections.abc import Awaitable, Callable

import httpx

from src.scanner.scrapingbee.client import USER_AGENT

HtmlFetcher = Callable[[str], Awaitable[str]]

BROWSER_HEADERS = {
    "User-Agent": USER_AGENT,
    "Accept": "text/html,application/xhtml+xml,application/xml;q=0.9,*/*;q=0.8",
    "Accept-Language": "en-US,en;q=0.5",
}


class DirectHtmlClient:
    def __init__(self, timeout: float = 8.0) -> None:
        self._timeout = timeout
        self._client = httpx.AsyncClient(
            timeout=timeout,
            headers=BROWSER_HEADERS,
            follow_redirects=True,
        )

    async def close(self) -> None:
        await self._client.aclose()

    async def fetch_html(self, url: str, *, timeout: float | None = None) -> str:
        """GET ``url`` and return the body. Raises on timeout or non-2xx."""
        limit = timeout or self._timeout
        resp = await asyncio.wait_for(self._client.get(url, timeout=limit), timeout=limit)
        resp.raise_for_status()
        return resp.text
