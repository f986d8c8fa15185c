"""ScrapingBee client: JS-rendering HTML fetcher billed per request.

Every request goes through the shared ScrapeAdmissionController so the
account's concurrency ceiling holds no matter how many lookups run at once.
"""

import asyncio

import httpx
from loguru import logger

from src.scanner.admission import ScrapeAdmissionController
from src.scanner.errors import ScrapeBackendError

BASE_URL = "https://app.scrapingbee.com/api/v1/"
USER_AGENT = (
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/120.0.0.0 Safari/537.36"
)


class ScrapingBeeClient:
    def __init__(
        self,
        api_key: str,
        admission: ScrapeAdmissionController,
        timeout: float = 10.0,
    ) -> None:
        self._api_key = api_key
        self._admission = admission
        self._timeout = timeout
        self._client = httpx.AsyncClient(
            timeout=timeout,
            headers={"User-Agent": USER_AGENT},
        )

    @property
    def configured(self) -> bool:
        return bool(self._api_key)

    async def close(self) -> None:
        await self._client.aclose()

    async def fetch_html(self, url: str, *, render_js: bool = True) -> str:
        """Fetch rendered HTML for ``url``.

        Raises ScrapeBackendError on missing key or non-2xx. A timeout cancels
        the request and the admission slot is released before it propagates.
        """
        if not self._api_key:
            raise ScrapeBackendError("SCRAPINGBEE_API_KEY is not set")

        params = {
            "api_key": self._api_key,
            "url": url,
            "render_js": "true" if render_js else "false",
            "premium_proxy": "true",
        }
        async with self._admission.slot():
            try:
                resp = await asyncio.wait_for(
                    self._client.get(BASE_URL, params=params), timeout=self._timeout,
                )
            except asyncio.TimeoutError as e:
                raise ScrapeBackendError(f"timeout after {self._timeout}s: {url}") from e
            except httpx.RequestError as e:
                raise ScrapeBackendError(f"{type(e).__name__}: {url}") from e

        if resp.status_code == 401:
            raise ScrapeBackendError("authentication failed (401), check SCRAPINGBEE_API_KEY")
        if resp.status_code < 200 or resp.status_code >= 300:
            logger.debug(f"[SCRAPINGBEE] HTTP {resp.status_code} for {url}")
            raise ScrapeBackendError(f"HTTP {resp.status_code}: {resp.text[:100]}")
        return resp.text
