"""Solscan public API: holder count for SPL tokens."""

import httpx

from src.scanner.errors import ProviderUnavailable
from src.scanner.providers import BaseProvider, ProviderId

BASE_URL = "https://public-api.solscan.io"


class SolscanClient(BaseProvider[int]):
    provider_id = ProviderId.SOLSCAN

    def __init__(self, timeout: float = 8.0) -> None:
        super().__init__(timeout)
        self._client = httpx.AsyncClient(
            base_url=BASE_URL,
            timeout=timeout,
            headers={"Accept": "application/json"},
        )

    async def close(self) -> None:
        await self._client.aclose()

    async def _fetch_value(self, address: str) -> int | None:
        # A one-row page is enough: the response carries the total count
        resp = await self._client.get(
            "/token/holders",
            params={"tokenAddress": address, "offset": 0, "size": 1},
        )
        if resp.status_code != 200:
            raise ProviderUnavailable(self.provider_id.value, f"HTTP {resp.status_code}")

        total = resp.json().get("total")
        if total is None:
            return None
        return int(total)
