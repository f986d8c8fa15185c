"""BSCScan client: BEP-20 token info and holder count."""

from typing import Any

import httpx
from loguru import logger

from src.scanner.errors import ProviderUnavailable
from src.scanner.models import Fundamentals
from src.scanner.providers import BaseProvider, ProviderId

BASE_URL = "https://api.bscscan.com/api"


def _as_int(value: Any) -> int | None:
    try:
        return int(value) if value not in (None, "") else None
    except (TypeError, ValueError):
        return None


class BscScanApi:
    """Shared HTTP session for both BSCScan providers."""

    def __init__(self, api_key: str, timeout: float = 8.0) -> None:
        self.api_key = api_key
        self._client = httpx.AsyncClient(
            timeout=timeout,
            headers={"Accept": "application/json"},
        )

    async def close(self) -> None:
        await self._client.aclose()

    async def call(self, provider: ProviderId, params: dict[str, str]) -> Any | None:
        """GET one module/action. None when BSCScan answers status != "1"."""
        if not self.api_key:
            raise ProviderUnavailable(provider.value, "BSCSCAN_API_KEY is not set")

        resp = await self._client.get(BASE_URL, params={**params, "apikey": self.api_key})
        if resp.status_code != 200:
            raise ProviderUnavailable(provider.value, f"HTTP {resp.status_code}")

        data = resp.json()
        if data.get("status") != "1" or not data.get("result"):
            logger.debug(f"[BSCSCAN] {params.get('action')}: {data.get('message', 'Unknown error')}")
            return None
        return data["result"]


class BscScanTokenInfo(BaseProvider[Fundamentals]):
    provider_id = ProviderId.BSCSCAN

    def __init__(self, api: BscScanApi, timeout: float = 8.0) -> None:
        super().__init__(timeout)
        self._api = api

    async def _fetch_value(self, address: str) -> Fundamentals | None:
        result = await self._api.call(self.provider_id, {
            "module": "token",
            "action": "tokeninfo",
            "contractaddress": address,
        })
        if result is None:
            return None
        token = result[0] if isinstance(result, list) else result
        if not isinstance(token, dict):
            raise ProviderUnavailable(self.provider_id.value, "malformed tokeninfo")

        return Fundamentals(
            supply=_as_int(token.get("totalSupply")),
            decimals=_as_int(token.get("divisor") or token.get("decimals")),
            token_name=token.get("tokenName") or token.get("name") or None,
            token_symbol=token.get("symbol") or None,
            description=token.get("description") or None,
        )


class BscScanHolders(BaseProvider[int]):
    provider_id = ProviderId.BSCSCAN_HOLDERS

    def __init__(self, api: BscScanApi, timeout: float = 8.0) -> None:
        super().__init__(timeout)
        self._api = api

    async def _fetch_value(self, address: str) -> int | None:
        result = await self._api.call(self.provider_id, {
            "module": "token",
            "action": "tokenholdercount",
            "contractaddress": address,
        })
        return _as_int(result)
