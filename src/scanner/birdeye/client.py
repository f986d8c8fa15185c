"""Birdeye Data Services client: secondary Solana market data.

Preferred over DexScreener for price, liquidity, volume and 24h change when
both answer. Needs an API key; without one the provider reports absent.
"""

from typing import Any

import httpx
from loguru import logger
from pydantic import ValidationError

from src.scanner.birdeye.models import BirdeyeTokenOverview
from src.scanner.errors import ProviderUnavailable
from src.scanner.models import MarketData
from src.scanner.providers import BaseProvider, ProviderId

BASE_URL = "https://public-api.birdeye.so"


class BirdeyeClient(BaseProvider[MarketData]):
    """Async client for Birdeye /defi/token_overview."""

    provider_id = ProviderId.BIRDEYE

    def __init__(self, api_key: str, timeout: float = 8.0) -> None:
        super().__init__(timeout)
        self._api_key = api_key
        self._client = httpx.AsyncClient(
            base_url=BASE_URL,
            timeout=timeout,
            headers={
                "X-API-KEY": api_key,
                "Accept": "application/json",
                "x-chain": "solana",
            },
        )

    async def close(self) -> None:
        await self._client.aclose()

    async def _request(self, path: str, **kwargs: Any) -> dict[str, Any] | None:
        if not self._api_key:
            raise ProviderUnavailable(self.provider_id.value, "BIRDEYE_API_KEY is not set")

        resp = await self._client.get(path, **kwargs)
        if resp.status_code == 401:
            raise ProviderUnavailable(self.provider_id.value, "invalid API key (401)")
        if resp.status_code != 200:
            raise ProviderUnavailable(self.provider_id.value, f"HTTP {resp.status_code}")

        data = resp.json()
        if not data.get("success", True):
            raise ProviderUnavailable(self.provider_id.value, f"API error: {data.get('message', 'unknown')}")
        return data.get("data") or None

    async def get_token_overview(self, address: str) -> BirdeyeTokenOverview | None:
        data = await self._request("/defi/token_overview", params={"address": address})
        if data is None:
            return None
        try:
            return BirdeyeTokenOverview.model_validate(data)
        except ValidationError as e:
            raise ProviderUnavailable(self.provider_id.value, "malformed overview") from e

    async def _fetch_value(self, address: str) -> MarketData | None:
        overview = await self.get_token_overview(address)
        if overview is None:
            logger.debug(f"[BIRDEYE] No data in response for {address[:12]}")
            return None

        result = MarketData(
            price=overview.price,
            liquidity=overview.liquidity,
            volume_24h=overview.volume_24h_usd,
            price_change_24h=overview.price_change_24h_percent,
            market_cap=overview.marketCap,
            trade_count_24h=overview.trades_24h,
            trending_rank=overview.tokenRanking,
        )
        logger.debug(
            f"[BIRDEYE] price={result.price} vol24h={result.volume_24h} "
            f"rank={result.trending_rank or 'N/A'}"
        )
        return result
