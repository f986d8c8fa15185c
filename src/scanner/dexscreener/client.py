"""DexScreener client: primary market data and social links (no auth).

The only provider whose failure propagates: a 404 or an empty pair list
means "not listed" (absent), anything else that goes wrong surfaces as
PrimaryDataUnavailable.
"""

import httpx
from loguru import logger
from pydantic import ValidationError

from src.scanner.dexscreener.models import DexMarket, DexScreenerPair
from src.scanner.errors import ProviderUnavailable
from src.scanner.models import MarketData, SocialLinks
from src.scanner.providers import BaseProvider, ProviderId

BASE_URL = "https://api.dexscreener.com"


def select_main_pair(pairs: list[DexScreenerPair]) -> DexScreenerPair | None:
    """Highest USD liquidity wins; on a tie the first-seen pair is kept."""
    best: DexScreenerPair | None = None
    for pair in pairs:
        if best is None or pair.liquidity_usd > best.liquidity_usd:
            best = pair
    return best


def _to_float(value: str | float | None) -> float | None:
    if value is None or value == "":
        return None
    try:
        return float(value)
    except (TypeError, ValueError):
        return None


def _social_url(pair: DexScreenerPair, kind: str) -> str | None:
    if pair.info is None:
        return None
    for social in pair.info.socials:
        if social.type == kind and social.url:
            return social.url
    return None


def _parse_pair(pair: DexScreenerPair) -> DexMarket:
    website = None
    if pair.info is not None and pair.info.websites:
        website = pair.info.websites[0].url or None

    base = pair.baseToken
    return DexMarket(
        token_name=(base.name if base else None) or None,
        symbol=(base.symbol if base else None) or None,
        market=MarketData(
            price=_to_float(pair.priceUsd),
            liquidity=pair.liquidity.usd if pair.liquidity else None,
            volume_24h=pair.volume.h24 if pair.volume else None,
            price_change_24h=pair.priceChange.h24 if pair.priceChange else None,
            dex_url=pair.url,
            market_cap=pair.marketCap or None,
        ),
        socials=SocialLinks(
            website=website,
            x=_social_url(pair, "twitter"),
            telegram=_social_url(pair, "telegram"),
        ),
    )


class DexScreenerClient(BaseProvider[DexMarket]):
    """Async REST client for DexScreener's public token endpoint."""

    provider_id = ProviderId.DEXSCREENER
    primary = True

    def __init__(self, timeout: float = 8.0) -> None:
        super().__init__(timeout)
        self._client = httpx.AsyncClient(
            base_url=BASE_URL,
            timeout=timeout,
            headers={"Accept": "application/json"},
        )

    async def close(self) -> None:
        await self._client.aclose()

    async def get_token_pairs(self, token_address: str) -> list[DexScreenerPair] | None:
        """All pairs for a token on any chain. None when the token is unknown (404)."""
        resp = await self._client.get(f"/latest/dex/tokens/{token_address}")
        if resp.status_code == 404:
            return None
        if resp.status_code != 200:
            raise ProviderUnavailable(self.provider_id.value, f"HTTP {resp.status_code}")

        data = resp.json()
        pairs = data.get("pairs") if isinstance(data, dict) else data
        if not pairs:
            return []
        if not isinstance(pairs, list):
            raise ProviderUnavailable(self.provider_id.value, "malformed pairs payload")
        try:
            return [DexScreenerPair.model_validate(p) for p in pairs]
        except ValidationError as e:
            raise ProviderUnavailable(self.provider_id.value, f"malformed pair: {e.error_count()} errors") from e

    async def _fetch_value(self, address: str) -> DexMarket | None:
        pairs = await self.get_token_pairs(address)
        if not pairs:
            logger.info(f"[DEXSCREENER] No trading pairs for {address[:12]}")
            return None

        main = select_main_pair(pairs)
        result = _parse_pair(main)
        logger.debug(
            f"[DEXSCREENER] {result.symbol} ({result.token_name}) "
            f"liq=${main.liquidity_usd:,.0f} from {len(pairs)} pairs, "
            f"socials={result.socials.count}"
        )
        return result
