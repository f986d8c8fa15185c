"""Helius DAS client: on-chain fundamentals for Solana mints."""

from typing import Any

import httpx
from loguru import logger

from src.scanner.errors import ProviderUnavailable
from src.scanner.models import Fundamentals
from src.scanner.providers import BaseProvider, ProviderId


def _as_int(value: Any) -> int | None:
    if value is None or value == "":
        return None
    try:
        return int(value)
    except (TypeError, ValueError):
        return None


class HeliusClient(BaseProvider[Fundamentals]):
    """Async JSON-RPC client for the Helius getAsset method."""

    provider_id = ProviderId.HELIUS

    def __init__(self, api_key: str, rpc_url: str = "", timeout: float = 8.0) -> None:
        super().__init__(timeout)
        self._api_key = api_key
        self._rpc_url = rpc_url or f"https://mainnet.helius-rpc.com/?api-key={api_key}"
        self._client = httpx.AsyncClient(timeout=timeout)

    async def close(self) -> None:
        await self._client.aclose()

    async def get_asset(self, asset_id: str) -> dict[str, Any] | None:
        """Fetch asset metadata via the Digital Asset Standard API.

        Returns the raw asset object, or None if the RPC has no result.
        Cost: 10 Helius credits per call.
        """
        if not self._api_key and "api-key=" not in self._rpc_url:
            raise ProviderUnavailable(self.provider_id.value, "HELIUS_API_KEY is not set")

        payload = {
            "jsonrpc": "2.0",
            "id": "helius-asset",
            "method": "getAsset",
            "params": {"id": asset_id},
        }
        resp = await self._client.post(self._rpc_url, json=payload)
        if resp.status_code != 200:
            raise ProviderUnavailable(self.provider_id.value, f"HTTP {resp.status_code}")

        data = resp.json()
        if "error" in data:
            logger.debug(f"[HELIUS] get_asset RPC error: {data['error']}")
            return None
        return data.get("result")

    async def _fetch_value(self, address: str) -> Fundamentals | None:
        asset = await self.get_asset(address)
        if not asset:
            return None
        result = parse_asset(asset)
        logger.debug(
            f"[HELIUS] {result.token_symbol or 'N/A'} supply={result.supply} "
            f"holders={result.holder_count} mint_auth={result.mint_authority or 'none'}"
        )
        return result


def parse_asset(asset: dict[str, Any]) -> Fundamentals:
    """Flatten a getAsset result.

    Fungible tokens carry supply/decimals/authorities under ``token_info``;
    top-level fields are the fallback.
    """
    token_info = asset.get("token_info") or {}
    metadata = (asset.get("content") or {}).get("metadata") or {}
    ownership = asset.get("ownership") or {}

    def pick(key: str, *alt: str) -> Any:
        for k in (key, *alt):
            if token_info.get(k) is not None:
                return token_info[k]
        for k in (key, *alt):
            if asset.get(k) is not None:
                return asset[k]
        return None

    return Fundamentals(
        supply=_as_int(pick("supply")),
        decimals=_as_int(pick("decimals")),
        mint_authority=pick("mint_authority", "mintAuthority"),
        freeze_authority=pick("freeze_authority", "freezeAuthority"),
        holder_count=_as_int(ownership.get("ownerCount")),
        token_name=metadata.get("name") or None,
        token_symbol=metadata.get("symbol") or token_info.get("symbol") or None,
        is_mutable=asset.get("mutable"),
        description=metadata.get("description") or None,
    )
