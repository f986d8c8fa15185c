"""Tests for the DexScreener market-data client."""

from unittest.mock import AsyncMock, MagicMock, patch

import httpx
import pytest

from src.scanner.dexscreener.client import DexScreenerClient, select_main_pair
from src.scanner.dexscreener.models import DexScreenerPair
from src.scanner.errors import PrimaryDataUnavailable

ADDR = "EPjFWdd5AufqSSqeM2qN1xzybapC8G4wEGGkZwyTDt1v"


def _resp(status: int, data=None) -> MagicMock:
    resp = MagicMock()
    resp.status_code = status
    resp.json = lambda: data
    return resp


def _pair(liquidity: float | None, name: str = "Token", **extra) -> dict:
    pair = {
        "chainId": "solana",
        "url": f"https://dexscreener.com/solana/{name.lower()}",
        "baseToken": {"address": ADDR, "name": name, "symbol": name[:3].upper()},
        "priceUsd": "0.0123",
        "volume": {"h24": 50000},
        "priceChange": {"h24": -4.5},
        "marketCap": 1_200_000,
    }
    if liquidity is not None:
        pair["liquidity"] = {"usd": liquidity}
    pair.update(extra)
    return pair


def test_select_highest_liquidity():
    pairs = [DexScreenerPair.model_validate(_pair(x, name=f"P{x}")) for x in (100, 900, 500)]
    assert select_main_pair(pairs).liquidity.usd == 900


def test_select_tie_keeps_first_seen():
    pairs = [
        DexScreenerPair.model_validate(_pair(500, name="First")),
        DexScreenerPair.model_validate(_pair(500, name="Second")),
    ]
    assert select_main_pair(pairs).baseToken.name == "First"


def test_missing_liquidity_counts_as_zero():
    pairs = [
        DexScreenerPair.model_validate(_pair(None, name="NoLiq")),
        DexScreenerPair.model_validate(_pair(1, name="Some")),
    ]
    assert select_main_pair(pairs).baseToken.name == "Some"


@pytest.mark.asyncio
async def test_fetch_parses_main_pair_and_socials():
    info = {
        "websites": [{"label": "Website", "url": "https://token.io"}],
        "socials": [
            {"type": "telegram", "url": "https://t.me/token"},
            {"type": "twitter", "url": "https://x.com/token"},
        ],
    }
    data = {"pairs": [_pair(10, name="Small"), _pair(25_000, name="Main", info=info)]}
    client = DexScreenerClient()
    with patch.object(client, "_client") as mock_http:
        mock_http.get = AsyncMock(return_value=_resp(200, data))
        result = await client.fetch(ADDR)

    market = result.value
    assert market.token_name == "Main"
    assert market.symbol == "MAI"
    assert market.market.price == pytest.approx(0.0123)
    assert market.market.liquidity == 25_000
    assert market.market.volume_24h == 50000
    assert market.market.price_change_24h == -4.5
    assert market.market.market_cap == 1_200_000
    assert market.market.dex_url == "https://dexscreener.com/solana/main"
    assert market.socials.website == "https://token.io"
    assert market.socials.x == "https://x.com/token"
    assert market.socials.telegram == "https://t.me/token"
    await client.close()


@pytest.mark.asyncio
async def test_not_found_is_absent():
    client = DexScreenerClient()
    with patch.object(client, "_client") as mock_http:
        mock_http.get = AsyncMock(return_value=_resp(404))
        result = await client.fetch(ADDR)
    assert result.value is None
    await client.close()


@pytest.mark.asyncio
async def test_no_pairs_is_absent():
    client = DexScreenerClient()
    with patch.object(client, "_client") as mock_http:
        mock_http.get = AsyncMock(return_value=_resp(200, {"pairs": None}))
        result = await client.fetch(ADDR)
    assert result.value is None
    await client.close()


@pytest.mark.asyncio
async def test_server_error_propagates():
    client = DexScreenerClient()
    with patch.object(client, "_client") as mock_http:
        mock_http.get = AsyncMock(return_value=_resp(503))
        with pytest.raises(PrimaryDataUnavailable, match="HTTP 503"):
            await client.fetch(ADDR)
    await client.close()


@pytest.mark.asyncio
async def test_transport_error_propagates():
    client = DexScreenerClient()
    with patch.object(client, "_client") as mock_http:
        mock_http.get = AsyncMock(side_effect=httpx.ConnectError("refused"))
        with pytest.raises(PrimaryDataUnavailable):
            await client.fetch(ADDR)
    await client.close()
