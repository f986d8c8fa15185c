"""Merge provider outputs into one TokenSnapshot.

Pure: no I/O, never raises on missing inputs. Each field has its own
precedence order; ``None`` stays ``None`` rather than collapsing to zero.

- name/symbol: market data -> fundamentals -> placeholder
- holder count: dedicated holder provider -> fundamentals -> absent
- price/liquidity/volume/24h change: Birdeye -> DexScreener
- market cap: upstream value -> supply * price / 10**decimals -> absent
"""

from decimal import Decimal, InvalidOperation

from src.scanner.address import Address
from src.scanner.dexscreener.models import DexMarket
from src.scanner.models import (
    UNKNOWN_SYMBOL,
    UNKNOWN_TOKEN_NAME,
    Fundamentals,
    MarketData,
    SecurityReport,
    SocialLinks,
    TokenSnapshot,
)
from src.scanner.providers import ProviderResult


def _value(result: ProviderResult | None):
    return result.value if result is not None else None


def _first(*values):
    for v in values:
        if v is not None:
            return v
    return None


def compute_market_cap(supply: int | None, price: float | None, decimals: int) -> float | None:
    """supply (raw base units) * price / 10**decimals, exact until the final float."""
    if supply is None or price is None:
        return None
    try:
        cap = Decimal(supply) * Decimal(str(price)) / (Decimal(10) ** decimals)
    except (InvalidOperation, ValueError):
        return None
    return float(cap)


def merge_market(
    primary: MarketData | None,
    secondary: MarketData | None,
    fundamentals: Fundamentals | None,
    default_decimals: int,
) -> MarketData:
    p = primary or MarketData()
    s = secondary or MarketData()

    price = _first(s.price, p.price)
    market_cap = _first(p.market_cap, s.market_cap)
    if market_cap is None and fundamentals is not None:
        decimals = _first(fundamentals.decimals, default_decimals)
        market_cap = compute_market_cap(fundamentals.supply, price, decimals)

    return MarketData(
        price=price,
        liquidity=_first(s.liquidity, p.liquidity),
        volume_24h=_first(s.volume_24h, p.volume_24h),
        price_change_24h=_first(s.price_change_24h, p.price_change_24h),
        dex_url=p.dex_url,
        market_cap=market_cap,
        trade_count_24h=s.trade_count_24h,
        trending_rank=s.trending_rank,
    )


def merge_socials(market: DexMarket | None, backfill_website: str | None = None) -> SocialLinks | None:
    """Market-provider links, website backfilled from the launchpad lookup."""
    if market is None:
        if backfill_website:
            return SocialLinks(website=backfill_website)
        return None
    socials = market.socials
    if socials.website is None and backfill_website:
        socials = socials.model_copy(update={"website": backfill_website})
    return socials


def reconcile(
    address: Address,
    *,
    market: ProviderResult[DexMarket] | None = None,
    secondary_market: ProviderResult[MarketData] | None = None,
    security: ProviderResult[SecurityReport] | None = None,
    fundamentals: ProviderResult[Fundamentals] | None = None,
    holders: ProviderResult[int] | None = None,
    has_security_provider: bool = False,
    backfill_website: str | None = None,
) -> TokenSnapshot:
    dex: DexMarket | None = _value(market)
    birdeye: MarketData | None = _value(secondary_market)
    fund: Fundamentals | None = _value(fundamentals)

    name = _first(
        dex.token_name if dex else None,
        fund.token_name if fund else None,
        UNKNOWN_TOKEN_NAME,
    )
    symbol = _first(
        dex.symbol if dex else None,
        fund.token_symbol if fund else None,
        UNKNOWN_SYMBOL,
    )

    return TokenSnapshot(
        address=address.value,
        chain=address.chain,
        token_name=name,
        symbol=symbol,
        market=merge_market(
            dex.market if dex else None,
            birdeye,
            fund,
            address.chain.default_decimals,
        ),
        primary_market=dex.market if dex else None,
        secondary_market=birdeye,
        fundamentals=fund,
        holder_count=_first(_value(holders), fund.holder_count if fund else None),
        security=_value(security),
        has_security_provider=has_security_provider,
        socials=merge_socials(dex, backfill_website),
    )
