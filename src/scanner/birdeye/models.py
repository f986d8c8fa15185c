"""Pydantic models for Birdeye Data Services API responses."""

from pydantic import BaseModel


class BirdeyeTokenOverview(BaseModel):
    """Response from /defi/token_overview (30 CU).

    The endpoint has shipped two field spellings for the 24h window; both
    are accepted and the ``*_usd``/``*_percent`` properties pick whichever
    is present.
    """

    address: str = ""
    name: str | None = None
    symbol: str | None = None
    decimals: int | None = None

    price: float | None = None
    marketCap: float | None = None
    liquidity: float | None = None
    holder: int | None = None

    v24hUSD: float | None = None
    volume24h: float | None = None
    priceChange24hPercent: float | None = None
    priceChange24h: float | None = None
    trade24h: int | None = None
    tradeCount24h: int | None = None
    tokenRanking: int | None = None

    model_config = {"extra": "ignore"}

    @property
    def volume_24h_usd(self) -> float | None:
        return self.v24hUSD if self.v24hUSD is not None else self.volume24h

    @property
    def price_change_24h_percent(self) -> float | None:
        if self.priceChange24hPercent is not None:
            return self.priceChange24hPercent
        return self.priceChange24h

    @property
    def trades_24h(self) -> int | None:
        return self.trade24h if self.trade24h is not None else self.tradeCount24h
