from pydantic import BaseModel

from src.scanner.models import MarketData, SocialLinks


class DexScreenerToken(BaseModel):
    address: str = ""
    name: str | None = None
    symbol: str | None = None

    model_config = {"extra": "ignore"}


class DexScreenerVolume(BaseModel):
    h24: float | None = None

    model_config = {"extra": "ignore"}


class DexScreenerLiquidity(BaseModel):
    usd: float | None = None

    model_config = {"extra": "ignore"}


class DexScreenerPriceChange(BaseModel):
    h24: float | None = None

    model_config = {"extra": "ignore"}


class DexScreenerWebsite(BaseModel):
    label: str | None = None
    url: str | None = None

    model_config = {"extra": "ignore"}


class DexScreenerSocial(BaseModel):
    type: str = ""
    url: str | None = None

    model_config = {"extra": "ignore"}


class DexScreenerInfo(BaseModel):
    websites: list[DexScreenerWebsite] = []
    socials: list[DexScreenerSocial] = []

    model_config = {"extra": "ignore"}


class DexScreenerPair(BaseModel):
    chainId: str = ""
    dexId: str = ""
    url: str | None = None
    pairAddress: str = ""
    baseToken: DexScreenerToken | None = None
    priceUsd: str | None = None
    volume: DexScreenerVolume | None = None
    liquidity: DexScreenerLiquidity | None = None
    priceChange: DexScreenerPriceChange | None = None
    marketCap: float | None = None
    fdv: float | None = None
    info: DexScreenerInfo | None = None

    model_config = {"extra": "ignore"}

    @property
    def liquidity_usd(self) -> float:
        if self.liquidity is None or self.liquidity.usd is None:
            return 0.0
        return self.liquidity.usd


class DexMarket(BaseModel):
    """Primary market view: the highest-liquidity pair, flattened."""

    token_name: str | None = None
    symbol: str | None = None
    market: MarketData = MarketData()
    socials: SocialLinks = SocialLinks()

    model_config = {"frozen": True}
