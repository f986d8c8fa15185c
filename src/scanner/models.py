"""Domain models for a single token scan.

Every model is frozen: a snapshot is assembled once per scan and later stages
(social enrichment, scoring) produce new copies via ``model_copy(update=...)``.
``None`` always means "absent", never zero.
"""

from typing import Literal

from pydantic import BaseModel, field_validator

from src.scanner.address import ChainFamily

TWEET_COLLECTION_CAP = 5
UNKNOWN_TOKEN_NAME = "Unknown Token"
UNKNOWN_SYMBOL = "???"

RiskLevel = Literal["high", "medium", "low"]


class MarketData(BaseModel):
    price: float | None = None
    liquidity: float | None = None
    volume_24h: float | None = None
    price_change_24h: float | None = None
    dex_url: str | None = None
    market_cap: float | None = None
    trade_count_24h: int | None = None
    trending_rank: int | None = None

    model_config = {"frozen": True}


class Fundamentals(BaseModel):
    """On-chain token facts. Authorities are Solana-only."""

    supply: int | None = None  # raw base units
    decimals: int | None = None
    mint_authority: str | None = None
    freeze_authority: str | None = None
    holder_count: int | None = None
    token_name: str | None = None
    token_symbol: str | None = None
    is_mutable: bool | None = None
    description: str | None = None

    model_config = {"frozen": True}


class SecurityRisk(BaseModel):
    level: RiskLevel
    description: str = ""
    name: str = ""

    model_config = {"frozen": True}


class SecurityReport(BaseModel):
    risk_level: str = "unknown"
    risks: tuple[SecurityRisk, ...] = ()
    score: float | None = None

    model_config = {"frozen": True}

    @property
    def high_risk_count(self) -> int:
        return sum(1 for r in self.risks if r.level == "high")

    @property
    def medium_risk_count(self) -> int:
        return sum(1 for r in self.risks if r.level == "medium")


class SocialLinks(BaseModel):
    website: str | None = None
    x: str | None = None
    telegram: str | None = None

    model_config = {"frozen": True}

    @property
    def count(self) -> int:
        return sum(1 for link in (self.website, self.x, self.telegram) if link)


class Tweet(BaseModel):
    text: str
    author: str = ""
    date: str = ""
    likes: int = 0
    retweets: int = 0
    url: str | None = None

    model_config = {"frozen": True}

    @property
    def engagement(self) -> int:
        return self.likes + 2 * self.retweets


class TweetCollection(BaseModel):
    """Up to five tweets from one lookup. ``no_data`` marks an exhausted mirror list."""

    tweets: tuple[Tweet, ...] = ()
    query: str = ""
    source: str | None = None
    no_data: bool = False

    model_config = {"frozen": True}

    @field_validator("tweets")
    @classmethod
    def _cap(cls, v: tuple[Tweet, ...]) -> tuple[Tweet, ...]:
        return tuple(v[:TWEET_COLLECTION_CAP])

    @classmethod
    def empty(cls, query: str = "") -> "TweetCollection":
        return cls(query=query, no_data=True)


class TelegramMessage(BaseModel):
    text: str = ""
    date: str | None = None

    model_config = {"frozen": True}


class TelegramFeed(BaseModel):
    messages: tuple[TelegramMessage, ...] = ()

    model_config = {"frozen": True}


class WebsiteData(BaseModel):
    url: str
    title: str = ""
    meta_desc: str = ""
    short_text: str = ""
    headings: tuple[str, ...] = ()

    model_config = {"frozen": True}


class TokenSnapshot(BaseModel):
    """Reconciled view of every provider for one address."""

    address: str
    chain: ChainFamily
    token_name: str = UNKNOWN_TOKEN_NAME
    symbol: str = UNKNOWN_SYMBOL
    market: MarketData = MarketData()
    primary_market: MarketData | None = None
    secondary_market: MarketData | None = None
    fundamentals: Fundamentals | None = None
    holder_count: int | None = None
    security: SecurityReport | None = None
    has_security_provider: bool = False
    socials: SocialLinks | None = None
    twitter_data: TweetCollection | None = None
    ticker_tweets: TweetCollection | None = None
    telegram_data: TelegramFeed | None = None
    website_data: WebsiteData | None = None
    sentiment_score: int | None = None
    token_score: int | None = None

    model_config = {"frozen": True}

    @property
    def has_market_data(self) -> bool:
        return self.primary_market is not None or self.secondary_market is not None

    def all_tweets(self) -> list[Tweet]:
        """Ticker-search tweets followed by profile-timeline tweets."""
        tweets: list[Tweet] = []
        for collection in (self.ticker_tweets, self.twitter_data):
            if collection is not None:
                tweets.extend(collection.tweets)
        return tweets
