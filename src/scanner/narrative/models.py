"""Request/response shapes for the narrative collaborator."""

from pydantic import BaseModel

from src.scanner.models import TelegramFeed, Tweet, WebsiteData

NARRATIVE_PLACEHOLDER = "Analysis in progress..."
SUMMARY_PLACEHOLDER = "Summary unavailable."
FUNDAMENTALS_PLACEHOLDER = "Fundamentals data unavailable."
HYPE_PLACEHOLDER = "Hype analysis unavailable."


class NarrativeContext(BaseModel):
    """Bounded view of a scan handed to the text generator."""

    contract_address: str
    chain: str
    token_name: str
    symbol: str
    project_summary: str = ""
    price: float | None = None
    liquidity: float | None = None
    volume_24h: float | None = None
    price_change_24h: float | None = None
    market_cap: float | None = None
    holder_count: int | None = None
    risk_count: int | None = None
    social_count: int = 0
    sentiment_score: int | None = None
    token_score: int | None = None
    tweets: list[Tweet] = []
    website: WebsiteData | None = None
    telegram: TelegramFeed | None = None


class NarrativeReport(BaseModel):
    narrative_claim: str = NARRATIVE_PLACEHOLDER
    entities: dict = {}
    verdict: str = "UNVERIFIED"
    verdict_reasoning: str = ""
    confidence: str = "low"
    red_flags: list[str] = []
    summary: str = SUMMARY_PLACEHOLDER
    fundamentals_analysis: str = FUNDAMENTALS_PLACEHOLDER
    hype_analysis: str = HYPE_PLACEHOLDER

    model_config = {"extra": "ignore"}
