"""End-to-end scan tests with in-memory providers."""

import asyncio
from unittest.mock import AsyncMock, MagicMock

import pytest

from src.scanner.address import ChainFamily
from src.scanner.dexscreener.models import DexMarket
from src.scanner.errors import InputValidationError, PrimaryDataUnavailable, ProviderUnavailable
from src.scanner.events import ScanEvent, ScanEventType
from src.scanner.models import (
    Fundamentals,
    MarketData,
    SecurityReport,
    SecurityRisk,
    SocialLinks,
    Tweet,
    TweetCollection,
)
from src.scanner.narrative.models import NARRATIVE_PLACEHOLDER, NarrativeReport
from src.scanner.orchestrator import TokenScanner
from src.scanner.providers import BaseProvider, ChainProviders, ProviderId

SOL = "EPjFWdd5AufqSSqeM2qN1xzybapC8G4wEGGkZwyTDt1v"
BNB = "0x2170Ed0880ac9A755fd29B2688956BD959F933F8"


class _Fake(BaseProvider):
    """Returns a fixed value, or raises ``error``. Records whether it ran."""

    def __init__(self, provider_id: ProviderId, value=None, error: Exception | None = None,
                 primary: bool = False, delay: float = 0.0) -> None:
        super().__init__(timeout=1.0)
        self.provider_id = provider_id
        self.primary = primary
        self._value = value
        self._error = error
        self._delay = delay
        self.called = False

    async def _fetch_value(self, address: str):
        self.called = True
        if self._delay:
            await asyncio.sleep(self._delay)
        if self._error is not None:
            raise self._error
        return self._value


def _dex(**socials) -> DexMarket:
    return DexMarket(
        token_name="Pepe",
        symbol="PEPE",
        market=MarketData(
            price=0.002, liquidity=120_000, volume_24h=300_000,
            price_change_24h=12.0, dex_url="https://dexscreener.com/solana/pepe",
        ),
        socials=SocialLinks(**socials),
    )


def _solana_providers(market=None, security=None, fundamentals=None, holders=None) -> ChainProviders:
    return ChainProviders(
        market=market or _Fake(ProviderId.DEXSCREENER, _dex(), primary=True),
        security=security or _Fake(ProviderId.RUGCHECK, SecurityReport(risk_level="good")),
        fundamentals=fundamentals or _Fake(
            ProviderId.HELIUS, Fundamentals(supply=10**15, decimals=6),
        ),
        holders=holders or _Fake(ProviderId.SOLSCAN, 2500),
    )


def _scanner(providers: ChainProviders, **kwargs) -> TokenScanner:
    return TokenScanner({ChainFamily.SOLANA: providers, ChainFamily.BNB: providers}, **kwargs)


@pytest.mark.asyncio
async def test_full_scan_response_shape():
    scanner = _scanner(_solana_providers())

    result = await scanner.scan(f"  {SOL}  ")

    assert result["contractAddress"] == SOL
    assert result["blockchain"] == "solana"
    assert result["tokenName"] == "Pepe"
    assert result["symbol"] == "PEPE"
    assert result["marketData"]["priceUsd"] == 0.002
    # 10**15 raw / 10**6 * 0.002
    assert result["marketData"]["marketCap"] == pytest.approx(2_000_000)
    assert result["fundamentals"]["supply"] == str(10**15)
    assert result["fundamentals"]["holderCount"] == 2500
    assert result["securityData"]["riskLevel"] == "good"
    assert 1 <= result["tokenScore"] <= 100
    assert result["sentimentScore"] is not None
    assert result["narrativeClaim"] == NARRATIVE_PLACEHOLDER
    assert result["projectSummary"].startswith("Token PEPE (Pepe)")
    await scanner.close()


@pytest.mark.asyncio
async def test_invalid_address_does_no_io():
    market = _Fake(ProviderId.DEXSCREENER, _dex(), primary=True)
    scanner = _scanner(_solana_providers(market=market))

    with pytest.raises(InputValidationError):
        await scanner.scan("not-an-address")
    assert not market.called


@pytest.mark.asyncio
async def test_primary_failure_propagates_after_others_ran():
    security = _Fake(ProviderId.RUGCHECK, SecurityReport(), delay=0.01)
    holders = _Fake(ProviderId.SOLSCAN, 10, delay=0.01)
    market = _Fake(
        ProviderId.DEXSCREENER, error=ProviderUnavailable("dexscreener", "HTTP 500"), primary=True,
    )
    events: list[ScanEvent] = []

    async def sink(event: ScanEvent) -> None:
        events.append(event)

    scanner = _scanner(_solana_providers(market=market, security=security, holders=holders))
    with pytest.raises(PrimaryDataUnavailable):
        await scanner.scan(SOL, sink)

    assert security.called and holders.called
    assert events[-1].type is ScanEventType.ERROR


@pytest.mark.asyncio
async def test_enrichment_failures_do_not_fail_scan():
    scanner = _scanner(_solana_providers(
        security=_Fake(ProviderId.RUGCHECK, error=RuntimeError("boom")),
        fundamentals=_Fake(ProviderId.HELIUS, error=ProviderUnavailable("helius", "HTTP 500")),
        holders=_Fake(ProviderId.SOLSCAN, error=TimeoutError()),
    ))

    result = await scanner.scan(SOL)

    assert result["securityData"] is None
    assert result["fundamentals"]["holderCount"] is None
    assert result["marketData"]["marketCap"] is None
    assert result["tokenScore"] is not None


@pytest.mark.asyncio
async def test_unlisted_token_still_scores():
    scanner = _scanner(_solana_providers(market=_Fake(ProviderId.DEXSCREENER, None, primary=True)))

    result = await scanner.scan(SOL)

    assert result["tokenName"] == "Unknown Token"
    assert result["symbol"] == "???"
    assert result["marketData"]["priceUsd"] is None
    assert "No trading pairs found" in result["projectSummary"]
    assert 1 <= result["tokenScore"] <= 100


@pytest.mark.asyncio
async def test_events_emitted_in_order():
    events: list[ScanEvent] = []

    async def sink(event: ScanEvent) -> None:
        events.append(event)

    scanner = _scanner(_solana_providers())
    result = await scanner.scan(SOL, sink)

    types = [e.type for e in events if e.type is not ScanEventType.STATUS]
    assert types == [
        ScanEventType.TOKEN_INFO,
        ScanEventType.MARKET_DATA,
        ScanEventType.SECURITY_DATA,
        ScanEventType.FUNDAMENTALS,
        ScanEventType.SOCIALS,
        ScanEventType.TWITTER_DATA,
        ScanEventType.TICKER_TWEETS,
        ScanEventType.SENTIMENT_SCORE,
        ScanEventType.TOKEN_SCORE,
        ScanEventType.NARRATIVE,
        ScanEventType.COMPLETE,
    ]
    assert events[-1].payload == result


@pytest.mark.asyncio
async def test_failing_sink_does_not_break_scan():
    async def sink(event: ScanEvent) -> None:
        raise ConnectionResetError("client went away")

    result = await _scanner(_solana_providers()).scan(SOL, sink)
    assert result["tokenScore"] is not None


@pytest.mark.asyncio
async def test_social_enrichment_and_narrative():
    nitter = MagicMock()
    nitter.get_profile_timeline = AsyncMock(return_value=TweetCollection(
        tweets=(Tweet(text="gm from the team", likes=50),), query="pepe", source="https://nitter.a",
    ))
    nitter.search_ticker = AsyncMock(return_value=TweetCollection(
        tweets=(Tweet(text="$PEPE pumping", likes=500, retweets=100),), query="$PEPE",
    ))
    website = MagicMock()
    website.scrape = AsyncMock(side_effect=RuntimeError("scrape crashed"))
    narrative = MagicMock()
    narrative.analyze = AsyncMock(return_value=NarrativeReport(
        narrative_claim="Frog meme.", verdict="CONFIRMED", summary="All good.",
    ))

    providers = _solana_providers(market=_Fake(
        ProviderId.DEXSCREENER, _dex(x="https://x.com/pepe", website="https://pepe.io"), primary=True,
    ))
    scanner = _scanner(providers, nitter=nitter, website=website, narrative=narrative, narrative_tweet_cap=1)

    result = await scanner.scan(SOL)

    nitter.get_profile_timeline.assert_awaited_once_with("https://x.com/pepe")
    nitter.search_ticker.assert_awaited_once_with("PEPE", "Pepe")
    assert result["twitterData"]["tweets"][0]["text"] == "gm from the team"
    assert result["tickerTweets"]["query"] == "$PEPE"
    assert result["websiteData"] is None
    assert result["narrativeClaim"] == "Frog meme."
    assert result["verdict"] == "CONFIRMED"

    ctx = narrative.analyze.call_args.args[0]
    assert [t.text for t in ctx.tweets] == ["$PEPE pumping"]


@pytest.mark.asyncio
async def test_no_x_link_skips_profile_lookup():
    nitter = MagicMock()
    nitter.get_profile_timeline = AsyncMock()
    nitter.search_ticker = AsyncMock(return_value=TweetCollection.empty("$PEPE"))

    result = await _scanner(_solana_providers(), nitter=nitter).scan(SOL)

    nitter.get_profile_timeline.assert_not_awaited()
    assert result["twitterData"] is None
    assert result["tickerTweets"]["noData"] is True


@pytest.mark.asyncio
async def test_bnb_website_backfill():
    backfill = MagicMock()
    backfill.find_website = AsyncMock(return_value="https://pepe.io")
    providers = ChainProviders(
        market=_Fake(ProviderId.DEXSCREENER, _dex(), primary=True),
        fundamentals=_Fake(ProviderId.BSCSCAN, Fundamentals(supply=10**27, decimals=18)),
        holders=_Fake(ProviderId.BSCSCAN_HOLDERS, 800),
        website_backfill=backfill,
    )

    result = await _scanner(providers).scan(BNB)

    backfill.find_website.assert_awaited_once_with(BNB)
    assert result["blockchain"] == "bnb"
    assert result["socials"]["website"] == "https://pepe.io"
    assert result["securityData"] is None
    assert result["fundamentals"]["mintAuthority"] is None


@pytest.mark.asyncio
async def test_cache_save_is_fire_and_forget():
    saved = asyncio.Event()
    cache = MagicMock()

    async def save(address, result):
        await asyncio.sleep(0.01)
        saved.set()
        return True

    cache.save = AsyncMock(side_effect=save)
    scanner = _scanner(_solana_providers(), cache=cache)

    result = await scanner.scan(SOL)
    assert not saved.is_set()

    await scanner.close()
    assert saved.is_set()
    cache.save.assert_awaited_once_with(SOL, result)


@pytest.mark.asyncio
async def test_close_closes_resources():
    resource = MagicMock()
    resource.close = AsyncMock()
    scanner = _scanner(_solana_providers(), closeables=[resource])
    await scanner.close()
    resource.close.assert_awaited_once()


@pytest.mark.asyncio
async def test_scan_metrics_recorded(fresh_metrics):
    scanner = _scanner(_solana_providers(
        security=_Fake(ProviderId.RUGCHECK, error=RuntimeError("boom")),
    ))
    await scanner.scan(SOL)

    failing = _scanner(_solana_providers(
        market=_Fake(ProviderId.DEXSCREENER, error=RuntimeError("down"), primary=True),
    ))
    with pytest.raises(PrimaryDataUnavailable):
        await failing.scan(SOL)

    summary = fresh_metrics.get_summary()
    assert summary["total_scans"] == 2
    assert summary["completed"] == 1
    assert summary["failed"] == 1
    assert summary["coverage"]["market"] == 100.0
    assert summary["coverage"]["security"] == 0.0
    assert summary["provider_errors"] == {"rugcheck": 1, "dexscreener": 1}


@pytest.mark.asyncio
async def test_unexpected_failure_counted_as_failed(fresh_metrics):
    backfill = MagicMock()
    backfill.find_website = AsyncMock(side_effect=RuntimeError("launchpad parser bug"))
    providers = ChainProviders(
        market=_Fake(ProviderId.DEXSCREENER, _dex(), primary=True),
        website_backfill=backfill,
    )
    events: list[ScanEvent] = []

    async def sink(event: ScanEvent) -> None:
        events.append(event)

    with pytest.raises(RuntimeError):
        await _scanner(providers).scan(BNB, sink)

    summary = fresh_metrics.get_summary()
    assert summary["total_scans"] == 1
    assert summary["failed"] == 1
    assert summary["completed"] == 0
    assert events[-1].type is ScanEventType.ERROR
    assert events[-1].payload == "launchpad parser bug"
