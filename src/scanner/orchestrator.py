"""Token scan pipeline.

classify -> provider fan-out -> reconcile -> social enrichment -> sentiment
-> score -> narrative -> response. Every provider for the address's chain is
started at once and joined with ``return_exceptions=True``; only the primary
market-data failure stops the scan.
"""

import asyncio
import time
from typing import Any

from loguru import logger

from src.scanner.address import Address, ChainFamily, classify_address
from src.scanner.admission import ScrapeAdmissionController
from src.scanner.birdeye.client import BirdeyeClient
from src.scanner.bscscan.client import BscScanApi, BscScanHolders, BscScanTokenInfo
from src.scanner.cache import ScanCache
from src.scanner.dexscreener.client import DexScreenerClient
from src.scanner.errors import PrimaryDataUnavailable
from src.scanner.events import EventSink, ScanEventType, emit
from src.scanner.fourmeme.client import FourMemeClient
from src.scanner.helius.client import HeliusClient
from src.scanner.html import DirectHtmlClient
from src.scanner.metrics import scan_metrics
from src.scanner.models import (
    Fundamentals,
    MarketData,
    SecurityReport,
    SocialLinks,
    TelegramFeed,
    TokenSnapshot,
    TweetCollection,
    WebsiteData,
)
from src.scanner.narrative.client import NarrativeClient, build_context, build_project_summary
from src.scanner.narrative.models import NarrativeReport
from src.scanner.providers import BaseProvider, ChainProviders, ProviderResult
from src.scanner.reconciler import reconcile
from src.scanner.rugcheck.client import RugcheckClient
from src.scanner.scoring import ScoringConfig, explain_score
from src.scanner.scrapingbee.client import ScrapingBeeClient
from src.scanner.sentiment import compute_sentiment, pick_richer_market
from src.scanner.solscan.client import SolscanClient
from src.scanner.telegram_feed import get_telegram_feed
from src.scanner.twitter.nitter import NitterClient
from src.scanner.website import WebsiteScraper


# --- Response assembly (camelCase wire format) ---

def _market_json(m: MarketData) -> dict:
    return {
        "priceUsd": m.price,
        "liquidity": m.liquidity,
        "volume24h": m.volume_24h,
        "priceChange24h": m.price_change_24h,
        "dexUrl": m.dex_url,
        "marketCap": m.market_cap,
        "tradeCount24h": m.trade_count_24h,
        "trendingRank": m.trending_rank,
    }


def _fundamentals_json(f: Fundamentals | None, holder_count: int | None) -> dict:
    f = f or Fundamentals()
    return {
        # Raw supplies exceed 2**53; a string keeps them exact for JS clients
        "supply": str(f.supply) if f.supply is not None else None,
        "decimals": f.decimals,
        "mintAuthority": f.mint_authority,
        "freezeAuthority": f.freeze_authority,
        "holderCount": holder_count,
        "isMutable": f.is_mutable,
        "tokenName": f.token_name,
        "tokenSymbol": f.token_symbol,
        "description": f.description,
    }


def _security_json(s: SecurityReport | None) -> dict | None:
    if s is None:
        return None
    return {
        "riskLevel": s.risk_level,
        "risks": [{"level": r.level, "name": r.name, "description": r.description} for r in s.risks],
        "score": s.score,
    }


def _socials_json(s: SocialLinks | None) -> dict:
    s = s or SocialLinks()
    return {"website": s.website, "x": s.x, "telegram": s.telegram}


def _tweets_json(c: TweetCollection | None) -> dict | None:
    if c is None:
        return None
    return {
        "tweets": [t.model_dump() for t in c.tweets],
        "query": c.query,
        "source": c.source,
        "noData": c.no_data,
    }


def _telegram_json(feed: TelegramFeed | None) -> dict | None:
    if feed is None:
        return None
    messages = [m.model_dump() for m in feed.messages]
    return {
        "messages": messages,
        "recentMessageCount": len(messages),
        "lastMessage": messages[0] if messages else None,
    }


def _website_json(w: WebsiteData | None) -> dict | None:
    if w is None:
        return None
    return {
        "url": w.url,
        "title": w.title,
        "metaDesc": w.meta_desc,
        "shortText": w.short_text,
        "headings": list(w.headings),
    }


def build_response(
    snapshot: TokenSnapshot,
    report: NarrativeReport | None = None,
    project_summary: str = "",
) -> dict[str, Any]:
    report = report or NarrativeReport()
    return {
        "contractAddress": snapshot.address,
        "blockchain": snapshot.chain.value,
        "tokenName": snapshot.token_name,
        "symbol": snapshot.symbol,
        "projectSummary": project_summary,
        "marketData": _market_json(snapshot.market),
        "fundamentals": _fundamentals_json(snapshot.fundamentals, snapshot.holder_count),
        "securityData": _security_json(snapshot.security),
        "socials": _socials_json(snapshot.socials),
        "sentimentScore": snapshot.sentiment_score,
        "tokenScore": snapshot.token_score,
        "twitterData": _tweets_json(snapshot.twitter_data),
        "tickerTweets": _tweets_json(snapshot.ticker_tweets),
        "telegramData": _telegram_json(snapshot.telegram_data),
        "websiteData": _website_json(snapshot.website_data),
        "narrativeClaim": report.narrative_claim,
        "entities": report.entities,
        "verdict": report.verdict,
        "verdictReasoning": report.verdict_reasoning,
        "confidence": report.confidence,
        "redFlags": list(report.red_flags),
        "summary": report.summary,
        "fundamentalsAnalysis": report.fundamentals_analysis,
        "hypeAnalysis": report.hype_analysis,
    }


# --- Scanner ---

class TokenScanner:
    def __init__(
        self,
        providers: dict[ChainFamily, ChainProviders],
        *,
        nitter: NitterClient | None = None,
        website: WebsiteScraper | None = None,
        telegram: DirectHtmlClient | None = None,
        narrative: NarrativeClient | None = None,
        cache: ScanCache | None = None,
        scoring: ScoringConfig | None = None,
        narrative_tweet_cap: int = 10,
        closeables: list | None = None,
    ) -> None:
        self._providers = providers
        self._nitter = nitter
        self._website = website
        self._telegram = telegram
        self._narrative = narrative
        self._cache = cache
        self._scoring = scoring or ScoringConfig()
        self._narrative_tweet_cap = narrative_tweet_cap
        self._closeables = closeables or []
        self._background: set[asyncio.Task] = set()

    async def _fetch_providers(self, address: Address, chain: ChainProviders) -> dict[str, ProviderResult]:
        slots: dict[str, BaseProvider] = {
            name: provider
            for name, provider in (
                ("market", chain.market),
                ("secondary_market", chain.secondary_market),
                ("security", chain.security),
                ("fundamentals", chain.fundamentals),
                ("holders", chain.holders),
            )
            if provider is not None
        }
        outcomes = await asyncio.gather(
            *(p.fetch(address.value) for p in slots.values()),
            return_exceptions=True,
        )

        results: dict[str, ProviderResult] = {}
        for (name, provider), outcome in zip(slots.items(), outcomes):
            if isinstance(outcome, PrimaryDataUnavailable):
                raise outcome
            if isinstance(outcome, BaseException):
                logger.warning(f"[SCAN] {provider.tag} escaped its boundary: {outcome!r}")
                outcome = ProviderResult.absent(provider.provider_id, str(outcome))
            results[name] = outcome
        return results

    async def _enrich_socials(self, snapshot: TokenSnapshot) -> TokenSnapshot:
        socials = snapshot.socials or SocialLinks()
        jobs: dict[str, Any] = {}
        if self._nitter is not None:
            if socials.x:
                jobs["twitter_data"] = self._nitter.get_profile_timeline(socials.x)
            jobs["ticker_tweets"] = self._nitter.search_ticker(snapshot.symbol, snapshot.token_name)
        if self._telegram is not None and socials.telegram:
            jobs["telegram_data"] = get_telegram_feed(self._telegram, socials.telegram)
        if self._website is not None and socials.website:
            jobs["website_data"] = self._website.scrape(socials.website)
        if not jobs:
            return snapshot

        outcomes = await asyncio.gather(*jobs.values(), return_exceptions=True)
        updates = {}
        for name, outcome in zip(jobs, outcomes):
            if isinstance(outcome, BaseException):
                logger.warning(f"[SCAN] Social lookup {name} failed: {outcome!r}")
                continue
            updates[name] = outcome
        return snapshot.model_copy(update=updates)

    async def _narrate(self, snapshot: TokenSnapshot) -> NarrativeReport:
        if self._narrative is None:
            return NarrativeReport()
        try:
            return await self._narrative.analyze(build_context(snapshot, self._narrative_tweet_cap))
        except Exception as e:
            logger.warning(f"[SCAN] Narrative failed: {type(e).__name__}: {e}")
            return NarrativeReport()

    def _save_in_background(self, address: str, result: dict) -> None:
        if self._cache is None:
            return
        task = asyncio.create_task(self._cache.save(address, result))
        self._background.add(task)
        task.add_done_callback(self._background.discard)

    async def scan(self, raw_address: str, sink: EventSink | None = None) -> dict[str, Any]:
        """Run a full scan. Raises InputValidationError or PrimaryDataUnavailable."""
        address = classify_address(raw_address)
        start = time.monotonic()
        scan_metrics.record_started()
        logger.info(f"[SCAN] {address.value} ({address.chain.display_name})")

        try:
            return await self._run(address, sink, start)
        except Exception as e:
            scan_metrics.record_failed()
            if not isinstance(e, PrimaryDataUnavailable):
                logger.error(f"[SCAN] Failed for {address.value[:12]}: {type(e).__name__}: {e}")
            await emit(sink, ScanEventType.ERROR, str(e))
            raise

    async def _run(self, address: Address, sink: EventSink | None, start: float) -> dict[str, Any]:
        chain = self._providers[address.chain]
        await emit(sink, ScanEventType.STATUS, "Fetching market data...")
        results = await self._fetch_providers(address, chain)

        backfill = None
        market = results["market"].value
        if chain.website_backfill is not None and (market is None or not market.socials.website):
            backfill = await chain.website_backfill.find_website(address.value)

        snapshot = reconcile(
            address,
            market=results.get("market"),
            secondary_market=results.get("secondary_market"),
            security=results.get("security"),
            fundamentals=results.get("fundamentals"),
            holders=results.get("holders"),
            has_security_provider=chain.security is not None,
            backfill_website=backfill,
        )
        await emit(sink, ScanEventType.TOKEN_INFO, {
            "tokenName": snapshot.token_name,
            "symbol": snapshot.symbol,
            "blockchain": snapshot.chain.value,
        })
        await emit(sink, ScanEventType.MARKET_DATA, _market_json(snapshot.market))
        await emit(sink, ScanEventType.SECURITY_DATA, _security_json(snapshot.security))
        await emit(sink, ScanEventType.FUNDAMENTALS, _fundamentals_json(snapshot.fundamentals, snapshot.holder_count))
        await emit(sink, ScanEventType.SOCIALS, _socials_json(snapshot.socials))

        await emit(sink, ScanEventType.STATUS, "Fetching social data...")
        snapshot = await self._enrich_socials(snapshot)
        await emit(sink, ScanEventType.TWITTER_DATA, _tweets_json(snapshot.twitter_data))
        await emit(sink, ScanEventType.TICKER_TWEETS, _tweets_json(snapshot.ticker_tweets))

        richer = pick_richer_market(snapshot.primary_market, snapshot.secondary_market)
        sentiment = compute_sentiment(richer, snapshot.all_tweets())
        snapshot = snapshot.model_copy(update={"sentiment_score": sentiment})
        await emit(sink, ScanEventType.SENTIMENT_SCORE, sentiment)

        breakdown = explain_score(snapshot, self._scoring)
        snapshot = snapshot.model_copy(update={"token_score": breakdown.final})
        logger.info(
            f"[SCAN] {snapshot.symbol} score={breakdown.final} raw={breakdown.raw:.1f} "
            f"caps={breakdown.caps_applied or '-'} strong={breakdown.strong_indicators} "
            f"sentiment={sentiment}"
        )
        await emit(sink, ScanEventType.TOKEN_SCORE, breakdown.final)

        await emit(sink, ScanEventType.STATUS, "Analyzing narrative...")
        report = await self._narrate(snapshot)
        await emit(sink, ScanEventType.NARRATIVE, report.model_dump())

        result = build_response(snapshot, report, build_project_summary(snapshot))
        self._save_in_background(address.value, result)

        latency_ms = (time.monotonic() - start) * 1000
        scan_metrics.record_completed(
            latency_ms,
            has_market=snapshot.has_market_data,
            has_security=snapshot.security is not None,
            has_holders=snapshot.holder_count is not None,
            has_sentiment=sentiment is not None,
            has_tweets=bool(snapshot.all_tweets()),
        )
        logger.info(f"[SCAN] Done {address.value[:12]} in {latency_ms:.0f}ms")
        await emit(sink, ScanEventType.COMPLETE, result)
        return result

    async def close(self) -> None:
        if self._background:
            await asyncio.gather(*self._background, return_exceptions=True)
        for resource in self._closeables:
            await resource.close()


def build_scanner(settings) -> TokenScanner:
    """Wire every client from settings."""
    timeout = settings.provider_timeout_sec
    admission = ScrapeAdmissionController(settings.scrape_max_concurrency)
    scrapingbee = ScrapingBeeClient(settings.scrapingbee_api_key, admission, settings.scrape_timeout_sec)
    direct = DirectHtmlClient(timeout)

    async def gated_direct(url: str) -> str:
        async with admission.slot():
            return await direct.fetch_html(url)

    dexscreener = DexScreenerClient(timeout)
    bscscan = BscScanApi(settings.bscscan_api_key, timeout)
    birdeye = None
    if settings.enable_birdeye and settings.birdeye_api_key:
        birdeye = BirdeyeClient(settings.birdeye_api_key, timeout)
    rugcheck = RugcheckClient(timeout)
    helius = HeliusClient(settings.helius_api_key, settings.helius_rpc_url, timeout)
    solscan = SolscanClient(timeout)

    providers = {
        ChainFamily.SOLANA: ChainProviders(
            market=dexscreener,
            secondary_market=birdeye,
            security=rugcheck,
            fundamentals=helius,
            holders=solscan,
        ),
        ChainFamily.BNB: ChainProviders(
            market=dexscreener,
            fundamentals=BscScanTokenInfo(bscscan, timeout),
            holders=BscScanHolders(bscscan, timeout),
            website_backfill=FourMemeClient(
                scrapingbee.fetch_html if scrapingbee.configured else None,
                settings.scrape_timeout_sec,
            ),
        ),
    }

    nitter = website = telegram = None
    if settings.enable_social:
        nitter = NitterClient(
            scrapingbee.fetch_html if scrapingbee.configured else gated_direct,
            settings.nitter_search_mirrors,
            settings.nitter_profile_mirrors,
        )
        website = WebsiteScraper(direct, scrapingbee, settings.scrape_timeout_sec, timeout)
        telegram = direct

    narrative = None
    if settings.enable_narrative:
        narrative = NarrativeClient(settings.openrouter_api_key, settings.llm_model)

    cache = ScanCache(settings.redis_url, settings.cache_ttl_sec) if settings.enable_cache else None

    closeables = [dexscreener, bscscan, rugcheck, helius, solscan, scrapingbee, direct]
    closeables += [c for c in (birdeye, narrative, cache) if c is not None]
    return TokenScanner(
        providers,
        nitter=nitter,
        website=website,
        telegram=telegram,
        narrative=narrative,
        cache=cache,
        scoring=ScoringConfig.from_settings(settings),
        narrative_tweet_cap=settings.narrative_tweet_cap,
        closeables=closeables,
    )
