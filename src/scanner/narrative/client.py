"""Narrative and summary text via OpenRouter chat completions.

The scanner treats everything returned here as opaque text. Each step
falls back to a fixed placeholder on any failure, so a scan never fails
because of this module.
"""

import asyncio
import json

import httpx
from loguru import logger

from src.scanner.errors import CollaboratorError
from src.scanner.models import TokenSnapshot
from src.scanner.narrative.models import NarrativeContext, NarrativeReport

NARRATIVE_TWEET_CAP = 10
VERDICTS = ("CONFIRMED", "PARTIAL", "UNVERIFIED")


def _fmt_usd(value: float | None) -> str:
    if not value:
        return "unknown"
    if value >= 1_000_000:
        return f"${value / 1_000_000:.2f}M"
    return f"${value / 1_000:.0f}K"


def build_project_summary(snapshot: TokenSnapshot) -> str:
    """Plain-language recap of the reconciled snapshot, fed to every prompt."""
    chain = snapshot.chain.display_name
    market = snapshot.market
    if not snapshot.has_market_data:
        summary = f"Token with contract address {snapshot.address} is a {chain}-based token"
        if snapshot.security and snapshot.security.risks:
            summary += f" with {len(snapshot.security.risks)} security risk(s) identified"
        return summary + (
            ". No trading pairs found on decentralized exchanges yet. This token may be very new, "
            "unlaunched, or have no liquidity."
        )

    parts = [f"Token {snapshot.symbol} ({snapshot.token_name}) is a {chain}-based token"]
    if market.liquidity:
        parts.append(f" with {_fmt_usd(market.liquidity)} in liquidity")
    if market.price:
        parts.append(f" trading at ${market.price:.6f}")
    parts.append(".")

    website = snapshot.website_data
    if website and website.title:
        parts.append(f" The project website ({website.url}) indicates: {website.title}")
        if website.meta_desc:
            parts.append(f" - {website.meta_desc[:200]}")
        parts.append(".")

    socials = snapshot.socials
    if socials and socials.count:
        found = []
        if socials.website:
            found.append("a website")
        if socials.x:
            found.append("Twitter/X presence")
        if socials.telegram:
            found.append("Telegram community")
        parts.append(f" The project maintains {', '.join(found)}.")

    if snapshot.security and snapshot.security.risks:
        parts.append(
            f" Security analysis identified {len(snapshot.security.risks)} potential risk factor(s)."
        )
    return "".join(parts)


def build_context(snapshot: TokenSnapshot, tweet_cap: int = NARRATIVE_TWEET_CAP) -> NarrativeContext:
    market = snapshot.market
    return NarrativeContext(
        contract_address=snapshot.address,
        chain=snapshot.chain.display_name,
        token_name=snapshot.token_name,
        symbol=snapshot.symbol,
        project_summary=build_project_summary(snapshot),
        price=market.price,
        liquidity=market.liquidity,
        volume_24h=market.volume_24h,
        price_change_24h=market.price_change_24h,
        market_cap=market.market_cap,
        holder_count=snapshot.holder_count,
        risk_count=len(snapshot.security.risks) if snapshot.security else None,
        social_count=snapshot.socials.count if snapshot.socials else 0,
        sentiment_score=snapshot.sentiment_score,
        token_score=snapshot.token_score,
        tweets=snapshot.all_tweets()[:tweet_cap],
        website=snapshot.website_data,
        telegram=snapshot.telegram_data,
    )


def _context_block(ctx: NarrativeContext) -> str:
    lines = [f"PROJECT SUMMARY:\n{ctx.project_summary}"]
    if ctx.website:
        w = ctx.website
        lines.append(
            f"WEBSITE CONTENT ({w.url}):\nTitle: {w.title or 'No title'}\n"
            f"Description: {w.meta_desc or 'No description'}\n"
            + (f"Key Headings: {'; '.join(w.headings)}\n" if w.headings else "")
            + f"Content: {w.short_text or 'No content available'}"
        )
    if ctx.tweets:
        tweets = "\n".join(
            f'{i}. @{t.author or "unknown"}: "{t.text}" ({t.likes} likes, {t.retweets} retweets)'
            for i, t in enumerate(ctx.tweets, 1)
        )
        lines.append(f"TWITTER/X POSTS ({len(ctx.tweets)} recent posts):\n{tweets}")
    if ctx.telegram and ctx.telegram.messages:
        msgs = "\n".join(f"- {m.text}" for m in ctx.telegram.messages[:5])
        lines.append(f"TELEGRAM MESSAGES:\n{msgs}")
    return "\n\n".join(lines)


def _metrics_block(ctx: NarrativeContext) -> str:
    return (
        f"Token: {ctx.token_name} ({ctx.symbol}) on {ctx.chain}\n"
        f"Token score: {ctx.token_score if ctx.token_score is not None else 'N/A'}/100\n"
        f"Sentiment: {ctx.sentiment_score if ctx.sentiment_score is not None else 'N/A'}/100\n"
        f"Liquidity: {_fmt_usd(ctx.liquidity)}, 24h volume: {_fmt_usd(ctx.volume_24h)}, "
        f"24h change: {ctx.price_change_24h if ctx.price_change_24h is not None else 'N/A'}%\n"
        f"Holders: {ctx.holder_count if ctx.holder_count is not None else 'unknown'}, "
        f"security risks: {ctx.risk_count if ctx.risk_count is not None else 'unknown'}, "
        f"social links: {ctx.social_count}"
    )


def _strip_fences(content: str) -> str:
    content = content.strip()
    if content.startswith("```"):
        content = content.split("\n", 1)[-1]
    if content.endswith("```"):
        content = content.rsplit("```", 1)[0]
    return content.strip()


class NarrativeClient:
    """Token narrative analysis via OpenRouter."""

    BASE_URL = "https://openrouter.ai/api/v1"

    def __init__(self, api_key: str, model: str = "openai/gpt-4o-mini", timeout: float = 30.0) -> None:
        self._api_key = api_key
        self._model = model
        self._client = httpx.AsyncClient(
            base_url=self.BASE_URL,
            timeout=timeout,  # LLM responses can be slow
            headers={
                "Authorization": f"Bearer {api_key}",
                "Content-Type": "application/json",
            },
        )

    async def close(self) -> None:
        await self._client.aclose()

    async def _chat(self, prompt: str, *, max_tokens: int = 500, json_mode: bool = False) -> str:
        if not self._api_key:
            raise CollaboratorError("OPENROUTER_API_KEY is not set")

        body: dict = {
            "model": self._model,
            "messages": [{"role": "user", "content": prompt}],
            "max_tokens": max_tokens,
            "temperature": 0.7,
        }
        if json_mode:
            body["response_format"] = {"type": "json_object"}

        try:
            resp = await self._client.post("/chat/completions", json=body)
        except httpx.RequestError as e:
            raise CollaboratorError(f"{type(e).__name__}: {e}") from e
        if resp.status_code != 200:
            raise CollaboratorError(f"API error: {resp.status_code}")

        try:
            content = (
                resp.json().get("choices", [{}])[0]
                .get("message", {})
                .get("content", "")
            )
        except (ValueError, IndexError, AttributeError) as e:
            raise CollaboratorError(f"malformed completion: {e}") from e
        if not content:
            raise CollaboratorError("empty completion")
        return content.strip()

    async def _chat_json(self, prompt: str, *, max_tokens: int = 500) -> dict:
        content = await self._chat(prompt, max_tokens=max_tokens, json_mode=True)
        try:
            data = json.loads(_strip_fences(content))
        except json.JSONDecodeError as e:
            raise CollaboratorError(f"invalid JSON: {content[:200]}") from e
        if not isinstance(data, dict):
            raise CollaboratorError("JSON response is not an object")
        return data

    async def extract_claim(self, ctx: NarrativeContext) -> tuple[str, dict]:
        prompt = f"""You are a cryptocurrency analyst. Identify the core narrative this token claims.

{_context_block(ctx)}

Respond in this EXACT JSON format (no markdown):
{{"narrative_claim": "1-2 sentences", "entities": {{"people": [], "organizations": [], "events": []}}}}"""
        data = await self._chat_json(prompt, max_tokens=400)
        claim = str(data.get("narrative_claim") or "").strip()
        if not claim:
            raise CollaboratorError("no narrative_claim in response")
        entities = data.get("entities")
        return claim, entities if isinstance(entities, dict) else {}

    async def classify(self, ctx: NarrativeContext, claim: str, entities: dict) -> dict:
        prompt = f"""You are a professional cryptocurrency analyst conducting objective narrative verification.

NARRATIVE CLAIM:
{claim}

PROJECT SUMMARY:
{ctx.project_summary}

ENTITIES IDENTIFIED:
{json.dumps(entities, indent=2)}

Respond in this EXACT JSON format (no markdown):
{{"verdict": "CONFIRMED|PARTIAL|UNVERIFIED", "reasoning": "2-3 sentences", "confidence": "high|medium|low", "redFlags": ["flag1", ...]}}"""
        data = await self._chat_json(prompt, max_tokens=800)
        verdict = str(data.get("verdict") or "").upper()
        if verdict not in VERDICTS:
            raise CollaboratorError(f"invalid verdict: {verdict!r}")
        flags = data.get("redFlags")
        return {
            "verdict": verdict,
            "verdict_reasoning": data.get("reasoning") or "Analysis completed",
            "confidence": data.get("confidence") or "medium",
            "red_flags": [str(f) for f in flags] if isinstance(flags, list) else [],
        }

    async def generate_summary(self, ctx: NarrativeContext, claim: str, verdict: str) -> str:
        return await self._chat(
            f"Write a 2-3 sentence TL;DR for {ctx.token_name}.\n\n"
            f"Narrative: {claim}\nVerdict: {verdict}\n\n{_metrics_block(ctx)}",
            max_tokens=300,
        )

    async def generate_fundamentals(self, ctx: NarrativeContext, verdict: str, reasoning: str) -> str:
        return await self._chat(
            "Assess this token's fundamentals in 3-4 sentences: liquidity depth, holder "
            "distribution, security findings.\n\n"
            f"{_metrics_block(ctx)}\nNarrative verdict: {verdict} ({reasoning})",
            max_tokens=400,
        )

    async def generate_hype(self, ctx: NarrativeContext, claim: str) -> str:
        return await self._chat(
            "Assess the social hype around this token in 3-4 sentences.\n\n"
            f"Narrative: {claim}\n{_metrics_block(ctx)}\n\n{_context_block(ctx)}",
            max_tokens=400,
        )

    async def analyze(self, ctx: NarrativeContext) -> NarrativeReport:
        """Full narrative pass. Never raises; failed steps keep their placeholder."""
        report = NarrativeReport()

        try:
            claim, entities = await self.extract_claim(ctx)
            report = report.model_copy(update={"narrative_claim": claim, "entities": entities})
        except CollaboratorError as e:
            logger.warning(f"[NARRATIVE] Claim extraction failed: {e}")
            return report

        try:
            verdict = await self.classify(ctx, claim, entities)
            report = report.model_copy(update=verdict)
        except CollaboratorError as e:
            logger.warning(f"[NARRATIVE] Classification failed: {e}")

        summary, fundamentals, hype = await asyncio.gather(
            self.generate_summary(ctx, claim, report.verdict),
            self.generate_fundamentals(ctx, report.verdict, report.verdict_reasoning),
            self.generate_hype(ctx, claim),
            return_exceptions=True,
        )
        updates = {}
        for key, value in (
            ("summary", summary),
            ("fundamentals_analysis", fundamentals),
            ("hype_analysis", hype),
        ):
            if isinstance(value, Exception):
                logger.warning(f"[NARRATIVE] {key} failed: {value}")
            else:
                updates[key] = value
        return report.model_copy(update=updates)
