"""Four.meme launchpad lookup: backfills a BNB token's project website.

The launchpad page is rendered client-side, so it goes through the
scraping backend. Best effort: every failure is logged and yields None.
"""

import asyncio
import json
import re
from urllib.parse import urlparse

from bs4 import BeautifulSoup
from loguru import logger

from src.scanner.html import HtmlFetcher

BASE_URL = "https://four.meme"

EXCLUDED_DOMAINS = (
    "twitter.com",
    "x.com",
    "telegram.org",
    "t.me",
    "dexscreener.com",
    "bscscan.com",
    "github.com",
    "discord.com",
    "medium.com",
    "reddit.com",
    "etherscan.io",
    "solscan.io",
    "solana.com",
)
_FOURMEME_RE = re.compile(r"four[.\-]?meme", re.IGNORECASE)
_BARE_DOMAIN_RE = re.compile(r"^https?://[^/]+/?$")
_WEBSITE_HINTS = ("website", "site", "web")


def _absolute(href: str) -> str:
    if href.startswith("/"):
        return f"{BASE_URL}{href}"
    if not href.startswith(("http://", "https://")):
        return f"https://{href}"
    return href


def is_project_url(url: str | None) -> bool:
    """True for an http(s) URL that is not a social, explorer or launchpad link."""
    if not url or not url.startswith(("http://", "https://")):
        return False
    lowered = url.lower()
    if _FOURMEME_RE.search(lowered):
        return False
    host = (urlparse(lowered).hostname or "").removeprefix("www.")
    return not any(host == d or host.endswith(f".{d}") for d in EXCLUDED_DOMAINS)


def extract_website(html: str) -> str | None:
    """Find the project website on a four.meme token page.

    Order: a link labelled as a website, the token-info block, any external
    link (bare domains preferred), then og:url / canonical, then JSON-LD.
    """
    soup = BeautifulSoup(html, "html.parser")
    links = soup.select("a[href]")

    for a in links:
        text = a.get_text(" ", strip=True).lower()
        label = (a.get("aria-label") or "").lower()
        if any(h in text for h in _WEBSITE_HINTS) or any(h in label for h in ("website", "site")):
            url = _absolute(a["href"])
            if is_project_url(url):
                return url

    info = soup.select_one('.bg-darkGray900, [class*="darkGray900"]')
    if info is not None:
        for a in info.select("a[href]"):
            url = _absolute(a["href"])
            if is_project_url(url):
                return url

    candidate = None
    for a in links:
        url = _absolute(a["href"])
        if not is_project_url(url):
            continue
        if candidate is None or _BARE_DOMAIN_RE.match(url):
            candidate = url
    if candidate:
        return candidate

    og = soup.select_one('meta[property="og:url"]')
    canonical = soup.select_one('link[rel="canonical"]')
    for url in ((og or {}).get("content"), (canonical or {}).get("href")):
        if is_project_url(url):
            return url

    for script in soup.select('script[type="application/ld+json"]'):
        try:
            data = json.loads(script.string or "")
        except ValueError:
            continue
        url = data.get("url") if isinstance(data, dict) else None
        if is_project_url(url):
            return url
    return None


class FourMemeClient:
    def __init__(self, fetch_html: HtmlFetcher | None, timeout: float = 10.0) -> None:
        self._fetch_html = fetch_html
        self._timeout = timeout

    async def find_website(self, contract_address: str) -> str | None:
        if self._fetch_html is None:
            logger.debug("[FOURMEME] Scraping backend not configured, skipping")
            return None

        url = f"{BASE_URL}/token/{contract_address}"
        try:
            html = await asyncio.wait_for(self._fetch_html(url), timeout=self._timeout)
        except Exception as e:
            logger.warning(f"[FOURMEME] Fetch failed for {contract_address[:12]}: {type(e).__name__}: {e}")
            return None

        if not html or len(html) < 100:
            logger.debug("[FOURMEME] Empty or invalid response")
            return None

        website = extract_website(html)
        if website:
            logger.info(f"[FOURMEME] Found website {website}")
        else:
            logger.debug(f"[FOURMEME] No website on launchpad page for {contract_address[:12]}")
        return website
