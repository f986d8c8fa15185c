"""Project website scrape: title, description, headings and body text.

Three equivalent routes tried in order through ``try_in_order``: the
scraping backend (handles Cloudflare), the allorigins proxy, a direct GET.
"""

import re
from urllib.parse import quote

from bs4 import BeautifulSoup
from loguru import logger

from src.scanner.errors import ScrapeBackendError
from src.scanner.fallback import try_in_order
from src.scanner.html import DirectHtmlClient
from src.scanner.models import WebsiteData
from src.scanner.scrapingbee.client import ScrapingBeeClient

ALLORIGINS_URL = "https://api.allorigins.win/raw?url="
CLOUDFLARE_MARKERS = ("Just a moment", "cf-browser-verification", "Checking your browser")
MIN_BODY_CHARS = 100
MAX_TEXT_CHARS = 2000
MAX_HEADINGS = 10
_TWITTER_RE = re.compile(r"^(https?://)?(www\.)?(x\.com|twitter\.com)", re.IGNORECASE)
_WS_RE = re.compile(r"\s+")


def is_twitter_url(url: str) -> bool:
    return bool(_TWITTER_RE.match(url))


def _meta(soup: BeautifulSoup, *selectors: str) -> str:
    for sel in selectors:
        el = soup.select_one(sel)
        if el is not None and el.get("content"):
            return el["content"].strip()
    return ""


def parse_website(html: str, url: str) -> WebsiteData:
    """Extract page content. Raises ValueError for interstitials and empty pages."""
    if any(marker in html for marker in CLOUDFLARE_MARKERS):
        raise ValueError("Cloudflare challenge page")
    if len(html) < MIN_BODY_CHARS:
        raise ValueError("empty response")

    soup = BeautifulSoup(html, "html.parser")
    for tag in soup.select("script, style, noscript"):
        tag.decompose()

    title = soup.title.get_text(strip=True) if soup.title else ""
    title = title or _meta(soup, 'meta[property="og:title"]')
    meta_desc = _meta(
        soup,
        'meta[name="description"]',
        'meta[property="og:description"]',
        'meta[name="og:description"]',
    )

    container = soup.select_one("article") or soup.select_one("main") or soup.body or soup
    text = _WS_RE.sub(" ", container.get_text(" ")).strip()

    headings = []
    for h in soup.select("h1, h2, h3"):
        heading = h.get_text(" ", strip=True)
        if heading and len(heading) < 200:
            headings.append(heading)

    if not title and not meta_desc and len(text) < MIN_BODY_CHARS:
        raise ValueError("no meaningful content extracted")

    return WebsiteData(
        url=url,
        title=title,
        meta_desc=meta_desc,
        short_text=text[:MAX_TEXT_CHARS],
        headings=tuple(headings[:MAX_HEADINGS]),
    )


class WebsiteScraper:
    def __init__(
        self,
        direct: DirectHtmlClient,
        scrapingbee: ScrapingBeeClient | None = None,
        proxy_timeout: float = 10.0,
        direct_timeout: float = 8.0,
    ) -> None:
        self._direct = direct
        self._scrapingbee = scrapingbee
        self._proxy_timeout = proxy_timeout
        self._direct_timeout = direct_timeout

    async def scrape(self, url: str | None) -> WebsiteData | None:
        if not url:
            return None
        if is_twitter_url(url):
            logger.debug(f"[WEBSITE] {url} is an X profile, not scraping")
            return None
        if not url.startswith(("http://", "https://")):
            url = f"https://{url}"

        async def via_scrapingbee() -> WebsiteData:
            if self._scrapingbee is None or not self._scrapingbee.configured:
                raise ScrapeBackendError("scraping backend not configured")
            return parse_website(await self._scrapingbee.fetch_html(url), url)

        async def via_proxy() -> WebsiteData:
            html = await self._direct.fetch_html(
                f"{ALLORIGINS_URL}{quote(url, safe='')}", timeout=self._proxy_timeout,
            )
            return parse_website(html, url)

        async def direct() -> WebsiteData:
            html = await self._direct.fetch_html(url, timeout=self._direct_timeout)
            return parse_website(html, url)

        result = await try_in_order(
            [via_scrapingbee, via_proxy, direct],
            lambda data: data is not None,
            label="WEBSITE",
            names=["scrapingbee", "allorigins", "direct"],
        )
        if result is None:
            logger.info(f"[WEBSITE] All methods failed for {url}")
        return result
