"""Tweet lookups through interchangeable Nitter mirrors.

Two independent lookups share one mirror-fallback routine:
- ticker search: ``/search?f=tweets&q=$TICKER``, filtered to tweets that
  actually mention the ticker
- profile timeline: ``/<username>``, from the project's X link

Per mirror, in order: transport/HTTP failure, rate-limit page, or no
``.timeline-item`` with tweet text moves on to the next mirror. The first
mirror serving structurally valid tweets wins, even if none of them survive
the relevance filter. Exhausting the list yields an empty collection, never
an error.
"""

import re
from dataclasses import dataclass, field
from urllib.parse import quote

from bs4 import BeautifulSoup
from loguru import logger

from src.scanner.errors import ScrapeExhausted
from src.scanner.fallback import try_in_order
from src.scanner.html import HtmlFetcher
from src.scanner.models import UNKNOWN_SYMBOL, Tweet, TweetCollection

RATE_LIMIT_SIGNATURES = ("rate limit", "too many requests")
_STATUS_RE = re.compile(r"/([^/]+)/status/(\d+)")
_DIGITS_RE = re.compile(r"\d[\d,]*")
_PROFILE_RE = re.compile(r"(?:twitter\.com|x\.com)/@?([^/?#]+)", re.IGNORECASE)
_RESERVED_PATHS = {"status", "i", "search", "home", "intent", "share", "hashtag"}


@dataclass
class NitterPage:
    """One mirror's response, parsed but not yet filtered."""

    mirror: str
    tweets: list[Tweet] = field(default_factory=list)
    rate_limited: bool = False
    item_count: int = 0


def is_rate_limited(text: str) -> bool:
    lowered = text.lower()
    return any(sig in lowered for sig in RATE_LIMIT_SIGNATURES)


def _page_is_usable(page: NitterPage) -> bool:
    return not page.rate_limited and len(page.tweets) > 0


def _parse_count(text: str) -> int:
    match = _DIGITS_RE.search(text or "")
    if not match:
        return 0
    try:
        return int(match.group(0).replace(",", ""))
    except ValueError:
        return 0


def _stat(item, icon_class: str) -> int:
    icon = item.select_one(f".{icon_class}")
    if icon is None or icon.parent is None:
        return 0
    return _parse_count(icon.parent.get_text(" ", strip=True))


def parse_timeline(html: str, mirror: str = "", *, username: str | None = None) -> NitterPage:
    """Parse a Nitter search or profile page into tweets."""
    page = NitterPage(mirror=mirror)
    soup = BeautifulSoup(html, "html.parser")
    items = soup.select(".timeline-item")
    page.item_count = len(items)

    for item in items:
        content = item.select_one(".tweet-content")
        text = content.get_text(" ", strip=True) if content else ""
        if not text:
            continue

        author_el = item.select_one("a.username")
        author = author_el.get_text(strip=True).lstrip("@") if author_el else ""

        time_el = item.select_one("time")
        date = time_el.get("datetime", "") if time_el else ""
        if not date:
            date_link = item.select_one(".tweet-date a")
            date = date_link.get("title", "") if date_link else ""

        url = None
        link = item.select_one("a.tweet-link") or item.select_one('a[href*="/status/"]')
        if link is not None:
            match = _STATUS_RE.search(link.get("href", ""))
            if match:
                handle = username or author or match.group(1)
                author = author or match.group(1)
                url = f"https://x.com/{handle}/status/{match.group(2)}"

        page.tweets.append(Tweet(
            text=text,
            author=author or (username or ""),
            date=date,
            likes=_stat(item, "icon-heart"),
            retweets=_stat(item, "icon-retweet"),
            url=url,
        ))

    # Tweet text may itself mention rate limits; only the page chrome counts
    for item in items:
        item.extract()
    page.rate_limited = is_rate_limited(soup.get_text(" "))
    return page


def build_search_query(symbol: str | None, name: str | None) -> str:
    """``$SYMBOL`` when a real symbol is known, else the token name."""
    if symbol and symbol != UNKNOWN_SYMBOL:
        return f"${symbol.strip()}"
    return (name or "").strip()


def extract_username(profile_url: str | None) -> str | None:
    if not profile_url:
        return None
    match = _PROFILE_RE.search(profile_url)
    if not match:
        return None
    username = match.group(1).strip()
    if not username or username.lower() in _RESERVED_PATHS:
        return None
    return username


def mentions_query(tweet: Tweet, query: str) -> bool:
    """Tweet mentions the cashtag, or the bare ticker/name case-insensitively."""
    if not query:
        return False
    if query in tweet.text:
        return True
    bare = query.lstrip("$").lower()
    return bool(bare) and bare in tweet.text.lower()


class NitterClient:
    def __init__(
        self,
        fetch_html: HtmlFetcher,
        search_mirrors: list[str],
        profile_mirrors: list[str],
    ) -> None:
        self._fetch_html = fetch_html
        self._search_mirrors = [m.rstrip("/") for m in search_mirrors]
        self._profile_mirrors = [m.rstrip("/") for m in profile_mirrors]

    async def _fetch_first_valid(
        self,
        urls: list[tuple[str, str]],
        *,
        username: str | None = None,
    ) -> NitterPage:
        """First usable page. Raises ScrapeExhausted when every mirror fails."""

        def make_fetcher(mirror: str, url: str):
            async def fetch() -> NitterPage:
                html = await self._fetch_html(url)
                return parse_timeline(html, mirror, username=username)
            return fetch

        page = await try_in_order(
            [make_fetcher(mirror, url) for mirror, url in urls],
            _page_is_usable,
            label="NITTER",
            names=[mirror for mirror, _ in urls],
        )
        if page is None:
            raise ScrapeExhausted(f"all {len(urls)} mirrors failed")
        return page

    async def search_ticker(self, symbol: str | None, name: str | None = None) -> TweetCollection:
        """Recent tweets mentioning the token's cashtag (or name when no symbol)."""
        query = build_search_query(symbol, name)
        if not query:
            return TweetCollection.empty()

        urls = [
            (mirror, f"{mirror}/search?f=tweets&q={quote(query)}")
            for mirror in self._search_mirrors
        ]
        try:
            page = await self._fetch_first_valid(urls)
        except ScrapeExhausted as e:
            logger.info(f"[NITTER] Search {query}: {e}")
            return TweetCollection.empty(query)

        relevant = [t for t in page.tweets if mentions_query(t, query)]
        logger.debug(
            f"[NITTER] {page.mirror}: {len(relevant)}/{len(page.tweets)} tweets mention {query}"
        )
        return TweetCollection(tweets=tuple(relevant), query=query, source=page.mirror)

    async def get_profile_timeline(self, profile_url: str | None) -> TweetCollection:
        """Latest tweets from the project's own X account."""
        username = extract_username(profile_url)
        if username is None:
            return TweetCollection.empty()

        urls = [(mirror, f"{mirror}/{username}") for mirror in self._profile_mirrors]
        try:
            page = await self._fetch_first_valid(urls, username=username)
        except ScrapeExhausted as e:
            logger.info(f"[NITTER] Profile @{username}: {e}")
            return TweetCollection.empty(username)

        return TweetCollection(tweets=tuple(page.tweets), query=username, source=page.mirror)
