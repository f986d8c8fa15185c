"""Public Telegram channel preview (``t.me/s/<channel>``) scraper."""

import re

from bs4 import BeautifulSoup
from loguru import logger

from src.scanner.html import DirectHtmlClient
from src.scanner.models import TelegramFeed, TelegramMessage

MAX_MESSAGES = 10
_TME_RE = re.compile(r"^https?://(?:www\.)?t\.me/(?!s/)", re.IGNORECASE)


def to_public_url(telegram_url: str) -> str:
    """``https://t.me/chan`` -> ``https://t.me/s/chan`` (web preview)."""
    return _TME_RE.sub("https://t.me/s/", telegram_url.strip())


def parse_feed(html: str) -> TelegramFeed:
    soup = BeautifulSoup(html, "html.parser")
    messages = []
    for el in soup.select(".tgme_widget_message")[:MAX_MESSAGES]:
        text_el = el.select_one(".tgme_widget_message_text")
        time_el = el.select_one("time")
        messages.append(TelegramMessage(
            text=text_el.get_text(" ", strip=True) if text_el else "",
            date=time_el.get("datetime") if time_el else None,
        ))
    return TelegramFeed(messages=tuple(messages))


async def get_telegram_feed(client: DirectHtmlClient, telegram_url: str | None) -> TelegramFeed | None:
    if not telegram_url:
        return None

    public_url = to_public_url(telegram_url)
    try:
        html = await client.fetch_html(public_url)
    except Exception as e:
        logger.warning(f"[TELEGRAM] Fetch failed for {public_url}: {type(e).__name__}: {e}")
        return None

    feed = parse_feed(html)
    logger.debug(f"[TELEGRAM] {len(feed.messages)} messages from {public_url}")
    return feed
