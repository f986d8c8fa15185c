"""Tests for the Nitter mirror client."""

import pytest

from src.scanner.errors import ScrapeExhausted
from src.scanner.twitter.nitter import (
    NitterClient,
    build_search_query,
    extract_username,
    parse_timeline,
)

MIRRORS = ["https://nitter.a", "https://nitter.b", "https://nitter.c"]


def _item(text: str, user: str = "alice", status: str = "123", likes: int = 0, rts: int = 0) -> str:
    return f"""
    <div class="timeline-item">
      <a class="tweet-link" href="/{user}/status/{status}#m"></a>
      <a class="username" href="/{user}">@{user}</a>
      <span class="tweet-date"><a href="/{user}/status/{status}" title="Jan 1, 2025 · 10:00 AM UTC">1h</a></span>
      <div class="tweet-content media-body">{text}</div>
      <div class="tweet-stats">
        <span class="tweet-stat"><div class="icon-container"><span class="icon-retweet"></span> {rts}</div></span>
        <span class="tweet-stat"><div class="icon-container"><span class="icon-heart"></span> {likes:,}</div></span>
      </div>
    </div>"""


def _page(*items: str) -> str:
    return f"<html><body><div class='timeline'>{''.join(items)}</div></body></html>"


RATE_LIMITED = "<html><body><h1>Instance has been rate limited.</h1></body></html>"


class _FakeFetcher:
    def __init__(self, responses: dict[str, str | Exception]) -> None:
        self.responses = responses
        self.calls: list[str] = []

    async def __call__(self, url: str) -> str:
        self.calls.append(url)
        for prefix, value in self.responses.items():
            if url.startswith(prefix):
                if isinstance(value, Exception):
                    raise value
                return value
        raise AssertionError(f"unexpected url {url}")


def test_parse_timeline_fields():
    page = parse_timeline(_page(_item("Buying $PEPE now", likes=1200, rts=35)), "https://nitter.a")
    assert page.item_count == 1
    tweet = page.tweets[0]
    assert tweet.text == "Buying $PEPE now"
    assert tweet.author == "alice"
    assert tweet.likes == 1200
    assert tweet.retweets == 35
    assert tweet.url == "https://x.com/alice/status/123"
    assert tweet.date.startswith("Jan 1, 2025")


def test_parse_timeline_skips_items_without_text():
    html = _page("<div class='timeline-item'><div class='tweet-content'></div></div>", _item("gm"))
    page = parse_timeline(html)
    assert page.item_count == 2
    assert [t.text for t in page.tweets] == ["gm"]


def test_build_search_query():
    assert build_search_query("PEPE", "Pepe") == "$PEPE"
    assert build_search_query("???", "Pepe Coin") == "Pepe Coin"
    assert build_search_query(None, None) == ""


@pytest.mark.parametrize("url,expected", [
    ("https://x.com/pepecoin", "pepecoin"),
    ("https://twitter.com/@pepecoin?s=20", "pepecoin"),
    ("https://x.com/i/communities/123", None),
    ("https://example.com/pepe", None),
    (None, None),
])
def test_extract_username(url, expected):
    assert extract_username(url) == expected


@pytest.mark.asyncio
async def test_rate_limited_mirror_falls_through_to_next():
    fetcher = _FakeFetcher({
        "https://nitter.a": RATE_LIMITED,
        "https://nitter.b": _page(_item("$PEPE to the moon"), _item("unrelated chatter", status="9")),
        "https://nitter.c": _page(_item("$PEPE from c")),
    })
    client = NitterClient(fetcher, MIRRORS, MIRRORS)

    result = await client.search_ticker("PEPE", "Pepe")

    assert result.source == "https://nitter.b"
    assert [t.text for t in result.tweets] == ["$PEPE to the moon"]
    assert result.query == "$PEPE"
    assert not any(url.startswith("https://nitter.c") for url in fetcher.calls)
    assert fetcher.calls[0] == "https://nitter.a/search?f=tweets&q=%24PEPE"


@pytest.mark.asyncio
async def test_transport_error_and_empty_page_fall_through():
    fetcher = _FakeFetcher({
        "https://nitter.a": ConnectionError("refused"),
        "https://nitter.b": _page(),
        "https://nitter.c": _page(_item("$PEPE on c")),
    })
    client = NitterClient(fetcher, MIRRORS, MIRRORS)

    result = await client.search_ticker("PEPE")

    assert result.source == "https://nitter.c"
    assert len(result.tweets) == 1


@pytest.mark.asyncio
async def test_first_valid_mirror_wins_even_when_nothing_relevant():
    fetcher = _FakeFetcher({
        "https://nitter.a": _page(_item("nothing to see")),
        "https://nitter.b": _page(_item("$PEPE here")),
    })
    client = NitterClient(fetcher, MIRRORS, MIRRORS)

    result = await client.search_ticker("PEPE")

    assert result.source == "https://nitter.a"
    assert result.tweets == ()
    assert not result.no_data
    assert len(fetcher.calls) == 1


@pytest.mark.asyncio
async def test_all_mirrors_exhausted_is_empty_not_error():
    fetcher = _FakeFetcher({"https://nitter.": RATE_LIMITED})
    client = NitterClient(fetcher, MIRRORS, MIRRORS)

    result = await client.search_ticker("PEPE")

    assert result.no_data
    assert result.tweets == ()
    assert len(fetcher.calls) == 3


@pytest.mark.asyncio
async def test_collection_capped_at_five():
    items = [_item(f"$PEPE #{i}", status=str(i)) for i in range(8)]
    fetcher = _FakeFetcher({"https://nitter.a": _page(*items)})
    client = NitterClient(fetcher, MIRRORS, MIRRORS)

    result = await client.search_ticker("PEPE")

    assert len(result.tweets) == 5


@pytest.mark.asyncio
async def test_profile_timeline_uses_username():
    fetcher = _FakeFetcher({"https://nitter.a": _page(_item("gm frens", user="pepecoin"))})
    client = NitterClient(fetcher, MIRRORS, MIRRORS)

    result = await client.get_profile_timeline("https://x.com/pepecoin")

    assert fetcher.calls == ["https://nitter.a/pepecoin"]
    assert result.query == "pepecoin"
    assert result.tweets[0].url == "https://x.com/pepecoin/status/123"


@pytest.mark.asyncio
async def test_profile_without_username_skips_io():
    fetcher = _FakeFetcher({})
    client = NitterClient(fetcher, MIRRORS, MIRRORS)

    result = await client.get_profile_timeline(None)

    assert result.no_data
    assert fetcher.calls == []


def test_rate_limit_page_detected():
    assert parse_timeline(RATE_LIMITED).rate_limited
    assert parse_timeline("<html><h1>Too Many Requests</h1></html>").rate_limited


@pytest.mark.asyncio
async def test_rate_limit_mentioned_in_tweet_is_not_a_block():
    fetcher = _FakeFetcher({
        "https://nitter.a": _page(_item("$PEPE devs hit the Rate limit on their RPC")),
        "https://nitter.b": _page(_item("$PEPE from b")),
    })
    client = NitterClient(fetcher, MIRRORS, MIRRORS)

    result = await client.search_ticker("PEPE")

    assert result.source == "https://nitter.a"
    assert len(fetcher.calls) == 1


@pytest.mark.asyncio
async def test_exhausted_mirrors_raise_internally():
    fetcher = _FakeFetcher({"https://nitter.": RATE_LIMITED})
    client = NitterClient(fetcher, MIRRORS, MIRRORS)

    with pytest.raises(ScrapeExhausted, match="all 3 mirrors failed"):
        await client._fetch_first_valid([(m, f"{m}/pepe") for m in MIRRORS])
