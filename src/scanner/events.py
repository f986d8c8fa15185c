"""Intermediate scan artifacts, emitted as each becomes ready.

The scanner knows nothing about transports: it calls an optional async sink
with ``ScanEvent`` objects. A failing sink is logged and ignored.
"""

from collections.abc import Awaitable, Callable
from enum import Enum
from typing import Any

from loguru import logger
from pydantic import BaseModel


class ScanEventType(str, Enum):
    STATUS = "status"
    TOKEN_INFO = "tokenInfo"
    MARKET_DATA = "marketData"
    SECURITY_DATA = "securityData"
    FUNDAMENTALS = "fundamentals"
    SOCIALS = "socials"
    TWITTER_DATA = "twitterData"
    TICKER_TWEETS = "tickerTweets"
    SENTIMENT_SCORE = "sentimentScore"
    TOKEN_SCORE = "tokenScore"
    NARRATIVE = "narrative"
    COMPLETE = "complete"
    ERROR = "error"


class ScanEvent(BaseModel):
    type: ScanEventType
    payload: Any = None

    model_config = {"frozen": True}


EventSink = Callable[[ScanEvent], Awaitable[None]]


async def emit(sink: EventSink | None, event_type: ScanEventType, payload: Any = None) -> None:
    if sink is None:
        return
    try:
        await sink(ScanEvent(type=event_type, payload=payload))
    except Exception as e:
        logger.warning(f"[EVENTS] Sink failed on {event_type.value}: {type(e).__name__}: {e}")
