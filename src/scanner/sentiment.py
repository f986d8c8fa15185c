"""Social + market sentiment, 0-100.

Weights: price momentum 25%, volume 25%, social activity 50%. Returns None
when there is neither a market signal nor a single tweet.
"""

import math

from src.scanner.models import MarketData, Tweet

HIGH_ENGAGEMENT = 50


def pick_richer_market(primary: MarketData | None, secondary: MarketData | None) -> MarketData | None:
    """Source with more of {24h change, 24h volume} populated; ties go to ``secondary``."""
    if primary is None or secondary is None:
        return secondary or primary

    def filled(m: MarketData) -> int:
        return (m.price_change_24h is not None) + (m.volume_24h is not None)

    return primary if filled(primary) > filled(secondary) else secondary


def _round_half_up(x: float) -> int:
    return math.floor(x + 0.5)


def price_score(price_change: float) -> float:
    if price_change == 0:
        return 0.5
    score = max(0.0, min(1.0, (price_change + 30) / 60))
    if price_change > 10:
        score = min(1.0, score + 0.1)
    return score


def volume_score(volume: float) -> float:
    if volume <= 0:
        return 0.3
    return max(0.2, min(1.0, math.log10(volume) / 7))


def social_score(tweets: list[Tweet]) -> float:
    if not tweets:
        return 0.0
    total = len(tweets)
    avg_engagement = sum(t.engagement for t in tweets) / total
    viral = sum(1 for t in tweets if t.engagement > HIGH_ENGAGEMENT)

    count_part = min(0.3, total * 0.03)
    engagement_part = min(0.4, math.log10(avg_engagement + 1) / 3)
    viral_part = min(0.3, viral * 0.06)
    return count_part + engagement_part + viral_part


def compute_sentiment(market: MarketData | None, tweets: list[Tweet]) -> int | None:
    """Sentiment in [0, 100], or None when there is nothing to judge."""
    if market is None and not tweets:
        return None

    price_change = 0.0
    volume = 0.0
    if market is not None:
        price_change = market.price_change_24h or 0.0
        volume = market.volume_24h or 0.0

    weighted = (
        0.25 * price_score(price_change)
        + 0.25 * volume_score(volume)
        + 0.5 * social_score(tweets)
    )
    result = _round_half_up(weighted * 100)

    # Activity floors
    if tweets:
        viral = sum(1 for t in tweets if t.engagement > HIGH_ENGAGEMENT)
        if viral >= 3:
            result = max(result, 55)
        elif len(tweets) >= 5:
            result = max(result, 40)
        else:
            result = max(result, 30)

    return max(0, min(100, result))
