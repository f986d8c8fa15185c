"""Composite token score, 1-100.

Additive model from a base of 30, then four hard caps in a fixed order,
then the strong-indicator gate:

1. liquidity below threshold  -> cap 60
2. holders below threshold    -> cap 50
3. any security risk          -> cap 40
4. mint/freeze authority set  -> cap 30 (Solana)

Caps are ceilings only, so applying them twice changes nothing. Scores
above 70 additionally need 4 of the 6 strong indicators.
"""

import math
from dataclasses import dataclass, field

from src.scanner.address import ChainFamily
from src.scanner.models import TokenSnapshot

BASE_SCORE = 30


@dataclass(frozen=True)
class ScoringConfig:
    cap_liquidity_usd: float = 50_000
    cap_liquidity_value: int = 60
    cap_holders: int = 100
    cap_holders_value: int = 50
    cap_risk_value: int = 40
    cap_authority_value: int = 30
    gate_threshold: int = 70
    gate_min_indicators: int = 4

    @classmethod
    def from_settings(cls, settings) -> "ScoringConfig":
        return cls(
            cap_liquidity_usd=settings.score_cap_liquidity_usd,
            cap_liquidity_value=settings.score_cap_liquidity_value,
            cap_holders=settings.score_cap_holders,
            cap_holders_value=settings.score_cap_holders_value,
            cap_risk_value=settings.score_cap_risk_value,
            cap_authority_value=settings.score_cap_authority_value,
            gate_threshold=settings.score_gate_threshold,
            gate_min_indicators=settings.score_gate_min_indicators,
        )


@dataclass
class ScoreBreakdown:
    raw: float = BASE_SCORE
    terms: dict[str, float] = field(default_factory=dict)
    caps_applied: list[str] = field(default_factory=list)
    strong_indicators: int = 0
    final: int = 0

    def add(self, name: str, points: float) -> None:
        self.terms[name] = points
        self.raw += points


def _has_authority(snapshot: TokenSnapshot) -> bool:
    if snapshot.chain is not ChainFamily.SOLANA or snapshot.fundamentals is None:
        return False
    f = snapshot.fundamentals
    return bool(f.mint_authority) or bool(f.freeze_authority)


def _has_risks(snapshot: TokenSnapshot) -> bool:
    return snapshot.security is not None and len(snapshot.security.risks) > 0


def liquidity_points(liquidity: float | None) -> int:
    if liquidity is None:
        return -20
    if liquidity > 1_000_000:
        return 12
    elif liquidity > 500_000:
        return 10
    elif liquidity > 100_000:
        return 8
    elif liquidity > 50_000:
        return 5
    elif liquidity > 10_000:
        return 2
    elif liquidity > 5_000:
        return 1
    return -15


def holder_points(holders: int | None) -> int:
    if holders is None:
        return -8
    if holders > 10_000:
        return 10
    elif holders > 5_000:
        return 8
    elif holders > 1_000:
        return 6
    elif holders > 500:
        return 4
    elif holders > 100:
        return 2
    return -10


def market_cap_points(market_cap: float | None) -> int:
    if market_cap is None:
        return -3
    if market_cap > 10_000_000:
        return 10
    elif market_cap > 1_000_000:
        return 7
    elif market_cap > 500_000:
        return 5
    elif market_cap > 100_000:
        return 3
    elif market_cap > 10_000:
        return 1
    return -5


def security_points(snapshot: TokenSnapshot) -> int:
    security = snapshot.security
    if security is None:
        points = -10 if snapshot.has_security_provider else -5
    elif not security.risks:
        points = 10
    else:
        points = -15 * security.high_risk_count - 8 * security.medium_risk_count

    # Solana mint/freeze authorities, only when fundamentals were fetched
    f = snapshot.fundamentals
    if snapshot.chain is ChainFamily.SOLANA and f is not None:
        if not f.mint_authority and not f.freeze_authority:
            points += 3
        if f.mint_authority:
            points -= 15
        if f.freeze_authority:
            points -= 15
    return points


def social_points(snapshot: TokenSnapshot) -> int:
    if snapshot.socials is None:
        return -8
    return {0: 0, 1: 1, 2: 3}.get(snapshot.socials.count, 5)


def volume_points(volume: float | None) -> int:
    if volume is None:
        return -5
    if volume > 1_000_000:
        return 8
    elif volume > 500_000:
        return 6
    elif volume > 100_000:
        return 4
    elif volume > 50_000:
        return 2
    elif volume > 10_000:
        return 1
    return -5


def sentiment_points(sentiment: int | None) -> float:
    if sentiment is None:
        return -3
    return sentiment / 100 * 8


def apply_caps(
    score: float,
    snapshot: TokenSnapshot,
    config: ScoringConfig,
    applied: list[str] | None = None,
) -> float:
    """Hard ceilings in fixed order. Absent liquidity/holders count as zero."""
    caps = (
        ("liquidity", (snapshot.market.liquidity or 0) < config.cap_liquidity_usd,
         config.cap_liquidity_value),
        ("holders", (snapshot.holder_count or 0) < config.cap_holders,
         config.cap_holders_value),
        ("risk", _has_risks(snapshot), config.cap_risk_value),
        ("authority", _has_authority(snapshot), config.cap_authority_value),
    )
    for name, triggered, ceiling in caps:
        if triggered and score > ceiling:
            score = ceiling
            if applied is not None:
                applied.append(name)
    return score


def count_strong_indicators(snapshot: TokenSnapshot) -> int:
    socials = snapshot.socials
    return sum([
        (snapshot.market.liquidity or 0) > 100_000,
        (snapshot.holder_count or 0) > 1_000,
        not _has_risks(snapshot),
        not _has_authority(snapshot),
        socials is not None and socials.count >= 1,
        (snapshot.market.volume_24h or 0) > 100_000,
    ])


def explain_score(snapshot: TokenSnapshot, config: ScoringConfig | None = None) -> ScoreBreakdown:
    config = config or ScoringConfig()
    b = ScoreBreakdown()

    b.add("liquidity", liquidity_points(snapshot.market.liquidity))
    b.add("holders", holder_points(snapshot.holder_count))
    b.add("market_cap", market_cap_points(snapshot.market.market_cap))
    b.add("security", security_points(snapshot))
    b.add("socials", social_points(snapshot))
    b.add("volume", volume_points(snapshot.market.volume_24h))
    b.add("sentiment", sentiment_points(snapshot.sentiment_score))

    score = apply_caps(b.raw, snapshot, config, b.caps_applied)

    b.strong_indicators = count_strong_indicators(snapshot)
    if score > config.gate_threshold and b.strong_indicators < config.gate_min_indicators:
        score = config.gate_threshold
        b.caps_applied.append("gate")

    score = max(1.0, min(100.0, score))
    b.final = math.floor(score + 0.5)
    return b


def score_token(snapshot: TokenSnapshot, config: ScoringConfig | None = None) -> int:
    return explain_score(snapshot, config).final
