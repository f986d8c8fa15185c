"""Pydantic models for Rugcheck.xyz API responses."""

from pydantic import BaseModel


class RugcheckRisk(BaseModel):
    """Individual risk detected by Rugcheck."""

    name: str = "unknown"
    description: str = ""
    level: str = "info"  # "danger", "warn", "info"
    score: int = 0

    model_config = {"extra": "ignore"}


class RugcheckReport(BaseModel):
    """Full report from /tokens/{mint}/report."""

    riskLevel: str | None = None
    score: float | None = None
    risks: list[RugcheckRisk] = []

    model_config = {"extra": "ignore"}
