"""Rugcheck.xyz API client: free contract security analysis for Solana tokens."""

import httpx
from loguru import logger
from pydantic import ValidationError

from src.scanner.errors import ProviderUnavailable
from src.scanner.models import RiskLevel, SecurityReport, SecurityRisk
from src.scanner.providers import BaseProvider, ProviderId
from src.scanner.rugcheck.models import RugcheckReport

BASE_URL = "https://api.rugcheck.xyz/v1"

_LEVEL_MAP: dict[str, RiskLevel] = {"danger": "high", "warn": "medium"}


def normalize_level(level: str | None) -> RiskLevel:
    return _LEVEL_MAP.get((level or "").lower(), "low")


class RugcheckClient(BaseProvider[SecurityReport]):
    """Async HTTP client for Rugcheck.xyz (no API key)."""

    provider_id = ProviderId.RUGCHECK

    def __init__(self, timeout: float = 8.0) -> None:
        super().__init__(timeout)
        self._client = httpx.AsyncClient(timeout=timeout)

    async def close(self) -> None:
        await self._client.aclose()

    async def get_token_report(self, mint: str) -> RugcheckReport | None:
        """Fetch the token security report. None when Rugcheck has no data."""
        resp = await self._client.get(f"{BASE_URL}/tokens/{mint}/report")

        if resp.status_code in (400, 404):
            logger.debug(f"[RUGCHECK] No data available ({resp.status_code}) for {mint[:12]}")
            return None
        if resp.status_code != 200:
            raise ProviderUnavailable(self.provider_id.value, f"HTTP {resp.status_code}")

        try:
            return RugcheckReport.model_validate(resp.json())
        except ValidationError as e:
            raise ProviderUnavailable(self.provider_id.value, "malformed report") from e

    async def _fetch_value(self, address: str) -> SecurityReport | None:
        report = await self.get_token_report(address)
        if report is None:
            return None
        result = _parse_report(report)
        logger.debug(
            f"[RUGCHECK] {len(result.risks)} risks, level={result.risk_level}, score={result.score}"
        )
        return result


def _parse_report(report: RugcheckReport) -> SecurityReport:
    """Normalize Rugcheck's danger/warn/info levels to high/medium/low."""
    risks = tuple(
        SecurityRisk(
            level=normalize_level(r.level),
            description=r.description,
            name=r.name,
        )
        for r in report.risks
    )
    return SecurityReport(
        risk_level=report.riskLevel or "unknown",
        risks=risks,
        score=report.score,
    )
