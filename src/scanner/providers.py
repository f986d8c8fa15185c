"""Common fetcher boundary for every external data provider.

Each provider exposes ``fetch(address) -> ProviderResult``. The boundary runs
the provider's single request under a fixed timeout (cancellation, no retry)
and converts every failure into an absent value. Only a provider marked
``primary`` re-raises, as PrimaryDataUnavailable.
"""

import asyncio
import time
from dataclasses import dataclass
from enum import Enum
from typing import TYPE_CHECKING, Generic, TypeVar

from loguru import logger

from src.scanner.errors import PrimaryDataUnavailable
from src.scanner.metrics import scan_metrics

if TYPE_CHECKING:
    from src.scanner.dexscreener.models import DexMarket
    from src.scanner.fourmeme.client import FourMemeClient
    from src.scanner.models import Fundamentals, MarketData, SecurityReport

T = TypeVar("T")


class ProviderId(str, Enum):
    DEXSCREENER = "dexscreener"
    BIRDEYE = "birdeye"
    RUGCHECK = "rugcheck"
    HELIUS = "helius"
    BSCSCAN = "bscscan"
    BSCSCAN_HOLDERS = "bscscan_holders"
    SOLSCAN = "solscan"


@dataclass(frozen=True)
class ProviderResult(Generic[T]):
    source: ProviderId
    value: T | None = None
    error: str | None = None

    @property
    def ok(self) -> bool:
        return self.value is not None

    @classmethod
    def absent(cls, source: ProviderId, error: str | None = None) -> "ProviderResult[T]":
        return cls(source=source, value=None, error=error)


class BaseProvider(Generic[T]):
    """Template for a single-call provider. Subclasses implement ``_fetch_value``."""

    provider_id: ProviderId
    primary: bool = False

    def __init__(self, timeout: float = 8.0) -> None:
        self._timeout = timeout

    @property
    def tag(self) -> str:
        return self.provider_id.value.upper()

    async def _fetch_value(self, address: str) -> T | None:
        raise NotImplementedError

    async def close(self) -> None:
        pass

    async def fetch(self, address: str) -> ProviderResult[T]:
        start = time.monotonic()
        try:
            value = await asyncio.wait_for(self._fetch_value(address), timeout=self._timeout)
        except asyncio.TimeoutError as e:
            return self._fail(address, f"timeout after {self._timeout}s", start, e)
        except Exception as e:
            return self._fail(address, f"{type(e).__name__}: {e}", start, e)

        duration_ms = (time.monotonic() - start) * 1000
        if value is None:
            logger.debug(f"[{self.tag}] No data for {address[:12]} ({duration_ms:.0f}ms)")
        else:
            logger.debug(f"[{self.tag}] OK for {address[:12]} ({duration_ms:.0f}ms)")
        return ProviderResult(source=self.provider_id, value=value)

    def _fail(self, address: str, reason: str, start: float, exc: BaseException) -> ProviderResult[T]:
        duration_ms = (time.monotonic() - start) * 1000
        scan_metrics.record_provider_error(self.provider_id.value)
        if self.primary:
            logger.error(f"[{self.tag}] Failed after {duration_ms:.0f}ms: {reason}")
            raise PrimaryDataUnavailable(f"Failed to fetch market data: {reason}") from exc
        logger.warning(f"[{self.tag}] Failed after {duration_ms:.0f}ms for {address[:12]}: {reason}")
        return ProviderResult.absent(self.provider_id, reason)


@dataclass(frozen=True)
class ChainProviders:
    """Active provider set for one chain family. ``None`` = chain has no such provider."""

    market: "BaseProvider[DexMarket]"
    secondary_market: "BaseProvider[MarketData] | None" = None
    security: "BaseProvider[SecurityReport] | None" = None
    fundamentals: "BaseProvider[Fundamentals] | None" = None
    holders: "BaseProvider[int] | None" = None
    website_backfill: "FourMemeClient | None" = None
