"""Scan latency, field coverage and provider error counters.

Lock-protected counters accumulated over the process lifetime and read by
the health endpoint.
"""

import time
from dataclasses import dataclass, field
from threading import Lock


@dataclass
class ScanCounters:
    total_scans: int = 0
    completed: int = 0
    failed: int = 0
    total_latency_ms: float = 0.0
    max_latency_ms: float = 0.0

    # Coverage: how many completed scans had each field populated
    with_market: int = 0
    with_security: int = 0
    with_holders: int = 0
    with_sentiment: int = 0
    with_tweets: int = 0

    provider_errors: dict[str, int] = field(default_factory=dict)

    @property
    def avg_latency_ms(self) -> float:
        if self.completed == 0:
            return 0.0
        return self.total_latency_ms / self.completed

    @property
    def coverage_pct(self) -> dict[str, float]:
        if self.completed == 0:
            return {}
        n = self.completed
        return {
            "market": self.with_market / n * 100,
            "security": self.with_security / n * 100,
            "holders": self.with_holders / n * 100,
            "sentiment": self.with_sentiment / n * 100,
            "tweets": self.with_tweets / n * 100,
        }


class ScanMetrics:
    def __init__(self) -> None:
        self._lock = Lock()
        self._c = ScanCounters()
        self._start_time: float = time.monotonic()

    def record_started(self) -> None:
        with self._lock:
            self._c.total_scans += 1

    def record_completed(
        self,
        latency_ms: float,
        *,
        has_market: bool = False,
        has_security: bool = False,
        has_holders: bool = False,
        has_sentiment: bool = False,
        has_tweets: bool = False,
    ) -> None:
        with self._lock:
            c = self._c
            c.completed += 1
            c.total_latency_ms += latency_ms
            if latency_ms > c.max_latency_ms:
                c.max_latency_ms = latency_ms
            if has_market:
                c.with_market += 1
            if has_security:
                c.with_security += 1
            if has_holders:
                c.with_holders += 1
            if has_sentiment:
                c.with_sentiment += 1
            if has_tweets:
                c.with_tweets += 1

    def record_failed(self) -> None:
        with self._lock:
            self._c.failed += 1

    def record_provider_error(self, provider: str) -> None:
        with self._lock:
            errors = self._c.provider_errors
            errors[provider] = errors.get(provider, 0) + 1

    def get_summary(self) -> dict:
        with self._lock:
            c = self._c
            uptime = time.monotonic() - self._start_time
            return {
                "uptime_sec": round(uptime),
                "total_scans": c.total_scans,
                "completed": c.completed,
                "failed": c.failed,
                "scans_per_min": round(c.total_scans / max(uptime / 60, 1), 1),
                "avg_latency_ms": round(c.avg_latency_ms),
                "max_latency_ms": round(c.max_latency_ms),
                "coverage": c.coverage_pct,
                "provider_errors": dict(c.provider_errors),
            }

    def format_stats_line(self) -> str:
        with self._lock:
            c = self._c
            total_errors = sum(c.provider_errors.values())
            return (
                f"scans={c.total_scans} ok={c.completed} failed={c.failed} "
                f"avg_lat={c.avg_latency_ms:.0f}ms "
                f"provider_errors={total_errors}"
            )


# Process-wide singleton, read by the health endpoint
scan_metrics = ScanMetrics()
