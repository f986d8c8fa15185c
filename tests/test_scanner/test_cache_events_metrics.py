"""Tests for the result cache, event sink and scan metrics."""

import json
from unittest.mock import AsyncMock

import pytest

from src.scanner.cache import ScanCache
from src.scanner.events import ScanEvent, ScanEventType, emit
from src.scanner.metrics import ScanMetrics


@pytest.mark.asyncio
async def test_cache_save_sets_key_with_ttl():
    cache = ScanCache("redis://localhost:6379/0", ttl_sec=60)
    cache._redis = AsyncMock()

    ok = await cache.save("0xABCdef", {"tokenScore": 42})

    assert ok is True
    cache._redis.set.assert_awaited_once_with(
        "scan:0xabcdef", json.dumps({"tokenScore": 42}), ex=60,
    )


@pytest.mark.asyncio
async def test_cache_save_swallows_errors():
    cache = ScanCache("redis://localhost:6379/0")
    cache._redis = AsyncMock()
    cache._redis.set.side_effect = ConnectionError("redis down")

    assert await cache.save("0xabc", {}) is False


@pytest.mark.asyncio
async def test_cache_close_resets_client():
    cache = ScanCache("redis://localhost:6379/0")
    redis = AsyncMock()
    cache._redis = redis
    await cache.close()
    redis.aclose.assert_awaited_once()
    assert cache._redis is None


@pytest.mark.asyncio
async def test_emit_delivers_event():
    received: list[ScanEvent] = []

    async def sink(event: ScanEvent) -> None:
        received.append(event)

    await emit(sink, ScanEventType.TOKEN_SCORE, 55)

    assert received == [ScanEvent(type=ScanEventType.TOKEN_SCORE, payload=55)]
    assert received[0].type.value == "tokenScore"


@pytest.mark.asyncio
async def test_emit_ignores_missing_or_failing_sink():
    await emit(None, ScanEventType.STATUS, "x")

    async def broken(event: ScanEvent) -> None:
        raise RuntimeError("socket closed")

    await emit(broken, ScanEventType.STATUS, "x")


def test_metrics_summary():
    m = ScanMetrics()
    m.record_started()
    m.record_started()
    m.record_completed(100, has_market=True, has_tweets=True)
    m.record_completed(300, has_market=True)
    m.record_failed()
    m.record_provider_error("rugcheck")
    m.record_provider_error("rugcheck")

    summary = m.get_summary()
    assert summary["total_scans"] == 2
    assert summary["completed"] == 2
    assert summary["failed"] == 1
    assert summary["avg_latency_ms"] == 200
    assert summary["max_latency_ms"] == 300
    assert summary["coverage"]["market"] == 100.0
    assert summary["coverage"]["tweets"] == 50.0
    assert summary["provider_errors"] == {"rugcheck": 2}
    assert "provider_errors=2" in m.format_stats_line()


def test_metrics_empty_coverage():
    assert ScanMetrics().get_summary()["coverage"] == {}
