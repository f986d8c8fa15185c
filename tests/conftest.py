"""Shared test fixtures."""

import pytest

from src.scanner.metrics import ScanMetrics


@pytest.fixture
def fresh_metrics(monkeypatch) -> ScanMetrics:
    """Isolated metrics singleton for tests that assert on counters."""
    metrics = ScanMetrics()
    monkeypatch.setattr("src.scanner.providers.scan_metrics", metrics)
    monkeypatch.setattr("src.scanner.orchestrator.scan_metrics", metrics)
    return metrics
