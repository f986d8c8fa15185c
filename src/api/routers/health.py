"""Health check: process uptime and scan metrics."""

from __future__ import annotations

from fastapi import APIRouter
from pydantic import BaseModel

from src.scanner.metrics import scan_metrics

router = APIRouter(prefix="/api", tags=["health"])


class HealthResponse(BaseModel):
    status: str
    version: str
    uptime_sec: int
    metrics: dict


@router.get("/health", response_model=HealthResponse)
async def health_check() -> HealthResponse:
    summary = scan_metrics.get_summary()
    return HealthResponse(
        status="ok",
        version="0.1.0",
        uptime_sec=summary.get("uptime_sec", 0),
        metrics=summary,
    )
