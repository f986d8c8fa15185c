"""Scan endpoint: one contract address in, full token report out."""

from fastapi import APIRouter, Depends, HTTPException, Request, status
from loguru import logger
from pydantic import BaseModel, Field

from config.settings import settings
from src.api.app import limiter
from src.api.dependencies import get_scanner
from src.scanner.errors import InputValidationError, PrimaryDataUnavailable
from src.scanner.orchestrator import TokenScanner

router = APIRouter(prefix="/api", tags=["scan"])


class ScanRequest(BaseModel):
    contractAddress: str = Field(min_length=1, max_length=128)


@router.post("/scan")
@limiter.limit(settings.scan_rate_limit)
async def scan_token(
    request: Request,
    body: ScanRequest,
    scanner: TokenScanner = Depends(get_scanner),
) -> dict:
    """Run a full scan. 400 on a malformed address, 502 when market data is unavailable."""
    try:
        return await scanner.scan(body.contractAddress)
    except InputValidationError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e)) from e
    except PrimaryDataUnavailable as e:
        logger.error(f"[API] Scan failed for {body.contractAddress[:12]}: {e}")
        raise HTTPException(status_code=status.HTTP_502_BAD_GATEWAY, detail=str(e)) from e
