"""FastAPI dependency injection."""

from __future__ import annotations

from fastapi import HTTPException, Request, status

from src.scanner.orchestrator import TokenScanner


def get_scanner(request: Request) -> TokenScanner:
    scanner = getattr(request.app.state, "scanner", None)
    if scanner is None:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Scanner is not initialised",
        )
    return scanner
