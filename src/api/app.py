"""FastAPI application factory for the scan entrypoint."""

from __future__ import annotations

import os
from contextlib import asynccontextmanager

from fastapi import FastAPI
from slowapi import Limiter, _rate_limit_exceeded_handler
from slowapi.errors import RateLimitExceeded
from slowapi.util import get_remote_address
from starlette.middleware.cors import CORSMiddleware

from src.api.middleware import SecurityHeadersMiddleware

# Rate limiter (shared instance)
limiter = Limiter(key_func=get_remote_address)


def create_app(scanner=None) -> FastAPI:
    """Build the API. Without an injected scanner one is wired from settings at startup."""

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        owned = None
        if getattr(app.state, "scanner", None) is None:
            from config.settings import settings
            from src.scanner.orchestrator import build_scanner

            owned = build_scanner(settings)
            app.state.scanner = owned
        yield
        if owned is not None:
            await owned.close()

    app = FastAPI(
        title="Token Scanner API",
        version="0.1.0",
        docs_url="/api/docs" if os.getenv("SCANNER_DEBUG") else None,
        redoc_url=None,
        openapi_url="/api/openapi.json" if os.getenv("SCANNER_DEBUG") else None,
        lifespan=lifespan,
    )
    app.state.scanner = scanner

    # Rate limiting
    app.state.limiter = limiter
    app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)

    # Security headers
    app.add_middleware(SecurityHeadersMiddleware)

    # CORS: browser frontends call the scan endpoint directly
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_methods=["GET", "POST"],
        allow_headers=["*"],
    )

    from src.api.routers.health import router as health_router
    from src.api.routers.scan import router as scan_router

    app.include_router(health_router)
    app.include_router(scan_router)
    return app
