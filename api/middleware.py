"""
App-level HTTP middleware.
"""

from __future__ import annotations

import logging
import time

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware

from config.settings import Settings

logger = logging.getLogger(__name__)

_QUIET_PATHS = frozenset({"/health"})


def register_middleware(app: FastAPI, settings: Settings) -> None:
    """Attach CORS and the request timer."""
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["GET", "POST", "PUT", "DELETE"],
        allow_headers=["Authorization", "Content-Type"],
    )

    @app.middleware("http")
    async def request_timer(request: Request, call_next):
        start = time.perf_counter()
        response = await call_next(request)
        elapsed_ms = (time.perf_counter() - start) * 1000
        response.headers["X-Process-Time"] = f"{elapsed_ms / 1000:.4f}"

        if request.url.path in _QUIET_PATHS:
            return response
        if response.status_code >= 400:
            logger.info(
                "%s %s failed with %d in %.1f ms",
                request.method, request.url.path, response.status_code, elapsed_ms,
            )
        else:
            logger.debug("%s %s in %.1f ms", request.method, request.url.path, elapsed_ms)
        return response
