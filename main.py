"""
Task Manager API: application entry point.
"""

from __future__ import annotations

import logging
import sys
from contextlib import asynccontextmanager
from typing import Optional

import uvicorn
from fastapi import FastAPI

from api.errors import register_exception_handlers
from api.middleware import register_middleware
from api.routes import router as tasks_router
from auth.jwt import TokenService
from auth.routes import router as auth_router
from config.settings import Settings, config
from database.session import Database

logger = logging.getLogger(__name__)


def configure_logging(settings: Settings) -> None:
    logging.basicConfig(
        level=logging.DEBUG if settings.debug else logging.INFO,
        format="%(asctime)s  %(levelname)-8s  %(name)s — %(message)s",
        stream=sys.stdout,
    )
    for _noisy in ("sqlalchemy.engine", "aiosqlite", "asyncio"):
        logging.getLogger(_noisy).setLevel(logging.WARNING)


def create_app(settings: Optional[Settings] = None) -> FastAPI:
    settings = settings or config

    if settings.jwt_secret == Settings.model_fields["jwt_secret"].default:
        logger.warning("JWT_SECRET is the built-in default; set it before deploying")

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        db = Database.from_settings(settings)
        await db.create_all()
        app.state.db = db
        logger.info("Application ready to accept requests.")
        try:
            yield
        finally:
            await db.dispose()
            logger.info("Database connections closed")

    app = FastAPI(
        title="Task Manager API",
        version="1.0.0",
        description="Per-user task management with token authentication.",
        lifespan=lifespan,
    )
    app.state.settings = settings
    app.state.tokens = TokenService.from_settings(settings)

    register_middleware(app, settings)
    register_exception_handlers(app)

    app.include_router(auth_router, prefix="/auth")
    app.include_router(tasks_router, prefix="/tasks")

    @app.get("/health", tags=["health"])
    async def health_check() -> dict:
        return {"status": "ok"}

    return app


configure_logging(config)
app = create_app()

if __name__ == "__main__":
    uvicorn.run(
        "main:app",
        host=config.host,
        port=config.port,
        reload=config.debug,
        log_level="debug" if config.debug else "info",
    )
