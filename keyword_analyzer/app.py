from __future__ import annotations

import asyncio
import logging
from contextlib import asynccontextmanager
from pathlib import Path
from typing import AsyncIterator, Awaitable, Callable

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.staticfiles import StaticFiles

from keyword_analyzer import __version__
from keyword_analyzer.application import AnalysisService
from keyword_analyzer.config import Settings
from keyword_analyzer.infrastructure import Oracle
from keyword_analyzer.routes import analysis, health, progress
from keyword_analyzer.utils.logging import setup_logging

logger = logging.getLogger(__name__)

STATIC_DIR = Path(__file__).resolve().parent / "static"


def create_app(
    settings: Settings | None = None,
    *,
    oracle: Oracle | None = None,
    sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    configure_logging: bool = True,
) -> FastAPI:
    settings = settings or Settings.from_env()
    service = AnalysisService(settings, oracle=oracle, sleep=sleep)

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        listener = setup_logging(settings.log_level) if configure_logging else None
        if not settings.openrouter_api_key and oracle is None:
            logger.error("OPENROUTER_API_KEY is not set in environment variables")
        await service.start()
        try:
            yield
        finally:
            await service.stop()
            if listener is not None:
                listener.stop()

    app = FastAPI(title="Keyword Analyzer API", version=__version__, lifespan=lifespan)
    app.state.analysis_service = service
    app.state.settings = settings

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.include_router(analysis.router, prefix="/api")
    app.include_router(progress.router, prefix="/api")
    app.include_router(health.router, prefix="/api")

    app.mount("/", StaticFiles(directory=STATIC_DIR, html=True), name="static")

    return app
