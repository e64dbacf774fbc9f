from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from typing import TYPE_CHECKING

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from leave_engine.api.health import router as health_router
from leave_engine.api.router import api_router
from leave_engine.config import configure_logging, get_settings
from leave_engine.db import build_engine, build_session_factory
from leave_engine.exceptions import setup_exception_handlers

if TYPE_CHECKING:
    from collections.abc import AsyncIterator

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Build the database engine on startup and dispose it on shutdown."""
    settings = get_settings()
    configure_logging(settings)
    engine = build_engine(settings)
    app.state.session_factory = build_session_factory(engine)
    logger.info("Starting %s v%s [%s]", settings.app_name, settings.app_version, settings.environment)
    try:
        yield
    finally:
        await engine.dispose()
        logger.info("Shutting down %s", settings.app_name)


def create_app() -> FastAPI:
    """Application factory."""
    settings = get_settings()

    application = FastAPI(
        title=settings.app_name,
        version=settings.app_version,
        debug=settings.debug,
        lifespan=lifespan,
        docs_url="/docs" if settings.environment != "production" else None,
        redoc_url="/redoc" if settings.environment != "production" else None,
    )

    application.add_middleware(
        CORSMiddleware,  # ty: ignore[invalid-argument-type]
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    setup_exception_handlers(application)

    application.include_router(health_router)
    application.include_router(api_router)

    return application


app = create_app()
