"""Campus Swap API — FastAPI application entry point.

Invariants:
    - Routes registered explicitly (no auto-discovery)
    - Global error handlers map SwapError -> structured JSON responses
    - CORS configured from settings (not hardcoded)
    - Database initialized on startup via lifespan context manager
"""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from campus_swap.api.error_handlers import register_error_handlers
from campus_swap.api.routes import (
    exchanges, health, messages, moderation, notifications,
)
from campus_swap.config import get_settings
from campus_swap.infrastructure import database
from campus_swap.infrastructure.observability import setup_logging

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Startup/shutdown lifecycle."""
    settings = get_settings()
    setup_logging(settings.log_level, settings.log_format)
    if database.db_manager is None:
        database.init_db(
            settings.database_url,
            pool_size=settings.database_pool_size,
            max_overflow=settings.database_max_overflow,
        )
    logger.info("Campus Swap API started")
    yield
    if database.db_manager is not None:
        await database.db_manager.dispose()
    logger.info("Campus Swap API shutting down")


app = FastAPI(
    title="Campus Swap API", version="1.0.0", lifespan=lifespan,
)

settings = get_settings()
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(health.router)
app.include_router(exchanges.router)
app.include_router(messages.router)
app.include_router(notifications.router)
app.include_router(moderation.router)

register_error_handlers(app)
