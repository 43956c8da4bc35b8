"""Church Intake API — FastAPI application entry point.

Invariants:
    - Routes registered explicitly (no auto-discovery)
    - Global error handlers map IntakeError → structured JSON responses
    - CORS configured from settings (not hardcoded)
    - Database initialized on startup via lifespan context manager

Design Decisions:
    - Lifespan context manager owns logging setup and engine disposal
    - Error handlers live in api/error_handlers.py and are registered once here
"""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from church_intake.api.error_handlers import register_error_handlers
from church_intake.api.routes import (
    health, public_registration, registration_review, registration_tokens,
)
from church_intake.config import get_settings
from church_intake.infrastructure import database
from church_intake.infrastructure.observability import setup_logging

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Startup/shutdown lifecycle."""
    settings = get_settings()
    setup_logging(settings.log_level, settings.log_format)
    manager = database.init_db(
        settings.database_url,
        pool_size=settings.database_pool_size,
        max_overflow=settings.database_max_overflow,
    )
    logger.info("Church intake API started")
    yield
    logger.info("Church intake API shutting down")
    await manager.dispose()


app = FastAPI(
    title="Church Intake API", version="1.0.0", lifespan=lifespan,
)

settings = get_settings()
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(health.router)
app.include_router(registration_tokens.router)
app.include_router(public_registration.router)
app.include_router(registration_review.router)

register_error_handlers(app)
