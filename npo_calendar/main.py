"""FastAPI application entry point."""

import logging
import os
from contextlib import asynccontextmanager
from typing import AsyncGenerator

from alembic import command
from alembic.config import Config
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from npo_calendar.api import (
    categories_router,
    events_router,
    health_router,
    profiles_router,
)
from npo_calendar.api.errors import register_error_handlers
from npo_calendar.config import get_app_config, get_settings
from npo_calendar.database import SessionLocal
from npo_calendar.services.categories import CategoryService

settings = get_settings()
logging.basicConfig(
    level=settings.log_level.upper(),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)


def run_migrations() -> None:
    """Run alembic migrations on startup."""
    try:
        alembic_cfg = Config("alembic.ini")
        command.upgrade(alembic_cfg, "head")
        logger.info("Database migrations completed successfully")
    except Exception as e:
        logger.error(f"Failed to run migrations: {e}")
        raise


def seed_categories() -> None:
    """Create the categories listed in config.yaml."""
    db = SessionLocal()
    try:
        CategoryService(db).seed_categories(get_app_config().categories)
    finally:
        db.close()


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Application lifespan handler."""
    # Skip migrations and seeding during testing
    if os.environ.get("TESTING") == "1":
        logger.info("Skipping migrations in test mode")
    else:
        run_migrations()
        seed_categories()
    yield


app = FastAPI(
    title="NPO Calendar API",
    description="Event calendar with role-based access and recurring events",
    version="0.1.0",
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],  # In production, restrict to the dashboard origin
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)
register_error_handlers(app)

# Include routers
app.include_router(health_router)
app.include_router(profiles_router)
app.include_router(categories_router)
app.include_router(events_router)


@app.get("/")
def root() -> dict[str, str]:
    """Root endpoint."""
    return {
        "name": "NPO Calendar API",
        "version": "0.1.0",
        "docs": "/docs",
    }
