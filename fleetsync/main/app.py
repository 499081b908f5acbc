"""
Main Application - Main Layer

This module serves as the entry point for the FastAPI application
exposing the health and info endpoints.
"""

from contextlib import asynccontextmanager
from datetime import datetime, timezone

from fastapi import FastAPI

from fleetsync.main.config import get_settings
from fleetsync.main.container import app_lifespan, init_container
from fleetsync.presentation.controllers import system_router
from fleetsync.shared import configure_logging, get_logger, update_logging_from_settings

configure_logging()

settings = get_settings()

update_logging_from_settings(settings)

logger = get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    app.state.started_at = datetime.now(timezone.utc)
    logger.info("app.starting")

    async with app_lifespan() as container:
        app.state.container = container
        yield

    logger.info("app.shutting_down")


def create_app() -> FastAPI:
    """
    Create and configure the FastAPI application.

    Returns:
        FastAPI: The configured FastAPI application
    """
    settings = get_settings()

    init_container(settings)

    app = FastAPI(
        title=settings.app.title,
        description=settings.app.description,
        version=settings.app.version,
        docs_url="/docs",
        redoc_url="/redoc",
        openapi_url="/openapi.json",
        lifespan=lifespan,
    )

    app.include_router(system_router)

    return app


app = create_app()
