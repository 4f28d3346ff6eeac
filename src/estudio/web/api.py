"""FastAPI application factory.

Main entry point for the estudio Web API.
"""

from contextlib import asynccontextmanager
from typing import AsyncGenerator

import structlog
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from estudio import __version__
from estudio.config.app_config import load_app_config, resolve_db_path, resolve_sets_dir
from estudio.core.progress_store import ProgressStore
from estudio.db import question_sets_repository
from estudio.db.database import init_db
from estudio.web.routes import (
    health_router,
    progress_router,
    sets_router,
    stats_router,
)

logger = structlog.get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Lifespan context manager for startup/shutdown events."""
    # Startup
    init_db(app.state.db_path)
    sets = question_sets_repository.list_question_sets(app.state.sets_dir)
    logger.info(
        "api_startup",
        sets_found=len(sets),
        sets_dir=str(app.state.sets_dir.absolute()),
        set_ids=[s.set_id for s in sets],
    )
    yield
    # Shutdown (nothing to do for now)


def create_app() -> FastAPI:
    """Create and configure the FastAPI application.

    Attaches the database path, a ProgressStore and the built-in sets
    directory to app.state. The database is opened on startup.

    Returns:
        Configured FastAPI app instance
    """
    config = load_app_config()

    app = FastAPI(
        title="Estudio API",
        description="Web API for flashcard study progress",
        version=__version__,
        docs_url="/docs",
        redoc_url="/redoc",
        lifespan=lifespan,
    )

    app.state.db_path = resolve_db_path(config)
    app.state.store = ProgressStore()
    app.state.sets_dir = resolve_sets_dir(config)

    # CORS middleware for web clients
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.include_router(health_router)
    app.include_router(sets_router)
    app.include_router(progress_router)
    app.include_router(stats_router)

    return app


# Default app instance for uvicorn
app = create_app()
