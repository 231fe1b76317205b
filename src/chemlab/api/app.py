"""FastAPI application for the ChemLab backend."""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from chemlab.api.registry import SessionRegistry
from chemlab.api.routes import api_router
from chemlab.config import Settings, configure_logging, get_settings
from chemlab.errors import (
    ChemLabError,
    ConcurrentMixError,
    NotFoundError,
    RepositoryError,
)
from chemlab.persistence import (
    SQLiteExperimentRepository,
    SQLiteSubmissionRepository,
    connect,
    ensure_schema,
    seed_demo_data,
)

logger = logging.getLogger(__name__)


def create_app(settings: Settings | None = None) -> FastAPI:
    settings = settings or get_settings()

    connection = connect(settings.database_path)
    ensure_schema(connection)
    if settings.seed_demo_data:
        seed_demo_data(connection)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        yield
        app.state.sessions.close_all()
        connection.close()
        logger.info("Database connection closed")

    app = FastAPI(title="Chemistry Lab Simulator API", lifespan=lifespan)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.state.settings = settings
    app.state.connection = connection
    app.state.experiments = SQLiteExperimentRepository(connection)
    app.state.submissions = SQLiteSubmissionRepository(connection)
    app.state.sessions = SessionRegistry(
        settle_seconds=settings.settle_seconds,
        idle_seconds=settings.session_idle_seconds,
        max_sessions=settings.max_sessions,
    )

    _register_error_handlers(app)
    app.include_router(api_router)

    @app.get("/")
    async def home():
        return {"message": "Welcome to Chemistry Lab Simulator API"}

    return app


def _register_error_handlers(app: FastAPI) -> None:
    # Handlers are matched on the most specific exception class.

    @app.exception_handler(NotFoundError)
    async def not_found(request: Request, exc: NotFoundError):
        return JSONResponse(status_code=404, content={"error": str(exc)})

    @app.exception_handler(RepositoryError)
    async def repository_failure(request: Request, exc: RepositoryError):
        logger.error("Repository error on %s: %s", request.url.path, exc)
        return JSONResponse(status_code=500, content={"error": str(exc)})

    @app.exception_handler(ConcurrentMixError)
    async def concurrent_mix(request: Request, exc: ConcurrentMixError):
        return JSONResponse(status_code=409, content={"error": str(exc)})

    @app.exception_handler(ChemLabError)
    async def chemlab_error(request: Request, exc: ChemLabError):
        return JSONResponse(status_code=422, content={"error": str(exc)})


def main() -> FastAPI:
    """Application factory for ``uvicorn --factory chemlab.api.app:main``."""
    settings = get_settings()
    configure_logging(settings.log_level)
    return create_app(settings)
