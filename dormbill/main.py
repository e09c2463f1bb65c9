from __future__ import annotations

from contextlib import asynccontextmanager
from typing import AsyncIterator, Optional

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from dormbill.api.v1.router import router as api_v1_router
from dormbill.config.logging import get_logger, setup_logging
from dormbill.config.settings import Environment, Settings, settings
from dormbill.core.background_tasks import CeleryJobQueue, JobQueue
from dormbill.core.middleware import register_exception_handlers, register_middlewares
from dormbill.core.security import JWTManager
from dormbill.db.init_db import init_db
from dormbill.db.session import Database
from dormbill.services.notification import LineMessagingClient

logger = get_logger(__name__)


def create_app(
    database: Optional[Database] = None,
    job_queue: Optional[JobQueue] = None,
    line_client: Optional[LineMessagingClient] = None,
    config: Settings = settings,
) -> FastAPI:
    """
    Application factory for the FastAPI app.

    - Configures title, version, debug mode from Settings.
    - Registers CORS, core middleware, and exception handlers.
    - Includes the versioned API router under /api/v1.

    Collaborators passed in are owned by the caller; the ones created
    here are closed on shutdown.
    """
    owns_database = database is None
    owns_line_client = line_client is None

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        if config.DB_CREATE_TABLES and config.ENVIRONMENT != Environment.PRODUCTION:
            # For dev/demo only; production schemas are migrated separately
            init_db(app.state.database)
        logger.info(f"{config.APP_NAME} started ({config.ENVIRONMENT.value})")
        yield
        if owns_line_client:
            app.state.line_client.close()
        if owns_database:
            app.state.database.dispose()

    app = FastAPI(
        title=config.APP_NAME,
        debug=config.DEBUG,
        version=config.API_VERSION,
        docs_url="/docs",
        redoc_url="/redoc",
        openapi_url="/openapi.json",
        lifespan=lifespan,
    )

    app.state.database = database or Database.from_settings(config)
    app.state.job_queue = job_queue or CeleryJobQueue()
    app.state.line_client = line_client or LineMessagingClient.from_settings(config)
    app.state.jwt_manager = JWTManager.from_settings(config)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=config.CORS_ORIGINS,
        allow_credentials=config.CORS_ORIGINS != ["*"],
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # Register shared core middlewares (request ID, timing)
    register_middlewares(app)
    register_exception_handlers(app)

    app.include_router(api_v1_router, prefix=config.API_V1_STR)
    return app


def get_application() -> FastAPI:
    """ASGI factory: `uvicorn dormbill.main:get_application --factory`."""
    setup_logging(settings)
    return create_app()
