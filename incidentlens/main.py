from contextlib import asynccontextmanager

import structlog
from fastapi import FastAPI
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from starlette.exceptions import HTTPException as StarletteHTTPException

from incidentlens.analytics.router import router as analytics_router
from incidentlens.config import settings
from incidentlens.database import engine
from incidentlens.errors import ConfigurationError, ExternalServiceError
from incidentlens.graphics.models import SavedGraphic  # noqa: F401
from incidentlens.graphics.router import router as graphics_router
from incidentlens.grouping.router import router as grouping_router
from incidentlens.incidents.models import Incident  # noqa: F401
from incidentlens.incidents.router import router as incidents_router
from incidentlens.ingestion.config import build_twitter_config
from incidentlens.ingestion.router import router as ingestion_router
from incidentlens.llm.router import router as llm_router
from incidentlens.middleware.error_handler import (
    ErrorHandlerMiddleware,
    configuration_exception_handler,
    external_service_exception_handler,
    http_exception_handler,
    validation_exception_handler,
)
from incidentlens.middleware.logging import RequestLoggingMiddleware
from incidentlens.models.base import Base
from incidentlens.patterns.models import IncidentPattern, Pattern  # noqa: F401
from incidentlens.patterns.router import router as patterns_router
from incidentlens.solutions.models import Solution  # noqa: F401
from incidentlens.solutions.router import router as solutions_router

structlog.configure(
    processors=[
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_log_level,
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.dev.ConsoleRenderer(),
    ],
    wrapper_class=structlog.stdlib.BoundLogger,
    logger_factory=structlog.PrintLoggerFactory(),
)

logger = structlog.get_logger()


def load_twitter_config(app: FastAPI) -> None:
    """Validate the search API settings once; ingestion routes answer 500 when invalid."""
    try:
        app.state.twitter_config = build_twitter_config(settings)
        app.state.twitter_config_error = None
    except ConfigurationError as exc:
        logger.warning("twitter_config_invalid", error=str(exc))
        app.state.twitter_config = None
        app.state.twitter_config_error = str(exc)


@asynccontextmanager
async def lifespan(app: FastAPI):
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    load_twitter_config(app)
    logger.info("app_started", database=engine.url.get_backend_name())
    yield
    await engine.dispose()


def create_app() -> FastAPI:
    app = FastAPI(
        title="IncidentLens",
        version="0.1.0",
        docs_url="/docs",
        lifespan=lifespan,
    )

    cors_origins = [o.strip() for o in settings.CORS_ORIGINS.split(",") if o.strip()]
    app.add_middleware(
        CORSMiddleware,
        allow_origins=cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.add_middleware(RequestLoggingMiddleware)
    app.add_middleware(ErrorHandlerMiddleware)

    app.add_exception_handler(StarletteHTTPException, http_exception_handler)
    app.add_exception_handler(RequestValidationError, validation_exception_handler)
    app.add_exception_handler(ExternalServiceError, external_service_exception_handler)
    app.add_exception_handler(ConfigurationError, configuration_exception_handler)

    app.include_router(incidents_router, prefix="/api/v1")
    app.include_router(grouping_router, prefix="/api/v1")
    app.include_router(ingestion_router, prefix="/api/v1")
    app.include_router(patterns_router, prefix="/api/v1")
    app.include_router(solutions_router, prefix="/api/v1")
    app.include_router(graphics_router, prefix="/api/v1")
    app.include_router(analytics_router, prefix="/api/v1")
    app.include_router(llm_router, prefix="/api/v1")

    @app.get("/health")
    async def health():
        return {"status": "ok"}

    return app


app = create_app()
