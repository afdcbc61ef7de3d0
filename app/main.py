import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI

from app.api.v1.router import api_router
from app.core.config import get_settings
from app.core.database import Database
from app.core.exceptions import register_exception_handlers

settings = get_settings()

logger = logging.getLogger(__name__)


def configure_logging(level: str) -> None:
    logging.basicConfig(
        level=level.upper(),
        format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
    )


def create_app(database: Database | None = None) -> FastAPI:
    """
    Build the application.

    Pass `database` to run against an existing store (tests); otherwise one
    is created from settings on startup and disposed on shutdown.
    """

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        owned = database is None
        db = database or Database(settings.database_url, echo=settings.sql_echo)
        if owned and settings.auto_create_tables:
            db.create_all()
        app.state.database = db
        logger.info("Database ready (%s)", db.engine.url.render_as_string(hide_password=True))
        try:
            yield
        finally:
            if owned:
                db.dispose()

    app = FastAPI(
        title=settings.app_name,
        lifespan=lifespan,
    )

    if database is not None:
        # Available without entering the lifespan (plain TestClient usage)
        app.state.database = database

    register_exception_handlers(app)

    @app.get("/health", tags=["health"])
    async def root_health() -> dict:
        """
        Global health check endpoint.
        """
        return {"status": "ok"}

    # Mount versioned API router
    app.include_router(api_router, prefix=settings.api_v1_prefix)
    return app


configure_logging(settings.log_level)
app = create_app()
