"""
studio_authz.api.app

FastAPI app factory for the studio platform.

Responsibilities:
- Build the FastAPI application and register routers, middleware and error handlers.
- Initialize and dispose shared infrastructure (DB engine/session factory).
- Confirm the feature catalog and projection table are loaded before serving.
"""

from __future__ import annotations

from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from fastapi import FastAPI

from studio_authz import __version__
from studio_authz.api.errors import register_error_handlers
from studio_authz.api.routers.health import router as health_router
from studio_authz.api.routers.payments import router as payments_router
from studio_authz.api.routers.sessions import router as sessions_router
from studio_authz.api.routers.subscriptions import router as subscriptions_router
from studio_authz.api.routers.users import router as users_router
from studio_authz.authz.features import CATALOG
from studio_authz.authz.schemas import PROJECTIONS
from studio_authz.db.init_db import init_db
from studio_authz.db.session import create_engine, create_sessionmaker
from studio_authz.observability.logging import configure_logging, get_logger
from studio_authz.observability.middleware import RequestContextMiddleware
from studio_authz.settings import Settings

log = get_logger(__name__)


def create_app(*, settings: Settings) -> FastAPI:
    # Configure structured logging once at process startup (before app serves requests).
    configure_logging(
        service_name=settings.service_name,
        level=settings.log_level,
        json_logs=settings.log_json,
    )

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        # Importing the routers already built and validated both tables.
        log.info(
            "startup",
            env=settings.env,
            features=len(CATALOG),
            projections=len(PROJECTIONS),
        )
        engine = create_engine(settings)
        app.state.engine = engine
        app.state.sessionmaker = create_sessionmaker(engine)
        if settings.env in ("dev", "test"):
            # Dev/test convenience: create tables automatically. Prod should use Alembic migrations.
            await init_db(engine)
        try:
            yield
        finally:
            await engine.dispose()
            log.info("shutdown")

    app = FastAPI(
        title="Studio Platform API",
        version=__version__,
        docs_url="/docs",
        openapi_url="/openapi.json",
        lifespan=lifespan,
    )
    app.state.settings = settings

    app.add_middleware(RequestContextMiddleware)
    register_error_handlers(app)
    app.include_router(health_router, tags=["health"])
    app.include_router(sessions_router)
    app.include_router(users_router)
    app.include_router(subscriptions_router)
    app.include_router(payments_router)

    return app


# --- Module Notes -----------------------------------------------------------
# App composition stays here; authorization decisions live in `authz`, and
# routers only wire them to repositories.
