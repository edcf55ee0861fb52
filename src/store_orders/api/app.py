"""
store_orders.api.app

FastAPI app factory for the Identity and Order services.

Responsibilities:
- Build the FastAPI application and register routers/middleware.
- Initialize and dispose shared infrastructure (DB engine/session factory).
- Bind the app to the Settings it was created with.
"""

from __future__ import annotations

from fastapi import FastAPI

from store_orders import __version__
from store_orders.api.routers.auth import router as auth_router
from store_orders.api.routers.health import router as health_router
from store_orders.api.routers.orders import router as orders_router
from store_orders.api.routers.products import router as products_router
from store_orders.db.init_db import init_db
from store_orders.db.session import create_engine, create_sessionmaker
from store_orders.observability.logging import configure_logging, get_logger
from store_orders.observability.middleware import RequestContextMiddleware
from store_orders.settings import Settings, get_settings

log = get_logger(__name__)


def create_app(*, settings: Settings) -> FastAPI:
    configure_logging(
        service_name=settings.service_name, level=settings.log_level, json=settings.log_json
    )

    app = FastAPI(
        title="Store Orders",
        version=__version__,
        docs_url="/docs",
        openapi_url="/openapi.json",
    )
    app.state.settings = settings
    # Routers depend on get_settings; serve this instance's settings, not the env-cached ones.
    app.dependency_overrides[get_settings] = lambda: settings

    app.add_middleware(RequestContextMiddleware)
    app.include_router(health_router, tags=["health"])
    app.include_router(auth_router)
    app.include_router(products_router)
    app.include_router(orders_router)

    @app.on_event("startup")
    async def _startup() -> None:
        log.info("startup", env=settings.env)
        engine = create_engine(settings)
        app.state.engine = engine
        app.state.sessionmaker = create_sessionmaker(engine)
        if settings.env in ("dev", "test"):
            # Prod runs Alembic migrations instead.
            await init_db(engine)

    @app.on_event("shutdown")
    async def _shutdown() -> None:
        engine = getattr(app.state, "engine", None)
        if engine is not None:
            await engine.dispose()
        log.info("shutdown")

    return app


# --- Module Notes -----------------------------------------------------------
# Tests drive this app through httpx.ASGITransport and start/stop it explicitly
# (see tests/conftest.py).
