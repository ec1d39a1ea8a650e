"""
delivery_auth.api.app

FastAPI app factory for the auth service.

Responsibilities:
- Build the FastAPI application and register routers/middleware/error handlers.
- Build the process-wide, read-only auth components (token config, hasher, verifier).
- Initialize and dispose shared infrastructure (DB engine/session factory).
"""

from __future__ import annotations

from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from fastapi import FastAPI

from delivery_auth import __version__
from delivery_auth.api.errors import register_error_handlers
from delivery_auth.api.routers.auth import router as auth_router
from delivery_auth.api.routers.health import router as health_router
from delivery_auth.api.routers.restaurant_operators import router as operators_router
from delivery_auth.auth.jwt import TokenConfig
from delivery_auth.auth.passwords import PasswordHasher
from delivery_auth.auth.verifier import TokenVerifier
from delivery_auth.db.init_db import init_db
from delivery_auth.db.repositories.principals import principal_exists_lookup
from delivery_auth.db.session import create_engine, create_sessionmaker
from delivery_auth.observability.logging import configure_logging, get_logger
from delivery_auth.observability.middleware import RequestContextMiddleware
from delivery_auth.settings import Settings

log = get_logger(__name__)


def create_app(*, settings: Settings) -> FastAPI:
    configure_logging(service_name=settings.service_name, level=settings.log_level)

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        log.info("startup", env=settings.env, hash_cost=app.state.hasher.cost)
        if settings.env in ("dev", "test"):
            # Dev/test convenience: create tables automatically. Prod should use Alembic migrations.
            await init_db(app.state.engine)
        try:
            yield
        finally:
            await app.state.engine.dispose()
            log.info("shutdown")

    app = FastAPI(
        title="Food Delivery Auth Service",
        version=__version__,
        docs_url="/docs",
        openapi_url="/openapi.json",
        lifespan=lifespan,
    )

    # The engine does not connect until first use, so it is safe to build here.
    engine = create_engine(settings)
    sessionmaker = create_sessionmaker(engine)
    token_cfg = TokenConfig(alg=settings.jwt_alg, secret=settings.shared_secret)

    app.state.settings = settings
    app.state.engine = engine
    app.state.sessionmaker = sessionmaker
    app.state.token_cfg = token_cfg
    app.state.hasher = PasswordHasher(cost=settings.hash_cost)
    app.state.verifier = TokenVerifier(
        cfg=token_cfg,
        principal_exists=principal_exists_lookup(sessionmaker),
    )

    app.add_middleware(RequestContextMiddleware)
    register_error_handlers(app)
    app.include_router(health_router, tags=["health"])
    app.include_router(auth_router)
    app.include_router(operators_router)

    return app


# --- Module Notes -----------------------------------------------------------
# Other services in the platform build the same TokenVerifier with the same
# shared secret and their own `principal_exists` lookup.
