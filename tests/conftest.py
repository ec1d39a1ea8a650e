"""
tests.conftest

Shared fixtures: in-memory credential store, fast bcrypt cost, app + client.
"""

from __future__ import annotations

from collections.abc import AsyncIterator

import httpx
import pytest
from fastapi import FastAPI
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from delivery_auth.api.app import create_app
from delivery_auth.auth.jwt import TokenConfig
from delivery_auth.auth.passwords import PasswordHasher
from delivery_auth.db.init_db import init_db
from delivery_auth.db.session import create_engine, create_sessionmaker
from delivery_auth.services.accounts import AccountService
from delivery_auth.services.approvals import ApprovalService
from delivery_auth.settings import Settings

SHARED_SECRET = "test-shared-secret-0123456789abcdef"


@pytest.fixture
def settings() -> Settings:
    # Cost 4 is bcrypt's minimum; it keeps the suite fast without changing behavior.
    return Settings(
        env="test",
        database_url="sqlite+aiosqlite:///:memory:",
        shared_secret=SHARED_SECRET,
        hash_cost=4,
    )


@pytest.fixture
def token_cfg(settings: Settings) -> TokenConfig:
    return TokenConfig(alg=settings.jwt_alg, secret=settings.shared_secret)


@pytest.fixture
def hasher(settings: Settings) -> PasswordHasher:
    return PasswordHasher(cost=settings.hash_cost)


@pytest.fixture
async def session_factory(settings: Settings) -> AsyncIterator[async_sessionmaker[AsyncSession]]:
    engine = create_engine(settings)
    await init_db(engine)
    try:
        yield create_sessionmaker(engine)
    finally:
        await engine.dispose()


@pytest.fixture
async def session(
    session_factory: async_sessionmaker[AsyncSession],
) -> AsyncIterator[AsyncSession]:
    async with session_factory() as s:
        yield s


@pytest.fixture
def accounts(
    session: AsyncSession, settings: Settings, token_cfg: TokenConfig, hasher: PasswordHasher
) -> AccountService:
    return AccountService(session=session, settings=settings, token_cfg=token_cfg, hasher=hasher)


@pytest.fixture
def approvals(session: AsyncSession) -> ApprovalService:
    return ApprovalService(session=session)


@pytest.fixture
async def app(settings: Settings) -> AsyncIterator[FastAPI]:
    application = create_app(settings=settings)
    # httpx ASGITransport does not drive lifespan; run it explicitly.
    async with application.router.lifespan_context(application):
        yield application


@pytest.fixture
async def client(app: FastAPI) -> AsyncIterator[httpx.AsyncClient]:
    transport = httpx.ASGITransport(app=app)
    async with httpx.AsyncClient(transport=transport, base_url="http://test") as c:
        yield c
