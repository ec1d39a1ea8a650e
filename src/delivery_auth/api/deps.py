"""
delivery_auth.api.deps

FastAPI dependency wiring for the API layer.

Responsibilities:
- Provide dependency functions for settings, DB sessions and services.
- Encapsulate app.state access patterns (settings/sessionmaker/hasher/token config).
"""

from __future__ import annotations

from collections.abc import AsyncIterator

from fastapi import Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from delivery_auth.services.accounts import AccountService
from delivery_auth.services.approvals import ApprovalService
from delivery_auth.settings import Settings


def settings_dep(request: Request) -> Settings:
    return request.app.state.settings  # type: ignore[attr-defined]


def sessionmaker_from_app(request: Request) -> async_sessionmaker[AsyncSession]:
    # The sessionmaker is created in `delivery_auth.api.app.create_app`.
    return request.app.state.sessionmaker  # type: ignore[attr-defined]


async def db_session(
    session_factory: async_sessionmaker[AsyncSession] = Depends(sessionmaker_from_app),
) -> AsyncIterator[AsyncSession]:
    # Request-scoped DB session. Commit/rollback is managed explicitly by the service layer.
    async with session_factory() as session:
        yield session


def account_service(
    request: Request,
    session: AsyncSession = Depends(db_session),
    settings: Settings = Depends(settings_dep),
) -> AccountService:
    return AccountService(
        session=session,
        settings=settings,
        token_cfg=request.app.state.token_cfg,
        hasher=request.app.state.hasher,
    )


def approval_service(session: AsyncSession = Depends(db_session)) -> ApprovalService:
    return ApprovalService(session=session)
