"""
store_orders.api.deps

FastAPI dependency wiring for the API layer.

Responsibilities:
- Provide request-scoped DB sessions from the app's sessionmaker.
- Build per-request service objects.
"""

from __future__ import annotations

from collections.abc import AsyncIterator

from fastapi import Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from store_orders.services.order_service import OrderService


def sessionmaker_from_app(request: Request) -> async_sessionmaker[AsyncSession]:
    # Created on app startup in `store_orders.api.app.create_app`.
    return request.app.state.sessionmaker  # type: ignore[attr-defined]


async def db_session(
    session_factory: async_sessionmaker[AsyncSession] = Depends(sessionmaker_from_app),
) -> AsyncIterator[AsyncSession]:
    # Commit/rollback is explicit in the service layer; an uncommitted session rolls back on close.
    async with session_factory() as session:
        yield session


def order_service(session: AsyncSession = Depends(db_session)) -> OrderService:
    return OrderService(session=session)


# --- Module Notes -----------------------------------------------------------
# Settings come from `store_orders.settings.get_settings`; `create_app` overrides that
# dependency so each app instance serves with the settings it was built with.
