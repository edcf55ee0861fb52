"""
store_orders.db.repositories.users

Repository for `User` and `Store` entities.
"""

from __future__ import annotations

import uuid

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from store_orders.auth.models import Role
from store_orders.auth.passwords import hash_password
from store_orders.db.models import Store, User


class UserRepo:
    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def create(
        self,
        *,
        email: str,
        password: str,
        role: Role,
        store_id: uuid.UUID | None = None,
    ) -> User:
        if role is Role.store and store_id is None:
            raise ValueError("store users need a store_id")
        user = User(
            email=email.strip().lower(),
            password_hash=hash_password(password),
            role=role,
            store_id=store_id if role is Role.store else None,
        )
        self._session.add(user)
        await self._session.flush()
        return user

    async def get(self, user_id: uuid.UUID) -> User | None:
        return await self._session.get(User, user_id)

    async def find_by_email(self, email: str) -> User | None:
        stmt = select(User).where(User.email == email.strip().lower())
        return (await self._session.execute(stmt)).scalar_one_or_none()

    async def set_role(
        self, user_id: uuid.UUID, *, role: Role, store_id: uuid.UUID | None = None
    ) -> User | None:
        # Takes effect on the user's next /auth/me or /auth/refresh.
        user = await self._session.get(User, user_id)
        if user is None:
            return None
        user.role = role
        user.store_id = store_id if role is Role.store else None
        await self._session.flush()
        return user


class StoreRepo:
    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def create(self, *, city: str | None = None, address: str | None = None) -> Store:
        store = Store(city=city, address=address)
        self._session.add(store)
        await self._session.flush()
        return store

    async def get(self, store_id: uuid.UUID) -> Store | None:
        return await self._session.get(Store, store_id)
