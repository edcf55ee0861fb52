"""
store_orders.api.routers.auth

Identity Service endpoints.

Responsibilities:
- Exchange credentials for an access/refresh token pair (`/auth/login`).
- Return the authoritative user record for a bearer token (`/auth/me`).
- Rotate the token pair from a refresh token (`/auth/refresh`).
"""

from __future__ import annotations

import uuid
from datetime import timedelta
from typing import Any

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel, Field
from sqlalchemy.ext.asyncio import AsyncSession
from starlette.status import HTTP_401_UNAUTHORIZED

from store_orders.api.deps import db_session
from store_orders.auth.deps import get_principal
from store_orders.auth.jwt import (
    JwtValidationError,
    decode_and_validate,
    issue_access_token,
    issue_refresh_token,
    jwt_config,
)
from store_orders.auth.models import Principal
from store_orders.auth.passwords import verify_password
from store_orders.db.models import User
from store_orders.db.repositories.users import UserRepo
from store_orders.observability.logging import get_logger
from store_orders.settings import Settings, get_settings

log = get_logger(__name__)

router = APIRouter(prefix="/auth", tags=["auth"])


class LoginRequest(BaseModel):
    email: str = Field(min_length=1, max_length=256)
    password: str = Field(min_length=1, max_length=1024)


class RefreshRequest(BaseModel):
    refresh_token: str = Field(min_length=1)


class UserResponse(BaseModel):
    id: str
    email: str
    role: str
    store_id: str | None = None
    created_at: str


class AuthResponse(BaseModel):
    user: UserResponse
    token: str
    refresh_token: str


def _user_response(user: User) -> UserResponse:
    return UserResponse(
        id=str(user.id),
        email=user.email,
        role=user.role.value,
        store_id=str(user.store_id) if user.store_id else None,
        created_at=user.created_at.isoformat(),
    )


def _issue(user: User, settings: Settings) -> AuthResponse:
    cfg = jwt_config(settings)
    token = issue_access_token(
        cfg=cfg,
        subject=str(user.id),
        email=user.email,
        role=user.role.value,
        store_id=str(user.store_id) if user.store_id else None,
        ttl=timedelta(minutes=settings.access_token_ttl_minutes),
    )
    refresh_token = issue_refresh_token(
        cfg=cfg,
        subject=str(user.id),
        ttl=timedelta(days=settings.refresh_token_ttl_days),
    )
    return AuthResponse(user=_user_response(user), token=token, refresh_token=refresh_token)


@router.post("/login", response_model=AuthResponse)
async def login(
    body: LoginRequest,
    session: AsyncSession = Depends(db_session),
    settings: Settings = Depends(get_settings),
) -> AuthResponse:
    user = await UserRepo(session).find_by_email(body.email)
    # Same answer for unknown email and wrong password.
    if user is None or not verify_password(body.password, user.password_hash):
        log.info("login_rejected")
        raise HTTPException(status_code=HTTP_401_UNAUTHORIZED, detail="Invalid credentials")
    log.info("login_accepted", user_id=str(user.id), role=user.role.value)
    return _issue(user, settings)


@router.get("/me", response_model=UserResponse)
async def me(
    principal: Principal = Depends(get_principal),
    session: AsyncSession = Depends(db_session),
) -> UserResponse:
    # Read the row, not the claims: role/store changes after issuance must show up here.
    user = await UserRepo(session).get(_user_id(principal.subject))
    if user is None:
        raise HTTPException(status_code=HTTP_401_UNAUTHORIZED, detail="Not authenticated")
    return _user_response(user)


@router.post("/refresh", response_model=AuthResponse)
async def refresh(
    body: RefreshRequest,
    session: AsyncSession = Depends(db_session),
    settings: Settings = Depends(get_settings),
) -> AuthResponse:
    try:
        claims: dict[str, Any] = decode_and_validate(
            cfg=jwt_config(settings), token=body.refresh_token, token_type="refresh"
        )
    except JwtValidationError as e:
        raise HTTPException(status_code=HTTP_401_UNAUTHORIZED, detail="Invalid refresh token") from e

    user = await UserRepo(session).get(_user_id(str(claims["sub"])))
    if user is None:
        raise HTTPException(status_code=HTTP_401_UNAUTHORIZED, detail="User not found")
    return _issue(user, settings)


def _user_id(subject: str) -> uuid.UUID:
    try:
        return uuid.UUID(subject)
    except ValueError as e:
        raise HTTPException(status_code=HTTP_401_UNAUTHORIZED, detail="Invalid token subject") from e


# --- Module Notes -----------------------------------------------------------
# Refresh tokens are stateless JWTs here, so a replayed refresh token is still accepted;
# the portal client is single-flight anyway so it never relies on replay.
