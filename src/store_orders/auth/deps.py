"""
store_orders.auth.deps

FastAPI dependency functions for authentication and authorization.

Responsibilities:
- Convert a bearer access token into a typed `Principal`.
"""

from __future__ import annotations

from fastapi import Depends, HTTPException
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from starlette.status import HTTP_401_UNAUTHORIZED

from store_orders.auth.jwt import JwtValidationError, decode_and_validate, jwt_config
from store_orders.auth.models import Principal, Role
from store_orders.settings import Settings, get_settings

_bearer = HTTPBearer(auto_error=False)


def get_principal(
    creds: HTTPAuthorizationCredentials | None = Depends(_bearer),
    settings: Settings = Depends(get_settings),
) -> Principal:
    if creds is None or not creds.credentials:
        raise HTTPException(status_code=HTTP_401_UNAUTHORIZED, detail="Missing bearer token")

    try:
        payload = decode_and_validate(cfg=jwt_config(settings), token=creds.credentials)
    except JwtValidationError as e:
        raise HTTPException(status_code=HTTP_401_UNAUTHORIZED, detail=f"Invalid token: {e}") from e

    subject = str(payload.get("sub", ""))
    if not subject:
        raise HTTPException(status_code=HTTP_401_UNAUTHORIZED, detail="Invalid token subject")
    try:
        role = Role(str(payload.get("role", "")).lower())
    except ValueError as e:
        raise HTTPException(status_code=HTTP_401_UNAUTHORIZED, detail="Invalid token role") from e

    store_id = payload.get("store_id")
    if role is Role.store and not store_id:
        raise HTTPException(status_code=HTTP_401_UNAUTHORIZED, detail="Store token without store")

    return Principal(
        subject=subject,
        email=str(payload.get("email", "")),
        role=role,
        store_id=str(store_id) if role is Role.store else None,
    )


# --- Module Notes -----------------------------------------------------------
# Order status rules are NOT expressed here; routers delegate them to OrderStatusMachine
# so the role table lives in one place.
