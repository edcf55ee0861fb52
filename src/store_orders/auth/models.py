"""
store_orders.auth.models

Auth domain models.

Responsibilities:
- Define the user identity and session shapes exchanged with the Identity Service.
- Define the server-side authenticated caller type (`Principal`).
"""

from __future__ import annotations

import enum
import uuid
from dataclasses import dataclass
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator


def opaque_id(v: Any) -> Any:
    # Services may emit numeric or UUID ids; the client treats every id as opaque text.
    if isinstance(v, uuid.UUID) or (isinstance(v, int) and not isinstance(v, bool)):
        return str(v)
    return v


class Role(enum.StrEnum):
    admin = "admin"
    store = "store"


class UserIdentity(BaseModel):
    """
    Authenticated user as returned by `/auth/login`, `/auth/me` and `/auth/refresh`.
    """

    model_config = ConfigDict(frozen=True, extra="ignore")

    id: str = Field(min_length=1)
    email: str
    role: Role
    store_id: str | None = None

    @field_validator("id", "store_id", mode="before")
    @classmethod
    def _stringify_ids(cls, v: Any) -> Any:
        return opaque_id(v)

    @field_validator("role", mode="before")
    @classmethod
    def _normalize_role(cls, v: Any) -> Any:
        return v.lower() if isinstance(v, str) else v

    @model_validator(mode="before")
    @classmethod
    def _scope_store(cls, data: Any) -> Any:
        if not isinstance(data, dict):
            return data
        role = str(data.get("role", "")).lower()
        if role == Role.admin:
            # Admins are not bound to a store even if the payload carries one.
            return {**data, "store_id": None}
        if role == Role.store and not data.get("store_id"):
            raise ValueError("store users must carry a store_id")
        return data


class Session(BaseModel):
    model_config = ConfigDict(frozen=True)

    access_token: str = Field(min_length=1)
    refresh_token: str = Field(min_length=1)
    user: UserIdentity


@dataclass(frozen=True, slots=True)
class Principal:
    """
    Authenticated caller identity on the service side.
    """

    subject: str
    email: str
    role: Role
    store_id: str | None = None

    @property
    def is_admin(self) -> bool:
        return self.role is Role.admin


# --- Module Notes -----------------------------------------------------------
# Role is fixed for the lifetime of a Session; a changed role only arrives through
# `/auth/me` or `/auth/refresh`, which replace the whole UserIdentity.
