"""
store_orders.auth.jwt

JWT issuing and validation helpers for the Identity Service.

Responsibilities:
- Issue access tokens (identity + role claims) and refresh tokens (subject only).
- Decode and validate JWTs with strict claim requirements (iss/aud/exp/iat/sub/token_type).

Note:
- Production systems often prefer RS256 + JWKS; this repo uses HS256 for simplicity.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import UTC, datetime, timedelta
from typing import Any, Literal

import jwt
from jwt import InvalidTokenError

from store_orders.settings import Settings

TokenType = Literal["access", "refresh"]


@dataclass(frozen=True, slots=True)
class JwtConfig:
    # Algorithm/issuer/audience are enforced during decoding.
    alg: str
    issuer: str
    audience: str
    secret: str


class JwtValidationError(Exception):
    pass


def jwt_config(settings: Settings) -> JwtConfig:
    return JwtConfig(
        alg=settings.jwt_alg,
        issuer=settings.jwt_issuer,
        audience=settings.jwt_audience,
        secret=settings.jwt_secret,
    )


def _encode(cfg: JwtConfig, claims: dict[str, Any], ttl: timedelta) -> str:
    now = datetime.now(tz=UTC)
    payload: dict[str, Any] = {
        "iss": cfg.issuer,
        "aud": cfg.audience,
        "iat": int(now.timestamp()),
        "exp": int((now + ttl).timestamp()),
        **claims,
    }
    return jwt.encode(payload, cfg.secret, algorithm=cfg.alg)


def issue_access_token(
    *,
    cfg: JwtConfig,
    subject: str,
    email: str,
    role: str,
    store_id: str | None,
    ttl: timedelta = timedelta(hours=24),
) -> str:
    return _encode(
        cfg,
        {
            "sub": subject,
            "email": email,
            "role": role,
            "store_id": store_id,
            "token_type": "access",
        },
        ttl,
    )


def issue_refresh_token(
    *,
    cfg: JwtConfig,
    subject: str,
    ttl: timedelta = timedelta(days=30),
) -> str:
    # Refresh tokens carry no role: the user row is re-read on every refresh.
    return _encode(cfg, {"sub": subject, "token_type": "refresh"}, ttl)


def decode_and_validate(
    *, cfg: JwtConfig, token: str, token_type: TokenType = "access"
) -> dict[str, Any]:
    try:
        # jwt.decode enforces signature + registered claims (issuer/audience/exp, etc.).
        payload = jwt.decode(
            token,
            cfg.secret,
            algorithms=[cfg.alg],
            issuer=cfg.issuer,
            audience=cfg.audience,
            options={
                "require": ["exp", "iat", "iss", "aud", "sub"],
            },
        )
    except InvalidTokenError as e:
        raise JwtValidationError(str(e)) from e

    if payload.get("token_type") != token_type:
        raise JwtValidationError(f"expected a {token_type} token")
    return payload


# --- Module Notes -----------------------------------------------------------
# Issued only by `api/routers/auth.py` (login/refresh); validated by `auth/deps.py`
# and the refresh endpoint.
