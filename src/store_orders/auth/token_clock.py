"""
store_orders.auth.token_clock

Client-side expiry check for bearer tokens.

Responsibilities:
- Read the `exp` claim without verifying the signature (the client holds no key).
- Fail closed: anything that cannot be read counts as expired.
"""

from __future__ import annotations

import time

import jwt
from jwt import PyJWTError


def is_expired(token: str, *, now: float | None = None) -> bool:
    try:
        payload = jwt.decode(
            token,
            options={"verify_signature": False, "verify_exp": False},
        )
    except PyJWTError:
        return True

    exp = payload.get("exp")
    if isinstance(exp, bool) or not isinstance(exp, int | float):
        return True

    current = time.time() if now is None else now
    return exp < int(current)


# --- Module Notes -----------------------------------------------------------
# Server-side validity (revocation, signature) is still checked via `/auth/me`;
# this check only decides whether a refresh is due before that call.
