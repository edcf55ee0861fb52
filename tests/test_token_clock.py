"""
tests.test_token_clock

Expiry decisions for bearer tokens (fail closed).
"""

from __future__ import annotations

import base64
import json
import time

import pytest

from store_orders.auth.token_clock import is_expired
from tests.conftest import make_token


def _b64(data: dict) -> str:
    return base64.urlsafe_b64encode(json.dumps(data).encode()).rstrip(b"=").decode()


def test_future_expiry_is_not_expired() -> None:
    assert is_expired(make_token(exp_in=600)) is False


@pytest.mark.parametrize("exp_in", [-1, -60, -86_400])
def test_past_expiry_is_expired(exp_in: int) -> None:
    assert is_expired(make_token(exp_in=exp_in)) is True


def test_now_is_injectable() -> None:
    token = make_token(exp_in=100)
    assert is_expired(token, now=time.time() + 1_000) is True
    assert is_expired(token, now=time.time()) is False


@pytest.mark.parametrize(
    "token",
    [
        "",
        "not-a-jwt",
        "a.b.c",
        f"{_b64({'alg': 'none'})}.{_b64({'sub': 'x'})}.",  # no exp claim
        f"{_b64({'alg': 'HS256'})}.{_b64({'exp': 'tomorrow'})}.sig",  # non-numeric exp
        f"{_b64({'alg': 'HS256'})}.{_b64({'exp': True})}.sig",
    ],
)
def test_malformed_tokens_are_expired(token: str) -> None:
    assert is_expired(token) is True


def test_signature_is_not_checked_client_side() -> None:
    # Signed with a key the client never sees; still readable.
    assert is_expired(make_token(exp_in=60, role="admin")) is False
