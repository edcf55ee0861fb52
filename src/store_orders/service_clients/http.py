"""
store_orders.service_clients.http

HTTP client boundary for the Identity Service and the Order Service.

Responsibilities:
- Call `/auth/*` and `/orders*` endpoints over a shared `httpx.AsyncClient`.
- Translate transport errors and non-2xx responses into `RequestFailed`.
- Parse identity payloads into typed models; leave order-creation payloads raw so the
  submitter can tell "request failed" apart from "succeeded but unreadable".
"""

from __future__ import annotations

from collections.abc import Callable
from typing import Any

import httpx
from pydantic import BaseModel, ConfigDict, ValidationError

from store_orders.auth.models import Session, UserIdentity
from store_orders.errors import AuthenticationFailed, MalformedResponse, RequestFailed
from store_orders.orders.models import Order


class AuthPayload(BaseModel):
    """
    Body of a successful `/auth/login` or `/auth/refresh`.
    """

    model_config = ConfigDict(frozen=True, extra="ignore")

    user: UserIdentity
    token: str
    refresh_token: str

    def to_session(self) -> Session:
        return Session(access_token=self.token, refresh_token=self.refresh_token, user=self.user)


def _error_message(r: httpx.Response) -> str:
    # Services answer `{"error": ...}`; FastAPI validation/HTTPException answers `{"detail": ...}`.
    try:
        body = r.json()
    except ValueError:
        return f"HTTP {r.status_code}"
    if isinstance(body, dict):
        for key in ("error", "message", "detail"):
            value = body.get(key)
            if isinstance(value, str) and value:
                return value
    return f"HTTP {r.status_code}"


def _json(r: httpx.Response) -> Any:
    try:
        return r.json()
    except ValueError as e:
        raise MalformedResponse(f"response from {r.request.url.path} is not JSON") from e


async def _send(http: httpx.AsyncClient, method: str, url: str, **kwargs: Any) -> httpx.Response:
    try:
        r = await http.request(method, url, **kwargs)
    except httpx.HTTPError as e:
        raise RequestFailed(f"{type(e).__name__}: {e}") from e
    if r.is_success:
        return r
    raise RequestFailed(_error_message(r), status_code=r.status_code)


def _bearer(token: str) -> dict[str, str]:
    return {"Authorization": f"Bearer {token}"}


class IdentityClient:
    """
    `/auth/login`, `/auth/me`, `/auth/refresh`. No retries: callers own that decision.
    """

    def __init__(self, *, http: httpx.AsyncClient) -> None:
        self._http = http

    async def login(self, *, email: str, password: str) -> AuthPayload:
        try:
            r = await _send(self._http, "POST", "/auth/login", json={"email": email, "password": password})
        except RequestFailed as e:
            if e.status_code in (400, 401, 403):
                raise AuthenticationFailed(e.message) from e
            raise
        return self._auth_payload(r)

    async def me(self, *, token: str) -> UserIdentity:
        r = await _send(self._http, "GET", "/auth/me", headers=_bearer(token))
        try:
            return UserIdentity.model_validate(_json(r))
        except ValidationError as e:
            raise MalformedResponse("unreadable user record from /auth/me") from e

    async def refresh(self, *, refresh_token: str) -> AuthPayload:
        r = await _send(self._http, "POST", "/auth/refresh", json={"refresh_token": refresh_token})
        return self._auth_payload(r)

    @staticmethod
    def _auth_payload(r: httpx.Response) -> AuthPayload:
        try:
            return AuthPayload.model_validate(_json(r))
        except ValidationError as e:
            raise MalformedResponse(f"unreadable auth payload from {r.request.url.path}") from e


def unwrap(body: Any) -> Any:
    """
    Order Service answers `{"success", "data"}`; tolerate a bare payload too.
    Raises RequestFailed when the envelope reports `success: false`.
    """

    if isinstance(body, dict) and "success" in body:
        if body.get("success") is False:
            raise RequestFailed(str(body.get("error") or body.get("message") or "request failed"))
        return body.get("data")
    return body


class OrderServiceClient:
    """
    Order endpoints. The bearer token is read per call so a refreshed session is picked up.
    """

    def __init__(self, *, http: httpx.AsyncClient, token: Callable[[], str | None]) -> None:
        self._http = http
        self._token = token

    def _authz(self) -> dict[str, str]:
        token = self._token()
        return _bearer(token) if token else {}

    async def create_order(self, payload: dict[str, Any]) -> Any:
        r = await _send(self._http, "POST", "/orders", json=payload, headers=self._authz())
        return _json(r)

    async def update_status(self, *, order_id: str, status: str, notes: str | None = None) -> Any:
        body: dict[str, Any] = {"status": status}
        if notes is not None:
            body["notes"] = notes
        r = await _send(
            self._http, "PUT", f"/orders/{order_id}/status", json=body, headers=self._authz()
        )
        return _json(r)

    async def get_order(self, *, order_id: str) -> Order:
        r = await _send(self._http, "GET", f"/orders/{order_id}", headers=self._authz())
        return parse_order(unwrap(_json(r)))

    async def list_orders(self, *, store_id: str | None = None) -> list[Order]:
        url = f"/orders/store/{store_id}" if store_id else "/orders"
        r = await _send(self._http, "GET", url, headers=self._authz())
        data = unwrap(_json(r))
        if not isinstance(data, list):
            raise MalformedResponse("order list is not an array")
        return [parse_order(item) for item in data]


def parse_order(data: Any) -> Order:
    try:
        return Order.model_validate(data)
    except ValidationError as e:
        raise MalformedResponse("unreadable order record") from e


# --- Module Notes -----------------------------------------------------------
# base_url and timeouts are configured on the shared httpx.AsyncClient
# (see `store_orders.portal.build_http_client`).
