"""
store_orders.errors

Error taxonomy shared by the session, cart and order layers.

Responsibilities:
- Name every expected failure so callers branch on type, not on message text.
- Mark which failures are safe to retry (nothing server-side can have happened yet).
"""

from __future__ import annotations


class StoreOrdersError(Exception):
    # Conservative default: a caller should not blindly retry unless told otherwise.
    retry_safe: bool = False


class AuthenticationFailed(StoreOrdersError):
    """Bad credentials."""


class SessionExpired(StoreOrdersError):
    """The refresh token could not be exchanged; the session is gone."""


class Forbidden(StoreOrdersError):
    """The caller's role may not perform the requested status transition."""


class InvalidTransition(StoreOrdersError):
    """The requested status is not later than the order's current status."""


class MissingStore(StoreOrdersError):
    pass


class EmptyCart(StoreOrdersError):
    pass


class RequestFailed(StoreOrdersError):
    """
    Transport or server error.
    `message` is the server-provided error text when there was one.
    """

    retry_safe = True

    def __init__(self, message: str, *, status_code: int | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.status_code = status_code


class MalformedResponse(StoreOrdersError):
    """
    The HTTP call succeeded but the payload could not be interpreted.
    The server may already have applied the change, so this is never retry-safe.
    """

    def __init__(self, message: str = "Malformed response") -> None:
        super().__init__(message)
        self.message = message


# --- Module Notes -----------------------------------------------------------
# SessionManager never raises these for HTTP failures; it records them on `last_error`
# and moves to the logged-out state. Order components raise them directly.
