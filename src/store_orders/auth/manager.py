"""
store_orders.auth.manager

Client session lifecycle.

Responsibilities:
- Login, logout, bootstrap from the persisted session, and revalidation via `/auth/me`.
- Single-flight token refresh: concurrent callers share one in-flight request.
- Funnel every expected failure into the logged-out state (observable), not exceptions.
"""

from __future__ import annotations

import asyncio
import enum
from collections.abc import Callable

from store_orders.auth.models import Session, UserIdentity
from store_orders.auth.store import SessionStore
from store_orders.auth.token_clock import is_expired
from store_orders.errors import RequestFailed, SessionExpired, StoreOrdersError
from store_orders.observability.logging import get_logger
from store_orders.service_clients.http import IdentityClient

log = get_logger(__name__)


class SessionState(enum.StrEnum):
    logged_out = "LOGGED_OUT"
    authenticating = "AUTHENTICATING"
    authenticated = "AUTHENTICATED"
    refreshing = "REFRESHING"


SessionListener = Callable[[SessionState], None]


class SessionManager:
    """
    Owns the Session. The SessionStore is only a mirror written after each change.

    Construct one per logical user context and inject it into consumers
    (cart scope, order submission); there is no module-level instance.
    """

    def __init__(
        self,
        *,
        identity: IdentityClient,
        store: SessionStore,
        expired: Callable[[str], bool] = is_expired,
    ) -> None:
        self._identity = identity
        self._store = store
        self._expired = expired

        self._session: Session | None = None
        self._state = SessionState.logged_out
        self._listeners: list[SessionListener] = []
        self._refresh_task: asyncio.Task[bool] | None = None
        # Bumped on login/logout so a late refresh cannot resurrect a replaced session.
        self._epoch = 0

        self.last_error: StoreOrdersError | None = None

    # -- observation ---------------------------------------------------------

    @property
    def state(self) -> SessionState:
        return self._state

    @property
    def session(self) -> Session | None:
        return self._session

    @property
    def user(self) -> UserIdentity | None:
        return self._session.user if self._session else None

    @property
    def access_token(self) -> str | None:
        return self._session.access_token if self._session else None

    @property
    def is_authenticated(self) -> bool:
        return self._session is not None and self._state in (
            SessionState.authenticated,
            SessionState.refreshing,
        )

    def add_listener(self, listener: SessionListener) -> Callable[[], None]:
        self._listeners.append(listener)

        def _remove() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return _remove

    def _set_state(self, state: SessionState) -> None:
        if state is self._state:
            return
        log.debug("session_state", previous=self._state.value, state=state.value)
        self._state = state
        for listener in list(self._listeners):
            listener(state)

    def _install(self, session: Session) -> None:
        # Persist first: if storage fails, memory still reflects the last durable session.
        self._store.save(session)
        self._session = session
        self._set_state(SessionState.authenticated)

    # -- operations ----------------------------------------------------------

    async def login(self, email: str, password: str) -> bool:
        """A failed login leaves any existing session and state as they were."""

        previous = self._state
        self._set_state(SessionState.authenticating)
        try:
            payload = await self._identity.login(email=email, password=password)
            self._install(payload.to_session())
        except StoreOrdersError as e:
            self.last_error = e
            log.info("login_failed", error=type(e).__name__)
            self._set_state(previous)
            return False
        except BaseException:
            self._set_state(previous)
            raise

        self._epoch += 1
        self.last_error = None
        log.info("login", user_id=payload.user.id, role=payload.user.role.value)
        return True

    async def bootstrap(self) -> bool:
        stored = self._store.load()
        if stored is None:
            self.logout()
            return False

        self._session = stored
        self._set_state(SessionState.authenticating)
        if self._expired(stored.access_token):
            log.info("access_token_expired", user_id=stored.user.id)
            if not await self.refresh():
                return False
        return await self.validate()

    async def validate(self, token: str | None = None) -> bool:
        token = token or self.access_token
        if not token:
            self.logout()
            return False

        epoch = self._epoch
        try:
            user = await self._identity.me(token=token)
        except RequestFailed as e:
            if e.status_code == 401:
                log.info("access_token_rejected")
                return await self.refresh()
            self.last_error = e
            log.warning("validate_failed", error=e.message, status_code=e.status_code)
            self.logout()
            return False
        except StoreOrdersError as e:
            self.last_error = e
            log.warning("validate_failed", error=type(e).__name__)
            self.logout()
            return False

        session = self._session
        if session is None or epoch != self._epoch:
            return False
        if user.role != session.user.role or user.store_id != session.user.store_id:
            log.info(
                "user_record_changed",
                user_id=user.id,
                role=user.role.value,
                previous_role=session.user.role.value,
            )
        self._install(session.model_copy(update={"user": user}))
        return True

    async def refresh(self) -> bool:
        task = self._refresh_task
        if task is None:
            task = asyncio.get_running_loop().create_task(self._refresh_once())
            self._refresh_task = task
        # Shield: one caller being cancelled must not cancel the refresh others await.
        return await asyncio.shield(task)

    async def _refresh_once(self) -> bool:
        try:
            return await self._refresh()
        finally:
            self._refresh_task = None

    async def _refresh(self) -> bool:
        session = self._session
        if session is None:
            self.last_error = SessionExpired("no session to refresh")
            self.logout()
            return False

        epoch = self._epoch
        self._set_state(SessionState.refreshing)
        try:
            payload = await self._identity.refresh(refresh_token=session.refresh_token)
        except StoreOrdersError as e:
            log.warning("refresh_failed", error=type(e).__name__)
            self.last_error = SessionExpired(str(e))
            self.logout()
            return False
        except BaseException:
            # Failed refresh is terminal whatever the cause.
            self.logout()
            raise

        if epoch != self._epoch:
            log.info("refresh_discarded", reason="session replaced during refresh")
            return self.is_authenticated
        self._install(payload.to_session())
        self.last_error = None
        log.info("refresh", user_id=payload.user.id)
        return True

    def logout(self) -> None:
        was_active = self._session is not None
        self._session = None
        self._epoch += 1
        try:
            self._store.clear()
        finally:
            self._set_state(SessionState.logged_out)
        if was_active:
            log.info("logout")


# --- Module Notes -----------------------------------------------------------
# Only storage errors (OSError from a FileSessionStore) escape these methods;
# HTTP/transport failures end in SessionState.logged_out with `last_error` set.
