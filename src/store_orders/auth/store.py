"""
store_orders.auth.store

Durable mirror of the client session.

Responsibilities:
- Persist access token, refresh token and user record together (all-or-nothing).
- Treat missing or unreadable state as "no session" rather than as an error.
"""

from __future__ import annotations

import json
import os
import tempfile
from pathlib import Path
from typing import Protocol

from pydantic import ValidationError

from store_orders.auth.models import Session
from store_orders.observability.logging import get_logger

log = get_logger(__name__)


class SessionStore(Protocol):
    def save(self, session: Session) -> None: ...

    def load(self) -> Session | None: ...

    def clear(self) -> None: ...


class MemorySessionStore:
    """
    In-process store; the session object is immutable so holding a reference is a snapshot.
    """

    def __init__(self, session: Session | None = None) -> None:
        self._session = session

    def save(self, session: Session) -> None:
        self._session = session

    def load(self) -> Session | None:
        return self._session

    def clear(self) -> None:
        self._session = None


class FileSessionStore:
    """
    One JSON document per session, replaced atomically via a temp file + `os.replace`.
    """

    def __init__(self, path: Path | str) -> None:
        self._path = Path(path)

    @property
    def path(self) -> Path:
        return self._path

    def save(self, session: Session) -> None:
        self._path.parent.mkdir(parents=True, exist_ok=True)
        fd, tmp = tempfile.mkstemp(dir=self._path.parent, prefix=".session-", suffix=".tmp")
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                f.write(session.model_dump_json())
                f.flush()
                os.fsync(f.fileno())
            os.replace(tmp, self._path)
        except BaseException:
            Path(tmp).unlink(missing_ok=True)
            raise

    def load(self) -> Session | None:
        try:
            raw = self._path.read_bytes()
        except FileNotFoundError:
            return None
        try:
            return Session.model_validate(json.loads(raw))
        except (UnicodeDecodeError, json.JSONDecodeError, ValidationError) as e:
            log.warning("session_store_unreadable", path=str(self._path), error=type(e).__name__)
            return None

    def clear(self) -> None:
        self._path.unlink(missing_ok=True)


# --- Module Notes -----------------------------------------------------------
# OSError from the filesystem (permissions, full disk) propagates to the caller:
# storage being unavailable is exceptional, unlike an empty or stale store.
