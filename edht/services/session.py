"""Server-side sessions holding the backend bearer token and the cached user.

A session lives in a process-local ``TTLCache`` keyed by an opaque id that is
stored in a cookie. The whole entry is dropped on logout and whenever the
backend rejects the token with HTTP 401.
"""
from __future__ import annotations

import logging
import secrets
import time
from dataclasses import dataclass
from typing import Any, Callable, Dict, Optional

from cachetools import TTLCache
from fastapi import Depends, Request, Response

from config import settings
from edht.models.resources import SessionUser

logger = logging.getLogger("edht.auth")


class LoginRequiredError(Exception):
    """Raised by page dependencies when no session is present."""

    def __init__(self, next_path: str = "/dashboard"):
        super().__init__("Login required")
        self.next_path = next_path


@dataclass
class Session:
    sid: str
    token: str
    user: SessionUser

    @property
    def is_admin(self) -> bool:
        return self.user.isAdmin


class SessionStore:
    """In-memory session registry with expiry."""

    def __init__(self, maxsize: int = 5000, ttl: int = 3600, timer: Callable[[], float] = time.monotonic):
        self._entries: TTLCache = TTLCache(maxsize=maxsize, ttl=ttl, timer=timer)

    def create(self, token: str, user: Dict[str, Any]) -> Session:
        sid = secrets.token_urlsafe(32)
        session = Session(sid=sid, token=token, user=SessionUser.model_validate(user))
        self._entries[sid] = session
        logger.info(f"Session created for user {session.user.id}")
        return session

    def get(self, sid: Optional[str]) -> Optional[Session]:
        if not sid:
            return None
        return self._entries.get(sid)

    def update_user(self, sid: str, **fields: Any) -> Optional[Session]:
        """Merge changed profile fields into the cached user.

        The entry is changed in place so its expiry stays where it was.
        """
        session = self.get(sid)
        if session is None:
            return None
        data = session.user.model_dump()
        data.update({key: value for key, value in fields.items() if value is not None})
        session.user = SessionUser.model_validate(data)
        return session

    def evict(self, sid: Optional[str]) -> None:
        if sid and self._entries.pop(sid, None) is not None:
            logger.info("Session evicted")

    def clear(self) -> None:
        self._entries.clear()

    def __len__(self) -> int:
        return len(self._entries)


_store = SessionStore(maxsize=settings.session_max_entries, ttl=settings.session_ttl)


def get_session_store() -> SessionStore:
    """Return the global session store."""
    return _store


def set_session_cookie(response: Response, session: Session) -> None:
    response.set_cookie(
        settings.session_cookie_name,
        session.sid,
        max_age=settings.session_ttl,
        httponly=True,
        secure=settings.cookie_secure,
        samesite="lax",
    )


def clear_session_cookie(response: Response) -> None:
    response.delete_cookie(settings.session_cookie_name)


def session_id_from_request(request: Request) -> Optional[str]:
    return request.cookies.get(settings.session_cookie_name)


def get_optional_session(
    request: Request, store: SessionStore = Depends(get_session_store)
) -> Optional[Session]:
    """Session for the current request, or None for anonymous visitors."""
    return store.get(session_id_from_request(request))


def require_session(
    request: Request, session: Optional[Session] = Depends(get_optional_session)
) -> Session:
    """Session for pages that need a logged-in user."""
    if session is None:
        raise LoginRequiredError(next_path=request.url.path)
    return session
