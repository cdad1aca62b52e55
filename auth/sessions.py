"""
Server-side login sessions.

A session is a random id stored in the ``sessions`` table and handed to the
browser in a cookie.  Sessions slide: once a session has used up half of
its lifetime, validating it pushes the expiry out again and marks the result
``fresh`` so the caller can re-issue the cookie.

Each call opens its own DB session from ``async_session_factory`` unless the
caller passes ``db_session`` (e.g. to create a session in the same
transaction as the user it belongs to).
"""

from __future__ import annotations

import logging
import secrets
import uuid
from contextlib import asynccontextmanager
from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from typing import Any, AsyncIterator, Dict, Optional

from fastapi import Response
from sqlalchemy import delete
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from config.settings import config
from database.models import Session, User
from database.session import async_session_factory

logger = logging.getLogger(__name__)


@dataclass
class SessionCookie:
    name: str
    value: str
    attributes: Dict[str, Any] = field(default_factory=dict)


@dataclass
class SessionValidation:
    user: Optional[User] = None
    session: Optional[Session] = None
    fresh: bool = False


def generate_session_id() -> str:
    return secrets.token_urlsafe(30)


def set_session_cookie(response: Response, cookie: SessionCookie) -> None:
    """Write ``cookie`` onto ``response`` scoped to the whole site."""
    response.set_cookie(cookie.name, cookie.value, path="/", **cookie.attributes)


def _as_utc(value: datetime) -> datetime:
    # SQLite hands back naive datetimes
    return value if value.tzinfo else value.replace(tzinfo=timezone.utc)


def _to_uuid(value: str | uuid.UUID) -> uuid.UUID:
    return uuid.UUID(value) if isinstance(value, str) else value


class SessionManager:
    def __init__(
        self,
        session_factory: Optional[async_sessionmaker] = None,
        *,
        cookie_name: Optional[str] = None,
        expiry_seconds: Optional[int] = None,
        secure: Optional[bool] = None,
    ) -> None:
        self._session_factory = session_factory or async_session_factory
        self.session_cookie_name = cookie_name or config.session_cookie_name
        self._expiry = timedelta(seconds=expiry_seconds or config.session_expiry_seconds)
        self._secure = config.session_cookie_secure if secure is None else secure

    @asynccontextmanager
    async def _db(self, db_session: Optional[AsyncSession]) -> AsyncIterator[AsyncSession]:
        if db_session is not None:
            yield db_session
            await db_session.flush()
            return
        async with self._session_factory() as session:
            try:
                yield session
                await session.commit()
            except Exception:
                await session.rollback()
                raise

    # ── Session lifecycle ──────────────────────────────────────────────

    async def create_session(
        self,
        user_id: str | uuid.UUID,
        *,
        db_session: Optional[AsyncSession] = None,
    ) -> Session:
        now = datetime.now(timezone.utc)
        session = Session(
            session_id=generate_session_id(),
            user_id=_to_uuid(user_id),
            expires_at=now + self._expiry,
            created_at=now,
        )
        async with self._db(db_session) as db:
            db.add(session)
        logger.debug("Created session for user %s", user_id)
        return session

    async def validate_session(self, session_id: str) -> SessionValidation:
        """
        Look up ``session_id`` and return its ``(user, session)`` pair.

        Unknown and expired ids yield an empty ``SessionValidation``; expired
        rows are deleted on the way.
        """
        if not session_id:
            return SessionValidation()

        async with self._db(None) as db:
            session = await db.get(Session, session_id)
            if session is None:
                return SessionValidation()

            now = datetime.now(timezone.utc)
            expires_at = _as_utc(session.expires_at)
            if now >= expires_at:
                await db.delete(session)
                logger.debug("Session for user %s expired", session.user_id)
                return SessionValidation()

            fresh = False
            if now >= expires_at - self._expiry / 2:
                session.expires_at = now + self._expiry
                fresh = True

            return SessionValidation(user=session.user, session=session, fresh=fresh)

    async def invalidate_session(
        self,
        session_id: str,
        *,
        db_session: Optional[AsyncSession] = None,
    ) -> None:
        async with self._db(db_session) as db:
            await db.execute(delete(Session).where(Session.session_id == session_id))

    async def invalidate_user_sessions(
        self,
        user_id: str | uuid.UUID,
        *,
        db_session: Optional[AsyncSession] = None,
    ) -> None:
        async with self._db(db_session) as db:
            await db.execute(delete(Session).where(Session.user_id == _to_uuid(user_id)))

    async def delete_expired_sessions(self) -> int:
        """Remove every expired session row, returning how many went."""
        async with self._db(None) as db:
            result = await db.execute(
                delete(Session).where(Session.expires_at <= datetime.now(timezone.utc))
            )
        return result.rowcount or 0

    # ── Cookies ────────────────────────────────────────────────────────

    def create_session_cookie(self, session_id: str) -> SessionCookie:
        return SessionCookie(
            name=self.session_cookie_name,
            value=session_id,
            attributes={
                "httponly": True,
                "samesite": "lax",
                "secure": self._secure,
                "max_age": int(self._expiry.total_seconds()),
            },
        )

    def create_blank_session_cookie(self) -> SessionCookie:
        return SessionCookie(
            name=self.session_cookie_name,
            value="",
            attributes={
                "httponly": True,
                "samesite": "lax",
                "secure": self._secure,
                "max_age": 0,
            },
        )


session_manager = SessionManager()
