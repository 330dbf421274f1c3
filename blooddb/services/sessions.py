"""Session lifecycle: issue, resolve and destroy opaque session tokens.

A session moves NONE -> ACTIVE -> DESTROYED. It becomes ACTIVE when
``SessionManager.issue`` runs after a successful login and is DESTROYED
either by ``destroy`` (logout) or by expiring a fixed TTL after
issuance. Access does not extend the lifetime.

The manager is transport agnostic: it takes and returns bare token
strings. The HTTP layer decides how the token travels (a cookie).

Two stores are provided. ``MemorySessionStore`` keeps sessions in the
process and loses them on restart. ``DatabaseSessionStore`` keeps them
in the ``user_sessions`` table so several workers of one deployment
share them.
"""

import logging
import secrets
import threading
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Callable, Protocol

from sqlalchemy import delete
from sqlalchemy.orm import Session, sessionmaker

from blooddb.config import settings
from blooddb.models.user import UserSession

logger = logging.getLogger(__name__)

TOKEN_BYTES = 32


@dataclass(frozen=True)
class Identity:
    user_id: int
    username: str
    email: str


@dataclass(frozen=True)
class SessionRecord:
    token: str
    identity: Identity
    created_at: datetime
    expires_at: datetime


class SessionStore(Protocol):
    def save(self, record: SessionRecord) -> None: ...

    def get(self, token: str) -> SessionRecord | None: ...

    def delete(self, token: str) -> None: ...

    def purge_expired(self, now: datetime) -> int: ...


class MemorySessionStore:
    def __init__(self):
        self._records: dict[str, SessionRecord] = {}
        self._lock = threading.Lock()

    def save(self, record: SessionRecord) -> None:
        with self._lock:
            self._records[record.token] = record

    def get(self, token: str) -> SessionRecord | None:
        with self._lock:
            return self._records.get(token)

    def delete(self, token: str) -> None:
        with self._lock:
            self._records.pop(token, None)

    def purge_expired(self, now: datetime) -> int:
        with self._lock:
            before = len(self._records)
            self._records = {token: r for token, r in self._records.items() if r.expires_at > now}
            return before - len(self._records)

    def __len__(self) -> int:
        with self._lock:
            return len(self._records)


class DatabaseSessionStore:
    def __init__(self, session_factory: sessionmaker):
        self._session_factory = session_factory

    def save(self, record: SessionRecord) -> None:
        db: Session = self._session_factory()
        try:
            db.add(
                UserSession(
                    token=record.token,
                    user_id=record.identity.user_id,
                    username=record.identity.username,
                    email=record.identity.email,
                    created_at=record.created_at,
                    expires_at=record.expires_at,
                )
            )
            db.commit()
        finally:
            db.close()

    def get(self, token: str) -> SessionRecord | None:
        db: Session = self._session_factory()
        try:
            row = db.query(UserSession).filter(UserSession.token == token).first()
            if not row:
                return None
            return SessionRecord(
                token=row.token,
                identity=Identity(user_id=row.user_id, username=row.username, email=row.email),
                created_at=row.created_at,
                expires_at=row.expires_at,
            )
        finally:
            db.close()

    def delete(self, token: str) -> None:
        db: Session = self._session_factory()
        try:
            # Bulk delete: a row already removed by a concurrent logout is not an error.
            db.query(UserSession).filter(UserSession.token == token).delete(synchronize_session=False)
            db.commit()
        finally:
            db.close()

    def purge_expired(self, now: datetime) -> int:
        db: Session = self._session_factory()
        try:
            result = db.execute(delete(UserSession).where(UserSession.expires_at <= now))
            db.commit()
            return result.rowcount or 0
        finally:
            db.close()


class SessionManager:
    def __init__(
        self,
        store: SessionStore,
        ttl: timedelta = timedelta(hours=24),
        clock: Callable[[], datetime] = datetime.utcnow,
    ):
        self.store = store
        self.ttl = ttl
        self._clock = clock

    def issue(self, user_id: int, username: str, email: str) -> str:
        token = secrets.token_urlsafe(TOKEN_BYTES)
        now = self._clock()
        purged = self.store.purge_expired(now)
        if purged:
            logger.debug("Purged %d expired sessions", purged)
        self.store.save(
            SessionRecord(
                token=token,
                identity=Identity(user_id=user_id, username=username, email=email),
                created_at=now,
                expires_at=now + self.ttl,
            )
        )
        return token

    def resolve(self, token: str | None) -> Identity | None:
        if not token:
            return None
        record = self.store.get(token)
        if record is None:
            return None
        if record.expires_at <= self._clock():
            self.store.delete(token)
            return None
        return record.identity

    def destroy(self, token: str | None) -> None:
        if not token:
            return
        self.store.delete(token)


def build_session_manager(session_factory: sessionmaker | None = None) -> SessionManager:
    ttl = timedelta(hours=settings.session_ttl_hours)
    if settings.session_backend == "database":
        if session_factory is None:
            raise RuntimeError("The database session backend needs a session factory")
        return SessionManager(DatabaseSessionStore(session_factory), ttl=ttl)
    if settings.session_backend != "memory":
        raise RuntimeError(f"Unknown SESSION_BACKEND: {settings.session_backend!r}")
    logger.info("Using in-process session store; sessions end when the process exits")
    return SessionManager(MemorySessionStore(), ttl=ttl)
