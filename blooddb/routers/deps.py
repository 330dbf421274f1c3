from fastapi import Depends, Request, Response
from sqlalchemy.orm import Session

from blooddb.config import settings
from blooddb.database import get_db
from blooddb.errors import UnauthenticatedError
from blooddb.services.credentials import CredentialStore
from blooddb.services.sessions import Identity, SessionManager


def get_session_manager(request: Request) -> SessionManager:
    return request.app.state.session_manager


def get_credential_store(db: Session = Depends(get_db)) -> CredentialStore:
    return CredentialStore(db)


def get_session_token(request: Request) -> str | None:
    return request.cookies.get(settings.session_cookie_name) or None


def authorize(token: str | None, sessions: SessionManager) -> Identity:
    identity = sessions.resolve(token)
    if identity is None:
        raise UnauthenticatedError()
    return identity


def get_current_identity(
    token: str | None = Depends(get_session_token),
    sessions: SessionManager = Depends(get_session_manager),
) -> Identity:
    return authorize(token, sessions)


def cookie_settings() -> dict:
    if settings.cookie_cross_site:
        return {"httponly": True, "samesite": "none", "secure": True, "path": "/"}
    return {"httponly": True, "samesite": "lax", "secure": settings.cookie_secure, "path": "/"}


def set_session_cookie(response: Response, token: str) -> None:
    response.set_cookie(
        key=settings.session_cookie_name,
        value=token,
        max_age=settings.session_ttl_hours * 3600,
        **cookie_settings(),
    )


def clear_session_cookie(response: Response) -> None:
    response.delete_cookie(key=settings.session_cookie_name, **cookie_settings())
