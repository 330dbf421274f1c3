import logging

from sqlalchemy.exc import SQLAlchemyError

from blooddb.errors import ConflictError, InternalFaultError, InvalidCredentialsError, ValidationError
from blooddb.models.user import User
from blooddb.schemas.user import LoginRequest, RegisterRequest, UserResponse
from blooddb.services.credentials import CredentialStore
from blooddb.services.passwords import hash_password, verify_password
from blooddb.services.sessions import Identity, SessionManager
from blooddb.services.validation import REGISTER_RULES, validate_fields

logger = logging.getLogger(__name__)


def to_user_response(user: User) -> UserResponse:
    return UserResponse(
        user_id=user.user_id,
        username=user.username,
        email=user.email,
        full_name=user.full_name,
        phone=user.phone,
        created_at=user.created_at,
        last_login=user.last_login,
    )


def register_user(store: CredentialStore, payload: RegisterRequest) -> User:
    violations = validate_fields(payload.model_dump(), REGISTER_RULES)
    if violations:
        raise ValidationError(violations)

    if store.username_or_email_taken(payload.username, payload.email):
        raise ConflictError()

    try:
        password_hash = hash_password(payload.password)
    except (ValueError, TypeError) as exc:
        logger.error("Password hashing failed during registration: %s", type(exc).__name__)
        raise InternalFaultError() from None

    try:
        user = store.create_user(
            username=payload.username,
            email=payload.email,
            password_hash=password_hash,
            full_name=payload.full_name,
            phone=payload.phone,
        )
    except SQLAlchemyError:
        logger.exception("Could not persist new user")
        raise InternalFaultError() from None

    logger.info("Registered user %s", user.user_id)
    return user


def _normalize_email(email: str) -> str:
    # Registration stores addresses with a lower-cased domain (EmailStr).
    local, at, domain = email.strip().rpartition("@")
    return f"{local}{at}{domain.lower()}" if at else email.strip()


def login_user(store: CredentialStore, sessions: SessionManager, payload: LoginRequest) -> tuple[User, str]:
    user = store.get_by_email(_normalize_email(payload.email))
    # Always run a verification so a missing account costs the same as a bad password.
    password_hash = user.password_hash if user else None
    if not verify_password(payload.password, password_hash) or user is None:
        raise InvalidCredentialsError()

    store.record_login(user)
    token = sessions.issue(user.user_id, user.username, user.email)
    logger.info("User %s logged in", user.user_id)
    return user, token


def logout(sessions: SessionManager, token: str | None) -> None:
    try:
        sessions.destroy(token)
    except Exception:
        logger.exception("Could not destroy session")
        raise InternalFaultError() from None


def check(sessions: SessionManager, token: str | None) -> Identity | None:
    try:
        return sessions.resolve(token)
    except Exception:
        logger.exception("Session lookup failed during auth check")
        return None
