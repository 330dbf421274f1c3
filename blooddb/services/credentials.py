from datetime import datetime

from sqlalchemy import or_
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from blooddb.errors import ConflictError
from blooddb.models.user import User


class CredentialStore:
    """User rows as seen by the auth layer.

    Pre-checks such as ``username_or_email_taken`` are advisory. The
    unique constraints on ``users.username`` and ``users.email`` are what
    actually reject a duplicate, which surfaces here as ``ConflictError``.
    """

    def __init__(self, db: Session):
        self.db = db

    def get_by_email(self, email: str) -> User | None:
        return self.db.query(User).filter(User.email == email).first()

    def get_by_id(self, user_id: int) -> User | None:
        return self.db.query(User).filter(User.user_id == user_id).first()

    def username_or_email_taken(self, username: str, email: str) -> bool:
        existing = self.db.query(User.user_id).filter(or_(User.username == username, User.email == email)).first()
        return existing is not None

    def email_taken_by_other(self, email: str, user_id: int) -> bool:
        existing = self.db.query(User.user_id).filter(User.email == email, User.user_id != user_id).first()
        return existing is not None

    def create_user(self, username: str, email: str, password_hash: str, full_name: str, phone: str) -> User:
        user = User(
            username=username,
            email=email,
            password_hash=password_hash,
            full_name=full_name,
            phone=phone,
        )
        self.db.add(user)
        try:
            self.db.commit()
        except IntegrityError as exc:
            self.db.rollback()
            raise ConflictError() from exc
        self.db.refresh(user)
        return user

    def record_login(self, user: User) -> None:
        user.last_login = datetime.utcnow()
        self.db.commit()

    def update_profile(self, user: User, full_name: str, email: str, phone: str) -> User:
        user.full_name = full_name
        user.email = email
        user.phone = phone
        try:
            self.db.commit()
        except IntegrityError as exc:
            self.db.rollback()
            raise ConflictError("Email already in use") from exc
        self.db.refresh(user)
        return user
