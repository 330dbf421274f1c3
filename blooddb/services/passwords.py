from passlib.context import CryptContext

from blooddb.config import settings

# pbkdf2_sha256 avoids native bcrypt backend incompatibilities across environments.
pwd_context = CryptContext(
    schemes=["pbkdf2_sha256"],
    deprecated="auto",
    pbkdf2_sha256__rounds=settings.password_hash_rounds,
)


def hash_password(password: str) -> str:
    if not password:
        raise ValueError("Cannot hash an empty password")
    return pwd_context.hash(password)


def verify_password(password: str, password_hash: str | None) -> bool:
    if not password or not password_hash:
        # Burn the same work as a real check so unknown accounts are not faster.
        pwd_context.dummy_verify()
        return False
    try:
        return pwd_context.verify(password, password_hash)
    except ValueError:
        # Unrecognised or corrupt hash.
        return False
