"""bcrypt password hashing (the ``bcrypt`` package, not passlib)."""

import bcrypt

from config.settings import settings

# bcrypt silently ignores input past 72 bytes; reject rather than truncate
_MAX_PASSWORD_BYTES = 72


def hash_password(plain: str) -> str:
    raw = plain.encode("utf-8")
    if len(raw) > _MAX_PASSWORD_BYTES:
        raise ValueError(f"password longer than {_MAX_PASSWORD_BYTES} bytes")
    salt = bcrypt.gensalt(rounds=settings.BCRYPT_ROUNDS)
    return bcrypt.hashpw(raw, salt).decode("utf-8")


def verify_password(plain: str, hashed: str) -> bool:
    """False for a wrong password and for a stored hash bcrypt cannot parse."""
    raw = plain.encode("utf-8")
    if len(raw) > _MAX_PASSWORD_BYTES:
        return False
    try:
        return bcrypt.checkpw(raw, hashed.encode("utf-8"))
    except ValueError:
        return False
