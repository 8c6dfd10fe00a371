"""Authentication utilities"""
import secrets
from datetime import datetime, timezone

import bcrypt

TOKEN_BYTES = 32


def generate_token() -> str:
    """Generate an opaque bearer token (32 random bytes, 64 hex chars)"""
    return secrets.token_bytes(TOKEN_BYTES).hex()


def hash_password(password: str, rounds: int = 12) -> str:
    """Hash a password using bcrypt"""
    if not password:
        raise ValueError("password must not be blank")
    salt = bcrypt.gensalt(rounds=rounds)
    return bcrypt.hashpw(password.encode("utf-8"), salt).decode("utf-8")


def verify_password(password: str, password_hash: str) -> bool:
    """Constant-time check of a password against a bcrypt hash"""
    if not password or not password_hash:
        return False
    try:
        return bcrypt.checkpw(password.encode("utf-8"), password_hash.encode("utf-8"))
    except ValueError:
        # Stored value is not a bcrypt hash
        return False


def utcnow() -> datetime:
    """Default wall clock: timezone-aware UTC now"""
    return datetime.now(timezone.utc)
