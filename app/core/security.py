from __future__ import annotations
import secrets
from datetime import datetime, timedelta, timezone
from jose import jwt, JWTError
from pwdlib import PasswordHash
from .config import Settings

SESSION_TOKEN_LIFETIME = timedelta(hours=1)
RESET_TOKEN_LIFETIME = timedelta(minutes=15)

password_hash = PasswordHash.recommended()


def utcnow() -> datetime:
    # Stored timestamps are naive UTC.
    return datetime.now(timezone.utc).replace(tzinfo=None)


def verify_password(plain_password, password):
    return password_hash.verify(plain_password, password)


def get_password_hash(password):
    return password_hash.hash(password)


def issue_opaque_token() -> str:
    """Random hex token used for email verification and password reset links."""
    return secrets.token_hex(32)


def issue_session_token(user_id: int, settings: Settings, now: datetime | None = None) -> str:
    issued_at = now or datetime.now(timezone.utc)
    to_encode = {
        "sub": str(user_id),
        "iat": issued_at,
        "exp": issued_at + SESSION_TOKEN_LIFETIME,
    }
    return jwt.encode(to_encode, settings.SECRET_KEY, algorithm=settings.ALGORITHM)


def decode_session_token(token: str, settings: Settings) -> int | None:
    """Return the user id carried by a session token, or None if it is not acceptable."""
    try:
        payload = jwt.decode(token, settings.SECRET_KEY, algorithms=[settings.ALGORITHM])
    except JWTError:
        return None

    subject = payload.get("sub")
    try:
        return int(subject)
    except (TypeError, ValueError):
        return None
