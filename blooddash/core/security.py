from __future__ import annotations

import secrets
import uuid
from datetime import datetime, timedelta, timezone
from typing import Optional, Tuple

from jose import jwt
from passlib.context import CryptContext

from blooddash.core.config import get_settings

# passwords and one-time codes are both stored as bcrypt hashes
pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto")


def hash_secret(raw: str) -> str:
    return pwd_context.hash(raw)


def verify_secret(raw: str, hashed: str) -> bool:
    return pwd_context.verify(raw, hashed)


def generate_code(length: int) -> str:
    """Numeric one-time code, e.g. 6 digits."""
    return "".join(str(secrets.randbelow(10)) for _ in range(length))


def unusable_password() -> str:
    """Hash for passwordless accounts; the raw value is never kept."""
    return hash_secret(secrets.token_urlsafe(32))


def issue_session_token(user_id: uuid.UUID, session_id: uuid.UUID, email: str, expires_minutes: Optional[int] = None) -> str:
    settings = get_settings()
    now = datetime.now(timezone.utc)
    ttl = expires_minutes or settings.jwt_access_token_minutes
    payload = {
        "sub": str(user_id),
        "sid": str(session_id),
        "email": email,
        "iat": int(now.timestamp()),
        "exp": int((now + timedelta(minutes=ttl)).timestamp()),
    }
    return jwt.encode(payload, settings.jwt_secret_key, algorithm=settings.jwt_algorithm)


def read_session_token(token: str) -> Tuple[uuid.UUID, uuid.UUID]:
    """
    (user_id, session_id) from a signed token.

    Raises JWTError for bad signatures or expiry, ValueError for
    malformed claims. Whether the session is still live is the provider's call.
    """
    settings = get_settings()
    payload = jwt.decode(token, settings.jwt_secret_key, algorithms=[settings.jwt_algorithm])
    return uuid.UUID(str(payload.get("sub"))), uuid.UUID(str(payload.get("sid")))
