"""JWT identity: verify tokens issued by the identity provider, mint them for tooling/tests."""
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone

from jose import JWTError, jwt

from scanvault.core.config import get_settings

settings = get_settings()


@dataclass(frozen=True)
class Identity:
    """Verified caller. uid is the owner key for every file record."""
    uid: str


def create_access_token(uid: str, expires_minutes: int | None = None) -> str:
    minutes = expires_minutes if expires_minutes is not None else settings.access_token_expire_minutes
    now = datetime.now(timezone.utc)
    payload = {
        "sub": uid,
        "exp": now + timedelta(minutes=minutes),
        "iat": now,
    }
    return jwt.encode(payload, settings.secret_key, algorithm=settings.jwt_algorithm)


def decode_access_token(token: str) -> dict | None:
    try:
        return jwt.decode(token, settings.secret_key, algorithms=[settings.jwt_algorithm])
    except JWTError:
        return None


def identity_from_token(token: str | None) -> Identity | None:
    """Return Identity for a valid token with a non-empty sub; else None."""
    if not token:
        return None
    payload = decode_access_token(token)
    if not payload:
        return None
    sub = payload.get("sub")
    if not isinstance(sub, str) or not sub.strip():
        return None
    return Identity(uid=sub)
