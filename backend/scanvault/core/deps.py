"""FastAPI dependencies: current identity, metrics guard."""
from fastapi import Cookie, Depends, Header, HTTPException, Request, status

from scanvault.core.config import get_settings
from scanvault.core.errors import Unauthenticated
from scanvault.core.security import Identity, identity_from_token

settings = get_settings()


def _bearer(authorization: str | None) -> str | None:
    if not authorization:
        return None
    scheme, _, token = authorization.partition(" ")
    if scheme.lower() != "bearer" or not token.strip():
        return None
    return token.strip()


async def get_current_user_optional(
    request: Request,
    cookie: str | None = Cookie(None, alias=settings.cookie_name),
    authorization: str | None = Header(None),
) -> Identity | None:
    """Return identity from Authorization: Bearer or the session cookie; else None (no 401)."""
    user = identity_from_token(_bearer(authorization) or cookie)
    if user is not None:
        request.state.user_id = user.uid
    return user


async def get_current_user(
    user: Identity | None = Depends(get_current_user_optional),
) -> Identity:
    """Require a verified identity; 401 if not."""
    if user is None:
        raise Unauthenticated("Not authenticated")
    return user


def require_metrics_access(
    user: Identity | None = Depends(get_current_user_optional),
    x_metrics_secret: str | None = Header(None, alias="X-Metrics-Secret"),
) -> None:
    """Allow /metrics if: authenticated (when metrics_require_auth), or valid X-Metrics-Secret, or no guard (local)."""
    s = get_settings()
    if s.metrics_secret:
        if x_metrics_secret != s.metrics_secret:
            raise HTTPException(
                status_code=status.HTTP_401_UNAUTHORIZED,
                detail="Invalid or missing X-Metrics-Secret",
            )
        return
    if s.metrics_require_auth and user is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Metrics require authentication",
        )
