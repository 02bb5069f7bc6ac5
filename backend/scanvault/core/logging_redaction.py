"""Redact sensitive data from structured logs. Never log JWTs, cookies or secrets; keep scanner output short."""
import re
from typing import Any

# Keys (case-insensitive) that must be redacted in dicts
REDACT_KEYS = frozenset({
    "password", "token", "secret", "authorization", "cookie",
    "access_token", "jwt", "api_key",
})
# Scanner output can be large and contains local paths
TRUNCATE_KEYS = frozenset({"scan_log", "stdout", "stderr"})
MAX_LOGGED_TEXT = 200


def _redact_key(key: str) -> bool:
    k = key.lower()
    return any(r in k for r in REDACT_KEYS)


def truncate(text: str, limit: int = MAX_LOGGED_TEXT) -> str:
    if len(text) <= limit:
        return text
    return f"{text[:limit]}...[{len(text) - limit} more chars]"


def redact_for_log(obj: Any) -> Any:
    """Return a copy of obj safe for logging: sensitive keys replaced with '[REDACTED]', long scanner text cut."""
    if obj is None:
        return None
    if isinstance(obj, dict):
        out = {}
        for k, v in obj.items():
            if _redact_key(k):
                out[k] = "[REDACTED]"
            elif k.lower() in TRUNCATE_KEYS and isinstance(v, str):
                out[k] = truncate(v)
            else:
                out[k] = redact_for_log(v)
        return out
    if isinstance(obj, (list, tuple)):
        return type(obj)(redact_for_log(x) for x in obj)
    if isinstance(obj, str) and _looks_like_secret(obj):
        return "[REDACTED]"
    return obj


def _looks_like_secret(s: str) -> bool:
    """Heuristic: JWT or bearer token."""
    if len(s) > 64 and re.match(r"^[A-Za-z0-9_-]+\.([A-Za-z0-9_-]+)\.", s):
        return True  # JWT-like
    if s.lower().startswith("bearer "):
        return True
    return False
