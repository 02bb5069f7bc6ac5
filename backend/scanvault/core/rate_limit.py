"""In-memory upload rate limit, per process. Use a WAF/API Gateway for limits shared across workers."""
import time
from collections import deque

from scanvault.core.config import get_settings


class SlidingWindowLimiter:
    """At most `limit` hits per key inside the trailing window. Keys with no recent hits are dropped."""

    def __init__(self, window_seconds: float = 60.0) -> None:
        self.window = window_seconds
        self._hits: dict[str, deque[float]] = {}

    def __len__(self) -> int:
        return len(self._hits)

    def _evict(self, now: float) -> None:
        cutoff = now - self.window
        for key in list(self._hits):
            hits = self._hits[key]
            while hits and hits[0] <= cutoff:
                hits.popleft()
            if not hits:
                del self._hits[key]

    def hit(self, key: str, limit: int, now: float | None = None) -> bool:
        """Record a hit for key. True (and nothing recorded) when key is already at its limit."""
        now = time.monotonic() if now is None else now
        self._evict(now)
        hits = self._hits.setdefault(key, deque())
        if len(hits) >= limit:
            return True
        hits.append(now)
        return False

    def clear(self) -> None:
        self._hits.clear()


_uploads = SlidingWindowLimiter()


def is_upload_rate_limited(uid: str) -> bool:
    """Per-user limit for POST /api/files (each upload spawns a scanner process)."""
    return _uploads.hit(uid, get_settings().upload_rate_limit_per_minute)


def reset_rate_limits() -> None:
    _uploads.clear()
