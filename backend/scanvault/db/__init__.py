from .models import (
    FileRecord,
    ScanRecord,
)
from .session import get_db, async_session_factory, engine, ping

__all__ = [
    "FileRecord",
    "ScanRecord",
    "get_db",
    "async_session_factory",
    "engine",
    "ping",
]
