"""Upload validation: safe staged filenames, max upload size."""
import re
from scanvault.core.config import get_settings

_MB = 1024 * 1024


def sanitize_storage_filename(filename: str | None) -> str:
    """Safe suffix for staged filenames: no path separators, no control chars, bounded length."""
    if not filename or not filename.strip():
        return ""
    # Remove path components and restrict to alphanumeric, dash, underscore, dot
    base = filename.strip().split("/")[-1].split("\\")[-1]
    safe = re.sub(r"[^\w\-.]", "_", base)
    return safe[:200] if len(safe) > 200 else safe


def max_upload_bytes() -> int:
    return get_settings().max_upload_mb * _MB
