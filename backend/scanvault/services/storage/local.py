"""Local (disk) staging: uploads are streamed to upload_dir under <uuid hex>_<sanitized name>."""
import logging
import time
from pathlib import Path
from uuid import uuid4

from fastapi import UploadFile

from scanvault.core.config import get_settings
from scanvault.core.errors import CleanupFailure, UploadTooLarge
from scanvault.services.storage.base import StagedFile, StagingStorage
from scanvault.services.upload_validation import max_upload_bytes, sanitize_storage_filename

logger = logging.getLogger(__name__)

CHUNK_SIZE = 1024 * 1024


class LocalStorage(StagingStorage):
    """Disk staging directory shared by all requests; names are unique per upload."""

    def __init__(self, root: str | Path | None = None) -> None:
        self._root = Path(root if root is not None else get_settings().upload_dir).resolve()

    @property
    def root(self) -> Path:
        return self._root

    async def stage_upload(self, upload: UploadFile) -> StagedFile:
        self._root.mkdir(parents=True, exist_ok=True)
        safe_name = sanitize_storage_filename(upload.filename)
        filename = f"{uuid4().hex}_{safe_name}" if safe_name else uuid4().hex
        path = self._root / filename
        limit = max_upload_bytes()
        size = 0
        try:
            with path.open("wb") as out:
                while chunk := await upload.read(CHUNK_SIZE):
                    size += len(chunk)
                    if size > limit:
                        raise UploadTooLarge(f"File exceeds {limit} bytes")
                    out.write(chunk)
        except BaseException:
            # Any failure mid-write, cancellation included, must not leave a partial file behind
            self.release(path)
            raise
        return StagedFile(filename=filename, size=size, mime_type=upload.content_type, path=path)

    def resolve_path(self, filename: str) -> Path:
        # Only the final component: stored filenames never carry directories
        return self._root / Path(filename).name

    def discard(self, path: Path) -> bool:
        try:
            Path(path).unlink()
        except FileNotFoundError:
            logger.info("Staged file already gone: %s", path)
            return False
        except OSError as e:
            raise CleanupFailure(f"Could not delete staged file {path}") from e
        return True

    def prune_stale(self, max_age_seconds: float, now: float | None = None) -> int:
        """Delete staged files older than max_age_seconds. Returns how many were removed."""
        if not self._root.is_dir():
            return 0
        cutoff = (now if now is not None else time.time()) - max_age_seconds
        removed = 0
        for entry in self._root.iterdir():
            try:
                if not entry.is_file() or entry.stat().st_mtime >= cutoff:
                    continue
                if self.discard(entry):
                    removed += 1
            except FileNotFoundError:
                # Released by its own upload between listing and stat
                continue
            except CleanupFailure:
                logger.error("Could not prune staged file %s", entry, exc_info=True)
        return removed
