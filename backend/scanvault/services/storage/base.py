"""Staging storage interface: where received uploads sit until their scan is persisted."""
import logging
from abc import ABC, abstractmethod
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from dataclasses import dataclass
from pathlib import Path

from fastapi import UploadFile

from scanvault.core.errors import CleanupFailure
from scanvault.core.metrics import record_cleanup_failure

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class StagedFile:
    """A received upload on local disk: generated filename, byte size, MIME type and readable path."""
    filename: str
    size: int
    mime_type: str | None
    path: Path | None = None


class StagingStorage(ABC):
    """Abstract staging area. Implementations: local (disk)."""

    @abstractmethod
    async def stage_upload(self, upload: UploadFile) -> StagedFile:
        """Persist an incoming upload under a unique generated name and describe it."""
        ...

    @abstractmethod
    def resolve_path(self, filename: str) -> Path:
        """Absolute OS-native path for a stored filename."""
        ...

    @abstractmethod
    def discard(self, path: Path) -> bool:
        """Delete a staged file. False if it was already gone; raise CleanupFailure on any other error."""
        ...

    def path_for(self, staged: StagedFile) -> Path:
        return Path(staged.path).resolve() if staged.path else self.resolve_path(staged.filename)

    def release(self, path: Path) -> None:
        """Best-effort discard: failures are logged and counted, never raised."""
        try:
            if self.discard(path):
                logger.info("Deleted staged file %s", path)
        except CleanupFailure:
            record_cleanup_failure()
            logger.error("Could not delete staged file %s", path, exc_info=True)

    @asynccontextmanager
    async def staged(self, staged: StagedFile) -> AsyncIterator[Path]:
        """Yield the staged file's path; it is released on every exit path of the block."""
        path = self.path_for(staged)
        try:
            yield path
        finally:
            self.release(path)
