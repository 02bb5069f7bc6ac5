"""Staging storage factory. Only the local (disk) backend exists; storage_key records 'local'."""
from scanvault.core.config import get_settings
from scanvault.services.storage.base import StagedFile, StagingStorage
from scanvault.services.storage.local import LocalStorage

__all__ = ["StagedFile", "StagingStorage", "LocalStorage", "get_storage"]


def get_storage() -> StagingStorage:
    """Return the configured staging backend."""
    settings = get_settings()
    if settings.storage_backend != "local":
        raise ValueError(f"Unsupported storage backend: {settings.storage_backend}")
    return LocalStorage(settings.upload_dir)
