"""Pydantic schemas for the /api/files endpoints."""
from datetime import datetime
from typing import Literal
from uuid import UUID

from pydantic import BaseModel, ConfigDict


def _config_forbid(**kwargs):
    return ConfigDict(extra="forbid", **kwargs)


StatusFilter = Literal["all", "clean", "infected", "error", "unscanned"]


class ScanOut(BaseModel):
    model_config = _config_forbid(from_attributes=True)
    status: str
    virus_name: str | None
    scan_log: str | None
    scanner_version: str | None
    scanned_at: datetime


class FileSummary(BaseModel):
    """One catalog row: file metadata plus its scan columns (null when unscanned)."""
    model_config = _config_forbid()
    id: UUID
    filename: str
    storage_key: str
    file_size: int
    mime_type: str | None
    uploaded_at: datetime
    scan_status: str | None
    virus_name: str | None
    scan_log: str | None
    scanner_version: str | None


class FileDetail(BaseModel):
    model_config = _config_forbid()
    id: UUID
    filename: str
    storage_key: str
    file_size: int
    mime_type: str | None
    uploaded_at: datetime
    scan: ScanOut | None


class FileList(BaseModel):
    model_config = _config_forbid()
    files: list[FileSummary]
    total: int
    page: int
    limit: int


class UploadResponse(BaseModel):
    model_config = _config_forbid(from_attributes=True)
    id: UUID
    filename: str
    storage_key: str
    file_size: int
    mime_type: str | None
    uploaded_at: datetime
    status: str
    virus_name: str | None
    scan_log: str
    scanner_version: str | None
    scanned_at: datetime


class ScanStatisticsOut(BaseModel):
    model_config = _config_forbid(from_attributes=True)
    total: int
    clean: int
    infected: int


class InfectedFileIds(BaseModel):
    model_config = _config_forbid()
    file_ids: list[UUID]
