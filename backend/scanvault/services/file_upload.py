"""Upload orchestration: record the file, scan it, record the verdict, drop the staged copy.

Steps run strictly in order and each insert is committed on its own: a crash
between them leaves a file without a scan row, which readers treat as
unscanned. The staged file is released on every exit path.
"""
import logging
import time
from dataclasses import dataclass
from datetime import datetime
from pathlib import Path
from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession

from scanvault.core.errors import MissingPayload, storage_errors
from scanvault.core.logging_redaction import truncate
from scanvault.core.metrics import record_scan_duration, record_scanner_fallback, record_upload
from scanvault.core.security import Identity
from scanvault.db.models import LOCAL_STORAGE_KEY, SCAN_INFECTED, FileRecord, ScanRecord, utcnow
from scanvault.services.file_query import require_identity
from scanvault.services.scanner import Scanner, ScannerUnavailable, ScanVerdict, mock_verdict
from scanvault.services.storage import StagedFile, StagingStorage

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class UploadResult:
    """File metadata merged with its verdict."""
    id: UUID
    filename: str
    storage_key: str
    file_size: int
    user_id: str
    mime_type: str | None
    uploaded_at: datetime
    status: str
    virus_name: str | None
    scan_log: str
    scanner_version: str | None
    scanned_at: datetime


async def scan_with_fallback(scanner: Scanner, path: Path) -> ScanVerdict:
    """Real verdict when the scanner answers its probe; mock clean verdict otherwise."""
    probe = await scanner.probe()
    if not probe.available:
        logger.warning("Scanner not available, using mock scan. Install ClamAV for real virus scanning.")
        record_scanner_fallback()
        return mock_verdict()
    start = time.perf_counter()
    try:
        return await scanner.scan(path, probe.version)
    except ScannerUnavailable:
        logger.warning("Scanner could not be started for %s, using mock scan", path, exc_info=True)
        record_scanner_fallback()
        return mock_verdict()
    finally:
        record_scan_duration(time.perf_counter() - start)


async def upload_file(
    db: AsyncSession,
    staged: StagedFile | None,
    user: Identity | None,
    *,
    scanner: Scanner,
    storage: StagingStorage,
) -> UploadResult:
    user = require_identity(user)
    if staged is None:
        logger.warning("Upload attempt without a file (user %s)", user.uid)
        raise MissingPayload("No file uploaded")

    async with storage.staged(staged) as path:
        record = FileRecord(
            filename=staged.filename,
            storage_key=LOCAL_STORAGE_KEY,
            file_size=staged.size,
            user_id=user.uid,
            mime_type=staged.mime_type,
            uploaded_at=utcnow(),
        )
        with storage_errors("insert file record"):
            db.add(record)
            await db.commit()

        verdict = await scan_with_fallback(scanner, path)

        scan = ScanRecord(
            file_id=record.id,
            status=verdict.status,
            virus_name=verdict.virus_name if verdict.status == SCAN_INFECTED else None,
            scan_log=verdict.scan_log,
            scanner_version=verdict.scanner_version,
            scanned_at=utcnow(),
        )
        with storage_errors("insert scan record"):
            db.add(scan)
            await db.commit()

    record_upload(scan.status)
    log = logger.warning if scan.status == SCAN_INFECTED else logger.info
    log(
        "Scanned file %s for user %s: %s %s (%s)",
        record.id, user.uid, scan.status, scan.virus_name or "", truncate(scan.scan_log or ""),
    )
    return UploadResult(
        id=record.id,
        filename=record.filename,
        storage_key=record.storage_key,
        file_size=record.file_size,
        user_id=record.user_id,
        mime_type=record.mime_type,
        uploaded_at=record.uploaded_at,
        status=scan.status,
        virus_name=scan.virus_name,
        scan_log=scan.scan_log or "",
        scanner_version=scan.scanner_version,
        scanned_at=scan.scanned_at,
    )
