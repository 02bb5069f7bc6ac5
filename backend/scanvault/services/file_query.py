"""Scanned-file catalog: filtered/paginated listing, lookups, deletion, scan statistics.

Every query is scoped to the caller's uid. Records owned by someone else are
reported exactly like records that do not exist.
"""
import logging
from dataclasses import dataclass, field
from datetime import date, datetime, time, timedelta, timezone
from uuid import UUID

from sqlalchemy import ColumnElement, Text, case, delete, func, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from scanvault.core.errors import NotFound, Unauthenticated, storage_errors
from scanvault.core.security import Identity
from scanvault.db.models import SCAN_CLEAN, SCAN_INFECTED, FileRecord, ScanRecord
from scanvault.services.storage import StagingStorage

logger = logging.getLogger(__name__)

FILE_NOT_FOUND = "File not found"
STATUS_ALL = "all"
STATUS_UNSCANNED = "unscanned"


@dataclass(frozen=True)
class FileFilters:
    file_id: UUID | None = None
    filename: str | None = None
    mime_type: str | None = None
    status: str | None = None  # all | unscanned | clean | infected | error
    uploaded_on: date | None = None


@dataclass(frozen=True)
class Pagination:
    page: int = 1
    limit: int = 10

    def __post_init__(self) -> None:
        if self.page < 1 or self.limit < 1:
            raise ValueError("page and limit must be >= 1")

    @property
    def offset(self) -> int:
        return (self.page - 1) * self.limit


@dataclass
class FileRow:
    file: FileRecord
    scan: ScanRecord | None


@dataclass
class FilePage:
    rows: list[FileRow] = field(default_factory=list)
    total: int = 0


@dataclass(frozen=True)
class ScanStatistics:
    total: int
    clean: int
    infected: int


def require_identity(user: Identity | None) -> Identity:
    if user is None or not user.uid:
        raise Unauthenticated("User not authenticated")
    return user


def _contains_ci(column, term: str) -> ColumnElement[bool]:
    """Case-insensitive literal substring match (LIKE wildcards in term are escaped)."""
    return func.lower(column, type_=Text).contains(term.lower(), autoescape=True)


def _day_bounds(day: date) -> tuple[datetime, datetime]:
    start = datetime.combine(day, time.min, tzinfo=timezone.utc)
    return start, start + timedelta(days=1)


def build_conditions(filters: FileFilters, user_id: str) -> list[ColumnElement[bool]]:
    """Predicates for files LEFT JOIN scans. Ownership first; one clause per filter that is set."""
    conditions: list[ColumnElement[bool]] = [FileRecord.user_id == user_id]
    if filters.file_id is not None:
        conditions.append(FileRecord.id == filters.file_id)
    if filters.filename:
        conditions.append(_contains_ci(FileRecord.filename, filters.filename))
    if filters.mime_type:
        conditions.append(_contains_ci(FileRecord.mime_type, filters.mime_type))
    if filters.status and filters.status != STATUS_ALL:
        if filters.status == STATUS_UNSCANNED:
            conditions.append(ScanRecord.id.is_(None))
        else:
            conditions.append(ScanRecord.status == filters.status)
    if filters.uploaded_on is not None:
        start, end = _day_bounds(filters.uploaded_on)
        conditions.append(FileRecord.uploaded_at >= start)
        conditions.append(FileRecord.uploaded_at < end)
    return conditions


async def list_files(
    db: AsyncSession,
    filters: FileFilters,
    pagination: Pagination,
    user: Identity | None,
) -> FilePage:
    """Newest upload first. total counts the filtered set before pagination."""
    user = require_identity(user)
    conditions = build_conditions(filters, user.uid)
    joined = (ScanRecord, ScanRecord.file_id == FileRecord.id)
    rows_q = (
        select(FileRecord, ScanRecord)
        .outerjoin(*joined)
        .where(*conditions)
        .order_by(FileRecord.uploaded_at.desc(), FileRecord.id.desc())
        .limit(pagination.limit)
        .offset(pagination.offset)
    )
    count_q = select(func.count(FileRecord.id)).select_from(FileRecord).outerjoin(*joined).where(*conditions)
    with storage_errors("list_files"):
        result = await db.execute(rows_q)
        rows = [FileRow(file=f, scan=s) for f, s in result.all()]
        total = (await db.execute(count_q)).scalar_one()
    return FilePage(rows=rows, total=int(total or 0))


async def get_file(db: AsyncSession, file_id: UUID, user: Identity | None) -> FileRecord:
    """Return the caller's file with its scan loaded; NotFound for missing or foreign ids."""
    user = require_identity(user)
    with storage_errors("get_file"):
        result = await db.execute(
            select(FileRecord)
            .options(selectinload(FileRecord.scan))
            .where(FileRecord.id == file_id, FileRecord.user_id == user.uid)
        )
        row = result.scalar_one_or_none()
    if row is None:
        raise NotFound(FILE_NOT_FOUND)
    return row


async def delete_file(
    db: AsyncSession,
    file_id: UUID,
    user: Identity | None,
    *,
    storage: StagingStorage,
) -> None:
    """Remove the physical file (best effort), then the scan row and the file row."""
    record = await get_file(db, file_id, user)
    path = storage.resolve_path(record.filename)
    logger.info("Deleting file %s (%s) for user %s", record.id, path, record.user_id)
    storage.release(path)
    with storage_errors("delete_file"):
        await db.execute(delete(ScanRecord).where(ScanRecord.file_id == record.id))
        await db.execute(
            delete(FileRecord).where(FileRecord.id == record.id, FileRecord.user_id == record.user_id)
        )
        await db.commit()


async def scan_statistics(db: AsyncSession, user: Identity | None) -> ScanStatistics:
    """Files without a scan row count toward total only."""
    user = require_identity(user)
    q = (
        select(
            func.count(FileRecord.id),
            func.sum(case((ScanRecord.status == SCAN_CLEAN, 1), else_=0)),
            func.sum(case((ScanRecord.status == SCAN_INFECTED, 1), else_=0)),
        )
        .select_from(FileRecord)
        .outerjoin(ScanRecord, ScanRecord.file_id == FileRecord.id)
        .where(FileRecord.user_id == user.uid)
    )
    with storage_errors("scan_statistics"):
        total, clean, infected = (await db.execute(q)).one()
    return ScanStatistics(total=int(total or 0), clean=int(clean or 0), infected=int(infected or 0))


async def infected_file_ids(db: AsyncSession, user: Identity | None) -> list[UUID]:
    user = require_identity(user)
    q = (
        select(FileRecord.id)
        .join(ScanRecord, ScanRecord.file_id == FileRecord.id)
        .where(FileRecord.user_id == user.uid, ScanRecord.status == SCAN_INFECTED)
        .order_by(FileRecord.uploaded_at.desc())
    )
    with storage_errors("infected_file_ids"):
        result = await db.execute(q)
        return list(result.scalars().all())
