"""Files: upload + scan, list (filtered, paginated), detail, delete, statistics. All scoped to the caller."""
from datetime import date
from uuid import UUID

from fastapi import APIRouter, Depends, File, Query, Response, UploadFile, status
from sqlalchemy.ext.asyncio import AsyncSession

from scanvault.api.schemas import (
    FileDetail,
    FileList,
    FileSummary,
    InfectedFileIds,
    ScanOut,
    ScanStatisticsOut,
    StatusFilter,
    UploadResponse,
)
from scanvault.core.deps import get_current_user
from scanvault.core.errors import MissingPayload, RateLimited
from scanvault.core.rate_limit import is_upload_rate_limited
from scanvault.core.security import Identity
from scanvault.db import get_db
from scanvault.services import file_query
from scanvault.services.file_query import FileFilters, Pagination
from scanvault.services.file_upload import upload_file
from scanvault.services.scanner import Scanner, get_scanner
from scanvault.services.storage import StagingStorage, get_storage

router = APIRouter(prefix="/files", tags=["files"])


def _summary(row: file_query.FileRow) -> FileSummary:
    f, s = row.file, row.scan
    return FileSummary(
        id=f.id,
        filename=f.filename,
        storage_key=f.storage_key,
        file_size=f.file_size,
        mime_type=f.mime_type,
        uploaded_at=f.uploaded_at,
        scan_status=s.status if s else None,
        virus_name=s.virus_name if s else None,
        scan_log=s.scan_log if s else None,
        scanner_version=s.scanner_version if s else None,
    )


@router.get("", response_model=FileList)
async def list_files(
    user: Identity = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
    file_id: UUID | None = None,
    filename: str | None = None,
    mime_type: str | None = Query(None, alias="mimeType"),
    status_filter: StatusFilter | None = Query(None, alias="status"),
    uploaded_on: date | None = Query(None, alias="date"),
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=100),
):
    filters = FileFilters(
        file_id=file_id,
        filename=filename,
        mime_type=mime_type,
        status=status_filter,
        uploaded_on=uploaded_on,
    )
    result = await file_query.list_files(db, filters, Pagination(page=page, limit=limit), user)
    return FileList(files=[_summary(r) for r in result.rows], total=result.total, page=page, limit=limit)


@router.get("/stats", response_model=ScanStatisticsOut)
async def scan_statistics(
    user: Identity = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    stats = await file_query.scan_statistics(db, user)
    return ScanStatisticsOut.model_validate(stats)


@router.get("/infected", response_model=InfectedFileIds)
async def infected_files(
    user: Identity = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    return InfectedFileIds(file_ids=await file_query.infected_file_ids(db, user))


@router.get("/{file_id}", response_model=FileDetail)
async def get_file(
    file_id: UUID,
    user: Identity = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    f = await file_query.get_file(db, file_id, user)
    return FileDetail(
        id=f.id,
        filename=f.filename,
        storage_key=f.storage_key,
        file_size=f.file_size,
        mime_type=f.mime_type,
        uploaded_at=f.uploaded_at,
        scan=ScanOut.model_validate(f.scan) if f.scan else None,
    )


@router.delete("/{file_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_file(
    file_id: UUID,
    user: Identity = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
    storage: StagingStorage = Depends(get_storage),
):
    await file_query.delete_file(db, file_id, user, storage=storage)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.post("", response_model=UploadResponse, status_code=status.HTTP_201_CREATED)
async def upload(
    file: UploadFile | None = File(None),
    user: Identity = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
    storage: StagingStorage = Depends(get_storage),
    scanner: Scanner = Depends(get_scanner),
):
    if file is None:
        raise MissingPayload("No file uploaded")
    if is_upload_rate_limited(user.uid):
        raise RateLimited("Too many uploads")
    staged = await storage.stage_upload(file)
    result = await upload_file(db, staged, user, scanner=scanner, storage=storage)
    return UploadResponse.model_validate(result)
