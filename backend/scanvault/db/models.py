"""SQLAlchemy models: uploaded files and their (zero-or-one) scan result."""
import uuid
from datetime import datetime, timezone
from sqlalchemy import (
    BigInteger,
    CheckConstraint,
    DateTime,
    ForeignKey,
    Index,
    Text,
    Uuid,
)
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column, relationship

# Storage key recorded for files kept in the local staging area; remote backends would store their object key.
LOCAL_STORAGE_KEY = "local"

SCAN_CLEAN = "clean"
SCAN_INFECTED = "infected"
SCAN_ERROR = "error"
SCAN_STATUSES = (SCAN_CLEAN, SCAN_INFECTED, SCAN_ERROR)


def gen_uuid() -> uuid.UUID:
    return uuid.uuid4()


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class Base(DeclarativeBase):
    pass


class FileRecord(Base):
    __tablename__ = "files"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=gen_uuid)
    filename: Mapped[str] = mapped_column(Text, nullable=False)
    storage_key: Mapped[str] = mapped_column(Text, nullable=False, default=LOCAL_STORAGE_KEY)
    file_size: Mapped[int] = mapped_column(BigInteger, nullable=False)
    user_id: Mapped[str] = mapped_column(Text, nullable=False)
    mime_type: Mapped[str | None] = mapped_column(Text, nullable=True)
    uploaded_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, default=utcnow)

    scan: Mapped["ScanRecord | None"] = relationship(
        "ScanRecord", back_populates="file", uselist=False, passive_deletes=True
    )

    __table_args__ = (Index("ix_files_user_uploaded", "user_id", "uploaded_at"),)


class ScanRecord(Base):
    """One scan outcome per file. virus_name is set only when status == 'infected'."""
    __tablename__ = "scans"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=gen_uuid)
    file_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("files.id", ondelete="CASCADE"), nullable=False, unique=True
    )
    status: Mapped[str] = mapped_column(Text, nullable=False)  # clean, infected, error
    virus_name: Mapped[str | None] = mapped_column(Text, nullable=True)
    scan_log: Mapped[str | None] = mapped_column(Text, nullable=True)
    scanner_version: Mapped[str | None] = mapped_column(Text, nullable=True)
    scanned_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, default=utcnow)

    file: Mapped["FileRecord"] = relationship("FileRecord", back_populates="scan")

    __table_args__ = (
        CheckConstraint("status IN ('clean', 'infected', 'error')", name="ck_scans_status"),
        CheckConstraint("virus_name IS NULL OR status = 'infected'", name="ck_scans_virus_name_infected"),
    )
