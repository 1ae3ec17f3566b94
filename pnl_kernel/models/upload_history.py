"""
ORM model for upload batches.

Contract:
    UploadHistory is both the audit record of one upload request and the
    durable job the upload worker claims.  Only the ingestion service moves
    it through pending -> processing -> terminal; ``delete_upload`` may then
    mark it ``deleted``.  Rows are never physically deleted.

The ``metadata`` column is mapped as ``upload_metadata`` because the name
is reserved on declarative classes.
"""

from __future__ import annotations

from datetime import datetime
from typing import TYPE_CHECKING, Any

from sqlalchemy import BigInteger, DateTime, Index, String, Text
from sqlalchemy.dialects.postgresql import JSON
from sqlalchemy.orm import Mapped, mapped_column

from pnl_kernel.db.base import TrackedBase

if TYPE_CHECKING:
    from pnl_kernel.domain.types import UploadSummary


class UploadHistory(TrackedBase):
    """One upload batch: file metadata, status, counts and errors."""

    __tablename__ = "upload_history"

    __table_args__ = (
        Index("idx_upload_history_status", "status"),
        Index("idx_upload_history_created_at", "created_at"),
    )

    filename: Mapped[str] = mapped_column(Text, nullable=False)
    original_name: Mapped[str] = mapped_column(Text, nullable=False)
    file_size: Mapped[int] = mapped_column(BigInteger, default=0, nullable=False)
    uploaded_by: Mapped[str] = mapped_column(
        String(255), default="anonymous", nullable=False,
    )
    status: Mapped[str] = mapped_column(String(50), nullable=False)
    records_count: Mapped[int] = mapped_column(default=0, nullable=False)
    errors: Mapped[list | None] = mapped_column(JSON, nullable=True)
    error_message: Mapped[str | None] = mapped_column(Text, nullable=True)
    upload_metadata: Mapped[dict[str, Any] | None] = mapped_column(
        "metadata", JSON, nullable=True,
    )
    started_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), nullable=True,
    )
    completed_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), nullable=True,
    )

    def __repr__(self) -> str:
        return f"<UploadHistory {self.id} {self.status}>"

    def to_dto(self) -> UploadSummary:
        from pnl_kernel.domain.types import UploadStatus, UploadSummary

        return UploadSummary(
            upload_id=self.id,
            filename=self.filename,
            original_name=self.original_name,
            file_size=self.file_size,
            uploaded_by=self.uploaded_by,
            status=UploadStatus(self.status),
            records_count=self.records_count,
            errors=tuple(self.errors or ()),
            error_message=self.error_message,
            metadata=dict(self.upload_metadata or {}),
            started_at=self.started_at,
            completed_at=self.completed_at,
            created_at=self.created_at,
        )
