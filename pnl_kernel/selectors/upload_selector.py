"""Read access to upload history, newest first."""

from __future__ import annotations

from dataclasses import dataclass
from uuid import UUID

from sqlalchemy import func, select

from pnl_kernel.domain.types import UploadSummary
from pnl_kernel.exceptions import UploadNotFoundError
from pnl_kernel.models.upload_history import UploadHistory
from pnl_kernel.selectors.base import BaseSelector


@dataclass(frozen=True)
class UploadPage:
    """One page of upload history."""

    uploads: tuple[UploadSummary, ...]
    page: int
    limit: int
    total: int

    @property
    def pages(self) -> int:
        return (self.total + self.limit - 1) // self.limit if self.limit else 0


class UploadSelector(BaseSelector):

    def list_uploads(self, page: int = 1, limit: int = 20) -> UploadPage:
        """
        Page through uploads ordered by creation time, newest first.

        Args:
            page: 1-based page number; values below 1 are treated as 1.
            limit: Page size; values below 1 are treated as 1.
        """
        page = max(page, 1)
        limit = max(limit, 1)
        total = self.session.execute(
            select(func.count()).select_from(UploadHistory)
        ).scalar_one()
        rows = self.session.execute(
            select(UploadHistory)
            .order_by(UploadHistory.created_at.desc(), UploadHistory.id)
            .offset((page - 1) * limit)
            .limit(limit)
        ).scalars().all()
        return UploadPage(
            uploads=tuple(row.to_dto() for row in rows),
            page=page,
            limit=limit,
            total=total,
        )

    def get_upload(self, upload_id: UUID) -> UploadSummary:
        """
        Raises:
            UploadNotFoundError: If no upload has this id.
        """
        row = self.session.get(UploadHistory, upload_id)
        if row is None:
            raise UploadNotFoundError(str(upload_id))
        return row.to_dto()
