"""
Pure frozen DTOs shared by the kernel services, selectors and the batch layer.

Contract:
    Immutable value objects with no ORM or I/O dependencies.  ORM models
    convert to these via ``to_dto()``.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal
from enum import Enum
from typing import Any
from uuid import UUID


class UploadStatus(str, Enum):
    """Lifecycle status of one upload batch.

    pending -> processing -> {completed, completed_with_errors, failed}.
    ``deleted`` is a soft-delete transition applied after the run.
    """

    PENDING = "pending"
    PROCESSING = "processing"
    COMPLETED = "completed"
    COMPLETED_WITH_ERRORS = "completed_with_errors"
    FAILED = "failed"
    DELETED = "deleted"

    @property
    def is_terminal(self) -> bool:
        return self not in (UploadStatus.PENDING, UploadStatus.PROCESSING)


@dataclass(frozen=True)
class UploadSummary:
    """Read-side view of one UploadHistory row."""

    upload_id: UUID
    filename: str
    original_name: str
    file_size: int
    uploaded_by: str
    status: UploadStatus
    records_count: int = 0
    errors: tuple[dict[str, Any], ...] = ()
    error_message: str | None = None
    metadata: dict[str, Any] = field(default_factory=dict)
    started_at: datetime | None = None
    completed_at: datetime | None = None
    created_at: datetime | None = None


@dataclass(frozen=True)
class VersionSnapshot:
    """Read-side view of one DataVersion row."""

    version_id: UUID
    clinic_id: UUID
    year: int
    month: int
    version: int
    previous_version_id: UUID | None
    upload_id: UUID | None
    data: dict[str, Decimal]
    created_at: datetime | None = None


@dataclass(frozen=True)
class RollbackResult:
    """Key and version number restored by a rollback."""

    clinic_id: UUID
    clinic_name: str
    year: int
    month: int
    version: int
