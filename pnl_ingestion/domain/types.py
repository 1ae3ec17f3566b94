"""
pnl_ingestion.domain.types -- Pure frozen dataclasses for P&L ingestion.

ZERO I/O.  Imports only from pnl_kernel/domain/.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal
from typing import Any
from uuid import UUID

from pnl_kernel.domain.types import UploadStatus

# =============================================================================
# Parse results
# =============================================================================


@dataclass(frozen=True)
class MonthColumn:
    """Where one month's values live in a source file."""

    year: int
    month: int
    column_index: int


@dataclass(frozen=True)
class PnlStructure:
    """Clinic identity and month columns located in one file."""

    clinic_name: str
    months: tuple[MonthColumn, ...]


@dataclass(frozen=True)
class AssembledRecord:
    """One clinic-month of mapped values.  Only mapped fields are present."""

    clinic_name: str
    year: int
    month: int
    values: dict[str, Decimal] = field(default_factory=dict)

    @property
    def key(self) -> str:
        return f"{self.clinic_name} {self.year}-{self.month:02d}"


@dataclass(frozen=True)
class AssemblyResult:
    records: tuple[AssembledRecord, ...]
    unmapped_labels: tuple[str, ...] = ()


# =============================================================================
# Upload files and outcomes
# =============================================================================


@dataclass(frozen=True)
class UploadedFile:
    """A file staged in the upload directory, awaiting processing."""

    original_name: str
    stored_path: str
    size: int

    def to_dict(self) -> dict[str, Any]:
        return {
            "original_name": self.original_name,
            "stored_path": self.stored_path,
            "size": self.size,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> UploadedFile:
        return cls(
            original_name=data["original_name"],
            stored_path=data["stored_path"],
            size=int(data.get("size", 0)),
        )


@dataclass(frozen=True)
class IngestionIssue:
    """A file-level (record is None) or record-level error or warning."""

    file: str
    error: str
    record: str | None = None

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {"file": self.file}
        if self.record is not None:
            data["record"] = self.record
        data["error"] = self.error
        return data


@dataclass(frozen=True)
class IngestionResult:
    """Outcome of one upload run."""

    status: UploadStatus
    records_processed: int
    files_processed: int
    clinics_affected: tuple[str, ...]
    errors: tuple[IngestionIssue, ...] = ()
    warnings: tuple[IngestionIssue, ...] = ()

    @property
    def success(self) -> bool:
        return not self.errors

    def to_dict(self) -> dict[str, Any]:
        return {
            "success": self.success,
            "recordsProcessed": self.records_processed,
            "filesProcessed": self.files_processed,
            "clinicsAffected": list(self.clinics_affected),
            "errors": [e.to_dict() for e in self.errors],
        }


# =============================================================================
# Progress contract
# =============================================================================


@dataclass(frozen=True)
class ProgressEvent:
    """Best-effort status notification for one upload."""

    upload_id: UUID
    status: UploadStatus
    progress: int
    timestamp: datetime
    current_file: str | None = None
    records_processed: int | None = None
    message: str | None = None
    result: dict[str, Any] | None = None
    error: str | None = None

    def __post_init__(self) -> None:
        if not 0 <= self.progress <= 100:
            raise ValueError(f"progress must be within 0-100, got {self.progress}")

    def to_dict(self) -> dict[str, Any]:
        """Wire form.  Optional keys are omitted when unset."""
        data: dict[str, Any] = {
            "uploadId": str(self.upload_id),
            "status": self.status.value,
            "progress": self.progress,
        }
        optional = (
            ("currentFile", self.current_file),
            ("recordsProcessed", self.records_processed),
            ("message", self.message),
            ("result", self.result),
            ("error", self.error),
        )
        for key, value in optional:
            if value is not None:
                data[key] = value
        data["timestamp"] = self.timestamp.isoformat()
        return data
