"""Pure types and validators for P&L ingestion."""

from pnl_ingestion.domain.types import (
    AssembledRecord,
    AssemblyResult,
    IngestionIssue,
    IngestionResult,
    MonthColumn,
    PnlStructure,
    ProgressEvent,
    UploadedFile,
)
from pnl_ingestion.domain.validators import check_derived_totals, validate_record

__all__ = [
    "AssembledRecord",
    "AssemblyResult",
    "IngestionIssue",
    "IngestionResult",
    "MonthColumn",
    "PnlStructure",
    "ProgressEvent",
    "UploadedFile",
    "check_derived_totals",
    "validate_record",
]
