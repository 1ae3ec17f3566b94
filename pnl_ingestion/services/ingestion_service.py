"""
IngestionService -- run one upload batch end to end.

Contract:
    ``process_upload(upload_id)`` moves a ``pending`` UploadHistory through
    ``processing`` to ``completed``, ``completed_with_errors`` or ``failed``.
    Files and records are processed strictly in order.

Per file:
    read rows -> parse structure -> assemble records.  A FormatError, an
    unreadable file, or a file with no non-empty month is a file-level error;
    the file is left on disk and the batch moves on.

Per record:
    validate -> resolve clinic -> snapshot + full replace -> commit.  A
    ValidationError or PersistenceError is a record-level error; the record
    is skipped and the batch moves on.  Derived-total mismatches are
    warnings only.

Fatal:
    Anything else (lost connection, programming error) marks the upload
    ``failed``, publishes a ``failed`` event and raises BatchFatalError.

Progress:
    An event at every file boundary and after every record, and a final
    event carrying the terminal status and the result summary.
"""

from __future__ import annotations

import json
from pathlib import Path
from uuid import UUID

from sqlalchemy import update
from sqlalchemy.orm import Session

from pnl_config.schema import IngestionSettings
from pnl_kernel.domain.clock import Clock, SystemClock
from pnl_kernel.domain.types import UploadStatus
from pnl_kernel.exceptions import (
    BatchFatalError,
    FormatError,
    PersistenceError,
    UploadNotFoundError,
    UploadStateError,
    ValidationError,
)
from pnl_kernel.logging_config import LogContext, get_logger
from pnl_kernel.models.upload_history import UploadHistory
from pnl_kernel.services.clinic_resolver import ClinicResolver
from pnl_kernel.services.version_store import VersionStore

from pnl_ingestion.adapters.pnl_csv import parse_structure, read_rows
from pnl_ingestion.domain.types import (
    AssembledRecord,
    IngestionIssue,
    IngestionResult,
    ProgressEvent,
    UploadedFile,
)
from pnl_ingestion.domain.validators import check_derived_totals, validate_record
from pnl_ingestion.mapping.assembler import assemble_records
from pnl_ingestion.services.progress import ProgressBroadcaster

logger = get_logger("ingestion.service")

NO_RECORDS_MESSAGE = "No valid records found in file. Check CSV format and data."


def _percent(done: float, total: int) -> int:
    if total <= 0:
        return 100
    return max(0, min(100, round(done / total * 100)))


class _RunState:
    """Mutable accumulators for one run."""

    def __init__(self) -> None:
        self.errors: list[IngestionIssue] = []
        self.warnings: list[IngestionIssue] = []
        self.records_processed = 0
        self.files_processed = 0
        self.clinics: list[str] = []

    def add_clinic(self, name: str) -> None:
        if name not in self.clinics:
            self.clinics.append(name)


class IngestionService:
    """Orchestrates parsing, validation and versioned persistence for an upload."""

    def __init__(
        self,
        session: Session,
        broadcaster: ProgressBroadcaster,
        clock: Clock | None = None,
        settings: IngestionSettings | None = None,
    ):
        self._session = session
        self._broadcaster = broadcaster
        self._clock = clock or SystemClock()
        self._settings = settings or IngestionSettings()
        self._resolver = ClinicResolver(session)
        self._versions = VersionStore(session)

    # -------------------------------------------------------------------------
    # Public API
    # -------------------------------------------------------------------------

    def process_upload(self, upload_id: UUID) -> IngestionResult:
        """
        Process every file of a pending upload.

        Raises:
            UploadNotFoundError: If the upload does not exist.
            UploadStateError: If the upload is not ``pending``.
            BatchFatalError: If the run aborts; the upload is marked ``failed``.
        """
        upload = self._session.get(UploadHistory, upload_id)
        if upload is None:
            raise UploadNotFoundError(str(upload_id))
        self._claim(upload)

        with LogContext.bind(
            correlation_id=str(upload_id),
            actor_id=upload.uploaded_by,
            producer="ingestion",
        ):
            try:
                return self._run(upload)
            except Exception as exc:
                self._fail(upload_id, exc)
                raise BatchFatalError(str(upload_id), str(exc)) from exc

    # -------------------------------------------------------------------------
    # Run
    # -------------------------------------------------------------------------

    def _claim(self, upload: UploadHistory) -> None:
        """
        Move *upload* from ``pending`` to ``processing`` and commit.

        The status test and the write are one conditional UPDATE, so only one
        caller can claim an upload.

        Raises:
            UploadStateError: If the upload is no longer ``pending``.
        """
        claimed = self._session.execute(
            update(UploadHistory)
            .where(
                UploadHistory.id == upload.id,
                UploadHistory.status == UploadStatus.PENDING.value,
            )
            .values(
                status=UploadStatus.PROCESSING.value,
                started_at=self._clock.now(),
            )
        ).rowcount
        if claimed != 1:
            self._session.rollback()
            raise UploadStateError(str(upload.id), upload.status, UploadStatus.PENDING.value)
        self._session.commit()

    def _run(self, upload: UploadHistory) -> IngestionResult:
        upload_id = upload.id
        metadata = dict(upload.upload_metadata or {})
        files = [UploadedFile.from_dict(entry) for entry in metadata.get("files", [])]
        total = len(files)

        logger.info(
            "upload_processing_started",
            extra={"upload_id": str(upload_id), "file_count": total},
        )
        self._emit(
            upload_id, UploadStatus.PROCESSING, 0,
            message=f"Processing {total} file(s)",
        )

        state = _RunState()
        for index, uploaded in enumerate(files):
            with LogContext.bind(source_file=uploaded.original_name):
                self._process_file(upload_id, uploaded, index, total, state)
            state.files_processed += 1

        status = (
            UploadStatus.COMPLETED_WITH_ERRORS if state.errors else UploadStatus.COMPLETED
        )
        result = IngestionResult(
            status=status,
            records_processed=state.records_processed,
            files_processed=state.files_processed,
            clinics_affected=tuple(state.clinics),
            errors=tuple(state.errors),
            warnings=tuple(state.warnings),
        )

        upload = self._session.get(UploadHistory, upload_id)
        error_dicts = [e.to_dict() for e in state.errors]
        upload.status = status.value
        upload.records_count = state.records_processed
        upload.errors = error_dicts
        upload.error_message = json.dumps(error_dicts) if error_dicts else None
        upload.upload_metadata = {
            **metadata,
            "files_processed": state.files_processed,
            "clinics_affected": list(state.clinics),
            "warnings": [w.to_dict() for w in state.warnings],
        }
        upload.completed_at = self._clock.now()
        self._session.commit()

        logger.info(
            "upload_processing_completed",
            extra={
                "upload_id": str(upload_id),
                "status": status.value,
                "records_processed": state.records_processed,
                "files_processed": state.files_processed,
                "error_count": len(state.errors),
                "warning_count": len(state.warnings),
            },
        )
        self._emit(
            upload_id, status, 100,
            records_processed=state.records_processed,
            message=(
                f"Processed {state.records_processed} record(s) from "
                f"{state.files_processed} file(s)"
            ),
            result=result.to_dict(),
        )
        return result

    def _process_file(
        self,
        upload_id: UUID,
        uploaded: UploadedFile,
        index: int,
        total: int,
        state: _RunState,
    ) -> None:
        name = uploaded.original_name
        settings = self._settings

        self._emit(
            upload_id, UploadStatus.PROCESSING, _percent(index, total),
            current_file=name,
            records_processed=state.records_processed,
            message=f"Processing {name}",
        )

        try:
            rows = read_rows(Path(uploaded.stored_path))
            structure = parse_structure(
                rows,
                name,
                organization=settings.organization_name,
                min_rows=settings.min_rows,
                header_row_index=settings.header_row_index,
                first_data_column=settings.first_data_column,
                column_stride=settings.column_stride,
            )
        except FormatError as exc:
            logger.warning("file_format_error", extra={"reason": exc.reason})
            state.errors.append(IngestionIssue(file=name, error=str(exc)))
            return
        except OSError as exc:
            logger.warning("file_unreadable", extra={"reason": str(exc)})
            state.errors.append(IngestionIssue(file=name, error=f"Could not read file: {exc}"))
            return

        assembly = assemble_records(
            rows, structure,
            header_row_index=settings.header_row_index,
            filename=name,
        )
        for label in assembly.unmapped_labels:
            state.warnings.append(IngestionIssue(file=name, error=f"Unmapped label: {label}"))

        if not assembly.records:
            logger.warning("file_has_no_records", extra={"clinic_name": structure.clinic_name})
            state.errors.append(IngestionIssue(file=name, error=NO_RECORDS_MESSAGE))
            return

        count = len(assembly.records)
        for position, record in enumerate(assembly.records, start=1):
            if self._process_record(upload_id, name, record, state):
                state.records_processed += 1
                state.add_clinic(record.clinic_name)
            self._emit(
                upload_id, UploadStatus.PROCESSING,
                _percent(index + position / count, total),
                current_file=name,
                records_processed=state.records_processed,
                message=f"Processed {record.key}",
            )

        self._remove_source(uploaded)
        self._emit(
            upload_id, UploadStatus.PROCESSING, _percent(index + 1, total),
            current_file=name,
            records_processed=state.records_processed,
            message=f"Finished {name}",
        )

    def _process_record(
        self,
        upload_id: UUID,
        filename: str,
        record: AssembledRecord,
        state: _RunState,
    ) -> bool:
        """Validate and persist one record.  Returns True when it was stored."""
        try:
            problems = validate_record(
                record, self._settings.min_year, self._settings.max_year,
            )
            if problems:
                raise ValidationError(record.key, tuple(problems))

            for warning in check_derived_totals(record.values):
                logger.warning(
                    "derived_total_mismatch",
                    extra={"record_key": record.key, "detail": warning},
                )
                state.warnings.append(
                    IngestionIssue(file=filename, record=record.key, error=warning)
                )

            clinic = self._resolver.resolve(record.clinic_name)
            with self._versions.key_lock(clinic.id, record.year, record.month):
                self._versions.overwrite(
                    clinic.id, record.year, record.month, record.values,
                    upload_id=upload_id,
                )
                self._session.commit()
        except ValidationError as exc:
            logger.warning(
                "record_validation_failed",
                extra={"record_key": record.key, "errors": list(exc.errors)},
            )
            state.errors.append(IngestionIssue(file=filename, record=record.key, error=str(exc)))
            return False
        except PersistenceError as exc:
            self._session.rollback()
            logger.error(
                "record_persist_failed",
                extra={"record_key": record.key, "operation": exc.operation},
            )
            state.errors.append(IngestionIssue(file=filename, record=record.key, error=str(exc)))
            return False

        logger.info("record_ingested", extra={"record_key": record.key})
        return True

    # -------------------------------------------------------------------------
    # Helpers
    # -------------------------------------------------------------------------

    def _remove_source(self, uploaded: UploadedFile) -> None:
        try:
            Path(uploaded.stored_path).unlink(missing_ok=True)
        except OSError as exc:
            logger.warning(
                "source_file_not_removed",
                extra={"stored_path": uploaded.stored_path, "reason": str(exc)},
            )

    def _fail(self, upload_id: UUID, exc: Exception) -> None:
        """Record a fatal error on the upload and publish it."""
        logger.error(
            "upload_processing_failed",
            extra={"upload_id": str(upload_id)},
            exc_info=exc,
        )
        try:
            self._session.rollback()
            upload = self._session.get(UploadHistory, upload_id)
            if upload is not None:
                upload.status = UploadStatus.FAILED.value
                upload.error_message = str(exc)
                upload.completed_at = self._clock.now()
                self._session.commit()
        except Exception:
            logger.exception("upload_failure_not_recorded", extra={"upload_id": str(upload_id)})

        self._emit(upload_id, UploadStatus.FAILED, 100, error=str(exc), message="Upload failed")

    def _emit(
        self,
        upload_id: UUID,
        status: UploadStatus,
        progress: int,
        **fields,
    ) -> None:
        self._broadcaster.publish(
            ProgressEvent(
                upload_id=upload_id,
                status=status,
                progress=progress,
                timestamp=self._clock.now(),
                **fields,
            )
        )
