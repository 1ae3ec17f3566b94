"""
UploadService -- durable upload submission, rollback and soft delete.

Contract:
    ``begin_upload`` persists a ``pending`` UploadHistory (the durable job),
    commits, wakes the worker and returns the id immediately.  Processing
    happens on the worker; callers observe it by polling UploadHistory or
    subscribing to the ProgressBroadcaster.
    ``created_at`` is stamped from the injected clock; the worker takes
    pending uploads in that order.

Architecture: pnl_batch/services.  Owns transaction boundaries for the
    operations it exposes (one commit each).
"""

from __future__ import annotations

import shutil
from collections.abc import Callable, Sequence
from pathlib import Path
from uuid import UUID, uuid4

from sqlalchemy.orm import Session

from pnl_config.schema import IngestionSettings
from pnl_kernel.domain.clock import Clock, SystemClock
from pnl_kernel.domain.types import RollbackResult, UploadStatus
from pnl_kernel.exceptions import PersistenceError, UploadNotFoundError
from pnl_kernel.logging_config import get_logger
from pnl_kernel.models.upload_history import UploadHistory
from pnl_kernel.services.version_store import VersionStore

from pnl_ingestion.domain.types import UploadedFile

logger = get_logger("batch.upload_service")

DEFAULT_UPLOADER = "anonymous"


class UploadService:
    """Entry points for the surrounding API layer."""

    def __init__(
        self,
        session: Session,
        clock: Clock | None = None,
        settings: IngestionSettings | None = None,
        wake_worker: Callable[[], None] | None = None,
    ):
        self._session = session
        self._clock = clock or SystemClock()
        self._settings = settings or IngestionSettings()
        self._wake_worker = wake_worker

    # -------------------------------------------------------------------------
    # Submission
    # -------------------------------------------------------------------------

    def stage_file(self, source_path: str | Path) -> UploadedFile:
        """
        Copy a file into the upload directory under a collision-free name.

        Raises:
            FileNotFoundError: If *source_path* does not exist.
        """
        source = Path(source_path)
        upload_dir = Path(self._settings.upload_dir)
        upload_dir.mkdir(parents=True, exist_ok=True)

        stamp = self._clock.now().strftime("%Y%m%d%H%M%S")
        target = upload_dir / f"{stamp}-{uuid4().hex[:8]}-{source.name}"
        shutil.copyfile(source, target)

        staged = UploadedFile(
            original_name=source.name,
            stored_path=str(target),
            size=target.stat().st_size,
        )
        logger.debug("upload_file_staged", extra={"stored_path": staged.stored_path})
        return staged

    def begin_upload(
        self,
        files: Sequence[UploadedFile],
        uploaded_by: str | None = None,
    ) -> UUID:
        """
        Record a pending upload and hand it to the worker.

        Raises:
            ValueError: If *files* is empty.
        """
        if not files:
            raise ValueError("No files uploaded")

        actor = uploaded_by or DEFAULT_UPLOADER
        upload = UploadHistory(
            filename=",".join(Path(f.stored_path).name for f in files),
            original_name=",".join(f.original_name for f in files),
            file_size=sum(f.size for f in files),
            uploaded_by=actor,
            status=UploadStatus.PENDING.value,
            records_count=0,
            created_at=self._clock.now(),
            upload_metadata={
                "file_count": len(files),
                "files": [f.to_dict() for f in files],
            },
        )
        self._session.add(upload)
        self._session.commit()

        logger.info(
            "upload_submitted",
            extra={
                "upload_id": str(upload.id),
                "file_count": len(files),
                "uploaded_by": actor,
            },
        )
        if self._wake_worker is not None:
            self._wake_worker()
        return upload.id

    # -------------------------------------------------------------------------
    # Versions
    # -------------------------------------------------------------------------

    def rollback(self, version_id: UUID | str) -> RollbackResult:
        """
        Restore a clinic-month to a stored version and commit.

        Raises:
            VersionNotFoundError: If the version does not exist (no mutation).
            PersistenceError: If the write fails (session rolled back).
        """
        store = VersionStore(self._session)
        target = store.get_version(version_id)
        try:
            with store.key_lock(target.clinic_id, target.year, target.month):
                result = store.rollback(target.id)
                self._session.commit()
        except PersistenceError:
            self._session.rollback()
            raise
        return result

    # -------------------------------------------------------------------------
    # History
    # -------------------------------------------------------------------------

    def delete_upload(self, upload_id: UUID) -> None:
        """
        Soft-delete an upload (status ``deleted``).

        Raises:
            UploadNotFoundError: If the upload does not exist.
        """
        upload = self._session.get(UploadHistory, upload_id)
        if upload is None:
            raise UploadNotFoundError(str(upload_id))
        previous = upload.status
        upload.status = UploadStatus.DELETED.value
        self._session.commit()
        logger.info(
            "upload_deleted",
            extra={"upload_id": str(upload_id), "previous_status": previous},
        )
