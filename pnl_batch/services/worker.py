"""
UploadWorker -- background runner for pending uploads.

Contract:
    Polls UploadHistory for ``pending`` uploads, oldest first, and runs each
    through IngestionService with its own session.  ``wake()`` cuts the
    polling wait short after a new submission.

Invariants enforced:
    - One upload at a time per worker (a run lock guards ``tick``), so two
      runs never interleave their snapshot-then-write sequences.
    - Uploads left ``pending`` by a previous process are picked up on the
      first tick.
    - Graceful shutdown: the stop signal is checked between uploads; the
      upload in flight runs to completion.
"""

from __future__ import annotations

import threading
from collections.abc import Callable
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.orm import Session

from pnl_config.schema import IngestionSettings
from pnl_kernel.domain.clock import Clock, SystemClock
from pnl_kernel.domain.types import UploadStatus
from pnl_kernel.exceptions import BatchFatalError, UploadStateError
from pnl_kernel.logging_config import get_logger
from pnl_kernel.models.upload_history import UploadHistory

from pnl_ingestion.domain.types import IngestionResult
from pnl_ingestion.services.ingestion_service import IngestionService
from pnl_ingestion.services.progress import ProgressBroadcaster

logger = get_logger("batch.worker")


class UploadWorker:
    """In-process worker thread that drains pending uploads.

    Non-goals:
        - NOT a distributed queue (no leases across processes).
        - No cancellation or timeout for an upload in flight.
    """

    def __init__(
        self,
        session_factory: Callable[[], Session],
        broadcaster: ProgressBroadcaster,
        clock: Clock | None = None,
        settings: IngestionSettings | None = None,
        poll_seconds: float | None = None,
    ):
        self._session_factory = session_factory
        self._broadcaster = broadcaster
        self._clock = clock or SystemClock()
        self._settings = settings or IngestionSettings()
        self._poll_seconds = poll_seconds or self._settings.worker_poll_seconds
        self._stop_event = threading.Event()
        self._wake_event = threading.Event()
        self._run_lock = threading.Lock()
        self._thread: threading.Thread | None = None

    # -------------------------------------------------------------------------
    # Public API
    # -------------------------------------------------------------------------

    def tick(self) -> list[IngestionResult]:
        """Process every pending upload, oldest first (public for testing).

        Returns the results of the uploads that completed.  Failed runs are
        logged and omitted.
        """
        results: list[IngestionResult] = []
        attempted: set[UUID] = set()
        with self._run_lock:
            while not self._stop_event.is_set():
                upload_id = self._next_pending()
                if upload_id is None or upload_id in attempted:
                    break
                attempted.add(upload_id)
                result = self._run_one(upload_id)
                if result is not None:
                    results.append(result)
        return results

    def wake(self) -> None:
        """Signal that a new upload is waiting."""
        self._wake_event.set()

    def start(self) -> None:
        """Start the worker in a background thread."""
        if self._thread is not None and self._thread.is_alive():
            return

        self._stop_event.clear()
        self._thread = threading.Thread(
            target=self._run_loop,
            name="upload-worker",
            daemon=True,
        )
        self._thread.start()
        logger.info("upload_worker_started", extra={"poll_seconds": self._poll_seconds})

    def stop(self, timeout: float = 30.0) -> None:
        """Signal stop and wait for the current upload to finish."""
        self._stop_event.set()
        self._wake_event.set()
        if self._thread is not None and self._thread.is_alive():
            self._thread.join(timeout=timeout)
        logger.info("upload_worker_stopped")

    @property
    def is_running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    # -------------------------------------------------------------------------
    # Internal
    # -------------------------------------------------------------------------

    def _run_loop(self) -> None:
        while not self._stop_event.is_set():
            try:
                self.tick()
            except Exception:
                logger.exception("upload_worker_tick_exception")
            self._wake_event.wait(timeout=self._poll_seconds)
            self._wake_event.clear()

    def _next_pending(self) -> UUID | None:
        session = self._session_factory()
        try:
            return session.execute(
                select(UploadHistory.id)
                .where(UploadHistory.status == UploadStatus.PENDING.value)
                .order_by(UploadHistory.created_at, UploadHistory.id)
                .limit(1)
            ).scalar_one_or_none()
        finally:
            session.close()

    def _run_one(self, upload_id: UUID) -> IngestionResult | None:
        session = self._session_factory()
        try:
            service = IngestionService(
                session,
                self._broadcaster,
                clock=self._clock,
                settings=self._settings,
            )
            return service.process_upload(upload_id)
        except UploadStateError:
            logger.info("upload_already_claimed", extra={"upload_id": str(upload_id)})
            return None
        except BatchFatalError:
            logger.exception("upload_run_failed", extra={"upload_id": str(upload_id)})
            return None
        finally:
            session.close()
