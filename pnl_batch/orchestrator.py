"""
UploadOrchestrator -- DI container for upload processing.

Contract:
    Composes the ProgressBroadcaster, UploadWorker, UploadService and
    IngestionService around one Clock and one IngestionSettings.  Single
    place where the upload pipeline's dependencies are wired.

Invariants enforced:
    - Clock injection: every service receives the same Clock.
    - One broadcaster per orchestrator; no module-level singleton.
    - No kernel imports of pnl_batch (the orchestrator lives here).
"""

from __future__ import annotations

from collections.abc import Callable

from sqlalchemy.orm import Session

from pnl_config.schema import IngestionSettings
from pnl_kernel.domain.clock import Clock, SystemClock
from pnl_kernel.logging_config import get_logger

from pnl_ingestion.services.ingestion_service import IngestionService
from pnl_ingestion.services.progress import ProgressBroadcaster

from pnl_batch.services.upload_service import UploadService
from pnl_batch.services.worker import UploadWorker

logger = get_logger("batch.orchestrator")


class UploadOrchestrator:
    """DI container for the upload pipeline.

    Contract:
        - ``worker`` drains pending uploads; the caller decides whether to
          ``start()`` it or call ``tick()`` synchronously.
        - ``upload_service(session)`` returns an UploadService whose
          submissions wake this orchestrator's worker.

    Non-goals:
        - Does NOT manage session lifecycle for sessions passed in.
    """

    def __init__(
        self,
        session_factory: Callable[[], Session],
        settings: IngestionSettings | None = None,
        clock: Clock | None = None,
        broadcaster: ProgressBroadcaster | None = None,
    ) -> None:
        self._session_factory = session_factory
        self._settings = settings or IngestionSettings()
        self._clock = clock or SystemClock()
        self._broadcaster = broadcaster or ProgressBroadcaster()
        self._worker = UploadWorker(
            session_factory=session_factory,
            broadcaster=self._broadcaster,
            clock=self._clock,
            settings=self._settings,
        )

    # -------------------------------------------------------------------------
    # Lifecycle
    # -------------------------------------------------------------------------

    def start(self) -> None:
        """Start the broadcaster and the background worker."""
        self._broadcaster.start()
        self._worker.start()
        logger.info("upload_orchestrator_started")

    def shutdown(self, timeout: float = 30.0) -> None:
        """Stop the worker (finishing the upload in flight), then the broadcaster."""
        self._worker.stop(timeout=timeout)
        self._broadcaster.shutdown()
        logger.info("upload_orchestrator_stopped")

    # -------------------------------------------------------------------------
    # Factories
    # -------------------------------------------------------------------------

    def upload_service(self, session: Session) -> UploadService:
        return UploadService(
            session,
            clock=self._clock,
            settings=self._settings,
            wake_worker=self._worker.wake,
        )

    def ingestion_service(self, session: Session) -> IngestionService:
        return IngestionService(
            session,
            self._broadcaster,
            clock=self._clock,
            settings=self._settings,
        )

    # -------------------------------------------------------------------------
    # Properties
    # -------------------------------------------------------------------------

    @property
    def broadcaster(self) -> ProgressBroadcaster:
        return self._broadcaster

    @property
    def worker(self) -> UploadWorker:
        return self._worker

    @property
    def settings(self) -> IngestionSettings:
        return self._settings
