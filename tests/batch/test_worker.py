"""Tests for UploadWorker draining and UploadOrchestrator wiring."""

import threading
from decimal import Decimal

import pytest
from sqlalchemy import select
from sqlalchemy.exc import OperationalError

from pnl_batch import UploadOrchestrator
from pnl_batch.services.upload_service import UploadService
from pnl_batch.services.worker import UploadWorker
from pnl_kernel.domain.clock import SystemClock
from pnl_kernel.domain.types import UploadStatus
from pnl_kernel.models.data_version import DataVersion
from pnl_kernel.models.financial_record import FinancialRecord
from pnl_kernel.models.upload_history import UploadHistory
from pnl_kernel.services.clinic_resolver import ClinicResolver

PRACTICE = "44500 · Practice Income"


@pytest.fixture
def worker(session_factory, broadcaster, clock, settings):
    return UploadWorker(session_factory, broadcaster, clock=clock, settings=settings)


@pytest.fixture
def submit(session, clock, settings):
    """Submit one file as an upload; the clock moves on after each one."""
    uploads = UploadService(session, clock=clock, settings=settings)

    def _submit(path):
        upload_id = uploads.begin_upload([uploads.stage_file(path)])
        clock.advance()
        return upload_id

    return _submit


def _terminal_ids(events):
    return [e.upload_id for e in events if e.status.is_terminal]


class TestTick:
    def test_processes_pending_in_submission_order(
        self, session, worker, submit, write_pnl_csv, events,
    ):
        submitted = [
            submit(write_pnl_csv(name=f"katy-{n}.csv", lines=[(PRACTICE, str(n))]))
            for n in range(1, 9)
        ]

        results = worker.tick()

        assert len(results) == 8
        assert _terminal_ids(events) == submitted
        session.expire_all()
        record = session.execute(select(FinancialRecord)).scalar_one()
        assert record.practice_income == Decimal("8")
        versions = session.execute(
            select(DataVersion).order_by(DataVersion.version)
        ).scalars().all()
        assert [v.values()["practice_income"] for v in versions] == [
            Decimal(n) for n in range(1, 8)
        ]

    def test_same_second_submissions_keep_their_order(
        self, session, session_factory, broadcaster, settings, write_pnl_csv, events,
    ):
        uploads = UploadService(session, clock=SystemClock(), settings=settings)
        submitted = [
            uploads.begin_upload(
                [uploads.stage_file(write_pnl_csv(name=f"k{n}.csv", lines=[(PRACTICE, str(n))]))]
            )
            for n in range(1, 6)
        ]
        worker = UploadWorker(
            session_factory, broadcaster, clock=SystemClock(), settings=settings,
        )

        worker.tick()

        assert _terminal_ids(events) == submitted

    def test_no_pending_uploads(self, worker):
        assert worker.tick() == []

    def test_leftover_pending_upload_is_picked_up(
        self, session, session_factory, broadcaster, clock, settings, submit, write_pnl_csv,
    ):
        upload_id = submit(write_pnl_csv(lines=[(PRACTICE, "1")]))
        restarted = UploadWorker(session_factory, broadcaster, clock=clock, settings=settings)

        results = restarted.tick()

        assert [r.records_processed for r in results] == [1]
        session.expire_all()
        assert session.get(UploadHistory, upload_id).status == "completed"

    def test_failed_upload_does_not_stop_the_queue(
        self, session, worker, submit, write_pnl_csv, monkeypatch,
    ):
        original = ClinicResolver.resolve

        def resolve(self, name):
            if name == "Katy":
                raise OperationalError("SELECT 1", {}, Exception("connection lost"))
            return original(self, name)

        monkeypatch.setattr(ClinicResolver, "resolve", resolve)
        failing = submit(write_pnl_csv(name="katy.csv", lines=[(PRACTICE, "1")]))
        passing = submit(
            write_pnl_csv(
                name="sugar.csv",
                title="American Pain Partners LLC - Sugar Land",
                lines=[(PRACTICE, "1")],
            )
        )

        results = worker.tick()

        assert [r.clinics_affected for r in results] == [("Sugar Land",)]
        session.expire_all()
        assert session.get(UploadHistory, failing).status == "failed"
        assert session.get(UploadHistory, passing).status == "completed"


class TestBackgroundWorker:
    def test_running_worker_drains_pending_upload(
        self, session, session_factory, broadcaster, clock, settings, write_pnl_csv,
    ):
        orchestrator = UploadOrchestrator(
            session_factory, settings=settings, clock=clock, broadcaster=broadcaster,
        )
        done = threading.Event()
        broadcaster.subscribe(lambda event: done.set() if event.status.is_terminal else None)
        uploads = orchestrator.upload_service(session)
        upload_id = uploads.begin_upload(
            [uploads.stage_file(write_pnl_csv(lines=[(PRACTICE, "1")]))]
        )

        orchestrator.start()
        try:
            assert done.wait(timeout=10)
        finally:
            orchestrator.shutdown(timeout=10)

        assert not orchestrator.worker.is_running
        session.expire_all()
        assert session.get(UploadHistory, upload_id).status == "completed"

    def test_start_is_idempotent(self, worker):
        worker.start()
        try:
            worker.start()
            assert worker.is_running
        finally:
            worker.stop(timeout=10)
        assert not worker.is_running


class TestOrchestrator:
    def test_services_share_settings_and_clock(self, session, session_factory, clock, settings):
        orchestrator = UploadOrchestrator(session_factory, settings=settings, clock=clock)

        assert orchestrator.settings is settings
        assert orchestrator.worker is not None
        assert orchestrator.ingestion_service(session) is not None

    def test_upload_service_wakes_worker(
        self, session, session_factory, clock, settings, write_pnl_csv, monkeypatch,
    ):
        orchestrator = UploadOrchestrator(session_factory, settings=settings, clock=clock)
        woken = []
        monkeypatch.setattr(orchestrator.worker, "wake", lambda: woken.append(True))
        uploads = orchestrator.upload_service(session)

        upload_id = uploads.begin_upload([uploads.stage_file(write_pnl_csv())])

        assert woken == [True]
        assert session.get(UploadHistory, upload_id).status == UploadStatus.PENDING.value
