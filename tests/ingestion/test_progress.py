"""Tests for ProgressBroadcaster delivery and the ProgressEvent wire form."""

from datetime import datetime
from uuid import uuid4

import pytest

from pnl_kernel.domain.types import UploadStatus
from pnl_ingestion.domain.types import ProgressEvent
from pnl_ingestion.services.progress import ProgressBroadcaster

NOW = datetime(2026, 2, 1, 12, 0, 0)


def _event(progress=50, **fields):
    return ProgressEvent(
        upload_id=uuid4(),
        status=UploadStatus.PROCESSING,
        progress=progress,
        timestamp=NOW,
        **fields,
    )


class TestProgressEvent:
    def test_wire_form_omits_unset_fields(self):
        event = _event(progress=10)

        data = event.to_dict()

        assert data == {
            "uploadId": str(event.upload_id),
            "status": "processing",
            "progress": 10,
            "timestamp": NOW.isoformat(),
        }

    def test_wire_form_includes_set_fields(self):
        event = _event(
            current_file="katy.csv",
            records_processed=0,
            message="Processing katy.csv",
        )

        data = event.to_dict()

        assert data["currentFile"] == "katy.csv"
        assert data["recordsProcessed"] == 0
        assert data["message"] == "Processing katy.csv"
        assert "error" not in data

    @pytest.mark.parametrize("progress", [-1, 101])
    def test_progress_out_of_range(self, progress):
        with pytest.raises(ValueError):
            _event(progress=progress)


class TestProgressBroadcaster:
    def test_delivers_to_every_observer(self, broadcaster):
        first, second = [], []
        broadcaster.subscribe(first.append)
        broadcaster.subscribe(second.append)
        event = _event()

        assert broadcaster.publish(event) == 2
        assert first == [event]
        assert second == [event]

    def test_failing_observer_does_not_block_others(self, broadcaster, captured_logs):
        received = []

        def broken(event):
            raise RuntimeError("socket closed")

        broadcaster.subscribe(broken)
        broadcaster.subscribe(received.append)

        assert broadcaster.publish(_event()) == 1
        assert len(received) == 1
        assert any(r["message"] == "progress_observer_failed" for r in captured_logs())

    def test_unsubscribe_stops_delivery(self, broadcaster):
        received = []
        unsubscribe = broadcaster.subscribe(received.append)
        broadcaster.publish(_event())

        unsubscribe()
        broadcaster.publish(_event())

        assert len(received) == 1
        assert broadcaster.observer_count == 0

    def test_late_subscriber_gets_no_replay(self, broadcaster):
        broadcaster.publish(_event())
        received = []
        broadcaster.subscribe(received.append)

        assert received == []

    def test_subscribe_is_idempotent(self, broadcaster):
        received = []
        broadcaster.subscribe(received.append)
        broadcaster.subscribe(received.append)
        assert broadcaster.observer_count == 1

    def test_observer_may_unsubscribe_during_delivery(self, broadcaster):
        received = []

        def once(event):
            received.append(event)
            broadcaster.unsubscribe(once)

        broadcaster.subscribe(once)
        broadcaster.publish(_event())
        broadcaster.publish(_event())

        assert len(received) == 1

    def test_publish_before_start_is_noop(self):
        broadcaster = ProgressBroadcaster()
        received = []
        broadcaster.subscribe(received.append)

        assert broadcaster.publish(_event()) == 0
        assert received == []

    def test_shutdown_drops_observers(self):
        broadcaster = ProgressBroadcaster()
        broadcaster.start()
        broadcaster.subscribe(lambda event: None)

        broadcaster.shutdown()

        assert not broadcaster.is_running
        assert broadcaster.observer_count == 0
        assert broadcaster.publish(_event()) == 0
