"""
ProgressBroadcaster -- fan-out of ingestion progress to live observers.

Contract:
    - Observers are callables taking a ``ProgressEvent``.  They may subscribe
      and unsubscribe at any time, from any thread.
    - ``publish()`` delivers to a point-in-time copy of the observer set, so
      subscription changes never block or disturb a delivery in progress.
    - Delivery is best-effort and at-most-once.  A failing observer is
      logged and skipped.  ``publish()`` never raises.
    - No buffering and no replay: a late subscriber sees only later events.
    - Publishing before ``start()`` or after ``shutdown()`` is a logged no-op.

The transport (websocket push, SSE, ...) is an observer supplied by the
surrounding application; ``ProgressEvent.to_dict()`` is its wire form.
"""

from __future__ import annotations

import threading
from collections.abc import Callable

from pnl_kernel.logging_config import get_logger

from pnl_ingestion.domain.types import ProgressEvent

logger = get_logger("ingestion.progress")

Observer = Callable[[ProgressEvent], None]


class ProgressBroadcaster:
    """Thread-safe publisher of ProgressEvents to subscribed observers."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._observers: list[Observer] = []
        self._running = False

    @property
    def is_running(self) -> bool:
        return self._running

    @property
    def observer_count(self) -> int:
        with self._lock:
            return len(self._observers)

    def start(self) -> None:
        with self._lock:
            if self._running:
                return
            self._running = True
        logger.info("progress_broadcaster_started")

    def shutdown(self) -> None:
        """Stop delivering and drop every observer."""
        with self._lock:
            self._running = False
            dropped = len(self._observers)
            self._observers.clear()
        logger.info("progress_broadcaster_stopped", extra={"observers_dropped": dropped})

    def subscribe(self, observer: Observer) -> Callable[[], None]:
        """Add *observer*; returns a callable that unsubscribes it."""
        with self._lock:
            if observer not in self._observers:
                self._observers.append(observer)

        def _unsubscribe() -> None:
            self.unsubscribe(observer)

        return _unsubscribe

    def unsubscribe(self, observer: Observer) -> None:
        with self._lock:
            if observer in self._observers:
                self._observers.remove(observer)

    def publish(self, event: ProgressEvent) -> int:
        """
        Deliver *event* to every current observer.

        Returns:
            Number of observers that received the event without error.
        """
        with self._lock:
            if not self._running:
                running = False
                observers: list[Observer] = []
            else:
                running = True
                observers = list(self._observers)

        if not running:
            logger.debug(
                "progress_event_dropped",
                extra={"upload_id": str(event.upload_id), "status": event.status.value},
            )
            return 0

        delivered = 0
        for observer in observers:
            try:
                observer(event)
                delivered += 1
            except Exception:
                logger.exception(
                    "progress_observer_failed",
                    extra={"upload_id": str(event.upload_id), "observer": repr(observer)},
                )
        return delivered
