"""
Pytest fixtures for the P&L ingestion test suite.

Provides:
- In-memory SQLite engine with every table, shared by all sessions
- Session factory, session, deterministic clock, settings
- Started ProgressBroadcaster with an event-collecting observer
- captured_logs (structured JSON log capture)
- write_pnl_csv builder for positional P&L exports
"""

import csv
import json
import logging
from datetime import datetime
from io import StringIO
from pathlib import Path

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

import pnl_kernel.models  # noqa: F401  (registers every table)
from pnl_config.schema import IngestionSettings
from pnl_kernel.db.base import Base
from pnl_kernel.domain.clock import DeterministicClock
from pnl_kernel.logging_config import (
    LogContext,
    StructuredFormatter,
    configure_logging,
    reset_logging,
)
from pnl_ingestion.services.progress import ProgressBroadcaster

KATY_TITLE = "American Pain Partners LLC - Katy"


# =============================================================================
# Logging fixtures
# =============================================================================


@pytest.fixture(autouse=True, scope="session")
def _configure_test_logging():
    """Configure structured logging for the test suite."""
    reset_logging()
    configure_logging(level=logging.DEBUG)
    yield
    reset_logging()


@pytest.fixture(autouse=True)
def _clear_log_context():
    LogContext.clear()
    yield
    LogContext.clear()


@pytest.fixture
def captured_logs():
    """
    Capture pnl logs as parsed JSON dicts.

    Usage::

        def test_something(captured_logs):
            ...
            assert any(r["message"] == "record_ingested" for r in captured_logs())
    """
    stream = StringIO()
    handler = logging.StreamHandler(stream)
    handler.setFormatter(StructuredFormatter())
    root = logging.getLogger("pnl")
    root.addHandler(handler)

    def _get_records() -> list[dict]:
        lines = stream.getvalue().strip().split("\n")
        return [json.loads(line) for line in lines if line]

    yield _get_records

    root.removeHandler(handler)


# =============================================================================
# Database fixtures
# =============================================================================


@pytest.fixture
def engine():
    # StaticPool: every session (and the worker thread) sees the same
    # in-memory database.
    eng = create_engine(
        "sqlite://",
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )
    Base.metadata.create_all(eng)
    yield eng
    eng.dispose()


@pytest.fixture
def session_factory(engine):
    return sessionmaker(bind=engine, expire_on_commit=False)


@pytest.fixture
def session(session_factory):
    s = session_factory()
    try:
        yield s
    finally:
        s.close()


@pytest.fixture
def clock():
    # Naive datetimes for SQLite compatibility (SQLite strips tzinfo)
    return DeterministicClock(fixed_time=datetime(2026, 2, 1, 12, 0, 0))


@pytest.fixture
def settings(tmp_path):
    return IngestionSettings(upload_dir=str(tmp_path / "uploads"))


# =============================================================================
# Progress fixtures
# =============================================================================


@pytest.fixture
def broadcaster():
    b = ProgressBroadcaster()
    b.start()
    yield b
    b.shutdown()


@pytest.fixture
def events(broadcaster):
    """Every ProgressEvent published while the test runs."""
    received = []
    broadcaster.subscribe(received.append)
    return received


# =============================================================================
# CSV builders
# =============================================================================


def pnl_rows(
    title: str = KATY_TITLE,
    months: tuple[str, ...] = ("Jan 24",),
    lines: list[tuple[str, ...]] | None = None,
) -> list[list[str]]:
    """
    Rows of a positional P&L export.

    Month headers go in columns 1, 3, 5, ... of row 3; each line is
    ``(label, value_for_month_1, value_for_month_2, ...)``.
    """
    header = [""]
    for month in months:
        header.extend([month, ""])
    rows = [
        [title],
        ["Profit & Loss"],
        ["Accrual Basis"],
        header,
    ]
    for label, *values in lines or []:
        row = [label]
        for value in values:
            row.extend([value, ""])
        rows.append(row)
    return rows


@pytest.fixture
def write_pnl_csv(tmp_path):
    """Write a P&L export under tmp_path and return its path."""
    source_dir = tmp_path / "exports"
    source_dir.mkdir(exist_ok=True)

    def _write(
        name: str = "pnl.csv",
        title: str = KATY_TITLE,
        months: tuple[str, ...] = ("Jan 24",),
        lines: list[tuple[str, ...]] | None = None,
        rows: list[list[str]] | None = None,
        encoding: str = "utf-8",
    ) -> Path:
        path = source_dir / name
        content = rows if rows is not None else pnl_rows(title, months, lines)
        with path.open("w", encoding=encoding, newline="") as f:
            csv.writer(f).writerows(content)
        return path

    return _write


@pytest.fixture
def make_rows():
    """The in-memory form of ``write_pnl_csv`` (see ``pnl_rows``)."""
    return pnl_rows
