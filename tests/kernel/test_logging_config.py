"""Tests for the structured logging system (pnl_kernel/logging_config.py)."""

import json
import logging
from decimal import Decimal
from io import StringIO
from uuid import uuid4

import pytest

from pnl_kernel.exceptions import VersionNotFoundError
from pnl_kernel.logging_config import (
    LogContext,
    StructuredFormatter,
    configure_logging,
    get_logger,
    reset_logging,
)


@pytest.fixture(autouse=True)
def _clean_logging():
    reset_logging()
    LogContext.clear()
    yield
    LogContext.clear()
    reset_logging()
    configure_logging(level=logging.DEBUG)


def _make_handler() -> tuple[logging.Handler, StringIO]:
    stream = StringIO()
    handler = logging.StreamHandler(stream)
    handler.setFormatter(StructuredFormatter())
    return handler, stream


def _parse_all_logs(stream: StringIO) -> list[dict]:
    lines = stream.getvalue().strip().split("\n")
    return [json.loads(line) for line in lines if line]


class TestStructuredFormatter:
    def test_basic_json_output(self):
        handler, stream = _make_handler()
        configure_logging(handler=handler)
        get_logger("test").info("hello")

        record = _parse_all_logs(stream)[0]
        assert record["message"] == "hello"
        assert record["level"] == "INFO"
        assert record["logger"] == "pnl.test"
        assert "ts" in record

    def test_extra_fields_serialized(self):
        handler, stream = _make_handler()
        configure_logging(handler=handler)
        upload_id = uuid4()
        get_logger("test").info(
            "record_ingested",
            extra={"upload_id": upload_id, "amount": Decimal("12.50")},
        )

        record = _parse_all_logs(stream)[0]
        assert record["upload_id"] == str(upload_id)
        assert record["amount"] == "12.50"

    def test_exception_code_and_attributes(self):
        handler, stream = _make_handler()
        configure_logging(handler=handler)
        try:
            raise VersionNotFoundError("abc")
        except VersionNotFoundError:
            get_logger("test").exception("rollback_failed")

        record = _parse_all_logs(stream)[0]
        assert record["exc_type"] == "VersionNotFoundError"
        assert record["exc_code"] == "VERSION_NOT_FOUND"
        assert record["exc_version_id"] == "abc"
        assert "traceback" in record


class TestLogContext:
    def test_bind_adds_and_restores_fields(self):
        handler, stream = _make_handler()
        configure_logging(handler=handler)
        logger = get_logger("test")

        with LogContext.bind(correlation_id="upload-1", source_file="a.csv"):
            logger.info("inside")
        logger.info("outside")

        inside, outside = _parse_all_logs(stream)
        assert inside["correlation_id"] == "upload-1"
        assert inside["source_file"] == "a.csv"
        assert "correlation_id" not in outside

    def test_nested_bind_restores_outer_value(self):
        with LogContext.bind(source_file="outer.csv"):
            with LogContext.bind(source_file="inner.csv"):
                assert LogContext.get_all()["source_file"] == "inner.csv"
            assert LogContext.get_all()["source_file"] == "outer.csv"


class TestConfigureLogging:
    def test_configure_is_idempotent(self):
        reset_logging()
        first, _ = _make_handler()
        second, _ = _make_handler()

        configure_logging(handler=first)
        configure_logging(handler=first)
        configure_logging(handler=second)

        handlers = logging.getLogger("pnl").handlers
        assert sum(1 for h in handlers if h is first) == 1
        assert second not in handlers

    def test_reset_allows_reconfiguration(self):
        first, _ = _make_handler()
        configure_logging(handler=first)
        reset_logging()

        second, stream = _make_handler()
        configure_logging(handler=second)
        get_logger("test").info("after_reset")

        assert first not in logging.getLogger("pnl").handlers
        assert _parse_all_logs(stream)[0]["message"] == "after_reset"
