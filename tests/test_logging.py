"""Tests for the structured logging system (billing_kernel/logging_config.py)."""

import json
import logging
from datetime import date
from decimal import Decimal
from io import StringIO
from uuid import uuid4

import pytest

from billing_kernel.domain.dtos import BillingCadence
from billing_kernel.logging_config import (
    LogContext,
    StructuredFormatter,
    configure_logging,
    get_logger,
    reset_logging,
)


@pytest.fixture(autouse=True)
def _clean_logging():
    """Reset logging state between tests, then restore the suite configuration."""
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


def _parse_log(stream: StringIO) -> dict:
    line = stream.getvalue().strip().split("\n")[0]
    return json.loads(line)


def _parse_all_logs(stream: StringIO) -> list[dict]:
    lines = stream.getvalue().strip().split("\n")
    return [json.loads(line) for line in lines if line]


class TestStructuredFormatter:

    def test_basic_json_output(self):
        handler, stream = _make_handler()
        configure_logging(handler=handler)
        get_logger("test").info("hello")

        record = _parse_log(stream)
        assert record["level"] == "INFO"
        assert record["message"] == "hello"
        assert record["logger"] == "billing_kernel.test"
        assert "ts" in record

    def test_extra_fields_included(self):
        handler, stream = _make_handler()
        configure_logging(handler=handler)
        get_logger("test").info("invoice_line_added", extra={"amount": 30000, "line_count": 2})

        record = _parse_log(stream)
        assert record["amount"] == 30000
        assert record["line_count"] == 2

    def test_context_fields_included(self):
        handler, stream = _make_handler()
        configure_logging(handler=handler)
        LogContext.set(correlation_id="abc-123", invoice_id="inv-1")
        get_logger("test").info("test_msg")

        record = _parse_log(stream)
        assert record["correlation_id"] == "abc-123"
        assert record["invoice_id"] == "inv-1"

    def test_exception_fields(self):
        handler, stream = _make_handler()
        configure_logging(handler=handler)
        try:
            raise ValueError("boom")
        except ValueError:
            get_logger("test").error("failed", exc_info=True)

        record = _parse_log(stream)
        assert record["exc_type"] == "ValueError"
        assert record["exc_message"] == "boom"
        assert "traceback" in record

    def test_billing_exception_code_extracted(self):
        from billing_kernel.exceptions import DuplicateInvoiceLineError

        handler, stream = _make_handler()
        configure_logging(handler=handler)
        try:
            raise DuplicateInvoiceLineError("inv-1", "per-1")
        except DuplicateInvoiceLineError:
            get_logger("test").error("line_error", exc_info=True)

        record = _parse_log(stream)
        assert record["exc_code"] == "DUPLICATE_INVOICE_LINE"
        assert record["exc_type"] == "DuplicateInvoiceLineError"
        assert record["exc_invoice_id"] == "inv-1"
        assert record["exc_period_id"] == "per-1"

    def test_no_context_fields_when_empty(self):
        handler, stream = _make_handler()
        configure_logging(handler=handler)
        get_logger("test").info("bare_message")

        record = _parse_log(stream)
        assert "correlation_id" not in record
        assert "actor_id" not in record

    def test_domain_values_serialized(self):
        handler, stream = _make_handler()
        configure_logging(handler=handler)
        uid = uuid4()
        get_logger("test").info(
            "with_values",
            extra={
                "period_id": uid,
                "date_from": date(2025, 1, 4),
                "rate": Decimal("6.0000"),
                "cadence": BillingCadence.MONTHLY,
            },
        )

        record = _parse_log(stream)
        assert record["period_id"] == str(uid)
        assert record["date_from"] == "2025-01-04"
        assert record["rate"] == "6.0000"
        assert record["cadence"] == "MONTHLY"

    def test_valid_json_every_line(self):
        handler, stream = _make_handler()
        configure_logging(handler=handler)
        logger = get_logger("test")
        logger.info("first")
        logger.warning("second", extra={"k": "v"})
        logger.debug("third")

        logs = _parse_all_logs(stream)
        # Default level is INFO, so the debug record is dropped
        assert len(logs) == 2
        for record in logs:
            assert {"ts", "level", "logger", "message"} <= set(record)


class TestLogContext:

    def test_set_and_get(self):
        LogContext.set(correlation_id="x", service_id="y")
        assert LogContext.get_all() == {"correlation_id": "x", "service_id": "y"}

    def test_clear(self):
        LogContext.set(correlation_id="x")
        LogContext.clear()
        assert LogContext.get_all() == {}

    def test_bind_context_manager(self):
        LogContext.set(correlation_id="outer")
        with LogContext.bind(correlation_id="inner"):
            assert LogContext.get_all()["correlation_id"] == "inner"
        assert LogContext.get_all()["correlation_id"] == "outer"

    def test_bind_restores_none(self):
        assert "actor_id" not in LogContext.get_all()
        with LogContext.bind(actor_id=uuid4()):
            assert "actor_id" in LogContext.get_all()
        assert "actor_id" not in LogContext.get_all()

    def test_unknown_fields_ignored(self):
        LogContext.set(not_a_field="x")
        assert LogContext.get_all() == {}


class TestConfigureLogging:

    def test_idempotent(self):
        reset_logging()
        logger = logging.getLogger("billing_kernel")
        before = list(logger.handlers)
        handler, _ = _make_handler()
        other, _ = _make_handler()

        configure_logging(handler=handler)
        configure_logging(handler=other)

        added = [h for h in logger.handlers if h not in before]
        assert added == [handler]

    def test_reset_clears_handlers(self):
        handler, _ = _make_handler()
        configure_logging(handler=handler)
        reset_logging()
        assert logging.getLogger("billing_kernel").handlers == []
