"""Tests for the structured logging system (ledger_kernel/logging_config.py)."""

import json
import logging
from datetime import date
from decimal import Decimal
from io import StringIO

import pytest

from ledger_kernel.domain.vouchers import VoucherType
from ledger_kernel.exceptions import LookupUnavailableError, PolicyConfigurationError
from ledger_kernel.logging_config import (
    LogContext,
    StructuredFormatter,
    configure_logging,
    get_logger,
    reset_logging,
)


@pytest.fixture(autouse=True)
def _clean_logging():
    """Reset logging state between tests, then restore the suite's setup."""
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


def _parse_log(stream: StringIO) -> dict:
    return _parse_all_logs(stream)[0]


# ---------------------------------------------------------------------------
# StructuredFormatter tests
# ---------------------------------------------------------------------------


class TestStructuredFormatter:
    def test_basic_json_output(self):
        handler, stream = _make_handler()
        configure_logging(handler=handler)
        get_logger("test").info("hello")

        record = _parse_log(stream)
        assert record["level"] == "INFO"
        assert record["message"] == "hello"
        assert record["logger"] == "ledger_kernel.test"
        assert "ts" in record

    def test_extra_fields_included(self):
        handler, stream = _make_handler()
        configure_logging(handler=handler)
        get_logger("test").info("journal_validated", extra={"line_count": 2, "code": "OK"})

        record = _parse_log(stream)
        assert record["line_count"] == 2
        assert record["code"] == "OK"

    def test_domain_values_serialized(self):
        handler, stream = _make_handler()
        configure_logging(handler=handler)
        get_logger("test").info(
            "amounts",
            extra={
                "total": Decimal("106.00"),
                "posting_date": date(2024, 6, 30),
                "voucher_type": VoucherType.SALES_INVOICE,
            },
        )

        record = _parse_log(stream)
        assert record["total"] == "106.00"
        assert record["posting_date"] == "2024-06-30"
        assert record["voucher_type"] == VoucherType.SALES_INVOICE.value

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
        assert "exc_code" not in record
        assert "traceback" in record

    def test_kernel_exception_code_extracted(self):
        handler, stream = _make_handler()
        configure_logging(handler=handler)
        try:
            raise LookupUnavailableError("LedgerQuery", "get_entries", "connection refused")
        except LookupUnavailableError:
            get_logger("test").error("port_lookup_failed", exc_info=True)

        record = _parse_log(stream)
        assert record["exc_code"] == "LOOKUP_UNAVAILABLE"
        assert record["exc_type"] == "LookupUnavailableError"
        assert record["exc_port"] == "LedgerQuery"
        assert record["exc_operation"] == "get_entries"
        assert record["exc_reason"] == "connection refused"

    def test_configuration_error_setting_extracted(self):
        handler, stream = _make_handler()
        configure_logging(handler=handler)
        try:
            raise PolicyConfigurationError("posting.balance_tolerance", "must be >= 0")
        except PolicyConfigurationError:
            get_logger("config").error("ledger_settings_invalid", exc_info=True)

        record = _parse_log(stream)
        assert record["exc_code"] == "POLICY_CONFIGURATION_ERROR"
        assert record["exc_setting"] == "posting.balance_tolerance"
        assert record["logger"] == "ledger_kernel.config"


# ---------------------------------------------------------------------------
# LogContext tests
# ---------------------------------------------------------------------------


class TestLogContext:
    def test_context_fields_included(self):
        handler, stream = _make_handler()
        configure_logging(handler=handler)
        LogContext.set(company_id="C1", journal_number="JV-0001")
        get_logger("test").info("msg")

        record = _parse_log(stream)
        assert record["company_id"] == "C1"
        assert record["journal_number"] == "JV-0001"

    def test_no_context_fields_when_empty(self):
        handler, stream = _make_handler()
        configure_logging(handler=handler)
        get_logger("test").info("bare_message")

        record = _parse_log(stream)
        assert "company_id" not in record
        assert "correlation_id" not in record

    def test_set_ignores_none(self):
        LogContext.set(company_id="C1")
        LogContext.set(company_id=None, actor_id="u-1")

        assert LogContext.get_all() == {"company_id": "C1", "actor_id": "u-1"}

    def test_bind_restores_previous_values(self):
        LogContext.set(company_id="C1")

        with LogContext.bind(company_id="C2", voucher_no="SINV-1"):
            assert LogContext.get_all() == {"company_id": "C2", "voucher_no": "SINV-1"}

        assert LogContext.get_all() == {"company_id": "C1"}

    def test_bind_restores_on_exception(self):
        with pytest.raises(RuntimeError):
            with LogContext.bind(voucher_no="PE-1"):
                raise RuntimeError("abort")

        assert LogContext.get_all() == {}

    def test_clear(self):
        LogContext.set(correlation_id="abc", company_id="C1")
        LogContext.clear()

        assert LogContext.get_all() == {}


# ---------------------------------------------------------------------------
# configure_logging tests
# ---------------------------------------------------------------------------


class TestConfigureLogging:
    def test_idempotent(self):
        handler, stream = _make_handler()
        configure_logging(handler=handler)
        configure_logging(handler=handler)
        get_logger("test").info("once")

        assert len(_parse_all_logs(stream)) == 1

    def test_level_filters(self):
        handler, stream = _make_handler()
        configure_logging(level=logging.WARNING, handler=handler)
        logger = get_logger("test")
        logger.info("hidden")
        logger.warning("shown")

        assert [r["message"] for r in _parse_all_logs(stream)] == ["shown"]

    def test_level_by_name(self):
        handler, stream = _make_handler()
        configure_logging(level="error", handler=handler)
        logger = get_logger("test")
        logger.warning("hidden")
        logger.error("shown")

        assert [r["message"] for r in _parse_all_logs(stream)] == ["shown"]

    def test_does_not_propagate_to_root(self):
        configure_logging(handler=_make_handler()[0])

        assert logging.getLogger("ledger_kernel").propagate is False

    def test_reset_removes_handlers(self):
        configure_logging(handler=_make_handler()[0])
        reset_logging()

        assert logging.getLogger("ledger_kernel").handlers == []
