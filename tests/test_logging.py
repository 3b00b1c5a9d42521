"""
Tests for kernel logging: what the desk writes, and the per-call context.

- Desk operations emit one JSON object per record with their extra fields
- Refusals are WARNING records carrying the refused amounts
- Kernel errors logged with exc_info carry their code and context
- The call context layers, restores, and beats colliding extra keys
- configure_logging installs exactly one handler
"""

import io
import json
import logging

import pytest

from asset_kernel.domain.workflow import ActorRole
from asset_kernel.exceptions import InsufficientStockError, StorageUnavailable
from asset_kernel.logging_config import (
    JsonLineFormatter,
    bind_context,
    configure_logging,
    current_context,
    desk_call,
    get_logger,
    reset_logging,
)
from asset_kernel.models.request import TicketStatus


def _format(message, *, exc_info=None, **extra) -> dict:
    record = logging.makeLogRecord(
        {
            "name": "asset_kernel.services.ledger",
            "levelno": logging.INFO,
            "levelname": "INFO",
            "msg": message,
            "exc_info": exc_info,
            **extra,
        }
    )
    return json.loads(JsonLineFormatter().format(record))


def _by_message(records: list[dict], message: str) -> list[dict]:
    return [r for r in records if r["message"] == message]


class TestDeskRecords:

    def test_deduction_record(self, desk, make_asset, captured_logs):
        make_asset("AST-1", quantity=3)
        desk.try_deduct("AST-1", 2)

        (record,) = _by_message(captured_logs(), "stock_deducted")
        assert record["level"] == "INFO"
        assert record["logger"] == "asset_kernel.services.ledger"
        assert record["asset_id"] == "AST-1"
        assert record["amount"] == 2
        assert record["quantity_after"] == 1
        assert record["ts"].endswith("+00:00")

    def test_refused_deduction_is_a_warning(self, desk, make_asset, captured_logs):
        make_asset("AST-1", quantity=1)
        with pytest.raises(InsufficientStockError):
            desk.try_deduct("AST-1", 5)

        (record,) = _by_message(captured_logs(), "stock_deduct_refused")
        assert record["level"] == "WARNING"
        assert record["requested"] == 5
        assert record["available"] == 1

    def test_sequence_allocation_logged_at_debug(self, desk, captured_logs):
        desk.next_value("request_id")

        (record,) = _by_message(captured_logs(), "sequence_allocated")
        assert record["level"] == "DEBUG"
        assert record["sequence_name"] == "request_id"
        assert record["value"] == 1

    def test_transition_record_names_both_states(self, desk, pending_ticket, captured_logs):
        desk.transition(pending_ticket.request_id, ActorRole.ADMIN, TicketStatus.APPROVED, "ADM-1")

        (record,) = _by_message(captured_logs(), "ticket_transitioned")
        assert record["from_status"] == "Pending"
        assert record["to_status"] == "Approved"
        assert record["deducted"] == 1

    def test_every_record_of_one_call_shares_its_correlation_id(
        self, desk, pending_ticket, captured_logs
    ):
        desk.transition(pending_ticket.request_id, ActorRole.ADMIN, TicketStatus.APPROVED, "ADM-1")

        records = [r for r in captured_logs() if r.get("actor_id") == "ADM-1"]
        assert len(records) >= 3
        assert len({r["correlation_id"] for r in records}) == 1


class TestErrorDescription:

    def test_kernel_error_carries_code_and_context(self):
        try:
            raise InsufficientStockError("AST-7", requested=3, available=1, request_id="REQ-000009")
        except InsufficientStockError as exc:
            record = _format("deduct_failed", exc_info=(type(exc), exc, exc.__traceback__))

        error = record["error"]
        assert error["type"] == "InsufficientStockError"
        assert error["code"] == "INSUFFICIENT_STOCK"
        assert error["context"] == {
            "asset_id": "AST-7",
            "requested": 3,
            "available": 1,
            "request_id": "REQ-000009",
            "guard": None,
        }
        assert "Traceback" in error["traceback"]

    def test_context_attribute_named_detail_does_not_clobber_message(self):
        try:
            raise StorageUnavailable("ledger.try_deduct", "disk I/O error")
        except StorageUnavailable as exc:
            record = _format("storage_down", exc_info=(type(exc), exc, exc.__traceback__))

        assert record["error"]["detail"] == (
            "Storage unavailable during ledger.try_deduct: disk I/O error"
        )
        assert record["error"]["context"]["detail"] == "disk I/O error"

    def test_foreign_error_has_no_code(self):
        try:
            raise KeyError("tickets")
        except KeyError as exc:
            record = _format("config_broken", exc_info=(type(exc), exc, exc.__traceback__))

        assert record["error"]["type"] == "KeyError"
        assert "code" not in record["error"]
        assert "context" not in record["error"]

    def test_no_error_block_without_exception(self):
        assert "error" not in _format("stock_restocked", asset_id="AST-1")


class TestCallContext:

    def test_bind_layers_and_restores(self):
        with bind_context(actor_role="Admin"):
            with bind_context(request_id="REQ-000001"):
                assert current_context() == {"actor_role": "Admin", "request_id": "REQ-000001"}
            assert current_context() == {"actor_role": "Admin"}
        assert current_context() == {}

    def test_none_keeps_outer_value(self):
        with bind_context(request_id="REQ-000001"):
            with bind_context(request_id=None, asset_id="AST-1"):
                assert current_context()["request_id"] == "REQ-000001"

    def test_restored_when_block_raises(self):
        with pytest.raises(RuntimeError):
            with bind_context(actor_id="EMP-1"):
                raise RuntimeError("boom")
        assert current_context() == {}

    def test_unknown_field_rejected(self):
        with pytest.raises(ValueError, match="emp_id"):
            with bind_context(emp_id="EMP-1"):
                pass

    def test_desk_call_yields_bound_correlation_id(self):
        with desk_call(actor_id="EMP-1") as first:
            assert current_context()["correlation_id"] == first
        with desk_call() as second:
            pass
        assert first != second

    def test_context_wins_over_extra(self):
        with bind_context(asset_id="AST-1"):
            record = _format("stock_restocked", asset_id="AST-2", amount=4)

        assert record["asset_id"] == "AST-1"
        assert record["amount"] == 4


class TestConfigureLogging:

    @pytest.fixture(autouse=True)
    def _fresh_setup(self):
        reset_logging()
        yield
        reset_logging()
        configure_logging(level=logging.DEBUG)

    def test_second_call_keeps_first_handler(self):
        first = logging.StreamHandler(io.StringIO())
        configure_logging(handler=first)
        configure_logging(handler=logging.StreamHandler(io.StringIO()))

        assert logging.getLogger("asset_kernel").handlers.count(first) == 1
        assert isinstance(first.formatter, JsonLineFormatter)

    def test_records_stay_out_of_root_logger(self):
        root = configure_logging(handler=logging.NullHandler())
        assert root.name == "asset_kernel"
        assert root.propagate is False

    def test_level_filters_child_loggers(self):
        stream = io.StringIO()
        configure_logging(stream=stream, level=logging.WARNING)

        get_logger("services.ledger").info("stock_restocked")
        get_logger("services.ledger").warning("stock_deduct_refused")

        lines = [json.loads(line) for line in stream.getvalue().splitlines()]
        assert [line["message"] for line in lines] == ["stock_deduct_refused"]

    def test_reset_detaches_handler(self):
        handler = logging.NullHandler()
        configure_logging(handler=handler)
        reset_logging()

        assert handler not in logging.getLogger("asset_kernel").handlers
