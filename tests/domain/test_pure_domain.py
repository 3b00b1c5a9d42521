"""
Tests for the pure domain layer.

These tests verify:
- DTOs are immutable
- Clock abstraction works correctly
- Stock banding, paging and reconciliation arithmetic
- DeskSettings lookups
"""

from dataclasses import FrozenInstanceError
from datetime import UTC, datetime

import pytest

from asset_kernel.domain.clock import DeterministicClock, SystemClock
from asset_kernel.domain.dtos import (
    DeskSettings,
    ReconciliationLine,
    StockMovement,
    StockStatus,
    TicketInfo,
    TicketPage,
)
from asset_kernel.domain.sequence import DEFAULT_FORMAT, SequenceFormat


def _ticket(**overrides) -> TicketInfo:
    fields = dict(
        request_id="REQ-000001",
        emp_id="EMP-1",
        asset_id="AST-10001",
        asset_name="Laptop",
        quantity=1,
        status="Pending",
        assigned=False,
        technician_name="Unassigned",
        priority="Medium",
        department="General",
        description="",
    )
    fields.update(overrides)
    return TicketInfo(**fields)


class TestDTOImmutability:

    def test_ticket_info_is_frozen(self):
        ticket = _ticket()
        with pytest.raises(FrozenInstanceError):
            ticket.status = "Approved"

    def test_stock_movement_is_frozen(self):
        movement = StockMovement(asset_id="AST-1", delta=-1, quantity_after=4)
        with pytest.raises(AttributeError):
            movement.quantity_after = 10

    def test_desk_settings_formats_are_read_only(self):
        settings = DeskSettings(sequence_formats={"request_id": SequenceFormat(prefix="REQ-")})
        with pytest.raises(TypeError):
            settings.sequence_formats["request_id"] = SequenceFormat()

    def test_ticket_completed_flag(self):
        assert _ticket(status="Completed").is_completed
        assert not _ticket(status="Approved").is_completed


class TestClocks:

    def test_deterministic_clock_returns_fixed_time(self):
        fixed = datetime(2024, 6, 15, 12, 0, 0, tzinfo=UTC)
        clock = DeterministicClock(fixed)
        assert clock.now() == fixed
        assert clock.now() == fixed

    def test_tick_and_advance(self):
        clock = DeterministicClock()
        start = clock.now()
        clock.tick()
        clock.advance(9)
        assert (clock.now() - start).total_seconds() == 10

    def test_set_time_resets_advance(self):
        clock = DeterministicClock()
        clock.advance(100)
        target = datetime(2025, 1, 1, tzinfo=UTC)
        clock.set_time(target)
        assert clock.now() == target

    def test_system_clock_is_timezone_aware(self):
        assert SystemClock().now().tzinfo is not None


class TestStockStatus:

    @pytest.mark.parametrize(
        "quantity, expected",
        [
            (0, StockStatus.OUT_OF_STOCK),
            (-3, StockStatus.OUT_OF_STOCK),
            (1, StockStatus.LOW_STOCK),
            (4, StockStatus.LOW_STOCK),
            (5, StockStatus.IN_STOCK),
            (50, StockStatus.IN_STOCK),
        ],
    )
    def test_classify(self, quantity, expected):
        assert StockStatus.classify(quantity, low_stock_threshold=5) is expected

    def test_labels(self):
        assert StockStatus.LOW_STOCK.value == "Low Stock"


class TestTicketPage:

    @pytest.mark.parametrize(
        "total, page_size, pages",
        [(0, 5, 0), (1, 5, 1), (5, 5, 1), (6, 5, 2), (11, 5, 3), (3, 0, 0)],
    )
    def test_total_pages(self, total, page_size, pages):
        page = TicketPage(tickets=(), total=total, page=1, page_size=page_size)
        assert page.total_pages == pages


class TestReconciliationLine:

    def test_reconciled(self):
        line = ReconciliationLine("AST-1", "Laptop", purchased=10, deducted=4, quantity_on_hand=6)
        assert line.expected == 6
        assert line.is_reconciled

    def test_drift(self):
        line = ReconciliationLine("AST-1", "Laptop", purchased=10, deducted=4, quantity_on_hand=7)
        assert not line.is_reconciled


class TestDeskSettings:

    def test_known_format(self):
        fmt = SequenceFormat(prefix="REQ-", pad_width=6)
        settings = DeskSettings(sequence_formats={"request_id": fmt})
        assert settings.format_for("request_id") is fmt

    def test_unknown_format_falls_back_to_default(self):
        assert DeskSettings().format_for("anything") == DEFAULT_FORMAT

    def test_defaults(self):
        settings = DeskSettings()
        assert settings.default_quantity == 1
        assert settings.default_priority == "Medium"
        assert settings.page_size == 5
