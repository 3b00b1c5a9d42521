"""Stock read-side tests: catalog, availability, bands, reconciliation."""

import pytest

from asset_kernel.domain.dtos import StockStatus
from asset_kernel.domain.workflow import ActorRole
from asset_kernel.exceptions import AssetNotFoundError
from asset_kernel.models.request import TicketStatus
from asset_kernel.selectors.inventory_selector import InventorySelector


@pytest.fixture
def selector(session):
    return InventorySelector(session, low_stock_threshold=5)


class TestCatalog:

    def test_get_asset(self, selector, make_asset):
        make_asset("AST-1", quantity=4)
        asset = selector.get_asset("AST-1")
        assert asset.quantity_on_hand == 4
        assert asset.brand == "Lenovo"

    def test_get_unknown_asset(self, selector):
        with pytest.raises(AssetNotFoundError):
            selector.get_asset("AST-404")

    def test_list_assets_ordered_by_id(self, selector, make_asset):
        make_asset("AST-2")
        make_asset("AST-1")
        assert [a.asset_id for a in selector.list_assets()] == ["AST-1", "AST-2"]

    def test_names_and_models(self, selector, make_asset):
        make_asset("AST-1", name="Laptop", model="X200")
        make_asset("AST-2", name="Laptop", model="T14")
        make_asset("AST-3", name="Laptop", model="X200")
        make_asset("AST-4", name="Dock", model="D1")

        assert selector.hardware_names() == ["Dock", "Laptop"]
        assert selector.models_for("Laptop") == ["T14", "X200"]
        assert selector.models_for("Tablet") == []


class TestStockStatus:

    @pytest.mark.parametrize(
        "quantity, band",
        [(0, StockStatus.OUT_OF_STOCK), (3, StockStatus.LOW_STOCK), (5, StockStatus.IN_STOCK)],
    )
    def test_bands(self, selector, make_asset, quantity, band):
        make_asset("AST-1", quantity=quantity)
        assert selector.stock_status("AST-1") is band

    def test_report(self, selector, make_asset):
        make_asset("AST-1", quantity=0)
        make_asset("AST-2", quantity=9)

        report = selector.stock_report()

        assert [(a.asset_id, band) for a, band in report] == [
            ("AST-1", StockStatus.OUT_OF_STOCK),
            ("AST-2", StockStatus.IN_STOCK),
        ]


class TestAvailability:

    def test_by_name_sums_rows(self, selector, make_asset):
        make_asset("AST-2", name="Mouse", model="M1", quantity=3)
        make_asset("AST-1", name="Mouse", model="M2", quantity=4)

        availability = selector.availability_by_name("Mouse")

        assert availability.available == 7
        assert availability.asset_id == "AST-1"

    def test_by_name_unknown(self, selector):
        with pytest.raises(AssetNotFoundError):
            selector.availability_by_name("Projector")

    def test_available_units(self, selector, desk, make_asset):
        make_asset("AST-1", name="Laptop", model="X200", is_unit=True)
        make_asset("AST-2", name="Laptop", model="X200", is_unit=True)
        make_asset("AST-3", name="Laptop", model="X200", is_unit=True)

        desk.request_allocation("EMP-1", "Laptop", "X200")

        availability = selector.available_units("Laptop", "X200")
        assert availability.available == 2
        assert availability.model == "X200"

    def test_available_units_counts_stock_of_quantity_rows(self, selector, desk, make_asset):
        make_asset("AST-1", name="Laptop", model="X200", is_unit=True)
        make_asset("AST-2", name="Laptop", model="X200", quantity=3)
        make_asset("AST-3", name="Laptop", model="T14", quantity=8)

        desk.request_allocation("EMP-1", "Laptop", "X200")
        desk.request_allocation("EMP-2", "Laptop", "X200")

        assert selector.available_units("Laptop", "X200").available == 2

    def test_available_units_none_defined(self, selector):
        assert selector.available_units("Laptop", "Z1").available == 0


class TestEmployeeAllocations:

    def test_lists_assigned_hardware(self, selector, desk, make_asset):
        make_asset("AST-1", name="Laptop", model="X200", is_unit=True)
        make_asset("AST-2", name="Phone", model="P7", quantity=2)
        desk.request_allocation("EMP-1", "Laptop", "X200")
        ticket = desk.create_request("EMP-1", asset_id="AST-2")
        desk.transition(ticket.request_id, ActorRole.ADMIN, TicketStatus.APPROVED, "ADM-1")

        allocations = selector.employee_allocations("EMP-1")

        assert {a.asset_id for a in allocations} == {"AST-1", "AST-2"}
        assert {a.deducted for a in allocations} == {True, False}
        assert selector.employee_allocations("EMP-2") == []


class TestReconcile:

    def test_purchases_minus_deductions_match(self, selector, desk):
        received = desk.receive_stock("Laptop", 10, "Acme Supplies")
        ticket = desk.create_request("EMP-1", asset_id=received.asset.asset_id, quantity=3)
        desk.transition(ticket.request_id, ActorRole.ADMIN, TicketStatus.APPROVED, "ADM-1")

        (line,) = selector.reconcile()

        assert line.purchased == 10
        assert line.deducted == 3
        assert line.quantity_on_hand == 7
        assert line.is_reconciled

    def test_unit_allocations_do_not_count_as_deductions(self, selector, desk):
        desk.register_unit("Laptop", "X200")
        desk.request_allocation("EMP-1", "Laptop", "X200")

        (line,) = selector.reconcile()

        assert line.deducted == 0
        assert line.is_reconciled

    def test_self_service_from_received_stock_reconciles(self, selector, desk):
        desk.receive_stock("Laptop", 3, "Acme Supplies", model="X200")
        desk.request_allocation("EMP-1", "Laptop", "X200")

        (line,) = selector.reconcile()

        assert line.deducted == 1
        assert line.quantity_on_hand == 2
        assert line.is_reconciled

    def test_unrecorded_deduction_is_reported(self, selector, desk):
        received = desk.receive_stock("Mouse", 5, "Acme Supplies")
        desk.try_deduct(received.asset.asset_id, 2)

        (line,) = selector.reconcile()

        assert line.expected == 5
        assert line.quantity_on_hand == 3
        assert not line.is_reconciled

    def test_stock_without_purchase_is_reported(self, selector, make_asset):
        make_asset("AST-1", quantity=4)

        (line,) = selector.reconcile()

        assert line.purchased == 0
        assert not line.is_reconciled
