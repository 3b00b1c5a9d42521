"""Ticket read-side tests: lookup, history, admin listing, dashboard."""

import pytest
from sqlalchemy import delete

from asset_kernel.domain.dtos import DashboardStats
from asset_kernel.domain.workflow import ActorRole
from asset_kernel.exceptions import TicketNotFoundError
from asset_kernel.models.hardware import AssetType
from asset_kernel.models.request import TicketStatus
from asset_kernel.selectors.ticket_selector import ALL, TicketSelector


@pytest.fixture
def selector(session):
    return TicketSelector(session)


@pytest.fixture
def tickets(desk, make_asset, deterministic_clock):
    """Seven tickets across two employees, departments and assets."""
    make_asset("AST-1", name="Laptop", quantity=20)
    make_asset("AST-2", name="Monitor", model="U27", quantity=20)
    created = []
    for i in range(7):
        deterministic_clock.advance(60)
        created.append(
            desk.create_request(
                "EMP-1" if i % 2 == 0 else "EMP-2",
                asset_id="AST-1" if i < 4 else "AST-2",
                department="IT" if i < 3 else "Finance",
            )
        )
    desk.transition(created[0].request_id, ActorRole.ADMIN, TicketStatus.APPROVED, "ADM-1")
    desk.transition(created[1].request_id, ActorRole.ADMIN, TicketStatus.REJECTED, "ADM-1")
    return created


class TestGet:

    def test_get(self, selector, pending_ticket):
        assert selector.get(pending_ticket.request_id).emp_id == "EMP-1"

    def test_unknown(self, selector):
        with pytest.raises(TicketNotFoundError):
            selector.get("REQ-404")


class TestUserHistory:

    def test_newest_first(self, selector, tickets):
        history = selector.user_history("EMP-1")

        assert [t.request_id for t in history] == [
            "REQ-000007", "REQ-000005", "REQ-000003", "REQ-000001",
        ]

    def test_same_timestamp_orders_by_request_id(self, selector, desk, make_asset):
        make_asset("AST-1")
        for _ in range(3):
            desk.create_request("EMP-9", asset_id="AST-1")

        history = selector.user_history("EMP-9")

        assert [t.request_id for t in history] == ["REQ-000003", "REQ-000002", "REQ-000001"]

    def test_unknown_employee(self, selector):
        assert selector.user_history("EMP-404") == []


class TestListTickets:

    def test_first_page(self, selector, tickets):
        page = selector.list_tickets()

        assert page.total == 7
        assert page.page == 1
        assert page.page_size == 5
        assert page.total_pages == 2
        assert page.tickets[0].request_id == "REQ-000007"
        assert len(page.tickets) == 5

    def test_last_page(self, selector, tickets):
        page = selector.list_tickets(page=2)

        assert [t.request_id for t in page.tickets] == ["REQ-000002", "REQ-000001"]

    def test_page_below_one_is_first_page(self, selector, tickets):
        assert selector.list_tickets(page=0).page == 1

    def test_page_size_override(self, selector, tickets):
        page = selector.list_tickets(page_size=3)
        assert len(page.tickets) == 3
        assert page.total_pages == 3

    def test_search_by_asset_name_is_case_insensitive(self, selector, tickets):
        page = selector.list_tickets(search="monitor")
        assert page.total == 3
        assert {t.asset_name for t in page.tickets} == {"Monitor"}

    def test_search_by_request_id(self, selector, tickets):
        page = selector.list_tickets(search="req-000004")
        assert [t.request_id for t in page.tickets] == ["REQ-000004"]

    def test_department_filter(self, selector, tickets):
        assert selector.list_tickets(department="IT").total == 3
        assert selector.list_tickets(department=ALL).total == 7

    def test_status_filter(self, selector, tickets):
        assert selector.list_tickets(status="Approved").total == 1
        assert selector.list_tickets(status=TicketStatus.PENDING).total == 5
        assert selector.list_tickets(status=ALL).total == 7

    def test_filters_combine(self, selector, tickets):
        page = selector.list_tickets(department="IT", status="Rejected", search="laptop")
        assert [t.request_id for t in page.tickets] == ["REQ-000002"]

    def test_invalid_page_size(self, session):
        with pytest.raises(ValueError):
            TicketSelector(session, page_size=0)


class TestFilterOptions:

    def test_options(self, selector, tickets):
        options = selector.filter_options()

        assert options["departments"] == ["Finance", "IT"]
        assert options["statuses"] == ["Pending", "Approved", "Rejected", "Completed"]


class TestDashboardStats:

    @pytest.fixture
    def completed(self, desk, tickets):
        desk.transition(tickets[0].request_id, ActorRole.ADMIN, TicketStatus.COMPLETED, "ADM-1")
        return tickets

    def test_counts_every_ticket(self, selector, completed):
        stats = selector.dashboard_stats()

        assert (stats.total, stats.pending, stats.completed) == (7, 5, 1)

    def test_counts_one_employee(self, selector, completed):
        assert selector.dashboard_stats("EMP-1") == DashboardStats(total=4, pending=3, completed=1)
        assert selector.dashboard_stats("EMP-2") == DashboardStats(total=3, pending=2, completed=0)

    def test_empty_desk(self, selector):
        assert selector.dashboard_stats() == DashboardStats(total=0, pending=0, completed=0)


class TestRecentActivity:

    def test_five_newest_with_hardware(self, selector, tickets):
        activity = selector.recent_activity()

        assert [a.request_id for a in activity] == [
            "REQ-000007", "REQ-000006", "REQ-000005", "REQ-000004", "REQ-000003",
        ]
        assert (activity[0].asset_name, activity[0].brand, activity[0].model) == (
            "Monitor", "Lenovo", "U27",
        )
        assert activity[-1].model == "X200"

    def test_one_employee(self, selector, tickets):
        activity = selector.recent_activity("EMP-1")

        assert [a.request_id for a in activity] == [
            "REQ-000007", "REQ-000005", "REQ-000003", "REQ-000001",
        ]
        assert activity[-1].status == "Approved"
        assert {a.emp_id for a in activity} == {"EMP-1"}

    def test_limit(self, selector, tickets):
        assert len(selector.recent_activity(limit=2)) == 2
        with pytest.raises(ValueError):
            selector.recent_activity(limit=0)

    def test_missing_catalog_row_leaves_hardware_empty(self, session, selector, tickets):
        session.execute(delete(AssetType).where(AssetType.asset_id == "AST-2"))

        latest = selector.recent_activity(limit=1)[0]

        assert latest.asset_name == "Monitor"
        assert (latest.brand, latest.model) == (None, None)
