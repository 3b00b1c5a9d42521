"""
Module: asset_kernel.selectors.ticket_selector
Responsibility: Read-only ticket queries: single ticket lookup, an
    employee's request history, the administrator listing with search,
    filters and pagination, and the dashboard counters and recent activity.
Architecture position: Kernel > Selectors.

Ordering: newest first (created_at DESC), request_id DESC as tie-breaker so
    pages are stable when several tickets share a timestamp.
"""

from sqlalchemy import func, or_, select
from sqlalchemy.orm import Session

from asset_kernel.domain.dtos import ActivityEntry, DashboardStats, TicketInfo, TicketPage
from asset_kernel.exceptions import TicketNotFoundError
from asset_kernel.models.hardware import AssetType
from asset_kernel.models.request import Request, TicketStatus
from asset_kernel.selectors.base import BaseSelector

# Filter value meaning "no filter", as sent by the admin dashboard
ALL = "All"


class TicketSelector(BaseSelector[Request]):
    """Ticket read side."""

    def __init__(self, session: Session, page_size: int = 5):
        super().__init__(session)
        if page_size < 1:
            raise ValueError(f"page_size must be >= 1, got {page_size}")
        self._page_size = page_size

    def get(self, request_id: str) -> TicketInfo:
        ticket = self.session.execute(
            select(Request).where(Request.request_id == request_id)
        ).scalar_one_or_none()
        if ticket is None:
            raise TicketNotFoundError(request_id)
        return TicketInfo.from_model(ticket)

    def user_history(self, emp_id: str) -> list[TicketInfo]:
        """All tickets of one employee, newest first."""
        rows = self.session.execute(
            select(Request)
            .where(Request.emp_id == emp_id)
            .order_by(Request.created_at.desc(), Request.request_id.desc())
        ).scalars()
        return [TicketInfo.from_model(r) for r in rows]

    def list_tickets(
        self,
        *,
        search: str | None = None,
        department: str | None = None,
        status: TicketStatus | str | None = None,
        page: int = 1,
        page_size: int | None = None,
    ) -> TicketPage:
        """
        One page of the administrator listing.

        Args:
            search: Case-insensitive substring of request id or asset name.
            department: Exact department, or "All"/None for any.
            status: Exact status, or "All"/None for any.
            page: 1-based page number; values below 1 are treated as 1.
            page_size: Overrides the selector default.
        """
        size = page_size or self._page_size
        page = max(page, 1)

        conditions = []
        if search:
            pattern = f"%{search.lower()}%"
            conditions.append(
                or_(
                    func.lower(Request.request_id).like(pattern),
                    func.lower(Request.asset_name).like(pattern),
                )
            )
        if department and department != ALL:
            conditions.append(Request.department == department)
        if status and status != ALL:
            conditions.append(Request.status == TicketStatus(status))

        total = self.session.execute(
            select(func.count()).select_from(Request).where(*conditions)
        ).scalar_one()

        rows = self.session.execute(
            select(Request)
            .where(*conditions)
            .order_by(Request.created_at.desc(), Request.request_id.desc())
            .offset((page - 1) * size)
            .limit(size)
        ).scalars()

        return TicketPage(
            tickets=tuple(TicketInfo.from_model(r) for r in rows),
            total=total,
            page=page,
            page_size=size,
        )

    def filter_options(self) -> dict[str, list[str]]:
        """Departments present in the data and every ticket status."""
        departments = self.session.execute(
            select(Request.department).distinct().order_by(Request.department)
        ).scalars()
        return {
            "departments": list(departments),
            "statuses": [s.value for s in TicketStatus],
        }

    def dashboard_stats(self, emp_id: str | None = None) -> DashboardStats:
        """Total, Pending and Completed counts; one employee's when ``emp_id`` is given."""
        stmt = select(
            func.count(),
            func.count().filter(Request.status == TicketStatus.PENDING),
            func.count().filter(Request.status == TicketStatus.COMPLETED),
        ).select_from(Request)
        if emp_id is not None:
            stmt = stmt.where(Request.emp_id == emp_id)
        total, pending, completed = self.session.execute(stmt).one()
        return DashboardStats(total=total, pending=pending, completed=completed)

    def recent_activity(self, emp_id: str | None = None, limit: int = 5) -> list[ActivityEntry]:
        """The ``limit`` newest tickets with their catalog row's brand and model."""
        if limit < 1:
            raise ValueError(f"limit must be >= 1, got {limit}")
        stmt = select(Request, AssetType).outerjoin(
            AssetType, AssetType.asset_id == Request.asset_id
        )
        if emp_id is not None:
            stmt = stmt.where(Request.emp_id == emp_id)
        rows = self.session.execute(
            stmt.order_by(Request.created_at.desc(), Request.request_id.desc()).limit(limit)
        ).all()
        return [ActivityEntry.from_models(ticket, hardware) for ticket, hardware in rows]
