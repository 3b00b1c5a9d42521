"""
Module: asset_kernel.models.request
Responsibility: ORM persistence for hardware requests (tickets).
Architecture position: Kernel > Models.  May import from db/base.py only.

Invariants enforced:
    - request_id is unique (uq_request_request_id).
    - quantity >= 1.
    - status only changes through TicketLifecycleService, which applies
      the TICKET_WORKFLOW table; Completed tickets are never written again.
    - assigned is one-way: once True it is never reset.
"""

from enum import Enum

from sqlalchemy import BigInteger, Boolean, CheckConstraint, Index, String, Text, UniqueConstraint
from sqlalchemy import Enum as SAEnum
from sqlalchemy.orm import Mapped, mapped_column

from asset_kernel.db.base import TrackedBase


class TicketStatus(str, Enum):
    """Lifecycle status of a request.

    Transitions are Pending -> {Approved, Rejected, Completed} and
    Approved -> Completed.  Rejected and Completed are terminal.
    """

    PENDING = "Pending"
    APPROVED = "Approved"
    REJECTED = "Rejected"
    COMPLETED = "Completed"


class Priority(str, Enum):
    LOW = "Low"
    MEDIUM = "Medium"
    HIGH = "High"


def _values(enum_cls):
    return [member.value for member in enum_cls]


class Request(TrackedBase):
    """
    Employee hardware request.

    Owned by the employee who created it (emp_id).  The administrator
    changes status, priority and technician assignment.
    """

    __tablename__ = "requests"

    __table_args__ = (
        UniqueConstraint("request_id", name="uq_request_request_id"),
        CheckConstraint("quantity >= 1", name="ck_request_quantity_positive"),
        Index("idx_request_emp", "emp_id"),
        Index("idx_request_status", "status"),
    )

    # Business identifier, e.g. "REQ-000001"
    request_id: Mapped[str] = mapped_column(String(50), nullable=False)

    emp_id: Mapped[str] = mapped_column(String(50), nullable=False)

    # Requested asset type
    asset_id: Mapped[str] = mapped_column(String(50), nullable=False)
    asset_name: Mapped[str] = mapped_column(String(200), nullable=False)

    department: Mapped[str] = mapped_column(String(100), nullable=False, default="General")

    quantity: Mapped[int] = mapped_column(BigInteger, nullable=False, default=1)

    status: Mapped[TicketStatus] = mapped_column(
        SAEnum(TicketStatus, native_enum=False, length=20, values_callable=_values),
        nullable=False,
        default=TicketStatus.PENDING,
    )

    # Technician engaged (one-way lock)
    assigned: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)

    technician_name: Mapped[str] = mapped_column(
        String(200), nullable=False, default="Unassigned"
    )

    priority: Mapped[Priority] = mapped_column(
        SAEnum(Priority, native_enum=False, length=10, values_callable=_values),
        nullable=False,
        default=Priority.MEDIUM,
    )

    description: Mapped[str] = mapped_column(Text, nullable=False, default="")

    def __repr__(self) -> str:
        return f"<Request {self.request_id}: {self.status.value}>"

    @property
    def is_completed(self) -> bool:
        return self.status == TicketStatus.COMPLETED

    @property
    def is_pending(self) -> bool:
        return self.status == TicketStatus.PENDING
