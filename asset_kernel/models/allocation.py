"""
Module: asset_kernel.models.allocation
Responsibility: ORM persistence for the binding of an asset to an employee
    and the request that asked for it.
Architecture position: Kernel > Models.  May import from db/base.py only.

Invariants enforced:
    - One allocation per (asset_id, request_id) (uq_allocation_asset_request).
    - At most one Assigned allocation per per-unit asset at any time.  This
      is enforced by AllocationEngine (unit rows are locked before the free
      check), not by the database.

Returned is part of the schema but no operation writes it yet.
"""

from datetime import datetime
from enum import Enum

from sqlalchemy import BigInteger, Boolean, DateTime, Index, String, UniqueConstraint
from sqlalchemy import Enum as SAEnum
from sqlalchemy.orm import Mapped, mapped_column

from asset_kernel.db.base import Base


class AllocationStatus(str, Enum):
    ASSIGNED = "Assigned"
    RETURNED = "Returned"


class Allocation(Base):
    """One asset handed to one employee for one request."""

    __tablename__ = "allocations"

    __table_args__ = (
        UniqueConstraint("asset_id", "request_id", name="uq_allocation_asset_request"),
        UniqueConstraint("allocation_id", name="uq_allocation_allocation_id"),
        Index("idx_allocation_asset_status", "asset_id", "status"),
        Index("idx_allocation_emp", "emp_id"),
    )

    # Business identifier, e.g. "ALC-000001"
    allocation_id: Mapped[str] = mapped_column(String(50), nullable=False)

    asset_id: Mapped[str] = mapped_column(String(50), nullable=False)
    emp_id: Mapped[str] = mapped_column(String(50), nullable=False)
    request_id: Mapped[str] = mapped_column(String(50), nullable=False)

    # Units bound by this allocation (1 under the per-unit model)
    quantity: Mapped[int] = mapped_column(BigInteger, nullable=False, default=1)

    # True when the quantity was deducted from the ledger (quantity model)
    deducted: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)

    status: Mapped[AllocationStatus] = mapped_column(
        SAEnum(
            AllocationStatus,
            native_enum=False,
            length=20,
            values_callable=lambda e: [m.value for m in e],
        ),
        nullable=False,
        default=AllocationStatus.ASSIGNED,
    )

    allocated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)

    def __repr__(self) -> str:
        return f"<Allocation {self.allocation_id} {self.asset_id}->{self.emp_id}: {self.status.value}>"
