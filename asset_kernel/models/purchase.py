"""
Module: asset_kernel.models.purchase
Responsibility: ORM persistence for stock arrivals and the vendors that
    supplied them.
Architecture position: Kernel > Models.  May import from db/base.py only.

Invariants enforced:
    - Purchases are append-only; nothing updates or deletes them.
    - Sum of purchase quantities for an asset minus its deductions should
      equal quantity_on_hand (soft invariant, reported by
      InventorySelector.reconcile()).
"""

from datetime import datetime

from sqlalchemy import BigInteger, CheckConstraint, DateTime, Index, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from asset_kernel.db.base import Base, TrackedBase


class Vendor(TrackedBase):
    """Supplier of purchased hardware."""

    __tablename__ = "vendors"

    __table_args__ = (
        UniqueConstraint("seller_id", name="uq_vendor_seller_id"),
        UniqueConstraint("seller_name", name="uq_vendor_seller_name"),
    )

    seller_id: Mapped[str] = mapped_column(String(50), nullable=False)
    seller_name: Mapped[str] = mapped_column(String(200), nullable=False)
    phone: Mapped[str | None] = mapped_column(String(30), nullable=True)
    gst_number: Mapped[str | None] = mapped_column(String(30), nullable=True)

    def __repr__(self) -> str:
        return f"<Vendor {self.seller_id} {self.seller_name}>"


class Purchase(Base):
    """Immutable stock arrival."""

    __tablename__ = "purchases"

    __table_args__ = (
        UniqueConstraint("purchase_id", name="uq_purchase_purchase_id"),
        CheckConstraint("quantity >= 1", name="ck_purchase_quantity_positive"),
        Index("idx_purchase_asset", "asset_id"),
    )

    # Business identifier, e.g. "PUR-000001"
    purchase_id: Mapped[str] = mapped_column(String(50), nullable=False)

    asset_id: Mapped[str] = mapped_column(String(50), nullable=False)
    asset_name: Mapped[str] = mapped_column(String(200), nullable=False)
    quantity: Mapped[int] = mapped_column(BigInteger, nullable=False)
    seller_id: Mapped[str] = mapped_column(String(50), nullable=False)
    arrival_date: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)

    def __repr__(self) -> str:
        return f"<Purchase {self.purchase_id} {self.asset_name} x{self.quantity}>"
