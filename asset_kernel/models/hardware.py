"""
Module: asset_kernel.models.hardware
Responsibility: ORM persistence for the hardware catalog.  Each AssetType row
    is both a catalog entry (name/brand/model) and the ledger balance for that
    entry (``quantity_on_hand``).
Architecture position: Kernel > Models.  May import from db/base.py only.

Invariants enforced:
    - asset_id is unique (uq_asset_type_asset_id).
    - quantity_on_hand >= 0, enforced by ck_asset_type_quantity_non_negative
      as a backstop to InventoryLedgerService's conditional update.

Two representations of stock coexist, told apart by ``is_unit``:
    - Quantity model (primary, ``is_unit=False``): one row per type,
      ``quantity_on_hand`` restocked by intake and decremented by the ledger.
    - Per-unit model (legacy, ``is_unit=True``): several rows sharing
      name+model, one per physical unit, always at zero quantity; a unit is
      free iff no Assigned Allocation references its asset_id.
"""

from sqlalchemy import BigInteger, Boolean, CheckConstraint, Index, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from asset_kernel.db.base import TrackedBase


class AssetType(TrackedBase):
    """Hardware catalog row and its stock level."""

    __tablename__ = "asset_types"

    __table_args__ = (
        UniqueConstraint("asset_id", name="uq_asset_type_asset_id"),
        CheckConstraint(
            "quantity_on_hand >= 0", name="ck_asset_type_quantity_non_negative"
        ),
        Index("idx_asset_type_name_model", "name", "model"),
    )

    # Business identifier, e.g. "AST-10001"
    asset_id: Mapped[str] = mapped_column(String(50), nullable=False)

    # Hardware type, e.g. "Laptop"
    name: Mapped[str] = mapped_column(String(200), nullable=False)

    brand: Mapped[str] = mapped_column(String(200), nullable=False, default="Generic")

    model: Mapped[str] = mapped_column(String(200), nullable=False)

    quantity_on_hand: Mapped[int] = mapped_column(
        BigInteger,
        nullable=False,
        default=0,
    )

    # One physical unit of the legacy per-unit model
    is_unit: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)

    def __repr__(self) -> str:
        return f"<AssetType {self.asset_id} {self.name}/{self.model}: {self.quantity_on_hand}>"
