"""
Module: asset_kernel.selectors.inventory_selector
Responsibility: Read-only stock queries over both representations of stock:
    the quantity model (``AssetType.quantity_on_hand``) and the legacy
    per-unit model (``is_unit`` rows sharing name+model, free iff no
    Assigned allocation references them).  Also the hardware catalog, stock status
    bands, an employee's allocated hardware and the purchase
    reconciliation report.
Architecture position: Kernel > Selectors.

Reconciliation is a soft invariant: for each asset,

    Σ purchases - Σ deducted allocations == quantity_on_hand

A mismatch is reported, never corrected.
"""

from sqlalchemy import func, select
from sqlalchemy.orm import Session

from asset_kernel.domain.dtos import (
    AllocationInfo,
    AssetTypeInfo,
    Availability,
    ReconciliationLine,
    StockStatus,
)
from asset_kernel.exceptions import AssetNotFoundError
from asset_kernel.models.allocation import Allocation, AllocationStatus
from asset_kernel.models.hardware import AssetType
from asset_kernel.models.purchase import Purchase
from asset_kernel.selectors.base import BaseSelector


class InventorySelector(BaseSelector[AssetType]):
    """Stock read side."""

    def __init__(self, session: Session, low_stock_threshold: int = 5):
        super().__init__(session)
        self._low_stock_threshold = low_stock_threshold

    def get_asset(self, asset_id: str) -> AssetTypeInfo:
        asset = self.session.execute(
            select(AssetType).where(AssetType.asset_id == asset_id)
        ).scalar_one_or_none()
        if asset is None:
            raise AssetNotFoundError(asset_id)
        return AssetTypeInfo.from_model(asset)

    def list_assets(self) -> list[AssetTypeInfo]:
        rows = self.session.execute(select(AssetType).order_by(AssetType.asset_id)).scalars()
        return [AssetTypeInfo.from_model(r) for r in rows]

    def stock_status(self, asset_id: str) -> StockStatus:
        asset = self.get_asset(asset_id)
        return StockStatus.classify(asset.quantity_on_hand, self._low_stock_threshold)

    def stock_report(self) -> list[tuple[AssetTypeInfo, StockStatus]]:
        """Every asset type with its stock band."""
        return [
            (a, StockStatus.classify(a.quantity_on_hand, self._low_stock_threshold))
            for a in self.list_assets()
        ]

    def availability_by_name(self, asset_name: str) -> Availability:
        """
        Quantity-model availability: total on hand across rows with this name.

        Raises:
            AssetNotFoundError: No asset type has this name.
        """
        row = self.session.execute(
            select(
                func.count(AssetType.id),
                func.coalesce(func.sum(AssetType.quantity_on_hand), 0),
                func.min(AssetType.asset_id),
            ).where(AssetType.name == asset_name)
        ).one()
        count, available, first_asset_id = row
        if count == 0:
            raise AssetNotFoundError(asset_name)
        return Availability(name=asset_name, available=int(available), asset_id=first_asset_id)

    def available_units(self, asset_name: str, model: str) -> Availability:
        """
        What self-service could hand out for this name and model: free
        per-unit rows plus the stock on hand of quantity rows.
        """
        assigned = (
            select(Allocation.asset_id)
            .where(Allocation.status == AllocationStatus.ASSIGNED)
        )
        matching = (AssetType.name == asset_name, AssetType.model == model)
        free_units = self.session.execute(
            select(func.count(AssetType.id)).where(
                *matching,
                AssetType.is_unit.is_(True),
                AssetType.asset_id.not_in(assigned),
            )
        ).scalar_one()
        on_hand = self.session.execute(
            select(func.coalesce(func.sum(AssetType.quantity_on_hand), 0)).where(
                *matching,
                AssetType.is_unit.is_(False),
            )
        ).scalar_one()
        return Availability(name=asset_name, model=model, available=free_units + int(on_hand))

    def hardware_names(self) -> list[str]:
        return list(
            self.session.execute(
                select(AssetType.name).distinct().order_by(AssetType.name)
            ).scalars()
        )

    def models_for(self, asset_name: str) -> list[str]:
        return list(
            self.session.execute(
                select(AssetType.model)
                .where(AssetType.name == asset_name)
                .distinct()
                .order_by(AssetType.model)
            ).scalars()
        )

    def employee_allocations(self, emp_id: str) -> list[AllocationInfo]:
        """Hardware currently Assigned to an employee, oldest first."""
        rows = self.session.execute(
            select(Allocation)
            .where(
                Allocation.emp_id == emp_id,
                Allocation.status == AllocationStatus.ASSIGNED,
            )
            .order_by(Allocation.allocated_at, Allocation.allocation_id)
        ).scalars()
        return [AllocationInfo.from_model(r) for r in rows]

    def reconcile(self) -> list[ReconciliationLine]:
        """Purchases minus deductions against quantity on hand, per asset."""
        purchased = (
            select(
                Purchase.asset_id.label("asset_id"),
                func.sum(Purchase.quantity).label("total"),
            )
            .group_by(Purchase.asset_id)
            .subquery()
        )
        deducted = (
            select(
                Allocation.asset_id.label("asset_id"),
                func.sum(Allocation.quantity).label("total"),
            )
            .where(Allocation.deducted.is_(True))
            .group_by(Allocation.asset_id)
            .subquery()
        )
        rows = self.session.execute(
            select(
                AssetType.asset_id,
                AssetType.name,
                AssetType.quantity_on_hand,
                func.coalesce(purchased.c.total, 0),
                func.coalesce(deducted.c.total, 0),
            )
            .outerjoin(purchased, purchased.c.asset_id == AssetType.asset_id)
            .outerjoin(deducted, deducted.c.asset_id == AssetType.asset_id)
            .order_by(AssetType.asset_id)
        ).all()
        return [
            ReconciliationLine(
                asset_id=asset_id,
                asset_name=name,
                purchased=int(bought),
                deducted=int(used),
                quantity_on_hand=on_hand,
            )
            for asset_id, name, on_hand, bought, used in rows
        ]
