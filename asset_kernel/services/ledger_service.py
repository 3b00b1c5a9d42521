"""
InventoryLedgerService -- stock quantity per asset type.

Responsibility:
    Owns every mutation of ``AssetType.quantity_on_hand``.  Exposes the
    atomic compare-and-decrement ``try_deduct``, the unconditional
    ``restock`` and the ``current_quantity`` read.

Architecture position:
    Kernel > Services -- imperative shell.
    Called by AllocationEngine (deduction at the lifecycle trigger point)
    and IntakeService (restock on purchase arrival).  ``restock`` is also
    the entry point a future return flow would use.

Invariants enforced:
    - quantity_on_hand never goes negative.  The check and the decrement
      are one conditional UPDATE:

          UPDATE asset_types
             SET quantity_on_hand = quantity_on_hand - :n
           WHERE asset_id = :id AND quantity_on_hand >= :n

      so two concurrent deductions whose sum exceeds stock cannot both
      succeed, whatever the interleaving.  The CHECK constraint on the
      table is a backstop only.
    - Mutations are flushed into the caller's transaction; they commit or
      roll back together with the ticket status change that caused them.

Failure modes:
    - InsufficientStockError: the conditional update matched no row but
      the asset exists.
    - AssetNotFoundError: the asset id does not exist.
    - InvalidQuantityError: amount <= 0.
    - StorageUnavailable: the database could not execute the update.
"""

from sqlalchemy import select, update
from sqlalchemy.orm import Session

from asset_kernel.domain.clock import Clock, SystemClock
from asset_kernel.domain.dtos import StockMovement
from asset_kernel.exceptions import (
    AssetNotFoundError,
    InsufficientStockError,
    InvalidQuantityError,
)
from asset_kernel.logging_config import get_logger
from asset_kernel.models.hardware import AssetType
from asset_kernel.services.base import BaseService, storage_guard

logger = get_logger("services.ledger")


class InventoryLedgerService(BaseService[AssetType]):
    """
    Atomic stock mutations on asset-type rows.

    Contract:
        ``try_deduct(asset_id, amount)`` either applies the whole amount
        or raises; it never applies part of it.  ``restock`` always
        applies.  Neither commits.

    Non-goals:
        - Does NOT record allocations (AllocationEngine does).
        - Does NOT decide when a deduction is due (TicketLifecycleService
          does).
    """

    def __init__(self, session: Session, clock: Clock | None = None):
        super().__init__(session)
        self._clock = clock or SystemClock()

    def try_deduct(
        self,
        asset_id: str,
        amount: int,
        request_id: str | None = None,
    ) -> StockMovement:
        """
        Deduct ``amount`` units if, and only if, that many are on hand.

        Args:
            asset_id: Business id of the asset type.
            amount: Units to deduct (> 0).
            request_id: Ticket the deduction is for; carried into the
                error and the log record.

        Returns:
            StockMovement with the negative delta and the quantity after.

        Raises:
            InvalidQuantityError, AssetNotFoundError, InsufficientStockError,
            StorageUnavailable.
        """
        self._check_amount(amount)

        stmt = (
            update(AssetType)
            .where(
                AssetType.asset_id == asset_id,
                AssetType.quantity_on_hand >= amount,
            )
            .values(
                quantity_on_hand=AssetType.quantity_on_hand - amount,
                updated_at=self._clock.now(),
            )
            .execution_options(synchronize_session=False)
        )

        with storage_guard("ledger.try_deduct"):
            result = self.session.execute(stmt)
            applied = result.rowcount == 1
            quantity_after = self._read_quantity(asset_id)

        if not applied:
            logger.warning(
                "stock_deduct_refused",
                extra={
                    "asset_id": asset_id,
                    "requested": amount,
                    "available": quantity_after,
                    "request_id": request_id,
                },
            )
            raise InsufficientStockError(
                asset_id, amount, quantity_after, request_id=request_id
            )

        logger.info(
            "stock_deducted",
            extra={
                "asset_id": asset_id,
                "amount": amount,
                "quantity_after": quantity_after,
                "request_id": request_id,
            },
        )
        return StockMovement(asset_id=asset_id, delta=-amount, quantity_after=quantity_after)

    def restock(self, asset_id: str, amount: int) -> int:
        """
        Unconditionally add ``amount`` units.

        Returns:
            The new quantity on hand.
        """
        self._check_amount(amount)

        stmt = (
            update(AssetType)
            .where(AssetType.asset_id == asset_id)
            .values(
                quantity_on_hand=AssetType.quantity_on_hand + amount,
                updated_at=self._clock.now(),
            )
            .execution_options(synchronize_session=False)
        )

        with storage_guard("ledger.restock"):
            result = self.session.execute(stmt)
            if result.rowcount == 0:
                raise AssetNotFoundError(asset_id)
            quantity_after = self._read_quantity(asset_id)

        logger.info(
            "stock_restocked",
            extra={"asset_id": asset_id, "amount": amount, "quantity_after": quantity_after},
        )
        return quantity_after

    def current_quantity(self, asset_id: str) -> int:
        """Quantity on hand, read from the database (never the identity map)."""
        with storage_guard("ledger.current_quantity"):
            return self._read_quantity(asset_id)

    def get_asset(self, asset_id: str, for_update: bool = False) -> AssetType:
        """Load an asset-type row, refreshed from the database."""
        stmt = (
            select(AssetType)
            .where(AssetType.asset_id == asset_id)
            .execution_options(populate_existing=True)
        )
        if for_update:
            stmt = stmt.with_for_update()

        with storage_guard("ledger.get_asset"):
            asset = self.session.execute(stmt).scalar_one_or_none()
        if asset is None:
            raise AssetNotFoundError(asset_id)
        return asset

    def _read_quantity(self, asset_id: str) -> int:
        quantity = self.session.execute(
            select(AssetType.quantity_on_hand).where(AssetType.asset_id == asset_id)
        ).scalar_one_or_none()
        if quantity is None:
            raise AssetNotFoundError(asset_id)
        return quantity

    @staticmethod
    def _check_amount(amount: int) -> None:
        if isinstance(amount, bool) or not isinstance(amount, int) or amount <= 0:
            raise InvalidQuantityError(amount)
