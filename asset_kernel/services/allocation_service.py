"""
AllocationEngine -- binds asset units to employees and requests.

Responsibility:
    Records ``Allocation`` rows and, under the quantity model, couples
    each one with exactly one ledger deduction.  Two entry points match
    the two stock representations:

    - ``allocate(asset_id, emp_id, request_id, quantity)`` -- quantity
      model.  Deducts ``quantity`` from the asset type and records one
      Assigned allocation.  Called by TicketLifecycleService when a
      ticket first leaves Pending for Approved/Completed.
    - ``allocate_first_free(asset_name, model, emp_id, request_id)`` --
      one unit for the self-service flow.  Walks the matching rows in
      asset_id order and takes the first free one: a per-unit row
      (``is_unit``) with no Assigned allocation is bound as it is; a
      quantity row with stock on hand goes through ``try_deduct`` for one
      unit, so the ledger and the allocation stay in step.

Architecture position:
    Kernel > Services -- imperative shell.

Invariants enforced:
    - Allocation and deduction are one atomic unit (savepoint): on any
      failure neither the allocation row nor the stock change persists.
    - Per-unit model: at most one Assigned allocation per unit.  Candidate
      rows are locked (FOR UPDATE, ordered by asset_id) before the
      free check, so two concurrent callers cannot both pick the same unit.
    - Selection policy is fixed: first free row by asset_id order.  No
      load balancing, no weighting.
    - Every allocation made against a quantity row is ``deducted=True`` and
      backed by exactly one ledger deduction.

Failure modes:
    - NoFreeUnitError: every matching unit is Assigned and every matching
      quantity row is empty, or nothing matches.
    - InsufficientStockError / AssetNotFoundError from the ledger.
"""

from sqlalchemy import select
from sqlalchemy.orm import Session

from asset_kernel.domain.clock import Clock, SystemClock
from asset_kernel.domain.dtos import AllocationInfo, AllocationResult
from asset_kernel.exceptions import NoFreeUnitError
from asset_kernel.logging_config import get_logger
from asset_kernel.models.allocation import Allocation, AllocationStatus
from asset_kernel.models.hardware import AssetType
from asset_kernel.services.base import BaseService, storage_guard
from asset_kernel.services.ledger_service import InventoryLedgerService
from asset_kernel.services.sequence_service import SequenceService

logger = get_logger("services.allocation")


class AllocationEngine(BaseService[Allocation]):
    """
    Matches requests to stock and records the resulting allocation.

    Contract:
        Both entry points return an AllocationResult on success and raise
        on failure, leaving no allocation row and no ledger change behind.
    """

    def __init__(
        self,
        session: Session,
        sequence_service: SequenceService,
        ledger: InventoryLedgerService,
        clock: Clock | None = None,
    ):
        super().__init__(session)
        self._sequences = sequence_service
        self._ledger = ledger
        self._clock = clock or SystemClock()

    def allocate(
        self,
        asset_id: str,
        emp_id: str,
        request_id: str,
        quantity: int = 1,
    ) -> AllocationResult:
        """
        Deduct ``quantity`` from ``asset_id`` and record the allocation.

        Raises:
            InsufficientStockError: Not enough stock; nothing persisted.
            AssetNotFoundError: Unknown asset id.
        """
        with self.session.begin_nested():
            movement = self._ledger.try_deduct(asset_id, quantity, request_id=request_id)
            allocation = self._record(asset_id, emp_id, request_id, quantity, deducted=True)

        return AllocationResult(asset_id=asset_id, allocation=allocation, movement=movement)

    def allocate_first_free(
        self,
        asset_name: str,
        model: str | None,
        emp_id: str,
        request_id: str,
    ) -> AllocationResult:
        """
        Allocate one unit of ``asset_name`` (and ``model``).

        A per-unit row is free iff no Allocation with status Assigned
        references its asset_id; a quantity row is free while it has stock
        on hand, and taking from it deducts one unit.

        Raises:
            NoFreeUnitError: No matching row is free.
        """
        with self.session.begin_nested():
            candidates = self._lock_candidates(asset_name, model)
            taken = self._assigned_asset_ids(
                [c.asset_id for c in candidates if c.is_unit]
            )
            chosen = next(
                (
                    c
                    for c in candidates
                    if (c.asset_id not in taken if c.is_unit else c.quantity_on_hand >= 1)
                ),
                None,
            )
            if chosen is None:
                logger.warning(
                    "no_free_unit",
                    extra={
                        "asset_name": asset_name,
                        "model": model,
                        "candidates": len(candidates),
                        "request_id": request_id,
                    },
                )
                raise NoFreeUnitError(asset_name, model)

            movement = None
            if not chosen.is_unit:
                movement = self._ledger.try_deduct(chosen.asset_id, 1, request_id=request_id)
            allocation = self._record(
                chosen.asset_id, emp_id, request_id, 1, deducted=movement is not None
            )

        return AllocationResult(asset_id=chosen.asset_id, allocation=allocation, movement=movement)

    def _lock_candidates(self, asset_name: str, model: str | None) -> list[AssetType]:
        stmt = select(AssetType).where(AssetType.name == asset_name)
        if model is not None:
            stmt = stmt.where(AssetType.model == model)
        stmt = (
            stmt.order_by(AssetType.asset_id)
            .with_for_update()
            .execution_options(populate_existing=True)
        )
        with storage_guard("allocation.lock_candidates"):
            return list(self.session.execute(stmt).scalars().all())

    def _assigned_asset_ids(self, asset_ids: list[str]) -> set[str]:
        with storage_guard("allocation.assigned_units"):
            rows = self.session.execute(
                select(Allocation.asset_id).where(
                    Allocation.asset_id.in_(asset_ids),
                    Allocation.status == AllocationStatus.ASSIGNED,
                )
            ).scalars()
            return set(rows)

    def _record(
        self,
        asset_id: str,
        emp_id: str,
        request_id: str,
        quantity: int,
        *,
        deducted: bool,
    ) -> AllocationInfo:
        allocation = Allocation(
            allocation_id=self._sequences.next_value(SequenceService.ALLOCATION_ID),
            asset_id=asset_id,
            emp_id=emp_id,
            request_id=request_id,
            quantity=quantity,
            deducted=deducted,
            status=AllocationStatus.ASSIGNED,
            allocated_at=self._clock.now(),
        )
        self.session.add(allocation)
        with storage_guard("allocation.record"):
            self.session.flush()

        logger.info(
            "allocation_recorded",
            extra={
                "allocation_id": allocation.allocation_id,
                "asset_id": asset_id,
                "emp_id": emp_id,
                "request_id": request_id,
                "quantity": quantity,
            },
        )
        return AllocationInfo.from_model(allocation)
