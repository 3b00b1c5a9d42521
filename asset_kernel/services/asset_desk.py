"""
AssetDesk -- the in-process entry point consumed by the routing layer.

The desk ties together:
- SequenceService: identifiers
- InventoryLedgerService: stock quantities
- AllocationEngine: allocation records
- TicketLifecycleService: status transitions
- RequestService: ticket creation and edits
- IntakeService: stock arrivals

Manages its own transaction boundary.  Each public operation is one atomic
unit: it commits on success and rolls back on failure (``auto_commit=True``,
the default).  With ``auto_commit=False`` the caller owns the transaction,
which lets tests compose several operations and inspect the session.

Every call binds a fresh correlation id (plus actor and ticket fields
where known) into the log context, so all records emitted by the services
underneath carry them.
"""

import time
from typing import Callable, TypeVar

from sqlalchemy.orm import Session

from asset_kernel.domain.clock import Clock, SystemClock
from asset_kernel.domain.dtos import (
    AllocationResult,
    AssetTypeInfo,
    DeskSettings,
    IntakeResult,
    StockMovement,
    TicketInfo,
)
from asset_kernel.domain.workflow import ActorRole
from asset_kernel.logging_config import desk_call, get_logger
from asset_kernel.models.request import Priority, TicketStatus
from asset_kernel.services.allocation_service import AllocationEngine
from asset_kernel.services.base import storage_guard
from asset_kernel.services.intake_service import IntakeService
from asset_kernel.services.ledger_service import InventoryLedgerService
from asset_kernel.services.lifecycle_service import TicketLifecycleService
from asset_kernel.services.request_service import RequestService
from asset_kernel.services.sequence_service import SequenceService

logger = get_logger("services.asset_desk")

T = TypeVar("T")


class AssetDesk:
    """
    Facade over the kernel services with a commit boundary per call.

    Args:
        session: SQLAlchemy session.
        clock: Clock for timestamps.  Defaults to SystemClock.
        settings: Desk settings (sequence formats, defaults), usually
            built by ``asset_config.bridges.build_desk_settings``.
        auto_commit: If True (default), commit on success and roll back
            on failure.  If False, the caller manages the transaction.
    """

    def __init__(
        self,
        session: Session,
        clock: Clock | None = None,
        settings: DeskSettings | None = None,
        auto_commit: bool = True,
    ):
        self._session = session
        self._clock = clock or SystemClock()
        self._settings = settings or DeskSettings()
        self._auto_commit = auto_commit

        self.sequences = SequenceService(session, self._settings.sequence_formats)
        self.ledger = InventoryLedgerService(session, self._clock)
        self.allocations = AllocationEngine(session, self.sequences, self.ledger, self._clock)
        self.lifecycle = TicketLifecycleService(session, self.allocations, self._clock)
        self.requests = RequestService(
            session,
            self.sequences,
            self.lifecycle,
            self.allocations,
            self._clock,
            self._settings,
        )
        self.intake = IntakeService(session, self.sequences, self.ledger, self._clock)

    @property
    def settings(self) -> DeskSettings:
        return self._settings

    # ------------------------------------------------------------------
    # Sequence Allocator
    # ------------------------------------------------------------------

    def next_value(self, sequence_name: str) -> str:
        return self._run("next_value", lambda: self.sequences.next_value(sequence_name))

    # ------------------------------------------------------------------
    # Inventory Ledger
    # ------------------------------------------------------------------

    def try_deduct(self, asset_id: str, amount: int) -> StockMovement:
        return self._run(
            "try_deduct",
            lambda: self.ledger.try_deduct(asset_id, amount),
            asset_id=asset_id,
        )

    def restock(self, asset_id: str, amount: int) -> int:
        return self._run(
            "restock",
            lambda: self.ledger.restock(asset_id, amount),
            asset_id=asset_id,
        )

    def current_quantity(self, asset_id: str) -> int:
        return self._run(
            "current_quantity",
            lambda: self.ledger.current_quantity(asset_id),
            asset_id=asset_id,
        )

    # ------------------------------------------------------------------
    # Allocation Engine
    # ------------------------------------------------------------------

    def allocate_first_free(
        self,
        asset_name: str,
        model: str | None,
        emp_id: str,
        request_id: str,
    ) -> AllocationResult:
        return self._run(
            "allocate_first_free",
            lambda: self.allocations.allocate_first_free(asset_name, model, emp_id, request_id),
            actor_id=emp_id,
            request_id=request_id,
        )

    # ------------------------------------------------------------------
    # Request Lifecycle
    # ------------------------------------------------------------------

    def transition(
        self,
        request_id: str,
        actor_role: ActorRole | str,
        target_status: TicketStatus | str,
        actor_emp_id: str,
    ) -> TicketInfo:
        return self._run(
            "transition",
            lambda: self.lifecycle.transition(request_id, actor_role, target_status, actor_emp_id),
            actor_id=actor_emp_id,
            actor_role=ActorRole(actor_role).value,
            request_id=request_id,
        )

    def create_request(
        self,
        emp_id: str,
        *,
        asset_name: str | None = None,
        asset_id: str | None = None,
        quantity: int | None = None,
        department: str | None = None,
        priority: Priority | str | None = None,
        description: str | None = None,
    ) -> TicketInfo:
        return self._run(
            "create_request",
            lambda: self.requests.create_request(
                emp_id,
                asset_name=asset_name,
                asset_id=asset_id,
                quantity=quantity,
                department=department,
                priority=priority,
                description=description,
            ),
            actor_id=emp_id,
            actor_role=ActorRole.EMPLOYEE.value,
        )

    def request_allocation(
        self,
        emp_id: str,
        asset_name: str,
        model: str | None = None,
        *,
        department: str | None = None,
        description: str | None = None,
    ) -> TicketInfo:
        """Self-service: request one unit and allocate it now if one is free."""
        return self._run(
            "request_allocation",
            lambda: self.requests.create_self_service_request(
                emp_id,
                asset_name,
                model,
                department=department,
                description=description,
            ),
            actor_id=emp_id,
            actor_role=ActorRole.EMPLOYEE.value,
        )

    def update_pending_request(
        self,
        request_id: str,
        actor_emp_id: str,
        *,
        quantity: int | None = None,
        description: str | None = None,
    ) -> TicketInfo:
        return self._run(
            "update_pending_request",
            lambda: self.requests.update_pending_request(
                request_id, actor_emp_id, quantity=quantity, description=description
            ),
            actor_id=actor_emp_id,
            actor_role=ActorRole.EMPLOYEE.value,
            request_id=request_id,
        )

    def cancel_pending_request(self, request_id: str, actor_emp_id: str) -> TicketInfo:
        return self._run(
            "cancel_pending_request",
            lambda: self.requests.cancel_pending_request(request_id, actor_emp_id),
            actor_id=actor_emp_id,
            actor_role=ActorRole.EMPLOYEE.value,
            request_id=request_id,
        )

    def set_priority(
        self,
        request_id: str,
        actor_role: ActorRole | str,
        priority: Priority | str,
    ) -> TicketInfo:
        return self._run(
            "set_priority",
            lambda: self.requests.set_priority(request_id, actor_role, priority),
            actor_role=ActorRole(actor_role).value,
            request_id=request_id,
        )

    def assign_technician(
        self,
        request_id: str,
        actor_role: ActorRole | str,
        technician_name: str | None = None,
        actor_emp_id: str = "",
    ) -> TicketInfo:
        return self._run(
            "assign_technician",
            lambda: self.requests.assign_technician(
                request_id, actor_role, technician_name, actor_emp_id
            ),
            actor_id=actor_emp_id or None,
            actor_role=ActorRole(actor_role).value,
            request_id=request_id,
        )

    # ------------------------------------------------------------------
    # Intake
    # ------------------------------------------------------------------

    def receive_stock(self, asset_name: str, quantity: int, seller_name: str, **details) -> IntakeResult:
        return self._run(
            "receive_stock",
            lambda: self.intake.receive_stock(asset_name, quantity, seller_name, **details),
        )

    def register_unit(
        self,
        asset_name: str,
        model: str,
        *,
        brand: str | None = None,
        asset_id: str | None = None,
    ) -> AssetTypeInfo:
        return self._run(
            "register_unit",
            lambda: self.intake.register_unit(asset_name, model, brand=brand, asset_id=asset_id),
            asset_id=asset_id,
        )

    # ------------------------------------------------------------------
    # Transaction boundary
    # ------------------------------------------------------------------

    def _run(
        self,
        operation: str,
        fn: Callable[[], T],
        *,
        actor_id: str | None = None,
        actor_role: str | None = None,
        request_id: str | None = None,
        asset_id: str | None = None,
    ) -> T:
        with desk_call(
            actor_id=actor_id,
            actor_role=actor_role,
            request_id=request_id,
            asset_id=asset_id,
        ):
            t0 = time.monotonic()
            try:
                with storage_guard(operation):
                    result = fn()
                    if self._auto_commit:
                        self._session.commit()
            except Exception as exc:
                if self._auto_commit:
                    self._session.rollback()
                logger.warning(
                    "desk_operation_failed",
                    extra={
                        "operation": operation,
                        "error_type": type(exc).__name__,
                        "error_code": getattr(exc, "code", None),
                    },
                )
                raise

            logger.info(
                "desk_operation_completed",
                extra={
                    "operation": operation,
                    "duration_ms": round((time.monotonic() - t0) * 1000, 2),
                },
            )
            return result
