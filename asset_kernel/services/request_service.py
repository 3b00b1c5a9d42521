"""
RequestService -- ticket creation and the non-status ticket edits.

Responsibility:
    - ``create_request``: resolve the requested asset type, mint a
      request id and record a Pending ticket with the desk defaults.
    - ``create_self_service_request``: the quantity-1 self-service flow.
      Runs AllocationEngine.allocate_first_free and records the ticket
      Approved (unit allocated) or Rejected (nothing free).  Taking from a
      quantity row deducts one unit there and then; the ticket is recorded
      Approved directly, so the lifecycle never deducts it a second time.
    - ``update_pending_request`` / ``cancel_pending_request``: employee
      edits, allowed only on their own Pending tickets.
    - ``set_priority`` / ``assign_technician``: administrator edits.
      Assignment is a one-way lock and drives the ticket to Approved
      through TicketLifecycleService, so the one-time deduction fires
      when the ticket was still Pending.

Architecture position:
    Kernel > Services -- imperative shell.

Invariants enforced:
    - Completed tickets are never written.
    - ``assigned`` goes False -> True once and never back.
    - Priority is frozen once a technician is assigned.
"""

from sqlalchemy import select
from sqlalchemy.orm import Session

from asset_kernel.domain.clock import Clock, SystemClock
from asset_kernel.domain.dtos import DeskSettings, TicketInfo
from asset_kernel.domain.workflow import ActorRole
from asset_kernel.exceptions import (
    AssetNotFoundError,
    InvalidQuantityError,
    NoFreeUnitError,
    RoleNotPermittedError,
    TechnicianAssignedError,
    TicketAlreadyProcessedError,
    TicketCompletedError,
    TicketOwnershipError,
)
from asset_kernel.logging_config import get_logger
from asset_kernel.models.hardware import AssetType
from asset_kernel.models.request import Priority, Request, TicketStatus
from asset_kernel.services.allocation_service import AllocationEngine
from asset_kernel.services.base import BaseService, storage_guard
from asset_kernel.services.lifecycle_service import TicketLifecycleService
from asset_kernel.services.sequence_service import SequenceService

logger = get_logger("services.request")


class RequestService(BaseService[Request]):
    """Creates tickets and applies employee/administrator edits."""

    def __init__(
        self,
        session: Session,
        sequence_service: SequenceService,
        lifecycle: TicketLifecycleService,
        allocation_engine: AllocationEngine,
        clock: Clock | None = None,
        settings: DeskSettings | None = None,
    ):
        super().__init__(session)
        self._sequences = sequence_service
        self._lifecycle = lifecycle
        self._allocations = allocation_engine
        self._clock = clock or SystemClock()
        self._settings = settings or DeskSettings()

    # ------------------------------------------------------------------
    # Creation
    # ------------------------------------------------------------------

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
        """
        Record a new Pending ticket.

        The asset type is resolved by ``asset_id`` when given, otherwise
        by ``asset_name`` (first row by asset id).

        Raises:
            AssetNotFoundError: No asset type matches.
            InvalidQuantityError: quantity < 1.
        """
        quantity = self._settings.default_quantity if quantity is None else quantity
        if isinstance(quantity, bool) or not isinstance(quantity, int) or quantity < 1:
            raise InvalidQuantityError(quantity)

        asset = self._resolve_asset(asset_id=asset_id, asset_name=asset_name)
        ticket = self._new_ticket(
            emp_id,
            asset,
            quantity=quantity,
            status=TicketStatus.PENDING,
            department=department,
            priority=priority,
            description=description,
        )
        logger.info(
            "request_created",
            extra={
                "request_id": ticket.request_id,
                "emp_id": emp_id,
                "asset_id": asset.asset_id,
                "quantity": quantity,
            },
        )
        return ticket

    def create_self_service_request(
        self,
        emp_id: str,
        asset_name: str,
        model: str | None = None,
        *,
        department: str | None = None,
        description: str | None = None,
    ) -> TicketInfo:
        """
        Request one unit and allocate it immediately if one is free.

        Returns the recorded ticket: Approved with an Assigned allocation
        when a per-unit row was free or a quantity row had stock, Rejected
        otherwise.  Running out is an outcome, not an error.

        Raises:
            AssetNotFoundError: No unit of this type exists at all.
        """
        stmt = select(AssetType).where(AssetType.name == asset_name)
        if model is not None:
            stmt = stmt.where(AssetType.model == model)
        with storage_guard("request.find_candidates"):
            first_match = self.session.execute(
                stmt.order_by(AssetType.asset_id).limit(1)
            ).scalar_one_or_none()
        if first_match is None:
            raise AssetNotFoundError(f"{asset_name}/{model}" if model else asset_name)

        request_id = self._sequences.next_value(SequenceService.REQUEST_ID)
        try:
            result = self._allocations.allocate_first_free(
                asset_name, model, emp_id, request_id
            )
        except NoFreeUnitError:
            ticket = self._new_ticket(
                emp_id,
                first_match,
                quantity=1,
                status=TicketStatus.REJECTED,
                department=department,
                description=description,
                request_id=request_id,
            )
            logger.warning(
                "request_rejected_no_stock",
                extra={"request_id": request_id, "asset_name": asset_name, "model": model},
            )
            return ticket

        unit = self.session.execute(
            select(AssetType).where(AssetType.asset_id == result.asset_id)
        ).scalar_one()
        ticket = self._new_ticket(
            emp_id,
            unit,
            quantity=1,
            status=TicketStatus.APPROVED,
            department=department,
            description=description,
            request_id=request_id,
        )
        logger.info(
            "request_allocated",
            extra={
                "request_id": request_id,
                "asset_id": result.asset_id,
                "allocation_id": result.allocation.allocation_id,
                "deducted": result.movement is not None,
            },
        )
        return ticket

    # ------------------------------------------------------------------
    # Employee edits
    # ------------------------------------------------------------------

    def update_pending_request(
        self,
        request_id: str,
        actor_emp_id: str,
        *,
        quantity: int | None = None,
        description: str | None = None,
    ) -> TicketInfo:
        """Change quantity and/or description of the caller's Pending ticket."""
        if quantity is not None and (
            isinstance(quantity, bool) or not isinstance(quantity, int) or quantity < 1
        ):
            raise InvalidQuantityError(quantity)

        ticket = self._lock_own_pending(request_id, actor_emp_id, "update")
        if quantity is not None:
            ticket.quantity = quantity
        if description is not None:
            ticket.description = description
        ticket.updated_at = self._clock.now()
        with storage_guard("request.update"):
            self.session.flush()

        logger.info(
            "request_updated",
            extra={"request_id": request_id, "quantity": ticket.quantity},
        )
        return TicketInfo.from_model(ticket)

    def cancel_pending_request(self, request_id: str, actor_emp_id: str) -> TicketInfo:
        """Delete the caller's Pending ticket.  Returns its last snapshot."""
        ticket = self._lock_own_pending(request_id, actor_emp_id, "cancel")
        snapshot = TicketInfo.from_model(ticket)
        self.session.delete(ticket)
        with storage_guard("request.cancel"):
            self.session.flush()

        logger.info("request_cancelled", extra={"request_id": request_id})
        return snapshot

    def _lock_own_pending(self, request_id: str, actor_emp_id: str, operation: str) -> Request:
        ticket = self._lifecycle.lock_ticket(request_id)
        if ticket.emp_id != actor_emp_id:
            raise TicketOwnershipError(request_id, ticket.emp_id, actor_emp_id)
        if ticket.is_completed:
            raise TicketCompletedError(request_id, operation)
        if not ticket.is_pending:
            raise TicketAlreadyProcessedError(request_id, TicketStatus(ticket.status).value)
        return ticket

    # ------------------------------------------------------------------
    # Administrator edits
    # ------------------------------------------------------------------

    def set_priority(
        self,
        request_id: str,
        actor_role: ActorRole | str,
        priority: Priority | str,
    ) -> TicketInfo:
        """
        Change a ticket's priority.

        Raises:
            RoleNotPermittedError: Caller is not an administrator.
            TicketCompletedError: Ticket is Completed.
            TechnicianAssignedError: Priority is locked by the assignment.
            ValueError: Unknown priority value.
        """
        self._require_admin(request_id, actor_role, "change priority")
        new_priority = Priority(priority)

        ticket = self._lifecycle.lock_ticket(request_id)
        if ticket.is_completed:
            raise TicketCompletedError(request_id, "change priority")
        if ticket.assigned:
            raise TechnicianAssignedError(request_id, "technician assigned, priority locked")

        ticket.priority = new_priority
        ticket.updated_at = self._clock.now()
        with storage_guard("request.set_priority"):
            self.session.flush()

        logger.info(
            "priority_changed",
            extra={"request_id": request_id, "priority": new_priority.value},
        )
        return TicketInfo.from_model(ticket)

    def assign_technician(
        self,
        request_id: str,
        actor_role: ActorRole | str,
        technician_name: str | None = None,
        actor_emp_id: str = "",
    ) -> TicketInfo:
        """
        Engage a technician on a ticket.

        Sets ``assigned`` and the technician name, and approves the ticket
        through the lifecycle when it is not Approved yet.  Runs as one
        savepoint: if the approval is refused (e.g. insufficient stock)
        the assignment is not recorded either.

        Raises:
            RoleNotPermittedError, TicketCompletedError,
            TechnicianAssignedError (already assigned), plus anything
            TicketLifecycleService.transition raises.
        """
        self._require_admin(request_id, actor_role, "assign technician")

        with self.session.begin_nested():
            ticket = self._lifecycle.lock_ticket(request_id)
            if ticket.is_completed:
                raise TicketCompletedError(request_id, "assign technician")
            if ticket.assigned:
                raise TechnicianAssignedError(request_id, "technician already assigned")

            if TicketStatus(ticket.status) is not TicketStatus.APPROVED:
                self._lifecycle.transition(
                    request_id, ActorRole.ADMIN, TicketStatus.APPROVED, actor_emp_id
                )
                ticket = self._lifecycle.lock_ticket(request_id)

            ticket.assigned = True
            ticket.technician_name = technician_name or self._settings.default_technician
            ticket.updated_at = self._clock.now()
            with storage_guard("request.assign_technician"):
                self.session.flush()

        logger.info(
            "technician_assigned",
            extra={"request_id": request_id, "technician_name": ticket.technician_name},
        )
        return TicketInfo.from_model(ticket)

    @staticmethod
    def _require_admin(request_id: str, actor_role: ActorRole | str, operation: str) -> None:
        role = ActorRole(actor_role)
        if role is not ActorRole.ADMIN:
            raise RoleNotPermittedError(request_id, role.value, operation)

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def _resolve_asset(self, *, asset_id: str | None, asset_name: str | None) -> AssetType:
        if asset_id is None and asset_name is None:
            raise ValueError("asset_id or asset_name is required")

        stmt = select(AssetType)
        if asset_id is not None:
            stmt = stmt.where(AssetType.asset_id == asset_id)
        else:
            stmt = stmt.where(AssetType.name == asset_name)

        with storage_guard("request.resolve_asset"):
            asset = self.session.execute(
                stmt.order_by(AssetType.asset_id).limit(1)
            ).scalar_one_or_none()
        if asset is None:
            raise AssetNotFoundError(asset_id or asset_name)
        return asset

    def _new_ticket(
        self,
        emp_id: str,
        asset: AssetType,
        *,
        quantity: int,
        status: TicketStatus,
        department: str | None = None,
        priority: Priority | str | None = None,
        description: str | None = None,
        request_id: str | None = None,
    ) -> TicketInfo:
        now = self._clock.now()
        ticket = Request(
            request_id=request_id or self._sequences.next_value(SequenceService.REQUEST_ID),
            emp_id=emp_id,
            asset_id=asset.asset_id,
            asset_name=asset.name,
            quantity=quantity,
            status=status,
            assigned=False,
            technician_name=self._settings.default_technician,
            priority=Priority(priority or self._settings.default_priority),
            department=department or self._settings.default_department,
            description=description or "",
            created_at=now,
            updated_at=now,
        )
        self.session.add(ticket)
        with storage_guard("request.create"):
            self.session.flush()
        return TicketInfo.from_model(ticket)
