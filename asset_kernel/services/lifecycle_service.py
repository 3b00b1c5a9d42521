"""
TicketLifecycleService -- the request/ticket state machine.

Responsibility:
    Applies ``TICKET_WORKFLOW`` to persisted tickets.  ``transition`` is the
    single "apply transition" operation: it takes the ticket row lock,
    validates the requested status change for the actor, performs the
    one-time stock deduction when the ticket first leaves Pending for
    Approved or Completed, and writes the new status -- all inside one
    savepoint so the status change and the deduction commit together or
    not at all.

Architecture position:
    Kernel > Services -- imperative shell.
    Evaluates the pure workflow table in ``domain/workflow.py``; delegates
    the deduction to AllocationEngine.allocate().

Invariants enforced:
    - Completed tickets are immutable: every transition on a Completed
      ticket is refused with TicketCompletedError, whatever the target.
    - Exactly-once deduction: only Pending -> Approved and
      Pending -> Completed deduct.  Approved -> Completed never does.
    - Per-ticket serialization: the ticket row is locked FOR UPDATE and
      re-read with populate_existing, so of two concurrent transitions
      only the first observes Pending; the second observes the committed
      result and is refused with TicketAlreadyProcessedError.
    - Employees may only touch their own tickets and, once a technician
      is assigned, may only complete them.

Failure modes:
    - TicketNotFoundError, ConflictError subclasses, InsufficientStockError.
      None are retried; all leave the ticket unchanged.
"""

from sqlalchemy import select
from sqlalchemy.orm import Session

from asset_kernel.domain.clock import Clock, SystemClock
from asset_kernel.domain.dtos import StockMovement, TicketInfo
from asset_kernel.domain.workflow import (
    PENDING,
    TECHNICIAN_NOT_ASSIGNED,
    TICKET_WORKFLOW,
    ActorRole,
    Transition,
    Workflow,
)
from asset_kernel.exceptions import (
    AssetKernelError,
    IllegalTransitionError,
    InsufficientStockError,
    TechnicianAssignedError,
    TicketAlreadyProcessedError,
    TicketCompletedError,
    TicketNotFoundError,
    TicketOwnershipError,
)
from asset_kernel.logging_config import get_logger
from asset_kernel.models.request import Request, TicketStatus
from asset_kernel.services.allocation_service import AllocationEngine
from asset_kernel.services.base import BaseService, storage_guard

logger = get_logger("services.lifecycle")


class TicketLifecycleService(BaseService[Request]):
    """
    Ticket state machine with coupled stock side effects.

    Contract:
        ``transition(request_id, actor_role, target_status, actor_emp_id)``
        returns the updated TicketInfo or raises.  Flushes only.
    """

    def __init__(
        self,
        session: Session,
        allocation_engine: AllocationEngine,
        clock: Clock | None = None,
        workflow: Workflow = TICKET_WORKFLOW,
    ):
        super().__init__(session)
        self._allocations = allocation_engine
        self._clock = clock or SystemClock()
        self._workflow = workflow

    def lock_ticket(self, request_id: str) -> Request:
        """
        Lock the ticket row and refresh it from the database.

        Raises:
            TicketNotFoundError: No ticket with this id.
        """
        with storage_guard("lifecycle.lock_ticket"):
            ticket = self.session.execute(
                select(Request)
                .where(Request.request_id == request_id)
                .with_for_update()
                .execution_options(populate_existing=True)
            ).scalar_one_or_none()

        if ticket is None:
            raise TicketNotFoundError(request_id)
        return ticket

    def transition(
        self,
        request_id: str,
        actor_role: ActorRole | str,
        target_status: TicketStatus | str,
        actor_emp_id: str,
    ) -> TicketInfo:
        """
        Move a ticket to ``target_status`` on behalf of an actor.

        Preconditions:
            - ``actor_role`` comes from the authentication collaborator.

        Postconditions:
            - On success the ticket has the target status and, when the
              ticket left Pending for Approved/Completed, exactly one
              deduction and one Assigned allocation exist for it.
            - On failure nothing changed.

        Raises:
            TicketNotFoundError: Unknown request id.
            TicketCompletedError: Ticket already Completed.
            TicketOwnershipError: Employee acting on another's ticket.
            TechnicianAssignedError: Technician engaged; only completion allowed.
            TicketAlreadyProcessedError: Ticket already left Pending.
            IllegalTransitionError: Not in the transition table for this role.
            InsufficientStockError: Deduction refused by the ledger.
        """
        role = ActorRole(actor_role)
        try:
            with self.session.begin_nested():
                info = self._apply(request_id, role, target_status, actor_emp_id)
        except AssetKernelError as exc:
            logger.warning(
                "ticket_transition_refused",
                extra={
                    "request_id": request_id,
                    "actor_role": role.value,
                    "target_status": str(getattr(target_status, "value", target_status)),
                    "error_code": exc.code,
                    "guard": getattr(exc, "guard", None),
                },
            )
            raise
        return info

    def _deduct(self, ticket: Request, transition: Transition) -> StockMovement | None:
        """Evaluate the stock guard: the conditional deduction either applies or refuses."""
        try:
            result = self._allocations.allocate(
                ticket.asset_id, ticket.emp_id, ticket.request_id, ticket.quantity
            )
        except InsufficientStockError as exc:
            raise InsufficientStockError(
                exc.asset_id,
                exc.requested,
                exc.available,
                request_id=ticket.request_id,
                guard=transition.guard.name,
            ) from exc
        return result.movement

    def _apply(
        self,
        request_id: str,
        role: ActorRole,
        target_status: TicketStatus | str,
        actor_emp_id: str,
    ) -> TicketInfo:
        ticket = self.lock_ticket(request_id)
        current = TicketStatus(ticket.status).value

        try:
            target = TicketStatus(target_status).value
        except ValueError:
            raise IllegalTransitionError(
                request_id, current, str(target_status), role.value
            ) from None

        if current == TicketStatus.COMPLETED.value:
            raise TicketCompletedError(request_id, "modify")

        if role is ActorRole.EMPLOYEE:
            if ticket.emp_id != actor_emp_id:
                raise TicketOwnershipError(request_id, ticket.emp_id, actor_emp_id)
            if ticket.assigned and target != TicketStatus.COMPLETED.value:
                raise TechnicianAssignedError(request_id)

        transition = self._workflow.find(current, target, role)
        if transition is None:
            if current != PENDING and self._workflow.reachable_only_from(target, PENDING):
                raise TicketAlreadyProcessedError(request_id, current)
            raise IllegalTransitionError(request_id, current, target, role.value)

        if transition.guard is TECHNICIAN_NOT_ASSIGNED and ticket.assigned:
            raise TechnicianAssignedError(request_id)

        if transition.from_state == transition.to_state:
            return TicketInfo.from_model(ticket)

        movement = self._deduct(ticket, transition) if transition.deducts_stock else None

        ticket.status = TicketStatus(target)
        ticket.updated_at = self._clock.now()
        with storage_guard("lifecycle.write_status"):
            self.session.flush()

        logger.info(
            "ticket_transitioned",
            extra={
                "request_id": request_id,
                "from_status": current,
                "to_status": target,
                "action": transition.action,
                "actor_role": role.value,
                "deducted": -movement.delta if movement else 0,
            },
        )
        return TicketInfo.from_model(ticket)
