"""
Typed Exception Hierarchy for the Asset Kernel.

===============================================================================
WHY TYPED EXCEPTIONS
===============================================================================

Every outcome the kernel refuses is terminal and reported to the caller
verbatim.  The routing layer turns these into user-facing messages, so
they must be distinguishable by TYPE and carry their context as
ATTRIBUTES (ticket id, requested vs. available quantity), never as text
to be parsed.

Example - WRONG way to handle errors:
    try:
        desk.transition(request_id, ActorRole.ADMIN, TicketStatus.APPROVED, "A1")
    except Exception as e:
        if "stock" in str(e):  # FRAGILE - message might change
            ...

Example - RIGHT way:
    try:
        desk.transition(request_id, ActorRole.ADMIN, TicketStatus.APPROVED, "A1")
    except InsufficientStockError as e:
        respond(code=e.code, requested=e.requested, available=e.available)

===============================================================================
EXCEPTION HIERARCHY
===============================================================================

    AssetKernelError (base)
    |
    +-- NotFoundError
    |   +-- TicketNotFoundError
    |   +-- AssetNotFoundError
    |   +-- CounterNotFoundError
    |
    +-- ConflictError
    |   +-- TicketCompletedError
    |   +-- TicketAlreadyProcessedError
    |   +-- IllegalTransitionError
    |   +-- TechnicianAssignedError
    |   +-- TicketOwnershipError
    |   +-- RoleNotPermittedError
    |
    +-- InsufficientStockError
    +-- NoFreeUnitError
    +-- InvalidQuantityError
    +-- StorageUnavailable

===============================================================================
ERROR CODES - QUICK REFERENCE
===============================================================================

Category        | Code                        | When Raised
----------------|-----------------------------|-----------------------------------------
Not found       | TICKET_NOT_FOUND            | request_id doesn't exist
                | ASSET_NOT_FOUND             | asset_id / hardware name doesn't exist
                | COUNTER_NOT_FOUND           | Named counter was never used
----------------|-----------------------------|-----------------------------------------
Conflict        | TICKET_COMPLETED            | Any mutation of a Completed ticket
                | TICKET_ALREADY_PROCESSED    | Ticket left Pending before we got it
                | ILLEGAL_TRANSITION          | Not in the transition table
                | TECHNICIAN_ASSIGNED         | Locked by technician assignment
                | TICKET_NOT_OWNED            | Employee touching someone else's ticket
                | ROLE_NOT_PERMITTED          | Admin-only operation by an employee
----------------|-----------------------------|-----------------------------------------
Stock           | INSUFFICIENT_STOCK          | Deduction exceeds quantity on hand
                | NO_FREE_UNIT                | Every matching unit is Assigned
                | INVALID_QUANTITY            | Quantity <= 0
----------------|-----------------------------|-----------------------------------------
Storage         | STORAGE_UNAVAILABLE         | Atomic primitive could not execute

===============================================================================
DESIGN DECISIONS
===============================================================================

1. WHY INHERIT FROM Exception (not ValueError, etc.)?
   Kernel refusals should be catchable as a group without mixing in
   programming errors.

2. WHY code CLASS ATTRIBUTE (not instance)?
   Codes are static per exception type and usable without instantiation.

3. WHY IS InsufficientStockError NOT A ConflictError?
   Callers render it differently: the ticket is fine, the shelf is empty.

===============================================================================
"""


class AssetKernelError(Exception):
    """
    Base exception for all asset kernel errors.

    All subclasses must have a `code` class attribute for
    machine-readable error identification.
    """

    code: str = "ASSET_KERNEL_ERROR"


# Not-found exceptions


class NotFoundError(AssetKernelError):
    """Base exception for a referenced record that does not exist."""

    code: str = "NOT_FOUND"


class TicketNotFoundError(NotFoundError):
    """Request/ticket with given ID was not found."""

    code: str = "TICKET_NOT_FOUND"

    def __init__(self, request_id: str):
        self.request_id = request_id
        super().__init__(f"Ticket not found: {request_id}")


class AssetNotFoundError(NotFoundError):
    """Asset type with given ID (or name) was not found."""

    code: str = "ASSET_NOT_FOUND"

    def __init__(self, asset_id: str):
        self.asset_id = asset_id
        super().__init__(f"Asset not found: {asset_id}")


class CounterNotFoundError(NotFoundError):
    """Named counter has never been incremented."""

    code: str = "COUNTER_NOT_FOUND"

    def __init__(self, counter_name: str):
        self.counter_name = counter_name
        super().__init__(f"Counter not found: {counter_name}")


# Conflict exceptions


class ConflictError(AssetKernelError):
    """
    Illegal state transition or concurrent double-processing.

    Carries the ticket id and a human-readable reason.
    """

    code: str = "CONFLICT"

    def __init__(self, request_id: str, reason: str):
        self.request_id = request_id
        self.reason = reason
        super().__init__(f"Ticket {request_id}: {reason}")


class TicketCompletedError(ConflictError):
    """Completed tickets are frozen; every mutation is refused."""

    code: str = "TICKET_COMPLETED"

    def __init__(self, request_id: str, operation: str = "modify"):
        self.operation = operation
        super().__init__(request_id, f"ticket completed, cannot {operation}")


class TicketAlreadyProcessedError(ConflictError):
    """Ticket already left Pending (typically by a concurrent transition)."""

    code: str = "TICKET_ALREADY_PROCESSED"

    def __init__(self, request_id: str, current_status: str):
        self.current_status = current_status
        super().__init__(
            request_id, f"ticket already processed (status: {current_status})"
        )


class IllegalTransitionError(ConflictError):
    """Requested status change is not in the transition table for this actor."""

    code: str = "ILLEGAL_TRANSITION"

    def __init__(
        self,
        request_id: str,
        from_status: str,
        to_status: str,
        actor_role: str,
    ):
        self.from_status = from_status
        self.to_status = to_status
        self.actor_role = actor_role
        super().__init__(
            request_id,
            f"{actor_role} cannot move ticket from {from_status} to {to_status}",
        )


class TechnicianAssignedError(ConflictError):
    """A technician is engaged; the requested change is locked."""

    code: str = "TECHNICIAN_ASSIGNED"

    def __init__(self, request_id: str, reason: str = "technician assigned, can only complete"):
        super().__init__(request_id, reason)


class TicketOwnershipError(ConflictError):
    """Employee attempted to modify a ticket they do not own."""

    code: str = "TICKET_NOT_OWNED"

    def __init__(self, request_id: str, owner_emp_id: str, actor_emp_id: str):
        self.owner_emp_id = owner_emp_id
        self.actor_emp_id = actor_emp_id
        super().__init__(request_id, "employees can only update their own tickets")


class RoleNotPermittedError(ConflictError):
    """Operation reserved for another role."""

    code: str = "ROLE_NOT_PERMITTED"

    def __init__(self, request_id: str, actor_role: str, operation: str):
        self.actor_role = actor_role
        self.operation = operation
        super().__init__(request_id, f"{actor_role} cannot {operation}")


# Stock exceptions


class InsufficientStockError(AssetKernelError):
    """Deduction requested exceeds the quantity on hand.

    ``guard`` names the workflow guard that refused a ticket transition;
    it is None for a direct ledger call.
    """

    code: str = "INSUFFICIENT_STOCK"

    def __init__(
        self,
        asset_id: str,
        requested: int,
        available: int,
        request_id: str | None = None,
        guard: str | None = None,
    ):
        self.asset_id = asset_id
        self.requested = requested
        self.available = available
        self.request_id = request_id
        self.guard = guard
        super().__init__(
            f"Insufficient stock for {asset_id}: "
            f"requested {requested}, available {available}"
        )


class NoFreeUnitError(AssetKernelError):
    """
    Nothing matching the requested type is free: every per-unit row is
    Assigned and every quantity row is out of stock.
    """

    code: str = "NO_FREE_UNIT"

    def __init__(self, asset_name: str, model: str | None = None):
        self.asset_name = asset_name
        self.model = model
        label = f"{asset_name} {model}" if model else asset_name
        super().__init__(f"No free unit available for {label}")


class InvalidQuantityError(AssetKernelError):
    """Quantities must be positive integers."""

    code: str = "INVALID_QUANTITY"

    def __init__(self, quantity: int):
        self.quantity = quantity
        super().__init__(f"Quantity must be greater than 0, got {quantity}")


# Storage exceptions


class StorageUnavailable(AssetKernelError):
    """The underlying atomic storage primitive could not execute."""

    code: str = "STORAGE_UNAVAILABLE"

    def __init__(self, operation: str, detail: str = ""):
        self.operation = operation
        self.detail = detail
        msg = f"Storage unavailable during {operation}"
        if detail:
            msg = f"{msg}: {detail}"
        super().__init__(msg)
