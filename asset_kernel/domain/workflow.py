"""
Ticket workflow (``asset_kernel.domain.workflow``).

Responsibility
--------------
Pure value objects for the request/ticket state machine and the single
table of legal transitions.  ``TicketLifecycleService`` is the only
component that evaluates this table against persisted tickets.

Architecture position
---------------------
**Kernel domain layer** -- pure value objects.  ZERO I/O.  No imports
from ``db/``, ``models/``, ``services/``, or outer layers.  States are
plain strings matching ``TicketStatus`` values.

Invariants enforced
-------------------
* Transitions reference only states in ``Workflow.states``.
* Terminal states (Rejected, Completed) have no outgoing transitions.
* Only transitions that leave ``Pending`` for Approved/Completed carry
  ``deducts_stock=True``; Approved -> Completed never deducts again.
* Every deducting transition is guarded by ``STOCK_AVAILABLE``.  The
  lifecycle evaluates that guard by running the conditional deduction and
  names it on the InsufficientStockError it raises.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum


class ActorRole(str, Enum):
    """Role supplied by the external authentication collaborator."""

    EMPLOYEE = "Employee"
    ADMIN = "Admin"


PENDING = "Pending"
APPROVED = "Approved"
REJECTED = "Rejected"
COMPLETED = "Completed"


@dataclass(frozen=True)
class Guard:
    """A condition that must hold before a transition fires.

    Descriptive only; the lifecycle service evaluates it.
    """
    name: str
    description: str


@dataclass(frozen=True)
class Transition:
    """A legal status change for a set of roles."""
    from_state: str
    to_state: str
    action: str
    roles: frozenset[ActorRole]
    guard: Guard | None = None
    deducts_stock: bool = False


@dataclass(frozen=True)
class Workflow:
    """A state machine definition."""
    name: str
    description: str
    initial_state: str
    states: tuple[str, ...]
    terminal_states: tuple[str, ...]
    transitions: tuple[Transition, ...]

    def __post_init__(self) -> None:
        if self.initial_state not in self.states:
            raise ValueError(f"initial_state {self.initial_state!r} not in states")
        for t in self.transitions:
            if t.from_state not in self.states or t.to_state not in self.states:
                raise ValueError(f"transition {t.action!r} references unknown state")
            if t.from_state in self.terminal_states:
                raise ValueError(f"transition {t.action!r} leaves terminal state")
            if t.deducts_stock and t.guard is not STOCK_AVAILABLE:
                raise ValueError(f"transition {t.action!r} deducts stock without the stock guard")

    def is_terminal(self, state: str) -> bool:
        return state in self.terminal_states

    def find(self, from_state: str, to_state: str, role: ActorRole) -> Transition | None:
        """Return the transition for (from, to, role), or None."""
        for t in self.transitions:
            if t.from_state == from_state and t.to_state == to_state and role in t.roles:
                return t
        return None

    def reachable_only_from(self, to_state: str, from_state: str) -> bool:
        """True when every transition into ``to_state`` starts at ``from_state``."""
        sources = {t.from_state for t in self.transitions if t.to_state == to_state}
        return sources == {from_state}


# -----------------------------------------------------------------------------
# Guards
# -----------------------------------------------------------------------------

TECHNICIAN_NOT_ASSIGNED = Guard(
    name="technician_not_assigned",
    description="No technician is engaged on the ticket",
)

STOCK_AVAILABLE = Guard(
    name="stock_available",
    description="Quantity on hand covers the ticket quantity",
)


# -----------------------------------------------------------------------------
# Ticket Workflow
# -----------------------------------------------------------------------------

_ADMIN = frozenset({ActorRole.ADMIN})
_ANYONE = frozenset({ActorRole.ADMIN, ActorRole.EMPLOYEE})

TICKET_WORKFLOW = Workflow(
    name="hardware_ticket",
    description="Hardware request lifecycle",
    initial_state=PENDING,
    states=(PENDING, APPROVED, REJECTED, COMPLETED),
    terminal_states=(REJECTED, COMPLETED),
    transitions=(
        Transition(
            from_state=PENDING,
            to_state=APPROVED,
            action="approve",
            roles=_ADMIN,
            guard=STOCK_AVAILABLE,
            deducts_stock=True,
        ),
        Transition(
            from_state=PENDING,
            to_state=REJECTED,
            action="reject",
            roles=_ADMIN,
        ),
        Transition(
            from_state=PENDING,
            to_state=COMPLETED,
            action="complete",
            roles=_ANYONE,
            guard=STOCK_AVAILABLE,
            deducts_stock=True,
        ),
        Transition(
            from_state=APPROVED,
            to_state=COMPLETED,
            action="complete",
            roles=_ANYONE,
        ),
        Transition(
            from_state=PENDING,
            to_state=PENDING,
            action="keep_pending",
            roles=frozenset({ActorRole.EMPLOYEE}),
            guard=TECHNICIAN_NOT_ASSIGNED,
        ),
    ),
)
