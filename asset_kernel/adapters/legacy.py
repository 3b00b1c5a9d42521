"""
Legacy payload adapter.

Two generations of client send requests to the desk.  The older one uses a
flat request model: numeric ``request_id``, ``dept`` instead of
``department``, camelCase keys, ticket status ``Allocated`` and allocation
statuses ``Active``/``Allocated``.  The kernel knows only the canonical
entity; every alias is resolved here, at the boundary, and nowhere else.
"""

from typing import Any, Mapping

from asset_kernel.domain.dtos import TicketInfo
from asset_kernel.domain.sequence import SequenceFormat, format_sequence
from asset_kernel.models.allocation import AllocationStatus
from asset_kernel.models.request import TicketStatus

REQUEST_ID_FORMAT = SequenceFormat(prefix="REQ-", pad_width=6)

# Legacy spelling -> canonical field name
_FIELD_ALIASES: dict[str, str] = {
    "dept": "department",
    "empId": "emp_id",
    "assetId": "asset_id",
    "assetName": "asset_name",
    "requestId": "request_id",
    "technicianName": "technician_name",
}

_CANONICAL_FIELDS = frozenset(
    {
        "request_id",
        "emp_id",
        "asset_id",
        "asset_name",
        "quantity",
        "department",
        "priority",
        "description",
        "technician_name",
    }
)

_TICKET_STATUS_ALIASES: dict[str, TicketStatus] = {
    "allocated": TicketStatus.APPROVED,
}

_ALLOCATION_STATUS_ALIASES: dict[str, AllocationStatus] = {
    "active": AllocationStatus.ASSIGNED,
    "allocated": AllocationStatus.ASSIGNED,
}


def request_id_from_legacy(value: Any, fmt: SequenceFormat = REQUEST_ID_FORMAT) -> str:
    """
    Canonical request id for a legacy value.

    >>> request_id_from_legacy(42)
    'REQ-000042'
    >>> request_id_from_legacy("REQ-000042")
    'REQ-000042'
    """
    if isinstance(value, bool):
        raise ValueError(f"invalid request id: {value!r}")
    if isinstance(value, int):
        return format_sequence(value, fmt)
    text = str(value).strip()
    if text.isdigit():
        return format_sequence(int(text), fmt)
    if not text:
        raise ValueError("request id must not be empty")
    return text


def ticket_status_from_legacy(value: str) -> TicketStatus:
    """Map a legacy or canonical status string (any case) to TicketStatus."""
    key = value.strip().lower()
    if key in _TICKET_STATUS_ALIASES:
        return _TICKET_STATUS_ALIASES[key]
    for status in TicketStatus:
        if status.value.lower() == key:
            return status
    raise ValueError(f"unknown ticket status: {value!r}")


def allocation_status_from_legacy(value: str) -> AllocationStatus:
    key = value.strip().lower()
    if key in _ALLOCATION_STATUS_ALIASES:
        return _ALLOCATION_STATUS_ALIASES[key]
    for status in AllocationStatus:
        if status.value.lower() == key:
            return status
    raise ValueError(f"unknown allocation status: {value!r}")


def request_fields_from_legacy(payload: Mapping[str, Any]) -> dict[str, Any]:
    """
    Canonical keyword arguments for request creation from a legacy payload.

    Canonical keys win over their aliases when both are present.  Unknown
    keys are dropped.  ``quantity`` given as a string is converted to int.
    """
    fields: dict[str, Any] = {}
    for key, value in payload.items():
        if key in _FIELD_ALIASES:
            canonical = _FIELD_ALIASES[key]
            if canonical not in payload:
                fields[canonical] = value
        elif key in _CANONICAL_FIELDS:
            fields[key] = value

    if "quantity" in fields and isinstance(fields["quantity"], str):
        fields["quantity"] = int(fields["quantity"].strip())
    if "request_id" in fields:
        fields["request_id"] = request_id_from_legacy(fields["request_id"])
    return fields


def ticket_to_legacy(ticket: TicketInfo) -> dict[str, Any]:
    """Render a ticket for old clients, which still read ``dept``."""
    return {
        "request_id": ticket.request_id,
        "emp_id": ticket.emp_id,
        "asset_id": ticket.asset_id,
        "asset_name": ticket.asset_name,
        "quantity": ticket.quantity,
        "status": ticket.status,
        "assigned": ticket.assigned,
        "technician_name": ticket.technician_name,
        "priority": ticket.priority,
        "department": ticket.department,
        "dept": ticket.department,
        "description": ticket.description,
        "createdAt": ticket.created_at,
        "updatedAt": ticket.updated_at,
    }
