"""Boundary adapters between external payload shapes and the kernel's canonical entities."""

from asset_kernel.adapters.legacy import (
    allocation_status_from_legacy,
    request_fields_from_legacy,
    request_id_from_legacy,
    ticket_status_from_legacy,
    ticket_to_legacy,
)

__all__ = [
    "allocation_status_from_legacy",
    "request_fields_from_legacy",
    "request_id_from_legacy",
    "ticket_status_from_legacy",
    "ticket_to_legacy",
]
