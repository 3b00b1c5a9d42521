"""SQLAlchemy ORM models for the asset kernel."""

from asset_kernel.models.allocation import Allocation, AllocationStatus
from asset_kernel.models.counter import SequenceCounter
from asset_kernel.models.hardware import AssetType
from asset_kernel.models.purchase import Purchase, Vendor
from asset_kernel.models.request import Priority, Request, TicketStatus

__all__ = [
    "Allocation",
    "AllocationStatus",
    "AssetType",
    "Priority",
    "Purchase",
    "Request",
    "SequenceCounter",
    "TicketStatus",
    "Vendor",
]
