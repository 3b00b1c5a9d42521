"""Services for the asset kernel (write side)."""

from asset_kernel.services.allocation_service import AllocationEngine
from asset_kernel.services.asset_desk import AssetDesk
from asset_kernel.services.intake_service import IntakeService
from asset_kernel.services.ledger_service import InventoryLedgerService
from asset_kernel.services.lifecycle_service import TicketLifecycleService
from asset_kernel.services.request_service import RequestService
from asset_kernel.services.sequence_service import SequenceService

__all__ = [
    "AllocationEngine",
    "AssetDesk",
    "IntakeService",
    "InventoryLedgerService",
    "RequestService",
    "SequenceService",
    "TicketLifecycleService",
]
