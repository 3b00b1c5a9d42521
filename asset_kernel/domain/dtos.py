"""
DTOs -- Pure domain data transfer objects.

Responsibility:
    Defines the immutable data structures returned across the kernel
    boundary: ticket, asset-type, allocation, purchase and vendor
    snapshots, ledger movements, paged listings, and the desk settings
    bundle produced by ``asset_config.bridges``.

Architecture position:
    Kernel > Domain -- pure functional core, zero I/O.
    ``from_model()`` class methods exist as boundary converters but are only
    invoked from the service and selector layers.

Invariants enforced:
    - Services and selectors return these frozen DTOs, never ORM entities,
      so a caller can never mutate a ticket outside the lifecycle service.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from types import MappingProxyType
from typing import TYPE_CHECKING, Mapping

from asset_kernel.domain.sequence import SequenceFormat

if TYPE_CHECKING:
    from asset_kernel.models.allocation import Allocation as AllocationModel
    from asset_kernel.models.hardware import AssetType as AssetTypeModel
    from asset_kernel.models.purchase import Purchase as PurchaseModel
    from asset_kernel.models.purchase import Vendor as VendorModel
    from asset_kernel.models.request import Request as RequestModel


def _enum_value(value) -> str:
    return value.value if isinstance(value, Enum) else value


class StockStatus(str, Enum):
    """Stock band shown next to an asset type."""

    IN_STOCK = "In Stock"
    LOW_STOCK = "Low Stock"
    OUT_OF_STOCK = "Out of Stock"

    @classmethod
    def classify(cls, quantity: int, low_stock_threshold: int) -> StockStatus:
        if quantity <= 0:
            return cls.OUT_OF_STOCK
        if quantity < low_stock_threshold:
            return cls.LOW_STOCK
        return cls.IN_STOCK


@dataclass(frozen=True)
class TicketInfo:
    """Snapshot of a request/ticket."""

    request_id: str
    emp_id: str
    asset_id: str
    asset_name: str
    quantity: int
    status: str
    assigned: bool
    technician_name: str
    priority: str
    department: str
    description: str
    created_at: datetime | None = None
    updated_at: datetime | None = None

    @property
    def is_completed(self) -> bool:
        return self.status == "Completed"

    @classmethod
    def from_model(cls, model: RequestModel) -> TicketInfo:
        return cls(
            request_id=model.request_id,
            emp_id=model.emp_id,
            asset_id=model.asset_id,
            asset_name=model.asset_name,
            quantity=model.quantity,
            status=_enum_value(model.status),
            assigned=model.assigned,
            technician_name=model.technician_name,
            priority=_enum_value(model.priority),
            department=model.department,
            description=model.description,
            created_at=model.created_at,
            updated_at=model.updated_at,
        )


@dataclass(frozen=True)
class AssetTypeInfo:
    """Snapshot of a catalog row and its quantity on hand."""

    asset_id: str
    name: str
    brand: str
    model: str
    quantity_on_hand: int
    is_unit: bool = False

    @classmethod
    def from_model(cls, model: AssetTypeModel) -> AssetTypeInfo:
        return cls(
            asset_id=model.asset_id,
            name=model.name,
            brand=model.brand,
            model=model.model,
            quantity_on_hand=model.quantity_on_hand,
            is_unit=model.is_unit,
        )


@dataclass(frozen=True)
class AllocationInfo:
    """Snapshot of the binding between a unit and an employee/request."""

    allocation_id: str
    asset_id: str
    emp_id: str
    request_id: str
    status: str
    quantity: int
    deducted: bool = False
    allocated_at: datetime | None = None

    @classmethod
    def from_model(cls, model: AllocationModel) -> AllocationInfo:
        return cls(
            allocation_id=model.allocation_id,
            asset_id=model.asset_id,
            emp_id=model.emp_id,
            request_id=model.request_id,
            status=_enum_value(model.status),
            quantity=model.quantity,
            deducted=model.deducted,
            allocated_at=model.allocated_at,
        )


@dataclass(frozen=True)
class PurchaseInfo:
    """Immutable stock arrival record."""

    purchase_id: str
    asset_id: str
    asset_name: str
    quantity: int
    seller_id: str
    arrival_date: datetime

    @classmethod
    def from_model(cls, model: PurchaseModel) -> PurchaseInfo:
        return cls(
            purchase_id=model.purchase_id,
            asset_id=model.asset_id,
            asset_name=model.asset_name,
            quantity=model.quantity,
            seller_id=model.seller_id,
            arrival_date=model.arrival_date,
        )


@dataclass(frozen=True)
class VendorInfo:
    """Supplier snapshot."""

    seller_id: str
    seller_name: str
    phone: str | None
    gst_number: str | None

    @classmethod
    def from_model(cls, model: VendorModel) -> VendorInfo:
        return cls(
            seller_id=model.seller_id,
            seller_name=model.seller_name,
            phone=model.phone,
            gst_number=model.gst_number,
        )


@dataclass(frozen=True)
class StockMovement:
    """Result of one applied ledger mutation."""

    asset_id: str
    delta: int
    quantity_after: int


@dataclass(frozen=True)
class AllocationResult:
    """Outcome of a successful allocation."""

    asset_id: str
    allocation: AllocationInfo
    movement: StockMovement | None = None


@dataclass(frozen=True)
class IntakeResult:
    """Outcome of receiving a purchase into stock."""

    asset: AssetTypeInfo
    purchase: PurchaseInfo
    vendor: VendorInfo
    asset_created: bool
    vendor_created: bool


@dataclass(frozen=True)
class TicketPage:
    """One page of an admin ticket listing."""

    tickets: tuple[TicketInfo, ...]
    total: int
    page: int
    page_size: int

    @property
    def total_pages(self) -> int:
        if self.page_size <= 0:
            return 0
        return -(-self.total // self.page_size)


@dataclass(frozen=True)
class DashboardStats:
    """Ticket counters shown on the admin and employee dashboards."""

    total: int
    pending: int
    completed: int


@dataclass(frozen=True)
class ActivityEntry:
    """
    One line of a dashboard's recent activity.

    ``brand`` and ``model`` come from the catalog row the ticket points at;
    both are None when that row no longer exists.
    """

    request_id: str
    emp_id: str
    status: str
    priority: str
    asset_id: str
    asset_name: str
    brand: str | None
    model: str | None
    created_at: datetime | None

    @classmethod
    def from_models(
        cls, ticket: RequestModel, hardware: AssetTypeModel | None
    ) -> ActivityEntry:
        return cls(
            request_id=ticket.request_id,
            emp_id=ticket.emp_id,
            status=_enum_value(ticket.status),
            priority=_enum_value(ticket.priority),
            asset_id=ticket.asset_id,
            asset_name=ticket.asset_name,
            brand=hardware.brand if hardware is not None else None,
            model=hardware.model if hardware is not None else None,
            created_at=ticket.created_at,
        )


@dataclass(frozen=True)
class Availability:
    """Stock availability for a hardware type."""

    name: str
    available: int
    model: str | None = None
    asset_id: str | None = None


@dataclass(frozen=True)
class ReconciliationLine:
    """Purchases minus deductions compared with the quantity on hand."""

    asset_id: str
    asset_name: str
    purchased: int
    deducted: int
    quantity_on_hand: int

    @property
    def expected(self) -> int:
        return self.purchased - self.deducted

    @property
    def is_reconciled(self) -> bool:
        return self.expected == self.quantity_on_hand


@dataclass(frozen=True)
class DeskSettings:
    """Kernel-facing settings bundle.

    Built by ``asset_config.bridges`` from the YAML configuration; the
    kernel itself never reads configuration files.
    """

    sequence_formats: Mapping[str, SequenceFormat] = field(default_factory=dict)
    low_stock_threshold: int = 5
    default_department: str = "General"
    default_priority: str = "Medium"
    default_technician: str = "Unassigned"
    default_quantity: int = 1
    page_size: int = 5

    def __post_init__(self) -> None:
        object.__setattr__(
            self, "sequence_formats", MappingProxyType(dict(self.sequence_formats))
        )

    def format_for(self, counter_name: str) -> SequenceFormat:
        return self.sequence_formats.get(counter_name, SequenceFormat())
