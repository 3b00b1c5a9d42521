"""
Pure domain layer.

This module contains value objects and domain logic with NO dependencies on:
- ORM (SQLAlchemy)
- Database
- I/O

All domain objects are immutable and deterministic.
"""

from asset_kernel.domain.clock import Clock, DeterministicClock, SystemClock
from asset_kernel.domain.dtos import (
    ActivityEntry,
    AllocationInfo,
    AllocationResult,
    AssetTypeInfo,
    Availability,
    DashboardStats,
    DeskSettings,
    IntakeResult,
    PurchaseInfo,
    ReconciliationLine,
    StockMovement,
    StockStatus,
    TicketInfo,
    TicketPage,
    VendorInfo,
)
from asset_kernel.domain.sequence import SequenceFormat, format_sequence
from asset_kernel.domain.workflow import TICKET_WORKFLOW, ActorRole, Transition, Workflow

__all__ = [
    "ActivityEntry",
    "ActorRole",
    "AllocationInfo",
    "AllocationResult",
    "AssetTypeInfo",
    "Availability",
    "Clock",
    "DashboardStats",
    "DeskSettings",
    "DeterministicClock",
    "IntakeResult",
    "PurchaseInfo",
    "ReconciliationLine",
    "SequenceFormat",
    "StockMovement",
    "StockStatus",
    "SystemClock",
    "TICKET_WORKFLOW",
    "TicketInfo",
    "TicketPage",
    "Transition",
    "VendorInfo",
    "Workflow",
    "format_sequence",
]
