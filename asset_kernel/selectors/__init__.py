"""Selectors for the asset kernel (read side)."""

from asset_kernel.selectors.inventory_selector import InventorySelector
from asset_kernel.selectors.ticket_selector import TicketSelector

__all__ = [
    "InventorySelector",
    "TicketSelector",
]
