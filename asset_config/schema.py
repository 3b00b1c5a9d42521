"""
AssetDeskConfig schema.

Defines the human-authored configuration for the asset desk: how each
named counter renders its identifiers, the stock-status threshold, and
the defaults applied to new tickets.  YAML documents are parsed into
these types by the loader and handed to the kernel through
``asset_config.bridges``.
"""

from __future__ import annotations

from dataclasses import dataclass, field

# ---------------------------------------------------------------------------
# Sequences
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class SequenceDefinition:
    """Rendering of one named counter."""

    name: str
    prefix: str = ""
    pad_width: int = 5
    start_offset: int | None = None


# ---------------------------------------------------------------------------
# Stock and ticket policy
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class StockPolicy:
    """Stock band thresholds: qty <= 0 out, qty < low_stock_threshold low."""

    low_stock_threshold: int = 5


@dataclass(frozen=True)
class TicketDefaults:
    """Values applied to new tickets when the request leaves them out."""

    department: str = "General"
    priority: str = "Medium"
    technician: str = "Unassigned"
    quantity: int = 1
    page_size: int = 5


# ---------------------------------------------------------------------------
# Root
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class AssetDeskConfig:
    """Root configuration artifact."""

    config_id: str
    version: int
    sequences: tuple[SequenceDefinition, ...] = ()
    stock: StockPolicy = field(default_factory=StockPolicy)
    tickets: TicketDefaults = field(default_factory=TicketDefaults)
    checksum: str = ""

    def sequence(self, name: str) -> SequenceDefinition | None:
        for seq in self.sequences:
            if seq.name == name:
                return seq
        return None
