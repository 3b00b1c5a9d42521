"""
Config -> Kernel Bridges.

Converts an ``AssetDeskConfig`` into the kernel's ``DeskSettings``.  This
lives in asset_config (the producer) because the kernel must never import
asset_config.

Usage:
    from asset_config import get_active_config
    from asset_config.bridges import build_desk_settings

    settings = build_desk_settings(get_active_config())
    desk = AssetDesk(session, settings=settings)
"""

from __future__ import annotations

from asset_config.schema import AssetDeskConfig, SequenceDefinition
from asset_kernel.domain.dtos import DeskSettings
from asset_kernel.domain.sequence import SequenceFormat


def build_sequence_format(definition: SequenceDefinition) -> SequenceFormat:
    return SequenceFormat(
        prefix=definition.prefix,
        pad_width=definition.pad_width,
        start_offset=definition.start_offset,
    )


def build_desk_settings(config: AssetDeskConfig) -> DeskSettings:
    """Build the kernel settings bundle from a parsed configuration."""
    return DeskSettings(
        sequence_formats={s.name: build_sequence_format(s) for s in config.sequences},
        low_stock_threshold=config.stock.low_stock_threshold,
        default_department=config.tickets.department,
        default_priority=config.tickets.priority,
        default_technician=config.tickets.technician,
        default_quantity=config.tickets.quantity,
        page_size=config.tickets.page_size,
    )
