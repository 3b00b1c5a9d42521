"""
Configuration Loader (``asset_config.loader``).

Responsibility
--------------
Loads a YAML configuration document and parses it into typed
``asset_config.schema`` dataclass instances.  Runtime callers go through
``asset_config.get_active_config()``; the parse functions are public for
tests and tooling.

Invariants enforced
-------------------
* Missing required keys raise ``KeyError``; malformed values raise
  ``ValueError``.  No silent defaults for required fields.
* Every parsed object is a frozen dataclass from ``schema.py``.
* ``compute_checksum`` produces a deterministic SHA-256 hash of the
  parsed document for configuration identity.

Failure modes
-------------
* Missing YAML file  -> ``FileNotFoundError`` propagates.
* Malformed YAML  -> ``yaml.YAMLError`` propagates.
"""

from __future__ import annotations

import hashlib
import json
from pathlib import Path
from typing import Any

import yaml

from asset_config.schema import (
    AssetDeskConfig,
    SequenceDefinition,
    StockPolicy,
    TicketDefaults,
)

_PRIORITIES = ("Low", "Medium", "High")


def load_yaml_file(path: Path) -> dict[str, Any]:
    """
    Load a single YAML file and return its contents as a dict.

    Raises:
        FileNotFoundError: if the file does not exist.
        yaml.YAMLError: if the file contains invalid YAML.
        ValueError: if the top level is not a mapping.
    """
    with open(path) as f:
        data = yaml.safe_load(f) or {}
    if not isinstance(data, dict):
        raise ValueError(f"{path}: top level must be a mapping, got {type(data).__name__}")
    return data


def _int(value: Any, what: str, minimum: int) -> int:
    if isinstance(value, bool) or not isinstance(value, int):
        raise ValueError(f"{what} must be an integer, got {value!r}")
    if value < minimum:
        raise ValueError(f"{what} must be >= {minimum}, got {value}")
    return value


def parse_sequence(name: str, data: dict[str, Any]) -> SequenceDefinition:
    """Parse one entry of the ``sequences`` mapping."""
    start_offset = data.get("start_offset")
    return SequenceDefinition(
        name=name,
        prefix=str(data.get("prefix", "")),
        pad_width=_int(data.get("pad_width", 5), f"sequences.{name}.pad_width", 0),
        start_offset=(
            _int(start_offset, f"sequences.{name}.start_offset", 0)
            if start_offset is not None
            else None
        ),
    )


def parse_stock_policy(data: dict[str, Any]) -> StockPolicy:
    return StockPolicy(
        low_stock_threshold=_int(
            data.get("low_stock_threshold", 5), "stock.low_stock_threshold", 1
        ),
    )


def parse_ticket_defaults(data: dict[str, Any]) -> TicketDefaults:
    priority = data.get("priority", "Medium")
    if priority not in _PRIORITIES:
        raise ValueError(f"tickets.priority must be one of {_PRIORITIES}, got {priority!r}")
    return TicketDefaults(
        department=str(data.get("department", "General")),
        priority=priority,
        technician=str(data.get("technician", "Unassigned")),
        quantity=_int(data.get("quantity", 1), "tickets.quantity", 1),
        page_size=_int(data.get("page_size", 5), "tickets.page_size", 1),
    )


def parse_config(data: dict[str, Any]) -> AssetDeskConfig:
    """
    Parse the root document.

    Preconditions:
        - ``data`` contains ``config_id`` and ``version``.

    Raises:
        KeyError: if required keys are missing.
        ValueError: if values are malformed.
    """
    sequences_raw = data.get("sequences") or {}
    if not isinstance(sequences_raw, dict):
        raise ValueError("sequences must be a mapping of name -> definition")

    return AssetDeskConfig(
        config_id=str(data["config_id"]),
        version=_int(data["version"], "version", 1),
        sequences=tuple(
            parse_sequence(name, body or {}) for name, body in sorted(sequences_raw.items())
        ),
        stock=parse_stock_policy(data.get("stock") or {}),
        tickets=parse_ticket_defaults(data.get("tickets") or {}),
        checksum=compute_checksum(data),
    )


def compute_checksum(data: dict[str, Any]) -> str:
    """
    Compute SHA-256 checksum of canonical JSON serialization.

    Identical ``data`` always produces identical checksums, whatever the
    key order in the source file.
    """
    canonical = json.dumps(data, sort_keys=True, default=str)
    return hashlib.sha256(canonical.encode()).hexdigest()
