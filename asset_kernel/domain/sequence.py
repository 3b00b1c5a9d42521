"""
Sequence formatting -- pure rendering of counter values into identifiers.

Responsibility:
    Turns the integer returned by the locked counter row into the business
    identifier stored on requests, asset types and purchases
    (``REQ-000001``, ``AST-10001``, ``PUR-000001``).

Architecture position:
    Kernel > Domain -- pure functional core, zero I/O.  Called only by
    SequenceService after the increment has been applied.

Invariants enforced:
    - Distinct counter values always render to distinct identifiers:
      zero-padding never truncates, it only widens.
"""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class SequenceFormat:
    """How one named counter renders its values.

    ``start_offset`` shifts the numbering so the first value rendered is
    ``start_offset`` itself (numeric = start_offset + value - 1).
    """

    prefix: str = ""
    pad_width: int = 5
    start_offset: int | None = None

    def __post_init__(self) -> None:
        if self.pad_width < 0:
            raise ValueError(f"pad_width must be >= 0, got {self.pad_width}")
        if self.start_offset is not None and self.start_offset < 0:
            raise ValueError(f"start_offset must be >= 0, got {self.start_offset}")


DEFAULT_FORMAT = SequenceFormat()


def numeric_value(sequence_value: int, fmt: SequenceFormat) -> int:
    """Apply the start offset to a raw counter value."""
    if fmt.start_offset is not None:
        return fmt.start_offset + sequence_value - 1
    return sequence_value


def format_sequence(sequence_value: int, fmt: SequenceFormat = DEFAULT_FORMAT) -> str:
    """Render a counter value as ``prefix + zero-padded number``.

    >>> format_sequence(1, SequenceFormat(prefix="REQ-", pad_width=6))
    'REQ-000001'
    >>> format_sequence(1, SequenceFormat(prefix="AST-", pad_width=5, start_offset=10001))
    'AST-10001'
    """
    if sequence_value < 1:
        raise ValueError(f"sequence_value must be >= 1, got {sequence_value}")
    return f"{fmt.prefix}{str(numeric_value(sequence_value, fmt)).zfill(fmt.pad_width)}"
