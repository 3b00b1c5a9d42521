"""
Module: asset_kernel.models.counter
Responsibility: ORM persistence for named sequence counters.
Architecture position: Kernel > Models.  May import from db/base.py only.

Invariants enforced:
    - One row per logical sequence (``request_id``, ``asset_id``,
      ``purchase_id``, ...), created lazily on first use.
    - ``current_value`` only increases, and only through
      SequenceService.next_value() under a row lock.
    - Rows are never deleted.
"""

from sqlalchemy import BigInteger, String
from sqlalchemy.orm import Mapped, mapped_column

from asset_kernel.db.base import Base


class SequenceCounter(Base):
    """
    Sequence counter table.

    Each row represents a named sequence with its current value.
    Row-level locking ensures uniqueness under concurrency.
    """

    __tablename__ = "sequence_counters"

    # Sequence name (e.g., "request_id", "asset_id")
    name: Mapped[str] = mapped_column(
        String(50),
        nullable=False,
        unique=True,
    )

    # Last value handed out; 0 means never used
    current_value: Mapped[int] = mapped_column(
        BigInteger,
        nullable=False,
        default=0,
    )

    def __repr__(self) -> str:
        return f"<SequenceCounter {self.name}={self.current_value}>"
