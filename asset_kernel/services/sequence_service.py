"""
SequenceService -- the Sequence Allocator.

Responsibility:
    Mints the business identifiers of the system (``REQ-000001``,
    ``AST-10001``, ``PUR-000001``, ...) from named counters.  Each counter
    is one row in ``sequence_counters``; every call locks that row
    (``SELECT ... FOR UPDATE``), increments it and renders the new value
    through ``domain.sequence.format_sequence``.

Architecture position:
    Kernel > Services -- imperative shell infrastructure.
    Called by RequestService (request ids), IntakeService (asset, purchase
    and vendor ids) and AllocationEngine (allocation ids).

Invariants enforced:
    - Uniqueness: two callers never observe the same post-increment value
      for the same counter.  The aggregate-max-plus-one pattern is never
      used; the locked counter row is the sole source of truth.
    - Transactional: an increment is only visible after the caller's
      transaction commits.  Rollback returns the value, so committed
      values for one counter form a contiguous range.
    - No placeholder ids: if the increment cannot run, the call raises
      StorageUnavailable and issues nothing.

Failure modes:
    - IntegrityError: concurrent counter creation race (handled via
      savepoint rollback and re-lock).
    - StorageUnavailable: the database could not execute the increment.
"""

from typing import Mapping

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from asset_kernel.domain.sequence import DEFAULT_FORMAT, SequenceFormat, format_sequence
from asset_kernel.exceptions import CounterNotFoundError
from asset_kernel.logging_config import get_logger
from asset_kernel.models.counter import SequenceCounter
from asset_kernel.services.base import BaseService, storage_guard

logger = get_logger("services.sequence")


class SequenceService(BaseService[SequenceCounter]):
    """
    Service for minting formatted, unique identifiers.

    Contract:
        ``next_value(name)`` returns the formatted identifier for the next
        value of the named counter; ``next_raw(name)`` returns the bare
        integer.  Counters are created on first use.

    Non-goals:
        - Does NOT call ``session.commit()`` -- caller controls boundaries.

    Usage:
        with session_scope() as session:
            request_id = SequenceService(session, formats).next_value("request_id")
    """

    # Well-known sequence names
    REQUEST_ID = "request_id"
    ASSET_ID = "asset_id"
    PURCHASE_ID = "purchase_id"
    ALLOCATION_ID = "allocation_id"
    VENDOR_ID = "vendor_id"

    WELL_KNOWN = (REQUEST_ID, ASSET_ID, PURCHASE_ID, ALLOCATION_ID, VENDOR_ID)

    def __init__(
        self,
        session: Session,
        formats: Mapping[str, SequenceFormat] | None = None,
    ):
        super().__init__(session)
        self._formats = dict(formats or {})

    def format_for(self, sequence_name: str) -> SequenceFormat:
        return self._formats.get(sequence_name, DEFAULT_FORMAT)

    def next_value(self, sequence_name: str, fmt: SequenceFormat | None = None) -> str:
        """
        Mint the next identifier for a named sequence.

        Args:
            sequence_name: Name of the counter (e.g. "request_id").
            fmt: Rendering override; defaults to the format registered for
                the counter, or bare digits padded to 5.

        Returns:
            ``prefix + zero-padded(numeric value)``.

        Raises:
            StorageUnavailable: The counter row could not be incremented.
        """
        value = self.next_raw(sequence_name)
        return format_sequence(value, fmt or self.format_for(sequence_name))

    def next_raw(self, sequence_name: str) -> int:
        """
        Increment a named counter and return its new value.

        Preconditions:
            - ``sequence_name`` is a non-empty string.

        Postconditions:
            - Returns an integer > 0 strictly greater than any value
              previously committed for this counter.
            - The counter row stays locked until the transaction completes.
        """
        if not sequence_name:
            raise ValueError("sequence_name must be a non-empty string")

        with storage_guard("sequence.next_value"):
            counter = self._lock_counter(sequence_name)

            if counter is None:
                # First use.  Another writer may create the same row
                # concurrently; the savepoint keeps the caller's work intact.
                savepoint = self.session.begin_nested()
                try:
                    counter = SequenceCounter(name=sequence_name, current_value=1)
                    self.session.add(counter)
                    self.session.flush()
                    savepoint.commit()
                    logger.debug(
                        "sequence_allocated",
                        extra={"sequence_name": sequence_name, "value": 1},
                    )
                    return 1
                except IntegrityError:
                    logger.debug(
                        "sequence_counter_race_retry",
                        extra={"sequence_name": sequence_name},
                    )
                    savepoint.rollback()
                    counter = self._lock_counter(sequence_name)
                    if counter is None:
                        raise

            counter.current_value += 1
            self.session.flush()

        logger.debug(
            "sequence_allocated",
            extra={"sequence_name": sequence_name, "value": counter.current_value},
        )
        return counter.current_value

    def _lock_counter(self, sequence_name: str) -> SequenceCounter | None:
        return self.session.execute(
            select(SequenceCounter)
            .where(SequenceCounter.name == sequence_name)
            .with_for_update()
            .execution_options(populate_existing=True)
        ).scalar_one_or_none()

    def current_value(self, sequence_name: str) -> int:
        """
        Get the current value of a sequence without incrementing.

        Raises:
            CounterNotFoundError: The counter has never been used.
        """
        with storage_guard("sequence.current_value"):
            value = self.session.execute(
                select(SequenceCounter.current_value)
                .where(SequenceCounter.name == sequence_name)
            ).scalar_one_or_none()

        if value is None:
            raise CounterNotFoundError(sequence_name)
        return value

    def reset(self, sequence_name: str, value: int = 0) -> None:
        """
        Reset a sequence to a specific value.

        WARNING: only for tests and data migrations.  Resetting below a
        value already handed out produces duplicate identifiers.
        """
        counter = self._lock_counter(sequence_name)

        if counter is None:
            counter = SequenceCounter(name=sequence_name, current_value=value)
            self.session.add(counter)
        else:
            counter.current_value = value

        self.session.flush()
        logger.info(
            "sequence_reset",
            extra={"sequence_name": sequence_name, "value": value},
        )

    def initialize_sequences(self) -> None:
        """Create every well-known counter at 0 if it does not exist yet."""
        for name in self.WELL_KNOWN:
            existing = self.session.execute(
                select(SequenceCounter.id).where(SequenceCounter.name == name)
            ).scalar_one_or_none()

            if existing is None:
                self.session.add(SequenceCounter(name=name, current_value=0))

        self.session.flush()
