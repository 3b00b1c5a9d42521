"""
BaseService -- abstract base for all kernel services.

Responsibility:
    Provides the common constructor and session-handling contract for
    every service in the kernel layer, plus ``storage_guard``, the single
    place where driver-level failures become ``StorageUnavailable``.

Architecture position:
    Kernel > Services -- imperative shell infrastructure.
    Every service in ``asset_kernel/services/`` that performs write
    operations extends this class.

Invariants enforced:
    - Services flush within the caller's transaction and never commit or
      roll back the outer transaction themselves.  The caller (AssetDesk,
      ``session_scope()`` or a test harness) owns commit/rollback.
    - Atomic units inside a service run under ``session.begin_nested()``
      so a failure leaves no partial trace in the caller's transaction.

Failure modes:
    - OperationalError / DBAPIError from the driver surface as
      ``StorageUnavailable`` (chained).  IntegrityError is left alone:
      services that expect it (counter creation race) handle it locally.
"""

from abc import ABC
from contextlib import contextmanager
from typing import Generic, Iterator, TypeVar

from sqlalchemy.exc import DBAPIError, IntegrityError
from sqlalchemy.orm import Session

from asset_kernel.db.base import Base
from asset_kernel.exceptions import StorageUnavailable

ModelType = TypeVar("ModelType", bound=Base)


@contextmanager
def storage_guard(operation: str) -> Iterator[None]:
    """Translate driver failures raised inside the block into StorageUnavailable."""
    try:
        yield
    except IntegrityError:
        raise
    except DBAPIError as exc:
        detail = str(exc.orig) if exc.orig is not None else str(exc)
        raise StorageUnavailable(operation, detail) from exc


class BaseService(ABC, Generic[ModelType]):
    """
    Abstract base class for all kernel services.

    Contract:
        Accepts a SQLAlchemy ``Session`` from the caller and uses
        ``session.flush()`` to persist changes within the active
        transaction.

    Non-goals:
        - Does NOT manage the outer transaction lifecycle.
        - Does NOT provide list/search queries -- those belong in
          ``asset_kernel/selectors/``.
    """

    def __init__(self, session: Session):
        self.session = session
