"""
Module: asset_kernel.logging_config
Responsibility: JSON-lines logging for the kernel, plus the per-call log
    context that AssetDesk opens around every public operation.
Architecture position: Kernel root.  Imported by db/ and services/; imports
    nothing from the kernel.

Every record emitted under ``asset_kernel.`` is one JSON object:

    {"ts": ..., "level": "INFO", "logger": "asset_kernel.services.ledger",
     "message": "stock_deducted", "asset_id": "AST-10001", "amount": 1,
     "quantity_after": 2, "correlation_id": "...", "actor_role": "Admin"}

Fields passed through ``extra=`` are copied as they are.  Context fields
(``CONTEXT_FIELDS``) are layered on top and win over an ``extra`` key with
the same name: the desk call that is running is the authority on who is
acting and on which ticket.
"""

import json
import logging
import sys
from contextlib import contextmanager
from contextvars import ContextVar
from datetime import UTC, datetime
from enum import Enum
from types import MappingProxyType
from typing import Any, Iterator, Mapping
from uuid import uuid4

ROOT_LOGGER = "asset_kernel"

CONTEXT_FIELDS = ("correlation_id", "actor_id", "actor_role", "request_id", "asset_id")

_NO_CONTEXT: Mapping[str, str] = MappingProxyType({})

_desk_context: ContextVar[Mapping[str, str]] = ContextVar(
    "asset_desk_log_context", default=_NO_CONTEXT
)


def get_logger(name: str) -> logging.Logger:
    """Logger ``asset_kernel.<name>``."""
    return logging.getLogger(f"{ROOT_LOGGER}.{name}")


# ---------------------------------------------------------------------------
# Per-call context
# ---------------------------------------------------------------------------


def current_context() -> dict[str, str]:
    """Snapshot of the context fields bound in this thread/task."""
    return dict(_desk_context.get())


@contextmanager
def bind_context(**fields: str | None) -> Iterator[Mapping[str, str]]:
    """
    Layer ``fields`` over the current context for the duration of the block.

    A None value keeps whatever the enclosing block bound.  The previous
    context is restored on exit, also when the block raises.

    Raises:
        ValueError: a field name outside ``CONTEXT_FIELDS``.
    """
    unknown = sorted(set(fields) - set(CONTEXT_FIELDS))
    if unknown:
        raise ValueError(f"unknown log context fields: {unknown}")

    merged = dict(_desk_context.get())
    merged.update((k, v) for k, v in fields.items() if v is not None)
    token = _desk_context.set(MappingProxyType(merged))
    try:
        yield _desk_context.get()
    finally:
        _desk_context.reset(token)


@contextmanager
def desk_call(**fields: str | None) -> Iterator[str]:
    """Open the context of one desk operation; yields its new correlation id."""
    correlation_id = str(uuid4())
    with bind_context(correlation_id=correlation_id, **fields):
        yield correlation_id


def clear_context() -> None:
    _desk_context.set(_NO_CONTEXT)


# ---------------------------------------------------------------------------
# Formatter
# ---------------------------------------------------------------------------

# Attributes every LogRecord carries; anything else on a record came from extra=.
_RECORD_ATTRIBUTES = frozenset(vars(logging.makeLogRecord({}))) | {
    "message",
    "asctime",
    "taskName",
}


def _to_json(value: Any) -> Any:
    if isinstance(value, Enum):
        return value.value
    if isinstance(value, datetime):
        return value.isoformat()
    return str(value)


class JsonLineFormatter(logging.Formatter):
    """One JSON object per record."""

    def format(self, record: logging.LogRecord) -> str:
        line: dict[str, Any] = {
            "ts": datetime.fromtimestamp(record.created, tz=UTC).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        line.update(
            (key, value)
            for key, value in vars(record).items()
            if key not in _RECORD_ATTRIBUTES
        )
        line.update(_desk_context.get())

        if record.exc_info and record.exc_info[1] is not None:
            line["error"] = self._describe(record)

        return json.dumps(line, default=_to_json)

    def _describe(self, record: logging.LogRecord) -> dict[str, Any]:
        exc = record.exc_info[1]
        error: dict[str, Any] = {"type": type(exc).__name__, "detail": str(exc)}
        code = getattr(exc, "code", None)
        if code is not None:
            error["code"] = code
            # Kernel errors keep their context as public attributes.
            error["context"] = {
                k: v for k, v in vars(exc).items() if not k.startswith("_")
            }
        error["traceback"] = self.formatException(record.exc_info)
        return error


# ---------------------------------------------------------------------------
# Setup
# ---------------------------------------------------------------------------

_installed_handler: logging.Handler | None = None


def configure_logging(
    *,
    level: int = logging.INFO,
    stream: Any = None,
    handler: logging.Handler | None = None,
) -> logging.Logger:
    """
    Attach one JSON handler to the ``asset_kernel`` logger.

    Calling it again while that handler is attached changes nothing.
    Records do not propagate to the root logger, so an application's own
    logging setup never prints kernel records twice.
    """
    global _installed_handler

    root = logging.getLogger(ROOT_LOGGER)
    if _installed_handler is not None and _installed_handler in root.handlers:
        return root

    _installed_handler = handler or logging.StreamHandler(stream or sys.stderr)
    _installed_handler.setFormatter(JsonLineFormatter())
    root.addHandler(_installed_handler)
    root.setLevel(level)
    root.propagate = False
    return root


def reset_logging() -> None:
    """Detach the installed handler.  Tests use it between setups."""
    global _installed_handler

    root = logging.getLogger(ROOT_LOGGER)
    if _installed_handler is not None:
        root.removeHandler(_installed_handler)
        _installed_handler = None
    root.setLevel(logging.WARNING)
