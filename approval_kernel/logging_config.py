"""
Structured JSON logging for the approval workflow.

Each record renders as one JSON object built from four parts:

* the envelope: ``ts``, ``level``, ``logger``, ``message``;
* the event payload passed as ``extra=`` (``from_state``, ``to_state``,
  ``expected_version``, ...), plus a derived ``transition`` label
  (``"branch_pending->central_pending"``) whenever both states are given;
* the fields of the workflow call in progress (see ``LogContext``), which
  win over an event field of the same name;
* for failures, an ``error`` object carrying the exception type, message,
  the workflow ``code`` and the exception's structured attributes
  (``detail``), followed by the ``traceback``.

Workflow call fields
--------------------
The facade binds ``correlation_id``, ``actor_id``, ``actor_tier``,
``document_id`` and ``family`` for the duration of one command or query.
The fields live in a single context variable holding an immutable mapping,
so concurrent calls on other threads never see each other's values.
"""

__all__ = [
    "LOGGER_NAMESPACE",
    "LogContext",
    "StructuredFormatter",
    "configure_logging",
    "get_logger",
    "reset_logging",
]

import json
import logging
import sys
import threading
from collections.abc import Iterator, Mapping
from contextlib import contextmanager
from contextvars import ContextVar
from datetime import datetime, timezone
from decimal import Decimal
from enum import Enum
from types import MappingProxyType
from typing import Any
from uuid import UUID

from approval_kernel.exceptions import ApprovalWorkflowError

LOGGER_NAMESPACE = "approval_kernel"

_EMPTY: Mapping[str, str] = MappingProxyType({})


class LogContext:
    """Fields of the workflow call in progress."""

    FIELDS: tuple[str, ...] = (
        "correlation_id",
        "actor_id",
        "actor_tier",
        "document_id",
        "family",
    )

    _current: ContextVar[Mapping[str, str]] = ContextVar(
        "approval_log_context", default=_EMPTY,
    )

    @classmethod
    def _with(cls, values: dict[str, Any]) -> Mapping[str, str]:
        unknown = sorted(set(values) - set(cls.FIELDS))
        if unknown:
            raise TypeError(f"Unknown log context field(s): {', '.join(unknown)}")
        merged = dict(cls._current.get())
        for name, value in values.items():
            if value is not None:
                merged[name] = value.value if isinstance(value, Enum) else str(value)
        return MappingProxyType(merged)

    @classmethod
    def set(cls, **values: Any) -> None:
        """Set fields for the rest of the current context. ``None`` is ignored."""
        cls._current.set(cls._with(values))

    @classmethod
    def get_all(cls) -> dict[str, str]:
        return dict(cls._current.get())

    @classmethod
    def clear(cls) -> None:
        cls._current.set(_EMPTY)

    @classmethod
    @contextmanager
    def bind(cls, **values: Any) -> Iterator[None]:
        """Set fields for the ``with`` block and restore the previous ones after."""
        token = cls._current.set(cls._with(values))
        try:
            yield
        finally:
            cls._current.reset(token)


# Attributes every LogRecord carries; anything else came in through ``extra``.
_RECORD_ATTRIBUTES: frozenset[str] = frozenset(
    vars(logging.LogRecord("", 0, "", 0, "", (), None))
) | {"message", "asctime", "taskName"}


def _json_default(value: Any) -> Any:
    if isinstance(value, Enum):
        return value.value
    if isinstance(value, datetime):
        return value.isoformat()
    if isinstance(value, (UUID, Decimal)):
        return str(value)
    if isinstance(value, (set, frozenset)):
        return sorted(value, key=str)
    return str(value)


def _error_fields(exc: BaseException) -> dict[str, Any]:
    error: dict[str, Any] = {"type": type(exc).__name__, "message": str(exc)}
    if isinstance(exc, ApprovalWorkflowError):
        error["code"] = exc.code
        detail = {k: v for k, v in vars(exc).items() if not k.startswith("_")}
        if detail:
            error["detail"] = detail
    return error


class StructuredFormatter(logging.Formatter):
    """Renders a record as one JSON line."""

    def format(self, record: logging.LogRecord) -> str:
        payload: dict[str, Any] = {
            "ts": datetime.fromtimestamp(record.created, tz=timezone.utc).isoformat(
                timespec="milliseconds",
            ),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }

        event = {
            key: value
            for key, value in vars(record).items()
            if key not in _RECORD_ATTRIBUTES and key not in payload
        }
        payload.update(event)
        if "from_state" in event and "to_state" in event:
            payload["transition"] = (
                f"{_json_default(event['from_state'])}->{_json_default(event['to_state'])}"
            )
        payload.update(LogContext.get_all())

        if record.exc_info and record.exc_info[1] is not None:
            payload["error"] = _error_fields(record.exc_info[1])
            payload["traceback"] = self.formatException(record.exc_info)

        return json.dumps(payload, default=_json_default)


def get_logger(name: str) -> logging.Logger:
    """Logger for ``name`` under the ``approval_kernel`` namespace."""
    return logging.getLogger(f"{LOGGER_NAMESPACE}.{name}")


_lock = threading.Lock()


def _structured_handlers(root: logging.Logger) -> list[logging.Handler]:
    return [h for h in root.handlers if isinstance(h.formatter, StructuredFormatter)]


def configure_logging(
    *,
    level: int | str = logging.INFO,
    stream: Any = None,
    handler: logging.Handler | None = None,
) -> None:
    """Install the JSON handler on the namespace logger.

    Only the first call has an effect; later calls leave the installed
    handler and level alone.
    """
    root = logging.getLogger(LOGGER_NAMESPACE)
    with _lock:
        if _structured_handlers(root):
            return
        installed = handler if handler is not None else logging.StreamHandler(stream or sys.stderr)
        installed.setFormatter(StructuredFormatter())
        root.addHandler(installed)
        root.setLevel(level)
        root.propagate = False


def reset_logging() -> None:
    """Remove the installed handlers. Test helper."""
    root = logging.getLogger(LOGGER_NAMESPACE)
    with _lock:
        for installed in _structured_handlers(root):
            root.removeHandler(installed)
        root.setLevel(logging.WARNING)
