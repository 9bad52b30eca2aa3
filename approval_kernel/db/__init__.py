"""Database layer - engine, base classes, types."""

from approval_kernel.db.base import UUID, Base, UUIDString
from approval_kernel.db.engine import (
    create_tables,
    get_engine,
    get_session,
    get_session_factory,
    session_scope,
)
from approval_kernel.db.types import ExternalId, Label, Money, ShortCode, UTCDateTime

__all__ = [
    "get_engine",
    "get_session",
    "get_session_factory",
    "session_scope",
    "create_tables",
    "Base",
    "UUIDString",
    "UUID",
    "UTCDateTime",
    "Money",
    "ShortCode",
    "ExternalId",
    "Label",
]
