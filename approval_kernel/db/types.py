"""
Module: approval_kernel.db.types
Responsibility: Annotated type aliases and column types shared by every model.
Architecture position: Kernel > DB.  May be imported by models/, services/ and
    selectors/.  MUST NOT import from any of those layers.

Invariants enforced:
    - Money is Numeric(38, 9) everywhere; no floats.
    - UTCDateTime always hands back timezone-aware UTC datetimes, including
      on backends (SQLite) that drop the offset on storage.
"""

from datetime import timezone
from decimal import Decimal
from typing import Annotated

from sqlalchemy import DateTime, Numeric, String
from sqlalchemy.types import TypeDecorator


class UTCDateTime(TypeDecorator):
    """Timezone-aware DateTime normalized to UTC on the way in and out."""

    impl = DateTime(timezone=True)
    cache_ok = True

    def process_bind_param(self, value, dialect):
        if value is None:
            return None
        if value.tzinfo is None:
            raise ValueError(f"Naive datetime not allowed: {value!r}")
        return value.astimezone(timezone.utc)

    def process_result_value(self, value, dialect):
        if value is None:
            return None
        if value.tzinfo is None:
            return value.replace(tzinfo=timezone.utc)
        return value.astimezone(timezone.utc)


# Monetary amount with high precision
Money = Annotated[Decimal, Numeric(38, 9)]

# Enum values and short identifiers (family, state, action, tier)
ShortCode = Annotated[str, String(50)]

# Opaque identifiers handed in by collaborators (actor ids, branch ids)
ExternalId = Annotated[str, String(100)]

# Labels shown in queues
Label = Annotated[str, String(255)]

def normalize_money(value: Decimal | None) -> Decimal | None:
    """Strip the trailing zeros Numeric(38, 9) adds on load."""
    if value is None:
        return None
    normalized = value.normalize()
    # normalize() turns 50000 into 5E+4; keep a plain exponent
    if normalized == normalized.to_integral_value():
        return normalized.quantize(Decimal(1))
    return normalized

