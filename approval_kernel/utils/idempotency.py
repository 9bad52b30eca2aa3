"""
Ledger key generation utilities.

The ledger key identifies the one ledger effect a document may ever
produce.  It is stored on the ledger row under a unique constraint, so a
second finalization of the same document cannot write a second row.
"""

from uuid import UUID


def generate_ledger_key(family: str, document_id: UUID | str) -> str:
    """
    Generate the ledger key for a document.

    Format: family:document_id

    Example:
        >>> generate_ledger_key("invoice", uuid)
        "invoice:550e8400-e29b-41d4-a716-446655440000"
    """
    return f"{family}:{document_id}"


def parse_ledger_key(key: str) -> tuple[str, str]:
    """
    Parse a ledger key into ``(family, document_id)``.

    Raises:
        ValueError: If key format is invalid.
    """
    parts = key.split(":", 1)
    if len(parts) != 2 or not parts[0] or not parts[1]:
        raise ValueError(f"Invalid ledger key format: {key}")
    return parts[0], parts[1]
