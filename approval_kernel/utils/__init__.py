"""Kernel utilities."""

from approval_kernel.utils.idempotency import generate_ledger_key, parse_ledger_key

__all__ = [
    "generate_ledger_key",
    "parse_ledger_key",
]
