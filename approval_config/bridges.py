"""
Config -> Kernel Bridges.

Functions that convert configuration into kernel-compatible inputs.  They
live in approval_config (the producer) because the kernel must never
import approval_config.

Usage:
    from approval_config.bridges import build_ledger_rules

    config = get_active_config()
    rules = build_ledger_rules(config)
"""

from __future__ import annotations

from approval_config.schema import WorkflowConfiguration
from approval_kernel.domain.documents import LedgerPostingRule
from approval_kernel.domain.workflow import Family


def build_ledger_rules(config: WorkflowConfiguration) -> dict[Family, LedgerPostingRule]:
    """Build the ledger service's per-family posting rules."""
    return {
        Family(posting.family): LedgerPostingRule(
            direction=posting.direction,
            category=posting.category,
            description_template=posting.description_template,
        )
        for posting in config.ledger_postings
    }
