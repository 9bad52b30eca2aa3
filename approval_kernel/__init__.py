"""
Approval Kernel - multi-tier document validation workflow.

A data-driven approval state machine shared by every document family
(expense reports, invoices, transactions, payroll runs, employee
actions) with:
- Declared per-family transition lattices
- Tier and scope checked transitions
- Optimistic compare-and-set state writes
- Exactly-once ledger effects on finalization
- Aggregated, per-scope approval queues
"""

__version__ = "0.1.0"
