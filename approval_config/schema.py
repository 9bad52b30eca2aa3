"""
Configuration schema (``approval_config.schema``).

Frozen dataclasses produced by ``approval_config.loader``.  Nothing here
reads files or the environment.
"""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class DatabaseConfig:
    url: str
    echo: bool = False
    pool_size: int = 20
    max_overflow: int = 10


@dataclass(frozen=True)
class LoggingConfig:
    level: str = "INFO"


@dataclass(frozen=True)
class QueueConfig:
    """Bounds of the recent-history view."""

    history_limit_default: int = 50
    history_limit_max: int = 200


@dataclass(frozen=True)
class LedgerPostingDef:
    """How one family is recorded when it finalizes.

    ``direction`` is ``income``, ``expense``, ``none`` or ``document`` (use
    the document's own ``direction`` field).
    """

    family: str
    direction: str
    category: str
    description_template: str


@dataclass(frozen=True)
class WorkflowConfiguration:
    """The complete, validated workflow configuration."""

    config_id: str
    version: int
    database: DatabaseConfig
    logging: LoggingConfig
    queue: QueueConfig
    ledger_postings: tuple[LedgerPostingDef, ...]
    checksum: str = ""

    def posting_for(self, family: str) -> LedgerPostingDef | None:
        for posting in self.ledger_postings:
            if posting.family == family:
                return posting
        return None
