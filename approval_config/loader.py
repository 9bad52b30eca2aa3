"""
Configuration Loader (``approval_config.loader``).

Responsibility
--------------
Loads the workflow YAML file and parses it into the frozen
``approval_config.schema`` dataclasses.  Runtime callers go through
``approval_config.get_active_config()``; this module is the tooling
underneath it.

Invariants enforced
-------------------
* Every family has exactly one ledger posting rule.
* Posting directions and description templates are checked at load time,
  not at the first finalization.
* ``0 < history_limit_default <= history_limit_max``.
* ``compute_checksum`` produces a deterministic SHA-256 hash of the
  canonical JSON form for configuration identity.

Failure modes
-------------
* Missing YAML file  -> ``FileNotFoundError`` propagates.
* Malformed YAML  -> ``yaml.YAMLError`` propagates.
* Missing or invalid values  -> ``ConfigurationError``.
"""

from __future__ import annotations

import hashlib
import json
from pathlib import Path
from typing import Any

import yaml

from approval_config.schema import (
    DatabaseConfig,
    LedgerPostingDef,
    LoggingConfig,
    QueueConfig,
    WorkflowConfiguration,
)
from approval_kernel.domain.workflow import Family
from approval_kernel.exceptions import ConfigurationError
from approval_kernel.services.ledger_service import DESCRIPTION_FIELDS, LEDGER_DIRECTIONS

_LOG_LEVELS = frozenset({"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"})


def load_yaml_file(path: Path) -> dict[str, Any]:
    """
    Load a single YAML file and return its contents as a dict.

    Raises:
        FileNotFoundError: if the file does not exist.
        yaml.YAMLError: if the file contains invalid YAML.
    """
    with open(path) as f:
        return yaml.safe_load(f) or {}


def parse_database(data: dict[str, Any]) -> DatabaseConfig:
    """Parse the ``database`` section."""
    return DatabaseConfig(
        url=str(data["url"]),
        echo=bool(data.get("echo", False)),
        pool_size=int(data.get("pool_size", 20)),
        max_overflow=int(data.get("max_overflow", 10)),
    )


def parse_logging(data: dict[str, Any]) -> LoggingConfig:
    level = str(data.get("level", "INFO")).upper()
    if level not in _LOG_LEVELS:
        raise ValueError(f"unknown log level {level!r}")
    return LoggingConfig(level=level)


def parse_queue(data: dict[str, Any]) -> QueueConfig:
    """Parse the ``queue`` section and check its bounds."""
    queue = QueueConfig(
        history_limit_default=int(data.get("history_limit_default", 50)),
        history_limit_max=int(data.get("history_limit_max", 200)),
    )
    if not 0 < queue.history_limit_default <= queue.history_limit_max:
        raise ValueError(
            "history_limit_default must be positive and not above history_limit_max"
        )
    return queue


def parse_ledger_posting(family: str, data: dict[str, Any]) -> LedgerPostingDef:
    """
    Parse one ``ledger_postings`` entry.

    Raises:
        ValueError: unknown family, unknown direction, or a template using
            a placeholder that does not exist.
        KeyError: missing required key.
    """
    Family(family)
    posting = LedgerPostingDef(
        family=family,
        direction=str(data["direction"]),
        category=str(data["category"]),
        description_template=str(data["description_template"]),
    )
    if posting.direction not in LEDGER_DIRECTIONS:
        raise ValueError(f"unknown ledger direction {posting.direction!r} for {family}")
    posting.description_template.format_map({f: "" for f in DESCRIPTION_FIELDS})
    return posting


def parse_configuration(data: dict[str, Any], source: str = "<memory>") -> WorkflowConfiguration:
    """
    Parse a whole configuration document.

    Raises:
        ConfigurationError: on any missing or invalid value.
    """
    try:
        postings_data = data.get("ledger_postings") or {}
        postings = tuple(
            parse_ledger_posting(family, entry)
            for family, entry in sorted(postings_data.items())
        )
        missing = {f.value for f in Family} - {p.family for p in postings}
        if missing:
            raise ValueError(f"ledger_postings missing families: {sorted(missing)}")

        return WorkflowConfiguration(
            config_id=str(data["config_id"]),
            version=int(data.get("version", 1)),
            database=parse_database(data["database"]),
            logging=parse_logging(data.get("logging") or {}),
            queue=parse_queue(data.get("queue") or {}),
            ledger_postings=postings,
            checksum=compute_checksum(data),
        )
    except KeyError as exc:
        raise ConfigurationError(source, f"missing required key {exc}") from exc
    except (TypeError, ValueError, AttributeError) as exc:
        raise ConfigurationError(source, str(exc)) from exc


def compute_checksum(data: dict[str, Any]) -> str:
    """
    Compute SHA-256 checksum of canonical JSON serialization.

    Identical ``data`` always produces identical checksums.
    """
    canonical = json.dumps(data, sort_keys=True, default=str)
    return hashlib.sha256(canonical.encode()).hexdigest()
