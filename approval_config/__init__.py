"""
approval_config -- single public entrypoint for workflow configuration.

Responsibility:
    Provides the ONLY way to obtain configuration at runtime through
    ``get_active_config()``.  No other component reads configuration
    files or environment variables directly.

Architecture position:
    Configuration.  Sits above ``approval_kernel`` and below
    ``approval_services``.  The kernel MUST NEVER import from
    ``approval_config``; ``bridges`` translates configuration into kernel
    inputs.

Sources, in order:
    1. ``path`` argument, else the ``APPROVAL_WORKFLOW_CONFIG`` environment
       variable, else the packaged ``defaults/workflow.yaml``.
    2. ``DATABASE_URL`` replaces ``database.url`` when set.

Failure modes:
    - ``FileNotFoundError`` -- configured path does not exist.
    - ``ConfigurationError`` -- missing or invalid values.

Audit relevance:
    Every successful load emits a ``workflow_config_loaded`` log entry with
    the config id, version, source and checksum.
"""

from __future__ import annotations

import copy
import os
from pathlib import Path

from approval_config.loader import load_yaml_file, parse_configuration
from approval_config.schema import WorkflowConfiguration
from approval_kernel.logging_config import get_logger

_logger = get_logger("config")

CONFIG_PATH_ENV = "APPROVAL_WORKFLOW_CONFIG"
DATABASE_URL_ENV = "DATABASE_URL"

_DEFAULT_CONFIG_PATH = Path(__file__).parent / "defaults" / "workflow.yaml"


def get_active_config(path: Path | str | None = None) -> WorkflowConfiguration:
    """The ONLY public configuration entrypoint.

    Does not cache; callers hold the returned configuration for as long as
    they need it.

    Args:
        path: Explicit configuration file.  Overrides the environment.

    Returns:
        A frozen, validated ``WorkflowConfiguration``.
    """
    source = Path(path or os.environ.get(CONFIG_PATH_ENV) or _DEFAULT_CONFIG_PATH)
    data = copy.deepcopy(load_yaml_file(source))

    database_url = os.environ.get(DATABASE_URL_ENV)
    if database_url:
        database = dict(data.get("database") or {})
        database["url"] = database_url
        data["database"] = database

    config = parse_configuration(data, source=str(source))

    _logger.info(
        "workflow_config_loaded",
        extra={
            "config_id": config.config_id,
            "config_version": config.version,
            "source": str(source),
            "checksum": config.checksum,
            "database_url_from_env": bool(database_url),
        },
    )
    return config


__all__ = [
    "CONFIG_PATH_ENV",
    "DATABASE_URL_ENV",
    "WorkflowConfiguration",
    "get_active_config",
]
