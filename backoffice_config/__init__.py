"""
backoffice_config -- single public entrypoint for back-office configuration.

Responsibility:
    Provides the ONLY way to obtain configuration at runtime through
    ``get_active_config()``.  Services receive the returned
    ``BackofficeConfig`` by injection or call this function when none is
    supplied.  YAML loading is internal tooling.

Architecture position:
    Configuration -- sits above ``backoffice_kernel`` and below
    ``backoffice_modules`` / ``backoffice_services``.  The kernel MUST NEVER
    import from ``backoffice_config``.

Failure modes:
    - ``FileNotFoundError`` -- no configuration set with the requested name.
    - ``ValueError`` -- out-of-range rates, days or overtime parameters.

Audit relevance:
    Every successful ``get_active_config()`` call emits a
    ``BACKOFFICE_CONFIG_TRACE`` log entry with the config id, version and
    checksum, tying generated invoices to the rate table that produced them.
"""

from __future__ import annotations

import logging
from pathlib import Path

from backoffice_config.loader import load_config_file
from backoffice_config.schema import (
    BackofficeConfig,
    BillingDefaults,
    OvertimeRules,
    WithholdingRateTable,
)

_logger = logging.getLogger("backoffice_kernel.config")

_DEFAULT_CONFIG_DIR = Path(__file__).parent / "sets"


def get_active_config(
    config_name: str = "default",
    config_dir: Path | None = None,
) -> BackofficeConfig:
    """The ONLY public configuration entrypoint.

    Args:
        config_name: Name of the YAML set (file stem) to load.
        config_dir: Override path to the configuration sets directory.
            Defaults to backoffice_config/sets/.

    Raises:
        FileNotFoundError: If the configuration set does not exist.
        ValueError: If configuration validation fails.
    """
    sets_dir = config_dir or _DEFAULT_CONFIG_DIR
    path = sets_dir / f"{config_name}.yaml"
    if not path.exists():
        raise FileNotFoundError(f"Configuration set not found: {path}")

    config = load_config_file(path)

    _logger.info(
        "BACKOFFICE_CONFIG_TRACE",
        extra={
            "trace_type": "BACKOFFICE_CONFIG_TRACE",
            "config_set_id": config.config_id,
            "config_version": config.version,
            "config_checksum": config.checksum,
        },
    )
    return config


__all__ = [
    "get_active_config",
    "BackofficeConfig",
    "BillingDefaults",
    "OvertimeRules",
    "WithholdingRateTable",
]
