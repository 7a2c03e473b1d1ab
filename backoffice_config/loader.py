"""
Configuration Loader (``backoffice_config.loader``).

Responsibility
--------------
Loads a YAML configuration set and parses it into the frozen dataclasses
of ``backoffice_config.schema``.  Services never call this directly; the
runtime entry point is ``backoffice_config.get_active_config()``.

Failure modes
-------------
* Missing YAML file  -> ``FileNotFoundError`` propagates.
* Malformed YAML  -> ``yaml.YAMLError`` propagates.
* Missing required keys  -> ``KeyError`` propagates.
* Out-of-range values  -> ``ValueError`` from the schema dataclasses.
"""

from __future__ import annotations

import hashlib
import json
from decimal import Decimal, InvalidOperation
from pathlib import Path
from typing import Any

import yaml

from backoffice_config.schema import (
    TABLE_TAX_KINDS,
    BackofficeConfig,
    BillingDefaults,
    OvertimeRules,
    WithholdingRateTable,
)


def load_yaml_file(path: Path) -> dict[str, Any]:
    """
    Load a single YAML file and return its contents as a dict.

    Raises:
        FileNotFoundError: if the file does not exist.
        yaml.YAMLError: if the file contains invalid YAML.
    """
    with open(path) as f:
        data = yaml.safe_load(f)
    return data or {}


def compute_checksum(data: dict[str, Any]) -> str:
    """Deterministic SHA-256 of the parsed YAML content."""
    canonical = json.dumps(data, sort_keys=True, default=str)
    return hashlib.sha256(canonical.encode("utf-8")).hexdigest()


def _decimal(value: Any, name: str) -> Decimal:
    # Rates are quoted strings in YAML; str() keeps unquoted floats exact too
    try:
        return Decimal(str(value))
    except InvalidOperation:
        raise ValueError(f"{name} is not a number: {value!r}") from None


def parse_withholding_rates(data: dict[str, Any] | None) -> WithholdingRateTable:
    if not data:
        return WithholdingRateTable()
    unknown = set(data) - set(TABLE_TAX_KINDS)
    if unknown:
        raise ValueError(f"Unknown withholding kinds: {sorted(unknown)}")
    return WithholdingRateTable(
        **{kind: _decimal(value, kind) for kind, value in data.items()}
    )


def parse_billing_defaults(data: dict[str, Any] | None) -> BillingDefaults:
    if not data:
        return BillingDefaults()
    return BillingDefaults(
        billing_day=int(data.get("billing_day", 1)),
        due_day=int(data.get("due_day", 5)),
        due_in_current_month=bool(data.get("due_in_current_month", True)),
    )


def parse_overtime_rules(data: dict[str, Any] | None) -> OvertimeRules:
    if not data:
        return OvertimeRules()
    return OvertimeRules(
        hours_per_daily_rate=int(data.get("hours_per_daily_rate", 12)),
        round_up_digit_threshold=int(data.get("round_up_digit_threshold", 6)),
    )


def parse_config(data: dict[str, Any]) -> BackofficeConfig:
    """
    Parse a loaded YAML mapping into a ``BackofficeConfig``.

    ``config_id`` and ``version`` are required; every section is optional
    and falls back to the schema defaults.
    """
    return BackofficeConfig(
        config_id=str(data["config_id"]),
        version=int(data["version"]),
        withholding_rates=parse_withholding_rates(data.get("withholding_rates")),
        billing_defaults=parse_billing_defaults(data.get("billing_defaults")),
        overtime=parse_overtime_rules(data.get("overtime")),
        checksum=compute_checksum(data),
    )


def load_config_file(path: Path) -> BackofficeConfig:
    """Load and parse one configuration set file."""
    return parse_config(load_yaml_file(path))
