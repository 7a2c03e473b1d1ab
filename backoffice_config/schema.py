"""
Configuration Schema (``backoffice_config.schema``).

Responsibility
--------------
Frozen dataclasses describing a configuration set: the withholding rate
table used by invoice generation, the contract billing defaults, and the
overtime rounding rule parameters.

Architecture position
---------------------
**Config layer** -- pure data.  Imports nothing from modules or services.

Invariants enforced
-------------------
* Rates are ``Decimal`` fractions in [0, 1].
* Billing days are in 1..31.
* The overtime divisor is positive and the round-up digit is in 1..9.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from decimal import Decimal

# Withholding kinds whose rate is fixed by the rate table.  ISS is not here:
# its percentage is configured per contract.
TABLE_TAX_KINDS = ("pis", "cofins", "irpj", "csll", "inss")


@dataclass(frozen=True)
class WithholdingRateTable:
    """Statutory withholding rates applied to the gross invoice value."""

    pis: Decimal = Decimal("0.0065")
    cofins: Decimal = Decimal("0.03")
    irpj: Decimal = Decimal("0.015")
    csll: Decimal = Decimal("0.01")
    inss: Decimal = Decimal("0.11")

    def __post_init__(self):
        for name in TABLE_TAX_KINDS:
            rate = getattr(self, name)
            if not isinstance(rate, Decimal):
                raise ValueError(f"{name} rate must be Decimal, got {type(rate).__name__}")
            if rate < 0 or rate > 1:
                raise ValueError(f"{name} rate must be between 0 and 1, got {rate}")

    def rate_for(self, kind: str) -> Decimal:
        if kind not in TABLE_TAX_KINDS:
            raise KeyError(f"No table rate for withholding kind '{kind}'")
        return getattr(self, kind)


@dataclass(frozen=True)
class BillingDefaults:
    """Defaults applied when a contract leaves billing fields empty."""

    billing_day: int = 1
    due_day: int = 5
    due_in_current_month: bool = True

    def __post_init__(self):
        for name in ("billing_day", "due_day"):
            day = getattr(self, name)
            if not 1 <= day <= 31:
                raise ValueError(f"{name} must be between 1 and 31, got {day}")


@dataclass(frozen=True)
class OvertimeRules:
    """Parameters of the overtime pay calculation."""

    hours_per_daily_rate: int = 12
    round_up_digit_threshold: int = 6

    def __post_init__(self):
        if self.hours_per_daily_rate <= 0:
            raise ValueError("hours_per_daily_rate must be positive")
        if not 1 <= self.round_up_digit_threshold <= 9:
            raise ValueError("round_up_digit_threshold must be between 1 and 9")


@dataclass(frozen=True)
class BackofficeConfig:
    """A complete, validated configuration set."""

    config_id: str
    version: int
    withholding_rates: WithholdingRateTable = field(default_factory=WithholdingRateTable)
    billing_defaults: BillingDefaults = field(default_factory=BillingDefaults)
    overtime: OvertimeRules = field(default_factory=OvertimeRules)
    checksum: str = ""
