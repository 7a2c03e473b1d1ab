"""
Billing Helpers (``backoffice_modules.billing.helpers``).

Responsibility
--------------
Pure calculation functions for monthly invoices: billing and due dates
from contract days, withholding amounts from the contract flags and the
configured rate table, technical retention, and the net/receivable values
(also after later additions and discounts).

Architecture position
---------------------
**Modules layer** -- pure helper functions.  No I/O, no session, no clock,
no database access.  Called by ``BillingService`` or from tests.

Invariants enforced
-------------------
* All numeric inputs and outputs use ``Decimal`` -- NEVER ``float``.
* Every withholding amount and the technical retention are rounded to
  cents individually; net and receivable are exact sums of rounded parts.
* Days beyond the end of a month are capped to its last day.

Failure modes
-------------
* Missing monthly value  -> treated as zero.
* Negative addition or discount  -> ``ValidationError``.
"""

from __future__ import annotations

from datetime import date
from decimal import Decimal

from backoffice_config.schema import WithholdingRateTable
from backoffice_kernel.db.types import ZERO, percent_to_rate, round_money, to_decimal
from backoffice_kernel.domain.competency import Competency
from backoffice_kernel.exceptions import ValidationError
from backoffice_modules.billing.models import InvoiceAmounts, TaxKind, WithholdingLine
from backoffice_modules.contracts.models import Contract


def billing_date_for(period: Competency, billing_day: int) -> date:
    """Billing date inside ``period``; day 31 in a 30-day month is the 30th."""
    return period.day(billing_day)


def due_date_for(period: Competency, due_day: int, due_in_current_month: bool) -> date:
    """
    Due date for an invoice of ``period``.

    Same month as billing when ``due_in_current_month``, otherwise the
    following month.  The day is capped to the end of the target month.
    """
    target = period if due_in_current_month else period.next()
    return target.day(due_day)


def withholding_rate(contract: Contract, kind: TaxKind, rates: WithholdingRateTable) -> Decimal:
    """ISS comes from the contract; the other kinds from the rate table."""
    if kind is TaxKind.ISS:
        return percent_to_rate(contract.iss_percentage)
    return rates.rate_for(kind.value)


def compute_withholdings(
    contract: Contract,
    gross: Decimal,
    rates: WithholdingRateTable,
) -> tuple[WithholdingLine, ...]:
    """One line per tax kind; kinds whose flag is off carry amount zero."""
    lines = []
    for kind in TaxKind:
        rate = withholding_rate(contract, kind, rates)
        withheld = contract.withholds(kind.value)
        amount = round_money(gross * rate) if withheld else ZERO
        lines.append(WithholdingLine(kind=kind, withheld=withheld, rate=rate, amount=amount))
    return tuple(lines)


def compute_technical_retention(contract: Contract, gross: Decimal) -> Decimal:
    if not contract.technical_retention:
        return ZERO
    return round_money(gross * percent_to_rate(contract.technical_retention_percentage))


def compute_invoice_amounts(contract: Contract, rates: WithholdingRateTable) -> InvoiceAmounts:
    """
    Gross, withholdings, net, technical retention and receivable value for
    one month of ``contract``.

    net = gross - sum(withholdings)
    receivable = net - technical retention
    """
    gross = to_decimal(contract.monthly_value, "monthly_value")
    withholdings = compute_withholdings(contract, gross, rates)
    total_withheld = sum((line.amount for line in withholdings), ZERO)
    net = gross - total_withheld
    retention = compute_technical_retention(contract, gross)
    return InvoiceAmounts(
        gross_value=gross,
        withholdings=withholdings,
        net_value=net,
        technical_retention_value=retention,
        receivable_value=net - retention,
    )


def recompute_adjusted_amounts(
    gross: Decimal,
    total_withheld: Decimal,
    technical_retention: Decimal,
    addition: Decimal,
    discount: Decimal,
) -> tuple[Decimal, Decimal]:
    """
    Net and receivable after an edit of addition/discount.

    The gross value and the withholding snapshot never change; only net and
    receivable move.
    """
    if addition < ZERO:
        raise ValidationError("addition", "must not be negative")
    if discount < ZERO:
        raise ValidationError("discount", "must not be negative")
    net = gross - total_withheld + addition - discount
    return net, net - technical_retention
