"""
Tests for the pure billing arithmetic.

Validates helpers:
- billing_date_for, due_date_for: day capping and month roll-over
- compute_withholdings, compute_technical_retention
- compute_invoice_amounts: net and receivable values
- recompute_adjusted_amounts: additions and discounts
"""

from __future__ import annotations

from datetime import date
from decimal import Decimal
from uuid import uuid4

import pytest
from hypothesis import given
from hypothesis import strategies as st

from backoffice_config.schema import WithholdingRateTable
from backoffice_kernel.domain.competency import Competency
from backoffice_kernel.exceptions import ValidationError
from backoffice_modules.billing.helpers import (
    billing_date_for,
    compute_invoice_amounts,
    compute_technical_retention,
    compute_withholdings,
    due_date_for,
    recompute_adjusted_amounts,
)
from backoffice_modules.billing.models import TaxKind
from backoffice_modules.contracts.models import Contract

RATES = WithholdingRateTable()


def make_contract(**overrides) -> Contract:
    values = {
        "id": uuid4(),
        "company_id": uuid4(),
        "post_name": "Portaria Central",
        "monthly_value": Decimal("10000.00"),
        "billing_day": 20,
        "due_day": 10,
    }
    values.update(overrides)
    return Contract(**values)


# =============================================================================
# Dates
# =============================================================================


class TestBillingDate:

    def test_day_inside_month(self):
        assert billing_date_for(Competency(2024, 3), 20) == date(2024, 3, 20)

    def test_day_31_in_february(self):
        assert billing_date_for(Competency(2024, 2), 31) == date(2024, 2, 29)


class TestDueDate:

    def test_current_month(self):
        assert due_date_for(Competency(2024, 3), 25, True) == date(2024, 3, 25)

    def test_day_31_in_thirty_day_month(self):
        assert due_date_for(Competency(2024, 4), 31, True) == date(2024, 4, 30)

    def test_following_month(self):
        assert due_date_for(Competency(2024, 3), 10, False) == date(2024, 4, 10)

    def test_following_month_is_capped(self):
        assert due_date_for(Competency(2024, 1), 31, False) == date(2024, 2, 29)

    def test_december_rolls_into_next_year(self):
        assert due_date_for(Competency(2024, 12), 10, False) == date(2025, 1, 10)


# =============================================================================
# Withholdings
# =============================================================================


class TestWithholdings:

    def test_one_line_per_kind_in_order(self):
        lines = compute_withholdings(make_contract(), Decimal("10000.00"), RATES)
        assert [line.kind for line in lines] == list(TaxKind)

    def test_flags_off_yield_zero(self):
        lines = compute_withholdings(make_contract(), Decimal("10000.00"), RATES)
        assert all(line.amount == Decimal("0") for line in lines)
        assert not any(line.withheld for line in lines)

    def test_iss_uses_contract_percentage(self):
        contract = make_contract(withhold_iss=True, iss_percentage=Decimal("2.5"))
        lines = {line.kind: line for line in compute_withholdings(contract, Decimal("10000.00"), RATES)}
        assert lines[TaxKind.ISS].rate == Decimal("0.025")
        assert lines[TaxKind.ISS].amount == Decimal("250.00")

    def test_table_rates(self):
        contract = make_contract(
            withhold_pis=True, withhold_cofins=True, withhold_irpj=True,
            withhold_csll=True, withhold_inss=True,
        )
        lines = {line.kind: line.amount for line in compute_withholdings(contract, Decimal("10000.00"), RATES)}
        assert lines[TaxKind.PIS] == Decimal("65.00")
        assert lines[TaxKind.COFINS] == Decimal("300.00")
        assert lines[TaxKind.IRPJ] == Decimal("150.00")
        assert lines[TaxKind.CSLL] == Decimal("100.00")
        assert lines[TaxKind.INSS] == Decimal("1100.00")

    def test_each_amount_rounded_half_up(self):
        contract = make_contract(withhold_pis=True)
        lines = {line.kind: line.amount for line in compute_withholdings(contract, Decimal("1234.57"), RATES)}
        # 1234.57 * 0.0065 = 8.024705
        assert lines[TaxKind.PIS] == Decimal("8.02")

    def test_configured_irpj_rate(self):
        contract = make_contract(withhold_irpj=True)
        rates = WithholdingRateTable(irpj=Decimal("0.01"))
        lines = {line.kind: line.amount for line in compute_withholdings(contract, Decimal("10000.00"), rates)}
        assert lines[TaxKind.IRPJ] == Decimal("100.00")


class TestTechnicalRetention:

    def test_flag_off(self):
        contract = make_contract(technical_retention_percentage=Decimal("5"))
        assert compute_technical_retention(contract, Decimal("10000.00")) == Decimal("0")

    def test_flag_on(self):
        contract = make_contract(technical_retention=True, technical_retention_percentage=Decimal("5"))
        assert compute_technical_retention(contract, Decimal("10000.00")) == Decimal("500.00")


# =============================================================================
# Invoice amounts
# =============================================================================


class TestInvoiceAmounts:

    def test_reference_contract_net(self):
        contract = make_contract(
            withhold_iss=True, iss_percentage=Decimal("5"),
            withhold_pis=True, withhold_cofins=True,
        )
        amounts = compute_invoice_amounts(contract, RATES)
        assert amounts.gross_value == Decimal("10000.00")
        assert amounts.total_withheld == Decimal("865.00")
        assert amounts.net_value == Decimal("9135.00")
        assert amounts.receivable_value == Decimal("9135.00")

    def test_retention_reduces_receivable_only(self):
        contract = make_contract(
            withhold_iss=True, iss_percentage=Decimal("5"),
            technical_retention=True, technical_retention_percentage=Decimal("10"),
        )
        amounts = compute_invoice_amounts(contract, RATES)
        assert amounts.net_value == Decimal("9500.00")
        assert amounts.technical_retention_value == Decimal("1000.00")
        assert amounts.receivable_value == Decimal("8500.00")

    def test_missing_monthly_value_is_zero(self):
        amounts = compute_invoice_amounts(make_contract(monthly_value=None, withhold_pis=True), RATES)
        assert amounts.gross_value == Decimal("0")
        assert amounts.net_value == Decimal("0")

    @given(
        gross=st.decimals(min_value=Decimal("0"), max_value=Decimal("10000000"), places=2),
        iss=st.decimals(min_value=Decimal("0"), max_value=Decimal("100"), places=2),
        flags=st.lists(st.booleans(), min_size=6, max_size=6),
    )
    def test_net_is_gross_minus_withholdings(self, gross, iss, flags):
        contract = make_contract(
            monthly_value=gross,
            iss_percentage=iss,
            withhold_iss=flags[0], withhold_pis=flags[1], withhold_cofins=flags[2],
            withhold_irpj=flags[3], withhold_csll=flags[4], withhold_inss=flags[5],
        )
        amounts = compute_invoice_amounts(contract, RATES)
        assert amounts.net_value == amounts.gross_value - amounts.total_withheld
        assert all(line.amount == line.amount.quantize(Decimal("0.01")) for line in amounts.withholdings)


class TestAdjustedAmounts:

    def test_addition_and_discount(self):
        net, receivable = recompute_adjusted_amounts(
            Decimal("10000.00"), Decimal("865.00"), Decimal("500.00"),
            addition=Decimal("200.00"), discount=Decimal("50.00"),
        )
        assert net == Decimal("9285.00")
        assert receivable == Decimal("8785.00")

    def test_negative_discount_raises(self):
        with pytest.raises(ValidationError) as exc_info:
            recompute_adjusted_amounts(
                Decimal("100"), Decimal("0"), Decimal("0"), Decimal("0"), Decimal("-1"),
            )
        assert exc_info.value.field == "discount"
