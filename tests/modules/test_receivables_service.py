"""
Tests for ReceivableService.

Validates:
- mark_received / undo_received and the received date
- create_standalone (avulso) defaults and validation
- update_receivable, delete_receivable, list_receivables, summarize
"""

from __future__ import annotations

from datetime import date
from decimal import Decimal
from uuid import uuid4

import pytest

from backoffice_kernel.domain.competency import Competency
from backoffice_kernel.exceptions import (
    InvalidStatusTransitionError,
    ReceivableNotFoundError,
    ValidationError,
)
from backoffice_modules.billing.models import InvoiceStatus
from backoffice_modules.billing.service import BillingService
from backoffice_modules.receivables.models import (
    DEFAULT_STANDALONE_DESCRIPTION,
    ReceivableKind,
    ReceivableStatus,
)
from backoffice_modules.receivables.service import ReceivableService

MARCH = Competency(2024, 3)


# =============================================================================
# Fixtures
# =============================================================================


@pytest.fixture
def receivable_service(session, deterministic_clock):
    return ReceivableService(session, clock=deterministic_clock)


@pytest.fixture
def invoice_receivable(session, deterministic_clock, config, receivable_service, contract, company, test_actor_id):
    """Receivable of the confirmed March invoice of ``contract``."""
    billing = BillingService(session, clock=deterministic_clock, config=config)
    result = billing.generate(MARCH, company.id, test_actor_id)
    billing.mark_invoiced(result.invoice_ids[0], test_actor_id)
    return receivable_service.list_receivables()[0]


@pytest.fixture
def standalone(receivable_service, company, test_actor_id):
    return receivable_service.create_standalone(
        company.id, test_actor_id,
        description="Venda de uniformes",
        amount=Decimal("450.00"),
        due_date=date(2024, 3, 28),
    )


# =============================================================================
# Collection
# =============================================================================


class TestMarkReceived:

    def test_defaults_to_today(self, receivable_service, invoice_receivable, test_actor_id):
        received = receivable_service.mark_received(invoice_receivable.id, test_actor_id)
        assert received.status is ReceivableStatus.RECEIVED
        assert received.received_date == date(2024, 3, 15)

    def test_explicit_date(self, receivable_service, invoice_receivable, test_actor_id):
        received = receivable_service.mark_received(
            invoice_receivable.id, test_actor_id, received_date=date(2024, 4, 11),
        )
        assert received.received_date == date(2024, 4, 11)

    def test_twice_raises(self, receivable_service, invoice_receivable, test_actor_id):
        receivable_service.mark_received(invoice_receivable.id, test_actor_id)
        with pytest.raises(InvalidStatusTransitionError):
            receivable_service.mark_received(invoice_receivable.id, test_actor_id)

    def test_unknown_receivable_raises(self, receivable_service, test_actor_id):
        with pytest.raises(ReceivableNotFoundError):
            receivable_service.mark_received(uuid4(), test_actor_id)


class TestUndoReceived:

    def test_clears_received_date(self, receivable_service, invoice_receivable, test_actor_id):
        receivable_service.mark_received(invoice_receivable.id, test_actor_id)

        pending = receivable_service.undo_received(invoice_receivable.id, test_actor_id)

        assert pending.status is ReceivableStatus.PENDING
        assert pending.received_date is None

    def test_pending_receivable_raises(self, receivable_service, invoice_receivable, test_actor_id):
        with pytest.raises(InvalidStatusTransitionError):
            receivable_service.undo_received(invoice_receivable.id, test_actor_id)


# =============================================================================
# Standalone
# =============================================================================


class TestCreateStandalone:

    def test_has_no_invoice_or_contract(self, standalone):
        assert standalone.kind is ReceivableKind.STANDALONE
        assert standalone.invoice_id is None
        assert standalone.contract_id is None
        assert standalone.status is ReceivableStatus.PENDING
        assert standalone.competency == date(2024, 3, 1)

    def test_default_description(self, receivable_service, company, test_actor_id):
        receivable = receivable_service.create_standalone(
            company.id, test_actor_id, amount=Decimal("10"), due_date=date(2024, 3, 5),
        )
        assert receivable.description == DEFAULT_STANDALONE_DESCRIPTION == "Recebimento Avulso"

    def test_missing_due_date_raises(self, receivable_service, company, test_actor_id):
        with pytest.raises(ValidationError) as exc_info:
            receivable_service.create_standalone(
                company.id, test_actor_id, amount=Decimal("10"), due_date=None,
            )
        assert exc_info.value.field == "due_date"

    @pytest.mark.parametrize("amount", [Decimal("0"), Decimal("-5"), None])
    def test_non_positive_amount_raises(self, receivable_service, company, test_actor_id, amount):
        with pytest.raises(ValidationError) as exc_info:
            receivable_service.create_standalone(
                company.id, test_actor_id, amount=amount, due_date=date(2024, 3, 5),
            )
        assert exc_info.value.field == "amount"

    def test_nothing_is_written_on_validation_error(self, receivable_service, company, test_actor_id):
        with pytest.raises(ValidationError):
            receivable_service.create_standalone(company.id, test_actor_id, amount="0", due_date=date(2024, 3, 5))
        assert receivable_service.list_receivables() == []


# =============================================================================
# Maintenance
# =============================================================================


class TestUpdateReceivable:

    def test_amount_and_notes(self, receivable_service, standalone, test_actor_id):
        updated = receivable_service.update_receivable(
            standalone.id, test_actor_id, amount="500.00", notes="reajuste",
        )
        assert updated.amount == Decimal("500.00")
        assert updated.notes == "reajuste"

    def test_standalone_due_date_moves_competency(self, receivable_service, standalone, test_actor_id):
        updated = receivable_service.update_receivable(
            standalone.id, test_actor_id, due_date=date(2024, 4, 3),
        )
        assert updated.competency == date(2024, 4, 1)

    def test_invoice_receivable_keeps_competency(self, receivable_service, invoice_receivable, test_actor_id):
        updated = receivable_service.update_receivable(
            invoice_receivable.id, test_actor_id, due_date=date(2024, 5, 2),
        )
        assert updated.due_date == date(2024, 5, 2)
        assert updated.competency == date(2024, 3, 1)

    def test_received_date_of_pending_raises(self, receivable_service, standalone, test_actor_id):
        with pytest.raises(ValidationError):
            receivable_service.update_receivable(
                standalone.id, test_actor_id, received_date=date(2024, 3, 20),
            )

    def test_received_date_of_received(self, receivable_service, standalone, test_actor_id):
        receivable_service.mark_received(standalone.id, test_actor_id)
        updated = receivable_service.update_receivable(
            standalone.id, test_actor_id, received_date=date(2024, 3, 20),
        )
        assert updated.received_date == date(2024, 3, 20)

    def test_status_is_not_editable(self, receivable_service, standalone, test_actor_id):
        with pytest.raises(ValidationError):
            receivable_service.update_receivable(standalone.id, test_actor_id, status="Recebido")


class TestDeleteReceivable:

    def test_soft_delete(self, receivable_service, standalone, test_actor_id):
        receivable_service.delete_receivable(standalone.id, test_actor_id)
        assert receivable_service.list_receivables() == []
        with pytest.raises(ReceivableNotFoundError):
            receivable_service.get_receivable(standalone.id)

    def test_invoice_receivable_is_kept_with_its_invoice(
        self, session, deterministic_clock, config, receivable_service, invoice_receivable, test_actor_id,
    ):
        with pytest.raises(ValidationError) as exc_info:
            receivable_service.delete_receivable(invoice_receivable.id, test_actor_id)
        assert exc_info.value.field == "kind"

        billing = BillingService(session, clock=deterministic_clock, config=config)
        assert billing.get_invoice(invoice_receivable.invoice_id).status is InvoiceStatus.INVOICED
        assert [r.id for r in receivable_service.list_receivables()] == [invoice_receivable.id]


class TestListAndSummarize:

    def test_period_and_status_filters(self, receivable_service, invoice_receivable, standalone, company, test_actor_id):
        receivable_service.create_standalone(
            company.id, test_actor_id, amount=Decimal("99"), due_date=date(2024, 6, 1),
        )
        receivable_service.mark_received(standalone.id, test_actor_id)

        march = receivable_service.list_receivables(period=MARCH)
        assert {r.id for r in march} == {invoice_receivable.id, standalone.id}

        pending = receivable_service.list_receivables(period=MARCH, status=ReceivableStatus.PENDING)
        assert [r.id for r in pending] == [invoice_receivable.id]

    def test_company_filter(self, receivable_service, standalone, other_company):
        assert receivable_service.list_receivables(company_id=other_company.id) == []

    def test_ordered_by_due_date(self, receivable_service, invoice_receivable, standalone):
        due_dates = [r.due_date for r in receivable_service.list_receivables()]
        assert due_dates == sorted(due_dates)

    def test_summarize(self, receivable_service, invoice_receivable, standalone, test_actor_id):
        receivable_service.mark_received(standalone.id, test_actor_id)

        summary = receivable_service.summarize(receivable_service.list_receivables())

        assert summary.count == 2
        assert summary.total == Decimal("9585.00")
        assert summary.received == Decimal("450.00")
        assert summary.pending == Decimal("9135.00")

    def test_summarize_empty(self, receivable_service):
        summary = receivable_service.summarize([])
        assert (summary.count, summary.total, summary.pending) == (0, Decimal("0"), Decimal("0"))
