"""
Tests for SqlFinancialRepository and unit_of_work.

Validates:
- Soft-deleted invoices and receivables are invisible to reads
- A second live invoice for the same month surfaces as DuplicateInvoiceError
- delete_receivable_by_invoice reports how many rows it removed
- unit_of_work commits on success and rolls back on BackofficeError
"""

from __future__ import annotations

from datetime import datetime, timezone
from uuid import uuid4

import pytest
from sqlalchemy.exc import IntegrityError, OperationalError

from backoffice_kernel.domain.competency import Competency
from backoffice_kernel.exceptions import (
    DuplicateInvoiceError,
    InvoiceNotFoundError,
    PersistenceError,
    ReceivableNotFoundError,
    ValidationError,
)
from backoffice_modules.billing.models import InvoiceStatus
from backoffice_modules.billing.service import BillingService
from backoffice_services.repository import (
    SqlFinancialRepository,
    is_duplicate_invoice_violation,
    unit_of_work,
)

MARCH = Competency(2024, 3)
DELETED_AT = datetime(2024, 3, 16, tzinfo=timezone.utc)


@pytest.fixture
def repo(session):
    return SqlFinancialRepository(session)


@pytest.fixture
def build(session, deterministic_clock, config):
    billing = BillingService(session, clock=deterministic_clock, config=config)
    return billing.build_invoice


class TestContracts:

    def test_only_active_live_contracts(self, repo, contract_service, create_contract, company, test_actor_id):
        kept = create_contract(post_name="Portaria")
        inactive = create_contract(post_name="Garagem", active=False)
        deleted = create_contract(post_name="Recepcao")
        contract_service.delete_contract(deleted.id, test_actor_id)

        ids = [c.id for c in repo.list_active_contracts(company.id)]

        assert ids == [kept.id]
        assert inactive.id not in ids


class TestInvoices:

    def test_insert_and_find(self, repo, build, contract, test_actor_id):
        invoice = repo.insert_invoice(build(contract, MARCH), test_actor_id)
        repo.commit()
        assert repo.find_invoice(contract.id, MARCH) == invoice
        assert repo.find_invoice(contract.id, MARCH.next()) is None

    def test_duplicate_month(self, repo, build, contract, test_actor_id, captured_logs):
        repo.insert_invoice(build(contract, MARCH), test_actor_id)
        repo.commit()

        with pytest.raises(DuplicateInvoiceError) as exc_info:
            repo.insert_invoice(build(contract, MARCH), test_actor_id)
        repo.rollback()

        assert exc_info.value.contract_id == contract.id
        assert any(r["message"] == "invoice_unique_violation" for r in captured_logs())

    def test_soft_deleted_invoice_is_hidden(self, repo, build, contract, test_actor_id):
        invoice = repo.insert_invoice(build(contract, MARCH), test_actor_id)
        repo.soft_delete_invoice(invoice.id, test_actor_id, DELETED_AT)
        repo.commit()

        assert repo.get_invoice(invoice.id) is None
        assert repo.find_invoice(contract.id, MARCH) is None
        assert repo.list_invoices() == []
        with pytest.raises(InvoiceNotFoundError):
            repo.update_invoice_status(invoice.id, InvoiceStatus.INVOICED, test_actor_id)

    def test_month_can_be_billed_again_after_delete(self, repo, build, contract, test_actor_id):
        first = repo.insert_invoice(build(contract, MARCH), test_actor_id)
        repo.soft_delete_invoice(first.id, test_actor_id, DELETED_AT)
        second = repo.insert_invoice(build(contract, MARCH), test_actor_id)
        repo.commit()
        assert repo.find_invoice(contract.id, MARCH).id == second.id

    def test_list_filters(self, repo, build, contract, test_actor_id):
        march = repo.insert_invoice(build(contract, MARCH), test_actor_id)
        repo.insert_invoice(build(contract, MARCH.next()), test_actor_id)
        repo.update_invoice_status(march.id, InvoiceStatus.INVOICED, test_actor_id)
        repo.commit()

        assert [i.id for i in repo.list_invoices(period=MARCH)] == [march.id]
        assert [i.id for i in repo.list_invoices(status=InvoiceStatus.INVOICED)] == [march.id]
        due_dates = [i.due_date for i in repo.list_invoices()]
        assert due_dates == sorted(due_dates, reverse=True)


class TestReceivables:

    def test_delete_by_invoice_counts_rows(self, repo, session, deterministic_clock, config, contract, company, test_actor_id):
        billing = BillingService(session, clock=deterministic_clock, config=config, repository=repo)
        invoice_id = billing.generate(MARCH, company.id, test_actor_id).invoice_ids[0]
        billing.mark_invoiced(invoice_id, test_actor_id)

        assert repo.find_receivable_by_invoice(invoice_id) is not None
        assert repo.delete_receivable_by_invoice(invoice_id) == 1
        assert repo.delete_receivable_by_invoice(invoice_id) == 0
        assert repo.find_receivable_by_invoice(invoice_id) is None

    @pytest.mark.parametrize("read", [
        lambda repo: repo.find_receivable_by_invoice(uuid4()),
        lambda repo: repo.list_receivables(),
        lambda repo: repo.find_invoice(uuid4(), MARCH),
        lambda repo: repo.list_invoices(),
    ])
    def test_database_errors_on_reads_become_persistence_errors(self, repo, monkeypatch, read):
        def broken_scalars(*args, **kwargs):
            raise OperationalError("SELECT", {}, Exception("connection lost"))

        monkeypatch.setattr(repo.session, "scalars", broken_scalars)
        with pytest.raises(PersistenceError):
            read(repo)

    def test_update_missing_receivable(self, repo, test_actor_id):
        with pytest.raises(ReceivableNotFoundError):
            repo.update_receivable(uuid4(), test_actor_id, notes="x")


class TestDuplicateDetection:

    def test_other_integrity_errors_are_not_duplicates(self):
        exc = IntegrityError("INSERT", {}, Exception("FOREIGN KEY constraint failed"))
        assert not is_duplicate_invoice_violation(exc)

    @pytest.mark.parametrize("detail", [
        'duplicate key value violates unique constraint "uq_invoices_contract_competency"',
        "UNIQUE constraint failed: invoices.contract_id, invoices.competency",
    ])
    def test_unique_index_messages(self, detail):
        assert is_duplicate_invoice_violation(IntegrityError("INSERT", {}, Exception(detail)))


class TestUnitOfWork:

    def test_commits_on_success(self, repo, build, contract, test_actor_id):
        with unit_of_work(repo, "insert_invoice"):
            invoice = repo.insert_invoice(build(contract, MARCH), test_actor_id)
        repo.rollback()
        assert repo.get_invoice(invoice.id) is not None

    def test_rolls_back_on_error(self, repo, build, contract, test_actor_id):
        with pytest.raises(ValidationError):
            with unit_of_work(repo, "insert_invoice"):
                invoice = repo.insert_invoice(build(contract, MARCH), test_actor_id)
                raise ValidationError("due_date", "boom")
        assert repo.get_invoice(invoice.id) is None

    def test_logs_persistence_failures(self, repo, captured_logs):
        with pytest.raises(PersistenceError):
            with unit_of_work(repo, "mark_invoiced"):
                raise PersistenceError("commit", "connection lost")
        assert any(r["message"] == "mark_invoiced_failed" for r in captured_logs())
