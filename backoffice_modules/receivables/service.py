"""
Receivable Service - materializes and maintains receivables.

Receivables appear in two ways: automatically when an invoice is
confirmed (``on_invoice_confirmed``, called by ``BillingService`` inside
its own transaction) and manually as standalone "avulso" entries.  Users
then mark them received, undo that, edit or soft-delete them.

The two invoice hooks only stage writes; the calling service commits.
Every other public method owns its transaction.

Usage:
    service = ReceivableService(session, clock=clock)
    receivable = service.mark_received(receivable_id, actor_id)
    summary = service.summarize(service.list_receivables(period=period))
"""

from __future__ import annotations

from collections.abc import Iterable
from datetime import date
from decimal import Decimal
from typing import Any
from uuid import UUID, uuid4

from sqlalchemy.orm import Session

from backoffice_kernel.db.types import ZERO, to_decimal
from backoffice_kernel.domain.clock import Clock, SystemClock
from backoffice_kernel.domain.competency import Competency
from backoffice_kernel.exceptions import (
    InvalidStatusTransitionError,
    ReceivableNotFoundError,
    ValidationError,
)
from backoffice_kernel.logging_config import get_logger
from backoffice_modules.billing.models import Invoice
from backoffice_modules.receivables.models import (
    DEFAULT_STANDALONE_DESCRIPTION,
    Receivable,
    ReceivableKind,
    ReceivableStatus,
    ReceivableSummary,
)
from backoffice_services.repository import (
    FinancialRepository,
    SqlFinancialRepository,
    unit_of_work,
)

logger = get_logger("modules.receivables.service")

_EDITABLE_FIELDS = frozenset({"amount", "due_date", "received_date", "description", "notes"})


def _positive_amount(value: Any) -> Decimal:
    amount = to_decimal(value, "amount")
    if amount <= ZERO:
        raise ValidationError("amount", f"must be positive, got {amount}")
    return amount


class ReceivableService:
    """
    Receivable lifecycle: Pendente <-> Recebido, plus standalone entries.

    Guarantees:
        - ``received_date`` is set iff status is Recebido.
        - Invoice-derived receivables keep the invoice competency; standalone
          ones belong to the month of their due date.
    """

    def __init__(
        self,
        session: Session,
        clock: Clock | None = None,
        repository: FinancialRepository | None = None,
    ):
        self._session = session
        self._clock = clock or SystemClock()
        self._repo = repository or SqlFinancialRepository(session)

    # =========================================================================
    # Invoice hooks (caller commits)
    # =========================================================================

    def on_invoice_confirmed(self, invoice: Invoice, actor_id: UUID) -> Receivable:
        """Stage the pending receivable of a just-confirmed invoice."""
        receivable = Receivable(
            id=uuid4(),
            company_id=invoice.company_id,
            kind=ReceivableKind.INVOICE,
            description=invoice.post_name or DEFAULT_STANDALONE_DESCRIPTION,
            competency=invoice.competency,
            due_date=invoice.due_date,
            amount=invoice.receivable_value,
            invoice_id=invoice.id,
            contract_id=invoice.contract_id,
        )
        saved = self._repo.insert_receivable(receivable, actor_id)
        logger.info("receivable_materialized", extra={
            "receivable_id": str(saved.id),
            "invoice_id": str(invoice.id),
            "amount": str(saved.amount),
            "due_date": saved.due_date.isoformat(),
        })
        return saved

    def on_invoice_undone(self, invoice_id: UUID) -> int:
        """Stage removal of the invoice's receivable, received or not."""
        removed = self._repo.delete_receivable_by_invoice(invoice_id)
        logger.info("receivable_removed_for_invoice", extra={
            "invoice_id": str(invoice_id),
            "removed": removed,
        })
        return removed

    # =========================================================================
    # Collection
    # =========================================================================

    def mark_received(
        self,
        receivable_id: UUID,
        actor_id: UUID,
        received_date: date | None = None,
    ) -> Receivable:
        """Pendente -> Recebido; the date defaults to today."""
        current = self.get_receivable(receivable_id)
        if current.status is ReceivableStatus.RECEIVED:
            raise InvalidStatusTransitionError(
                receivable_id, current.status.value, ReceivableStatus.RECEIVED.value,
            )
        when = received_date or self._clock.today()
        with unit_of_work(self._repo, "mark_received"):
            updated = self._repo.update_receivable(
                receivable_id, actor_id,
                status=ReceivableStatus.RECEIVED.value,
                received_date=when,
            )
        logger.info("receivable_received", extra={
            "receivable_id": str(receivable_id),
            "received_date": when.isoformat(),
        })
        return updated

    def undo_received(self, receivable_id: UUID, actor_id: UUID) -> Receivable:
        """Recebido -> Pendente; clears the received date."""
        current = self.get_receivable(receivable_id)
        if current.status is ReceivableStatus.PENDING:
            raise InvalidStatusTransitionError(
                receivable_id, current.status.value, ReceivableStatus.PENDING.value,
            )
        with unit_of_work(self._repo, "undo_received"):
            updated = self._repo.update_receivable(
                receivable_id, actor_id,
                status=ReceivableStatus.PENDING.value,
                received_date=None,
            )
        logger.info("receivable_receipt_undone", extra={"receivable_id": str(receivable_id)})
        return updated

    # =========================================================================
    # Standalone receivables and maintenance
    # =========================================================================

    def create_standalone(
        self,
        company_id: UUID,
        actor_id: UUID,
        *,
        description: str | None = None,
        amount: Any,
        due_date: date | None,
        notes: str | None = None,
    ) -> Receivable:
        """Register an avulso receivable with no invoice or contract."""
        if due_date is None:
            raise ValidationError("due_date", "due date is required")
        value = _positive_amount(amount)

        receivable = Receivable(
            id=uuid4(),
            company_id=company_id,
            kind=ReceivableKind.STANDALONE,
            description=(description or "").strip() or DEFAULT_STANDALONE_DESCRIPTION,
            competency=Competency.of(due_date).first_day,
            due_date=due_date,
            amount=value,
            notes=notes,
        )
        with unit_of_work(self._repo, "create_standalone"):
            saved = self._repo.insert_receivable(receivable, actor_id)
        logger.info("standalone_receivable_created", extra={
            "receivable_id": str(saved.id),
            "company_id": str(company_id),
            "amount": str(value),
        })
        return saved

    def update_receivable(self, receivable_id: UUID, actor_id: UUID, **changes: Any) -> Receivable:
        """Edit amount, due date, received date, description or notes."""
        unknown = set(changes) - _EDITABLE_FIELDS
        if unknown:
            raise ValidationError(sorted(unknown)[0], "field cannot be edited")

        current = self.get_receivable(receivable_id)
        values = dict(changes)
        if "amount" in values:
            values["amount"] = _positive_amount(values["amount"])
        if "due_date" in values:
            if values["due_date"] is None:
                raise ValidationError("due_date", "due date is required")
            if current.kind is ReceivableKind.STANDALONE:
                values["competency"] = Competency.of(values["due_date"]).first_day
        if "received_date" in values:
            if not current.is_received:
                raise ValidationError("received_date", "receivable has not been received")
            if values["received_date"] is None:
                raise ValidationError("received_date", "use undo_received to clear it")
        if "description" in values:
            values["description"] = (values["description"] or "").strip() or current.description

        with unit_of_work(self._repo, "update_receivable"):
            updated = self._repo.update_receivable(receivable_id, actor_id, **values)
        logger.info("receivable_updated", extra={
            "receivable_id": str(receivable_id),
            "fields": sorted(changes),
        })
        return updated

    def delete_receivable(self, receivable_id: UUID, actor_id: UUID) -> None:
        """
        Soft-delete a standalone receivable.

        Invoice receivables live exactly as long as their invoice is
        Faturado; they are removed with ``BillingService.undo_invoiced``.
        """
        current = self.get_receivable(receivable_id)
        if current.kind is ReceivableKind.INVOICE:
            raise ValidationError(
                "kind", "invoice receivables are removed by undoing the invoice confirmation",
            )
        with unit_of_work(self._repo, "delete_receivable"):
            self._repo.soft_delete_receivable(receivable_id, actor_id, self._clock.now())
        logger.info("receivable_deleted", extra={"receivable_id": str(receivable_id)})

    # =========================================================================
    # Queries
    # =========================================================================

    def get_receivable(self, receivable_id: UUID) -> Receivable:
        receivable = self._repo.get_receivable(receivable_id)
        if receivable is None:
            raise ReceivableNotFoundError(receivable_id)
        return receivable

    def list_receivables(
        self,
        company_id: UUID | None = None,
        period: Competency | None = None,
        status: ReceivableStatus | None = None,
    ) -> list[Receivable]:
        return self._repo.list_receivables(company_id=company_id, period=period, status=status)

    @staticmethod
    def summarize(receivables: Iterable[Receivable]) -> ReceivableSummary:
        count = 0
        total = received = ZERO
        for receivable in receivables:
            count += 1
            total += receivable.amount
            if receivable.is_received:
                received += receivable.amount
        return ReceivableSummary(
            count=count,
            total=total,
            received=received,
            pending=total - received,
        )
