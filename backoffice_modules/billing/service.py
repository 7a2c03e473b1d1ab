"""
Billing Service - monthly invoice generation and invoice lifecycle.

Generation walks the active contracts of a company and creates one
``Pendente`` invoice per contract for the requested competency month.
A contract already billed for that month is skipped, so the run can be
repeated safely.  Each invoice is committed on its own: one failing
contract never blocks the others.

Confirming an invoice (``mark_invoiced``) moves it to ``Faturado`` and
materializes its receivable in the same transaction; undoing removes the
receivable and reverts the invoice.

Usage:
    service = BillingService(session, clock=clock)
    result = service.generate(Competency.parse("2024-03"), company_id, actor_id)
    service.mark_invoiced(result.invoice_ids[0], actor_id)
"""

from __future__ import annotations

from datetime import date
from decimal import Decimal
from typing import Any
from uuid import UUID, uuid4

from sqlalchemy.orm import Session

from backoffice_config import BackofficeConfig, get_active_config
from backoffice_kernel.db.types import to_decimal
from backoffice_kernel.domain.clock import Clock, SystemClock
from backoffice_kernel.domain.competency import Competency
from backoffice_kernel.exceptions import (
    BackofficeError,
    DuplicateInvoiceError,
    InvalidStatusTransitionError,
    InvoiceNotEditableError,
    InvoiceNotFoundError,
    ValidationError,
)
from backoffice_kernel.logging_config import LogContext, get_logger
from backoffice_modules.billing.helpers import (
    billing_date_for,
    compute_invoice_amounts,
    due_date_for,
    recompute_adjusted_amounts,
)
from backoffice_modules.billing.models import (
    GenerationError,
    GenerationResult,
    Invoice,
    InvoiceStatus,
)
from backoffice_modules.contracts.models import Contract
from backoffice_modules.receivables.service import ReceivableService
from backoffice_services.repository import (
    FinancialRepository,
    SqlFinancialRepository,
    unit_of_work,
)

logger = get_logger("modules.billing.service")

_UNSET: Any = object()


class BillingService:
    """
    Orchestrates invoice generation and the invoice lifecycle.

    Contract:
        Receives Session, Clock and configuration via constructor injection.
        Owns the transaction boundary of every public method.

    Guarantees:
        - At most one live invoice per (contract, competency), backed by a
          unique index; a lost race counts as skipped.
        - Gross value and the withholding snapshot never change after
          generation.
        - ``Faturado`` iff a live receivable exists for the invoice.
    """

    def __init__(
        self,
        session: Session,
        clock: Clock | None = None,
        config: BackofficeConfig | None = None,
        repository: FinancialRepository | None = None,
    ):
        self._session = session
        self._clock = clock or SystemClock()
        self._config = config or get_active_config()
        self._repo = repository or SqlFinancialRepository(session)
        self._receivables = ReceivableService(session, clock=self._clock, repository=self._repo)

    # =========================================================================
    # Generation
    # =========================================================================

    def generate(
        self,
        period: Competency | str,
        company_id: UUID,
        actor_id: UUID,
    ) -> GenerationResult:
        """
        Create this month's pending invoices for every active contract.

        Only the initial contract fetch raises (``PersistenceError``);
        per-contract failures are collected in ``GenerationResult.errors``.
        """
        if not isinstance(period, Competency):
            period = Competency.parse(period)

        with LogContext.bind(actor_id=str(actor_id), company_id=str(company_id), period=str(period)):
            logger.info("billing_generation_started")
            contracts = self._repo.list_active_contracts(company_id)

            created = skipped = 0
            errors: list[GenerationError] = []
            invoice_ids: list[UUID] = []

            for contract in contracts:
                try:
                    invoice = self._generate_for_contract(contract, period, actor_id)
                except DuplicateInvoiceError:
                    self._repo.rollback()
                    skipped += 1
                    logger.info("invoice_skipped_concurrent", extra={
                        "contract_id": str(contract.id),
                    })
                    continue
                except BackofficeError as exc:
                    self._repo.rollback()
                    errors.append(GenerationError(
                        contract_id=contract.id,
                        post_name=contract.post_name,
                        error=str(exc),
                        code=exc.code,
                    ))
                    logger.error("invoice_generation_failed", extra={
                        "contract_id": str(contract.id),
                        "error_code": exc.code,
                    }, exc_info=True)
                    continue

                if invoice is None:
                    skipped += 1
                else:
                    created += 1
                    invoice_ids.append(invoice.id)

            result = GenerationResult(
                created=created,
                skipped=skipped,
                errors=tuple(errors),
                invoice_ids=tuple(invoice_ids),
            )
            logger.info("billing_generation_completed", extra={
                "contract_count": len(contracts),
                "created_count": created,
                "skipped_count": skipped,
                "error_count": len(errors),
            })
            return result

    def _generate_for_contract(
        self,
        contract: Contract,
        period: Competency,
        actor_id: UUID,
    ) -> Invoice | None:
        if self._repo.find_invoice(contract.id, period) is not None:
            logger.info("invoice_skipped_duplicate", extra={"contract_id": str(contract.id)})
            return None

        invoice = self.build_invoice(contract, period)
        saved = self._repo.insert_invoice(invoice, actor_id)
        self._repo.commit()

        logger.info("invoice_created", extra={
            "invoice_id": str(saved.id),
            "contract_id": str(contract.id),
            "gross_value": str(saved.gross_value),
            "net_value": str(saved.net_value),
            "due_date": saved.due_date.isoformat(),
        })
        return saved

    def build_invoice(self, contract: Contract, period: Competency) -> Invoice:
        """The pending invoice ``contract`` would get for ``period`` (not persisted)."""
        defaults = self._config.billing_defaults
        billing_day = contract.billing_day or defaults.billing_day
        due_day = contract.due_day or defaults.due_day
        amounts = compute_invoice_amounts(contract, self._config.withholding_rates)

        return Invoice(
            id=uuid4(),
            company_id=contract.company_id,
            contract_id=contract.id,
            competency=period.first_day,
            billing_date=billing_date_for(period, billing_day),
            due_date=due_date_for(period, due_day, contract.due_in_current_month),
            gross_value=amounts.gross_value,
            withholdings=amounts.withholdings,
            net_value=amounts.net_value,
            technical_retention_value=amounts.technical_retention_value,
            receivable_value=amounts.receivable_value,
            status=InvoiceStatus.PENDING,
            post_name=contract.post_name,
        )

    # =========================================================================
    # Maintenance
    # =========================================================================

    def update_invoice(
        self,
        invoice_id: UUID,
        actor_id: UUID,
        *,
        billing_date: date | None,
        due_date: date | None,
        addition: Decimal | None = None,
        discount: Decimal | None = None,
        notes: str | None = _UNSET,
    ) -> Invoice:
        """
        Edit a pending invoice.

        Dates are required.  Addition and discount default to the stored
        values; net and receivable are recomputed from the unchanged gross
        and withholding snapshot.  The competency never changes.
        """
        if billing_date is None:
            raise ValidationError("billing_date", "billing date is required")
        if due_date is None:
            raise ValidationError("due_date", "due date is required")

        current = self.get_invoice(invoice_id)
        if current.status is not InvoiceStatus.PENDING:
            raise InvoiceNotEditableError(invoice_id, current.status.value)

        new_addition = to_decimal(addition, "addition") if addition is not None else current.addition
        new_discount = to_decimal(discount, "discount") if discount is not None else current.discount
        net, receivable = recompute_adjusted_amounts(
            current.gross_value,
            current.total_withheld,
            current.technical_retention_value,
            new_addition,
            new_discount,
        )

        fields: dict[str, Any] = {
            "billing_date": billing_date,
            "due_date": due_date,
            "addition": new_addition,
            "discount": new_discount,
            "net_value": net,
            "receivable_value": receivable,
        }
        if notes is not _UNSET:
            fields["notes"] = notes

        with unit_of_work(self._repo, "update_invoice"):
            updated = self._repo.update_invoice(invoice_id, actor_id, **fields)
        logger.info("invoice_updated", extra={
            "invoice_id": str(invoice_id),
            "net_value": str(net),
            "receivable_value": str(receivable),
        })
        return updated

    def delete_invoice(self, invoice_id: UUID, actor_id: UUID) -> None:
        """Soft-delete the invoice and drop its receivable."""
        self.get_invoice(invoice_id)
        with unit_of_work(self._repo, "delete_invoice"):
            self._receivables.on_invoice_undone(invoice_id)
            self._repo.soft_delete_invoice(invoice_id, actor_id, self._clock.now())
        logger.info("invoice_deleted", extra={"invoice_id": str(invoice_id)})

    def get_invoice(self, invoice_id: UUID) -> Invoice:
        invoice = self._repo.get_invoice(invoice_id)
        if invoice is None:
            raise InvoiceNotFoundError(invoice_id)
        return invoice

    def list_invoices(
        self,
        company_id: UUID | None = None,
        period: Competency | None = None,
        status: InvoiceStatus | None = None,
    ) -> list[Invoice]:
        return self._repo.list_invoices(company_id=company_id, period=period, status=status)

    # =========================================================================
    # Confirmation
    # =========================================================================

    def mark_invoiced(self, invoice_id: UUID, actor_id: UUID) -> Invoice:
        """Pendente -> Faturado, creating the receivable atomically."""
        current = self.get_invoice(invoice_id)
        if current.status is InvoiceStatus.INVOICED:
            raise InvalidStatusTransitionError(
                invoice_id, current.status.value, InvoiceStatus.INVOICED.value,
            )

        with unit_of_work(self._repo, "mark_invoiced"):
            updated = self._repo.update_invoice_status(invoice_id, InvoiceStatus.INVOICED, actor_id)
            receivable = self._receivables.on_invoice_confirmed(updated, actor_id)

        logger.info("invoice_confirmed", extra={
            "invoice_id": str(invoice_id),
            "receivable_id": str(receivable.id),
        })
        return updated

    def undo_invoiced(self, invoice_id: UUID, actor_id: UUID) -> Invoice:
        """Faturado -> Pendente; the receivable is removed even if received."""
        current = self.get_invoice(invoice_id)
        if current.status is InvoiceStatus.PENDING:
            raise InvalidStatusTransitionError(
                invoice_id, current.status.value, InvoiceStatus.PENDING.value,
            )

        with unit_of_work(self._repo, "undo_invoiced"):
            self._receivables.on_invoice_undone(invoice_id)
            updated = self._repo.update_invoice_status(invoice_id, InvoiceStatus.PENDING, actor_id)

        logger.info("invoice_confirmation_undone", extra={"invoice_id": str(invoice_id)})
        return updated
