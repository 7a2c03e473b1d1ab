"""
backoffice_services.repository -- financial persistence gateway.

Responsibility:
    Single seam between the billing/receivable services and the database.
    Reads and writes invoices, receivables and the contracts invoices are
    generated from, always exchanging frozen dataclasses, never ORM rows.

Architecture position:
    Services -- persistence adapter.  Imports ORM models from modules and
    kernel exceptions.  The abstract ``FinancialRepository`` lets tests swap
    in a repository that simulates races or failures.

Invariants enforced:
    - Soft-deleted rows (``deleted_at IS NULL`` predicate) are invisible to
      every read.  Only ``delete_receivable_by_invoice`` touches them.
    - The repository never commits on its own; callers call ``commit()`` or
      ``rollback()`` to close their unit of work.
    - A unique violation on (contract_id, competency) surfaces as
      ``DuplicateInvoiceError``; any other database failure as
      ``PersistenceError``.

Failure modes:
    - DuplicateInvoiceError from insert_invoice (concurrent generation).
    - PersistenceError from any write, or from commit.
    - InvoiceNotFoundError / ReceivableNotFoundError from updates of missing
      or soft-deleted rows.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Iterator
from contextlib import contextmanager
from datetime import datetime
from typing import Any
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from backoffice_kernel.domain.competency import Competency
from backoffice_kernel.exceptions import (
    BackofficeError,
    DuplicateInvoiceError,
    InvoiceNotFoundError,
    PersistenceError,
    ReceivableNotFoundError,
)
from backoffice_kernel.logging_config import get_logger
from backoffice_modules.billing.models import Invoice, InvoiceStatus
from backoffice_modules.billing.orm import InvoiceModel
from backoffice_modules.contracts.models import Contract
from backoffice_modules.contracts.orm import ContractModel
from backoffice_modules.receivables.models import Receivable, ReceivableStatus
from backoffice_modules.receivables.orm import ReceivableModel

logger = get_logger("services.repository")

# Postgres reports the index name; SQLite reports the indexed columns.
_DUPLICATE_INVOICE_MARKERS = (
    "uq_invoices_contract_competency",
    "invoices.contract_id, invoices.competency",
)


def _detail(exc: SQLAlchemyError) -> str:
    return str(getattr(exc, "orig", None) or exc)


def is_duplicate_invoice_violation(exc: IntegrityError) -> bool:
    """Whether ``exc`` was raised by the one-invoice-per-month index."""
    detail = _detail(exc)
    return any(marker in detail for marker in _DUPLICATE_INVOICE_MARKERS)


class FinancialRepository(ABC):
    """
    Persistence operations used by billing and receivables.

    Contract:
        All methods exchange frozen dataclasses.  Writes are staged in the
        current unit of work; nothing is durable until ``commit()``.
    """

    # -- contracts ----------------------------------------------------------

    @abstractmethod
    def list_active_contracts(self, company_id: UUID) -> list[Contract]:
        """Active, non-deleted contracts of ``company_id``."""

    # -- invoices -----------------------------------------------------------

    @abstractmethod
    def find_invoice(self, contract_id: UUID, period: Competency) -> Invoice | None:
        """The live invoice of ``contract_id`` for ``period``, if any."""

    @abstractmethod
    def insert_invoice(self, invoice: Invoice, actor_id: UUID) -> Invoice: ...

    @abstractmethod
    def get_invoice(self, invoice_id: UUID) -> Invoice | None: ...

    @abstractmethod
    def update_invoice(self, invoice_id: UUID, actor_id: UUID, **fields: Any) -> Invoice: ...

    @abstractmethod
    def update_invoice_status(
        self, invoice_id: UUID, status: InvoiceStatus, actor_id: UUID,
    ) -> Invoice: ...

    @abstractmethod
    def soft_delete_invoice(
        self, invoice_id: UUID, actor_id: UUID, deleted_at: datetime,
    ) -> None: ...

    @abstractmethod
    def list_invoices(
        self,
        company_id: UUID | None = None,
        period: Competency | None = None,
        status: InvoiceStatus | None = None,
    ) -> list[Invoice]:
        """Live invoices, most distant due date first."""

    # -- receivables --------------------------------------------------------

    @abstractmethod
    def insert_receivable(self, receivable: Receivable, actor_id: UUID) -> Receivable: ...

    @abstractmethod
    def get_receivable(self, receivable_id: UUID) -> Receivable | None: ...

    @abstractmethod
    def find_receivable_by_invoice(self, invoice_id: UUID) -> Receivable | None: ...

    @abstractmethod
    def update_receivable(
        self, receivable_id: UUID, actor_id: UUID, **fields: Any,
    ) -> Receivable: ...

    @abstractmethod
    def delete_receivable_by_invoice(self, invoice_id: UUID) -> int:
        """Hard-delete every receivable of ``invoice_id``; returns the count."""

    @abstractmethod
    def soft_delete_receivable(
        self, receivable_id: UUID, actor_id: UUID, deleted_at: datetime,
    ) -> None: ...

    @abstractmethod
    def list_receivables(
        self,
        company_id: UUID | None = None,
        period: Competency | None = None,
        status: ReceivableStatus | None = None,
    ) -> list[Receivable]:
        """Live receivables, earliest due date first."""

    # -- unit of work -------------------------------------------------------

    @abstractmethod
    def commit(self) -> None: ...

    @abstractmethod
    def rollback(self) -> None: ...


class SqlFinancialRepository(FinancialRepository):
    """``FinancialRepository`` over a SQLAlchemy session owned by the caller."""

    def __init__(self, session: Session):
        self.session = session

    # -- contracts ----------------------------------------------------------

    def list_active_contracts(self, company_id: UUID) -> list[Contract]:
        stmt = (
            select(ContractModel)
            .where(ContractModel.company_id == company_id)
            .where(ContractModel.active.is_(True))
            .where(ContractModel.deleted_at.is_(None))
            .order_by(ContractModel.post_name)
        )
        try:
            rows = self.session.scalars(stmt).all()
        except SQLAlchemyError as exc:
            raise PersistenceError("list_active_contracts", _detail(exc)) from exc
        return [row.to_dto() for row in rows]

    # -- invoices -----------------------------------------------------------

    def find_invoice(self, contract_id: UUID, period: Competency) -> Invoice | None:
        stmt = (
            select(InvoiceModel)
            .where(InvoiceModel.contract_id == contract_id)
            .where(InvoiceModel.competency == period.first_day)
            .where(InvoiceModel.deleted_at.is_(None))
        )
        try:
            row = self.session.scalars(stmt).first()
        except SQLAlchemyError as exc:
            raise PersistenceError("find_invoice", _detail(exc)) from exc
        return row.to_dto() if row is not None else None

    def insert_invoice(self, invoice: Invoice, actor_id: UUID) -> Invoice:
        model = InvoiceModel.from_dto(invoice, created_by_id=actor_id)
        try:
            self.session.add(model)
            self.session.flush()
        except IntegrityError as exc:
            if is_duplicate_invoice_violation(exc):
                logger.info("invoice_unique_violation", extra={
                    "contract_id": str(invoice.contract_id),
                    "competency": invoice.competency.isoformat(),
                })
                raise DuplicateInvoiceError(invoice.contract_id, invoice.competency) from exc
            raise PersistenceError("insert_invoice", _detail(exc)) from exc
        except SQLAlchemyError as exc:
            raise PersistenceError("insert_invoice", _detail(exc)) from exc
        return model.to_dto()

    def get_invoice(self, invoice_id: UUID) -> Invoice | None:
        model = self._live_invoice(invoice_id)
        return model.to_dto() if model is not None else None

    def update_invoice(self, invoice_id: UUID, actor_id: UUID, **fields: Any) -> Invoice:
        model = self._live_invoice(invoice_id)
        if model is None:
            raise InvoiceNotFoundError(invoice_id)
        for key, value in fields.items():
            setattr(model, key, value)
        model.updated_by_id = actor_id
        self._flush("update_invoice")
        return model.to_dto()

    def update_invoice_status(
        self, invoice_id: UUID, status: InvoiceStatus, actor_id: UUID,
    ) -> Invoice:
        return self.update_invoice(invoice_id, actor_id, status=status.value)

    def soft_delete_invoice(
        self, invoice_id: UUID, actor_id: UUID, deleted_at: datetime,
    ) -> None:
        self.update_invoice(invoice_id, actor_id, deleted_at=deleted_at)

    def list_invoices(
        self,
        company_id: UUID | None = None,
        period: Competency | None = None,
        status: InvoiceStatus | None = None,
    ) -> list[Invoice]:
        stmt = select(InvoiceModel).where(InvoiceModel.deleted_at.is_(None))
        if company_id is not None:
            stmt = stmt.where(InvoiceModel.company_id == company_id)
        if period is not None:
            stmt = stmt.where(InvoiceModel.competency == period.first_day)
        if status is not None:
            stmt = stmt.where(InvoiceModel.status == status.value)
        stmt = stmt.order_by(InvoiceModel.due_date.desc(), InvoiceModel.post_name)
        try:
            rows = self.session.scalars(stmt).all()
        except SQLAlchemyError as exc:
            raise PersistenceError("list_invoices", _detail(exc)) from exc
        return [row.to_dto() for row in rows]

    # -- receivables --------------------------------------------------------

    def insert_receivable(self, receivable: Receivable, actor_id: UUID) -> Receivable:
        model = ReceivableModel.from_dto(receivable, created_by_id=actor_id)
        self.session.add(model)
        self._flush("insert_receivable")
        return model.to_dto()

    def get_receivable(self, receivable_id: UUID) -> Receivable | None:
        model = self._live_receivable(receivable_id)
        return model.to_dto() if model is not None else None

    def find_receivable_by_invoice(self, invoice_id: UUID) -> Receivable | None:
        stmt = (
            select(ReceivableModel)
            .where(ReceivableModel.invoice_id == invoice_id)
            .where(ReceivableModel.deleted_at.is_(None))
        )
        try:
            row = self.session.scalars(stmt).first()
        except SQLAlchemyError as exc:
            raise PersistenceError("find_receivable_by_invoice", _detail(exc)) from exc
        return row.to_dto() if row is not None else None

    def update_receivable(
        self, receivable_id: UUID, actor_id: UUID, **fields: Any,
    ) -> Receivable:
        model = self._live_receivable(receivable_id)
        if model is None:
            raise ReceivableNotFoundError(receivable_id)
        for key, value in fields.items():
            setattr(model, key, value)
        model.updated_by_id = actor_id
        self._flush("update_receivable")
        return model.to_dto()

    def delete_receivable_by_invoice(self, invoice_id: UUID) -> int:
        stmt = select(ReceivableModel).where(ReceivableModel.invoice_id == invoice_id)
        try:
            rows = self.session.scalars(stmt).all()
            for row in rows:
                self.session.delete(row)
            self.session.flush()
        except SQLAlchemyError as exc:
            raise PersistenceError("delete_receivable_by_invoice", _detail(exc)) from exc
        return len(rows)

    def soft_delete_receivable(
        self, receivable_id: UUID, actor_id: UUID, deleted_at: datetime,
    ) -> None:
        self.update_receivable(receivable_id, actor_id, deleted_at=deleted_at)

    def list_receivables(
        self,
        company_id: UUID | None = None,
        period: Competency | None = None,
        status: ReceivableStatus | None = None,
    ) -> list[Receivable]:
        stmt = select(ReceivableModel).where(ReceivableModel.deleted_at.is_(None))
        if company_id is not None:
            stmt = stmt.where(ReceivableModel.company_id == company_id)
        if period is not None:
            stmt = stmt.where(ReceivableModel.competency == period.first_day)
        if status is not None:
            stmt = stmt.where(ReceivableModel.status == status.value)
        stmt = stmt.order_by(ReceivableModel.due_date, ReceivableModel.description)
        try:
            rows = self.session.scalars(stmt).all()
        except SQLAlchemyError as exc:
            raise PersistenceError("list_receivables", _detail(exc)) from exc
        return [row.to_dto() for row in rows]

    # -- unit of work -------------------------------------------------------

    def commit(self) -> None:
        try:
            self.session.commit()
        except SQLAlchemyError as exc:
            self.session.rollback()
            raise PersistenceError("commit", _detail(exc)) from exc

    def rollback(self) -> None:
        self.session.rollback()

    # -- internals ----------------------------------------------------------

    def _live_invoice(self, invoice_id: UUID) -> InvoiceModel | None:
        model = self.session.get(InvoiceModel, invoice_id)
        if model is None or model.deleted_at is not None:
            return None
        return model

    def _live_receivable(self, receivable_id: UUID) -> ReceivableModel | None:
        model = self.session.get(ReceivableModel, receivable_id)
        if model is None or model.deleted_at is not None:
            return None
        return model

    def _flush(self, operation: str) -> None:
        try:
            self.session.flush()
        except SQLAlchemyError as exc:
            raise PersistenceError(operation, _detail(exc)) from exc


@contextmanager
def unit_of_work(repository: FinancialRepository, operation: str) -> Iterator[None]:
    """
    Commit the staged writes of ``operation`` or roll all of them back.

    Usage:
        with unit_of_work(repo, "mark_invoiced"):
            repo.update_invoice_status(...)
            repo.insert_receivable(...)
    """
    try:
        yield
        repository.commit()
    except BackofficeError as exc:
        repository.rollback()
        if isinstance(exc, PersistenceError):
            logger.error(f"{operation}_failed", extra={"operation": operation}, exc_info=True)
        raise
