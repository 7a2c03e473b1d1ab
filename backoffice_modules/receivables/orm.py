"""
Receivable ORM Models (``backoffice_modules.receivables.orm``).

Invariants enforced
-------------------
* At most one live receivable per invoice: partial unique index
  ``uq_receivables_invoice`` on ``invoice_id`` where ``deleted_at IS NULL``
  and ``invoice_id IS NOT NULL``.  Avulso rows carry no invoice and are
  not constrained.
"""

from datetime import date
from decimal import Decimal
from uuid import UUID

from sqlalchemy import ForeignKey, Index, String, Text, text
from sqlalchemy.orm import Mapped, mapped_column

from backoffice_kernel.db.base import SoftDeleteMixin, TrackedBase

_LIVE_INVOICE_ROWS = text("deleted_at IS NULL AND invoice_id IS NOT NULL")


class ReceivableModel(SoftDeleteMixin, TrackedBase):
    """ORM model for receivables (recebimentos)."""

    __tablename__ = "receivables"

    __table_args__ = (
        Index(
            "uq_receivables_invoice",
            "invoice_id",
            unique=True,
            sqlite_where=_LIVE_INVOICE_ROWS,
            postgresql_where=_LIVE_INVOICE_ROWS,
        ),
        Index("idx_receivables_company_id", "company_id"),
        Index("idx_receivables_competency", "competency"),
        Index("idx_receivables_status", "status"),
    )

    company_id: Mapped[UUID] = mapped_column(ForeignKey("companies.id"), nullable=False)
    invoice_id: Mapped[UUID | None] = mapped_column(ForeignKey("invoices.id"), nullable=True)
    contract_id: Mapped[UUID | None] = mapped_column(ForeignKey("contracts.id"), nullable=True)
    kind: Mapped[str] = mapped_column(String(20), nullable=False, default="Faturamento")
    description: Mapped[str] = mapped_column(String(255), nullable=False)
    competency: Mapped[date] = mapped_column(nullable=False)
    due_date: Mapped[date] = mapped_column(nullable=False)
    received_date: Mapped[date | None] = mapped_column(nullable=True)
    amount: Mapped[Decimal] = mapped_column(nullable=False)
    status: Mapped[str] = mapped_column(String(20), nullable=False, default="Pendente")
    notes: Mapped[str | None] = mapped_column(Text, nullable=True)

    def to_dto(self):
        from backoffice_modules.receivables.models import (
            Receivable,
            ReceivableKind,
            ReceivableStatus,
        )

        return Receivable(
            id=self.id,
            company_id=self.company_id,
            kind=ReceivableKind(self.kind),
            description=self.description,
            competency=self.competency,
            due_date=self.due_date,
            amount=self.amount,
            status=ReceivableStatus(self.status),
            invoice_id=self.invoice_id,
            contract_id=self.contract_id,
            received_date=self.received_date,
            notes=self.notes,
        )

    @classmethod
    def from_dto(cls, dto, created_by_id: UUID) -> "ReceivableModel":
        return cls(
            id=dto.id,
            company_id=dto.company_id,
            invoice_id=dto.invoice_id,
            contract_id=dto.contract_id,
            kind=dto.kind.value,
            description=dto.description,
            competency=dto.competency,
            due_date=dto.due_date,
            received_date=dto.received_date,
            amount=dto.amount,
            status=dto.status.value,
            notes=dto.notes,
            created_by_id=created_by_id,
        )

    def __repr__(self) -> str:
        return f"<ReceivableModel {self.kind} {self.due_date} {self.amount} {self.status}>"
