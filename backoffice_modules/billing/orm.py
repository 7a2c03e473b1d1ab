"""
Billing ORM Models (``backoffice_modules.billing.orm``).

Responsibility
--------------
SQLAlchemy persistence model for invoices.  The withholding snapshot is
stored as flat ``<kind>_withheld`` / ``<kind>_rate`` / ``<kind>_amount``
columns and rebuilt into ``WithholdingLine`` tuples by ``to_dto``.

Architecture position
---------------------
**Modules layer** -- persistence.  Imports from ``backoffice_kernel.db``
and sibling ``models.py``.

Invariants enforced
-------------------
* At most one non-deleted invoice per (contract_id, competency): partial
  unique index ``uq_invoices_contract_competency`` on rows where
  ``deleted_at IS NULL``.  This closes the race between two concurrent
  generation runs that both pass the application-level check.
"""

from datetime import date
from decimal import Decimal
from uuid import UUID

from sqlalchemy import Boolean, ForeignKey, Index, String, Text, text
from sqlalchemy.orm import Mapped, mapped_column

from backoffice_kernel.db.base import SoftDeleteMixin, TrackedBase
from backoffice_kernel.db.types import RATE

_LIVE_ROWS = text("deleted_at IS NULL")


class InvoiceModel(SoftDeleteMixin, TrackedBase):
    """
    ORM model for invoices (faturamentos).

    Guarantees:
        - competency is the first day of the competency month.
        - gross value and withholding columns are written once at generation.
        - status stored as the enum value ("Pendente" / "Faturado").
    """

    __tablename__ = "invoices"

    __table_args__ = (
        Index(
            "uq_invoices_contract_competency",
            "contract_id",
            "competency",
            unique=True,
            sqlite_where=_LIVE_ROWS,
            postgresql_where=_LIVE_ROWS,
        ),
        Index("idx_invoices_company_id", "company_id"),
        Index("idx_invoices_status", "status"),
        Index("idx_invoices_due_date", "due_date"),
    )

    company_id: Mapped[UUID] = mapped_column(ForeignKey("companies.id"), nullable=False)
    contract_id: Mapped[UUID] = mapped_column(ForeignKey("contracts.id"), nullable=False)
    competency: Mapped[date] = mapped_column(nullable=False)
    billing_date: Mapped[date] = mapped_column(nullable=False)
    due_date: Mapped[date] = mapped_column(nullable=False)
    post_name: Mapped[str | None] = mapped_column(String(255), nullable=True)

    gross_value: Mapped[Decimal] = mapped_column(nullable=False)
    addition: Mapped[Decimal] = mapped_column(nullable=False, default=Decimal("0"))
    discount: Mapped[Decimal] = mapped_column(nullable=False, default=Decimal("0"))

    iss_withheld: Mapped[bool] = mapped_column(Boolean, default=False)
    iss_rate: Mapped[Decimal] = mapped_column(RATE, default=Decimal("0"))
    iss_amount: Mapped[Decimal] = mapped_column(default=Decimal("0"))
    pis_withheld: Mapped[bool] = mapped_column(Boolean, default=False)
    pis_rate: Mapped[Decimal] = mapped_column(RATE, default=Decimal("0"))
    pis_amount: Mapped[Decimal] = mapped_column(default=Decimal("0"))
    cofins_withheld: Mapped[bool] = mapped_column(Boolean, default=False)
    cofins_rate: Mapped[Decimal] = mapped_column(RATE, default=Decimal("0"))
    cofins_amount: Mapped[Decimal] = mapped_column(default=Decimal("0"))
    irpj_withheld: Mapped[bool] = mapped_column(Boolean, default=False)
    irpj_rate: Mapped[Decimal] = mapped_column(RATE, default=Decimal("0"))
    irpj_amount: Mapped[Decimal] = mapped_column(default=Decimal("0"))
    csll_withheld: Mapped[bool] = mapped_column(Boolean, default=False)
    csll_rate: Mapped[Decimal] = mapped_column(RATE, default=Decimal("0"))
    csll_amount: Mapped[Decimal] = mapped_column(default=Decimal("0"))
    inss_withheld: Mapped[bool] = mapped_column(Boolean, default=False)
    inss_rate: Mapped[Decimal] = mapped_column(RATE, default=Decimal("0"))
    inss_amount: Mapped[Decimal] = mapped_column(default=Decimal("0"))

    net_value: Mapped[Decimal] = mapped_column(nullable=False)
    technical_retention_value: Mapped[Decimal] = mapped_column(nullable=False)
    receivable_value: Mapped[Decimal] = mapped_column(nullable=False)
    status: Mapped[str] = mapped_column(String(20), nullable=False, default="Pendente")
    notes: Mapped[str | None] = mapped_column(Text, nullable=True)

    def to_dto(self):
        """Convert ORM model to frozen dataclass."""
        from backoffice_modules.billing.models import (
            Invoice,
            InvoiceStatus,
            TaxKind,
            WithholdingLine,
        )

        withholdings = tuple(
            WithholdingLine(
                kind=kind,
                withheld=getattr(self, f"{kind.value}_withheld"),
                rate=getattr(self, f"{kind.value}_rate"),
                amount=getattr(self, f"{kind.value}_amount"),
            )
            for kind in TaxKind
        )
        return Invoice(
            id=self.id,
            company_id=self.company_id,
            contract_id=self.contract_id,
            competency=self.competency,
            billing_date=self.billing_date,
            due_date=self.due_date,
            gross_value=self.gross_value,
            withholdings=withholdings,
            net_value=self.net_value,
            technical_retention_value=self.technical_retention_value,
            receivable_value=self.receivable_value,
            addition=self.addition,
            discount=self.discount,
            status=InvoiceStatus(self.status),
            post_name=self.post_name,
            notes=self.notes,
        )

    @classmethod
    def from_dto(cls, dto, created_by_id: UUID) -> "InvoiceModel":
        """Create ORM model from frozen dataclass."""
        model = cls(
            id=dto.id,
            company_id=dto.company_id,
            contract_id=dto.contract_id,
            competency=dto.competency,
            billing_date=dto.billing_date,
            due_date=dto.due_date,
            post_name=dto.post_name,
            gross_value=dto.gross_value,
            addition=dto.addition,
            discount=dto.discount,
            net_value=dto.net_value,
            technical_retention_value=dto.technical_retention_value,
            receivable_value=dto.receivable_value,
            status=dto.status.value,
            notes=dto.notes,
            created_by_id=created_by_id,
        )
        for line in dto.withholdings:
            setattr(model, f"{line.kind.value}_withheld", line.withheld)
            setattr(model, f"{line.kind.value}_rate", line.rate)
            setattr(model, f"{line.kind.value}_amount", line.amount)
        return model

    def __repr__(self) -> str:
        return f"<InvoiceModel {self.contract_id} {self.competency} {self.status}>"
