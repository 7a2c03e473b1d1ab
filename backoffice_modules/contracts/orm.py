"""
Contract ORM Models (``backoffice_modules.contracts.orm``).

Responsibility
--------------
SQLAlchemy persistence models for companies and contracts.  Maps the
frozen domain dataclasses from ``models.py`` to database tables.

Architecture position
---------------------
**Modules layer** -- persistence.  Imports from ``backoffice_kernel.db``
and sibling ``models.py``.
"""

from datetime import date
from decimal import Decimal
from uuid import UUID

from sqlalchemy import Boolean, ForeignKey, Index, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from backoffice_kernel.db.base import SoftDeleteMixin, TrackedBase
from backoffice_kernel.db.types import PERCENTAGE


class CompanyModel(TrackedBase):
    """
    ORM model for companies.

    Guarantees:
        - name is unique (uq_companies_name).
    """

    __tablename__ = "companies"

    name: Mapped[str] = mapped_column(String(255), nullable=False, unique=True)
    is_active: Mapped[bool] = mapped_column(Boolean, default=True)

    def to_dto(self):
        from backoffice_modules.contracts.models import Company

        return Company(id=self.id, name=self.name, is_active=self.is_active)

    def __repr__(self) -> str:
        return f"<CompanyModel {self.name}>"


class ContractModel(SoftDeleteMixin, TrackedBase):
    """
    ORM model for service contracts.

    Guarantees:
        - company_id FK to companies.id.
        - ``active`` is an explicit flag; it is never derived from dates.
        - Soft-deleted rows keep ``deleted_at`` set and are filtered by
          repositories.
    """

    __tablename__ = "contracts"

    __table_args__ = (
        Index("idx_contracts_company_id", "company_id"),
        Index("idx_contracts_active", "active"),
    )

    company_id: Mapped[UUID] = mapped_column(
        ForeignKey("companies.id"), nullable=False
    )
    post_name: Mapped[str] = mapped_column(String(255), nullable=False)
    client_name: Mapped[str | None] = mapped_column(String(255), nullable=True)
    monthly_value: Mapped[Decimal] = mapped_column(nullable=False, default=Decimal("0"))
    active: Mapped[bool] = mapped_column(Boolean, default=True)
    billing_day: Mapped[int] = mapped_column(Integer, nullable=False, default=1)
    due_day: Mapped[int] = mapped_column(Integer, nullable=False, default=5)
    due_in_current_month: Mapped[bool] = mapped_column(Boolean, default=True)
    withhold_iss: Mapped[bool] = mapped_column(Boolean, default=False)
    withhold_pis: Mapped[bool] = mapped_column(Boolean, default=False)
    withhold_cofins: Mapped[bool] = mapped_column(Boolean, default=False)
    withhold_irpj: Mapped[bool] = mapped_column(Boolean, default=False)
    withhold_csll: Mapped[bool] = mapped_column(Boolean, default=False)
    withhold_inss: Mapped[bool] = mapped_column(Boolean, default=False)
    iss_percentage: Mapped[Decimal] = mapped_column(PERCENTAGE, default=Decimal("0"))
    technical_retention: Mapped[bool] = mapped_column(Boolean, default=False)
    technical_retention_percentage: Mapped[Decimal] = mapped_column(
        PERCENTAGE, default=Decimal("0")
    )
    start_date: Mapped[date | None] = mapped_column(nullable=True)
    duration_months: Mapped[int | None] = mapped_column(Integer, nullable=True)
    notes: Mapped[str | None] = mapped_column(Text, nullable=True)

    def to_dto(self):
        """Convert ORM model to frozen dataclass."""
        from backoffice_modules.contracts.models import Contract

        return Contract(
            id=self.id,
            company_id=self.company_id,
            post_name=self.post_name,
            client_name=self.client_name,
            monthly_value=self.monthly_value,
            active=self.active,
            billing_day=self.billing_day,
            due_day=self.due_day,
            due_in_current_month=self.due_in_current_month,
            withhold_iss=self.withhold_iss,
            withhold_pis=self.withhold_pis,
            withhold_cofins=self.withhold_cofins,
            withhold_irpj=self.withhold_irpj,
            withhold_csll=self.withhold_csll,
            withhold_inss=self.withhold_inss,
            iss_percentage=self.iss_percentage,
            technical_retention=self.technical_retention,
            technical_retention_percentage=self.technical_retention_percentage,
            start_date=self.start_date,
            duration_months=self.duration_months,
            notes=self.notes,
        )

    @classmethod
    def from_dto(cls, dto, created_by_id: UUID) -> "ContractModel":
        """Create ORM model from frozen dataclass."""
        return cls(
            id=dto.id,
            company_id=dto.company_id,
            post_name=dto.post_name,
            client_name=dto.client_name,
            monthly_value=dto.monthly_value,
            active=dto.active,
            billing_day=dto.billing_day,
            due_day=dto.due_day,
            due_in_current_month=dto.due_in_current_month,
            withhold_iss=dto.withhold_iss,
            withhold_pis=dto.withhold_pis,
            withhold_cofins=dto.withhold_cofins,
            withhold_irpj=dto.withhold_irpj,
            withhold_csll=dto.withhold_csll,
            withhold_inss=dto.withhold_inss,
            iss_percentage=dto.iss_percentage,
            technical_retention=dto.technical_retention,
            technical_retention_percentage=dto.technical_retention_percentage,
            start_date=dto.start_date,
            duration_months=dto.duration_months,
            notes=dto.notes,
            created_by_id=created_by_id,
        )

    def __repr__(self) -> str:
        return f"<ContractModel {self.post_name} ({self.monthly_value})>"
