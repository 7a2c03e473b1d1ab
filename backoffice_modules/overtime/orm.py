"""
Overtime ORM Models (``backoffice_modules.overtime.orm``).

Roles and employees are reference data; overtime entries store the pay
snapshot computed when they were logged or last edited.
"""

from datetime import datetime
from decimal import Decimal
from uuid import UUID

from sqlalchemy import Boolean, DateTime, ForeignKey, Index, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from backoffice_kernel.db.base import SoftDeleteMixin, TrackedBase
from backoffice_kernel.db.types import HOURS


class RoleModel(TrackedBase):
    """Job role (cargo) with the day and night overtime daily rates."""

    __tablename__ = "roles"

    name: Mapped[str] = mapped_column(String(255), nullable=False)
    state: Mapped[str | None] = mapped_column(String(2), nullable=True)
    day_overtime_rate: Mapped[Decimal] = mapped_column(nullable=False, default=Decimal("0"))
    night_overtime_rate: Mapped[Decimal] = mapped_column(nullable=False, default=Decimal("0"))

    def to_dto(self):
        from backoffice_modules.overtime.models import Role

        return Role(
            id=self.id,
            name=self.name,
            state=self.state,
            day_overtime_rate=self.day_overtime_rate,
            night_overtime_rate=self.night_overtime_rate,
        )

    def __repr__(self) -> str:
        return f"<RoleModel {self.name} {self.state}>"


class EmployeeModel(TrackedBase):
    __tablename__ = "employees"

    __table_args__ = (
        Index("idx_employees_company_id", "company_id"),
    )

    company_id: Mapped[UUID] = mapped_column(ForeignKey("companies.id"), nullable=False)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    role_id: Mapped[UUID | None] = mapped_column(ForeignKey("roles.id"), nullable=True)
    is_active: Mapped[bool] = mapped_column(Boolean, default=True)

    def to_dto(self):
        from backoffice_modules.overtime.models import Employee

        return Employee(
            id=self.id,
            company_id=self.company_id,
            name=self.name,
            role_id=self.role_id,
            is_active=self.is_active,
        )

    def __repr__(self) -> str:
        return f"<EmployeeModel {self.name}>"


class OvertimeEntryModel(SoftDeleteMixin, TrackedBase):
    """
    ORM model for overtime entries (servicos extras).

    Guarantees:
        - duration, hourly rate and total are always written together from
          one calculation.
        - shift stored as the enum value ("Diurno" / "Noturno").
    """

    __tablename__ = "overtime_entries"

    __table_args__ = (
        Index("idx_overtime_entries_employee_id", "employee_id"),
        Index("idx_overtime_entries_entry_time", "entry_time"),
    )

    company_id: Mapped[UUID] = mapped_column(ForeignKey("companies.id"), nullable=False)
    contract_id: Mapped[UUID] = mapped_column(ForeignKey("contracts.id"), nullable=False)
    employee_id: Mapped[UUID] = mapped_column(ForeignKey("employees.id"), nullable=False)
    role_id: Mapped[UUID] = mapped_column(ForeignKey("roles.id"), nullable=False)
    entry_time: Mapped[datetime] = mapped_column(DateTime(timezone=False), nullable=False)
    exit_time: Mapped[datetime] = mapped_column(DateTime(timezone=False), nullable=False)
    shift: Mapped[str] = mapped_column(String(10), nullable=False)
    daily_rate: Mapped[Decimal] = mapped_column(nullable=False)
    duration_hours: Mapped[Decimal] = mapped_column(HOURS, nullable=False)
    hourly_rate: Mapped[Decimal] = mapped_column(nullable=False)
    total: Mapped[Decimal] = mapped_column(nullable=False)
    notes: Mapped[str | None] = mapped_column(Text, nullable=True)

    def to_dto(self):
        from backoffice_modules.overtime.models import OvertimeEntry, Shift

        return OvertimeEntry(
            id=self.id,
            company_id=self.company_id,
            contract_id=self.contract_id,
            employee_id=self.employee_id,
            role_id=self.role_id,
            entry_time=self.entry_time,
            exit_time=self.exit_time,
            shift=Shift(self.shift),
            daily_rate=self.daily_rate,
            duration_hours=self.duration_hours,
            hourly_rate=self.hourly_rate,
            total=self.total,
            notes=self.notes,
        )

    def __repr__(self) -> str:
        return f"<OvertimeEntryModel {self.employee_id} {self.entry_time} {self.total}>"
