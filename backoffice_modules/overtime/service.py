"""
Overtime Service - logs overtime shifts and totals them per month.

Each entry resolves the daily rate of the employee's role for the shift
worked and stores the calculated duration, hourly rate and total.  Edits
that touch the times, the role or the shift recalculate the snapshot.
Entries belong to the competency month of their entry time.

Usage:
    service = OvertimeService(session, clock=clock)
    entry = service.create_entry(
        actor_id,
        company_id=company.id, contract_id=contract.id,
        employee_id=employee.id, role_id=role.id,
        entry_time=datetime(2024, 3, 5, 19, 0),
        exit_time=datetime(2024, 3, 5, 23, 30),
        shift=Shift.NIGHT,
    )
"""

from __future__ import annotations

from collections.abc import Iterable
from datetime import datetime, time
from decimal import Decimal
from typing import Any
from uuid import UUID, uuid4

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from backoffice_config import BackofficeConfig, get_active_config
from backoffice_kernel.db.types import ZERO, to_decimal
from backoffice_kernel.domain.clock import Clock, SystemClock
from backoffice_kernel.domain.competency import Competency
from backoffice_kernel.exceptions import (
    EmployeeNotFoundError,
    OvertimeEntryNotFoundError,
    PersistenceError,
    RoleNotFoundError,
    ValidationError,
)
from backoffice_kernel.logging_config import get_logger
from backoffice_modules.overtime.helpers import compute_overtime
from backoffice_modules.overtime.models import (
    Employee,
    EmployeeOvertimeSummary,
    OvertimeCalculation,
    OvertimeEntry,
    OvertimeTotals,
    Role,
    Shift,
)
from backoffice_modules.overtime.orm import EmployeeModel, OvertimeEntryModel, RoleModel

logger = get_logger("modules.overtime.service")

_EDITABLE_FIELDS = frozenset({
    "company_id", "contract_id", "employee_id", "role_id",
    "entry_time", "exit_time", "shift", "notes",
})
_RECALCULATION_FIELDS = frozenset({"entry_time", "exit_time", "role_id", "shift"})


def _month_bounds(period: Competency) -> tuple[datetime, datetime]:
    start = datetime.combine(period.first_day, time.min)
    end = datetime.combine(period.next().first_day, time.min)
    return start, end


class OvertimeService:
    """Overtime roles, employees and entries."""

    def __init__(
        self,
        session: Session,
        clock: Clock | None = None,
        config: BackofficeConfig | None = None,
    ):
        self._session = session
        self._clock = clock or SystemClock()
        self._config = config or get_active_config()

    # =========================================================================
    # Reference data
    # =========================================================================

    def create_role(
        self,
        actor_id: UUID,
        *,
        name: str,
        day_overtime_rate: Any,
        night_overtime_rate: Any,
        state: str | None = None,
    ) -> Role:
        name = (name or "").strip()
        if not name:
            raise ValidationError("name", "role name is required")
        day_rate = to_decimal(day_overtime_rate, "day_overtime_rate")
        night_rate = to_decimal(night_overtime_rate, "night_overtime_rate")
        if day_rate < ZERO or night_rate < ZERO:
            raise ValidationError("daily_rate", "overtime rates must not be negative")

        model = RoleModel(
            id=uuid4(),
            name=name,
            state=state,
            day_overtime_rate=day_rate,
            night_overtime_rate=night_rate,
            created_by_id=actor_id,
        )
        self._persist(model, "create_role")
        logger.info("role_created", extra={"role_id": str(model.id), "role_name": name})
        return model.to_dto()

    def create_employee(
        self,
        actor_id: UUID,
        *,
        company_id: UUID,
        name: str,
        role_id: UUID | None = None,
    ) -> Employee:
        name = (name or "").strip()
        if not name:
            raise ValidationError("name", "employee name is required")
        if role_id is not None:
            self._load_role(role_id)

        model = EmployeeModel(
            id=uuid4(),
            company_id=company_id,
            name=name,
            role_id=role_id,
            created_by_id=actor_id,
        )
        self._persist(model, "create_employee")
        logger.info("employee_created", extra={"employee_id": str(model.id)})
        return model.to_dto()

    # =========================================================================
    # Entries
    # =========================================================================

    def calculate(
        self,
        role: Role,
        shift: Shift,
        entry_time: datetime,
        exit_time: datetime,
    ) -> tuple[Decimal, OvertimeCalculation]:
        """Daily rate for ``shift`` and the resulting pay calculation."""
        rules = self._config.overtime
        daily_rate = role.daily_rate_for(shift)
        calculation = compute_overtime(
            entry_time,
            exit_time,
            daily_rate,
            hours_per_daily_rate=rules.hours_per_daily_rate,
            round_up_digit_threshold=rules.round_up_digit_threshold,
        )
        return daily_rate, calculation

    def create_entry(
        self,
        actor_id: UUID,
        *,
        company_id: UUID,
        contract_id: UUID,
        employee_id: UUID,
        role_id: UUID,
        entry_time: datetime,
        exit_time: datetime,
        shift: Shift | str,
        notes: str | None = None,
    ) -> OvertimeEntry:
        shift = self._coerce_shift(shift)
        self._load_employee(employee_id)
        role = self._load_role(role_id).to_dto()
        daily_rate, calculation = self.calculate(role, shift, entry_time, exit_time)

        model = OvertimeEntryModel(
            id=uuid4(),
            company_id=company_id,
            contract_id=contract_id,
            employee_id=employee_id,
            role_id=role_id,
            entry_time=entry_time,
            exit_time=exit_time,
            shift=shift.value,
            daily_rate=daily_rate,
            duration_hours=calculation.duration_hours,
            hourly_rate=calculation.hourly_rate,
            total=calculation.total,
            notes=notes,
            created_by_id=actor_id,
        )
        self._persist(model, "create_overtime_entry")

        logger.info("overtime_entry_created", extra={
            "entry_id": str(model.id),
            "employee_id": str(employee_id),
            "duration_hours": str(calculation.duration_hours),
            "total": str(calculation.total),
        })
        return model.to_dto()

    def update_entry(self, entry_id: UUID, actor_id: UUID, **changes: Any) -> OvertimeEntry:
        unknown = set(changes) - _EDITABLE_FIELDS
        if unknown:
            raise ValidationError(sorted(unknown)[0], "field cannot be edited")
        if "shift" in changes:
            changes["shift"] = self._coerce_shift(changes["shift"])

        model = self._load_entry(entry_id)
        if _RECALCULATION_FIELDS & set(changes):
            role = self._load_role(changes.get("role_id", model.role_id)).to_dto()
            daily_rate, calculation = self.calculate(
                role,
                changes.get("shift", Shift(model.shift)),
                changes.get("entry_time", model.entry_time),
                changes.get("exit_time", model.exit_time),
            )
            model.daily_rate = daily_rate
            model.duration_hours = calculation.duration_hours
            model.hourly_rate = calculation.hourly_rate
            model.total = calculation.total

        for key, value in changes.items():
            setattr(model, key, value.value if isinstance(value, Shift) else value)
        model.updated_by_id = actor_id
        self._persist(model, "update_overtime_entry")

        logger.info("overtime_entry_updated", extra={
            "entry_id": str(entry_id),
            "fields": sorted(changes),
            "total": str(model.total),
        })
        return model.to_dto()

    def delete_entry(self, entry_id: UUID, actor_id: UUID) -> None:
        model = self._load_entry(entry_id)
        model.deleted_at = self._clock.now()
        model.updated_by_id = actor_id
        self._persist(model, "delete_overtime_entry")
        logger.info("overtime_entry_deleted", extra={"entry_id": str(entry_id)})

    def delete_all_by_employee(
        self,
        employee_id: UUID,
        period: Competency,
        actor_id: UUID | None = None,
    ) -> int:
        """Soft-delete every entry of the employee whose entry time is in ``period``."""
        start, end = _month_bounds(period)
        stmt = (
            select(OvertimeEntryModel)
            .where(OvertimeEntryModel.employee_id == employee_id)
            .where(OvertimeEntryModel.entry_time >= start)
            .where(OvertimeEntryModel.entry_time < end)
            .where(OvertimeEntryModel.deleted_at.is_(None))
        )
        now = self._clock.now()
        try:
            rows = self._session.scalars(stmt).all()
            for row in rows:
                row.deleted_at = now
                row.updated_by_id = actor_id
            self._session.commit()
        except SQLAlchemyError as exc:
            self._session.rollback()
            logger.error("delete_all_by_employee_failed", exc_info=True)
            raise PersistenceError("delete_all_by_employee", str(getattr(exc, "orig", None) or exc)) from exc

        removed = len(rows)
        logger.info("overtime_entries_deleted_for_employee", extra={
            "employee_id": str(employee_id),
            "period": str(period),
            "removed_count": removed,
        })
        return removed

    def get_entry(self, entry_id: UUID) -> OvertimeEntry:
        return self._load_entry(entry_id).to_dto()

    # =========================================================================
    # Queries
    # =========================================================================

    def list_by_competency(self, period: Competency, company_id: UUID | None = None) -> list[OvertimeEntry]:
        """Live entries whose entry time falls in ``period``, oldest first."""
        start, end = _month_bounds(period)
        stmt = (
            select(OvertimeEntryModel)
            .where(OvertimeEntryModel.deleted_at.is_(None))
            .where(OvertimeEntryModel.entry_time >= start)
            .where(OvertimeEntryModel.entry_time < end)
        )
        if company_id is not None:
            stmt = stmt.where(OvertimeEntryModel.company_id == company_id)
        stmt = stmt.order_by(OvertimeEntryModel.entry_time)
        return [row.to_dto() for row in self._session.scalars(stmt).all()]

    def group_by_employee(self, period: Competency) -> list[EmployeeOvertimeSummary]:
        """Per-employee count, total and company split, sorted by employee name."""
        entries = self.list_by_competency(period)
        employee_ids = {entry.employee_id for entry in entries}
        names: dict[UUID, str] = {}
        if employee_ids:
            rows = self._session.execute(
                select(EmployeeModel.id, EmployeeModel.name).where(EmployeeModel.id.in_(employee_ids))
            ).all()
            names = {row.id: row.name for row in rows}

        grouped: dict[UUID, list[OvertimeEntry]] = {}
        for entry in entries:
            grouped.setdefault(entry.employee_id, []).append(entry)

        summaries = []
        for employee_id, employee_entries in grouped.items():
            totals = self.totals_by_company(employee_entries)
            summaries.append(EmployeeOvertimeSummary(
                employee_id=employee_id,
                employee_name=names.get(employee_id, "N/A"),
                count=len(employee_entries),
                total=totals.overall,
                totals_by_company=totals.by_company,
                entries=tuple(employee_entries),
            ))
        summaries.sort(key=lambda summary: summary.employee_name.casefold())
        return summaries

    @staticmethod
    def totals_by_company(entries: Iterable[OvertimeEntry]) -> OvertimeTotals:
        overall = ZERO
        by_company: dict[UUID, Decimal] = {}
        for entry in entries:
            overall += entry.total
            by_company[entry.company_id] = by_company.get(entry.company_id, ZERO) + entry.total
        return OvertimeTotals(overall=overall, by_company=by_company)

    # =========================================================================
    # Internals
    # =========================================================================

    @staticmethod
    def _coerce_shift(shift: Shift | str) -> Shift:
        if isinstance(shift, Shift):
            return shift
        try:
            return Shift(shift)
        except ValueError:
            raise ValidationError("shift", f"unknown shift: {shift!r}") from None

    def _load_role(self, role_id: UUID) -> RoleModel:
        model = self._session.get(RoleModel, role_id)
        if model is None:
            raise RoleNotFoundError(role_id)
        return model

    def _load_employee(self, employee_id: UUID) -> EmployeeModel:
        model = self._session.get(EmployeeModel, employee_id)
        if model is None:
            raise EmployeeNotFoundError(employee_id)
        return model

    def _load_entry(self, entry_id: UUID) -> OvertimeEntryModel:
        model = self._session.get(OvertimeEntryModel, entry_id)
        if model is None or model.deleted_at is not None:
            raise OvertimeEntryNotFoundError(entry_id)
        return model

    def _persist(self, model, operation: str) -> None:
        try:
            self._session.add(model)
            self._session.commit()
        except SQLAlchemyError as exc:
            self._session.rollback()
            logger.error(f"{operation}_failed", exc_info=True)
            raise PersistenceError(operation, str(getattr(exc, "orig", None) or exc)) from exc
