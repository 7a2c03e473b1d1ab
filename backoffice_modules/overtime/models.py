"""
Overtime Domain Models (``backoffice_modules.overtime.models``).

Responsibility
--------------
Frozen dataclass value objects for overtime pay (servicos extras): roles
with their daily overtime rates, employees, the logged entries with their
pay snapshot, and the per-employee and per-company summaries.

Invariants enforced
-------------------
* All models are ``frozen=True``.
* ``OvertimeEntry.daily_rate`` is the role rate in force when the entry
  was calculated; later role changes do not touch stored entries.
"""

from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal
from enum import Enum
from uuid import UUID


class Shift(Enum):
    DAY = "Diurno"
    NIGHT = "Noturno"


@dataclass(frozen=True)
class Role:
    """A job role (cargo) and its overtime daily rates."""
    id: UUID
    name: str
    day_overtime_rate: Decimal
    night_overtime_rate: Decimal
    state: str | None = None

    def daily_rate_for(self, shift: Shift) -> Decimal:
        if shift is Shift.DAY:
            return self.day_overtime_rate
        return self.night_overtime_rate


@dataclass(frozen=True)
class Employee:
    id: UUID
    company_id: UUID
    name: str
    role_id: UUID | None = None
    is_active: bool = True


@dataclass(frozen=True)
class OvertimeCalculation:
    """Duration, hourly rate and rounded total of one overtime entry."""
    duration_hours: Decimal
    hourly_rate: Decimal
    total: Decimal


@dataclass(frozen=True)
class OvertimeEntry:
    """One overtime shift worked by an employee at a work post."""
    id: UUID
    company_id: UUID
    contract_id: UUID
    employee_id: UUID
    role_id: UUID
    entry_time: datetime
    exit_time: datetime
    shift: Shift
    daily_rate: Decimal
    duration_hours: Decimal
    hourly_rate: Decimal
    total: Decimal
    notes: str | None = None


@dataclass(frozen=True)
class EmployeeOvertimeSummary:
    """All entries of one employee in a competency month."""
    employee_id: UUID
    employee_name: str
    count: int
    total: Decimal
    totals_by_company: dict[UUID, Decimal] = field(default_factory=dict)
    entries: tuple[OvertimeEntry, ...] = ()


@dataclass(frozen=True)
class OvertimeTotals:
    """Overall and per-company overtime totals."""
    overall: Decimal
    by_company: dict[UUID, Decimal] = field(default_factory=dict)
