"""
Overtime Module.

Overtime shifts (servicos extras) worked by employees at contract posts,
paid from the daily overtime rate of their role.
"""

from backoffice_modules.overtime.helpers import compute_overtime, special_round
from backoffice_modules.overtime.models import (
    Employee,
    EmployeeOvertimeSummary,
    OvertimeCalculation,
    OvertimeEntry,
    OvertimeTotals,
    Role,
    Shift,
)

__all__ = [
    "Employee",
    "EmployeeOvertimeSummary",
    "OvertimeCalculation",
    "OvertimeEntry",
    "OvertimeTotals",
    "Role",
    "Shift",
    "compute_overtime",
    "special_round",
]
