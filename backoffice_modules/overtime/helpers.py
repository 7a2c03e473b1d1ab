"""
Overtime Helpers (``backoffice_modules.overtime.helpers``).

Responsibility
--------------
Pure overtime pay arithmetic::

    duration_hours = whole minutes / 60             (2 places, half-up)
    hourly_rate    = daily_rate / 12                (2 places, half-up)
    total          = special_round(duration_hours * hourly_rate)

``special_round`` looks at the second decimal digit of the raw total,
truncated: at or above the threshold (6) the value is raised to the next
tenth, otherwise it is rounded half-up to cents.  Only the total gets the
special rule.

Architecture position
---------------------
**Modules layer** -- pure functions, no I/O.

Failure modes
-------------
* exit time not after entry time  -> ``ValidationError``.
* negative daily rate  -> ``ValidationError``.
"""

from __future__ import annotations

from datetime import datetime
from decimal import ROUND_CEILING, ROUND_DOWN, Decimal

from backoffice_kernel.db.types import ZERO, round_money, to_decimal
from backoffice_kernel.exceptions import ValidationError
from backoffice_modules.overtime.models import OvertimeCalculation

HOURS_PER_DAILY_RATE = 12
ROUND_UP_DIGIT_THRESHOLD = 6

_CENT = Decimal("0.01")
_TENTH = Decimal("0.1")


def duration_in_hours(entry_time: datetime, exit_time: datetime) -> Decimal:
    """Whole minutes between the two instants, in hours with 2 places."""
    if exit_time <= entry_time:
        raise ValidationError("exit_time", "exit time must be after entry time")
    minutes = int((exit_time - entry_time).total_seconds() // 60)
    return round_money(Decimal(minutes) / Decimal(60))


def hourly_rate_for(daily_rate: Decimal, hours_per_daily_rate: int = HOURS_PER_DAILY_RATE) -> Decimal:
    return round_money(daily_rate / Decimal(hours_per_daily_rate))


def special_round(value: Decimal, threshold: int = ROUND_UP_DIGIT_THRESHOLD) -> Decimal:
    """
    Overtime total rounding.

    >>> special_round(Decimal("123.456"))
    Decimal('123.46')
    >>> special_round(Decimal("123.467"))
    Decimal('123.50')
    """
    truncated = value.quantize(_CENT, rounding=ROUND_DOWN)
    second_digit = int(truncated.copy_abs() * 100) % 10
    if second_digit >= threshold:
        return value.quantize(_TENTH, rounding=ROUND_CEILING).quantize(_CENT)
    return round_money(value)


def compute_overtime(
    entry_time: datetime,
    exit_time: datetime,
    daily_rate,
    *,
    hours_per_daily_rate: int = HOURS_PER_DAILY_RATE,
    round_up_digit_threshold: int = ROUND_UP_DIGIT_THRESHOLD,
) -> OvertimeCalculation:
    """Pay for one overtime entry."""
    rate = to_decimal(daily_rate, "daily_rate")
    if rate < ZERO:
        raise ValidationError("daily_rate", "must not be negative")

    duration = duration_in_hours(entry_time, exit_time)
    hourly = hourly_rate_for(rate, hours_per_daily_rate)
    total = special_round(duration * hourly, round_up_digit_threshold)
    return OvertimeCalculation(duration_hours=duration, hourly_rate=hourly, total=total)
