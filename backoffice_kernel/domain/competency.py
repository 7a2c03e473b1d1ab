"""
Competency -- the calendar month a financial record belongs to.

Responsibility:
    Immutable year-month value used as the billing period, the duplicate
    key for invoices and the filter for receivables and overtime entries.
    Also owns the "cap the day to the end of the month" date rule used for
    billing and due dates.

Architecture position:
    Kernel > Domain -- pure, zero I/O.

Failure modes:
    - ValidationError on malformed "YYYY-MM" strings or month out of 1..12.
"""

from __future__ import annotations

import calendar
import re
from dataclasses import dataclass
from datetime import date, datetime

from backoffice_kernel.exceptions import ValidationError

_PERIOD_PATTERN = re.compile(r"(\d{4})-(\d{2})(?:-\d{2})?")


@dataclass(frozen=True, order=True)
class Competency:
    """A year-month period such as 2026-02."""

    year: int
    month: int

    def __post_init__(self):
        if not 1 <= self.month <= 12:
            raise ValidationError("period", f"month must be 1..12, got {self.month}")
        if self.year < 1:
            raise ValidationError("period", f"year must be positive, got {self.year}")

    @classmethod
    def parse(cls, value: str) -> Competency:
        """Parse a ``YYYY-MM`` string (a trailing ``-DD`` is tolerated)."""
        if not value:
            raise ValidationError("period", "period is required")
        match = _PERIOD_PATTERN.fullmatch(value.strip())
        if match is None:
            raise ValidationError("period", f"expected YYYY-MM, got {value!r}")
        return cls(int(match.group(1)), int(match.group(2)))

    @classmethod
    def of(cls, value: date | datetime) -> Competency:
        """Competency containing the given date."""
        return cls(value.year, value.month)

    @property
    def first_day(self) -> date:
        return date(self.year, self.month, 1)

    @property
    def last_day(self) -> date:
        return date(self.year, self.month, self.days_in_month)

    @property
    def days_in_month(self) -> int:
        return calendar.monthrange(self.year, self.month)[1]

    def next(self) -> Competency:
        """The following month (December rolls into January)."""
        if self.month == 12:
            return Competency(self.year + 1, 1)
        return Competency(self.year, self.month + 1)

    def day(self, day: int) -> date:
        """
        Date for ``day`` within this month, capped at the last day.

        Day 31 in February becomes the last day of February; it never rolls
        into the next month.
        """
        if day < 1:
            raise ValidationError("day", f"day must be >= 1, got {day}")
        return date(self.year, self.month, min(day, self.days_in_month))

    def contains(self, value: date | datetime) -> bool:
        return value.year == self.year and value.month == self.month

    def __str__(self) -> str:
        return f"{self.year:04d}-{self.month:02d}"
