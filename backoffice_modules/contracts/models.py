"""
Contract Domain Models (``backoffice_modules.contracts.models``).

Responsibility
--------------
Frozen dataclass value objects for companies and the service contracts
they bill every month.  A contract carries the monthly value, billing and
due days, the six withholding flags, the ISS percentage and the technical
retention settings read by invoice generation.

Architecture position
---------------------
**Modules layer** -- pure data definitions with ZERO I/O.

Invariants enforced
-------------------
* All models are ``frozen=True``.
* All monetary fields use ``Decimal`` -- NEVER ``float``.
* Percentages are user-facing (5 means 5 %).
"""

from dataclasses import dataclass
from datetime import date
from decimal import Decimal
from uuid import UUID


@dataclass(frozen=True)
class Company:
    """A company of the group (owner of contracts and employees)."""
    id: UUID
    name: str
    is_active: bool = True


@dataclass(frozen=True)
class Contract:
    """A monthly service contract for one work post."""
    id: UUID
    company_id: UUID
    post_name: str
    monthly_value: Decimal
    billing_day: int
    due_day: int
    client_name: str | None = None
    active: bool = True
    due_in_current_month: bool = True
    withhold_iss: bool = False
    withhold_pis: bool = False
    withhold_cofins: bool = False
    withhold_irpj: bool = False
    withhold_csll: bool = False
    withhold_inss: bool = False
    iss_percentage: Decimal = Decimal("0")
    technical_retention: bool = False
    technical_retention_percentage: Decimal = Decimal("0")
    start_date: date | None = None
    duration_months: int | None = None
    notes: str | None = None

    def withholds(self, kind: str) -> bool:
        """Whether the withholding flag for ``kind`` (e.g. "pis") is set."""
        return bool(getattr(self, f"withhold_{kind}"))
