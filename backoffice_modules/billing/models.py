"""
Billing Domain Models (``backoffice_modules.billing.models``).

Responsibility
--------------
Frozen dataclass value objects for monthly invoices (faturamentos): the
withholding snapshot taken at generation time, the invoice itself, and the
summary returned by a generation run.

Architecture position
---------------------
**Modules layer** -- pure data definitions with ZERO I/O.  Consumed by
``BillingService`` and the financial repository.

Invariants enforced
-------------------
* All models are ``frozen=True`` (immutable after construction).
* All monetary fields use ``Decimal`` -- NEVER ``float``.
* ``Invoice.competency`` is always the first day of the competency month.
"""

from dataclasses import dataclass, field
from datetime import date
from decimal import Decimal
from enum import Enum
from uuid import UUID


class InvoiceStatus(Enum):
    """Invoice lifecycle states."""
    PENDING = "Pendente"
    INVOICED = "Faturado"


class TaxKind(Enum):
    """Withholding kinds, in the order they appear on the invoice."""
    ISS = "iss"
    PIS = "pis"
    COFINS = "cofins"
    IRPJ = "irpj"
    CSLL = "csll"
    INSS = "inss"


@dataclass(frozen=True)
class WithholdingLine:
    """One withholding of the invoice snapshot."""
    kind: TaxKind
    withheld: bool
    rate: Decimal  # fraction applied to gross (0.05 for 5 %)
    amount: Decimal


@dataclass(frozen=True)
class InvoiceAmounts:
    """Result of the invoice arithmetic for one contract and month."""
    gross_value: Decimal
    withholdings: tuple[WithholdingLine, ...]
    net_value: Decimal
    technical_retention_value: Decimal
    receivable_value: Decimal

    @property
    def total_withheld(self) -> Decimal:
        return sum((line.amount for line in self.withholdings), Decimal("0"))


@dataclass(frozen=True)
class Invoice:
    """A monthly invoice for one contract."""
    id: UUID
    company_id: UUID
    contract_id: UUID
    competency: date
    billing_date: date
    due_date: date
    gross_value: Decimal
    withholdings: tuple[WithholdingLine, ...]
    net_value: Decimal
    technical_retention_value: Decimal
    receivable_value: Decimal
    addition: Decimal = Decimal("0")
    discount: Decimal = Decimal("0")
    status: InvoiceStatus = InvoiceStatus.PENDING
    post_name: str | None = None
    notes: str | None = None

    @property
    def total_withheld(self) -> Decimal:
        return sum((line.amount for line in self.withholdings), Decimal("0"))

    def withholding(self, kind: TaxKind) -> WithholdingLine:
        for line in self.withholdings:
            if line.kind is kind:
                return line
        raise KeyError(kind)


@dataclass(frozen=True)
class GenerationError:
    """A contract that could not be billed in a generation run."""
    contract_id: UUID
    post_name: str | None
    error: str
    code: str


@dataclass(frozen=True)
class GenerationResult:
    """Summary of one ``BillingService.generate`` run."""
    created: int = 0
    skipped: int = 0
    errors: tuple[GenerationError, ...] = field(default_factory=tuple)
    invoice_ids: tuple[UUID, ...] = field(default_factory=tuple)

    @property
    def has_errors(self) -> bool:
        return bool(self.errors)
