"""
Receivable Domain Models (``backoffice_modules.receivables.models``).

Responsibility
--------------
Frozen dataclass value objects for receivables (recebimentos): money the
company expects to collect, either materialized from a confirmed invoice
or registered standalone ("avulso").

Architecture position
---------------------
**Modules layer** -- pure data definitions with ZERO I/O.

Invariants enforced
-------------------
* All models are ``frozen=True``.
* ``invoice_id`` and ``contract_id`` are None exactly for avulso kinds.
* ``received_date`` is set iff status is ``Recebido``.
"""

from dataclasses import dataclass
from datetime import date
from decimal import Decimal
from enum import Enum
from uuid import UUID


class ReceivableStatus(Enum):
    PENDING = "Pendente"
    RECEIVED = "Recebido"


class ReceivableKind(Enum):
    """Where a receivable came from."""
    INVOICE = "Faturamento"
    STANDALONE = "Avulso"


DEFAULT_STANDALONE_DESCRIPTION = "Recebimento Avulso"


@dataclass(frozen=True)
class Receivable:
    """An amount to collect on a due date."""
    id: UUID
    company_id: UUID
    kind: ReceivableKind
    description: str
    competency: date
    due_date: date
    amount: Decimal
    status: ReceivableStatus = ReceivableStatus.PENDING
    invoice_id: UUID | None = None
    contract_id: UUID | None = None
    received_date: date | None = None
    notes: str | None = None

    @property
    def is_received(self) -> bool:
        return self.status is ReceivableStatus.RECEIVED


@dataclass(frozen=True)
class ReceivableSummary:
    """Totals over a list of receivables."""
    count: int
    total: Decimal
    received: Decimal
    pending: Decimal
