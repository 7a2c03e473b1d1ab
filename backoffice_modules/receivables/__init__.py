"""
Receivables Module.

Amounts to collect, created from confirmed invoices or registered
standalone.
"""

from backoffice_modules.receivables.models import (
    DEFAULT_STANDALONE_DESCRIPTION,
    Receivable,
    ReceivableKind,
    ReceivableStatus,
    ReceivableSummary,
)

__all__ = [
    "DEFAULT_STANDALONE_DESCRIPTION",
    "Receivable",
    "ReceivableKind",
    "ReceivableStatus",
    "ReceivableSummary",
]
