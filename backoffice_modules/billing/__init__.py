"""
Billing Module.

Monthly invoice generation per contract, invoice maintenance and the
confirm/undo lifecycle that drives receivables.
"""

from backoffice_modules.billing.models import (
    GenerationError,
    GenerationResult,
    Invoice,
    InvoiceAmounts,
    InvoiceStatus,
    TaxKind,
    WithholdingLine,
)

__all__ = [
    "GenerationError",
    "GenerationResult",
    "Invoice",
    "InvoiceAmounts",
    "InvoiceStatus",
    "TaxKind",
    "WithholdingLine",
]
