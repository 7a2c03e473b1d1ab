"""
Back-office services layer.

Persistence gateways shared by the billing and receivables modules.
"""

from backoffice_services.repository import (
    FinancialRepository,
    SqlFinancialRepository,
    unit_of_work,
)

__all__ = [
    "FinancialRepository",
    "SqlFinancialRepository",
    "unit_of_work",
]
