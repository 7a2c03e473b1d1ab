"""
Contracts Module.

Companies and the monthly service contracts they bill.
"""

from backoffice_modules.contracts.models import Company, Contract

__all__ = [
    "Company",
    "Contract",
]
