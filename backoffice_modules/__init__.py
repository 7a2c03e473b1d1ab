"""
Back-office Modules.

Each module contains:
- Domain models (frozen dataclasses)
- ORM models (SQLAlchemy persistence)
- Helpers (pure calculations)
- Service (transaction-owning orchestration)

Modules:
- Contracts: Companies and monthly service contracts
- Billing: Monthly invoices with tax withholdings and technical retention
- Receivables: Receivables from confirmed invoices and standalone entries
- Overtime: Overtime entries and their special rounding
"""

from backoffice_modules import billing, contracts, overtime, receivables

__all__ = [
    "billing",
    "contracts",
    "overtime",
    "receivables",
]
