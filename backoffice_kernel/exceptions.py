"""
Typed Exception Hierarchy for the Back-office Kernel.

===============================================================================
WHY TYPED EXCEPTIONS
===============================================================================

Every failure in this core is scoped to one record and reported back to the
caller for display.  Callers decide what to show by exception TYPE and
``code``, never by parsing messages:

    try:
        billing.update_invoice(invoice_id, actor_id, ...)
    except InvoiceNotEditableError as e:
        show_warning(f"Invoice {e.invoice_id} is already {e.status}")
    except NotFoundError as e:
        show_error(e.code)

===============================================================================
EXCEPTION HIERARCHY
===============================================================================

    BackofficeError (base)
    |
    +-- ValidationError
    |   +-- InvalidStatusTransitionError
    |   +-- InvoiceNotEditableError
    |
    +-- DuplicateInvoiceError
    |
    +-- PersistenceError
    |
    +-- NotFoundError
        +-- ContractNotFoundError
        +-- InvoiceNotFoundError
        +-- ReceivableNotFoundError
        +-- RoleNotFoundError
        +-- EmployeeNotFoundError
        +-- OvertimeEntryNotFoundError

===============================================================================
ERROR CODES - QUICK REFERENCE
===============================================================================

Category     | Code                        | When Raised
-------------|-----------------------------|--------------------------------------
Validation   | VALIDATION_ERROR            | Missing/malformed input, before I/O
             | INVALID_STATUS_TRANSITION   | e.g. confirming a Faturado invoice
             | INVOICE_NOT_EDITABLE        | Editing an invoice that is not Pendente
-------------|-----------------------------|--------------------------------------
Duplicate    | DUPLICATE_INVOICE           | Invoice exists for contract+competency
             |                             | (becomes "skipped" in generation)
-------------|-----------------------------|--------------------------------------
Persistence  | PERSISTENCE_ERROR           | Data store failure on read/write
-------------|-----------------------------|--------------------------------------
Not found    | CONTRACT_NOT_FOUND          | Contract id missing or soft-deleted
             | INVOICE_NOT_FOUND           | Invoice id missing or soft-deleted
             | RECEIVABLE_NOT_FOUND        | Receivable id missing or soft-deleted
             | ROLE_NOT_FOUND              | Role (cargo) id missing
             | EMPLOYEE_NOT_FOUND          | Employee id missing
             | OVERTIME_ENTRY_NOT_FOUND    | Overtime entry id missing

===============================================================================
HANDLING PATTERNS
===============================================================================

1. DUPLICATES ARE NOT FAILURES during invoice generation:

    try:
        repository.insert_invoice(invoice, actor_id)
    except DuplicateInvoiceError:
        skipped += 1

2. PERSISTENCE ERRORS ARE COLLECTED per contract in batch operations and
   raised directly by single-record operations (after rollback).

3. NOTHING HERE IS FATAL to the process.  No operation retries internally;
   the user retries by repeating the action.
"""

from datetime import date
from uuid import UUID


class BackofficeError(Exception):
    """
    Base exception for all back-office errors.

    All subclasses carry a ``code`` class attribute for machine-readable
    error identification.
    """

    code: str = "BACKOFFICE_ERROR"


# Validation


class ValidationError(BackofficeError):
    """Malformed or missing required input, raised before any persistence."""

    code: str = "VALIDATION_ERROR"

    def __init__(self, field: str, message: str):
        self.field = field
        super().__init__(f"Invalid {field}: {message}")


class InvalidStatusTransitionError(ValidationError):
    """Requested status change is not allowed from the current status."""

    code: str = "INVALID_STATUS_TRANSITION"

    def __init__(self, record_id: UUID, current_status: str, target_status: str):
        self.record_id = record_id
        self.current_status = current_status
        self.target_status = target_status
        super().__init__(
            "status",
            f"cannot move {record_id} from {current_status} to {target_status}",
        )


class InvoiceNotEditableError(ValidationError):
    """Invoice amounts and dates may only change while Pendente."""

    code: str = "INVOICE_NOT_EDITABLE"

    def __init__(self, invoice_id: UUID, status: str):
        self.invoice_id = invoice_id
        self.status = status
        super().__init__(
            "status", f"invoice {invoice_id} is {status} and cannot be edited"
        )


# Duplicates


class DuplicateInvoiceError(BackofficeError):
    """An invoice already exists for the contract in the competency month."""

    code: str = "DUPLICATE_INVOICE"

    def __init__(self, contract_id: UUID, competency: date):
        self.contract_id = contract_id
        self.competency = competency
        super().__init__(
            f"Invoice already exists for contract {contract_id} "
            f"in competency {competency:%Y-%m}"
        )


# Persistence


class PersistenceError(BackofficeError):
    """The data store rejected or failed a read/write."""

    code: str = "PERSISTENCE_ERROR"

    def __init__(self, operation: str, detail: str):
        self.operation = operation
        self.detail = detail
        super().__init__(f"{operation} failed: {detail}")


# Not found


class NotFoundError(BackofficeError):
    """Operation targeted a record that does not exist."""

    code: str = "NOT_FOUND"
    entity: str = "record"

    def __init__(self, record_id: UUID):
        self.record_id = record_id
        super().__init__(f"{self.entity} not found: {record_id}")


class ContractNotFoundError(NotFoundError):
    code: str = "CONTRACT_NOT_FOUND"
    entity: str = "Contract"


class InvoiceNotFoundError(NotFoundError):
    code: str = "INVOICE_NOT_FOUND"
    entity: str = "Invoice"


class ReceivableNotFoundError(NotFoundError):
    code: str = "RECEIVABLE_NOT_FOUND"
    entity: str = "Receivable"


class RoleNotFoundError(NotFoundError):
    code: str = "ROLE_NOT_FOUND"
    entity: str = "Role"


class EmployeeNotFoundError(NotFoundError):
    code: str = "EMPLOYEE_NOT_FOUND"
    entity: str = "Employee"


class OvertimeEntryNotFoundError(NotFoundError):
    code: str = "OVERTIME_ENTRY_NOT_FOUND"
    entity: str = "Overtime entry"
