"""
Module ORM Registry (``backoffice_modules._orm_registry``).

Ensures every module-level SQLAlchemy model is imported so that
``Base.metadata`` holds all table definitions before
``backoffice_kernel.db.create_tables()`` runs.
"""


def import_all_orm_models() -> None:
    """Import every ``backoffice_modules.*.orm`` module. Idempotent."""
    # Referenced tables first (companies -> contracts -> invoices -> receivables)
    # fmt: off
    import backoffice_modules.contracts.orm  # noqa: F401
    import backoffice_modules.billing.orm  # noqa: F401
    import backoffice_modules.receivables.orm  # noqa: F401
    import backoffice_modules.overtime.orm  # noqa: F401
    # fmt: on
