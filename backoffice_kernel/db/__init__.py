"""Database layer - engine, base classes and column types."""

from backoffice_kernel.db.base import UUID, Base, SoftDeleteMixin, TrackedBase, UUIDString
from backoffice_kernel.db.engine import (
    create_tables,
    get_engine,
    get_session,
    init_engine_from_url,
    session_scope,
)
from backoffice_kernel.db.types import HOURS, MONEY, PERCENTAGE, RATE, round_money

__all__ = [
    "init_engine_from_url",
    "get_engine",
    "get_session",
    "session_scope",
    "create_tables",
    "Base",
    "TrackedBase",
    "SoftDeleteMixin",
    "UUIDString",
    "UUID",
    "MONEY",
    "PERCENTAGE",
    "RATE",
    "HOURS",
    "round_money",
]
