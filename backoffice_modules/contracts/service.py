"""
Contract Service - company and contract maintenance.

Back-office users create, edit and soft-delete contracts; invoice
generation only reads them.  Validation happens before anything is
written.  This service owns the transaction boundary: commit on success,
rollback on failure.

Usage:
    service = ContractService(session)
    contract = service.create_contract(
        company_id=company.id, actor_id=actor_id,
        post_name="Portaria Central", monthly_value=Decimal("10000.00"),
        billing_day=20, due_day=10, due_in_current_month=False,
        withhold_iss=True, iss_percentage=Decimal("5"),
    )
"""

from __future__ import annotations

from dataclasses import fields as dataclass_fields
from decimal import Decimal
from typing import Any
from uuid import UUID, uuid4

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from backoffice_config import BackofficeConfig, get_active_config
from backoffice_kernel.db.types import HUNDRED, ZERO, to_decimal
from backoffice_kernel.domain.clock import Clock, SystemClock
from backoffice_kernel.exceptions import (
    ContractNotFoundError,
    PersistenceError,
    ValidationError,
)
from backoffice_kernel.logging_config import get_logger
from backoffice_modules.contracts.models import Company, Contract
from backoffice_modules.contracts.orm import CompanyModel, ContractModel

logger = get_logger("modules.contracts.service")

_EDITABLE_FIELDS = frozenset(
    f.name for f in dataclass_fields(Contract) if f.name not in ("id", "company_id")
)


def _to_int(value: Any, field: str) -> int:
    if isinstance(value, bool):
        raise ValidationError(field, "boolean is not a number")
    try:
        return int(value)
    except (TypeError, ValueError) as exc:
        raise ValidationError(field, f"expected a whole number, got {value!r}") from exc


def validate_contract_fields(values: dict[str, Any]) -> dict[str, Any]:
    """
    Normalize and validate contract input.

    Returns a copy with Decimal amounts.  Raises ``ValidationError`` on the
    first invalid field.
    """
    cleaned = dict(values)

    if "post_name" in cleaned:
        name = (cleaned["post_name"] or "").strip()
        if not name:
            raise ValidationError("post_name", "post name is required")
        cleaned["post_name"] = name

    if "monthly_value" in cleaned:
        value = to_decimal(cleaned["monthly_value"], "monthly_value")
        if value < ZERO:
            raise ValidationError("monthly_value", "must not be negative")
        cleaned["monthly_value"] = value

    for day_field in ("billing_day", "due_day"):
        if day_field in cleaned and cleaned[day_field] is not None:
            day = _to_int(cleaned[day_field], day_field)
            if not 1 <= day <= 31:
                raise ValidationError(day_field, f"must be between 1 and 31, got {day}")
            cleaned[day_field] = day

    for pct_field in ("iss_percentage", "technical_retention_percentage"):
        if pct_field in cleaned:
            pct = to_decimal(cleaned[pct_field], pct_field)
            if pct < ZERO or pct > HUNDRED:
                raise ValidationError(pct_field, f"must be between 0 and 100, got {pct}")
            cleaned[pct_field] = pct

    if cleaned.get("duration_months") is not None:
        months = _to_int(cleaned["duration_months"], "duration_months")
        if months <= 0:
            raise ValidationError("duration_months", "must be positive")
        cleaned["duration_months"] = months

    return cleaned


class ContractService:
    """
    Maintains companies and contracts.

    Soft-deleted contracts are invisible to every read in this service and
    are never billed.
    """

    def __init__(
        self,
        session: Session,
        clock: Clock | None = None,
        config: BackofficeConfig | None = None,
    ):
        self._session = session
        self._clock = clock or SystemClock()
        self._config = config or get_active_config()

    # =========================================================================
    # Companies
    # =========================================================================

    def create_company(self, name: str, actor_id: UUID) -> Company:
        name = (name or "").strip()
        if not name:
            raise ValidationError("name", "company name is required")
        model = CompanyModel(id=uuid4(), name=name, created_by_id=actor_id)
        self._persist(model, "create_company")
        logger.info("company_created", extra={"company_id": str(model.id), "company_name": name})
        return model.to_dto()

    def list_companies(self) -> list[Company]:
        rows = self._session.scalars(
            select(CompanyModel).order_by(CompanyModel.name)
        ).all()
        return [row.to_dto() for row in rows]

    # =========================================================================
    # Contracts
    # =========================================================================

    def create_contract(
        self,
        company_id: UUID,
        actor_id: UUID,
        *,
        post_name: str,
        monthly_value: Decimal,
        billing_day: int | None = None,
        due_day: int | None = None,
        due_in_current_month: bool | None = None,
        **options: Any,
    ) -> Contract:
        """
        Create a contract.  Billing/due day and due-month defaults come from
        configuration when not supplied.
        """
        unknown = set(options) - _EDITABLE_FIELDS
        if unknown:
            raise ValidationError(sorted(unknown)[0], "unknown contract field")

        defaults = self._config.billing_defaults
        values = validate_contract_fields({
            "post_name": post_name,
            "monthly_value": monthly_value,
            "billing_day": billing_day if billing_day is not None else defaults.billing_day,
            "due_day": due_day if due_day is not None else defaults.due_day,
            "due_in_current_month": (
                due_in_current_month
                if due_in_current_month is not None
                else defaults.due_in_current_month
            ),
            **options,
        })

        contract = Contract(id=uuid4(), company_id=company_id, **values)
        model = ContractModel.from_dto(contract, created_by_id=actor_id)
        self._persist(model, "create_contract")

        logger.info("contract_created", extra={
            "contract_id": str(contract.id),
            "company_id": str(company_id),
            "monthly_value": str(contract.monthly_value),
        })
        return model.to_dto()

    def update_contract(self, contract_id: UUID, actor_id: UUID, **changes: Any) -> Contract:
        unknown = set(changes) - _EDITABLE_FIELDS
        if unknown:
            raise ValidationError(sorted(unknown)[0], "unknown contract field")
        values = validate_contract_fields(changes)

        model = self._load(contract_id)
        for key, value in values.items():
            setattr(model, key, value)
        model.updated_by_id = actor_id
        self._persist(model, "update_contract")

        logger.info("contract_updated", extra={
            "contract_id": str(contract_id),
            "fields": sorted(values),
        })
        return model.to_dto()

    def delete_contract(self, contract_id: UUID, actor_id: UUID) -> None:
        """Soft delete: the contract disappears from lists and billing."""
        model = self._load(contract_id)
        model.deleted_at = self._clock.now()
        model.updated_by_id = actor_id
        self._persist(model, "delete_contract")
        logger.info("contract_deleted", extra={"contract_id": str(contract_id)})

    def get_contract(self, contract_id: UUID) -> Contract:
        return self._load(contract_id).to_dto()

    def list_contracts(self, company_id: UUID | None = None) -> list[Contract]:
        stmt = select(ContractModel).where(ContractModel.deleted_at.is_(None))
        if company_id is not None:
            stmt = stmt.where(ContractModel.company_id == company_id)
        stmt = stmt.order_by(ContractModel.post_name)
        return [row.to_dto() for row in self._session.scalars(stmt).all()]

    # =========================================================================
    # Internals
    # =========================================================================

    def _load(self, contract_id: UUID) -> ContractModel:
        model = self._session.get(ContractModel, contract_id)
        if model is None or model.deleted_at is not None:
            raise ContractNotFoundError(contract_id)
        return model

    def _persist(self, model, operation: str) -> None:
        try:
            self._session.add(model)
            self._session.commit()
        except SQLAlchemyError as exc:
            self._session.rollback()
            logger.error(f"{operation}_failed", exc_info=True)
            raise PersistenceError(operation, str(getattr(exc, "orig", None) or exc)) from exc
