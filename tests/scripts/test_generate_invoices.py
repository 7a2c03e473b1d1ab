"""Tests for the generate_invoices command-line entrypoint."""

from __future__ import annotations

import importlib.util
import json
from decimal import Decimal
from pathlib import Path
from uuid import uuid4

import pytest

from backoffice_kernel.db.engine import create_tables, get_session, init_engine_from_url, reset_engine
from backoffice_modules.contracts.service import ContractService

SCRIPT = Path(__file__).resolve().parents[2] / "scripts" / "generate_invoices.py"


def _load_script():
    module_spec = importlib.util.spec_from_file_location("generate_invoices", SCRIPT)
    module = importlib.util.module_from_spec(module_spec)
    module_spec.loader.exec_module(module)
    return module


@pytest.fixture
def database(tmp_path):
    """A SQLite file with one company and one active contract."""
    url = f"sqlite:///{tmp_path / 'backoffice.db'}"
    init_engine_from_url(url)
    create_tables()
    actor_id = uuid4()
    session = get_session()
    service = ContractService(session)
    company = service.create_company("Vigilancia Alfa", actor_id)
    service.create_contract(
        company.id, actor_id, post_name="Portaria Central", monthly_value=Decimal("10000.00"),
    )
    session.close()
    yield url, company.id, actor_id
    reset_engine()


class TestGenerateInvoicesCommand:

    def test_prints_summary_and_is_rerunnable(self, database, capsys):
        url, company_id, actor_id = database
        script = _load_script()
        argv = [
            "--period", "2024-03",
            "--company", str(company_id),
            "--actor", str(actor_id),
            "--database-url", url,
        ]

        assert script.main(argv) == 0
        first = json.loads(capsys.readouterr().out)
        assert script.main(argv) == 0
        second = json.loads(capsys.readouterr().out)

        assert (first["created"], first["skipped"], first["errors"]) == (1, 0, [])
        assert (second["created"], second["skipped"]) == (0, 1)
        assert first["period"] == "2024-03"

    def test_bad_period_exits_with_usage_error(self, database, capsys):
        url, company_id, actor_id = database
        script = _load_script()

        code = script.main([
            "--period", "2024-13",
            "--company", str(company_id),
            "--actor", str(actor_id),
            "--database-url", url,
        ])

        assert code == 2
        assert "ERROR" in capsys.readouterr().err
