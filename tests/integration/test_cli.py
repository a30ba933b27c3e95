"""Tests for the command line interface against a SQLite file."""

import asyncio
import json
from datetime import date
from decimal import Decimal

import pytest

from workday_ledger.cli import main
from workday_ledger.config import get_settings
from workday_ledger.database import create_schema, get_engine, make_session_factory
from workday_ledger.stores import SqlEmployeeStore, SqlPaymentRecordStore, SqlWorkRecordStore
from tests.conftest import make_payment, make_work_day


@pytest.fixture(autouse=True)
def isolated_settings(monkeypatch):
    monkeypatch.setattr("workday_ledger.config.load_dotenv", lambda: None)
    for name in ("DATABASE_URL", "SHRINK_AMOUNT_POLICY", "LOG_LEVEL"):
        monkeypatch.delenv(name, raising=False)
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


def seed(database_url, employee, work_days=(), payments=()):
    async def _seed():
        engine = get_engine(database_url)
        await create_schema(engine)
        factory = make_session_factory(engine)
        try:
            await SqlEmployeeStore(factory).put(employee)
            for record in work_days:
                await SqlWorkRecordStore(factory).put(record)
            for payment in payments:
                await SqlPaymentRecordStore(factory).put(payment)
        finally:
            await engine.dispose()

    asyncio.run(_seed())


def read_work_day(database_url, day_id):
    async def _read():
        engine = get_engine(database_url)
        try:
            return await SqlWorkRecordStore(make_session_factory(engine)).get(day_id)
        finally:
            await engine.dispose()

    return asyncio.run(_read())


def run_cli(capsys, database_url, *args):
    code = main(["--database-url", database_url, *args])
    out = capsys.readouterr().out
    return code, out


class TestCli:
    """Test CLI commands."""

    def test_no_command_prints_help(self, capsys):
        assert main([]) == 1

    def test_init_db(self, capsys, database_url):
        code, out = run_cli(capsys, database_url, "init-db")

        assert code == 0
        assert "Document tables ready." in out

    def test_validate_and_repair(self, capsys, database_url, employee):
        seed(
            database_url,
            employee,
            work_days=[
                make_work_day("d1", date(2024, 6, 3), paid=True),
                make_work_day("d2", date(2024, 6, 4)),
            ],
            payments=[make_payment("p1", ["d2"], Decimal("50"))],
        )

        code, out = run_cli(capsys, database_url, "validate")
        report = json.loads(out)
        assert code == 1
        assert report["isValid"] is False
        assert report["orphanedWorkDays"] == ["d1"]
        assert report["orphanedPayments"] == ["p1"]

        code, out = run_cli(capsys, database_url, "repair", "--dry-run")
        assert code == 0
        assert json.loads(out)["dryRun"] is True
        assert read_work_day(database_url, "d1").paid is True

        code, out = run_cli(capsys, database_url, "repair")
        result = json.loads(out)
        assert code == 0
        assert result["success"] is True
        assert {a["kind"] for a in result["repairActions"]} == {"mark_unpaid", "mark_paid"}

        code, out = run_cli(capsys, database_url, "validate")
        assert code == 0
        assert json.loads(out)["isValid"] is True

    def test_stats(self, capsys, database_url, employee):
        seed(
            database_url,
            employee,
            work_days=[
                make_work_day("d1", date(2024, 6, 3), paid=True),
                make_work_day("d2", date(2024, 6, 4)),
            ],
        )

        code, out = run_cli(capsys, database_url, "stats", "--employee-id", "emp-1")

        assert code == 0
        assert json.loads(out) == {
            "employeeId": "emp-1",
            "totalWorked": 2,
            "totalPaid": 1,
            "totalEarned": "100.00",
            "totalOwed": "50.00",
        }

    def test_stats_unknown_employee(self, capsys, database_url, employee):
        seed(database_url, employee)

        code = main(["--database-url", database_url, "stats", "--employee-id", "nobody"])

        assert code == 2
        assert "nobody" in capsys.readouterr().err

    def test_delete_payment(self, capsys, database_url, employee):
        seed(
            database_url,
            employee,
            work_days=[
                make_work_day("d1", date(2024, 6, 3), paid=True),
                make_work_day("d2", date(2024, 6, 4), paid=True),
            ],
            payments=[make_payment("p1", ["d1", "d2"], Decimal("100"))],
        )

        code, out = run_cli(capsys, database_url, "delete-payment", "--payment-id", "p1")
        result = json.loads(out)

        assert code == 0
        assert result["complete"] is True
        assert result["deletedPaymentIds"] == ["p1"]
        assert result["unmarkedWorkDayIds"] == ["d1", "d2"]
        assert read_work_day(database_url, "d1").paid is False

    def test_delete_employee(self, capsys, database_url, employee):
        seed(
            database_url,
            employee,
            work_days=[
                make_work_day("d1", date(2024, 6, 3), paid=True),
                make_work_day("d2", date(2024, 6, 4)),
                make_work_day("x1", date(2024, 6, 3), employee_id="emp-2"),
            ],
            payments=[make_payment("p1", ["d1"], Decimal("50"))],
        )

        code, out = run_cli(capsys, database_url, "delete-employee", "--employee-id", "emp-1")
        result = json.loads(out)

        assert code == 0
        assert result["complete"] is True
        assert result["deletedPaymentIds"] == ["p1"]
        assert sorted(result["deletedWorkDayIds"]) == ["d1", "d2"]
        assert result["employeeDeleted"] is True
        assert read_work_day(database_url, "d1") is None
        assert read_work_day(database_url, "x1") is not None

    def test_database_url_from_environment(self, capsys, monkeypatch, database_url):
        monkeypatch.setenv("DATABASE_URL", database_url)

        assert main(["init-db"]) == 0
        assert "Document tables ready." in capsys.readouterr().out
