"""Workday ledger command line interface.

Provides operational tools for:
- Creating the document tables
- Integrity scans and repairs
- Per-employee stats
- Deleting a payment and unmarking its days
- Deleting an employee with their work days and payments

Usage:
    python -m workday_ledger init-db
    python -m workday_ledger validate
    python -m workday_ledger repair [--dry-run]
    python -m workday_ledger stats --employee-id X
    python -m workday_ledger delete-payment --payment-id X
    python -m workday_ledger delete-employee --employee-id X
"""

from __future__ import annotations

import argparse
import asyncio
import json
import logging
import sys
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from typing import Any, Awaitable, Callable

from workday_ledger.config import LOG_LEVELS, Settings, get_settings
from workday_ledger.database import create_schema, get_engine, make_session_factory
from workday_ledger.services import LedgerEngine, LedgerError
from workday_ledger.stores import SqlEmployeeStore, SqlPaymentRecordStore, SqlWorkRecordStore


def _print_json(data: Any) -> None:
    print(json.dumps(data, indent=2, default=str))


class LedgerCli:
    """Workday ledger command line interface."""

    def __init__(self) -> None:
        self.parser = self._build_parser()

    def _build_parser(self) -> argparse.ArgumentParser:
        """Build argument parser."""
        parser = argparse.ArgumentParser(
            prog="python -m workday_ledger",
            description="Work day / payment ledger operational tools",
        )
        parser.add_argument(
            "--database-url",
            type=str,
            help="Database URL (default: $DATABASE_URL)",
        )
        parser.add_argument(
            "--log-level",
            type=str.upper,
            choices=LOG_LEVELS,
            help="Log level (default: $LOG_LEVEL)",
        )
        subparsers = parser.add_subparsers(dest="command", help="Commands")

        subparsers.add_parser(
            "init-db",
            help="Create the document tables",
        )

        subparsers.add_parser(
            "validate",
            help="Scan work days and payments for inconsistencies",
        )

        repair = subparsers.add_parser(
            "repair",
            help="Repair inconsistencies found by validate",
        )
        repair.add_argument(
            "--dry-run",
            action="store_true",
            help="Show the scan without writing anything",
        )

        stats = subparsers.add_parser(
            "stats",
            help="Show worked/paid/owed totals for an employee",
        )
        stats.add_argument(
            "--employee-id",
            type=str,
            required=True,
            help="Employee ID",
        )

        delete_payment = subparsers.add_parser(
            "delete-payment",
            help="Delete a payment and mark its work days unpaid",
        )
        delete_payment.add_argument(
            "--payment-id",
            type=str,
            required=True,
            help="Payment ID",
        )

        delete_employee = subparsers.add_parser(
            "delete-employee",
            help="Delete an employee with their work days and payments",
        )
        delete_employee.add_argument(
            "--employee-id",
            type=str,
            required=True,
            help="Employee ID",
        )

        return parser

    def run(self, args: list[str] | None = None) -> int:
        """Run the CLI with given arguments."""
        parsed = self.parser.parse_args(args)

        if not parsed.command:
            self.parser.print_help()
            return 1

        settings = get_settings()
        logging.basicConfig(
            level=parsed.log_level or settings.log_level,
            format="%(asctime)s %(levelname)s %(name)s: %(message)s",
            stream=sys.stderr,
        )

        handlers: dict[str, Callable[[argparse.Namespace, LedgerEngine], Awaitable[int]]] = {
            "validate": self._cmd_validate,
            "repair": self._cmd_repair,
            "stats": self._cmd_stats,
            "delete-payment": self._cmd_delete_payment,
            "delete-employee": self._cmd_delete_employee,
        }

        database_url = parsed.database_url or settings.database_url
        if parsed.command == "init-db":
            return asyncio.run(self._cmd_init_db(database_url))

        handler = handlers.get(parsed.command)
        if handler is None:
            print(f"Unknown command: {parsed.command}", file=sys.stderr)
            return 1

        return asyncio.run(self._dispatch(handler, parsed, database_url, settings))

    async def _dispatch(
        self,
        handler: Callable[[argparse.Namespace, LedgerEngine], Awaitable[int]],
        args: argparse.Namespace,
        database_url: str,
        settings: Settings,
    ) -> int:
        async with self._open_engine(database_url, settings) as engine:
            try:
                return await handler(args, engine)
            except LedgerError as e:
                print(f"ERROR: {e}", file=sys.stderr)
                return 2

    @asynccontextmanager
    async def _open_engine(self, database_url: str, settings: Settings) -> AsyncIterator[LedgerEngine]:
        """Ledger engine over the SQL document stores."""
        db_engine = get_engine(database_url)
        factory = make_session_factory(db_engine)
        try:
            yield LedgerEngine(
                SqlWorkRecordStore(factory),
                SqlPaymentRecordStore(factory),
                employees=SqlEmployeeStore(factory),
                shrink_amount_policy=settings.shrink_amount_policy,
            )
        finally:
            await db_engine.dispose()

    async def _cmd_init_db(self, database_url: str) -> int:
        """Create the document tables."""
        db_engine = get_engine(database_url)
        try:
            await create_schema(db_engine)
        finally:
            await db_engine.dispose()
        print("Document tables ready.")
        return 0

    async def _cmd_validate(self, args: argparse.Namespace, engine: LedgerEngine) -> int:
        """Print the integrity report; non-zero exit when inconsistent."""
        report = await engine.validate_integrity()
        _print_json(report.to_dict())
        return 0 if report.is_valid else 1

    async def _cmd_repair(self, args: argparse.Namespace, engine: LedgerEngine) -> int:
        """Run the repair; non-zero exit when any repair write failed."""
        if args.dry_run:
            report = await engine.validate_integrity()
            _print_json({"dryRun": True, **report.to_dict()})
            return 0

        result = await engine.repair_integrity()
        _print_json(result.to_dict())
        return 0 if result.success else 1

    async def _cmd_stats(self, args: argparse.Namespace, engine: LedgerEngine) -> int:
        stats = await engine.employee_stats(args.employee_id)
        _print_json(stats.to_dict())
        return 0

    async def _cmd_delete_payment(self, args: argparse.Namespace, engine: LedgerEngine) -> int:
        result = await engine.delete_payment(args.payment_id)
        _print_json(
            {
                "complete": result.complete,
                "deletedPaymentIds": result.deleted_payment_ids,
                "unmarkedWorkDayIds": result.unmarked_work_day_ids,
                "missingWorkDayIds": result.missing_work_day_ids,
                "failures": [
                    {"action": f.action, "recordId": f.record_id, "error": f.error}
                    for f in result.failures
                ],
            }
        )
        return 0 if result.complete else 1

    async def _cmd_delete_employee(self, args: argparse.Namespace, engine: LedgerEngine) -> int:
        result = await engine.delete_employee_records(args.employee_id)
        _print_json(result.to_dict())
        return 0 if result.complete else 1


def main(args: list[str] | None = None) -> int:
    """CLI entry point."""
    cli = LedgerCli()
    return cli.run(args)


if __name__ == "__main__":
    sys.exit(main())
