"""Ledger Engine - keeps work day paid flags and payment records in agreement.

The underlying store writes one document at a time, with no transactions
and no locks. Multi-document operations therefore run as compensating
sequences (see ``saga.CompensatingSequence``):

- create_payment_and_mark: mark days paid, then write the payment; undo
  the day flags if anything fails
- unmark_as_paid: refuse to touch days claimed by a payment, asking for
  confirmation instead
- force_unmark_as_paid: best-effort delete/shrink of claiming payments,
  then unmark; reports every failed write
- delete_payment / delete_employee_records: best-effort deletes that report
  every failed write
- validate_integrity / repair_integrity: detect and fix drift between the
  two collections

Known limitation: nothing here coordinates separate callers. Two callers
writing the same work days at the same time can race; the integrity scan
and repair are the recovery path.
"""

from __future__ import annotations

import asyncio
import datetime as dt
import logging
from collections import defaultdict
from collections.abc import Iterable
from decimal import ROUND_HALF_UP, Decimal
from functools import partial
from typing import NoReturn
from uuid import uuid4

from workday_ledger.calculators.stats import EmployeeStats, calculate_employee_stats
from workday_ledger.calculators.wage_resolver import total_amount
from workday_ledger.events import (
    EmployeeRecordsDeleted,
    EventEmitter,
    EventMetadata,
    IntegrityRepaired,
    LedgerEvent,
    PaymentCreated,
    PaymentDeleted,
    PaymentShrunk,
    RollbackFailed,
    WorkDaysMarkedPaid,
    WorkDaysUnmarked,
)
from workday_ledger.schemas import PaymentRecord, WorkRecord
from workday_ledger.services.errors import (
    LedgerError,
    ManualInterventionRequired,
    PartialWriteError,
    PaymentCreateError,
    StoreAccessError,
    ValidationError,
)
from workday_ledger.services.results import (
    ConfirmationRequired,
    EmployeeDeletionResult,
    ForceUnmarkResult,
    IntegrityReport,
    RepairAction,
    RepairKind,
    RepairResult,
    ResolutionPolicy,
    ShrinkAmountPolicy,
    UnmarkResult,
    WriteFailure,
)
from workday_ledger.services.saga import CompensatingSequence
from workday_ledger.stores.base import EmployeeStore, PaymentRecordStore, WorkRecordStore

logger = logging.getLogger(__name__)

CENT = Decimal("0.01")


def _unique(ids: Iterable[str]) -> list[str]:
    """Drop duplicate ids, keeping first-seen order."""
    return list(dict.fromkeys(ids))


def _to_decimal(value: Decimal | int | float | str) -> Decimal:
    if isinstance(value, Decimal):
        return value
    # str() keeps 0.1 as 0.1 rather than its binary expansion
    return Decimal(str(value))


class LedgerEngine:
    """Orchestrates multi-record operations over the work day and payment stores."""

    def __init__(
        self,
        work_records: WorkRecordStore,
        payments: PaymentRecordStore,
        *,
        employees: EmployeeStore | None = None,
        emitter: EventEmitter | None = None,
        shrink_amount_policy: ShrinkAmountPolicy | str = ShrinkAmountPolicy.PROPORTIONAL,
    ):
        self.work_records = work_records
        self.payments = payments
        self.employees = employees
        self.emitter = emitter or EventEmitter()
        self.shrink_amount_policy = ShrinkAmountPolicy(shrink_amount_policy)

        if self.shrink_amount_policy == ShrinkAmountPolicy.RESOLVED and employees is None:
            raise ValueError("shrink_amount_policy 'resolved' requires an employee store")

    # ------------------------------------------------------------------
    # Create
    # ------------------------------------------------------------------

    async def create_payment_and_mark(
        self,
        employee_id: str,
        work_day_ids: Iterable[str],
        amount: Decimal | int | float | str,
        payment_type: str,
        notes: str | None = None,
        date: dt.date | None = None,
    ) -> PaymentRecord:
        """Record a payment and flag the work days it covers as paid.

        Work days are marked first and the payment written last, so the
        worst leftover of a crash is a paid flag without a payment, which
        repair_integrity clears.

        Args:
            employee_id: Employee being paid
            work_day_ids: Work records covered (must exist and be worked)
            amount: Total paid
            payment_type: e.g. "Bank Transfer", "Cash"
            notes: Optional notes, stored only if non-blank
            date: Payment date (default today)

        Returns:
            The stored PaymentRecord

        Raises:
            ValidationError: Empty input, missing or unworked days, days of
                another employee, days another payment covers, negative amount
            StoreAccessError: Work days or payments could not be read
            PartialWriteError: A day flag write failed; earlier flags restored
            PaymentCreateError: The payment write failed; all flags restored
            ManualInterventionRequired: Restoring the flags failed
        """
        ids = _unique(work_day_ids)
        if not ids:
            raise ValidationError("work_day_ids must not be empty")
        amount = _to_decimal(amount)
        if amount < 0:
            raise ValidationError(f"amount must not be negative, got {amount}")
        if not payment_type:
            raise ValidationError("payment_type is required")

        # Once flags start changing the sequence must finish or roll back,
        # even if the caller is cancelled.
        return await asyncio.shield(
            self._create_payment_and_mark(employee_id, ids, amount, payment_type, notes, date)
        )

    async def _create_payment_and_mark(
        self,
        employee_id: str,
        ids: list[str],
        amount: Decimal,
        payment_type: str,
        notes: str | None,
        date: dt.date | None,
    ) -> PaymentRecord:
        operation = "create_payment_and_mark"
        records = await self._load_work_records(operation, ids)

        missing = [i for i in ids if records[i] is None]
        if missing:
            raise ValidationError("Work days not found", missing)
        not_worked = [i for i in ids if not records[i].worked]
        if not_worked:
            raise ValidationError("Cannot pay for work days not worked", not_worked)
        foreign = [i for i in ids if records[i].employee_id != employee_id]
        if foreign:
            raise ValidationError(f"Work days do not belong to employee {employee_id}", foreign)

        # A work day belongs to at most one payment
        claimed: set[str] = set()
        for existing in await self._list_payments(operation):
            claimed |= existing.covers(ids)
        if claimed:
            raise ValidationError(
                "Work days already covered by a payment",
                [i for i in ids if i in claimed],
            )

        # Paid but unclaimed: orphans this payment adopts
        already_paid = [i for i in ids if records[i].paid]
        if already_paid:
            logger.warning(
                "%s: adopting work days flagged paid with no payment for %s: %s",
                operation,
                employee_id,
                already_paid,
            )

        sequence = CompensatingSequence(operation)
        try:
            for day_id in ids:
                original = records[day_id]
                await sequence.run(
                    "mark_paid",
                    day_id,
                    partial(self.work_records.put, original.model_copy(update={"paid": True})),
                    compensation=partial(self.work_records.put, original),
                )
        except Exception as e:
            await self._abort(sequence, e, PartialWriteError, (employee_id,))

        notes = notes.strip() if notes else None
        payment = PaymentRecord(
            id=str(uuid4()),
            employee_id=employee_id,
            work_day_ids=ids,
            amount=amount,
            payment_type=payment_type,
            date=date or dt.date.today(),
            notes=notes or None,
            created_at=dt.datetime.now(dt.timezone.utc),
        )
        try:
            await sequence.run("create_payment", payment.id, partial(self.payments.put, payment))
        except Exception as e:
            await self._abort(sequence, e, PaymentCreateError, (employee_id,))
        sequence.complete()

        correlation_id = uuid4()
        self._emit(
            WorkDaysMarkedPaid(
                metadata=EventMetadata.create(operation, correlation_id),
                work_day_ids=tuple(ids),
                employee_ids=(employee_id,),
            )
        )
        self._emit(
            PaymentCreated(
                metadata=EventMetadata.create(operation, correlation_id),
                payment_id=payment.id,
                employee_id=employee_id,
                work_day_ids=tuple(ids),
                amount=amount,
                payment_type=payment_type,
            )
        )
        logger.info(
            "Created payment %s for employee %s: %s covering %d day(s)",
            payment.id,
            employee_id,
            amount,
            len(ids),
        )
        return payment

    # ------------------------------------------------------------------
    # Unmark (guarded)
    # ------------------------------------------------------------------

    async def unmark_as_paid(self, work_day_ids: Iterable[str]) -> UnmarkResult:
        """Flag work days unpaid unless a payment claims any of them.

        When a payment claims one of the days nothing is written; the result
        carries a ConfirmationRequired describing the payments so the caller
        can ask before calling force_unmark_as_paid.
        """
        operation = "unmark_as_paid"
        ids = _unique(work_day_ids)
        if not ids:
            raise ValidationError("work_day_ids must not be empty")

        payments = await self._list_payments(operation)
        affected = [p for p in payments if p.covers(ids)]
        if affected:
            message = self._confirmation_message(ids, affected)
            logger.info(
                "%s: %d payment(s) claim %s; confirmation required",
                operation,
                len(affected),
                ids,
            )
            return UnmarkResult(
                applied=False,
                affected_payments=affected,
                confirmation=ConfirmationRequired(
                    work_day_ids=ids,
                    affected_payments=affected,
                    message=message,
                ),
            )

        return await asyncio.shield(self._unmark(operation, ids))

    async def _unmark(self, operation: str, ids: list[str]) -> UnmarkResult:
        records = await self._load_work_records(operation, ids)
        missing = [i for i in ids if records[i] is None]
        if missing:
            raise ValidationError("Work days not found", missing)
        employee_ids = tuple(_unique(records[i].employee_id for i in ids))

        sequence = CompensatingSequence(operation)
        try:
            for day_id in ids:
                original = records[day_id]
                await sequence.run(
                    "mark_unpaid",
                    day_id,
                    partial(self.work_records.put, original.model_copy(update={"paid": False})),
                    compensation=partial(self.work_records.put, original),
                )
        except Exception as e:
            await self._abort(sequence, e, PartialWriteError, employee_ids)
        sequence.complete()

        self._emit(
            WorkDaysUnmarked(
                metadata=EventMetadata.create(operation),
                work_day_ids=tuple(ids),
                employee_ids=employee_ids,
            )
        )
        logger.info("Unmarked %d work day(s)", len(ids))
        return UnmarkResult(applied=True, unmarked_work_day_ids=ids)

    @staticmethod
    def _confirmation_message(ids: list[str], affected: list[PaymentRecord]) -> str:
        lines = [
            f"{len(ids)} work day(s) are covered by {len(affected)} existing payment(s):",
        ]
        for payment in affected:
            covered = len(payment.covers(ids))
            lines.append(f"- {payment.describe()} ({covered} of the selected day(s))")
        lines.append("Confirm to unmark these days and delete or reduce the payment(s).")
        return "\n".join(lines)

    # ------------------------------------------------------------------
    # Unmark (forced)
    # ------------------------------------------------------------------

    async def force_unmark_as_paid(
        self,
        work_day_ids: Iterable[str],
        resolution_policy: ResolutionPolicy | str = ResolutionPolicy.SHRINK,
    ) -> ForceUnmarkResult:
        """Unmark work days after the caller confirmed, resolving claiming payments.

        Each claiming payment is deleted when nothing else would remain in it
        or the policy is DELETE; otherwise it is rewritten without the target
        days (SHRINK). The days are then flagged unpaid.

        IMPORTANT: this is not atomic and performs no rollback. Every failed
        write is listed in the result; check `result.complete`.
        """
        operation = "force_unmark_as_paid"
        ids = _unique(work_day_ids)
        if not ids:
            raise ValidationError("work_day_ids must not be empty")
        policy = ResolutionPolicy(resolution_policy)
        targets = set(ids)

        payments = await self._list_payments(operation)
        result = ForceUnmarkResult(resolution_policy=policy)
        correlation_id = uuid4()

        for payment in payments:
            removed = payment.covers(targets)
            if not removed:
                continue
            remaining = [d for d in payment.work_day_ids if d not in targets]

            if not remaining or policy == ResolutionPolicy.DELETE:
                try:
                    await self.payments.delete(payment.id)
                except Exception as e:
                    result.failures.append(WriteFailure("delete_payment", payment.id, str(e)))
                    continue
                result.deleted_payment_ids.append(payment.id)
                self._emit(
                    PaymentDeleted(
                        metadata=EventMetadata.create(operation, correlation_id),
                        payment_id=payment.id,
                        employee_id=payment.employee_id,
                        amount=payment.amount,
                    )
                )
            else:
                new_amount = await self._shrunk_amount(payment, remaining)
                updated = payment.model_copy(
                    update={"work_day_ids": remaining, "amount": new_amount}
                )
                try:
                    await self.payments.put(updated)
                except Exception as e:
                    result.failures.append(WriteFailure("update_payment", payment.id, str(e)))
                    continue
                result.updated_payments.append(updated)
                self._emit(
                    PaymentShrunk(
                        metadata=EventMetadata.create(operation, correlation_id),
                        payment_id=payment.id,
                        employee_id=payment.employee_id,
                        removed_work_day_ids=tuple(d for d in payment.work_day_ids if d in removed),
                        previous_amount=payment.amount,
                        new_amount=new_amount,
                    )
                )

        employee_ids: list[str] = []
        for day_id in ids:
            try:
                record = await self.work_records.get(day_id)
                if record is None:
                    result.missing_work_day_ids.append(day_id)
                    continue
                await self.work_records.put(record.model_copy(update={"paid": False}))
            except Exception as e:
                result.failures.append(WriteFailure("unmark_work_day", day_id, str(e)))
                continue
            result.unmarked_work_day_ids.append(day_id)
            employee_ids.append(record.employee_id)

        if result.unmarked_work_day_ids:
            self._emit(
                WorkDaysUnmarked(
                    metadata=EventMetadata.create(operation, correlation_id),
                    work_day_ids=tuple(result.unmarked_work_day_ids),
                    forced=True,
                    employee_ids=tuple(_unique(employee_ids)),
                )
            )

        if result.complete:
            logger.info(
                "%s: unmarked %d day(s), deleted %d payment(s), shrunk %d payment(s)",
                operation,
                len(result.unmarked_work_day_ids),
                len(result.deleted_payment_ids),
                len(result.updated_payments),
            )
        else:
            logger.warning(
                "%s: %d write(s) failed: %s",
                operation,
                len(result.failures),
                [(f.action, f.record_id) for f in result.failures],
            )
        return result

    async def _shrunk_amount(self, payment: PaymentRecord, remaining: list[str]) -> Decimal:
        """Amount for a payment reduced to ``remaining`` days."""
        proportional = (
            payment.amount * Decimal(len(remaining)) / Decimal(len(payment.work_day_ids))
        ).quantize(CENT, rounding=ROUND_HALF_UP)

        if self.shrink_amount_policy == ShrinkAmountPolicy.PROPORTIONAL:
            return proportional

        try:
            employee = await self.employees.get(payment.employee_id)
            records = [await self.work_records.get(day_id) for day_id in remaining]
        except Exception as e:
            logger.warning(
                "Payment %s: could not read wages (%s); using proportional amount",
                payment.id,
                e,
            )
            return proportional

        if employee is None or any(r is None for r in records):
            logger.warning(
                "Payment %s: employee or work days missing; using proportional amount",
                payment.id,
            )
            return proportional
        return total_amount(employee, records)

    async def delete_payment(self, payment_id: str) -> ForceUnmarkResult:
        """Delete a payment and flag every day it covered as unpaid."""
        try:
            payment = await self.payments.get(payment_id)
        except Exception as e:
            raise StoreAccessError("delete_payment", e) from e
        if payment is None:
            raise ValidationError("Payment not found", [payment_id])
        return await self.force_unmark_as_paid(payment.work_day_ids, ResolutionPolicy.DELETE)

    async def delete_employee_records(self, employee_id: str) -> EmployeeDeletionResult:
        """Delete an employee's payments, then their work days, then the employee.

        Payments go first: an interruption then leaves paid flags without a
        payment, which repair_integrity clears. If any payment delete fails
        the work days and employee are kept so the payment still points at
        real days; calling again finishes the job.

        IMPORTANT: best-effort with no rollback. Check `result.complete`.
        """
        operation = "delete_employee_records"
        try:
            payments, work_records = await asyncio.gather(
                self.payments.list_all(),
                self.work_records.list_all(),
            )
        except Exception as e:
            raise StoreAccessError(operation, e) from e

        result = EmployeeDeletionResult(employee_id=employee_id)

        for payment in payments:
            if payment.employee_id != employee_id:
                continue
            try:
                await self.payments.delete(payment.id)
            except Exception as e:
                result.failures.append(WriteFailure("delete_payment", payment.id, str(e)))
                continue
            result.deleted_payment_ids.append(payment.id)

        if result.failures:
            logger.warning(
                "%s: %d payment delete(s) failed for %s; work days and employee kept",
                operation,
                len(result.failures),
                employee_id,
            )
        else:
            for record in work_records:
                if record.employee_id != employee_id:
                    continue
                try:
                    await self.work_records.delete(record.id)
                except Exception as e:
                    result.failures.append(WriteFailure("delete_work_day", record.id, str(e)))
                    continue
                result.deleted_work_day_ids.append(record.id)

            if self.employees is not None:
                try:
                    await self.employees.delete(employee_id)
                except Exception as e:
                    result.failures.append(WriteFailure("delete_employee", employee_id, str(e)))
                else:
                    result.employee_deleted = True

        self._emit(
            EmployeeRecordsDeleted(
                metadata=EventMetadata.create(operation),
                employee_id=employee_id,
                deleted_payment_ids=tuple(result.deleted_payment_ids),
                deleted_work_day_ids=tuple(result.deleted_work_day_ids),
                employee_deleted=result.employee_deleted,
            )
        )
        logger.info(
            "%s: employee %s, deleted %d payment(s) and %d work day(s), %d failure(s)",
            operation,
            employee_id,
            len(result.deleted_payment_ids),
            len(result.deleted_work_day_ids),
            len(result.failures),
        )
        return result

    # ------------------------------------------------------------------
    # Integrity
    # ------------------------------------------------------------------

    async def validate_integrity(self) -> IntegrityReport:
        """Scan both collections for disagreement between flags and payments.

        - Orphaned work day: flagged paid, claimed by no payment
        - Orphaned payment: claims a work day flagged unpaid

        Side-effect free. Run while other writes are in flight it may report
        transient findings.
        """
        try:
            work_records, payments = await asyncio.gather(
                self.work_records.list_all(),
                self.payments.list_all(),
            )
        except Exception as e:
            raise StoreAccessError("validate_integrity", e) from e

        by_id = {r.id: r for r in work_records}
        claims: dict[str, list[str]] = defaultdict(list)
        for payment in payments:
            for day_id in _unique(payment.work_day_ids):
                claims[day_id].append(payment.id)

        report = IntegrityReport()

        for record in work_records:
            if record.paid and record.id not in claims:
                report.orphaned_work_days.append(record.id)
                report.issues.append(
                    f"Work day {record.id} (employee {record.employee_id}, "
                    f"{record.date.isoformat()}) is marked paid but no payment covers it"
                )

        for payment in payments:
            unpaid = [d for d in payment.work_day_ids if d in by_id and not by_id[d].paid]
            if unpaid:
                report.orphaned_payments.append(payment.id)
                report.unpaid_references[payment.id] = unpaid
                report.issues.append(
                    f"Payment {payment.id} ({payment.describe()}) covers work day(s) "
                    f"not marked paid: {', '.join(unpaid)}"
                )
            missing = [d for d in payment.work_day_ids if d not in by_id]
            if missing:
                report.warnings.append(
                    f"Payment {payment.id} references missing work day(s): {', '.join(missing)}"
                )

        for day_id, payment_ids in claims.items():
            if len(payment_ids) > 1:
                report.warnings.append(
                    f"Work day {day_id} is claimed by {len(payment_ids)} payments: "
                    f"{', '.join(payment_ids)}"
                )

        if report.is_valid:
            logger.debug(
                "Integrity valid: %d work day(s), %d payment(s)",
                len(work_records),
                len(payments),
            )
        else:
            logger.warning(
                "Integrity scan found %d orphaned work day(s) and %d orphaned payment(s)",
                len(report.orphaned_work_days),
                len(report.orphaned_payments),
            )
        return report

    async def repair_integrity(self) -> RepairResult:
        """Bring the two collections back into agreement.

        Payments are trusted over flags:
        - A paid flag with no payment is stale and is cleared
        - A payment claiming unpaid days wins and its days are flagged paid

        Every write is attempted; failures are reported per action.
        """
        report = await self.validate_integrity()
        if report.is_valid:
            return RepairResult(
                repair_actions=[
                    RepairAction(
                        kind=RepairKind.NO_REPAIR_NEEDED,
                        description="No repair needed: work days and payments agree",
                    )
                ]
            )

        result = RepairResult()
        for day_id in report.orphaned_work_days:
            result.repair_actions.append(await self._rewrite_paid_flag(day_id, paid=False))

        marked: set[str] = set()
        for payment_id in report.orphaned_payments:
            for day_id in report.unpaid_references[payment_id]:
                if day_id in marked:
                    continue
                marked.add(day_id)
                result.repair_actions.append(
                    await self._rewrite_paid_flag(day_id, paid=True, payment_id=payment_id)
                )

        done_unpaid = tuple(
            a.work_day_id for a in result.repair_actions
            if a.kind == RepairKind.MARK_UNPAID and a.succeeded
        )
        done_paid = tuple(
            a.work_day_id for a in result.repair_actions
            if a.kind == RepairKind.MARK_PAID and a.succeeded
        )
        failed = tuple(a.work_day_id for a in result.repair_actions if not a.succeeded)
        self._emit(
            IntegrityRepaired(
                metadata=EventMetadata.create("repair_integrity"),
                marked_unpaid=done_unpaid,
                marked_paid=done_paid,
                failed=failed,
            )
        )

        if failed:
            logger.error("Integrity repair left %d work day(s) unrepaired: %s", len(failed), failed)
        else:
            logger.info(
                "Integrity repair cleared %d paid flag(s) and set %d",
                len(done_unpaid),
                len(done_paid),
            )
        return result

    async def _rewrite_paid_flag(
        self,
        day_id: str,
        *,
        paid: bool,
        payment_id: str | None = None,
    ) -> RepairAction:
        kind = RepairKind.MARK_PAID if paid else RepairKind.MARK_UNPAID
        if paid:
            description = f"Marked work day {day_id} paid to match payment {payment_id}"
        else:
            description = f"Marked work day {day_id} unpaid: no payment covers it"

        try:
            # Re-read so fields changed since the scan are not overwritten
            record = await self.work_records.get(day_id)
            if record is None:
                return RepairAction(
                    kind=kind,
                    description=description,
                    work_day_id=day_id,
                    payment_id=payment_id,
                    succeeded=False,
                    error="work day no longer exists",
                )
            if record.paid != paid:
                await self.work_records.put(record.model_copy(update={"paid": paid}))
        except Exception as e:
            return RepairAction(
                kind=kind,
                description=description,
                work_day_id=day_id,
                payment_id=payment_id,
                succeeded=False,
                error=str(e),
            )
        return RepairAction(
            kind=kind,
            description=description,
            work_day_id=day_id,
            payment_id=payment_id,
        )

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    async def employee_stats(self, employee_id: str) -> EmployeeStats:
        """Worked/paid counts and earned/owed totals for one employee."""
        if self.employees is None:
            raise LedgerError("employee_stats requires an employee store")
        try:
            employee = await self.employees.get(employee_id)
            records = await self.work_records.list_all()
        except Exception as e:
            raise StoreAccessError("employee_stats", e) from e
        if employee is None:
            raise ValidationError("Employee not found", [employee_id])
        return calculate_employee_stats(employee, records)

    async def payments_for_employee(self, employee_id: str) -> list[PaymentRecord]:
        """Payments made to one employee, most recent payment date first."""
        payments = await self._list_payments("payments_for_employee")
        return sorted(
            (p for p in payments if p.employee_id == employee_id),
            key=lambda p: (p.date, p.created_at),
            reverse=True,
        )

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    async def _load_work_records(
        self,
        operation: str,
        ids: list[str],
    ) -> dict[str, WorkRecord | None]:
        records: dict[str, WorkRecord | None] = {}
        try:
            for day_id in ids:
                records[day_id] = await self.work_records.get(day_id)
        except Exception as e:
            raise StoreAccessError(operation, e) from e
        return records

    async def _list_payments(self, operation: str) -> list[PaymentRecord]:
        try:
            return await self.payments.list_all()
        except Exception as e:
            raise StoreAccessError(operation, e) from e

    async def _abort(
        self,
        sequence: CompensatingSequence,
        cause: Exception,
        error_cls: type[PartialWriteError],
        employee_ids: tuple[str, ...] = (),
    ) -> NoReturn:
        """Undo a failed sequence and raise the matching error."""
        failed_step = sequence.failed_step
        report = await sequence.compensate()

        if not report.success:
            residual = sequence.residual_ids
            logger.error(
                "%s: MANUAL INTERVENTION REQUIRED - rollback failed for %s "
                "(rolled back: %s; original failure: %s; rollback errors: %s)",
                sequence.operation,
                residual,
                report.rolled_back_ids,
                cause,
                {k: str(v) for k, v in report.failed.items()},
            )
            self._emit(
                RollbackFailed(
                    metadata=EventMetadata.create(sequence.operation),
                    residual_ids=tuple(residual),
                    reason=str(cause),
                    employee_ids=employee_ids,
                )
            )
            raise ManualInterventionRequired(
                sequence.operation,
                residual_ids=residual,
                completed_ids=sequence.completed_ids,
                rolled_back_ids=report.rolled_back_ids,
                rollback_errors=report.failed,
                cause=cause,
            ) from cause

        logger.warning(
            "%s: write of %s failed (%s); rolled back %s",
            sequence.operation,
            failed_step.record_id if failed_step else None,
            cause,
            report.rolled_back_ids,
        )
        raise error_cls(
            sequence.operation,
            completed_ids=sequence.completed_ids,
            rolled_back_ids=report.rolled_back_ids,
            failed_id=failed_step.record_id if failed_step else None,
            cause=cause,
        ) from cause

    def _emit(self, event: LedgerEvent) -> None:
        self.emitter.emit(event)
