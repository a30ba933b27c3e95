"""Structured results returned by the ledger engine."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any

from workday_ledger.schemas import PaymentRecord


class ResolutionPolicy(str, Enum):
    """How force-unmark treats a payment that still covers other days."""

    DELETE = "delete"
    SHRINK = "shrink"


class ShrinkAmountPolicy(str, Enum):
    """How a shrunk payment's amount is recomputed."""

    PROPORTIONAL = "proportional"  # old amount scaled by remaining/original day count
    RESOLVED = "resolved"  # sum of each remaining day's resolved wage


@dataclass(frozen=True)
class ConfirmationRequired:
    """A pause requesting caller consent before a destructive action."""

    work_day_ids: list[str]
    affected_payments: list[PaymentRecord]
    message: str


@dataclass
class UnmarkResult:
    """Result of a guarded unmark."""

    applied: bool
    affected_payments: list[PaymentRecord] = field(default_factory=list)
    unmarked_work_day_ids: list[str] = field(default_factory=list)
    confirmation: ConfirmationRequired | None = None

    @property
    def requires_confirmation(self) -> bool:
        return self.confirmation is not None

    @property
    def message(self) -> str | None:
        return self.confirmation.message if self.confirmation else None


@dataclass(frozen=True)
class WriteFailure:
    """A single failed write in a best-effort operation."""

    action: str  # 'delete_payment', 'update_payment', 'unmark_work_day', ...
    record_id: str
    error: str


@dataclass
class ForceUnmarkResult:
    """Result of a forced unmark.

    IMPORTANT: this path is best-effort. Always check `complete`; when it is
    False, `failures` lists every write that did not happen.
    """

    resolution_policy: ResolutionPolicy
    deleted_payment_ids: list[str] = field(default_factory=list)
    updated_payments: list[PaymentRecord] = field(default_factory=list)
    unmarked_work_day_ids: list[str] = field(default_factory=list)
    missing_work_day_ids: list[str] = field(default_factory=list)
    failures: list[WriteFailure] = field(default_factory=list)

    @property
    def complete(self) -> bool:
        return len(self.failures) == 0


@dataclass
class EmployeeDeletionResult:
    """Result of deleting an employee and everything they own.

    Best-effort like ForceUnmarkResult: check `complete`. Deleting again
    picks up whatever was left.
    """

    employee_id: str
    deleted_payment_ids: list[str] = field(default_factory=list)
    deleted_work_day_ids: list[str] = field(default_factory=list)
    employee_deleted: bool = False
    failures: list[WriteFailure] = field(default_factory=list)

    @property
    def complete(self) -> bool:
        return len(self.failures) == 0

    def to_dict(self) -> dict[str, Any]:
        return {
            "employeeId": self.employee_id,
            "complete": self.complete,
            "deletedPaymentIds": self.deleted_payment_ids,
            "deletedWorkDayIds": self.deleted_work_day_ids,
            "employeeDeleted": self.employee_deleted,
            "failures": [
                {"action": f.action, "recordId": f.record_id, "error": f.error}
                for f in self.failures
            ],
        }


@dataclass
class IntegrityReport:
    """Result of an integrity scan."""

    orphaned_work_days: list[str] = field(default_factory=list)
    orphaned_payments: list[str] = field(default_factory=list)
    issues: list[str] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)
    # payment id -> its referenced work days that have paid == false
    unpaid_references: dict[str, list[str]] = field(default_factory=dict)

    @property
    def is_valid(self) -> bool:
        return not self.orphaned_work_days and not self.orphaned_payments

    def to_dict(self) -> dict[str, Any]:
        return {
            "isValid": self.is_valid,
            "orphanedWorkDays": self.orphaned_work_days,
            "orphanedPayments": self.orphaned_payments,
            "issues": self.issues,
            "warnings": self.warnings,
        }


class RepairKind(str, Enum):
    """Repair action types."""

    NO_REPAIR_NEEDED = "no_repair_needed"
    MARK_UNPAID = "mark_unpaid"
    MARK_PAID = "mark_paid"


@dataclass(frozen=True)
class RepairAction:
    """One repair write (or the single no-op marker)."""

    kind: RepairKind
    description: str
    work_day_id: str | None = None
    payment_id: str | None = None
    succeeded: bool = True
    error: str | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "kind": self.kind.value,
            "description": self.description,
            "workDayId": self.work_day_id,
            "paymentId": self.payment_id,
            "succeeded": self.succeeded,
            "error": self.error,
        }


@dataclass
class RepairResult:
    """Result of an integrity repair."""

    repair_actions: list[RepairAction] = field(default_factory=list)

    @property
    def writes_performed(self) -> int:
        return sum(
            1
            for a in self.repair_actions
            if a.kind != RepairKind.NO_REPAIR_NEEDED and a.succeeded
        )

    @property
    def success(self) -> bool:
        return all(a.succeeded for a in self.repair_actions)

    def to_dict(self) -> dict[str, Any]:
        return {
            "success": self.success,
            "repairActions": [a.to_dict() for a in self.repair_actions],
        }
