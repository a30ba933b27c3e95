"""Per-employee work and payment totals."""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass
from decimal import Decimal
from typing import Any

from workday_ledger.calculators.wage_resolver import total_amount
from workday_ledger.schemas import Employee, WorkRecord


@dataclass(frozen=True)
class EmployeeStats:
    """Totals derived from an employee's work records."""

    employee_id: str
    total_worked: int
    total_paid: int
    total_earned: Decimal
    total_owed: Decimal

    def to_dict(self) -> dict[str, Any]:
        return {
            "employeeId": self.employee_id,
            "totalWorked": self.total_worked,
            "totalPaid": self.total_paid,
            "totalEarned": f"{self.total_earned:.2f}",
            "totalOwed": f"{self.total_owed:.2f}",
        }


def calculate_employee_stats(
    employee: Employee,
    work_records: Iterable[WorkRecord],
) -> EmployeeStats:
    """Compute worked/paid counts and earned/owed amounts for an employee.

    Paid days are counted by their flag alone, so a day flagged paid but not
    worked still reduces the amount owed.
    """
    own = [r for r in work_records if r.employee_id == employee.id]
    worked = [r for r in own if r.worked]
    paid = [r for r in own if r.paid]

    earned = total_amount(employee, worked)
    paid_amount = total_amount(employee, paid)

    return EmployeeStats(
        employee_id=employee.id,
        total_worked=len(worked),
        total_paid=len(paid),
        total_earned=earned,
        total_owed=earned - paid_amount,
    )
