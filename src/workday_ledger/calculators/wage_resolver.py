"""Daily wage resolution with single-point wage history."""

from __future__ import annotations

from collections.abc import Iterable
from decimal import Decimal

from workday_ledger.schemas import Employee, WorkRecord


def resolve_amount(employee: Employee, work_record: WorkRecord) -> Decimal:
    """Resolve the pay amount for one work record.

    Resolution priority:
    1. If the work record has a custom_amount, use it
    2. If the day falls before the employee's wage_change_date and a
       previous_wage is remembered, use the previous wage
    3. Otherwise use the current daily_wage
    """
    if work_record.custom_amount is not None:
        return work_record.custom_amount

    if (
        employee.wage_change_date is not None
        and employee.previous_wage is not None
        and work_record.date < employee.wage_change_date
    ):
        return employee.previous_wage

    return employee.daily_wage


def total_amount(employee: Employee, work_records: Iterable[WorkRecord]) -> Decimal:
    """Sum of resolved amounts for the given work records."""
    return sum(
        (resolve_amount(employee, record) for record in work_records),
        Decimal("0"),
    )
