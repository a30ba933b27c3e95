"""Wage and stats calculators."""

from workday_ledger.calculators.stats import EmployeeStats, calculate_employee_stats
from workday_ledger.calculators.wage_resolver import resolve_amount, total_amount

__all__ = [
    "EmployeeStats",
    "calculate_employee_stats",
    "resolve_amount",
    "total_amount",
]
