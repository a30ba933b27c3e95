"""Work-payment ledger consistency engine.

Keeps each work day's ``paid`` flag in agreement with the payment records
that claim it, over a document store without multi-document transactions.
"""

from workday_ledger.calculators import EmployeeStats, calculate_employee_stats, resolve_amount
from workday_ledger.schemas import PAYMENT_TYPES, Employee, PaymentRecord, WorkRecord
from workday_ledger.services import (
    ConfirmationRequired,
    ForceUnmarkResult,
    IntegrityReport,
    LedgerEngine,
    LedgerError,
    ManualInterventionRequired,
    PartialWriteError,
    PaymentCreateError,
    RepairResult,
    ResolutionPolicy,
    ShrinkAmountPolicy,
    StoreAccessError,
    UnmarkResult,
    ValidationError,
)

__version__ = "0.1.0"

__all__ = [
    "PAYMENT_TYPES",
    "Employee",
    "PaymentRecord",
    "WorkRecord",
    "EmployeeStats",
    "calculate_employee_stats",
    "resolve_amount",
    "LedgerEngine",
    "ConfirmationRequired",
    "ForceUnmarkResult",
    "IntegrityReport",
    "RepairResult",
    "ResolutionPolicy",
    "ShrinkAmountPolicy",
    "UnmarkResult",
    "LedgerError",
    "ManualInterventionRequired",
    "PartialWriteError",
    "PaymentCreateError",
    "StoreAccessError",
    "ValidationError",
]
