"""Ledger engine services."""

from workday_ledger.services.errors import (
    LedgerError,
    ManualInterventionRequired,
    PartialWriteError,
    PaymentCreateError,
    StoreAccessError,
    ValidationError,
)
from workday_ledger.services.ledger_engine import LedgerEngine
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
from workday_ledger.services.saga import (
    CompensatingSequence,
    InvalidTransitionError,
    SequenceStatus,
    StepStatus,
)

__all__ = [
    "LedgerEngine",
    # Errors
    "LedgerError",
    "ManualInterventionRequired",
    "PartialWriteError",
    "PaymentCreateError",
    "StoreAccessError",
    "ValidationError",
    # Results
    "ConfirmationRequired",
    "EmployeeDeletionResult",
    "ForceUnmarkResult",
    "IntegrityReport",
    "RepairAction",
    "RepairKind",
    "RepairResult",
    "ResolutionPolicy",
    "ShrinkAmountPolicy",
    "UnmarkResult",
    "WriteFailure",
    # Compensating sequence
    "CompensatingSequence",
    "InvalidTransitionError",
    "SequenceStatus",
    "StepStatus",
]
