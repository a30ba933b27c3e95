"""Ledger engine error taxonomy.

Callers branch on the exception class, never on message text. Store-level
failures are always wrapped in one of these and chained as ``__cause__``.
"""

from __future__ import annotations

from collections.abc import Iterable


class LedgerError(Exception):
    """Base class for ledger engine errors."""


class ValidationError(LedgerError):
    """Raised when input is rejected before any write happens."""

    def __init__(self, message: str, offending_ids: Iterable[str] = ()):
        self.offending_ids = list(offending_ids)
        if self.offending_ids:
            message = f"{message}: {', '.join(self.offending_ids)}"
        super().__init__(message)


class StoreAccessError(LedgerError):
    """Raised when a read needed before any write fails. Nothing was mutated."""

    def __init__(self, operation: str, cause: BaseException):
        self.operation = operation
        self.cause = cause
        super().__init__(f"{operation}: store read failed: {cause}")


class PartialWriteError(LedgerError):
    """A multi-step write failed partway and every completed step was rolled back.

    Attributes:
        operation: Engine operation that failed
        completed_ids: Records written before the failure
        rolled_back_ids: Records restored to their previous state
        failed_id: Record whose write failed
        cause: The wrapped store failure
    """

    def __init__(
        self,
        operation: str,
        *,
        completed_ids: Iterable[str],
        rolled_back_ids: Iterable[str],
        failed_id: str | None,
        cause: BaseException,
    ):
        self.operation = operation
        self.completed_ids = list(completed_ids)
        self.rolled_back_ids = list(rolled_back_ids)
        self.failed_id = failed_id
        self.cause = cause
        super().__init__(
            f"{operation} failed at {failed_id or 'unknown record'}; "
            f"rolled back {len(self.rolled_back_ids)} of {len(self.completed_ids)} "
            f"completed write(s): {cause}"
        )


class PaymentCreateError(PartialWriteError):
    """The payment record write failed after its work days were marked paid.

    The work day flags were restored before this was raised.
    """


class ManualInterventionRequired(LedgerError):
    """Rollback itself failed; stored data is left inconsistent.

    ``residual_ids`` are the records still holding values written by the
    failed operation. ``repair_integrity`` is expected to find them.
    """

    def __init__(
        self,
        operation: str,
        *,
        residual_ids: Iterable[str],
        completed_ids: Iterable[str],
        rolled_back_ids: Iterable[str],
        rollback_errors: dict[str, BaseException],
        cause: BaseException,
    ):
        self.operation = operation
        self.residual_ids = list(residual_ids)
        self.completed_ids = list(completed_ids)
        self.rolled_back_ids = list(rolled_back_ids)
        self.rollback_errors = dict(rollback_errors)
        self.cause = cause
        super().__init__(
            f"{operation} failed and could not be rolled back; "
            f"residual records: {', '.join(self.residual_ids)} (original failure: {cause})"
        )
