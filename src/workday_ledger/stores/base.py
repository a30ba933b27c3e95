"""Collaborator protocols for the document collections.

The engine only relies on these per-document operations. Implementations
give no cross-record guarantees: no transactions, no locks, no version
tokens. Timeouts and retries, if any, belong to the implementation.
"""

from __future__ import annotations

from typing import Protocol

from workday_ledger.schemas import Employee, PaymentRecord, WorkRecord


class StoreError(Exception):
    """Raised by store implementations when a storage call fails."""

    def __init__(self, operation: str, collection: str, record_id: str | None = None, reason: str = ""):
        self.operation = operation
        self.collection = collection
        self.record_id = record_id
        self.reason = reason
        target = f"{collection}/{record_id}" if record_id else collection
        msg = f"{operation} failed for {target}"
        if reason:
            msg += f": {reason}"
        super().__init__(msg)


class WorkRecordStore(Protocol):
    """Protocol for work record storage."""

    async def get(self, record_id: str) -> WorkRecord | None:
        """Return the work record, or None if it does not exist."""
        ...

    async def put(self, record: WorkRecord) -> None:
        """Create or overwrite a work record."""
        ...

    async def delete(self, record_id: str) -> None:
        """Delete a work record. Deleting a missing id is not an error."""
        ...

    async def list_all(self) -> list[WorkRecord]:
        """Return every work record."""
        ...


class PaymentRecordStore(Protocol):
    """Protocol for payment record storage."""

    async def get(self, record_id: str) -> PaymentRecord | None:
        """Return the payment record, or None if it does not exist."""
        ...

    async def put(self, record: PaymentRecord) -> None:
        """Create or overwrite a payment record."""
        ...

    async def delete(self, record_id: str) -> None:
        """Delete a payment record. Deleting a missing id is not an error."""
        ...

    async def list_all(self) -> list[PaymentRecord]:
        """Return every payment record."""
        ...


class EmployeeStore(Protocol):
    """Protocol for employee storage (read by the engine, owned by callers)."""

    async def get(self, employee_id: str) -> Employee | None:
        ...

    async def put(self, employee: Employee) -> None:
        ...

    async def delete(self, employee_id: str) -> None:
        ...

    async def list_all(self) -> list[Employee]:
        ...
