"""Dict-backed stores.

Records are pydantic models frozen at construction, so handing out the
stored instance cannot leak mutations back into the store.
"""

from __future__ import annotations

from typing import Generic, TypeVar

from workday_ledger.schemas import Employee, PaymentRecord, WorkRecord

T = TypeVar("T", Employee, WorkRecord, PaymentRecord)


class _InMemoryCollection(Generic[T]):
    def __init__(self, records: list[T] | None = None) -> None:
        self._records: dict[str, T] = {}
        for record in records or []:
            self._records[record.id] = record

    async def get(self, record_id: str) -> T | None:
        return self._records.get(record_id)

    async def put(self, record: T) -> None:
        self._records[record.id] = record

    async def delete(self, record_id: str) -> None:
        self._records.pop(record_id, None)

    async def list_all(self) -> list[T]:
        return list(self._records.values())

    def __len__(self) -> int:
        return len(self._records)

    def __contains__(self, record_id: object) -> bool:
        return record_id in self._records


class InMemoryWorkRecordStore(_InMemoryCollection[WorkRecord]):
    """In-memory WorkRecordStore."""


class InMemoryPaymentRecordStore(_InMemoryCollection[PaymentRecord]):
    """In-memory PaymentRecordStore."""


class InMemoryEmployeeStore(_InMemoryCollection[Employee]):
    """In-memory EmployeeStore."""
