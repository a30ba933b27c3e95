"""Pytest fixtures for workday ledger tests."""

from __future__ import annotations

from datetime import date, datetime, timezone
from decimal import Decimal

import pytest

from workday_ledger.events import ActivityLog, EventEmitter
from workday_ledger.schemas import Employee, PaymentRecord, WorkRecord
from workday_ledger.services import LedgerEngine
from workday_ledger.stores import (
    InMemoryEmployeeStore,
    InMemoryPaymentRecordStore,
    InMemoryWorkRecordStore,
    StoreError,
)

EMPLOYEE_ID = "emp-1"


def make_work_day(
    day_id: str,
    day: date,
    *,
    employee_id: str = EMPLOYEE_ID,
    worked: bool = True,
    paid: bool = False,
    custom_amount: Decimal | None = None,
) -> WorkRecord:
    """Build a work record."""
    return WorkRecord(
        id=day_id,
        employee_id=employee_id,
        date=day,
        worked=worked,
        paid=paid,
        custom_amount=custom_amount,
    )


def make_payment(
    payment_id: str,
    work_day_ids: list[str],
    amount: Decimal,
    *,
    employee_id: str = EMPLOYEE_ID,
    payment_type: str = "Cash",
) -> PaymentRecord:
    """Build a payment record without going through the engine."""
    return PaymentRecord(
        id=payment_id,
        employee_id=employee_id,
        work_day_ids=work_day_ids,
        amount=amount,
        payment_type=payment_type,
        date=date(2024, 6, 10),
        created_at=datetime(2024, 6, 10, 12, 0, tzinfo=timezone.utc),
    )


class FlakyWorkRecordStore:
    """Work record store that fails chosen calls.

    Args:
        inner: Store that receives the calls that succeed
        fail_put_ids: Records whose every put fails
        fail_put_calls: 1-based put call numbers that fail
        fail_delete_ids: Records whose delete fails
        fail_reads: If True, get and list_all fail
    """

    def __init__(
        self,
        inner: InMemoryWorkRecordStore,
        *,
        fail_put_ids: set[str] | None = None,
        fail_put_calls: set[int] | None = None,
        fail_delete_ids: set[str] | None = None,
        fail_reads: bool = False,
    ):
        self.inner = inner
        self.fail_put_ids = fail_put_ids or set()
        self.fail_put_calls = fail_put_calls or set()
        self.fail_delete_ids = fail_delete_ids or set()
        self.fail_reads = fail_reads
        self.put_calls = 0

    async def get(self, record_id: str) -> WorkRecord | None:
        if self.fail_reads:
            raise StoreError("get", "work_days", record_id, "simulated outage")
        return await self.inner.get(record_id)

    async def put(self, record: WorkRecord) -> None:
        self.put_calls += 1
        if record.id in self.fail_put_ids or self.put_calls in self.fail_put_calls:
            raise StoreError("put", "work_days", record.id, "simulated write failure")
        await self.inner.put(record)

    async def delete(self, record_id: str) -> None:
        if record_id in self.fail_delete_ids:
            raise StoreError("delete", "work_days", record_id, "simulated write failure")
        await self.inner.delete(record_id)

    async def list_all(self) -> list[WorkRecord]:
        if self.fail_reads:
            raise StoreError("list_all", "work_days", reason="simulated outage")
        return await self.inner.list_all()


class FlakyPaymentRecordStore:
    """Payment record store that fails chosen calls."""

    def __init__(
        self,
        inner: InMemoryPaymentRecordStore,
        *,
        fail_put: bool = False,
        fail_delete_ids: set[str] | None = None,
        fail_reads: bool = False,
    ):
        self.inner = inner
        self.fail_put = fail_put
        self.fail_delete_ids = fail_delete_ids or set()
        self.fail_reads = fail_reads

    async def get(self, record_id: str) -> PaymentRecord | None:
        if self.fail_reads:
            raise StoreError("get", "payments", record_id, "simulated outage")
        return await self.inner.get(record_id)

    async def put(self, record: PaymentRecord) -> None:
        if self.fail_put:
            raise StoreError("put", "payments", record.id, "simulated write failure")
        await self.inner.put(record)

    async def delete(self, record_id: str) -> None:
        if record_id in self.fail_delete_ids:
            raise StoreError("delete", "payments", record_id, "simulated write failure")
        await self.inner.delete(record_id)

    async def list_all(self) -> list[PaymentRecord]:
        if self.fail_reads:
            raise StoreError("list_all", "payments", reason="simulated outage")
        return await self.inner.list_all()


@pytest.fixture
def employee() -> Employee:
    """Employee on £50/day, previously £40/day before March 2024."""
    return Employee(
        id=EMPLOYEE_ID,
        name="Alice Smith",
        daily_wage=Decimal("50"),
        previous_wage=Decimal("40"),
        wage_change_date=date(2024, 3, 1),
    )


@pytest.fixture
def work_days() -> list[WorkRecord]:
    """Three worked days and one scheduled (not worked) day."""
    return [
        make_work_day("d1", date(2024, 6, 3)),
        make_work_day("d2", date(2024, 6, 4)),
        make_work_day("d3", date(2024, 6, 5)),
        make_work_day("d4", date(2024, 6, 6), worked=False),
    ]


@pytest.fixture
def work_store(work_days: list[WorkRecord]) -> InMemoryWorkRecordStore:
    return InMemoryWorkRecordStore(work_days)


@pytest.fixture
def payment_store() -> InMemoryPaymentRecordStore:
    return InMemoryPaymentRecordStore()


@pytest.fixture
def employee_store(employee: Employee) -> InMemoryEmployeeStore:
    return InMemoryEmployeeStore([employee])


@pytest.fixture
def activity_log() -> ActivityLog:
    return ActivityLog()


@pytest.fixture
def emitter(activity_log: ActivityLog) -> EventEmitter:
    emitter = EventEmitter()
    emitter.on_all(activity_log)
    return emitter


@pytest.fixture
def engine(
    work_store: InMemoryWorkRecordStore,
    payment_store: InMemoryPaymentRecordStore,
    employee_store: InMemoryEmployeeStore,
    emitter: EventEmitter,
) -> LedgerEngine:
    """Engine over in-memory stores with the activity log attached."""
    return LedgerEngine(
        work_store,
        payment_store,
        employees=employee_store,
        emitter=emitter,
    )
