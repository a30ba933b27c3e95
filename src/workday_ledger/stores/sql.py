"""SQLAlchemy-backed document stores.

Each collection is a table of JSON documents keyed by id. Every call opens
its own session and commits on its own, so a multi-record operation is a
sequence of independent writes exactly as with a hosted document store.
"""

from __future__ import annotations

from typing import Any, Generic, TypeVar

from sqlalchemy import delete, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from workday_ledger.models import EmployeeDocument, PaymentDocument, WorkDayDocument
from workday_ledger.schemas import Employee, PaymentRecord, WorkRecord
from workday_ledger.stores.base import StoreError

T = TypeVar("T", Employee, WorkRecord, PaymentRecord)


class _SqlDocumentCollection(Generic[T]):
    """Generic document collection over one ORM table."""

    model: type[Any]
    schema: type[T]
    collection: str

    def __init__(self, session_factory: async_sessionmaker[AsyncSession]):
        self.session_factory = session_factory

    async def get(self, record_id: str) -> T | None:
        try:
            async with self.session_factory() as session:
                row = await session.get(self.model, record_id)
                if row is None:
                    return None
                return self.schema.from_document(row.body)
        except SQLAlchemyError as e:
            raise StoreError("get", self.collection, record_id, str(e)) from e

    async def put(self, record: T) -> None:
        try:
            async with self.session_factory() as session:
                await session.merge(
                    self.model(
                        id=record.id,
                        employee_id=self._employee_id(record),
                        body=record.to_document(),
                    )
                )
                await session.commit()
        except SQLAlchemyError as e:
            raise StoreError("put", self.collection, record.id, str(e)) from e

    async def delete(self, record_id: str) -> None:
        try:
            async with self.session_factory() as session:
                await session.execute(delete(self.model).where(self.model.id == record_id))
                await session.commit()
        except SQLAlchemyError as e:
            raise StoreError("delete", self.collection, record_id, str(e)) from e

    async def list_all(self) -> list[T]:
        try:
            async with self.session_factory() as session:
                result = await session.execute(select(self.model).order_by(self.model.id))
                return [self.schema.from_document(row.body) for row in result.scalars().all()]
        except SQLAlchemyError as e:
            raise StoreError("list_all", self.collection, reason=str(e)) from e

    async def list_for_employee(self, employee_id: str) -> list[T]:
        """Return the documents belonging to one employee."""
        try:
            async with self.session_factory() as session:
                result = await session.execute(
                    select(self.model)
                    .where(self.model.employee_id == employee_id)
                    .order_by(self.model.id)
                )
                return [self.schema.from_document(row.body) for row in result.scalars().all()]
        except SQLAlchemyError as e:
            raise StoreError("list_for_employee", self.collection, reason=str(e)) from e

    def _employee_id(self, record: T) -> str | None:
        return getattr(record, "employee_id", None)


class SqlWorkRecordStore(_SqlDocumentCollection[WorkRecord]):
    """WorkRecordStore over the ``work_days`` table."""

    model = WorkDayDocument
    schema = WorkRecord
    collection = "work_days"


class SqlPaymentRecordStore(_SqlDocumentCollection[PaymentRecord]):
    """PaymentRecordStore over the ``payments`` table."""

    model = PaymentDocument
    schema = PaymentRecord
    collection = "payments"


class SqlEmployeeStore(_SqlDocumentCollection[Employee]):
    """EmployeeStore over the ``employees`` table."""

    model = EmployeeDocument
    schema = Employee
    collection = "employees"

    def _employee_id(self, record: Employee) -> str | None:
        return record.id
