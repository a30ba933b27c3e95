"""Pydantic schemas for the stored documents.

Attribute names are snake_case; the camelCase aliases are the field names
already present in stored data and must not change.
"""

from __future__ import annotations

import datetime as dt
from collections.abc import Iterable
from decimal import Decimal
from typing import Annotated, Any

from pydantic import BaseModel, ConfigDict, Field, PlainSerializer
from pydantic.alias_generators import to_camel

# Stored documents hold plain JSON numbers for money
Money = Annotated[Decimal, PlainSerializer(float, return_type=float, when_used="json")]

PAYMENT_TYPES = (
    "Bank Transfer",
    "PayPal",
    "Cash",
    "Other",
)


class DocumentModel(BaseModel):
    """Base for stored documents."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        frozen=True,
    )

    def to_document(self) -> dict[str, Any]:
        """Serialize to the stored document shape (camelCase, no nulls)."""
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)

    @classmethod
    def from_document(cls, data: dict[str, Any]):
        """Parse a stored document."""
        return cls.model_validate(data)


class Employee(DocumentModel):
    """Employee with single-point wage history."""

    id: str
    name: str = ""
    daily_wage: Money
    previous_wage: Money | None = None
    wage_change_date: dt.date | None = None
    email: str | None = None
    phone: str | None = None
    start_date: dt.date | None = None
    notes: str | None = None


class WorkRecord(DocumentModel):
    """One employee's record for one calendar day."""

    id: str
    employee_id: str
    date: dt.date
    worked: bool = False
    paid: bool = False
    custom_amount: Money | None = None
    notes: str | None = None


class PaymentRecord(DocumentModel):
    """A payment covering one or more work records."""

    id: str
    employee_id: str
    work_day_ids: list[str] = Field(min_length=1)
    amount: Money
    payment_type: str
    date: dt.date
    notes: str | None = None
    created_at: dt.datetime

    def covers(self, work_day_ids: Iterable[str]) -> set[str]:
        """Return the subset of ``work_day_ids`` this payment claims."""
        return set(self.work_day_ids) & set(work_day_ids)

    def describe(self) -> str:
        """Short human-readable summary."""
        days = len(self.work_day_ids)
        return (
            f"£{self.amount:.2f} paid by {self.payment_type} on "
            f"{self.date.isoformat()} covering {days} day{'s' if days != 1 else ''}"
        )
