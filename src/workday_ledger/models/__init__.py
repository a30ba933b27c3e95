"""SQLAlchemy ORM models for the document collections."""

from workday_ledger.models.base import Base, DocumentMixin
from workday_ledger.models.documents import (
    EmployeeDocument,
    PaymentDocument,
    WorkDayDocument,
)

__all__ = [
    "Base",
    "DocumentMixin",
    "EmployeeDocument",
    "PaymentDocument",
    "WorkDayDocument",
]
