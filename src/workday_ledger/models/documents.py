"""Document collection tables."""

from __future__ import annotations

from workday_ledger.models.base import Base, DocumentMixin


class EmployeeDocument(DocumentMixin, Base):
    """Employee documents."""

    __tablename__ = "employees"


class WorkDayDocument(DocumentMixin, Base):
    """Work record documents, one per employee per day."""

    __tablename__ = "work_days"


class PaymentDocument(DocumentMixin, Base):
    """Payment record documents."""

    __tablename__ = "payments"
