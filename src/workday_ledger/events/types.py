"""Ledger event types.

All events are immutable, self-describing and serializable so they can be
kept as an activity history of what the engine did.
"""

from __future__ import annotations

import json
from dataclasses import asdict, dataclass
from datetime import date, datetime, timezone
from decimal import Decimal
from enum import Enum
from typing import Any
from uuid import UUID, uuid4


class EventCategory(str, Enum):
    """Event categories for routing and filtering."""

    PAYMENT = "payment"
    WORK_DAY = "work_day"
    INTEGRITY = "integrity"
    EMPLOYEE = "employee"


@dataclass(frozen=True)
class EventMetadata:
    """Metadata attached to every ledger event."""

    event_id: UUID
    timestamp: datetime
    correlation_id: UUID  # Links events emitted by one engine call
    actor: str  # 'user', 'system', 'cli'
    source_operation: str

    @classmethod
    def create(
        cls,
        source_operation: str,
        correlation_id: UUID | None = None,
        actor: str = "system",
    ) -> EventMetadata:
        """Create metadata with auto-generated fields."""
        return cls(
            event_id=uuid4(),
            timestamp=datetime.now(timezone.utc),
            correlation_id=correlation_id or uuid4(),
            actor=actor,
            source_operation=source_operation,
        )


@dataclass(frozen=True)
class LedgerEvent:
    """Base class for all ledger events."""

    metadata: EventMetadata

    @property
    def event_type(self) -> str:
        return self.__class__.__name__

    @property
    def category(self) -> EventCategory:
        raise NotImplementedError("Subclasses must define category")

    def involves(self, employee_id: str) -> bool:
        """True if the event concerns the given employee."""
        if getattr(self, "employee_id", None) == employee_id:
            return True
        return employee_id in getattr(self, "employee_ids", ())

    def to_dict(self) -> dict[str, Any]:
        data = _serialize(asdict(self))
        data["event_type"] = self.event_type
        data["category"] = self.category.value
        return data

    def to_json(self) -> str:
        return json.dumps(self.to_dict(), default=str)


def _serialize(obj: Any) -> Any:
    """Recursively serialize objects for JSON compatibility."""
    if isinstance(obj, dict):
        return {k: _serialize(v) for k, v in obj.items()}
    elif isinstance(obj, (list, tuple)):
        return [_serialize(v) for v in obj]
    elif isinstance(obj, UUID):
        return str(obj)
    elif isinstance(obj, (datetime, date)):
        return obj.isoformat()
    elif isinstance(obj, Decimal):
        return str(obj)
    elif isinstance(obj, Enum):
        return obj.value
    return obj


# =============================================================================
# Payment Events
# =============================================================================


@dataclass(frozen=True)
class PaymentCreated(LedgerEvent):
    """A payment record was written after its work days were marked paid."""

    payment_id: str
    employee_id: str
    work_day_ids: tuple[str, ...]
    amount: Decimal
    payment_type: str

    @property
    def category(self) -> EventCategory:
        return EventCategory.PAYMENT


@dataclass(frozen=True)
class PaymentDeleted(LedgerEvent):
    """A payment record was deleted by a forced unmark."""

    payment_id: str
    employee_id: str
    amount: Decimal

    @property
    def category(self) -> EventCategory:
        return EventCategory.PAYMENT


@dataclass(frozen=True)
class PaymentShrunk(LedgerEvent):
    """A payment record lost some of its covered days."""

    payment_id: str
    employee_id: str
    removed_work_day_ids: tuple[str, ...]
    previous_amount: Decimal
    new_amount: Decimal

    @property
    def category(self) -> EventCategory:
        return EventCategory.PAYMENT


# =============================================================================
# Work Day Events
# =============================================================================


@dataclass(frozen=True)
class WorkDaysMarkedPaid(LedgerEvent):
    """Work days were flagged paid."""

    work_day_ids: tuple[str, ...]
    employee_ids: tuple[str, ...] = ()

    @property
    def category(self) -> EventCategory:
        return EventCategory.WORK_DAY


@dataclass(frozen=True)
class WorkDaysUnmarked(LedgerEvent):
    """Work days were flagged unpaid."""

    work_day_ids: tuple[str, ...]
    forced: bool = False
    employee_ids: tuple[str, ...] = ()

    @property
    def category(self) -> EventCategory:
        return EventCategory.WORK_DAY


# =============================================================================
# Integrity Events
# =============================================================================


@dataclass(frozen=True)
class RollbackFailed(LedgerEvent):
    """A rollback could not restore every record; manual follow-up needed."""

    residual_ids: tuple[str, ...]
    reason: str
    employee_ids: tuple[str, ...] = ()

    @property
    def category(self) -> EventCategory:
        return EventCategory.INTEGRITY


@dataclass(frozen=True)
class IntegrityRepaired(LedgerEvent):
    """The repair pass rewrote work day flags.

    Store-wide, so it carries no employee and never matches an employee filter.
    """

    marked_unpaid: tuple[str, ...]
    marked_paid: tuple[str, ...]
    failed: tuple[str, ...] = ()

    @property
    def category(self) -> EventCategory:
        return EventCategory.INTEGRITY


# =============================================================================
# Employee Events
# =============================================================================


@dataclass(frozen=True)
class EmployeeRecordsDeleted(LedgerEvent):
    """An employee's payments, work days and profile were deleted."""

    employee_id: str
    deleted_payment_ids: tuple[str, ...]
    deleted_work_day_ids: tuple[str, ...]
    employee_deleted: bool

    @property
    def category(self) -> EventCategory:
        return EventCategory.EMPLOYEE
