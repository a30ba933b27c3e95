"""Ledger events and in-process dispatch."""

from workday_ledger.events.emitter import ActivityLog, EventEmitter, HandlerRegistration
from workday_ledger.events.types import (
    EventCategory,
    EmployeeRecordsDeleted,
    EventMetadata,
    IntegrityRepaired,
    LedgerEvent,
    PaymentCreated,
    PaymentDeleted,
    PaymentShrunk,
    RollbackFailed,
    WorkDaysMarkedPaid,
    WorkDaysUnmarked,
)

__all__ = [
    "ActivityLog",
    "EventEmitter",
    "HandlerRegistration",
    "EventCategory",
    "EmployeeRecordsDeleted",
    "EventMetadata",
    "IntegrityRepaired",
    "LedgerEvent",
    "PaymentCreated",
    "PaymentDeleted",
    "PaymentShrunk",
    "RollbackFailed",
    "WorkDaysMarkedPaid",
    "WorkDaysUnmarked",
]
