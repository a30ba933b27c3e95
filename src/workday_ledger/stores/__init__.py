"""Document stores consumed by the ledger engine."""

from workday_ledger.stores.base import (
    EmployeeStore,
    PaymentRecordStore,
    StoreError,
    WorkRecordStore,
)
from workday_ledger.stores.memory import (
    InMemoryEmployeeStore,
    InMemoryPaymentRecordStore,
    InMemoryWorkRecordStore,
)
from workday_ledger.stores.sql import (
    SqlEmployeeStore,
    SqlPaymentRecordStore,
    SqlWorkRecordStore,
)

__all__ = [
    "EmployeeStore",
    "PaymentRecordStore",
    "StoreError",
    "WorkRecordStore",
    "InMemoryEmployeeStore",
    "InMemoryPaymentRecordStore",
    "InMemoryWorkRecordStore",
    "SqlEmployeeStore",
    "SqlPaymentRecordStore",
    "SqlWorkRecordStore",
]
