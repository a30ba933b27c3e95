"""Tests for ledger events and the emitter."""

import json
from datetime import date
from decimal import Decimal

import pytest

from workday_ledger.events import (
    ActivityLog,
    EventCategory,
    EventEmitter,
    EventMetadata,
    IntegrityRepaired,
    PaymentCreated,
    PaymentDeleted,
    WorkDaysUnmarked,
)
from workday_ledger.services import ResolutionPolicy
from tests.conftest import make_work_day


def payment_created(employee_id="emp-1"):
    return PaymentCreated(
        metadata=EventMetadata.create("create_payment_and_mark"),
        payment_id="p1",
        employee_id=employee_id,
        work_day_ids=("d1", "d2"),
        amount=Decimal("100.00"),
        payment_type="Cash",
    )


def work_days_unmarked():
    return WorkDaysUnmarked(
        metadata=EventMetadata.create("unmark_as_paid"),
        work_day_ids=("d1",),
    )


class TestEventTypes:
    """Test event serialization."""

    def test_to_dict(self):
        event = payment_created()

        data = event.to_dict()

        assert data["event_type"] == "PaymentCreated"
        assert data["category"] == "payment"
        assert data["amount"] == "100.00"
        assert data["work_day_ids"] == ["d1", "d2"]
        assert data["metadata"]["source_operation"] == "create_payment_and_mark"
        assert isinstance(data["metadata"]["event_id"], str)

    def test_to_json(self):
        decoded = json.loads(payment_created().to_json())

        assert decoded["payment_id"] == "p1"

    def test_metadata_correlation(self):
        first = EventMetadata.create("op")
        second = EventMetadata.create("op", first.correlation_id)

        assert first.correlation_id == second.correlation_id
        assert first.event_id != second.event_id
        assert first.actor == "system"

    def test_involves_single_and_multi_employee_events(self):
        unmarked = WorkDaysUnmarked(
            metadata=EventMetadata.create("unmark_as_paid"),
            work_day_ids=("d1", "x1"),
            employee_ids=("emp-1", "emp-2"),
        )

        assert payment_created("emp-1").involves("emp-1") is True
        assert payment_created("emp-1").involves("emp-2") is False
        assert unmarked.involves("emp-2") is True
        assert unmarked.involves("emp-3") is False
        assert work_days_unmarked().involves("emp-1") is False


class TestEventEmitter:
    """Test handler routing and isolation."""

    def test_type_filter(self):
        emitter = EventEmitter()
        received = []
        emitter.on(PaymentCreated, received.append)

        emitter.emit(payment_created())
        emitter.emit(work_days_unmarked())

        assert [e.event_type for e in received] == ["PaymentCreated"]

    def test_type_list(self):
        emitter = EventEmitter()
        received = []
        emitter.on([PaymentCreated, WorkDaysUnmarked], received.append)

        emitter.emit(payment_created())
        emitter.emit(work_days_unmarked())

        assert len(received) == 2

    def test_category_filter(self):
        emitter = EventEmitter()
        received = []
        emitter.on_category(EventCategory.WORK_DAY, received.append)

        emitter.emit(payment_created())
        emitter.emit(work_days_unmarked())

        assert [e.event_type for e in received] == ["WorkDaysUnmarked"]

    def test_failing_handler_is_isolated(self):
        """A broken handler does not stop the others."""
        emitter = EventEmitter()
        received = []

        def broken(event):
            raise RuntimeError("boom")

        emitter.on_all(broken)
        emitter.on_all(received.append)

        errors = emitter.emit(payment_created())

        assert len(received) == 1
        assert len(errors) == 1
        assert str(errors[0]) == "boom"

    def test_off(self):
        emitter = EventEmitter()
        received = []

        def handler(event):
            received.append(event)

        emitter.on_all(handler)
        assert emitter.off(handler) == 1
        emitter.emit(payment_created())

        assert received == []

    def test_employee_filter(self):
        emitter = EventEmitter()
        received = []
        emitter.on(PaymentCreated, received.append, employee_id="emp-2")

        emitter.emit(payment_created("emp-1"))
        emitter.emit(payment_created("emp-2"))

        assert [e.employee_id for e in received] == ["emp-2"]


class TestActivityLog:
    """Test the bounded activity history."""

    def test_bounded(self):
        log = ActivityLog(max_entries=2)
        for _ in range(3):
            log(work_days_unmarked())

        assert len(log) == 2

    def test_filters(self):
        log = ActivityLog()
        log(payment_created("emp-1"))
        log(payment_created("emp-2"))
        log(work_days_unmarked())

        assert len(log.entries(category=EventCategory.PAYMENT)) == 2
        assert len(log.entries(employee_id="emp-2")) == 1
        assert len(log.entries(category=EventCategory.WORK_DAY)) == 1


class TestEngineEvents:
    """Test the events the engine emits."""

    @pytest.mark.asyncio
    async def test_force_unmark_events_share_correlation(self, engine, activity_log):
        await engine.create_payment_and_mark("emp-1", ["d1"], 50, "Cash")
        created_count = len(activity_log)

        await engine.force_unmark_as_paid(["d1"], ResolutionPolicy.SHRINK)

        deleted, unmarked = activity_log.entries()[created_count:]
        assert isinstance(deleted, PaymentDeleted)
        assert isinstance(unmarked, WorkDaysUnmarked)
        assert unmarked.forced is True
        assert deleted.metadata.correlation_id == unmarked.metadata.correlation_id

    @pytest.mark.asyncio
    async def test_repair_emits_summary(self, engine, work_store, activity_log):
        await work_store.put(make_work_day("d1", date(2024, 6, 3), paid=True))

        await engine.repair_integrity()

        (event,) = activity_log.entries(category=EventCategory.INTEGRITY)
        assert isinstance(event, IntegrityRepaired)
        assert event.marked_unpaid == ("d1",)
        assert event.failed == ()

    @pytest.mark.asyncio
    async def test_guarded_unmark_emits_nothing_when_confirmation_needed(
        self, engine, activity_log
    ):
        await engine.create_payment_and_mark("emp-1", ["d1"], 50, "Cash")
        before = len(activity_log)

        await engine.unmark_as_paid(["d1"])

        assert len(activity_log) == before

    @pytest.mark.asyncio
    async def test_work_day_events_follow_employee_filter(
        self, engine, emitter, work_store, activity_log
    ):
        """Flag changes reach handlers and log views scoped to their employee."""
        await work_store.put(make_work_day("x1", date(2024, 6, 3), employee_id="emp-2"))
        received = []
        emitter.on(WorkDaysUnmarked, received.append, employee_id="emp-1")

        await engine.create_payment_and_mark("emp-1", ["d1", "d2"], 100, "Cash")
        await engine.force_unmark_as_paid(["d1"], ResolutionPolicy.SHRINK)

        emp_1_types = [e.event_type for e in activity_log.entries(employee_id="emp-1")]
        assert "WorkDaysMarkedPaid" in emp_1_types
        assert "WorkDaysUnmarked" in emp_1_types
        assert activity_log.entries(employee_id="emp-2") == []
        assert [e.employee_ids for e in received] == [("emp-1",)]
