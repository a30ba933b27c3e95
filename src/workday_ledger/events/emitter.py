"""In-process dispatch of ledger events.

Handlers subscribe by event class, by category, or to everything, and may
narrow further to one employee. A handler that raises is logged and skipped;
the remaining handlers still run and the engine call that emitted the event
is unaffected.
"""

from __future__ import annotations

import logging
from collections import deque
from dataclasses import dataclass
from typing import Callable

from workday_ledger.events.types import EventCategory, LedgerEvent

logger = logging.getLogger(__name__)

EventHandler = Callable[[LedgerEvent], None]


@dataclass(frozen=True)
class HandlerRegistration:
    """One subscribed handler and the events it wants."""

    handler: EventHandler
    event_types: frozenset[str] | None = None  # None = any type
    categories: frozenset[EventCategory] | None = None  # None = any category
    employee_id: str | None = None

    def matches(self, event: LedgerEvent) -> bool:
        if self.event_types is not None and event.event_type not in self.event_types:
            return False
        if self.categories is not None and event.category not in self.categories:
            return False
        if self.employee_id is not None:
            return event.involves(self.employee_id)
        return True


class EventEmitter:
    """Synchronous ledger event emitter.

    Usage:
        emitter = EventEmitter()
        emitter.on(PaymentCreated, notify_owner)
        emitter.on_category(EventCategory.INTEGRITY, page_on_call)
        emitter.on_all(ActivityLog())
    """

    def __init__(self) -> None:
        self._registrations: list[HandlerRegistration] = []

    def on(
        self,
        event_type: type[LedgerEvent] | list[type[LedgerEvent]],
        handler: EventHandler,
        *,
        employee_id: str | None = None,
    ) -> HandlerRegistration:
        """Subscribe to one event class or a list of them."""
        classes = event_type if isinstance(event_type, list) else [event_type]
        return self._register(
            HandlerRegistration(
                handler,
                event_types=frozenset(cls.__name__ for cls in classes),
                employee_id=employee_id,
            )
        )

    def on_category(
        self,
        category: EventCategory | list[EventCategory],
        handler: EventHandler,
    ) -> HandlerRegistration:
        """Subscribe to every event in one or more categories."""
        wanted = category if isinstance(category, list) else [category]
        return self._register(HandlerRegistration(handler, categories=frozenset(wanted)))

    def on_all(self, handler: EventHandler) -> HandlerRegistration:
        return self._register(HandlerRegistration(handler))

    def off(self, handler: EventHandler) -> int:
        """Drop every registration of ``handler``; returns how many were removed."""
        kept = [r for r in self._registrations if r.handler is not handler]
        removed = len(self._registrations) - len(kept)
        self._registrations = kept
        return removed

    def _register(self, registration: HandlerRegistration) -> HandlerRegistration:
        self._registrations.append(registration)
        return registration

    def emit(self, event: LedgerEvent) -> list[Exception]:
        """Deliver ``event`` to matching handlers in registration order.

        Returns the exceptions raised by handlers, if any.
        """
        errors: list[Exception] = []
        for registration in self._registrations:
            if not registration.matches(event):
                continue
            try:
                registration.handler(event)
            except Exception as e:
                logger.exception("Handler %r failed for %s", registration.handler, event.event_type)
                errors.append(e)
        return errors


class ActivityLog:
    """Bounded in-memory history of ledger events, newest last.

    Register with ``emitter.on_all(activity_log)``.
    """

    def __init__(self, max_entries: int = 1000) -> None:
        self._events: deque[LedgerEvent] = deque(maxlen=max_entries)

    def __call__(self, event: LedgerEvent) -> None:
        self._events.append(event)

    def __len__(self) -> int:
        return len(self._events)

    def entries(
        self,
        category: EventCategory | None = None,
        employee_id: str | None = None,
    ) -> list[LedgerEvent]:
        """Recorded events, optionally filtered by category and employee."""
        return [
            event
            for event in self._events
            if (category is None or event.category == category)
            and (employee_id is None or event.involves(employee_id))
        ]
