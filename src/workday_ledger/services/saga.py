"""Compensating sequence for multi-document writes.

The store has no transactions, so an operation that touches several
documents runs as an ordered list of steps, each pairing a forward write
with the write that undoes it. On failure the completed steps are undone in
reverse order and the outcome of every step is kept for reporting.

Allowed transitions:
- running → completed
- running → compensating
- compensating → compensated
- compensating → compensation_failed
"""

from __future__ import annotations

import logging
from collections.abc import Awaitable, Callable
from dataclasses import dataclass, field
from enum import Enum
from typing import Any

logger = logging.getLogger(__name__)


class SequenceStatus(str, Enum):
    """Compensating sequence status values."""

    RUNNING = "running"
    COMPLETED = "completed"
    COMPENSATING = "compensating"
    COMPENSATED = "compensated"
    COMPENSATION_FAILED = "compensation_failed"


class StepStatus(str, Enum):
    """Per-step status values."""

    PENDING = "pending"
    COMPLETED = "completed"
    FAILED = "failed"
    COMPENSATED = "compensated"
    COMPENSATION_FAILED = "compensation_failed"


class InvalidTransitionError(Exception):
    """Raised when an invalid sequence transition is attempted."""

    def __init__(self, from_status: str, to_status: str):
        self.from_status = from_status
        self.to_status = to_status
        super().__init__(f"Invalid transition from '{from_status}' to '{to_status}'")


@dataclass
class SequenceStep:
    """One forward write and its compensation."""

    label: str
    record_id: str
    compensation: Callable[[], Awaitable[Any]] | None = None
    status: StepStatus = StepStatus.PENDING
    error: BaseException | None = None


@dataclass
class CompensationReport:
    """Outcome of undoing a sequence."""

    rolled_back_ids: list[str] = field(default_factory=list)
    failed: dict[str, BaseException] = field(default_factory=dict)

    @property
    def success(self) -> bool:
        return not self.failed


class CompensatingSequence:
    """Tracks forward steps so a failure can be undone exactly."""

    VALID_TRANSITIONS: dict[SequenceStatus, list[SequenceStatus]] = {
        SequenceStatus.RUNNING: [SequenceStatus.COMPLETED, SequenceStatus.COMPENSATING],
        SequenceStatus.COMPENSATING: [
            SequenceStatus.COMPENSATED,
            SequenceStatus.COMPENSATION_FAILED,
        ],
        SequenceStatus.COMPLETED: [],
        SequenceStatus.COMPENSATED: [],
        SequenceStatus.COMPENSATION_FAILED: [],
    }

    def __init__(self, operation: str):
        self.operation = operation
        self.status = SequenceStatus.RUNNING
        self.steps: list[SequenceStep] = []

    @classmethod
    def can_transition(cls, from_status: SequenceStatus, to_status: SequenceStatus) -> bool:
        return to_status in cls.VALID_TRANSITIONS.get(from_status, [])

    def _transition(self, to_status: SequenceStatus) -> None:
        if not self.can_transition(self.status, to_status):
            raise InvalidTransitionError(self.status.value, to_status.value)
        self.status = to_status

    async def run(
        self,
        label: str,
        record_id: str,
        action: Callable[[], Awaitable[Any]],
        compensation: Callable[[], Awaitable[Any]] | None = None,
    ) -> Any:
        """Execute one forward step, recording it for compensation.

        The step's exception propagates unchanged; the caller decides
        whether to compensate.
        """
        if self.status != SequenceStatus.RUNNING:
            raise InvalidTransitionError(self.status.value, SequenceStatus.RUNNING.value)

        step = SequenceStep(label=label, record_id=record_id, compensation=compensation)
        self.steps.append(step)
        try:
            result = await action()
        except Exception as e:
            step.status = StepStatus.FAILED
            step.error = e
            raise
        step.status = StepStatus.COMPLETED
        return result

    def complete(self) -> None:
        self._transition(SequenceStatus.COMPLETED)

    async def compensate(self) -> CompensationReport:
        """Undo every completed step in reverse order.

        A failing compensation does not stop the others.
        """
        self._transition(SequenceStatus.COMPENSATING)
        report = CompensationReport()

        for step in reversed(self.steps):
            if step.status != StepStatus.COMPLETED or step.compensation is None:
                continue
            try:
                await step.compensation()
            except Exception as e:
                logger.warning(
                    "%s: compensation of %s %s failed: %s",
                    self.operation,
                    step.label,
                    step.record_id,
                    e,
                )
                step.status = StepStatus.COMPENSATION_FAILED
                step.error = e
                report.failed[step.record_id] = e
            else:
                step.status = StepStatus.COMPENSATED
                report.rolled_back_ids.append(step.record_id)

        report.rolled_back_ids.reverse()
        self._transition(
            SequenceStatus.COMPENSATED if report.success else SequenceStatus.COMPENSATION_FAILED
        )
        return report

    @property
    def completed_ids(self) -> list[str]:
        """Ids of steps whose forward write succeeded, in execution order."""
        return [
            s.record_id
            for s in self.steps
            if s.status
            in (StepStatus.COMPLETED, StepStatus.COMPENSATED, StepStatus.COMPENSATION_FAILED)
        ]

    @property
    def failed_step(self) -> SequenceStep | None:
        for step in self.steps:
            if step.status == StepStatus.FAILED:
                return step
        return None

    @property
    def residual_ids(self) -> list[str]:
        """Ids still carrying forward writes after compensation."""
        return [s.record_id for s in self.steps if s.status == StepStatus.COMPENSATION_FAILED]
