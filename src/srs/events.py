"""
Domain events emitted by `ReviewSchedule`.

Events are immutable pydantic models so that callers can persist them in an
outbox (`model_dump(mode="json")`) before handing them to an event sink.
"""

from __future__ import annotations

import datetime as dt
import enum
import uuid
from typing import Any, Dict, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field


class NotificationType(str, enum.Enum):
    REVIEW_DUE = "review_due"
    REVIEW_OVERDUE = "review_overdue"


class NotificationPriority(str, enum.Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


class DomainEvent(BaseModel):
    """Common envelope for all scheduling events."""

    model_config = ConfigDict(frozen=True)

    event_id: str = Field(default_factory=lambda: str(uuid.uuid4()))
    aggregate_id: str
    occurred_at: dt.datetime


class ReviewScheduled(DomainEvent):
    """A schedule was created for a (student, item) pair."""

    event_type: Literal["ReviewScheduled"] = "ReviewScheduled"
    student_id: str
    problem_id: str
    next_review_at: dt.datetime


class ReviewCompleted(DomainEvent):
    """
    A feedback submission was applied.

    Carries before/after snapshots and the attempt data needed to
    synthesise a `StudyRecord`.
    """

    event_type: Literal["ReviewCompleted"] = "ReviewCompleted"
    student_id: str
    problem_id: str
    feedback: str
    previous_interval: int
    new_interval: int
    previous_ease_factor: float
    new_ease_factor: float
    previous_review_count: int
    review_count: int
    previous_next_review_at: dt.datetime
    next_review_at: dt.datetime
    previous_consecutive_failures: int
    consecutive_failures: int
    is_correct: bool
    response_time_ms: Optional[int] = None
    answer_content: Optional[Any] = None


class ReviewNotificationScheduled(DomainEvent):
    """A reminder or overdue alert should be delivered at `scheduled_for`."""

    event_type: Literal["ReviewNotificationScheduled"] = "ReviewNotificationScheduled"
    student_id: str
    problem_id: str
    notification_type: NotificationType
    scheduled_for: dt.datetime
    due_at: dt.datetime
    priority: NotificationPriority = NotificationPriority.MEDIUM
    metadata: Dict[str, Any] = Field(default_factory=dict)

    @classmethod
    def review_due(
        cls,
        *,
        aggregate_id: str,
        student_id: str,
        problem_id: str,
        due_at: dt.datetime,
        scheduled_for: dt.datetime,
        occurred_at: dt.datetime,
        priority: NotificationPriority = NotificationPriority.MEDIUM,
        metadata: Optional[Dict[str, Any]] = None,
    ) -> "ReviewNotificationScheduled":
        return cls(
            aggregate_id=aggregate_id,
            student_id=student_id,
            problem_id=problem_id,
            notification_type=NotificationType.REVIEW_DUE,
            scheduled_for=scheduled_for,
            due_at=due_at,
            priority=priority,
            metadata=metadata or {},
            occurred_at=occurred_at,
        )

    @classmethod
    def overdue(
        cls,
        *,
        aggregate_id: str,
        student_id: str,
        problem_id: str,
        due_at: dt.datetime,
        overdue_hours: int,
        occurred_at: dt.datetime,
    ) -> "ReviewNotificationScheduled":
        return cls(
            aggregate_id=aggregate_id,
            student_id=student_id,
            problem_id=problem_id,
            notification_type=NotificationType.REVIEW_OVERDUE,
            scheduled_for=occurred_at,
            due_at=due_at,
            priority=NotificationPriority.HIGH,
            metadata={
                "overdue_hours": overdue_hours,
                "notification_reason": "review_overdue",
            },
            occurred_at=occurred_at,
        )

    @property
    def overdue_hours(self) -> Optional[int]:
        return self.metadata.get("overdue_hours")

    @property
    def should_send_immediately(self) -> bool:
        return (
            self.notification_type is NotificationType.REVIEW_OVERDUE
            or self.scheduled_for <= self.occurred_at
        )

    def time_until_notification(self, now: dt.datetime) -> dt.timedelta:
        remaining = self.scheduled_for - now
        return remaining if remaining > dt.timedelta(0) else dt.timedelta(0)


SchedulingEvent = Union[ReviewScheduled, ReviewCompleted, ReviewNotificationScheduled]
