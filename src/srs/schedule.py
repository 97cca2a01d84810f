from __future__ import annotations

import datetime as dt
import logging
import math
import uuid
from typing import Any, List, Literal, Optional, Tuple

from .clock import Clock, SystemClock
from .config import DEFAULT_POLICY_CONFIG, SrsPolicyConfig
from .events import (
    NotificationPriority,
    ReviewCompleted,
    ReviewNotificationScheduled,
    ReviewScheduled,
    SchedulingEvent,
)
from .result import Result, guard_required
from .scheduler import SpacedRepetitionPolicy
from .state import ReviewState
from .values import EaseFactor, ReviewFeedback

logger = logging.getLogger(__name__)

DifficultyLevel = Literal["beginner", "intermediate", "advanced"]


class ReviewSchedule:
    """
    Aggregate root owning the review state of one (student, item) pair.

    The policy and clock are passed to every operation rather than stored,
    which keeps the aggregate serialisable and the algorithm swappable.
    Events are buffered internally and must be drained by the caller after
    the aggregate has been persisted.

    Not safe for concurrent use: callers must guarantee a single writer per
    aggregate instance.
    """

    def __init__(
        self,
        *,
        schedule_id: str,
        student_id: str,
        problem_id: str,
        review_state: ReviewState,
        consecutive_failures: int,
        created_at: dt.datetime,
        updated_at: dt.datetime,
    ) -> None:
        self._id = schedule_id
        self._student_id = student_id
        self._problem_id = problem_id
        self._review_state = review_state
        self._consecutive_failures = consecutive_failures
        self._created_at = created_at
        self._updated_at = updated_at
        self._pending_events: List[SchedulingEvent] = []

    # ------------------------------------------------------------------
    # Construction
    # ------------------------------------------------------------------

    @classmethod
    def create(
        cls,
        *,
        student_id: Optional[str],
        problem_id: Optional[str],
        review_state: Optional[ReviewState],
        consecutive_failures: int = 0,
        clock: Optional[Clock] = None,
        schedule_id: Optional[str] = None,
    ) -> Result["ReviewSchedule"]:
        """
        Validated factory for a brand new schedule.

        Emits `ReviewScheduled`. Use `restore` to rebuild persisted
        schedules instead.
        """
        guard = guard_required(
            [
                (student_id, "student_id"),
                (problem_id, "problem_id"),
                (review_state, "review_state"),
            ]
        )
        if guard.is_failure:
            return Result.fail(guard.error or "invalid arguments")
        if consecutive_failures < 0:
            return Result.fail("consecutive_failures must be non-negative")

        now = (clock or SystemClock()).now()
        schedule = cls(
            schedule_id=schedule_id or str(uuid.uuid4()),
            student_id=str(student_id),
            problem_id=str(problem_id),
            review_state=review_state,  # type: ignore[arg-type]
            consecutive_failures=consecutive_failures,
            created_at=now,
            updated_at=now,
        )
        schedule._record(
            ReviewScheduled(
                aggregate_id=schedule.id,
                student_id=schedule.student_id,
                problem_id=schedule.problem_id,
                next_review_at=schedule.next_review_at,
                occurred_at=now,
            )
        )
        return Result.ok(schedule)

    @classmethod
    def restore(
        cls,
        *,
        schedule_id: str,
        student_id: str,
        problem_id: str,
        review_state: ReviewState,
        consecutive_failures: int,
        created_at: dt.datetime,
        updated_at: dt.datetime,
    ) -> "ReviewSchedule":
        """
        Rebuild a persisted schedule without validation or events.

        Only persistence adapters should call this, with data they already
        know to be valid.
        """
        return cls(
            schedule_id=schedule_id,
            student_id=student_id,
            problem_id=problem_id,
            review_state=review_state,
            consecutive_failures=consecutive_failures,
            created_at=created_at,
            updated_at=updated_at,
        )

    def snapshot(self) -> "ReviewSchedule":
        """Independent copy of the persisted state, without pending events."""
        return self.restore(
            schedule_id=self._id,
            student_id=self._student_id,
            problem_id=self._problem_id,
            review_state=self._review_state,
            consecutive_failures=self._consecutive_failures,
            created_at=self._created_at,
            updated_at=self._updated_at,
        )

    # ------------------------------------------------------------------
    # Accessors
    # ------------------------------------------------------------------

    @property
    def id(self) -> str:
        return self._id

    @property
    def student_id(self) -> str:
        return self._student_id

    @property
    def problem_id(self) -> str:
        return self._problem_id

    @property
    def review_state(self) -> ReviewState:
        return self._review_state

    @property
    def consecutive_failures(self) -> int:
        return self._consecutive_failures

    @property
    def created_at(self) -> dt.datetime:
        return self._created_at

    @property
    def updated_at(self) -> dt.datetime:
        return self._updated_at

    @property
    def current_interval(self) -> int:
        return self._review_state.interval.days

    @property
    def ease_factor(self) -> float:
        return self._review_state.ease_factor.value

    @property
    def review_count(self) -> int:
        return self._review_state.review_count

    @property
    def last_reviewed_at(self) -> Optional[dt.datetime]:
        return self._review_state.last_reviewed_at

    @property
    def next_review_at(self) -> dt.datetime:
        return self._review_state.next_review_at

    # ------------------------------------------------------------------
    # Event buffer
    # ------------------------------------------------------------------

    @property
    def pending_events(self) -> Tuple[SchedulingEvent, ...]:
        return tuple(self._pending_events)

    def drain_events(self) -> List[SchedulingEvent]:
        """Return buffered events in emission order and clear the buffer."""
        events = self._pending_events
        self._pending_events = []
        return events

    def _record(self, event: SchedulingEvent) -> None:
        self._pending_events.append(event)

    # ------------------------------------------------------------------
    # Commands
    # ------------------------------------------------------------------

    def process_review_feedback(
        self,
        feedback: Optional[ReviewFeedback],
        policy: Optional[SpacedRepetitionPolicy],
        clock: Optional[Clock],
        *,
        response_time_ms: Optional[int] = None,
        answer_content: Optional[Any] = None,
    ) -> Result[None]:
        """
        Apply a learner's feedback and compute the next review.

        All intermediate values are local; the aggregate is only mutated in
        the final commit step, so a failure leaves it untouched.
        """
        guard = guard_required(
            [(feedback, "feedback"), (policy, "policy"), (clock, "clock")]
        )
        if guard.is_failure:
            return Result.fail(guard.error or "invalid arguments")
        if response_time_ms is not None and response_time_ms < 0:
            return Result.fail("response_time_ms must be non-negative")

        try:
            reviewed_at = clock.now()
            cfg = policy.config

            current_state = self._review_state
            current_failures = self._consecutive_failures

            late = policy.adjust_for_late_review(current_state, reviewed_at)
            adjusted_state = current_state.with_new_review(
                late.new_interval,
                late.new_ease_factor,
                reviewed_at,
            )
            calculated = policy.calculate_next_interval(adjusted_state, feedback)

            new_failures = current_failures + 1 if feedback.is_again() else 0

            final_interval = calculated.new_interval
            final_ease = calculated.new_ease_factor
            relearn_delay = calculated.relearn_delay
            if policy.should_reset_interval(current_state, new_failures):
                if current_state.interval.days > 1:
                    final_interval = current_state.interval
                    relearn_delay = None
                final_ease = EaseFactor.minimum(cfg)

            next_review_at = None
            if relearn_delay is not None:
                next_review_at = reviewed_at + relearn_delay
            new_state = current_state.with_new_review(
                final_interval,
                final_ease,
                reviewed_at,
                next_review_at=next_review_at,
            )

            events: List[SchedulingEvent] = [
                ReviewCompleted(
                    aggregate_id=self.id,
                    student_id=self.student_id,
                    problem_id=self.problem_id,
                    feedback=feedback.value,
                    previous_interval=current_state.interval.days,
                    new_interval=new_state.interval.days,
                    previous_ease_factor=current_state.ease_factor.value,
                    new_ease_factor=new_state.ease_factor.value,
                    previous_review_count=current_state.review_count,
                    review_count=new_state.review_count,
                    previous_next_review_at=current_state.next_review_at,
                    next_review_at=new_state.next_review_at,
                    previous_consecutive_failures=current_failures,
                    consecutive_failures=new_failures,
                    is_correct=not feedback.is_again(),
                    response_time_ms=response_time_ms,
                    answer_content=answer_content,
                    occurred_at=reviewed_at,
                )
            ]
            events.extend(
                self._notification_events(new_state, new_failures, reviewed_at, cfg)
            )
        except Exception as e:
            logger.warning("Review processing failed for schedule %s: %s", self.id, e)
            return Result.fail(f"Review processing failed: {e}")

        self._review_state = new_state
        self._consecutive_failures = new_failures
        self._updated_at = reviewed_at
        self._pending_events.extend(events)
        logger.debug(
            "Schedule %s reviewed with %s: interval %s -> %s days, ease %.2f -> %.2f",
            self.id,
            feedback.value,
            current_state.interval.days,
            new_state.interval.days,
            current_state.ease_factor.value,
            new_state.ease_factor.value,
        )
        return Result.ok()

    def trigger_overdue_notification(self, clock: Clock) -> None:
        """
        Emit an immediate overdue alert if the review is overdue.

        Scheduling state is never changed. Repeated calls emit repeated
        events; deduplication belongs to the caller.
        """
        now = clock.now()
        if not self._review_state.is_overdue(now):
            return
        overdue_hours = math.floor((now - self.next_review_at).total_seconds() / 3600)
        self._record(
            ReviewNotificationScheduled.overdue(
                aggregate_id=self.id,
                student_id=self.student_id,
                problem_id=self.problem_id,
                due_at=self.next_review_at,
                overdue_hours=overdue_hours,
                occurred_at=now,
            )
        )

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def is_due(self, clock: Clock) -> bool:
        return self._review_state.is_due(clock.now())

    def is_overdue(self, clock: Clock) -> bool:
        return self._review_state.is_overdue(clock.now())

    def minutes_until_due(self, clock: Clock) -> int:
        return self._review_state.minutes_until_due(clock.now())

    def get_difficulty_level(self, config: Optional[SrsPolicyConfig] = None) -> DifficultyLevel:
        return _difficulty_level(self.ease_factor, config or DEFAULT_POLICY_CONFIG)

    def get_retention_probability(
        self, clock: Clock, config: Optional[SrsPolicyConfig] = None
    ) -> float:
        """Ebbinghaus forgetting-curve estimate of the chance of recall right now."""
        config = config or DEFAULT_POLICY_CONFIG
        days_since_review = self._review_state.days_since_last_review(clock.now())
        if days_since_review <= 0:
            return 1.0
        retention = math.exp(-days_since_review / self.current_interval)
        return max(config.min_retention_probability, min(1.0, retention))

    # ------------------------------------------------------------------
    # Notifications
    # ------------------------------------------------------------------

    def _notification_events(
        self,
        state: ReviewState,
        consecutive_failures: int,
        now: dt.datetime,
        cfg: SrsPolicyConfig,
    ) -> List[ReviewNotificationScheduled]:
        events: List[ReviewNotificationScheduled] = []
        due_at = state.next_review_at

        reminder_at = due_at - dt.timedelta(minutes=cfg.default_reminder_minutes)
        if reminder_at > now:
            events.append(
                ReviewNotificationScheduled.review_due(
                    aggregate_id=self.id,
                    student_id=self.student_id,
                    problem_id=self.problem_id,
                    due_at=due_at,
                    scheduled_for=reminder_at,
                    occurred_at=now,
                    metadata={
                        "reminder_minutes_before": cfg.default_reminder_minutes,
                        "notification_reason": "routine_reminder",
                    },
                )
            )

        ease = state.ease_factor.value
        is_difficult = (
            consecutive_failures >= cfg.extra_reminder_failure_threshold
            or ease <= cfg.extra_reminder_ease_threshold
            or _difficulty_level(ease, cfg) == "advanced"
        )
        if is_difficult:
            early_at = due_at - dt.timedelta(minutes=cfg.early_reminder_minutes)
            if early_at > now:
                events.append(
                    ReviewNotificationScheduled.review_due(
                        aggregate_id=self.id,
                        student_id=self.student_id,
                        problem_id=self.problem_id,
                        due_at=due_at,
                        scheduled_for=early_at,
                        occurred_at=now,
                        priority=NotificationPriority.HIGH,
                        metadata={
                            "reminder_minutes_before": cfg.early_reminder_minutes,
                            "notification_reason": "difficult_problem_early_reminder",
                            "consecutive_failures": consecutive_failures,
                            "ease_factor": ease,
                        },
                    )
                )
        return events

    def __repr__(self) -> str:
        return (
            f"ReviewSchedule(id={self.id!r}, student_id={self.student_id!r}, "
            f"problem_id={self.problem_id!r}, interval={self.current_interval}, "
            f"ease_factor={self.ease_factor}, consecutive_failures={self.consecutive_failures})"
        )


def _difficulty_level(ease: float, cfg: SrsPolicyConfig) -> DifficultyLevel:
    if ease <= cfg.extra_reminder_ease_threshold:
        return "advanced"
    if ease <= cfg.intermediate_ease_threshold:
        return "intermediate"
    return "beginner"
