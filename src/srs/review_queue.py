"""
Review queue: what a learner should review today, most urgent first.
"""

from __future__ import annotations

import datetime as dt
from dataclasses import dataclass
from typing import Dict, Iterable, List, Literal, Optional

from .clock import Clock
from .config import DEFAULT_POLICY_CONFIG, SrsPolicyConfig
from .schedule import DifficultyLevel, ReviewSchedule

QueuePriority = Literal["high", "medium", "low"]

QUEUE_PRIORITY_ORDER: Dict[str, int] = {"high": 0, "medium": 1, "low": 2}

# items due within this many minutes are not yet "low"
SOON_DUE_MINUTES = 60


@dataclass
class ReviewQueueItem:
    schedule_id: str
    student_id: str
    problem_id: str
    next_review_at: dt.datetime
    current_interval: int
    ease_factor: float
    review_count: int
    consecutive_failures: int
    priority: QueuePriority
    is_overdue: bool
    minutes_until_due: int
    difficulty_level: DifficultyLevel
    retention_probability: float


def start_of_day(now: dt.datetime) -> dt.datetime:
    return dt.datetime.combine(now.date(), dt.time.min, tzinfo=now.tzinfo)


def end_of_day(now: dt.datetime) -> dt.datetime:
    return dt.datetime.combine(now.date(), dt.time.max, tzinfo=now.tzinfo)


def queue_priority(
    is_overdue: bool,
    minutes_until_due: int,
    consecutive_failures: int,
    difficulty_level: DifficultyLevel,
) -> QueuePriority:
    if is_overdue or minutes_until_due <= 0:
        return "high"
    if consecutive_failures > 0 or difficulty_level == "advanced":
        return "high"
    if minutes_until_due <= SOON_DUE_MINUTES:
        return "medium"
    return "low"


def to_queue_item(
    schedule: ReviewSchedule, clock: Clock, config: Optional[SrsPolicyConfig] = None
) -> ReviewQueueItem:
    cfg = config or DEFAULT_POLICY_CONFIG
    is_overdue = schedule.is_overdue(clock)
    minutes = schedule.minutes_until_due(clock)
    level = schedule.get_difficulty_level(cfg)
    return ReviewQueueItem(
        schedule_id=schedule.id,
        student_id=schedule.student_id,
        problem_id=schedule.problem_id,
        next_review_at=schedule.next_review_at,
        current_interval=schedule.current_interval,
        ease_factor=schedule.ease_factor,
        review_count=schedule.review_count,
        consecutive_failures=schedule.consecutive_failures,
        priority=queue_priority(is_overdue, minutes, schedule.consecutive_failures, level),
        is_overdue=is_overdue,
        minutes_until_due=minutes,
        difficulty_level=level,
        retention_probability=round(schedule.get_retention_probability(clock, cfg), 2),
    )


def build_today_queue(
    schedules: Iterable[ReviewSchedule],
    clock: Clock,
    *,
    config: Optional[SrsPolicyConfig] = None,
) -> List[ReviewQueueItem]:
    """
    Every schedule due before the end of the clock's current day.

    Ordered by priority, then overdue items first, then the earliest due
    date, then the lowest ease factor.
    """
    cutoff = end_of_day(clock.now())
    items = [
        to_queue_item(schedule, clock, config)
        for schedule in schedules
        if schedule.next_review_at <= cutoff
    ]
    return sorted(
        items,
        key=lambda i: (
            QUEUE_PRIORITY_ORDER[i.priority],
            not i.is_overdue,
            i.next_review_at,
            i.ease_factor,
        ),
    )


def build_overdue_queue(
    schedules: Iterable[ReviewSchedule],
    clock: Clock,
    *,
    config: Optional[SrsPolicyConfig] = None,
) -> List[ReviewQueueItem]:
    """Overdue schedules only, longest overdue first."""
    items = [
        to_queue_item(schedule, clock, config)
        for schedule in schedules
        if schedule.is_overdue(clock)
    ]
    return sorted(items, key=lambda i: i.next_review_at)
