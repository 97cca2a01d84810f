"""
Overdue review report.

Lists the overdue schedules of one learner with a priority per item, a
summary and urgent recommendations.
"""

from __future__ import annotations

import datetime as dt
import math
from dataclasses import dataclass, field
from typing import Dict, Iterable, List, Literal, Optional

from .clock import Clock
from .config import DEFAULT_POLICY_CONFIG, SrsPolicyConfig
from .schedule import DifficultyLevel, ReviewSchedule

Priority = Literal["low", "medium", "high", "critical"]

SORT_FIELDS = ("overdue_duration", "difficulty", "priority", "next_review_date")
SORT_ORDERS = ("asc", "desc")

PRIORITY_ORDER: Dict[str, int] = {"low": 1, "medium": 2, "high": 3, "critical": 4}
LEVEL_ORDER: Dict[str, int] = {"beginner": 1, "intermediate": 2, "advanced": 3}

DEFAULT_LIMIT = 50
LOW_RETENTION = 0.3


@dataclass
class OverdueItem:
    schedule_id: str
    problem_id: str
    next_review_at: dt.datetime
    overdue_hours: int
    overdue_days: int
    difficulty_level: DifficultyLevel
    consecutive_failures: int
    ease_factor: float
    current_interval: int
    retention_probability: float
    priority: Priority


@dataclass
class OverdueSummary:
    total_overdue: int
    average_overdue_days: float
    critical_count: int
    high_priority_count: int
    longest_overdue_days: int


@dataclass
class OverdueReport:
    retrieved_at: dt.datetime
    items: List[OverdueItem]
    total: int
    offset: int
    limit: int
    has_more: bool
    summary: OverdueSummary
    urgent_recommendations: List[str] = field(default_factory=list)


def calculate_priority(
    overdue_days: int, consecutive_failures: int, difficulty_level: DifficultyLevel
) -> Priority:
    score = 0
    if overdue_days <= 1:
        score += 1
    elif overdue_days <= 3:
        score += 2
    elif overdue_days <= 7:
        score += 3
    else:
        score += 4

    if consecutive_failures >= 3:
        score += 2
    elif consecutive_failures >= 2:
        score += 1

    if difficulty_level == "advanced":
        score += 2
    elif difficulty_level == "intermediate":
        score += 1

    if score >= 6:
        return "critical"
    if score >= 4:
        return "high"
    if score >= 2:
        return "medium"
    return "low"


def build_overdue_report(
    schedules: Iterable[ReviewSchedule],
    clock: Clock,
    *,
    sort_by: Optional[str] = None,
    sort_order: Optional[str] = None,
    limit: int = DEFAULT_LIMIT,
    offset: int = 0,
    config: Optional[SrsPolicyConfig] = None,
) -> OverdueReport:
    """
    Sort all overdue schedules, then return the requested page.

    The summary and recommendations cover every overdue schedule, not just
    the page.
    """
    if limit <= 0:
        raise ValueError("limit must be a positive number")
    if offset < 0:
        raise ValueError("offset cannot be negative")
    if sort_by is not None and sort_by not in SORT_FIELDS:
        raise ValueError(f"Invalid sort field. Must be one of: {', '.join(SORT_FIELDS)}")
    if sort_order is not None and sort_order not in SORT_ORDERS:
        raise ValueError(f"Invalid sort order. Must be one of: {', '.join(SORT_ORDERS)}")

    cfg = config or DEFAULT_POLICY_CONFIG
    now = clock.now()
    items = [
        _overdue_item(schedule, now, clock, cfg)
        for schedule in schedules
        if schedule.is_overdue(clock)
    ]
    items = _sorted(items, sort_by, sort_order)
    summary = _summary(items)

    return OverdueReport(
        retrieved_at=now,
        items=items[offset : offset + limit],
        total=len(items),
        offset=offset,
        limit=limit,
        has_more=len(items) > offset + limit,
        summary=summary,
        urgent_recommendations=_urgent_recommendations(items, summary),
    )


def _overdue_item(
    schedule: ReviewSchedule, now: dt.datetime, clock: Clock, cfg: SrsPolicyConfig
) -> OverdueItem:
    overdue_hours = math.floor((now - schedule.next_review_at).total_seconds() / 3600)
    overdue_days = overdue_hours // 24
    level = schedule.get_difficulty_level(cfg)
    return OverdueItem(
        schedule_id=schedule.id,
        problem_id=schedule.problem_id,
        next_review_at=schedule.next_review_at,
        overdue_hours=overdue_hours,
        overdue_days=overdue_days,
        difficulty_level=level,
        consecutive_failures=schedule.consecutive_failures,
        ease_factor=schedule.ease_factor,
        current_interval=schedule.current_interval,
        retention_probability=round(schedule.get_retention_probability(clock, cfg), 2),
        priority=calculate_priority(overdue_days, schedule.consecutive_failures, level),
    )


def _sorted(
    items: List[OverdueItem], sort_by: Optional[str], sort_order: Optional[str]
) -> List[OverdueItem]:
    descending = sort_order != "asc"
    if sort_by == "overdue_duration":
        return sorted(items, key=lambda i: i.overdue_days, reverse=descending)
    if sort_by == "difficulty":
        return sorted(items, key=lambda i: LEVEL_ORDER[i.difficulty_level], reverse=descending)
    if sort_by == "priority":
        return sorted(items, key=lambda i: PRIORITY_ORDER[i.priority], reverse=descending)
    if sort_by == "next_review_date":
        return sorted(items, key=lambda i: i.next_review_at, reverse=descending)
    return sorted(
        items,
        key=lambda i: (PRIORITY_ORDER[i.priority], i.overdue_days),
        reverse=True,
    )


def _summary(items: List[OverdueItem]) -> OverdueSummary:
    total = len(items)
    average = round(sum(i.overdue_days for i in items) / total, 1) if total else 0.0
    return OverdueSummary(
        total_overdue=total,
        average_overdue_days=average,
        critical_count=sum(1 for i in items if i.priority == "critical"),
        high_priority_count=sum(1 for i in items if i.priority == "high"),
        longest_overdue_days=max((i.overdue_days for i in items), default=0),
    )


def _urgent_recommendations(items: List[OverdueItem], summary: OverdueSummary) -> List[str]:
    out: List[str] = []
    if summary.critical_count:
        out.append(f"{summary.critical_count} critical review(s) need attention right away")
    if summary.high_priority_count:
        out.append(f"Handle the {summary.high_priority_count} high-priority review(s) first")
    if summary.longest_overdue_days > 14:
        out.append(
            f"An item has been overdue for {summary.longest_overdue_days} days; "
            "start again from the basics"
        )
    if summary.total_overdue > 20:
        out.append("Too many overdue items; increase the daily review volume or re-plan")
    elif summary.average_overdue_days > 5:
        out.append("Reviews are overdue for long on average; check your reminder settings")

    low_retention = sum(1 for i in items if i.retention_probability < LOW_RETENTION)
    if low_retention:
        out.append(f"{low_retention} item(s) have very low retention; relearn the core concepts")
    repeated_failures = sum(1 for i in items if i.consecutive_failures >= 3)
    if repeated_failures:
        out.append(f"{repeated_failures} item(s) keep failing; try a different study method")

    if not out:
        out.append("Work through the overdue reviews one at a time")
    return out
