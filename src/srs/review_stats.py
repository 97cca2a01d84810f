"""
Review statistics for one learner.

Raw counts (scheduled, due, overdue, completed today, streak, recent
accuracy, time spent today) plus metrics, rule-based trends and
recommendations derived from them.
"""

from __future__ import annotations

import datetime as dt
from dataclasses import dataclass, field
from typing import Iterable, List, Literal, Sequence

from .clock import Clock
from .review_queue import end_of_day, start_of_day
from .schedule import ReviewSchedule
from .study_record import StudyRecord

Productivity = Literal["excellent", "good", "fair", "needs_improvement"]
Trend = Literal["improving", "stable", "declining"]

STREAK_WINDOW = 200
RETENTION_WINDOW = 30
CONSISTENCY_TARGET_DAYS = 30
MANY_OVERDUE = 5


@dataclass
class ReviewStatistics:
    total_scheduled: int
    due_today: int
    overdue: int
    completed_today: int
    streak_days: int
    average_retention: int  # % correct over recent records
    total_time_spent_minutes: float


@dataclass
class ReviewMetrics:
    completion_rate: int
    efficiency: float  # reviews per hour
    average_session_minutes: float
    productivity: Productivity


@dataclass
class ReviewTrends:
    retention_trend: Trend
    speed_trend: Trend
    consistency_score: int


@dataclass
class ReviewStatisticsReport:
    student_id: str
    generated_at: dt.datetime
    review: ReviewStatistics
    metrics: ReviewMetrics
    trends: ReviewTrends
    recommendations: List[str] = field(default_factory=list)


def compute_review_statistics(
    schedules: Iterable[ReviewSchedule],
    records: Sequence[StudyRecord],
    clock: Clock,
) -> ReviewStatistics:
    """`records` may come in any order; only the most recent ones count for streak and accuracy."""
    now = clock.now()
    day_start, day_end = start_of_day(now), end_of_day(now)
    schedules = list(schedules)
    recent = sorted(records, key=lambda r: r.created_at, reverse=True)
    today = [r for r in recent if day_start <= r.created_at <= day_end]

    return ReviewStatistics(
        total_scheduled=len(schedules),
        due_today=sum(1 for s in schedules if s.next_review_at <= day_end),
        overdue=sum(1 for s in schedules if s.is_overdue(clock)),
        completed_today=len(today),
        streak_days=_streak_days(recent[:STREAK_WINDOW], now),
        average_retention=_average_retention(recent[:RETENTION_WINDOW]),
        total_time_spent_minutes=_minutes_spent(today),
    )


def _streak_days(records: Sequence[StudyRecord], now: dt.datetime) -> int:
    days = {r.created_at.astimezone(now.tzinfo).date() for r in records}
    streak = 0
    day = now.date()
    while day in days:
        streak += 1
        day -= dt.timedelta(days=1)
    return streak


def _average_retention(records: Sequence[StudyRecord]) -> int:
    if not records:
        return 0
    correct = sum(1 for r in records if r.is_correct)
    return round(correct / len(records) * 100)


def _minutes_spent(records: Sequence[StudyRecord]) -> float:
    total_ms = sum(r.response_time_ms for r in records if r.response_time_ms)
    return round(total_ms / 60_000, 1)


def derive_metrics(stats: ReviewStatistics) -> ReviewMetrics:
    completion_rate = (
        round(stats.completed_today / stats.due_today * 100) if stats.due_today else 0
    )
    minutes = stats.total_time_spent_minutes
    efficiency = round(stats.completed_today / (minutes / 60), 2) if minutes > 0 else 0.0
    average_session = round(minutes / stats.completed_today, 1) if stats.completed_today else 0.0

    productivity: Productivity
    if completion_rate >= 90 and stats.average_retention >= 80 and stats.streak_days >= 7:
        productivity = "excellent"
    elif completion_rate >= 70 and stats.average_retention >= 70:
        productivity = "good"
    elif completion_rate >= 50 and stats.average_retention >= 60:
        productivity = "fair"
    else:
        productivity = "needs_improvement"

    return ReviewMetrics(
        completion_rate=completion_rate,
        efficiency=efficiency,
        average_session_minutes=average_session,
        productivity=productivity,
    )


def derive_trends(stats: ReviewStatistics) -> ReviewTrends:
    """Heuristic trends from a single snapshot; there is no time series behind them."""
    retention_trend: Trend
    if stats.average_retention >= 80:
        retention_trend = "improving"
    elif stats.average_retention >= 70:
        retention_trend = "stable"
    else:
        retention_trend = "declining"

    speed_trend: Trend = "stable"
    if stats.total_time_spent_minutes > 0 and stats.completed_today > 0:
        per_review = stats.total_time_spent_minutes / stats.completed_today
        if per_review < 3:
            speed_trend = "improving"
        elif per_review > 5:
            speed_trend = "declining"

    consistency = min(100, round(stats.streak_days / CONSISTENCY_TARGET_DAYS * 100))
    return ReviewTrends(
        retention_trend=retention_trend,
        speed_trend=speed_trend,
        consistency_score=consistency,
    )


def recommend(stats: ReviewStatistics, metrics: ReviewMetrics) -> List[str]:
    out: List[str] = []
    if metrics.completion_rate < 70:
        out.append("Build a habit of reviewing a little every day")
    if stats.average_retention < 70:
        out.append("Review difficult problems more often by adjusting your feedback")
    if stats.streak_days < 3:
        out.append("Studying a little every day works better than long sessions")
    elif stats.streak_days >= 7:
        out.append("Great study habit; keep the streak going")
    if stats.overdue > MANY_OVERDUE:
        out.append("Many reviews are overdue; finish the high-priority ones first")
    if metrics.efficiency < 1:
        out.append("Recheck the key concepts before attempting a problem")
    if not out:
        out.append("Your study pattern looks good; keep it up")
    return out


def build_review_statistics(
    student_id: str,
    schedules: Iterable[ReviewSchedule],
    records: Sequence[StudyRecord],
    clock: Clock,
) -> ReviewStatisticsReport:
    if not student_id or not student_id.strip():
        raise ValueError("student_id is required")
    stats = compute_review_statistics(schedules, records, clock)
    metrics = derive_metrics(stats)
    return ReviewStatisticsReport(
        student_id=student_id,
        generated_at=clock.now(),
        review=stats,
        metrics=metrics,
        trends=derive_trends(stats),
        recommendations=recommend(stats, metrics),
    )
