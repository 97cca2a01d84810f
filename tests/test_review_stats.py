from __future__ import annotations

import datetime as dt
from typing import Optional

import pytest

from src.srs.clock import FixedClock
from src.srs.review_stats import build_review_statistics, compute_review_statistics
from src.srs.schedule import ReviewSchedule
from src.srs.state import ReviewState
from src.srs.study_record import StudyRecord
from src.srs.values import EaseFactor, ReviewFeedback, ReviewInterval

NOW = dt.datetime(2025, 3, 10, 12, 0, tzinfo=dt.timezone.utc)


def _make_schedule(problem_id: str, next_review_at: dt.datetime) -> ReviewSchedule:
    return ReviewSchedule.restore(
        schedule_id=f"schedule-{problem_id}",
        student_id="student-1",
        problem_id=problem_id,
        review_state=ReviewState(
            interval=ReviewInterval(3),
            ease_factor=EaseFactor(2.5),
            review_count=1,
            last_reviewed_at=None,
            next_review_at=next_review_at,
        ),
        consecutive_failures=0,
        created_at=NOW - dt.timedelta(days=10),
        updated_at=NOW - dt.timedelta(days=3),
    )


def _make_record(
    days_ago: int, *, correct: bool = True, response_time_ms: Optional[int] = None
) -> StudyRecord:
    return StudyRecord(
        student_id="student-1",
        problem_id="problem-1",
        feedback=ReviewFeedback.GOOD if correct else ReviewFeedback.AGAIN,
        is_correct=correct,
        response_time_ms=response_time_ms,
        created_at=NOW - dt.timedelta(days=days_ago, hours=1),
    )


def _schedules():
    return [
        _make_schedule("overdue", NOW - dt.timedelta(days=1)),
        _make_schedule("this-afternoon", NOW + dt.timedelta(hours=2)),
        _make_schedule("later-1", NOW + dt.timedelta(days=3)),
        _make_schedule("later-2", NOW + dt.timedelta(days=3)),
    ]


def _records():
    # a gap three days ago ends the streak
    return [
        _make_record(4),
        _make_record(2),
        _make_record(1),
        _make_record(0, response_time_ms=60_000),
        _make_record(0, correct=False, response_time_ms=240_000),
    ]


def test_raw_statistics():
    stats = compute_review_statistics(_schedules(), _records(), FixedClock(NOW))

    assert stats.total_scheduled == 4
    assert stats.due_today == 2
    assert stats.overdue == 1
    assert stats.completed_today == 2
    assert stats.streak_days == 3
    assert stats.average_retention == 80
    assert stats.total_time_spent_minutes == 5.0


def test_streak_needs_a_review_today():
    stats = compute_review_statistics([], [_make_record(1), _make_record(2)], FixedClock(NOW))

    assert stats.streak_days == 0
    assert stats.completed_today == 0


def test_average_retention_uses_most_recent_records():
    records = [_make_record(40 - i, correct=False) for i in range(10)]
    records += [_make_record(29 - i) for i in range(30)]

    stats = compute_review_statistics([], records, FixedClock(NOW))

    assert stats.average_retention == 100


def test_report_metrics_trends_and_recommendations():
    report = build_review_statistics("student-1", _schedules(), _records(), FixedClock(NOW))

    assert report.generated_at == NOW
    assert report.metrics.completion_rate == 100
    assert report.metrics.efficiency == 24.0
    assert report.metrics.average_session_minutes == 2.5
    assert report.metrics.productivity == "good"
    assert report.trends.retention_trend == "improving"
    assert report.trends.speed_trend == "improving"
    assert report.trends.consistency_score == 10
    assert report.recommendations == ["Your study pattern looks good; keep it up"]


def test_report_for_a_new_learner():
    report = build_review_statistics("student-1", [], [], FixedClock(NOW))

    assert report.review.total_scheduled == 0
    assert report.metrics.completion_rate == 0
    assert report.metrics.efficiency == 0.0
    assert report.metrics.productivity == "needs_improvement"
    assert report.trends.retention_trend == "declining"
    assert report.trends.speed_trend == "stable"
    assert report.trends.consistency_score == 0
    assert "Build a habit of reviewing a little every day" in report.recommendations
    assert "Recheck the key concepts before attempting a problem" in report.recommendations


def test_blank_student_is_rejected():
    with pytest.raises(ValueError):
        build_review_statistics("  ", [], [], FixedClock(NOW))
