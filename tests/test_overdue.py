from __future__ import annotations

import datetime as dt

import pytest

from src.srs.clock import FixedClock
from src.srs.overdue import build_overdue_report, calculate_priority
from src.srs.schedule import ReviewSchedule
from src.srs.state import ReviewState
from src.srs.values import EaseFactor, ReviewInterval

NOW = dt.datetime(2025, 1, 10, tzinfo=dt.timezone.utc)


def _make_schedule(
    problem_id: str, *, overdue_by: dt.timedelta, ease: float = 2.5, failures: int = 0
) -> ReviewSchedule:
    next_review_at = NOW - overdue_by
    return ReviewSchedule.restore(
        schedule_id=f"schedule-{problem_id}",
        student_id="student-1",
        problem_id=problem_id,
        review_state=ReviewState(
            interval=ReviewInterval(1),
            ease_factor=EaseFactor(ease),
            review_count=2,
            last_reviewed_at=next_review_at - dt.timedelta(days=1),
            next_review_at=next_review_at,
        ),
        consecutive_failures=failures,
        created_at=NOW - dt.timedelta(days=30),
        updated_at=NOW - dt.timedelta(days=30),
    )


def _schedules():
    return [
        _make_schedule("two-days", overdue_by=dt.timedelta(hours=50)),
        _make_schedule("ten-days", overdue_by=dt.timedelta(days=10), ease=1.5, failures=3),
        _make_schedule("hours", overdue_by=dt.timedelta(hours=5), ease=1.9, failures=2),
        _make_schedule("future", overdue_by=dt.timedelta(days=-1)),
        _make_schedule("due-now", overdue_by=dt.timedelta(0)),
    ]


def test_calculate_priority():
    assert calculate_priority(0, 0, "beginner") == "low"
    assert calculate_priority(1, 0, "intermediate") == "medium"
    assert calculate_priority(4, 2, "beginner") == "high"
    assert calculate_priority(8, 3, "advanced") == "critical"


def test_report_lists_only_overdue_schedules():
    report = build_overdue_report(_schedules(), FixedClock(NOW))

    assert report.total == 3
    assert [i.problem_id for i in report.items] == ["ten-days", "two-days", "hours"]

    two_days = report.items[1]
    assert two_days.overdue_hours == 50
    assert two_days.overdue_days == 2
    assert two_days.difficulty_level == "beginner"
    assert two_days.priority == "medium"
    assert two_days.retention_probability == 0.1
    assert report.items[0].priority == "critical"


def test_report_sorting():
    clock = FixedClock(NOW)

    by_duration = build_overdue_report(_schedules(), clock, sort_by="overdue_duration", sort_order="asc")
    by_date = build_overdue_report(_schedules(), clock, sort_by="next_review_date")
    by_date_asc = build_overdue_report(_schedules(), clock, sort_by="next_review_date", sort_order="asc")
    by_difficulty = build_overdue_report(_schedules(), clock, sort_by="difficulty")

    assert [i.problem_id for i in by_duration.items] == ["hours", "two-days", "ten-days"]
    assert [i.problem_id for i in by_date.items] == ["hours", "two-days", "ten-days"]
    assert [i.problem_id for i in by_date_asc.items] == ["ten-days", "two-days", "hours"]
    assert [i.problem_id for i in by_difficulty.items] == ["ten-days", "hours", "two-days"]


def test_report_pagination():
    clock = FixedClock(NOW)

    page = build_overdue_report(_schedules(), clock, limit=2, offset=1)
    first = build_overdue_report(_schedules(), clock, limit=1)

    assert [i.problem_id for i in page.items] == ["two-days", "hours"]
    assert not page.has_more
    assert first.has_more
    assert first.total == 3
    assert first.summary.total_overdue == 3


def test_report_summary_and_recommendations():
    report = build_overdue_report(_schedules(), FixedClock(NOW))

    summary = report.summary
    assert summary.total_overdue == 3
    assert summary.average_overdue_days == pytest.approx(4.0)
    assert summary.critical_count == 1
    assert summary.high_priority_count == 0
    assert summary.longest_overdue_days == 10

    assert report.urgent_recommendations[0] == "1 critical review(s) need attention right away"
    assert any("keep failing" in r for r in report.urgent_recommendations)


def test_empty_report_has_reassuring_recommendation():
    report = build_overdue_report([], FixedClock(NOW))

    assert report.items == []
    assert report.summary.longest_overdue_days == 0
    assert report.urgent_recommendations == ["Work through the overdue reviews one at a time"]


@pytest.mark.parametrize(
    "kwargs",
    [
        {"limit": 0},
        {"offset": -1},
        {"sort_by": "popularity"},
        {"sort_order": "up"},
    ],
)
def test_report_rejects_invalid_arguments(kwargs):
    with pytest.raises(ValueError):
        build_overdue_report(_schedules(), FixedClock(NOW), **kwargs)
