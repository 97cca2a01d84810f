from __future__ import annotations

import datetime as dt
from typing import List, Optional

import pytest

from src.srs.patterns import StudyPatternAnalyzer
from src.srs.study_record import StudyRecord
from src.srs.values import ReviewFeedback

NOW = dt.datetime(2025, 2, 1, tzinfo=dt.timezone.utc)


def _make_record(
    *,
    days_ago: float,
    is_correct: bool,
    response_time_ms: Optional[int],
    student_id: str = "student-1",
    problem_id: str = "problem-1",
) -> StudyRecord:
    return StudyRecord(
        student_id=student_id,
        problem_id=problem_id,
        feedback=ReviewFeedback.GOOD if is_correct else ReviewFeedback.AGAIN,
        is_correct=is_correct,
        response_time_ms=response_time_ms,
        created_at=NOW - dt.timedelta(days=days_ago),
    )


def _improving_history() -> List[StudyRecord]:
    # seven slow misses followed by three quick hits, oldest first
    older = [
        _make_record(days_ago=20 - i, is_correct=False, response_time_ms=20_000)
        for i in range(7)
    ]
    recent = [
        _make_record(days_ago=3 - i, is_correct=True, response_time_ms=5_000)
        for i in range(3)
    ]
    return older + recent


def test_analyze_breaks_down_patterns():
    report = StudyPatternAnalyzer().analyze(
        records=_improving_history(), student_id="student-1", now=NOW
    )

    assert report is not None
    assert report.total_sessions == 10
    assert [p.pattern for p in report.patterns] == ["slow_incorrect", "quick_correct"]
    slow, quick = report.patterns
    assert slow.count == 7
    assert slow.percentage == 70
    assert slow.average_performance_score == 5.0
    assert slow.average_response_time_ms == 20_000
    assert quick.percentage == 30
    assert quick.average_performance_score == 95.0


def test_analyze_insights():
    report = StudyPatternAnalyzer().analyze(
        records=_improving_history(), student_id="student-1", now=NOW
    )

    insights = report.insights
    assert insights.dominant_pattern == "slow_incorrect"
    assert "Many answers are both quick and correct" in insights.strengths
    assert "High performance in the quick_correct pattern" in insights.strengths
    assert len(insights.weaknesses) == 1
    assert len(insights.recommendations) == 1


def test_analyze_performance_summary():
    report = StudyPatternAnalyzer().analyze(
        records=_improving_history(), student_id="student-1", now=NOW
    )

    performance = report.performance
    assert performance.overall_accuracy == 30
    assert performance.average_speed_seconds == pytest.approx(15.5)
    assert performance.improvement_trend == "improving"
    assert performance.consistency_score == 59


def test_declining_and_stable_trends():
    declining = [
        _make_record(days_ago=20 - i, is_correct=True, response_time_ms=5_000) for i in range(7)
    ] + [_make_record(days_ago=2, is_correct=False, response_time_ms=5_000) for _ in range(3)]
    stable = [
        _make_record(days_ago=10 - i, is_correct=True, response_time_ms=5_000) for i in range(5)
    ]
    analyzer = StudyPatternAnalyzer()

    assert analyzer.analyze(records=declining, student_id="student-1", now=NOW).performance.improvement_trend == "declining"
    assert analyzer.analyze(records=stable, student_id="student-1", now=NOW).performance.improvement_trend == "stable"


def test_analyze_filters_by_student_problem_and_time_range():
    records = [
        _make_record(days_ago=1, is_correct=True, response_time_ms=4_000),
        _make_record(days_ago=1, is_correct=True, response_time_ms=4_000, problem_id="problem-2"),
        _make_record(days_ago=1, is_correct=False, response_time_ms=4_000, student_id="other"),
        _make_record(days_ago=40, is_correct=False, response_time_ms=4_000),
    ]
    analyzer = StudyPatternAnalyzer()

    all_problems = analyzer.analyze(records=records, student_id="student-1", now=NOW)
    one_problem = analyzer.analyze(
        records=records, student_id="student-1", problem_id="problem-1", now=NOW
    )
    wide = analyzer.analyze(
        records=records, student_id="student-1", time_range_days=60, now=NOW
    )

    assert all_problems.total_sessions == 2
    assert one_problem.total_sessions == 1
    assert one_problem.problem_id == "problem-1"
    assert wide.total_sessions == 3


def test_analyze_returns_none_without_records():
    assert StudyPatternAnalyzer().analyze(records=[], student_id="student-1", now=NOW) is None


def test_analyze_rejects_invalid_arguments():
    analyzer = StudyPatternAnalyzer()
    with pytest.raises(ValueError):
        analyzer.analyze(records=[], student_id="student-1", time_range_days=0, now=NOW)
    with pytest.raises(ValueError):
        analyzer.analyze(records=[], student_id=" ", now=NOW)
