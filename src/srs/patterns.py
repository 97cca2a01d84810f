from __future__ import annotations

import datetime as dt
from dataclasses import dataclass, field
from statistics import mean, pstdev
from typing import Dict, Iterable, List, Literal, Optional

from .study_record import StudyPatternName, StudyRecord

ImprovementTrend = Literal["improving", "stable", "declining"]

RECENT_SHARE = 0.3
TREND_BAND = 0.05


@dataclass
class PatternBreakdown:
    pattern: StudyPatternName
    count: int
    percentage: int
    average_performance_score: float
    average_response_time_ms: Optional[float] = None


@dataclass
class StudyInsights:
    dominant_pattern: str
    strengths: List[str] = field(default_factory=list)
    weaknesses: List[str] = field(default_factory=list)
    recommendations: List[str] = field(default_factory=list)


@dataclass
class PerformanceSummary:
    overall_accuracy: int
    average_speed_seconds: float
    improvement_trend: ImprovementTrend
    consistency_score: int


@dataclass
class StudyPatternReport:
    student_id: str
    problem_id: Optional[str]
    analysis_date: dt.datetime
    time_range_days: int
    total_sessions: int
    patterns: List[PatternBreakdown]
    insights: StudyInsights
    performance: PerformanceSummary


class StudyPatternAnalyzer:
    """
    Rule-based analysis of a learner's study records.

    Signals:
    - speed/correctness pattern mix
    - accuracy and average response time
    - recent vs older accuracy (trend)
    - spread of performance scores (consistency)
    """

    def analyze(
        self,
        *,
        records: Iterable[StudyRecord],
        student_id: str,
        problem_id: Optional[str] = None,
        time_range_days: int = 30,
        now: Optional[dt.datetime] = None,
    ) -> Optional[StudyPatternReport]:
        if not student_id or not student_id.strip():
            raise ValueError("student_id is required")
        if time_range_days <= 0:
            raise ValueError("time_range_days must be a positive number")

        now = now or dt.datetime.now(dt.timezone.utc)
        since = now - dt.timedelta(days=time_range_days)
        selected = sorted(
            (
                r
                for r in records
                if r.student_id == student_id
                and (problem_id is None or r.problem_id == problem_id)
                and since <= r.created_at <= now
            ),
            key=lambda r: r.created_at,
        )
        if not selected:
            return None

        patterns = self._breakdown(selected)
        return StudyPatternReport(
            student_id=student_id,
            problem_id=problem_id,
            analysis_date=now,
            time_range_days=time_range_days,
            total_sessions=len(selected),
            patterns=patterns,
            insights=self._insights(patterns),
            performance=self._performance(selected),
        )

    def _breakdown(self, records: List[StudyRecord]) -> List[PatternBreakdown]:
        grouped: Dict[str, List[StudyRecord]] = {}
        for record in records:
            grouped.setdefault(record.get_study_pattern().pattern, []).append(record)

        total = len(records)
        out: List[PatternBreakdown] = []
        for pattern, members in grouped.items():
            times = [r.response_time_ms for r in members if r.response_time_ms is not None]
            out.append(
                PatternBreakdown(
                    pattern=pattern,  # type: ignore[arg-type]
                    count=len(members),
                    percentage=round(len(members) / total * 100),
                    average_performance_score=round(
                        mean(r.calculate_performance_score() for r in members), 2
                    ),
                    average_response_time_ms=mean(times) if times else None,
                )
            )
        out.sort(key=lambda p: p.count, reverse=True)
        return out

    def _insights(self, patterns: List[PatternBreakdown]) -> StudyInsights:
        by_name = {p.pattern: p for p in patterns}
        insights = StudyInsights(dominant_pattern=patterns[0].pattern if patterns else "unknown")

        quick_correct = by_name.get("quick_correct")
        if quick_correct and quick_correct.percentage >= 30:
            insights.strengths.append("Many answers are both quick and correct")
        for p in patterns:
            if p.average_performance_score >= 80:
                insights.strengths.append(f"High performance in the {p.pattern} pattern")

        slow_incorrect = by_name.get("slow_incorrect")
        quick_incorrect = by_name.get("quick_incorrect")
        if slow_incorrect and slow_incorrect.percentage >= 20:
            insights.weaknesses.append("Often incorrect even after spending a long time")
        if quick_incorrect and quick_incorrect.percentage >= 15:
            insights.weaknesses.append("Frequent mistakes from answering too hastily")

        if insights.dominant_pattern == "slow_correct":
            insights.recommendations.append("Accuracy is good; practise answering faster")
        if insights.dominant_pattern == "quick_incorrect":
            insights.recommendations.append("Double-check answers before submitting")
        if slow_incorrect and slow_incorrect.percentage >= 20:
            insights.recommendations.append(
                "Revisit the fundamentals and review your problem-solving strategy"
            )
        return insights

    def _performance(self, records: List[StudyRecord]) -> PerformanceSummary:
        accuracy = sum(1 for r in records if r.is_correct) / len(records)

        times = [r.response_time_ms for r in records if r.response_time_ms is not None]
        average_speed = mean(times) / 1000 if times else 0.0

        recent_count = int(len(records) * RECENT_SHARE)
        trend: ImprovementTrend = "stable"
        if recent_count > 0:
            recent = records[-recent_count:]
            older = records[:-recent_count]
            diff = _accuracy(recent) - _accuracy(older)
            if diff > TREND_BAND:
                trend = "improving"
            elif diff < -TREND_BAND:
                trend = "declining"

        scores = [r.calculate_performance_score() for r in records]
        consistency = max(0.0, min(100.0, 100.0 - pstdev(scores)))

        return PerformanceSummary(
            overall_accuracy=round(accuracy * 100),
            average_speed_seconds=round(average_speed, 2),
            improvement_trend=trend,
            consistency_score=round(consistency),
        )


def _accuracy(records: List[StudyRecord]) -> float:
    if not records:
        return 0.0
    return sum(1 for r in records if r.is_correct) / len(records)
