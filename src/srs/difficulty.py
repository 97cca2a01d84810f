from __future__ import annotations

from dataclasses import dataclass, field
from statistics import mean
from typing import Dict, Iterable, List, Literal, Optional

from .config import DEFAULT_POLICY_CONFIG, SrsPolicyConfig
from .schedule import DifficultyLevel, ReviewSchedule
from .study_record import StudyPatternName, StudyRecord

SuggestedAction = Literal[
    "review_fundamentals",
    "increase_frequency",
    "consider_advanced",
    "continue",
]

LEVEL_ORDER: Dict[str, int] = {"beginner": 1, "intermediate": 2, "advanced": 3}

FUNDAMENTALS_FAILURE_THRESHOLD = 3
STRUGGLING_FAILURE_THRESHOLD = 2
LOW_PERFORMANCE_SCORE = 60.0
HIGH_PERFORMANCE_SCORE = 85.0


@dataclass
class DifficultyItem:
    schedule_id: str
    problem_id: str
    current_level: DifficultyLevel
    ease_factor: float
    review_count: int
    consecutive_failures: int
    suggested_action: SuggestedAction
    average_performance_score: Optional[float] = None
    last_review_pattern: Optional[StudyPatternName] = None


@dataclass
class DifficultySummary:
    beginner_count: int
    intermediate_count: int
    advanced_count: int
    average_ease_factor: float
    struggling_items: int


@dataclass
class DifficultyRecommendations:
    priority_items: List[str] = field(default_factory=list)
    study_strategy: List[str] = field(default_factory=list)
    next_steps: List[str] = field(default_factory=list)


@dataclass
class DifficultyAssessment:
    items: List[DifficultyItem]
    summary: DifficultySummary
    recommendations: Optional[DifficultyRecommendations] = None


class DifficultyAssessor:
    """Classify schedules by difficulty and suggest what to do next for each."""

    def __init__(self, config: Optional[SrsPolicyConfig] = None) -> None:
        self.config = config or DEFAULT_POLICY_CONFIG

    def assess(
        self,
        *,
        schedules: Iterable[ReviewSchedule],
        records: Iterable[StudyRecord],
        include_recommendations: bool = False,
    ) -> Optional[DifficultyAssessment]:
        schedules = list(schedules)
        if not schedules:
            return None

        records_by_problem: Dict[tuple[str, str], List[StudyRecord]] = {}
        for record in records:
            records_by_problem.setdefault((record.student_id, record.problem_id), []).append(record)

        items = [
            self._assess_one(
                schedule,
                sorted(
                    records_by_problem.get((schedule.student_id, schedule.problem_id), []),
                    key=lambda r: r.created_at,
                ),
            )
            for schedule in schedules
        ]
        items.sort(key=lambda item: LEVEL_ORDER[item.current_level], reverse=True)

        summary = self._summary(items)
        recommendations = self._recommendations(items, summary) if include_recommendations else None
        return DifficultyAssessment(items=items, summary=summary, recommendations=recommendations)

    def _assess_one(self, schedule: ReviewSchedule, records: List[StudyRecord]) -> DifficultyItem:
        average_score: Optional[float] = None
        last_pattern: Optional[StudyPatternName] = None
        if records:
            average_score = round(mean(r.calculate_performance_score() for r in records), 2)
            last_pattern = records[-1].get_study_pattern().pattern

        level = schedule.get_difficulty_level(self.config)
        return DifficultyItem(
            schedule_id=schedule.id,
            problem_id=schedule.problem_id,
            current_level=level,
            ease_factor=schedule.ease_factor,
            review_count=schedule.review_count,
            consecutive_failures=schedule.consecutive_failures,
            suggested_action=self._suggest(schedule, level, average_score, last_pattern),
            average_performance_score=average_score,
            last_review_pattern=last_pattern,
        )

    def _suggest(
        self,
        schedule: ReviewSchedule,
        level: DifficultyLevel,
        average_score: Optional[float],
        last_pattern: Optional[StudyPatternName],
    ) -> SuggestedAction:
        cfg = self.config
        ease = schedule.ease_factor

        if schedule.consecutive_failures >= FUNDAMENTALS_FAILURE_THRESHOLD:
            return "review_fundamentals"
        if average_score is not None and average_score < LOW_PERFORMANCE_SCORE:
            return "review_fundamentals"
        if last_pattern in ("slow_incorrect", "quick_incorrect"):
            return "increase_frequency"
        if (
            level != "advanced"
            and last_pattern == "quick_correct"
            and ease >= cfg.intermediate_ease_threshold
        ):
            return "consider_advanced"
        if (
            ease >= cfg.beginner_ease_threshold
            and average_score is not None
            and average_score >= HIGH_PERFORMANCE_SCORE
        ):
            return "consider_advanced"
        return "continue"

    @staticmethod
    def _summary(items: List[DifficultyItem]) -> DifficultySummary:
        struggling = sum(
            1
            for item in items
            if item.consecutive_failures >= STRUGGLING_FAILURE_THRESHOLD
            or (
                item.average_performance_score is not None
                and item.average_performance_score < LOW_PERFORMANCE_SCORE
            )
        )
        return DifficultySummary(
            beginner_count=sum(1 for i in items if i.current_level == "beginner"),
            intermediate_count=sum(1 for i in items if i.current_level == "intermediate"),
            advanced_count=sum(1 for i in items if i.current_level == "advanced"),
            average_ease_factor=round(mean(i.ease_factor for i in items), 2),
            struggling_items=struggling,
        )

    @staticmethod
    def _recommendations(
        items: List[DifficultyItem], summary: DifficultySummary
    ) -> DifficultyRecommendations:
        out = DifficultyRecommendations()
        actions = [item.suggested_action for item in items]

        fundamentals = actions.count("review_fundamentals")
        if fundamentals:
            out.priority_items.append(f"Relearn the fundamentals for {fundamentals} item(s)")
        more_often = actions.count("increase_frequency")
        if more_often:
            out.priority_items.append(f"Review {more_often} item(s) more often")

        if summary.struggling_items > len(items) * 0.3:
            out.study_strategy.append(
                "Many items are causing trouble; rethink the overall study approach"
            )
        if summary.beginner_count > summary.advanced_count * 2:
            out.study_strategy.append(
                "Most items are still easy; raise the difficulty step by step"
            )
        if summary.average_ease_factor < 1.5:
            out.study_strategy.append("Items need frequent review overall; add more study time")
        elif summary.average_ease_factor > 2.5:
            out.study_strategy.append("Retention is strong; add more challenging material")

        advanced = actions.count("consider_advanced")
        if advanced:
            out.next_steps.append(f"{advanced} item(s) are ready for more advanced material")
        if summary.advanced_count == 0 and summary.intermediate_count > summary.beginner_count:
            out.next_steps.append("Intermediate level is stable; try advanced problems")

        if not out.priority_items and not out.study_strategy:
            out.study_strategy.append("Keep up the current study pattern")
        if not out.next_steps:
            out.next_steps.append("Keep reviewing regularly to maintain the current level")
        return out
