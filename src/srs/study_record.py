from __future__ import annotations

import datetime as dt
import uuid
from dataclasses import dataclass, field
from typing import Any, Literal, Optional

from .events import ReviewCompleted
from .result import Result, guard_required
from .values import ReviewFeedback

StudyPatternName = Literal["quick_correct", "slow_correct", "quick_incorrect", "slow_incorrect"]

NORMAL_RESPONSE_TIME_MS = 30_000
INSTANT_RESPONSE_TIME_MS = 3_000
STRUGGLING_RESPONSE_TIME_MS = 15_000

CORRECTNESS_POINTS = 70.0
SPEED_POINTS = 30.0


@dataclass(frozen=True)
class StudyPattern:
    pattern: StudyPatternName
    confidence: float


@dataclass(frozen=True)
class StudyRecord:
    """
    Immutable fact describing one review attempt.

    Created next to (not inside) a `ReviewSchedule` update and used for
    analytics only.
    """

    student_id: str
    problem_id: str
    feedback: ReviewFeedback
    is_correct: bool
    created_at: dt.datetime
    response_time_ms: Optional[int] = None
    answer_content: Optional[Any] = None
    id: str = field(default_factory=lambda: str(uuid.uuid4()))

    @classmethod
    def create(
        cls,
        *,
        student_id: Optional[str],
        problem_id: Optional[str],
        feedback: Optional[ReviewFeedback],
        is_correct: bool,
        created_at: Optional[dt.datetime],
        response_time_ms: Optional[int] = None,
        answer_content: Optional[Any] = None,
    ) -> Result["StudyRecord"]:
        guard = guard_required(
            [
                (student_id, "student_id"),
                (problem_id, "problem_id"),
                (feedback, "feedback"),
                (created_at, "created_at"),
            ]
        )
        if guard.is_failure:
            return Result.fail(guard.error or "invalid arguments")
        if response_time_ms is not None and response_time_ms < 0:
            return Result.fail("response_time_ms must be non-negative")
        return Result.ok(
            cls(
                student_id=str(student_id),
                problem_id=str(problem_id),
                feedback=feedback,  # type: ignore[arg-type]
                is_correct=is_correct,
                created_at=created_at,  # type: ignore[arg-type]
                response_time_ms=response_time_ms,
                answer_content=answer_content,
            )
        )

    @classmethod
    def from_review_completed(cls, event: ReviewCompleted) -> Result["StudyRecord"]:
        return cls.create(
            student_id=event.student_id,
            problem_id=event.problem_id,
            feedback=ReviewFeedback.parse(event.feedback),
            is_correct=event.is_correct,
            created_at=event.occurred_at,
            response_time_ms=event.response_time_ms,
            answer_content=event.answer_content,
        )

    def is_normal_response_time(self) -> bool:
        if self.response_time_ms is None:
            return True
        return self.response_time_ms <= NORMAL_RESPONSE_TIME_MS

    def is_instant_response(self) -> bool:
        return self.response_time_ms is not None and self.response_time_ms < INSTANT_RESPONSE_TIME_MS

    def is_struggling(self) -> bool:
        return (
            self.response_time_ms is not None
            and self.response_time_ms > STRUGGLING_RESPONSE_TIME_MS
        )

    def calculate_performance_score(self) -> float:
        """
        Blend correctness and speed into a 0-100 score.

        Correct answers earn 70 points; speed adds up to 30 points, falling
        linearly to zero at the normal response-time limit. Unknown times
        earn half the speed points, and incorrect answers keep only half of
        whatever speed component they earned.
        """
        if self.response_time_ms is None:
            speed = SPEED_POINTS / 2
        else:
            ratio = min(self.response_time_ms, NORMAL_RESPONSE_TIME_MS) / NORMAL_RESPONSE_TIME_MS
            speed = SPEED_POINTS * (1.0 - ratio)

        if self.is_correct:
            score = CORRECTNESS_POINTS + speed
        else:
            score = speed / 2
        return round(max(0.0, min(100.0, score)), 2)

    def get_study_pattern(self) -> StudyPattern:
        quick = (
            self.response_time_ms is None
            or self.response_time_ms <= STRUGGLING_RESPONSE_TIME_MS
        )
        speed = "quick" if quick else "slow"
        outcome = "correct" if self.is_correct else "incorrect"
        pattern: StudyPatternName = f"{speed}_{outcome}"  # type: ignore[assignment]

        if self.response_time_ms is None:
            confidence = 0.5
        else:
            distance = abs(self.response_time_ms - STRUGGLING_RESPONSE_TIME_MS)
            confidence = min(1.0, 0.6 + 0.4 * distance / STRUGGLING_RESPONSE_TIME_MS)
        return StudyPattern(pattern=pattern, confidence=round(confidence, 2))
