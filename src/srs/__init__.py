"""
Spaced-repetition scheduling module.

Provides the review scheduling core and the analytics built on it:
- SM-2 family policy with four-button feedback
- ReviewSchedule aggregate with buffered domain events
- Study records, pattern analysis and difficulty assessment
- Overdue review reporting, the daily review queue and review statistics
- Async application service over repository and event-sink ports
"""

from .clock import Clock, FixedClock, SystemClock
from .config import DEFAULT_POLICY_CONFIG, SrsPolicyConfig
from .difficulty import DifficultyAssessment, DifficultyAssessor
from .events import (
    NotificationPriority,
    NotificationType,
    ReviewCompleted,
    ReviewNotificationScheduled,
    ReviewScheduled,
    SchedulingEvent,
)
from .memory import CollectingEventSink, InMemoryReviewScheduleRepository, InMemoryStudyRecordRepository
from .overdue import OverdueReport, build_overdue_report, calculate_priority
from .patterns import StudyPatternAnalyzer, StudyPatternReport
from .ports import EventSink, ReviewScheduleRepository, StudyRecordRepository
from .result import Result, guard_required
from .review_queue import ReviewQueueItem, build_overdue_queue, build_today_queue
from .review_stats import ReviewStatisticsReport, build_review_statistics
from .review_service import ReviewService
from .schedule import ReviewSchedule
from .scheduler import IntervalAdjustment, SM2Policy, SpacedRepetitionPolicy
from .state import ReviewState
from .study_record import StudyPattern, StudyRecord
from .values import EaseFactor, ReviewFeedback, ReviewInterval

__all__ = [
    "Clock",
    "FixedClock",
    "SystemClock",
    "SrsPolicyConfig",
    "DEFAULT_POLICY_CONFIG",
    "EaseFactor",
    "ReviewInterval",
    "ReviewFeedback",
    "ReviewState",
    "IntervalAdjustment",
    "SpacedRepetitionPolicy",
    "SM2Policy",
    "ReviewSchedule",
    "ReviewScheduled",
    "ReviewCompleted",
    "ReviewNotificationScheduled",
    "NotificationType",
    "NotificationPriority",
    "SchedulingEvent",
    "Result",
    "guard_required",
    "StudyRecord",
    "StudyPattern",
    "StudyPatternAnalyzer",
    "StudyPatternReport",
    "DifficultyAssessor",
    "DifficultyAssessment",
    "OverdueReport",
    "build_overdue_report",
    "calculate_priority",
    "ReviewQueueItem",
    "build_today_queue",
    "build_overdue_queue",
    "ReviewStatisticsReport",
    "build_review_statistics",
    "ReviewScheduleRepository",
    "StudyRecordRepository",
    "EventSink",
    "InMemoryReviewScheduleRepository",
    "InMemoryStudyRecordRepository",
    "CollectingEventSink",
    "ReviewService",
]
