from __future__ import annotations

import logging
from typing import Any, List, Optional, Union

from .clock import Clock, SystemClock
from .difficulty import DifficultyAssessment, DifficultyAssessor
from .events import ReviewCompleted, SchedulingEvent
from .overdue import DEFAULT_LIMIT, OverdueReport, build_overdue_report
from .patterns import StudyPatternAnalyzer, StudyPatternReport
from .ports import EventSink, ReviewScheduleRepository, StudyRecordRepository
from .result import Result
from .review_queue import ReviewQueueItem, build_overdue_queue, build_today_queue
from .review_stats import ReviewStatisticsReport, build_review_statistics
from .schedule import ReviewSchedule
from .scheduler import SM2Policy, SpacedRepetitionPolicy
from .study_record import StudyRecord
from .values import ReviewFeedback

logger = logging.getLogger(__name__)


class ReviewService:
    """
    Application service around `ReviewSchedule`.

    Each command follows the outbox order: mutate the aggregate, persist it,
    drain its events, then hand them to the sink. Nothing is published when
    a step fails.

    The service does not serialise concurrent submissions for the same
    schedule; callers must ensure a single writer per (student, item).
    """

    def __init__(
        self,
        *,
        schedules: ReviewScheduleRepository,
        records: StudyRecordRepository,
        sink: EventSink,
        policy: Optional[SpacedRepetitionPolicy] = None,
        clock: Optional[Clock] = None,
    ) -> None:
        self.schedules = schedules
        self.records = records
        self.sink = sink
        self.policy = policy or SM2Policy()
        self.clock = clock or SystemClock()
        self.pattern_analyzer = StudyPatternAnalyzer()
        self.difficulty_assessor = DifficultyAssessor(self.policy.config)

    async def schedule_item(self, student_id: str, problem_id: str) -> Result[ReviewSchedule]:
        """Return the pair's schedule, creating and announcing it if it does not exist yet."""
        existing = await self.schedules.find_by_student_and_problem(student_id, problem_id)
        if existing is not None:
            return Result.ok(existing)

        created = ReviewSchedule.create(
            student_id=student_id,
            problem_id=problem_id,
            review_state=self.policy.create_initial_state(self.clock.now()),
            clock=self.clock,
        )
        if created.is_failure:
            return created
        schedule = created.value

        try:
            await self.schedules.save(schedule)
        except Exception as e:
            logger.warning("Failed to save new schedule for %s/%s: %s", student_id, problem_id, e)
            return Result.fail(f"Failed to save review schedule: {e}")

        await self._publish(schedule.drain_events())
        logger.info("Scheduled problem %s for student %s", problem_id, student_id)
        return Result.ok(schedule)

    async def submit_feedback(
        self,
        schedule_id: str,
        feedback: Union[ReviewFeedback, str],
        *,
        student_id: Optional[str] = None,
        response_time_ms: Optional[int] = None,
        answer_content: Optional[Any] = None,
    ) -> Result[ReviewSchedule]:
        """
        Apply feedback to a stored schedule and publish the resulting events.

        When `student_id` is given the schedule must belong to that student.
        Events stay buffered on the aggregate until the schedule, the study
        record and the events themselves have all been handed off; on any
        storage failure the previously stored schedule is written back.
        """
        if isinstance(feedback, str):
            try:
                feedback = ReviewFeedback.parse(feedback)
            except ValueError as e:
                return Result.fail(str(e))

        schedule = await self.schedules.find_by_id(schedule_id)
        if schedule is None:
            return Result.fail(f"Review schedule not found: {schedule_id}")
        if student_id is not None and schedule.student_id != student_id:
            return Result.fail("Unauthorized access to review schedule")

        previous = schedule.snapshot()
        processed = schedule.process_review_feedback(
            feedback,
            self.policy,
            self.clock,
            response_time_ms=response_time_ms,
            answer_content=answer_content,
        )
        if processed.is_failure:
            return Result.fail(processed.error or "Review processing failed")

        events = list(schedule.pending_events)
        records: List[StudyRecord] = []
        for event in events:
            if isinstance(event, ReviewCompleted):
                record = StudyRecord.from_review_completed(event)
                if record.is_failure:
                    return Result.fail(f"Failed to record review: {record.error}")
                records.append(record.value)

        try:
            await self.schedules.save(schedule)
            for record_value in records:
                await self.records.save(record_value)
            await self._publish(events)
        except Exception as e:
            logger.warning("Failed to persist review of schedule %s: %s", schedule_id, e)
            await self._revert(previous)
            return Result.fail(f"Failed to persist review: {e}")

        schedule.drain_events()
        return Result.ok(schedule)

    async def scan_overdue(self, student_id: str) -> int:
        """
        Emit overdue alerts for every overdue schedule of the student.

        Schedules are visited one at a time. Returns the number of alerts
        published.
        """
        published = 0
        for schedule in await self.schedules.find_by_student_id(student_id):
            schedule.trigger_overdue_notification(self.clock)
            events = schedule.drain_events()
            if events:
                await self._publish(events)
                published += len(events)
        if published:
            logger.info("Published %s overdue alert(s) for student %s", published, student_id)
        return published

    async def get_overdue_report(
        self,
        student_id: str,
        *,
        sort_by: Optional[str] = None,
        sort_order: Optional[str] = None,
        limit: int = DEFAULT_LIMIT,
        offset: int = 0,
    ) -> OverdueReport:
        schedules = await self.schedules.find_by_student_id(student_id)
        return build_overdue_report(
            schedules,
            self.clock,
            sort_by=sort_by,
            sort_order=sort_order,
            limit=limit,
            offset=offset,
            config=self.policy.config,
        )

    async def analyze_study_patterns(
        self,
        student_id: str,
        *,
        problem_id: Optional[str] = None,
        time_range_days: int = 30,
    ) -> Optional[StudyPatternReport]:
        if problem_id is None:
            records = await self.records.find_by_student_id(student_id)
        else:
            records = await self.records.find_by_student_and_problem(student_id, problem_id)
        return self.pattern_analyzer.analyze(
            records=records,
            student_id=student_id,
            problem_id=problem_id,
            time_range_days=time_range_days,
            now=self.clock.now(),
        )

    async def assess_difficulty(
        self,
        student_id: str,
        *,
        problem_id: Optional[str] = None,
        include_recommendations: bool = False,
    ) -> Optional[DifficultyAssessment]:
        schedules: List[ReviewSchedule]
        if problem_id is None:
            schedules = await self.schedules.find_by_student_id(student_id)
        else:
            found = await self.schedules.find_by_student_and_problem(student_id, problem_id)
            schedules = [found] if found is not None else []
        records = await self.records.find_by_student_id(student_id)
        return self.difficulty_assessor.assess(
            schedules=schedules,
            records=records,
            include_recommendations=include_recommendations,
        )

    async def get_retention_probability(self, schedule_id: str) -> Optional[float]:
        schedule = await self.schedules.find_by_id(schedule_id)
        if schedule is None:
            return None
        return schedule.get_retention_probability(self.clock, self.policy.config)

    async def get_today_reviews(self, student_id: str) -> List[ReviewQueueItem]:
        """The learner's queue for today, most urgent first."""
        schedules = await self.schedules.find_by_student_id(student_id)
        return build_today_queue(schedules, self.clock, config=self.policy.config)

    async def get_overdue_reviews(self, student_id: str) -> List[ReviewQueueItem]:
        schedules = await self.schedules.find_by_student_id(student_id)
        return build_overdue_queue(schedules, self.clock, config=self.policy.config)

    async def get_review_statistics(self, student_id: str) -> ReviewStatisticsReport:
        schedules = await self.schedules.find_by_student_id(student_id)
        records = await self.records.find_by_student_id(student_id)
        return build_review_statistics(student_id, schedules, records, self.clock)

    async def _publish(self, events: List[SchedulingEvent]) -> None:
        if not events:
            return
        await self.sink.publish(events)
        logger.debug("Published %s event(s)", len(events))

    async def _revert(self, previous: ReviewSchedule) -> None:
        try:
            await self.schedules.save(previous)
        except Exception as e:
            logger.warning("Could not restore schedule %s after a failed review: %s", previous.id, e)
