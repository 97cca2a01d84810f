"""
SQLAlchemy adapters for the scheduling ports.

Repositories only `flush`; the unit of work is committed by
`OutboxEventSink.publish`, which `ReviewService` calls last. Schedule rows,
study records and outbox rows of one command therefore land in a single
transaction.
"""

from __future__ import annotations

import logging
from typing import List, Optional, Sequence

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from src.db.models import OutboxEventRow, ReviewScheduleRow, StudyRecordRow
from src.srs.events import SchedulingEvent
from src.srs.ports import EventSink, ReviewScheduleRepository, StudyRecordRepository
from src.srs.schedule import ReviewSchedule
from src.srs.state import ReviewState
from src.srs.study_record import StudyRecord
from src.srs.values import EaseFactor, ReviewFeedback, ReviewInterval

logger = logging.getLogger(__name__)


def schedule_from_row(row: ReviewScheduleRow) -> ReviewSchedule:
    return ReviewSchedule.restore(
        schedule_id=row.id,
        student_id=row.student_id,
        problem_id=row.problem_id,
        review_state=ReviewState(
            interval=ReviewInterval(row.current_interval),
            ease_factor=EaseFactor(row.ease_factor),
            review_count=row.review_count,
            last_reviewed_at=row.last_reviewed_at,
            next_review_at=row.next_review_at,
        ),
        consecutive_failures=row.consecutive_failures,
        created_at=row.created_at,
        updated_at=row.updated_at,
    )


def apply_schedule_to_row(schedule: ReviewSchedule, row: ReviewScheduleRow) -> ReviewScheduleRow:
    row.id = schedule.id
    row.student_id = schedule.student_id
    row.problem_id = schedule.problem_id
    row.current_interval = schedule.current_interval
    row.ease_factor = schedule.ease_factor
    row.review_count = schedule.review_count
    row.consecutive_failures = schedule.consecutive_failures
    row.last_reviewed_at = schedule.last_reviewed_at
    row.next_review_at = schedule.next_review_at
    row.created_at = schedule.created_at
    row.updated_at = schedule.updated_at
    return row


def record_from_row(row: StudyRecordRow) -> StudyRecord:
    return StudyRecord(
        id=row.id,
        student_id=row.student_id,
        problem_id=row.problem_id,
        feedback=ReviewFeedback(row.feedback),
        is_correct=row.is_correct,
        response_time_ms=row.response_time_ms,
        answer_content=row.answer_content,
        created_at=row.created_at,
    )


def record_to_row(record: StudyRecord) -> StudyRecordRow:
    return StudyRecordRow(
        id=record.id,
        student_id=record.student_id,
        problem_id=record.problem_id,
        feedback=record.feedback.value,
        is_correct=record.is_correct,
        response_time_ms=record.response_time_ms,
        answer_content=record.answer_content,
        created_at=record.created_at,
    )


def event_to_row(event: SchedulingEvent) -> OutboxEventRow:
    return OutboxEventRow(
        id=event.event_id,
        aggregate_id=event.aggregate_id,
        event_type=event.event_type,
        payload=event.model_dump(mode="json"),
        occurred_at=event.occurred_at,
        dispatched_at=None,
    )


class SqlAlchemyReviewScheduleRepository(ReviewScheduleRepository):
    def __init__(self, session: AsyncSession) -> None:
        self.session = session

    async def save(self, schedule: ReviewSchedule) -> None:
        row = await self.session.get(ReviewScheduleRow, schedule.id)
        if row is None:
            row = ReviewScheduleRow()
            self.session.add(row)
        apply_schedule_to_row(schedule, row)
        await self.session.flush()

    async def find_by_id(self, schedule_id: str) -> Optional[ReviewSchedule]:
        row = await self.session.get(ReviewScheduleRow, schedule_id)
        return schedule_from_row(row) if row is not None else None

    async def find_by_student_id(self, student_id: str) -> List[ReviewSchedule]:
        result = await self.session.execute(
            select(ReviewScheduleRow)
            .where(ReviewScheduleRow.student_id == student_id)
            .order_by(ReviewScheduleRow.next_review_at)
        )
        return [schedule_from_row(row) for row in result.scalars().all()]

    async def find_by_student_and_problem(
        self, student_id: str, problem_id: str
    ) -> Optional[ReviewSchedule]:
        result = await self.session.execute(
            select(ReviewScheduleRow).where(
                ReviewScheduleRow.student_id == student_id,
                ReviewScheduleRow.problem_id == problem_id,
            )
        )
        row = result.scalar_one_or_none()
        return schedule_from_row(row) if row is not None else None


class SqlAlchemyStudyRecordRepository(StudyRecordRepository):
    def __init__(self, session: AsyncSession) -> None:
        self.session = session

    async def save(self, record: StudyRecord) -> None:
        self.session.add(record_to_row(record))
        await self.session.flush()

    async def find_by_student_id(self, student_id: str) -> List[StudyRecord]:
        result = await self.session.execute(
            select(StudyRecordRow)
            .where(StudyRecordRow.student_id == student_id)
            .order_by(StudyRecordRow.created_at)
        )
        return [record_from_row(row) for row in result.scalars().all()]

    async def find_by_student_and_problem(
        self, student_id: str, problem_id: str
    ) -> List[StudyRecord]:
        result = await self.session.execute(
            select(StudyRecordRow)
            .where(
                StudyRecordRow.student_id == student_id,
                StudyRecordRow.problem_id == problem_id,
            )
            .order_by(StudyRecordRow.created_at)
        )
        return [record_from_row(row) for row in result.scalars().all()]


class OutboxEventSink(EventSink):
    """
    Store events in `outbox_events` and commit the unit of work.

    A separate dispatcher reads undelivered rows (`dispatched_at IS NULL`)
    and fans them out to notification and statistics consumers.
    """

    def __init__(self, session: AsyncSession) -> None:
        self.session = session

    async def publish(self, events: Sequence[SchedulingEvent]) -> None:
        for event in events:
            self.session.add(event_to_row(event))
        await self.session.commit()
        logger.debug("Stored %s event(s) in the outbox", len(events))

