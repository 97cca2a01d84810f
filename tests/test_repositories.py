"""
Unit tests for the SQLAlchemy adapters (no real DB).
"""

from __future__ import annotations

import datetime as dt
from typing import Any, Dict, List

import pytest

from src.db.models import OutboxEventRow, ReviewScheduleRow, StudyRecordRow
from src.db.repositories import (
    OutboxEventSink,
    SqlAlchemyReviewScheduleRepository,
    SqlAlchemyStudyRecordRepository,
    apply_schedule_to_row,
    record_from_row,
    record_to_row,
    schedule_from_row,
)
from src.db.session import build_review_service
from src.srs.clock import FixedClock
from src.srs.schedule import ReviewSchedule
from src.srs.scheduler import SM2Policy
from src.srs.study_record import StudyRecord
from src.srs.values import ReviewFeedback

NOW = dt.datetime(2025, 1, 1, tzinfo=dt.timezone.utc)


def _make_row() -> ReviewScheduleRow:
    # Plain ORM instance detached from any session is fine for unit testing.
    return ReviewScheduleRow(
        id="schedule-1",
        student_id="student-1",
        problem_id="problem-1",
        current_interval=4,
        ease_factor=2.2,
        review_count=3,
        consecutive_failures=1,
        last_reviewed_at=NOW - dt.timedelta(days=4),
        next_review_at=NOW,
        created_at=NOW - dt.timedelta(days=10),
        updated_at=NOW - dt.timedelta(days=4),
    )


class _FakeScalars:
    def __init__(self, rows: List[Any]):
        self._rows = rows

    def all(self) -> List[Any]:
        return list(self._rows)


class _FakeResult:
    def __init__(self, rows: List[Any]):
        self._rows = rows

    def scalars(self) -> _FakeScalars:
        return _FakeScalars(self._rows)

    def scalar_one_or_none(self) -> Any | None:
        return self._rows[0] if self._rows else None


class _FakeSession:
    def __init__(self, rows: List[Any] | None = None):
        self.rows = rows or []
        self.by_id: Dict[str, Any] = {row.id: row for row in self.rows}
        self.added: List[Any] = []
        self.flushes = 0
        self.commits = 0

    async def get(self, _model: Any, key: str) -> Any | None:
        return self.by_id.get(key)

    def add(self, obj: Any) -> None:
        self.added.append(obj)

    async def flush(self) -> None:
        self.flushes += 1

    async def commit(self) -> None:
        self.commits += 1

    async def execute(self, _query: Any) -> _FakeResult:
        return _FakeResult(self.rows)


def test_schedule_row_round_trip():
    schedule = schedule_from_row(_make_row())

    assert schedule.id == "schedule-1"
    assert schedule.current_interval == 4
    assert schedule.ease_factor == 2.2
    assert schedule.consecutive_failures == 1
    assert schedule.pending_events == ()

    row = apply_schedule_to_row(schedule, ReviewScheduleRow())
    assert row.next_review_at == NOW
    assert row.review_count == 3
    assert row.created_at == NOW - dt.timedelta(days=10)


def test_restored_schedule_keeps_scheduling():
    schedule = schedule_from_row(_make_row())
    clock = FixedClock(NOW)

    assert schedule.process_review_feedback(ReviewFeedback.GOOD, SM2Policy(), clock).is_success
    assert schedule.current_interval == 9
    assert schedule.consecutive_failures == 0


def test_study_record_mapping():
    record = StudyRecord(
        student_id="student-1",
        problem_id="problem-1",
        feedback=ReviewFeedback.HARD,
        is_correct=True,
        response_time_ms=8_000,
        answer_content={"text": "O(log n)"},
        created_at=NOW,
    )

    row = record_to_row(record)
    assert isinstance(row, StudyRecordRow)
    assert row.feedback == "HARD"
    assert record_from_row(row) == record


@pytest.mark.anyio
async def test_save_inserts_new_schedule():
    session = _FakeSession()
    repository = SqlAlchemyReviewScheduleRepository(session)  # type: ignore[arg-type]
    policy = SM2Policy()
    schedule = ReviewSchedule.create(
        student_id="student-1",
        problem_id="problem-9",
        review_state=policy.create_initial_state(NOW),
        clock=FixedClock(NOW),
    ).value

    await repository.save(schedule)

    assert len(session.added) == 1
    row = session.added[0]
    assert row.id == schedule.id
    assert row.problem_id == "problem-9"
    assert row.current_interval == 1
    assert session.flushes == 1
    assert session.commits == 0
    # events stay with the aggregate until drained
    assert len(schedule.pending_events) == 1


@pytest.mark.anyio
async def test_save_updates_existing_row_in_place():
    row = _make_row()
    session = _FakeSession([row])
    repository = SqlAlchemyReviewScheduleRepository(session)  # type: ignore[arg-type]
    schedule = await repository.find_by_id("schedule-1")

    schedule.process_review_feedback(ReviewFeedback.AGAIN, SM2Policy(), FixedClock(NOW))
    await repository.save(schedule)

    assert session.added == []
    assert row.consecutive_failures == 2
    assert row.current_interval == 1
    assert row.updated_at == NOW


@pytest.mark.anyio
async def test_finders_map_rows():
    session = _FakeSession([_make_row()])
    repository = SqlAlchemyReviewScheduleRepository(session)  # type: ignore[arg-type]

    assert await repository.find_by_id("missing") is None
    by_pair = await repository.find_by_student_and_problem("student-1", "problem-1")
    by_student = await repository.find_by_student_id("student-1")

    assert by_pair.id == "schedule-1"
    assert [s.id for s in by_student] == ["schedule-1"]


@pytest.mark.anyio
async def test_study_record_repository():
    record = StudyRecord(
        student_id="student-1",
        problem_id="problem-1",
        feedback=ReviewFeedback.GOOD,
        is_correct=True,
        created_at=NOW,
    )
    session = _FakeSession([record_to_row(record)])
    repository = SqlAlchemyStudyRecordRepository(session)  # type: ignore[arg-type]

    await repository.save(record)
    found = await repository.find_by_student_and_problem("student-1", "problem-1")

    assert len(session.added) == 1
    assert found == [record]


@pytest.mark.anyio
async def test_outbox_sink_stores_events_and_commits():
    session = _FakeSession()
    sink = OutboxEventSink(session)  # type: ignore[arg-type]
    schedule = ReviewSchedule.create(
        student_id="student-1",
        problem_id="problem-1",
        review_state=SM2Policy().create_initial_state(NOW),
        clock=FixedClock(NOW),
    ).value

    await sink.publish(schedule.drain_events())

    assert session.commits == 1
    assert len(session.added) == 1
    row = session.added[0]
    assert isinstance(row, OutboxEventRow)
    assert row.event_type == "ReviewScheduled"
    assert row.aggregate_id == schedule.id
    assert row.payload["student_id"] == "student-1"
    assert row.dispatched_at is None


@pytest.mark.anyio
async def test_build_review_service_commits_one_unit_of_work():
    session = _FakeSession()
    service = build_review_service(session, clock=FixedClock(NOW))  # type: ignore[arg-type]

    result = await service.schedule_item("student-1", "problem-1")

    assert result.is_success
    assert session.commits == 1
    assert [type(obj) for obj in session.added] == [ReviewScheduleRow, OutboxEventRow]
    assert session.added[0].next_review_at == NOW + dt.timedelta(days=1)
    assert session.added[1].event_type == "ReviewScheduled"
