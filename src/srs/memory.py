"""
In-memory adapters for the scheduling ports.

Useful in tests and for embedding the scheduler in a single process. The
schedule repository keeps copies, like a database would: changes to a
loaded aggregate are only visible to other readers once it is saved.
"""

from __future__ import annotations

from typing import Dict, List, Optional, Sequence

from .events import SchedulingEvent
from .ports import EventSink, ReviewScheduleRepository, StudyRecordRepository
from .schedule import ReviewSchedule
from .study_record import StudyRecord


class InMemoryReviewScheduleRepository(ReviewScheduleRepository):
    def __init__(self) -> None:
        self._by_id: Dict[str, ReviewSchedule] = {}

    async def save(self, schedule: ReviewSchedule) -> None:
        self._by_id[schedule.id] = schedule.snapshot()

    async def find_by_id(self, schedule_id: str) -> Optional[ReviewSchedule]:
        stored = self._by_id.get(schedule_id)
        return stored.snapshot() if stored is not None else None

    async def find_by_student_id(self, student_id: str) -> List[ReviewSchedule]:
        return [s.snapshot() for s in self._by_id.values() if s.student_id == student_id]

    async def find_by_student_and_problem(
        self, student_id: str, problem_id: str
    ) -> Optional[ReviewSchedule]:
        for schedule in self._by_id.values():
            if schedule.student_id == student_id and schedule.problem_id == problem_id:
                return schedule.snapshot()
        return None


class InMemoryStudyRecordRepository(StudyRecordRepository):
    def __init__(self) -> None:
        self._records: List[StudyRecord] = []

    async def save(self, record: StudyRecord) -> None:
        self._records.append(record)

    async def find_by_student_id(self, student_id: str) -> List[StudyRecord]:
        matches = [r for r in self._records if r.student_id == student_id]
        return sorted(matches, key=lambda r: r.created_at)

    async def find_by_student_and_problem(
        self, student_id: str, problem_id: str
    ) -> List[StudyRecord]:
        matches = [
            r
            for r in self._records
            if r.student_id == student_id and r.problem_id == problem_id
        ]
        return sorted(matches, key=lambda r: r.created_at)


class CollectingEventSink(EventSink):
    """Keeps every published event in order."""

    def __init__(self) -> None:
        self.events: List[SchedulingEvent] = []

    async def publish(self, events: Sequence[SchedulingEvent]) -> None:
        self.events.extend(events)
