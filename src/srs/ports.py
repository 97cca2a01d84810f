"""
Ports (interfaces) at the boundary of the scheduling core.

Application services depend on these abstractions; persistence and event
delivery adapters implement them. Storage is simple keyed lookup, no query
logic is owned by the core.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import List, Optional, Sequence

from .events import SchedulingEvent
from .schedule import ReviewSchedule
from .study_record import StudyRecord


class ReviewScheduleRepository(ABC):
    """
    Port for storing review schedules.

    Implementations:
        - InMemoryReviewScheduleRepository: dict-backed, for tests and embedding.
        - SqlAlchemyReviewScheduleRepository: async SQLAlchemy session.
    """

    @abstractmethod
    async def save(self, schedule: ReviewSchedule) -> None:
        """Insert or update the schedule. Pending events are not touched."""

    @abstractmethod
    async def find_by_id(self, schedule_id: str) -> Optional[ReviewSchedule]:
        pass

    @abstractmethod
    async def find_by_student_id(self, student_id: str) -> List[ReviewSchedule]:
        pass

    @abstractmethod
    async def find_by_student_and_problem(
        self, student_id: str, problem_id: str
    ) -> Optional[ReviewSchedule]:
        pass


class StudyRecordRepository(ABC):
    """Port for storing study records (append-only)."""

    @abstractmethod
    async def save(self, record: StudyRecord) -> None:
        pass

    @abstractmethod
    async def find_by_student_id(self, student_id: str) -> List[StudyRecord]:
        """Records for the student, oldest first."""

    @abstractmethod
    async def find_by_student_and_problem(
        self, student_id: str, problem_id: str
    ) -> List[StudyRecord]:
        """Records for the pair, oldest first."""


class EventSink(ABC):
    """
    Receives drained events for fan-out.

    Delivery to notification channels, statistics aggregation and streak
    tracking happen behind this port.
    """

    @abstractmethod
    async def publish(self, events: Sequence[SchedulingEvent]) -> None:
        pass
