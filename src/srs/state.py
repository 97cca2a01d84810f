from __future__ import annotations

import datetime as dt
import math
from dataclasses import dataclass
from typing import Optional

from .values import EaseFactor, ReviewInterval

_SECONDS_PER_DAY = 24 * 60 * 60


@dataclass(frozen=True)
class ReviewState:
    """
    Snapshot of a learning item's scheduling status.

    Instances are immutable: every review produces a new state through
    `with_new_review`.
    """

    interval: ReviewInterval
    ease_factor: EaseFactor
    review_count: int
    last_reviewed_at: Optional[dt.datetime]
    next_review_at: dt.datetime

    @classmethod
    def create(
        cls,
        *,
        interval: ReviewInterval,
        ease_factor: EaseFactor,
        review_count: int,
        last_reviewed_at: Optional[dt.datetime],
        next_review_at: dt.datetime,
    ) -> "ReviewState":
        """Validated constructor. Raises ValueError on inconsistent input."""
        if interval is None or ease_factor is None or next_review_at is None:
            raise ValueError("interval, ease_factor and next_review_at are required")
        if review_count < 0:
            raise ValueError("review_count must be non-negative")
        if last_reviewed_at is not None and next_review_at < last_reviewed_at:
            raise ValueError("next_review_at must not be earlier than last_reviewed_at")
        return cls(
            interval=interval,
            ease_factor=ease_factor,
            review_count=review_count,
            last_reviewed_at=last_reviewed_at,
            next_review_at=next_review_at,
        )

    def with_new_review(
        self,
        interval: ReviewInterval,
        ease_factor: EaseFactor,
        reviewed_at: dt.datetime,
        *,
        next_review_at: Optional[dt.datetime] = None,
    ) -> "ReviewState":
        """
        Return the state after a review at `reviewed_at`.

        The next review defaults to `reviewed_at + interval`; callers may pin
        an earlier instant for minutes-based re-reviews.
        """
        if next_review_at is None:
            next_review_at = reviewed_at + dt.timedelta(days=interval.days)
        return ReviewState.create(
            interval=interval,
            ease_factor=ease_factor,
            review_count=self.review_count + 1,
            last_reviewed_at=reviewed_at,
            next_review_at=next_review_at,
        )

    def is_due(self, now: dt.datetime) -> bool:
        return now >= self.next_review_at

    def is_overdue(self, now: dt.datetime) -> bool:
        return now > self.next_review_at

    def minutes_until_due(self, now: dt.datetime) -> int:
        """Whole minutes until the next review; negative once it has passed."""
        return math.floor((self.next_review_at - now).total_seconds() / 60)

    def days_since_last_review(self, now: dt.datetime) -> float:
        if self.last_reviewed_at is None:
            return 0.0
        return (now - self.last_reviewed_at).total_seconds() / _SECONDS_PER_DAY

    def days_overdue(self, now: dt.datetime) -> float:
        if not self.is_overdue(now):
            return 0.0
        return (now - self.next_review_at).total_seconds() / _SECONDS_PER_DAY
