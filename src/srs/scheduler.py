from __future__ import annotations

import datetime as dt
from dataclasses import dataclass
from typing import Optional, Protocol, runtime_checkable

from .config import DEFAULT_POLICY_CONFIG, SrsPolicyConfig
from .state import ReviewState
from .values import EaseFactor, ReviewFeedback, ReviewInterval


@dataclass(frozen=True)
class IntervalAdjustment:
    """
    Interval and ease factor proposed by the policy.

    `relearn_delay` is only set in minutes-based AGAIN mode and, when
    present, replaces the day interval when computing the next due date.
    """

    new_interval: ReviewInterval
    new_ease_factor: EaseFactor
    relearn_delay: Optional[dt.timedelta] = None


@runtime_checkable
class SpacedRepetitionPolicy(Protocol):
    """
    Algorithm contract consumed by `ReviewSchedule`.

    Implementations must be pure: no I/O and no mutation of their inputs.
    """

    config: SrsPolicyConfig

    def create_initial_state(self, base_date: dt.datetime) -> ReviewState:
        ...

    def calculate_next_interval(
        self, state: ReviewState, feedback: ReviewFeedback
    ) -> IntervalAdjustment:
        ...

    def should_reset_interval(self, state: ReviewState, consecutive_failures: int) -> bool:
        ...

    def adjust_for_late_review(self, state: ReviewState, now: dt.datetime) -> IntervalAdjustment:
        ...


class SM2Policy:
    """
    SM-2 family scheduler with four-button feedback.

    Adapted from the SuperMemo-2 update rule:

        - AGAIN resets the interval to the minimum and drops the ease factor
        - HARD shrinks the interval and lowers the ease factor slightly
        - GOOD grows the interval by the ease factor (always by at least a day)
        - EASY grows the GOOD interval further and raises the ease factor

    Every result is clamped to the bounds in `SrsPolicyConfig`.
    """

    def __init__(self, config: Optional[SrsPolicyConfig] = None) -> None:
        self.config = config or DEFAULT_POLICY_CONFIG

    def create_initial_state(self, base_date: dt.datetime) -> ReviewState:
        interval = ReviewInterval.initial(self.config)
        return ReviewState.create(
            interval=interval,
            ease_factor=EaseFactor.default(self.config),
            review_count=0,
            last_reviewed_at=None,
            next_review_at=base_date + dt.timedelta(days=interval.days),
        )

    def calculate_next_interval(
        self, state: ReviewState, feedback: ReviewFeedback
    ) -> IntervalAdjustment:
        cfg = self.config
        interval = state.interval.days
        ease = state.ease_factor

        if feedback is ReviewFeedback.AGAIN:
            relearn_delay = None
            if cfg.again_relearn_minutes:
                relearn_delay = dt.timedelta(minutes=cfg.again_relearn_minutes)
            return IntervalAdjustment(
                new_interval=ReviewInterval.minimum(cfg),
                new_ease_factor=ease.decrease(cfg.again_ease_penalty, cfg),
                relearn_delay=relearn_delay,
            )

        if feedback is ReviewFeedback.HARD:
            return IntervalAdjustment(
                new_interval=ReviewInterval.from_days(interval * cfg.hard_interval_multiplier, cfg),
                new_ease_factor=ease.decrease(cfg.hard_ease_penalty, cfg),
            )

        good_days = self._good_interval_days(interval, ease.value)
        if feedback is ReviewFeedback.GOOD:
            return IntervalAdjustment(
                new_interval=ReviewInterval.from_days(good_days, cfg),
                new_ease_factor=ease,
            )

        easy_days = max(good_days + 1, round(good_days * cfg.easy_interval_bonus_multiplier))
        return IntervalAdjustment(
            new_interval=ReviewInterval.from_days(easy_days, cfg),
            new_ease_factor=ease.increase(cfg.easy_ease_bonus, cfg),
        )

    def should_reset_interval(self, state: ReviewState, consecutive_failures: int) -> bool:
        return consecutive_failures >= self.config.reset_threshold_failures

    def adjust_for_late_review(self, state: ReviewState, now: dt.datetime) -> IntervalAdjustment:
        """
        Penalise a review done at least one whole day after it was due.

        The ease factor drops per late day (capped) and, once the delay
        exceeds the current interval, the interval decays as well. On-time
        and early reviews are returned unchanged.
        """
        cfg = self.config
        days_late = int(state.days_overdue(now))
        if days_late < 1:
            return IntervalAdjustment(
                new_interval=state.interval,
                new_ease_factor=state.ease_factor,
            )

        penalty = min(
            cfg.late_review_max_ease_penalty,
            days_late * cfg.late_review_ease_penalty_per_day,
        )
        interval = state.interval
        if days_late > interval.days:
            interval = interval.multiply(cfg.late_review_interval_decay, cfg)

        return IntervalAdjustment(
            new_interval=interval,
            new_ease_factor=state.ease_factor.decrease(penalty, cfg),
        )

    @staticmethod
    def _good_interval_days(interval: int, ease: float) -> int:
        return max(interval + 1, round(interval * ease))
