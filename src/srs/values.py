"""
Clamped numeric value types used by the scheduler.

Arithmetic on `EaseFactor` and `ReviewInterval` saturates at the configured
bounds instead of raising, so a single out-of-range computation can never
block a review from being recorded.
"""

from __future__ import annotations

import enum
from dataclasses import dataclass
from typing import Optional

from .config import DEFAULT_POLICY_CONFIG, SrsPolicyConfig


def _clamp(value: float, low: float, high: float) -> float:
    if value < low:
        return low
    if value > high:
        return high
    return value


@dataclass(frozen=True, order=True)
class EaseFactor:
    """Per-item growth multiplier, bounded to [min_ease_factor, max_ease_factor]."""

    value: float

    @classmethod
    def of(cls, value: float, config: Optional[SrsPolicyConfig] = None) -> "EaseFactor":
        config = config or DEFAULT_POLICY_CONFIG
        return cls(round(_clamp(float(value), config.min_ease_factor, config.max_ease_factor), 4))

    @classmethod
    def default(cls, config: Optional[SrsPolicyConfig] = None) -> "EaseFactor":
        config = config or DEFAULT_POLICY_CONFIG
        return cls.of(config.default_ease_factor, config)

    @classmethod
    def minimum(cls, config: Optional[SrsPolicyConfig] = None) -> "EaseFactor":
        config = config or DEFAULT_POLICY_CONFIG
        return cls(config.min_ease_factor)

    def increase(self, amount: float, config: Optional[SrsPolicyConfig] = None) -> "EaseFactor":
        return EaseFactor.of(self.value + amount, config)

    def decrease(self, amount: float, config: Optional[SrsPolicyConfig] = None) -> "EaseFactor":
        return EaseFactor.of(self.value - amount, config)


@dataclass(frozen=True, order=True)
class ReviewInterval:
    """Whole number of days until the next review."""

    days: int

    @classmethod
    def from_days(cls, days: float, config: Optional[SrsPolicyConfig] = None) -> "ReviewInterval":
        config = config or DEFAULT_POLICY_CONFIG
        bounded = _clamp(round(days), config.min_interval_days, config.max_interval_days)
        return cls(int(bounded))

    @classmethod
    def initial(cls, config: Optional[SrsPolicyConfig] = None) -> "ReviewInterval":
        config = config or DEFAULT_POLICY_CONFIG
        return cls.from_days(config.initial_interval_days, config)

    @classmethod
    def minimum(cls, config: Optional[SrsPolicyConfig] = None) -> "ReviewInterval":
        config = config or DEFAULT_POLICY_CONFIG
        return cls(config.min_interval_days)

    def multiply(self, factor: float, config: Optional[SrsPolicyConfig] = None) -> "ReviewInterval":
        return ReviewInterval.from_days(self.days * factor, config)


class ReviewFeedback(str, enum.Enum):
    """Learner's self-assessment after a review."""

    AGAIN = "AGAIN"
    HARD = "HARD"
    GOOD = "GOOD"
    EASY = "EASY"

    @classmethod
    def parse(cls, value: "str | ReviewFeedback") -> "ReviewFeedback":
        if isinstance(value, ReviewFeedback):
            return value
        try:
            return cls(str(value).strip().upper())
        except ValueError:
            allowed = ", ".join(member.value for member in cls)
            raise ValueError(f"feedback must be one of {allowed}, got {value!r}") from None

    def is_again(self) -> bool:
        return self is ReviewFeedback.AGAIN

    def is_easy(self) -> bool:
        return self is ReviewFeedback.EASY
