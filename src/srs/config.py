"""
Tunable constants for the spaced-repetition policy.

Every threshold, multiplier, bound and timing value used by the scheduling
algorithm lives on a single `SrsPolicyConfig` instance so that variants of
the algorithm can be built by swapping configuration rather than code.
"""

from __future__ import annotations

import dataclasses
import os
from dataclasses import dataclass
from typing import Mapping, Optional


@dataclass(frozen=True)
class SrsPolicyConfig:
    """Config values for the spaced-repetition policy."""

    # Interval bounds (days)
    min_interval_days: int = 1
    max_interval_days: int = 30
    initial_interval_days: int = 1

    # Ease factor bounds
    min_ease_factor: float = 1.3
    max_ease_factor: float = 4.0
    default_ease_factor: float = 2.5

    # Feedback adjustments
    again_ease_penalty: float = 0.8
    hard_interval_multiplier: float = 0.8
    hard_ease_penalty: float = 0.15
    easy_interval_bonus_multiplier: float = 1.3
    easy_ease_bonus: float = 0.15

    # Failure recovery
    reset_threshold_failures: int = 3

    # Late reviews
    late_review_ease_penalty_per_day: float = 0.05
    late_review_max_ease_penalty: float = 0.3
    late_review_interval_decay: float = 0.5

    # Reminders
    default_reminder_minutes: int = 30
    early_reminder_minutes: int = 120
    extra_reminder_failure_threshold: int = 2
    extra_reminder_ease_threshold: float = 1.8

    # Difficulty tiers
    beginner_ease_threshold: float = 2.8
    intermediate_ease_threshold: float = 2.0

    # Forgetting curve
    min_retention_probability: float = 0.1

    # Minutes-based re-review after AGAIN. None keeps day granularity.
    again_relearn_minutes: Optional[int] = None

    @classmethod
    def from_env(
        cls,
        environ: Optional[Mapping[str, str]] = None,
        prefix: str = "SRS_",
    ) -> "SrsPolicyConfig":
        """
        Build a config, overriding defaults from environment variables.

        Each field can be overridden by `<prefix><FIELD_NAME>`, e.g.
        `SRS_MAX_INTERVAL_DAYS=60`. Unset variables keep their defaults.
        """
        environ = os.environ if environ is None else environ
        overrides: dict[str, object] = {}
        for f in dataclasses.fields(cls):
            raw = environ.get(f"{prefix}{f.name.upper()}")
            if raw is None or raw.strip() == "":
                continue
            overrides[f.name] = _coerce(f.name, raw.strip(), f.default)
        return cls(**overrides)


def _coerce(name: str, raw: str, default: object) -> object:
    try:
        if name == "again_relearn_minutes":
            if raw.lower() in {"none", "off"}:
                return None
            return int(raw)
        if isinstance(default, int):
            return int(raw)
        return float(raw)
    except ValueError as e:
        raise ValueError(f"Invalid value for {name}: {raw!r}") from e


DEFAULT_POLICY_CONFIG = SrsPolicyConfig()
