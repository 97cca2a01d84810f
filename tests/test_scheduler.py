from __future__ import annotations

import datetime as dt

import pytest

from src.srs.config import SrsPolicyConfig
from src.srs.scheduler import SM2Policy, SpacedRepetitionPolicy
from src.srs.state import ReviewState
from src.srs.values import EaseFactor, ReviewFeedback, ReviewInterval

NOW = dt.datetime(2025, 1, 1, tzinfo=dt.timezone.utc)


def _make_state(interval: int = 1, ease: float = 2.5) -> ReviewState:
    return ReviewState(
        interval=ReviewInterval(interval),
        ease_factor=EaseFactor(ease),
        review_count=0,
        last_reviewed_at=NOW,
        next_review_at=NOW + dt.timedelta(days=interval),
    )


def test_sm2_policy_satisfies_protocol():
    assert isinstance(SM2Policy(), SpacedRepetitionPolicy)


def test_initial_state():
    state = SM2Policy().create_initial_state(NOW)

    assert state.interval.days == 1
    assert state.ease_factor.value == 2.5
    assert state.review_count == 0
    assert state.last_reviewed_at is None
    assert state.next_review_at == NOW + dt.timedelta(days=1)


def test_good_grows_interval_by_ease():
    policy = SM2Policy()

    assert policy.calculate_next_interval(_make_state(1), ReviewFeedback.GOOD).new_interval.days == 2
    adjustment = policy.calculate_next_interval(_make_state(4), ReviewFeedback.GOOD)
    assert adjustment.new_interval.days == 10
    assert adjustment.new_ease_factor.value == 2.5


def test_good_interval_is_capped():
    adjustment = SM2Policy().calculate_next_interval(_make_state(20), ReviewFeedback.GOOD)
    assert adjustment.new_interval.days == 30


def test_easy_beats_good_and_raises_ease():
    policy = SM2Policy()
    state = _make_state(1)

    good = policy.calculate_next_interval(state, ReviewFeedback.GOOD)
    easy = policy.calculate_next_interval(state, ReviewFeedback.EASY)

    assert easy.new_interval.days == 3
    assert easy.new_interval.days > good.new_interval.days
    assert easy.new_ease_factor.value == pytest.approx(2.65)


def test_hard_shrinks_interval_and_lowers_ease():
    adjustment = SM2Policy().calculate_next_interval(_make_state(5), ReviewFeedback.HARD)

    assert adjustment.new_interval.days == 4
    assert adjustment.new_ease_factor.value == pytest.approx(2.35)


def test_again_resets_interval_and_subtracts_penalty():
    adjustment = SM2Policy().calculate_next_interval(_make_state(10), ReviewFeedback.AGAIN)

    assert adjustment.new_interval.days == 1
    assert adjustment.new_ease_factor.value == pytest.approx(1.7)
    assert adjustment.relearn_delay is None


def test_again_in_minutes_mode_sets_relearn_delay():
    policy = SM2Policy(SrsPolicyConfig(again_relearn_minutes=10))
    adjustment = policy.calculate_next_interval(_make_state(10), ReviewFeedback.AGAIN)

    assert adjustment.new_interval.days == 1
    assert adjustment.relearn_delay == dt.timedelta(minutes=10)


def test_should_reset_interval_at_threshold():
    policy = SM2Policy()
    state = _make_state()

    assert not policy.should_reset_interval(state, 2)
    assert policy.should_reset_interval(state, 3)
    assert policy.should_reset_interval(state, 4)


def test_late_review_under_one_day_is_not_penalised():
    state = _make_state(2)
    adjustment = SM2Policy().adjust_for_late_review(state, state.next_review_at + dt.timedelta(hours=20))

    assert adjustment.new_interval.days == 2
    assert adjustment.new_ease_factor.value == 2.5


def test_late_review_penalises_ease_and_decays_interval():
    state = _make_state(2)
    adjustment = SM2Policy().adjust_for_late_review(state, state.next_review_at + dt.timedelta(days=3))

    assert adjustment.new_ease_factor.value == pytest.approx(2.35)
    assert adjustment.new_interval.days == 1


def test_late_review_penalty_is_capped():
    state = _make_state(30)
    adjustment = SM2Policy().adjust_for_late_review(state, state.next_review_at + dt.timedelta(days=20))

    assert adjustment.new_ease_factor.value == pytest.approx(2.2)
    # 20 days late is within the 30 day interval
    assert adjustment.new_interval.days == 30
