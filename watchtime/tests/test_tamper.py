# watchtime/tests/test_tamper.py
from watchtime.tamper import (
    REASON_NEGATIVE,
    REASON_PAST_END,
    REASON_TOO_FAST,
    bounded_credit,
    check_position,
)


def test_normal_progress_is_credited():
    v = check_position(130, 100, 30.4, 600)
    assert v.accepted
    assert v.credit_seconds == 30
    assert v.reason is None


def test_credit_is_smaller_of_progress_and_wall_clock():
    # Paused video: wall clock moved, position did not
    assert check_position(100, 100, 30, 600).credit_seconds == 0
    # Slightly fast client clock: progress within tolerance, credit capped by real time
    assert check_position(132, 100, 30, 600).credit_seconds == 30


def test_position_beyond_duration_and_grace_is_rejected():
    assert check_position(605, 590, 30, 600, grace_seconds=5).accepted
    v = check_position(9999, 0, 30, 600)
    assert not v.accepted
    assert v.reason == REASON_PAST_END


def test_unknown_duration_skips_upper_bound_only():
    assert check_position(30, 0, 30, None).accepted
    assert check_position(-3, 0, 30, None).reason == REASON_NEGATIVE


def test_skipping_ahead_faster_than_real_time_is_rejected():
    v = check_position(400, 100, 10, 600)
    assert not v.accepted
    assert v.reason == REASON_TOO_FAST
    assert v.credit_seconds == 0


def test_rate_tolerance_and_slack_boundaries():
    # 100 s wall clock * 1.1 + 2 s slack = 112 s of allowed progress
    assert check_position(112, 0, 100, 600).accepted
    assert not check_position(113, 0, 100, 600).accepted
    assert not check_position(111, 0, 100, 600, rate_slack_seconds=0).accepted


def test_seeking_backwards_is_accepted_without_credit():
    v = check_position(20, 300, 15, 600)
    assert v.accepted
    assert v.credit_seconds == 0


def test_negative_wall_clock_is_treated_as_zero():
    v = check_position(1, 0, -5, 600)
    assert v.accepted
    assert v.credit_seconds == 0


def test_bounded_credit_never_rejects():
    assert bounded_credit(99999, 0, 30, 600) == 30
    assert bounded_credit(600, 120, 500, 600) == 480
    assert bounded_credit(-50, 10, 30, 600) == 0
    assert bounded_credit(700, 100, 1000, None) == 600
