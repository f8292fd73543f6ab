# watchtime/tests/test_limits.py
import math

from watchtime.limits import UNLIMITED, as_json, is_exhausted, remaining_minutes


def test_remaining_is_limit_minus_watched():
    assert remaining_minutes(60, 35) == 25


def test_exact_limit_leaves_nothing():
    assert remaining_minutes(60, 60) == 0
    assert is_exhausted(remaining_minutes(60, 60))


def test_never_negative():
    assert remaining_minutes(30, 45) == 0
    assert remaining_minutes(60, 58, 600) == 0


def test_only_whole_minutes_of_the_running_session_count():
    assert remaining_minutes(60, 58, 59) == 2
    assert remaining_minutes(60, 58, 60) == 1
    assert remaining_minutes(60, 58, 119) == 1
    assert remaining_minutes(60, 58, 120) == 0


def test_no_limit_configured_is_unbounded():
    r = remaining_minutes(None, 10_000, 10_000)
    assert r is UNLIMITED
    assert math.isinf(r)
    assert not is_exhausted(r)
    assert as_json(r) is None


def test_as_json_passes_finite_values_through():
    assert as_json(0) == 0
    assert as_json(17) == 17
