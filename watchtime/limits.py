import math

# Returned when a profile has no daily limit configured.
UNLIMITED = math.inf


def remaining_minutes(daily_limit_minutes, minutes_watched_today: int, additional_elapsed_seconds: int = 0):
    """
    Minutes of allowance left today.

    `additional_elapsed_seconds` is time accrued by a running session that has
    not been committed to the daily aggregate yet; only whole minutes count.
    """
    if daily_limit_minutes is None:
        return UNLIMITED
    used = int(minutes_watched_today or 0) + max(0, int(additional_elapsed_seconds or 0)) // 60
    return max(0, int(daily_limit_minutes) - used)


def is_exhausted(remaining) -> bool:
    return not math.isinf(remaining) and remaining <= 0


def as_json(remaining):
    """JSON has no infinity; an unlimited allowance is rendered as null."""
    return None if math.isinf(remaining) else remaining
