# watchtime/tamper.py
"""
Plausibility checks for client-reported playback positions.

A child's device is an untrusted client: positions are bounded by the video
duration and by how much real time passed since the last accepted heartbeat.
Watch-time credit is the smaller of claimed video progress and wall-clock time.
"""
from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Optional

REASON_NEGATIVE = "negative_position"
REASON_PAST_END = "past_video_end"
REASON_TOO_FAST = "advanced_faster_than_real_time"


@dataclass(frozen=True)
class Verdict:
    accepted: bool
    credit_seconds: int = 0
    reason: Optional[str] = None


def _credit(position: float, previous_position: float, wall_clock_seconds: float) -> int:
    advance = position - previous_position
    return int(math.floor(max(0.0, min(float(wall_clock_seconds), float(advance)))))


def check_position(
    position: int,
    previous_position: int,
    wall_clock_seconds: float,
    video_duration_seconds: Optional[int],
    *,
    grace_seconds: int = 5,
    rate_tolerance: float = 1.1,
    rate_slack_seconds: int = 2,
) -> Verdict:
    """
    Validate one heartbeat position.

    Rules:
      1) 0 <= position <= duration + grace (upper bound skipped when the duration is unknown).
      2) position - previous <= wall_clock * rate_tolerance + rate_slack.
         Seeking backwards is allowed and credits nothing.
    """
    wall = max(0.0, float(wall_clock_seconds))
    if position < 0:
        return Verdict(False, reason=REASON_NEGATIVE)
    if video_duration_seconds is not None and position > video_duration_seconds + grace_seconds:
        return Verdict(False, reason=REASON_PAST_END)

    advance = position - previous_position
    if advance > wall * rate_tolerance + rate_slack_seconds:
        return Verdict(False, reason=REASON_TOO_FAST)

    return Verdict(True, credit_seconds=_credit(position, previous_position, wall))


def bounded_credit(
    position: int,
    previous_position: int,
    wall_clock_seconds: float,
    video_duration_seconds: Optional[int],
    *,
    grace_seconds: int = 5,
) -> int:
    """Best-effort credit for a final position: clamp instead of rejecting."""
    clamped = max(0, position)
    if video_duration_seconds is not None:
        clamped = min(clamped, video_duration_seconds + grace_seconds)
    return _credit(clamped, previous_position, max(0.0, float(wall_clock_seconds)))
