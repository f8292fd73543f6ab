# watchtime/services.py
"""
Watch-session lifecycle: start, heartbeat, end, plus daily watch-time reads.

Sessions move active -> completed (explicit end) or active -> abandoned
(limit exhausted mid-session, displaced by a new scan, or swept as stale).
Every write path updates the session row first and the daily aggregate last.
"""
from __future__ import annotations

import datetime as dt
import logging
import math
from dataclasses import dataclass
from typing import List, Optional

import pytz
from django.conf import settings
from django.db import transaction
from django.utils import timezone

from . import collaborators, limits, stores, tamper
from .conf import engine_setting
from .exceptions import (
    InvalidChip,
    InvalidPosition,
    LimitReached,
    ProfileNotFound,
    SessionNotFound,
    VideoNotFound,
)
from .models import WatchSession

logger = logging.getLogger(__name__)

MAX_HISTORY_DAYS = 366
TOP_VIDEOS_LIMIT = 5


@dataclass(frozen=True)
class StartResult:
    session_id: object
    remaining_minutes: float
    daily_limit_minutes: Optional[int]


@dataclass(frozen=True)
class HeartbeatResult:
    session_id: object
    elapsed_seconds: int
    remaining_minutes: float
    limit_reached: bool
    total_watched_today: Optional[int] = None


@dataclass(frozen=True)
class EndResult:
    session_id: object
    duration_seconds: int
    stopped_reason: str
    total_watched_today: int


@dataclass(frozen=True)
class DailySummary:
    profile_id: object
    date: dt.date
    watched_minutes: int
    daily_limit: Optional[int]
    remaining: float


def local_day(moment: dt.datetime) -> dt.date:
    """Calendar day of `moment` in the configured TIME_ZONE (the daily-limit boundary)."""
    tz = pytz.timezone(settings.TIME_ZONE)
    if timezone.is_naive(moment):
        moment = timezone.make_aware(moment, dt.timezone.utc)
    return moment.astimezone(tz).date()


def committed_minutes(elapsed_seconds: int) -> int:
    """Whole minutes written to the aggregate; any started minute counts."""
    return int(math.ceil(max(0, elapsed_seconds) / 60.0))


def _elapsed_cap(video_duration_seconds: Optional[int]) -> Optional[int]:
    if video_duration_seconds is None:
        return None
    return video_duration_seconds + engine_setting("POSITION_GRACE_SECONDS")


def _finalize(session: WatchSession, status: str, reason: str, now: dt.datetime, day: dt.date) -> int:
    stores.terminate(session, status, reason, now)
    return stores.add_minutes(session.profile_id, day, committed_minutes(session.elapsed_seconds))


def start_session(profile_id, nfc_chip_id, video_id) -> StartResult:
    profile = collaborators.get_profile(profile_id)
    # Unknown profile, unknown chip and someone else's chip look the same to the caller.
    if profile is None or not collaborators.chip_is_usable_by(nfc_chip_id, profile):
        logger.warning("rejected chip %s for profile %s", nfc_chip_id, profile_id)
        raise InvalidChip()
    video = collaborators.get_video(video_id)
    if video is None:
        raise VideoNotFound()

    now = timezone.now()
    today = local_day(now)
    limit = profile.daily_limit_minutes
    blocked_total = None

    with transaction.atomic():
        stores.lock_profile(profile.pk)
        prior = stores.lock_active_session_for(profile.pk)
        watched = stores.minutes_watched_on(profile.pk, today)
        remaining = limits.remaining_minutes(limit, watched, prior.elapsed_seconds if prior else 0)
        if limits.is_exhausted(remaining):
            logger.info("profile %s is out of time (%s/%s min)", profile.pk, watched, limit)
            raise LimitReached(total_minutes=watched, daily_limit_minutes=limit)

        if prior is not None:
            watched = _finalize(prior, WatchSession.STATUS_ABANDONED, WatchSession.REASON_DISPLACED, now, today)
            logger.info("session %s displaced by a new scan on profile %s", prior.pk, profile.pk)
            remaining = limits.remaining_minutes(limit, watched)

        if limits.is_exhausted(remaining):
            # The displaced session used up the rest of the day; keep its commit.
            blocked_total = watched
        else:
            session = stores.create_session(profile.pk, video.pk, nfc_chip_id, now)

    if blocked_total is not None:
        raise LimitReached(total_minutes=blocked_total, daily_limit_minutes=limit)

    logger.info("session %s started for profile %s (remaining=%s)", session.pk, profile.pk, remaining)
    return StartResult(session.pk, remaining, limit)


def record_heartbeat(session_id, current_position_seconds: int) -> HeartbeatResult:
    now = timezone.now()
    with transaction.atomic():
        session = stores.lock_active_session(session_id)
        if session is None:
            raise SessionNotFound()

        duration = collaborators.get_video_duration(session.video_id)
        wall = (now - session.last_heartbeat_at).total_seconds()
        verdict = tamper.check_position(
            current_position_seconds,
            session.last_position_seconds,
            wall,
            duration,
            grace_seconds=engine_setting("POSITION_GRACE_SECONDS"),
            rate_tolerance=engine_setting("RATE_TOLERANCE"),
            rate_slack_seconds=engine_setting("RATE_SLACK_SECONDS"),
        )
        if not verdict.accepted:
            logger.warning(
                "heartbeat rejected for session %s: %s (position=%s previous=%s wall=%.1fs)",
                session.pk, verdict.reason, current_position_seconds, session.last_position_seconds, wall,
            )
            raise InvalidPosition()

        stores.record_progress(session, verdict.credit_seconds, current_position_seconds, now, _elapsed_cap(duration))

        # Re-read the limit every time; guardians may change it mid-session.
        limit = collaborators.get_daily_limit(session.profile_id)
        today = local_day(now)
        watched = stores.minutes_watched_on(session.profile_id, today)
        remaining = limits.remaining_minutes(limit, watched, session.elapsed_seconds)

        if limits.is_exhausted(remaining):
            total = _finalize(session, WatchSession.STATUS_ABANDONED, WatchSession.REASON_DAILY_LIMIT, now, today)
            logger.info("session %s stopped: daily limit reached (%s min today)", session.pk, total)
            return HeartbeatResult(session.pk, session.elapsed_seconds, 0, True, total)

    return HeartbeatResult(session.pk, session.elapsed_seconds, remaining, False)


def end_session(session_id, stopped_reason: str = "manual", final_position_seconds: Optional[int] = None) -> EndResult:
    if stopped_reason not in WatchSession.END_REASONS:
        raise ValueError("stopped_reason must be one of " + "|".join(WatchSession.END_REASONS))

    now = timezone.now()
    with transaction.atomic():
        session = stores.lock_active_session(session_id)
        if session is None:
            raise SessionNotFound()

        if final_position_seconds is not None:
            duration = collaborators.get_video_duration(session.video_id)
            credit = tamper.bounded_credit(
                final_position_seconds,
                session.last_position_seconds,
                (now - session.last_heartbeat_at).total_seconds(),
                duration,
                grace_seconds=engine_setting("POSITION_GRACE_SECONDS"),
            )
            stores.record_progress(session, credit, final_position_seconds, now, _elapsed_cap(duration))

        total = _finalize(session, WatchSession.STATUS_COMPLETED, stopped_reason, now, local_day(now))

    logger.info("session %s ended (%s) after %ss", session.pk, stopped_reason, session.elapsed_seconds)
    return EndResult(session.pk, session.elapsed_seconds, stopped_reason, total)


def daily_watch_time(profile_id) -> DailySummary:
    profile = collaborators.get_profile(profile_id)
    if profile is None:
        raise ProfileNotFound()
    today = local_day(timezone.now())
    watched = stores.minutes_watched_on(profile.pk, today)
    remaining = limits.remaining_minutes(profile.daily_limit_minutes, watched)
    return DailySummary(profile.pk, today, watched, profile.daily_limit_minutes, remaining)


def _iter_days(start: dt.date, end: dt.date) -> List[dt.date]:
    """Every calendar day in [start, end]."""
    out: List[dt.date] = []
    cur = start
    while cur <= end:
        out.append(cur)
        cur = cur + dt.timedelta(days=1)
    return out


def watch_history(profile_id, start: dt.date, end: dt.date, *, include_empty: bool = True) -> List[dict]:
    """
    Per-day committed minutes for a profile over [start, end].

    With include_empty, days without any finished session are reported as 0;
    otherwise only days with a stored aggregate row are returned.
    """
    if start > end:
        raise ValueError("from must be <= to")
    if (end - start).days >= MAX_HISTORY_DAYS:
        raise ValueError(f"range must be at most {MAX_HISTORY_DAYS} days")
    if collaborators.get_profile(profile_id) is None:
        raise ProfileNotFound()

    stored = stores.history(profile_id, start, end)
    days = _iter_days(start, end) if include_empty else sorted(stored)
    return [{"date": d.isoformat(), "total_minutes": stored.get(d, 0)} for d in days]


def top_videos(profile_id, limit: int = TOP_VIDEOS_LIMIT) -> List[dict]:
    """Most watched videos for a profile, by number of sessions then watched time."""
    if limit <= 0:
        raise ValueError("limit must be > 0")
    if collaborators.get_profile(profile_id) is None:
        raise ProfileNotFound()
    return [
        {
            "video_id": str(row["video_id"]),
            "title": row["video__title"],
            "watch_count": row["watch_count"],
            "total_minutes": int(row["total_seconds"] or 0) // 60,
        }
        for row in stores.most_watched_videos(profile_id, limit)
    ]


def abandon_stale_sessions(idle_for: dt.timedelta) -> int:
    """
    Abandon active sessions with no heartbeat for `idle_for`.

    Minutes are committed to the day of the last heartbeat. Never scheduled by
    the engine itself; see the abandon_stale_sessions management command.
    """
    now = timezone.now()
    cutoff = now - idle_for
    count = 0
    with transaction.atomic():
        for session in stores.stale_sessions(cutoff):
            _finalize(
                session,
                WatchSession.STATUS_ABANDONED,
                WatchSession.REASON_STALE,
                now,
                local_day(session.last_heartbeat_at),
            )
            count += 1
    if count:
        logger.info("abandoned %d stale session(s) idle since before %s", count, cutoff.isoformat())
    return count
