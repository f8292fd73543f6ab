# watchtime/stores.py
"""
Persistence for watch sessions and per-day aggregates.

Only the session lifecycle functions in services.py call the writers here.
Callers are expected to hold a transaction; locking reads use select_for_update.
"""
from __future__ import annotations

import datetime as dt
import logging
from typing import Dict, List, Optional

from django.core.exceptions import ValidationError
from django.db import IntegrityError, transaction
from django.db.models import Count, F, Sum

from .models import DailyWatchTime, Profile, WatchSession

logger = logging.getLogger(__name__)


# ---- Daily aggregate -------------------------------------------------------

def minutes_watched_on(profile_id, day: dt.date) -> int:
    value = (
        DailyWatchTime.objects.filter(profile_id=profile_id, date=day)
        .values_list("total_minutes", flat=True)
        .first()
    )
    return int(value or 0)


def add_minutes(profile_id, day: dt.date, minutes: int) -> int:
    """Increment-or-insert the (profile, day) row; return the new total."""
    if minutes < 0:
        raise ValueError("minutes must be >= 0")

    updated = DailyWatchTime.objects.filter(profile_id=profile_id, date=day).update(
        total_minutes=F("total_minutes") + minutes
    )
    if not updated:
        try:
            with transaction.atomic():
                DailyWatchTime.objects.create(profile_id=profile_id, date=day, total_minutes=minutes)
        except IntegrityError:
            # Race: another finalizer inserted the row first.
            DailyWatchTime.objects.filter(profile_id=profile_id, date=day).update(
                total_minutes=F("total_minutes") + minutes
            )
    return minutes_watched_on(profile_id, day)


def history(profile_id, start_day: dt.date, end_day: dt.date) -> Dict[dt.date, int]:
    """Minutes per day over [start_day, end_day]; absent days are omitted."""
    rows = DailyWatchTime.objects.filter(
        profile_id=profile_id, date__gte=start_day, date__lte=end_day
    ).values_list("date", "total_minutes")
    return {d: int(m) for d, m in rows}


# ---- Sessions --------------------------------------------------------------

def lock_profile(profile_id) -> None:
    """Serialize session starts for one profile."""
    Profile.objects.select_for_update().filter(pk=profile_id).values_list("pk", flat=True).first()


def lock_active_session(session_id) -> Optional[WatchSession]:
    """Active session by id, row-locked. Terminal and unknown ids both yield None."""
    try:
        return (
            WatchSession.objects.select_for_update()
            .filter(pk=session_id, status=WatchSession.STATUS_ACTIVE)
            .first()
        )
    except ValidationError:
        return None


def lock_active_session_for(profile_id) -> Optional[WatchSession]:
    return (
        WatchSession.objects.select_for_update()
        .filter(profile_id=profile_id, status=WatchSession.STATUS_ACTIVE)
        .first()
    )


def create_session(profile_id, video_id, nfc_chip_id, now: dt.datetime) -> WatchSession:
    return WatchSession.objects.create(
        profile_id=profile_id,
        video_id=video_id,
        nfc_chip_id=nfc_chip_id,
        started_at=now,
        last_heartbeat_at=now,
        elapsed_seconds=0,
        last_position_seconds=0,
        status=WatchSession.STATUS_ACTIVE,
    )


def record_progress(
    session: WatchSession,
    credit_seconds: int,
    position: int,
    now: dt.datetime,
    cap_seconds: Optional[int] = None,
) -> WatchSession:
    """Add credited seconds (never decreasing, optionally capped) and move the heartbeat clock."""
    elapsed = session.elapsed_seconds + max(0, int(credit_seconds))
    if cap_seconds is not None:
        elapsed = max(session.elapsed_seconds, min(elapsed, cap_seconds))
    session.elapsed_seconds = elapsed
    session.last_position_seconds = max(0, int(position))
    session.last_heartbeat_at = max(now, session.started_at)
    session.save(update_fields=["elapsed_seconds", "last_position_seconds", "last_heartbeat_at"])
    return session


def terminate(session: WatchSession, status: str, reason: str, now: dt.datetime) -> WatchSession:
    if status not in (WatchSession.STATUS_COMPLETED, WatchSession.STATUS_ABANDONED):
        raise ValueError("terminal status must be completed|abandoned")
    session.status = status
    session.stopped_reason = reason
    session.ended_at = now
    session.save(update_fields=["status", "stopped_reason", "ended_at"])
    logger.debug("session %s -> %s (%s)", session.pk, status, reason)
    return session


def most_watched_videos(profile_id, limit: int) -> List[dict]:
    """Per-video session count and credited seconds for a profile, most watched first."""
    return list(
        WatchSession.objects.filter(profile_id=profile_id)
        .values("video_id", "video__title")
        .annotate(watch_count=Count("id"), total_seconds=Sum("elapsed_seconds"))
        .order_by("-watch_count", "-total_seconds", "video__title")[:limit]
    )


def stale_sessions(cutoff: dt.datetime) -> List[WatchSession]:
    return list(
        WatchSession.objects.select_for_update()
        .filter(status=WatchSession.STATUS_ACTIVE, last_heartbeat_at__lt=cutoff)
        .order_by("last_heartbeat_at")
    )
