# watchtime/tests/helpers.py
import datetime as dt

from django.db.models import F
from django.utils import timezone

from watchtime.models import DailyWatchTime, WatchSession
from watchtime.services import local_day


def set_watched_today(profile, minutes):
    DailyWatchTime.objects.update_or_create(
        profile=profile, date=local_day(timezone.now()), defaults={"total_minutes": minutes}
    )


def watched_today(profile):
    row = DailyWatchTime.objects.filter(profile=profile, date=local_day(timezone.now())).first()
    return row.total_minutes if row else 0


def rewind(session_id, seconds):
    """Pretend `seconds` of wall-clock time passed since the last heartbeat."""
    delta = dt.timedelta(seconds=seconds)
    WatchSession.objects.filter(pk=session_id).update(
        started_at=F("started_at") - delta,
        last_heartbeat_at=F("last_heartbeat_at") - delta,
    )


def start(client, profile, chip, video):
    return client.post(
        "/api/sessions/start",
        {"profile_id": str(profile.id), "nfc_chip_id": str(chip.id), "video_id": str(video.id)},
        format="json",
    )


def heartbeat(client, session_id, position):
    return client.post(
        f"/api/sessions/{session_id}/heartbeat", {"current_position_seconds": position}, format="json"
    )


def end(client, session_id, **body):
    return client.post(f"/api/sessions/{session_id}/end", body, format="json")
