# watchtime/tests/test_services.py
import datetime as dt
import uuid
from io import StringIO

import pytest
from django.core.management import call_command
from django.utils import timezone

from watchtime import services, stores
from watchtime.exceptions import LimitReached, ProfileNotFound, SessionNotFound, VideoNotFound
from watchtime.models import DailyWatchTime, WatchSession

from .helpers import rewind, set_watched_today, watched_today


@pytest.mark.django_db
def test_add_minutes_inserts_then_increments(make_profile):
    profile = make_profile()
    day = dt.date(2025, 10, 27)
    assert stores.minutes_watched_on(profile.pk, day) == 0

    assert stores.add_minutes(profile.pk, day, 7) == 7
    assert stores.add_minutes(profile.pk, day, 5) == 12
    assert DailyWatchTime.objects.filter(profile=profile, date=day).count() == 1


@pytest.mark.django_db
def test_add_minutes_refuses_to_decrement(make_profile):
    profile = make_profile()
    with pytest.raises(ValueError):
        stores.add_minutes(profile.pk, dt.date(2025, 10, 27), -1)


def test_committed_minutes_rounds_started_minutes_up():
    assert services.committed_minutes(0) == 0
    assert services.committed_minutes(1) == 1
    assert services.committed_minutes(60) == 1
    assert services.committed_minutes(61) == 2
    assert services.committed_minutes(600) == 10


def test_local_day_follows_configured_time_zone(settings):
    settings.TIME_ZONE = "Asia/Tokyo"
    moment = dt.datetime(2025, 10, 27, 16, 0, tzinfo=dt.timezone.utc)
    assert services.local_day(moment) == dt.date(2025, 10, 28)

    settings.TIME_ZONE = "UTC"
    assert services.local_day(moment) == dt.date(2025, 10, 27)


@pytest.mark.django_db
def test_start_unknown_video(kid):
    profile, chip, _ = kid
    with pytest.raises(VideoNotFound):
        services.start_session(profile.pk, chip.pk, uuid.uuid4())


@pytest.mark.django_db
def test_displacement_commits_the_prior_sessions_time(kid):
    profile, chip, video = kid
    first = services.start_session(profile.pk, chip.pk, video.pk)
    WatchSession.objects.filter(pk=first.session_id).update(elapsed_seconds=150)

    second = services.start_session(profile.pk, chip.pk, video.pk)

    assert watched_today(profile) == 3
    assert second.remaining_minutes == 57
    assert WatchSession.objects.get(pk=first.session_id).status == "abandoned"


@pytest.mark.django_db
def test_displaced_session_using_up_the_day_blocks_the_new_one(kid):
    profile, chip, video = kid
    set_watched_today(profile, 58)
    first = services.start_session(profile.pk, chip.pk, video.pk)
    # 90 s counts as one minute while running, two once committed
    WatchSession.objects.filter(pk=first.session_id).update(elapsed_seconds=90)

    with pytest.raises(LimitReached):
        services.start_session(profile.pk, chip.pk, video.pk)

    assert WatchSession.objects.get(pk=first.session_id).status == "abandoned"
    assert not WatchSession.objects.filter(profile=profile, status="active").exists()
    assert watched_today(profile) == 60


@pytest.mark.django_db
def test_running_session_time_counts_when_rescanning(kid):
    profile, chip, video = kid
    set_watched_today(profile, 55)
    first = services.start_session(profile.pk, chip.pk, video.pk)
    WatchSession.objects.filter(pk=first.session_id).update(elapsed_seconds=5 * 60)

    with pytest.raises(LimitReached):
        services.start_session(profile.pk, chip.pk, video.pk)

    # Nothing was written for the refused scan
    assert WatchSession.objects.get(pk=first.session_id).status == "active"
    assert watched_today(profile) == 55


@pytest.mark.django_db
def test_end_unknown_session_raises():
    with pytest.raises(SessionNotFound):
        services.end_session(uuid.uuid4())


@pytest.mark.django_db
def test_elapsed_is_capped_at_video_length(make_profile, make_chip, make_video):
    profile, chip = make_profile(daily_limit_minutes=None), make_chip()
    video = make_video(duration_seconds=60)
    started = services.start_session(profile.pk, chip.pk, video.pk)
    rewind(started.session_id, 50)
    services.record_heartbeat(started.session_id, 50)
    rewind(started.session_id, 50)
    result = services.record_heartbeat(started.session_id, 64)

    assert result.elapsed_seconds == 64
    ended = services.end_session(started.session_id, "completed", final_position_seconds=65)
    assert ended.duration_seconds <= 60 + 5


@pytest.mark.django_db
def test_abandon_stale_sessions_commits_and_closes(kid, make_profile, make_chip):
    profile, chip, video = kid
    stale = services.start_session(profile.pk, chip.pk, video.pk)
    rewind(stale.session_id, 45 * 60)
    WatchSession.objects.filter(pk=stale.session_id).update(elapsed_seconds=120)

    other = make_profile(owner_id="guardian-2", name="Leo")
    fresh = services.start_session(other.pk, make_chip(owner_id="guardian-2").pk, video.pk)

    assert services.abandon_stale_sessions(dt.timedelta(minutes=30)) == 1

    s = WatchSession.objects.get(pk=stale.session_id)
    assert s.status == "abandoned"
    assert s.stopped_reason == "stale"
    assert s.ended_at is not None
    assert WatchSession.objects.get(pk=fresh.session_id).status == "active"
    day = services.local_day(s.last_heartbeat_at)
    assert DailyWatchTime.objects.get(profile=profile, date=day).total_minutes == 2


@pytest.mark.django_db
def test_abandon_stale_sessions_command(kid):
    profile, chip, video = kid
    started = services.start_session(profile.pk, chip.pk, video.pk)
    rewind(started.session_id, 11 * 60)

    out = StringIO()
    call_command("abandon_stale_sessions", "--idle-minutes", "10", stdout=out)
    assert "Abandoned 1 stale session(s)." in out.getvalue()
    assert WatchSession.objects.get(pk=started.session_id).status == "abandoned"


@pytest.mark.django_db
def test_daily_summary_is_read_only(kid):
    profile, _, _ = kid
    summary = services.daily_watch_time(profile.pk)
    assert summary.watched_minutes == 0
    assert summary.remaining == 60
    assert summary.date == services.local_day(timezone.now())
    assert not DailyWatchTime.objects.exists()


@pytest.mark.django_db
def test_top_videos_ranks_by_sessions_then_minutes(kid, make_video):
    profile, chip, dinos = kid
    song = make_video(title="Bedtime song", duration_seconds=120)
    trains = make_video(title="Trains")

    for video, elapsed in ((dinos, 300), (song, 60), (song, 90), (trains, 600)):
        started = services.start_session(profile.pk, chip.pk, video.pk)
        WatchSession.objects.filter(pk=started.session_id).update(elapsed_seconds=elapsed)
        services.end_session(started.session_id, "completed")

    top = services.top_videos(profile.pk)
    assert [t["title"] for t in top] == ["Bedtime song", "Trains", "Counting with dinosaurs"]
    assert top[0] == {
        "video_id": str(song.pk),
        "title": "Bedtime song",
        "watch_count": 2,
        "total_minutes": 2,
    }
    assert top[1]["total_minutes"] == 10
    assert [t["title"] for t in services.top_videos(profile.pk, limit=1)] == ["Bedtime song"]


@pytest.mark.django_db
def test_top_videos_is_scoped_to_the_profile(kid, make_profile, make_chip):
    profile, chip, video = kid
    other = make_profile(owner_id="guardian-2", name="Leo")
    services.start_session(other.pk, make_chip(owner_id="guardian-2").pk, video.pk)

    assert services.top_videos(profile.pk) == []
    with pytest.raises(ProfileNotFound):
        services.top_videos(uuid.uuid4())
