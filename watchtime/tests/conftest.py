# watchtime/tests/conftest.py
import pytest
from rest_framework.test import APIClient

from watchtime.models import NfcChip, Profile, Video


@pytest.fixture
def client():
    return APIClient()


@pytest.fixture
def make_profile(db):
    def _make(daily_limit_minutes=60, owner_id="guardian-1", name="Mia"):
        return Profile.objects.create(owner_id=owner_id, name=name, daily_limit_minutes=daily_limit_minutes)
    return _make


@pytest.fixture
def make_chip(db):
    def _make(owner_id="guardian-1", is_active=True, label="Dino chip"):
        return NfcChip.objects.create(owner_id=owner_id, is_active=is_active, label=label)
    return _make


@pytest.fixture
def make_video(db):
    def _make(duration_seconds=600, title="Counting with dinosaurs"):
        return Video.objects.create(title=title, duration_seconds=duration_seconds)
    return _make


@pytest.fixture
def kid(make_profile, make_chip, make_video):
    """A profile with a 60 minute limit, one usable chip and a 600 s video."""
    return make_profile(), make_chip(), make_video()
