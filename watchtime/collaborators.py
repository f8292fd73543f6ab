# watchtime/collaborators.py
"""Read-only lookups into data owned by other parts of the platform."""
from __future__ import annotations

from typing import Optional

from django.core.exceptions import ValidationError

from .models import NfcChip, Profile, Video


def get_profile(profile_id) -> Optional[Profile]:
    try:
        return Profile.objects.only("id", "owner_id", "daily_limit_minutes").get(pk=profile_id)
    except (Profile.DoesNotExist, ValidationError, ValueError):
        return None


def chip_is_usable_by(nfc_chip_id, profile: Profile) -> bool:
    """The chip must be active and registered by the guardian who owns the profile."""
    try:
        return NfcChip.objects.filter(
            pk=nfc_chip_id, owner_id=profile.owner_id, is_active=True
        ).exists()
    except (ValidationError, ValueError):
        return False


def get_video(video_id) -> Optional[Video]:
    try:
        return Video.objects.only("id", "duration_seconds").get(pk=video_id)
    except (Video.DoesNotExist, ValidationError, ValueError):
        return None


def get_video_duration(video_id) -> Optional[int]:
    return Video.objects.filter(pk=video_id).values_list("duration_seconds", flat=True).first()


def get_daily_limit(profile_id) -> Optional[int]:
    return Profile.objects.filter(pk=profile_id).values_list("daily_limit_minutes", flat=True).first()
