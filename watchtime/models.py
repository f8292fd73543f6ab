import uuid

from django.db import models
from django.db.models import Q


class Profile(models.Model):
    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    owner_id = models.CharField(max_length=64, db_index=True)              # Guardian account identifier
    name = models.CharField(max_length=255)
    daily_limit_minutes = models.PositiveIntegerField(null=True, blank=True)  # null -> no limit configured
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    def __str__(self):
        return self.name


class NfcChip(models.Model):
    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    owner_id = models.CharField(max_length=64, db_index=True)
    label = models.CharField(max_length=255, blank=True)
    is_active = models.BooleanField(default=True)
    created_at = models.DateTimeField(auto_now_add=True)

    def __str__(self):
        return self.label or str(self.id)


class Video(models.Model):
    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    title = models.CharField(max_length=255)
    duration_seconds = models.PositiveIntegerField(null=True, blank=True)  # null when the platform lookup failed
    created_at = models.DateTimeField(auto_now_add=True)

    def __str__(self):
        return self.title


class WatchSession(models.Model):
    STATUS_ACTIVE = "active"
    STATUS_COMPLETED = "completed"
    STATUS_ABANDONED = "abandoned"
    STATUS_CHOICES = [
        (STATUS_ACTIVE, "Active"),
        (STATUS_COMPLETED, "Completed"),
        (STATUS_ABANDONED, "Abandoned"),
    ]

    # Explicit end reasons accepted from the client
    END_REASONS = ("completed", "manual", "daily_limit", "swipe_exit", "error")
    # Reasons recorded by the server for automatic terminations
    REASON_DAILY_LIMIT = "daily_limit"
    REASON_DISPLACED = "displaced"
    REASON_STALE = "stale"

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    profile = models.ForeignKey(Profile, on_delete=models.CASCADE, related_name="watch_sessions")
    video = models.ForeignKey(Video, on_delete=models.CASCADE, related_name="watch_sessions")
    nfc_chip = models.ForeignKey(
        NfcChip, on_delete=models.SET_NULL, null=True, blank=True, related_name="watch_sessions"
    )
    started_at = models.DateTimeField()
    last_heartbeat_at = models.DateTimeField()
    ended_at = models.DateTimeField(null=True, blank=True)
    elapsed_seconds = models.PositiveIntegerField(default=0)       # Server-credited watch time
    last_position_seconds = models.PositiveIntegerField(default=0)  # Last accepted playback position
    status = models.CharField(max_length=16, choices=STATUS_CHOICES, default=STATUS_ACTIVE)
    stopped_reason = models.CharField(max_length=32, blank=True, default="")

    class Meta:
        constraints = [
            models.UniqueConstraint(
                fields=["profile"],
                condition=Q(status="active"),
                name="uq_one_active_session_per_profile",
            ),
        ]
        indexes = [
            models.Index(fields=["profile", "status"], name="idx_session_profile_status"),
            models.Index(fields=["started_at"], name="idx_session_started"),
        ]

    def __str__(self):
        return f"WatchSession({self.profile_id}, {self.status}, {self.pk})"


class DailyWatchTime(models.Model):
    profile = models.ForeignKey(Profile, on_delete=models.CASCADE, related_name="daily_watch_times")
    date = models.DateField()                                       # Local calendar day (settings.TIME_ZONE)
    total_minutes = models.PositiveIntegerField(default=0)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        constraints = [
            models.UniqueConstraint(fields=["profile", "date"], name="uq_profile_date"),
        ]

    def __str__(self):
        return f"{self.profile_id} {self.date}: {self.total_minutes}m"
