from django.contrib import admin

from .models import DailyWatchTime, NfcChip, Profile, Video, WatchSession


@admin.register(Profile)
class ProfileAdmin(admin.ModelAdmin):
    list_display = ['name', 'owner_id', 'daily_limit_minutes', 'created_at']
    search_fields = ['name', 'owner_id']
    readonly_fields = ['created_at', 'updated_at']


@admin.register(NfcChip)
class NfcChipAdmin(admin.ModelAdmin):
    list_display = ['label', 'owner_id', 'is_active', 'created_at']
    list_filter = ['is_active']
    search_fields = ['label', 'owner_id']


@admin.register(Video)
class VideoAdmin(admin.ModelAdmin):
    list_display = ['title', 'duration_seconds', 'created_at']
    search_fields = ['title']


class ReadOnlyAdmin(admin.ModelAdmin):
    """Sessions and aggregates are written only by the session lifecycle."""

    def has_add_permission(self, request):
        return False

    def has_change_permission(self, request, obj=None):
        return False

    def has_delete_permission(self, request, obj=None):
        return False


@admin.register(WatchSession)
class WatchSessionAdmin(ReadOnlyAdmin):
    list_display = ['id', 'profile', 'video', 'status', 'stopped_reason', 'elapsed_seconds', 'started_at', 'ended_at']
    list_filter = ['status', 'stopped_reason']
    search_fields = ['id', 'profile__name']
    list_per_page = 50


@admin.register(DailyWatchTime)
class DailyWatchTimeAdmin(ReadOnlyAdmin):
    list_display = ['profile', 'date', 'total_minutes', 'updated_at']
    list_filter = ['date']
    search_fields = ['profile__name']
