# watchtime/serializers.py
from rest_framework import serializers

from .models import WatchSession


class SessionStartSerializer(serializers.Serializer):
    profile_id = serializers.UUIDField()
    nfc_chip_id = serializers.UUIDField()
    video_id = serializers.UUIDField()


class HeartbeatSerializer(serializers.Serializer):
    """
    Position is validated for type only; range checks belong to the tamper
    guard so that out-of-range values get the dedicated 400 body.
    """
    current_position_seconds = serializers.IntegerField()


class SessionEndSerializer(serializers.Serializer):
    stopped_reason = serializers.ChoiceField(
        choices=WatchSession.END_REASONS, required=False, default="manual"
    )
    # Not range-checked: a bad final position is clamped, never a reason to refuse the end.
    final_position_seconds = serializers.IntegerField(required=False, allow_null=True)


class WatchHistoryQuerySerializer(serializers.Serializer):
    """
    Query for GET /api/profiles/{id}/watch-time/history
      ?from=YYYY-MM-DD&to=YYYY-MM-DD&include_empty=true|false
    Both dates are optional; the default window is the last 7 days ending today.
    """
    # `from` is a keyword, so the field is renamed in to_internal_value.
    to = serializers.DateField(required=False)
    include_empty = serializers.BooleanField(required=False, default=True)

    def to_internal_value(self, data):
        attrs = super().to_internal_value(data)
        raw_from = data.get("from")
        if raw_from:
            attrs["start"] = serializers.DateField().run_validation(raw_from)
        return attrs

    def validate(self, attrs):
        start = attrs.get("start")
        end = attrs.get("to")
        if start is not None and end is not None and start > end:
            raise serializers.ValidationError("from must be <= to.")
        return attrs
