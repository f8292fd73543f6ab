from django.urls import path
from .views import (
    DailyWatchTimeView,
    SessionEndView,
    SessionHeartbeatView,
    SessionStartView,
    WatchHistoryView,
)

urlpatterns = [
    path("sessions/start", SessionStartView.as_view(), name="session-start"),
    path("sessions/<uuid:session_id>/heartbeat", SessionHeartbeatView.as_view(), name="session-heartbeat"),
    path("sessions/<uuid:session_id>/end", SessionEndView.as_view(), name="session-end"),
    path("profiles/<uuid:profile_id>/watch-time", DailyWatchTimeView.as_view(), name="daily-watch-time"),
    path("profiles/<uuid:profile_id>/watch-time/history", WatchHistoryView.as_view(), name="watch-history"),
]
