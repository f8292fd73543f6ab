# watchtime/views.py
from __future__ import annotations

import datetime as dt

from django.utils import timezone
from rest_framework import status
from rest_framework.response import Response
from rest_framework.views import APIView

from . import limits, services
from .exceptions import WatchTimeError
from .serializers import (
    HeartbeatSerializer,
    SessionEndSerializer,
    SessionStartSerializer,
    WatchHistoryQuerySerializer,
)


HISTORY_DEFAULT_DAYS = 7


def _invalid(serializer) -> Response:
    return Response(
        {'error': 'Invalid request', 'details': serializer.errors},
        status=status.HTTP_400_BAD_REQUEST,
    )


def _failure(exc: WatchTimeError) -> Response:
    return Response(exc.as_payload(), status=exc.status_code)


class SessionStartView(APIView):
    """POST /api/sessions/start (chip scan)."""
    def post(self, request):
        s = SessionStartSerializer(data=request.data or {})
        if not s.is_valid():
            return _invalid(s)

        try:
            result = services.start_session(**s.validated_data)
        except WatchTimeError as e:
            return _failure(e)

        return Response({
            'session_id': str(result.session_id),
            'remaining_minutes': limits.as_json(result.remaining_minutes),
            'daily_limit_minutes': result.daily_limit_minutes,
        }, status=status.HTTP_201_CREATED)


class SessionHeartbeatView(APIView):
    """
    POST /api/sessions/{session_id}/heartbeat
    200 while allowance remains; 403 with limit_reached=true once the session
    has been stopped for the day.
    """
    def post(self, request, session_id):
        s = HeartbeatSerializer(data=request.data or {})
        if not s.is_valid():
            return _invalid(s)

        try:
            result = services.record_heartbeat(session_id, s.validated_data['current_position_seconds'])
        except WatchTimeError as e:
            return _failure(e)

        body = {
            'session_id': str(result.session_id),
            'elapsed_seconds': result.elapsed_seconds,
            'remaining_minutes': limits.as_json(result.remaining_minutes),
            'limit_reached': result.limit_reached,
        }
        if result.limit_reached:
            body.update({
                'remaining_minutes': 0,
                'error': 'Daily watch time limit reached',
                'message': "Time's up! You've watched enough for today.",
                'total_watched_today': result.total_watched_today,
            })
            return Response(body, status=status.HTTP_403_FORBIDDEN)
        return Response(body, status=status.HTTP_200_OK)


class SessionEndView(APIView):
    """POST /api/sessions/{session_id}/end (second call on the same session is a 404)."""
    def post(self, request, session_id):
        s = SessionEndSerializer(data=request.data or {})
        if not s.is_valid():
            return _invalid(s)

        try:
            result = services.end_session(
                session_id,
                stopped_reason=s.validated_data['stopped_reason'],
                final_position_seconds=s.validated_data.get('final_position_seconds'),
            )
        except WatchTimeError as e:
            return _failure(e)

        return Response({
            'session_id': str(result.session_id),
            'duration_seconds': result.duration_seconds,
            'stopped_reason': result.stopped_reason,
            'total_watched_today': result.total_watched_today,
        }, status=status.HTTP_200_OK)


class DailyWatchTimeView(APIView):
    """GET /api/profiles/{profile_id}/watch-time"""
    def get(self, request, profile_id):
        try:
            summary = services.daily_watch_time(profile_id)
        except WatchTimeError as e:
            return _failure(e)

        return Response({
            'profile_id': str(summary.profile_id),
            'date': summary.date.isoformat(),
            'watched_minutes': summary.watched_minutes,
            'daily_limit': summary.daily_limit,
            'remaining': limits.as_json(summary.remaining),
        }, status=status.HTTP_200_OK)


class WatchHistoryView(APIView):
    """
    GET /api/profiles/{profile_id}/watch-time/history
      ?from=YYYY-MM-DD
      &to=YYYY-MM-DD
      &include_empty=true|false
    Days are local calendar days in the server TIME_ZONE. top_videos covers all
    of the profile's sessions, not only the requested window.
    """
    def get(self, request, profile_id):
        s = WatchHistoryQuerySerializer(data=request.query_params.dict())
        if not s.is_valid():
            return _invalid(s)

        end = s.validated_data.get('to') or services.local_day(timezone.now())
        start = s.validated_data.get('start') or end - dt.timedelta(days=HISTORY_DEFAULT_DAYS - 1)
        include_empty = s.validated_data['include_empty']

        try:
            days = services.watch_history(profile_id, start, end, include_empty=include_empty)
            top = services.top_videos(profile_id)
        except WatchTimeError as e:
            return _failure(e)
        except ValueError as e:
            return Response({'error': 'Invalid request', 'details': str(e)}, status=status.HTTP_400_BAD_REQUEST)

        return Response({
            'profile_id': str(profile_id),
            'from': start.isoformat(),
            'to': end.isoformat(),
            'include_empty': include_empty,
            'days': days,
            'total_minutes': sum(d['total_minutes'] for d in days),
            'top_videos': top,
        }, status=status.HTTP_200_OK)
