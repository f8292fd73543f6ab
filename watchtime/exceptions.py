# watchtime/exceptions.py
from __future__ import annotations

import logging

from django.db import DatabaseError
from rest_framework import status
from rest_framework.response import Response
from rest_framework.views import exception_handler

logger = logging.getLogger(__name__)


class WatchTimeError(Exception):
    """Base for expected, user-facing failures. Carries the HTTP mapping."""
    status_code = status.HTTP_400_BAD_REQUEST
    error = "Bad request"
    message = "Oops! Something went wrong. Please try again!"

    def __init__(self, message: str | None = None, **extra):
        super().__init__(message or self.message)
        if message:
            self.message = message
        self.extra = extra

    def as_payload(self) -> dict:
        body = {"error": self.error, "message": self.message}
        body.update(self.extra)
        return body


class InvalidChip(WatchTimeError):
    status_code = status.HTTP_403_FORBIDDEN
    error = "Invalid NFC chip"
    message = "Oops! This chip doesn't belong to your profile. Ask a grown-up for help!"


class LimitReached(WatchTimeError):
    status_code = status.HTTP_403_FORBIDDEN
    error = "Daily watch time limit reached"
    message = "You've watched enough for today! See you tomorrow!"

    def as_payload(self) -> dict:
        body = super().as_payload()
        body["limit_reached"] = True
        body.setdefault("remaining_minutes", 0)
        return body


class InvalidPosition(WatchTimeError):
    status_code = status.HTTP_400_BAD_REQUEST
    error = "Invalid playback position"
    message = "Oops! Something doesn't look right. Please refresh!"


class SessionNotFound(WatchTimeError):
    status_code = status.HTTP_404_NOT_FOUND
    error = "Session not found or already ended"
    message = "Oops! This session already ended!"


class ProfileNotFound(WatchTimeError):
    status_code = status.HTTP_404_NOT_FOUND
    error = "Profile not found"
    message = "Oops! We can't find your profile. Ask a grown-up for help!"


class VideoNotFound(WatchTimeError):
    status_code = status.HTTP_404_NOT_FOUND
    error = "Video not found"
    message = "Oops! We can't find that video. Ask a grown-up for help!"


def api_exception_handler(exc, context):
    """DRF handler: storage failures become a generic 500; the rest use DRF defaults."""
    if isinstance(exc, WatchTimeError):
        return Response(exc.as_payload(), status=exc.status_code)
    if isinstance(exc, DatabaseError):
        view = context.get("view")
        logger.exception("storage failure in %s", type(view).__name__ if view else "unknown view")
        return Response(
            {"error": "Internal server error", "message": "Oops! Something went wrong. Please try again!"},
            status=status.HTTP_500_INTERNAL_SERVER_ERROR,
        )
    return exception_handler(exc, context)
