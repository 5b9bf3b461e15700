"""Google Calendar provider backed by google-api-python-client."""
from __future__ import annotations

import logging
from threading import Lock
from typing import Any, Optional

from google.oauth2.credentials import Credentials
from googleapiclient.discovery import build
from googleapiclient.errors import HttpError

from dayflow.services.calendar.base import CalendarEventCreator, CalendarEventRequest, CalendarEventResult


logger = logging.getLogger(__name__)


class GoogleCalendarEventCreator(CalendarEventCreator):
    """Inserts events into one Google calendar on behalf of an OAuth user."""

    def __init__(self, credentials: Credentials, *, calendar_id: str = "primary", service: Optional[Any] = None) -> None:
        self._calendar_id = calendar_id
        self._service = service or build("calendar", "v3", credentials=credentials, cache_discovery=False)
        # httplib2 transports are not thread-safe; calls share one service.
        self._lock = Lock()

    def create_event(self, request: CalendarEventRequest) -> CalendarEventResult:
        body = {
            "summary": request.title,
            "start": {"dateTime": request.start_time},
            "end": {"dateTime": request.end_time},
        }
        try:
            with self._lock:
                created = self._service.events().insert(calendarId=self._calendar_id, body=body).execute()
        except HttpError as exc:
            status = getattr(exc.resp, "status", None)
            logger.warning("Google Calendar rejected event %r (status=%s)", request.title, status)
            return CalendarEventResult(success=False, reason=f"Google Calendar returned HTTP {status}")
        event_id = created.get("id") if isinstance(created, dict) else None
        return CalendarEventResult(success=bool(event_id), event_id=event_id)
