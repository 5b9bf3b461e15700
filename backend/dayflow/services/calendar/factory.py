"""Calendar provider factory."""
from __future__ import annotations

from typing import Optional

from google.oauth2.credentials import Credentials

from dayflow.core.config import settings
from dayflow.core.errors import AuthRequired
from dayflow.services.calendar.base import CalendarEventCreator
from dayflow.services.calendar.google import GoogleCalendarEventCreator
from dayflow.services.calendar.mock import MockCalendarEventCreator


def build_calendar_event_creator(access_token: Optional[str] = None) -> CalendarEventCreator:
    provider = settings.calendar_provider.lower()
    if provider == "google":
        if not access_token:
            raise AuthRequired("A Google Calendar access token is required to sync events.")
        return GoogleCalendarEventCreator(Credentials(token=access_token), calendar_id=settings.calendar_id)
    return MockCalendarEventCreator()
