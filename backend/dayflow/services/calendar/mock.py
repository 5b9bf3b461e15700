"""Mock calendar provider (logs only)."""
from __future__ import annotations

import logging
import secrets

from dayflow.services.calendar.base import CalendarEventCreator, CalendarEventRequest, CalendarEventResult


logger = logging.getLogger(__name__)


class MockCalendarEventCreator(CalendarEventCreator):
    def create_event(self, request: CalendarEventRequest) -> CalendarEventResult:
        logger.info(
            "Calendar event created (mock) title=%s start=%s end=%s",
            request.title,
            request.start_time,
            request.end_time,
        )
        return CalendarEventResult(success=True, event_id=f"evt_mock_{secrets.token_hex(4)}")
