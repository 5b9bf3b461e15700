"""Calendar-event-creation collaborator interface."""
from __future__ import annotations

from dataclasses import dataclass
from typing import Optional


@dataclass(frozen=True)
class CalendarEventRequest:
    title: str
    start_time: str
    end_time: str


@dataclass
class CalendarEventResult:
    success: bool
    event_id: Optional[str] = None
    reason: Optional[str] = None


class CalendarEventCreator:
    """Base interface for calendar providers."""

    def create_event(self, request: CalendarEventRequest) -> CalendarEventResult:
        raise NotImplementedError
