"""Pydantic schemas for calendar sync API."""
from __future__ import annotations

from datetime import date
from typing import List, Optional

from pydantic import BaseModel, Field

from dayflow.services.calendar_sync import SyncOutcome


class CalendarSyncRequest(BaseModel):
    schedule: str = Field(..., max_length=20000)
    day: Optional[date] = None
    google_access_token: Optional[str] = None


class SyncedEventPayload(BaseModel):
    task_id: str
    title: str
    time_range: str
    start_time: str
    end_time: str
    event_id: Optional[str] = None


class CalendarSyncResponse(BaseModel):
    synced_events: List[SyncedEventPayload]
    errors: List[str]
    outcome: SyncOutcome
    request_id: str
