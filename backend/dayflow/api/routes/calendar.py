"""Calendar sync endpoint."""
from __future__ import annotations

from datetime import date
from typing import Optional
from zoneinfo import ZoneInfo

from fastapi import APIRouter, Depends, Request

from dayflow.api.deps import (
    CalendarEventCreatorFactory,
    get_calendar_event_factory,
    get_current_identity,
    get_timezone,
    get_today,
)
from dayflow.api.errors import http_error
from dayflow.api.schemas.calendar import CalendarSyncRequest, CalendarSyncResponse, SyncedEventPayload
from dayflow.core.errors import DayFlowError
from dayflow.observability.tracing import trace
from dayflow.services.calendar_sync import require_calendar_link, sync_schedule
from dayflow.services.identity import VerifiedIdentity
from dayflow.services.schedule_parser import parse_schedule

router = APIRouter()


@router.post("/calendar/sync", response_model=CalendarSyncResponse, tags=["calendar"])
def sync_calendar_endpoint(
    request: CalendarSyncRequest,
    http_request: Request,
    identity: Optional[VerifiedIdentity] = Depends(get_current_identity),
    creator_factory: CalendarEventCreatorFactory = Depends(get_calendar_event_factory),
    today: date = Depends(get_today),
    tz: ZoneInfo = Depends(get_timezone),
) -> CalendarSyncResponse:
    """Create one calendar event per timed task of the schedule."""
    request_id = getattr(http_request.state, "request_id", None)
    day = request.day or today
    with trace("http.calendar.sync", metadata={"route": "/calendar/sync", "day": day.isoformat()}, request_id=request_id):
        try:
            require_calendar_link(identity)
            tasks = parse_schedule(request.schedule)
            creator = creator_factory(request.google_access_token)
            result = sync_schedule(tasks, identity=identity, creator=creator, day=day, tz=tz, request_id=request_id)
        except DayFlowError as exc:
            raise http_error(exc) from exc

    return CalendarSyncResponse(
        synced_events=[
            SyncedEventPayload(
                task_id=event.task_id,
                title=event.title,
                time_range=event.time_range,
                start_time=event.start_time,
                end_time=event.end_time,
                event_id=event.event_id,
            )
            for event in result.synced_events
        ],
        errors=result.errors,
        outcome=result.outcome,
        request_id=request_id or "",
    )
