"""Push a finalized schedule to an external calendar, one event per task."""
from __future__ import annotations

import logging
from concurrent.futures import Future, ThreadPoolExecutor, as_completed
from dataclasses import dataclass, field
from datetime import date, tzinfo
from enum import Enum
from typing import Dict, List, Optional, Sequence
from uuid import uuid4

from dayflow.core.config import settings
from dayflow.core.errors import AuthRequired
from dayflow.observability.metrics import log_metric
from dayflow.observability.tracing import annotate, trace
from dayflow.services.calendar.base import CalendarEventCreator, CalendarEventRequest, CalendarEventResult
from dayflow.services.identity import VerifiedIdentity
from dayflow.services.schedule_parser import Task, TimedTask
from dayflow.services.time_of_day import anchor_to_day

logger = logging.getLogger(__name__)


class SyncOutcome(str, Enum):
    SYNCED = "synced"
    PARTIAL_FAILURE = "partial_failure"
    FAILED = "failed"
    EMPTY = "empty"


@dataclass
class SyncedEvent:
    task_id: str
    title: str
    time_range: str
    start_time: str
    end_time: str
    event_id: Optional[str] = None


@dataclass
class CalendarSyncResult:
    synced_events: List[SyncedEvent] = field(default_factory=list)
    errors: List[str] = field(default_factory=list)

    @property
    def outcome(self) -> SyncOutcome:
        if self.synced_events and self.errors:
            return SyncOutcome.PARTIAL_FAILURE
        if self.errors:
            return SyncOutcome.FAILED
        if self.synced_events:
            return SyncOutcome.SYNCED
        return SyncOutcome.EMPTY


@dataclass(frozen=True)
class _PendingEvent:
    token: str
    task: TimedTask
    request: CalendarEventRequest


def sync_schedule(
    tasks: Sequence[Task],
    *,
    identity: Optional[VerifiedIdentity],
    creator: CalendarEventCreator,
    day: date,
    tz: Optional[tzinfo] = None,
    max_workers: Optional[int] = None,
    request_id: str | None = None,
) -> CalendarSyncResult:
    """
    Create one calendar event per timed task.

    Raises AuthRequired before any call when the calendar provider is not
    linked. Individual failures are collected as error messages and never
    abort the batch; there is no retry.
    """
    identity = require_calendar_link(identity)

    result = CalendarSyncResult()
    pending: List[_PendingEvent] = []
    for task in tasks:
        if not isinstance(task, TimedTask):
            result.errors.append(f'"{task.label}" has no time range and was not synced.')
            continue
        if not task.is_consistent:
            result.errors.append(f'"{task.label}" ends before it starts and was not synced.')
            continue
        pending.append(
            _PendingEvent(
                token=uuid4().hex,
                task=task,
                request=CalendarEventRequest(
                    title=task.label,
                    start_time=anchor_to_day(task.start, day, tz).isoformat(),
                    end_time=anchor_to_day(task.end, day, tz).isoformat(),
                ),
            )
        )

    metadata = {"event_count": len(pending), "uid": identity.uid, "day": day.isoformat()}
    with trace("calendar.sync", metadata=metadata, request_id=request_id) as span:
        outcomes = _create_events(pending, creator, max_workers or settings.calendar_sync_max_workers)

        for item in pending:
            outcome = outcomes[item.token]
            if isinstance(outcome, Exception):
                result.errors.append(f'An error occurred while creating the event: "{item.task.label}".')
            elif not outcome.success:
                detail = f" ({outcome.reason})" if outcome.reason else ""
                result.errors.append(f'Failed to create event for "{item.task.label}"{detail}.')
            else:
                result.synced_events.append(
                    SyncedEvent(
                        task_id=item.task.id,
                        title=item.task.label,
                        time_range=item.task.time_range,
                        start_time=item.request.start_time,
                        end_time=item.request.end_time,
                        event_id=outcome.event_id,
                    )
                )
        annotate(span, synced=len(result.synced_events), errors=len(result.errors), outcome=result.outcome.value)

    log_metric("calendar.sync.synced", len(result.synced_events))
    log_metric("calendar.sync.errors", len(result.errors))
    logger.info(
        "Calendar sync finished: synced=%d errors=%d outcome=%s",
        len(result.synced_events),
        len(result.errors),
        result.outcome.value,
    )
    return result


def require_calendar_link(identity: Optional[VerifiedIdentity]) -> VerifiedIdentity:
    """Return the identity if it has the calendar provider linked, else raise AuthRequired."""
    if identity is None or not identity.has_provider(settings.calendar_auth_provider):
        raise AuthRequired("Link your Google account to sync your schedule to Google Calendar.")
    return identity


def _create_events(
    pending: Sequence[_PendingEvent],
    creator: CalendarEventCreator,
    max_workers: int,
) -> Dict[str, CalendarEventResult | Exception]:
    """Issue creation calls concurrently, keyed by request token rather than position."""
    outcomes: Dict[str, CalendarEventResult | Exception] = {}
    if not pending:
        return outcomes

    with ThreadPoolExecutor(max_workers=max(1, min(max_workers, len(pending)))) as executor:
        futures: Dict[Future, str] = {
            executor.submit(creator.create_event, item.request): item.token for item in pending
        }
        for future in as_completed(futures):
            token = futures[future]
            try:
                outcomes[token] = future.result()
            except Exception as exc:  # provider errors are per-event failures
                logger.warning("Calendar event creation raised for token %s: %s", token, exc)
                outcomes[token] = exc
    return outcomes
