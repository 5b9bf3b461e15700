"""Shared FastAPI dependencies."""
from __future__ import annotations

from datetime import date, datetime
from typing import Callable, Optional
from zoneinfo import ZoneInfo

from fastapi import Depends, Header

from dayflow.api.errors import http_error
from dayflow.core.config import settings
from dayflow.core.errors import AuthRequired
from dayflow.services.calendar.base import CalendarEventCreator
from dayflow.services.calendar.factory import build_calendar_event_creator
from dayflow.services.identity import IdentityVerifier, VerifiedIdentity, get_identity_verifier
from dayflow.services.time_of_day import TimeOfDay

CalendarEventCreatorFactory = Callable[[Optional[str]], CalendarEventCreator]


def get_timezone() -> ZoneInfo:
    return ZoneInfo(settings.timezone)


def get_current_time() -> TimeOfDay:
    """Wall-clock time of day in the configured zone."""
    return TimeOfDay.from_time(datetime.now(get_timezone()).time())


def get_today() -> date:
    return datetime.now(get_timezone()).date()


def get_current_identity(
    authorization: Optional[str] = Header(default=None),
    verifier: Optional[IdentityVerifier] = Depends(get_identity_verifier),
) -> Optional[VerifiedIdentity]:
    """
    Resolve the caller from an ``Authorization: Bearer <id token>`` header.

    Returns None when no token is sent or no verifier is configured; the
    calendar gate turns that into a 401. A token that fails verification is
    rejected here.
    """
    scheme, _, token = (authorization or "").partition(" ")
    if scheme.lower() != "bearer" or not token.strip() or verifier is None:
        return None
    try:
        return verifier.verify(token.strip())
    except AuthRequired as exc:
        raise http_error(exc) from exc


def get_calendar_event_factory() -> CalendarEventCreatorFactory:
    return build_calendar_event_creator
