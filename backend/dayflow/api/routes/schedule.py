"""Schedule parsing, generation and rework endpoints."""
from __future__ import annotations

from typing import Optional

from fastapi import APIRouter, Depends, Request

from dayflow.api.deps import get_current_time
from dayflow.api.errors import http_error
from dayflow.api.schemas.schedule import (
    GenerateScheduleRequest,
    GenerateScheduleResponse,
    ParseScheduleRequest,
    ParseScheduleResponse,
    ReworkScheduleRequest,
    ReworkScheduleResponse,
    TaskPayload,
)
from dayflow.core.errors import DayFlowError, ParseError, ValidationError
from dayflow.observability.metrics import log_metric
from dayflow.observability.tracing import annotate, trace
from dayflow.services.schedule_evaluator import inspect_schedule
from dayflow.services.schedule_generator import ScheduleRequest, generate_schedule
from dayflow.services.schedule_parser import parse_schedule_with_format, render_schedule_json, render_schedule_text
from dayflow.services.schedule_rework import ReworkRequest, rework_schedule
from dayflow.services.text_generation.base import TextGenerator
from dayflow.services.text_generation.factory import get_text_generator
from dayflow.services.time_of_day import TimeOfDay, parse_time_of_day

router = APIRouter()


@router.post("/schedule/parse", response_model=ParseScheduleResponse, tags=["schedule"])
def parse_schedule_endpoint(request: ParseScheduleRequest, http_request: Request) -> ParseScheduleResponse:
    """Normalize free text or JSON into tasks and report anything suspicious."""
    request_id = getattr(http_request.state, "request_id", None)
    with trace("http.schedule.parse", metadata={"route": "/schedule/parse"}, request_id=request_id) as span:
        try:
            schedule_format, tasks = parse_schedule_with_format(request.schedule)
        except DayFlowError as exc:
            raise http_error(exc) from exc
        issues = inspect_schedule(tasks)
        annotate(span, format=schedule_format.value, task_count=len(tasks), issue_count=len(issues))

    unstructured = sum(1 for task in tasks if task.kind == "unstructured")
    log_metric("schedule.parse.tasks", len(tasks), {"unstructured": unstructured, "format": schedule_format.value})

    return ParseScheduleResponse(
        format=schedule_format,
        tasks=[TaskPayload.from_task(task) for task in tasks],
        schedule_text=render_schedule_text(tasks),
        schedule_json=render_schedule_json(tasks),
        issues=issues,
        request_id=request_id or "",
    )


@router.post("/schedule/generate", response_model=GenerateScheduleResponse, tags=["schedule"])
def generate_schedule_endpoint(
    request: GenerateScheduleRequest,
    http_request: Request,
    generator: Optional[TextGenerator] = Depends(get_text_generator),
) -> GenerateScheduleResponse:
    """Return the caller's schedule verbatim or a freshly generated one."""
    request_id = getattr(http_request.state, "request_id", None)
    schedule_request = ScheduleRequest(
        priorities=request.priorities,
        calendar_events=request.calendar_events,
        learning_goal=request.learning_goal,
        other_goals=request.other_goals,
        start_time=request.start_time,
        end_time=request.end_time,
        schedule=request.schedule,
    )
    with trace("http.schedule.generate", metadata={"route": "/schedule/generate"}, request_id=request_id):
        try:
            generated = generate_schedule(schedule_request, generator=generator, request_id=request_id)
        except DayFlowError as exc:
            raise http_error(exc) from exc

    return GenerateScheduleResponse(
        mode=generated.mode,
        schedule=generated.schedule,
        tasks=[TaskPayload.from_task(task) for task in generated.tasks],
        warnings=generated.warnings,
        repair_used=generated.repair_used,
        request_id=request_id or "",
    )


@router.post("/schedule/rework", response_model=ReworkScheduleResponse, tags=["schedule"])
def rework_schedule_endpoint(
    request: ReworkScheduleRequest,
    http_request: Request,
    generator: Optional[TextGenerator] = Depends(get_text_generator),
    current_time: TimeOfDay = Depends(get_current_time),
) -> ReworkScheduleResponse:
    """Revise the rest of the day while keeping what already happened."""
    request_id = getattr(http_request.state, "request_id", None)
    rework_request = ReworkRequest(
        original_schedule=request.original_schedule,
        new_constraints=request.new_constraints,
        user_goals=request.user_goals,
        completed_tasks=request.completed_tasks,
        remaining_time=request.remaining_time,
    )
    with trace("http.schedule.rework", metadata={"route": "/schedule/rework"}, request_id=request_id):
        try:
            now = _resolve_now(request.now, current_time)
            result = rework_schedule(rework_request, generator=generator, now=now, request_id=request_id)
        except DayFlowError as exc:
            raise http_error(exc) from exc

    return ReworkScheduleResponse(
        revised_schedule=result.revised_schedule,
        reasoning=result.reasoning,
        format=result.schedule_format,
        tasks=[TaskPayload.from_task(task) for task in result.tasks],
        restored_history=result.restored_history,
        warnings=result.warnings,
        request_id=request_id or "",
    )


def _resolve_now(override: Optional[str], current_time: TimeOfDay) -> TimeOfDay:
    if not override or not override.strip():
        return current_time
    try:
        return parse_time_of_day(override)
    except ParseError as exc:
        raise ValidationError(f"Could not understand the current time {override!r}.", field="now") from exc
