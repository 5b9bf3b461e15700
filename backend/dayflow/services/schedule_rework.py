"""Full-day schedule repair after the day deviates from plan.

The generator decides how the rest of the day changes. This module decides
what it may not change: every task that ended by ``now`` is restored
verbatim from the caller's schedule, whatever the generator returned for it.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import List, Optional, Sequence, Union

from pydantic import BaseModel, Field

from dayflow.core.config import settings
from dayflow.core.errors import GenerationFailure, ValidationError
from dayflow.observability.metrics import log_metric
from dayflow.observability.tracing import annotate, trace
from dayflow.services.schedule_evaluator import inspect_schedule
from dayflow.services.schedule_generator import ScheduleEntry
from dayflow.services.schedule_parser import (
    ScheduleFormat,
    Task,
    TimedTask,
    parse_schedule_with_format,
    render_schedule,
    render_schedule_text,
    tasks_from_entries,
)
from dayflow.services.text_generation.base import TextGenerator
from dayflow.services.text_generation.openai_generator import response_schema
from dayflow.services.time_of_day import TimeOfDay, format_time_of_day

logger = logging.getLogger(__name__)

MIN_SCHEDULE_LENGTH = 10
DEFAULT_REMAINING_TIME = "the rest of the day"


class ReworkDraft(BaseModel):
    """Shape the text generator must return."""

    revised_schedule: List[ScheduleEntry] = Field(
        default_factory=list,
        description="The complete revised schedule for the whole day, past and future slots included.",
    )
    reasoning: str = Field(default="", description="Why the schedule was changed this way.")


@dataclass
class ReworkRequest:
    original_schedule: str
    new_constraints: str
    user_goals: str
    completed_tasks: Union[Sequence[str], str] = ()
    remaining_time: str = DEFAULT_REMAINING_TIME


@dataclass
class ReworkResult:
    tasks: List[Task]
    revised_schedule: str
    reasoning: str
    schedule_format: ScheduleFormat
    restored_history: int = 0
    warnings: List[str] = field(default_factory=list)


SYSTEM_PROMPT = (
    "You are an assistant that helps people adjust their schedule when the day does not go to plan. "
    "You always return the complete schedule for the whole day and you always answer with JSON."
)


def rework_schedule(
    request: ReworkRequest,
    *,
    generator: Optional[TextGenerator],
    now: TimeOfDay,
    request_id: str | None = None,
) -> ReworkResult:
    """Revise the whole day around a new constraint while keeping elapsed history."""
    completed = normalize_completed_tasks(request.completed_tasks)
    _validate(request)
    if generator is None:
        raise GenerationFailure("Schedule rework is not configured on this server.")

    schedule_format, original_tasks = parse_schedule_with_format(request.original_schedule)
    history = elapsed_tasks(original_tasks, now)
    user_prompt = _build_user_prompt(request, completed, history, now)
    metadata = {
        "now": format_time_of_day(now),
        "original_task_count": len(original_tasks),
        "elapsed_task_count": len(history),
        "completed_task_count": len(completed),
        "llm_input_text": request.new_constraints[:500],
    }

    with trace("schedule.rework", metadata=metadata, request_id=request_id) as span:
        draft = generator.generate(
            name="rework_schedule",
            system_prompt=SYSTEM_PROMPT,
            user_prompt=user_prompt,
            output_model=ReworkDraft,
            request_id=request_id,
        )
        if not draft.revised_schedule:
            raise GenerationFailure("The planning assistant did not return a revised schedule.")
        revised = tasks_from_entries(draft.revised_schedule)
        merged, restored = merge_with_history(history, revised, now)
        if not merged:
            raise GenerationFailure("The revised schedule was empty after reconciling it with the day so far.")
        annotate(span, revised_task_count=len(merged), restored_history=restored)

    log_metric("schedule.rework.tasks", len(merged), {"restored_history": restored})
    return ReworkResult(
        tasks=merged,
        revised_schedule=render_schedule(merged, schedule_format),
        reasoning=draft.reasoning.strip(),
        schedule_format=schedule_format,
        restored_history=restored,
        warnings=inspect_schedule(merged),
    )


def elapsed_tasks(tasks: Sequence[Task], now: TimeOfDay) -> List[TimedTask]:
    """Timed tasks that finished at or before ``now``."""
    return [task for task in tasks if isinstance(task, TimedTask) and task.is_consistent and task.end <= now]


def merge_with_history(
    history: Sequence[TimedTask],
    revised: Sequence[Task],
    now: TimeOfDay,
) -> tuple[List[Task], int]:
    """
    Combine untouched history with the generator's remaining-day plan.

    Generator tasks that ended by ``now`` are discarded in favour of the
    caller's history; everything else (current, future and unstructured
    tasks) is kept in the generator's order. Returns the merged list and the
    number of history tasks the generator had altered or dropped.
    """
    remaining = [
        task for task in revised if not (isinstance(task, TimedTask) and task.is_consistent and task.end <= now)
    ]
    returned_slots = {_slot(task) for task in revised if isinstance(task, TimedTask)}
    restored = sum(1 for task in history if _slot(task) not in returned_slots)
    if restored:
        logger.info("Restored %d elapsed task(s) the revised schedule had changed", restored)
    return [*history, *remaining], restored


def normalize_completed_tasks(value: Union[Sequence[str], str, None]) -> List[str]:
    if value is None:
        return []
    if isinstance(value, str):
        items = value.split(",")
    else:
        items = list(value)
    return [item.strip() for item in items if item and item.strip()]


def _validate(request: ReworkRequest) -> None:
    if len((request.original_schedule or "").strip()) < MIN_SCHEDULE_LENGTH:
        raise ValidationError("Please provide the original schedule.", field="original_schedule")
    if not (request.new_constraints or "").strip():
        raise ValidationError("Describe what changed so the schedule can be reworked.", field="new_constraints")
    if not (request.remaining_time or "").strip():
        raise ValidationError("Please specify the remaining time.", field="remaining_time")
    if len((request.user_goals or "").strip()) < settings.min_goal_length:
        raise ValidationError("Please describe your goals.", field="user_goals")


def _build_user_prompt(
    request: ReworkRequest,
    completed: List[str],
    history: List[TimedTask],
    now: TimeOfDay,
) -> str:
    history_text = render_schedule_text(history) if history else "None"
    completed_text = ", ".join(completed) if completed else "Not specified; infer from the current time."
    return (
        f"Current time: {format_time_of_day(now)}\n\n"
        f"Original/Edited Schedule:\n{request.original_schedule.strip()}\n\n"
        f"Already finished (must be returned unchanged):\n{history_text}\n\n"
        f"Completed tasks reported by the user: {completed_text}\n"
        f"Remaining time: {request.remaining_time.strip()}\n"
        f"New Constraints/Events: {request.new_constraints.strip()}\n"
        f"User's Overall Goals: {request.user_goals.strip()}\n\n"
        "### RULES\n"
        "- Work out which tasks are already in the past relative to the current time and keep them exactly as they are.\n"
        "- Reschedule only the remaining tasks so the new constraint fits.\n"
        "- When something has to be shortened or dropped, keep what matters most for the user's goals.\n"
        "- Return the complete schedule for the whole day, including the parts that have already passed.\n"
        '- Every entry needs a "time" like "1:00 PM - 2:30 PM", a "task" and a "duration".\n\n'
        "### OUTPUT REQUIREMENT\n"
        "Return strictly valid JSON matching this schema:\n"
        f"{response_schema(ReworkDraft)}"
    )


def _slot(task: TimedTask) -> tuple:
    return (task.start, task.end, task.label.casefold())
