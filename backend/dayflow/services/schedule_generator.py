"""Schedule generation: caller-authored bypass or delegated generation with guardrails."""
from __future__ import annotations

import json
import logging
from dataclasses import dataclass, field
from typing import List, Optional, Sequence

from pydantic import BaseModel, Field

from dayflow.core.config import settings
from dayflow.core.errors import GenerationFailure, ParseError, ValidationError
from dayflow.observability.metrics import log_metric
from dayflow.observability.tracing import annotate, trace
from dayflow.services.schedule_evaluator import BreakPolicy, ScheduleEvaluation, evaluate_generated_schedule
from dayflow.services.schedule_parser import (
    Task,
    parse_schedule,
    render_schedule_json,
    schedule_entries,
    tasks_from_entries,
)
from dayflow.services.text_generation.base import TextGenerator
from dayflow.services.text_generation.openai_generator import response_schema
from dayflow.services.time_of_day import TimeOfDay, format_time_of_day, parse_time_of_day

logger = logging.getLogger(__name__)

MODE_BYPASS = "bypass"
MODE_GENERATED = "generated"


class ScheduleEntry(BaseModel):
    time: str = Field(..., description='Time slot such as "1:00 PM - 2:30 PM".')
    task: str = Field(..., description="The activity for this slot.")
    duration: Optional[str] = Field(default=None, description='Duration such as "1.5 hours".')


class GeneratedScheduleDraft(BaseModel):
    """Shape the text generator must return."""

    schedule: List[ScheduleEntry] = Field(default_factory=list)


@dataclass
class ScheduleRequest:
    priorities: Sequence[str] = ()
    calendar_events: str = ""
    learning_goal: Optional[str] = None
    other_goals: Optional[str] = None
    start_time: Optional[str] = None
    end_time: Optional[str] = None
    schedule: Optional[str] = None


@dataclass
class GeneratedSchedule:
    tasks: List[Task]
    mode: str
    warnings: List[str] = field(default_factory=list)
    repair_used: bool = False

    @property
    def schedule(self) -> str:
        return render_schedule_json(self.tasks)


SYSTEM_PROMPT = (
    "You are an assistant that builds realistic, time-blocked daily schedules. "
    "You never invent activities the user did not ask for, and you always answer with JSON."
)


def generate_schedule(
    request: ScheduleRequest,
    *,
    generator: Optional[TextGenerator],
    request_id: str | None = None,
) -> GeneratedSchedule:
    """Return a parsed schedule, either from caller text or from the generator."""
    if request.schedule is not None and request.schedule.strip():
        return _bypass(request.schedule, request_id)

    priorities = [label.strip() for label in request.priorities if label and label.strip()]
    if not priorities:
        raise ValidationError("Assess your priorities before generating a schedule.", field="priorities")
    policy = resolve_window(request.start_time, request.end_time)
    if generator is None:
        raise GenerationFailure("Schedule generation is not configured on this server.")

    allowed_sources = [*priorities, request.calendar_events, request.learning_goal or "", request.other_goals or ""]
    user_prompt = _build_user_prompt(request, priorities, policy)
    metadata = {
        "priority_count": len(priorities),
        "window": f"{policy.window_start}-{policy.window_end}",
        "requires_lunch": policy.requires_lunch,
        "requires_dinner": policy.requires_dinner,
    }

    with trace("schedule.generate", metadata=metadata, request_id=request_id) as span:
        tasks = _delegate(generator, user_prompt, request_id)
        evaluation = evaluate_generated_schedule(tasks, policy, allowed_sources)
        repair_used = False
        if not evaluation.passed:
            repair_used = True
            log_metric("schedule.repair.used", 1, {"violations": len(evaluation.violations)})
            logger.info("Generated schedule failed checks, requesting repair: %s", evaluation.violations)
            tasks = _delegate(generator, _build_repair_prompt(user_prompt, tasks, evaluation), request_id)
            evaluation = evaluate_generated_schedule(tasks, policy, allowed_sources)
        annotate(span, evaluation=evaluation.to_dict(), repair_used=repair_used)

    if not evaluation.passed:
        log_metric("schedule.generate.rejected", 1)
        raise GenerationFailure(
            "The generated schedule did not meet the scheduling rules: " + " ".join(evaluation.violations)
        )

    log_metric("schedule.generate.tasks", len(tasks), {"repair_used": repair_used})
    return GeneratedSchedule(tasks=tasks, mode=MODE_GENERATED, warnings=evaluation.warnings, repair_used=repair_used)


def resolve_window(start_time: Optional[str], end_time: Optional[str]) -> BreakPolicy:
    """Parse the requested window, falling back to the configured workday."""
    start = _window_bound(start_time, settings.default_day_start, "start_time")
    end = _window_bound(end_time, settings.default_day_end, "end_time")
    if not start < end:
        raise ValidationError("The schedule must end after it starts.", field="end_time")
    return BreakPolicy(window_start=start, window_end=end)


def _window_bound(value: Optional[str], default: str, field_name: str) -> TimeOfDay:
    text = (value or "").strip() or default
    try:
        return parse_time_of_day(text)
    except ParseError as exc:
        raise ValidationError(f"Could not understand {field_name.replace('_', ' ')} {text!r}.", field=field_name) from exc


def _bypass(schedule_text: str, request_id: str | None) -> GeneratedSchedule:
    with trace("schedule.bypass", metadata={"text_length": len(schedule_text)}, request_id=request_id):
        tasks = parse_schedule(schedule_text)
    log_metric("schedule.bypass.tasks", len(tasks))
    return GeneratedSchedule(tasks=tasks, mode=MODE_BYPASS)


def _delegate(generator: TextGenerator, user_prompt: str, request_id: str | None) -> List[Task]:
    draft = generator.generate(
        name="generate_schedule",
        system_prompt=SYSTEM_PROMPT,
        user_prompt=user_prompt,
        output_model=GeneratedScheduleDraft,
        request_id=request_id,
    )
    if not draft.schedule:
        raise GenerationFailure("The planning assistant returned an empty schedule.")
    return tasks_from_entries(draft.schedule)


def _build_user_prompt(request: ScheduleRequest, priorities: List[str], policy: BreakPolicy) -> str:
    priority_lines = "\n".join(f"{index}. {label}" for index, label in enumerate(priorities, start=1))
    breaks = []
    if policy.requires_lunch:
        breaks.append("- You MUST include exactly one 1-hour lunch break around noon.")
    if policy.requires_dinner:
        breaks.append("- You MUST include a dinner break because the schedule extends into the evening.")
    if not breaks:
        breaks.append("- Do not add meal breaks; the window does not cover midday or the evening.")
    break_rules = "\n".join(breaks)
    return (
        f"User Priorities (most important first):\n{priority_lines}\n"
        f"Calendar Events: {request.calendar_events.strip() or 'None'}\n"
        f"Learning Goal: {(request.learning_goal or '').strip() or 'None'}\n"
        f"Other Goals: {(request.other_goals or '').strip() or 'None'}\n"
        f"Start Time: {format_time_of_day(policy.window_start)}\n"
        f"End Time: {format_time_of_day(policy.window_end)}\n\n"
        "### RULES\n"
        "- ONLY include tasks and events explicitly listed above (priorities, calendar events, learning goal, "
        "other goals). Do NOT add meetings, standups or any other activity the user did not mention.\n"
        "- Calendar events are fixed: keep their times and schedule other work around them.\n"
        f"{break_rules}\n"
        "- Cover the whole window from start to end; any time not spent on a task must be an explicit break.\n"
        '- Every entry needs a "time" like "1:00 PM - 2:30 PM", a "task" and a "duration" like "1.5 hours".\n\n'
        "### OUTPUT REQUIREMENT\n"
        "Return strictly valid JSON matching this schema:\n"
        f"{response_schema(GeneratedScheduleDraft)}"
    )


def _build_repair_prompt(base_prompt: str, tasks: List[Task], evaluation: ScheduleEvaluation) -> str:
    feedback = "\n".join(f"- {violation}" for violation in evaluation.violations)
    return (
        f"{base_prompt}\n\n"
        "### REVIEWER FEEDBACK (previous schedule rejected)\n"
        f"{feedback}\n\n"
        f"Previous schedule:\n{json.dumps(schedule_entries(tasks), indent=2)}\n"
        "Revise it minimally so every rule above is satisfied."
    )
