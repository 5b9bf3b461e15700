from __future__ import annotations

import json
from typing import Any, Dict, List

import pytest

from dayflow.core.errors import GenerationFailure, ValidationError
from dayflow.services.schedule_evaluator import is_lunch
from dayflow.services.schedule_generator import (
    MODE_BYPASS,
    MODE_GENERATED,
    ScheduleRequest,
    generate_schedule,
    resolve_window,
)
from dayflow.services.schedule_parser import TimedTask
from dayflow.services.text_generation.base import TextGenerator
from dayflow.services.time_of_day import TimeOfDay


class _ScriptedGenerator(TextGenerator):
    def __init__(self, *responses: Any):
        self.responses = list(responses)
        self.calls: List[Dict[str, Any]] = []

    def generate(self, *, name, system_prompt, user_prompt, output_model, request_id=None):
        self.calls.append({"name": name, "user_prompt": user_prompt})
        response = self.responses.pop(0)
        if isinstance(response, Exception):
            raise response
        return output_model.model_validate(response)


WORKDAY_WITH_LUNCH = {
    "schedule": [
        {"time": "9:00 AM - 11:00 AM", "task": "Write report", "duration": "2 hours"},
        {"time": "11:00 AM - 12:00 PM", "task": "Review pull requests", "duration": "1 hour"},
        {"time": "12:00 PM - 1:00 PM", "task": "Lunch", "duration": "1 hour"},
        {"time": "1:00 PM - 3:00 PM", "task": "Write report", "duration": "2 hours"},
        {"time": "3:00 PM - 6:00 PM", "task": "Study Spanish", "duration": "3 hours"},
    ]
}

WORKDAY_WITHOUT_LUNCH = {
    "schedule": [
        {"time": "9:00 AM - 1:00 PM", "task": "Write report", "duration": "4 hours"},
        {"time": "1:00 PM - 6:00 PM", "task": "Review pull requests", "duration": "5 hours"},
    ]
}


def _request(**overrides: Any) -> ScheduleRequest:
    values: Dict[str, Any] = {
        "priorities": ["Write report", "Review pull requests"],
        "learning_goal": "Study Spanish",
        "start_time": "9:00 AM",
        "end_time": "6:00 PM",
    }
    values.update(overrides)
    return ScheduleRequest(**values)


def test_caller_schedule_bypasses_generation() -> None:
    raw = "9:00 AM - 10:00 AM: Standup\nsomething vague"

    result = generate_schedule(ScheduleRequest(schedule=raw), generator=None)

    assert result.mode == MODE_BYPASS
    assert len(result.tasks) == 2
    assert result.repair_used is False


def test_bypass_keeps_authored_day_with_one_midday_lunch() -> None:
    raw = (
        "9:00 AM - 12:00 PM: Write report\n"
        "12:00 PM - 1:00 PM: Lunch\n"
        "1:00 PM - 4:00 PM: Write report\n"
        "4:00 PM - 6:00 PM: Go for a run"
    )
    generator = _ScriptedGenerator()
    request = _request(priorities=["Write report", "Go for a run"], learning_goal=None, schedule=raw)

    result = generate_schedule(request, generator=generator)

    assert result.mode == MODE_BYPASS
    assert generator.calls == []
    assert len(result.tasks) == len(raw.splitlines())
    assert [task.label for task in result.tasks] == ["Write report", "Lunch", "Write report", "Go for a run"]
    lunches = [task for task in result.tasks if is_lunch(task.label)]
    assert len(lunches) == 1
    assert isinstance(lunches[0], TimedTask)
    assert TimeOfDay(11, 0) <= lunches[0].start <= TimeOfDay(13, 0)


def test_generated_workday_has_exactly_one_midday_lunch() -> None:
    generator = _ScriptedGenerator(WORKDAY_WITH_LUNCH)

    result = generate_schedule(_request(), generator=generator)

    assert result.mode == MODE_GENERATED
    assert result.repair_used is False
    lunches = [task for task in result.tasks if is_lunch(task.label)]
    assert len(lunches) == 1
    assert isinstance(lunches[0], TimedTask)
    assert TimeOfDay(11, 0) <= lunches[0].start <= TimeOfDay(13, 0)
    assert json.loads(result.schedule)[2] == {"time": "12:00 PM - 1:00 PM", "task": "Lunch", "duration": "1 hour"}
    assert len(generator.calls) == 1


def test_prompt_carries_inputs_and_break_rules() -> None:
    generator = _ScriptedGenerator(WORKDAY_WITH_LUNCH)

    generate_schedule(_request(calendar_events="Team Standup 10:00-11:00"), generator=generator)

    prompt = generator.calls[0]["user_prompt"]
    assert "1. Write report" in prompt
    assert "Team Standup 10:00-11:00" in prompt
    assert "lunch" in prompt.lower()
    assert "dinner break" not in prompt


def test_failed_checks_trigger_one_repair() -> None:
    generator = _ScriptedGenerator(WORKDAY_WITHOUT_LUNCH, WORKDAY_WITH_LUNCH)

    result = generate_schedule(_request(), generator=generator)

    assert result.repair_used is True
    assert len(generator.calls) == 2
    assert "REVIEWER FEEDBACK" in generator.calls[1]["user_prompt"]
    assert "Write report" in generator.calls[1]["user_prompt"]


def test_misplaced_short_lunch_triggers_repair() -> None:
    late_snack_lunch = {
        "schedule": [
            {"time": "9:00 AM - 4:00 PM", "task": "Write report", "duration": "7 hours"},
            {"time": "4:00 PM - 4:10 PM", "task": "Lunch", "duration": "10 minutes"},
            {"time": "4:10 PM - 6:00 PM", "task": "Review pull requests"},
        ]
    }
    generator = _ScriptedGenerator(late_snack_lunch, WORKDAY_WITH_LUNCH)

    result = generate_schedule(_request(), generator=generator)

    assert result.repair_used is True
    assert len(generator.calls) == 2
    feedback = generator.calls[1]["user_prompt"]
    assert "Lunch starts at 4:00 PM" in feedback
    assert "must last about one hour" in feedback


def test_repair_that_still_fails_raises() -> None:
    generator = _ScriptedGenerator(WORKDAY_WITHOUT_LUNCH, WORKDAY_WITHOUT_LUNCH)

    with pytest.raises(GenerationFailure, match="lunch"):
        generate_schedule(_request(), generator=generator)
    assert len(generator.calls) == 2


def test_evening_window_requires_dinner() -> None:
    evening = {
        "schedule": [
            *WORKDAY_WITH_LUNCH["schedule"],
            {"time": "6:00 PM - 7:00 PM", "task": "Dinner", "duration": "1 hour"},
            {"time": "7:00 PM - 8:00 PM", "task": "Study Spanish", "duration": "1 hour"},
        ]
    }
    generator = _ScriptedGenerator(WORKDAY_WITH_LUNCH, evening)

    result = generate_schedule(_request(end_time="8:00 PM"), generator=generator)

    assert result.repair_used is True
    assert "dinner break" in generator.calls[0]["user_prompt"]
    assert any(task.label == "Dinner" for task in result.tasks)


def test_empty_priorities_are_rejected() -> None:
    with pytest.raises(ValidationError) as excinfo:
        generate_schedule(_request(priorities=["  "]), generator=_ScriptedGenerator())

    assert excinfo.value.field == "priorities"


def test_missing_generator_is_a_generation_failure() -> None:
    with pytest.raises(GenerationFailure):
        generate_schedule(_request(), generator=None)


def test_resolve_window_defaults_and_validation() -> None:
    policy = resolve_window(None, "  ")

    assert policy.window_start == TimeOfDay(9, 0)
    assert policy.window_end == TimeOfDay(18, 0)
    with pytest.raises(ValidationError):
        resolve_window("5:00 PM", "9:00 AM")
    with pytest.raises(ValidationError) as excinfo:
        resolve_window("nine", None)
    assert excinfo.value.field == "start_time"
