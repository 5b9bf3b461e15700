from __future__ import annotations

import json

import pytest

from dayflow.core.errors import ParseError
from dayflow.services.schedule_parser import (
    ScheduleFormat,
    TimedTask,
    UnstructuredTask,
    parse_schedule,
    parse_schedule_with_format,
    render_schedule_json,
    render_schedule_text,
    tasks_from_entries,
)
from dayflow.services.time_of_day import TimeOfDay


def test_garbled_line_is_kept_as_unstructured_task() -> None:
    tasks = parse_schedule("9:00 AM - 10:00 AM: Standup\ngarbled line\n2:00 PM - 3:00 PM: Review")

    assert len(tasks) == 3
    assert isinstance(tasks[0], TimedTask)
    assert tasks[0].start == TimeOfDay(9, 0)
    assert tasks[0].end == TimeOfDay(10, 0)
    assert tasks[0].label == "Standup"
    assert isinstance(tasks[1], UnstructuredTask)
    assert tasks[1].label == "garbled line"
    assert tasks[1].raw_time is None
    assert isinstance(tasks[2], TimedTask)
    assert tasks[2].start == TimeOfDay(14, 0)


def test_never_fewer_tasks_than_non_blank_lines() -> None:
    raw = "\n- 9:00 AM - 9:30 AM: Email\n\n??\n13:00 - 14:00: Gym\n8:00 - 9:00\n   \n"

    tasks = parse_schedule(raw)

    assert len(tasks) == 4
    assert [task.kind for task in tasks] == ["timed", "unstructured", "timed", "unstructured"]
    assert tasks[0].label == "Email"
    assert tasks[2].start == TimeOfDay(13, 0)


def test_dash_variants_are_accepted() -> None:
    tasks = parse_schedule("9:00 AM – 10:00 AM: Focus block\n10:00 AM—10:15 AM: Break")

    assert all(isinstance(task, TimedTask) for task in tasks)
    assert tasks[1].label == "Break"


def test_ids_are_unique_within_a_call() -> None:
    tasks = parse_schedule("a\nb\nc\n9:00 AM - 10:00 AM: d")

    assert len({task.id for task in tasks}) == 4


def test_empty_input_raises_parse_error() -> None:
    with pytest.raises(ParseError):
        parse_schedule("   \n ")
    with pytest.raises(ParseError):
        parse_schedule(None)


def test_json_array_with_trailing_comma() -> None:
    raw = '[{"time": "9:00 AM - 10:00 AM", "task": "Standup", "duration": "1 hour"},\n]'

    schedule_format, tasks = parse_schedule_with_format(raw)

    assert schedule_format is ScheduleFormat.JSON
    assert len(tasks) == 1
    assert tasks[0].label == "Standup"
    assert tasks[0].duration_hint == "1 hour"


def test_json_object_wrapping_schedule_is_unwrapped() -> None:
    raw = json.dumps({"schedule": [{"time": "1:00 PM - 2:00 PM", "title": "Lunch"}]})

    tasks = parse_schedule(raw)

    assert isinstance(tasks[0], TimedTask)
    assert tasks[0].label == "Lunch"


def test_json_entries_with_start_and_end_fields() -> None:
    raw = json.dumps([{"startTime": "3:00 PM", "endTime": "4:30 PM", "label": "Deep work"}])

    tasks = parse_schedule(raw)

    assert isinstance(tasks[0], TimedTask)
    assert tasks[0].time_range == "3:00 PM - 4:30 PM"


def test_json_entry_without_range_keeps_raw_time() -> None:
    tasks = tasks_from_entries([{"time": "Anytime", "task": "Call mom"}, {"time": "9 - 10", "task": "Run"}])

    assert isinstance(tasks[0], UnstructuredTask)
    assert tasks[0].raw_time == "Anytime"
    assert isinstance(tasks[1], UnstructuredTask)
    assert tasks[1].raw_time == "9 - 10"


def test_json_that_is_not_a_list_falls_back_to_lines() -> None:
    schedule_format, tasks = parse_schedule_with_format('{"note": "hello"}')

    assert schedule_format is ScheduleFormat.TEXT
    assert len(tasks) == 1
    assert isinstance(tasks[0], UnstructuredTask)


def test_inverted_range_is_parsed_but_flagged_inconsistent() -> None:
    tasks = parse_schedule("3:00 PM - 2:00 PM: Oops")

    assert isinstance(tasks[0], TimedTask)
    assert tasks[0].is_consistent is False


def test_rendered_json_reparses_to_equivalent_tasks() -> None:
    original = parse_schedule(
        json.dumps(
            [
                {"time": "9:00 AM - 10:30 AM", "task": "Write report", "duration": "1.5 hours"},
                {"time": "Later", "task": "Call bank"},
                {"task": "Stretch"},
                {"startTime": "9:00 AM", "label": "Open ended"},
                {"endTime": "5:00 PM", "label": "Wrap up"},
            ]
        )
    )

    reparsed = parse_schedule(render_schedule_json(original))

    assert [task.signature() for task in reparsed] == [task.signature() for task in original]


def test_rendered_text_matches_input_lines() -> None:
    raw = "9:00 AM - 10:00 AM: Standup\nfree time\n2:00 PM - 3:00 PM: Review"

    assert render_schedule_text(parse_schedule(raw)) == raw


def test_half_open_start_end_entry_keeps_only_the_given_time() -> None:
    tasks = parse_schedule(json.dumps([{"startTime": "9:00 AM", "label": "Open ended"}, {"startTime": "", "label": "Blank"}]))

    assert isinstance(tasks[0], UnstructuredTask)
    assert tasks[0].raw_time == "9:00 AM"
    assert tasks[1].raw_time is None
