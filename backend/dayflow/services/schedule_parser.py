"""Tolerant parsing and rendering of daily schedules.

Schedules arrive either as lines of ``"<start> - <end>: <label>"`` or as a
JSON array of ``{"time", "task", "duration"}`` objects. Both become an ordered
list of tasks. Input that cannot be interpreted is kept as an unstructured
task instead of being dropped, because the upstream generator is not reliable
enough to justify strict rejection.
"""
from __future__ import annotations

import json
import logging
import re
from enum import Enum
from typing import Annotated, Any, Iterable, List, Literal, Optional, Sequence, Tuple, Union
from uuid import uuid4

from pydantic import BaseModel, ConfigDict, Field

from dayflow.core.errors import ParseError
from dayflow.services.time_of_day import TIME_PATTERN, TimeOfDay, format_time_of_day, parse_time_of_day

logger = logging.getLogger(__name__)

RANGE_SEPARATOR = " - "
LABEL_KEYS = ("task", "label", "title")

_TRAILING_COMMA_RE = re.compile(r",\s*\]\s*$")
_BULLET_RE = re.compile(r"^(?:[*•-]\s+)")
_LINE_RE = re.compile(
    rf"^(?P<start>{TIME_PATTERN})\s*[-–—]\s*(?P<end>{TIME_PATTERN})\s*:\s*(?P<label>.+)$"
)


class ScheduleFormat(str, Enum):
    TEXT = "text"
    JSON = "json"


class TimedTask(BaseModel):
    """A task with a resolved start and end time."""

    model_config = ConfigDict(frozen=True)

    kind: Literal["timed"] = "timed"
    id: str
    start: TimeOfDay
    end: TimeOfDay
    label: str
    duration_hint: Optional[str] = None

    @property
    def is_consistent(self) -> bool:
        return self.start < self.end

    @property
    def time_range(self) -> str:
        return f"{format_time_of_day(self.start)}{RANGE_SEPARATOR}{format_time_of_day(self.end)}"

    def signature(self) -> Tuple[Any, ...]:
        return (self.kind, self.start, self.end, self.label, self.duration_hint)


class UnstructuredTask(BaseModel):
    """A task whose time could not be resolved; ``raw_time`` keeps the original text."""

    model_config = ConfigDict(frozen=True)

    kind: Literal["unstructured"] = "unstructured"
    id: str
    label: str
    raw_time: Optional[str] = None
    duration_hint: Optional[str] = None

    def signature(self) -> Tuple[Any, ...]:
        return (self.kind, self.raw_time, self.label, self.duration_hint)


Task = Annotated[Union[TimedTask, UnstructuredTask], Field(discriminator="kind")]


class _IdFactory:
    """Per-call ids: list index plus a nonce shared by the whole parse."""

    def __init__(self) -> None:
        self._nonce = uuid4().hex[:8]

    def __call__(self, index: int) -> str:
        return f"{index}-{self._nonce}"


def parse_schedule(raw: Optional[str]) -> List[Task]:
    """Parse schedule text or JSON into tasks, preserving input order."""
    _, tasks = parse_schedule_with_format(raw)
    return tasks


def parse_schedule_with_format(raw: Optional[str]) -> Tuple[ScheduleFormat, List[Task]]:
    if raw is None or not raw.strip():
        raise ParseError("Schedule is empty.")

    entries = _load_json_entries(raw)
    if entries is not None:
        tasks = tasks_from_entries(entries)
        schedule_format = ScheduleFormat.JSON
    else:
        tasks = _parse_lines(raw)
        schedule_format = ScheduleFormat.TEXT

    unstructured = sum(1 for task in tasks if isinstance(task, UnstructuredTask))
    if unstructured:
        logger.debug("Parsed %s schedule with %d/%d unstructured tasks", schedule_format.value, unstructured, len(tasks))
    return schedule_format, tasks


def tasks_from_entries(entries: Iterable[Any]) -> List[Task]:
    """Map JSON-style schedule entries (dicts or pydantic models) to tasks."""
    make_id = _IdFactory()
    tasks: List[Task] = []
    for index, entry in enumerate(entries):
        if isinstance(entry, BaseModel):
            entry = entry.model_dump()
        tasks.append(_task_from_entry(entry, make_id(index)))
    return tasks


def render_schedule_text(tasks: Sequence[Task]) -> str:
    lines = []
    for task in tasks:
        if isinstance(task, TimedTask):
            lines.append(f"{task.time_range}: {task.label}")
        else:
            lines.append(task.label)
    return "\n".join(lines)


def schedule_entries(tasks: Sequence[Task]) -> List[dict]:
    entries: List[dict] = []
    for task in tasks:
        entry: dict = {}
        if isinstance(task, TimedTask):
            entry["time"] = task.time_range
        elif task.raw_time is not None:
            entry["time"] = task.raw_time
        entry["task"] = task.label
        if task.duration_hint is not None:
            entry["duration"] = task.duration_hint
        entries.append(entry)
    return entries


def render_schedule_json(tasks: Sequence[Task]) -> str:
    return json.dumps(schedule_entries(tasks), ensure_ascii=False)


def render_schedule(tasks: Sequence[Task], schedule_format: ScheduleFormat) -> str:
    if schedule_format is ScheduleFormat.JSON:
        return render_schedule_json(tasks)
    return render_schedule_text(tasks)


def timed_tasks(tasks: Iterable[Task]) -> List[TimedTask]:
    return [task for task in tasks if isinstance(task, TimedTask)]


# ---------------------------------------------------------------------------
# Internal helpers
# ---------------------------------------------------------------------------

def _load_json_entries(raw: str) -> Optional[List[Any]]:
    text = raw.strip()
    if not text.startswith(("[", "{")):
        return None
    text = _TRAILING_COMMA_RE.sub("]", text)
    try:
        payload = json.loads(text)
    except json.JSONDecodeError:
        return None
    if isinstance(payload, dict) and isinstance(payload.get("schedule"), list):
        payload = payload["schedule"]
    if not isinstance(payload, list):
        return None
    return payload


def _task_from_entry(entry: Any, task_id: str) -> Task:
    if not isinstance(entry, dict):
        return UnstructuredTask(id=task_id, label=str(entry))

    label = _entry_label(entry)
    duration = _clean(entry.get("duration"))

    if "time" not in entry and ("startTime" in entry or "endTime" in entry):
        start_text = _clean(entry.get("startTime"))
        end_text = _clean(entry.get("endTime"))
        raw_time = RANGE_SEPARATOR.join(part for part in (start_text, end_text) if part) or None
        return _build_task(task_id, start_text, end_text, label, duration, raw_time)

    raw_time = _clean(entry.get("time"))
    if raw_time is None:
        return UnstructuredTask(id=task_id, label=label, duration_hint=duration)
    if RANGE_SEPARATOR not in raw_time:
        return UnstructuredTask(id=task_id, label=label, raw_time=raw_time, duration_hint=duration)
    start_text, end_text = raw_time.split(RANGE_SEPARATOR, 1)
    return _build_task(task_id, start_text, end_text, label, duration, raw_time)


def _build_task(
    task_id: str,
    start_text: Optional[str],
    end_text: Optional[str],
    label: str,
    duration: Optional[str],
    raw_time: Optional[str],
) -> Task:
    try:
        start = parse_time_of_day(start_text or "")
        end = parse_time_of_day(end_text or "")
    except ParseError:
        return UnstructuredTask(id=task_id, label=label, raw_time=raw_time, duration_hint=duration)
    return TimedTask(id=task_id, start=start, end=end, label=label, duration_hint=duration)


def _entry_label(entry: dict) -> str:
    for key in LABEL_KEYS:
        value = _clean(entry.get(key))
        if value is not None:
            return value
    return ""


def _clean(value: Any) -> Optional[str]:
    if value is None:
        return None
    text = str(value).strip()
    return text or None


def _parse_lines(raw: str) -> List[Task]:
    make_id = _IdFactory()
    tasks: List[Task] = []
    for line in raw.splitlines():
        stripped = line.strip()
        if not stripped:
            continue
        task_id = make_id(len(tasks))
        tasks.append(_task_from_line(stripped, task_id))
    return tasks


def _task_from_line(line: str, task_id: str) -> Task:
    candidate = _BULLET_RE.sub("", line)
    match = _LINE_RE.match(candidate)
    if match:
        try:
            start = parse_time_of_day(match.group("start"))
            end = parse_time_of_day(match.group("end"))
        except ParseError:
            return UnstructuredTask(id=task_id, label=line)
        return TimedTask(id=task_id, start=start, end=end, label=match.group("label").strip())
    return UnstructuredTask(id=task_id, label=line)
