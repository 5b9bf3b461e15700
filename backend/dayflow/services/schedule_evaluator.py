"""Deterministic checks applied to generated and reworked schedules."""
from __future__ import annotations

import re
from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, List, Sequence

from dayflow.services.schedule_parser import Task, TimedTask, UnstructuredTask
from dayflow.services.time_of_day import NOON, TimeOfDay, describe_duration, parse_duration_hint

LUNCH_RE = re.compile(r"\blunch\b", re.IGNORECASE)
DINNER_RE = re.compile(r"\b(dinner|supper)\b", re.IGNORECASE)
BREAK_RE = re.compile(r"\b(break|lunch|dinner|supper|rest|transition|buffer|commute)\b", re.IGNORECASE)

EVENING_START = TimeOfDay(18, 0)
LUNCH_EARLIEST = TimeOfDay(11, 0)
LUNCH_LATEST = TimeOfDay(13, 0)
DURATION_TOLERANCE_MIN = 5
LUNCH_MINUTES = 60
LUNCH_TOLERANCE_MIN = 15
STOPWORDS = {"with", "from", "into", "that", "this", "have", "about", "your", "for", "and", "the"}


@dataclass(frozen=True)
class BreakPolicy:
    """Which fixed breaks a schedule window must contain."""

    window_start: TimeOfDay
    window_end: TimeOfDay

    @property
    def requires_lunch(self) -> bool:
        return self.window_start <= NOON < self.window_end

    @property
    def requires_dinner(self) -> bool:
        # A window ending exactly at 6:00 PM does not reach into the evening.
        return self.window_end > EVENING_START


@dataclass
class ScheduleEvaluation:
    violations: List[str] = field(default_factory=list)
    warnings: List[str] = field(default_factory=list)
    lunch_count: int = 0
    dinner_count: int = 0
    task_count: int = 0

    @property
    def passed(self) -> bool:
        return not self.violations

    def to_dict(self) -> Dict[str, Any]:
        return {
            "violations": self.violations,
            "warnings": self.warnings,
            "lunch_count": self.lunch_count,
            "dinner_count": self.dinner_count,
            "task_count": self.task_count,
            "passed": self.passed,
        }


def is_lunch(label: str) -> bool:
    return bool(LUNCH_RE.search(label or ""))


def is_dinner(label: str) -> bool:
    return bool(DINNER_RE.search(label or ""))


def evaluate_generated_schedule(
    tasks: Sequence[Task],
    policy: BreakPolicy,
    allowed_sources: Iterable[str] = (),
) -> ScheduleEvaluation:
    """Check break and parseability constraints; everything else is advisory."""
    evaluation = ScheduleEvaluation(task_count=len(tasks))
    if not tasks:
        evaluation.violations.append("The schedule contains no tasks.")
        return evaluation

    for task in tasks:
        if isinstance(task, UnstructuredTask):
            evaluation.violations.append(
                f"'{task.label or 'Untitled task'}' has no valid time range (got {task.raw_time!r})."
            )

    lunches = [task for task in tasks if is_lunch(task.label)]
    dinners = [task for task in tasks if is_dinner(task.label)]
    evaluation.lunch_count = len(lunches)
    evaluation.dinner_count = len(dinners)

    if policy.requires_lunch:
        if not lunches:
            evaluation.violations.append("A one-hour lunch break around noon is required.")
        elif len(lunches) > 1:
            evaluation.violations.append("Exactly one lunch break is allowed.")
        else:
            evaluation.violations.extend(_lunch_violations(lunches[0]))
    if policy.requires_dinner and not dinners:
        evaluation.violations.append("A dinner break is required because the day extends into the evening.")

    evaluation.warnings.extend(inspect_schedule(tasks))
    evaluation.warnings.extend(_window_warnings(tasks, policy))
    evaluation.warnings.extend(_gap_warnings(tasks))
    sources = [source for source in allowed_sources if source]
    if sources:
        evaluation.warnings.extend(_unrecognized_task_warnings(tasks, sources))
    return evaluation


def inspect_schedule(tasks: Sequence[Task]) -> List[str]:
    """Non-fatal consistency findings: inverted ranges, ordering, duration hints."""
    findings: List[str] = []
    previous: TimedTask | None = None
    for task in tasks:
        if not isinstance(task, TimedTask):
            continue
        if not task.is_consistent:
            findings.append(f"'{task.label}' ends at or before it starts ({task.time_range}).")
            continue
        if previous is not None and task.start < previous.start:
            findings.append(f"'{task.label}' starts before the preceding task '{previous.label}'.")
        hinted = parse_duration_hint(task.duration_hint)
        actual = task.end.minutes - task.start.minutes
        if hinted is not None and abs(hinted - actual) > DURATION_TOLERANCE_MIN:
            findings.append(
                f"'{task.label}' is labelled {task.duration_hint!r} but spans {describe_duration(actual)}."
            )
        previous = task
    return findings


def _lunch_violations(lunch: Task) -> List[str]:
    if not isinstance(lunch, TimedTask):
        return []
    violations: List[str] = []
    if not LUNCH_EARLIEST <= lunch.start <= LUNCH_LATEST:
        violations.append(
            f"Lunch starts at {lunch.start}; it must start between {LUNCH_EARLIEST} and {LUNCH_LATEST}."
        )
    span = lunch.end.minutes - lunch.start.minutes
    if abs(span - LUNCH_MINUTES) > LUNCH_TOLERANCE_MIN:
        violations.append(f"Lunch ({lunch.time_range}) must last about one hour.")
    return violations


def _window_warnings(tasks: Sequence[Task], policy: BreakPolicy) -> List[str]:
    warnings: List[str] = []
    for task in tasks:
        if not isinstance(task, TimedTask) or not task.is_consistent:
            continue
        if task.start < policy.window_start or task.end > policy.window_end:
            warnings.append(f"'{task.label}' ({task.time_range}) falls outside the requested window.")
    return warnings


def _gap_warnings(tasks: Sequence[Task]) -> List[str]:
    ordered = sorted(
        (task for task in tasks if isinstance(task, TimedTask) and task.is_consistent),
        key=lambda task: task.start,
    )
    warnings: List[str] = []
    for earlier, later in zip(ordered, ordered[1:]):
        if later.start > earlier.end:
            warnings.append(f"Unscheduled gap between {earlier.end} and {later.start}.")
    return warnings


def _unrecognized_task_warnings(tasks: Sequence[Task], sources: List[str]) -> List[str]:
    vocabulary = set()
    for source in sources:
        vocabulary.update(_keywords(source))
    warnings: List[str] = []
    for task in tasks:
        if BREAK_RE.search(task.label):
            continue
        keywords = _keywords(task.label)
        if keywords and not keywords & vocabulary:
            warnings.append(f"'{task.label}' does not match any requested priority, goal or calendar event.")
    return warnings


def _keywords(text: str) -> set[str]:
    words = re.findall(r"[a-z0-9]+", text.lower())
    return {word for word in words if len(word) >= 4 and word not in STOPWORDS}
