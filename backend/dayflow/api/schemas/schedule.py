"""Pydantic schemas for schedule parsing, generation and rework."""
from __future__ import annotations

from typing import List, Literal, Optional, Union

from pydantic import BaseModel, Field

from dayflow.services.schedule_parser import ScheduleFormat, Task, TimedTask
from dayflow.services.time_of_day import format_time_of_day


class TaskPayload(BaseModel):
    id: str
    kind: Literal["timed", "unstructured"]
    label: str
    start_time: Optional[str] = None
    end_time: Optional[str] = None
    time: Optional[str] = None
    duration: Optional[str] = None

    @classmethod
    def from_task(cls, task: Task) -> "TaskPayload":
        if isinstance(task, TimedTask):
            return cls(
                id=task.id,
                kind=task.kind,
                label=task.label,
                start_time=format_time_of_day(task.start),
                end_time=format_time_of_day(task.end),
                time=task.time_range,
                duration=task.duration_hint,
            )
        return cls(id=task.id, kind=task.kind, label=task.label, time=task.raw_time, duration=task.duration_hint)


class ParseScheduleRequest(BaseModel):
    schedule: str = Field(..., max_length=20000)


class ParseScheduleResponse(BaseModel):
    format: ScheduleFormat
    tasks: List[TaskPayload]
    schedule_text: str
    schedule_json: str
    issues: List[str] = Field(default_factory=list)
    request_id: str


class GenerateScheduleRequest(BaseModel):
    priorities: List[str] = Field(default_factory=list)
    calendar_events: str = Field(default="", max_length=4000)
    learning_goal: Optional[str] = None
    other_goals: Optional[str] = None
    start_time: Optional[str] = None
    end_time: Optional[str] = None
    schedule: Optional[str] = Field(default=None, max_length=20000)


class GenerateScheduleResponse(BaseModel):
    mode: Literal["bypass", "generated"]
    schedule: str
    tasks: List[TaskPayload]
    warnings: List[str] = Field(default_factory=list)
    repair_used: bool = False
    request_id: str


class ReworkScheduleRequest(BaseModel):
    original_schedule: str = Field(..., max_length=20000)
    completed_tasks: Union[List[str], str] = Field(default_factory=list)
    remaining_time: str = "the rest of the day"
    new_constraints: str = ""
    user_goals: str = ""
    now: Optional[str] = Field(default=None, description='Override for the current time, e.g. "2:30 PM".')


class ReworkScheduleResponse(BaseModel):
    revised_schedule: str
    reasoning: str
    format: ScheduleFormat
    tasks: List[TaskPayload]
    restored_history: int
    warnings: List[str] = Field(default_factory=list)
    request_id: str
