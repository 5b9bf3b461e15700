"""LLM-backed priority assessment and priority list manipulation."""
from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum
from typing import List, Optional, Sequence
from uuid import uuid4

from pydantic import BaseModel, Field

from dayflow.core.config import settings
from dayflow.core.errors import GenerationFailure, ValidationError
from dayflow.observability.metrics import log_metric
from dayflow.observability.tracing import annotate, trace
from dayflow.services.text_generation.base import TextGenerator
from dayflow.services.text_generation.openai_generator import response_schema

logger = logging.getLogger(__name__)


class TimeOfDayCategory(str, Enum):
    MORNING = "morning"
    AFTERNOON = "afternoon"
    EVENING = "evening"
    UNKNOWN = "unknown"


class PriorityDraft(BaseModel):
    text: str = Field(..., description="A specific, actionable priority for today.")
    time_of_day: str = Field(
        default="",
        description="Suggested slot such as 'Morning - High Focus' or 'Afternoon - Low Energy'.",
    )


class PriorityAssessmentDraft(BaseModel):
    """Shape the text generator must return."""

    priority_list: List[PriorityDraft] = Field(default_factory=list)
    reasoning: str = Field(default="", description="Why these items were chosen as today's priorities.")


class PriorityItem(BaseModel):
    id: str
    text: str
    time_of_day: str = ""

    @property
    def category(self) -> TimeOfDayCategory:
        return classify_time_of_day(self.time_of_day)


@dataclass
class PriorityAssessment:
    priorities: List[PriorityItem]
    reasoning: str


SYSTEM_PROMPT = (
    "You are an assistant that helps people identify their top priorities for the day. "
    "Priorities must be specific and actionable, ordered from most to least important, "
    "and each must carry a suggested time of day that fits the energy it needs."
)


def assess_priorities(
    goals: str,
    context: Optional[str] = None,
    *,
    generator: Optional[TextGenerator],
    request_id: str | None = None,
) -> PriorityAssessment:
    """Turn free-text goals into an ordered list of priority items."""
    cleaned_goals = (goals or "").strip()
    if len(cleaned_goals) < settings.min_goal_length:
        raise ValidationError("Please describe your goals in a bit more detail.", field="goals")
    if generator is None:
        raise GenerationFailure("Priority assessment is not configured on this server.")

    cleaned_context = (context or "").strip() or "Not provided"
    user_prompt = (
        f"Goals/Tasks/Commitments: {cleaned_goals}\n"
        f"Context: {cleaned_context}\n\n"
        "Determine the user's top priorities for the day and explain the reasoning behind your choices.\n"
        "Only use goals the user actually mentioned.\n\n"
        "### OUTPUT REQUIREMENT\n"
        "Return strictly valid JSON matching this schema:\n"
        f"{response_schema(PriorityAssessmentDraft)}"
    )

    metadata = {"goals_length": len(cleaned_goals), "has_context": bool(context and context.strip())}
    with trace("priorities.assess", metadata=metadata, request_id=request_id) as span:
        draft = generator.generate(
            name="assess_priorities",
            system_prompt=SYSTEM_PROMPT,
            user_prompt=user_prompt,
            output_model=PriorityAssessmentDraft,
            request_id=request_id,
        )
        priorities = [
            PriorityItem(id=uuid4().hex, text=item.text.strip(), time_of_day=item.time_of_day.strip())
            for item in draft.priority_list
            if item.text and item.text.strip()
        ]
        if not priorities:
            raise GenerationFailure("No priorities could be identified from your goals. Please try again.")
        annotate(span, llm_output_text=" | ".join(item.text for item in priorities)[:500])

    log_metric("priorities.count", len(priorities))
    logger.info("Assessed %d priorities", len(priorities))
    return PriorityAssessment(priorities=priorities, reasoning=draft.reasoning.strip())


def classify_time_of_day(hint: Optional[str]) -> TimeOfDayCategory:
    lowered = (hint or "").lower()
    for category in (TimeOfDayCategory.MORNING, TimeOfDayCategory.AFTERNOON, TimeOfDayCategory.EVENING):
        if category.value in lowered:
            return category
    return TimeOfDayCategory.UNKNOWN


def move_priority(items: Sequence[PriorityItem], item_id: str, new_index: int) -> List[PriorityItem]:
    """Move one item to ``new_index``; content is never changed."""
    ordered = list(items)
    positions = {item.id: index for index, item in enumerate(ordered)}
    if item_id not in positions:
        raise ValidationError(f"Unknown priority id: {item_id}", field="item_id")
    if not 0 <= new_index < len(ordered):
        raise ValidationError(f"Position {new_index} is out of range.", field="new_index")
    item = ordered.pop(positions[item_id])
    ordered.insert(new_index, item)
    return ordered


def reorder_priorities(items: Sequence[PriorityItem], ordered_ids: Sequence[str]) -> List[PriorityItem]:
    """Apply a full permutation of ids to the list."""
    by_id = {item.id: item for item in items}
    if len(ordered_ids) != len(items) or set(ordered_ids) != set(by_id):
        raise ValidationError("The new order must list every priority exactly once.", field="ordered_ids")
    return [by_id[item_id] for item_id in ordered_ids]
