"""Pydantic schemas for priority assessment API."""
from __future__ import annotations

from typing import List, Optional

from pydantic import BaseModel, Field

from dayflow.services.priority_assessor import PriorityItem, TimeOfDayCategory


class AssessPrioritiesRequest(BaseModel):
    goals: str = Field(..., max_length=4000)
    context: Optional[str] = Field(default=None, max_length=2000)


class PriorityPayload(BaseModel):
    id: str
    text: str
    time_of_day: str = ""
    category: TimeOfDayCategory = TimeOfDayCategory.UNKNOWN

    @classmethod
    def from_item(cls, item: PriorityItem) -> "PriorityPayload":
        return cls(id=item.id, text=item.text, time_of_day=item.time_of_day, category=item.category)

    def to_item(self) -> PriorityItem:
        return PriorityItem(id=self.id, text=self.text, time_of_day=self.time_of_day)


class AssessPrioritiesResponse(BaseModel):
    priorities: List[PriorityPayload]
    reasoning: str
    request_id: str


class ReorderPrioritiesRequest(BaseModel):
    priorities: List[PriorityPayload] = Field(..., min_length=1)
    ordered_ids: Optional[List[str]] = None
    item_id: Optional[str] = None
    new_index: Optional[int] = None


class ReorderPrioritiesResponse(BaseModel):
    priorities: List[PriorityPayload]
    request_id: str
