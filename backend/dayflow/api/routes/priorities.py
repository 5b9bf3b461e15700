"""Priority assessment and reordering endpoints."""
from __future__ import annotations

from typing import Optional

from fastapi import APIRouter, Depends, Request

from dayflow.api.errors import http_error
from dayflow.api.schemas.priorities import (
    AssessPrioritiesRequest,
    AssessPrioritiesResponse,
    PriorityPayload,
    ReorderPrioritiesRequest,
    ReorderPrioritiesResponse,
)
from dayflow.core.errors import DayFlowError, ValidationError
from dayflow.observability.tracing import trace
from dayflow.services.priority_assessor import assess_priorities, move_priority, reorder_priorities
from dayflow.services.text_generation.base import TextGenerator
from dayflow.services.text_generation.factory import get_text_generator

router = APIRouter()


@router.post("/priorities/assess", response_model=AssessPrioritiesResponse, tags=["priorities"])
def assess_priorities_endpoint(
    request: AssessPrioritiesRequest,
    http_request: Request,
    generator: Optional[TextGenerator] = Depends(get_text_generator),
) -> AssessPrioritiesResponse:
    """Turn free-text goals into an ordered priority list."""
    request_id = getattr(http_request.state, "request_id", None)
    with trace("http.priorities.assess", metadata={"route": "/priorities/assess"}, request_id=request_id):
        try:
            assessment = assess_priorities(request.goals, request.context, generator=generator, request_id=request_id)
        except DayFlowError as exc:
            raise http_error(exc) from exc

    return AssessPrioritiesResponse(
        priorities=[PriorityPayload.from_item(item) for item in assessment.priorities],
        reasoning=assessment.reasoning,
        request_id=request_id or "",
    )


@router.post("/priorities/reorder", response_model=ReorderPrioritiesResponse, tags=["priorities"])
def reorder_priorities_endpoint(request: ReorderPrioritiesRequest, http_request: Request) -> ReorderPrioritiesResponse:
    """Apply a full new order, or move a single item to a new position."""
    request_id = getattr(http_request.state, "request_id", None)
    items = [payload.to_item() for payload in request.priorities]
    try:
        if request.ordered_ids is not None:
            reordered = reorder_priorities(items, request.ordered_ids)
        elif request.item_id is not None and request.new_index is not None:
            reordered = move_priority(items, request.item_id, request.new_index)
        else:
            raise ValidationError("Provide either ordered_ids or item_id with new_index.", field="ordered_ids")
    except DayFlowError as exc:
        raise http_error(exc) from exc

    return ReorderPrioritiesResponse(
        priorities=[PriorityPayload.from_item(item) for item in reordered],
        request_id=request_id or "",
    )
